"""
----------------
jobevents.config
----------------

Event store configuration.

The configuration can be loaded from a YAML file:

.. code-block:: yaml

    store:
      db_url: sqlite:///var/lib/jobevents/events.db
      test_events_flush_size: 64
      framework_events_flush_size: 16
      verbose: false

The keys can also be given at the top level of the document, without the
``store`` section.
"""
from logging import getLogger

import yaml


log = getLogger(__name__)


class ConfigError(Exception):
    """Invalid or unreadable configuration.
    """
    pass


class StoreConfig:
    """Configuration of the event store.

    :param db_url: ``str``, the database URL in SQLAlchemy form.
    :param test_events_flush_size: ``int``, flush size of the test events buffer.
    :param framework_events_flush_size: ``int``, flush size of the framework events buffer.
    :param verbose: ``bool``, log every statement executed by the database engine.
    """

    FIELDS = ('db_url', 'test_events_flush_size', 'framework_events_flush_size', 'verbose')

    def __init__(self, db_url=None, test_events_flush_size=64, framework_events_flush_size=16,
                 verbose=False):
        self.db_url = db_url
        self.test_events_flush_size = test_events_flush_size
        self.framework_events_flush_size = framework_events_flush_size
        self.verbose = verbose

    def validate(self):
        """Checks the configuration values. Raises :class:`ConfigError` if a value is invalid.
        """
        if not self.db_url:
            raise ConfigError('no database URL configured')
        for name in ('test_events_flush_size', 'framework_events_flush_size'):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
                raise ConfigError('%s must be a positive integer, got %r' % (name, value))
        return self

    def update(self, **overrides):
        """Returns a copy of this configuration with the given values replaced.

        Values that are ``None`` are ignored, so unset command line arguments do not
        override configured values.
        """
        values = {name: getattr(self, name) for name in StoreConfig.FIELDS}
        for name, value in overrides.items():
            if name not in StoreConfig.FIELDS:
                raise ConfigError('unknown configuration key %s' % name)
            if value is not None:
                values[name] = value
        return StoreConfig(**values)

    def __repr__(self):
        return 'StoreConfig<%s test=%s framework=%s>' % (self.db_url, self.test_events_flush_size,
                                                         self.framework_events_flush_size)


def parse_config(document):
    """Builds a :class:`StoreConfig` from a parsed YAML document (``dict``).
    """
    if document is None:
        document = {}
    if not isinstance(document, dict):
        raise ConfigError('configuration must be a mapping')
    if 'store' in document:
        document = document['store'] or {}
        if not isinstance(document, dict):
            raise ConfigError('the store section must be a mapping')
    unknown = set(document) - set(StoreConfig.FIELDS)
    if unknown:
        raise ConfigError('unknown configuration keys: %s' % ', '.join(sorted(unknown)))
    return StoreConfig().update(**document)


def load_config(path):
    """Loads the store configuration from a YAML file.

    :param path: ``str``, path to the configuration file.

    Returns :class:`StoreConfig`. Raises :class:`ConfigError` if the file cannot be read or parsed.
    """
    try:
        with open(path) as config_file:
            document = yaml.safe_load(config_file)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError('could not load configuration from %s: %s' % (path, e)) from e
    log.debug('Loaded configuration from %s', path)
    return parse_config(document)
