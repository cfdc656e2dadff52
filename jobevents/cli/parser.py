"""
--------------------
jobevents.cli.parser
--------------------


jobevents CLI main :mod:`argparse` parser.
"""
import argparse

from jobevents.config import StoreConfig, load_config


def get_parent_parser(name, desc=''):
    """Creates the main (parent) :class:`argparse.ArgumentParser` for the jobevents CLI.

    Defines the main argument options such as the configuration file, database URL,
    buffer flush sizes and verbosity level.

    :param str name: the name of the program.
    :param str desc: program description.

    Returns the configured :class:`argparse.ArgumentParser`.
    """
    parser = argparse.ArgumentParser(prog=name, description=desc)

    parser.add_argument('-v', '--version',
                        help='Print program version and exit', action='store_true')
    parser.add_argument('-c', '--config', dest='config', default=None,
                        help='Path to YAML configuration file')
    parser.add_argument('-U', '--db-url', dest='db_url', default=None,
                        help='Database URL (SQLAlchemy form). Overrides the configured one.')
    parser.add_argument('--test-flush-size', dest='test_events_flush_size', type=int,
                        default=None, help='Flush size of the test events buffer')
    parser.add_argument('--framework-flush-size', dest='framework_events_flush_size', type=int,
                        default=None, help='Flush size of the framework events buffer')
    parser.add_argument('--echo-sql', dest='echo_sql', action='store_true',
                        help='Log every SQL statement executed.')

    parser.add_argument('--verbose', dest='verbose', action='store_true',
                        help='Verbose output.')

    return parser


def get_store_config(args):
    """Builds the :class:`jobevents.config.StoreConfig` from the configuration file
    (if given) and the command line arguments.

    :param argparse.Namespace args: parsed arguments.

    Raises :class:`jobevents.config.ConfigError` if the resulting configuration is invalid.
    """
    config = load_config(args.config) if getattr(args, 'config', None) else StoreConfig()
    config = config.update(db_url=getattr(args, 'db_url', None),
                           test_events_flush_size=getattr(args, 'test_events_flush_size', None),
                           framework_events_flush_size=getattr(args, 'framework_events_flush_size', None),
                           verbose=True if getattr(args, 'echo_sql', False) else None)
    return config.validate()
