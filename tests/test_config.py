from jobevents.config import StoreConfig, ConfigError, parse_config, load_config


def _raises_config_error(fn, *args, **kwargs):
    try:
        fn(*args, **kwargs)
    except ConfigError:
        return True
    return False


def test_store_config_defaults():
    config = StoreConfig()

    assert config.db_url is None
    assert config.test_events_flush_size == 64
    assert config.framework_events_flush_size == 16
    assert config.verbose is False


def test_store_config_validate():
    assert StoreConfig(db_url='sqlite://').validate() is not None

    assert _raises_config_error(StoreConfig().validate)
    assert _raises_config_error(StoreConfig(db_url='sqlite://', test_events_flush_size=0).validate)
    assert _raises_config_error(StoreConfig(db_url='sqlite://', framework_events_flush_size=-2).validate)
    assert _raises_config_error(StoreConfig(db_url='sqlite://', framework_events_flush_size='8').validate)


def test_store_config_update():
    config = StoreConfig(db_url='sqlite://', test_events_flush_size=10)

    updated = config.update(db_url=None, test_events_flush_size=20)

    assert updated.db_url == 'sqlite://'
    assert updated.test_events_flush_size == 20
    assert config.test_events_flush_size == 10
    assert _raises_config_error(config.update, bad_key=1)


def test_parse_config():
    config = parse_config({'db_url': 'sqlite://', 'test_events_flush_size': 8})
    assert config.db_url == 'sqlite://'
    assert config.test_events_flush_size == 8
    assert config.framework_events_flush_size == 16

    config = parse_config({'store': {'db_url': 'mysql://db/events', 'verbose': True}})
    assert config.db_url == 'mysql://db/events'
    assert config.verbose is True

    assert parse_config(None).db_url is None


def test_parse_config_invalid():
    assert _raises_config_error(parse_config, ['db_url'])
    assert _raises_config_error(parse_config, {'store': 'sqlite://'})
    assert _raises_config_error(parse_config, {'db_url': 'sqlite://', 'flush': 10})


def test_load_config(tmp_path):
    config_file = tmp_path / 'jobevents.yml'
    config_file.write_text('store:\n'
                           '  db_url: sqlite:///events.db\n'
                           '  test_events_flush_size: 32\n'
                           '  framework_events_flush_size: 4\n')

    config = load_config(str(config_file))

    assert config.db_url == 'sqlite:///events.db'
    assert config.test_events_flush_size == 32
    assert config.framework_events_flush_size == 4


def test_load_config_errors(tmp_path):
    assert _raises_config_error(load_config, str(tmp_path / 'missing.yml'))

    config_file = tmp_path / 'broken.yml'
    config_file.write_text('store: [db_url\n')
    assert _raises_config_error(load_config, str(config_file))
