"""
--------------------
jobevents.cli.initdb
--------------------

Creates the event store tables in the configured database.
"""
from logging import getLogger

from sqlalchemy.exc import SQLAlchemyError

from jobevents.cli.parser import get_store_config
from jobevents.config import ConfigError
from jobevents.db import create_database


log = getLogger(__name__)


def get_parser(subparsers):
    """Configures the subparser for the ``init`` command.
    """
    return subparsers.add_parser('init', help='Create the event store tables')


def run_init(args):
    """Creates the schema. Returns the exit status, ``0`` on success.
    """
    try:
        config = get_store_config(args)
    except ConfigError as e:
        print('Invalid configuration:', e)
        return 2

    try:
        database = create_database(config.db_url, verbose=config.verbose)
    except SQLAlchemyError as e:
        print('Could not create the schema:', e)
        return 1
    database.dispose()
    log.info('Schema created in %s', config.db_url)
    return 0
