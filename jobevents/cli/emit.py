"""
------------------
jobevents.cli.emit
------------------

Stores a single framework event from the command line.
"""
import json
from logging import getLogger

from sqlalchemy.exc import SQLAlchemyError

from jobevents.cli.parser import get_store_config
from jobevents.config import ConfigError
from jobevents.model import FrameworkEvent, utc_now
from jobevents.rdbs import create_store_from_config
from jobevents.storeapi import EventStoreException


log = getLogger(__name__)


def get_parser(subparsers):
    """Configures the subparser for the ``emit`` command.

    :param argparse.ArgumentParser subparser: subparser for commands.

    Returns :class:`argparse.ArgumentParser` configured for the ``emit`` command.
    """
    parser = subparsers.add_parser('emit', help='Store a framework event')

    parser.add_argument('-j', '--job-id', dest='job_id', type=int, required=True,
                        help='Id of the job the event belongs to')
    parser.add_argument('-e', '--event-name', dest='event_name', required=True,
                        help='Name of the event, e.g. JobStateStarted')
    parser.add_argument('-p', '--payload', dest='payload', default=None,
                        help='Event payload, a JSON document')
    return parser


def run_emit(args):
    """Stores the framework event and closes the store, which persists it.

    :param argparse.Namespace args: parsed command-line arguments.

    Returns the exit status, ``0`` on success.
    """
    if args.payload is not None:
        try:
            json.loads(args.payload)
        except ValueError as e:
            print('Invalid payload, expected JSON:', e)
            return 2

    try:
        store = create_store_from_config(get_store_config(args))
    except (ConfigError, SQLAlchemyError) as e:
        print('Invalid configuration:', e)
        return 2

    event = FrameworkEvent(job_id=args.job_id,
                           event_name=args.event_name,
                           payload=args.payload,
                           emit_time=utc_now())
    try:
        try:
            store.store_framework_event(event)
        finally:
            store.close()
    except EventStoreException as e:
        log.debug('Emit failed', exc_info=True)
        print('Could not store event:', e)
        return 1
    log.info('Stored %s', event)
    return 0
