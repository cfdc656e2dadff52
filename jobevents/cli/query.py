"""
-------------------
jobevents.cli.query
-------------------

jobevents query command line interface.
"""
from datetime import datetime
from logging import getLogger

from sqlalchemy.exc import SQLAlchemyError

from jobevents.cli.parser import get_store_config
from jobevents.config import ConfigError
from jobevents.query import TestEventQuery, FrameworkEventQuery
from jobevents.rdbs import create_store_from_config
from jobevents.storeapi import EventStoreException


log = getLogger(__name__)


TEST_EVENT_FORMAT = '{emit_time} [job {job_id} run {run_id}] {test_name}/{test_step_label}: {event_name} {target_id}'

FRAMEWORK_EVENT_FORMAT = '{emit_time} [job {job_id}] {event_name} {payload}'


def get_parser(subparsers):
    """Configures the subparser for the ``query`` command.

    :param argparse.ArgumentParser subparser: subparser for commands.

    Returns :class:`argparse.ArgumentParser` confured for the ``query`` command.
    """
    parser = subparsers.add_parser('query', help='Query for events')

    parser.add_argument('--framework', action='store_true', dest='framework',
                        help='Query framework events instead of test events.')
    parser.add_argument('-j', '--job-id', dest='f_job_id', metavar='JOB_ID',
                        default=0, type=int, help='Filter by job id')
    parser.add_argument('-e', '--event-name', dest='f_event_names', metavar='NAME',
                        action='append', default=None,
                        help='Filter by event name. Can be given multiple times.')
    parser.add_argument('-a', '--after', dest='f_after', metavar='TIME', default=None,
                        type=datetime.fromisoformat,
                        help='Match events emitted at or after this time (ISO-8601)')
    parser.add_argument('-b', '--before', dest='f_before', metavar='TIME', default=None,
                        type=datetime.fromisoformat,
                        help='Match events emitted at or before this time (ISO-8601)')
    parser.add_argument('-r', '--run-id', dest='f_run_id', metavar='RUN_ID',
                        default=0, type=int, help='Filter test events by run id')
    parser.add_argument('-t', '--test-name', dest='f_test_name', metavar='NAME',
                        default='', help='Filter test events by test name')
    parser.add_argument('-s', '--step-label', dest='f_step_label', metavar='LABEL',
                        default='', help='Filter test events by test step label')
    parser.add_argument('-F', '--format-output', dest='o_format', default=None,
                        metavar='FORMAT_STRING', help='Event output format string. ' +
                        'Available properties are: id, job_id, event_name, payload, emit_time and, ' +
                        'for test events, run_id, test_name, test_attempt, test_step_label, target_id.')
    return parser


def _text(value):
    return '' if value is None else value


def format_event(event, fmt):
    """Format an event using the provided format.

    :param event: :class:`jobevents.model.TestEvent` or :class:`jobevents.model.FrameworkEvent`.
    :param str fmt: the format string. This is compatible with :func:`str.format`.

    Returns the formatted event as string. Missing optional values are formatted as
    empty strings.
    """
    if hasattr(event, 'header'):
        data = {
            'id': event.id,
            'job_id': event.header.job_id,
            'run_id': event.header.run_id,
            'test_name': event.header.test_name,
            'test_attempt': event.header.test_attempt,
            'test_step_label': event.header.test_step_label,
            'event_name': event.data.event_name,
            'target_id': _text(event.data.target_id),
            'payload': _text(event.data.payload),
        }
    else:
        data = {
            'id': event.id,
            'job_id': event.job_id,
            'event_name': event.event_name,
            'payload': _text(event.payload),
        }
    data['emit_time'] = event.emit_time.isoformat() if event.emit_time else ''
    return fmt.format(**data)


def to_query(args):
    """Builds the event query from the parsed arguments.
    """
    common = {
        'job_id': args.f_job_id,
        'event_names': args.f_event_names,
        'emitted_start_time': args.f_after,
        'emitted_end_time': args.f_before,
    }
    if args.framework:
        return FrameworkEventQuery(**common)
    return TestEventQuery(run_id=args.f_run_id,
                          test_name=args.f_test_name,
                          test_step_label=args.f_step_label,
                          **common)


def run_query(args):
    """Runs the query against the configured store and prints the matching events.

    :param argparse.Namespace args: parsed command-line arguments.

    Returns the exit status, ``0`` on success.
    """
    try:
        store = create_store_from_config(get_store_config(args))
    except (ConfigError, SQLAlchemyError) as e:
        print('Invalid configuration:', e)
        return 2

    query = to_query(args)
    fmt = args.o_format or (FRAMEWORK_EVENT_FORMAT if args.framework else TEST_EVENT_FORMAT)
    try:
        if args.framework:
            events = store.get_framework_events(query)
        else:
            events = store.get_test_events(query)
        for event in events:
            print(format_event(event, fmt))
    except EventStoreException as e:
        log.debug('Query failed', exc_info=True)
        print('Query failed:', e)
        return 1
    finally:
        store.close()
    return 0
