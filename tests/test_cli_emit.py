from io import StringIO
from unittest import mock
from jobevents.cli.parser import get_parent_parser
from jobevents.cli.emit import get_parser, run_emit
from jobevents.job import JobState
from jobevents.query import FrameworkEventQuery
from jobevents.rdbs import create_store
from jobevents.storeapi import FlushError, FRAMEWORK_EVENTS


def _parse(argv):
    parser = get_parent_parser('test')
    subparsers = parser.add_subparsers(dest='command', title='command', help='CLI commands')
    get_parser(subparsers)
    return parser.parse_args(argv)


def test_get_parser():
    args = _parse(['emit', '-j', '3', '-e', 'JobStateStarted', '-p', '{"a": 1}'])

    assert args.job_id == 3
    assert args.event_name == 'JobStateStarted'
    assert args.payload == '{"a": 1}'


def test_run_emit(tmp_path):
    db_url = 'sqlite:///%s' % (tmp_path / 'events.db')
    store = create_store(db_url)
    store.db.execute('insert into jobs (job_id, state) values (?, ?)', [3, JobState.UNKNOWN])

    assert run_emit(_parse(['-U', db_url, 'emit', '-j', '3', '-e', 'JobStateStarted',
                            '-p', '{"a": 1}'])) == 0

    events = store.get_framework_events(FrameworkEventQuery(job_id=3))
    assert len(events) == 1
    assert events[0].event_name == 'JobStateStarted'
    assert events[0].payload == '{"a": 1}'
    assert events[0].emit_time is not None

    rows = store.db.query('select state from jobs where job_id = ?', [3])
    try:
        assert [row[0] for row in rows] == [JobState.STARTED]
    finally:
        rows.close()
    store.close()


@mock.patch('sys.stdout', new_callable=StringIO)
def test_run_emit_invalid_payload(fake_out):
    assert run_emit(_parse(['-U', 'sqlite://', 'emit', '-j', '3', '-e', 'X', '-p', '{not json'])) == 2
    assert fake_out.getvalue().startswith('Invalid payload')


@mock.patch('sys.stdout', new_callable=StringIO)
@mock.patch('jobevents.cli.emit.create_store_from_config')
def test_run_emit_closes_store_when_store_fails(m_create_store, fake_out):
    store = mock.MagicMock()
    store.store_framework_event.side_effect = FlushError('db gone', category=FRAMEWORK_EVENTS,
                                                         operation='store')
    m_create_store.return_value = store

    assert run_emit(_parse(['-U', 'sqlite://', 'emit', '-j', '3', '-e', 'JobStateStarted'])) == 1
    assert store.close.call_count == 1
    assert fake_out.getvalue().startswith('Could not store event')
