"""
--------------
jobevents.rdbs
--------------

Relational database EventStore implementation.

The store keeps the incoming test events and framework events in two separate
in-memory buffers (:class:`jobevents.buffer.EventBuffer`) and writes them to the
database in batches, once a buffer reaches its flush size. Reads always flush the
buffer of the category being read first, so a read sees every event stored before
it.

All database statements, from both categories, are executed one at a time under a
single store-wide lock. A flush inserts the buffered events one statement at a time
without a surrounding transaction: if an insert fails, the events inserted before it
remain in the database, the flush is aborted and the events are kept in the buffer.

Flushing framework events also updates the state of the jobs the events belong to.
The state of each job is derived from the name of its last event in the batch that
maps to a job state (see :mod:`jobevents.job`).

.. code-block:: python

    from datetime import datetime
    from jobevents.rdbs import create_store
    from jobevents.model import FrameworkEvent
    from jobevents.query import FrameworkEventQuery

    store = create_store('sqlite:///events.db')
    store.store_framework_event(FrameworkEvent(job_id=1, event_name='JobStateStarted',
                                               emit_time=datetime.now()))
    for event in store.get_framework_events(FrameworkEventQuery(job_id=1)):
        print(event.event_name)
    store.close()
"""
from threading import RLock
from logging import getLogger

from sqlalchemy import DateTime, Integer, String, Text
from sqlalchemy.exc import SQLAlchemyError

from jobevents.buffer import EventBuffer
from jobevents.db import create_database
from jobevents.job import event_name_to_job_state
from jobevents.model import (TestEvent, TestEventHeader, TestEventData, FrameworkEvent,
                             fields_of_test_event, fields_of_framework_event)
from jobevents.query import (assemble_query, compile_test_event_query,
                             compile_framework_event_query)
from jobevents.storeapi import (EventStore,
                                EmptyCriteriaError,
                                AssemblyError,
                                FlushError,
                                PersistError,
                                QueryError,
                                ScanError,
                                TEST_EVENTS,
                                FRAMEWORK_EVENTS)


log = getLogger(__name__)


INSERT_TEST_EVENT = ('insert into test_events (job_id, run_id, test_name, test_attempt, test_step_label, '
                     'event_name, target_id, payload, emit_time) values (?, ?, ?, ?, ?, ?, ?, ?, ?)')

INSERT_FRAMEWORK_EVENT = ('insert into framework_events (job_id, event_name, payload, emit_time) '
                          'values (?, ?, ?, ?)')

UPDATE_JOB_STATE = 'update jobs set state = ? where job_id = ?'

SELECT_TEST_EVENTS = ('select event_id, job_id, run_id, test_name, test_attempt, test_step_label, '
                      'event_name, target_id, payload, emit_time from test_events')

SELECT_FRAMEWORK_EVENTS = 'select event_id, job_id, event_name, payload, emit_time from framework_events'

TEST_EVENT_COLUMNS = [
    ('event_id', Integer),
    ('job_id', Integer),
    ('run_id', Integer),
    ('test_name', String),
    ('test_attempt', Integer),
    ('test_step_label', String),
    ('event_name', String),
    ('target_id', String),
    ('payload', Text),
    ('emit_time', DateTime),
]

FRAMEWORK_EVENT_COLUMNS = [
    ('event_id', Integer),
    ('job_id', Integer),
    ('event_name', String),
    ('payload', Text),
    ('emit_time', DateTime),
]

DEFAULT_TEST_EVENTS_FLUSH_SIZE = 64
DEFAULT_FRAMEWORK_EVENTS_FLUSH_SIZE = 16


class RDBSEventStore(EventStore):
    """EventStore that buffers the events and persists them in a relational database.

    The instances of this class are thread-safe and can be shared between threads.

    :param db: :class:`jobevents.db.Database`, the database to write to and read from.
    :param test_events_flush_size: ``int``, flush the test events buffer once this many
        test events are pending.
    :param framework_events_flush_size: ``int``, flush the framework events buffer once
        this many framework events are pending.
    :param job_state_lookup: ``function``, maps a framework event name to a job state, or
        to ``None`` if the event does not change the job state. Defaults to
        :func:`jobevents.job.event_name_to_job_state`.
    """

    def __init__(self, db, test_events_flush_size=DEFAULT_TEST_EVENTS_FLUSH_SIZE,
                 framework_events_flush_size=DEFAULT_FRAMEWORK_EVENTS_FLUSH_SIZE,
                 job_state_lookup=None):
        self.db = db
        self.job_state_lookup = job_state_lookup or event_name_to_job_state
        # serializes every statement sent to the database, for both categories
        self.tx_lock = RLock()
        self.test_events = EventBuffer(TEST_EVENTS, test_events_flush_size,
                                       self._persist_test_events)
        self.framework_events = EventBuffer(FRAMEWORK_EVENTS, framework_events_flush_size,
                                            self._persist_framework_events)

    def store_test_event(self, event):
        """Appends a test event to the buffer, flushing the buffer if it is full.

        Raises :class:`jobevents.storeapi.FlushError` if the flush fails. The buffered
        events are kept in that case.
        """
        try:
            self.test_events.append(event)
        except PersistError as e:
            raise FlushError('could not flush %s while storing an event: %s' % (TEST_EVENTS, e),
                             category=TEST_EVENTS, operation='store') from e

    def store_framework_event(self, event):
        """Appends a framework event to the buffer, flushing the buffer if it is full.

        Raises :class:`jobevents.storeapi.FlushError` if the flush fails.
        """
        try:
            self.framework_events.append(event)
        except PersistError as e:
            raise FlushError('could not flush %s while storing an event: %s' % (FRAMEWORK_EVENTS, e),
                             category=FRAMEWORK_EVENTS, operation='store') from e

    def _persist_test_events(self, events):
        self.tx_lock.acquire()
        try:
            for event in events:
                self._execute(INSERT_TEST_EVENT, fields_of_test_event(event),
                              TEST_EVENTS, 'insert')
        finally:
            self.tx_lock.release()

    def _persist_framework_events(self, events):
        self.tx_lock.acquire()
        try:
            # TODO: run the inserts and the job state updates in one transaction.
            job_states = {}
            for event in events:
                self._execute(INSERT_FRAMEWORK_EVENT, fields_of_framework_event(event),
                              FRAMEWORK_EVENTS, 'insert')
                state = self.job_state_lookup(event.event_name)
                if state is not None:
                    job_states[event.job_id] = state
            for job_id, state in job_states.items():
                log.debug('Setting state of job %s to %s', job_id, state)
                self._execute(UPDATE_JOB_STATE, (state, job_id), FRAMEWORK_EVENTS, 'update')
        finally:
            self.tx_lock.release()

    def _execute(self, statement, params, category, kind):
        try:
            self.db.execute(statement, params)
        except Exception as e:
            raise PersistError('could not %s %s in database: %s' % (kind, category, e),
                               category=category, operation='flush', statement=kind) from e

    def _force_flush(self, buffer):
        try:
            buffer.force_flush()
        except PersistError as e:
            raise FlushError('could not flush %s before reading events: %s' % (buffer.name, e),
                             category=buffer.name, operation='get') from e

    def get_test_events(self, query):
        """Retrieves the test events matching the query criteria.

        The pending test events are flushed before the lookup.

        :param query: :class:`jobevents.query.TestEventQuery`, at least one field must be set.

        Returns a ``list`` of :class:`jobevents.model.TestEvent`, in the order returned by
        the database.
        """
        self._force_flush(self.test_events)
        fragments, params = compile_test_event_query(query)
        return self._select(TEST_EVENTS, SELECT_TEST_EVENTS, fragments, params,
                            TEST_EVENT_COLUMNS, row_to_test_event)

    def get_framework_events(self, query):
        """Retrieves the framework events matching the query criteria.

        The pending framework events are flushed before the lookup.

        :param query: :class:`jobevents.query.FrameworkEventQuery`, at least one field must be set.

        Returns a ``list`` of :class:`jobevents.model.FrameworkEvent`.
        """
        self._force_flush(self.framework_events)
        fragments, params = compile_framework_event_query(query)
        return self._select(FRAMEWORK_EVENTS, SELECT_FRAMEWORK_EVENTS, fragments, params,
                            FRAMEWORK_EVENT_COLUMNS, row_to_framework_event)

    get_framework_event = get_framework_events

    def _select(self, category, base_query, fragments, params, columns, from_row):
        self.tx_lock.acquire()
        try:
            try:
                query = assemble_query(base_query, fragments)
            except EmptyCriteriaError as e:
                raise AssemblyError('could not assemble query for %s: %s' % (category, e),
                                    category=category, operation='get') from e

            log.debug('Executing query: %s, params: %s', query, params)
            try:
                rows = self.db.query(query, params, columns)
            except Exception as e:
                raise QueryError('could not execute select query for %s: %s' % (category, e),
                                 category=category, operation='get') from e

            try:
                return [from_row(row) for row in rows]
            except (TypeError, ValueError) as e:
                raise ScanError('could not read %s results from database: %s' % (category, e),
                                category=category, operation='get') from e
            except SQLAlchemyError as e:
                raise QueryError('could not fetch %s results from database: %s' % (category, e),
                                 category=category, operation='get') from e
            finally:
                try:
                    rows.close()
                except Exception as e:
                    log.warning('Could not close rows for %s: %s', category, e)
        finally:
            self.tx_lock.release()

    def flush(self):
        """Flushes the pending events of both categories.

        Raises :class:`jobevents.storeapi.FlushError` if any of the flushes fails.
        """
        for buffer in (self.test_events, self.framework_events):
            try:
                buffer.force_flush()
            except PersistError as e:
                raise FlushError('could not flush %s: %s' % (buffer.name, e),
                                 category=buffer.name, operation='flush') from e

    def close(self):
        """Flushes the pending events and releases the database connections.
        """
        try:
            self.flush()
        finally:
            self.db.dispose()
        log.info('RDBS Event Store closed')


def _required(value, name):
    if value is None:
        raise ValueError('column %s is null' % name)
    return value


def row_to_test_event(row):
    """Maps a ``test_events`` result row to :class:`jobevents.model.TestEvent`.

    ``target_id`` and ``payload`` stay ``None`` when they are null in the database.
    Raises ``ValueError`` or ``TypeError`` if the row cannot be mapped.
    """
    (event_id, job_id, run_id, test_name, test_attempt, test_step_label,
     event_name, target_id, payload, emit_time) = row
    header = TestEventHeader(job_id=_required(job_id, 'job_id'),
                             run_id=_required(run_id, 'run_id'),
                             test_name=_required(test_name, 'test_name'),
                             test_attempt=_required(test_attempt, 'test_attempt'),
                             test_step_label=_required(test_step_label, 'test_step_label'))
    data = TestEventData(event_name=_required(event_name, 'event_name'),
                         target_id=target_id,
                         payload=payload)
    return TestEvent(header=header, data=data, emit_time=_required(emit_time, 'emit_time'),
                     id=event_id)


def row_to_framework_event(row):
    """Maps a ``framework_events`` result row to :class:`jobevents.model.FrameworkEvent`.
    """
    event_id, job_id, event_name, payload, emit_time = row
    return FrameworkEvent(job_id=_required(job_id, 'job_id'),
                          event_name=_required(event_name, 'event_name'),
                          payload=payload,
                          emit_time=_required(emit_time, 'emit_time'),
                          id=event_id)


def create_store(db_url, test_events_flush_size=DEFAULT_TEST_EVENTS_FLUSH_SIZE,
                 framework_events_flush_size=DEFAULT_FRAMEWORK_EVENTS_FLUSH_SIZE,
                 job_state_lookup=None, verbose=False):
    """Creates new RDBSEventStore.

    Creates the database tables if they do not exist.

    :param db_url(str): The database URL in SQLAlchemy form.
    :param test_events_flush_size(int): flush size of the test events buffer.
    :param framework_events_flush_size(int): flush size of the framework events buffer.
    :param job_state_lookup(function): maps framework event names to job states.
    :param verbose(bool): ``True`` to show extended messages from the store.

    Returns RDBSEventStore object.
    """
    db = create_database(db_url, verbose=verbose)
    log.info('RDBS Event Store flush sizes: %d test events, %d framework events',
             test_events_flush_size, framework_events_flush_size)
    return RDBSEventStore(db,
                          test_events_flush_size=test_events_flush_size,
                          framework_events_flush_size=framework_events_flush_size,
                          job_state_lookup=job_state_lookup)


def create_store_from_config(config, job_state_lookup=None):
    """Creates new RDBSEventStore from a :class:`jobevents.config.StoreConfig`.
    """
    return create_store(config.db_url,
                        test_events_flush_size=config.test_events_flush_size,
                        framework_events_flush_size=config.framework_events_flush_size,
                        job_state_lookup=job_state_lookup,
                        verbose=config.verbose)
