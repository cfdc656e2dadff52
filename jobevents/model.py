"""
---------------
jobevents.model
---------------

Domain objects for the two event categories handled by the store:

* test events - emitted while a test step runs against a target. Identified
  by a :class:`TestEventHeader` (job, run, test, attempt and step) and
  carrying :class:`TestEventData`.
* framework events - job lifecycle events emitted by the framework itself.

The event ``id`` is always assigned by the store when the event is persisted;
producers leave it as ``None``.

Emit times are kept as naive ``datetime`` values in UTC. Timezone-aware values
are converted to UTC when an event is created.
"""
from collections import namedtuple
from datetime import datetime, timezone


def utc_naive(value):
    """Converts a timezone-aware :class:`datetime.datetime` to a naive one in UTC.

    Naive values are taken to be in UTC already and are returned unchanged, as is
    any value that is not a ``datetime``.
    """
    if isinstance(value, datetime) and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def utc_now():
    """Current time as a naive UTC :class:`datetime.datetime`.
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


TestEventHeader = namedtuple('TestEventHeader', ['job_id', 'run_id', 'test_name',
                                                 'test_attempt', 'test_step_label'])
"""Identifies the test step that emitted a :class:`TestEvent`.
"""

TestEventHeader.job_id.__doc__ = """
    ``int``, the id of the job.
"""

TestEventHeader.run_id.__doc__ = """
    ``int``, the run of the job.
"""

TestEventHeader.test_name.__doc__ = """
    ``str``, the name of the test.
"""

TestEventHeader.test_attempt.__doc__ = """
    ``int``, the attempt (retry) of the test.
"""

TestEventHeader.test_step_label.__doc__ = """
    ``str``, the label of the test step.
"""


class TestEventData(namedtuple('TestEventData', ['event_name', 'target_id', 'payload'])):
    """The data part of a :class:`TestEvent`.

    :param event_name: ``str``, the name of the event.
    :param target_id: ``str``, *optional*, id of the target the event refers to.
    :param payload: ``str``, *optional*, raw JSON payload.
    """
    __slots__ = ()

    def __new__(cls, event_name, target_id=None, payload=None):
        return super(TestEventData, cls).__new__(cls, event_name, target_id, payload)


class TestEvent:
    """Event emitted by a test step.

    :param header: :class:`TestEventHeader`, identifies the test step.
    :param data: :class:`TestEventData`, the event data.
    :param emit_time: :class:`datetime.datetime`, when the event was emitted.
    :param id: ``int``, assigned by the store. Leave ``None`` when creating events.
    """
    def __init__(self, header, data, emit_time, id=None):
        self.id = id
        self.header = header
        self.data = data
        self.emit_time = utc_naive(emit_time)

    def __eq__(self, other):
        if not isinstance(other, TestEvent):
            return False
        return (self.header == other.header and
                self.data == other.data and
                self.emit_time == other.emit_time)

    def __hash__(self):
        return hash((self.header, self.data, self.emit_time))

    def __repr__(self):
        return 'TestEvent<%s job=%s run=%s step=%s @ %s>' % (
            self.data.event_name if self.data else None,
            self.header.job_id if self.header else None,
            self.header.run_id if self.header else None,
            self.header.test_step_label if self.header else None,
            self.emit_time)


class FrameworkEvent:
    """Job lifecycle event emitted by the framework.

    :param job_id: ``int``, the job this event belongs to.
    :param event_name: ``str``, name of the event.
    :param payload: ``str``, *optional*, raw JSON payload.
    :param emit_time: :class:`datetime.datetime`, *optional*, when the event was emitted.
        Defaults to the current UTC time.
    :param id: ``int``, assigned by the store.
    """
    def __init__(self, job_id, event_name, payload=None, emit_time=None, id=None):
        self.id = id
        self.job_id = job_id
        self.event_name = event_name
        self.payload = payload
        self.emit_time = utc_naive(emit_time) if emit_time is not None else utc_now()

    def __eq__(self, other):
        if not isinstance(other, FrameworkEvent):
            return False
        return (self.job_id == other.job_id and
                self.event_name == other.event_name and
                self.payload == other.payload and
                self.emit_time == other.emit_time)

    def __hash__(self):
        return hash((self.job_id, self.event_name, self.payload, self.emit_time))

    def __repr__(self):
        return 'FrameworkEvent<%s job=%s @ %s>' % (self.event_name, self.job_id, self.emit_time)


def fields_of_test_event(event):
    """Returns the insert arguments for a :class:`TestEvent`.

    The values are ordered as the columns of the ``test_events`` insert:
    job id, run id, test name, test attempt, test step label, event name, target id,
    payload and emit time. Missing header or data yields ``None`` for their columns.
    """
    header = event.header
    data = event.data
    return (header.job_id if header else None,
            header.run_id if header else None,
            header.test_name if header else None,
            header.test_attempt if header else None,
            header.test_step_label if header else None,
            data.event_name if data else None,
            data.target_id if data else None,
            data.payload if data else None,
            event.emit_time)


def fields_of_framework_event(event):
    """Returns the insert arguments for a :class:`FrameworkEvent`: job id, event name,
    payload and emit time.
    """
    return (event.job_id, event.event_name, event.payload, event.emit_time)
