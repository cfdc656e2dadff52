"""
-------------
jobevents.job
-------------

Job lifecycle states and the mapping from framework event names to job states.

The store consults a job-state lookup when it flushes framework events: every
event whose name maps to a state causes the ``jobs`` table to be updated with
the state of the last such event of the job in the flushed batch.

A lookup is any callable that takes an event name and returns the job state,
or ``None`` if the event does not change the state of the job.
"""
from enum import IntEnum


class JobState(IntEnum):
    """State of a job, as stored in the ``jobs`` table.
    """
    UNKNOWN = 0
    STARTED = 1
    COMPLETED = 2
    FAILED = 3
    PAUSED = 4
    PAUSE_FAILED = 5
    CANCELLING = 6
    CANCELLED = 7
    CANCELLATION_FAILED = 8


EVENT_JOB_STARTED = 'JobStateStarted'
EVENT_JOB_COMPLETED = 'JobStateCompleted'
EVENT_JOB_FAILED = 'JobStateFailed'
EVENT_JOB_PAUSED = 'JobStatePaused'
EVENT_JOB_PAUSE_FAILED = 'JobStatePauseFailed'
EVENT_JOB_CANCELLING = 'JobStateCancelling'
EVENT_JOB_CANCELLED = 'JobStateCancelled'
EVENT_JOB_CANCELLATION_FAILED = 'JobStateCancellationFailed'


JOB_STATE_EVENTS = {
    EVENT_JOB_STARTED: JobState.STARTED,
    EVENT_JOB_COMPLETED: JobState.COMPLETED,
    EVENT_JOB_FAILED: JobState.FAILED,
    EVENT_JOB_PAUSED: JobState.PAUSED,
    EVENT_JOB_PAUSE_FAILED: JobState.PAUSE_FAILED,
    EVENT_JOB_CANCELLING: JobState.CANCELLING,
    EVENT_JOB_CANCELLED: JobState.CANCELLED,
    EVENT_JOB_CANCELLATION_FAILED: JobState.CANCELLATION_FAILED,
}


def event_name_to_job_state(event_name):
    """Maps a framework event name to the :class:`JobState` it puts the job in.

    :param event_name: ``str``, the framework event name.

    Returns the :class:`JobState` or ``None`` if the event does not affect the job state.
    """
    return JOB_STATE_EVENTS.get(event_name)


def lookup_from_mapping(mapping):
    """Builds a job-state lookup from a ``dict`` of event name to state.

    The mapping is copied, so later changes to ``mapping`` do not affect the lookup.
    """
    states = dict(mapping)

    def lookup(event_name):
        return states.get(event_name)

    return lookup
