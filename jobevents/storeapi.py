"""
------------------
jobevents.storeapi
------------------

Event Store API
^^^^^^^^^^^^^^^

Defines the interface of an event store for test and framework events, and the
exceptions raised by its implementations.
"""
from abc import abstractmethod


TEST_EVENTS = 'test events'
FRAMEWORK_EVENTS = 'framework events'


class EventStore:
    """EventStore accepts test events and framework events and lets them be
    retrieved by criteria.

    Implementations may buffer the stored events, but a read must always observe
    every event whose ``store_*`` call completed before the read started.
    An instance of this class is thread-safe.
    """

    @abstractmethod
    def store_test_event(self, event):
        """Stores a test event.

        The event may be kept in memory and persisted later, together with other
        events.

        :param event: :class:`jobevents.model.TestEvent`, the event to store.

        This method does not return any value.
        """
        pass

    @abstractmethod
    def get_test_events(self, query):
        """Looks up test events matching the given criteria.

        :param query: :class:`jobevents.query.TestEventQuery`, the criteria. At least one
            criteria field must be set.

        Returns a ``list`` of :class:`jobevents.model.TestEvent`.
        """
        pass

    @abstractmethod
    def store_framework_event(self, event):
        """Stores a framework event.

        :param event: :class:`jobevents.model.FrameworkEvent`, the event to store.

        This method does not return any value.
        """
        pass

    @abstractmethod
    def get_framework_events(self, query):
        """Looks up framework events matching the given criteria.

        :param query: :class:`jobevents.query.FrameworkEventQuery`, the criteria. At least
            one criteria field must be set.

        Returns a ``list`` of :class:`jobevents.model.FrameworkEvent`.
        """
        pass

    @abstractmethod
    def flush(self):
        """Persists all buffered events of both categories.
        """
        pass

    @abstractmethod
    def close(self):
        """Flushes and closes the underlying store.
        """
        pass


class EventStoreException(Exception):
    """General store error.

    :param message: ``str``, error message.
    :param category: ``str``, the event category (``'test events'`` or
        ``'framework events'``), if known.
    :param operation: ``str``, the store operation that failed, if known.
    """
    def __init__(self, message, category=None, operation=None):
        super(EventStoreException, self).__init__(message)
        self.category = category
        self.operation = operation


class EmptyCriteriaError(EventStoreException):
    """Raised when a query has no criteria set. Unfiltered reads are not supported.
    """
    pass


class EventWriteException(EventStoreException):
    """Represents an error while writing events to the underlying storage.
    """
    pass


class PersistError(EventWriteException):
    """An insert or update statement failed.

    Statements executed before the failing one in the same flush remain persisted.

    :param statement: ``str``, the kind of the failing statement, ``'insert'`` or ``'update'``.
    """
    def __init__(self, message, category=None, operation=None, statement=None):
        super(PersistError, self).__init__(message, category=category, operation=operation)
        self.statement = statement


class FlushError(EventWriteException):
    """Flushing the buffered events failed while storing or reading events.

    The original :class:`PersistError` is available as ``__cause__``.
    """
    pass


class EventReadException(EventStoreException):
    """Represents an error while reading events from the underlying storage.
    """
    pass


class AssemblyError(EventReadException):
    """The select query could not be assembled. Caused by :class:`EmptyCriteriaError`.
    """
    pass


class QueryError(EventReadException):
    """The select query failed in the underlying storage.
    """
    pass


class ScanError(EventReadException):
    """A result row could not be mapped to an event.
    """
    pass
