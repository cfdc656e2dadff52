"""
----------------
jobevents.buffer
----------------

In-memory staging area for events of one category.

Events are appended to the buffer and handed over to the flush callback in
batches, once the number of pending events reaches the flush size, or when a
flush is forced. The pending events are cleared only after the flush callback
returns successfully; if it raises, the events stay in the buffer and the error
propagates to the caller.
"""
from threading import RLock
from logging import getLogger


log = getLogger(__name__)


class EventBuffer:
    """Buffers events and flushes them in batches.

    The instances of this class are thread-safe. The buffer lock is held while the
    flush callback runs, so the callback sees a stable batch and appends wait for it
    to complete.

    :param name: ``str``, name of the buffered event category, used in log messages.
    :param flush_size: ``int``, flush once this many events are pending. Must be positive.
    :param flush: ``function``, the flush callback. Takes one argument, the ``list`` of
        pending events in the order they were appended.
    """
    def __init__(self, name, flush_size, flush):
        if not isinstance(flush_size, int) or isinstance(flush_size, bool) or flush_size <= 0:
            raise ValueError('flush size for %s must be a positive integer, got %r' % (name, flush_size))
        self.name = name
        self.flush_size = flush_size
        self._flush = flush
        self.events = []
        self.lock = RLock()

    def append(self, event):
        """Appends an event to the buffer.

        Flushes the buffer if the number of pending events reached the flush size.
        Errors from the flush callback are propagated and the events are kept.
        """
        self.lock.acquire()
        try:
            self.events.append(event)
            if len(self.events) >= self.flush_size:
                self._flush_locked()
        finally:
            self.lock.release()

    def force_flush(self):
        """Flushes the pending events regardless of the flush size.
        """
        self.lock.acquire()
        try:
            self._flush_locked()
        finally:
            self.lock.release()

    def _flush_locked(self):
        if not self.events:
            return
        log.debug('Flushing %d %s.', len(self.events), self.name)
        self._flush(list(self.events))
        self.events = []

    def pending(self):
        """Returns a copy of the pending events.
        """
        self.lock.acquire()
        try:
            return list(self.events)
        finally:
            self.lock.release()

    def __len__(self):
        self.lock.acquire()
        try:
            return len(self.events)
        finally:
            self.lock.release()
