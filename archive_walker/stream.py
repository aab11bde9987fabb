"""
Producer/consumer plumbing for walks.

An ``EntryStream`` runs one producer on a dedicated thread and hands its
entries to the consuming thread through a bounded queue.

Policy
------
- Exactly one producer and one consumer. No locks beyond the queue's own.
- Backpressure: the producer blocks once ``buffer_size`` entries are waiting.
  While blocked it keeps polling the cancellation context, so a cancelled walk
  never stays parked on a full queue.
- ``close()`` waits a bounded time for the producer to stop.
- Cancellation ends the stream silently. Once the consumer observes
  cancellation no further entries are returned, even if some were buffered.
- The stream is finite and not restartable.
"""

from __future__ import annotations

import logging
import queue
import threading
from typing import Callable, Iterator

from archive_walker.context import WalkContext
from archive_walker.data_models import WalkEntry
from archive_walker.errors import WalkerError

logger = logging.getLogger(__name__)

_POLL_INTERVAL_SECONDS = 0.05
CLOSE_TIMEOUT_SECONDS = 5.0

Emit = Callable[[WalkEntry], bool]
Producer = Callable[[Emit, WalkContext], None]


class _EndOfStream:
    """Marker placed on the queue after the producer's last entry."""


_END = _EndOfStream()


class EntryStream:
    """
    Lazy, finite sequence of ``WalkEntry`` values fed by a producer thread.

    Parameters
    ----------
    producer:
        Callable run on the producer thread. It receives an ``emit`` function,
        which returns False once the walk must stop, and the stream's context.
    context:
        Caller's cancellation context. The stream derives its own child from it
        so that ``close()`` never cancels the caller's context.
    buffer_size:
        Queue capacity. Must be at least 1.
    name:
        Producer thread name.
    """

    def __init__(
        self,
        producer: Producer,
        *,
        context: WalkContext,
        buffer_size: int,
        name: str = "archive-walker",
    ) -> None:
        if buffer_size < 1:
            raise ValueError("buffer_size must be at least 1.")
        self._context = context.with_cancel()
        self._queue: queue.Queue[WalkEntry | _EndOfStream] = queue.Queue(maxsize=buffer_size)
        self._finished = threading.Event()
        self._failure: Exception | None = None
        self._exhausted = False
        self._thread = threading.Thread(
            target=self._run,
            args=(producer,),
            name=name,
            daemon=True,
        )
        self._thread.start()

    @classmethod
    def of(cls, entries: list[WalkEntry], *, context: WalkContext) -> EntryStream:
        """Return a stream that yields a fixed list of entries."""

        def _produce(emit: Emit, ctx: WalkContext) -> None:
            for entry in entries:
                if not emit(entry):
                    return

        return cls(_produce, context=context, buffer_size=max(1, len(entries)))

    @property
    def closed(self) -> bool:
        """True once the consumer has seen the end of the stream."""
        return self._exhausted

    def __iter__(self) -> Iterator[WalkEntry]:
        return self

    def __next__(self) -> WalkEntry:
        if self._exhausted:
            raise StopIteration

        while True:
            if self._context.cancelled():
                logger.debug("Walk cancelled; ending stream.")
                self._exhausted = True
                raise StopIteration

            try:
                item = self._queue.get(timeout=self._poll_timeout())
            except queue.Empty:
                if self._finished.is_set() and self._queue.empty():
                    self._end()
                continue

            if isinstance(item, _EndOfStream):
                self._end()
            return item

    def close(self, timeout: float | None = CLOSE_TIMEOUT_SECONDS) -> bool:
        """
        Stop the producer and release the stream. Safe to call repeatedly.

        Parameters
        ----------
        timeout:
            Longest time to wait for the producer thread, or None to wait
            without bound. A producer stuck in a filesystem call (for example
            on a hung mount) only notices cancellation once that call returns.

        Returns
        -------
        bool
            True if the producer has finished. When False, the producer is left
            running as a daemon thread and exits at its next cancellation check.
        """
        self._exhausted = True
        self._context.cancel()
        if self.join(timeout):
            return True
        logger.warning("Walk producer did not stop within %s seconds.", timeout)
        return False

    def join(self, timeout: float | None = None) -> bool:
        """
        Wait for the producer thread to finish.

        Returns
        -------
        bool
            True if the producer has finished.
        """
        self._thread.join(timeout)
        return not self._thread.is_alive()

    def __enter__(self) -> EntryStream:
        return self

    def __exit__(self, exc_type: object, exc: object, tb: object) -> None:
        self.close()

    def _end(self) -> None:
        self._exhausted = True
        if self._failure is not None:
            raise WalkerError(f"Walk failed unexpectedly: {self._failure!s}") from self._failure
        raise StopIteration

    def _poll_timeout(self) -> float:
        # Never sleep past the context's deadline.
        remaining = self._context.remaining()
        if remaining is None:
            return _POLL_INTERVAL_SECONDS
        return min(_POLL_INTERVAL_SECONDS, remaining)

    def _emit(self, entry: WalkEntry | _EndOfStream) -> bool:
        while True:
            if self._context.cancelled():
                return False
            try:
                self._queue.put(entry, timeout=self._poll_timeout())
            except queue.Full:
                continue
            return True

    def _run(self, producer: Producer) -> None:
        try:
            producer(self._emit, self._context)
        except Exception as exc:
            logger.exception("Walk producer failed.")
            self._failure = exc
        finally:
            self._emit(_END)
            self._finished.set()
