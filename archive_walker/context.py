"""
Cooperative cancellation for walks.

A ``WalkContext`` is the signal a caller threads into a walk to stop it early.
It may carry a deadline, in which case it reports itself cancelled once the
deadline has passed. Contexts form a tree: cancelling a parent cancels every
context derived from it, never the other way around.

Notes
-----
Cancellation is checked, not delivered. The walker polls ``cancelled()`` at
directory boundaries and before each emission.
"""

from __future__ import annotations

import threading
import weakref

from archive_walker.clock import MonotonicClock, SystemMonotonicClock


class WalkContext:
    """
    A cancellation signal with an optional deadline.

    Parameters
    ----------
    parent:
        Context this one derives from, if any.
    deadline:
        Absolute deadline on ``clock``'s timeline, or None for no deadline.
    clock:
        Time source used to evaluate the deadline.
    """

    def __init__(
        self,
        *,
        parent: WalkContext | None = None,
        deadline: float | None = None,
        clock: MonotonicClock | None = None,
    ) -> None:
        self._parent = parent
        self._clock: MonotonicClock = clock or (parent._clock if parent else SystemMonotonicClock())
        if parent is not None and parent.deadline is not None:
            deadline = parent.deadline if deadline is None else min(deadline, parent.deadline)
        self._deadline = deadline
        self._event = threading.Event()
        self._children_lock = threading.Lock()
        self._children: weakref.WeakSet[WalkContext] = weakref.WeakSet()

        if parent is not None:
            parent._register_child(self)

    @classmethod
    def background(cls, *, clock: MonotonicClock | None = None) -> WalkContext:
        """Return a root context that is only cancelled explicitly."""
        return cls(clock=clock)

    def with_cancel(self) -> WalkContext:
        """Return a child context that can be cancelled on its own."""
        return WalkContext(parent=self)

    def with_timeout(self, seconds: float) -> WalkContext:
        """
        Return a child context that expires after ``seconds``.

        Raises
        ------
        ValueError
            If ``seconds`` is negative.
        """
        if seconds < 0:
            raise ValueError("Timeout must be non-negative.")
        return WalkContext(parent=self, deadline=self._clock.now() + seconds)

    @property
    def deadline(self) -> float | None:
        """Effective deadline, or None."""
        return self._deadline

    def remaining(self) -> float | None:
        """Seconds left until the deadline (never negative), or None."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - self._clock.now())

    def cancel(self) -> None:
        """Cancel this context and every context derived from it."""
        self._event.set()
        with self._children_lock:
            children = list(self._children)
        for child in children:
            child.cancel()

    def cancelled(self) -> bool:
        """Return True once cancelled explicitly, through a parent, or by deadline."""
        if self._event.is_set():
            return True
        if self._deadline is not None and self._clock.now() >= self._deadline:
            return True
        return False

    def _register_child(self, child: WalkContext) -> None:
        with self._children_lock:
            self._children.add(child)
        # The parent may have been cancelled before the child existed.
        if self._event.is_set():
            child.cancel()
