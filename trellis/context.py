"""
Cancellation tokens handed to runnable commands.

A Context is passed untouched from Program.run to the action's
run(context, *arguments). Trellis itself never cancels, waits on or times out
a context; it only carries it. Long-running actions poll `cancelled`, block
on `wait()` or call `check()` to cooperate with their caller (tests,
timeouts, signal handlers).

    context = Context.background().with_timeout(30)
    program.run("sync", "-all", context=context)

Contexts form a tree: cancelling a parent cancels every context derived from
it, while cancelling a child leaves the parent untouched. A deadline is
inherited by children unless they set an earlier one.
"""
import threading
import time

from .faults import CancelledError
from .utils import Unset


class Context:
    """
    Cooperative cancellation token with an optional deadline.

    Instances are cheap; derive a fresh one per operation with with_cancel()
    or with_timeout() rather than sharing a cancellable token across runs.
    """

    __slots__ = ("_parent", "_event", "_deadline", "_cancellable")

    def __init__(self, parent=None, /, *, deadline=None, cancellable=True):
        if parent is not None and not isinstance(parent, Context):
            raise TypeError("Context 'parent' must be a context")
        if deadline is not None and not isinstance(deadline, int | float):
            raise TypeError("Context 'deadline' must be a monotonic timestamp")
        self._parent = parent
        self._event = threading.Event()
        self._cancellable = cancellable
        inherited = parent.deadline if parent is not None else None
        if inherited is not None and (deadline is None or inherited < deadline):
            deadline = inherited
        self._deadline = deadline

    @classmethod
    def background(cls):
        """
        Return a root context that is never cancelled and has no deadline.
        """
        return cls(cancellable=False)

    def with_cancel(self):
        """
        Derive a child context that can be cancelled independently.
        """
        return Context(self)

    def with_timeout(self, seconds, /):
        """
        Derive a child context that is cancelled after the given seconds.
        """
        if not isinstance(seconds, int | float) or isinstance(seconds, bool):
            raise TypeError("with_timeout() argument must be a number of seconds")
        return Context(self, deadline=time.monotonic() + seconds)

    @property
    def parent(self):
        return self._parent

    @property
    def deadline(self):
        """
        Monotonic timestamp (time.monotonic) after which this context is done, or None.
        """
        return self._deadline

    @property
    def cancelled(self):
        """
        True once this context or any ancestor was cancelled or expired.
        """
        if self._cancelled_explicitly():
            return True
        return self._deadline is not None and time.monotonic() >= self._deadline

    def cancel(self):
        """
        Cancel this context (and, transitively, every context derived from it).
        """
        if not self._cancellable:
            raise RuntimeError("background context cannot be cancelled")
        self._event.set()

    def wait(self, timeout=Unset, /):
        """
        Block until the context is cancelled or the timeout elapses.

        Returns True when the context is cancelled, False on timeout. With no
        timeout the call waits until cancellation (or the deadline).
        """
        limit = None if timeout is Unset else time.monotonic() + timeout
        while not self.cancelled:
            now = time.monotonic()
            candidates = [value for value in (limit, self._deadline) if value is not None]
            if candidates and min(candidates) <= now:
                break
            # Poll: ancestors own separate events.
            remaining = min(candidates) - now if candidates else None
            self._event.wait(0.05 if remaining is None else min(remaining, 0.05))
        return self.cancelled

    def check(self):
        """
        Raise CancelledError if the context is done; otherwise return None.
        """
        if not self.cancelled:
            return
        if self._cancelled_explicitly():
            raise CancelledError()
        raise CancelledError("context deadline exceeded")

    def _cancelled_explicitly(self):
        context = self
        while context is not None:
            if context._event.is_set():
                return True
            context = context._parent
        return False

    def __repr__(self):
        state = "cancelled" if self.cancelled else "active"
        if self._deadline is None:
            return f"Context({state})"
        return f"Context({state}, deadline={self._deadline:.3f})"


__all__ = ("Context",)
