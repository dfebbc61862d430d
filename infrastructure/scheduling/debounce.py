"""
Cancellable delayed task used for search-as-you-type.

Every ``schedule`` call supersedes the previous one: a pending call is
cancelled before it fires, and a call that already fired but finishes after
a newer one was scheduled does not publish its result.
"""

import threading
from typing import Any, Callable, Optional

from utils.logging_config import get_logger

logger = get_logger(__name__)


class ScheduledCall:
    """Handle for one scheduled invocation"""

    def __init__(self, generation: int):
        self.generation = generation
        self.result: Any = None
        self.error: Optional[BaseException] = None
        self.cancelled = False
        self.published = False
        self._done = threading.Event()

    @property
    def done(self) -> bool:
        return self._done.is_set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the call ran or was cancelled; False on timeout"""
        return self._done.wait(timeout)

    def _finish(self):
        self._done.set()


class DebouncedTask:
    """
    Run ``func`` only after ``delay`` seconds without a newer ``schedule`` call

    Args:
        func: Work to run on the timer thread
        delay: Quiet period in seconds
        on_result: Called with the result of the most recent call only
        on_error: Called with the exception of the most recent call only
    """

    def __init__(self, func: Callable[..., Any], delay: float = 0.3,
                 on_result: Optional[Callable[[Any], None]] = None,
                 on_error: Optional[Callable[[BaseException], None]] = None):
        self.func = func
        self.delay = delay
        self.on_result = on_result
        self.on_error = on_error
        self._lock = threading.Lock()
        self._timer: Optional[threading.Timer] = None
        self._generation = 0
        self._pending: Optional[ScheduledCall] = None

    def schedule(self, *args, **kwargs) -> ScheduledCall:
        with self._lock:
            self._cancel_pending_locked()
            self._generation += 1
            call = ScheduledCall(self._generation)
            timer = threading.Timer(self.delay, self._run, args=(call, args, kwargs))
            timer.daemon = True
            self._timer = timer
            self._pending = call
        timer.start()
        return call

    def cancel(self):
        with self._lock:
            self._cancel_pending_locked()

    def _cancel_pending_locked(self):
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        if self._pending is not None and not self._pending.done:
            self._pending.cancelled = True
            self._pending._finish()
        self._pending = None

    @property
    def latest_generation(self) -> int:
        return self._generation

    def _run(self, call: ScheduledCall, args, kwargs):
        with self._lock:
            if call.cancelled:
                return
        try:
            call.result = self.func(*args, **kwargs)
        except Exception as e:
            call.error = e
        with self._lock:
            is_latest = call.generation == self._generation and not call.cancelled
            if self._pending is call:
                self._pending = None
                self._timer = None
        if is_latest:
            call.published = True
            if call.error is not None:
                logger.debug(f"Debounced call {call.generation} failed: {call.error}")
                if self.on_error:
                    self.on_error(call.error)
            elif self.on_result:
                self.on_result(call.result)
        call._finish()
