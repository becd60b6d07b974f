"""
Timers for the ticker.

Two kinds of timer drive a ticker: the fixed-interval animation task that
calls the scroll tick, and a one-shot, restartable delay used to schedule the
next data refresh. Both run on background threads; the controller serialises
their callbacks on its own lock.

The scheduler object is injectable so tests can fire timers by hand.
"""

import logging
import threading
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class PeriodicTask:
    """Calls ``callback`` every ``interval_ms`` milliseconds until stopped."""

    def __init__(self, callback: Callable[[], None], interval_ms: float, name: str = "TickerAnimation"):
        self.callback = callback
        self.interval_ms = interval_ms
        self.name = name
        self._thread: Optional[threading.Thread] = None
        self._stopping: Optional[threading.Thread] = None
        self._stop_event = threading.Event()

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive() and not self._stop_event.is_set()

    def set_interval(self, interval_ms: float) -> None:
        """Takes effect from the next wait."""
        self.interval_ms = interval_ms

    def start(self) -> None:
        if self.is_running:
            return

        self._stop_event = threading.Event()
        self._thread = threading.Thread(
            target=self._run,
            args=(self._stop_event,),
            daemon=True,
            name=self.name
        )
        self._thread.start()
        logger.debug("Started periodic task %s every %sms", self.name, self.interval_ms)

    def stop(self, wait: bool = True) -> None:
        """
        Signal the loop to exit.

        Args:
            wait: Join the thread now; callers holding a lock the callback
                needs pass False and call join() after releasing it
        """
        self._stop_event.set()
        self._stopping, self._thread = self._thread, None
        logger.debug("Stopped periodic task %s", self.name)
        if wait:
            self.join()

    def join(self, timeout: float = 5.0) -> None:
        """Wait for the most recently stopped thread to exit."""
        thread, self._stopping = self._stopping, None
        # The callback itself may stop the task; never join the current thread
        if thread and thread.is_alive() and thread is not threading.current_thread():
            thread.join(timeout=timeout)

    def _run(self, stop_event: threading.Event) -> None:
        while not stop_event.wait(self.interval_ms / 1000.0):
            try:
                self.callback()
            except Exception:
                logger.exception("Error in periodic task %s", self.name)


class DelayedTask:
    """
    One-shot timer that can be re-armed.

    Calling ``delay`` again before the timer fires cancels the earlier
    schedule, so at most one call is ever pending.
    """

    def __init__(self, callback: Callable[[], None], name: str = "TickerRefresh"):
        self.callback = callback
        self.name = name
        self._timer: Optional[threading.Timer] = None
        self._lock = threading.Lock()

    @property
    def is_pending(self) -> bool:
        with self._lock:
            return self._timer is not None

    def delay(self, delay_ms: float) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            timer = threading.Timer(delay_ms / 1000.0, self._fire)
            timer.args = (timer,)
            timer.daemon = True
            timer.name = self.name
            self._timer = timer
            timer.start()

    def cancel(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None

    def _fire(self, timer: threading.Timer) -> None:
        with self._lock:
            # Superseded by a later delay() or cancelled
            if self._timer is not timer:
                return
            self._timer = None
        self.callback()


class ThreadScheduler:
    """Creates thread-backed timers."""

    def periodic(self, callback: Callable[[], None], interval_ms: float,
                 name: str = "TickerAnimation") -> PeriodicTask:
        return PeriodicTask(callback, interval_ms, name)

    def delayed(self, callback: Callable[[], None], name: str = "TickerRefresh") -> DelayedTask:
        return DelayedTask(callback, name)
