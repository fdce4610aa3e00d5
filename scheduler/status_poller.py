"""Recurring poller that triggers the event status sweep."""
import logging
import os
import threading
import time
from typing import Any, Callable, Optional

from scheduler.function_client import StatusFunctionClient

logger = logging.getLogger(__name__)


class StatusPoller:
    """
    Invoke the status sweep on a fixed interval until stopped.

    Ticks are scheduled at a fixed rate, so a slow invocation does not push
    later ticks back. The first invocation happens one interval after
    ``start()``. A failed invocation is logged and the timer keeps going;
    the next tick is the only retry.
    """

    DEFAULT_INTERVAL_SECONDS = 60.0

    def __init__(
        self,
        invoke: Callable[[], Any],
        interval_seconds: float = DEFAULT_INTERVAL_SECONDS
    ):
        """
        Initialize the poller.

        Args:
            invoke: Zero-argument callable running one sweep
            interval_seconds: Seconds between invocations (default: 60)
        """
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")

        self.invoke = invoke
        self.interval_seconds = interval_seconds
        self.ticks = 0
        self.failures = 0
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @classmethod
    def from_env(cls) -> 'StatusPoller':
        """Build a poller calling the function at STATUS_FUNCTION_URL."""
        url = os.environ['STATUS_FUNCTION_URL']
        interval = float(
            os.environ.get('POLL_INTERVAL_SECONDS', cls.DEFAULT_INTERVAL_SECONDS)
        )
        timeout = int(os.environ.get('REQUEST_TIMEOUT_SECONDS', '30'))

        client = StatusFunctionClient(url, timeout=timeout)
        return cls(client.update_event_status, interval_seconds=interval)

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the recurring timer."""
        if self.is_running:
            logger.warning("Status poller already running")
            return

        # Each run owns its stop event so a thread left behind by a timed-out
        # stop still exits once its tick returns
        self._stop_event = threading.Event()
        self._thread = threading.Thread(
            target=self._run,
            args=(self._stop_event,),
            name='status-poller',
            daemon=True
        )
        self._thread.start()
        logger.info(
            f"Status poller started with {self.interval_seconds}s interval"
        )

    def stop(self, timeout: Optional[float] = None) -> None:
        """
        Stop the timer and wait for an in-flight tick to finish.

        Args:
            timeout: Maximum seconds to wait for the timer thread
        """
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
            logger.info("Status poller stopped")

    def tick(self) -> Any:
        """
        Run one invocation, logging instead of raising on failure.

        Returns:
            The invocation result, or None if it failed
        """
        self.ticks += 1
        try:
            result = self.invoke()
        except Exception as e:
            self.failures += 1
            logger.error(f"Error updating event status: {e}", exc_info=True)
            return None

        logger.debug(f"Status sweep result: {result}")
        return result

    def _run(self, stop_event: threading.Event) -> None:
        next_tick = time.monotonic() + self.interval_seconds
        while not stop_event.wait(max(0.0, next_tick - time.monotonic())):
            self.tick()
            next_tick += self.interval_seconds
            # Missed ticks are dropped, not queued
            next_tick = max(next_tick, time.monotonic())

    def __enter__(self) -> 'StatusPoller':
        self.start()
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.stop()
