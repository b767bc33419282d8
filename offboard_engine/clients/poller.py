"""
Periodic polling task shared by the status and approval clients.

The poller runs on a daemon thread, keeps going across fetch failures
and is cancelled by ``stop()`` or by leaving its context manager.
"""

import logging
import threading
from typing import Callable, Generic, Optional, TypeVar

T = TypeVar("T")

logger = logging.getLogger(__name__)


class PeriodicPoller(Generic[T]):
    """
    Cancellable fixed-interval fetch loop.

    Each tick calls ``fetch`` and hands its result to ``on_result``.
    A failing tick is logged and reported to ``on_error``; nothing the
    previous tick delivered is discarded.
    """

    def __init__(
        self,
        fetch: Callable[[], T],
        on_result: Callable[[T], None],
        interval: float = 30.0,
        on_error: Optional[Callable[[Exception], None]] = None,
        name: str = "poller",
    ):
        if interval <= 0:
            raise ValueError("Polling interval must be positive")

        self.fetch = fetch
        self.on_result = on_result
        self.on_error = on_error
        self.interval = interval
        self.name = name

        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def poll_once(self) -> bool:
        """
        Run a single tick.

        Returns:
            True if the fetch succeeded and its result was delivered
        """
        try:
            result = self.fetch()
        except Exception as e:
            logger.warning(f"{self.name}: poll failed, keeping last known state: {e}")
            if self.on_error:
                self.on_error(e)
            return False

        self.on_result(result)
        return True

    def start(self) -> None:
        """Poll immediately, then every ``interval`` seconds until stopped."""
        if self.running:
            if not self._stop_event.is_set():
                return
            self._thread.join()

        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name=self.name, daemon=True)
        self._thread.start()
        logger.info(f"{self.name}: started polling every {self.interval}s")

    def stop(self, timeout: Optional[float] = None) -> None:
        """Cancel the timer and wait for the polling thread to finish its tick."""
        self._stop_event.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
        if thread is not None and thread.is_alive():
            logger.warning(f"{self.name}: polling thread still finishing its tick")
            return
        self._thread = None
        logger.info(f"{self.name}: stopped polling")

    def _run(self) -> None:
        while not self._stop_event.is_set():
            self.poll_once()
            if self._stop_event.wait(self.interval):
                break

    def __enter__(self) -> "PeriodicPoller[T]":
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.stop()
