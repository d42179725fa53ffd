"""
Cooperative cancellation shared between a caller and one run.
"""

import logging
import threading
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)


class CancellationGate:
    """
    One-way stop signal.

    ``request()`` may be called from any thread, any number of times; only
    the first call has an effect. Callbacks registered with
    ``add_callback`` run once, on the thread that made the first request,
    so they must not block: ``request()`` is called from GUI and signal
    handling threads.
    """

    def __init__(self):
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._callbacks: List[Callable[[], None]] = []

    def request(self) -> None:
        """Request cancellation. Repeated requests are no-ops."""
        with self._lock:
            if self._event.is_set():
                return
            self._event.set()
            callbacks = list(self._callbacks)
            self._callbacks.clear()
        logger.info("Cancellation requested")
        for callback in callbacks:
            self._invoke(callback)

    def is_requested(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until cancellation is requested; returns whether it was."""
        return self._event.wait(timeout)

    def add_callback(self, callback: Callable[[], None]) -> None:
        """Run ``callback`` on cancellation, immediately if already requested."""
        with self._lock:
            if not self._event.is_set():
                self._callbacks.append(callback)
                return
        self._invoke(callback)

    def remove_callback(self, callback: Callable[[], None]) -> None:
        with self._lock:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

    def _invoke(self, callback: Callable[[], None]) -> None:
        try:
            callback()
        except Exception as e:
            logger.error(f"Cancellation callback failed: {e}", exc_info=True)
