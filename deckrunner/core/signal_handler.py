"""
Signal handling for CLI runs.

SIGINT (Ctrl+C) and SIGTERM request cancellation of the active run instead
of tearing the interpreter down mid-read, so the supervisor still reaps
the automation process and reports a ``Cancelled`` result.
"""

import logging
import signal
import threading
from typing import Callable

from deckrunner.core.cancellation import CancellationGate

logger = logging.getLogger(__name__)

HANDLED_SIGNALS = (signal.SIGINT, signal.SIGTERM)


def setup_cli_signal_handler(cancellation: CancellationGate) -> Callable[[], None]:
    """
    Route SIGINT/SIGTERM to ``cancellation.request()``.

    A second signal after cancellation was already requested raises
    KeyboardInterrupt so an unresponsive run can still be abandoned.

    Returns:
        A function restoring the previous handlers. Does nothing when
        called off the main thread, where handlers cannot be installed.
    """
    if threading.current_thread() is not threading.main_thread():
        logger.debug("Not on the main thread; signal handlers not installed")
        return lambda: None

    def signal_handler(signum, _frame):
        signal_name = signal.Signals(signum).name
        if cancellation.is_requested():
            logger.warning(f"Signal {signal_name} received again. Aborting.")
            raise KeyboardInterrupt("Operation interrupted by user")
        logger.warning(f"Signal {signal_name} received")
        # The interrupted frame may hold the gate lock
        threading.Thread(target=cancellation.request, name="deckrunner-cancel", daemon=True).start()

    previous = {sig: signal.getsignal(sig) for sig in HANDLED_SIGNALS}
    for sig in HANDLED_SIGNALS:
        signal.signal(sig, signal_handler)
    logger.debug("Signal handlers registered for SIGINT and SIGTERM")

    def restore() -> None:
        for sig, handler in previous.items():
            signal.signal(sig, handler)

    return restore
