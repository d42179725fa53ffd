"""
Qt hand-off for run events.

The supervisor calls sinks on its worker thread. ``QtEventSink`` turns each
call into a signal emission; widgets connected to the signals from the GUI
thread receive them through Qt's queued connections, so they are never
touched from the worker.
"""

import logging

from PySide6.QtCore import QObject, Signal

from deckrunner.core.controller import EventSink
from deckrunner.core.events import (
    Completed,
    CredentialsExtracted,
    Failed,
    RawLine,
    RunEvent,
    RunResult,
    StageChanged,
)


class RunSignals(QObject):
    line_received = Signal(str)
    stage_changed = Signal(str)
    credentials_extracted = Signal(str, str)  # username, password
    completed = Signal(str)
    failed = Signal(str)
    finished = Signal(object)  # RunResult


class QtEventSink(EventSink):
    """Event sink that re-emits run events as Qt signals."""

    def __init__(self, signals: RunSignals = None):
        self.signals = signals or RunSignals()
        self.logger = logging.getLogger(__name__)

    def on_event(self, event: RunEvent) -> None:
        if isinstance(event, RawLine):
            self.signals.line_received.emit(event.text)
        elif isinstance(event, StageChanged):
            self.signals.stage_changed.emit(event.stage)
        elif isinstance(event, CredentialsExtracted):
            self.signals.credentials_extracted.emit(event.username, event.password)
        elif isinstance(event, Completed):
            self.signals.completed.emit(event.message)
        elif isinstance(event, Failed):
            self.signals.failed.emit(event.message)
        else:
            self.logger.debug(f"No Qt signal for event type {type(event).__name__}")

    def on_result(self, result: RunResult) -> None:
        self.signals.finished.emit(result)
