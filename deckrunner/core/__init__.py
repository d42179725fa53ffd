"""
Core run supervision: line classification, stage tracking, process control.
"""

from .cancellation import CancellationGate
from .controller import (
    CallbackSink,
    EventSink,
    LaunchPlan,
    ProcessBackend,
    ProcessSupervisor,
    RunHandle,
    RunState,
)
from .events import (
    Completed,
    CredentialsExtracted,
    Failed,
    RawLine,
    RunEvent,
    RunOutcome,
    RunResult,
    StageChanged,
    closing_banner,
    describe_outcome,
)
from .exceptions import ConcurrentRunError, DeckrunnerError, ValidationError
from .parser import LineClassifier, classify_line, truncate_stage
from .stage_tracker import StageSnapshot, StageTracker
from .validation import Credentials, RunMode, RunRequest, validate_request

__all__ = [
    'CancellationGate',
    'CallbackSink',
    'EventSink',
    'LaunchPlan',
    'ProcessBackend',
    'ProcessSupervisor',
    'RunHandle',
    'RunState',
    'Completed',
    'CredentialsExtracted',
    'Failed',
    'RawLine',
    'RunEvent',
    'RunOutcome',
    'RunResult',
    'StageChanged',
    'closing_banner',
    'describe_outcome',
    'ConcurrentRunError',
    'DeckrunnerError',
    'ValidationError',
    'LineClassifier',
    'classify_line',
    'truncate_stage',
    'StageSnapshot',
    'StageTracker',
    'Credentials',
    'RunMode',
    'RunRequest',
    'validate_request',
]
