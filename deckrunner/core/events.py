"""
Run events and terminal results.

Events are small immutable values delivered to the caller's sink in the
exact order the subprocess produced the lines they were derived from.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from deckrunner.core.validation import Credentials


class RunEvent:
    """Marker base class for everything delivered to an event sink."""

    __slots__ = ()


@dataclass(frozen=True)
class RawLine(RunEvent):
    text: str


@dataclass(frozen=True)
class StageChanged(RunEvent):
    stage: str


@dataclass(frozen=True)
class CredentialsExtracted(RunEvent):
    username: str
    password: str

    @property
    def credentials(self) -> Credentials:
        return Credentials(self.username, self.password)


@dataclass(frozen=True)
class Completed(RunEvent):
    """A completion marker was seen; ``message`` is the raw line."""
    message: str = ""


@dataclass(frozen=True)
class Failed(RunEvent):
    """An error marker was seen (or the stream broke); ``message`` is the raw line."""
    message: str = ""


class RunOutcome(Enum):
    """Terminal state of one supervised run."""
    SUCCESS = "success"
    NON_ZERO_EXIT = "non_zero_exit"
    LAUNCH_FAILURE = "launch_failure"
    CANCELLED = "cancelled"
    STREAM_FAILURE = "stream_failure"


@dataclass(frozen=True)
class RunResult:
    """Terminal result of a run. ``exit_code`` is None when the process never started."""
    outcome: RunOutcome
    exit_code: Optional[int] = None
    final_credentials: Optional[Credentials] = None
    final_stage: str = ""
    error: Optional[str] = None
    duration: float = 0.0
    pid: Optional[int] = None

    @property
    def success(self) -> bool:
        return self.outcome is RunOutcome.SUCCESS

    def to_dict(self) -> dict:
        return {
            "outcome": self.outcome.value,
            "exit_code": self.exit_code,
            "final_credentials": (
                {"username": self.final_credentials.username}
                if self.final_credentials else None
            ),
            "final_stage": self.final_stage,
            "error": self.error,
            "duration": self.duration,
            "pid": self.pid,
        }


SUCCESS_BANNER = "=== Process completed successfully ==="
EXIT_CODE_BANNER = "=== Process exited with code {code} ==="


def describe_outcome(result: RunResult) -> str:
    """Return the stage text a front end shows once a run has finished."""
    if result.outcome is RunOutcome.SUCCESS:
        return "✓ Complete!"
    if result.outcome is RunOutcome.NON_ZERO_EXIT:
        return "✗ Error occurred"
    if result.outcome is RunOutcome.CANCELLED:
        return "Cancelled"
    return f"✗ Error: {result.error or 'unknown error'}"


def closing_banner(result: RunResult) -> str:
    """Return the line appended to the log when a run ends."""
    if result.outcome is RunOutcome.SUCCESS:
        return SUCCESS_BANNER
    if result.exit_code is not None:
        return EXIT_CODE_BANNER.format(code=result.exit_code)
    if result.outcome is RunOutcome.CANCELLED:
        return "=== Process cancelled ==="
    return f"=== Process failed: {result.error or 'unknown error'} ==="
