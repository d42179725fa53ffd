"""
Shared pytest fixtures:
- stub automation scripts run with the current interpreter
- a Config pointing the supervisor at those scripts
- a recording event sink and an in-memory process backend
"""

import sys
import textwrap
import threading
from pathlib import Path
from typing import Iterable, Iterator, List, Optional

import pytest

from deckrunner.config.app_config import Config
from deckrunner.core.controller import EventSink, LaunchPlan, ProcessBackend
from deckrunner.core.events import RawLine, RunEvent, RunResult

CREATE_SCRIPT = "register_stub.py"
DROPOUT_SCRIPT = "dropout_stub.py"


class RecordingSink(EventSink):
    """Collects everything a run delivers."""

    def __init__(self):
        self.events: List[RunEvent] = []
        self.results: List[RunResult] = []

    def on_event(self, event: RunEvent) -> None:
        self.events.append(event)

    def on_result(self, result: RunResult) -> None:
        self.results.append(result)

    @property
    def classified(self) -> List[RunEvent]:
        """Events other than raw lines."""
        return [e for e in self.events if not isinstance(e, RawLine)]

    @property
    def raw_lines(self) -> List[str]:
        return [e.text for e in self.events if isinstance(e, RawLine)]


class FakeBackend(ProcessBackend):
    """In-memory backend replaying canned output."""

    def __init__(self, lines: Iterable[str] = (), exit_code: int = 0,
                 start_error: Optional[Exception] = None,
                 read_error: Optional[Exception] = None,
                 release: Optional[threading.Event] = None):
        self.lines = list(lines)
        self.exit_code = exit_code
        self.start_error = start_error
        self.read_error = read_error
        self.release = release
        self.plan: Optional[LaunchPlan] = None
        self.started = False
        self.stopped = False
        self.closed = False
        self.waited = False

    def start_process(self, plan: LaunchPlan) -> Optional[int]:
        self.plan = plan
        if self.start_error:
            raise self.start_error
        self.started = True
        return 4242

    def read_lines(self) -> Iterator[str]:
        if self.release is not None:
            self.release.wait(5)
        for line in self.lines:
            yield line
        if self.read_error:
            raise self.read_error

    def stop_process(self) -> bool:
        self.stopped = True
        if self.release is not None:
            self.release.set()
        return True

    def wait(self, timeout: Optional[float] = None) -> Optional[int]:
        self.waited = True
        return -15 if self.stopped else self.exit_code

    def is_process_running(self) -> bool:
        return self.started and not self.waited

    def get_process_id(self) -> Optional[int]:
        return 4242 if self.started else None

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def recording_sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    return tmp_path


@pytest.fixture
def write_script(project_dir: Path):
    """Write a stub automation script into the project directory."""
    def _write(body: str, name: str = CREATE_SCRIPT) -> Path:
        path = project_dir / name
        path.write_text(textwrap.dedent(body), encoding="utf-8")
        return path
    return _write


@pytest.fixture
def stub_config(project_dir: Path) -> Config:
    return Config(
        overrides={
            "PROJECT_ROOT": str(project_dir),
            "RUNTIME": sys.executable,
            "CREATE_ACCOUNT_SCRIPT": CREATE_SCRIPT,
            "DROPOUT_SCRIPT": DROPOUT_SCRIPT,
            "TERMINATE_TIMEOUT_SEC": 2,
        },
        environ={},
    )
