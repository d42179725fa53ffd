"""
Run supervision controller.

This module owns the lifecycle of one automation run: it validates the
request, builds the launch plan, starts the script through a process
backend, feeds every output line through the classifier and the stage
tracker, and folds the end of the process into a ``RunResult``.
"""

import logging
import os
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, Iterator, List, Optional, Union, TYPE_CHECKING

from deckrunner.core.cancellation import CancellationGate
from deckrunner.core.events import (
    Failed,
    RawLine,
    RunEvent,
    RunOutcome,
    RunResult,
)
from deckrunner.core.exceptions import ConcurrentRunError
from deckrunner.core.parser import LineClassifier
from deckrunner.core.stage_tracker import StageSnapshot, StageTracker
from deckrunner.core.validation import RunMode, RunRequest, validate_request

if TYPE_CHECKING:
    from deckrunner.config.app_config import Config

# Flags understood by the automation scripts
NETNAME_FLAG = "--netname"
PASSWORD_FLAG = "--password"
API_KEY_FLAG = "--apiKey"
CHROME_PATH_FLAG = "--chromePath"
REDACTED_FLAGS = (PASSWORD_FLAG, API_KEY_FLAG)
REDACTED_VALUE = "***"

# How often the worker re-checks cancellation while reaping the process
EXIT_POLL_INTERVAL_SEC = 0.1


@dataclass
class LaunchPlan:
    """Everything needed to start one automation script."""

    command: List[str]
    working_directory: str
    environment: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self):
        self.working_directory = os.path.abspath(self.working_directory)

    def display_command(self) -> str:
        """The command line with secrets masked, for logging."""
        parts = []
        for arg in self.command:
            flag, sep, _ = arg.partition("=")
            if sep and flag in REDACTED_FLAGS:
                parts.append(f"{flag}={REDACTED_VALUE}")
            else:
                parts.append(arg)
        return " ".join(parts)


class ProcessBackend(ABC):
    """Abstract base class for process backends. One instance serves one run."""

    @abstractmethod
    def start_process(self, plan: LaunchPlan) -> Optional[int]:
        """
        Start the process described by ``plan``.

        Returns:
            The process ID, if known

        Raises:
            OSError: the executable is missing or cannot be run
        """
        pass

    @abstractmethod
    def read_lines(self) -> Iterator[str]:
        """Yield lines of the combined output stream until it closes."""
        pass

    @abstractmethod
    def stop_process(self) -> bool:
        """Terminate the process, escalating to a kill. Safe from any thread."""
        pass

    @abstractmethod
    def wait(self, timeout: Optional[float] = None) -> Optional[int]:
        """Reap the process and return its exit code, or None if it is still running after ``timeout``."""
        pass

    @abstractmethod
    def is_process_running(self) -> bool:
        pass

    @abstractmethod
    def get_process_id(self) -> Optional[int]:
        pass

    def close(self) -> None:
        """Release the output stream and any other OS handles."""
        pass


class EventSink:
    """
    Receives run events in order, then the terminal result.

    Both methods are invoked on the run's worker thread. Sinks that feed a
    different scheduling domain (a GUI thread) must do the hand-off
    themselves.
    """

    def on_event(self, event: RunEvent) -> None:
        pass

    def on_result(self, result: RunResult) -> None:
        pass


class CallbackSink(EventSink):
    """Adapts plain callables to the sink interface."""

    def __init__(self, on_event: Callable[[RunEvent], None],
                 on_result: Optional[Callable[[RunResult], None]] = None):
        self._on_event = on_event
        self._on_result = on_result

    def on_event(self, event: RunEvent) -> None:
        self._on_event(event)

    def on_result(self, result: RunResult) -> None:
        if self._on_result:
            self._on_result(result)


SinkLike = Union[EventSink, Callable[[RunEvent], None], None]


def _as_sink(sink: SinkLike) -> EventSink:
    if sink is None:
        return EventSink()
    if isinstance(sink, EventSink):
        return sink
    return CallbackSink(sink)


class RunState(Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    LAUNCHING = "launching"
    STREAMING = "streaming"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"
    LAUNCH_FAILURE = "launch_failure"


_TERMINAL_STATES = {
    RunOutcome.SUCCESS: RunState.COMPLETED,
    RunOutcome.NON_ZERO_EXIT: RunState.FAILED,
    RunOutcome.STREAM_FAILURE: RunState.FAILED,
    RunOutcome.CANCELLED: RunState.CANCELLED,
    RunOutcome.LAUNCH_FAILURE: RunState.LAUNCH_FAILURE,
}


class _ActiveRun:
    """State owned by exactly one run; discarded when the run ends."""

    def __init__(self, request: RunRequest, cancellation: CancellationGate, sink: EventSink):
        self.request = request
        self.cancellation = cancellation
        self.sink = sink
        self.tracker = StageTracker()
        self.state = RunState.VALIDATING
        self.backend: Optional[ProcessBackend] = None
        self.pid: Optional[int] = None


class RunHandle:
    """Handle to a run started with ``ProcessSupervisor.submit``."""

    def __init__(self, cancellation: CancellationGate, active: _ActiveRun):
        self.cancellation = cancellation
        self._active = active
        self._done = threading.Event()
        self._result: Optional[RunResult] = None
        self._thread: Optional[threading.Thread] = None

    def cancel(self) -> None:
        self.cancellation.request()

    def wait(self, timeout: Optional[float] = None) -> Optional[RunResult]:
        """Wait for the run to finish; returns None on timeout."""
        self._done.wait(timeout)
        return self._result

    @property
    def done(self) -> bool:
        return self._done.is_set()

    @property
    def result(self) -> Optional[RunResult]:
        return self._result

    @property
    def state(self) -> RunState:
        return self._active.state

    def snapshot(self) -> StageSnapshot:
        return self._active.tracker.snapshot()

    def _finish(self, result: RunResult) -> None:
        self._result = result
        self._done.set()


class ProcessSupervisor:
    """Supervises at most one automation run at a time."""

    def __init__(self, config: "Config",
                 backend_factory: Optional[Callable[[], ProcessBackend]] = None,
                 classifier: Optional[LineClassifier] = None):
        self.config = config
        self.logger = logging.getLogger(__name__)
        if backend_factory is None:
            from deckrunner.core.adapters import create_process_backend
            terminate_timeout = getattr(config, 'TERMINATE_TIMEOUT_SEC', None)
            backend_factory = lambda: create_process_backend(terminate_timeout=terminate_timeout)
        self._backend_factory = backend_factory
        self._classifier = classifier or LineClassifier()
        self._lock = threading.Lock()
        self._active: Optional[_ActiveRun] = None

    # ------------------------------------------------------------------
    # Public API

    def build_plan(self, request: RunRequest) -> LaunchPlan:
        """Build the command line for an already validated request."""
        command = list(self.config.command_for(request.mode))
        if request.mode is RunMode.DROPOUT and request.credentials:
            command.append(f"{NETNAME_FLAG}={request.credentials.username}")
            command.append(f"{PASSWORD_FLAG}={request.credentials.password}")
        if request.api_key:
            command.append(f"{API_KEY_FLAG}={request.api_key}")
        if request.chrome_path:
            command.append(f"{CHROME_PATH_FLAG}={request.chrome_path}")

        env = os.environ.copy()
        env["PYTHONUNBUFFERED"] = "1"
        return LaunchPlan(
            command=command,
            working_directory=self.config.PROJECT_ROOT,
            environment=env,
        )

    def run(self, request: RunRequest, cancellation: Optional[CancellationGate] = None,
            sink: SinkLike = None) -> RunResult:
        """
        Run the automation to completion on the calling thread.

        Raises:
            ValidationError: the request is malformed; nothing was started
            ConcurrentRunError: another run is active on this supervisor
        """
        active = self._claim(request, cancellation, sink)
        try:
            result = self._execute(active)
        finally:
            self._release(active)
        # The slot is free by now, so the sink may start the next run
        self._deliver_result(active.sink, result)
        return result

    def submit(self, request: RunRequest, cancellation: Optional[CancellationGate] = None,
               sink: SinkLike = None) -> RunHandle:
        """
        Start a run on a dedicated worker thread and return immediately.

        Validation and the single-run check happen before this returns, so
        their errors are raised here rather than on the worker.
        """
        active = self._claim(request, cancellation, sink)
        handle = RunHandle(active.cancellation, active)

        def _worker():
            result = None
            try:
                result = self._execute(active)
            finally:
                self._release(active)
                if result is None:
                    result = RunResult(outcome=RunOutcome.STREAM_FAILURE, error="Run aborted unexpectedly",
                                       final_stage=active.tracker.current_stage)
                self._deliver_result(active.sink, result)
                handle._finish(result)

        thread = threading.Thread(target=_worker, name="deckrunner-run", daemon=False)
        handle._thread = thread
        thread.start()
        return handle

    def is_running(self) -> bool:
        with self._lock:
            return self._active is not None

    def snapshot(self) -> Optional[StageSnapshot]:
        """Latest state of the active run, or None when idle."""
        active = self._active
        return active.tracker.snapshot() if active else None

    @property
    def state(self) -> RunState:
        active = self._active
        return active.state if active else RunState.IDLE

    # ------------------------------------------------------------------
    # Run lifecycle

    def _claim(self, request: RunRequest, cancellation: Optional[CancellationGate],
               sink: SinkLike) -> _ActiveRun:
        request = validate_request(request)
        with self._lock:
            if self._active is not None:
                self.logger.warning("Automation run requested while another is active")
                raise ConcurrentRunError()
            active = _ActiveRun(request, cancellation or CancellationGate(), _as_sink(sink))
            self._active = active
        return active

    def _release(self, active: _ActiveRun) -> None:
        with self._lock:
            if self._active is active:
                self._active = None

    def _execute(self, active: _ActiveRun) -> RunResult:
        start_time = time.monotonic()
        gate = active.cancellation
        try:
            result = self._launch_and_stream(active)
        except Exception as e:
            # Worker failures never escape to the caller
            self.logger.error(f"Unexpected error during automation run: {e}", exc_info=True)
            result = RunResult(outcome=RunOutcome.STREAM_FAILURE, error=str(e), pid=active.pid)

        result = RunResult(
            outcome=result.outcome,
            exit_code=result.exit_code,
            final_credentials=active.tracker.final_credentials,
            final_stage=active.tracker.current_stage,
            error=result.error,
            duration=time.monotonic() - start_time,
            pid=active.pid,
        )
        active.state = _TERMINAL_STATES[result.outcome]
        self.logger.info(f"Automation run finished: {result.outcome.value} (exit code {result.exit_code}, "
                         f"cancel requested: {gate.is_requested()})")
        return result

    def _launch_and_stream(self, active: _ActiveRun) -> RunResult:
        gate = active.cancellation
        if gate.is_requested():
            self.logger.info("Run cancelled before launch")
            return RunResult(outcome=RunOutcome.CANCELLED)

        active.state = RunState.LAUNCHING
        plan = self.build_plan(active.request)
        backend = self._backend_factory()
        active.backend = backend

        self.logger.info(f"Starting automation: {plan.display_command()}")
        self.logger.debug(f"Working directory: {plan.working_directory}")
        try:
            active.pid = backend.start_process(plan)
        except (OSError, ValueError) as e:
            self.logger.error(f"Failed to start automation process: {e}")
            backend.close()
            self._emit(active, Failed(f"Error: {e}"))
            return RunResult(outcome=RunOutcome.LAUNCH_FAILURE, error=str(e))
        self.logger.info(f"Started automation process with PID {active.pid}")

        # A cancel while blocked in a read kills the process, which ends the stream.
        # stop_process can take the whole grace period, so it never runs on the canceller's thread.
        def terminate():
            threading.Thread(target=backend.stop_process, name="deckrunner-stop", daemon=True).start()

        gate.add_callback(terminate)

        active.state = RunState.STREAMING
        stream_error = None
        cancelled = False
        stream_ended = False
        try:
            lines = backend.read_lines()
            while True:
                if gate.is_requested():
                    cancelled = True
                    break
                line = next(lines, None)
                if line is None:
                    stream_ended = True
                    break
                self._handle_line(active, line)
        except (OSError, ValueError, UnicodeError) as e:
            stream_error = e
            self.logger.error(f"Error reading automation output (PID {active.pid}): {e}")
        finally:
            if cancelled or gate.is_requested() or not stream_ended:
                backend.stop_process()
            exit_code = self._wait_for_exit(backend, gate)
            gate.remove_callback(terminate)
            cancelled = cancelled or gate.is_requested()
            backend.close()

        if cancelled:
            self.logger.info(f"Automation process (PID {active.pid}) cancelled, exit code {exit_code}")
            return RunResult(outcome=RunOutcome.CANCELLED, exit_code=exit_code)
        if stream_error is not None:
            self._emit(active, Failed(f"Error: {stream_error}"))
            return RunResult(outcome=RunOutcome.STREAM_FAILURE, exit_code=exit_code, error=str(stream_error))
        if exit_code == 0:
            self.logger.info(f"Automation process (PID {active.pid}) exited with code 0")
            return RunResult(outcome=RunOutcome.SUCCESS, exit_code=0)
        self.logger.error(f"Automation process (PID {active.pid}) exited with non-zero code: {exit_code}")
        return RunResult(outcome=RunOutcome.NON_ZERO_EXIT, exit_code=exit_code)

    def _wait_for_exit(self, backend: ProcessBackend, gate: CancellationGate) -> Optional[int]:
        """Reap the process; a child that closed its output can still be cancelled while it runs on."""
        while not gate.is_requested():
            exit_code = backend.wait(timeout=EXIT_POLL_INTERVAL_SEC)
            if exit_code is not None or not backend.is_process_running():
                return exit_code
        backend.stop_process()
        return backend.wait()

    def _handle_line(self, active: _ActiveRun, line: str) -> None:
        self.logger.debug(f"Automation output: {line}")
        self._emit(active, RawLine(line))
        for event in self._classifier.classify(line):
            if active.tracker.apply(event):
                self._emit(active, event)

    def _emit(self, active: _ActiveRun, event: RunEvent) -> None:
        try:
            active.sink.on_event(event)
        except Exception as e:
            # Don't let sink errors break the read loop
            self.logger.warning(f"Event sink failed on {type(event).__name__}: {e}", exc_info=True)

    def _deliver_result(self, sink: EventSink, result: RunResult) -> None:
        try:
            sink.on_result(result)
        except Exception as e:
            self.logger.warning(f"Event sink failed on run result: {e}", exc_info=True)
