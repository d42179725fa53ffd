"""
This test module runs the supervisor against real stub scripts. It checks:
- The end-to-end event sequence and result for a successful run.
- Argument passing, working directory and merged stderr.
- Non-zero exits, launch failures and cancellation of a silent process.
"""
import sys
import time

import pytest

from conftest import DROPOUT_SCRIPT
from deckrunner.core.adapters import SubprocessBackend
from deckrunner.core.cancellation import CancellationGate
from deckrunner.core.controller import ProcessSupervisor, RunState
from deckrunner.core.events import Completed, CredentialsExtracted, RawLine, RunOutcome, StageChanged
from deckrunner.core.validation import Credentials, RunMode, RunRequest

pytestmark = pytest.mark.integration

RUN_TIMEOUT_SEC = 20


def recording_backends(config):
    backends = []

    def factory():
        backend = SubprocessBackend(terminate_timeout=config.TERMINATE_TIMEOUT_SEC)
        backends.append(backend)
        return backend

    return factory, backends


def test_end_to_end_success(stub_config, write_script, recording_sink):
    write_script("""
        print("STEP 1: Start")
        print("Credentials: u1 | x | y | p1")
        print("COMPLETE")
    """)
    supervisor = ProcessSupervisor(stub_config)

    result = supervisor.run(RunRequest(mode=RunMode.CREATE_ACCOUNT), sink=recording_sink)

    assert recording_sink.classified == [
        StageChanged("Step 1: Start"),
        CredentialsExtracted("u1", "p1"),
        Completed("COMPLETE"),
    ]
    assert recording_sink.raw_lines == ["STEP 1: Start", "Credentials: u1 | x | y | p1", "COMPLETE"]
    assert result.outcome is RunOutcome.SUCCESS
    assert result.exit_code == 0
    assert result.final_credentials == Credentials("u1", "p1")
    assert result.pid is not None


def test_arguments_cwd_and_stderr(stub_config, write_script, recording_sink, project_dir):
    write_script("""
        import os
        import sys
        print("ARGS " + " ".join(sys.argv[1:]))
        print("CWD " + os.getcwd())
        sys.stderr.write("written to stderr\\n")
    """, name=DROPOUT_SCRIPT)
    supervisor = ProcessSupervisor(stub_config)
    request = RunRequest(
        mode=RunMode.DROPOUT,
        credentials=Credentials("alice", "s3cret"),
        api_key="",
        chrome_path="/opt/chrome",
    )

    result = supervisor.run(request, sink=recording_sink)

    assert result.outcome is RunOutcome.SUCCESS
    lines = recording_sink.raw_lines
    assert lines[0] == "ARGS --netname=alice --password=s3cret --chromePath=/opt/chrome"
    assert lines[1] in (f"CWD {project_dir}", f"CWD {project_dir.resolve()}")
    assert "written to stderr" in lines


def test_non_zero_exit(stub_config, write_script, recording_sink):
    write_script("""
        import sys
        print("ERROR: Login failed")
        sys.exit(3)
    """)
    result = ProcessSupervisor(stub_config).run(RunRequest(mode=RunMode.CREATE_ACCOUNT), sink=recording_sink)

    assert result.outcome is RunOutcome.NON_ZERO_EXIT
    assert result.exit_code == 3
    assert result.final_credentials is None


def test_launch_failure(stub_config, recording_sink, project_dir):
    stub_config.set("RUNTIME", str(project_dir / "missing-runtime"))

    result = ProcessSupervisor(stub_config).run(RunRequest(mode=RunMode.CREATE_ACCOUNT), sink=recording_sink)

    assert result.outcome is RunOutcome.LAUNCH_FAILURE
    assert result.exit_code is None
    assert result.error
    assert not any(isinstance(e, RawLine) for e in recording_sink.events)


def test_cancel_before_any_output(stub_config, write_script, recording_sink):
    write_script("""
        import time
        time.sleep(60)
        print("STEP 1: too late")
    """)
    factory, backends = recording_backends(stub_config)
    supervisor = ProcessSupervisor(stub_config, backend_factory=factory)
    gate = CancellationGate()

    handle = supervisor.submit(RunRequest(mode=RunMode.CREATE_ACCOUNT), gate, recording_sink)
    deadline = time.monotonic() + RUN_TIMEOUT_SEC
    while handle.state is not RunState.STREAMING and not handle.done and time.monotonic() < deadline:
        time.sleep(0.01)
    gate.request()
    result = handle.wait(timeout=RUN_TIMEOUT_SEC)

    assert result is not None
    assert result.outcome is RunOutcome.CANCELLED
    assert recording_sink.raw_lines == []
    assert len(backends) == 1
    backend = backends[0]
    assert backend.process.returncode is not None
    assert not backend.is_process_running()


def test_cancel_mid_stream_terminates_process(stub_config, write_script, recording_sink):
    write_script("""
        import time
        print("STEP 1: Connecting to browser...", flush=True)
        time.sleep(60)
        print("COMPLETE")
    """)
    factory, backends = recording_backends(stub_config)
    supervisor = ProcessSupervisor(stub_config, backend_factory=factory)
    handle = supervisor.submit(RunRequest(mode=RunMode.CREATE_ACCOUNT), sink=recording_sink)

    deadline = time.monotonic() + RUN_TIMEOUT_SEC
    while handle.snapshot().current_stage != "Step 1: Connecting to browser..." and time.monotonic() < deadline:
        time.sleep(0.01)
    assert supervisor.snapshot().current_stage == "Step 1: Connecting to browser..."
    handle.cancel()
    result = handle.wait(timeout=RUN_TIMEOUT_SEC)

    assert result.outcome is RunOutcome.CANCELLED
    assert result.final_stage == "Step 1: Connecting to browser..."
    assert Completed("COMPLETE") not in recording_sink.events
    assert not backends[0].is_process_running()


@pytest.mark.skipif(sys.platform.startswith("win"), reason="POSIX process groups")
def test_stubborn_process_is_killed_without_blocking_canceller(stub_config, write_script):
    write_script("""
        import signal
        import time
        signal.signal(signal.SIGTERM, signal.SIG_IGN)
        print("ready", flush=True)
        time.sleep(60)
    """)
    stub_config.set("TERMINATE_TIMEOUT_SEC", 3)
    factory, backends = recording_backends(stub_config)
    supervisor = ProcessSupervisor(stub_config, backend_factory=factory)
    lines = []
    handle = supervisor.submit(RunRequest(mode=RunMode.CREATE_ACCOUNT), sink=lambda e: lines.append(e))

    deadline = time.monotonic() + RUN_TIMEOUT_SEC
    while RawLine("ready") not in lines and time.monotonic() < deadline:
        time.sleep(0.01)
    started = time.monotonic()
    handle.cancel()
    cancel_duration = time.monotonic() - started
    result = handle.wait(timeout=RUN_TIMEOUT_SEC)

    assert cancel_duration < 1.0
    assert result.outcome is RunOutcome.CANCELLED
    assert not backends[0].is_process_running()


def test_cancel_after_output_closed(stub_config, write_script):
    write_script("""
        import os
        import time
        print("closing output", flush=True)
        os.close(1)
        os.close(2)
        time.sleep(60)
    """)
    factory, backends = recording_backends(stub_config)
    supervisor = ProcessSupervisor(stub_config, backend_factory=factory)
    lines = []
    handle = supervisor.submit(RunRequest(mode=RunMode.CREATE_ACCOUNT), sink=lambda e: lines.append(e))

    deadline = time.monotonic() + RUN_TIMEOUT_SEC
    while RawLine("closing output") not in lines and time.monotonic() < deadline:
        time.sleep(0.01)
    # Give the reader time to hit end of stream while the child lives on
    assert handle.wait(timeout=0.5) is None
    handle.cancel()
    result = handle.wait(timeout=RUN_TIMEOUT_SEC)

    assert result is not None
    assert result.outcome is RunOutcome.CANCELLED
    assert not backends[0].is_process_running()
