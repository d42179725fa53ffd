"""
Process backend adapters.

``SubprocessBackend`` runs an automation script with ``subprocess`` and
exposes its merged stdout/stderr as a line iterator.
"""

import logging
import os
import signal
import subprocess
import threading
from typing import Iterator, Optional

from deckrunner.core.controller import LaunchPlan, ProcessBackend

# Timeout constants (in seconds)
SUBPROCESS_GRACEFUL_TIMEOUT_SEC = 5

# Process/Encoding constants
DEFAULT_ENCODING = "utf-8"
DEFAULT_ENCODING_ERRORS = "replace"
IS_POSIX = os.name == "posix"


class SubprocessBackend(ProcessBackend):
    """Process backend using subprocess. Serves a single run."""

    def __init__(self, terminate_timeout: Optional[float] = None):
        self.process: Optional[subprocess.Popen] = None
        self.logger = logging.getLogger(__name__)
        self.terminate_timeout = terminate_timeout or SUBPROCESS_GRACEFUL_TIMEOUT_SEC
        self._stop_lock = threading.Lock()

    def start_process(self, plan: LaunchPlan) -> Optional[int]:
        """Start the script with stderr merged into stdout."""
        if self.process is not None:
            raise ValueError("SubprocessBackend instances cannot be reused")

        self.process = subprocess.Popen(
            plan.command,
            cwd=plan.working_directory,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            bufsize=1,
            encoding=DEFAULT_ENCODING,
            errors=DEFAULT_ENCODING_ERRORS,
            env=plan.environment or None,
            # Own process group; browsers spawned by the script are signalled with it
            start_new_session=IS_POSIX,
        )
        return self.process.pid

    def read_lines(self) -> Iterator[str]:
        if not self.process or not self.process.stdout:
            self.logger.warning("Cannot read output: no process or stdout")
            return
        for line in iter(self.process.stdout.readline, ""):
            yield line.rstrip("\r\n")
        self.logger.debug(f"Output stream of PID {self.process.pid} closed (EOF)")

    def stop_process(self) -> bool:
        """Terminate the process, then kill it if it ignores the request."""
        with self._stop_lock:
            if not self.process:
                return False
            if self.process.poll() is not None:
                return True

            try:
                self._signal(signal.SIGTERM)
                try:
                    self.process.wait(timeout=self.terminate_timeout)
                    self.logger.debug("Subprocess terminated gracefully")
                except subprocess.TimeoutExpired:
                    self._signal(signal.SIGKILL if IS_POSIX else signal.SIGTERM)
                    self.process.wait()
                    self.logger.debug("Subprocess killed forcefully")
                return True
            except OSError as e:
                self.logger.error(f"Failed to stop subprocess: {e}")
                return False

    def _signal(self, sig: int) -> None:
        if IS_POSIX:
            try:
                os.killpg(self.process.pid, sig)
                return
            except ProcessLookupError:
                return
            except PermissionError:
                pass
        if sig == signal.SIGTERM:
            self.process.terminate()
        else:
            self.process.kill()

    def wait(self, timeout: Optional[float] = None) -> Optional[int]:
        if not self.process:
            return None
        try:
            return self.process.wait(timeout=timeout)
        except subprocess.TimeoutExpired:
            return None

    def is_process_running(self) -> bool:
        """Check if the subprocess is still running."""
        return bool(self.process and self.process.poll() is None)

    def get_process_id(self) -> Optional[int]:
        """Get the subprocess PID."""
        return self.process.pid if self.process else None

    def close(self) -> None:
        if self.process and self.process.stdout:
            try:
                self.process.stdout.close()
            except OSError as e:
                self.logger.debug(f"Error closing subprocess output: {e}")


def create_process_backend(terminate_timeout: Optional[float] = None) -> ProcessBackend:
    """Create the process backend for one run."""
    return SubprocessBackend(terminate_timeout=terminate_timeout)
