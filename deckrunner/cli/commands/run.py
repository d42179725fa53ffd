#!/usr/bin/env python3
"""
Automation run commands.
"""

import argparse
import logging
import sys
from typing import Callable, List, Optional, TextIO

from deckrunner.cli.argument_parser import add_override_arguments
from deckrunner.cli.commands.base import CommandGroup, CommandHandler, CommandResult
from deckrunner.cli.constants import messages as MSG
from deckrunner.cli.context import CLIContext
from deckrunner.config.app_config import Config
from deckrunner.core.cancellation import CancellationGate
from deckrunner.core.controller import EventSink, ProcessSupervisor
from deckrunner.core.events import (
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
from deckrunner.core.exceptions import ConcurrentRunError, ValidationError
from deckrunner.core.signal_handler import setup_cli_signal_handler
from deckrunner.core.validation import Credentials, RunMode, RunRequest

# How often the CLI thread wakes up while a run is active
RESULT_POLL_INTERVAL_SEC = 0.2
EXIT_CODE_FAILURE = 1
EXIT_CODE_CANCELLED = 130

logger = logging.getLogger(__name__)


class ConsoleSink(EventSink):
    """Echoes script output to a stream and logs progress."""

    def __init__(self, stream: Optional[TextIO] = None):
        self.stream = stream or sys.stdout
        self.logger = logging.getLogger(__name__)

    def on_event(self, event: RunEvent) -> None:
        if isinstance(event, RawLine):
            print(event.text, file=self.stream, flush=True)
        elif isinstance(event, StageChanged):
            self.logger.info(MSG.RUN_STAGE.format(stage=event.stage))
        elif isinstance(event, CredentialsExtracted):
            self.logger.info(f"Captured credentials for {event.username}")
        elif isinstance(event, Failed):
            self.logger.warning(f"Automation reported an error: {event.message}")

    def on_result(self, result: RunResult) -> None:
        print("", file=self.stream)
        print(closing_banner(result), file=self.stream, flush=True)


def exit_code_for(result: RunResult) -> int:
    """Map a run result to the CLI exit code."""
    if result.outcome is RunOutcome.CANCELLED:
        return EXIT_CODE_CANCELLED
    if result.outcome is RunOutcome.SUCCESS:
        return 0
    if result.outcome is RunOutcome.NON_ZERO_EXIT and result.exit_code:
        return result.exit_code
    return EXIT_CODE_FAILURE


class RunAutomationCommand(CommandHandler):
    """Launch one automation script and stream its progress."""

    def __init__(self, mode: RunMode,
                 supervisor_factory: Optional[Callable[[Config], ProcessSupervisor]] = None,
                 stream: Optional[TextIO] = None):
        self.mode = mode
        self._supervisor_factory = supervisor_factory or ProcessSupervisor
        self._stream = stream

    @property
    def name(self) -> str:
        return self.mode.value

    @property
    def description(self) -> str:
        if self.mode is RunMode.DROPOUT:
            return MSG.DROPOUT_CMD_DESC
        return MSG.CREATE_ACCOUNT_CMD_DESC

    def register(self, subparsers: argparse._SubParsersAction) -> argparse.ArgumentParser:
        parser = subparsers.add_parser(
            self.name,
            help=self.description,
            description=self.description
        )
        if self.mode is RunMode.DROPOUT:
            parser.add_argument("--netname", default="", help=MSG.ARG_HELP_NETNAME)
            parser.add_argument("--password", default="", help=MSG.ARG_HELP_PASSWORD)
        add_override_arguments(parser)
        parser.set_defaults(handler=self)
        return parser

    def build_request(self, args: argparse.Namespace) -> RunRequest:
        credentials = None
        if self.mode is RunMode.DROPOUT:
            credentials = Credentials(getattr(args, "netname", "") or "", getattr(args, "password", "") or "")
        api_key = getattr(args, "api_key", None)
        return RunRequest(
            mode=self.mode,
            credentials=credentials,
            api_key=api_key,
            chrome_path=getattr(args, "chrome_path", None),
            custom_api_key=api_key is not None,
        )

    def run(self, args: argparse.Namespace, context: CLIContext) -> CommandResult:
        config = context.config
        if getattr(args, "project_root", None):
            config.set("PROJECT_ROOT", args.project_root)

        supervisor = self._supervisor_factory(config)
        stream = self._stream or sys.stdout
        cancellation = CancellationGate()
        cancellation.add_callback(lambda: logger.warning(MSG.RUN_CANCELLING))
        restore_signals = setup_cli_signal_handler(cancellation)
        try:
            try:
                handle = supervisor.submit(self.build_request(args), cancellation, ConsoleSink(stream))
            except ValidationError as e:
                return CommandResult(False, MSG.RUN_VALIDATION_FAILED.format(error=e.message),
                                     exit_code=EXIT_CODE_FAILURE)
            except ConcurrentRunError:
                return CommandResult(False, MSG.RUN_ALREADY_ACTIVE, exit_code=EXIT_CODE_FAILURE)

            result = None
            while result is None:
                result = handle.wait(RESULT_POLL_INTERVAL_SEC)
        finally:
            restore_signals()

        # Shown on the console only, never through logging
        if self.mode is RunMode.CREATE_ACCOUNT and result.final_credentials:
            print(MSG.RUN_GENERATED_CREDENTIALS.format(
                credentials=result.final_credentials.clipboard_text()), file=stream, flush=True)
        return CommandResult(
            success=result.success,
            message=describe_outcome(result),
            data=result,
            exit_code=exit_code_for(result),
        )


class RunCommandGroup(CommandGroup):
    """Group for the automation run commands."""

    def __init__(self, supervisor_factory: Optional[Callable[[Config], ProcessSupervisor]] = None,
                 stream: Optional[TextIO] = None):
        super().__init__(MSG.RUN_GROUP_NAME, MSG.RUN_GROUP_DESC)
        self._supervisor_factory = supervisor_factory
        self._stream = stream

    def get_commands(self) -> List[CommandHandler]:
        return [
            RunAutomationCommand(RunMode.CREATE_ACCOUNT, self._supervisor_factory, self._stream),
            RunAutomationCommand(RunMode.DROPOUT, self._supervisor_factory, self._stream),
        ]
