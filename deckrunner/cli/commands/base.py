"""
Base command infrastructure for CLI operations.
"""

import argparse
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from deckrunner.cli.constants import messages as MSG
from deckrunner.cli.context import CLIContext


class CommandResult:
    """Result of a command execution."""

    def __init__(self, success: bool = True, message: str = "", data: Any = None, exit_code: int = 0):
        self.success = success
        self.message = message
        self.data = data
        self.exit_code = exit_code

    def __bool__(self) -> bool:
        return self.success


class CommandHandler(ABC):
    """
    Base class for CLI command handlers.

    Handlers register their own parser and are stored on the parsed
    namespace as ``handler`` so the registry can dispatch to them.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        pass

    @property
    @abstractmethod
    def description(self) -> str:
        pass

    @abstractmethod
    def register(self, subparsers: argparse._SubParsersAction) -> argparse.ArgumentParser:
        """
        Register the command with the argument parser.

        Args:
            subparsers: Subparsers action to register with

        Returns:
            The created argument parser for this command
        """
        pass

    @abstractmethod
    def run(self, args: argparse.Namespace, context: CLIContext) -> CommandResult:
        pass


class CommandGroup(ABC):
    """A group of related commands, e.g. ``run create-account``."""

    def __init__(self, name: str, description: str):
        self.name = name
        self.description = description
        self.commands: Dict[str, CommandHandler] = {}

    @abstractmethod
    def get_commands(self) -> List[CommandHandler]:
        pass

    def register(self, subparsers: argparse._SubParsersAction) -> argparse.ArgumentParser:
        self.commands = {cmd.name: cmd for cmd in self.get_commands()}
        group_parser = subparsers.add_parser(
            self.name,
            help=self.description,
            description=self.description
        )
        group_subparsers = group_parser.add_subparsers(
            help=f"Available {self.name} commands"
        )
        for command in self.commands.values():
            command.register(group_subparsers)
        return group_parser


class CommandRegistry:
    """Registry for managing all commands and command groups."""

    def __init__(self):
        self.groups: Dict[str, CommandGroup] = {}
        self.standalone_commands: Dict[str, CommandHandler] = {}

    def add_group(self, group: CommandGroup) -> None:
        self.groups[group.name] = group

    def add_standalone_command(self, command: CommandHandler) -> None:
        self.standalone_commands[command.name] = command

    def register_all(self, parser: argparse.ArgumentParser) -> None:
        subparsers = parser.add_subparsers(
            dest="command",
            help=MSG.HELP_AVAILABLE_COMMANDS
        )
        for command in self.standalone_commands.values():
            command.register(subparsers)
        for group in self.groups.values():
            group.register(subparsers)

    def get_command_handler(self, args: argparse.Namespace) -> Optional[CommandHandler]:
        return getattr(args, "handler", None)
