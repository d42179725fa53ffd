"""
Configuration inspection command.
"""

import argparse
import json

from deckrunner.cli.commands.base import CommandHandler, CommandResult
from deckrunner.cli.constants import messages as MSG
from deckrunner.cli.context import CLIContext
from deckrunner.config.env_defaults import load_env_defaults


class ShowConfigCommand(CommandHandler):
    """Show the resolved configuration and .env defaults."""

    @property
    def name(self) -> str:
        return MSG.SHOW_CONFIG_NAME

    @property
    def description(self) -> str:
        return MSG.SHOW_CONFIG_DESC

    def register(self, subparsers: argparse._SubParsersAction) -> argparse.ArgumentParser:
        parser = subparsers.add_parser(
            self.name,
            help=self.description,
            description=self.description
        )
        parser.set_defaults(handler=self)
        return parser

    def run(self, args: argparse.Namespace, context: CLIContext) -> CommandResult:
        config = context.config
        defaults = load_env_defaults(config.PROJECT_ROOT)
        api_key_status = MSG.SHOW_CONFIG_API_KEY_SET if defaults.has_builtin_api_key else MSG.SHOW_CONFIG_API_KEY_UNSET
        lines = [
            json.dumps(config.to_dict(), indent=2),
            MSG.SHOW_CONFIG_API_KEY.format(status=api_key_status),
            MSG.SHOW_CONFIG_CHROME.format(label=defaults.chrome_label()),
        ]
        return CommandResult(True, "\n".join(lines), data={"config": config.to_dict(), "env": defaults})
