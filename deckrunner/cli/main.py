"""
Main entry point for the CLI.
"""

import logging
import sys
from typing import List, Optional

from deckrunner.cli.argument_parser import build_parser
from deckrunner.cli.commands.base import CommandRegistry
from deckrunner.cli.context import CLIContext
from deckrunner.config.app_config import Config


def build_registry() -> CommandRegistry:
    """Register all commands and command groups."""
    from deckrunner.cli.commands import config, run as run_commands

    registry = CommandRegistry()
    registry.add_standalone_command(config.ShowConfigCommand())
    registry.add_group(run_commands.RunCommandGroup())
    return registry


def run(args: Optional[List[str]] = None, registry: Optional[CommandRegistry] = None,
        config: Optional[Config] = None) -> int:
    """
    Main CLI entry point.

    Args:
        args: Command line arguments (defaults to sys.argv[1:])
        registry: Command registry (defaults to the built-in commands)
        config: Configuration (defaults to the environment-backed one)

    Returns:
        Exit code
    """
    parser = build_parser()
    registry = registry or build_registry()
    registry.register_all(parser)
    parsed_args = parser.parse_args(args)

    handler = registry.get_command_handler(parsed_args)
    if not handler:
        parser.print_help()
        return 1

    context = CLIContext(verbose=parsed_args.verbose, config=config)
    try:
        result = handler.run(parsed_args, context)
        if result.message:
            if result.success:
                print(result.message)
            else:
                logging.error(result.message)
        return result.exit_code
    except KeyboardInterrupt:
        logging.debug("CLI operation interrupted by user.")
        return 130
    except Exception as e:
        logging.critical(f"Unexpected CLI error: {e}", exc_info=True)
        return 1
    finally:
        context.close()


def main() -> None:
    sys.exit(run())


if __name__ == "__main__":
    main()
