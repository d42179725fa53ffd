"""
Argument parser builder for the CLI.
"""

import argparse
import textwrap

from deckrunner import __version__
from deckrunner.cli.constants import messages as MSG


def build_parser() -> argparse.ArgumentParser:
    """
    Build the main argument parser.

    Returns:
        Configured argument parser
    """
    parser = argparse.ArgumentParser(
        prog="deckrunner",
        description=MSG.PARSER_DESC,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent(
            """
            Examples:
              deckrunner run create-account
              deckrunner run create-account --api-key=YOUR_KEY
              deckrunner run dropout --netname user123 --password 'Pass!word1'
              deckrunner show-config
            """
        ),
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help=MSG.ARG_HELP_VERBOSE
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}"
    )

    return parser


def add_override_arguments(parser: argparse.ArgumentParser) -> None:
    """
    Add the optional API key / Chrome path overrides to a run parser.

    Args:
        parser: Parser to add arguments to
    """
    parser.add_argument(
        "--api-key",
        metavar="KEY",
        default=None,
        help=MSG.ARG_HELP_API_KEY
    )
    parser.add_argument(
        "--chrome-path",
        metavar="PATH",
        default=None,
        help=MSG.ARG_HELP_CHROME_PATH
    )
    parser.add_argument(
        "--project-root",
        metavar="DIR",
        default=None,
        help=MSG.ARG_HELP_PROJECT_ROOT
    )
