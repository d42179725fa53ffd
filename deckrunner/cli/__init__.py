"""
Command line front end for the automation supervisor.
"""

from deckrunner.cli.main import run

__all__ = ["run"]
