"""
CLI context providing shared dependencies to commands.
"""

import logging
from typing import Optional

from deckrunner.config.app_config import Config
from deckrunner.utils.logging_manager import LoggerManager


class CLIContext:
    """
    Shared context for CLI operations.

    Provides access to configuration and logging across all CLI commands.
    """

    def __init__(self, verbose: bool = False, config: Optional[Config] = None):
        """
        Initialize CLI context.

        Args:
            verbose: Enable verbose logging
            config: Configuration to use instead of the environment-backed default
        """
        self.verbose = verbose
        self._config = config or Config()
        self._logger_manager = LoggerManager()
        self._setup_logging()

    def _setup_logging(self) -> None:
        log_level = "DEBUG" if self.verbose else self._config.LOG_LEVEL
        try:
            self._logger_manager.setup_logging(log_level, log_file=self._config.LOG_FILE)
        except ValueError as e:
            self._logger_manager.setup_logging("INFO", log_file=self._config.LOG_FILE)
            logging.warning(f"{e}; falling back to INFO")
        logging.debug(f"CLI logging initialized. Level: {log_level}")

    @property
    def config(self) -> Config:
        return self._config

    @property
    def logger_manager(self) -> LoggerManager:
        return self._logger_manager

    def close(self) -> None:
        self._logger_manager.teardown()
