import logging
import os
import sys
import time
from typing import List, Optional

# --- Process start time (for ElapsedTimeFormatter) ---
SCRIPT_START_TIME = time.time()

LOG_FORMAT = "[%(levelname)s] (%(asctime)s) %(filename)s:%(lineno)d - %(message)s"


class ElapsedTimeFormatter(logging.Formatter):
    def formatTime(self, record, datefmt=None):
        elapsed_seconds = max(record.created - SCRIPT_START_TIME, 0.0)
        h = int(elapsed_seconds // 3600)
        m = int((elapsed_seconds % 3600) // 60)
        s = int(elapsed_seconds % 60)
        ms = int((elapsed_seconds - (h * 3600 + m * 60 + s)) * 1000)
        return f"{h:02d}:{m:02d}:{s:02d}.{ms:03d}"


class LoggerManager:
    def __init__(self):
        self.handlers: List[logging.Handler] = []

    def setup_logging(self, log_level_str: str, log_file: Optional[str] = None) -> logging.Logger:
        numeric_level = getattr(logging, log_level_str.upper(), None)
        if not isinstance(numeric_level, int):
            raise ValueError(f"Invalid log level string: {log_level_str}")

        logger = logging.getLogger()
        logger.setLevel(numeric_level)
        self.teardown()

        log_formatter = ElapsedTimeFormatter(LOG_FORMAT)

        # Script output goes to stdout; keep diagnostics on stderr
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(log_formatter)
        logger.addHandler(console_handler)
        self.handlers.append(console_handler)

        if log_file:
            try:
                log_file_dir = os.path.dirname(os.path.abspath(log_file))
                if log_file_dir:
                    os.makedirs(log_file_dir, exist_ok=True)

                file_handler = logging.FileHandler(log_file, mode='a', encoding='utf-8')
                file_handler.setFormatter(log_formatter)
                logger.addHandler(file_handler)
                self.handlers.append(file_handler)
            except OSError as e:
                logger.error(f"Error setting up file logger for {log_file}: {e}")

        return logger

    def teardown(self) -> None:
        """Remove and close the handlers this manager installed."""
        logger = logging.getLogger()
        for handler in self.handlers:
            logger.removeHandler(handler)
            try:
                handler.close()
            except OSError:
                pass
        self.handlers.clear()
