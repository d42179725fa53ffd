"""
Defaults read from the automation project's ``.env`` file.

Only the front ends use these, to label the "built-in" choices; the run
supervisor receives already resolved overrides.
"""

import logging
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import dotenv_values

logger = logging.getLogger(__name__)

ENV_FILE_NAME = ".env"
API_KEY_VAR = "GEMINI_API_KEY"
CHROME_PATH_VAR = "CHROME_PATH"
MAX_LABEL_PATH_LENGTH = 30


def truncate_path(path: str, limit: int = MAX_LABEL_PATH_LENGTH) -> str:
    """Keep the tail of a long path: ``"..." + last (limit - 3) characters``."""
    if len(path) > limit:
        return "..." + path[-(limit - 3):]
    return path


@dataclass(frozen=True)
class EnvDefaults:
    has_builtin_api_key: bool = False
    chrome_path: Optional[str] = None

    def api_key_label(self) -> str:
        return "Use Built-in (from .env)" if self.has_builtin_api_key else "Use Built-in"

    def chrome_label(self) -> str:
        if self.chrome_path:
            return f"Use Default: {truncate_path(self.chrome_path)}"
        return "Use Default"


def load_env_defaults(project_root: str) -> EnvDefaults:
    """Read ``.env`` under ``project_root``. Missing or unreadable files give empty defaults."""
    env_path = os.path.join(project_root, ENV_FILE_NAME)
    if not os.path.exists(env_path):
        logger.debug(f"No {ENV_FILE_NAME} file at {env_path}")
        return EnvDefaults()

    try:
        values = dotenv_values(env_path)
    except (OSError, UnicodeDecodeError) as e:
        logger.warning(f"Could not read {ENV_FILE_NAME} file: {e}")
        return EnvDefaults()

    chrome_path = (values.get(CHROME_PATH_VAR) or "").strip() or None
    return EnvDefaults(
        has_builtin_api_key=API_KEY_VAR in values,
        chrome_path=chrome_path,
    )
