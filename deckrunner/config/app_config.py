"""
Application configuration.

Settings resolve with the precedence: explicit overrides > environment >
module defaults. Script identities live here rather than in the core so a
deployment can point the supervisor at different automation scripts.
"""

import logging
import os
from typing import Any, Dict, List, Optional

from deckrunner.core.validation import RunMode

# Environment variable prefix for deckrunner settings
ENV_PREFIX = "DECKRUNNER_"

DEFAULTS: Dict[str, Any] = {
    "PROJECT_ROOT": None,  # resolved to the working directory
    "RUNTIME": "node",
    "CREATE_ACCOUNT_SCRIPT": "deckathonRegister.js",
    "DROPOUT_SCRIPT": "deckathonDropout.js",
    "LOG_LEVEL": "INFO",
    "LOG_FILE": None,
    "TERMINATE_TIMEOUT_SEC": 5.0,
}


class Config:
    """
    Central configuration with attribute-style access.

    Example:
        config = Config(overrides={"PROJECT_ROOT": "/srv/deckathon"})
        config.command_for(RunMode.DROPOUT)
    """

    def __init__(self, overrides: Optional[Dict[str, Any]] = None,
                 environ: Optional[Dict[str, str]] = None):
        self._overrides: Dict[str, Any] = dict(overrides or {})
        self._env = os.environ if environ is None else environ

    def get(self, key: str, default: Any = None) -> Any:
        if key in self._overrides:
            return self._overrides[key]
        env_value = self._env.get(ENV_PREFIX + key)
        if env_value not in (None, ""):
            return env_value
        value = DEFAULTS.get(key)
        return default if value is None else value

    def set(self, key: str, value: Any) -> None:
        self._overrides[key] = value
        logging.debug(f"Config override set: {key}")

    @property
    def PROJECT_ROOT(self) -> str:
        return os.path.abspath(self.get("PROJECT_ROOT") or os.getcwd())

    @property
    def SCRIPT_RUNTIME(self) -> str:
        return self.get("RUNTIME")

    @property
    def CREATE_ACCOUNT_SCRIPT(self) -> str:
        return self.get("CREATE_ACCOUNT_SCRIPT")

    @property
    def DROPOUT_SCRIPT(self) -> str:
        return self.get("DROPOUT_SCRIPT")

    @property
    def LOG_LEVEL(self) -> str:
        return str(self.get("LOG_LEVEL")).upper()

    @property
    def LOG_FILE(self) -> Optional[str]:
        return self.get("LOG_FILE")

    @property
    def TERMINATE_TIMEOUT_SEC(self) -> float:
        value = self.get("TERMINATE_TIMEOUT_SEC")
        try:
            return float(value)
        except (TypeError, ValueError):
            logging.warning(f"Invalid TERMINATE_TIMEOUT_SEC '{value}', using default")
            return float(DEFAULTS["TERMINATE_TIMEOUT_SEC"])

    def command_for(self, mode: RunMode) -> List[str]:
        """Command prefix (runtime + script) launched for ``mode``."""
        script = self.CREATE_ACCOUNT_SCRIPT if mode is RunMode.CREATE_ACCOUNT else self.DROPOUT_SCRIPT
        runtime = self.SCRIPT_RUNTIME
        if isinstance(runtime, (list, tuple)):
            return [*runtime, script]
        return [runtime, script] if runtime else [script]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "PROJECT_ROOT": self.PROJECT_ROOT,
            "RUNTIME": self.SCRIPT_RUNTIME,
            "CREATE_ACCOUNT_SCRIPT": self.CREATE_ACCOUNT_SCRIPT,
            "DROPOUT_SCRIPT": self.DROPOUT_SCRIPT,
            "LOG_LEVEL": self.LOG_LEVEL,
            "LOG_FILE": self.LOG_FILE,
            "TERMINATE_TIMEOUT_SEC": self.TERMINATE_TIMEOUT_SEC,
        }
