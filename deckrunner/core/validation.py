"""
Run request shape and validation.

A request is checked and normalised before anything is launched: values
are trimmed, empty overrides become ``None`` and mode-specific fields are
resolved, so the supervisor only ever sees a consistent copy.
"""

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import List, Optional

from deckrunner.core.exceptions import ValidationError

logger = logging.getLogger(__name__)


class RunMode(Enum):
    CREATE_ACCOUNT = "create-account"
    DROPOUT = "dropout"

    @classmethod
    def from_string(cls, value: str) -> "RunMode":
        normalized = (value or "").strip().lower().replace("_", "-")
        for mode in cls:
            if mode.value == normalized:
                return mode
        valid = ", ".join(m.value for m in cls)
        raise ValueError(f"Unknown run mode '{value}'. Valid modes: {valid}")


@dataclass(frozen=True)
class Credentials:
    username: str
    password: str

    def clipboard_text(self) -> str:
        """Both values in the "copy both" format."""
        return f"{self.username} / {self.password}"

    def __repr__(self) -> str:
        return f"Credentials(username={self.username!r}, password='***')"


@dataclass(frozen=True)
class RunRequest:
    """
    One automation session to launch.

    ``custom_api_key`` mirrors the "use a custom key" choice of a front end:
    when it is set, ``api_key`` must be non-empty. ``credentials`` hold the
    netname/password pair and are only meaningful in dropout mode.
    """
    mode: RunMode
    credentials: Optional[Credentials] = None
    api_key: Optional[str] = None
    chrome_path: Optional[str] = None
    custom_api_key: bool = False


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def validate_request(request: RunRequest) -> RunRequest:
    """
    Validate a request and return its normalised copy.

    Raises:
        ValidationError: listing every problem found
    """
    issues: List[str] = []

    if not isinstance(request.mode, RunMode):
        raise ValidationError([f"Invalid run mode: {request.mode!r}"])

    credentials = None
    if request.mode is RunMode.DROPOUT:
        netname = _clean(request.credentials.username) if request.credentials else None
        password = _clean(request.credentials.password) if request.credentials else None
        if not netname or not password:
            issues.append("Please enter both Netname and Password for dropout mode.")
        else:
            credentials = Credentials(netname, password)
    elif request.credentials is not None:
        logger.debug("Ignoring credentials supplied for create-account mode")

    api_key = _clean(request.api_key)
    if request.custom_api_key and not api_key:
        issues.append("Please enter a custom API key or select 'Use Built-in'.")

    if issues:
        for issue in issues:
            logger.error(f"Run request rejected: {issue}")
        raise ValidationError(issues)

    return replace(
        request,
        credentials=credentials,
        api_key=api_key,
        chrome_path=_clean(request.chrome_path),
    )
