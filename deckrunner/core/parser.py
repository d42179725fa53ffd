"""
Classification of automation script output lines.

The scripts print free-form progress text. ``LineClassifier`` turns one
line into the events it carries; it holds no state and does no I/O, so the
same line always yields the same events.
"""

import re
from typing import List, Pattern

from deckrunner.core.events import (
    Completed,
    CredentialsExtracted,
    Failed,
    RunEvent,
    StageChanged,
)

# Stage text shown for keyword lines is capped at this length
MAX_STAGE_LENGTH = 50
ELLIPSIS = "..."


def truncate_stage(line: str, limit: int = MAX_STAGE_LENGTH) -> str:
    """Cut a line down to ``limit`` characters, ending in an ellipsis when shortened."""
    if len(line) <= limit:
        return line
    return line[:limit - len(ELLIPSIS)] + ELLIPSIS


class LineClassifier:
    """Maps a single output line to zero or more run events."""

    STEP_PATTERN: Pattern = re.compile(r"^STEP (\d+):?\s*(.*)$")
    CREDENTIALS_PATTERN: Pattern = re.compile(
        r"Credentials:\s*(\S+)\s*\|\s*[^|]+\s*\|\s*[^|]+\s*\|\s*(\S+)"
    )
    STAGE_KEYWORDS = (
        "Connecting", "Navigating", "Filling", "Submitting", "Login", "OTP",
        "Selecting", "Clicking", "Payment", "Dropout", "CAPTCHA", "Solving",
        "Complete",
    )
    COMPLETION_MARKERS = ("COMPLETE", "Done!")
    ERROR_PREFIXES = ("ERROR", "Error:")

    def __init__(self):
        self._keyword_pattern = re.compile(
            "(" + "|".join(re.escape(k) for k in self.STAGE_KEYWORDS) + ")",
            re.IGNORECASE,
        )

    def classify(self, line: str) -> List[RunEvent]:
        """
        Classify one line of output.

        Every rule is evaluated; the result keeps the rule order
        step, credentials, keyword, completion, error. A line produces at
        most one ``StageChanged``: the keyword rule stays quiet when a step
        marker already named the stage, on credential lines, and on lines
        carrying a completion or error marker.

        Args:
            line: Output line, with or without its trailing newline

        Returns:
            List of recognised events, possibly empty
        """
        line = line.rstrip("\r\n")
        events: List[RunEvent] = []
        if not line.strip():
            return events

        step_match = self.STEP_PATTERN.match(line)
        if step_match:
            events.append(StageChanged(f"Step {step_match.group(1)}: {step_match.group(2).strip()}"))

        cred_match = self.CREDENTIALS_PATTERN.search(line)
        if cred_match:
            events.append(CredentialsExtracted(cred_match.group(1), cred_match.group(2)))

        is_completion = self.is_completion(line)
        is_error = self.is_error(line)

        if not step_match and not cred_match and not is_completion and not is_error:
            if self._keyword_pattern.search(line):
                events.append(StageChanged(truncate_stage(line)))

        if is_completion:
            events.append(Completed(line))
        if is_error:
            events.append(Failed(line))

        return events

    def is_completion(self, line: str) -> bool:
        return any(marker in line for marker in self.COMPLETION_MARKERS)

    def is_error(self, line: str) -> bool:
        return line.startswith(self.ERROR_PREFIXES)


_default_classifier = LineClassifier()


def classify_line(line: str) -> List[RunEvent]:
    """Classify a line with the shared default classifier."""
    return _default_classifier.classify(line)
