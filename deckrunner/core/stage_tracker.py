"""
Per-run progress state.

The tracker is written only by the line-reading worker of the run that
owns it. Readers on other threads get immutable ``StageSnapshot`` objects;
publishing a new snapshot is a single reference assignment.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from deckrunner.core.events import (
    Completed,
    CredentialsExtracted,
    Failed,
    RunEvent,
    StageChanged,
)
from deckrunner.core.validation import Credentials

logger = logging.getLogger(__name__)

INITIAL_STAGE = "Starting..."


@dataclass(frozen=True)
class StageSnapshot:
    current_stage: str = INITIAL_STAGE
    last_updated: int = 0
    credentials: Optional[Credentials] = None
    completion_message: Optional[str] = None
    error_message: Optional[str] = None


class StageTracker:
    """Applies classifier events to the latest known run state."""

    def __init__(self, initial_stage: str = INITIAL_STAGE):
        self._snapshot = StageSnapshot(current_stage=initial_stage)

    def apply(self, event: RunEvent) -> bool:
        """
        Apply one event.

        Returns:
            False when the event was ignored (credentials after the first
            captured pair, or an event type the tracker does not track),
            True otherwise.
        """
        current = self._snapshot
        seq = current.last_updated + 1

        if isinstance(event, StageChanged):
            self._publish(current, seq, current_stage=event.stage)
        elif isinstance(event, CredentialsExtracted):
            if current.credentials is not None:
                logger.debug("Credentials already captured for this run; ignoring later match")
                return False
            self._publish(current, seq, credentials=event.credentials)
        elif isinstance(event, Completed):
            self._publish(current, seq, completion_message=event.message)
        elif isinstance(event, Failed):
            self._publish(current, seq, error_message=event.message)
        else:
            return False
        return True

    def _publish(self, current: StageSnapshot, seq: int, **changes) -> None:
        values = {
            "current_stage": current.current_stage,
            "credentials": current.credentials,
            "completion_message": current.completion_message,
            "error_message": current.error_message,
        }
        values.update(changes)
        self._snapshot = StageSnapshot(last_updated=seq, **values)

    def snapshot(self) -> StageSnapshot:
        return self._snapshot

    @property
    def current_stage(self) -> str:
        return self._snapshot.current_stage

    @property
    def final_credentials(self) -> Optional[Credentials]:
        return self._snapshot.credentials
