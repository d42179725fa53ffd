"""
Exceptions raised synchronously by the run supervisor.

Everything that happens after a run has been handed to its worker is
reported through ``RunResult`` instead; only request problems surface as
exceptions on the caller's thread.
"""

from typing import Any, Dict, List, Optional


class DeckrunnerError(Exception):
    """Base exception for run supervision errors."""

    def __init__(self, message: str, code: str = 'DECKRUNNER_ERROR', details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}
        self.name = self.__class__.__name__


class ValidationError(DeckrunnerError):
    """Raised when a run request is malformed. No subprocess is started."""

    def __init__(self, messages: List[str]):
        self.messages = list(messages)
        super().__init__('; '.join(self.messages) or 'Invalid run request', 'VALIDATION_ERROR',
                         {'messages': self.messages})


class ConcurrentRunError(DeckrunnerError):
    """Raised when a run is requested while another one is active."""

    def __init__(self, message: str = 'An automation run is already active'):
        super().__init__(message, 'CONCURRENT_RUN')
