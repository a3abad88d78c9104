# arcade_arena/errors.py
from __future__ import annotations

from typing import Optional


class InvalidAction(ValueError):
    """Raised when a command is illegal for the current game state.

    The engine state is never modified when this is raised. ``code`` is a
    short machine-readable reason such as ``"wrong_turn"`` or
    ``"illegal_card"``.
    """

    def __init__(self, message: str, *, code: str = "invalid_action") -> None:
        super().__init__(message)
        self.code = code


class AdvisoryServiceUnavailable(RuntimeError):
    """Raised when the strategy advisor cannot produce a tip."""

    def __init__(
        self,
        *,
        label: str,
        reason: str,
        error: Optional[BaseException] = None,
    ) -> None:
        message = f"Advisor {label} unavailable: {reason}"
        if error is not None:
            message = f"{message} ({error})"
        super().__init__(message)
        self.label = label
        self.reason = reason
        self.error = error
