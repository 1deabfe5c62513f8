from __future__ import annotations


class DivtrackError(Exception):
    """Base error for user-facing failures."""


class APIError(DivtrackError):
    """Failure talking to the remote dividend database."""

    def __init__(self, code: int, message: str):
        super().__init__(f"[{code}] {message}")
        self.code = int(code)
        self.message = message


class ValidationError(DivtrackError):
    """Input rejected by a validation rule; the message is shown to the user."""


class NotFoundError(DivtrackError):
    """Unknown bank, holding, plan or watchlist."""
