"""Domain errors raised inside actions and converted to result dicts at the edge."""

from __future__ import annotations


class LedgerError(Exception):
    """Base class. `message` is safe to show to the user."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class Unauthorized(LedgerError):
    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(message)


class NotFound(LedgerError):
    pass


class Conflict(LedgerError):
    pass


class ValidationFailed(LedgerError):
    """Carries every problem; `message` is the first one."""

    def __init__(self, problems: list[str]) -> None:
        super().__init__(problems[0] if problems else "Invalid input")
        self.problems = list(problems)
