"""
Error types shared by the services and the API layer.
ValidationError: caller mistake, recoverable, never retried.
StoreError: persistence failure, logged and propagated.
"""
from __future__ import annotations

from enum import Enum


class ValidationCode(str, Enum):
    SELECTION_REQUIRED = "SELECTION_REQUIRED"  # no voter or no match chosen
    INCOMPLETE = "INCOMPLETE"  # an eligible player has no score
    OUT_OF_RANGE = "OUT_OF_RANGE"  # score not an integer in 1..10
    ALREADY_ASSIGNED = "ALREADY_ASSIGNED"  # player already on team A or B
    NOT_IN_ROSTER = "NOT_IN_ROSTER"  # voter did not play in the match
    ALREADY_VOTED = "ALREADY_VOTED"  # voter already submitted a ballot for the match
    VALIDATION = "VALIDATION"  # blank name, bad date, bad team


class ValidationError(ValueError):
    """Invalid input for a roster, ballot or lifecycle operation."""

    def __init__(self, code: ValidationCode, message: str | None = None) -> None:
        self.code = code
        self.message = message or code.value
        super().__init__(self.message)

    def to_dict(self) -> dict[str, str]:
        return {"code": self.code.value, "detail": self.message}


class NotFoundError(LookupError):
    """Match or player id does not exist (or was deleted)."""


class StoreError(RuntimeError):
    """The persistence backend failed. The operation was not applied."""


class ConcurrentUpdateError(StoreError):
    """Match changed since it was read; the write was rejected (stale version)."""


class DuplicateVoteError(StoreError):
    """A vote for the same (match, voter, votee) already exists; the batch was rolled back."""
