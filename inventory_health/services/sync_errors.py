from __future__ import annotations

from enum import Enum


class SyncErrorKind(str, Enum):
    INVALID_INPUT = 'INVALID_INPUT'
    FETCH_FAILURE = 'FETCH_FAILURE'
    RECONCILIATION_FAILURE = 'RECONCILIATION_FAILURE'


class SyncError(RuntimeError):
    def __init__(self, message: str, *, kind: SyncErrorKind, outcomes: list | None = None) -> None:
        super().__init__(message)
        self.kind = kind
        self.outcomes = outcomes or []
