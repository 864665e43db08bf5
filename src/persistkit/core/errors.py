"""Domain error types raised by the persistence engine."""

from __future__ import annotations

from enum import Enum


class FailureKind(str, Enum):
    """Classification of a storage failure, used to pick the message and retry hint."""

    CONNECTION = "connection"
    TIMEOUT = "timeout"
    DEADLOCK = "deadlock"
    DUPLICATE_KEY = "duplicate_key"
    FOREIGN_KEY = "foreign_key"
    INTEGRITY = "integrity"
    FILE_ACCESS = "file_access"
    UNEXPECTED = "unexpected"


_RETRYABLE = frozenset({FailureKind.CONNECTION, FailureKind.TIMEOUT, FailureKind.DEADLOCK})


class PersistKitError(RuntimeError):
    """Base class for errors raised by persistkit."""


class StorageConfigurationError(PersistKitError):
    """Raised at startup when the configured storage target cannot be wired."""


class DataStoreError(PersistKitError):
    """Raised when a data store operation fails.

    The message is safe to show to end users verbatim; the underlying backend
    exception is available as ``__cause__``.
    """

    def __init__(self, message: str, *, kind: FailureKind = FailureKind.UNEXPECTED, operation: str | None = None):
        super().__init__(message)
        self.kind = kind
        self.operation = operation

    @property
    def retryable(self) -> bool:
        """bool: True when retrying the same operation unchanged may succeed."""

        return self.kind in _RETRYABLE


__all__ = ["DataStoreError", "FailureKind", "PersistKitError", "StorageConfigurationError"]
