"""Success/failure value returned by mutating repository operations."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class OperationResult:
    """Outcome of a repository mutation.

    Attributes:
        success: Whether the operation was applied.
        error_message: Human-readable reason when ``success`` is false.
    """

    success: bool
    error_message: str | None = None

    @classmethod
    def ok(cls) -> "OperationResult":
        return cls(success=True)

    @classmethod
    def fail(cls, message: str) -> "OperationResult":
        if not message:
            raise ValueError("A failed OperationResult requires a message")
        return cls(success=False, error_message=message)

    def __bool__(self) -> bool:
        return self.success


__all__ = ["OperationResult"]
