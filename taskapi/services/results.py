"""
Service results - business outcomes as values, not exceptions.
Design: Services return ServiceResult; the HTTP layer maps ServiceErrorKind to a
status code through one lookup table (api/responses.py).
"""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")


class ServiceErrorKind(str, Enum):
    VALIDATION = "VALIDATION"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    NOT_IMPLEMENTED = "NOT_IMPLEMENTED"


@dataclass
class ServiceError:
    kind: ServiceErrorKind
    message: str
    detail: str | None = None


@dataclass
class ServiceResult(Generic[T]):
    value: T | None = None
    error: ServiceError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> "ServiceResult[T]":
        return cls(value=value)

    @classmethod
    def failure(
        cls, kind: ServiceErrorKind, message: str, detail: str | None = None
    ) -> "ServiceResult[T]":
        return cls(error=ServiceError(kind=kind, message=message, detail=detail))


def not_implemented(operation: str) -> ServiceResult:
    """Learner exercise left open (enable reference solutions to run ours)."""
    return ServiceResult.failure(
        ServiceErrorKind.NOT_IMPLEMENTED,
        "Method not implemented",
        f"'{operation}' is a workshop exercise and must be implemented by the student",
    )
