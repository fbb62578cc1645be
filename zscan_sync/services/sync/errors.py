"""
errors.py - Error Taxonomy (Machine-Enforced)

Errors are contracts, not strings. Claim and Update never raise for an
expected failure: they return a SyncResult whose error carries a kind the
transport layer maps to a status code without parsing messages.

SyncException is the internal carrier used to abort a transaction scope so
the rollback happens before the failure is reported.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Generic, Optional, TypeVar

T = TypeVar("T")


class SyncErrorKind(str, Enum):
    # Caller errors (400)
    FORMAT_ERROR = "FORMAT_ERROR"

    # Precondition / authentication (403)
    NOT_FOUND = "NOT_FOUND"
    NOT_CLAIMABLE = "NOT_CLAIMABLE"
    AUTH_FAILURE = "AUTH_FAILURE"

    # Administrative
    ALREADY_EXISTS = "ALREADY_EXISTS"

    # Infrastructure (500)
    STORAGE_FAILURE = "STORAGE_FAILURE"


@dataclass(frozen=True)
class SyncError:
    """Immutable error object."""
    kind: SyncErrorKind
    message: str
    details: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.kind.value,
            "message": self.message,
            "details": self.details or {},
        }


@dataclass(frozen=True)
class SyncResult(Generic[T]):
    """Outcome of a sync operation: either a value or exactly one error."""
    value: Optional[T] = None
    error: Optional[SyncError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: Optional[T] = None) -> "SyncResult[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: SyncError) -> "SyncResult[T]":
        return cls(error=error)


class SyncException(Exception):
    """Raised inside a transaction scope to force rollback."""
    def __init__(self, error: SyncError):
        self.error = error
        super().__init__(error.message)


# Pre-defined error factories for consistency
def format_error(message: str, **details: Any) -> SyncError:
    return SyncError(kind=SyncErrorKind.FORMAT_ERROR, message=message, details=details)


def not_found(uid: str) -> SyncError:
    return SyncError(
        kind=SyncErrorKind.NOT_FOUND,
        message=f"Dataset identifier '{uid}' not found",
        details={"dsname": uid},
    )


def not_claimable(uid: str) -> SyncError:
    """
    Missing datasets and datasets outside the waiting mode are reported the
    same way so a client cannot probe which identifiers exist.
    """
    return SyncError(
        kind=SyncErrorKind.NOT_CLAIMABLE,
        message=f"Dataset identifier '{uid}' not claimable",
        details={"dsname": uid},
    )


def auth_failure(uid: str) -> SyncError:
    return SyncError(
        kind=SyncErrorKind.AUTH_FAILURE,
        message="Dataset authentication failed",
        details={"dsname": uid},
    )


def already_exists(uid: str) -> SyncError:
    return SyncError(
        kind=SyncErrorKind.ALREADY_EXISTS,
        message=f"Dataset identifier '{uid}' already defined",
        details={"dsname": uid},
    )


def storage_failure(exc: BaseException) -> SyncError:
    return SyncError(
        kind=SyncErrorKind.STORAGE_FAILURE,
        message="Storage failure",
        details={"error": type(exc).__name__},
    )
