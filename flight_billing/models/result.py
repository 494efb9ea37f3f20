"""Closed result type returned by every public engine operation.

Expected failures (bad meter readings, missing rates, a rejected remote
mutation) are values, not exceptions. Each operation returns either
``Ok(value)`` or ``Err(kind, detail)``:

    >>> result = calculate_segments(reading, BillingBasis.HOBBS, flight_type)
    >>> if result.is_ok:
    ...     segments = result.value
    ... else:
    ...     print(result.kind, result.detail)
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Generic, List, Optional, TypeVar, Union

from flight_billing.validators.validation_report import ValidationIssue

T = TypeVar("T")


class ErrorKind(Enum):
    """Classification of engine failures."""

    INVALID_METER_READING = "invalid_meter_reading"
    RATE_NOT_CONFIGURED = "rate_not_configured"
    RATE_LOOKUP_FAILED = "rate_lookup_failed"
    INSTRUCTOR_REQUIRED = "instructor_required"
    INVALID_CHARGE_INPUT = "invalid_charge_input"
    ITEM_NOT_FOUND = "item_not_found"
    REMOTE_MUTATION_FAILED = "remote_mutation_failed"
    VALIDATION_FAILED = "validation_failed"
    COMMIT_FAILED = "commit_failed"
    VERSION_CONFLICT = "version_conflict"
    PARTIAL_COMMIT = "partial_commit"
    ALREADY_COMPLETED = "already_completed"
    SUPERSEDED = "superseded"

    @property
    def is_warning(self) -> bool:
        """Partial commits are reported in the warning slot, not the error slot."""
        return self is ErrorKind.PARTIAL_COMMIT

    @property
    def is_retryable(self) -> bool:
        """Whether repeating the same call may succeed without user changes."""
        return self in (
            ErrorKind.RATE_LOOKUP_FAILED,
            ErrorKind.REMOTE_MUTATION_FAILED,
            ErrorKind.COMMIT_FAILED,
            ErrorKind.PARTIAL_COMMIT,
        )


class ResultError(Exception):
    """Raised when unwrap() is called on an Err."""

    def __init__(self, err: "Err"):
        self.err = err
        super().__init__(f"{err.kind.value}: {err.detail}")


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful outcome carrying a value."""

    value: T

    @property
    def is_ok(self) -> bool:
        return True

    @property
    def is_err(self) -> bool:
        return False

    def unwrap(self) -> T:
        return self.value


@dataclass(frozen=True)
class Err:
    """Failed outcome.

    Attributes:
        kind: What went wrong
        detail: Human-readable description for the operator
        issues: Validation issues behind the failure, if any
    """

    kind: ErrorKind
    detail: str
    issues: List[ValidationIssue] = field(default_factory=list)

    @property
    def is_ok(self) -> bool:
        return False

    @property
    def is_err(self) -> bool:
        return True

    def unwrap(self):
        raise ResultError(self)

    def __str__(self) -> str:
        return f"[{self.kind.value}] {self.detail}"


Result = Union[Ok[T], Err]


def first_error(results: List[Union[Ok, Err]]) -> Optional[Err]:
    """Return the first Err in a list of results, or None if all are Ok."""
    for result in results:
        if isinstance(result, Err):
            return result
    return None
