"""
Error Kinds and Calculation Results
===================================

Public HedgeLab operations do not raise on expected failures. They return a
:class:`CalculationResult` carrying either the computed value or an
:class:`ErrorKind` that callers branch on:

- ``PRECONDITION_VIOLATION``: caller error (bad dimensions, unsorted key grid,
  negative ridge, ...). Never worth retrying.
- ``SINGULAR_SYSTEM``: a pivot fell below tolerance during elimination. The
  caller may retry with a larger ridge term; the engine never does.
- ``NON_FINITE_VALUE``: NaN/Inf detected; only reported when the optional
  finite guard is enabled (``HEDGELAB_CHECK_FINITE``).

Internal building blocks raise the matching :class:`HedgeLabError` subclass,
and :meth:`CalculationResult.unwrap` re-raises it for callers that prefer
exceptions.

Example
-------
>>> result = ridge_least_squares(A, b, ridge_lambda=0.0)
>>> if result.error is ErrorKind.SINGULAR_SYSTEM:
...     result = ridge_least_squares(A, b, ridge_lambda=1e-6)
>>> weights = result.unwrap()
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class ErrorKind(Enum):
    """Failure categories reported by the engine."""
    PRECONDITION_VIOLATION = "precondition_violation"
    SINGULAR_SYSTEM = "singular_system"
    NON_FINITE_VALUE = "non_finite_value"


class HedgeLabError(Exception):
    """Base class for engine errors; ``kind`` identifies the category."""

    kind: ErrorKind = ErrorKind.PRECONDITION_VIOLATION


class PreconditionViolation(HedgeLabError, ValueError):
    """Raised when inputs break the caller contract."""

    kind = ErrorKind.PRECONDITION_VIOLATION


class SingularSystemError(HedgeLabError, ArithmeticError):
    """Raised when elimination meets a pivot below tolerance."""

    kind = ErrorKind.SINGULAR_SYSTEM


class NonFiniteValueError(HedgeLabError, ArithmeticError):
    """Raised by the optional finite guard when NaN/Inf appears."""

    kind = ErrorKind.NON_FINITE_VALUE


_ERROR_TYPES = {
    ErrorKind.PRECONDITION_VIOLATION: PreconditionViolation,
    ErrorKind.SINGULAR_SYSTEM: SingularSystemError,
    ErrorKind.NON_FINITE_VALUE: NonFiniteValueError,
}


@dataclass(frozen=True)
class CalculationResult:
    """
    Outcome of a public engine operation.

    Exactly one of ``value`` and ``error`` is set.

    Attributes
    ----------
    value : Any
        Computed value (typically a read-only ``numpy.ndarray``) on success.
    error : ErrorKind, optional
        Failure category, ``None`` on success.
    message : str
        Human-readable failure description, empty on success.
    """
    value: Any = None
    error: Optional[ErrorKind] = None
    message: str = ""

    @classmethod
    def success(cls, value: Any) -> "CalculationResult":
        return cls(value=value)

    @classmethod
    def failure(cls, error: ErrorKind, message: str) -> "CalculationResult":
        return cls(error=error, message=message)

    @classmethod
    def from_exception(cls, exc: HedgeLabError) -> "CalculationResult":
        return cls(error=exc.kind, message=str(exc))

    @property
    def ok(self) -> bool:
        """True when the operation produced a value."""
        return self.error is None

    def raise_for_error(self) -> None:
        """Raise the exception matching ``error``; no-op on success."""
        if self.error is not None:
            raise _ERROR_TYPES[self.error](self.message)

    def unwrap(self) -> Any:
        """Return ``value`` or raise the exception matching ``error``."""
        self.raise_for_error()
        return self.value
