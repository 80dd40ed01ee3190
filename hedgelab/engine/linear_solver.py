"""
Dense Linear Solver
===================

Gauss-Jordan elimination with partial pivoting for the small dense systems
produced by the hedge optimizer (a handful of hedging instruments, so ``n`` is
rarely above a few dozen).

Algorithm
---------
The square system ``M x = y`` is copied into an owned ``n x (n+1)`` augmented
buffer. For each pivot column ``k``:

1. Pick the row in ``[k, n)`` with the largest ``|a_ik|``. If that maximum is
   below the pivot tolerance the system is singular or near-singular.
2. Swap it into row ``k`` and divide the row by the pivot.
3. Eliminate column ``k`` from every other row, above and below, skipping rows
   whose column-``k`` entry is already effectively zero.

After the last pivot the matrix part is the identity and the augmented column
holds the solution, so no back-substitution pass is needed.

Classes
-------
AugmentedMatrix
    Dimension-checked working buffer with explicit row operations.

Functions
---------
solve_linear_system
    Solve ``M x = y``; raises ``SingularSystemError`` on degenerate pivots.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence, Union

import numpy as np

from ..config import get_settings
from .errors import PreconditionViolation, SingularSystemError

logger = logging.getLogger("HedgeLab.LinearSolver")

ArrayLike = Union[np.ndarray, Sequence[Sequence[float]], Sequence[float]]


class AugmentedMatrix:
    """
    Owned ``n x (n+1)`` working buffer for Gauss-Jordan elimination.

    The coefficient matrix and right-hand side are copied on construction, so
    row operations never touch caller-owned arrays.

    Parameters
    ----------
    matrix : array-like, shape (n, n)
        Coefficient matrix.
    rhs : array-like, shape (n,)
        Right-hand side.

    Raises
    ------
    PreconditionViolation
        If ``matrix`` is not square and non-empty, or ``rhs`` has the wrong
        length.
    """

    def __init__(self, matrix: ArrayLike, rhs: ArrayLike):
        coefficients = np.array(matrix, dtype=float)
        values = np.array(rhs, dtype=float)

        if coefficients.ndim != 2 or coefficients.shape[0] != coefficients.shape[1]:
            raise PreconditionViolation(
                f"Coefficient matrix must be square, got shape {coefficients.shape}"
            )
        if coefficients.shape[0] == 0:
            raise PreconditionViolation("Coefficient matrix must not be empty")
        if values.ndim != 1 or values.shape[0] != coefficients.shape[0]:
            raise PreconditionViolation(
                f"Right-hand side length {values.size} does not match matrix size {coefficients.shape[0]}"
            )

        self.size = coefficients.shape[0]
        self._data = np.empty((self.size, self.size + 1), dtype=float)
        self._data[:, :self.size] = coefficients
        self._data[:, self.size] = values

    def __getitem__(self, index):
        return self._data[index]

    def _check_row(self, row: int) -> None:
        if not 0 <= row < self.size:
            raise IndexError(f"Row {row} outside [0, {self.size})")

    def pivot_row(self, column: int) -> int:
        """Row index in ``[column, n)`` with the largest magnitude in ``column``."""
        self._check_row(column)
        # argmax returns the first maximum, so ties keep the upper row
        return column + int(np.argmax(np.abs(self._data[column:, column])))

    def swap_rows(self, first: int, second: int) -> None:
        self._check_row(first)
        self._check_row(second)
        if first != second:
            self._data[[first, second]] = self._data[[second, first]]

    def normalize_row(self, row: int, column: int) -> None:
        """Divide ``row`` by its entry in ``column`` so the pivot becomes 1."""
        self._check_row(row)
        self._data[row, column:] /= self._data[row, column]

    def eliminate(self, target: int, pivot: int, column: int) -> None:
        """Subtract a multiple of the (normalized) ``pivot`` row from ``target``."""
        self._check_row(target)
        self._check_row(pivot)
        factor = self._data[target, column]
        self._data[target, column:] -= factor * self._data[pivot, column:]

    def solution(self) -> np.ndarray:
        """Copy of the augmented column."""
        return self._data[:, self.size].copy()


def solve_linear_system(
    matrix: ArrayLike,
    rhs: ArrayLike,
    pivot_tolerance: Optional[float] = None,
    skip_tolerance: Optional[float] = None,
) -> np.ndarray:
    """
    Solve ``matrix @ x = rhs`` by Gauss-Jordan elimination with partial pivoting.

    Parameters
    ----------
    matrix : array-like, shape (n, n)
        Square coefficient matrix.
    rhs : array-like, shape (n,)
        Right-hand side.
    pivot_tolerance : float, optional
        Largest pivot magnitude treated as zero. Defaults to
        ``settings.pivot_tolerance`` (1e-15).
    skip_tolerance : float, optional
        Rows whose entry in the pivot column is below this magnitude are left
        untouched. Defaults to ``settings.elimination_skip_tolerance`` (1e-18).

    Returns
    -------
    np.ndarray
        Solution vector of length ``n``.

    Raises
    ------
    PreconditionViolation
        On dimension mismatch.
    SingularSystemError
        If a pivot column has no entry above ``pivot_tolerance``.
    """
    config = get_settings()
    if pivot_tolerance is None:
        pivot_tolerance = config.pivot_tolerance
    if skip_tolerance is None:
        skip_tolerance = config.elimination_skip_tolerance

    augmented = AugmentedMatrix(matrix, rhs)
    n = augmented.size

    for k in range(n):
        piv = augmented.pivot_row(k)
        max_abs = abs(augmented[piv, k])
        if max_abs < pivot_tolerance:
            logger.debug(f"Pivot {max_abs:.3e} in column {k} below tolerance {pivot_tolerance:.1e}")
            raise SingularSystemError(
                f"Matrix is singular or near-singular: ill-conditioned system at column {k} "
                f"(pivot {max_abs:.3e} < {pivot_tolerance:.1e})"
            )

        augmented.swap_rows(k, piv)
        augmented.normalize_row(k, k)

        for i in range(n):
            if i == k:
                continue
            if abs(augmented[i, k]) < skip_tolerance:
                continue
            augmented.eliminate(i, k, k)

    return augmented.solution()
