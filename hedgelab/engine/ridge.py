"""
Ridge-Regularized Least Squares
===============================

Solves ``min_w ||A w - b||_2^2 + lambda ||w||_2^2`` for the hedge optimizer.

- ``A`` is the (m x n) design matrix: rows are key maturities, columns are
  hedging instruments' key-rate sensitivity vectors.
- ``b`` is the (m) target sensitivity vector.
- ``w`` is the (n) vector of hedge weights.

Formula
-------
Normal equations with a ridge on the diagonal:

    (A^T A + lambda I) w = A^T b

Forming ``A^T A`` squares the condition number of ``A``. That is acceptable
here because ``n`` is small and the ridge restores strict positive
definiteness; the resulting ``n x n`` system is handed to
:func:`~hedgelab.engine.linear_solver.solve_linear_system`.

Example
-------
>>> A = np.array([[1.0, 0.0], [0.0, 1.0], [1.0, 1.0]])
>>> b = A @ np.array([2.0, -1.0])
>>> w = ridge_least_squares(A, b, ridge_lambda=1e-12).unwrap()
>>> np.allclose(w, [2.0, -1.0])
True
"""

from __future__ import annotations

import logging
import math
import numbers
from typing import Optional, Sequence, Tuple, Union

import numpy as np

from ..config import get_solver_parameters
from .errors import CalculationResult, HedgeLabError, PreconditionViolation
from .linear_solver import solve_linear_system

logger = logging.getLogger("HedgeLab.Ridge")

MatrixLike = Union[np.ndarray, Sequence[Sequence[float]]]
VectorLike = Union[np.ndarray, Sequence[float]]


def validate_ridge_lambda(ridge_lambda: float) -> float:
    """Return ``ridge_lambda`` as a finite non-negative float."""
    if not isinstance(ridge_lambda, numbers.Real) or not math.isfinite(ridge_lambda) or ridge_lambda < 0:
        raise PreconditionViolation(f"ridge_lambda must be a finite non-negative number, got {ridge_lambda!r}")
    return float(ridge_lambda)


def _validate_inputs(A: MatrixLike, b: VectorLike, ridge_lambda: float) -> Tuple[np.ndarray, np.ndarray]:
    try:
        design = np.array(A, dtype=float)
        target = np.array(b, dtype=float)
    except (TypeError, ValueError) as exc:
        raise PreconditionViolation(f"A and b must be numeric arrays: {exc}") from exc

    if design.ndim != 2 or design.shape[0] == 0 or design.shape[1] == 0:
        raise PreconditionViolation(f"Design matrix must be a non-empty 2-D array, got shape {design.shape}")
    if target.ndim != 1 or target.shape[0] != design.shape[0]:
        raise PreconditionViolation(
            f"b length must match A rows: len(b)={target.size}, rows={design.shape[0]}"
        )
    validate_ridge_lambda(ridge_lambda)
    return design, target


def normal_equations(
    A: MatrixLike,
    b: VectorLike,
    ridge_lambda: float,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Build ``(A^T A + lambda I, A^T b)``.

    Only the upper triangle of ``A^T A`` is computed; each entry is mirrored
    into the lower triangle.

    Parameters
    ----------
    A : array-like, shape (m, n)
        Design matrix.
    b : array-like, shape (m,)
        Target vector.
    ridge_lambda : float
        Non-negative ridge term added to every diagonal entry.

    Returns
    -------
    AtA : np.ndarray, shape (n, n)
    Atb : np.ndarray, shape (n,)

    Raises
    ------
    PreconditionViolation
        On malformed dimensions or an invalid ridge term.
    """
    design, target = _validate_inputs(A, b, ridge_lambda)
    n = design.shape[1]

    AtA = np.zeros((n, n), dtype=float)
    Atb = np.zeros(n, dtype=float)

    for i in range(n):
        column_i = design[:, i]
        for j in range(i, n):
            AtA[i, j] = AtA[j, i] = float(np.dot(column_i, design[:, j]))
        AtA[i, i] += ridge_lambda
        Atb[i] = float(np.dot(column_i, target))

    return AtA, Atb


def ridge_least_squares(
    A: MatrixLike,
    b: VectorLike,
    ridge_lambda: Optional[float] = None,
) -> CalculationResult:
    """
    Solve the ridge-regularized least-squares problem for hedge weights.

    Parameters
    ----------
    A : array-like, shape (m, n)
        Design matrix; column ``j`` is hedging instrument ``j``'s sensitivity
        vector.
    b : array-like, shape (m,)
        Target sensitivity vector.
    ridge_lambda : float, optional
        Ridge term. Defaults to ``settings.default_ridge_lambda`` (1e-8).
        Zero is allowed but gives no protection against singular ``A^T A``.

    Returns
    -------
    CalculationResult
        ``value`` is a read-only weight vector of length ``n``. ``error`` is
        ``PRECONDITION_VIOLATION`` for malformed inputs and
        ``SINGULAR_SYSTEM`` when elimination hits a degenerate pivot.
    """
    params = get_solver_parameters()
    if ridge_lambda is None:
        ridge_lambda = params["ridge_lambda"]

    try:
        AtA, Atb = normal_equations(A, b, ridge_lambda)
        weights = solve_linear_system(
            AtA, Atb, params["pivot_tolerance"], params["elimination_skip_tolerance"]
        )
    except HedgeLabError as exc:
        logger.warning(f"Least-squares solve failed ({exc.kind.value}): {exc}")
        return CalculationResult.from_exception(exc)

    weights.flags.writeable = False
    logger.debug(f"Solved {AtA.shape[0]} hedge weights with ridge {ridge_lambda:g}")
    return CalculationResult.success(weights)
