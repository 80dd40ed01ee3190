"""
Key-Rate Sensitivities
======================

Measures how an instrument's present value responds to rate shocks confined
to narrow regions of the curve around a set of key maturities (2Y, 5Y, 10Y,
...). The result is one sensitivity per key, in price units per basis point.

Localized Bump
--------------
Each key ``k`` owns a piecewise-linear "tent" weight ``w_k(t)`` that is 1 at
the key and falls to 0 at the neighbouring keys. The discount factor at each
cashflow time is shocked multiplicatively by the weighted bump:

    DF_bumped(t) = DF(t) * exp(-/+ delta * w_k(t) * t),   delta = bump_bp / 10000

and the key sensitivity is the central difference

    KRD_k = (P(-delta) - P(+delta)) / 2

Boundary Keys
-------------
The neighbours of the first and last keys clamp to the key itself, so the
tent degenerates to a one-sided ramp there:

- first key: weight is 0 for every ``t <= keys[0]`` and falls from 1 to 0 over
  ``(keys[0], keys[1])``;
- last key: weight rises over ``(keys[-2], keys[-1])`` and is 0 for every
  ``t >= keys[-1]``;
- a single-key grid has weight 0 everywhere.

Cashflows outside ``(keys[0], keys[-1])`` therefore contribute to no key, and
the sum of key sensitivities only approximates the parallel DV01.

Example
-------
>>> curve = ZeroCurve(NelsonSiegelSvensson(0.03, -0.006, 0.004, 0.0, 1.5, 5.0))
>>> cashflows = [(0.5, 1.5), (1.0, 1.5), (1.5, 101.5)]
>>> result = compute_key_rate_sensitivities(cashflows, curve, [1.0, 2.0, 5.0])
>>> result.ok, len(result.value)
(True, 3)
"""

from __future__ import annotations

import logging
import math
import numbers
from dataclasses import dataclass
from typing import Callable, Iterable, Iterator, Optional, Sequence, Tuple

import numpy as np

from ..config import get_settings
from .errors import (
    CalculationResult,
    HedgeLabError,
    NonFiniteValueError,
    PreconditionViolation,
)

logger = logging.getLogger("HedgeLab.KeyRate")

DiscountFunction = Callable[[float], float]
Cashflow = Tuple[float, float]


@dataclass(frozen=True)
class KeyMaturityGrid:
    """
    Strictly ascending key maturities in years.

    Attributes
    ----------
    tenors : tuple of float
        Positive, finite, strictly ascending maturities; at least one.

    Raises
    ------
    PreconditionViolation
        If the grid is empty, unsorted, contains duplicates, or has
        non-positive / non-finite entries.
    """
    tenors: Tuple[float, ...]

    def __post_init__(self):
        try:
            tenors = tuple(float(t) for t in self.tenors)
        except (TypeError, ValueError) as exc:
            raise PreconditionViolation(f"Key maturities must be numbers, got {self.tenors!r}") from exc
        if len(tenors) == 0:
            raise PreconditionViolation("Key grid must be non-empty and ascending")
        for tenor in tenors:
            if not math.isfinite(tenor) or tenor <= 0:
                raise PreconditionViolation(f"Key maturities must be positive and finite, got {tenor}")
        for earlier, later in zip(tenors, tenors[1:]):
            if later <= earlier:
                raise PreconditionViolation(
                    f"Key grid must be strictly ascending, got {earlier} followed by {later}"
                )
        object.__setattr__(self, "tenors", tenors)

    @classmethod
    def of(cls, keys: Iterable[float]) -> "KeyMaturityGrid":
        """Build a grid from any iterable, passing existing grids through."""
        if isinstance(keys, cls):
            return keys
        if keys is None:
            raise PreconditionViolation("Key grid must be non-empty and ascending")
        if isinstance(keys, (str, bytes)):
            raise PreconditionViolation(f"Key grid must be a sequence of maturities, got {keys!r}")
        try:
            tenors = tuple(keys)
        except TypeError as exc:
            raise PreconditionViolation(f"Key grid must be a sequence of maturities, got {keys!r}") from exc
        return cls(tenors)

    def __len__(self) -> int:
        return len(self.tenors)

    def __iter__(self) -> Iterator[float]:
        return iter(self.tenors)

    def __getitem__(self, index: int) -> float:
        return self.tenors[index]

    def neighbours(self, k: int) -> Tuple[float, float, float]:
        """Return ``(prev, key, next)`` for key index ``k`` with clamped ends."""
        last = len(self.tenors) - 1
        key = self.tenors[k]
        prev = self.tenors[k - 1] if k > 0 else self.tenors[0]
        nxt = self.tenors[k + 1] if k < last else self.tenors[last]
        return prev, key, nxt


def tent_weight(t: float, k: int, grid: KeyMaturityGrid) -> float:
    """
    Piecewise-linear tent weight of key ``k`` at time ``t``.

    Parameters
    ----------
    t : float
        Cashflow time in years.
    k : int
        Key index into ``grid``.
    grid : KeyMaturityGrid
        Key maturities.

    Returns
    -------
    float
        Weight in ``[0, 1]``: 0 for ``t <= prev`` or ``t >= next``, rising over
        ``(prev, key]``, falling over ``(key, next)``.
    """
    prev, key, nxt = grid.neighbours(k)

    if t <= prev or t >= nxt:
        return 0.0
    if t <= key:
        width = key - prev
        if width <= 0:
            return 0.0
        return (t - prev) / width
    width = nxt - key
    if width <= 0:
        return 0.0
    return (nxt - t) / width


def tent_weight_matrix(times: Sequence[float], grid: KeyMaturityGrid) -> np.ndarray:
    """
    Tent weights for every key and time.

    Returns
    -------
    np.ndarray, shape (len(grid), len(times))
        ``weights[k, i] = tent_weight(times[i], k, grid)``.
    """
    weights = np.zeros((len(grid), len(times)), dtype=float)
    for k in range(len(grid)):
        for i, t in enumerate(times):
            weights[k, i] = tent_weight(float(t), k, grid)
    return weights


def _prepare_cashflows(cashflows: Iterable[Cashflow]) -> Tuple[np.ndarray, np.ndarray]:
    """Split ``(t, amount)`` pairs into arrays, dropping non-positive times."""
    times = []
    amounts = []
    dropped = 0
    for event in cashflows:
        try:
            t, amount = event
            t = float(t)
            amount = float(amount)
        except (TypeError, ValueError) as exc:
            raise PreconditionViolation(f"Cashflow must be a (time, amount) pair of numbers, got {event!r}") from exc
        if t > 0:
            times.append(t)
            amounts.append(amount)
        else:
            dropped += 1
    if dropped:
        logger.debug(f"Dropped {dropped} cashflow(s) at or before settlement")
    return np.array(times, dtype=float), np.array(amounts, dtype=float)


def validate_bump_bp(bump_bp: Optional[float]) -> float:
    """Return ``bump_bp`` as a positive finite float, defaulting from settings."""
    if bump_bp is None:
        bump_bp = get_settings().default_bump_bp
    if not isinstance(bump_bp, numbers.Real):
        raise PreconditionViolation(f"bump_bp must be a number, got {bump_bp!r}")
    bump = float(bump_bp)
    if not math.isfinite(bump) or bump <= 0:
        raise PreconditionViolation(f"bump_bp must be positive and finite, got {bump}")
    return bump


def _discounted_amounts(
    times: np.ndarray,
    amounts: np.ndarray,
    discount_factor: DiscountFunction,
    check_finite: bool,
) -> np.ndarray:
    dfs = np.array([discount_factor(float(t)) for t in times], dtype=float)
    if check_finite and not np.all(np.isfinite(dfs)):
        raise NonFiniteValueError("Discount function returned NaN or Inf")
    return amounts * dfs


def _central_difference(pv: np.ndarray, times: np.ndarray, shock: np.ndarray) -> float:
    """``(P(-delta) - P(+delta)) / 2`` for a per-cashflow shock ``delta * w(t)``."""
    p_up = float(np.sum(pv * np.exp(-shock * times)))
    p_dn = float(np.sum(pv * np.exp(shock * times)))
    return (p_dn - p_up) / 2.0


def compute_key_rate_sensitivities(
    cashflows: Iterable[Cashflow],
    discount_factor: DiscountFunction,
    keys: Iterable[float],
    bump_bp: Optional[float] = None,
) -> CalculationResult:
    """
    Compute localized key-rate sensitivities (key-rate DV01s).

    Parameters
    ----------
    cashflows : iterable of (time, amount)
        Cashflow times in years and amounts. Events at ``t <= 0`` are ignored.
    discount_factor : callable
        ``discount_factor(t) -> float``; a :class:`ZeroCurve` works directly.
    keys : iterable of float or KeyMaturityGrid
        Strictly ascending key maturities in years (e.g. 2, 5, 7, 10, 20, 30).
    bump_bp : float, optional
        Bump size in basis points. Defaults to ``settings.default_bump_bp``.

    Returns
    -------
    CalculationResult
        ``value`` is a read-only array with one sensitivity per key, in price
        units per ``bump_bp``. ``error`` is ``PRECONDITION_VIOLATION`` for an
        invalid grid, bump or cashflow, and ``NON_FINITE_VALUE`` when the
        finite guard is enabled and trips.
    """
    check_finite = get_settings().check_finite

    try:
        grid = KeyMaturityGrid.of(keys)
        bump = validate_bump_bp(bump_bp)
        times, amounts = _prepare_cashflows(cashflows)
        pv = _discounted_amounts(times, amounts, discount_factor, check_finite)

        delta = bump / 10000.0
        weights = tent_weight_matrix(times, grid)
        sensitivities = np.array(
            [_central_difference(pv, times, delta * weights[k]) for k in range(len(grid))],
            dtype=float,
        )
        if check_finite and not np.all(np.isfinite(sensitivities)):
            raise NonFiniteValueError("Key-rate sensitivities contain NaN or Inf")
    except HedgeLabError as exc:
        logger.warning(f"Key-rate computation failed ({exc.kind.value}): {exc}")
        return CalculationResult.from_exception(exc)

    sensitivities.flags.writeable = False
    logger.debug(
        f"Key-rate sensitivities for {times.size} cashflows over {len(grid)} keys: "
        f"total {sensitivities.sum():.6f} per {bump:g}bp"
    )
    return CalculationResult.success(sensitivities)


def parallel_sensitivity(
    cashflows: Iterable[Cashflow],
    discount_factor: DiscountFunction,
    bump_bp: Optional[float] = None,
) -> float:
    """
    Sensitivity to a uniform shock applied at every cashflow time.

    Same central difference as the key-rate computation with ``w(t) = 1``,
    i.e. a true parallel DV01.

    Raises
    ------
    PreconditionViolation
        On an invalid bump or malformed cashflow.
    """
    bump = validate_bump_bp(bump_bp)
    times, amounts = _prepare_cashflows(cashflows)
    pv = _discounted_amounts(times, amounts, discount_factor, get_settings().check_finite)
    return _central_difference(pv, times, np.full(times.shape, bump / 10000.0))
