"""
Key-Rate Hedge Pipeline
=======================

Composes the key-rate engine and the ridge solver into a hedge:

1. Compute the target instrument's key-rate sensitivity vector ``b`` (m keys).
2. Compute each hedging instrument's vector and stack them as the columns of
   the design matrix ``A`` (m x n).
3. Solve ``(A^T A + lambda I) w = A^T b`` for the hedge weights ``w``.
4. Report the hedged profile ``A w`` and residual ``A w - b``.

Weights are in units of the hedging instrument (notional multiples of one
bond), with the same sign convention as the target: holding ``-w`` of the
hedgers offsets the target's key-rate exposure.

Classes
-------
HedgePortfolio
    Solved weights with residual diagnostics and pandas views.
HedgePipeline
    Reusable pipeline bound to one curve and key grid.

Functions
---------
hedge_bond
    Convenience wrapper over :class:`FixedCouponBond` instruments.

Example
-------
>>> curve = ZeroCurve(NelsonSiegelSvensson(0.030, -0.006, 0.004, 0.0, 1.5, 5.0))
>>> target = FixedCouponBond(date(2025, 1, 2), date(2030, 1, 2), 0.03)
>>> hedgers = {
...     "2Y": FixedCouponBond(date(2025, 1, 2), date(2027, 1, 2), 0.03),
...     "10Y": FixedCouponBond(date(2025, 1, 2), date(2035, 1, 2), 0.03),
... }
>>> portfolio = hedge_bond(target, hedgers, curve).unwrap()
>>> print(portfolio.to_frame())
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass
from typing import Dict, Iterable, Mapping, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from ..config import get_settings
from .curves import ZeroCurve
from .errors import CalculationResult, ErrorKind, PreconditionViolation
from .instruments import FixedCouponBond
from .key_rate import (
    Cashflow,
    DiscountFunction,
    KeyMaturityGrid,
    compute_key_rate_sensitivities,
    validate_bump_bp,
)
from .ridge import ridge_least_squares, validate_ridge_lambda

logger = logging.getLogger("HedgeLab.Hedging")

# Floor on ||b|| when normalizing the residual.
RESIDUAL_NORM_FLOOR = 1e-12


@dataclass(frozen=True)
class HedgePortfolio:
    """
    Result of a key-rate hedge.

    Attributes
    ----------
    keys : tuple of float
        Key maturities (row labels).
    instruments : tuple of str
        Hedging instrument names (column labels).
    target : np.ndarray, shape (m,)
        Target sensitivity vector.
    design_matrix : np.ndarray, shape (m, n)
        Hedging instruments' sensitivity vectors as columns.
    weights : np.ndarray, shape (n,)
        Solved hedge weights.
    ridge_lambda : float
        Ridge term used in the solve.
    """
    keys: Tuple[float, ...]
    instruments: Tuple[str, ...]
    target: np.ndarray
    design_matrix: np.ndarray
    weights: np.ndarray
    ridge_lambda: float

    @property
    def hedge_profile(self) -> np.ndarray:
        """Key-rate profile replicated by the hedge, ``A w``."""
        return self.design_matrix @ self.weights

    @property
    def residual(self) -> np.ndarray:
        """Unhedged key-rate exposure, ``A w - b``."""
        return self.hedge_profile - self.target

    @property
    def residual_ratio(self) -> float:
        """``||A w - b|| / ||b||`` (denominator floored at 1e-12)."""
        return float(np.linalg.norm(self.residual) / max(RESIDUAL_NORM_FLOOR, np.linalg.norm(self.target)))

    def weights_series(self) -> pd.Series:
        """Hedge weights indexed by instrument name."""
        return pd.Series(self.weights, index=list(self.instruments), name="weight")

    def to_frame(self) -> pd.DataFrame:
        """
        Per-key comparison of target and hedge.

        Returns
        -------
        pd.DataFrame
            Indexed by key tenor with ``target``, ``hedge`` and ``residual``
            columns plus one column per hedging instrument's sensitivities.
        """
        df = pd.DataFrame(
            self.design_matrix,
            index=pd.Index(self.keys, name="key_tenor"),
            columns=list(self.instruments),
        )
        df.insert(0, "target", self.target)
        df.insert(1, "hedge", self.hedge_profile)
        df.insert(2, "residual", self.residual)
        return df


class HedgePipeline:
    """
    Key-rate hedge pipeline bound to a discount function and key grid.

    Parameters
    ----------
    discount_factor : callable
        ``discount_factor(t) -> float``; a :class:`ZeroCurve` works directly.
    keys : iterable of float or KeyMaturityGrid, optional
        Key maturities. Defaults to ``settings.default_key_tenors``.
    bump_bp : float, optional
        Key-rate bump size. Defaults to ``settings.default_bump_bp``.
    ridge_lambda : float, optional
        Ridge term. Defaults to ``settings.default_ridge_lambda``.

    Raises
    ------
    PreconditionViolation
        If the key grid, bump size or ridge term is invalid.
    """

    def __init__(
        self,
        discount_factor: DiscountFunction,
        keys: Optional[Iterable[float]] = None,
        bump_bp: Optional[float] = None,
        ridge_lambda: Optional[float] = None,
    ):
        config = get_settings()
        self.discount_factor = discount_factor
        self.grid = KeyMaturityGrid.of(config.default_key_tenors if keys is None else keys)
        self.bump_bp = validate_bump_bp(bump_bp)
        self.ridge_lambda = validate_ridge_lambda(
            config.default_ridge_lambda if ridge_lambda is None else ridge_lambda
        )

    def sensitivities(self, cashflows: Iterable[Cashflow]) -> CalculationResult:
        """Key-rate sensitivity vector of one cashflow stream."""
        return compute_key_rate_sensitivities(cashflows, self.discount_factor, self.grid, self.bump_bp)

    def design_matrix(self, streams: Sequence[Iterable[Cashflow]]) -> CalculationResult:
        """
        Stack sensitivity vectors of ``streams`` as columns.

        Returns
        -------
        CalculationResult
            ``value`` is a read-only (m x n) array; the first failing stream's
            error is returned unchanged.
        """
        if len(streams) == 0:
            return CalculationResult.failure(
                ErrorKind.PRECONDITION_VIOLATION, "At least one hedging instrument is required"
            )

        columns = []
        for j, stream in enumerate(streams):
            result = self.sensitivities(stream)
            if not result.ok:
                logger.warning(f"Hedging instrument {j} failed: {result.message}")
                return result
            columns.append(result.value)

        matrix = np.column_stack(columns)
        matrix.flags.writeable = False
        return CalculationResult.success(matrix)

    def run(
        self,
        target_cashflows: Iterable[Cashflow],
        hedge_cashflows: Mapping[str, Iterable[Cashflow]],
    ) -> CalculationResult:
        """
        Hedge a target cashflow stream with named hedging streams.

        Parameters
        ----------
        target_cashflows : iterable of (time, amount)
            Instrument to hedge.
        hedge_cashflows : mapping of name -> iterable of (time, amount)
            Hedging instruments; column order follows the mapping's order.

        Returns
        -------
        CalculationResult
            ``value`` is a :class:`HedgePortfolio`; otherwise the error kind of
            the first failing stage.
        """
        target = self.sensitivities(target_cashflows)
        if not target.ok:
            logger.warning(f"Target sensitivities failed: {target.message}")
            return target

        names = tuple(str(name) for name in hedge_cashflows)
        design = self.design_matrix([list(stream) for stream in hedge_cashflows.values()])
        if not design.ok:
            return design

        solved = ridge_least_squares(design.value, target.value, self.ridge_lambda)
        if not solved.ok:
            logger.warning(f"Hedge solve failed at ridge {self.ridge_lambda:g}: {solved.message}")
            return solved

        portfolio = HedgePortfolio(
            keys=self.grid.tenors,
            instruments=names,
            target=target.value,
            design_matrix=design.value,
            weights=solved.value,
            ridge_lambda=self.ridge_lambda,
        )
        logger.info(
            f"Hedged {len(self.grid)} keys with {len(names)} instruments: "
            f"residual ratio {portfolio.residual_ratio:.4f}"
        )
        return CalculationResult.success(portfolio)


def _label_by_maturity(bonds: Sequence[FixedCouponBond]) -> Dict[str, FixedCouponBond]:
    """One entry per bond, keyed by ISO maturity; repeated maturities get ``#<index>``."""
    bonds = list(bonds)
    counts = Counter(bond.maturity for bond in bonds)
    labelled = {}
    for index, bond in enumerate(bonds):
        label = bond.maturity.isoformat()
        if counts[bond.maturity] > 1:
            label = f"{label}#{index}"
        labelled[label] = bond
    return labelled


def hedge_bond(
    target: FixedCouponBond,
    hedges: Union[Mapping[str, FixedCouponBond], Sequence[FixedCouponBond]],
    curve: ZeroCurve,
    keys: Optional[Iterable[float]] = None,
    bump_bp: Optional[float] = None,
    ridge_lambda: Optional[float] = None,
) -> CalculationResult:
    """
    Hedge a bond's key-rate exposure with other bonds.

    Parameters
    ----------
    target : FixedCouponBond
        Bond to hedge.
    hedges : mapping of name -> FixedCouponBond, or sequence of bonds
        Hedging bonds. A sequence is labelled by maturity date; bonds sharing
        a maturity are suffixed with their position, e.g. ``2035-01-02#1``.
    curve : ZeroCurve
        Discount curve.
    keys, bump_bp, ridge_lambda
        Passed to :class:`HedgePipeline`.

    Returns
    -------
    CalculationResult
        ``value`` is a :class:`HedgePortfolio`.
    """
    if not isinstance(hedges, Mapping):
        hedges = _label_by_maturity(hedges)

    try:
        pipeline = HedgePipeline(curve, keys, bump_bp, ridge_lambda)
    except PreconditionViolation as exc:
        return CalculationResult.from_exception(exc)

    hedge_streams = {name: bond.timed_cashflows() for name, bond in hedges.items()}
    return pipeline.run(target.timed_cashflows(), hedge_streams)
