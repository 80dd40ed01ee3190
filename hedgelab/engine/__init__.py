"""
HedgeLab Key-Rate Hedging Engine
================================

This package computes localized key-rate sensitivities for fixed-income
instruments and solves for hedge weights that match them. The workflow is:

1. **Discounting**: A zero curve (:class:`ZeroCurve` over Nelson-Siegel-Svensson
   or a PCHIP pillar curve) supplies ``DF(t)``.
2. **Cashflows**: An instrument (:class:`FixedCouponBond`) produces
   ``(year_fraction, amount)`` pairs.
3. **Key-Rate Sensitivities**: Tent-weighted bump/reprice at each key maturity
   gives one sensitivity vector per instrument.
4. **Hedge Solve**: Hedgers' vectors form the design matrix of a
   ridge-regularized least-squares problem solved by Gauss-Jordan elimination.

Public operations return :class:`CalculationResult` values; branch on
``result.error`` or call ``result.unwrap()`` to get the value or raise.

Example
-------
>>> from hedgelab.engine import compute_key_rate_sensitivities, ridge_least_squares
>>> b = compute_key_rate_sensitivities(target_cfs, curve, [2, 5, 7, 10, 20, 30]).unwrap()
>>> A = np.column_stack([
...     compute_key_rate_sensitivities(cfs, curve, [2, 5, 7, 10, 20, 30]).unwrap()
...     for cfs in hedge_cfs
... ])
>>> weights = ridge_least_squares(A, b).unwrap()

See Also
--------
key_rate.compute_key_rate_sensitivities : Localized key-rate bump/reprice.
ridge.ridge_least_squares : Normal equations with ridge term.
linear_solver.solve_linear_system : Pivoted Gauss-Jordan elimination.
hedging.HedgePipeline : End-to-end hedge construction.
"""

from __future__ import annotations

from .curves import NelsonSiegelSvensson, PillarCurve, ZeroCurve
from .errors import (
    CalculationResult,
    ErrorKind,
    HedgeLabError,
    NonFiniteValueError,
    PreconditionViolation,
    SingularSystemError,
)
from .hedging import HedgePipeline, HedgePortfolio, hedge_bond
from .instruments import FixedCouponBond, year_fraction
from .key_rate import (
    KeyMaturityGrid,
    compute_key_rate_sensitivities,
    parallel_sensitivity,
    tent_weight,
    tent_weight_matrix,
    validate_bump_bp,
)
from .linear_solver import AugmentedMatrix, solve_linear_system
from .ridge import normal_equations, ridge_least_squares, validate_ridge_lambda

__all__ = [
    # Errors & results
    "CalculationResult",
    "ErrorKind",
    "HedgeLabError",
    "NonFiniteValueError",
    "PreconditionViolation",
    "SingularSystemError",
    # Curves
    "NelsonSiegelSvensson",
    "PillarCurve",
    "ZeroCurve",
    # Instruments
    "FixedCouponBond",
    "year_fraction",
    # Key-rate sensitivities
    "KeyMaturityGrid",
    "compute_key_rate_sensitivities",
    "parallel_sensitivity",
    "tent_weight",
    "tent_weight_matrix",
    "validate_bump_bp",
    # Solver
    "AugmentedMatrix",
    "normal_equations",
    "ridge_least_squares",
    "solve_linear_system",
    "validate_ridge_lambda",
    # Hedging
    "HedgePipeline",
    "HedgePortfolio",
    "hedge_bond",
]
