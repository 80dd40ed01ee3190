"""
Zero Curves
===========

Discount-factor oracles consumed by the key-rate engine. Any smooth model
mapping maturity to a discount factor satisfies the contract; two are
provided:

1. **Nelson-Siegel-Svensson**: parametric zero rate

       r(t) = b0
            + b1 * (1 - e^{-t/tau1}) / (t/tau1)
            + b2 * ((1 - e^{-t/tau1}) / (t/tau1) - e^{-t/tau1})
            + b3 * ((1 - e^{-t/tau2}) / (t/tau2) - e^{-t/tau2})

2. **Pillar curve**: zero rates at pillar tenors joined by a monotone
   (shape-preserving) PCHIP interpolant.

Both use continuous compounding: ``DF(t) = exp(-r(t) * t)``. Rates are
decimals (0.03 = 3%), times are years.

Classes
-------
NelsonSiegelSvensson
    Parametric zero-rate model.
PillarCurve
    PCHIP-interpolated zero rates with flat extrapolation.
ZeroCurve
    Thin wrapper so callers do not depend on the underlying model.

Example
-------
>>> curve = ZeroCurve(NelsonSiegelSvensson(0.03, -0.006, 0.004, 0.0, 1.5, 5.0))
>>> round(curve.discount_factor(5.0), 4)
0.8638
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import List, Union

import numpy as np
from scipy.interpolate import PchipInterpolator

from .errors import PreconditionViolation

logger = logging.getLogger("HedgeLab.Curves")

# Below this maturity the NSS loadings are replaced by their t -> 0 limit.
SHORT_END_CUTOFF = 1e-10


@dataclass(frozen=True)
class NelsonSiegelSvensson:
    """
    Nelson-Siegel-Svensson zero-rate model.

    Attributes
    ----------
    beta0 : float
        Long-run level.
    beta1 : float
        Short-end loading; ``beta0 + beta1`` is the instantaneous rate.
    beta2 : float
        First hump loading (decay ``tau1``).
    beta3 : float
        Second hump loading (decay ``tau2``).
    tau1 : float
        First decay scale in years, must be positive.
    tau2 : float
        Second decay scale in years, must be positive.
    """
    beta0: float
    beta1: float
    beta2: float
    beta3: float
    tau1: float
    tau2: float

    def __post_init__(self):
        if self.tau1 <= 0 or self.tau2 <= 0:
            raise PreconditionViolation(f"tau1 and tau2 must be positive, got {self.tau1}, {self.tau2}")

    def zero_rate(self, t_years: float) -> float:
        """Continuously compounded zero rate at ``t_years``."""
        if t_years <= SHORT_END_CUTOFF:
            return self.beta0 + self.beta1

        x1 = t_years / self.tau1
        x2 = t_years / self.tau2

        term1 = (1.0 - math.exp(-x1)) / x1
        term2 = term1 - math.exp(-x1)
        term3 = (1.0 - math.exp(-x2)) / x2 - math.exp(-x2)

        return self.beta0 + self.beta1 * term1 + self.beta2 * term2 + self.beta3 * term3

    def discount_factor(self, t_years: float) -> float:
        """``P(0, t) = exp(-r(t) * t)``."""
        return math.exp(-self.zero_rate(t_years) * t_years)


@dataclass
class PillarCurve:
    """
    Zero curve interpolated between pillar points with PCHIP.

    PCHIP preserves the monotonicity of the pillar rates, so no spurious
    oscillations appear between pillars. Outside the pillar range the rate is
    held flat at the nearest pillar.

    Attributes
    ----------
    tenors : list of float
        Pillar maturities in years, strictly ascending, at least two.
    zero_rates : list of float
        Continuously compounded zero rates at the pillars.
    """
    tenors: List[float]
    zero_rates: List[float]
    _interpolator: PchipInterpolator = field(init=False, repr=False)

    def __post_init__(self):
        tenors = np.asarray(self.tenors, dtype=float)
        rates = np.asarray(self.zero_rates, dtype=float)

        if tenors.ndim != 1 or tenors.size < 2:
            raise PreconditionViolation("Pillar curve needs at least two tenors")
        if rates.shape != tenors.shape:
            raise PreconditionViolation(
                f"Got {tenors.size} tenors but {rates.size} zero rates"
            )
        if np.any(np.diff(tenors) <= 0):
            raise PreconditionViolation("Pillar tenors must be strictly ascending")

        self.tenors = tenors.tolist()
        self.zero_rates = rates.tolist()
        self._interpolator = PchipInterpolator(tenors, rates, extrapolate=False)

    def zero_rate(self, t_years: float) -> float:
        if t_years <= self.tenors[0]:
            return self.zero_rates[0]
        if t_years >= self.tenors[-1]:
            return self.zero_rates[-1]
        return float(self._interpolator(t_years))

    def discount_factor(self, t_years: float) -> float:
        if t_years <= 0:
            return 1.0
        return math.exp(-self.zero_rate(t_years) * t_years)


CurveModel = Union[NelsonSiegelSvensson, PillarCurve]


class ZeroCurve:
    """
    Model-agnostic zero curve.

    Wraps a :class:`NelsonSiegelSvensson` or :class:`PillarCurve` so callers can
    swap the model without changing code. Instances are callable and return
    the discount factor, which lets a curve be passed straight to
    :func:`~hedgelab.engine.key_rate.compute_key_rate_sensitivities`.
    """

    def __init__(self, model: CurveModel):
        self._model = model
        logger.debug(f"Zero curve built on {type(model).__name__}")

    @property
    def model(self) -> CurveModel:
        return self._model

    def zero_rate(self, t_years: float) -> float:
        return self._model.zero_rate(t_years)

    def discount_factor(self, t_years: float) -> float:
        return self._model.discount_factor(t_years)

    def __call__(self, t_years: float) -> float:
        return self.discount_factor(t_years)
