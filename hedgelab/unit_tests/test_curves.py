"""
Zero Curve Tests
================

Sanity checks for the discount-factor oracles:
- Nelson-Siegel-Svensson rates, discount factors and short-end limit
- PCHIP pillar curve reproduction, monotonicity and flat extrapolation
- ZeroCurve wrapper behaviour
"""

import numpy as np
import pytest

from hedgelab.engine.curves import NelsonSiegelSvensson, PillarCurve, ZeroCurve
from hedgelab.engine.errors import PreconditionViolation


@pytest.fixture
def nss_curve() -> ZeroCurve:
    """Plausible curve: long end ~3%, slight downward slope at the front, mild hump."""
    return ZeroCurve(NelsonSiegelSvensson(0.03, -0.01, 0.005, 0.0, 1.5, 5.0))


@pytest.fixture
def pillar_curve() -> PillarCurve:
    return PillarCurve(
        tenors=[1.0, 2.0, 5.0, 10.0, 30.0],
        zero_rates=[0.020, 0.025, 0.030, 0.032, 0.033],
    )


# =============================================================================
# Nelson-Siegel-Svensson
# =============================================================================

class TestNelsonSiegelSvensson:
    """Tests for the parametric curve."""

    def test_zero_rates_are_reasonable(self, nss_curve):
        for tenor in (0.25, 1.0, 2.0, 5.0, 10.0, 30.0):
            assert -0.05 <= nss_curve.zero_rate(tenor) <= 0.20

    def test_discount_factors_decrease_with_maturity(self, nss_curve):
        d1 = nss_curve.discount_factor(1.0)
        d2 = nss_curve.discount_factor(2.0)
        d5 = nss_curve.discount_factor(5.0)

        assert d1 > d2 > d5
        assert 0.0 < d1 < 1.0

    def test_short_end_limit_is_beta0_plus_beta1(self, nss_curve):
        assert nss_curve.zero_rate(1e-12) == pytest.approx(0.03 - 0.01, abs=1e-8)

    def test_discount_factor_at_zero_is_one(self, nss_curve):
        assert nss_curve.discount_factor(0.0) == 1.0

    def test_long_end_tends_to_beta0(self, nss_curve):
        assert nss_curve.zero_rate(500.0) == pytest.approx(0.03, abs=1e-4)

    @pytest.mark.parametrize("tau1, tau2", [(0.0, 5.0), (1.5, -1.0)])
    def test_non_positive_tau_rejected(self, tau1, tau2):
        with pytest.raises(PreconditionViolation, match="tau"):
            NelsonSiegelSvensson(0.03, -0.01, 0.005, 0.0, tau1, tau2)


# =============================================================================
# Pillar Curve
# =============================================================================

class TestPillarCurve:
    """Tests for the PCHIP-interpolated curve."""

    def test_reproduces_pillars(self, pillar_curve):
        for tenor, rate in zip(pillar_curve.tenors, pillar_curve.zero_rates):
            assert pillar_curve.zero_rate(tenor) == pytest.approx(rate, abs=1e-14)

    def test_monotone_between_monotone_pillars(self, pillar_curve):
        rates = [pillar_curve.zero_rate(t) for t in np.linspace(1.0, 30.0, 200)]

        assert np.all(np.diff(rates) >= -1e-15)

    def test_flat_extrapolation(self, pillar_curve):
        assert pillar_curve.zero_rate(0.25) == 0.020
        assert pillar_curve.zero_rate(50.0) == 0.033

    def test_discount_factor(self, pillar_curve):
        assert pillar_curve.discount_factor(0.0) == 1.0
        assert pillar_curve.discount_factor(5.0) == pytest.approx(np.exp(-0.030 * 5.0))

    def test_too_few_pillars(self):
        with pytest.raises(PreconditionViolation):
            PillarCurve(tenors=[5.0], zero_rates=[0.03])

    def test_mismatched_lengths(self):
        with pytest.raises(PreconditionViolation):
            PillarCurve(tenors=[1.0, 5.0], zero_rates=[0.03])

    def test_unsorted_pillars(self):
        with pytest.raises(PreconditionViolation):
            PillarCurve(tenors=[5.0, 1.0], zero_rates=[0.03, 0.02])


# =============================================================================
# ZeroCurve Wrapper
# =============================================================================

class TestZeroCurve:
    """Tests for the model-agnostic wrapper."""

    def test_delegates_to_model(self, pillar_curve):
        curve = ZeroCurve(pillar_curve)

        assert curve.model is pillar_curve
        assert curve.zero_rate(7.0) == pillar_curve.zero_rate(7.0)
        assert curve.discount_factor(7.0) == pillar_curve.discount_factor(7.0)

    def test_callable_returns_discount_factor(self, nss_curve):
        assert nss_curve(4.0) == nss_curve.discount_factor(4.0)
