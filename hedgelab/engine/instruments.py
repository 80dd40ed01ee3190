"""
Fixed-Coupon Bonds
==================

Bullet bonds with regular coupons, used as both hedge targets and hedging
instruments. The engine only needs ``(year_fraction, amount)`` pairs; this
module turns a bond's terms into that stream.

Schedule
--------
Coupon dates are generated backwards from maturity in steps of
``12 / frequency`` months and kept if they fall strictly after settlement.
Intermediate payments carry the coupon only; the final payment adds the face
amount.

Day Count
---------
ACT/365.25 by default (``settings.day_count_basis``):

    t = (payment_date - settlement).days / 365.25

Example
-------
>>> bond = FixedCouponBond(date(2025, 1, 2), date(2030, 1, 2), coupon=0.03)
>>> len(bond.cashflows())
10
>>> bond.cashflows()[-1]
(datetime.date(2030, 1, 2), 101.5)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import List, Optional, Tuple

import pandas as pd

from ..config import get_settings
from .curves import ZeroCurve
from .errors import PreconditionViolation
from .key_rate import parallel_sensitivity

logger = logging.getLogger("HedgeLab.Instruments")


def year_fraction(start: date, end: date, basis: Optional[float] = None) -> float:
    """
    ACT/basis year fraction between two dates.

    Parameters
    ----------
    start : date
        Start date (usually settlement).
    end : date
        End date (payment date).
    basis : float, optional
        Days per year. Defaults to ``settings.day_count_basis`` (365.25).

    Returns
    -------
    float
        Year fraction, negative if ``end`` precedes ``start``.
    """
    if basis is None:
        basis = get_settings().day_count_basis
    return (end - start).days / basis


@dataclass(frozen=True)
class FixedCouponBond:
    """
    Fixed-rate bullet bond with regular coupons.

    Attributes
    ----------
    settlement : date
        Valuation / settlement date.
    maturity : date
        Final payment date, strictly after settlement.
    coupon : float
        Annual coupon rate as a decimal (0.03 = 3%), non-negative.
    frequency : int
        Coupons per year; must divide 12 (1, 2, 3, 4, 6, 12).
    face : float
        Redemption amount.
    """
    settlement: date
    maturity: date
    coupon: float
    frequency: int = 2
    face: float = 100.0

    def __post_init__(self):
        if self.maturity <= self.settlement:
            raise PreconditionViolation("Maturity must be after settlement")
        if self.frequency <= 0 or 12 % self.frequency != 0:
            raise PreconditionViolation(f"Frequency must be a positive divisor of 12, got {self.frequency}")
        if self.coupon < 0:
            raise PreconditionViolation("Coupon cannot be negative")

    @property
    def coupon_amount(self) -> float:
        return self.face * self.coupon / self.frequency

    def payment_dates(self) -> List[date]:
        """Coupon dates strictly after settlement, ascending, ending at maturity."""
        months = 12 // self.frequency
        anchor = pd.Timestamp(self.maturity)
        settlement = pd.Timestamp(self.settlement)

        dates = []
        periods_back = 0
        while True:
            pay = anchor - pd.DateOffset(months=months * periods_back)
            if pay <= settlement:
                break
            dates.append(pay.date())
            periods_back += 1
        dates.reverse()
        logger.debug(f"{len(dates)} payment dates between {self.settlement} and {self.maturity}")
        return dates

    def cashflows(self) -> List[Tuple[date, float]]:
        """Dated cashflows: coupons, with coupon plus face at maturity."""
        cpn = self.coupon_amount
        dates = self.payment_dates()
        flows = [(d, cpn) for d in dates[:-1]]
        flows.append((dates[-1], cpn + self.face))
        return flows

    def timed_cashflows(self, basis: Optional[float] = None) -> List[Tuple[float, float]]:
        """
        Cashflows as ``(year_fraction, amount)`` pairs with positive times.

        This is the stream consumed by the key-rate engine.
        """
        timed = []
        for pay_date, amount in self.cashflows():
            t = year_fraction(self.settlement, pay_date, basis)
            if t > 0:
                timed.append((t, amount))
        return timed

    def price(self, curve: ZeroCurve) -> float:
        """Present value discounted on ``curve``."""
        return sum(cf * curve.discount_factor(t) for t, cf in self.timed_cashflows())

    def dv01(self, curve: ZeroCurve, bump_bp: float = 1.0) -> float:
        """
        Parallel DV01 per ``bump_bp``: ``(P(-bump) - P(+bump)) / 2``.

        A true parallel shift ``r(t) -> r(t) +/- delta`` gives
        ``DF(t) * exp(-/+ delta * t)``.
        """
        return parallel_sensitivity(self.timed_cashflows(), curve, bump_bp)
