"""
scoring.py - Multi-factor credit score calculation

PURE CALCULATION FUNCTIONS (calculate_*):
   - Take a UserCreditProfile and the logical time explicitly
   - No store, no clock, no cache
   - Every sub-score is an integer in [0, 100]

Score composition:
    payment history     35%   time-decayed weighted average of payment points
    savings behavior    30%   time-weighted average balance / total deposited
    time in protocol    20%   linear ramp to 100 over 180 days
    asset diversity     10%   min(unique assets, 5) / 5
    liquidity provided   5%   100 if any liquidity was provided

    score = 300 + (sum(sub_score * weight) / 100) * 550 / 100

Missing data never raises: a user with no payments gets the neutral payment
score, a user with no deposits gets a zero savings score.
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Dict, Iterable

from ..core import SECONDS_PER_DAY
from .profile import (
    MIN_SCORE, MAX_SCORE,
    PaymentRecord, PaymentStatus, UserCreditProfile,
)


WEIGHT_PAYMENT = 35
WEIGHT_SAVINGS = 30
WEIGHT_TIME = 20
WEIGHT_DIVERSITY = 10
WEIGHT_LIQUIDITY = 5
TOTAL_WEIGHT = WEIGHT_PAYMENT + WEIGHT_SAVINGS + WEIGHT_TIME + WEIGHT_DIVERSITY + WEIGHT_LIQUIDITY

SCORE_RANGE = MAX_SCORE - MIN_SCORE

PAYMENT_DECAY_PERIOD = timedelta(days=730)
TIME_IN_PROTOCOL_TARGET = timedelta(days=180)
DIVERSITY_TARGET_ASSETS = 5
SAVINGS_ACTIVE_BONUS = Decimal("1.2")

NEUTRAL_PAYMENT_SCORE = 50

# Late payments score 80 regardless of how late within the 1..29 day band;
# 30+ days is a default and scores 0.
PAYMENT_POINTS: Dict[PaymentStatus, int] = {
    PaymentStatus.ON_TIME: 100,
    PaymentStatus.LATE: 80,
    PaymentStatus.DEFAULT: 0,
}


@dataclass(frozen=True, slots=True)
class CreditScoreBreakdown:
    """Total score plus the five sub-scores it was derived from."""
    total: int
    payment_score: int
    savings_score: int
    time_score: int
    diversity_score: int
    liquidity_score: int

    def weighted_sum(self) -> int:
        return (
            self.payment_score * WEIGHT_PAYMENT
            + self.savings_score * WEIGHT_SAVINGS
            + self.time_score * WEIGHT_TIME
            + self.diversity_score * WEIGHT_DIVERSITY
            + self.liquidity_score * WEIGHT_LIQUIDITY
        )


def _seconds(delta: timedelta) -> Decimal:
    return Decimal(str(delta.total_seconds()))


def _cap(value: Decimal, cap: int = 100) -> int:
    """Floor to int and clamp into [0, cap]."""
    return max(0, min(cap, int(value)))


def calculate_payment_score(history: Iterable[PaymentRecord], now: datetime) -> int:
    """
    Time-decayed weighted average of payment points.

    A record's weight is the part of the 730-day decay window it has not yet
    used up, in seconds, with a floor of 1 so old records still count a little.
    """
    decay_seconds = _seconds(PAYMENT_DECAY_PERIOD)
    weighted_points = Decimal("0")
    total_weight = Decimal("0")
    for record in history:
        age = max(Decimal("0"), _seconds(now - record.timestamp))
        weight = max(Decimal("1"), decay_seconds - age)
        weighted_points += PAYMENT_POINTS[record.status] * weight
        total_weight += weight
    if total_weight == 0:
        return NEUTRAL_PAYMENT_SCORE
    return _cap(weighted_points / total_weight)


def calculate_time_weighted_savings(profile: UserCreditProfile, now: datetime) -> Decimal:
    """Integral of savings balance over time (balance x seconds) up to now."""
    accumulated = profile.savings_time_weighted_balance
    if profile.last_savings_update_time is not None and now > profile.last_savings_update_time:
        accumulated += profile.current_savings_balance * _seconds(now - profile.last_savings_update_time)
    return accumulated


def calculate_savings_score(profile: UserCreditProfile, now: datetime) -> int:
    """
    Average savings balance over the account's lifetime relative to the total
    ever deposited, with a 20% bonus while the balance is non-zero.
    """
    if profile.total_savings_deposited <= 0:
        return 0

    lifetime = _seconds(now - profile.account_creation_time)
    if lifetime > 0:
        average_balance = calculate_time_weighted_savings(profile, now) / lifetime
    else:
        average_balance = profile.current_savings_balance

    score = min(Decimal("100"), average_balance * 100 / profile.total_savings_deposited)
    if profile.current_savings_balance > 0:
        score = min(Decimal("100"), score * SAVINGS_ACTIVE_BONUS)
    return _cap(score)


def calculate_time_score(account_creation_time: datetime, now: datetime) -> int:
    """Linear ramp from 0 at creation to 100 after 180 days."""
    elapsed = _seconds(now - account_creation_time)
    if elapsed <= 0:
        return 0
    return _cap(elapsed * 100 / _seconds(TIME_IN_PROTOCOL_TARGET))


def calculate_diversity_score(unique_assets_used: int) -> int:
    return min(unique_assets_used, DIVERSITY_TARGET_ASSETS) * 100 // DIVERSITY_TARGET_ASSETS


def calculate_liquidity_score(liquidity_provided: Decimal) -> int:
    return 100 if liquidity_provided > 0 else 0


def calculate_credit_score(profile: UserCreditProfile, now: datetime) -> CreditScoreBreakdown:
    """
    Derive the full score breakdown from a profile.

    PURE FUNCTION - reads only its arguments. The result total is always in
    [300, 850]: every sub-score is capped at 100 and the weights sum to 100.
    """
    payment = calculate_payment_score(profile.payment_history, now)
    savings = calculate_savings_score(profile, now)
    time_score = calculate_time_score(profile.account_creation_time, now)
    diversity = calculate_diversity_score(profile.unique_assets_used)
    liquidity = calculate_liquidity_score(profile.liquidity_provided)

    partial = CreditScoreBreakdown(
        total=MIN_SCORE,
        payment_score=payment,
        savings_score=savings,
        time_score=time_score,
        diversity_score=diversity,
        liquidity_score=liquidity,
    )
    total = MIN_SCORE + partial.weighted_sum() * SCORE_RANGE // (TOTAL_WEIGHT * 100)
    total = max(MIN_SCORE, min(MAX_SCORE, total))

    return CreditScoreBreakdown(
        total=total,
        payment_score=payment,
        savings_score=savings,
        time_score=time_score,
        diversity_score=diversity,
        liquidity_score=liquidity,
    )
