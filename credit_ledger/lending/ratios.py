"""
ratios.py - Credit score to collateral ratio mapping

Tiered, descending, no interpolation:

    score >= 800  ->  110%   EXCELLENT
    score >= 750  ->  120%   VERY_GOOD
    score >= 700  ->  130%   GOOD
    score >= 650  ->  140%   FAIR
    score >= 600  ->  150%   POOR
    otherwise     ->  200%   VERY_POOR

Ratios are whole percentages: a 120% ratio lets a user borrow up to
collateral_value * 100 / 120.
"""

from __future__ import annotations
from enum import Enum
from typing import Tuple

from ..core import MIN_CREDIT_SCORE as MIN_SCORE, MAX_CREDIT_SCORE as MAX_SCORE


class CreditTier(Enum):
    EXCELLENT = "excellent"
    VERY_GOOD = "very_good"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"
    VERY_POOR = "very_poor"


# (minimum score, collateral ratio %, tier), highest first
RATIO_TIERS: Tuple[Tuple[int, int, CreditTier], ...] = (
    (800, 110, CreditTier.EXCELLENT),
    (750, 120, CreditTier.VERY_GOOD),
    (700, 130, CreditTier.GOOD),
    (650, 140, CreditTier.FAIR),
    (600, 150, CreditTier.POOR),
)
BASE_COLLATERAL_RATIO = 200
MIN_COLLATERAL_RATIO = RATIO_TIERS[0][1]


def _clamp(score: int) -> int:
    return max(MIN_SCORE, min(MAX_SCORE, int(score)))


def resolve_collateral_ratio(score: int) -> int:
    """Required collateral ratio (whole percent) for a credit score."""
    score = _clamp(score)
    for threshold, ratio, _ in RATIO_TIERS:
        if score >= threshold:
            return ratio
    return BASE_COLLATERAL_RATIO


def credit_tier(score: int) -> CreditTier:
    score = _clamp(score)
    for threshold, _, tier in RATIO_TIERS:
        if score >= threshold:
            return tier
    return CreditTier.VERY_POOR
