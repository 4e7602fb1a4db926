"""
Credit module - Behavioral history and the credit score derived from it.

- profile: PaymentRecord, UserCreditProfile, ScoreCacheEntry
- accumulator: ScoreAccumulator, the authorized writer of profiles
- scoring: pure five-factor score calculation
- oracle: CreditOracle, the cached score service
"""

from .profile import (
    PaymentStatus,
    PaymentRecord,
    ScoreCacheEntry,
    UserCreditProfile,
    DEFAULT_THRESHOLD_DAYS,
    classify_payment,
    new_profile,
)

from .accumulator import ScoreAccumulator

from .scoring import (
    CreditScoreBreakdown,
    NEUTRAL_PAYMENT_SCORE,
    PAYMENT_POINTS,
    calculate_payment_score,
    calculate_time_weighted_savings,
    calculate_savings_score,
    calculate_time_score,
    calculate_diversity_score,
    calculate_liquidity_score,
    calculate_credit_score,
)

from .oracle import CreditOracle, DEFAULT_SCORE_CACHE_TTL
