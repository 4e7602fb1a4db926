"""
profile.py - Behavioral credit history records

FROZEN DATACLASSES (value semantics):
   - PaymentRecord: one repayment event, immutable once written
   - UserCreditProfile: everything the score is derived from
   - ScoreCacheEntry: last computed score and when it was computed

Profiles are never mutated in place. Every update produces a new instance
via dataclasses.replace(), so a store snapshot is just a shallow dict copy.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal
from enum import Enum
from typing import Optional, Tuple

from ..core import MIN_CREDIT_SCORE as MIN_SCORE, MAX_CREDIT_SCORE as MAX_SCORE


# Payments this many days late or more count as a default.
DEFAULT_THRESHOLD_DAYS = 30


class PaymentStatus(Enum):
    ON_TIME = "on_time"
    LATE = "late"
    DEFAULT = "default"


def classify_payment(days_late: int) -> PaymentStatus:
    """
    0 days late is on time, 1..29 is late, 30 or more is a default.

    Raises:
        ValueError: if days_late is negative
    """
    if days_late < 0:
        raise ValueError(f"days_late cannot be negative, got {days_late}")
    if days_late == 0:
        return PaymentStatus.ON_TIME
    if days_late < DEFAULT_THRESHOLD_DAYS:
        return PaymentStatus.LATE
    return PaymentStatus.DEFAULT


@dataclass(frozen=True, slots=True)
class PaymentRecord:
    timestamp: datetime
    amount: Decimal
    status: PaymentStatus
    days_late: int


@dataclass(frozen=True, slots=True)
class ScoreCacheEntry:
    """A computed score and the logical time it was computed at."""
    value: int
    computed_at: datetime

    def is_fresh(self, now: datetime, ttl: timedelta) -> bool:
        """True while less than ttl has elapsed since computation."""
        return now - self.computed_at < ttl


@dataclass(frozen=True, slots=True)
class UserCreditProfile:
    """
    Per-user behavioral ledger.

    Savings fields track a time-weighted integral of the savings balance:
    savings_time_weighted_balance accumulates balance x seconds up to
    last_savings_update_time, and the current balance has been held since then.
    """
    account_creation_time: datetime
    total_payments: int = 0
    on_time_payments: int = 0
    late_payments: int = 0
    defaults: int = 0
    total_savings_deposited: Decimal = Decimal("0")
    savings_time_weighted_balance: Decimal = Decimal("0")
    current_savings_balance: Decimal = Decimal("0")
    last_savings_update_time: Optional[datetime] = None
    unique_assets_used: int = 0
    liquidity_provided: Decimal = Decimal("0")
    cached_score: int = MIN_SCORE
    last_score_update: Optional[datetime] = None
    payment_history: Tuple[PaymentRecord, ...] = field(default_factory=tuple)

    def __post_init__(self):
        if not MIN_SCORE <= self.cached_score <= MAX_SCORE:
            raise ValueError(f"cached_score must be in [{MIN_SCORE}, {MAX_SCORE}], got {self.cached_score}")

    @property
    def score_cache(self) -> Optional[ScoreCacheEntry]:
        """The cached score as an entry, or None if never computed."""
        if self.last_score_update is None:
            return None
        return ScoreCacheEntry(self.cached_score, self.last_score_update)


def new_profile(now: datetime) -> UserCreditProfile:
    """Fresh profile: account age starts now, score at the floor."""
    return UserCreditProfile(account_creation_time=now)
