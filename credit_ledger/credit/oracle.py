"""
oracle.py - Cached credit score service

The CreditOracle is the read side of the credit system. It derives scores
from ScoreAccumulator state with the pure functions in scoring.py and keeps
each user's last score for one hour of logical time.

Reads of a fresh cache entry take no lock. Recomputing and storing a score
is serialized by the oracle's write lock.
"""

from __future__ import annotations
from datetime import timedelta
from threading import Lock

from ..core import CreditScoreProvider, LedgerView
from ..lending.ratios import CreditTier, credit_tier
from .accumulator import ScoreAccumulator
from .profile import ScoreCacheEntry, new_profile
from .scoring import CreditScoreBreakdown, calculate_credit_score


DEFAULT_SCORE_CACHE_TTL = timedelta(hours=1)


class CreditOracle:
    """
    Credit score engine with a short-lived per-user cache.

    Example:
        oracle = CreditOracle(accumulator, ledger)
        oracle.get_credit_score("alice")        # 300..850
        oracle.get_credit_breakdown("alice")    # total + five sub-scores
    """

    def __init__(
        self,
        accumulator: ScoreAccumulator,
        view: LedgerView,
        cache_ttl: timedelta = DEFAULT_SCORE_CACHE_TTL,
    ):
        self.accumulator = accumulator
        self.view = view
        self.cache_ttl = cache_ttl
        self._write_lock = Lock()

    def calculate_breakdown(self, user: str) -> CreditScoreBreakdown:
        """
        Recompute the user's breakdown from current history without caching.

        Users with no profile are scored as a brand-new account (neutral
        payment history, nothing else).
        """
        now = self.view.current_time
        profile = self.accumulator.get_profile(user)
        if profile is None:
            profile = new_profile(now)
        return calculate_credit_score(profile, now)

    def calculate_score(self, user: str) -> int:
        return self.calculate_breakdown(user).total

    def refresh_score(self, user: str) -> int:
        """Recompute and cache regardless of freshness."""
        with self._write_lock:
            breakdown = self.calculate_breakdown(user)
            self.accumulator.store_score(user, ScoreCacheEntry(breakdown.total, self.view.current_time))
        return breakdown.total

    def get_credit_score(self, user: str) -> int:
        """Cached score if computed within cache_ttl, otherwise a fresh one."""
        profile = self.accumulator.get_profile(user)
        entry = profile.score_cache if profile else None
        if entry is not None and entry.is_fresh(self.view.current_time, self.cache_ttl):
            return entry.value
        return self.refresh_score(user)

    def get_credit_breakdown(self, user: str) -> CreditScoreBreakdown:
        """
        Sub-scores computed from current history.

        The breakdown is always recomputed; its total can differ from
        get_credit_score() while a cached score is still fresh.
        """
        return self.calculate_breakdown(user)

    def get_credit_tier(self, user: str) -> CreditTier:
        return credit_tier(self.get_credit_score(user))

    def __repr__(self):
        return f"CreditOracle(users={len(self.accumulator.users())}, ttl={self.cache_ttl})"
