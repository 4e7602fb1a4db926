"""
fake_credit.py - Test helpers for CreditScoreProvider

Stand-ins for the CreditOracle so lending tests can pin a user's score
(and therefore their collateral ratio) without building credit history.
"""

from __future__ import annotations
from typing import Callable, Dict, Optional


class FixedCreditScore:
    """
    CreditScoreProvider with per-user fixed scores.

    Example:
        credit = FixedCreditScore(750, scores={'bob': 820})
        credit.get_credit_score('alice')   # 750
        credit.get_credit_score('bob')     # 820
    """

    def __init__(self, default: int = 750, scores: Optional[Dict[str, int]] = None):
        self.default = default
        self.scores = dict(scores or {})
        self.calls = 0

    def get_credit_score(self, user: str) -> int:
        self.calls += 1
        return self.scores.get(user, self.default)

    def set_score(self, user: str, score: int) -> None:
        self.scores[user] = score


class CallbackCreditScore(FixedCreditScore):
    """Runs a callback on every score lookup, e.g. to re-enter the pool."""

    def __init__(self, callback: Callable[[str], None], default: int = 750):
        super().__init__(default)
        self.callback = callback

    def get_credit_score(self, user: str) -> int:
        self.callback(user)
        return super().get_credit_score(user)


class FailingCreditScore:
    """Provider whose lookups always fail."""

    def get_credit_score(self, user: str) -> int:
        raise RuntimeError(f"credit service unavailable for {user}")
