"""
accumulator.py - Authorized writer of per-user credit history

The ScoreAccumulator owns every UserCreditProfile. Mutations go through its
methods only, each one checking the AuthorizationPolicy before touching any
state. Profiles are created lazily on the first authorized write and are
never deleted.

The logical clock is read from the LedgerView passed at construction.

The accumulator owns the OperationGuard shared with the pool and the vault.
Writes made outside an operation hold the guard for their own duration.
"""

from __future__ import annotations
from dataclasses import replace
from datetime import datetime
from decimal import Decimal
from typing import Dict, Optional, Set, Tuple

from ..authorization import AuthorizationPolicy
from ..core import LedgerView
from ..errors import InvalidAddress, InvalidAmount
from ..guard import OperationGuard
from .profile import (
    PaymentRecord, PaymentStatus, ScoreCacheEntry, UserCreditProfile,
    classify_payment, new_profile,
)


# (profiles, seen (user, asset) pairs) - both immutable containers of values
AccumulatorSnapshot = Tuple[Dict[str, UserCreditProfile], Set[Tuple[str, str]]]


def _to_decimal(value) -> Decimal:
    return value if isinstance(value, Decimal) else Decimal(str(value))


class ScoreAccumulator:
    """
    Per-user behavioral ledger feeding the credit score.

    Example:
        policy = AuthorizationPolicy("governance", allowed={"lending_pool"})
        accumulator = ScoreAccumulator(policy, ledger)
        accumulator.record_payment("lending_pool", "alice", Decimal("500"), days_late=0)
    """

    def __init__(self, policy: AuthorizationPolicy, view: LedgerView, guard: Optional[OperationGuard] = None):
        self.policy = policy
        self.view = view
        self.guard = guard if guard is not None else OperationGuard()
        self._profiles: Dict[str, UserCreditProfile] = {}
        self._assets_seen: Set[Tuple[str, str]] = set()
        self.guard.register(self.snapshot, self.restore)

    # ========================================================================
    # READS
    # ========================================================================

    def get_profile(self, user: str) -> Optional[UserCreditProfile]:
        return self._profiles.get(user)

    def is_initialized(self, user: str) -> bool:
        return user in self._profiles

    def get_payment_history(self, user: str) -> Tuple[PaymentRecord, ...]:
        profile = self._profiles.get(user)
        return profile.payment_history if profile else ()

    def has_used_asset(self, user: str, asset: str) -> bool:
        return (user, asset) in self._assets_seen

    def users(self) -> Set[str]:
        return set(self._profiles)

    # ========================================================================
    # WRITES (authorized)
    # ========================================================================

    def _authorize(self, caller: str, user: str, action: str) -> None:
        self.policy.require(caller, action)
        if not user or not user.strip():
            raise InvalidAddress("user")

    def _profile_for_write(self, user: str) -> UserCreditProfile:
        profile = self._profiles.get(user)
        if profile is None:
            profile = new_profile(self.view.current_time)
            self._profiles[user] = profile
        return profile

    def initialize_user(self, caller: str, user: str) -> UserCreditProfile:
        """Create the user's profile; no-op if it already exists."""
        self._authorize(caller, user, "initialize credit profiles")
        with self.guard.write("initialize_user"):
            return self._profile_for_write(user)

    def record_payment(self, caller: str, user: str, amount: Decimal, days_late: int) -> PaymentRecord:
        """
        Append a payment record and bump the matching counter.

        Raises:
            InvalidAmount: negative amount or negative days_late
            ReentrantCall: an operation is in flight on another thread
        """
        self._authorize(caller, user, "record payments")
        amount = _to_decimal(amount)
        if not amount.is_finite() or amount < 0:
            raise InvalidAmount(amount)
        if days_late < 0:
            raise InvalidAmount(days_late, "days_late")

        status = classify_payment(days_late)
        with self.guard.write("record_payment"):
            record = PaymentRecord(
                timestamp=self.view.current_time,
                amount=amount,
                status=status,
                days_late=days_late,
            )
            profile = self._profile_for_write(user)
            self._profiles[user] = replace(
                profile,
                payment_history=profile.payment_history + (record,),
                total_payments=profile.total_payments + 1,
                on_time_payments=profile.on_time_payments + (status is PaymentStatus.ON_TIME),
                late_payments=profile.late_payments + (status is PaymentStatus.LATE),
                defaults=profile.defaults + (status is PaymentStatus.DEFAULT),
            )
        return record

    def update_savings(self, caller: str, user: str, new_balance: Decimal, deposit_delta: Decimal) -> None:
        """
        Fold the previous balance's holding time into the time-weighted
        integral, then overwrite the balance and add deposit_delta to the
        lifetime deposit total.
        """
        self._authorize(caller, user, "update savings")
        new_balance = _to_decimal(new_balance)
        deposit_delta = _to_decimal(deposit_delta)
        if new_balance < 0:
            raise InvalidAmount(new_balance, "new_balance")
        if deposit_delta < 0:
            raise InvalidAmount(deposit_delta, "deposit_delta")

        with self.guard.write("update_savings"):
            now = self.view.current_time
            profile = self._profile_for_write(user)
            accumulated = profile.savings_time_weighted_balance
            if profile.last_savings_update_time is not None and now > profile.last_savings_update_time:
                elapsed = Decimal(str((now - profile.last_savings_update_time).total_seconds()))
                accumulated += profile.current_savings_balance * elapsed

            self._profiles[user] = replace(
                profile,
                savings_time_weighted_balance=accumulated,
                current_savings_balance=new_balance,
                total_savings_deposited=profile.total_savings_deposited + deposit_delta,
                last_savings_update_time=now,
            )

    def track_asset_usage(self, caller: str, user: str, asset: str) -> bool:
        """
        Count asset toward the user's diversity on first use only.

        Returns:
            True if this was the user's first use of the asset
        """
        self._authorize(caller, user, "track asset usage")
        if not asset or not asset.strip():
            raise InvalidAddress("asset")
        with self.guard.write("track_asset_usage"):
            profile = self._profile_for_write(user)
            if (user, asset) in self._assets_seen:
                return False
            self._assets_seen.add((user, asset))
            self._profiles[user] = replace(profile, unique_assets_used=profile.unique_assets_used + 1)
        return True

    def set_liquidity_provided(self, caller: str, user: str, amount: Decimal) -> None:
        self._authorize(caller, user, "set liquidity provided")
        amount = _to_decimal(amount)
        if amount < 0:
            raise InvalidAmount(amount)
        with self.guard.write("set_liquidity_provided"):
            profile = self._profile_for_write(user)
            self._profiles[user] = replace(profile, liquidity_provided=amount)

    def store_score(self, user: str, entry: ScoreCacheEntry) -> None:
        """
        Write a computed score into an existing profile's cache.

        Called by the CreditOracle. Unknown users are not cached, so reading a
        score never creates a profile. The write is skipped while another
        thread's operation holds the guard; the score is recomputed on the
        next read.
        """
        with self.guard.optional_write() as writable:
            profile = self._profiles.get(user)
            if not writable or profile is None:
                return
            self._profiles[user] = replace(
                profile, cached_score=entry.value, last_score_update=entry.computed_at
            )

    # ========================================================================
    # ROLLBACK SUPPORT
    # ========================================================================

    def snapshot(self) -> AccumulatorSnapshot:
        return dict(self._profiles), set(self._assets_seen)

    def restore(self, snapshot: AccumulatorSnapshot) -> None:
        profiles, seen = snapshot
        self._profiles = dict(profiles)
        self._assets_seen = set(seen)
