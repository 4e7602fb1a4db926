"""
interest.py - Simple linear interest accrual

    interest = borrowed * rate_bps * elapsed_seconds / (365 days * 10000)

Interest is charged on principal only (no compounding). The lending pool
accrues a position before every mutation; queries use
calculate_pending_interest() to see the same figure without writing it.
"""

from __future__ import annotations
from dataclasses import replace
from datetime import datetime
from decimal import Decimal
from typing import Optional

from ..core import BASIS_POINTS, SECONDS_PER_YEAR
from .position import UserPosition


def calculate_pending_interest(
    borrowed_amount: Decimal,
    rate_bps: int,
    last_update_time: Optional[datetime],
    now: datetime,
) -> Decimal:
    """
    Interest owed on principal since last_update_time.

    PURE FUNCTION. Zero when there is no principal, no rate, no previous
    update, or no time has passed.
    """
    if last_update_time is None or borrowed_amount <= 0 or rate_bps <= 0:
        return Decimal("0")
    elapsed = Decimal(str((now - last_update_time).total_seconds()))
    if elapsed <= 0:
        return Decimal("0")
    return borrowed_amount * Decimal(rate_bps) * elapsed / (SECONDS_PER_YEAR * BASIS_POINTS)


def accrue_interest(position: UserPosition, rate_bps: int, now: datetime) -> UserPosition:
    """
    Position with pending interest moved into accrued_interest.

    Returns the same instance when there is no principal or no time has
    passed since the last update.
    """
    if position.borrowed_amount <= 0 or position.last_update_time == now:
        return position
    interest = calculate_pending_interest(
        position.borrowed_amount, rate_bps, position.last_update_time, now
    )
    return replace(
        position,
        accrued_interest=position.accrued_interest + interest,
        last_update_time=now,
    )


def total_debt_at(position: UserPosition, rate_bps: int, now: datetime) -> Decimal:
    """Principal + accrued + pending interest, without touching the position."""
    return position.total_debt + calculate_pending_interest(
        position.borrowed_amount, rate_bps, position.last_update_time, now
    )
