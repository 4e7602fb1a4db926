"""
position.py - Per-(user, asset) positions and per-asset reserves

FROZEN DATACLASSES:
   - UserPosition: collateral, principal, accrued interest, ratio snapshot
   - ReserveState: asset support flag, rate, and the pool-wide totals

PositionLedger is the keyed store for both. It hands out immutable values;
the lending pool computes a replacement and puts it back. Reserve totals
must always equal the sum over that asset's positions.
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional, Tuple


PositionKey = Tuple[str, str]  # (user, asset)
PositionSnapshot = Tuple[Dict[PositionKey, 'UserPosition'], Dict[str, 'ReserveState']]


@dataclass(frozen=True, slots=True)
class UserPosition:
    """
    One user's position in one asset.

    collateral_ratio is the whole-percent ratio resolved from the user's
    score at the last deposit or borrow (0 before the first one). Withdrawals
    and liquidations use this snapshot rather than re-resolving.
    """
    collateral_amount: Decimal = Decimal("0")
    borrowed_amount: Decimal = Decimal("0")
    collateral_ratio: int = 0
    last_update_time: Optional[datetime] = None
    accrued_interest: Decimal = Decimal("0")

    def __post_init__(self):
        if self.collateral_amount < 0:
            raise ValueError(f"collateral_amount cannot be negative, got {self.collateral_amount}")
        if self.borrowed_amount < 0:
            raise ValueError(f"borrowed_amount cannot be negative, got {self.borrowed_amount}")
        if self.accrued_interest < 0:
            raise ValueError(f"accrued_interest cannot be negative, got {self.accrued_interest}")

    @property
    def total_debt(self) -> Decimal:
        return self.borrowed_amount + self.accrued_interest

    @property
    def has_debt(self) -> bool:
        return self.total_debt > 0

    def is_empty(self) -> bool:
        return self.collateral_amount == 0 and not self.has_debt


EMPTY_POSITION = UserPosition()


@dataclass(frozen=True, slots=True)
class ReserveState:
    supported: bool = False
    interest_rate_bps: int = 0
    total_collateral: Decimal = Decimal("0")
    total_borrowed: Decimal = Decimal("0")

    def __post_init__(self):
        if self.interest_rate_bps < 0:
            raise ValueError(f"interest_rate_bps cannot be negative, got {self.interest_rate_bps}")


class PositionLedger:
    """Keyed store of positions and reserves owned by a single lending pool."""

    def __init__(self):
        self._positions: Dict[PositionKey, UserPosition] = {}
        self._reserves: Dict[str, ReserveState] = {}

    def get_position(self, user: str, asset: str) -> UserPosition:
        return self._positions.get((user, asset), EMPTY_POSITION)

    def has_position(self, user: str, asset: str) -> bool:
        return (user, asset) in self._positions

    def put_position(self, user: str, asset: str, position: UserPosition) -> None:
        self._positions[(user, asset)] = position

    def positions_for(self, asset: str) -> Dict[str, UserPosition]:
        """All positions in an asset, keyed by user."""
        return {user: pos for (user, a), pos in self._positions.items() if a == asset}

    def get_reserve(self, asset: str) -> ReserveState:
        return self._reserves.get(asset, ReserveState())

    def put_reserve(self, asset: str, reserve: ReserveState) -> None:
        self._reserves[asset] = reserve

    def assets(self):
        return sorted(self._reserves)

    def check_invariants(self, asset: str, tolerance: Decimal = Decimal("1e-9")) -> Dict[str, Any]:
        """
        Compare reserve totals against the sum of the asset's positions.

        Returns:
            Dict with 'valid', the summed and recorded totals.
        """
        positions = self.positions_for(asset).values()
        collateral_sum = sum((p.collateral_amount for p in positions), Decimal("0"))
        borrowed_sum = sum((p.borrowed_amount for p in positions), Decimal("0"))
        reserve = self.get_reserve(asset)
        return {
            'valid': (abs(collateral_sum - reserve.total_collateral) <= tolerance
                      and abs(borrowed_sum - reserve.total_borrowed) <= tolerance),
            'collateral_sum': collateral_sum,
            'total_collateral': reserve.total_collateral,
            'borrowed_sum': borrowed_sum,
            'total_borrowed': reserve.total_borrowed,
        }

    def snapshot(self) -> PositionSnapshot:
        return dict(self._positions), dict(self._reserves)

    def restore(self, snapshot: PositionSnapshot) -> None:
        positions, reserves = snapshot
        self._positions = dict(positions)
        self._reserves = dict(reserves)
