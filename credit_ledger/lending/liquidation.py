"""
liquidation.py - Health factor and liquidation sizing

PURE CALCULATION FUNCTIONS (calculate_*):
   - Values and prices are passed in explicitly
   - No oracle, no ledger, no position store

Key Formulas:
    health_factor = collateral_value * 100 / (debt_value * collateral_ratio)
    liquidatable  = health_factor < liquidation_threshold        (default 1.0)
    seize         = debt_value * (1 + bonus_bps / 10000) / collateral_price
                    clamped to the position's collateral

A position exactly at its borrow limit has health factor 1.0 and is not
liquidatable; any accrued interest beyond that point makes it so.
"""

from __future__ import annotations
from dataclasses import dataclass
from decimal import Decimal

from ..core import BASIS_POINTS
from .position import UserPosition


# Health factor reported for positions with no debt.
HEALTH_FACTOR_MAX = Decimal("Infinity")

DEFAULT_LIQUIDATION_THRESHOLD = Decimal("1.0")
DEFAULT_LIQUIDATION_BONUS_BPS = 500


@dataclass(frozen=True, slots=True)
class LiquidationResult:
    """
    Sizing of a single liquidation.

    debt_to_repay = interest_repaid + principal_repaid. bonus is the
    collateral seized above the debt's own worth (zero when clamped away).
    """
    debt_to_repay: Decimal
    collateral_to_seize: Decimal
    interest_repaid: Decimal
    principal_repaid: Decimal
    bonus: Decimal


def calculate_health_factor(collateral_value: Decimal, debt_value: Decimal, collateral_ratio: int) -> Decimal:
    """
    Collateral value relative to the collateral the ratio requires.

    Returns HEALTH_FACTOR_MAX when there is no debt.

    Raises:
        ValueError: if debt is owed against a position with no ratio
    """
    if debt_value <= 0:
        return HEALTH_FACTOR_MAX
    if collateral_ratio <= 0:
        raise ValueError(f"collateral_ratio must be positive, got {collateral_ratio}")
    return collateral_value * 100 / (debt_value * Decimal(collateral_ratio))


def is_liquidatable(health_factor: Decimal, threshold: Decimal = DEFAULT_LIQUIDATION_THRESHOLD) -> bool:
    return health_factor < threshold


def calculate_liquidation(
    position: UserPosition,
    requested_debt: Decimal,
    debt_price: Decimal,
    collateral_price: Decimal,
    bonus_bps: int = DEFAULT_LIQUIDATION_BONUS_BPS,
) -> LiquidationResult:
    """
    Size a liquidation against an already-accrued position.

    PURE FUNCTION. Repayment goes to accrued interest first, then principal.

    Args:
        position: Position with interest accrued up to now
        requested_debt: Debt the liquidator offers to repay
        debt_price: Price of one unit of the debt asset
        collateral_price: Price of one unit of the collateral asset
        bonus_bps: Liquidator bonus in basis points

    Returns:
        LiquidationResult

    Raises:
        ValueError: non-positive request or prices, negative bonus
    """
    if requested_debt <= 0:
        raise ValueError(f"requested_debt must be positive, got {requested_debt}")
    if debt_price <= 0 or collateral_price <= 0:
        raise ValueError(f"prices must be positive, got {debt_price} and {collateral_price}")
    if bonus_bps < 0:
        raise ValueError(f"bonus_bps cannot be negative, got {bonus_bps}")

    if requested_debt >= position.total_debt:
        # settle in full; the rounded sum must not leave dust behind
        debt_to_repay = position.total_debt
        interest_repaid, principal_repaid = position.accrued_interest, position.borrowed_amount
    else:
        debt_to_repay = requested_debt
        interest_repaid = min(debt_to_repay, position.accrued_interest)
        principal_repaid = min(debt_to_repay - interest_repaid, position.borrowed_amount)

    debt_value = debt_to_repay * debt_price
    fair_collateral = debt_value / collateral_price
    with_bonus = debt_value * (BASIS_POINTS + Decimal(bonus_bps)) / BASIS_POINTS / collateral_price
    collateral_to_seize = min(with_bonus, position.collateral_amount)

    return LiquidationResult(
        debt_to_repay=debt_to_repay,
        collateral_to_seize=collateral_to_seize,
        interest_repaid=interest_repaid,
        principal_repaid=principal_repaid,
        bonus=max(Decimal("0"), collateral_to_seize - fair_collateral),
    )
