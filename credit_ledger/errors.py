"""
errors.py - Rejection taxonomy for the credit and lending engines

Every rejection is a whole-operation failure: the raising operation leaves
positions, reserves, credit profiles and wallet balances exactly as it found
them. Each error carries the values needed to reconstruct the violated limit.

Categories:
    Input validation  - InvalidAmount, InvalidAddress, AssetNotSupported
    Capacity          - InsufficientCollateral, BorrowLimitExceeded, InsufficientLiquidity
    State             - NoDebtToRepay, PositionNotLiquidatable
    Oracle            - OracleError, PriceUnavailable, StalePrice
    Authorization     - Unauthorized
    Concurrency       - ReentrantCall

require_amount(), require_unit_amount() and require_identity() perform the
input checks shared by the pool and the vault.
"""

from __future__ import annotations
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Optional

from .core import LedgerError, QUANTITY_EPSILON


class LendingError(LedgerError):
    """Base exception for credit scoring and lending rejections."""
    pass


# ============================================================================
# INPUT VALIDATION
# ============================================================================

class InvalidAmount(LendingError, ValueError):
    """Raised for zero, negative or non-finite amounts."""

    def __init__(self, amount, field_name: str = "amount"):
        self.amount = amount
        self.field_name = field_name
        super().__init__(f"{field_name} must be positive, got {amount}")


class InvalidAddress(LendingError, ValueError):
    """Raised for an empty user, wallet or identity."""

    def __init__(self, field_name: str = "user"):
        self.field_name = field_name
        super().__init__(f"{field_name} cannot be empty")


class AssetNotSupported(LendingError, ValueError):
    """Raised when an operation names an asset the pool does not support."""

    def __init__(self, asset: str):
        self.asset = asset
        super().__init__(f"Asset {asset} is not supported")


# ============================================================================
# CAPACITY VIOLATIONS
# ============================================================================

class InsufficientCollateral(LendingError):
    """
    Raised when a withdrawal exceeds the deposited collateral, or would push
    the position's health factor below the liquidation threshold.
    """

    def __init__(self, required: Decimal, available: Decimal, reason: str = ""):
        self.required = required
        self.available = available
        self.reason = reason
        message = f"Insufficient collateral: required {required}, available {available}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class BorrowLimitExceeded(LendingError):
    """Raised when a borrow exceeds the credit-adjusted collateral limit."""

    def __init__(self, requested: Decimal, max_borrow: Decimal):
        self.requested = requested
        self.max_borrow = max_borrow
        super().__init__(f"Borrow limit exceeded: requested {requested}, max {max_borrow}")


class InsufficientLiquidity(LendingError):
    """Raised when the pool does not hold enough lendable funds."""

    def __init__(self, requested: Decimal, available: Decimal):
        self.requested = requested
        self.available = available
        super().__init__(f"Insufficient liquidity: requested {requested}, available {available}")


# ============================================================================
# STATE VIOLATIONS
# ============================================================================

class NoDebtToRepay(LendingError):
    """Raised when repaying a position that owes nothing."""

    def __init__(self, user: str, asset: str):
        self.user = user
        self.asset = asset
        super().__init__(f"No debt to repay for {user} in {asset}")


class PositionNotLiquidatable(LendingError):
    """Raised when liquidating a position whose health factor is at or above the threshold."""

    def __init__(self, health_factor: Decimal, threshold: Decimal):
        self.health_factor = health_factor
        self.threshold = threshold
        super().__init__(
            f"Position is healthy: health factor {health_factor} >= threshold {threshold}"
        )


# ============================================================================
# ORACLE FAILURES
# ============================================================================

class OracleError(LendingError):
    """Base class for valuation failures. Never replaced by a default price."""
    pass


class PriceUnavailable(OracleError):
    """Raised when no usable price exists for an asset."""

    def __init__(self, asset: str, detail: str = "no price"):
        self.asset = asset
        self.detail = detail
        super().__init__(f"Price unavailable for {asset}: {detail}")


class StalePrice(OracleError):
    """Raised when the latest price observation is older than the allowed age."""

    def __init__(self, asset: str, observed_at: datetime, max_age: timedelta, now: Optional[datetime] = None):
        self.asset = asset
        self.observed_at = observed_at
        self.max_age = max_age
        self.now = now
        super().__init__(f"Stale price for {asset}: observed {observed_at}, max age {max_age}")


# ============================================================================
# AUTHORIZATION / CONCURRENCY
# ============================================================================

class Unauthorized(LendingError):
    """Raised when a caller is not permitted to perform an action."""

    def __init__(self, caller: str, action: str):
        self.caller = caller
        self.action = action
        super().__init__(f"{caller!r} is not authorized to {action}")


class ReentrantCall(LendingError):
    """Raised when a mutating operation starts while another is in flight."""

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(f"Cannot start {operation}: another operation is in progress")


# ============================================================================
# VALIDATION HELPERS
# ============================================================================

def require_identity(identity: str, field_name: str = "user") -> str:
    if not identity or not identity.strip():
        raise InvalidAddress(field_name)
    return identity


def require_amount(amount, field_name: str = "amount") -> Decimal:
    """
    Coerce amount to Decimal and check it is finite and at least QUANTITY_EPSILON.

    Raises:
        InvalidAmount: zero, negative, dust, non-finite or unparseable amounts
    """
    if not isinstance(amount, Decimal):
        try:
            amount = Decimal(str(amount))
        except ArithmeticError:
            raise InvalidAmount(amount, field_name)
    if not amount.is_finite() or amount < QUANTITY_EPSILON:
        raise InvalidAmount(amount, field_name)
    return amount


def require_unit_amount(unit, amount, field_name: str = "amount") -> Decimal:
    """
    require_amount(), then rounded onto the unit's booking grid.

    Amounts that round to nothing are rejected rather than booked as dust.
    """
    amount = require_amount(amount, field_name)
    try:
        booked = unit.quantize(amount)
    except ArithmeticError:
        raise InvalidAmount(amount, field_name)
    if booked < QUANTITY_EPSILON:
        raise InvalidAmount(amount, field_name)
    # keep the caller's exponent when nothing was rounded away
    return amount if booked == amount else booked
