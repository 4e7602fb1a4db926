"""
Core types for the credit lending ledger.

This module holds the value-transfer primitives every other module builds on:
1. Protocols: LedgerView for read-only access to balances and the logical clock
2. Immutable data structures: Move, PendingTransaction, Transaction, Unit
3. Exceptions: LedgerError and the custody-level error types
4. Unit factories: asset and cash units

Nothing in this module mutates balances. Only the Ledger applies moves.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, ROUND_HALF_EVEN, ROUND_DOWN, getcontext
from enum import Enum
import hashlib
from typing import Dict, List, Set, Optional, Protocol, Tuple, FrozenSet, runtime_checkable


# ============================================================================
# DECIMAL CONTEXT CONFIGURATION
# ============================================================================
#
# Positions, reserves, interest and scores are all computed with Decimal.
# The global context is configured once, at import time.
#
# PRECONDITION: No other code should modify the global Decimal context.
# Use decimal.localcontext() for local overrides.
#
_LEDGER_DECIMAL_CONTEXT = getcontext()
_LEDGER_DECIMAL_CONTEXT.prec = 50
_LEDGER_DECIMAL_CONTEXT.rounding = ROUND_HALF_EVEN


# ============================================================================
# CONSTANTS
# ============================================================================

# Reserved wallet for issuance and redemption.
# The system wallet is exempt from balance validation and can hold any balance.
SYSTEM_WALLET = "system"

UNIT_TYPE_CASH = "CASH"
UNIT_TYPE_TOKEN = "TOKEN"

# Quantities with absolute value below this threshold are treated as zero.
QUANTITY_EPSILON = Decimal("1e-12")

# Credit scores always fall in this closed range.
MIN_CREDIT_SCORE = 300
MAX_CREDIT_SCORE = 850

# 10,000 basis points = 100%.
BASIS_POINTS = Decimal("10000")

SECONDS_PER_DAY = Decimal("86400")
SECONDS_PER_YEAR = Decimal("365") * SECONDS_PER_DAY

# Default minimum balance for cash units (allows large overdrafts).
DEFAULT_CASH_MIN_BALANCE = Decimal("-1000000000")

DECIMAL_ROUNDING = {
    UNIT_TYPE_CASH: ROUND_HALF_EVEN,
    UNIT_TYPE_TOKEN: ROUND_DOWN,
}


# ============================================================================
# TYPE ALIASES
# ============================================================================

# Mapping from wallet ID to quantity held by that wallet for a specific unit.
Positions = Dict[str, Decimal]


# ============================================================================
# PROTOCOLS
# ============================================================================

@runtime_checkable
class LedgerView(Protocol):
    """
    Read-only interface to ledger state.

    The credit oracle, the valuation oracle and the lending pool read the
    logical clock and wallet balances through this protocol. Functions that
    accept a LedgerView declare that they never move value themselves.
    """

    @property
    def current_time(self) -> datetime:
        """Return the current logical time of the ledger."""
        ...

    def get_balance(self, wallet_id: str, unit_symbol: str) -> Decimal:
        """Return the balance of a unit in a wallet (Decimal("0") if none)."""
        ...

    def get_positions(self, unit_symbol: str) -> Positions:
        """Return all non-zero holdings of a unit, keyed by wallet."""
        ...

    def list_wallets(self) -> Set[str]:
        """Return the set of all registered wallet IDs."""
        ...

    def get_unit(self, symbol: str) -> 'Unit':
        """Return the Unit object for a given symbol."""
        ...


@runtime_checkable
class CreditScoreProvider(Protocol):
    """
    Source of per-user credit scores in [300, 850].

    The lending pool depends only on this protocol, so it can be wired to the
    CreditOracle or to any fixed-score stand-in.
    """

    def get_credit_score(self, user: str) -> int:
        ...


# ============================================================================
# ENUMS
# ============================================================================

class ExecuteResult(Enum):
    """
    Outcome of a transaction execution attempt.

    APPLIED: Transaction was validated and applied to the ledger.
    ALREADY_APPLIED: Transaction intent was previously processed (idempotent behavior).
    REJECTED: Transaction failed validation (balance limits, unknown wallet or unit).
    """
    APPLIED = "applied"
    ALREADY_APPLIED = "already_applied"
    REJECTED = "rejected"


class OriginType(Enum):
    """Classification of where a transaction originated."""
    USER_ACTION = "user_action"     # Direct wallet-to-wallet transfer
    LENDING = "lending"             # Lending pool operation (deposit, borrow, ...)
    VAULT = "vault"                 # Savings vault operation
    SYSTEM = "system"               # Issuance, initial funding


# ============================================================================
# EXCEPTIONS
# ============================================================================

class LedgerError(Exception):
    """Base exception for all ledger-related errors."""
    pass


class InsufficientFunds(LedgerError):
    """Raised when a transfer would take a wallet below the unit's minimum balance."""
    pass


class UnitNotRegistered(LedgerError):
    """Raised when operating on a unit that has not been registered with the ledger."""
    pass


class WalletNotRegistered(LedgerError):
    """Raised when operating on a wallet that has not been registered with the ledger."""
    pass


# ============================================================================
# TRANSACTION ORIGIN
# ============================================================================

@dataclass(frozen=True, slots=True)
class TransactionOrigin:
    """
    Immutable record of a transaction's origin for audit purposes.

    Attributes:
        origin_type: Classification of the origin source
        source_id: Identifier of the specific source (pool wallet, vault, user)
        event_type: Operation within the source (e.g., "DEPOSIT", "LIQUIDATE")
    """
    origin_type: OriginType
    source_id: str
    event_type: Optional[str] = None

    def __repr__(self) -> str:
        if self.event_type:
            return f"Origin({self.origin_type.value}:{self.source_id}, event={self.event_type})"
        return f"Origin({self.origin_type.value}:{self.source_id})"


# ============================================================================
# CORE DATA STRUCTURES
# ============================================================================

@dataclass(frozen=True, slots=True)
class Move:
    """
    A single transfer of value between two wallets.

    Attributes:
        quantity: The amount to transfer (finite and strictly positive).
        unit_symbol: The asset being transferred.
        source: Wallet debited.
        dest: Wallet credited.
        contract_id: Identifier of the operation generating this move.
    """
    quantity: Decimal
    unit_symbol: str
    source: str
    dest: str
    contract_id: str

    def __post_init__(self):
        if not self.source or not self.source.strip():
            raise ValueError("Move source cannot be empty")
        if not self.dest or not self.dest.strip():
            raise ValueError("Move dest cannot be empty")
        if not self.unit_symbol or not self.unit_symbol.strip():
            raise ValueError("Move unit_symbol cannot be empty")
        if not self.contract_id or not self.contract_id.strip():
            raise ValueError("Move contract_id cannot be empty")
        if not isinstance(self.quantity, Decimal):
            raise ValueError(f"Move quantity must be Decimal, got {type(self.quantity)}")
        if self.quantity.is_infinite() or self.quantity.is_nan():
            raise ValueError(f"Move quantity must be finite, got {self.quantity}")
        if self.quantity < QUANTITY_EPSILON:
            raise ValueError(f"Move quantity must be positive, got {self.quantity}")
        if self.source == self.dest:
            raise ValueError("Source and dest must be different")

    def __repr__(self) -> str:
        return f"Move({self.quantity} {self.unit_symbol}: {self.source}→{self.dest})"


def _normalize_decimal(d: Decimal) -> str:
    """
    Canonical string for a Decimal: Decimal("1.0") and Decimal("1.00") both
    become "1", and fixed-point notation is used throughout.
    """
    normalized = d.normalize()
    if normalized == normalized.to_integral_value():
        return str(int(normalized))
    return format(normalized, 'f')


def _compute_intent_id(moves: Tuple[Move, ...], origin: TransactionOrigin) -> str:
    """
    Deterministic content hash of a transaction's intent.

    Depends only on the moves and the origin, never on timestamps, so the
    same business transfer submitted twice hashes identically and is applied once.
    """
    sorted_moves = sorted(
        moves,
        key=lambda m: (_normalize_decimal(m.quantity), m.unit_symbol, m.source, m.dest, m.contract_id)
    )
    parts = [f"origin:{origin.origin_type.value}:{origin.source_id}"]
    if origin.event_type:
        parts.append(f"event:{origin.event_type}")
    for m in sorted_moves:
        parts.append(
            f"move:{_normalize_decimal(m.quantity)}|{m.unit_symbol}|{m.source}|{m.dest}|{m.contract_id}"
        )
    content = "|".join(parts)
    return hashlib.sha256(content.encode()).hexdigest()[:16]


@dataclass(frozen=True, slots=True)
class PendingTransaction:
    """
    A transfer specification before execution - represents INTENT.

    Built by the lending pool or the vault and submitted to Ledger.execute().

    Attributes:
        moves: Tuple of value transfers between wallets
        origin: Who/what created this transaction and why
        timestamp: When this pending transaction was created
        intent_id: Content-addressable hash of the intent (auto-computed)
    """
    moves: Tuple[Move, ...]
    origin: TransactionOrigin
    timestamp: datetime
    intent_id: str = field(default="")

    def __post_init__(self):
        if not self.intent_id:
            object.__setattr__(self, 'intent_id', _compute_intent_id(self.moves, self.origin))

    def is_empty(self) -> bool:
        """Return True if this pending transaction has no moves."""
        return not self.moves

    def __repr__(self) -> str:
        return f"PendingTransaction({len(self.moves)} moves, {self.origin})"


def build_transaction(
    view: LedgerView,
    moves: List[Move],
    origin: Optional[TransactionOrigin] = None,
) -> PendingTransaction:
    """
    Build a PendingTransaction stamped with the view's current time.

    Args:
        view: Read-only ledger view (provides current_time)
        moves: Moves to include in the transaction
        origin: Transaction origin (defaults to a USER_ACTION origin)

    Example:
        tx = build_transaction(ledger, [
            Move(Decimal("100"), "USDC", "alice", "lending_pool", "deposit:1")
        ])
        ledger.execute(tx)
    """
    if origin is None:
        origin = TransactionOrigin(OriginType.USER_ACTION, "user")
    return PendingTransaction(
        moves=tuple(moves),
        origin=origin,
        timestamp=view.current_time,
    )


@dataclass(frozen=True, slots=True)
class Transaction:
    """
    An executed, immutable record of a transfer - represents FACT.

    Attributes:
        moves: Tuple of value transfers between wallets
        origin: Who/what created this transaction and why
        timestamp: When the PendingTransaction was created
        intent_id: Content hash from PendingTransaction (for idempotency)
        exec_id: Unique execution identifier (ledger + sequence + time)
        ledger_name: Name of the ledger that executed this
        execution_time: When this was executed
        sequence_number: Monotonic sequence within the ledger
        contract_ids: Contract IDs from the moves (auto-populated)
    """
    moves: Tuple[Move, ...]
    origin: TransactionOrigin
    timestamp: datetime
    intent_id: str
    exec_id: str
    ledger_name: str
    execution_time: datetime
    sequence_number: int
    contract_ids: FrozenSet[str] = None

    def __post_init__(self):
        if not self.moves:
            raise ValueError("Transaction must have moves")
        if self.contract_ids is None:
            object.__setattr__(self, 'contract_ids', frozenset(m.contract_id for m in self.moves))

    def __repr__(self) -> str:
        lines = [f"Transaction {self.exec_id} [{self.origin}] seq={self.sequence_number}"]
        for i, move in enumerate(self.moves):
            lines.append(f"   [{i}] {move.quantity} {move.unit_symbol}: {move.source} → {move.dest}")
        return "\n".join(lines)


@dataclass(frozen=True, slots=True)
class Unit:
    """
    Definition of an asset held in ledger wallets.

    Attributes:
        symbol: Short identifier for the unit (e.g., "USDC", "WETH").
        name: Human-readable name.
        unit_type: Category of the unit (CASH or TOKEN).
        min_balance: Minimum allowed balance in any non-system wallet.
        max_balance: Maximum allowed balance in any wallet.
        decimal_places: Rounding precision for balances (None = no rounding).
    """
    symbol: str
    name: str
    unit_type: str
    min_balance: Decimal = Decimal("0")
    max_balance: Decimal = Decimal("Infinity")
    decimal_places: Optional[int] = None

    def round(self, value: Decimal) -> Decimal:
        """Round a value to this unit's precision (unchanged if decimal_places is None)."""
        if self.decimal_places is None:
            return value
        if not isinstance(value, Decimal):
            value = Decimal(str(value))
        quantizer = Decimal(10) ** -self.decimal_places
        rounding_mode = DECIMAL_ROUNDING.get(self.unit_type, ROUND_HALF_EVEN)
        return value.quantize(quantizer, rounding=rounding_mode)

    def quantize(self, value: Decimal, rounding: Optional[str] = None) -> Decimal:
        """
        Round a value to the precision quantities of this unit are booked in.

        That is decimal_places, or QUANTITY_EPSILON when the unit sets none.
        The unit type's rounding mode applies unless rounding is given.
        """
        if not isinstance(value, Decimal):
            value = Decimal(str(value))
        quantizer = QUANTITY_EPSILON if self.decimal_places is None else Decimal(10) ** -self.decimal_places
        if rounding is None:
            rounding = DECIMAL_ROUNDING.get(self.unit_type, ROUND_HALF_EVEN)
        return value.quantize(quantizer, rounding=rounding)


# ============================================================================
# UNIT FACTORIES
# ============================================================================

def create_asset_unit(symbol: str, name: str, decimal_places: Optional[int] = None) -> Unit:
    """
    Create a lendable asset unit.

    Asset wallets cannot go negative: a deposit or repayment larger than the
    sender's holdings is rejected by the ledger.

    Args:
        symbol: Asset symbol (e.g., "WETH").
        name: Full name of the asset.
        decimal_places: Balance precision (default: unrounded).
    """
    if not symbol or not symbol.strip():
        raise ValueError("symbol cannot be empty")
    return Unit(
        symbol=symbol,
        name=name,
        unit_type=UNIT_TYPE_TOKEN,
        min_balance=Decimal("0"),
        decimal_places=decimal_places,
    )


def cash(symbol: str, name: str, decimal_places: int = 2) -> Unit:
    """
    Create a cash currency unit with a large overdraft allowance.

    Args:
        symbol: Currency code (e.g., "USD").
        name: Full name of the currency.
        decimal_places: Number of decimal places for amounts (default: 2).
    """
    return Unit(
        symbol=symbol,
        name=name,
        unit_type=UNIT_TYPE_CASH,
        decimal_places=decimal_places,
        min_balance=DEFAULT_CASH_MIN_BALANCE,
    )
