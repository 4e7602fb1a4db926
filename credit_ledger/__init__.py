"""
credit_ledger - Credit-scored collateralized lending ledger

Borrowing limits are personalized per user: a five-factor credit score,
built from each user's repayment, savings and protocol activity, sets the
collateral ratio of every position they open.

Usage:
    from credit_ledger import (
        Ledger, create_asset_unit, StaticPricingSource, ValuationOracle,
        AuthorizationPolicy, ScoreAccumulator, CreditOracle, LendingPool,
    )

    ledger = Ledger("main", datetime(2025, 1, 1))
    ledger.register_unit(create_asset_unit("USDC", "USD Coin"))
    for wallet in ("alice", "lp"):
        ledger.register_wallet(wallet)
    ledger.issue("alice", "USDC", Decimal("20000"))
    ledger.issue("lp", "USDC", Decimal("100000"))

    policy = AuthorizationPolicy("governance", allowed={"lending_pool"})
    accumulator = ScoreAccumulator(policy, ledger)
    credit = CreditOracle(accumulator, ledger)
    valuation = ValuationOracle(StaticPricingSource({"USDC": Decimal("1")}), ledger)

    pool = LendingPool(ledger, valuation, credit, accumulator, owner="governance")
    pool.set_asset_supported("governance", "USDC", True, interest_rate_bps=500)
    pool.provide_liquidity("lp", "USDC", Decimal("100000"))
    pool.deposit_collateral("alice", "USDC", Decimal("10000"))
    pool.borrow("alice", "USDC", pool.get_max_borrow_amount("alice", "USDC"))
"""

# Core types
from .core import (
    LedgerView,
    CreditScoreProvider,
    Move,
    Transaction,
    PendingTransaction,
    TransactionOrigin,
    OriginType,
    build_transaction,
    Unit,
    ExecuteResult,
    LedgerError,
    InsufficientFunds,
    UnitNotRegistered,
    WalletNotRegistered,
    create_asset_unit,
    cash,
    SYSTEM_WALLET,
    UNIT_TYPE_CASH,
    UNIT_TYPE_TOKEN,
    MIN_CREDIT_SCORE,
    MAX_CREDIT_SCORE,
    BASIS_POINTS,
)

# Errors
from .errors import (
    LendingError,
    InvalidAmount,
    InvalidAddress,
    AssetNotSupported,
    InsufficientCollateral,
    BorrowLimitExceeded,
    InsufficientLiquidity,
    NoDebtToRepay,
    PositionNotLiquidatable,
    OracleError,
    PriceUnavailable,
    StalePrice,
    Unauthorized,
    ReentrantCall,
)

# Ledger
from .ledger import Ledger

# Pricing
from .pricing_source import (
    PricingSource,
    StaticPricingSource,
    TimeSeriesPricingSource,
    ValuationOracle,
)

# Authorization
from .authorization import AuthorizationPolicy

# Operation guard
from .guard import OperationGuard

# Lending
from .lending import (
    CreditTier,
    resolve_collateral_ratio,
    credit_tier,
    UserPosition,
    ReserveState,
    PositionLedger,
    calculate_pending_interest,
    accrue_interest,
    HEALTH_FACTOR_MAX,
    LiquidationResult,
    calculate_health_factor,
    calculate_liquidation,
    is_liquidatable,
    LendingPool,
    PoolParameters,
)

# Credit
from .credit import (
    PaymentStatus,
    PaymentRecord,
    ScoreCacheEntry,
    UserCreditProfile,
    ScoreAccumulator,
    CreditScoreBreakdown,
    calculate_credit_score,
    CreditOracle,
)

# Savings vault
from .vault import SavingsVault, YIELD_BOOST_TIERS


__all__ = [
    # Core
    'LedgerView', 'CreditScoreProvider', 'Move', 'Transaction', 'PendingTransaction',
    'TransactionOrigin', 'OriginType', 'build_transaction', 'Unit', 'ExecuteResult',
    'LedgerError', 'InsufficientFunds', 'UnitNotRegistered', 'WalletNotRegistered',
    'create_asset_unit', 'cash', 'SYSTEM_WALLET', 'UNIT_TYPE_CASH', 'UNIT_TYPE_TOKEN',
    'MIN_CREDIT_SCORE', 'MAX_CREDIT_SCORE', 'BASIS_POINTS',
    # Errors
    'LendingError', 'InvalidAmount', 'InvalidAddress', 'AssetNotSupported',
    'InsufficientCollateral', 'BorrowLimitExceeded', 'InsufficientLiquidity',
    'NoDebtToRepay', 'PositionNotLiquidatable', 'OracleError', 'PriceUnavailable',
    'StalePrice', 'Unauthorized', 'ReentrantCall',
    # Ledger
    'Ledger',
    # Pricing
    'PricingSource', 'StaticPricingSource', 'TimeSeriesPricingSource', 'ValuationOracle',
    # Authorization
    'AuthorizationPolicy',
    # Operation guard
    'OperationGuard',
    # Lending
    'CreditTier', 'resolve_collateral_ratio', 'credit_tier',
    'UserPosition', 'ReserveState', 'PositionLedger',
    'calculate_pending_interest', 'accrue_interest',
    'HEALTH_FACTOR_MAX', 'LiquidationResult', 'calculate_health_factor',
    'calculate_liquidation', 'is_liquidatable',
    'LendingPool', 'PoolParameters',
    # Credit
    'PaymentStatus', 'PaymentRecord', 'ScoreCacheEntry', 'UserCreditProfile',
    'ScoreAccumulator', 'CreditScoreBreakdown', 'calculate_credit_score', 'CreditOracle',
    # Vault
    'SavingsVault', 'YIELD_BOOST_TIERS',
]

__version__ = '1.0.0'
