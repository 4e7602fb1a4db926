"""
Lending module - Positions, interest, liquidation and the lending pool.

- ratios: credit score -> collateral ratio tiers
- position: UserPosition / ReserveState and their keyed store
- interest: simple linear accrual
- liquidation: health factor and seize sizing
- pool: LendingPool, the orchestrating engine
"""

from .ratios import (
    CreditTier,
    RATIO_TIERS,
    BASE_COLLATERAL_RATIO,
    MIN_COLLATERAL_RATIO,
    resolve_collateral_ratio,
    credit_tier,
)

from .position import (
    UserPosition,
    ReserveState,
    PositionLedger,
    EMPTY_POSITION,
)

from .interest import (
    calculate_pending_interest,
    accrue_interest,
    total_debt_at,
)

from .liquidation import (
    HEALTH_FACTOR_MAX,
    DEFAULT_LIQUIDATION_THRESHOLD,
    DEFAULT_LIQUIDATION_BONUS_BPS,
    LiquidationResult,
    calculate_health_factor,
    calculate_liquidation,
    is_liquidatable,
)

from .pool import (
    LendingPool,
    PoolParameters,
    DEFAULT_POOL_WALLET,
)
