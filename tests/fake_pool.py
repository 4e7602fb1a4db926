"""
fake_pool.py - Test helpers for building funded ledgers and lending pools

Shared by the fixtures in conftest.py and by property tests that must
build fresh state per hypothesis example.
"""

from datetime import datetime, timedelta
from decimal import Decimal
from typing import Dict, Iterable, Optional

from credit_ledger import (
    Ledger, create_asset_unit,
    StaticPricingSource, ValuationOracle,
    ScoreAccumulator, LendingPool,
)


# =============================================================================
# CONSTANTS
# =============================================================================

START = datetime(2025, 1, 1)
GOVERNANCE = "governance"
POOL_WALLET = "lending_pool"
VAULT_WALLET = "savings_vault"
USERS = ("alice", "bob", "carol", "liquidator", "lp")
INITIAL_FUNDING = {"USDC": Decimal("1000000"), "WETH": Decimal("1000")}
DEFAULT_PRICES = {"USDC": Decimal("1"), "WETH": Decimal("2000")}
POOL_LIQUIDITY = Decimal("100000")


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def make_ledger(
    users: Iterable[str] = USERS,
    funding: Dict[str, Decimal] = None,
    start: datetime = START,
    decimal_places: Optional[int] = None,
) -> Ledger:
    """Ledger with USDC and WETH registered and every user funded via issue()."""
    if funding is None:
        funding = INITIAL_FUNDING
    ledger = Ledger("test", start, verbose=False)
    ledger.register_unit(create_asset_unit("USDC", "USD Coin", decimal_places))
    ledger.register_unit(create_asset_unit("WETH", "Wrapped Ether", decimal_places))
    for user in users:
        ledger.register_wallet(user)
        for symbol, amount in funding.items():
            ledger.issue(user, symbol, amount)
    return ledger


def make_pool(ledger: Ledger, credit, accumulator: ScoreAccumulator, prices=None, **kwargs) -> LendingPool:
    """Pool supporting USDC and WETH at 5%, with LP liquidity in USDC."""
    source = StaticPricingSource(dict(prices or DEFAULT_PRICES))
    oracle = ValuationOracle(source, ledger)
    pool = LendingPool(ledger, oracle, credit, accumulator, owner=GOVERNANCE, **kwargs)
    pool.set_asset_supported(GOVERNANCE, "USDC", True, interest_rate_bps=500)
    pool.set_asset_supported(GOVERNANCE, "WETH", True, interest_rate_bps=500)
    pool.provide_liquidity("lp", "USDC", POOL_LIQUIDITY)
    return pool


def advance(ledger: Ledger, **delta) -> datetime:
    """Move the ledger clock forward by a timedelta given as keyword args."""
    new_time = ledger.current_time + timedelta(**delta)
    ledger.advance_time(new_time)
    return new_time


def pool_state(pool: LendingPool, asset: str, users: Iterable[str] = USERS) -> dict:
    """Everything a rejected operation must leave untouched."""
    return {
        'positions': {u: pool.get_user_position(u, asset) for u in users},
        'reserve': pool.get_reserve(asset),
        'balances': {w: pool.ledger.get_balance(w, asset) for w in sorted(pool.ledger.list_wallets())},
        'profiles': {u: pool.accumulator.get_profile(u) for u in users},
    }
