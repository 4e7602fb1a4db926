#!/usr/bin/env python3
"""
demo.py - Interactive Tutorial: Credit-Scored Lending Step by Step

This is a pedagogical demonstration of how the lending ledger works.
Each step builds on the previous one. Press Enter to advance.

WHAT YOU'LL LEARN:
  1-3:   Foundation   - Custody ledger, valuation oracle, credit accumulator
  4-6:   Borrowing    - Collateral ratio from score, borrow limits, rejections
  7-8:   Time         - Interest accrual, liquidation
  9-10:  Credit       - Repayment, savings and time improving the score
  11:    Conservation - Every unit accounted for

Run:
    python demo.py           # Interactive mode (press Enter for each step)
    python demo.py --quick   # Run all steps without pausing
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
import sys

from credit_ledger import (
    Ledger, create_asset_unit,
    StaticPricingSource, ValuationOracle,
    AuthorizationPolicy, ScoreAccumulator, CreditOracle,
    LendingPool, SavingsVault,
    BorrowLimitExceeded, PositionNotLiquidatable,
)


# ============================================================================
# CONFIGURATION
# ============================================================================

@dataclass
class DemoConfig:
    """Configuration for the tutorial. Modify these to experiment."""
    start_time: datetime = datetime(2025, 1, 1, 9, 0, 0)
    governance: str = "governance"
    user_funding: Decimal = Decimal("50000")
    pool_liquidity: Decimal = Decimal("100000")
    interest_rate_bps: int = 500
    collateral: Decimal = Decimal("12000")


CONFIG = DemoConfig()

QUICK_MODE = "--quick" in sys.argv


def wait_for_enter():
    """Pause for user input unless in quick mode."""
    if not QUICK_MODE:
        input("\n[Press Enter to continue...]")


def step_header(number: int, title: str, objective: str):
    print(f"\n{'='*70}")
    print(f"STEP {number}: {title}")
    print(f"{'='*70}")
    print(f"\nObjective: {objective}\n")


def section_header(text: str):
    print(f"\n--- {text} ---\n")


def show_position(pool: LendingPool, user: str, asset: str = "USDC"):
    position = pool.get_user_position(user, asset)
    print(f"  collateral:       {position.collateral_amount:,.2f} {asset}")
    print(f"  borrowed:         {position.borrowed_amount:,.2f} {asset}")
    print(f"  accrued interest: {position.accrued_interest:,.6f} {asset}")
    print(f"  ratio snapshot:   {position.collateral_ratio}%")
    print(f"  health factor:    {pool.get_health_factor(user, asset):.6f}")


# ============================================================================
# PHASE 1: FOUNDATION
# ============================================================================

def step_01_ledger():
    step_header(1, "The Custody Ledger",
        "Every token the pool holds sits in a wallet on a double-entry ledger.")

    ledger = Ledger("lending", initial_time=CONFIG.start_time)
    ledger.register_unit(create_asset_unit("USDC", "USD Coin"))
    for user in ("alice", "liquidator", "lp", CONFIG.governance):
        ledger.register_wallet(user)
        ledger.issue(user, "USDC", CONFIG.user_funding if user != "lp" else CONFIG.pool_liquidity)

    for wallet in sorted(ledger.list_wallets()):
        print(f"  {wallet:12s} {ledger.get_balance(wallet, 'USDC'):>14,.2f} USDC")
    return ledger


def step_02_oracle(ledger: Ledger):
    step_header(2, "Valuation Oracle",
        "Prices come from a pricing source; a missing price is an error, never a default.")

    oracle = ValuationOracle(StaticPricingSource({"USDC": Decimal("1")}), ledger)
    print(f">>> oracle.value_of('USDC', 250) = {oracle.value_of('USDC', Decimal('250'))}")
    return oracle


def step_03_credit(ledger: Ledger):
    step_header(3, "Credit Accumulator and Oracle",
        "Only allow-listed components may write credit history.")

    policy = AuthorizationPolicy(CONFIG.governance, allowed={"lending_pool", "savings_vault"})
    accumulator = ScoreAccumulator(policy, ledger)
    credit = CreditOracle(accumulator, ledger)
    print(f"  writers:            {sorted(policy.allowed)}")
    print(f"  score of a stranger: {credit.get_credit_score('alice')}  (neutral payment history)")
    return accumulator, credit


# ============================================================================
# PHASE 2: BORROWING
# ============================================================================

def step_04_pool(ledger, oracle, credit, accumulator):
    step_header(4, "The Lending Pool",
        "Governance lists an asset; a liquidity provider funds it.")

    pool = LendingPool(ledger, oracle, credit, accumulator, owner=CONFIG.governance)
    pool.set_asset_supported(CONFIG.governance, "USDC", True, interest_rate_bps=CONFIG.interest_rate_bps)
    pool.provide_liquidity("lp", "USDC", CONFIG.pool_liquidity)
    print(f"  available liquidity: {pool.available_liquidity('USDC'):,.2f} USDC")
    return pool


def step_05_deposit(pool: LendingPool):
    step_header(5, "Collateral Ratio from Credit Score",
        "A new borrower scores low and is asked for 200% collateral.")

    pool.deposit_collateral("alice", "USDC", CONFIG.collateral)
    show_position(pool, "alice")
    print(f"\n  max borrow: {pool.get_max_borrow_amount('alice', 'USDC'):,.2f} USDC")


def step_06_borrow(pool: LendingPool):
    step_header(6, "Borrow Limits",
        "Borrowing past collateral * 100 / ratio is rejected and changes nothing.")

    section_header("Too much")
    try:
        pool.borrow("alice", "USDC", Decimal("7000"))
    except BorrowLimitExceeded as exc:
        print(f"  REJECTED: {exc}")

    section_header("Within the limit")
    pool.borrow("alice", "USDC", Decimal("6000"))
    show_position(pool, "alice")


# ============================================================================
# PHASE 3: TIME
# ============================================================================

def step_07_interest(pool: LendingPool, ledger: Ledger):
    step_header(7, "Interest Accrual",
        "Simple interest accrues on principal; queries simulate it without writing.")

    try:
        pool.liquidate("liquidator", "alice", "USDC", Decimal("500"))
    except PositionNotLiquidatable as exc:
        print(f"  day 0: {exc}")

    ledger.advance_time(ledger.current_time + timedelta(days=60))
    print(f"\n  after 60 days: interest {pool.calculate_interest('alice', 'USDC'):,.6f} USDC")
    show_position(pool, "alice")


def step_08_liquidation(pool: LendingPool, accumulator: ScoreAccumulator):
    step_header(8, "Liquidation",
        "Interest pushed the health factor under 1: a liquidator repays debt for collateral plus 5%.")

    result = pool.liquidate("liquidator", "alice", "USDC", Decimal("500"))
    print(f"  repaid {result.debt_to_repay} (interest {result.interest_repaid:.6f})")
    print(f"  seized {result.collateral_to_seize} (bonus {result.bonus})")
    record = accumulator.get_payment_history("alice")[-1]
    print(f"  credit record: {record.status.value}, {record.days_late} days late")
    show_position(pool, "alice")


# ============================================================================
# PHASE 4: CREDIT
# ============================================================================

def step_09_repay(pool: LendingPool, ledger: Ledger, vault: SavingsVault):
    step_header(9, "Building Credit",
        "Repay on time and keep savings in the vault.")

    repaid = pool.repay("alice", "USDC", Decimal("100000"))
    print(f"  repaid in full: {repaid:,.6f} USDC")
    vault.deposit("alice", Decimal("10000"))
    print(f"  vault shares:   {vault.balance_of('alice'):,.2f}")
    ledger.advance_time(ledger.current_time + timedelta(days=180))


def step_10_score(pool: LendingPool, credit: CreditOracle, vault: SavingsVault):
    step_header(10, "A Better Score, A Better Ratio",
        "The next deposit re-resolves the ratio from the improved score.")

    breakdown = credit.get_credit_breakdown("alice")
    print(f"  payment {breakdown.payment_score}  savings {breakdown.savings_score}  "
          f"time {breakdown.time_score}  diversity {breakdown.diversity_score}  "
          f"liquidity {breakdown.liquidity_score}")
    print(f"  total: {breakdown.total} ({credit.get_credit_tier('alice').value})")

    pool.deposit_collateral("alice", "USDC", Decimal("1"))
    show_position(pool, "alice")
    print(f"\n  vault yield boost: {vault.yield_boost_bps('alice')} bps")


def step_11_conservation(ledger: Ledger, pool: LendingPool):
    step_header(11, "Conservation",
        "Sum over all wallets is zero; the pool always holds its depositors' collateral.")

    print(f"  conservation: {ledger.verify_conservation()['valid']}")
    print(f"  pool invariants: {pool.check_invariants('USDC')['valid']}")


def main():
    print("=" * 70)
    print("       CREDIT LEDGER - INTERACTIVE TUTORIAL")
    print("=" * 70)
    if QUICK_MODE:
        print("Running in QUICK mode (no pauses)")
    wait_for_enter()

    ledger = step_01_ledger()
    wait_for_enter()
    oracle = step_02_oracle(ledger)
    wait_for_enter()
    accumulator, credit = step_03_credit(ledger)
    wait_for_enter()

    pool = step_04_pool(ledger, oracle, credit, accumulator)
    vault = SavingsVault(ledger, "USDC", accumulator, credit, owner=CONFIG.governance)
    wait_for_enter()
    step_05_deposit(pool)
    wait_for_enter()
    step_06_borrow(pool)
    wait_for_enter()

    step_07_interest(pool, ledger)
    wait_for_enter()
    step_08_liquidation(pool, accumulator)
    wait_for_enter()

    step_09_repay(pool, ledger, vault)
    wait_for_enter()
    step_10_score(pool, credit, vault)
    wait_for_enter()
    step_11_conservation(ledger, pool)

    print("\n" + "=" * 70)
    print("       TUTORIAL COMPLETE!")
    print("=" * 70)
    print("""
    Next steps:
      - See credit_ledger/lending/pool.py for the operation pipeline
      - See credit_ledger/credit/scoring.py for the score formula
      - Run tests: pytest tests/
    """)


if __name__ == "__main__":
    main()
