"""
test_savings_vault.py - Unit tests for SavingsVault

Tests:
- Share minting / redemption and the virtual offset
- Yield raises share value for every holder
- Savings balances reported to the ScoreAccumulator
- Authorization and rollback on failed transfers
- Credit-tier yield boost
- Rounding onto a six-decimal asset
"""

import pytest
from decimal import Decimal

from credit_ledger import (
    SavingsVault, AuthorizationPolicy, ScoreAccumulator,
    InsufficientFunds, InvalidAmount, InvalidAddress, ReentrantCall, Unauthorized,
    WalletNotRegistered,
)

from tests.fake_pool import GOVERNANCE, VAULT_WALLET, INITIAL_FUNDING, USERS, advance, make_ledger
from tests.fake_credit import FixedCreditScore


@pytest.fixture
def funded_owner(ledger):
    ledger.register_wallet(GOVERNANCE)
    ledger.issue(GOVERNANCE, "USDC", Decimal("10000"))
    return GOVERNANCE


class TestShares:

    def test_first_deposit_mints_one_to_one(self, vault, ledger):
        shares = vault.deposit("alice", Decimal("1000"))
        assert shares == Decimal("1000")
        assert vault.balance_of("alice") == Decimal("1000")
        assert vault.total_assets() == Decimal("1000")
        assert ledger.get_balance(VAULT_WALLET, "USDC") == Decimal("1000")
        assert ledger.get_balance("alice", "USDC") == INITIAL_FUNDING["USDC"] - Decimal("1000")

    def test_empty_vault_conversions(self, vault):
        assert vault.convert_to_shares(Decimal("5")) == Decimal("5")
        assert vault.convert_to_assets(Decimal("5")) == Decimal("5")
        assert vault.assets_of("nobody") == Decimal("0")

    def test_redeem_all(self, vault, ledger):
        shares = vault.deposit("alice", Decimal("1000"))
        assert vault.redeem("alice", shares) == Decimal("1000")
        assert vault.balance_of("alice") == Decimal("0")
        assert ledger.get_balance("alice", "USDC") == INITIAL_FUNDING["USDC"]

    def test_redeem_more_than_held(self, vault):
        vault.deposit("alice", Decimal("100"))
        with pytest.raises(InsufficientFunds):
            vault.redeem("alice", Decimal("101"))
        assert vault.balance_of("alice") == Decimal("100")

    @pytest.mark.parametrize("amount", [Decimal("0"), Decimal("-1"), Decimal("Infinity")])
    def test_invalid_amounts(self, vault, amount):
        with pytest.raises(InvalidAmount):
            vault.deposit("alice", amount)
        with pytest.raises(InvalidAmount):
            vault.redeem("alice", amount)

    def test_empty_user(self, vault):
        with pytest.raises(InvalidAddress):
            vault.deposit("", Decimal("1"))

    def test_plain_numbers_accepted(self, vault, funded_owner):
        assert vault.deposit("alice", 100) == Decimal("100")
        assert vault.redeem("alice", 40) == Decimal("40")
        vault.add_yield(funded_owner, 6)
        assert vault.total_assets() == Decimal("66")

    def test_dust_shares_rejected(self, vault):
        vault.deposit("alice", Decimal("100"))
        with pytest.raises(InvalidAmount):
            vault.redeem("alice", Decimal("9e-13"))
        assert vault.balance_of("alice") == Decimal("100")

    def test_holdings_checked_under_the_guard(self, vault):
        vault.deposit("alice", Decimal("100"))
        with vault._operation("outer"):
            with pytest.raises(ReentrantCall):
                vault.redeem("alice", Decimal("500"))
        assert vault.balance_of("alice") == Decimal("100")


class TestYield:

    def test_yield_raises_share_value(self, vault, funded_owner):
        vault.deposit("alice", Decimal("1000"))
        vault.add_yield(funded_owner, Decimal("50"))
        # 1000 * (1050 + 1) / (1000 + 1)
        assert vault.assets_of("alice") == Decimal("1000") * Decimal("1051") / Decimal("1001")
        assert vault.assets_of("alice") > Decimal("1049.9")

    def test_late_depositor_pays_current_price(self, vault, funded_owner):
        vault.deposit("alice", Decimal("1000"))
        vault.add_yield(funded_owner, Decimal("50"))
        bob_shares = vault.deposit("bob", Decimal("1050"))
        assert bob_shares < Decimal("1001")
        assert abs(vault.assets_of("bob") - Decimal("1050")) < Decimal("0.01")

    def test_yield_reported_to_every_holder(self, vault, funded_owner, accumulator):
        vault.deposit("alice", Decimal("1000"))
        vault.deposit("bob", Decimal("500"))
        vault.add_yield(funded_owner, Decimal("150"))
        for user in ("alice", "bob"):
            profile = accumulator.get_profile(user)
            assert profile.current_savings_balance == vault.assets_of(user)
        assert accumulator.get_profile("alice").total_savings_deposited == Decimal("1000")

    def test_only_owner_adds_yield(self, vault):
        with pytest.raises(Unauthorized):
            vault.add_yield("alice", Decimal("10"))

    def test_owner_without_wallet(self, vault):
        vault.deposit("alice", Decimal("100"))
        with pytest.raises(WalletNotRegistered):
            vault.add_yield(GOVERNANCE, Decimal("10"))
        assert vault.total_assets() == Decimal("100")


class TestSavingsReporting:

    def test_deposit_reports_balance_and_delta(self, vault, accumulator):
        vault.deposit("alice", Decimal("1000"))
        profile = accumulator.get_profile("alice")
        assert profile.current_savings_balance == Decimal("1000")
        assert profile.total_savings_deposited == Decimal("1000")

    def test_redeem_reports_remaining_balance(self, vault, accumulator, ledger):
        vault.deposit("alice", Decimal("1000"))
        advance(ledger, seconds=100)
        vault.redeem("alice", Decimal("400"))
        profile = accumulator.get_profile("alice")
        assert profile.current_savings_balance == Decimal("600")
        assert profile.total_savings_deposited == Decimal("1000")
        assert profile.savings_time_weighted_balance == Decimal("100000")

    def test_savings_feed_the_credit_score(self, vault, credit_oracle, ledger):
        vault.deposit("alice", Decimal("1000"))
        advance(ledger, days=30)
        breakdown = credit_oracle.get_credit_breakdown("alice")
        assert breakdown.savings_score == 100
        assert breakdown.total > 396

    def test_unlisted_vault_cannot_report(self, ledger, credit_oracle):
        accumulator = ScoreAccumulator(AuthorizationPolicy(GOVERNANCE), ledger)
        vault = SavingsVault(ledger, "USDC", accumulator, credit_oracle, owner=GOVERNANCE)
        with pytest.raises(Unauthorized):
            vault.deposit("alice", Decimal("100"))
        assert ledger.get_balance("alice", "USDC") == INITIAL_FUNDING["USDC"]
        assert vault.balance_of("alice") == Decimal("0")

    def test_failed_transfer_rolls_back(self, vault, accumulator):
        with pytest.raises(InsufficientFunds):
            vault.deposit("alice", INITIAL_FUNDING["USDC"] + 1)
        assert vault.balance_of("alice") == Decimal("0")
        assert not accumulator.is_initialized("alice")


class TestYieldBoost:

    @pytest.fixture
    def boosted(self, ledger, accumulator):
        credit = FixedCreditScore(550, scores={'alice': 820, 'bob': 700, 'carol': 650})
        return SavingsVault(ledger, "USDC", accumulator, credit, owner=GOVERNANCE)

    @pytest.mark.parametrize("user,boost", [("alice", 2000), ("bob", 1000), ("carol", 500), ("lp", 0)])
    def test_boost_tiers(self, boosted, user, boost):
        assert boosted.yield_boost_bps(user) == boost

    def test_boosted_rate(self, boosted):
        assert boosted.boosted_rate_bps("alice", 500) == Decimal("600")
        assert boosted.boosted_rate_bps("carol", 500) == Decimal("525")
        assert boosted.boosted_rate_bps("lp", 500) == Decimal("500")

    def test_new_user_gets_no_boost(self, vault):
        assert vault.yield_boost_bps("stranger") == 0

    def test_repr(self, boosted):
        assert "USDC" in repr(boosted)


class TestRoundedUnit:

    @pytest.fixture
    def six_decimal_vault(self):
        ledger = make_ledger(users=USERS + (GOVERNANCE,), decimal_places=6)
        accumulator = ScoreAccumulator(AuthorizationPolicy(GOVERNANCE, allowed={VAULT_WALLET}), ledger)
        return SavingsVault(ledger, "USDC", accumulator, FixedCreditScore(700), owner=GOVERNANCE)

    def test_deposit_rounded_onto_grid(self, six_decimal_vault):
        assert six_decimal_vault.deposit("alice", Decimal("1.0000009")) == Decimal("1")
        assert six_decimal_vault.total_assets() == Decimal("1")

    def test_deposit_below_grid_rejected(self, six_decimal_vault):
        with pytest.raises(InvalidAmount):
            six_decimal_vault.deposit("alice", Decimal("0.0000009"))
        assert six_decimal_vault.total_shares() == Decimal("0")

    def test_redeem_rounds_down(self, six_decimal_vault):
        vault = six_decimal_vault
        vault.deposit("alice", Decimal("1"))
        vault.deposit("bob", Decimal("1"))
        vault.add_yield(GOVERNANCE, Decimal("1"))
        # 1 * (3 + 1) / (2 + 1)
        assert vault.redeem("alice", Decimal("1")) == Decimal("1.333333")
        assert vault.total_assets() == Decimal("1.666667")

    def test_shares_worth_less_than_a_grid_step_rejected(self, six_decimal_vault):
        vault = six_decimal_vault
        vault.deposit("alice", Decimal("1"))
        with pytest.raises(InvalidAmount):
            vault.redeem("alice", Decimal("0.0000001"))
        assert vault.balance_of("alice") == Decimal("1")
        assert vault.total_assets() == Decimal("1")
