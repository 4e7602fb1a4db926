"""
Vault Share Conformance Tests

INVARIANT: Share conversion round-trips and share value never falls.

    ∀ x > 0:  convert_to_assets(convert_to_shares(x)) ≈ x
    yield added ⟹ assets per share does not decrease
    Σ_holders assets_of(h) ≤ total_assets

The virtual offset keeps a vault that has lost all its holders from
dividing by zero, and rounds conversions against the redeemer only by
dust. Redemptions pay out whole grid steps, rounded down.
"""

from decimal import Decimal
from hypothesis import given, settings
from hypothesis import strategies as st

from credit_ledger import AuthorizationPolicy, ScoreAccumulator, SavingsVault

from tests.fake_pool import GOVERNANCE, VAULT_WALLET, make_ledger
from tests.fake_credit import FixedCreditScore


TOLERANCE = Decimal("1e-30")
# smallest share or asset amount a redemption accepts
GRID = Decimal("1e-12")
HOLDERS = ("alice", "bob", "carol")

amounts = st.decimals(min_value=Decimal("0.01"), max_value=Decimal("50000"), places=2)
actions = st.tuples(st.sampled_from(["deposit", "redeem", "yield"]), st.sampled_from(HOLDERS), amounts)


def build_vault() -> SavingsVault:
    ledger = make_ledger(users=HOLDERS + (GOVERNANCE,))
    accumulator = ScoreAccumulator(AuthorizationPolicy(GOVERNANCE, allowed={VAULT_WALLET}), ledger)
    return SavingsVault(ledger, "USDC", accumulator, FixedCreditScore(700), owner=GOVERNANCE)


def run(vault, action):
    kind, user, amount = action
    if kind == "deposit":
        vault.deposit(user, amount)
    elif kind == "redeem":
        shares = min(amount, vault.balance_of(user))
        if shares >= GRID and vault.convert_to_assets(shares) >= GRID:
            vault.redeem(user, shares)
    else:
        vault.add_yield(GOVERNANCE, amount)


def share_price(vault):
    return vault.convert_to_assets(Decimal("1"))


class TestVaultShareProperties:

    @given(st.lists(actions, max_size=15), amounts)
    @settings(max_examples=80, deadline=None)
    def test_round_trip(self, history, probe):
        vault = build_vault()
        for action in history:
            run(vault, action)
        round_trip = vault.convert_to_assets(vault.convert_to_shares(probe))
        assert abs(round_trip - probe) <= TOLERANCE * (1 + probe)

    @given(st.lists(actions, min_size=1, max_size=15))
    @settings(max_examples=80, deadline=None)
    def test_share_price_never_falls(self, history):
        vault = build_vault()
        previous = share_price(vault)
        for action in history:
            run(vault, action)
            current = share_price(vault)
            assert current + TOLERANCE >= previous
            previous = current

    @given(st.lists(actions, min_size=1, max_size=15))
    @settings(max_examples=80, deadline=None)
    def test_holders_never_claim_more_than_vault_holds(self, history):
        vault = build_vault()
        for action in history:
            run(vault, action)
            claimed = sum(vault.assets_of(user) for user in HOLDERS)
            assert claimed <= vault.total_assets() + TOLERANCE

    @given(st.lists(actions, min_size=1, max_size=15))
    @settings(max_examples=60, deadline=None)
    def test_reported_savings_match_share_value(self, history):
        vault = build_vault()
        for action in history:
            run(vault, action)
        for user in HOLDERS:
            profile = vault.accumulator.get_profile(user)
            if profile is None:
                assert vault.balance_of(user) == 0
            elif vault.balance_of(user) > 0:
                assert profile.current_savings_balance <= vault.assets_of(user) + TOLERANCE
