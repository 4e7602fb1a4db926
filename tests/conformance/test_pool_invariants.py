"""
Pool Invariant Conformance Tests

INVARIANTS (per asset, after every operation):

    Σ_users position.collateral_amount = reserve.total_collateral
    Σ_users position.borrowed_amount   = reserve.total_borrowed
    pool wallet balance               ≥ reserve.total_collateral

Per position, with the clock held still:

    total_debt × collateral_ratio ≤ collateral_amount × 100

and at any time, a position that is not liquidatable has a health
factor of at least 1.
"""

from decimal import Decimal
from hypothesis import given, settings, note
from hypothesis import strategies as st

from credit_ledger.lending import MIN_COLLATERAL_RATIO, BASE_COLLATERAL_RATIO

from tests.operation_sequences import ASSETS, BORROWERS, OPERATIONS, apply_step, build_pool, steps


TOLERANCE = Decimal("1e-9")


class TestReserveInvariants:

    @given(st.lists(steps(), min_size=1, max_size=25))
    @settings(max_examples=60, deadline=None)
    def test_reserve_totals_match_positions(self, sequence):
        """PROPERTY: reserve totals equal the sums over positions after every step."""
        pool = build_pool()
        for step in sequence:
            rejection = apply_step(pool, step)
            note(f"{step} -> {rejection!r}")
            for asset in ASSETS:
                result = pool.check_invariants(asset)
                assert result['valid'], result

    @given(st.lists(steps(), min_size=1, max_size=25))
    @settings(max_examples=60, deadline=None)
    def test_pool_holds_all_collateral(self, sequence):
        """PROPERTY: lending never dips into depositors' collateral."""
        pool = build_pool()
        for step in sequence:
            apply_step(pool, step)
            for asset in ASSETS:
                balance = pool.ledger.get_balance(pool.pool_wallet, asset)
                assert balance + TOLERANCE >= pool.get_reserve(asset).total_collateral
                assert pool.available_liquidity(asset) >= 0


class TestPositionInvariants:

    @given(st.lists(steps(tuple(op for op in OPERATIONS if op != "advance")), min_size=1, max_size=25))
    @settings(max_examples=60, deadline=None)
    def test_debt_within_ratio_without_time(self, sequence):
        """PROPERTY: without accrual, no operation leaves a position over its limit."""
        pool = build_pool()
        for step in sequence:
            apply_step(pool, step)
        for user in BORROWERS:
            for asset in ASSETS:
                position = pool.get_user_position(user, asset)
                if position.has_debt:
                    debt = position.total_debt * position.collateral_ratio
                    assert debt <= position.collateral_amount * 100 + TOLERANCE
                    assert not pool.is_liquidatable(user, asset)

    @given(st.lists(steps(), min_size=1, max_size=25))
    @settings(max_examples=60, deadline=None)
    def test_healthy_positions_have_health_factor_at_least_one(self, sequence):
        pool = build_pool()
        for step in sequence:
            apply_step(pool, step)
        for user in BORROWERS:
            for asset in ASSETS:
                if not pool.is_liquidatable(user, asset):
                    assert pool.get_health_factor(user, asset) >= Decimal("1")

    @given(st.lists(steps(), min_size=1, max_size=25))
    @settings(max_examples=40, deadline=None)
    def test_ratio_snapshot_in_range(self, sequence):
        pool = build_pool()
        for step in sequence:
            apply_step(pool, step)
        for user in BORROWERS:
            for asset in ASSETS:
                position = pool.get_user_position(user, asset)
                if position.last_update_time is not None:
                    assert MIN_COLLATERAL_RATIO <= position.collateral_ratio <= BASE_COLLATERAL_RATIO


class TestRoundedUnitInvariants:
    """Six-decimal assets driven with eight-decimal inputs."""

    @given(st.lists(steps(places=8), min_size=1, max_size=25))
    @settings(max_examples=60, deadline=None)
    def test_reserve_totals_exact_on_six_decimal_units(self, sequence):
        """PROPERTY: rounding inputs onto the grid keeps every invariant exact."""
        pool = build_pool(decimal_places=6)
        for step in sequence:
            rejection = apply_step(pool, step)
            note(f"{step} -> {rejection!r}")
            for asset in ASSETS:
                result = pool.check_invariants(asset, tolerance=Decimal("0"))
                assert result['valid'], result

    @given(st.lists(steps(places=8), min_size=1, max_size=25))
    @settings(max_examples=60, deadline=None)
    def test_positions_stay_on_grid(self, sequence):
        pool = build_pool(decimal_places=6)
        for step in sequence:
            apply_step(pool, step)
        for user in BORROWERS:
            for asset in ASSETS:
                unit = pool.ledger.get_unit(asset)
                position = pool.get_user_position(user, asset)
                for amount in (position.collateral_amount, position.borrowed_amount, position.accrued_interest):
                    assert unit.quantize(amount) == amount
