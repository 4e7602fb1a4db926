"""
pool.py - Credit-scored collateralized lending pool

The LendingPool orchestrates every position operation:

    accrue interest -> refresh ratio (deposit/borrow) -> validate -> mutate
    positions and reserves -> record credit events -> move value

Value moves through the Ledger between user wallets and the pool wallet.
The ledger transfer is always the last fallible step. Every operation runs
under the OperationGuard shared with the score accumulator and the savings
vault, and either fully commits or leaves positions, reserves, liquidity
records and credit profiles exactly as it found them.

Every booked quantity sits on the asset unit's grid (its decimal_places, or
QUANTITY_EPSILON). Inputs round with the unit's own rounding. Accrued interest
rounds up; borrow headroom and seized collateral round down.

Key Invariants (per asset):
    sum(position.collateral_amount) == reserve.total_collateral
    sum(position.borrowed_amount)   == reserve.total_borrowed
    pool wallet balance             >= reserve.total_collateral
"""

from __future__ import annotations
from contextlib import contextmanager
from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal, ROUND_CEILING, ROUND_FLOOR
from typing import TYPE_CHECKING, Any, Dict, Iterator, List, Optional, Tuple

from ..core import (
    CreditScoreProvider, ExecuteResult, InsufficientFunds, LedgerError, Move,
    OriginType, QUANTITY_EPSILON, TransactionOrigin, WalletNotRegistered,
    build_transaction,
)
from ..errors import (
    AssetNotSupported, BorrowLimitExceeded, InsufficientCollateral,
    InsufficientLiquidity, InvalidAmount, NoDebtToRepay,
    PositionNotLiquidatable, Unauthorized,
    require_amount, require_identity, require_unit_amount,
)
from ..pricing_source import ValuationOracle
from .interest import accrue_interest
from .liquidation import (
    DEFAULT_LIQUIDATION_BONUS_BPS, DEFAULT_LIQUIDATION_THRESHOLD, HEALTH_FACTOR_MAX,
    LiquidationResult, calculate_health_factor, calculate_liquidation,
)
from .position import PositionLedger, ReserveState, UserPosition
from .ratios import resolve_collateral_ratio

if TYPE_CHECKING:
    from ..credit.accumulator import ScoreAccumulator
    from ..ledger import Ledger


DEFAULT_POOL_WALLET = "lending_pool"


@dataclass(frozen=True, slots=True)
class PoolParameters:
    """
    Pool-wide liquidation settings.

    liquidation_days_late is the lateness recorded against a borrower's
    payment history when their position is liquidated.
    """
    liquidation_threshold: Decimal = DEFAULT_LIQUIDATION_THRESHOLD
    liquidation_bonus_bps: int = DEFAULT_LIQUIDATION_BONUS_BPS
    liquidation_days_late: int = 15

    def __post_init__(self):
        if not isinstance(self.liquidation_threshold, Decimal):
            object.__setattr__(self, 'liquidation_threshold', Decimal(str(self.liquidation_threshold)))
        if not self.liquidation_threshold.is_finite() or self.liquidation_threshold <= 0:
            raise InvalidAmount(self.liquidation_threshold, "liquidation_threshold")
        if not 0 <= self.liquidation_bonus_bps <= 10000:
            raise InvalidAmount(self.liquidation_bonus_bps, "liquidation_bonus_bps")
        if self.liquidation_days_late < 0:
            raise InvalidAmount(self.liquidation_days_late, "liquidation_days_late")


class LendingPool:
    """
    Lending engine over a custody Ledger.

    Example:
        pool = LendingPool(ledger, valuation, credit_oracle, accumulator, owner="governance")
        pool.set_asset_supported("governance", "USDC", True, interest_rate_bps=500)
        pool.provide_liquidity("lp", "USDC", Decimal("50000"))
        pool.deposit_collateral("alice", "USDC", Decimal("10000"))
        pool.borrow("alice", "USDC", Decimal("5000"))

    The pool identity (pool_wallet) must be on the accumulator's
    AuthorizationPolicy allow-list so the pool can record credit events.
    """

    def __init__(
        self,
        ledger: Ledger,
        oracle: ValuationOracle,
        credit: CreditScoreProvider,
        accumulator: ScoreAccumulator,
        owner: str,
        pool_wallet: str = DEFAULT_POOL_WALLET,
        parameters: PoolParameters = PoolParameters(),
        verbose: bool = False,
    ):
        self.ledger = ledger
        self.oracle = oracle
        self.credit = credit
        self.accumulator = accumulator
        self._owner = require_identity(owner, "owner")
        self.pool_wallet = require_identity(pool_wallet, "pool_wallet")
        self.parameters = parameters
        self.verbose = verbose

        self._positions = PositionLedger()
        self._liquidity: Dict[Tuple[str, str], Decimal] = {}
        self._guard = accumulator.guard
        self._guard.register(self._snapshot_state, self._restore_state)
        self._transfer_sequence = 0

        if not ledger.is_registered(pool_wallet):
            ledger.register_wallet(pool_wallet)

    @property
    def owner(self) -> str:
        return self._owner

    # ========================================================================
    # OPERATION SCOPE (guard + rollback)
    # ========================================================================

    def _snapshot_state(self) -> Tuple[Any, Dict[Tuple[str, str], Decimal]]:
        return self._positions.snapshot(), dict(self._liquidity)

    def _restore_state(self, state: Tuple[Any, Dict[Tuple[str, str], Decimal]]) -> None:
        positions, liquidity = state
        self._positions.restore(positions)
        self._liquidity = dict(liquidity)

    @contextmanager
    def _operation(self, name: str) -> Iterator[None]:
        """
        Run one mutating operation exclusively and atomically.

        The guard is shared with the accumulator and the vault and is taken
        without blocking: a second operation started while one is in flight
        (another thread, or a collaborator calling back in) is rejected with
        ReentrantCall. Any exception restores the position store, liquidity
        records, credit profiles and vault shares to their state at entry.
        """
        with self._guard.operation(name):
            try:
                yield
            except BaseException:
                if self.verbose:
                    print(f"✗ {name.upper()} rolled back")
                raise

    def _require_owner(self, caller: str, action: str) -> None:
        if caller != self._owner:
            raise Unauthorized(caller, action)

    def _require_supported(self, asset: str) -> ReserveState:
        reserve = self._positions.get_reserve(asset)
        if not reserve.supported:
            raise AssetNotSupported(asset)
        return reserve

    @property
    def _now(self) -> datetime:
        return self.ledger.current_time

    # ========================================================================
    # VALUE MOVEMENT
    # ========================================================================

    def _transfer(self, event: str, moves: List[Tuple[str, str, str, Decimal]]) -> None:
        """
        Execute (source, dest, asset, quantity) legs as one ledger transaction.

        The ledger validates the net effect of a transaction, so each payer
        is checked here against its gross outgoing legs: a liquidator cannot
        fund a repayment out of the collateral it is about to receive.

        Zero legs are dropped. Any other leg must already sit on its unit's
        grid; the pool never books an amount the ledger would round.

        Raises:
            InvalidAmount: a leg is dust or off the unit's grid
            WalletNotRegistered: a leg names an unknown wallet
            InsufficientFunds: a payer cannot cover its legs, or the ledger
                rejected the transfer
        """
        self._transfer_sequence += 1
        contract_id = f"{event.lower()}:{self._transfer_sequence}"
        built = []
        outgoing: Dict[Tuple[str, str], Decimal] = {}
        for source, dest, asset, quantity in moves:
            if quantity == 0:
                continue
            if quantity < QUANTITY_EPSILON or self.ledger.get_unit(asset).quantize(quantity) != quantity:
                raise InvalidAmount(quantity, f"{event.lower()} transfer")
            for wallet in (source, dest):
                if not self.ledger.is_registered(wallet):
                    raise WalletNotRegistered(f"Wallet {wallet} not registered")
            built.append(Move(quantity, asset, source, dest, contract_id))
            outgoing[(source, asset)] = outgoing.get((source, asset), Decimal("0")) + quantity
        if not built:
            return

        for (wallet, asset), quantity in outgoing.items():
            balance = self.ledger.get_balance(wallet, asset)
            if balance < quantity:
                raise InsufficientFunds(f"{event}: {wallet} holds {balance} {asset}, needs {quantity}")

        origin = TransactionOrigin(OriginType.LENDING, self.pool_wallet, event)
        result = self.ledger.execute(build_transaction(self.ledger, built, origin))
        if result is ExecuteResult.REJECTED:
            raise InsufficientFunds(f"{event} transfer rejected by ledger: {built}")
        if result is ExecuteResult.ALREADY_APPLIED:
            raise LedgerError(f"{event} transfer {contract_id} was already applied")

    # ========================================================================
    # POSITION HELPERS
    # ========================================================================

    def _book(self, asset: str, amount: Decimal, field_name: str = "amount") -> Decimal:
        """Amount rounded onto the asset's grid; InvalidAmount if nothing is left."""
        return require_unit_amount(self.ledger.get_unit(asset), amount, field_name)

    def _accrue(self, position: UserPosition, asset: str) -> UserPosition:
        """Position with interest accrued to now, rounded up onto the asset's grid."""
        rate = self._positions.get_reserve(asset).interest_rate_bps
        accrued = accrue_interest(position, rate, self._now)
        if accrued is position:
            return position
        interest = self.ledger.get_unit(asset).quantize(accrued.accrued_interest, ROUND_CEILING)
        if interest == accrued.accrued_interest:
            return accrued
        return replace(accrued, accrued_interest=interest)

    def _accrued_position(self, user: str, asset: str) -> UserPosition:
        """Position with interest accrued and its timestamp moved to now."""
        position = self._accrue(self._positions.get_position(user, asset), asset)
        now = self._now
        if position.last_update_time != now:
            position = replace(position, last_update_time=now)
        return position

    def _refresh_ratio(self, user: str, position: UserPosition) -> UserPosition:
        ratio = resolve_collateral_ratio(self.credit.get_credit_score(user))
        return replace(position, collateral_ratio=ratio)

    def _health_factor(self, asset: str, collateral_amount: Decimal, debt_amount: Decimal, ratio: int) -> Decimal:
        if debt_amount <= 0:
            return HEALTH_FACTOR_MAX
        return calculate_health_factor(
            self.oracle.value_of(asset, collateral_amount),
            self.oracle.value_of(asset, debt_amount),
            ratio,
        )

    def _max_borrow(self, asset: str, position: UserPosition) -> Decimal:
        """Additional amount borrowable against the position's ratio snapshot."""
        if position.collateral_ratio <= 0 or position.collateral_amount <= 0:
            return Decimal("0")
        collateral_value = self.oracle.value_of(asset, position.collateral_amount)
        debt_value = self.oracle.value_of(asset, position.total_debt)
        limit_value = collateral_value * 100 / Decimal(position.collateral_ratio) - debt_value
        if limit_value <= 0:
            return Decimal("0")
        return self.ledger.get_unit(asset).quantize(self.oracle.amount_of(asset, limit_value), ROUND_FLOOR)

    def _round_seizure(self, asset: str, result: LiquidationResult) -> LiquidationResult:
        """Seized collateral rounded down onto the grid, bonus reduced to match."""
        seize = self.ledger.get_unit(asset).quantize(result.collateral_to_seize, ROUND_FLOOR)
        fair = result.collateral_to_seize - result.bonus
        return replace(result, collateral_to_seize=seize, bonus=max(Decimal("0"), seize - fair))

    def _available(self, asset: str) -> Decimal:
        pool_balance = self.ledger.get_balance(self.pool_wallet, asset)
        return max(Decimal("0"), pool_balance - self._positions.get_reserve(asset).total_collateral)

    def _record_activity(self, user: str, asset: str) -> None:
        self.accumulator.initialize_user(self.pool_wallet, user)
        self.accumulator.track_asset_usage(self.pool_wallet, user, asset)

    def _log(self, message: str) -> None:
        if self.verbose:
            print(f"✓ {message}")

    # ========================================================================
    # USER OPERATIONS
    # ========================================================================

    def deposit_collateral(self, user: str, asset: str, amount: Decimal) -> Decimal:
        """
        Move amount of asset from user into the pool as collateral.

        Refreshes the position's collateral ratio from the user's current
        credit score.

        Returns:
            The amount deposited

        Raises:
            InvalidAddress, InvalidAmount, AssetNotSupported
            InsufficientFunds: user wallet cannot cover the deposit
        """
        require_identity(user, "user")
        amount = require_amount(amount)
        with self._operation("deposit_collateral"):
            reserve = self._require_supported(asset)
            amount = self._book(asset, amount)
            position = self._refresh_ratio(user, self._accrued_position(user, asset))
            position = replace(position, collateral_amount=position.collateral_amount + amount)
            self._positions.put_position(user, asset, position)
            self._positions.put_reserve(asset, replace(
                reserve, total_collateral=reserve.total_collateral + amount))
            self._record_activity(user, asset)
            self._transfer("DEPOSIT", [(user, self.pool_wallet, asset, amount)])
        self._log(f"DEPOSIT {amount} {asset} from {user} (ratio {position.collateral_ratio}%)")
        return amount

    def withdraw_collateral(self, user: str, asset: str, amount: Decimal) -> Decimal:
        """
        Return amount of collateral to user.

        With debt outstanding, the post-withdrawal health factor (at the
        position's ratio snapshot) must stay at or above the liquidation
        threshold.

        Raises:
            InsufficientCollateral: more than deposited, or the withdrawal
                would make the position liquidatable
        """
        require_identity(user, "user")
        amount = require_amount(amount)
        with self._operation("withdraw_collateral"):
            reserve = self._require_supported(asset)
            amount = self._book(asset, amount)
            position = self._accrued_position(user, asset)
            if amount > position.collateral_amount:
                raise InsufficientCollateral(amount, position.collateral_amount, "exceeds deposited collateral")

            remaining = position.collateral_amount - amount
            if position.has_debt:
                threshold = self.parameters.liquidation_threshold
                health_factor = self._health_factor(asset, remaining, position.total_debt, position.collateral_ratio)
                if health_factor < threshold:
                    required_value = (
                        self.oracle.value_of(asset, position.total_debt)
                        * Decimal(position.collateral_ratio) * threshold / 100
                    )
                    raise InsufficientCollateral(
                        self.oracle.amount_of(asset, required_value), remaining,
                        f"health factor would fall to {health_factor}",
                    )

            self._positions.put_position(user, asset, replace(position, collateral_amount=remaining))
            self._positions.put_reserve(asset, replace(
                reserve, total_collateral=reserve.total_collateral - amount))
            self._transfer("WITHDRAW", [(self.pool_wallet, user, asset, amount)])
        self._log(f"WITHDRAW {amount} {asset} to {user}")
        return amount

    def borrow(self, user: str, asset: str, amount: Decimal) -> Decimal:
        """
        Lend amount of asset to user against their collateral.

        Two independent gates must pass: the pool must hold enough lendable
        funds (balance above total collateral), and the amount must fit under
        collateral_value * 100 / ratio - debt_value at the refreshed ratio.

        Raises:
            InsufficientLiquidity, BorrowLimitExceeded
        """
        require_identity(user, "user")
        amount = require_amount(amount)
        with self._operation("borrow"):
            reserve = self._require_supported(asset)
            amount = self._book(asset, amount)
            position = self._refresh_ratio(user, self._accrued_position(user, asset))

            available = self._available(asset)
            if amount > available:
                raise InsufficientLiquidity(amount, available)
            max_borrow = self._max_borrow(asset, position)
            if amount > max_borrow:
                raise BorrowLimitExceeded(amount, max_borrow)

            position = replace(position, borrowed_amount=position.borrowed_amount + amount)
            self._positions.put_position(user, asset, position)
            self._positions.put_reserve(asset, replace(
                reserve, total_borrowed=reserve.total_borrowed + amount))
            self._record_activity(user, asset)
            self._transfer("BORROW", [(self.pool_wallet, user, asset, amount)])
        self._log(f"BORROW {amount} {asset} by {user} (ratio {position.collateral_ratio}%)")
        return amount

    def repay(self, user: str, asset: str, amount: Decimal) -> Decimal:
        """
        Repay up to amount of the user's debt, interest first.

        Overpayment is capped at the total debt. Records an on-time payment.

        Returns:
            The amount actually repaid

        Raises:
            NoDebtToRepay
        """
        require_identity(user, "user")
        amount = require_amount(amount)
        with self._operation("repay"):
            reserve = self._require_supported(asset)
            amount = self._book(asset, amount)
            position = self._accrued_position(user, asset)
            if not position.has_debt:
                raise NoDebtToRepay(user, asset)

            if amount >= position.total_debt:
                actual = position.total_debt
                interest_part, principal_part = position.accrued_interest, position.borrowed_amount
            else:
                actual = amount
                interest_part = min(actual, position.accrued_interest)
                principal_part = min(actual - interest_part, position.borrowed_amount)
            self._positions.put_position(user, asset, replace(
                position,
                accrued_interest=position.accrued_interest - interest_part,
                borrowed_amount=position.borrowed_amount - principal_part,
            ))
            self._positions.put_reserve(asset, replace(
                reserve, total_borrowed=reserve.total_borrowed - principal_part))
            self.accumulator.record_payment(self.pool_wallet, user, actual, days_late=0)
            self._transfer("REPAY", [(user, self.pool_wallet, asset, actual)])
        self._log(f"REPAY {actual} {asset} by {user} (interest {interest_part}, principal {principal_part})")
        return actual

    def liquidate(self, liquidator: str, borrower: str, asset: str, debt_amount: Decimal) -> LiquidationResult:
        """
        Repay part of an unhealthy position's debt in exchange for its
        collateral plus the liquidation bonus.

        Records a late payment of the repaid debt against the borrower.

        Raises:
            PositionNotLiquidatable: health factor at or above the threshold
        """
        require_identity(liquidator, "liquidator")
        require_identity(borrower, "borrower")
        debt_amount = require_amount(debt_amount, "debt_amount")
        with self._operation("liquidate"):
            reserve = self._require_supported(asset)
            debt_amount = self._book(asset, debt_amount, "debt_amount")
            position = self._accrued_position(borrower, asset)
            threshold = self.parameters.liquidation_threshold
            health_factor = self._health_factor(
                asset, position.collateral_amount, position.total_debt, position.collateral_ratio)
            if not health_factor < threshold:
                raise PositionNotLiquidatable(health_factor, threshold)

            price = self.oracle.price_of(asset)
            result = self._round_seizure(asset, calculate_liquidation(
                position, debt_amount, price, price, self.parameters.liquidation_bonus_bps))

            self._positions.put_position(borrower, asset, replace(
                position,
                accrued_interest=position.accrued_interest - result.interest_repaid,
                borrowed_amount=position.borrowed_amount - result.principal_repaid,
                collateral_amount=position.collateral_amount - result.collateral_to_seize,
            ))
            self._positions.put_reserve(asset, replace(
                reserve,
                total_collateral=reserve.total_collateral - result.collateral_to_seize,
                total_borrowed=reserve.total_borrowed - result.principal_repaid,
            ))
            self.accumulator.record_payment(
                self.pool_wallet, borrower, result.debt_to_repay,
                days_late=self.parameters.liquidation_days_late,
            )
            self._transfer("LIQUIDATE", [
                (liquidator, self.pool_wallet, asset, result.debt_to_repay),
                (self.pool_wallet, liquidator, asset, result.collateral_to_seize),
            ])
        self._log(
            f"LIQUIDATE {borrower} {asset}: repaid {result.debt_to_repay}, "
            f"seized {result.collateral_to_seize} (hf {health_factor})"
        )
        return result

    # ========================================================================
    # LIQUIDITY PROVISION
    # ========================================================================

    def _report_liquidity(self, provider: str) -> None:
        total_value = sum(
            (self.oracle.value_of(asset, amount)
             for (who, asset), amount in self._liquidity.items() if who == provider),
            Decimal("0"),
        )
        self.accumulator.set_liquidity_provided(self.pool_wallet, provider, total_value)

    def provide_liquidity(self, provider: str, asset: str, amount: Decimal) -> Decimal:
        """
        Add lendable funds to the pool.

        The provider's total contribution (base-currency value across assets)
        is reported to the credit accumulator.
        """
        require_identity(provider, "provider")
        amount = require_amount(amount)
        with self._operation("provide_liquidity"):
            self._require_supported(asset)
            amount = self._book(asset, amount)
            key = (provider, asset)
            self._liquidity[key] = self._liquidity.get(key, Decimal("0")) + amount
            self._report_liquidity(provider)
            self._transfer("PROVIDE_LIQUIDITY", [(provider, self.pool_wallet, asset, amount)])
        self._log(f"PROVIDE_LIQUIDITY {amount} {asset} from {provider}")
        return amount

    def withdraw_liquidity(self, provider: str, asset: str, amount: Decimal) -> Decimal:
        """
        Return previously provided funds.

        Raises:
            InsufficientLiquidity: more than the provider supplied, or more
                than the pool can release without touching collateral
        """
        require_identity(provider, "provider")
        amount = require_amount(amount)
        with self._operation("withdraw_liquidity"):
            self._require_supported(asset)
            amount = self._book(asset, amount)
            key = (provider, asset)
            provided = self._liquidity.get(key, Decimal("0"))
            if amount > provided:
                raise InsufficientLiquidity(amount, provided)
            available = self._available(asset)
            if amount > available:
                raise InsufficientLiquidity(amount, available)

            remaining = provided - amount
            if remaining > 0:
                self._liquidity[key] = remaining
            else:
                del self._liquidity[key]
            self._report_liquidity(provider)
            self._transfer("WITHDRAW_LIQUIDITY", [(self.pool_wallet, provider, asset, amount)])
        self._log(f"WITHDRAW_LIQUIDITY {amount} {asset} to {provider}")
        return amount

    # ========================================================================
    # QUERIES (never mutate; pending interest is simulated)
    # ========================================================================

    def get_user_position(self, user: str, asset: str) -> UserPosition:
        """Position as it would look if interest were accrued now."""
        return self._accrue(self._positions.get_position(user, asset), asset)

    def get_reserve(self, asset: str) -> ReserveState:
        return self._positions.get_reserve(asset)

    def get_health_factor(self, user: str, asset: str) -> Decimal:
        position = self.get_user_position(user, asset)
        return self._health_factor(
            asset, position.collateral_amount, position.total_debt, position.collateral_ratio)

    def get_max_borrow_amount(self, user: str, asset: str) -> Decimal:
        """Borrow headroom at the position's ratio snapshot (ignores pool liquidity)."""
        return self._max_borrow(asset, self.get_user_position(user, asset))

    def is_liquidatable(self, user: str, asset: str) -> bool:
        return self.get_health_factor(user, asset) < self.parameters.liquidation_threshold

    def calculate_interest(self, user: str, asset: str) -> Decimal:
        """Accrued plus pending interest owed on the position."""
        return self.get_user_position(user, asset).accrued_interest

    def available_liquidity(self, asset: str) -> Decimal:
        return self._available(asset)

    def get_liquidity_provided(self, provider: str, asset: str) -> Decimal:
        return self._liquidity.get((provider, asset), Decimal("0"))

    def check_invariants(self, asset: str, tolerance: Decimal = Decimal("1e-9")) -> Dict[str, Any]:
        """Reserve totals against positions, plus pool balance against collateral."""
        result = self._positions.check_invariants(asset, tolerance)
        pool_balance = self.ledger.get_balance(self.pool_wallet, asset)
        result['pool_balance'] = pool_balance
        result['solvent'] = pool_balance + tolerance >= result['total_collateral']
        result['valid'] = result['valid'] and result['solvent']
        return result

    # ========================================================================
    # ADMINISTRATION (owner only)
    # ========================================================================

    def _accrue_all(self, asset: str) -> None:
        for user in self._positions.positions_for(asset):
            self._positions.put_position(user, asset, self._accrued_position(user, asset))

    def set_asset_supported(self, caller: str, asset: str, supported: bool,
                            interest_rate_bps: Optional[int] = None) -> None:
        self._require_owner(caller, "set asset support")
        require_identity(asset, "asset")
        with self._operation("set_asset_supported"):
            if supported:
                self.ledger.get_unit(asset)  # raises UnitNotRegistered
            reserve = self._positions.get_reserve(asset)
            if interest_rate_bps is not None:
                if interest_rate_bps < 0:
                    raise InvalidAmount(interest_rate_bps, "interest_rate_bps")
                self._accrue_all(asset)
                reserve = replace(reserve, interest_rate_bps=interest_rate_bps)
            self._positions.put_reserve(asset, replace(reserve, supported=supported))
        self._log(f"ASSET {asset} supported={supported} rate={self.get_reserve(asset).interest_rate_bps}bps")

    def set_interest_rate(self, caller: str, asset: str, rate_bps: int) -> None:
        """Change an asset's annual rate; existing debt accrues at the old rate up to now."""
        self._require_owner(caller, "set interest rate")
        if rate_bps < 0:
            raise InvalidAmount(rate_bps, "rate_bps")
        with self._operation("set_interest_rate"):
            reserve = self._require_supported(asset)
            self._accrue_all(asset)
            self._positions.put_reserve(asset, replace(reserve, interest_rate_bps=rate_bps))
        self._log(f"RATE {asset} = {rate_bps}bps")

    def set_liquidation_threshold(self, caller: str, threshold: Decimal) -> None:
        self._require_owner(caller, "set liquidation threshold")
        with self._operation("set_liquidation_threshold"):
            self.parameters = replace(self.parameters, liquidation_threshold=threshold)

    def set_liquidation_bonus(self, caller: str, bonus_bps: int) -> None:
        self._require_owner(caller, "set liquidation bonus")
        with self._operation("set_liquidation_bonus"):
            self.parameters = replace(self.parameters, liquidation_bonus_bps=bonus_bps)

    def set_oracle(self, caller: str, oracle: ValuationOracle) -> None:
        self._require_owner(caller, "set valuation oracle")
        with self._operation("set_oracle"):
            self.oracle = oracle

    def set_credit_provider(self, caller: str, credit: CreditScoreProvider) -> None:
        self._require_owner(caller, "set credit provider")
        with self._operation("set_credit_provider"):
            self.credit = credit

    def transfer_ownership(self, caller: str, new_owner: str) -> None:
        self._require_owner(caller, "transfer ownership")
        require_identity(new_owner, "new_owner")
        with self._operation("transfer_ownership"):
            self._owner = new_owner
        self._log(f"OWNER {caller} -> {new_owner}")

    def __repr__(self):
        return f"LendingPool(wallet={self.pool_wallet!r}, owner={self._owner!r}, assets={self._positions.assets()})"
