"""
vault.py - Share-based savings vault with credit-tier yield boost

Depositors receive shares; yield added by the owner raises the asset value
of every share. Each holder's asset balance is reported to the
ScoreAccumulator as their savings balance, which drives the savings
component of their credit score.

Share math uses a virtual offset of one share and one asset unit:

    shares = assets * (total_shares + 1) / (total_assets + 1)
    assets = shares * (total_assets + 1) / (total_shares + 1)

so the first deposit converts 1:1 and an empty vault never divides by zero.
Shares are kept at full precision; assets moved in or out sit on the asset
unit's grid, with redemptions rounded down.

Operations run under the OperationGuard owned by the accumulator, so a
failed vault operation rolls back share balances and credit profiles, and
never overlaps a lending pool operation.
"""

from __future__ import annotations
from contextlib import contextmanager
from decimal import Decimal, ROUND_FLOOR
from typing import TYPE_CHECKING, Dict, Iterator, Tuple

from .core import (
    BASIS_POINTS, CreditScoreProvider, ExecuteResult, InsufficientFunds,
    Move, OriginType, QUANTITY_EPSILON, TransactionOrigin, WalletNotRegistered,
    build_transaction,
)
from .errors import (
    InvalidAmount, Unauthorized, require_amount, require_identity, require_unit_amount,
)

if TYPE_CHECKING:
    from .credit.accumulator import ScoreAccumulator
    from .ledger import Ledger


DEFAULT_VAULT_WALLET = "savings_vault"
VIRTUAL_OFFSET = Decimal("1")

# (minimum score, boost in basis points), highest first
YIELD_BOOST_TIERS: Tuple[Tuple[int, int], ...] = (
    (800, 2000),
    (700, 1000),
    (600, 500),
)


class SavingsVault:
    """
    Single-asset savings vault.

    Example:
        vault = SavingsVault(ledger, "USDC", accumulator, credit_oracle, owner="governance")
        shares = vault.deposit("alice", Decimal("1000"))
        vault.add_yield("governance", Decimal("50"))
        vault.redeem("alice", shares)      # ~1050 USDC back

    The vault identity (vault_wallet) must be allow-listed on the
    accumulator's AuthorizationPolicy.
    """

    def __init__(
        self,
        ledger: Ledger,
        asset: str,
        accumulator: ScoreAccumulator,
        credit: CreditScoreProvider,
        owner: str,
        vault_wallet: str = DEFAULT_VAULT_WALLET,
        verbose: bool = False,
    ):
        require_identity(owner, "owner")
        self.ledger = ledger
        self._unit = ledger.get_unit(asset)
        self.asset = self._unit.symbol
        self.accumulator = accumulator
        self.credit = credit
        self.owner = owner
        self.vault_wallet = vault_wallet
        self.verbose = verbose
        self._shares: Dict[str, Decimal] = {}
        self._guard = accumulator.guard
        self._guard.register(self._snapshot_state, self._restore_state)
        self._transfer_sequence = 0

        if not ledger.is_registered(vault_wallet):
            ledger.register_wallet(vault_wallet)

    # ========================================================================
    # SHARE ACCOUNTING
    # ========================================================================

    def total_assets(self) -> Decimal:
        return self.ledger.get_balance(self.vault_wallet, self.asset)

    def total_shares(self) -> Decimal:
        return sum(self._shares.values(), Decimal("0"))

    def convert_to_shares(self, assets: Decimal) -> Decimal:
        return assets * (self.total_shares() + VIRTUAL_OFFSET) / (self.total_assets() + VIRTUAL_OFFSET)

    def convert_to_assets(self, shares: Decimal) -> Decimal:
        return shares * (self.total_assets() + VIRTUAL_OFFSET) / (self.total_shares() + VIRTUAL_OFFSET)

    def balance_of(self, user: str) -> Decimal:
        return self._shares.get(user, Decimal("0"))

    def assets_of(self, user: str) -> Decimal:
        return self.convert_to_assets(self.balance_of(user))

    # ========================================================================
    # OPERATIONS
    # ========================================================================

    def _snapshot_state(self) -> Dict[str, Decimal]:
        return dict(self._shares)

    def _restore_state(self, shares: Dict[str, Decimal]) -> None:
        self._shares = dict(shares)

    @contextmanager
    def _operation(self, name: str) -> Iterator[None]:
        # savings are reported after the transfer, so check access up front
        self.accumulator.policy.require(self.vault_wallet, "update savings")
        with self._guard.operation(name):
            yield

    def _transfer(self, event: str, source: str, dest: str, amount: Decimal) -> None:
        for wallet in (source, dest):
            if not self.ledger.is_registered(wallet):
                raise WalletNotRegistered(f"Wallet {wallet} not registered")
        self._transfer_sequence += 1
        move = Move(amount, self.asset, source, dest, f"{event.lower()}:{self._transfer_sequence}")
        origin = TransactionOrigin(OriginType.VAULT, self.vault_wallet, event)
        result = self.ledger.execute(build_transaction(self.ledger, [move], origin))
        if result is not ExecuteResult.APPLIED:
            raise InsufficientFunds(f"{event} transfer not applied ({result.value}): {move}")

    def _report(self, user: str, deposit_delta: Decimal) -> None:
        self.accumulator.update_savings(self.vault_wallet, user, self.assets_of(user), deposit_delta)

    def deposit(self, user: str, assets: Decimal) -> Decimal:
        """
        Deposit assets and mint shares at the current share price.

        assets is rounded onto the asset unit's grid before shares are minted.

        Returns:
            Shares minted
        """
        require_identity(user, "user")
        assets = require_unit_amount(self._unit, assets, "assets")
        with self._operation("deposit"):
            shares = self.convert_to_shares(assets)
            self._transfer("VAULT_DEPOSIT", user, self.vault_wallet, assets)
            self._shares[user] = self.balance_of(user) + shares
            self._report(user, assets)
        if self.verbose:
            print(f"✓ VAULT_DEPOSIT {assets} {self.asset} from {user} -> {shares} shares")
        return shares

    def redeem(self, user: str, shares: Decimal) -> Decimal:
        """
        Burn shares and return their asset value, rounded down onto the grid.

        Raises:
            InsufficientFunds: more shares than the user holds
            InvalidAmount: the shares are worth less than one grid step
        """
        require_identity(user, "user")
        shares = require_amount(shares, "shares")
        with self._operation("redeem"):
            held = self.balance_of(user)
            if shares > held:
                raise InsufficientFunds(f"{user} holds {held} shares, cannot redeem {shares}")
            assets = self._unit.quantize(self.convert_to_assets(shares), ROUND_FLOOR)
            if assets < QUANTITY_EPSILON:
                raise InvalidAmount(shares, "shares")
            remaining = held - shares
            if remaining > 0:
                self._shares[user] = remaining
            else:
                del self._shares[user]
            self._transfer("VAULT_REDEEM", self.vault_wallet, user, assets)
            self._report(user, Decimal("0"))
        if self.verbose:
            print(f"✓ VAULT_REDEEM {shares} shares by {user} -> {assets} {self.asset}")
        return assets

    def add_yield(self, caller: str, assets: Decimal) -> None:
        """Owner funds yield; every holder's reported savings balance rises."""
        if caller != self.owner:
            raise Unauthorized(caller, "add vault yield")
        assets = require_unit_amount(self._unit, assets, "assets")
        with self._operation("add_yield"):
            self._transfer("VAULT_YIELD", caller, self.vault_wallet, assets)
            for holder in sorted(self._shares):
                self._report(holder, Decimal("0"))
        if self.verbose:
            print(f"✓ VAULT_YIELD {assets} {self.asset} from {caller}")

    # ========================================================================
    # CREDIT BOOST
    # ========================================================================

    def yield_boost_bps(self, user: str) -> int:
        """Extra yield, in basis points of the base rate, for the user's score."""
        score = self.credit.get_credit_score(user)
        for threshold, boost in YIELD_BOOST_TIERS:
            if score >= threshold:
                return boost
        return 0

    def boosted_rate_bps(self, user: str, base_rate_bps: int) -> Decimal:
        boost = Decimal(self.yield_boost_bps(user))
        return Decimal(base_rate_bps) * (BASIS_POINTS + boost) / BASIS_POINTS

    def __repr__(self):
        return f"SavingsVault({self.asset}, holders={len(self._shares)}, assets={self.total_assets()})"
