"""
conftest.py - Shared pytest fixtures for credit ledger tests

Provides common fixtures used across unit, functional and conformance tests:
- Funded ledgers with USDC and WETH
- Pricing sources and the valuation oracle
- Authorization policy, score accumulator and credit oracle
- Lending pools (fixed-score and fully credit-scored) and a savings vault
"""

import pytest

from credit_ledger import (
    StaticPricingSource, ValuationOracle,
    AuthorizationPolicy, ScoreAccumulator, CreditOracle,
    SavingsVault,
)

from tests.fake_credit import FixedCreditScore
from tests.fake_pool import (
    GOVERNANCE, POOL_WALLET, VAULT_WALLET, DEFAULT_PRICES,
    make_ledger, make_pool,
)


@pytest.fixture
def ledger():
    return make_ledger()


@pytest.fixture
def pricing():
    return StaticPricingSource(dict(DEFAULT_PRICES))


@pytest.fixture
def valuation(pricing, ledger):
    return ValuationOracle(pricing, ledger)


@pytest.fixture
def policy():
    return AuthorizationPolicy(GOVERNANCE, allowed={POOL_WALLET, VAULT_WALLET})


@pytest.fixture
def accumulator(policy, ledger):
    return ScoreAccumulator(policy, ledger)


@pytest.fixture
def credit_oracle(accumulator, ledger):
    return CreditOracle(accumulator, ledger)


@pytest.fixture
def fixed_credit():
    return FixedCreditScore(750)


@pytest.fixture
def pool(ledger, fixed_credit, accumulator):
    """Pool whose users all score 750 (120% ratio) unless overridden."""
    return make_pool(ledger, fixed_credit, accumulator)


@pytest.fixture
def scored_pool(ledger, credit_oracle, accumulator):
    """Pool wired to the real credit oracle."""
    return make_pool(ledger, credit_oracle, accumulator)


@pytest.fixture
def vault(ledger, accumulator, credit_oracle):
    return SavingsVault(ledger, "USDC", accumulator, credit_oracle, owner=GOVERNANCE)
