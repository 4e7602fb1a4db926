"""
test_operation_guard.py - Unit tests for the engine-wide OperationGuard

Tests:
- Exclusive, non-reentrant operations
- Rollback of every registered participant, in reverse order
- Writes joining the running operation or holding the guard alone
- Optional writes skipped while another thread holds the guard
- One guard shared by the accumulator, the pool and the vault
"""

import threading
import pytest
from datetime import datetime
from decimal import Decimal

from credit_ledger import Ledger, AuthorizationPolicy, ScoreAccumulator, OperationGuard, ReentrantCall


class Box:
    """Mutable value with snapshot / restore hooks."""

    def __init__(self, value=0):
        self.value = value

    def snapshot(self):
        return self.value

    def restore(self, value):
        self.value = value


def in_thread(target):
    """Run target on another thread and return what it returned or raised."""
    outcome = []

    def run():
        try:
            outcome.append(target())
        except Exception as exc:
            outcome.append(exc)

    worker = threading.Thread(target=run)
    worker.start()
    worker.join()
    return outcome[0]


@pytest.fixture
def guard():
    return OperationGuard()


# ============================================================================
# OPERATIONS
# ============================================================================

class TestOperation:

    def test_commits_on_success(self, guard):
        box = Box(1)
        guard.register(box.snapshot, box.restore)
        with guard.operation("set"):
            box.value = 2
        assert box.value == 2
        assert not guard.busy

    def test_restores_every_participant_on_failure(self, guard):
        first, second = Box(1), Box(10)
        guard.register(first.snapshot, first.restore)
        guard.register(second.snapshot, second.restore)
        with pytest.raises(RuntimeError):
            with guard.operation("set"):
                first.value = 2
                second.value = 20
                raise RuntimeError("boom")
        assert (first.value, second.value) == (1, 10)
        assert not guard.busy

    def test_restores_in_reverse_registration_order(self, guard):
        order = []
        for name in ("accumulator", "pool", "vault"):
            guard.register(lambda: None, lambda state, name=name: order.append(name))
        with pytest.raises(ValueError):
            with guard.operation("fail"):
                raise ValueError()
        assert order == ["vault", "pool", "accumulator"]

    def test_nested_operation_rejected(self, guard):
        with guard.operation("outer"):
            assert guard.held
            with pytest.raises(ReentrantCall) as exc_info:
                with guard.operation("inner"):
                    pass
        assert exc_info.value.operation == "inner"
        assert not guard.held

    def test_other_thread_rejected(self, guard):
        with guard.operation("outer"):
            result = in_thread(lambda: guard.operation("other").__enter__())
        assert isinstance(result, ReentrantCall)


# ============================================================================
# WRITES
# ============================================================================

class TestWrite:

    def test_write_joins_running_operation(self, guard):
        box = Box(1)
        guard.register(box.snapshot, box.restore)
        with pytest.raises(RuntimeError):
            with guard.operation("outer"):
                with guard.write("inner"):
                    box.value = 5
                assert guard.held
                raise RuntimeError()
        assert box.value == 1

    def test_write_alone_holds_guard(self, guard):
        with guard.write("alone"):
            assert guard.held
        assert not guard.busy

    def test_write_from_other_thread_rejected(self, guard):
        def write():
            with guard.write("other"):
                return "written"

        with guard.operation("outer"):
            assert isinstance(in_thread(write), ReentrantCall)
        assert in_thread(write) == "written"

    def test_optional_write_skipped_while_busy_elsewhere(self, guard):
        def optional():
            with guard.optional_write() as writable:
                return writable

        with guard.operation("outer"):
            assert in_thread(optional) is False
            assert optional() is True
        assert in_thread(optional) is True


# ============================================================================
# SHARED BY THE ENGINE
# ============================================================================

class TestSharedGuard:

    def test_accumulator_creates_and_registers_guard(self):
        clock = Ledger("clock", datetime(2025, 1, 1))
        acc = ScoreAccumulator(AuthorizationPolicy("governance", allowed={"lending_pool"}), clock)
        with pytest.raises(RuntimeError):
            with acc.guard.operation("outer"):
                acc.record_payment("lending_pool", "alice", Decimal("10"), days_late=0)
                raise RuntimeError()
        assert acc.get_profile("alice") is None

    def test_accumulator_accepts_given_guard(self, guard):
        clock = Ledger("clock", datetime(2025, 1, 1))
        acc = ScoreAccumulator(AuthorizationPolicy("governance"), clock, guard=guard)
        assert acc.guard is guard

    def test_pool_and_vault_share_accumulator_guard(self, pool, vault, accumulator):
        assert pool._guard is accumulator.guard
        assert vault._guard is accumulator.guard
