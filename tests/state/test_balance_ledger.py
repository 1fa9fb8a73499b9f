"""Tests for bondcurve/state/ledger.py: atomic transfer batches."""

from __future__ import annotations

import pytest

from bondcurve.core.errors import TransferFailed
from bondcurve.core.pricing import U64_MAX
from bondcurve.state import NATIVE_ASSET, BalanceLedger, BalanceTable, Transfer


def _funded() -> BalanceLedger:
    ledger = BalanceLedger()
    ledger.credit("alice", NATIVE_ASSET, 1_000)
    ledger.mint_initial_supply("curve", "MINT", 500)
    return ledger


class TestBalanceTable:
    def test_zero_balances_dropped(self) -> None:
        t = BalanceTable()
        t.add("a", "SOL", 5)
        t.subtract("a", "SOL", 5)
        assert t.get_all_balances() == {}

    def test_negative_rejected(self) -> None:
        t = BalanceTable()
        with pytest.raises(ValueError):
            t.subtract("a", "SOL", 1)

    def test_copy_is_independent(self) -> None:
        t = BalanceTable()
        t.set("a", "MINT", 3)
        staged = t.copy()
        staged.add("b", "MINT", 4)
        staged.subtract("a", "MINT", 3)
        assert t.get_all_balances() == {("a", "MINT"): 3}
        assert staged.get_all_balances() == {("b", "MINT"): 4}


class TestBalanceLedger:
    def test_transfer(self) -> None:
        ledger = _funded()
        ledger.transfer("alice", "bob", NATIVE_ASSET, 400)
        assert ledger.balance_of("alice", NATIVE_ASSET) == 600
        assert ledger.balance_of("bob", NATIVE_ASSET) == 400

    def test_batch_applies_all_legs(self) -> None:
        ledger = _funded()
        ledger.transfer_batch([
            Transfer("alice", "curve", NATIVE_ASSET, 100),
            Transfer("curve", "alice", "MINT", 50),
        ])
        assert ledger.balance_of("curve", NATIVE_ASSET) == 100
        assert ledger.balance_of("alice", "MINT") == 50

    def test_failed_leg_rolls_back_batch(self) -> None:
        ledger = _funded()
        before = ledger.snapshot()
        with pytest.raises(TransferFailed):
            ledger.transfer_batch([
                Transfer("alice", "curve", NATIVE_ASSET, 100),
                Transfer("curve", "alice", "MINT", 501),
            ])
        assert ledger.snapshot() == before

    @pytest.mark.parametrize("amount", [0, -1, True])
    def test_bad_amount(self, amount) -> None:
        with pytest.raises(TransferFailed):
            _funded().transfer("alice", "bob", NATIVE_ASSET, amount)

    def test_self_transfer(self) -> None:
        with pytest.raises(TransferFailed):
            _funded().transfer("alice", "alice", NATIVE_ASSET, 1)

    def test_credit_overflow(self) -> None:
        ledger = BalanceLedger()
        ledger.credit("a", NATIVE_ASSET, U64_MAX)
        with pytest.raises(TransferFailed):
            ledger.credit("a", NATIVE_ASSET, 1)

    def test_transfer_overflow(self) -> None:
        ledger = BalanceLedger()
        ledger.credit("a", NATIVE_ASSET, U64_MAX)
        ledger.credit("b", NATIVE_ASSET, 1)
        with pytest.raises(TransferFailed):
            ledger.transfer("b", "a", NATIVE_ASSET, 1)
        assert ledger.balance_of("b", NATIVE_ASSET) == 1

    def test_transfer_to_dict(self) -> None:
        assert Transfer("a", "b", "SOL", 3).to_dict() == {"source": "a", "dest": "b", "asset": "SOL", "amount": 3}
