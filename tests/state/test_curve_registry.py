"""Tests for bondcurve/state/curves.py: per-curve slots and locks."""

from __future__ import annotations

import threading
from dataclasses import replace

import pytest

from bondcurve.core.curve import CurveConfig, create_curve
from bondcurve.core.errors import DuplicateCurve, UnknownCurve
from bondcurve.core.fees import FeeSchedule
from bondcurve.state.curves import CurveRegistry


def _state(mint: str = "MINT"):
    return create_curve(
        mint=mint,
        creator="creator",
        virtual_sol_reserves=1_000,
        virtual_token_reserves=1_000,
        initial_real_token_supply=1_000,
        graduation_threshold=2_000,
        config=CurveConfig(
            platform_authority="platform",
            platform_fee_recipient="treasury",
            fee_schedule=FeeSchedule.zero(),
        ),
    )


class TestCurveRegistry:
    def test_register_and_get(self) -> None:
        reg = CurveRegistry()
        s = _state()
        reg.register(s)
        assert reg.get("MINT") is s
        assert "MINT" in reg
        assert len(reg) == 1

    def test_duplicate(self) -> None:
        reg = CurveRegistry()
        reg.register(_state())
        with pytest.raises(DuplicateCurve):
            reg.register(_state())

    def test_unknown(self) -> None:
        with pytest.raises(UnknownCurve):
            CurveRegistry().get("nope")
        with pytest.raises(UnknownCurve):
            with CurveRegistry().locked("nope"):
                pass

    def test_commit_under_lock(self) -> None:
        reg = CurveRegistry()
        reg.register(_state())
        with reg.locked("MINT") as slot:
            slot.commit(replace(slot.state, trade_count=1))
        assert reg.get("MINT").trade_count == 1

    def test_commit_rejects_other_mint(self) -> None:
        reg = CurveRegistry()
        reg.register(_state())
        with reg.locked("MINT") as slot:
            with pytest.raises(ValueError):
                slot.commit(_state("OTHER"))

    def test_mints_sorted(self) -> None:
        reg = CurveRegistry()
        for m in ("b", "a", "c"):
            reg.register(_state(m))
        assert reg.mints() == ["a", "b", "c"]

    def test_curves_lock_independently(self) -> None:
        reg = CurveRegistry()
        reg.register(_state("A"))
        reg.register(_state("B"))
        entered = threading.Event()

        def hold_b() -> None:
            with reg.locked("B"):
                entered.set()

        with reg.locked("A"):
            t = threading.Thread(target=hold_b)
            t.start()
            # B is reachable while A is held.
            assert entered.wait(timeout=5)
            t.join(timeout=5)

    def test_same_curve_serialized(self) -> None:
        reg = CurveRegistry()
        reg.register(_state())

        def bump() -> None:
            for _ in range(200):
                with reg.locked("MINT") as slot:
                    slot.commit(replace(slot.state, trade_count=slot.state.trade_count + 1))

        threads = [threading.Thread(target=bump) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert reg.get("MINT").trade_count == 800
