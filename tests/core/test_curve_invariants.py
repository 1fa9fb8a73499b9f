"""Tests for bondcurve/core/curve/invariants.py."""

from dataclasses import replace

from bondcurve.core.curve import CurveConfig, MigrationSnapshot, Phase, create_curve
from bondcurve.core.curve.invariants import (
    INVARIANT_REGISTRY,
    TRANSITION_REGISTRY,
    check_all,
    check_transition,
)
from bondcurve.core.fees import FeeSchedule


def _state():
    return create_curve(
        mint="MINT",
        creator="creator",
        virtual_sol_reserves=1_000_000,
        virtual_token_reserves=1_000_000,
        initial_real_token_supply=1_000_000,
        graduation_threshold=2_000_000,
        config=CurveConfig(
            platform_authority="platform",
            platform_fee_recipient="treasury",
            fee_schedule=FeeSchedule.zero(),
        ),
    )


def _snapshot():
    return MigrationSnapshot(final_sol_reserves=0, remaining_tokens=0, tokens_sold=0, state_digest="0x00")


class TestStateInvariants:
    def test_fresh_curve_passes(self):
        assert check_all(_state()) == []

    def test_registry_ids_match_function_names(self):
        for inv_id, fn in {**INVARIANT_REGISTRY, **TRANSITION_REGISTRY}.items():
            assert fn.__name__ == inv_id

    def test_negative_real_sol(self):
        assert "inv_real_reserves_in_range" in check_all(replace(_state(), real_sol_reserves=-1))

    def test_tokens_sold_bounded(self):
        assert "inv_tokens_sold_bounded" in check_all(replace(_state(), tokens_sold=1_000_001))

    def test_pending_within_collected(self):
        s = replace(_state(), pending_creator_fees=10, cumulative_fees_collected=9)
        assert check_all(s) == ["inv_pending_within_collected"]

    def test_migration_snapshot_iff_migrated(self):
        assert "inv_migration_snapshot_iff_migrated" in check_all(replace(_state(), phase=Phase.MIGRATED))
        assert "inv_migration_snapshot_iff_migrated" in check_all(replace(_state(), migration=_snapshot()))
        assert check_all(replace(_state(), phase=Phase.MIGRATED, migration=_snapshot())) == []

    def test_trading_below_threshold(self):
        s = replace(_state(), real_sol_reserves=1_000_000)
        assert check_all(s) == ["inv_trading_below_threshold"]
        assert check_all(replace(s, phase=Phase.GRADUATED)) == []


class TestTransitionInvariants:
    def test_identity_passes(self):
        s = _state()
        assert check_transition(s, s) == []

    def test_phase_regression(self):
        pre = replace(_state(), phase=Phase.GRADUATED)
        post = replace(pre, phase=Phase.TRADING)
        assert "trans_phase_monotonic" in check_transition(pre, post)

    def test_config_immutable(self):
        pre = _state()
        assert "trans_config_immutable" in check_transition(pre, replace(pre, creator="mallory"))
        assert "trans_config_immutable" in check_transition(pre, replace(pre, graduation_threshold=3_000_000))

    def test_reserves_frozen_after_graduation(self):
        pre = replace(_state(), phase=Phase.GRADUATED, real_sol_reserves=5)
        post = replace(pre, real_sol_reserves=4)
        assert "trans_reserves_frozen_outside_trading" in check_transition(pre, post)

    def test_constant_product(self):
        pre = _state()
        # Tokens leave the curve with nothing paid in.
        post = replace(pre, tokens_sold=10, real_token_reserves=999_990)
        assert "trans_constant_product" in check_transition(pre, post)

    def test_buy_fees_excluded_from_reserve_check(self):
        pre = _state()
        # 100 gross with 2 in fees: only 98 reaches the curve; 90 tokens are
        # below the exact 99 the full 100 would buy.
        post = replace(
            pre,
            real_sol_reserves=98,
            tokens_sold=90,
            real_token_reserves=999_910,
            cumulative_fees_collected=2,
        )
        assert check_transition(pre, post) == []

    def test_fee_counters_monotonic(self):
        pre = replace(_state(), cumulative_fees_collected=10)
        post = replace(pre, cumulative_fees_collected=9)
        assert "trans_fee_counters_monotonic" in check_transition(pre, post)
