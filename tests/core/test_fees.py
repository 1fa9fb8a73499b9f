"""Tests for bondcurve/core/fees.py: schedule rows and the fee splitters."""

from __future__ import annotations

import pytest

from bondcurve.core.fees import (
    Direction,
    FeeRow,
    FeeSchedule,
    FeeTier,
    split,
    split_two_way,
)

PRE, POST = FeeTier.PRE_THRESHOLD, FeeTier.POST_THRESHOLD
BUY, SELL = Direction.BUY, Direction.SELL


class TestFeeRow:
    def test_total(self) -> None:
        assert FeeRow(100, 50, 30, 20).total_bps == 200

    def test_row_cap(self) -> None:
        FeeRow(600, 400)
        with pytest.raises(ValueError):
            FeeRow(600, 401)

    def test_negative_rejected(self) -> None:
        with pytest.raises(ValueError):
            FeeRow(-1, 0)

    def test_bool_rejected(self) -> None:
        with pytest.raises(TypeError):
            FeeRow(True, 0)  # type: ignore[arg-type]


class TestFeeSchedule:
    def test_default_rows(self) -> None:
        s = FeeSchedule.default()
        assert s.row(PRE, BUY) == FeeRow(100, 50, 30, 20)
        assert s.row(POST, BUY) == FeeRow(50, 100, 30, 20)
        assert s.row(PRE, SELL) == FeeRow(100, 50)
        assert s.row(POST, SELL) == FeeRow(50, 100)

    def test_sell_rows_cannot_charge_aux_buckets(self) -> None:
        row = FeeRow(100, 50)
        with pytest.raises(ValueError):
            FeeSchedule(buy_pre=row, buy_post=row, sell_pre=FeeRow(100, 50, 10), sell_post=row)

    def test_dict_round_trip(self) -> None:
        s = FeeSchedule.default()
        assert FeeSchedule.from_dict(s.to_dict()) == s

    def test_from_dict_missing_row(self) -> None:
        d = FeeSchedule.default().to_dict()
        del d["sell_post"]
        with pytest.raises(KeyError):
            FeeSchedule.from_dict(d)


class TestSplit:
    def test_pre_threshold_buy(self) -> None:
        f = split(10_000, PRE, BUY, FeeSchedule.default())
        assert (f.platform, f.creator, f.prize_pool, f.reserves) == (100, 50, 30, 20)
        assert f.net_amount == 9_800
        assert f.total_fees == 200

    def test_buckets_floor_independently(self) -> None:
        f = split(999, PRE, BUY, FeeSchedule.default())
        assert (f.platform, f.creator, f.prize_pool, f.reserves) == (9, 4, 2, 1)
        assert f.net_amount == 983

    def test_pre_threshold_sell_has_no_aux(self) -> None:
        f = split(10_000, PRE, SELL, FeeSchedule.default())
        assert (f.platform, f.creator, f.prize_pool, f.reserves) == (100, 50, 0, 0)
        assert f.net_amount == 9_850

    # Post-threshold rows cannot be reached through the engine (a graduated
    # curve rejects trades); they are exercised here directly.
    def test_post_threshold_buy(self) -> None:
        f = split(10_000, POST, BUY, FeeSchedule.default())
        assert (f.platform, f.creator, f.prize_pool, f.reserves) == (50, 100, 30, 20)
        assert f.net_amount == 9_800

    def test_post_threshold_sell(self) -> None:
        f = split(10_000, POST, SELL, FeeSchedule.default())
        assert (f.platform, f.creator, f.prize_pool, f.reserves) == (50, 100, 0, 0)
        assert f.net_amount == 9_850

    def test_zero_gross(self) -> None:
        f = split(0, PRE, BUY, FeeSchedule.default())
        assert f.total_fees == 0 and f.net_amount == 0

    def test_sum_law_small_amounts(self) -> None:
        s = FeeSchedule.default()
        for gross in range(0, 2_000, 7):
            for tier in FeeTier:
                for direction in Direction:
                    f = split(gross, tier, direction, s)
                    assert f.total_fees + f.net_amount == gross

    def test_negative_gross_rejected(self) -> None:
        with pytest.raises(ValueError):
            split(-1, PRE, BUY, FeeSchedule.default())


class TestSplitTwoWay:
    def test_exact(self) -> None:
        f = split_two_way(10_000, 100, 50)
        assert (f.platform, f.creator, f.net_amount) == (100, 50, 9_850)

    def test_total_floored_first(self) -> None:
        # Total fee floor(999 * 150 / 10_000) = 14; platform gets floor(14 * 100 / 150) = 9.
        f = split_two_way(999, 100, 50)
        assert (f.platform, f.creator, f.net_amount) == (9, 5, 985)
        assert f.total_fees == 14

    def test_zero_total_bps_rejected(self) -> None:
        with pytest.raises(ValueError):
            split_two_way(1_000, 0, 0)

    def test_creator_only(self) -> None:
        f = split_two_way(10_000, 0, 100)
        assert (f.platform, f.creator) == (0, 100)
