"""
Fee splitting kernels (deterministic, integer-only).

Every bucket is `floor(gross * bps / 10_000)`, computed independently from the
gross amount (not cascaded). The net amount absorbs all rounding remainders, so
`sum(buckets) + net == gross` holds exactly for every split.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, unique
from typing import Any, Mapping


BPS_DENOM = 10_000
MAX_ROW_BPS = 1_000  # 10% cap on the total of one schedule row


@unique
class Direction(Enum):
    BUY = "buy"
    SELL = "sell"


@unique
class FeeTier(Enum):
    """Which half of the schedule applies: before or after the graduation threshold."""

    PRE_THRESHOLD = "pre_threshold"
    POST_THRESHOLD = "post_threshold"


def _check_bps(name: str, v: int) -> None:
    if not isinstance(v, int) or isinstance(v, bool):
        raise TypeError(f"{name} must be an int")
    if not (0 <= v <= BPS_DENOM):
        raise ValueError(f"{name} must be in [0, {BPS_DENOM}]: {v}")


@dataclass(frozen=True)
class FeeRow:
    """One row of the fee schedule. Auxiliary buckets are prize pool and reserves."""

    platform_bps: int
    creator_bps: int
    prize_pool_bps: int = 0
    reserves_bps: int = 0

    def __post_init__(self) -> None:
        for name, v in (
            ("platform_bps", self.platform_bps),
            ("creator_bps", self.creator_bps),
            ("prize_pool_bps", self.prize_pool_bps),
            ("reserves_bps", self.reserves_bps),
        ):
            _check_bps(name, v)
        if self.total_bps > MAX_ROW_BPS:
            raise ValueError(f"fee row total must be <= {MAX_ROW_BPS} bps, got {self.total_bps}")

    @property
    def total_bps(self) -> int:
        return self.platform_bps + self.creator_bps + self.prize_pool_bps + self.reserves_bps

    def to_dict(self) -> dict[str, int]:
        return {
            "platform_bps": self.platform_bps,
            "creator_bps": self.creator_bps,
            "prize_pool_bps": self.prize_pool_bps,
            "reserves_bps": self.reserves_bps,
        }


@dataclass(frozen=True)
class FeeSchedule:
    buy_pre: FeeRow
    buy_post: FeeRow
    sell_pre: FeeRow
    sell_post: FeeRow

    def __post_init__(self) -> None:
        for name, row in (("sell_pre", self.sell_pre), ("sell_post", self.sell_post)):
            if row.prize_pool_bps or row.reserves_bps:
                raise ValueError(f"{name} must not charge auxiliary buckets")

    @classmethod
    def default(cls) -> "FeeSchedule":
        return cls(
            buy_pre=FeeRow(platform_bps=100, creator_bps=50, prize_pool_bps=30, reserves_bps=20),
            buy_post=FeeRow(platform_bps=50, creator_bps=100, prize_pool_bps=30, reserves_bps=20),
            sell_pre=FeeRow(platform_bps=100, creator_bps=50),
            sell_post=FeeRow(platform_bps=50, creator_bps=100),
        )

    @classmethod
    def zero(cls) -> "FeeSchedule":
        row = FeeRow(platform_bps=0, creator_bps=0)
        return cls(buy_pre=row, buy_post=row, sell_pre=row, sell_post=row)

    def row(self, tier: FeeTier, direction: Direction) -> FeeRow:
        if direction is Direction.BUY:
            return self.buy_pre if tier is FeeTier.PRE_THRESHOLD else self.buy_post
        return self.sell_pre if tier is FeeTier.PRE_THRESHOLD else self.sell_post

    def to_dict(self) -> dict[str, dict[str, int]]:
        return {
            "buy_pre": self.buy_pre.to_dict(),
            "buy_post": self.buy_post.to_dict(),
            "sell_pre": self.sell_pre.to_dict(),
            "sell_post": self.sell_post.to_dict(),
        }

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "FeeSchedule":
        rows = {}
        for name in ("buy_pre", "buy_post", "sell_pre", "sell_post"):
            raw = d[name]
            if not isinstance(raw, Mapping):
                raise TypeError(f"fee row {name!r} must be a mapping")
            rows[name] = FeeRow(**{k: raw[k] for k in raw})
        return cls(**rows)


@dataclass(frozen=True)
class FeeSplit:
    gross_amount: int
    platform: int
    creator: int
    prize_pool: int
    reserves: int
    net_amount: int

    @property
    def total_fees(self) -> int:
        return self.platform + self.creator + self.prize_pool + self.reserves


def _bucket(gross_amount: int, bps: int) -> int:
    return (gross_amount * bps) // BPS_DENOM


def split(gross_amount: int, tier: FeeTier, direction: Direction, schedule: FeeSchedule) -> FeeSplit:
    """
    Split `gross_amount` into (platform, creator, prize_pool, reserves, net).

    Sell rows never carry auxiliary buckets, so sells only ever populate
    platform and creator.
    """
    if not isinstance(gross_amount, int) or isinstance(gross_amount, bool) or gross_amount < 0:
        raise ValueError(f"gross_amount must be a non-negative int, got {gross_amount}")

    row = schedule.row(tier, direction)
    platform = _bucket(gross_amount, row.platform_bps)
    creator = _bucket(gross_amount, row.creator_bps)
    prize_pool = _bucket(gross_amount, row.prize_pool_bps)
    reserves = _bucket(gross_amount, row.reserves_bps)
    distributed = platform + creator + prize_pool + reserves
    if distributed > gross_amount:
        raise AssertionError("fee split over-distributed")

    return FeeSplit(
        gross_amount=gross_amount,
        platform=platform,
        creator=creator,
        prize_pool=prize_pool,
        reserves=reserves,
        net_amount=gross_amount - distributed,
    )


@dataclass(frozen=True)
class TwoWaySplit:
    gross_amount: int
    platform: int
    creator: int
    net_amount: int

    @property
    def total_fees(self) -> int:
        return self.platform + self.creator


def split_two_way(gross_amount: int, platform_bps: int, creator_bps: int) -> TwoWaySplit:
    """
    Degenerate two-bucket split used by the fee wrapper.

    The total fee is floored first, then the platform share of that total is
    floored; the creator receives the remainder of the total fee.
    """
    if not isinstance(gross_amount, int) or isinstance(gross_amount, bool) or gross_amount < 0:
        raise ValueError(f"gross_amount must be a non-negative int, got {gross_amount}")
    _check_bps("platform_bps", platform_bps)
    _check_bps("creator_bps", creator_bps)
    total_bps = platform_bps + creator_bps
    if total_bps == 0:
        raise ValueError("platform_bps + creator_bps must be positive")

    total_fees = _bucket(gross_amount, total_bps)
    platform = (total_fees * platform_bps) // total_bps
    creator = total_fees - platform
    return TwoWaySplit(
        gross_amount=gross_amount,
        platform=platform,
        creator=creator,
        net_amount=gross_amount - total_fees,
    )
