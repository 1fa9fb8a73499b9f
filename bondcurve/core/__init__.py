"""
Core bonding-curve algorithms
"""

from .pricing import quote_buy, quote_sell, spot_price_lamports, market_cap_lamports
from .fees import Direction, FeeRow, FeeSchedule, FeeSplit, FeeTier, TwoWaySplit, split, split_two_way

__all__ = [
    "quote_buy",
    "quote_sell",
    "spot_price_lamports",
    "market_cap_lamports",
    "Direction",
    "FeeRow",
    "FeeSchedule",
    "FeeSplit",
    "FeeTier",
    "TwoWaySplit",
    "split",
    "split_two_way",
]
