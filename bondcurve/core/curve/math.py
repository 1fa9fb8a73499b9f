"""Pure trade arithmetic for the curve engine.

Guards, updates and effects all call these helpers on the PRE-state, so the
three stages agree on every number without sharing mutable scratch state.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..fees import Direction, FeeSplit, split
from ..pricing import U64_MAX, quote_buy, quote_sell
from .types import CurveState, fee_tier_for


@dataclass(frozen=True)
class BuyTerms:
    tokens_out: int
    fees: FeeSplit
    sol_to_curve: int


@dataclass(frozen=True)
class SellTerms:
    sol_out: int
    fees: FeeSplit
    sol_to_seller: int


def buy_terms(state: CurveState, sol_amount: int) -> BuyTerms:
    """Quote + fee split for a buy. Raises `InvalidComputation` on degenerate math."""
    tokens_out = quote_buy(sol_amount, state.effective_sol_reserves, state.effective_token_reserves)
    fees = split(sol_amount, fee_tier_for(state.phase), Direction.BUY, state.config.fee_schedule)
    return BuyTerms(tokens_out=tokens_out, fees=fees, sol_to_curve=fees.net_amount)


def sell_terms(state: CurveState, token_amount: int) -> SellTerms:
    """Quote + fee split for a sell. Fees are taken from the SOL output."""
    sol_out = quote_sell(token_amount, state.effective_sol_reserves, state.effective_token_reserves)
    fees = split(sol_out, fee_tier_for(state.phase), Direction.SELL, state.config.fee_schedule)
    return SellTerms(sol_out=sol_out, fees=fees, sol_to_seller=fees.net_amount)


def fits_u64(*values: int) -> bool:
    return all(0 <= v <= U64_MAX for v in values)


def graduation_reached(state: CurveState) -> bool:
    return state.real_sol_reserves + state.virtual_sol_reserves >= state.graduation_threshold
