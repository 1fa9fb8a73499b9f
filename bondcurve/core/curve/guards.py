"""Guard functions for the curve engine.

One pure function per action. Each returns ``None`` when the action is allowed
in the given PRE-state, or the rejection code (see ``errors.py``) of the first
precondition that fails. Checks run in a fixed order so callers always see the
same error for the same input.
"""

from __future__ import annotations

from ..errors import (
    AlreadyMigrated,
    InsufficientCurveLiquidity,
    InvalidAmount,
    InvalidComputation,
    NoClaimableFees,
    NotYetGraduated,
    SlippageExceeded,
    TradingClosed,
    Unauthorized,
)
from .math import buy_terms, fits_u64, sell_terms
from .types import ActionParams, CurveState, Phase


def _fee_counters_fit(state: CurveState, total_fees: int, creator_fee: int) -> bool:
    return fits_u64(
        state.cumulative_fees_collected + total_fees,
        state.pending_creator_fees + creator_fee,
    )


def guard_buy(state: CurveState, params: ActionParams) -> str | None:
    if state.phase is not Phase.TRADING:
        return TradingClosed.code
    if params.amount <= 0 or params.min_out < 0:
        return InvalidAmount.code

    try:
        terms = buy_terms(state, params.amount)
    except InvalidComputation:
        return InvalidComputation.code

    if terms.tokens_out < params.min_out:
        return SlippageExceeded.code
    if terms.tokens_out > state.real_token_reserves:
        return InsufficientCurveLiquidity.code
    if not fits_u64(state.real_sol_reserves + terms.sol_to_curve):
        return InvalidComputation.code
    if not _fee_counters_fit(state, terms.fees.total_fees, terms.fees.creator):
        return InvalidComputation.code
    return None


def guard_sell(state: CurveState, params: ActionParams) -> str | None:
    if state.phase is not Phase.TRADING:
        return TradingClosed.code
    if params.amount <= 0 or params.min_out < 0:
        return InvalidAmount.code
    # The curve cannot take back more tokens than it has distributed.
    if params.amount > state.tokens_sold:
        return InsufficientCurveLiquidity.code

    try:
        terms = sell_terms(state, params.amount)
    except InvalidComputation:
        return InvalidComputation.code

    if terms.sol_out < params.min_out:
        return SlippageExceeded.code
    if terms.sol_out > state.real_sol_reserves:
        return InsufficientCurveLiquidity.code
    if not fits_u64(state.real_token_reserves + params.amount):
        return InvalidComputation.code
    if not _fee_counters_fit(state, terms.fees.total_fees, terms.fees.creator):
        return InvalidComputation.code
    return None


def guard_migrate(state: CurveState, params: ActionParams) -> str | None:
    if state.phase is Phase.TRADING:
        return NotYetGraduated.code
    if state.phase is Phase.MIGRATED:
        return AlreadyMigrated.code
    if params.actor not in (state.creator, state.config.platform_authority):
        return Unauthorized.code
    return None


def guard_claim_creator_fees(state: CurveState, params: ActionParams) -> str | None:
    if params.actor != state.creator:
        return Unauthorized.code
    if state.pending_creator_fees <= 0:
        return NoClaimableFees.code
    return None
