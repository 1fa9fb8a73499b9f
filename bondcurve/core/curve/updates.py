"""State transition functions for the curve engine.

One pure function per action. Each returns a new `CurveState` with the action's
updates applied. Updates evaluate against the PRE-state and are only called
after the action's guard accepted it.
"""

from __future__ import annotations

from dataclasses import replace

from .math import buy_terms, graduation_reached, sell_terms
from .state import state_digest
from .types import ActionParams, CurveState, MigrationSnapshot, Phase


def apply_buy(state: CurveState, params: ActionParams) -> CurveState:
    terms = buy_terms(state, params.amount)
    bought = replace(
        state,
        real_sol_reserves=state.real_sol_reserves + terms.sol_to_curve,
        real_token_reserves=state.real_token_reserves - terms.tokens_out,
        tokens_sold=state.tokens_sold + terms.tokens_out,
        cumulative_fees_collected=state.cumulative_fees_collected + terms.fees.total_fees,
        pending_creator_fees=state.pending_creator_fees + terms.fees.creator,
        trade_count=state.trade_count + 1,
    )
    # Graduation is evaluated on the post-trade reserves, and only on buys.
    if graduation_reached(bought):
        return replace(bought, phase=Phase.GRADUATED)
    return bought


def apply_sell(state: CurveState, params: ActionParams) -> CurveState:
    terms = sell_terms(state, params.amount)
    return replace(
        state,
        real_sol_reserves=state.real_sol_reserves - terms.sol_out,
        real_token_reserves=state.real_token_reserves + params.amount,
        tokens_sold=state.tokens_sold - params.amount,
        cumulative_fees_collected=state.cumulative_fees_collected + terms.fees.total_fees,
        pending_creator_fees=state.pending_creator_fees + terms.fees.creator,
        trade_count=state.trade_count + 1,
    )


def apply_migrate(state: CurveState, params: ActionParams) -> CurveState:
    snapshot = MigrationSnapshot(
        final_sol_reserves=state.real_sol_reserves,
        remaining_tokens=state.real_token_reserves,
        tokens_sold=state.tokens_sold,
        state_digest=state_digest(state),
    )
    return replace(state, phase=Phase.MIGRATED, migration=snapshot)


def apply_claim_creator_fees(state: CurveState, params: ActionParams) -> CurveState:
    return replace(state, pending_creator_fees=0)
