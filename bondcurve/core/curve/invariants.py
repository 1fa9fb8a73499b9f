"""Invariant checkers for the curve engine.

Two registries:
- state invariants take a single `CurveState` and must hold for every reachable
  state (`check_all()`),
- transition invariants take (pre, post) and must hold across every accepted
  step (`check_transition()`).

Each function returns True when the invariant holds; the check functions return
the list of violated invariant IDs (empty = all pass).
"""

from __future__ import annotations

from typing import Callable

from ..pricing import U64_MAX
from .types import PHASE_ORDER, CurveState, Phase


def _u64(v: int) -> bool:
    return 0 <= v <= U64_MAX


def inv_real_reserves_in_range(s: CurveState) -> bool:
    return _u64(s.real_sol_reserves) and _u64(s.real_token_reserves)


def inv_virtual_reserves_positive(s: CurveState) -> bool:
    return 0 < s.virtual_sol_reserves <= U64_MAX and 0 < s.virtual_token_reserves <= U64_MAX


def inv_tokens_sold_bounded(s: CurveState) -> bool:
    return 0 <= s.tokens_sold <= s.virtual_token_reserves


def inv_fee_counters_in_range(s: CurveState) -> bool:
    return _u64(s.pending_creator_fees) and _u64(s.cumulative_fees_collected)


def inv_pending_within_collected(s: CurveState) -> bool:
    return s.pending_creator_fees <= s.cumulative_fees_collected


def inv_migration_snapshot_iff_migrated(s: CurveState) -> bool:
    return (s.migration is not None) == (s.phase is Phase.MIGRATED)


def inv_trading_below_threshold(s: CurveState) -> bool:
    # A curve still trading has never crossed its threshold (buys graduate on crossing).
    if s.phase is not Phase.TRADING:
        return True
    return s.real_sol_reserves + s.virtual_sol_reserves < s.graduation_threshold


def trans_phase_monotonic(pre: CurveState, post: CurveState) -> bool:
    return PHASE_ORDER[post.phase] >= PHASE_ORDER[pre.phase]


def trans_config_immutable(pre: CurveState, post: CurveState) -> bool:
    return (
        pre.mint == post.mint
        and pre.creator == post.creator
        and pre.curve_account == post.curve_account
        and pre.config == post.config
        and pre.virtual_sol_reserves == post.virtual_sol_reserves
        and pre.virtual_token_reserves == post.virtual_token_reserves
        and pre.graduation_threshold == post.graduation_threshold
    )


def trans_reserves_frozen_outside_trading(pre: CurveState, post: CurveState) -> bool:
    if pre.phase is Phase.TRADING:
        return True
    return (
        pre.real_sol_reserves == post.real_sol_reserves
        and pre.real_token_reserves == post.real_token_reserves
        and pre.tokens_sold == post.tokens_sold
    )


def trans_constant_product(pre: CurveState, post: CurveState) -> bool:
    """k never decreases for the part of a trade that reaches the curve.

    On buys the fee buckets are paid by the buyer but never enter the reserves,
    so they are added back before comparing. Sells take fees out of the quoted
    output, which already left the reserves in full.
    """
    excluded = 0
    if post.tokens_sold > pre.tokens_sold:
        excluded = post.cumulative_fees_collected - pre.cumulative_fees_collected
    return (post.effective_sol_reserves + excluded) * post.effective_token_reserves >= pre.k


def trans_fee_counters_monotonic(pre: CurveState, post: CurveState) -> bool:
    return post.cumulative_fees_collected >= pre.cumulative_fees_collected


# ---------------------------------------------------------------------------
# Registries + checks
# ---------------------------------------------------------------------------

INVARIANT_REGISTRY: dict[str, Callable[[CurveState], bool]] = {
    "inv_real_reserves_in_range": inv_real_reserves_in_range,
    "inv_virtual_reserves_positive": inv_virtual_reserves_positive,
    "inv_tokens_sold_bounded": inv_tokens_sold_bounded,
    "inv_fee_counters_in_range": inv_fee_counters_in_range,
    "inv_pending_within_collected": inv_pending_within_collected,
    "inv_migration_snapshot_iff_migrated": inv_migration_snapshot_iff_migrated,
    "inv_trading_below_threshold": inv_trading_below_threshold,
}

TRANSITION_REGISTRY: dict[str, Callable[[CurveState, CurveState], bool]] = {
    "trans_phase_monotonic": trans_phase_monotonic,
    "trans_config_immutable": trans_config_immutable,
    "trans_reserves_frozen_outside_trading": trans_reserves_frozen_outside_trading,
    "trans_constant_product": trans_constant_product,
    "trans_fee_counters_monotonic": trans_fee_counters_monotonic,
}


def check_all(state: CurveState) -> list[str]:
    """Return list of violated state invariant IDs (empty = all pass)."""
    return [
        inv_id
        for inv_id, check_fn in INVARIANT_REGISTRY.items()
        if not check_fn(state)
    ]


def check_transition(pre: CurveState, post: CurveState) -> list[str]:
    """Return list of violated transition invariant IDs (empty = all pass)."""
    return [
        inv_id
        for inv_id, check_fn in TRANSITION_REGISTRY.items()
        if not check_fn(pre, post)
    ]
