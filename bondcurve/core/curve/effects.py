"""Effect functions for the curve engine.

One pure function per action. Each computes the ``Effect`` of an accepted step
from the PRE-state, the POST-state and the parameters: the ledger legs the
executor must apply atomically, the events to emit, and the receipt.

The creator's fee bucket is never paid to the creator here. It is routed into
the curve account and only leaves it through ``claim_creator_fees``.
"""

from __future__ import annotations

from ...state.balances import NATIVE_ASSET
from ...state.ledger import Transfer
from ..fees import Direction, FeeSplit
from .math import buy_terms, sell_terms
from .types import ActionParams, ClaimReceipt, CurveState, Effect, Event, Phase, TradeReceipt


def _legs(*candidates: tuple[str, str, str, int]) -> tuple[Transfer, ...]:
    """Build transfer legs, dropping those that round to zero or pay an account to itself."""
    return tuple(
        Transfer(source=src, dest=dst, asset=asset, amount=amount)
        for src, dst, asset, amount in candidates
        if amount > 0 and src != dst
    )


def _aux_fee_legs(source: str, pre: CurveState, fees: FeeSplit) -> list[tuple[str, str, str, int]]:
    cfg = pre.config
    out = [(source, cfg.platform_fee_recipient, NATIVE_ASSET, fees.platform)]
    if cfg.prize_pool_recipient is not None:
        out.append((source, cfg.prize_pool_recipient, NATIVE_ASSET, fees.prize_pool))
    if cfg.reserves_recipient is not None:
        out.append((source, cfg.reserves_recipient, NATIVE_ASSET, fees.reserves))
    return out


def _trade_events(pre: CurveState, post: CurveState) -> tuple[Event, ...]:
    if pre.phase is Phase.TRADING and post.phase is Phase.GRADUATED:
        return (Event.TRADE_EXECUTED, Event.GRADUATED)
    return (Event.TRADE_EXECUTED,)


def effect_buy(pre: CurveState, post: CurveState, params: ActionParams) -> Effect:
    terms = buy_terms(pre, params.amount)
    buyer = params.actor
    transfers = _legs(
        (buyer, pre.curve_account, NATIVE_ASSET, terms.sol_to_curve),
        *_aux_fee_legs(buyer, pre, terms.fees),
        (buyer, pre.curve_account, NATIVE_ASSET, terms.fees.creator),
        (pre.curve_account, buyer, pre.mint, terms.tokens_out),
    )
    receipt = TradeReceipt(
        mint=pre.mint,
        trader=buyer,
        direction=Direction.BUY,
        sol_amount=params.amount,
        token_amount=terms.tokens_out,
        net_sol_amount=terms.sol_to_curve,
        fees=terms.fees,
        phase=post.phase,
        graduated=post.phase is Phase.GRADUATED,
        trade_index=post.trade_count,
    )
    return Effect(events=_trade_events(pre, post), transfers=transfers, receipt=receipt)


def effect_sell(pre: CurveState, post: CurveState, params: ActionParams) -> Effect:
    terms = sell_terms(pre, params.amount)
    seller = params.actor
    transfers = _legs(
        (seller, pre.curve_account, pre.mint, params.amount),
        (pre.curve_account, seller, NATIVE_ASSET, terms.sol_to_seller),
        *_aux_fee_legs(pre.curve_account, pre, terms.fees),
    )
    receipt = TradeReceipt(
        mint=pre.mint,
        trader=seller,
        direction=Direction.SELL,
        sol_amount=terms.sol_out,
        token_amount=params.amount,
        net_sol_amount=terms.sol_to_seller,
        fees=terms.fees,
        phase=post.phase,
        trade_index=post.trade_count,
    )
    return Effect(events=_trade_events(pre, post), transfers=transfers, receipt=receipt)


def effect_migrate(pre: CurveState, post: CurveState, params: ActionParams) -> Effect:
    return Effect(events=(Event.MIGRATED,), receipt=post.migration)


def effect_claim_creator_fees(pre: CurveState, post: CurveState, params: ActionParams) -> Effect:
    amount = pre.pending_creator_fees
    return Effect(
        events=(Event.CREATOR_FEES_CLAIMED,),
        transfers=_legs((pre.curve_account, pre.creator, NATIVE_ASSET, amount)),
        receipt=ClaimReceipt(mint=pre.mint, creator=pre.creator, amount=amount),
    )
