"""
Trade execution adapter.

This is an imperative-shell wrapper around the functional core:
- Locks the target curve for the whole operation.
- Runs the pure engine step (guards, updates, invariants) on the current state.
- Hands the step's transfer legs to the ledger as one atomic batch.
- Commits the new state only after the ledger confirmed every leg, then
  releases the lock and publishes the step's events.

Any failure before the commit leaves the curve exactly as it was.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any, Dict, Optional

from ..config import CurvePreset
from ..core.curve import (
    Action,
    ActionParams,
    ClaimReceipt,
    CurveConfig,
    CurveState,
    Effect,
    Event,
    MigrationSnapshot,
    TradeReceipt,
    create_curve,
    step_or_raise,
)
from ..core.curve.guards import guard_buy, guard_sell
from ..core.curve.math import buy_terms, sell_terms
from ..core.errors import ERROR_BY_CODE, CurveError, DuplicateCurve, InvalidAmount, TransferFailed
from ..core.fees import Direction, FeeSplit
from ..state.curves import CurveRegistry
from ..state.ledger import TransferLedger
from .events import EventBus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Quote:
    """Read-only preview of a trade against the current committed state."""

    mint: str
    direction: Direction
    amount_in: int
    amount_out: int       # tokens for buys, gross SOL for sells
    net_sol_amount: int   # buy: SOL reaching the curve, sell: SOL paid to seller
    fees: FeeSplit


def _require_amount(name: str, value: object) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise InvalidAmount(f"{name} must be an int, got {type(value).__name__}")


def _fee_payload(fees: FeeSplit) -> Dict[str, int]:
    return {
        "platform_fee": fees.platform,
        "creator_fee": fees.creator,
        "prize_pool_fee": fees.prize_pool,
        "reserves_fee": fees.reserves,
        "total_fees": fees.total_fees,
    }


def _event_payload(event: Event, state: CurveState, effect: Effect) -> Dict[str, Any]:
    receipt = effect.receipt
    if event is Event.TRADE_EXECUTED and isinstance(receipt, TradeReceipt):
        return {
            "trader": receipt.trader,
            "direction": receipt.direction.value,
            "sol_amount": receipt.sol_amount,
            "token_amount": receipt.token_amount,
            "net_sol_amount": receipt.net_sol_amount,
            "phase": receipt.phase.value,
            "trade_index": receipt.trade_index,
            **_fee_payload(receipt.fees),
        }
    if event is Event.GRADUATED:
        return {
            "total_sol_raised": state.real_sol_reserves + state.virtual_sol_reserves,
            "tokens_sold": state.tokens_sold,
        }
    if event is Event.MIGRATED and isinstance(receipt, MigrationSnapshot):
        return {
            "final_sol_reserves": receipt.final_sol_reserves,
            "remaining_tokens": receipt.remaining_tokens,
            "tokens_sold": receipt.tokens_sold,
            "state_digest": receipt.state_digest,
        }
    if event is Event.CREATOR_FEES_CLAIMED and isinstance(receipt, ClaimReceipt):
        return {"creator": receipt.creator, "amount": receipt.amount}
    return {}


class TradeExecutor:
    """Executes curve operations against a `TransferLedger`, one curve lock at a time."""

    def __init__(
        self,
        ledger: TransferLedger,
        registry: Optional[CurveRegistry] = None,
        events: Optional[EventBus] = None,
    ) -> None:
        self._ledger = ledger
        self._registry = registry if registry is not None else CurveRegistry()
        self._events = events if events is not None else EventBus()
        # Serializes creation only (mint + register); trades never take it.
        self._create_lock = threading.Lock()

    @property
    def registry(self) -> CurveRegistry:
        return self._registry

    @property
    def events(self) -> EventBus:
        return self._events

    # -- creation -------------------------------------------------------------

    def create_curve(
        self,
        *,
        mint: str,
        creator: str,
        virtual_sol_reserves: int,
        virtual_token_reserves: int,
        initial_real_token_supply: int,
        graduation_threshold: int,
        config: CurveConfig,
        curve_account: Optional[str] = None,
    ) -> CurveState:
        """Validate, fund the curve account with its token supply, and register it."""
        state = create_curve(
            mint=mint,
            creator=creator,
            virtual_sol_reserves=virtual_sol_reserves,
            virtual_token_reserves=virtual_token_reserves,
            initial_real_token_supply=initial_real_token_supply,
            graduation_threshold=graduation_threshold,
            config=config,
            curve_account=curve_account,
        )
        with self._create_lock:
            if mint in self._registry:
                raise DuplicateCurve(f"curve already exists for mint {mint}")
            self._ledger.mint_initial_supply(state.curve_account, state.mint, initial_real_token_supply)
            self._registry.register(state)

        logger.info(
            "curve created mint=%s creator=%s virtual_sol=%d virtual_token=%d supply=%d threshold=%d",
            mint, creator, virtual_sol_reserves, virtual_token_reserves,
            initial_real_token_supply, graduation_threshold,
        )
        self._events.publish(Event.CURVE_CREATED, mint, {
            "creator": creator,
            "virtual_sol_reserves": virtual_sol_reserves,
            "virtual_token_reserves": virtual_token_reserves,
            "initial_real_token_supply": initial_real_token_supply,
            "graduation_threshold": graduation_threshold,
        })
        return state

    def create_from_preset(
        self,
        preset: CurvePreset,
        *,
        mint: str,
        creator: str,
        config: CurveConfig,
    ) -> CurveState:
        return self.create_curve(
            mint=mint,
            creator=creator,
            virtual_sol_reserves=preset.virtual_sol_reserves,
            virtual_token_reserves=preset.virtual_token_reserves,
            initial_real_token_supply=preset.initial_real_token_supply,
            graduation_threshold=preset.graduation_threshold,
            config=config,
        )

    # -- reads ----------------------------------------------------------------

    def state(self, mint: str) -> CurveState:
        return self._registry.get(mint)

    def quote_buy(self, mint: str, sol_amount: int) -> Quote:
        """Preview a buy with no slippage floor. Raises the error a buy would raise."""
        _require_amount("sol_amount", sol_amount)
        state = self._registry.get(mint)
        self._raise_if_rejected(guard_buy(state, ActionParams(Action.BUY, actor="quote", amount=sol_amount)))
        terms = buy_terms(state, sol_amount)
        logger.debug("quote buy mint=%s sol=%d tokens=%d", mint, sol_amount, terms.tokens_out)
        return Quote(
            mint=mint,
            direction=Direction.BUY,
            amount_in=sol_amount,
            amount_out=terms.tokens_out,
            net_sol_amount=terms.sol_to_curve,
            fees=terms.fees,
        )

    def quote_sell(self, mint: str, token_amount: int) -> Quote:
        _require_amount("token_amount", token_amount)
        state = self._registry.get(mint)
        self._raise_if_rejected(guard_sell(state, ActionParams(Action.SELL, actor="quote", amount=token_amount)))
        terms = sell_terms(state, token_amount)
        logger.debug("quote sell mint=%s tokens=%d sol=%d", mint, token_amount, terms.sol_out)
        return Quote(
            mint=mint,
            direction=Direction.SELL,
            amount_in=token_amount,
            amount_out=terms.sol_out,
            net_sol_amount=terms.sol_to_seller,
            fees=terms.fees,
        )

    @staticmethod
    def _raise_if_rejected(code: Optional[str]) -> None:
        if code is not None:
            raise ERROR_BY_CODE.get(code, CurveError)(code)

    # -- writes ---------------------------------------------------------------

    def buy(self, mint: str, buyer: str, sol_amount: int, min_tokens_out: int = 0) -> TradeReceipt:
        params = ActionParams(Action.BUY, actor=buyer, amount=sol_amount, min_out=min_tokens_out)
        effect = self._execute(mint, params)
        assert isinstance(effect.receipt, TradeReceipt)
        return effect.receipt

    def sell(self, mint: str, seller: str, token_amount: int, min_sol_out: int = 0) -> TradeReceipt:
        params = ActionParams(Action.SELL, actor=seller, amount=token_amount, min_out=min_sol_out)
        effect = self._execute(mint, params)
        assert isinstance(effect.receipt, TradeReceipt)
        return effect.receipt

    def migrate(self, mint: str, authority: str) -> MigrationSnapshot:
        """Mark a graduated curve as migrated. Pool creation happens elsewhere."""
        effect = self._execute(mint, ActionParams(Action.MIGRATE, actor=authority))
        assert isinstance(effect.receipt, MigrationSnapshot)
        return effect.receipt

    def claim_creator_fees(self, mint: str, creator: str) -> ClaimReceipt:
        effect = self._execute(mint, ActionParams(Action.CLAIM_CREATOR_FEES, actor=creator))
        assert isinstance(effect.receipt, ClaimReceipt)
        return effect.receipt

    def _execute(self, mint: str, params: ActionParams) -> Effect:
        with self._registry.locked(mint) as slot:
            pre = slot.state
            try:
                result = step_or_raise(pre, params)
            except CurveError as exc:
                logger.warning(
                    "%s rejected mint=%s actor=%s amount=%d: %s",
                    params.action.value, mint, params.actor, params.amount, exc,
                )
                raise

            assert result.state is not None and result.effect is not None
            effect = result.effect
            if effect.transfers:
                try:
                    self._ledger.transfer_batch(effect.transfers)
                except TransferFailed as exc:
                    logger.warning(
                        "%s aborted mint=%s actor=%s: transfer failed: %s",
                        params.action.value, mint, params.actor, exc,
                    )
                    raise

            slot.commit(result.state)
            post = result.state
            self._log_commit(params, post, effect)
            pending = [(event, _event_payload(event, post, effect)) for event in effect.events]

        # Published after the curve lock is released so subscribers may trade on the same mint.
        for event, payload in pending:
            self._events.publish(event, mint, payload)
        return effect

    @staticmethod
    def _log_commit(params: ActionParams, post: CurveState, effect: Effect) -> None:
        receipt = effect.receipt
        if isinstance(receipt, TradeReceipt):
            logger.info(
                "%s mint=%s trader=%s sol=%d tokens=%d fees=%d real_sol=%d real_token=%d phase=%s",
                receipt.direction.value, post.mint, receipt.trader, receipt.sol_amount,
                receipt.token_amount, receipt.fees.total_fees, post.real_sol_reserves,
                post.real_token_reserves, post.phase.value,
            )
            if receipt.graduated and Event.GRADUATED in effect.events:
                logger.info(
                    "curve graduated mint=%s total_sol=%d tokens_sold=%d",
                    post.mint, post.real_sol_reserves + post.virtual_sol_reserves, post.tokens_sold,
                )
        elif isinstance(receipt, MigrationSnapshot):
            logger.info(
                "curve migrated mint=%s by=%s final_sol=%d remaining_tokens=%d",
                post.mint, params.actor, receipt.final_sol_reserves, receipt.remaining_tokens,
            )
        elif isinstance(receipt, ClaimReceipt):
            logger.info("creator fees claimed mint=%s creator=%s amount=%d", post.mint, receipt.creator, receipt.amount)
