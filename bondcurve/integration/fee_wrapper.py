"""
Fee wrapper for trading a token after it left its bonding curve.

A wrapper sits in front of the external pool a graduated token trades on and
skims a two-bucket fee (platform + creator) from every wrapped trade. It keeps
its own per-mint counters and never reads or writes `CurveState`.

Fee math is `split_two_way`: the total fee is floored first, the platform share
of that total is floored next, and the creator receives the remainder.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, replace
from typing import Dict, List, Optional

from ..core.curve.types import Event
from ..core.errors import CurveError, InvalidAmount, InvalidComputation, Unauthorized
from ..core.fees import MAX_ROW_BPS, Direction, TwoWaySplit, split_two_way
from ..core.pricing import U64_MAX
from ..state.balances import NATIVE_ASSET
from ..state.ledger import Transfer, TransferLedger
from .events import EventBus

logger = logging.getLogger(__name__)


class FeeWrapperError(CurveError):
    code = "fee_wrapper"


class WrapperInactive(FeeWrapperError):
    """Trade attempted through a wrapper that its creator switched off."""

    code = "wrapper_inactive"


class WrapperUnauthorized(FeeWrapperError, Unauthorized):
    code = Unauthorized.code


class InvalidFeePercentage(FeeWrapperError):
    """Wrapper fee rates are zero in total or above the per-trade cap."""

    code = "invalid_fee_percentage"


class UnknownWrapper(FeeWrapperError):
    code = "unknown_wrapper"


class DuplicateWrapper(FeeWrapperError):
    code = "duplicate_wrapper"


@dataclass(frozen=True)
class FeeWrapper:
    mint: str
    creator: str
    platform_fee_bps: int
    creator_fee_bps: int
    is_active: bool = True
    total_volume: int = 0
    total_fees_collected: int = 0
    platform_fees_earned: int = 0
    creator_fees_earned: int = 0

    @property
    def total_fee_bps(self) -> int:
        return self.platform_fee_bps + self.creator_fee_bps


@dataclass(frozen=True)
class WrapperTradeReceipt:
    mint: str
    user: str
    direction: Direction
    trade_amount: int
    trade_amount_after_fees: int
    total_fees: int
    platform_fee: int
    creator_fee: int


def _checked_add(name: str, a: int, b: int) -> int:
    total = a + b
    if total > U64_MAX:
        raise InvalidComputation(f"{name} overflows u64: {a} + {b}")
    return total


def _validate_fee_bps(platform_fee_bps: object, creator_fee_bps: object) -> None:
    for name, v in (("platform_fee_bps", platform_fee_bps), ("creator_fee_bps", creator_fee_bps)):
        if not isinstance(v, int) or isinstance(v, bool) or v < 0:
            raise InvalidFeePercentage(f"{name} must be a non-negative int, got {v!r}")
    total = platform_fee_bps + creator_fee_bps  # type: ignore[operator]
    if total <= 0 or total > MAX_ROW_BPS:
        raise InvalidFeePercentage(f"total wrapper fee must be in (0, {MAX_ROW_BPS}] bps, got {total}")


class FeeWrapperService:
    """
    Per-mint fee wrappers backed by a `TransferLedger`.

    Fees are paid in the native asset from the trading user to the platform fee
    recipient and to the wrapper's creator, as one atomic batch. Counters are
    updated only after the batch succeeded.
    """

    def __init__(
        self,
        ledger: TransferLedger,
        platform_fee_recipient: str,
        events: Optional[EventBus] = None,
    ) -> None:
        if not isinstance(platform_fee_recipient, str) or not platform_fee_recipient:
            raise ValueError("platform_fee_recipient must be a non-empty string")
        self._ledger = ledger
        self._platform_fee_recipient = platform_fee_recipient
        self._events = events if events is not None else EventBus()
        self._wrappers: Dict[str, FeeWrapper] = {}
        self._lock = threading.Lock()

    @property
    def events(self) -> EventBus:
        return self._events

    def get(self, mint: str) -> FeeWrapper:
        with self._lock:
            wrapper = self._wrappers.get(mint)
        if wrapper is None:
            raise UnknownWrapper(f"no fee wrapper for mint {mint}")
        return wrapper

    def mints(self) -> List[str]:
        with self._lock:
            return sorted(self._wrappers)

    def initialize_wrapper(
        self,
        mint: str,
        creator: str,
        platform_fee_bps: int,
        creator_fee_bps: int,
    ) -> FeeWrapper:
        """Create an active wrapper with zeroed counters."""
        if not isinstance(mint, str) or not mint:
            raise ValueError("mint must be a non-empty string")
        if not isinstance(creator, str) or not creator:
            raise ValueError("creator must be a non-empty string")
        _validate_fee_bps(platform_fee_bps, creator_fee_bps)

        wrapper = FeeWrapper(
            mint=mint,
            creator=creator,
            platform_fee_bps=platform_fee_bps,
            creator_fee_bps=creator_fee_bps,
        )
        with self._lock:
            if mint in self._wrappers:
                raise DuplicateWrapper(f"fee wrapper already exists for mint {mint}")
            self._wrappers[mint] = wrapper

        logger.info(
            "wrapper initialized mint=%s creator=%s platform_bps=%d creator_bps=%d",
            mint, creator, platform_fee_bps, creator_fee_bps,
        )
        self._events.publish(Event.WRAPPER_INITIALIZED, mint, {
            "creator": creator,
            "platform_fee_bps": platform_fee_bps,
            "creator_fee_bps": creator_fee_bps,
        })
        return wrapper

    def quote(self, mint: str, trade_amount: int) -> TwoWaySplit:
        wrapper = self.get(mint)
        return split_two_way(trade_amount, wrapper.platform_fee_bps, wrapper.creator_fee_bps)

    def execute_wrapper_trade(
        self,
        mint: str,
        user: str,
        trade_amount: int,
        direction: Direction,
    ) -> WrapperTradeReceipt:
        """Collect the wrapper fee on one trade and update the counters."""
        if not isinstance(trade_amount, int) or isinstance(trade_amount, bool):
            raise InvalidAmount(f"trade_amount must be an int, got {type(trade_amount).__name__}")
        if trade_amount <= 0 or trade_amount > U64_MAX:
            raise InvalidAmount(f"trade_amount must be in (0, u64 max]: {trade_amount}")

        with self._lock:
            wrapper = self._wrappers.get(mint)
            if wrapper is None:
                raise UnknownWrapper(f"no fee wrapper for mint {mint}")
            if not wrapper.is_active:
                logger.warning("wrapper trade rejected mint=%s user=%s: inactive", mint, user)
                raise WrapperInactive(f"fee wrapper for {mint} is inactive")

            fees = split_two_way(trade_amount, wrapper.platform_fee_bps, wrapper.creator_fee_bps)
            total_fees = fees.platform + fees.creator
            updated = replace(
                wrapper,
                total_volume=_checked_add("total_volume", wrapper.total_volume, trade_amount),
                total_fees_collected=_checked_add("total_fees_collected", wrapper.total_fees_collected, total_fees),
                platform_fees_earned=_checked_add("platform_fees_earned", wrapper.platform_fees_earned, fees.platform),
                creator_fees_earned=_checked_add("creator_fees_earned", wrapper.creator_fees_earned, fees.creator),
            )

            # A fee owed to the trading user itself stays where it is.
            legs = [
                Transfer(user, recipient, NATIVE_ASSET, amount)
                for recipient, amount in (
                    (self._platform_fee_recipient, fees.platform),
                    (wrapper.creator, fees.creator),
                )
                if amount > 0 and recipient != user
            ]
            if legs:
                try:
                    self._ledger.transfer_batch(legs)
                except CurveError as exc:
                    logger.warning("wrapper trade aborted mint=%s user=%s: %s", mint, user, exc)
                    raise

            self._wrappers[mint] = updated

        receipt = WrapperTradeReceipt(
            mint=mint,
            user=user,
            direction=direction,
            trade_amount=trade_amount,
            trade_amount_after_fees=fees.net_amount,
            total_fees=total_fees,
            platform_fee=fees.platform,
            creator_fee=fees.creator,
        )
        logger.info(
            "wrapper trade mint=%s user=%s %s amount=%d fees=%d",
            mint, user, direction.value, trade_amount, total_fees,
        )
        self._events.publish(Event.WRAPPER_TRADE_EXECUTED, mint, {
            "user": user,
            "trade_type": direction.value,
            "trade_amount": trade_amount,
            "trade_amount_after_fees": fees.net_amount,
            "total_fees": total_fees,
            "platform_fee": fees.platform,
            "creator_fee": fees.creator,
        })
        return receipt

    def update_wrapper_status(self, mint: str, actor: str, is_active: bool) -> FeeWrapper:
        """Switch a wrapper on or off. Only the wrapper's creator may do this."""
        with self._lock:
            wrapper = self._wrappers.get(mint)
            if wrapper is None:
                raise UnknownWrapper(f"no fee wrapper for mint {mint}")
            if actor != wrapper.creator:
                logger.warning("wrapper status change rejected mint=%s actor=%s", mint, actor)
                raise WrapperUnauthorized(f"{actor} is not the creator of wrapper {mint}")
            updated = replace(wrapper, is_active=bool(is_active))
            self._wrappers[mint] = updated

        logger.info("wrapper status mint=%s active=%s", mint, updated.is_active)
        self._events.publish(Event.WRAPPER_STATUS_UPDATED, mint, {"is_active": updated.is_active})
        return updated
