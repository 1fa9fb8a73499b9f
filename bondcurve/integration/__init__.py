"""Imperative shell: executes curve and fee-wrapper operations against a ledger."""

from .events import EmittedEvent, EventBus
from .executor import Quote, TradeExecutor
from .fee_wrapper import (
    FeeWrapper,
    FeeWrapperError,
    FeeWrapperService,
    InvalidFeePercentage,
    WrapperInactive,
    WrapperTradeReceipt,
    WrapperUnauthorized,
)

__all__ = [
    "EmittedEvent",
    "EventBus",
    "Quote",
    "TradeExecutor",
    "FeeWrapper",
    "FeeWrapperError",
    "FeeWrapperService",
    "InvalidFeePercentage",
    "WrapperInactive",
    "WrapperTradeReceipt",
    "WrapperUnauthorized",
]
