"""Data types for the bonding-curve engine.

All types are frozen dataclasses (immutable); transitions build new states with
`dataclasses.replace()`.

Units/conventions:
- SOL amounts are integer lamports.
- Token amounts are integer base units of the curve's mint.
- `*_bps` rates are basis points (1/10_000).
- Every amount is a u64; products are bounded to u128.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, unique
from typing import Optional, Union

from ..fees import Direction, FeeSchedule, FeeSplit, FeeTier
from ...state.ledger import Transfer


@unique
class Phase(Enum):
    TRADING = "trading"
    GRADUATED = "graduated"
    MIGRATED = "migrated"


# Lifecycle only moves forward through this order.
PHASE_ORDER: dict[Phase, int] = {
    Phase.TRADING: 0,
    Phase.GRADUATED: 1,
    Phase.MIGRATED: 2,
}


def fee_tier_for(phase: Phase) -> FeeTier:
    return FeeTier.PRE_THRESHOLD if phase is Phase.TRADING else FeeTier.POST_THRESHOLD


@unique
class Action(Enum):
    BUY = "buy"
    SELL = "sell"
    MIGRATE = "migrate"
    CLAIM_CREATOR_FEES = "claim_creator_fees"


@unique
class Event(Enum):
    """One member per externally observable event type."""
    CURVE_CREATED = "CurveCreated"
    TRADE_EXECUTED = "TradeExecuted"
    GRADUATED = "Graduated"
    MIGRATED = "Migrated"
    CREATOR_FEES_CLAIMED = "CreatorFeesClaimed"
    WRAPPER_INITIALIZED = "WrapperInitialized"
    WRAPPER_TRADE_EXECUTED = "WrapperTradeExecuted"
    WRAPPER_STATUS_UPDATED = "WrapperStatusUpdated"


@dataclass(frozen=True)
class CurveConfig:
    """Immutable per-curve configuration fixed at creation."""

    platform_authority: str
    platform_fee_recipient: str
    prize_pool_recipient: Optional[str] = None
    reserves_recipient: Optional[str] = None
    fee_schedule: FeeSchedule = field(default_factory=FeeSchedule.default)


@dataclass(frozen=True)
class MigrationSnapshot:
    """Final reserves recorded when a graduated curve is marked migrated."""

    final_sol_reserves: int
    remaining_tokens: int
    tokens_sold: int
    state_digest: str


@dataclass(frozen=True)
class CurveState:
    """Complete reserve ledger of one bonding curve."""

    mint: str
    creator: str
    curve_account: str
    config: CurveConfig

    # Baseline liquidity (never mutated after creation)
    virtual_sol_reserves: int
    virtual_token_reserves: int
    graduation_threshold: int

    # Actual holdings
    real_sol_reserves: int = 0
    real_token_reserves: int = 0
    tokens_sold: int = 0

    # Lifecycle
    phase: Phase = Phase.TRADING

    # Fees
    pending_creator_fees: int = 0
    cumulative_fees_collected: int = 0

    # Audit
    trade_count: int = 0
    migration: Optional[MigrationSnapshot] = None

    @property
    def effective_sol_reserves(self) -> int:
        return self.virtual_sol_reserves + self.real_sol_reserves

    @property
    def effective_token_reserves(self) -> int:
        return self.virtual_token_reserves - self.tokens_sold

    @property
    def k(self) -> int:
        return self.effective_sol_reserves * self.effective_token_reserves


@dataclass(frozen=True)
class ActionParams:
    """Parameters for an action. Unused fields default to 0."""

    action: Action
    actor: str = ""        # buyer / seller / migration authority / claiming creator
    amount: int = 0        # buy: sol_amount, sell: token_amount
    min_out: int = 0       # buy: min_tokens_out, sell: min_sol_out


@dataclass(frozen=True)
class TradeReceipt:
    mint: str
    trader: str
    direction: Direction
    sol_amount: int         # gross SOL: paid in on buys, quoted out on sells
    token_amount: int       # tokens received on buys, tokens paid in on sells
    net_sol_amount: int     # buy: SOL reaching the curve, sell: SOL paid to seller
    fees: FeeSplit
    phase: Phase            # phase after the trade
    graduated: bool = False
    trade_index: int = 0


@dataclass(frozen=True)
class ClaimReceipt:
    mint: str
    creator: str
    amount: int


Receipt = Union[TradeReceipt, ClaimReceipt, MigrationSnapshot]


@dataclass(frozen=True)
class Effect:
    """Post-step observables: ledger legs to execute, events, and the receipt."""

    events: tuple[Event, ...]
    transfers: tuple[Transfer, ...] = ()
    receipt: Optional[Receipt] = None


@dataclass(frozen=True)
class StepResult:
    """Result of a single engine step."""

    accepted: bool
    state: CurveState | None = None
    effect: Effect | None = None
    rejection: str | None = None
