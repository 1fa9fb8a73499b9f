"""`curve`: per-token bonding-curve engine.

- deterministic, integer-only transitions,
- immutable state (frozen dataclasses),
- fail-closed guards and invariant checks.

Public API:
- `create_curve(...) -> CurveState`
- `step(state, params) -> StepResult`
- `step_or_raise(state, params) -> StepResult` (raises on rejection)
"""

from .engine import step, step_or_raise
from .state import create_curve, curve_account_for, state_digest, state_from_dict, state_to_dict
from .types import (
    Action,
    ActionParams,
    ClaimReceipt,
    CurveConfig,
    CurveState,
    Effect,
    Event,
    MigrationSnapshot,
    Phase,
    StepResult,
    TradeReceipt,
    fee_tier_for,
)

__all__ = [
    "step",
    "step_or_raise",
    "create_curve",
    "curve_account_for",
    "state_digest",
    "state_from_dict",
    "state_to_dict",
    "Action",
    "ActionParams",
    "ClaimReceipt",
    "CurveConfig",
    "CurveState",
    "Effect",
    "Event",
    "MigrationSnapshot",
    "Phase",
    "StepResult",
    "TradeReceipt",
    "fee_tier_for",
]
