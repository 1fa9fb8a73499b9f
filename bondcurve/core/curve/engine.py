"""Dispatch-table engine for the bonding curve.

``step(state, params)`` is the single entry point. It:

1. Validates parameter types.
2. Dispatches to the correct guard / update / effect functions.
3. Checks state invariants on the post-state and transition invariants on
   (pre, post).
4. Returns a ``StepResult`` (accepted or rejected with reason).

``step`` never touches a ledger: an accepted result carries the transfer legs
in ``effect.transfers`` and it is up to the caller to execute them before
adopting ``result.state``.
"""

from __future__ import annotations

from typing import Callable

from ..errors import ERROR_BY_CODE, CurveError, CurveInvariantError, InvalidAmount, Unauthorized
from .effects import (
    effect_buy,
    effect_claim_creator_fees,
    effect_migrate,
    effect_sell,
)
from .guards import (
    guard_buy,
    guard_claim_creator_fees,
    guard_migrate,
    guard_sell,
)
from .invariants import check_all, check_transition
from .types import Action, ActionParams, CurveState, Effect, StepResult
from .updates import (
    apply_buy,
    apply_claim_creator_fees,
    apply_migrate,
    apply_sell,
)

GuardFn = Callable[[CurveState, ActionParams], "str | None"]
UpdateFn = Callable[[CurveState, ActionParams], CurveState]
EffectFn = Callable[[CurveState, CurveState, ActionParams], Effect]

_DISPATCH: dict[Action, tuple[GuardFn, UpdateFn, EffectFn]] = {
    Action.BUY: (guard_buy, apply_buy, effect_buy),
    Action.SELL: (guard_sell, apply_sell, effect_sell),
    Action.MIGRATE: (guard_migrate, apply_migrate, effect_migrate),
    Action.CLAIM_CREATOR_FEES: (
        guard_claim_creator_fees, apply_claim_creator_fees, effect_claim_creator_fees,
    ),
}


def _validate_params(params: ActionParams) -> str | None:
    """Check parameter types. Returns rejection reason or None."""
    if not isinstance(params.actor, str) or not params.actor:
        return "param_domain:actor"
    for name in ("amount", "min_out"):
        val = getattr(params, name)
        if not isinstance(val, int) or isinstance(val, bool):
            return f"param_domain:{name}"
    return None


def step(state: CurveState, params: ActionParams) -> StepResult:
    """Execute one action against the given state.

    Returns ``StepResult`` with ``accepted=True`` on success,
    or ``accepted=False`` with a ``rejection`` reason string.
    """
    entry = _DISPATCH.get(params.action)
    if entry is None:
        return StepResult(accepted=False, rejection=f"unknown_action:{params.action}")

    domain_err = _validate_params(params)
    if domain_err is not None:
        return StepResult(accepted=False, rejection=domain_err)

    guard_fn, update_fn, effect_fn = entry

    rejection = guard_fn(state, params)
    if rejection is not None:
        return StepResult(accepted=False, rejection=rejection)

    new_state = update_fn(state, params)

    violations = check_all(new_state) + check_transition(state, new_state)
    if violations:
        return StepResult(
            accepted=False,
            rejection=f"invariant:{','.join(violations)}",
        )

    effect = effect_fn(state, new_state, params)
    return StepResult(accepted=True, state=new_state, effect=effect)


def step_or_raise(state: CurveState, params: ActionParams) -> StepResult:
    """Like ``step()`` but raises on rejection instead of returning a result.

    Raises:
        Unauthorized: Missing or non-string actor.
        InvalidAmount: Amount or slippage floor of the wrong type.
        CurveInvariantError: Post-state violates one or more invariants.
        CurveError: The subclass matching the guard's rejection code.
    """
    result = step(state, params)
    if result.accepted:
        return result

    reason = result.rejection or ""
    if reason == "param_domain:actor":
        raise Unauthorized(f"{params.action.value} rejected for {state.mint}: {reason}")
    if reason.startswith("param_domain:"):
        raise InvalidAmount(reason)
    if reason.startswith("invariant:"):
        violations = reason.removeprefix("invariant:").split(",")
        raise CurveInvariantError(violations)
    error_cls = ERROR_BY_CODE.get(reason, CurveError)
    raise error_cls(f"{params.action.value} rejected for {state.mint}: {reason}")
