"""State construction and serialization for the curve engine.

`create_curve()` validates creation parameters and returns the initial state.

Round-trip property (tested): `state_from_dict(state_to_dict(s)) == s` for all valid states.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

from ..errors import InvalidCurveConfig
from ..fees import FeeSchedule
from ..pricing import U64_MAX
from ...state.canonical import digest
from .types import CurveConfig, CurveState, MigrationSnapshot, Phase

# Auto-derived from CurveState field definitions (single source of truth).
STATE_VAR_NAMES: tuple[str, ...] = tuple(CurveState.__dataclass_fields__)

_INT_FIELDS: tuple[str, ...] = (
    "virtual_sol_reserves",
    "virtual_token_reserves",
    "graduation_threshold",
    "real_sol_reserves",
    "real_token_reserves",
    "tokens_sold",
    "pending_creator_fees",
    "cumulative_fees_collected",
    "trade_count",
)


def curve_account_for(mint: str) -> str:
    """Ledger account that holds a curve's SOL and token reserves."""
    return f"bonding_curve:{mint}"


def _require_identity(name: str, value: object) -> str:
    if not isinstance(value, str) or not value.strip():
        raise InvalidCurveConfig(f"{name} must be a non-empty string")
    return value


def _require_u64(name: str, value: object, *, positive: bool = True) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise InvalidCurveConfig(f"{name} must be an int")
    if value < 0 or value > U64_MAX:
        raise InvalidCurveConfig(f"{name} out of u64 range: {value}")
    if positive and value == 0:
        raise InvalidCurveConfig(f"{name} must be positive")
    return value


def validate_config(config: CurveConfig, curve_account: str) -> None:
    _require_identity("platform_authority", config.platform_authority)
    _require_identity("platform_fee_recipient", config.platform_fee_recipient)
    schedule = config.fee_schedule
    for recipient, attr in (
        (config.prize_pool_recipient, "prize_pool_bps"),
        (config.reserves_recipient, "reserves_bps"),
    ):
        if recipient is None:
            if getattr(schedule.buy_pre, attr) or getattr(schedule.buy_post, attr):
                raise InvalidCurveConfig(f"{attr} is charged but no recipient is configured")
        else:
            _require_identity(attr.replace("_bps", "_recipient"), recipient)
    recipients = [config.platform_fee_recipient, config.prize_pool_recipient, config.reserves_recipient]
    if curve_account in recipients:
        raise InvalidCurveConfig("fee recipients must differ from the curve account")


def create_curve(
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
    """Validate creation parameters and return the initial `TRADING` state.

    Raises:
        InvalidCurveConfig: any parameter fails validation.
    """
    _require_identity("mint", mint)
    _require_identity("creator", creator)
    account = curve_account if curve_account is not None else curve_account_for(mint)
    _require_identity("curve_account", account)
    if account == creator:
        raise InvalidCurveConfig("creator must differ from the curve account")

    _require_u64("virtual_sol_reserves", virtual_sol_reserves)
    _require_u64("virtual_token_reserves", virtual_token_reserves)
    _require_u64("initial_real_token_supply", initial_real_token_supply)
    _require_u64("graduation_threshold", graduation_threshold)
    if initial_real_token_supply > virtual_token_reserves:
        raise InvalidCurveConfig(
            "initial_real_token_supply must not exceed virtual_token_reserves: "
            f"{initial_real_token_supply} > {virtual_token_reserves}"
        )
    if graduation_threshold <= virtual_sol_reserves:
        raise InvalidCurveConfig(
            "graduation_threshold must exceed virtual_sol_reserves: "
            f"{graduation_threshold} <= {virtual_sol_reserves}"
        )
    if virtual_sol_reserves * virtual_token_reserves > (1 << 128) - 1:
        raise InvalidCurveConfig("virtual reserve product exceeds u128")
    validate_config(config, account)

    return CurveState(
        mint=mint,
        creator=creator,
        curve_account=account,
        config=config,
        virtual_sol_reserves=virtual_sol_reserves,
        virtual_token_reserves=virtual_token_reserves,
        graduation_threshold=graduation_threshold,
        real_token_reserves=initial_real_token_supply,
    )


def _config_to_dict(config: CurveConfig) -> dict[str, Any]:
    return {
        "platform_authority": config.platform_authority,
        "platform_fee_recipient": config.platform_fee_recipient,
        "prize_pool_recipient": config.prize_pool_recipient,
        "reserves_recipient": config.reserves_recipient,
        "fee_schedule": config.fee_schedule.to_dict(),
    }


def state_to_dict(state: CurveState) -> dict[str, Any]:
    """Serialize a CurveState to a plain JSON-compatible dict."""
    out: dict[str, Any] = {name: getattr(state, name) for name in STATE_VAR_NAMES}
    out["phase"] = state.phase.value
    out["config"] = _config_to_dict(state.config)
    if state.migration is not None:
        m = state.migration
        out["migration"] = {
            "final_sol_reserves": m.final_sol_reserves,
            "remaining_tokens": m.remaining_tokens,
            "tokens_sold": m.tokens_sold,
            "state_digest": m.state_digest,
        }
    return out


def state_from_dict(d: Mapping[str, Any]) -> CurveState:
    """Deserialize a dict to a CurveState. Raises KeyError on missing fields."""
    kwargs: dict[str, Any] = {}
    for name in _INT_FIELDS:
        val = d[name]
        if not isinstance(val, int) or isinstance(val, bool):
            raise TypeError(f"state var {name!r} must be int, got {type(val).__name__}")
        kwargs[name] = int(val)
    for name in ("mint", "creator", "curve_account"):
        kwargs[name] = str(d[name])
    kwargs["phase"] = Phase(d["phase"])

    cfg = d["config"]
    kwargs["config"] = CurveConfig(
        platform_authority=cfg["platform_authority"],
        platform_fee_recipient=cfg["platform_fee_recipient"],
        prize_pool_recipient=cfg.get("prize_pool_recipient"),
        reserves_recipient=cfg.get("reserves_recipient"),
        fee_schedule=FeeSchedule.from_dict(cfg["fee_schedule"]),
    )
    mig = d.get("migration")
    kwargs["migration"] = None if mig is None else MigrationSnapshot(**mig)
    return CurveState(**kwargs)


def state_digest(state: CurveState) -> str:
    """sha256 of the canonical JSON form of `state`."""
    return digest("curve_state", state_to_dict(state))
