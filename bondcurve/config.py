"""
YAML configuration for curve launches.

A configuration document carries an optional fee schedule, named creation
presets, and an optional `platform` block with the accounts every curve
created by this deployment shares:

    version: 1
    fee_schedule: {buy_pre: {...}, buy_post: {...}, sell_pre: {...}, sell_post: {...}}
    presets:
      launchpad: {virtual_sol_reserves: ..., virtual_token_reserves: ...,
                  initial_real_token_supply: ..., graduation_threshold: ...}
    platform: {authority: ..., fee_recipient: ..., prize_pool_recipient: ..., reserves_recipient: ...}

Documents are parsed with `yaml.safe_load`; anything malformed raises
`InvalidCurveConfig`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any, Mapping, Optional, Union

import yaml

from .core.curve.types import CurveConfig
from .core.errors import InvalidCurveConfig
from .core.fees import FeeSchedule
from .core.pricing import U64_MAX

PathLike = Union[str, Path]

_PRESET_FIELDS = (
    "virtual_sol_reserves",
    "virtual_token_reserves",
    "initial_real_token_supply",
    "graduation_threshold",
)


@dataclass(frozen=True)
class CurvePreset:
    """Named set of creation parameters."""

    name: str
    virtual_sol_reserves: int
    virtual_token_reserves: int
    initial_real_token_supply: int
    graduation_threshold: int

    def __post_init__(self) -> None:
        for name in _PRESET_FIELDS:
            v = getattr(self, name)
            if not isinstance(v, int) or isinstance(v, bool) or not (0 < v <= U64_MAX):
                raise InvalidCurveConfig(f"preset {self.name!r}: {name} must be a positive u64, got {v!r}")


@dataclass(frozen=True)
class PlatformAccounts:
    authority: str
    fee_recipient: str
    prize_pool_recipient: Optional[str] = None
    reserves_recipient: Optional[str] = None


@dataclass(frozen=True)
class LaunchConfig:
    fee_schedule: FeeSchedule = field(default_factory=FeeSchedule.default)
    presets: dict[str, CurvePreset] = field(default_factory=dict)
    platform: Optional[PlatformAccounts] = None

    def preset(self, name: str) -> CurvePreset:
        try:
            return self.presets[name]
        except KeyError:
            raise InvalidCurveConfig(f"unknown preset {name!r}; known: {sorted(self.presets)}") from None

    def curve_config(self) -> CurveConfig:
        """`CurveConfig` for a new curve, built from the `platform` block and fee schedule."""
        if self.platform is None:
            raise InvalidCurveConfig("configuration has no platform block")
        return CurveConfig(
            platform_authority=self.platform.authority,
            platform_fee_recipient=self.platform.fee_recipient,
            prize_pool_recipient=self.platform.prize_pool_recipient,
            reserves_recipient=self.platform.reserves_recipient,
            fee_schedule=self.fee_schedule,
        )


def default_presets_path() -> Path:
    # bondcurve/config.py -> bondcurve/data/presets.yaml
    return Path(__file__).resolve().parent / "data" / "presets.yaml"


def _read_document(path: PathLike) -> Mapping[str, Any]:
    p = Path(path)
    try:
        obj = yaml.safe_load(p.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise InvalidCurveConfig(f"{p}: invalid YAML: {exc}") from exc
    if not isinstance(obj, Mapping):
        raise InvalidCurveConfig(f"{p}: configuration document must be a mapping")
    version = obj.get("version", 1)
    if version != 1:
        raise InvalidCurveConfig(f"{p}: unsupported configuration version {version!r}")
    return obj


def parse_fee_schedule(raw: Any) -> FeeSchedule:
    if not isinstance(raw, Mapping):
        raise InvalidCurveConfig("fee_schedule must be a mapping")
    try:
        return FeeSchedule.from_dict(raw)
    except KeyError as exc:
        raise InvalidCurveConfig(f"fee_schedule is missing row {exc}") from exc
    except (TypeError, ValueError) as exc:
        raise InvalidCurveConfig(f"fee_schedule: {exc}") from exc


def parse_presets(raw: Any) -> dict[str, CurvePreset]:
    if not isinstance(raw, Mapping):
        raise InvalidCurveConfig("presets must be a mapping of name -> parameters")
    out: dict[str, CurvePreset] = {}
    for name, params in raw.items():
        if not isinstance(params, Mapping):
            raise InvalidCurveConfig(f"preset {name!r} must be a mapping")
        unknown = set(params) - set(_PRESET_FIELDS)
        missing = [f for f in _PRESET_FIELDS if f not in params]
        if unknown or missing:
            raise InvalidCurveConfig(
                f"preset {name!r}: unknown fields {sorted(unknown)}, missing fields {missing}"
            )
        preset = CurvePreset(name=str(name), **{f: params[f] for f in _PRESET_FIELDS})
        if preset.initial_real_token_supply > preset.virtual_token_reserves:
            raise InvalidCurveConfig(f"preset {name!r}: curve supply exceeds virtual token reserves")
        if preset.graduation_threshold <= preset.virtual_sol_reserves:
            raise InvalidCurveConfig(f"preset {name!r}: graduation threshold must exceed virtual SOL")
        out[str(name)] = preset
    return out


def _parse_platform(raw: Any) -> PlatformAccounts:
    if not isinstance(raw, Mapping):
        raise InvalidCurveConfig("platform must be a mapping")
    try:
        return PlatformAccounts(
            authority=str(raw["authority"]),
            fee_recipient=str(raw["fee_recipient"]),
            prize_pool_recipient=raw.get("prize_pool_recipient"),
            reserves_recipient=raw.get("reserves_recipient"),
        )
    except KeyError as exc:
        raise InvalidCurveConfig(f"platform block is missing {exc}") from exc


def load_fee_schedule(path: PathLike) -> FeeSchedule:
    doc = _read_document(path)
    if "fee_schedule" not in doc:
        raise InvalidCurveConfig(f"{path}: no fee_schedule section")
    return parse_fee_schedule(doc["fee_schedule"])


def load_presets(path: Optional[PathLike] = None) -> dict[str, CurvePreset]:
    doc = _read_document(path if path is not None else default_presets_path())
    return parse_presets(doc.get("presets", {}))


def load_config(path: PathLike) -> LaunchConfig:
    doc = _read_document(path)
    schedule = parse_fee_schedule(doc["fee_schedule"]) if "fee_schedule" in doc else FeeSchedule.default()
    platform = _parse_platform(doc["platform"]) if doc.get("platform") is not None else None
    return LaunchConfig(
        fee_schedule=schedule,
        presets=parse_presets(doc.get("presets", {})),
        platform=platform,
    )


@lru_cache(maxsize=1)
def default_config() -> LaunchConfig:
    """The shipped presets and default fee schedule (cached)."""
    return load_config(default_presets_path())
