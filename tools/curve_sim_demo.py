#!/usr/bin/env python3
"""
Offline bonding-curve walkthrough on an in-memory ledger.

Creates one curve from a preset, buys in fixed-size chunks until the curve
graduates, claims the creator's fees, migrates, and prints every receipt as
canonical JSON.
"""

from __future__ import annotations

import argparse
import dataclasses
import logging
import sys
from enum import Enum
from pathlib import Path
from typing import Any

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from bondcurve.config import default_presets_path, load_config
from bondcurve.core.curve import CurveConfig, Phase, state_digest
from bondcurve.core.errors import CurveError
from bondcurve.core.pricing import LAMPORTS_PER_SOL, spot_price_lamports
from bondcurve.integration import TradeExecutor
from bondcurve.state import NATIVE_ASSET, BalanceLedger
from bondcurve.state.canonical import canonical_json_bytes


def _jsonable(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: _jsonable(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, dict):
        return {str(k): _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    return value


def _emit(kind: str, value: Any) -> None:
    body = canonical_json_bytes({"kind": kind, "value": _jsonable(value)}).decode("utf-8")
    print(f"[curve-demo] {body}")


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    ap.add_argument("--config", default=str(default_presets_path()), help="YAML presets/fee schedule document")
    ap.add_argument("--preset", default="demo", help="preset name inside --config")
    ap.add_argument("--buy-sol", type=int, default=10, help="SOL per buy (whole SOL)")
    ap.add_argument("--max-buys", type=int, default=100)
    ap.add_argument("--log-level", default="WARNING")
    args = ap.parse_args(argv)

    logging.basicConfig(level=getattr(logging, str(args.log_level).upper(), logging.WARNING),
                        format="%(levelname)s %(name)s: %(message)s")

    try:
        cfg = load_config(args.config)
        preset = cfg.preset(args.preset)
    except CurveError as exc:
        print(f"[curve-demo] FAIL (config): {exc}")
        return 2

    mint, creator, buyer = "demo-mint", "creator-wallet", "buyer-wallet"
    curve_config = CurveConfig(
        platform_authority="platform-authority",
        platform_fee_recipient="platform-treasury",
        prize_pool_recipient="prize-pool",
        reserves_recipient="platform-reserves",
        fee_schedule=cfg.fee_schedule,
    )

    ledger = BalanceLedger()
    executor = TradeExecutor(ledger)
    state = executor.create_from_preset(preset, mint=mint, creator=creator, config=curve_config)
    print(f"[curve-demo] preset={preset.name} threshold={preset.graduation_threshold} curve={state.curve_account}")

    buy_lamports = args.buy_sol * LAMPORTS_PER_SOL
    ledger.credit(buyer, NATIVE_ASSET, buy_lamports * args.max_buys)

    for i in range(args.max_buys):
        try:
            receipt = executor.buy(mint, buyer, buy_lamports)
        except CurveError as exc:
            print(f"[curve-demo] FAIL (buy #{i + 1}): {exc}")
            return 1
        _emit("trade", receipt)
        if receipt.graduated:
            break
    else:
        print(f"[curve-demo] FAIL: not graduated after {args.max_buys} buys")
        return 1

    state = executor.state(mint)
    print(
        f"[curve-demo] graduated after {state.trade_count} buys: "
        f"real_sol={state.real_sol_reserves} tokens_sold={state.tokens_sold} "
        f"spot_price={spot_price_lamports(state.effective_sol_reserves, state.effective_token_reserves)}"
    )

    try:
        _emit("claim", executor.claim_creator_fees(mint, creator))
        _emit("migration", executor.migrate(mint, "platform-authority"))
    except CurveError as exc:
        print(f"[curve-demo] FAIL (post-graduation): {exc}")
        return 1

    state = executor.state(mint)
    if state.phase is not Phase.MIGRATED:
        print(f"[curve-demo] FAIL: unexpected phase {state.phase.value}")
        return 1

    curve_sol = ledger.balance_of(state.curve_account, NATIVE_ASSET)
    print(f"[curve-demo] curve SOL balance={curve_sol} pending_creator_fees={state.pending_creator_fees}")
    print(f"[curve-demo] final state digest={state_digest(state)}")
    print("[curve-demo] OK")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
