"""Tests for bondcurve/integration/executor.py: ledger-backed curve operations."""

from __future__ import annotations

import logging
import threading

import pytest

from bondcurve.core.curve import CurveConfig, Event, Phase
from bondcurve.core.errors import (
    AlreadyMigrated,
    DuplicateCurve,
    InvalidAmount,
    NoClaimableFees,
    SlippageExceeded,
    TradingClosed,
    TransferFailed,
    UnknownCurve,
)
from bondcurve.integration import TradeExecutor
from bondcurve.state import NATIVE_ASSET as SOL
from bondcurve.state import BalanceLedger

CURVE = "bonding_curve:MINT"


def _setup(threshold: int = 2_000_000):
    ledger = BalanceLedger()
    ex = TradeExecutor(ledger)
    ex.create_curve(
        mint="MINT",
        creator="creator",
        virtual_sol_reserves=1_000_000,
        virtual_token_reserves=1_000_000,
        initial_real_token_supply=1_000_000,
        graduation_threshold=threshold,
        config=CurveConfig(
            platform_authority="platform",
            platform_fee_recipient="treasury",
            prize_pool_recipient="prize",
            reserves_recipient="reserves",
        ),
    )
    ledger.credit("alice", SOL, 10_000_000)
    return ex, ledger


def _assert_curve_balances(ex: TradeExecutor, ledger: BalanceLedger) -> None:
    s = ex.state("MINT")
    assert ledger.balance_of(CURVE, SOL) == s.real_sol_reserves + s.pending_creator_fees
    assert ledger.balance_of(CURVE, "MINT") == s.real_token_reserves


class TestCreate:
    def test_supply_minted_to_curve(self) -> None:
        ex, ledger = _setup()
        assert ledger.balance_of(CURVE, "MINT") == 1_000_000
        [created] = ex.events.history(Event.CURVE_CREATED)
        assert created.mint == "MINT"
        assert created.payload["graduation_threshold"] == 2_000_000

    def test_duplicate_does_not_mint_twice(self) -> None:
        ex, ledger = _setup()
        with pytest.raises(DuplicateCurve):
            ex.create_curve(
                mint="MINT",
                creator="creator",
                virtual_sol_reserves=1_000_000,
                virtual_token_reserves=1_000_000,
                initial_real_token_supply=1_000_000,
                graduation_threshold=2_000_000,
                config=ex.state("MINT").config,
            )
        assert ledger.balance_of(CURVE, "MINT") == 1_000_000


class TestBuySell:
    def test_buy_moves_funds(self) -> None:
        ex, ledger = _setup()
        receipt = ex.buy("MINT", "alice", 100_000)
        assert receipt.token_amount == 90_909
        assert ledger.balance_of("alice", SOL) == 10_000_000 - 100_000
        assert ledger.balance_of("alice", "MINT") == 90_909
        assert ledger.balance_of("treasury", SOL) == 1_000
        assert ledger.balance_of("prize", SOL) == 300
        assert ledger.balance_of("reserves", SOL) == 200
        assert ledger.balance_of("creator", SOL) == 0
        assert ledger.balance_of(CURVE, SOL) == 98_500
        _assert_curve_balances(ex, ledger)

    def test_fee_recipient_can_buy(self) -> None:
        ex, ledger = _setup()
        ledger.credit("treasury", SOL, 1_000_000)
        receipt = ex.buy("MINT", "treasury", 100_000)
        assert receipt.token_amount == 90_909
        assert receipt.fees.platform == 1_000
        # The platform share is owed to the buyer itself and never leaves its balance.
        assert ledger.balance_of("treasury", SOL) == 1_000_000 - 100_000 + 1_000
        assert ledger.balance_of("treasury", "MINT") == 90_909
        assert ledger.balance_of("prize", SOL) == 300
        _assert_curve_balances(ex, ledger)

    def test_sell_moves_funds(self) -> None:
        ex, ledger = _setup()
        ex.buy("MINT", "alice", 100_000)
        receipt = ex.sell("MINT", "alice", 45_454)
        assert receipt.sol_amount == 52_285
        assert receipt.net_sol_amount == 51_502
        assert ledger.balance_of("alice", SOL) == 10_000_000 - 100_000 + 51_502
        assert ledger.balance_of("treasury", SOL) == 1_000 + 522
        _assert_curve_balances(ex, ledger)

    def test_quotes_match_execution(self) -> None:
        ex, _ledger = _setup()
        q = ex.quote_buy("MINT", 100_000)
        assert ex.buy("MINT", "alice", 100_000).token_amount == q.amount_out
        q = ex.quote_sell("MINT", 45_454)
        r = ex.sell("MINT", "alice", 45_454)
        assert (r.sol_amount, r.net_sol_amount) == (q.amount_out, q.net_sol_amount)

    def test_quote_rejects_bad_input(self) -> None:
        ex, _ledger = _setup()
        with pytest.raises(InvalidAmount):
            ex.quote_buy("MINT", 0)
        with pytest.raises(InvalidAmount):
            ex.quote_sell("MINT", "10")  # type: ignore[arg-type]

    def test_slippage_leaves_everything_unchanged(self) -> None:
        ex, ledger = _setup()
        ex.buy("MINT", "alice", 100_000)
        state, balances = ex.state("MINT"), ledger.snapshot()
        with pytest.raises(SlippageExceeded):
            ex.sell("MINT", "alice", 45_454, min_sol_out=52_286)
        assert ex.state("MINT") == state
        assert ledger.snapshot() == balances

    def test_transfer_failure_is_atomic(self) -> None:
        ex, ledger = _setup()
        ledger.credit("bob", SOL, 50_000)
        state, balances = ex.state("MINT"), ledger.snapshot()
        with pytest.raises(TransferFailed):
            ex.buy("MINT", "bob", 100_000)
        assert ex.state("MINT") == state
        assert ledger.snapshot() == balances
        assert ex.events.history(Event.TRADE_EXECUTED) == []

    def test_seller_without_tokens_is_atomic(self) -> None:
        ex, ledger = _setup()
        ex.buy("MINT", "alice", 100_000)
        state = ex.state("MINT")
        with pytest.raises(TransferFailed):
            ex.sell("MINT", "bob", 1_000)
        assert ex.state("MINT") == state

    def test_unknown_curve(self) -> None:
        ex, _ledger = _setup()
        with pytest.raises(UnknownCurve):
            ex.buy("OTHER", "alice", 100)

    def test_trade_event_payload(self) -> None:
        ex, _ledger = _setup()
        ex.buy("MINT", "alice", 100_000)
        [ev] = ex.events.history(Event.TRADE_EXECUTED)
        assert ev.payload["direction"] == "buy"
        assert ev.payload["token_amount"] == 90_909
        assert (ev.payload["platform_fee"], ev.payload["creator_fee"]) == (1_000, 500)
        assert (ev.payload["prize_pool_fee"], ev.payload["reserves_fee"]) == (300, 200)


class TestLifecycle:
    def test_graduate_claim_migrate(self) -> None:
        ex, ledger = _setup(threshold=1_050_000)
        receipt = ex.buy("MINT", "alice", 100_000)
        assert receipt.graduated
        [grad] = ex.events.history(Event.GRADUATED)
        assert grad.payload == {"total_sol_raised": 1_098_000, "tokens_sold": 90_909}

        with pytest.raises(TradingClosed):
            ex.buy("MINT", "alice", 100_000)
        with pytest.raises(TradingClosed):
            ex.quote_buy("MINT", 100_000)

        claim = ex.claim_creator_fees("MINT", "creator")
        assert claim.amount == 500
        assert ledger.balance_of("creator", SOL) == 500
        with pytest.raises(NoClaimableFees):
            ex.claim_creator_fees("MINT", "creator")

        snap = ex.migrate("MINT", "platform")
        assert snap.final_sol_reserves == 98_000
        assert ex.state("MINT").phase is Phase.MIGRATED
        with pytest.raises(AlreadyMigrated):
            ex.migrate("MINT", "creator")
        _assert_curve_balances(ex, ledger)

        kinds = [e.event for e in ex.events.history(mint="MINT")]
        assert kinds == [
            Event.CURVE_CREATED,
            Event.TRADE_EXECUTED,
            Event.GRADUATED,
            Event.CREATOR_FEES_CLAIMED,
            Event.MIGRATED,
        ]


class TestConcurrency:
    def test_parallel_buys_on_one_curve(self) -> None:
        ex, ledger = _setup()
        buyers = [f"buyer-{i}" for i in range(8)]
        for b in buyers:
            ledger.credit(b, SOL, 100_000)
        received: dict[str, int] = {}
        lock = threading.Lock()

        def run(buyer: str) -> None:
            total = 0
            for _ in range(10):
                total += ex.buy("MINT", buyer, 1_000).token_amount
            with lock:
                received[buyer] = total

        threads = [threading.Thread(target=run, args=(b,)) for b in buyers]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        s = ex.state("MINT")
        assert s.trade_count == 80
        assert s.tokens_sold == sum(received.values())
        for b in buyers:
            assert ledger.balance_of(b, "MINT") == received[b]
        _assert_curve_balances(ex, ledger)


    def test_subscriber_can_trade_on_same_curve(self) -> None:
        ex, ledger = _setup()
        reacted = threading.Event()

        def follow_up(emitted) -> None:
            if emitted.event is Event.TRADE_EXECUTED and not reacted.is_set():
                reacted.set()
                ex.buy("MINT", "alice", 1_000)

        ex.events.subscribe(follow_up)
        worker = threading.Thread(target=ex.buy, args=("MINT", "alice", 100_000), daemon=True)
        worker.start()
        worker.join(timeout=5)

        assert not worker.is_alive()
        assert ex.state("MINT").trade_count == 2
        assert [e.payload["trade_index"] for e in ex.events.history(Event.TRADE_EXECUTED)] == [1, 2]
        _assert_curve_balances(ex, ledger)


class TestLogging:
    def test_commit_and_rejection_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        ex, _ledger = _setup()
        caplog.set_level(logging.INFO, logger="bondcurve.integration.executor")
        ex.buy("MINT", "alice", 100_000)
        with pytest.raises(SlippageExceeded):
            ex.buy("MINT", "alice", 100_000, min_tokens_out=10**9)
        infos = [r for r in caplog.records if r.levelno == logging.INFO]
        warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
        assert any("buy mint=MINT trader=alice" in r.getMessage() for r in infos)
        assert any("rejected mint=MINT" in r.getMessage() for r in warnings)
