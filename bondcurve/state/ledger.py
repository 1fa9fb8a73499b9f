"""
Transfer ledger boundary.

The engine only decides *how much* moves. Moving it is delegated to a
`TransferLedger`, which must apply a batch of legs all-or-nothing: if any leg
fails, no leg of the batch may be visible afterwards.

`BalanceLedger` is the in-memory implementation used by tests, simulations and
the demo tool. It applies a batch to a copy of its balance table and swaps the
copy in only when every leg succeeded.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Iterable, Protocol, Sequence

from ..core.errors import TransferFailed
from ..core.pricing import U64_MAX
from .balances import Account, Amount, Asset, BalanceTable


@dataclass(frozen=True)
class Transfer:
    """One debit-and-credit leg."""

    source: Account
    dest: Account
    asset: Asset
    amount: Amount

    def to_dict(self) -> dict[str, object]:
        return {"source": self.source, "dest": self.dest, "asset": self.asset, "amount": self.amount}


class TransferLedger(Protocol):
    def transfer_batch(self, transfers: Sequence[Transfer]) -> None:
        """Apply every leg or none. Raises `TransferFailed` on any failure."""
        ...

    def transfer(self, source: Account, dest: Account, asset: Asset, amount: Amount) -> None:
        ...

    def mint_initial_supply(self, to: Account, asset: Asset, amount: Amount) -> None:
        ...


def _apply_leg(table: BalanceTable, leg: Transfer) -> None:
    if not isinstance(leg.amount, int) or isinstance(leg.amount, bool) or leg.amount <= 0:
        raise TransferFailed(f"transfer amount must be a positive int: {leg.amount!r}")
    if leg.source == leg.dest:
        raise TransferFailed(f"transfer source and dest are the same account: {leg.source}")
    try:
        table.subtract(leg.source, leg.asset, leg.amount)
    except ValueError as exc:
        raise TransferFailed(str(exc)) from exc
    if table.get(leg.dest, leg.asset) + leg.amount > U64_MAX:
        raise TransferFailed(f"credit overflows u64 for {leg.dest}/{leg.asset}")
    table.add(leg.dest, leg.asset, leg.amount)


class BalanceLedger:
    """In-memory `TransferLedger` with atomic batches."""

    def __init__(self, balances: BalanceTable | None = None) -> None:
        self._balances = balances if balances is not None else BalanceTable()
        self._lock = threading.Lock()

    def balance_of(self, account: Account, asset: Asset) -> Amount:
        with self._lock:
            return self._balances.get(account, asset)

    def credit(self, account: Account, asset: Asset, amount: Amount) -> None:
        """Fund an account from outside the system (faucet / deposit)."""
        if not isinstance(amount, int) or isinstance(amount, bool) or amount <= 0:
            raise ValueError(f"credit amount must be a positive int: {amount!r}")
        with self._lock:
            if self._balances.get(account, asset) + amount > U64_MAX:
                raise TransferFailed(f"credit overflows u64 for {account}/{asset}")
            self._balances.add(account, asset, amount)

    def mint_initial_supply(self, to: Account, asset: Asset, amount: Amount) -> None:
        self.credit(to, asset, amount)

    def transfer(self, source: Account, dest: Account, asset: Asset, amount: Amount) -> None:
        self.transfer_batch([Transfer(source=source, dest=dest, asset=asset, amount=amount)])

    def transfer_batch(self, transfers: Iterable[Transfer]) -> None:
        legs = list(transfers)
        with self._lock:
            staged = self._balances.copy()
            for leg in legs:
                _apply_leg(staged, leg)
            self._balances = staged

    def snapshot(self) -> dict[tuple[Account, Asset], Amount]:
        with self._lock:
            return self._balances.get_all_balances()

    def __repr__(self) -> str:
        return f"BalanceLedger({self._balances!r})"
