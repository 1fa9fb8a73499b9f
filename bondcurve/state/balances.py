"""
Per-account balances for lamports and curve tokens.

Implements BalanceTable[Account, Asset] -> Amount
"""

from typing import Dict, Tuple


# Type aliases
Account = str  # opaque identity (wallet, curve account, fee recipient)
Asset = str  # NATIVE_ASSET or a token mint
Amount = int  # non-negative lamports or token base units

# Native asset identifier (lamports)
NATIVE_ASSET = "SOL"


class BalanceTable:
    """
    Sparse (account, asset) -> amount map.

    Zero entries are removed, so an account that spent everything disappears
    from `get_all_balances()`.
    """

    def __init__(self):
        self._balances: Dict[Tuple[Account, Asset], Amount] = {}

    def get(self, account: Account, asset: Asset) -> Amount:
        """Balance of `account` in `asset`, 0 when it holds none."""
        return self._balances.get((account, asset), 0)

    def set(self, account: Account, asset: Asset, amount: Amount) -> None:
        """
        Overwrite one balance.

        Raises:
            ValueError: If amount is negative
        """
        if amount < 0:
            raise ValueError(f"balance of {account}/{asset} cannot be negative: {amount}")
        if amount == 0:
            self._balances.pop((account, asset), None)
        else:
            self._balances[(account, asset)] = amount

    def add(self, account: Account, asset: Asset, delta: Amount) -> None:
        """
        Apply a signed delta.

        Raises:
            ValueError: If the balance would go below zero
        """
        current = self.get(account, asset)
        if current + delta < 0:
            raise ValueError(f"insufficient {asset} for {account}: has {current}, needs {-delta}")
        self.set(account, asset, current + delta)

    def subtract(self, account: Account, asset: Asset, delta: Amount) -> None:
        if delta < 0:
            raise ValueError(f"debit must be non-negative: {delta}")
        self.add(account, asset, -delta)

    def copy(self) -> "BalanceTable":
        """Independent table for staging a batch."""
        out = BalanceTable()
        out._balances = dict(self._balances)
        return out

    def get_all_balances(self) -> Dict[Tuple[Account, Asset], Amount]:
        return dict(self._balances)

    def __repr__(self) -> str:
        return f"BalanceTable({len(self._balances)} entries)"
