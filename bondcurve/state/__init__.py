"""
State tables and the transfer ledger boundary
"""

from .balances import NATIVE_ASSET, BalanceTable
from .ledger import BalanceLedger, Transfer, TransferLedger

__all__ = [
    "NATIVE_ASSET",
    "BalanceTable",
    "BalanceLedger",
    "Transfer",
    "TransferLedger",
]
