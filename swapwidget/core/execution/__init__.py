"""
Transaction Execution

Wallet collaborator interface and lifecycle tracking for submitted
transactions.
"""

from .models import TransactionHandle, Wallet, WalletStatus
from .tracker import TransactionLifecycleTracker

__all__ = [
    "TransactionHandle",
    "TransactionLifecycleTracker",
    "Wallet",
    "WalletStatus",
]
