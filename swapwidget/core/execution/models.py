"""
Wallet collaborator interface.

The widget never signs anything itself; it hands TransactionRequests to a
wallet and watches the status the wallet reports back.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional

from ..swap.models import TransactionRequest


@dataclass(frozen=True)
class WalletStatus:
    """Snapshot of a submitted transaction as seen by the wallet."""

    is_loading: bool
    is_success: bool = False

    @property
    def is_final(self) -> bool:
        return not self.is_loading


@dataclass(frozen=True)
class TransactionHandle:
    """Whatever the wallet returns to identify a broadcast transaction."""

    hash: str
    raw: Optional[Any] = None


class Wallet(ABC):
    """Connected wallet able to sign and broadcast transactions."""

    @property
    @abstractmethod
    def address(self) -> Optional[str]:
        """Connected account address, None when disconnected"""
        pass

    @property
    @abstractmethod
    def is_connected(self) -> bool:
        pass

    @abstractmethod
    async def submit(self, request: TransactionRequest) -> TransactionHandle:
        """Sign and broadcast. Raises WalletRejection if the user declines."""
        pass

    @abstractmethod
    async def observe(self, handle: TransactionHandle) -> WalletStatus:
        """Current status of a previously submitted transaction"""
        pass
