from abc import ABC, abstractmethod
from typing import Any, Dict


class Provider(ABC):
    """Base provider interface"""

    name: str
    timeout_s: int = 10

    @abstractmethod
    async def ready(self) -> bool:
        """Check if provider is ready to serve requests"""
        pass


class SwapAggregatorProvider(Provider):
    """Provider for swap pricing and ready-to-sign transaction payloads"""

    @abstractmethod
    async def get_price(self, token_in: str, token_out: str) -> Dict[str, Any]:
        """Get the conversion ratio token_in -> token_out"""
        pass

    @abstractmethod
    async def get_allowance(self, token_address: str, wallet_address: str) -> Dict[str, Any]:
        """Get how much of a token the router may spend for a wallet"""
        pass

    @abstractmethod
    async def get_approve_transaction(self, token_address: str) -> Dict[str, Any]:
        """Get an approval transaction payload for a token"""
        pass

    @abstractmethod
    async def get_swap_transaction(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """Get a swap transaction payload"""
        pass
