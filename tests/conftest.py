"""Shared fakes for the swap widget tests."""

from typing import List, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest

from swapwidget.core.errors import WalletRejection
from swapwidget.core.execution.models import TransactionHandle, Wallet, WalletStatus
from swapwidget.core.swap.models import Token, TransactionRequest
from swapwidget.notifications import Notifier


WALLET_ADDRESS = "0x50ac5CFcc81BB0872e85255D7079F8a529345D16"

USDC = Token(
    ticker="USDC",
    address="0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48",
    decimals=6,
    name="USD Coin",
)
DAI = Token(
    ticker="DAI",
    address="0x6B175474E89094C44Da98b954EedeAC495271d0F",
    decimals=18,
    name="Dai Stablecoin",
)
WBTC = Token(
    ticker="WBTC",
    address="0x2260FAC5E5542a773Aa44fBCfeDf7C193bc2C599",
    decimals=8,
    name="Wrapped BTC",
)


class FakeWallet(Wallet):
    """Wallet that replays scripted statuses for every submitted transaction."""

    def __init__(
        self,
        address: Optional[str] = WALLET_ADDRESS,
        connected: bool = True,
        statuses: Optional[List[WalletStatus]] = None,
        reject: bool = False,
    ):
        self._address = address
        self.connected = connected
        self.statuses = list(statuses or [WalletStatus(is_loading=False, is_success=True)])
        self.reject = reject
        self.submitted: List[TransactionRequest] = []
        self.observe_calls = 0

    @property
    def address(self) -> Optional[str]:
        return self._address if self.connected else None

    @property
    def is_connected(self) -> bool:
        return self.connected

    async def submit(self, request: TransactionRequest) -> TransactionHandle:
        self.submitted.append(request)
        if self.reject:
            raise WalletRejection("User rejected the request")
        return TransactionHandle(hash=f"0xhash{len(self.submitted)}")

    async def observe(self, handle: TransactionHandle) -> WalletStatus:
        self.observe_calls += 1
        if len(self.statuses) > 1:
            return self.statuses.pop(0)
        return self.statuses[0]


@pytest.fixture
def notifier() -> Notifier:
    return Notifier(default_duration=0.05)


@pytest.fixture
def wallet() -> FakeWallet:
    return FakeWallet()


@pytest.fixture
def provider() -> MagicMock:
    """Aggregator provider double with happy-path responses."""
    mock = MagicMock()
    mock.get_price = AsyncMock(return_value={"ratio": 0.999})
    mock.get_allowance = AsyncMock(return_value={"allowance": "115792089237316195423570985008687907853269984665640564039457584007913129639935"})
    mock.get_approve_transaction = AsyncMock(
        return_value={"to": USDC.address, "data": "0x095ea7b3", "value": "0"}
    )
    mock.get_swap_transaction = AsyncMock(
        return_value={
            "toTokenAmount": "9990000000000000000",
            "tx": {"to": "0x1111111254eeb25477b68fb85ed929f73a960582", "data": "0x12aa3caf", "value": "0"},
        }
    )
    return mock


@pytest.fixture
def usdc() -> Token:
    return USDC


@pytest.fixture
def dai() -> Token:
    return DAI


@pytest.fixture
def wbtc() -> Token:
    return WBTC


@pytest.fixture
def wallet_factory():
    """Build FakeWallets with custom scripts."""
    return FakeWallet


@pytest.fixture
def wallet_address() -> str:
    return WALLET_ADDRESS
