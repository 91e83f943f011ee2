from unittest.mock import AsyncMock

import pytest

from swapwidget.core.errors import ClientError, TransportError
from swapwidget.core.swap.allowance import ALLOWANCE_FETCH_FAILED, AllowanceChecker
from swapwidget.core.swap.models import AllowanceState


@pytest.fixture
def checker(provider, notifier):
    return AllowanceChecker(provider, notifier, latency_s=0)


@pytest.mark.asyncio
async def test_zero_allowance(checker, provider, usdc, wallet_address):
    provider.get_allowance = AsyncMock(return_value={"allowance": "0"})

    state = await checker.check_allowance(usdc.address, wallet_address)

    assert state == AllowanceState.ZERO
    assert state.requires_approval is True
    provider.get_allowance.assert_awaited_once_with(usdc.address, wallet_address)


@pytest.mark.asyncio
async def test_positive_allowance_is_sufficient(checker, provider, usdc, wallet_address):
    provider.get_allowance = AsyncMock(return_value={"allowance": "1000000"})

    state = await checker.check_allowance(usdc.address, wallet_address)

    assert state == AllowanceState.SUFFICIENT
    assert state.requires_approval is False


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error",
    [TransportError("timeout"), ClientError("bad", status_code=400, description="invalid wallet")],
)
async def test_failures_return_unknown(checker, provider, notifier, usdc, wallet_address, error):
    provider.get_allowance = AsyncMock(side_effect=error)

    state = await checker.check_allowance(usdc.address, wallet_address)

    assert state == AllowanceState.UNKNOWN
    # Unknown is handled like zero
    assert state.requires_approval is True
    assert notifier.latest.content == ALLOWANCE_FETCH_FAILED


@pytest.mark.asyncio
@pytest.mark.parametrize("body", [{}, {"allowance": "lots"}, {"allowance": "-5"}, {"allowance": True}])
async def test_malformed_body_returns_unknown(checker, provider, usdc, wallet_address, body):
    provider.get_allowance = AsyncMock(return_value=body)

    assert await checker.check_allowance(usdc.address, wallet_address) == AllowanceState.UNKNOWN
