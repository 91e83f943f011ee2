"""Allowance lookups for the aggregator router."""

from __future__ import annotations

import asyncio
import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from ...config import settings
from ...notifications import Notifier
from ...providers.base import SwapAggregatorProvider
from ..errors import DataError, SwapError
from .models import AllowanceState

ALLOWANCE_FETCH_FAILED = "Failed to fetch token allowance."


def parse_allowance(body: Any) -> AllowanceState:
    raw = body.get("allowance") if isinstance(body, dict) else None
    if raw is None or isinstance(raw, bool):
        raise DataError(f"Allowance response has no allowance field: {body!r}")
    try:
        amount = Decimal(str(raw).strip())
    except (InvalidOperation, ValueError) as exc:
        raise DataError(f"Allowance is not numeric: {raw!r}") from exc
    if not amount.is_finite() or amount < 0:
        raise DataError(f"Allowance out of range: {raw!r}")
    return AllowanceState.ZERO if amount == 0 else AllowanceState.SUFFICIENT


class AllowanceChecker:
    """Reports whether a wallet has let the router spend a token."""

    def __init__(
        self,
        provider: SwapAggregatorProvider,
        notifier: Notifier,
        *,
        latency_s: Optional[float] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._provider = provider
        self._notifier = notifier
        self.latency_s = settings.latency_buffer_seconds if latency_s is None else latency_s
        self._logger = logger or logging.getLogger(__name__)

    async def check_allowance(self, token_address: str, wallet_address: str) -> AllowanceState:
        """Query the allowance. Returns UNKNOWN instead of raising on failure."""
        await asyncio.sleep(self.latency_s)

        try:
            body = await self._provider.get_allowance(token_address, wallet_address)
            state = parse_allowance(body)
        except SwapError as exc:
            self._logger.warning(
                "Allowance check failed token=%s wallet=%s: %s",
                token_address,
                wallet_address,
                exc.message,
            )
            self._notifier.error(ALLOWANCE_FETCH_FAILED)
            return AllowanceState.UNKNOWN

        self._logger.info("Allowance token=%s wallet=%s state=%s", token_address, wallet_address, state.value)
        return state
