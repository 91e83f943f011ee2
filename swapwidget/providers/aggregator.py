"""Async client for the 1inch-style aggregator backend used by the widget."""

from __future__ import annotations

import time
from typing import Any, Dict, Optional

import httpx
import structlog

from ..config import settings
from ..core.errors import DataError, classify_http_error
from .base import SwapAggregatorProvider

logger = structlog.stdlib.get_logger("aggregator")


class AggregatorProvider(SwapAggregatorProvider):
    """Thin wrapper around the aggregator's quote/allowance/approve/swap routes."""

    name = "aggregator"

    def __init__(
        self,
        *,
        base_url: Optional[str] = None,
        timeout_s: Optional[int] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = (base_url or settings.aggregator_base_url).rstrip("/")
        self.timeout_s = timeout_s if timeout_s is not None else settings.request_timeout_seconds
        self._transport = transport

    def _headers(self) -> Dict[str, str]:
        return {
            "accept": "application/json",
            "user-agent": "SwapWidget/0.1",
        }

    async def ready(self) -> bool:
        return bool(self.base_url)

    async def _get(self, path: str, params: Dict[str, Any]) -> Dict[str, Any]:
        """GET ``path`` and return the JSON object body.

        Raises the widget's error types: ClientError for 4xx, DataError for a
        body that isn't a JSON object, TransportError for everything else.
        """
        cleaned = {k: v for k, v in params.items() if v is not None}
        start = time.perf_counter()
        status_code: Optional[int] = None

        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout_s,
                transport=self._transport,
            ) as client:
                response = await client.get(path, params=cleaned, headers=self._headers())
                status_code = response.status_code
                response.raise_for_status()
                body = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            error = classify_http_error(exc, endpoint=path)
            logger.warning(
                "aggregator_request_failed",
                path=path,
                status=status_code,
                category=error.category.value,
                error=error.message,
            )
            raise error from exc
        finally:
            logger.debug(
                "aggregator_request",
                path=path,
                status=status_code,
                duration_ms=round((time.perf_counter() - start) * 1000, 1),
            )

        if not isinstance(body, dict):
            raise DataError(f"Expected a JSON object from {path}, got {type(body).__name__}")
        return body

    async def get_price(self, token_in: str, token_out: str) -> Dict[str, Any]:
        """Fetch the ratio between two tokens: ``{"ratio": ...}``."""

        return await self._get("/tokenPrice", {"addressOne": token_in, "addressTwo": token_out})

    async def get_allowance(self, token_address: str, wallet_address: str) -> Dict[str, Any]:
        return await self._get(
            "/approve/allowance",
            {"tokenAddress": token_address, "walletAddress": wallet_address},
        )

    async def get_approve_transaction(self, token_address: str) -> Dict[str, Any]:
        return await self._get("/approve/transaction", {"tokenAddress": token_address})

    async def get_swap_transaction(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """Build a swap transaction.

        `params` carries fromTokenAddress, toTokenAddress, amount (base units),
        fromAddress and slippage.
        """

        return await self._get("/swap", params)
