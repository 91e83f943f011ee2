"""
Rate-limited quote fetching.

Quote requests are debounced through a single-slot timer: a new request
replaces the one still waiting, it never queues behind it. A request that
survives the debounce window waits a further fixed latency buffer before the
aggregator is contacted. Failures are reported through the notifier and
published as "no quote"; nothing is raised to the caller.
"""

from __future__ import annotations

import asyncio
import logging
from decimal import Decimal, InvalidOperation
from typing import Callable, Optional, Set

from ...config import settings
from ...notifications import Notifier
from ...providers.base import SwapAggregatorProvider
from ..errors import DataError, SwapError
from .models import Quote

QuoteListener = Callable[[str, str, Optional[Quote]], None]

PRICE_FETCH_FAILED = "Failed to fetch token prices."


def parse_quote(body: dict) -> Quote:
    raw = body.get("ratio") if isinstance(body, dict) else None
    if raw is None or isinstance(raw, bool):
        raise DataError(f"Quote response has no usable ratio: {body!r}")
    try:
        ratio = Decimal(str(raw))
    except (InvalidOperation, ValueError) as exc:
        raise DataError(f"Quote ratio is not numeric: {raw!r}") from exc
    if not ratio.is_finite() or ratio < 0:
        raise DataError(f"Quote ratio out of range: {raw!r}")
    return Quote(ratio=ratio)


class RateLimitedQuoteFetcher:
    """Debounces quote requests for the current token pair."""

    def __init__(
        self,
        provider: SwapAggregatorProvider,
        notifier: Notifier,
        *,
        listener: Optional[QuoteListener] = None,
        debounce_s: Optional[float] = None,
        latency_s: Optional[float] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._provider = provider
        self._notifier = notifier
        self._listener = listener
        self.debounce_s = settings.quote_debounce_seconds if debounce_s is None else debounce_s
        self.latency_s = settings.latency_buffer_seconds if latency_s is None else latency_s
        self._logger = logger or logging.getLogger(__name__)

        self._timer: Optional[asyncio.Task] = None
        self._inflight: Set[asyncio.Task] = set()

    def set_listener(self, listener: Optional[QuoteListener]) -> None:
        self._listener = listener

    @property
    def has_pending(self) -> bool:
        return (self._timer is not None and not self._timer.done()) or bool(self._inflight)

    def request_quote(self, token_in_address: str, token_out_address: str) -> None:
        """Schedule a quote fetch, replacing any request still in its debounce window."""
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
            self._logger.debug("Replaced pending quote request")
        self._timer = asyncio.create_task(self._fire_after_debounce(token_in_address, token_out_address))

    async def _fire_after_debounce(self, token_in_address: str, token_out_address: str) -> None:
        await asyncio.sleep(self.debounce_s)
        # From here on the fetch runs to completion even if superseded
        task = asyncio.create_task(self.fetch(token_in_address, token_out_address))
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)

    async def fetch(self, token_in_address: str, token_out_address: str) -> Optional[Quote]:
        """Fetch and publish a quote now (after the latency buffer)."""
        await asyncio.sleep(self.latency_s)

        quote: Optional[Quote] = None
        try:
            body = await self._provider.get_price(token_in_address, token_out_address)
            quote = parse_quote(body)
        except SwapError as exc:
            self._logger.warning(
                "Quote fetch failed for %s -> %s: %s",
                token_in_address,
                token_out_address,
                exc.message,
            )
            self._notifier.error(PRICE_FETCH_FAILED)
        except Exception as exc:
            self._logger.error("Unexpected quote fetch error: %s", exc, exc_info=True)
            self._notifier.error(PRICE_FETCH_FAILED)
        else:
            self._logger.info(
                "Quote %s -> %s ratio=%s", token_in_address, token_out_address, quote.ratio
            )

        self._publish(token_in_address, token_out_address, quote)
        return quote

    def _publish(self, token_in_address: str, token_out_address: str, quote: Optional[Quote]) -> None:
        if self._listener is None:
            return
        try:
            self._listener(token_in_address, token_out_address, quote)
        except Exception as exc:
            self._logger.error(f"Quote listener error: {exc}")

    async def flush(self) -> None:
        """Wait until no quote request is waiting or in flight."""
        while self.has_pending:
            pending = [t for t in (self._timer, *self._inflight) if t is not None and not t.done()]
            if not pending:
                break
            await asyncio.gather(*pending, return_exceptions=True)

    async def close(self) -> None:
        tasks = [t for t in (self._timer, *self._inflight) if t is not None and not t.done()]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._timer = None
        self._inflight.clear()
