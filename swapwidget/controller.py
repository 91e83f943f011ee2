"""
Swap widget controller.

Binds user input events (amount typing, token picker, switch button, slippage
settings, swap button) to the orchestrator and exposes a render-ready view of
the current state. Rendering itself belongs to the host UI.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Optional, Tuple

from .config import settings
from .core.execution.models import Wallet
from .core.execution.tracker import TransactionLifecycleTracker
from .core.swap.models import SwapPhase, TokenSide, TransactionOutcome, TransactionRequest
from .core.swap.orchestrator import SwapOrchestrator
from .notifications import Notifier
from .providers.aggregator import AggregatorProvider
from .providers.base import SwapAggregatorProvider
from .services.token_catalog import TokenCatalog

logger = logging.getLogger(__name__)


@dataclass
class WidgetView:
    token_in: str
    token_out: str
    amount_in: Optional[str]
    amount_out: Optional[str]
    slippage: Decimal
    slippage_options: List[Decimal]
    input_enabled: bool
    swap_enabled: bool
    selector_open: bool
    phase: SwapPhase
    outcome: TransactionOutcome
    notifications: List[Tuple[str, str]] = field(default_factory=list)


class SwapWidgetController:
    """Entry point the UI layer talks to."""

    def __init__(
        self,
        wallet: Wallet,
        *,
        catalog: Optional[TokenCatalog] = None,
        provider: Optional[SwapAggregatorProvider] = None,
        notifier: Optional[Notifier] = None,
        orchestrator: Optional[SwapOrchestrator] = None,
        tracker: Optional[TransactionLifecycleTracker] = None,
    ) -> None:
        self.wallet = wallet
        self.catalog = catalog or TokenCatalog.load()
        self.notifier = notifier or Notifier()
        provider = provider or AggregatorProvider()

        token_in, token_out = self.catalog.default_pair
        self.orchestrator = orchestrator or SwapOrchestrator(
            token_in=token_in,
            token_out=token_out,
            provider=provider,
            wallet=wallet,
            notifier=self.notifier,
        )
        self.tracker = tracker or TransactionLifecycleTracker(wallet, self.notifier)
        self.orchestrator.add_command_handler(self.tracker.on_submit)

        self._selector_side: Optional[TokenSide] = None
        self._started = False

    def start(self) -> None:
        """Kick off the quote for the default pair. Safe to call twice."""
        if self._started:
            return
        self._started = True
        self.orchestrator.start()

    # UI events

    def on_amount_change(self, text: Optional[str]) -> None:
        if self.orchestrator.state.quote is None:
            # Input is disabled until a quote is available
            return
        self.orchestrator.change_amount(text)

    def on_switch(self) -> None:
        self.orchestrator.switch_tokens()

    def open_selector(self, side: TokenSide) -> None:
        self._selector_side = TokenSide(side)

    def close_selector(self) -> None:
        self._selector_side = None

    def on_select(self, index: int) -> None:
        """Pick catalog entry ``index`` for the side the selector was opened for."""
        if self._selector_side is None:
            logger.debug("Token selected with no selector open; ignoring")
            return
        token = self.catalog[index]
        self.orchestrator.select_token(self._selector_side, token)
        self._selector_side = None

    def on_slippage(self, value: Decimal) -> None:
        self.orchestrator.set_slippage(value)

    async def on_swap(self) -> Optional[TransactionRequest]:
        if not self.orchestrator.can_swap:
            return None
        return await self.orchestrator.swap()

    def render(self) -> WidgetView:
        state = self.orchestrator.state
        return WidgetView(
            token_in=state.token_in.ticker,
            token_out=state.token_out.ticker,
            amount_in=state.amount_in,
            amount_out=state.amount_out,
            slippage=state.slippage,
            slippage_options=list(settings.slippage_options),
            input_enabled=state.quote is not None,
            swap_enabled=self.orchestrator.can_swap and state.phase is SwapPhase.IDLE,
            selector_open=self._selector_side is not None,
            phase=state.phase,
            outcome=self.tracker.outcome,
            notifications=[(n.kind.value, n.content) for n in self.notifier.active],
        )

    async def close(self) -> None:
        await self.orchestrator.close()
        await self.tracker.close()
        self.notifier.destroy()
