"""
Swap Orchestrator

Owns the widget state and drives a swap attempt through its phases:

    idle -> checking_allowance -> awaiting_approval -> awaiting_wallet_submission -> idle
                               -> checking_quote    -> awaiting_wallet_submission -> idle

An attempt that needs an approval stops after requesting the approval payload;
the user swaps again once the approval is mined. Each failure is turned into a
notification and the machine returns to idle, nothing is retried.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from decimal import Decimal, InvalidOperation
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Dict, List, Optional, Set

from ...config import settings
from ...notifications import Notifier
from ...providers.base import SwapAggregatorProvider
from ..errors import ClientError, DataError, InvalidAmountError, InvalidTransitionError, SwapError
from .allowance import AllowanceChecker
from .amounts import derive_amount_out, from_smallest_unit, to_smallest_unit
from .models import (
    PhaseTransition,
    Quote,
    SubmitTransaction,
    SwapPhase,
    SwapWidgetState,
    Token,
    TokenSide,
    TransactionKind,
    TransactionRequest,
)
from .quote_fetcher import RateLimitedQuoteFetcher

if TYPE_CHECKING:
    from ..execution.models import Wallet


CommandHandler = Callable[[SubmitTransaction], Awaitable[None]]

APPROVAL_NEEDED = "Approval needed from 1inch. The allowance is Zero"
APPROVAL_FAILED = "Failed to approve token transaction."
SWAP_FAILED = "Failed to process swap transaction."
BAD_REQUEST = "Bad Request"
UNEXPECTED_ERROR = "An unexpected error occurred during the swap."
INVALID_AMOUNT = "Invalid input amount."


def parse_transaction(body: Any, kind: TransactionKind) -> TransactionRequest:
    """Build a TransactionRequest from a flat or ``{"tx": {...}}`` payload."""
    if not isinstance(body, dict):
        raise DataError(f"Transaction payload is not an object: {body!r}")
    payload = body.get("tx") if isinstance(body.get("tx"), dict) else body
    if "to" not in payload and "data" not in payload:
        raise DataError(f"Transaction payload has no destination or calldata: {body!r}")
    return TransactionRequest(
        to=str(payload.get("to") or ""),
        data=str(payload.get("data") or "0x"),
        value=str(payload.get("value") or "0"),
        kind=kind,
    )


class SwapOrchestrator:
    """Single owner of SwapWidgetState and the swap attempt state machine."""

    TRANSITIONS: Dict[SwapPhase, Set[SwapPhase]] = {
        SwapPhase.IDLE: {
            SwapPhase.CHECKING_ALLOWANCE,
        },
        SwapPhase.CHECKING_ALLOWANCE: {
            SwapPhase.AWAITING_APPROVAL,
            SwapPhase.CHECKING_QUOTE,
            SwapPhase.IDLE,
        },
        SwapPhase.AWAITING_APPROVAL: {
            SwapPhase.AWAITING_WALLET_SUBMISSION,
            SwapPhase.IDLE,
        },
        SwapPhase.CHECKING_QUOTE: {
            SwapPhase.AWAITING_WALLET_SUBMISSION,
            SwapPhase.IDLE,
        },
        SwapPhase.AWAITING_WALLET_SUBMISSION: {
            SwapPhase.IDLE,
        },
    }

    def __init__(
        self,
        *,
        token_in: Token,
        token_out: Token,
        provider: SwapAggregatorProvider,
        wallet: Wallet,
        notifier: Notifier,
        quote_fetcher: Optional[RateLimitedQuoteFetcher] = None,
        allowance_checker: Optional[AllowanceChecker] = None,
        slippage: Optional[Decimal] = None,
        latency_s: Optional[float] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.provider = provider
        self.wallet = wallet
        self.notifier = notifier
        self.latency_s = settings.latency_buffer_seconds if latency_s is None else latency_s
        self.logger = logger or logging.getLogger(__name__)

        self.quote_fetcher = quote_fetcher or RateLimitedQuoteFetcher(provider, notifier)
        self.quote_fetcher.set_listener(self.apply_quote)
        self.allowance_checker = allowance_checker or AllowanceChecker(
            provider, notifier, latency_s=self.latency_s
        )

        self._state = SwapWidgetState(
            token_in=token_in,
            token_out=token_out,
            slippage=Decimal(str(slippage)) if slippage is not None else settings.default_slippage,
        )
        self.history: List[PhaseTransition] = []
        self._command_handlers: List[CommandHandler] = []
        self._swap_running = False

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def state(self) -> SwapWidgetState:
        return self._state

    @property
    def phase(self) -> SwapPhase:
        return self._state.phase

    @property
    def can_swap(self) -> bool:
        return bool(self._state.amount_in) and self._wallet_address() is not None

    def add_command_handler(self, handler: CommandHandler) -> None:
        self._command_handlers.append(handler)

    def _update(self, **changes: Any) -> SwapWidgetState:
        self._state = replace(self._state, **changes)
        return self._state

    def _transition(self, to_phase: SwapPhase, reason: Optional[str] = None) -> PhaseTransition:
        from_phase = self._state.phase
        if to_phase not in self.TRANSITIONS.get(from_phase, set()):
            raise InvalidTransitionError(
                from_phase,
                to_phase,
                message=f"Invalid transition from {from_phase.value} to {to_phase.value}. "
                        f"Allowed: {sorted(p.value for p in self.TRANSITIONS.get(from_phase, set()))}",
            )
        transition = PhaseTransition(from_phase=from_phase, to_phase=to_phase, reason=reason)
        self.history.append(transition)
        self._update(phase=to_phase)
        self.logger.info(
            f"Swap: {from_phase.value} -> {to_phase.value}{f' ({reason})' if reason else ''}"
        )
        return transition

    def _wallet_address(self) -> Optional[str]:
        if not self.wallet.is_connected:
            return None
        return self.wallet.address or None

    # ------------------------------------------------------------------
    # Pair and amount
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Fetch the first quote for the initial pair."""
        self.quote_fetcher.request_quote(self._state.token_in.address, self._state.token_out.address)

    def switch_tokens(self) -> SwapWidgetState:
        state = self._update(
            token_in=self._state.token_out,
            token_out=self._state.token_in,
            quote=None,
            amount_in=None,
            amount_out=None,
        )
        self.quote_fetcher.request_quote(state.token_in.address, state.token_out.address)
        return state

    def select_token(self, side: TokenSide, token: Token) -> SwapWidgetState:
        side = TokenSide(side)
        changes: Dict[str, Any] = {"quote": None, "amount_in": None, "amount_out": None}
        if side is TokenSide.IN:
            changes["token_in"] = token
        else:
            changes["token_out"] = token
        state = self._update(**changes)
        self.quote_fetcher.request_quote(state.token_in.address, state.token_out.address)
        return state

    def change_amount(self, value: Optional[str]) -> SwapWidgetState:
        amount_in = value.strip() if isinstance(value, str) and value.strip() else None
        ratio = self._state.quote.ratio if self._state.quote else None
        return self._update(amount_in=amount_in, amount_out=derive_amount_out(amount_in, ratio))

    def set_slippage(self, value: Any) -> SwapWidgetState:
        try:
            slippage = Decimal(str(value))
        except (InvalidOperation, ValueError) as exc:
            raise ValueError(f"Invalid slippage: {value!r}") from exc
        if not slippage.is_finite() or slippage <= 0:
            raise ValueError(f"Slippage must be a positive percentage, got {value!r}")
        return self._update(slippage=slippage)

    def apply_quote(self, token_in_address: str, token_out_address: str, quote: Optional[Quote]) -> None:
        """Quote listener; drops results for a pair that is no longer selected."""
        if not self._state.matches_pair(token_in_address, token_out_address):
            self.logger.debug("Discarding stale quote for %s -> %s", token_in_address, token_out_address)
            return
        ratio = quote.ratio if quote else None
        self._update(quote=quote, amount_out=derive_amount_out(self._state.amount_in, ratio))

    # ------------------------------------------------------------------
    # Swap attempt
    # ------------------------------------------------------------------

    async def swap(self) -> Optional[TransactionRequest]:
        """Run one swap attempt.

        Returns the TransactionRequest made pending by this attempt (an
        approval or a swap), or None when nothing was produced.
        """
        snapshot = self._state
        wallet_address = self._wallet_address()

        if not snapshot.amount_in or wallet_address is None:
            self.logger.debug("Swap ignored: amount or wallet missing")
            return None
        if self._swap_running:
            self.logger.info("Swap ignored: previous attempt still running")
            return None

        try:
            amount_units = to_smallest_unit(snapshot.amount_in, snapshot.token_in.decimals)
        except InvalidAmountError as exc:
            self.logger.info("Swap rejected: %s", exc.message)
            self.notifier.error(INVALID_AMOUNT)
            return None

        self._swap_running = True
        try:
            self._transition(SwapPhase.CHECKING_ALLOWANCE, reason="swap requested")
            allowance = await self.allowance_checker.check_allowance(
                snapshot.token_in.address, wallet_address
            )

            if allowance.requires_approval:
                self._transition(SwapPhase.AWAITING_APPROVAL, reason=f"allowance {allowance.value}")
                return await self._request_approval(snapshot.token_in)

            self._transition(SwapPhase.CHECKING_QUOTE, reason="allowance sufficient")
            return await self._request_swap(snapshot, amount_units, wallet_address)
        except InvalidTransitionError:
            raise
        except Exception as exc:
            self.logger.error("Unexpected error during swap: %s", exc, exc_info=True)
            self.notifier.error(UNEXPECTED_ERROR)
            return None
        finally:
            if self._state.phase is not SwapPhase.IDLE:
                self._transition(SwapPhase.IDLE, reason="attempt finished")
            self._swap_running = False

    async def _request_approval(self, token: Token) -> Optional[TransactionRequest]:
        await asyncio.sleep(self.latency_s)
        try:
            body = await self.provider.get_approve_transaction(token.address)
            request = parse_transaction(body, TransactionKind.APPROVAL)
        except ClientError as exc:
            self.logger.warning("Approval request rejected (%s): %s", exc.status_code, exc.description)
            self.notifier.error(exc.description or BAD_REQUEST)
            return None
        except SwapError as exc:
            self.logger.warning("Approval request failed: %s", exc.message)
            self.notifier.error(APPROVAL_FAILED)
            return None

        self.notifier.info(APPROVAL_NEEDED)
        await self._set_pending_request(request)
        return request

    async def _request_swap(
        self,
        snapshot: SwapWidgetState,
        amount_units: str,
        wallet_address: str,
    ) -> Optional[TransactionRequest]:
        await asyncio.sleep(self.latency_s)
        params = {
            "fromTokenAddress": snapshot.token_in.address,
            "toTokenAddress": snapshot.token_out.address,
            "amount": amount_units,
            "fromAddress": wallet_address,
            "slippage": str(snapshot.slippage),
        }
        try:
            body = await self.provider.get_swap_transaction(params)
            request = parse_transaction(body, TransactionKind.SWAP)
            try:
                amount_out = from_smallest_unit(body["toTokenAmount"], snapshot.token_out.decimals)
            except (KeyError, ValueError) as exc:
                raise DataError(f"Swap response has no usable toTokenAmount: {exc}") from exc
        except ClientError as exc:
            self.logger.warning("Swap request rejected (%s): %s", exc.status_code, exc.description)
            self.notifier.error(exc.description or BAD_REQUEST)
            return None
        except SwapError as exc:
            self.logger.warning("Swap request failed: %s", exc.message)
            self.notifier.error(SWAP_FAILED)
            return None

        changes: Dict[str, Any] = {}
        if self._state.pair == snapshot.pair and self._state.amount_in == snapshot.amount_in:
            changes["amount_out"] = amount_out
        await self._set_pending_request(request, **changes)
        return request

    async def _set_pending_request(self, request: TransactionRequest, **changes: Any) -> None:
        """Store the request and, if it can be sent, hand it to the command handlers."""
        self._update(pending_request=request, **changes)

        wallet_address = self._wallet_address()
        if not request.to or wallet_address is None:
            self.logger.info("Pending %s request not submitted (to=%r)", request.kind.value, request.to)
            return

        self._transition(SwapPhase.AWAITING_WALLET_SUBMISSION, reason=f"{request.kind.value} ready")
        command = SubmitTransaction(request=request, from_address=wallet_address)
        for handler in self._command_handlers:
            try:
                await handler(command)
            except Exception as e:
                self.logger.error(f"Command handler error: {e}")

    async def close(self) -> None:
        await self.quote_fetcher.close()
