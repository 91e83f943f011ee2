"""
Transaction lifecycle tracking.

Consumes SubmitTransaction commands from the swap orchestrator, hands the
request to the wallet and follows it until it either confirms or fails:

- none -> pending once submitted
- pending -> success | failure when the wallet reports a final status

Only the most recent submission is tracked; a new one supersedes the old.
"""

import asyncio
import logging
from typing import Optional

from ...config import settings
from ...notifications import Notifier
from ..errors import WalletRejection
from ..swap.models import SubmitTransaction, TransactionOutcome, TransactionRequest
from .models import TransactionHandle, Wallet


PENDING_MESSAGE = "Transaction is Pending..."
SUCCESS_MESSAGE = "Transaction Successful"
FAILED_MESSAGE = "Transaction Failed"


class TransactionLifecycleTracker:
    """Submits pending requests to the wallet and reports their outcome."""

    def __init__(
        self,
        wallet: Wallet,
        notifier: Notifier,
        *,
        poll_interval_s: Optional[float] = None,
        confirmation_timeout_s: Optional[float] = None,
        result_duration_s: Optional[float] = None,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Args:
            wallet: Wallet collaborator used to submit and observe
            notifier: Where pending/success/failure messages go
            poll_interval_s: Delay between wallet status polls
            confirmation_timeout_s: Treat the transaction as failed after this long
            result_duration_s: How long success/failure messages stay visible
        """
        self.wallet = wallet
        self.notifier = notifier
        self.poll_interval_s = (
            settings.tx_poll_interval_seconds if poll_interval_s is None else poll_interval_s
        )
        self.confirmation_timeout_s = (
            settings.tx_confirmation_timeout_seconds
            if confirmation_timeout_s is None
            else confirmation_timeout_s
        )
        self.result_duration_s = (
            settings.notification_duration_seconds if result_duration_s is None else result_duration_s
        )
        self.logger = logger or logging.getLogger(__name__)

        self.outcome: TransactionOutcome = TransactionOutcome.NONE
        self.request: Optional[TransactionRequest] = None
        self.handle: Optional[TransactionHandle] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def is_tracking(self) -> bool:
        return self._task is not None and not self._task.done()

    async def on_submit(self, command: SubmitTransaction) -> None:
        """Start tracking a new request, superseding any previous one."""
        if self.is_tracking:
            self.logger.info("Superseding tracking of %s", self.handle.hash if self.handle else "unsent request")
            self._task.cancel()

        self.request = command.request
        self.handle = None
        self.outcome = TransactionOutcome.PENDING
        self._task = asyncio.create_task(self._track(command.request))

    async def _track(self, request: TransactionRequest) -> None:
        try:
            handle = await self.wallet.submit(request)
        except WalletRejection as exc:
            self.logger.info("Wallet rejected %s transaction: %s", request.kind.value, exc.message)
            self._finish(success=False)
            return
        except Exception as exc:
            self.logger.warning("Wallet submit failed: %s", exc, exc_info=True)
            self._finish(success=False)
            return

        self.handle = handle
        self.logger.info("Submitted %s transaction %s", request.kind.value, handle.hash)

        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.confirmation_timeout_s
        showing_pending = False

        while True:
            try:
                status = await self.wallet.observe(handle)
            except Exception as exc:
                self.logger.warning("Could not observe %s: %s", handle.hash, exc)
                self._finish(success=False)
                return

            if status.is_final:
                self._finish(success=status.is_success)
                return

            if not showing_pending:
                self.notifier.destroy()
                self.notifier.loading(PENDING_MESSAGE)
                showing_pending = True

            if loop.time() >= deadline:
                self.logger.warning(
                    "Transaction %s not confirmed within %ss", handle.hash, self.confirmation_timeout_s
                )
                self._finish(success=False)
                return

            await asyncio.sleep(self.poll_interval_s)

    def _finish(self, success: bool) -> None:
        self.notifier.destroy()
        if success:
            self.outcome = TransactionOutcome.SUCCESS
            self.notifier.success(SUCCESS_MESSAGE, duration=self.result_duration_s)
        else:
            self.outcome = TransactionOutcome.FAILURE
            self.notifier.error(FAILED_MESSAGE, duration=self.result_duration_s)
        self.logger.info(
            "Transaction %s finished: %s",
            self.handle.hash if self.handle else "<unsent>",
            self.outcome.value,
        )

    async def wait(self) -> TransactionOutcome:
        """Wait for the current tracking task to finish."""
        if self._task is not None:
            await asyncio.gather(self._task, return_exceptions=True)
        return self.outcome

    async def close(self) -> None:
        if self.is_tracking:
            self._task.cancel()
            await asyncio.gather(self._task, return_exceptions=True)
