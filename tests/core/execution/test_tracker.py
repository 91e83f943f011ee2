"""
Tests for the Transaction Lifecycle Tracker
"""

import asyncio

import pytest

from swapwidget.core.execution.models import WalletStatus
from swapwidget.core.execution.tracker import (
    FAILED_MESSAGE,
    PENDING_MESSAGE,
    SUCCESS_MESSAGE,
    TransactionLifecycleTracker,
)
from swapwidget.core.swap.models import (
    SubmitTransaction,
    TransactionKind,
    TransactionOutcome,
    TransactionRequest,
)
from swapwidget.notifications import NotificationKind


LOADING = WalletStatus(is_loading=True)
SUCCESS = WalletStatus(is_loading=False, is_success=True)
FAILURE = WalletStatus(is_loading=False, is_success=False)


@pytest.fixture
def command() -> SubmitTransaction:
    return SubmitTransaction(
        request=TransactionRequest(to="0xrouter", data="0x12aa", value="0", kind=TransactionKind.SWAP)
    )


def _tracker(wallet, notifier, **kwargs) -> TransactionLifecycleTracker:
    kwargs.setdefault("poll_interval_s", 0.01)
    kwargs.setdefault("confirmation_timeout_s", 5)
    kwargs.setdefault("result_duration_s", 0.05)
    return TransactionLifecycleTracker(wallet, notifier, **kwargs)


class TestLifecycle:

    def test_initial_outcome_is_none(self, wallet, notifier):
        tracker = _tracker(wallet, notifier)

        assert tracker.outcome == TransactionOutcome.NONE
        assert notifier.active == []

    @pytest.mark.asyncio
    async def test_pending_then_success(self, wallet_factory, notifier, command):
        wallet = wallet_factory(statuses=[LOADING, LOADING, SUCCESS])
        tracker = _tracker(wallet, notifier)

        await tracker.on_submit(command)
        assert tracker.outcome == TransactionOutcome.PENDING

        assert await tracker.wait() == TransactionOutcome.SUCCESS
        assert wallet.submitted == [command.request]

        shown = [(n.kind, n.content) for n in notifier.history]
        assert shown == [
            (NotificationKind.LOADING, PENDING_MESSAGE),
            (NotificationKind.SUCCESS, SUCCESS_MESSAGE),
        ]
        # Pending notice was cleared, only the success toast is visible
        assert [n.content for n in notifier.active] == [SUCCESS_MESSAGE]

    @pytest.mark.asyncio
    async def test_success_notification_auto_clears(self, wallet, notifier, command):
        tracker = _tracker(wallet, notifier)

        await tracker.on_submit(command)
        await tracker.wait()
        assert [n.content for n in notifier.active] == [SUCCESS_MESSAGE]

        await asyncio.sleep(0.1)
        assert notifier.active == []

    @pytest.mark.asyncio
    async def test_single_pending_notification(self, wallet_factory, notifier, command):
        wallet = wallet_factory(statuses=[LOADING, LOADING, LOADING, SUCCESS])
        notifier.info("Approval needed")
        tracker = _tracker(wallet, notifier)

        await tracker.on_submit(command)
        while wallet.observe_calls < 2:
            await asyncio.sleep(0.005)

        assert [n.content for n in notifier.active] == [PENDING_MESSAGE]
        assert notifier.active[0].persistent is True
        await tracker.wait()

    @pytest.mark.asyncio
    async def test_failed_transaction(self, wallet_factory, notifier, command):
        wallet = wallet_factory(statuses=[LOADING, FAILURE])
        tracker = _tracker(wallet, notifier)

        await tracker.on_submit(command)

        assert await tracker.wait() == TransactionOutcome.FAILURE
        assert notifier.latest.kind == NotificationKind.ERROR
        assert notifier.latest.content == FAILED_MESSAGE

    @pytest.mark.asyncio
    async def test_wallet_rejection_is_a_failure(self, wallet_factory, notifier, command):
        wallet = wallet_factory(reject=True)
        tracker = _tracker(wallet, notifier)

        await tracker.on_submit(command)

        assert await tracker.wait() == TransactionOutcome.FAILURE
        assert notifier.latest.content == FAILED_MESSAGE
        assert wallet.observe_calls == 0

    @pytest.mark.asyncio
    async def test_confirmation_timeout_is_a_failure(self, wallet_factory, notifier, command):
        wallet = wallet_factory(statuses=[LOADING])
        tracker = _tracker(wallet, notifier, confirmation_timeout_s=0.03)

        await tracker.on_submit(command)

        assert await tracker.wait() == TransactionOutcome.FAILURE
        assert notifier.latest.content == FAILED_MESSAGE


class TestSupersede:

    @pytest.mark.asyncio
    async def test_new_submission_supersedes_previous(self, wallet_factory, notifier, command):
        wallet = wallet_factory(statuses=[LOADING, LOADING, LOADING, LOADING, SUCCESS])
        tracker = _tracker(wallet, notifier)

        await tracker.on_submit(command)
        await asyncio.sleep(0.015)

        second = SubmitTransaction(
            request=TransactionRequest(to="0xtoken", data="0x095e", value="0", kind=TransactionKind.APPROVAL)
        )
        await tracker.on_submit(second)
        assert tracker.outcome == TransactionOutcome.PENDING
        assert tracker.request == second.request

        assert await tracker.wait() == TransactionOutcome.SUCCESS
        assert len(wallet.submitted) == 2
        # Only one terminal notification, for the surviving submission
        terminal = [n for n in notifier.history if n.kind != NotificationKind.LOADING]
        assert [n.content for n in terminal] == [SUCCESS_MESSAGE]

    @pytest.mark.asyncio
    async def test_close_stops_tracking(self, wallet_factory, notifier, command):
        wallet = wallet_factory(statuses=[LOADING])
        tracker = _tracker(wallet, notifier)

        await tracker.on_submit(command)
        await tracker.close()

        assert tracker.is_tracking is False
        assert tracker.outcome == TransactionOutcome.PENDING
