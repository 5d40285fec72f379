"""
Tests for the background refresh path used by the Streamlit host.

Recording returns before the summarizer answers; the refresh finishes
on the loop thread and its notifications are queued for the page.
"""

import time

import pytest

from agency_books.background import BackgroundLoop, NotificationQueue
from agency_books.models import RefreshState, Severity, TransactionKind
from agency_books.orchestrator import (
    AI_UPDATED_MESSAGE,
    TRANSACTION_DELETED_MESSAGE,
    TRANSACTION_RECORDED_MESSAGE,
    create_app_components,
)
from agency_books.services.storage import InMemoryKeyValueStore


def wait_until(condition, timeout=5.0):
    """Poll a condition set by the loop thread."""
    deadline = time.monotonic() + timeout
    while not condition():
        if time.monotonic() > deadline:
            raise AssertionError("condition not met in time")
        time.sleep(0.01)


@pytest.fixture
def runner(recording_logger):
    loop = BackgroundLoop(name="test-refresh", logger=recording_logger)
    yield loop
    loop.stop()


@pytest.fixture
def build_flow(event_logger):
    def _build(summarizer, notifier):
        return create_app_components(
            kv_store=InMemoryKeyValueStore(),
            summarizer=summarizer,
            notifier=notifier,
            event_logger=event_logger,
        )

    return _build


class TestSynchronousMutations:
    """Store writes that never wait on the summarizer."""

    def test_store_transaction_skips_refresh(
        self, build_flow, summarizer_factory, make_transaction, notifier
    ):
        """Test that storing confirms at once and makes no summarizer call."""
        summarizer = summarizer_factory()
        flow = build_flow(summarizer, notifier)
        t = make_transaction()

        updated = flow.store_transaction(t)

        assert updated == (t,)
        assert summarizer.calls == []
        assert notifier.messages == [(TRANSACTION_RECORDED_MESSAGE, Severity.SUCCESS)]

    def test_discard_transaction_reports_found(
        self, build_flow, summarizer_factory, make_transaction, notifier
    ):
        """Test that only a real removal is confirmed."""
        summarizer = summarizer_factory()
        flow = build_flow(summarizer, notifier)
        t = make_transaction(id="keep")
        flow.store_transaction(t)

        assert flow.discard_transaction("missing") is False
        assert flow.discard_transaction("keep") is True
        assert flow.transactions == ()
        assert notifier.messages[-1] == (TRANSACTION_DELETED_MESSAGE, Severity.SUCCESS)
        assert summarizer.calls == []


class TestBackgroundLoop:
    """The refresh runs while the caller carries on."""

    def test_submit_returns_before_refresh_completes(
        self, runner, build_flow, gated_summarizer, make_transaction, notifier
    ):
        """Test that a slow summarizer does not block the submitting thread."""
        flow = build_flow(gated_summarizer, notifier)
        updated = flow.store_transaction(make_transaction())

        future = runner.submit(flow.controller.on_transaction_added(updated))
        wait_until(lambda: gated_summarizer.calls)

        assert not future.done()
        assert flow.controller.state == RefreshState.REFRESHING
        assert runner.pending == 1

        runner.call_soon(gated_summarizer.release, 0)

        assert future.result(timeout=5) is True
        wait_until(lambda: runner.pending == 0)
        assert flow.controller.state == RefreshState.IDLE
        assert flow.controller.summary == "analyse 0"

    def test_failed_task_is_logged(self, runner, recording_logger):
        """Test that an exception on the loop thread is logged, not lost."""

        async def broken():
            raise RuntimeError("boom")

        future = runner.submit(broken())

        with pytest.raises(RuntimeError):
            future.result(timeout=5)
        wait_until(lambda: runner.pending == 0)
        assert recording_logger.calls[-1][0] == "error"
        assert recording_logger.calls[-1][1] == "background_task_failed"
        assert "boom" in recording_logger.calls[-1][2]["error"]

    def test_stop_ends_thread(self, recording_logger):
        """Test that stop joins the loop thread."""
        loop = BackgroundLoop(logger=recording_logger)
        assert loop.is_running
        loop.stop()
        assert not loop.is_running


class TestNotificationQueue:
    """Notifications cross from the loop thread to the page."""

    def test_drain_in_order(self):
        """Test that drain empties the queue oldest first."""
        notices = NotificationQueue()
        notices("un", Severity.SUCCESS)
        notices("deux", Severity.INFO)

        assert notices.drain() == [("un", Severity.SUCCESS), ("deux", Severity.INFO)]
        assert notices.drain() == []

    def test_background_refresh_notifications_queued(
        self, runner, build_flow, summarizer_factory, make_transaction
    ):
        """Test the full add path: confirmation first, then the AI update."""
        notices = NotificationQueue()
        flow = build_flow(summarizer_factory(), notices)

        updated = flow.store_transaction(
            make_transaction(TransactionKind.EXPENSE, "300", "Loyer")
        )
        runner.submit(flow.controller.on_transaction_added(updated)).result(timeout=5)

        assert notices.drain() == [
            (TRANSACTION_RECORDED_MESSAGE, Severity.SUCCESS),
            (AI_UPDATED_MESSAGE, Severity.INFO),
        ]
