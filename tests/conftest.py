"""
Shared fixtures for Agency Books tests.

No real API calls and no real files unless a test asks for tmp_path.
"""

import asyncio
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from agency_books.events import EventLogger
from agency_books.models import Transaction, TransactionKind


class RecordingLogger:
    """structlog-shaped logger that keeps every call."""

    def __init__(self):
        self.calls = []

    def _record(self, level, event, **kw):
        self.calls.append((level, event, kw))

    def debug(self, event, **kw):
        self._record("debug", event, **kw)

    def info(self, event, **kw):
        self._record("info", event, **kw)

    def warning(self, event, **kw):
        self._record("warning", event, **kw)

    def error(self, event, **kw):
        self._record("error", event, **kw)

    def event_types(self):
        return [kw.get("event_type") for _, _, kw in self.calls]


class RecordingNotifier:
    """Notification sink that keeps (message, severity) pairs."""

    def __init__(self):
        self.messages = []

    def __call__(self, message, severity):
        self.messages.append((message, severity))


class FakeSummarizer:
    """Returns canned text and remembers what it was given."""

    def __init__(self, text="Tout va bien.", error=None):
        self.text = text
        self.error = error
        self.calls = []

    async def summarize(self, transactions):
        self.calls.append(tuple(transactions))
        if self.error is not None:
            raise self.error
        return self.text


class GatedSummarizer:
    """
    Each call blocks until released, so tests can finish calls
    in a chosen order.
    """

    def __init__(self):
        self.calls = []
        self._gates = []

    async def summarize(self, transactions):
        gate = asyncio.Event()
        index = len(self.calls)
        self.calls.append(tuple(transactions))
        self._gates.append(gate)
        await gate.wait()
        return f"analyse {index}"

    def release(self, index):
        self._gates[index].set()


@pytest.fixture
def recording_logger():
    return RecordingLogger()


@pytest.fixture
def event_logger(recording_logger):
    return EventLogger(logger=recording_logger)


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def make_transaction():
    """Factory for transactions with sensible defaults."""

    def _make(
        kind=TransactionKind.INCOME,
        amount="1000",
        category="Réels & Vidéos",
        when=(2025, 1, 15),
        client_name=None,
        description="",
        id=None,
    ):
        fields = dict(
            kind=kind,
            amount=Decimal(amount),
            category=category,
            description=description,
            client_name=client_name,
            occurred_at=datetime(*when, 12, 0, tzinfo=timezone.utc),
        )
        if id is not None:
            fields["id"] = id
        return Transaction(**fields)

    return _make


@pytest.fixture
def summarizer_factory():
    """Build a FakeSummarizer: summarizer_factory(text=..., error=...)."""
    return FakeSummarizer


@pytest.fixture
def gated_summarizer():
    return GatedSummarizer()
