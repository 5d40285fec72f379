"""
Tests for the Gemini summarizer.

The Gemini model is replaced by a fake exposing generate_content_async,
so no request ever leaves the process.
"""

import asyncio
from decimal import Decimal

import pytest
from google.api_core import exceptions as google_exceptions
from tenacity import wait_none

from agency_books.agents import (
    FinancialSummaryAgent,
    SummarizerUnavailableError,
    build_summary_prompt,
)
from agency_books.agents.summarizer import EMPTY_RESPONSE_TEXT, format_amount
from agency_books.config import AppSettings, GeminiSettings
from agency_books.models import TransactionKind


class FakeResponse:
    def __init__(self, text):
        self._text = text

    @property
    def text(self):
        if isinstance(self._text, Exception):
            raise self._text
        return self._text


class FakeModel:
    """Plays back a script of responses or exceptions."""

    def __init__(self, *script):
        self.script = list(script)
        self.calls = []

    async def generate_content_async(self, prompt, request_options=None):
        self.calls.append((prompt, request_options))
        step = self.script.pop(0)
        if isinstance(step, Exception):
            raise step
        if isinstance(step, FakeResponse):
            return step
        return FakeResponse(step)


def make_agent(model=None, api_key="test-key", max_attempts=3):
    return FinancialSummaryAgent(
        settings=GeminiSettings(
            api_key=api_key,
            max_attempts=max_attempts,
            request_timeout_seconds=12,
        ),
        app_settings=AppSettings(agency_name="Ivision", currency_label="DA"),
        model=model,
        retry_wait=wait_none(),
    )


class TestPrompt:
    """Tests for build_summary_prompt."""

    def test_includes_totals(self, make_transaction):
        """Test that the prompt carries income, expense and balance."""
        prompt = build_summary_prompt([
            make_transaction(TransactionKind.EXPENSE, "15000", "Matériel"),
            make_transaction(TransactionKind.INCOME, "40000", "Réels & Vidéos"),
        ])
        assert "Total Revenus: 40000 DA" in prompt
        assert "Total Dépenses: 15000 DA" in prompt
        assert "Solde: 25000 DA" in prompt
        assert "Nombre de transactions: 2" in prompt

    def test_recent_lines(self, make_transaction):
        """Test the format of detailed history lines."""
        prompt = build_summary_prompt([
            make_transaction(TransactionKind.INCOME, "40000", "Réels & Vidéos", (2025, 1, 15)),
        ])
        assert "- 2025-01-15: INCOME de 40000 DA (Réels & Vidéos)" in prompt

    def test_recent_window_is_bounded(self, make_transaction):
        """Test that only the most recent transactions are detailed."""
        books = [
            make_transaction(TransactionKind.INCOME, str(100 + i), "Audit", (2025, 2, 1))
            for i in range(20)
        ]
        prompt = build_summary_prompt(books, recent_limit=15)
        assert prompt.count("- 2025-02-01:") == 15
        assert "Nombre de transactions: 20" in prompt
        # Newest first: the first entries are detailed, the last are not
        assert "de 100 DA" in prompt
        assert "de 119 DA" not in prompt

    def test_empty_books(self):
        """Test the prompt for an empty list."""
        prompt = build_summary_prompt([])
        assert "- Aucune opération" in prompt
        assert "Solde: 0 DA" in prompt

    def test_agency_and_currency(self, make_transaction):
        """Test that agency name and currency are configurable."""
        prompt = build_summary_prompt(
            [make_transaction(amount="10")],
            agency_name="Studio Nord",
            currency_label="EUR",
        )
        assert '"Studio Nord"' in prompt
        assert "10 EUR" in prompt

    def test_format_amount(self):
        """Test that amounts are written without exponent or padding."""
        assert format_amount(Decimal("40000")) == "40000"
        assert format_amount(Decimal("4E+4")) == "40000"
        assert format_amount(Decimal("2500.50")) == "2500.5"
        assert format_amount(Decimal("0")) == "0"


class TestFinancialSummaryAgent:
    """Tests for FinancialSummaryAgent."""

    def test_returns_model_text(self, make_transaction):
        """Test that the stripped model text is returned."""
        model = FakeModel("  Santé financière solide.  ")
        text = asyncio.run(make_agent(model).summarize([make_transaction()]))
        assert text == "Santé financière solide."

    def test_passes_timeout(self, make_transaction):
        """Test that every call is bounded by the configured timeout."""
        model = FakeModel("ok")
        asyncio.run(make_agent(model).summarize([make_transaction()]))
        _, request_options = model.calls[0]
        assert request_options == {"timeout": 12}

    def test_missing_api_key(self, make_transaction):
        """Test that a missing key fails as unavailable, not with a fake summary."""
        agent = make_agent(model=None, api_key=None)
        with pytest.raises(SummarizerUnavailableError):
            asyncio.run(agent.summarize([make_transaction()]))

    def test_blank_api_key(self, make_transaction):
        """Test that a whitespace key is treated as missing."""
        agent = make_agent(model=None, api_key="   ")
        with pytest.raises(SummarizerUnavailableError):
            asyncio.run(agent.summarize([make_transaction()]))

    def test_empty_text_fallback(self, make_transaction):
        """Test that an empty answer becomes a placeholder text."""
        model = FakeModel("")
        text = asyncio.run(make_agent(model).summarize([make_transaction()]))
        assert text == EMPTY_RESPONSE_TEXT

    def test_blocked_response_fallback(self, make_transaction):
        """Test that a response whose text cannot be built falls back."""
        model = FakeModel(FakeResponse(ValueError("blocked")))
        text = asyncio.run(make_agent(model).summarize([make_transaction()]))
        assert text == EMPTY_RESPONSE_TEXT

    def test_retries_transient_errors(self, make_transaction):
        """Test that transient Gemini errors are retried."""
        model = FakeModel(
            google_exceptions.ServiceUnavailable("busy"),
            google_exceptions.DeadlineExceeded("slow"),
            "Enfin.",
        )
        text = asyncio.run(make_agent(model).summarize([make_transaction()]))
        assert text == "Enfin."
        assert len(model.calls) == 3

    def test_gives_up_after_max_attempts(self, make_transaction):
        """Test that retries are bounded."""
        model = FakeModel(*[google_exceptions.ServiceUnavailable("busy")] * 5)
        with pytest.raises(SummarizerUnavailableError):
            asyncio.run(make_agent(model, max_attempts=2).summarize([make_transaction()]))
        assert len(model.calls) == 2

    def test_quota_not_retried(self, make_transaction):
        """Test that quota exhaustion fails at once."""
        model = FakeModel(google_exceptions.ResourceExhausted("quota"), "unused")
        with pytest.raises(SummarizerUnavailableError, match="quota"):
            asyncio.run(make_agent(model).summarize([make_transaction()]))
        assert len(model.calls) == 1

    def test_unexpected_error_wrapped(self, make_transaction):
        """Test that any other failure is reported as unavailable."""
        model = FakeModel(ConnectionError("offline"))
        with pytest.raises(SummarizerUnavailableError, match="offline"):
            asyncio.run(make_agent(model).summarize([make_transaction()]))
