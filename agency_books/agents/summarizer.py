"""
AI Summarizer for Agency Books

DESIGN DECISION: The Gemini call is a single, narrow collaborator:
transactions in, a few sentences of analysis out, or a failure.

CRITICAL BOUNDARIES:
- CAN: Comment on the figures it is given and suggest one improvement
- CANNOT: See anything but totals and a bounded recent window
- CANNOT: Write anywhere (the orchestrator decides what to cache)
- MUST: Fail with SummarizerUnavailableError, never with a fake summary

The figures in the prompt are computed deterministically before the call.
The LLM comments on them; it never computes them.
"""

from collections.abc import Sequence
from decimal import Decimal
from typing import Any, Optional, Protocol

import google.generativeai as genai
from google.api_core import exceptions as google_exceptions
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from agency_books.analytics.aggregation import aggregate_totals
from agency_books.config import get_settings
from agency_books.config.settings import AppSettings, GeminiSettings
from agency_books.models.transaction import Transaction


EMPTY_RESPONSE_TEXT = "Aucune analyse générée."

# Worth another attempt; quota and auth errors are not.
TRANSIENT_ERRORS = (
    google_exceptions.ServiceUnavailable,
    google_exceptions.DeadlineExceeded,
    google_exceptions.InternalServerError,
)


class SummarizerError(Exception):
    """Base exception for summarizer errors."""
    pass


class SummarizerUnavailableError(SummarizerError):
    """The summary could not be produced (credentials, network, quota)."""
    pass


class Summarizer(Protocol):
    """Anything that turns a transaction list into a short analysis."""

    async def summarize(self, transactions: Sequence[Transaction]) -> str:
        ...


def format_amount(value: Decimal) -> str:
    """Plain number without exponent or trailing zeros: 40000, 1250.5"""
    if value == value.to_integral_value():
        return str(value.quantize(Decimal("1")))
    return format(value.normalize(), "f")


def build_summary_prompt(
    transactions: Sequence[Transaction],
    agency_name: str = "Ivision",
    currency_label: str = "DA",
    recent_limit: int = 15,
) -> str:
    """
    Build the analysis prompt.

    Totals cover the full list; only the most recent transactions
    are detailed, to keep the prompt small.
    """
    totals = aggregate_totals(transactions)

    recent_lines = [
        f"- {t.occurred_at.date().isoformat()}: {t.kind.value} de "
        f"{format_amount(t.amount)} {currency_label} ({t.category})"
        for t in transactions[:recent_limit]
    ]
    recent_history = "\n".join(recent_lines) or "- Aucune opération"

    return f"""Agis en tant qu'expert comptable senior pour l'agence "{agency_name}".
Voici les données financières actuelles (Devise: {currency_label}):
- Total Revenus: {format_amount(totals.income)} {currency_label}
- Total Dépenses: {format_amount(totals.expense)} {currency_label}
- Solde: {format_amount(totals.balance)} {currency_label}
- Nombre de transactions: {totals.count}

Historique récent:
{recent_history}

Fournis une analyse concise en français (max 100 mots).
1. Commente la santé financière actuelle.
2. Donne un conseil stratégique pour améliorer la rentabilité.
Utilise un ton professionnel et encourageant."""


class FinancialSummaryAgent:
    """
    Gemini-backed summarizer.

    RESPONSIBILITIES:
    - Build the prompt from the snapshot
    - Call Gemini with a bounded timeout and bounded retries
    - Translate every failure into SummarizerUnavailableError
    """

    def __init__(
        self,
        settings: Optional[GeminiSettings] = None,
        app_settings: Optional[AppSettings] = None,
        model: Optional[Any] = None,
        retry_wait: Optional[Any] = None,
    ):
        """
        Args:
            settings: Gemini settings (defaults to environment)
            app_settings: Agency name and currency (defaults to environment)
            model: Pre-built model object exposing generate_content_async
            retry_wait: tenacity wait strategy between transient failures
        """
        self._settings = settings or get_settings().gemini
        self._app_settings = app_settings or get_settings().app
        self._model = model
        self._retry_wait = retry_wait or wait_exponential(multiplier=1, min=2, max=10)

    def _get_model(self) -> Any:
        """Configure Google Generative AI on first use."""
        if self._model is None:
            if not self._settings.is_configured:
                raise SummarizerUnavailableError(
                    "Gemini API key is missing (set GEMINI_API_KEY)"
                )
            genai.configure(api_key=self._settings.api_key)
            self._model = genai.GenerativeModel(
                model_name=self._settings.model_name,
                generation_config={
                    "temperature": self._settings.temperature,
                    "max_output_tokens": self._settings.max_tokens,
                }
            )
        return self._model

    async def _generate(self, model: Any, prompt: str) -> Any:
        """One logical call, retried on transient Gemini errors."""
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self._settings.max_attempts),
            wait=self._retry_wait,
            retry=retry_if_exception_type(TRANSIENT_ERRORS),
            reraise=True,
        ):
            with attempt:
                return await model.generate_content_async(
                    prompt,
                    request_options={"timeout": self._settings.request_timeout_seconds},
                )

    async def summarize(self, transactions: Sequence[Transaction]) -> str:
        """
        Produce a short French analysis of the books.

        Raises:
            SummarizerUnavailableError: Missing key, network error, quota,
                or any other failure to complete the call
        """
        model = self._get_model()
        prompt = build_summary_prompt(
            transactions,
            agency_name=self._app_settings.agency_name,
            currency_label=self._app_settings.currency_label,
            recent_limit=self._settings.recent_history_limit,
        )

        try:
            response = await self._generate(model, prompt)
        except google_exceptions.ResourceExhausted as e:
            raise SummarizerUnavailableError(f"Gemini quota exhausted: {e}") from e
        except Exception as e:
            raise SummarizerUnavailableError(f"Gemini request failed: {e}") from e

        try:
            text = (response.text or "").strip()
        except ValueError:
            # Blocked or empty candidates: the SDK refuses to build .text
            text = ""

        return text or EMPTY_RESPONSE_TEXT
