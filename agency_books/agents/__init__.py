"""AI Agents package."""

from agency_books.agents.summarizer import (
    FinancialSummaryAgent,
    Summarizer,
    SummarizerError,
    SummarizerUnavailableError,
    build_summary_prompt,
)

__all__ = [
    "FinancialSummaryAgent",
    "Summarizer",
    "SummarizerError",
    "SummarizerUnavailableError",
    "build_summary_prompt",
]
