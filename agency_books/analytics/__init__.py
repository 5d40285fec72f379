"""Derived views over a transaction snapshot."""

from agency_books.analytics.aggregation import (
    aggregate_totals,
    category_breakdown,
    month_label,
    monthly_series,
)
from agency_books.analytics.history import recent_transactions, search_transactions

__all__ = [
    "aggregate_totals",
    "category_breakdown",
    "month_label",
    "monthly_series",
    "recent_transactions",
    "search_transactions",
]
