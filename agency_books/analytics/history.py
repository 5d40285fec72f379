"""History helpers for the dashboard and the history page."""

from collections.abc import Sequence

from agency_books.models.transaction import Transaction


def recent_transactions(
    transactions: Sequence[Transaction],
    limit: int = 5,
) -> list[Transaction]:
    """The most recently added transactions (the snapshot is newest first)."""
    if limit <= 0:
        return []
    return list(transactions[:limit])


def search_transactions(
    transactions: Sequence[Transaction],
    term: str,
) -> list[Transaction]:
    """
    Case-insensitive match on category, description or client name.

    A blank term returns everything, in stored order.
    """
    needle = term.strip().lower()
    if not needle:
        return list(transactions)

    return [
        t for t in transactions
        if needle in t.category.lower()
        or needle in t.description.lower()
        or (t.client_name is not None and needle in t.client_name.lower())
    ]
