"""
Aggregation Engine

DESIGN DECISION: Every view is a PURE function of a transaction snapshot.
Nothing is cached, nothing is persisted, the input is never mutated.
Calling twice on the same snapshot gives the same result.

Three views feed the dashboard:
1. Totals - income, expense, balance, count
2. Monthly series - per calendar month, oldest first
3. Category breakdown - expenses per category, largest first

Storage order is newest-first; the monthly series is explicitly sorted
the other way, by month, using occurred_at only.
"""

from collections.abc import Iterable
from datetime import datetime, timezone, tzinfo
from decimal import Decimal
from typing import Optional

from agency_books.models.dashboard import CategorySlice, MonthlyPoint, Totals
from agency_books.models.transaction import Transaction, TransactionKind


# Abbreviations as rendered by the fr-FR locale ('janv. 25')
FRENCH_MONTHS_SHORT = {
    1: "janv.", 2: "févr.", 3: "mars", 4: "avr.",
    5: "mai", 6: "juin", 7: "juil.", 8: "août",
    9: "sept.", 10: "oct.", 11: "nov.", 12: "déc.",
}

ZERO = Decimal("0")


def month_label(year: int, month: int) -> str:
    """Short human label for a calendar month, e.g. 'févr. 25'."""
    return f"{FRENCH_MONTHS_SHORT[month]} {year % 100:02d}"


def month_sort_key(year: int, month: int) -> int:
    """UTC epoch seconds of the first day of the month."""
    return int(datetime(year, month, 1, tzinfo=timezone.utc).timestamp())


def aggregate_totals(transactions: Iterable[Transaction]) -> Totals:
    """
    Sum income and expense over the full list.

    The balance is derived here every time; no running counter is trusted.
    """
    income = ZERO
    expense = ZERO
    count = 0

    for t in transactions:
        count += 1
        if t.kind == TransactionKind.INCOME:
            income += t.amount
        else:
            expense += t.amount

    return Totals(
        income=income,
        expense=expense,
        balance=income - expense,
        count=count,
    )


def monthly_series(
    transactions: Iterable[Transaction],
    tz: Optional[tzinfo] = None,
) -> list[MonthlyPoint]:
    """
    Group by (year, month) of occurred_at, oldest month first.

    With tz, occurred_at is converted first, so a transaction at 00:30 local
    time on the 1st belongs to the local month. Without it, the stored
    offset (UTC for new records) decides.

    Returns an empty list for empty input; the caller shows a
    "not enough data" placeholder.
    """
    groups: dict[tuple[int, int], dict[str, Decimal]] = {}

    for t in transactions:
        when = t.occurred_at.astimezone(tz) if tz is not None else t.occurred_at
        key = (when.year, when.month)
        if key not in groups:
            groups[key] = {"income": ZERO, "expense": ZERO}

        if t.kind == TransactionKind.INCOME:
            groups[key]["income"] += t.amount
        else:
            groups[key]["expense"] += t.amount

    points = [
        MonthlyPoint(
            label=month_label(year, month),
            year=year,
            month=month,
            income=sums["income"],
            expense=sums["expense"],
            sort_key=month_sort_key(year, month),
        )
        for (year, month), sums in groups.items()
    ]
    points.sort(key=lambda p: p.sort_key)
    return points


def category_breakdown(transactions: Iterable[Transaction]) -> list[CategorySlice]:
    """
    Expense totals per category, largest first.

    Categories are compared exactly as stored (case-sensitive, untrimmed).
    Equal totals keep the order in which the category was first seen,
    because the sort is stable.
    """
    grouped: dict[str, Decimal] = {}

    for t in transactions:
        if t.kind != TransactionKind.EXPENSE:
            continue
        grouped[t.category] = grouped.get(t.category, ZERO) + t.amount

    slices = [CategorySlice(name=name, value=value) for name, value in grouped.items()]
    slices.sort(key=lambda s: s.value, reverse=True)
    return slices
