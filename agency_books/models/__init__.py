"""
Data Models Package

This package contains all Pydantic models used in Agency Books.
All data flowing through the system must conform to these schemas.
"""

from agency_books.models.transaction import (
    EXPENSE_CATEGORIES,
    SERVICES,
    ExpenseCategory,
    ServiceItem,
    Transaction,
    TransactionKind,
    find_expense_category,
    find_service,
)
from agency_books.models.dashboard import (
    CategorySlice,
    DashboardView,
    MonthlyPoint,
    Totals,
)
from agency_books.models.analysis import (
    NotificationSink,
    RefreshOutcome,
    RefreshState,
    RefreshTrigger,
    Severity,
)
from agency_books.models.events import (
    BookEvent,
    BookEventBuilder,
    BookEventType,
    EventSeverity,
)

__all__ = [
    # Transaction models
    "EXPENSE_CATEGORIES",
    "SERVICES",
    "ExpenseCategory",
    "ServiceItem",
    "Transaction",
    "TransactionKind",
    "find_expense_category",
    "find_service",
    # Derived views
    "CategorySlice",
    "DashboardView",
    "MonthlyPoint",
    "Totals",
    # Analysis refresh
    "NotificationSink",
    "RefreshOutcome",
    "RefreshState",
    "RefreshTrigger",
    "Severity",
    # Events
    "BookEvent",
    "BookEventBuilder",
    "BookEventType",
    "EventSeverity",
]
