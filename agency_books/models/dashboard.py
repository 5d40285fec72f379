"""
Derived View Models

Everything here is computed from a transaction snapshot on demand.
None of it is persisted.
"""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from agency_books.models.transaction import Transaction


class Totals(BaseModel):
    """Running totals over the full transaction list."""
    model_config = ConfigDict(frozen=True)

    income: Decimal = Field(default=Decimal("0"), ge=0)
    expense: Decimal = Field(default=Decimal("0"), ge=0)
    balance: Decimal = Decimal("0")
    count: int = Field(default=0, ge=0)


class MonthlyPoint(BaseModel):
    """Income and expense of one calendar month."""
    model_config = ConfigDict(frozen=True)

    label: str = Field(
        ...,
        description="Short month label, e.g. 'janv. 25'"
    )
    year: int
    month: int = Field(ge=1, le=12)
    income: Decimal = Field(default=Decimal("0"), ge=0)
    expense: Decimal = Field(default=Decimal("0"), ge=0)
    sort_key: int = Field(
        ...,
        description="UTC epoch seconds of the first day of the month"
    )

    @property
    def net(self) -> Decimal:
        return self.income - self.expense


class CategorySlice(BaseModel):
    """Total spent in one expense category."""
    model_config = ConfigDict(frozen=True)

    name: str
    value: Decimal = Field(ge=0)


class DashboardView(BaseModel):
    """Everything the dashboard page renders, from one snapshot."""
    model_config = ConfigDict(frozen=True)

    totals: Totals
    monthly: list[MonthlyPoint] = Field(default_factory=list)
    categories: list[CategorySlice] = Field(default_factory=list)
    recent: list[Transaction] = Field(default_factory=list)

    @property
    def has_trend(self) -> bool:
        """False means the chart shows a 'not enough data' placeholder."""
        return len(self.monthly) > 0
