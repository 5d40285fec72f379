"""
Core Data Models for Agency Books

These models define the strict schemas for the data we persist.
They are designed to:
1. Enforce type safety at runtime
2. Provide clear validation error messages
3. Be serializable for local storage and logging

DESIGN DECISION: A Transaction is frozen once created.
Editing is not a feature; a wrong entry is deleted and recorded again.

DESIGN DECISION: The category is plain text, not a foreign key into the
catalogs below. The entry form may override it with free "details" text,
and stored data must keep whatever was entered.
"""

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Annotated, Any, Optional
from uuid import uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    model_validator,
)


def utcnow() -> datetime:
    """Timezone-aware current time."""
    return datetime.now(timezone.utc)


def new_transaction_id() -> str:
    """Opaque unique id; uuid4 makes reuse practically impossible."""
    return uuid4().hex


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class TransactionKind(str, Enum):
    """Direction of a transaction. The amount itself is never negative."""
    INCOME = "INCOME"
    EXPENSE = "EXPENSE"


# =============================================================================
# CATALOGS
# =============================================================================

class ServiceItem(BaseModel):
    """A service the agency sells. Income is recorded against these."""
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    price: Decimal = Field(
        ...,
        ge=0,
        description="Suggested amount when recording this service"
    )


class ExpenseCategory(BaseModel):
    """A bucket for agency spending."""
    model_config = ConfigDict(frozen=True)

    id: str
    name: str


SERVICES: tuple[ServiceItem, ...] = (
    ServiceItem(id="reels_video", name="Réels & Vidéos", price=Decimal("40000")),
    ServiceItem(id="graphic_design", name="Graphic Design", price=Decimal("25000")),
    ServiceItem(id="sponsors", name="Sponsors & Suivis", price=Decimal("60000")),
    ServiceItem(id="audit", name="Audit & Stratégie", price=Decimal("35000")),
    ServiceItem(id="website", name="Website & Store Site", price=Decimal("150000")),
)

EXPENSE_CATEGORIES: tuple[ExpenseCategory, ...] = (
    ExpenseCategory(id="material", name="Matériel"),
    ExpenseCategory(id="software", name="Logiciels"),
    ExpenseCategory(id="rent", name="Loyer"),
    ExpenseCategory(id="marketing", name="Marketing"),
    ExpenseCategory(id="freelance", name="Freelancers"),
    ExpenseCategory(id="other", name="Autre"),
)


def find_service(service_id: str) -> Optional[ServiceItem]:
    """Look up a service by id."""
    return next((s for s in SERVICES if s.id == service_id), None)


def find_expense_category(category_id: str) -> Optional[ExpenseCategory]:
    """Look up an expense category by id."""
    return next((c for c in EXPENSE_CATEGORIES if c.id == category_id), None)


# =============================================================================
# CORE TRANSACTION MODEL
# =============================================================================

class Transaction(BaseModel):
    """
    One recorded income or expense event.

    Persisted field names follow the stored JSON layout
    (clientName, occurredAt); Python code uses the snake_case names.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(
        default_factory=new_transaction_id,
        min_length=1,
        description="Unique transaction ID"
    )
    kind: TransactionKind = Field(
        ...,
        description="Income or expense"
    )
    amount: Annotated[
        Decimal,
        Field(ge=0, description="Amount in the bookkeeping currency")
    ]
    # Kept exactly as entered: no trimming, no case folding.
    category: str = Field(
        ...,
        description="Service or expense label"
    )
    description: str = Field(
        default="",
        description="Free text, may be empty"
    )
    client_name: Optional[str] = Field(
        default=None,
        alias="clientName",
        description="Client billed, income only"
    )
    occurred_at: datetime = Field(
        default_factory=utcnow,
        alias="occurredAt",
        description="When the transaction happened"
    )

    @model_validator(mode="before")
    @classmethod
    def accept_legacy_layout(cls, data: Any) -> Any:
        """Accept records written by the first web version (type/date keys)."""
        if isinstance(data, dict):
            if "kind" not in data and "type" in data:
                data = {**data, "kind": data["type"]}
            if (
                "occurredAt" not in data
                and "occurred_at" not in data
                and "date" in data
            ):
                data = {**data, "occurredAt": data["date"]}
        return data

    @model_validator(mode="after")
    def validate_client_name(self) -> "Transaction":
        """A client is only meaningful on income."""
        if self.kind == TransactionKind.EXPENSE and self.client_name is not None:
            raise ValueError("Expense transactions cannot carry a client name")
        return self

    @property
    def is_income(self) -> bool:
        return self.kind == TransactionKind.INCOME

    @property
    def signed_amount(self) -> Decimal:
        """Effect on the balance."""
        return self.amount if self.is_income else -self.amount

    def to_storage_dict(self) -> dict:
        """JSON-safe dict using the persisted field names."""
        return self.model_dump(mode="json", by_alias=True)

    @classmethod
    def create(
        cls,
        kind: TransactionKind,
        amount: Decimal,
        category: str,
        client_name: Optional[str] = None,
        description: Optional[str] = None,
        occurred_at: Optional[datetime] = None,
    ) -> "Transaction":
        """
        Build a new transaction the way the entry form does.

        An empty description defaults to "<category> - <client>" for income
        with a client, otherwise to the category alone.
        """
        client = (client_name or "").strip() or None
        if kind == TransactionKind.EXPENSE:
            client = None

        text = (description or "").strip()
        if not text:
            text = f"{category} - {client}" if client else category

        return cls(
            kind=kind,
            amount=amount,
            category=category,
            description=text,
            client_name=client,
            occurred_at=occurred_at or utcnow(),
        )
