"""
Event Models for Agency Books

Significant actions are emitted as structured log events.
This provides:
1. Traceability of every mutation and every AI call
2. Debugging information when things go wrong
3. Correlation between an AI request and its outcome

DESIGN DECISION: Events go to the local structured log only.
There is no persisted history and no undo built on top of them.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field, field_validator

from agency_books.models.transaction import utcnow


# Descriptions embed free-form user text; longer ones are truncated.
DESCRIPTION_MAX_LENGTH = 500


class BookEventType(str, Enum):
    """Types of events we log."""
    # Transactions
    TRANSACTION_RECORDED = "transaction_recorded"
    TRANSACTION_DELETED = "transaction_deleted"
    TRANSACTIONS_CLEARED = "transactions_cleared"

    # Storage
    STORAGE_READ_FAILED = "storage_read_failed"

    # AI analysis
    ANALYSIS_LOADED = "analysis_loaded"
    ANALYSIS_REQUESTED = "analysis_requested"
    ANALYSIS_UPDATED = "analysis_updated"
    ANALYSIS_FAILED = "analysis_failed"
    ANALYSIS_CLEARED = "analysis_cleared"

    # System events
    EXTERNAL_SERVICE_ERROR = "external_service_error"


class EventSeverity(str, Enum):
    """Severity level for log events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class BookEvent(BaseModel):
    """A single structured log event."""

    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=utcnow,
        description="When the event occurred (UTC)"
    )

    event_type: BookEventType
    severity: EventSeverity = EventSeverity.INFO

    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'transaction', 'analysis')"
    )
    entity_id: Optional[str] = None

    correlation_id: Optional[UUID] = Field(
        default=None,
        description="Ties an analysis request to its outcome"
    )

    description: str = Field(..., max_length=DESCRIPTION_MAX_LENGTH)
    details: dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    @field_validator("description", mode="before")
    @classmethod
    def truncate_description(cls, v: Any) -> Any:
        """Shorten over-long descriptions, marking the cut with an ellipsis."""
        if isinstance(v, str) and len(v) > DESCRIPTION_MAX_LENGTH:
            return v[:DESCRIPTION_MAX_LENGTH - 1] + "…"
        return v

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class BookEventBuilder:
    """
    Helper class to build events with common patterns.

    Usage:
        event = BookEventBuilder.transaction_recorded(transaction_id, "INCOME", "40000", "Réels & Vidéos")
        event = BookEventBuilder.analysis_failed(trigger, message, correlation_id)
    """

    @staticmethod
    def transaction_recorded(
        transaction_id: str,
        kind: str,
        amount: str,
        category: str,
    ) -> BookEvent:
        return BookEvent(
            event_type=BookEventType.TRANSACTION_RECORDED,
            entity_type="transaction",
            entity_id=transaction_id,
            description=f"{kind.capitalize()} recorded: {category}",
            details={
                "kind": kind,
                "amount": amount,
                "category": category,
            },
            is_user_action=True,
        )

    @staticmethod
    def transaction_deleted(
        transaction_id: str,
        found: bool,
    ) -> BookEvent:
        return BookEvent(
            event_type=BookEventType.TRANSACTION_DELETED,
            entity_type="transaction",
            entity_id=transaction_id,
            description=(
                "Transaction deleted" if found
                else "Delete requested for unknown transaction"
            ),
            details={"found": found},
            is_user_action=True,
        )

    @staticmethod
    def transactions_cleared(removed: int) -> BookEvent:
        return BookEvent(
            event_type=BookEventType.TRANSACTIONS_CLEARED,
            severity=EventSeverity.WARNING,
            entity_type="transaction",
            description=f"All transactions cleared ({removed} removed)",
            details={"removed": removed},
            is_user_action=True,
        )

    @staticmethod
    def storage_read_failed(key: str, error_message: str) -> BookEvent:
        return BookEvent(
            event_type=BookEventType.STORAGE_READ_FAILED,
            severity=EventSeverity.WARNING,
            entity_type="storage",
            entity_id=key,
            description=f"Stored data under '{key}' unreadable, treated as empty",
            error_message=error_message,
        )

    @staticmethod
    def analysis_loaded(length: int) -> BookEvent:
        return BookEvent(
            event_type=BookEventType.ANALYSIS_LOADED,
            entity_type="analysis",
            description="Stored analysis surfaced without a new request",
            details={"length": length},
        )

    @staticmethod
    def analysis_requested(
        trigger: str,
        transaction_count: int,
        correlation_id: UUID,
    ) -> BookEvent:
        return BookEvent(
            event_type=BookEventType.ANALYSIS_REQUESTED,
            entity_type="analysis",
            correlation_id=correlation_id,
            description=f"Analysis requested ({trigger})",
            details={
                "trigger": trigger,
                "transaction_count": transaction_count,
            },
            is_user_action=trigger == "manual",
        )

    @staticmethod
    def analysis_updated(
        trigger: str,
        length: int,
        correlation_id: UUID,
    ) -> BookEvent:
        return BookEvent(
            event_type=BookEventType.ANALYSIS_UPDATED,
            entity_type="analysis",
            correlation_id=correlation_id,
            description=f"Analysis updated ({trigger})",
            details={
                "trigger": trigger,
                "length": length,
            },
        )

    @staticmethod
    def analysis_failed(
        trigger: str,
        error_message: str,
        correlation_id: UUID,
        notified: bool,
    ) -> BookEvent:
        return BookEvent(
            event_type=BookEventType.ANALYSIS_FAILED,
            severity=EventSeverity.ERROR if notified else EventSeverity.WARNING,
            entity_type="analysis",
            correlation_id=correlation_id,
            description=f"Analysis failed ({trigger})",
            error_message=error_message,
            details={
                "trigger": trigger,
                "user_notified": notified,
            },
        )

    @staticmethod
    def analysis_cleared() -> BookEvent:
        return BookEvent(
            event_type=BookEventType.ANALYSIS_CLEARED,
            entity_type="analysis",
            description="Stored analysis cleared",
        )

    @staticmethod
    def external_service_error(
        service: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> BookEvent:
        return BookEvent(
            event_type=BookEventType.EXTERNAL_SERVICE_ERROR,
            severity=EventSeverity.ERROR,
            description=f"External service error: {service}",
            error_message=error_message,
            details={
                "service": service,
            },
            correlation_id=correlation_id,
        )
