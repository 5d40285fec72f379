"""
Event Logger

DESIGN DECISION: Every mutation and every AI call is logged as a
structured event. This provides:
1. Debugging capability when a summary goes missing
2. A way to correlate an AI request with its outcome
3. A record of silently swallowed background failures

The event logger:
- Is synchronous (the events are local log lines, nothing to await)
- Never raises into the caller (a broken log must not break bookkeeping)
- Supports correlation IDs to trace related events
"""

from typing import Any, Optional
from uuid import UUID, uuid4

import structlog

from agency_books.models.events import BookEvent, BookEventBuilder, EventSeverity


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class EventLogger:
    """Central structured logging service for domain events."""

    def __init__(self, logger: Optional[Any] = None):
        """
        Initialize event logger.

        Args:
            logger: A structlog-style logger. Defaults to the module logger.
        """
        self._logger = logger or structlog.get_logger("agency_books")

    def log(self, event: BookEvent) -> None:
        """Log an event at the level matching its severity."""
        log_dict = event.to_log_dict()

        try:
            if event.severity == EventSeverity.ERROR:
                self._logger.error("book_event", **log_dict)
            elif event.severity == EventSeverity.WARNING:
                self._logger.warning("book_event", **log_dict)
            elif event.severity == EventSeverity.DEBUG:
                self._logger.debug("book_event", **log_dict)
            else:
                self._logger.info("book_event", **log_dict)
        except Exception as e:
            # Logging must not interrupt the bookkeeping flow
            structlog.get_logger("agency_books").error(
                "event_logging_failed",
                error=str(e),
                event_id=str(event.event_id),
            )

    def log_transaction_recorded(
        self,
        transaction_id: str,
        kind: str,
        amount: str,
        category: str,
    ) -> None:
        """Log a new transaction."""
        self.log(BookEventBuilder.transaction_recorded(
            transaction_id=transaction_id,
            kind=kind,
            amount=amount,
            category=category,
        ))

    def log_transaction_deleted(self, transaction_id: str, found: bool) -> None:
        """Log a deletion request."""
        self.log(BookEventBuilder.transaction_deleted(transaction_id, found))

    def log_transactions_cleared(self, removed: int) -> None:
        """Log a full wipe."""
        self.log(BookEventBuilder.transactions_cleared(removed))

    def log_storage_read_failed(self, key: str, error_message: str) -> None:
        """Log unreadable stored data."""
        self.log(BookEventBuilder.storage_read_failed(key, error_message))

    def log_analysis_loaded(self, length: int) -> None:
        self.log(BookEventBuilder.analysis_loaded(length))

    def log_analysis_requested(
        self,
        trigger: str,
        transaction_count: int,
        correlation_id: UUID,
    ) -> None:
        """Log a summarizer call about to start."""
        self.log(BookEventBuilder.analysis_requested(
            trigger=trigger,
            transaction_count=transaction_count,
            correlation_id=correlation_id,
        ))

    def log_analysis_updated(
        self,
        trigger: str,
        length: int,
        correlation_id: UUID,
    ) -> None:
        """Log a successful summarizer call."""
        self.log(BookEventBuilder.analysis_updated(
            trigger=trigger,
            length=length,
            correlation_id=correlation_id,
        ))

    def log_analysis_failed(
        self,
        trigger: str,
        error_message: str,
        correlation_id: UUID,
        notified: bool,
    ) -> None:
        """Log a failed summarizer call, surfaced to the user or not."""
        self.log(BookEventBuilder.analysis_failed(
            trigger=trigger,
            error_message=error_message,
            correlation_id=correlation_id,
            notified=notified,
        ))

    def log_analysis_cleared(self) -> None:
        self.log(BookEventBuilder.analysis_cleared())

    def log_external_service_error(
        self,
        service: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log external service error."""
        self.log(BookEventBuilder.external_service_error(
            service=service,
            error_message=error_message,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a summarizer request and pass it
    through to the outcome event.
    """
    return uuid4()
