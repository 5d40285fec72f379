"""
Analysis Refresh Models

State and outcome types for the AI summary refresh cycle,
plus the notification contract the host UI implements.
"""

from datetime import datetime
from enum import Enum
from typing import Optional, Protocol

from pydantic import BaseModel, ConfigDict, Field

from agency_books.models.transaction import utcnow


class RefreshState(str, Enum):
    """Controller state. Never persisted."""
    IDLE = "idle"
    REFRESHING = "refreshing"


class RefreshTrigger(str, Enum):
    """What asked for a new summary."""
    INITIAL_LOAD = "initial_load"
    TRANSACTION_ADDED = "transaction_added"
    TRANSACTION_DELETED = "transaction_deleted"
    MANUAL = "manual"


class Severity(str, Enum):
    """Notification severity understood by the host UI."""
    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"


class RefreshOutcome(BaseModel):
    """Result of the most recently finished summarizer call."""
    model_config = ConfigDict(frozen=True)

    trigger: RefreshTrigger
    success: bool
    error_message: Optional[str] = None
    transaction_count: int = Field(ge=0)
    finished_at: datetime = Field(default_factory=utcnow)


class NotificationSink(Protocol):
    """
    Anything that can show a message to the user.

    The display lifetime (auto-dismiss) belongs to the implementation.
    """

    def __call__(self, message: str, severity: Severity) -> None:
        ...
