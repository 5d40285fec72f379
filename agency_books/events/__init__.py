"""Structured event logging package."""

from agency_books.events.logger import EventLogger, create_correlation_id

__all__ = ["EventLogger", "create_correlation_id"]
