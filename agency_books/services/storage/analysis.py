"""
Analysis Cache

Holds the most recent AI summary as a single text record,
independent of any particular transaction.

Record lifecycle:
- absent            -> never computed
- present           -> computed
- present + marker  -> computed, currently stale (a newer one was requested)

The text is overwritten whole or removed whole, never patched.
"""

from typing import Optional

from agency_books.events import EventLogger
from agency_books.services.storage.interface import (
    KeyValueStoreInterface,
    StorageReadError,
)


STALE_SUFFIX = ".stale"


class AnalysisCache:
    """Persisted holder for the latest summarizer output."""

    def __init__(
        self,
        kv_store: KeyValueStoreInterface,
        key: str = "ivision_ai_analysis_v1",
        event_logger: Optional[EventLogger] = None,
    ):
        self._kv = kv_store
        self._key = key
        self._stale_key = key + STALE_SUFFIX
        self._event_logger = event_logger or EventLogger()

    @property
    def key(self) -> str:
        return self._key

    def load_stored_summary(self) -> Optional[str]:
        """Return the stored text, or None. Absence is not an error."""
        try:
            text = self._kv.get(self._key)
        except StorageReadError as e:
            self._event_logger.log_storage_read_failed(self._key, str(e))
            return None

        if text is None or not text.strip():
            return None
        return text

    def save_summary(self, text: str) -> None:
        """Overwrite the stored text unconditionally."""
        self._kv.set(self._key, text)
        self._kv.remove(self._stale_key)

    def clear_summary(self) -> None:
        """Remove the stored text and its stale marker."""
        self._kv.remove(self._key)
        self._kv.remove(self._stale_key)
        self._event_logger.log_analysis_cleared()

    def mark_stale(self) -> bool:
        """
        Flag the stored summary as outdated.

        Returns:
            False when there is no summary to flag
        """
        if self.load_stored_summary() is None:
            return False
        self._kv.set(self._stale_key, "1")
        return True

    def is_stale(self) -> bool:
        try:
            return self._kv.get(self._stale_key) is not None
        except StorageReadError:
            return False
