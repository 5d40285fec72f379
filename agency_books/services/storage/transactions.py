"""
Transaction Store

Owns the canonical transaction list.

GUARANTEES:
- Order is insertion order, newest first
- Every mutation persists the full list (no deltas)
- Callers only ever receive immutable snapshots (tuples of frozen models)
- Unreadable stored data is treated as "no data", never raised

The store performs no field validation beyond the Transaction model.
"""

import json
from typing import Callable, Optional

from pydantic import TypeAdapter, ValidationError

from agency_books.events import EventLogger
from agency_books.models.transaction import Transaction
from agency_books.services.storage.interface import (
    DuplicateError,
    KeyValueStoreInterface,
    StorageReadError,
)


_TRANSACTION_LIST = TypeAdapter(list[Transaction])


class TransactionStore:
    """Persisted, newest-first list of transactions."""

    def __init__(
        self,
        kv_store: KeyValueStoreInterface,
        key: str = "ivision_transactions_v1",
        event_logger: Optional[EventLogger] = None,
    ):
        self._kv = kv_store
        self._key = key
        self._event_logger = event_logger or EventLogger()
        self._transactions: Optional[tuple[Transaction, ...]] = None
        self._on_cleared: list[Callable[[], None]] = []

    @property
    def key(self) -> str:
        return self._key

    def on_cleared(self, callback: Callable[[], None]) -> None:
        """
        Register a callback fired after clear_all().

        The application wires the analysis cache here, so a wiped history
        also wipes the summary without the store knowing about the cache.
        """
        self._on_cleared.append(callback)

    def load(self) -> tuple[Transaction, ...]:
        """
        (Re)read the persisted list.

        Missing, unreadable or unparsable data yields an empty list.
        """
        self._transactions = tuple(self._read())
        return self._transactions

    def snapshot(self) -> tuple[Transaction, ...]:
        """Current list, loading it on first use."""
        if self._transactions is None:
            return self.load()
        return self._transactions

    def get(self, transaction_id: str) -> Optional[Transaction]:
        return next((t for t in self.snapshot() if t.id == transaction_id), None)

    def add(self, transaction: Transaction) -> tuple[Transaction, ...]:
        """
        Prepend a transaction and persist the full list.

        Raises:
            DuplicateError: If a transaction with the same id exists
            StorageWriteError: If persisting fails (memory is left unchanged)
        """
        current = self.snapshot()
        if any(t.id == transaction.id for t in current):
            raise DuplicateError(f"Transaction {transaction.id} already exists")

        updated = (transaction,) + current
        self._write(updated)
        self._transactions = updated
        return updated

    def remove(self, transaction_id: str) -> tuple[Transaction, ...]:
        """
        Remove the matching transaction if present and persist.

        An unknown id is a no-op, not an error.
        """
        current = self.snapshot()
        updated = tuple(t for t in current if t.id != transaction_id)
        self._write(updated)
        self._transactions = updated
        return updated

    def clear_all(self) -> int:
        """
        Empty the persisted list and fire the cleared callbacks.

        Returns:
            Number of transactions removed
        """
        removed = len(self.snapshot())
        self._kv.remove(self._key)
        self._transactions = ()

        for callback in self._on_cleared:
            callback()

        return removed

    def _read(self) -> list[Transaction]:
        try:
            raw = self._kv.get(self._key)
        except StorageReadError as e:
            self._event_logger.log_storage_read_failed(self._key, str(e))
            return []

        if raw is None or not raw.strip():
            return []

        try:
            return _TRANSACTION_LIST.validate_json(raw)
        except ValidationError as e:
            self._event_logger.log_storage_read_failed(
                self._key,
                f"{e.error_count()} validation error(s): {e.errors()[0]['msg']}",
            )
            return []

    def _write(self, transactions: tuple[Transaction, ...]) -> None:
        payload = json.dumps(
            [t.to_storage_dict() for t in transactions],
            ensure_ascii=False,
        )
        self._kv.set(self._key, payload)
