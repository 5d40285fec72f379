"""
Storage Services Package

Provides the key-value storage interface, its local implementations,
and the two records built on top of it: the transaction list and the
AI analysis cache.
"""

from agency_books.services.storage.interface import (
    DuplicateError,
    KeyValueStoreInterface,
    StorageError,
    StorageReadError,
    StorageWriteError,
)
from agency_books.services.storage.local import (
    InMemoryKeyValueStore,
    LocalFileKeyValueStore,
)
from agency_books.services.storage.transactions import TransactionStore
from agency_books.services.storage.analysis import AnalysisCache

__all__ = [
    # Interfaces
    "KeyValueStoreInterface",
    # Exceptions
    "DuplicateError",
    "StorageError",
    "StorageReadError",
    "StorageWriteError",
    # Implementations
    "InMemoryKeyValueStore",
    "LocalFileKeyValueStore",
    # Records
    "AnalysisCache",
    "TransactionStore",
]
