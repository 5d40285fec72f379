"""Services package."""

from agency_books.services.storage import (
    AnalysisCache,
    DuplicateError,
    InMemoryKeyValueStore,
    KeyValueStoreInterface,
    LocalFileKeyValueStore,
    StorageError,
    StorageReadError,
    StorageWriteError,
    TransactionStore,
)

__all__ = [
    "AnalysisCache",
    "DuplicateError",
    "InMemoryKeyValueStore",
    "KeyValueStoreInterface",
    "LocalFileKeyValueStore",
    "StorageError",
    "StorageReadError",
    "StorageWriteError",
    "TransactionStore",
]
