"""
Storage Services Package

Provides the abstract store interfaces and their implementations.
Google Sheets is the hosted backend; the in-process store backs tests
and runs without configuration.
"""

from javali.errors import StorageError
from javali.services.storage.google_sheets import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsMemoryStore,
)
from javali.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    DuplicateError,
    MemoryStoreInterface,
)
from javali.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryStore,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "MemoryStoreInterface",
    # Exceptions
    "ConnectionError",
    "DuplicateError",
    "StorageError",
    # Google Sheets implementation
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsMemoryStore",
    # In-process implementation
    "InMemoryAuditStorage",
    "InMemoryStore",
]
