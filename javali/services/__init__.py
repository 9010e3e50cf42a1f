"""Services package."""

from javali.services.completion import (
    CompletionServiceInterface,
    GeminiCompletionService,
    OfflineCompletionService,
)
from javali.services.storage import (
    AuditStorageInterface,
    ConnectionError,
    DuplicateError,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsMemoryStore,
    InMemoryAuditStorage,
    InMemoryStore,
    MemoryStoreInterface,
    StorageError,
)

__all__ = [
    # Completion services
    "CompletionServiceInterface",
    "GeminiCompletionService",
    "OfflineCompletionService",
    # Storage services
    "AuditStorageInterface",
    "ConnectionError",
    "DuplicateError",
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsMemoryStore",
    "InMemoryAuditStorage",
    "InMemoryStore",
    "MemoryStoreInterface",
    "StorageError",
]
