"""
Exception taxonomy for the finance core.

- ValidationError: malformed or out-of-range input, raised before any mutation
- NotFoundError: a referenced id does not exist
- StorageError: the external store failed
- CompletionError: the external completion service failed

The presentation layer is expected to show a recoverable, re-triable
error state for any of them.
"""

from typing import Optional


class JavaliError(Exception):
    """Base exception for the finance core."""
    pass


class ValidationError(JavaliError):
    """Input rejected before any state was touched."""

    def __init__(self, message: str, field: Optional[str] = None):
        self.field = field
        super().__init__(message)


class NotFoundError(JavaliError):
    """Referenced entity does not exist."""

    def __init__(self, entity_type: str, entity_id: object):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type} not found: {entity_id}")


class StorageError(JavaliError):
    """External store I/O failed."""
    pass


class CompletionError(JavaliError):
    """External completion service failed (transient or permanent)."""

    def __init__(self, message: str, transient: bool = False):
        self.transient = transient
        super().__init__(message)
