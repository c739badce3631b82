"""Exception types shared across the sync pipeline.

Per-entry errors (``MalformedContentError``, ``StoreError``,
``UnresolvedReferenceError``) abort only the entry being reconciled and are
collected by the batch runner.  ``ConfigurationError`` is fatal and aborts
the run before any entry is processed.
"""


class TroubleshootSyncError(Exception):
    """Base class for all sync errors."""


class ConfigurationError(TroubleshootSyncError):
    """Required settings are missing or invalid."""


class MalformedContentError(TroubleshootSyncError):
    """A document body or its frontmatter could not be parsed."""


class StoreError(TroubleshootSyncError):
    """A database or discussion store call failed.

    Args:
        store: Which store failed (``"database"`` or ``"discussions"``).
        message: Human-readable description.
    """

    def __init__(self, store: str, message: str) -> None:
        super().__init__(f"{store}: {message}")
        self.store = store
        self.message = message


class UnresolvedReferenceError(TroubleshootSyncError):
    """An entry points at a forum thread that cannot be located."""
