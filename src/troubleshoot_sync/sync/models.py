"""Pydantic models for the reconciliation engine.

- ``DiscussionRef``: Identity of a forum thread.
- ``SyncAction``: Reconciliation path chosen for an entry.
- ``Classification``: Classifier output for one entry.
- ``SyncResult``: Outcome of reconciling one entry.
- ``SyncReport``: Aggregate results for a full run.

All models are frozen (immutable).
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel


class DiscussionRef(BaseModel):
    """A GitHub discussion, identified by node id and URL."""

    id: str
    url: str

    model_config = {"frozen": True}


class SyncAction(str, Enum):
    """Reconciliation paths for an entry."""

    CREATE_NEW = "create_new"
    LINK_EXISTING = "link_existing"
    UPDATE_IF_CHANGED = "update_if_changed"
    NOOP = "noop"


class Classification(BaseModel):
    """Result of classifying one entry.

    Attributes:
        action: The reconciliation path.
        checksum: Checksum of the entry's current content.
        discussion: The located discussion for ``LINK_EXISTING``.
    """

    action: SyncAction
    checksum: str
    discussion: DiscussionRef | None = None

    model_config = {"frozen": True}


class SyncResult(BaseModel):
    """Result of reconciling one entry.

    Attributes:
        file_path: The entry's file.
        action: Path taken (``None`` if the entry failed before classification).
        success: Whether reconciliation completed.
        changed: Whether any remote store or the local file was modified
            (or would be, in a dry run).
        database_id: Row id after reconciliation, when known.
        discussion_url: Discussion URL after reconciliation, when known.
        error: Error message if the operation failed.
        error_kind: Exception class name if the operation failed.
    """

    file_path: str
    action: SyncAction | None = None
    success: bool = True
    changed: bool = False
    database_id: str | None = None
    discussion_url: str | None = None
    error: str | None = None
    error_kind: str | None = None

    model_config = {"frozen": True}


class SyncReport(BaseModel):
    """Aggregate report for a full sync run.

    Attributes:
        dry_run: Whether this was a dry-run (no changes applied).
        discussions_listed: Number of discussions fetched for classification.
        results: Individual results, one per entry file.
        started_at: ISO 8601 timestamp when the run started.
        completed_at: ISO 8601 timestamp when the run completed.
    """

    dry_run: bool = False
    discussions_listed: int = 0
    results: list[SyncResult] = []
    started_at: str
    completed_at: str | None = None

    model_config = {"frozen": True}

    def _succeeded(self, action: SyncAction) -> list[SyncResult]:
        return [
            r for r in self.results if r.success and r.action == action
        ]

    @property
    def created(self) -> list[SyncResult]:
        """Entries that got a new discussion and row."""
        return self._succeeded(SyncAction.CREATE_NEW)

    @property
    def linked(self) -> list[SyncResult]:
        """Entries whose row was created against an existing discussion."""
        return self._succeeded(SyncAction.LINK_EXISTING)

    @property
    def updated(self) -> list[SyncResult]:
        """Existing entries whose content changed."""
        return [
            r
            for r in self._succeeded(SyncAction.UPDATE_IF_CHANGED)
            if r.changed
        ]

    @property
    def unchanged(self) -> list[SyncResult]:
        """Entries that needed no work."""
        return [
            r
            for r in self.results
            if r.success
            and (
                r.action == SyncAction.NOOP
                or (r.action == SyncAction.UPDATE_IF_CHANGED and not r.changed)
            )
        ]

    @property
    def errors(self) -> list[SyncResult]:
        """Results where success is False."""
        return [r for r in self.results if not r.success]

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)
