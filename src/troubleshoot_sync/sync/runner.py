"""Batch runner: reconcile every entry concurrently, isolating failures.

The discussion category is listed exactly once per run, before any entry is
dispatched.  A listing failure propagates: without it no entry can be
classified safely.  Each reconciliation then runs in a worker thread; one
entry's failure is recorded in the report and never affects another entry.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING

from troubleshoot_sync.content.entries import TroubleshootingEntry, load_entries
from troubleshoot_sync.core.async_utils import (
    gather_settled,
    make_semaphore,
    run_sync,
    run_sync_limited,
)

from .engine import Reconciler
from .models import SyncReport, SyncResult

if TYPE_CHECKING:
    from troubleshoot_sync.config import Config
    from troubleshoot_sync.core.database import DatabaseClient
    from troubleshoot_sync.core.discussions import DiscussionClient

logger = logging.getLogger(__name__)


def _failed_result(file_path: Path | str, exc: BaseException) -> SyncResult:
    return SyncResult(
        file_path=str(file_path),
        success=False,
        error=str(exc),
        error_kind=type(exc).__name__,
    )


class BatchRunner:
    """Run reconciliation for a batch of entries.

    Args:
        database: Database store client.
        discussions: Discussion store client.
        config: Run configuration (category, URLs, concurrency cap).
        dry_run: If ``True``, nothing is created, updated or written.
    """

    def __init__(
        self,
        database: DatabaseClient,
        discussions: DiscussionClient,
        config: Config,
        dry_run: bool = False,
    ) -> None:
        self.database = database
        self.discussions = discussions
        self.config = config
        self.dry_run = dry_run

    async def run_all(
        self,
        entries: list[TroubleshootingEntry],
        failures: list[tuple[Path, Exception]] | None = None,
    ) -> SyncReport:
        """Reconcile *entries* and build the run report.

        Args:
            entries: Loaded entries.
            failures: Files that failed to load, reported as failed results.

        Raises:
            StoreError: If the discussion listing fails.
        """
        started_at = datetime.now(timezone.utc).isoformat()

        discussion_list = await run_sync(
            self.discussions.list_all, self.config.discussion_category_id
        )
        reconciler = Reconciler(
            self.database,
            self.discussions,
            discussion_list,
            site_url=self.config.site_url,
            article_base_url=self.config.article_base_url,
            dry_run=self.dry_run,
        )

        semaphore = make_semaphore(self.config.max_parallel)
        outcomes = await gather_settled(
            [
                run_sync_limited(semaphore, reconciler.reconcile, entry)
                for entry in entries
            ]
        )

        results = [_failed_result(path, exc) for path, exc in failures or []]
        for entry, outcome in zip(entries, outcomes):
            if isinstance(outcome, SyncResult):
                results.append(outcome)
                continue
            if not isinstance(outcome, Exception):
                raise outcome
            logger.error(
                "Failed to sync %s: %s: %s",
                entry.file_path,
                type(outcome).__name__,
                outcome,
            )
            results.append(_failed_result(entry.file_path, outcome))

        report = SyncReport(
            dry_run=self.dry_run,
            discussions_listed=len(discussion_list),
            results=results,
            started_at=started_at,
            completed_at=datetime.now(timezone.utc).isoformat(),
        )
        logger.info(
            "Sync complete: %d created, %d linked, %d updated, "
            "%d unchanged, %d errors",
            len(report.created),
            len(report.linked),
            len(report.updated),
            len(report.unchanged),
            len(report.errors),
        )
        return report

    async def run_directory(self, root: Path) -> SyncReport:
        """Load every entry under *root* and reconcile them.

        Raises:
            ConfigurationError: If *root* is not a directory.
            StoreError: If the discussion listing fails.
        """
        entries, failures = await run_sync(load_entries, root)
        return await self.run_all(entries, failures)
