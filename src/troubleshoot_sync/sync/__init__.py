"""Reconciliation engine for troubleshooting entries.

Keeps three copies of each article in agreement: the local file, its
database row and its GitHub discussion.

Architecture
------------
Identity is decided by content checksum, not by the id in the file: an
entry whose file still carries a ``pseudo-`` placeholder is first looked up
by checksum, so a run that crashed between creating the row and writing the
id back is completed rather than repeated.

Modules:

- ``classifier`` -- ``classify``: choose the path for one entry.
- ``engine``     -- ``Reconciler``: run that path against both stores.
- ``runner``     -- ``BatchRunner``: reconcile all entries concurrently.
- ``models``     -- ``SyncAction``, ``DiscussionRef``, ``Classification``,
  ``SyncResult``, ``SyncReport``: core data contracts.
- ``reporter``   -- Human-readable and JSON report formatting.

Usage example
-------------
::

    from pathlib import Path
    from troubleshoot_sync.core import DatabaseClient, DiscussionClient
    from troubleshoot_sync.sync import BatchRunner, format_sync_report

    runner = BatchRunner(database, discussions, config, dry_run=True)
    report = asyncio.run(runner.run_directory(Path(config.content_dir)))
    print(format_sync_report(report))
"""

from .classifier import classify
from .engine import Reconciler
from .models import (
    Classification,
    DiscussionRef,
    SyncAction,
    SyncReport,
    SyncResult,
)
from .reporter import format_sync_report, report_to_json
from .runner import BatchRunner

__all__ = [
    "BatchRunner",
    "Classification",
    "DiscussionRef",
    "Reconciler",
    "SyncAction",
    "SyncReport",
    "SyncResult",
    "classify",
    "format_sync_report",
    "report_to_json",
]
