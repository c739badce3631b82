"""Choose the reconciliation path for a single entry.

Decision order:

1. A persisted id means the row exists: ``UPDATE_IF_CHANGED``.
2. A pending id is checked against the database by content checksum first.
   A matching row means an earlier run created it but crashed before the
   id reached the file: ``NOOP``.
3. A pending id with ``github_url`` links to that existing discussion:
   ``LINK_EXISTING``.  A URL that matches no listed discussion is an error.
4. Otherwise: ``CREATE_NEW``.

Looking up by checksum before trusting the pending id is what keeps repeated
runs from creating a second discussion or row for the same entry.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable

from troubleshoot_sync.content.entries import (
    Pending,
    Persisted,
    TroubleshootingEntry,
)
from troubleshoot_sync.errors import UnresolvedReferenceError

from .models import Classification, DiscussionRef, SyncAction

logger = logging.getLogger(__name__)


def find_discussion(
    discussions: Iterable[DiscussionRef], url: str
) -> DiscussionRef | None:
    """Return the discussion whose URL equals *url*."""
    return next((d for d in discussions if d.url == url), None)


def classify(
    entry: TroubleshootingEntry,
    discussions: Iterable[DiscussionRef],
    exists_by_checksum: Callable[[str], bool],
    checksum: str,
) -> Classification:
    """Classify *entry* against the remote stores.

    Args:
        entry: The local entry.
        discussions: Every discussion in the category, listed once per run.
        exists_by_checksum: Database lookup; only called for pending ids.
        checksum: Checksum of the entry's current content.

    Raises:
        UnresolvedReferenceError: If ``github_url`` names a discussion that
            is not among *discussions*.
    """
    match entry.entry_id:
        case Persisted():
            return Classification(
                action=SyncAction.UPDATE_IF_CHANGED, checksum=checksum
            )
        case Pending(placeholder=placeholder):
            if exists_by_checksum(checksum):
                logger.info(
                    "%s: row with matching checksum already exists for %s",
                    entry.file_path,
                    placeholder,
                )
                return Classification(action=SyncAction.NOOP, checksum=checksum)

            github_url = entry.frontmatter.github_url
            if github_url:
                discussion = find_discussion(discussions, github_url)
                if discussion is None:
                    raise UnresolvedReferenceError(
                        f"{entry.file_path}: github_url {github_url} "
                        "does not match any discussion in the category"
                    )
                return Classification(
                    action=SyncAction.LINK_EXISTING,
                    checksum=checksum,
                    discussion=discussion,
                )

            return Classification(
                action=SyncAction.CREATE_NEW, checksum=checksum
            )
