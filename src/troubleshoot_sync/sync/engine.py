"""Per-entry reconciliation against the database and discussion stores.

``Reconciler.reconcile()`` runs the workflow for one entry, strictly in
order:

1. Compute the checksum of the current body.
2. Classify the entry (see ``classifier``).
3. Act on the remote stores for the chosen path.
4. Write a newly assigned database id back into the file.

Errors propagate to the caller; the batch runner isolates them per entry.
Nothing here deletes data, and the file is written at most once, only to
replace a pending id.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

from troubleshoot_sync.content.entries import (
    Persisted,
    TroubleshootingEntry,
)
from troubleshoot_sync.content.frontmatter import write_database_id
from troubleshoot_sync.content.normalizer import checksum as content_checksum
from troubleshoot_sync.errors import UnresolvedReferenceError

from .classifier import classify
from .models import Classification, DiscussionRef, SyncAction, SyncResult

if TYPE_CHECKING:
    from troubleshoot_sync.core.database import DatabaseClient
    from troubleshoot_sync.core.discussions import DiscussionClient

logger = logging.getLogger(__name__)

# ](/path) in links and images; protocol-relative //host links are left alone.
_ROOT_RELATIVE_LINK = re.compile(r"(\]\()(/(?!/)[^)\s]*)")

ATTRIBUTION_FOOTER = (
    "_This is a copy of a troubleshooting article on our docs site. "
    "It may be missing some details from the original. "
    "View the [original article]({url})._"
)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def build_discussion_body(
    entry: TroubleshootingEntry, site_url: str, article_base_url: str
) -> str:
    """Render the discussion body mirroring *entry*.

    Root-relative links are made absolute against *site_url* so they work
    on GitHub, and an attribution footer links back to the article.
    """
    body = _ROOT_RELATIVE_LINK.sub(
        lambda m: m.group(1) + site_url + m.group(2), entry.content.strip()
    )
    footer = ATTRIBUTION_FOOTER.format(url=f"{article_base_url}/{entry.slug}")
    return f"{body}\n\n---\n\n{footer}\n"


def build_row(
    entry: TroubleshootingEntry,
    checksum: str,
    discussion: DiscussionRef,
    timestamp: str,
) -> dict[str, Any]:
    """Assemble the database row for a newly synced entry."""
    fm = entry.frontmatter
    date_created = (
        fm.date_created.isoformat() if fm.date_created else timestamp
    )
    return {
        "title": fm.title,
        "topics": list(fm.topics),
        "keywords": list(fm.keywords),
        "api": fm.api.model_dump() if fm.api else None,
        "errors": [err.model_dump(exclude_none=True) for err in fm.errors],
        "github_id": discussion.id,
        "github_url": discussion.url,
        "checksum": checksum,
        "date_created": date_created,
        "date_updated": timestamp,
    }


class Reconciler:
    """Bring one entry's file, database row and discussion into agreement.

    Args:
        database: Database store client.
        discussions: Discussion store client.
        discussion_list: Every discussion in the category, listed once per
            run by the batch runner.
        site_url: Origin used to absolutize root-relative links.
        article_base_url: URL prefix of published articles.
        dry_run: If ``True``, classify and compare but change nothing.
    """

    def __init__(
        self,
        database: DatabaseClient,
        discussions: DiscussionClient,
        discussion_list: Sequence[DiscussionRef],
        site_url: str,
        article_base_url: str,
        dry_run: bool = False,
    ) -> None:
        self.database = database
        self.discussions = discussions
        self.discussion_list = discussion_list
        self.site_url = site_url
        self.article_base_url = article_base_url
        self.dry_run = dry_run

    # ------------------------------------------------------------------
    # Main entry point
    # ------------------------------------------------------------------

    def reconcile(self, entry: TroubleshootingEntry) -> SyncResult:
        """Reconcile one entry.

        Raises:
            MalformedContentError: If the body cannot be parsed.
            StoreError: If a database or discussion call fails.
            UnresolvedReferenceError: If a referenced discussion is missing.
        """
        checksum = content_checksum(entry.content)
        classification = classify(
            entry,
            self.discussion_list,
            self._exists_by_checksum,
            checksum,
        )
        logger.debug(
            "%s classified as %s", entry.file_path, classification.action.value
        )

        match classification.action, entry.entry_id:
            case (SyncAction.CREATE_NEW | SyncAction.LINK_EXISTING, _):
                return self._create(entry, classification)
            case (SyncAction.UPDATE_IF_CHANGED, Persisted(id=row_id)):
                return self._update_if_changed(entry, row_id, classification)
            case _:
                return SyncResult(
                    file_path=str(entry.file_path), action=SyncAction.NOOP
                )

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def _create(
        self, entry: TroubleshootingEntry, classification: Classification
    ) -> SyncResult:
        """Create (or link) the discussion, insert the row, write the id back."""
        action = classification.action
        if self.dry_run:
            return SyncResult(
                file_path=str(entry.file_path),
                action=action,
                changed=True,
                discussion_url=(
                    classification.discussion.url
                    if classification.discussion
                    else None
                ),
            )

        discussion = classification.discussion
        if discussion is None:
            discussion = self.discussions.create(
                entry.title,
                build_discussion_body(
                    entry, self.site_url, self.article_base_url
                ),
            )
            logger.info(
                "Created discussion %s for %s", discussion.url, entry.file_path
            )

        row = build_row(entry, classification.checksum, discussion, _now())
        new_id = self.database.insert(row)
        logger.info("Inserted row %s for %s", new_id, entry.file_path)

        write_database_id(entry.file_path, new_id)

        return SyncResult(
            file_path=str(entry.file_path),
            action=action,
            changed=True,
            database_id=new_id,
            discussion_url=discussion.url,
        )

    def _update_if_changed(
        self,
        entry: TroubleshootingEntry,
        row_id: str,
        classification: Classification,
    ) -> SyncResult:
        """Push new content to the discussion and row if the checksum moved.

        The discussion is updated before the row so that a failed forum
        update leaves the stored checksum stale and the next run retries.
        """
        row = self.database.select_by_id(row_id)
        changed = row.get("checksum") != classification.checksum
        result = SyncResult(
            file_path=str(entry.file_path),
            action=SyncAction.UPDATE_IF_CHANGED,
            changed=changed,
            database_id=row_id,
            discussion_url=row.get("github_url"),
        )
        if not changed:
            logger.debug("%s unchanged", entry.file_path)
            return result

        github_id = row.get("github_id")
        if not github_id:
            raise UnresolvedReferenceError(
                f"{entry.file_path}: row {row_id} has no linked discussion"
            )
        if self.dry_run:
            return result

        self.discussions.update(
            github_id,
            build_discussion_body(entry, self.site_url, self.article_base_url),
        )
        self.database.update(
            row_id,
            {"checksum": classification.checksum, "date_updated": _now()},
        )
        logger.info("Updated row %s and its discussion", row_id)
        return result

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _exists_by_checksum(self, checksum: str) -> bool:
        return self.database.select_by_checksum(checksum) is not None
