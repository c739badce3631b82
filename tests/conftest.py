"""Shared pytest fixtures for troubleshoot-sync tests."""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Dict, List, Optional

import pytest

from troubleshoot_sync.config import Config
from troubleshoot_sync.errors import StoreError
from troubleshoot_sync.sync.models import DiscussionRef

# ---------------------------------------------------------------------------
# Fake stores
# ---------------------------------------------------------------------------


class FakeDatabaseClient:
    """Minimal DatabaseClient replacement for testing.

    Simulates the entries table with an in-memory dict keyed by id.
    """

    def __init__(self, rows: Optional[Dict[str, dict]] = None) -> None:
        self.rows: Dict[str, dict] = rows or {}
        self.next_id = 100
        self.insert_calls: list[dict] = []
        self.update_calls: list[tuple[str, dict]] = []
        self.fail_on_checksum: set[str] = set()
        self._lock = threading.Lock()

    def validate_connection(self) -> None:
        return None

    def select_by_checksum(self, checksum: str) -> Optional[dict]:
        if checksum in self.fail_on_checksum:
            raise StoreError("database", "connection reset")
        with self._lock:
            rows = list(self.rows.items())
        for row_id, row in rows:
            if row.get("checksum") == checksum:
                return {"id": row_id, **row}
        return None

    def select_by_id(self, entry_id: str) -> dict:
        if entry_id not in self.rows:
            raise StoreError("database", f"no row with id {entry_id}")
        return {"id": entry_id, **self.rows[entry_id]}

    def insert(self, row: dict) -> str:
        with self._lock:
            self.insert_calls.append(row)
            new_id = str(self.next_id)
            self.next_id += 1
            self.rows[new_id] = dict(row)
        return new_id

    def update(self, entry_id: str, fields: dict) -> None:
        self.update_calls.append((entry_id, fields))
        self.rows[entry_id].update(fields)


class FakeDiscussionClient:
    """Minimal DiscussionClient replacement for testing."""

    def __init__(self, discussions: Optional[List[DiscussionRef]] = None) -> None:
        self.discussions: List[DiscussionRef] = list(discussions or [])
        self.bodies: Dict[str, str] = {}
        self.list_calls = 0
        self.create_calls: list[tuple[str, str]] = []
        self.update_calls: list[tuple[str, str]] = []
        self.fail_list = False
        self._lock = threading.Lock()

    def validate_connection(self) -> str:
        return "R_1"

    def list_all(self, category_id: str) -> List[DiscussionRef]:
        self.list_calls += 1
        if self.fail_list:
            raise StoreError("discussions", "rate limited")
        return list(self.discussions)

    def create(self, title: str, body: str) -> DiscussionRef:
        with self._lock:
            self.create_calls.append((title, body))
            n = len(self.discussions) + 1
            ref = DiscussionRef(
                id=f"D_{n}",
                url=f"https://github.com/acme/docs/discussions/{n}",
            )
            self.discussions.append(ref)
        self.bodies[ref.id] = body
        return ref

    def update(self, discussion_id: str, body: str) -> None:
        self.update_calls.append((discussion_id, body))
        self.bodies[discussion_id] = body


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_config():
    """Create a Config instance for testing."""
    return Config(
        database_url="https://project.supabase.co",
        database_key="service-key",
        github_token="ghp_test",
        github_repository="acme/docs",
        discussion_category_id="DIC_test",
    )


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch, tmp_path):
    """Keep tests independent of the developer's environment and config files."""
    for var in (
        "SUPABASE_URL",
        "SUPABASE_SERVICE_ROLE_KEY",
        "TROUBLESHOOTING_TABLE",
        "GITHUB_TOKEN",
        "GITHUB_REPOSITORY",
        "GITHUB_DISCUSSION_CATEGORY_ID",
        "DOCS_SITE_URL",
        "DOCS_ARTICLE_BASE_URL",
        "SYNC_MAX_PARALLEL",
        "SYNC_CONTENT_DIR",
        "TROUBLESHOOT_SYNC_CONFIG",
        "LOG_LEVEL",
    ):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))


def write_entry(
    directory: Path,
    name: str,
    body: str = "## Problem\n\nSomething broke.\n",
    database_id: str = "pseudo-1",
    title: str = "Something broke",
    extra: str = "",
) -> Path:
    """Write an article file with frontmatter and return its path."""
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / name
    path.write_text(
        "---\n"
        f"title: '{title}'\n"
        f"database_id: '{database_id}'\n"
        f"{extra}"
        "---\n\n"
        f"{body}",
        encoding="utf-8",
    )
    return path
