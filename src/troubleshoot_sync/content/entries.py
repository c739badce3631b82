"""Troubleshooting entries: data model and loading from disk.

An entry is one article file.  Its frontmatter carries the metadata mirrored
into the database; ``database_id`` is either a store-assigned id or a
``pseudo-`` placeholder written by authors before the first sync.  The
placeholder convention is decoded once, in ``parse_entry_id()``, into the
``Pending`` / ``Persisted`` variants used everywhere else.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

from troubleshoot_sync.errors import ConfigurationError, MalformedContentError
from troubleshoot_sync.file_handler import read_file_with_encoding

from .frontmatter import parse_frontmatter

logger = logging.getLogger(__name__)

PSEUDO_ID_PREFIX = "pseudo-"
ENTRY_SUFFIXES = (".md", ".mdx")


# ---------------------------------------------------------------------------
# Identity
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Pending:
    """No confirmed database row exists yet."""

    placeholder: str


@dataclass(frozen=True)
class Persisted:
    """The entry has a database row with this id."""

    id: str


EntryId = Pending | Persisted


def parse_entry_id(raw: str) -> EntryId:
    """Decode a frontmatter ``database_id`` into its variant."""
    if raw.startswith(PSEUDO_ID_PREFIX):
        return Pending(raw)
    return Persisted(raw)


# ---------------------------------------------------------------------------
# Frontmatter schema
# ---------------------------------------------------------------------------


class ApiReferences(BaseModel):
    """API surfaces an article relates to."""

    sdk: list[str] = Field(default_factory=list)
    management_api: list[str] = Field(default_factory=list)
    cli: list[str] = Field(default_factory=list)

    model_config = {"frozen": True}


class ErrorReference(BaseModel):
    """An error an article helps to resolve."""

    http_status_code: int | None = None
    code: str | None = None
    message: str | None = None

    model_config = {"frozen": True}


class EntryFrontmatter(BaseModel):
    """Validated frontmatter of a troubleshooting article.

    Attributes:
        title: Article title, also used as the discussion title.
        database_id: Store id, or a ``pseudo-`` placeholder.
        github_url: Discussion created before the database row existed.
        api: Related API surfaces.
        keywords: Search keywords.
        topics: Product areas.
        errors: Error codes or messages the article addresses.
        date_created: Authoring date, used as the row's creation date.
    """

    title: str = Field(min_length=1)
    database_id: str = Field(min_length=1)
    github_url: str | None = None
    api: ApiReferences | None = None
    keywords: list[str] = Field(default_factory=list)
    topics: list[str] = Field(default_factory=list)
    errors: list[ErrorReference] = Field(default_factory=list)
    date_created: date | None = None

    model_config = {"frozen": True, "extra": "ignore"}


# ---------------------------------------------------------------------------
# Entry
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TroubleshootingEntry:
    """One local article: its file, validated frontmatter and body."""

    file_path: Path
    frontmatter: EntryFrontmatter
    content: str

    @property
    def entry_id(self) -> EntryId:
        return parse_entry_id(self.frontmatter.database_id)

    @property
    def slug(self) -> str:
        return self.file_path.stem

    @property
    def title(self) -> str:
        return self.frontmatter.title


def load_entry(path: Path) -> TroubleshootingEntry:
    """Read and validate one article file.

    Raises:
        MalformedContentError: If the frontmatter is missing, unparsable or
            fails validation.
    """
    text, _ = read_file_with_encoding(path)
    data, body = parse_frontmatter(text)
    if isinstance(data.get("database_id"), int):
        data["database_id"] = str(data["database_id"])
    try:
        frontmatter = EntryFrontmatter.model_validate(data)
    except ValidationError as exc:
        raise MalformedContentError(
            f"invalid frontmatter: {exc.error_count()} error(s): "
            + "; ".join(
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
                for err in exc.errors()
            )
        ) from exc
    return TroubleshootingEntry(
        file_path=path, frontmatter=frontmatter, content=body
    )


def discover_entry_files(root: Path) -> list[Path]:
    """Return article files under *root*, sorted for stable output.

    Raises:
        ConfigurationError: If *root* is not a directory.
    """
    if not root.is_dir():
        raise ConfigurationError(f"Content directory not found: {root}")
    return sorted(
        p
        for p in root.rglob("*")
        if p.is_file()
        and p.suffix in ENTRY_SUFFIXES
        and not p.name.startswith((".", "_"))
    )


def load_entries(
    root: Path,
) -> tuple[list[TroubleshootingEntry], list[tuple[Path, Exception]]]:
    """Load every article under *root*.

    A file that fails to load does not stop the others.

    Returns:
        ``(entries, failures)`` where *failures* pairs each unreadable file
        with its error.
    """
    entries: list[TroubleshootingEntry] = []
    failures: list[tuple[Path, Exception]] = []
    for path in discover_entry_files(root):
        try:
            entries.append(load_entry(path))
        except (MalformedContentError, OSError) as exc:
            logger.error("Failed to load %s: %s", path, exc)
            failures.append((path, exc))
    logger.info(
        "Loaded %d entries from %s (%d failed)",
        len(entries),
        root,
        len(failures),
    )
    return entries, failures
