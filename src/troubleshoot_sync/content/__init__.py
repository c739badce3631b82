"""Article content: entry model, frontmatter handling, canonical form."""

from .entries import (
    EntryFrontmatter,
    EntryId,
    Pending,
    Persisted,
    TroubleshootingEntry,
    load_entries,
    load_entry,
    parse_entry_id,
)
from .frontmatter import write_database_id
from .normalizer import checksum, normalize

__all__ = [
    "EntryFrontmatter",
    "EntryId",
    "Pending",
    "Persisted",
    "TroubleshootingEntry",
    "checksum",
    "load_entries",
    "load_entry",
    "normalize",
    "parse_entry_id",
    "write_database_id",
]
