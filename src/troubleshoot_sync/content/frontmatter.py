"""YAML frontmatter splitting and in-place id write-back.

Article files start with a ``---`` delimited YAML block followed by the
markdown body.  ``write_database_id()`` edits only the ``database_id`` line
of that block so every other byte of the file survives the rewrite.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any

import yaml

from troubleshoot_sync.errors import MalformedContentError
from troubleshoot_sync.file_handler import (
    read_file_with_encoding,
    write_file_atomic,
)

logger = logging.getLogger(__name__)

DELIMITER = "---"
ID_FIELD = "database_id"

_ID_LINE = re.compile(rf"^{ID_FIELD}\s*:")


def _locate(text: str) -> tuple[list[str], int]:
    """Split *text* into lines and find the closing delimiter.

    Returns:
        ``(lines, close_index)`` with *lines* keeping their line endings.

    Raises:
        MalformedContentError: If the text has no complete frontmatter block.
    """
    lines = text.lstrip("\ufeff").splitlines(keepends=True)
    if not lines or lines[0].rstrip() != DELIMITER:
        raise MalformedContentError("missing frontmatter block")
    for index in range(1, len(lines)):
        if lines[index].rstrip() == DELIMITER:
            return lines, index
    raise MalformedContentError("unterminated frontmatter block")


def split_frontmatter(text: str) -> tuple[str, str]:
    """Return ``(frontmatter_yaml, body)`` for a document."""
    lines, close = _locate(text)
    return "".join(lines[1:close]), "".join(lines[close + 1 :])


def parse_frontmatter(text: str) -> tuple[dict[str, Any], str]:
    """Parse a document into its frontmatter mapping and body.

    Raises:
        MalformedContentError: If the block is missing, is not valid YAML,
            or is not a mapping.
    """
    raw, body = split_frontmatter(text)
    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as exc:
        raise MalformedContentError(f"invalid frontmatter YAML: {exc}") from exc
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise MalformedContentError(
            f"frontmatter must be a mapping, got {type(data).__name__}"
        )
    return data, body


def replace_database_id(text: str, new_id: str) -> str:
    """Return *text* with the frontmatter ``database_id`` set to *new_id*.

    The existing ``database_id`` line (and any indented continuation lines)
    is replaced; when the key is absent a new line is added just before the
    closing delimiter.  Nothing outside that line changes.
    """
    lines, close = _locate(text)
    newline = "\r\n" if lines[0].endswith("\r\n") else "\n"
    replacement = (
        yaml.safe_dump(
            {ID_FIELD: new_id}, default_flow_style=False, width=1000
        ).rstrip("\n")
        + newline
    )

    start = next(
        (i for i in range(1, close) if _ID_LINE.match(lines[i])), None
    )
    if start is None:
        lines.insert(close, replacement)
    else:
        end = start + 1
        while end < close and lines[end][:1] in (" ", "\t"):
            end += 1
        lines[start:end] = [replacement]

    updated = "".join(lines)
    if text.startswith("\ufeff"):
        updated = "\ufeff" + updated

    data, _ = parse_frontmatter(updated)
    if str(data.get(ID_FIELD)) != new_id:
        raise MalformedContentError(
            f"could not rewrite {ID_FIELD} to {new_id!r}"
        )
    return updated


def write_database_id(path: Path, new_id: str) -> None:
    """Persist *new_id* into the frontmatter of the file at *path*."""
    text, encoding = read_file_with_encoding(path)
    write_file_atomic(path, replace_database_id(text, new_id), encoding)
    logger.debug("Wrote %s=%s to %s", ID_FIELD, new_id, path)
