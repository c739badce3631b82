"""Canonical markdown form and content checksums.

``normalize()`` parses an article body with mistune (GFM tables,
strikethrough, task lists and embedded components) and renders the AST back
to markdown with a fixed style, so that cosmetic source differences (setext
vs ATX headings, ``*`` vs ``-`` bullets, ``_`` vs ``*`` emphasis, fence
markers, prop quote style, trailing whitespace) collapse to one string.

``checksum()`` is the base64-encoded SHA-256 of that canonical string and is
the content identity used to decide whether an entry changed or already
exists in the database.
"""

from __future__ import annotations

import base64
import hashlib
import re
from typing import Any

import mistune
from mistune.renderers.markdown import MarkdownRenderer

from .components import components

_MARKDOWN_PLUGINS = ["table", "strikethrough", "task_lists"]

# Characters that would change meaning if emitted unescaped in plain text.
_ESCAPE_CHARS = re.compile(r"([\\`*_\[\]<>~|])")

# A paragraph line made only of these re-parses as a setext underline or a
# thematic break.
_UNDERLINE_LINE = re.compile(r"^( *)([-=][-= ]*)$", re.MULTILINE)

_TABLE_DELIMITERS = {
    None: "---",
    "left": ":---",
    "center": ":---:",
    "right": "---:",
}


def _escape_underlines(text: str) -> str:
    return _UNDERLINE_LINE.sub(r"\1\\\2", text)


class CanonicalRenderer(MarkdownRenderer):
    """Markdown renderer producing one fixed style for every construct.

    Extends mistune's markdown renderer with the plugin token types it does
    not know about (tables, strikethrough, task list items, components) and
    overrides the constructs where the stock renderer preserves the source
    style.
    """

    NAME = "canonical"

    def text(self, token: dict[str, Any], state: Any) -> str:
        return _ESCAPE_CHARS.sub(r"\\\1", token["raw"])

    def paragraph(self, token: dict[str, Any], state: Any) -> str:
        return _escape_underlines(self.render_children(token, state)) + "\n\n"

    def block_text(self, token: dict[str, Any], state: Any) -> str:
        return _escape_underlines(self.render_children(token, state)) + "\n"

    def linebreak(self, token: dict[str, Any], state: Any) -> str:
        # Backslash form survives trailing-whitespace stripping.
        return "\\\n"

    def block_code(self, token: dict[str, Any], state: Any) -> str:
        code = token["raw"]
        if code and not code.endswith("\n"):
            code += "\n"
        info = token.get("attrs", {}).get("info", "") or ""
        fence = "```"
        while fence in code:
            fence += "`"
        return f"{fence}{info}\n{code}{fence}\n\n"

    def strikethrough(self, token: dict[str, Any], state: Any) -> str:
        return "~~" + self.render_children(token, state) + "~~"

    # ------------------------------------------------------------------
    # Lists
    # ------------------------------------------------------------------

    def list(self, token: dict[str, Any], state: Any) -> str:
        """Render a list with ``-`` bullets or renumbered items.

        Task list items keep their checkbox after the bullet.  Continuation
        lines are indented to the bullet width only, so nested lists never
        turn into indented code.
        """
        attrs = token["attrs"]
        tight = token.get("tight", True)
        number = attrs.get("start", 1)

        items: list[str] = []
        for item in token["children"]:
            if attrs.get("ordered"):
                bullet = f"{number}. "
                number += 1
            else:
                bullet = "- "
            checkbox = ""
            if item["type"] == "task_list_item":
                checkbox = "[x] " if item["attrs"]["checked"] else "[ ] "
            items.append(
                self._list_item(bullet, checkbox, tight, item, state)
            )

        text = "".join(items)
        parent = token.get("parent")
        if parent is not None:
            return text if parent["tight"] else text + "\n"
        return text.rstrip("\n") + "\n\n"

    def _list_item(
        self,
        bullet: str,
        checkbox: str,
        tight: bool,
        item: dict[str, Any],
        state: Any,
    ) -> str:
        body = ""
        for child in item.get("children", []):
            if child["type"] == "blank_line":
                continue
            if child["type"] == "list":
                child["parent"] = {"tight": tight}
            body += self.render_token(child, state)

        lines = body.rstrip("\n").splitlines() or [""]
        out = bullet + checkbox + lines[0] + "\n"
        prefix = " " * len(bullet)
        for line in lines[1:]:
            out += (prefix + line if line else "") + "\n"
        if not tight:
            out += "\n"
        return out

    # ------------------------------------------------------------------
    # Tables
    # ------------------------------------------------------------------

    def table(self, token: dict[str, Any], state: Any) -> str:
        head, *sections = token["children"]
        aligns = [
            cell.get("attrs", {}).get("align") for cell in head["children"]
        ]
        lines = [
            self._table_row(head, state),
            "| "
            + " | ".join(_TABLE_DELIMITERS.get(a, "---") for a in aligns)
            + " |",
        ]
        for section in sections:
            for row in section.get("children", []):
                lines.append(self._table_row(row, state))
        return "\n".join(lines) + "\n\n"

    def _table_row(self, row: dict[str, Any], state: Any) -> str:
        cells = [
            self.render_children(cell, state).strip()
            for cell in row.get("children", [])
        ]
        return "| " + " | ".join(cells) + " |"

    # ------------------------------------------------------------------
    # Embedded components
    # ------------------------------------------------------------------

    def component(self, token: dict[str, Any], state: Any) -> str:
        attrs = token["attrs"]
        name = attrs["name"]
        opening = "<" + " ".join([name, *attrs["props"]])
        if attrs["self_closing"]:
            return opening + " />\n\n"
        body = self.render_children(token, state).strip("\n")
        if not body:
            return f"{opening}>\n</{name}>\n\n"
        return f"{opening}>\n\n{body}\n\n</{name}>\n\n"


def _create_parser() -> mistune.Markdown:
    markdown = mistune.create_markdown(
        renderer=CanonicalRenderer(), plugins=_MARKDOWN_PLUGINS
    )
    components(markdown)
    return markdown


def normalize(content: str) -> str:
    """Return the canonical markdown form of *content*.

    Raises:
        MalformedContentError: If an embedded component is unterminated.
    """
    text = content.lstrip("\ufeff")
    if not text.strip():
        return ""
    rendered: str = _create_parser()(text)  # type: ignore[assignment]
    lines = [line.rstrip() for line in rendered.strip("\n").split("\n")]
    return "\n".join(lines) + "\n"


def checksum(content: str) -> str:
    """Return the base64 SHA-256 digest of the canonical form of *content*."""
    digest = hashlib.sha256(normalize(content).encode("utf-8")).digest()
    return base64.b64encode(digest).decode("ascii")
