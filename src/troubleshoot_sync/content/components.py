"""Embedded UI component syntax for mistune.

Articles may contain JSX-style components::

    <Admonition type="caution">

    Body text in **markdown**.

    </Admonition>

The ``components`` plugin turns each block-level component into a
``component`` token whose children are the parsed markdown between the
tags.  Self-closing tags (``<Image src="/img.png" />``) become leaf tokens.
Component tags that appear inline are left to mistune's inline HTML rule.

A component whose opening tag is never terminated, or which is never
closed, raises ``MalformedContentError``.
"""

from __future__ import annotations

import re
import textwrap
from typing import Any

from troubleshoot_sync.errors import MalformedContentError

COMPONENT_START = (
    r"^ {0,3}<(?P<component_name>[A-Z][A-Za-z0-9_.]*)(?=[\s/>])"
)

_QUOTES = "\"'`"
_SINGLE_QUOTED_PROP = re.compile(r"^([\w:.-]+)='([^'\"]*)'$")


def _scan_open_tag(src: str, pos: int, name: str) -> tuple[int, bool, str]:
    """Find the ``>`` that terminates an opening tag.

    Quotes and ``{...}`` expressions are skipped so that ``>`` inside an
    attribute value does not end the tag.

    Returns:
        ``(end, self_closing, raw_props)`` where *end* is the index just
        past ``>``.
    """
    quote: str | None = None
    depth = 0
    for index in range(pos, len(src)):
        char = src[index]
        if quote:
            if char == quote:
                quote = None
        elif char in _QUOTES:
            quote = char
        elif char == "{":
            depth += 1
        elif char == "}":
            depth = max(depth - 1, 0)
        elif char == ">" and depth == 0:
            raw = src[pos:index].strip()
            self_closing = raw.endswith("/")
            if self_closing:
                raw = raw[:-1].rstrip()
            return index + 1, self_closing, raw
    raise MalformedContentError(f"Unterminated <{name}> tag")


def _find_closing_tag(src: str, pos: int, name: str) -> tuple[int, int]:
    """Locate the ``</name>`` matching an already-opened component.

    Nested components with the same name are counted so that the outermost
    pair is matched.

    Returns:
        ``(start, end)`` offsets of the closing tag.
    """
    tag = re.compile(r"<(/?)" + re.escape(name) + r"(?=[\s/>])")
    depth = 1
    while True:
        m = tag.search(src, pos)
        if m is None:
            raise MalformedContentError(f"<{name}> is never closed")
        if m.group(1):
            end = src.find(">", m.end())
            if end == -1:
                raise MalformedContentError(f"Unterminated </{name}> tag")
            depth -= 1
            if depth == 0:
                return m.start(), end + 1
            pos = end + 1
        else:
            pos, self_closing, _ = _scan_open_tag(src, m.end(), name)
            if not self_closing:
                depth += 1


def split_props(raw: str) -> list[str]:
    """Split a raw attribute string into individual props.

    Whitespace separates props except inside quotes or ``{...}``
    expressions.  Single-quoted values are rewritten with double quotes so
    that quote style does not affect the canonical form.
    """
    props: list[str] = []
    current: list[str] = []
    quote: str | None = None
    depth = 0
    for char in raw:
        if quote:
            current.append(char)
            if char == quote:
                quote = None
            continue
        if char in _QUOTES:
            quote = char
        elif char == "{":
            depth += 1
        elif char == "}":
            depth = max(depth - 1, 0)
        elif char.isspace() and depth == 0:
            if current:
                props.append("".join(current))
                current = []
            continue
        current.append(char)
    if current:
        props.append("".join(current))
    return [_SINGLE_QUOTED_PROP.sub(r'\1="\2"', prop) for prop in props]


def _resume_at(src: str, pos: int) -> int:
    """Return where block parsing continues after a component ends at *pos*.

    Skips the rest of the line unless it carries more text, in which case
    that text is left for the following block rules.
    """
    end = src.find("\n", pos)
    if end == -1:
        end = len(src)
    if src[pos:end].strip():
        return pos
    return min(end + 1, len(src))


def parse_component(block: Any, m: re.Match, state: Any) -> int:
    """Block rule: parse one component starting at match *m*."""
    name = m.group("component_name")
    src = state.src
    tag_end, self_closing, raw_props = _scan_open_tag(src, m.end(), name)
    attrs = {
        "name": name,
        "props": split_props(raw_props),
        "self_closing": self_closing,
    }

    if self_closing:
        state.append_token({"type": "component", "attrs": attrs})
        return _resume_at(src, tag_end)

    close_start, close_end = _find_closing_tag(src, tag_end, name)
    inner = textwrap.dedent(src[tag_end:close_start]).strip("\n")

    child = state.child_state(inner + "\n" if inner else "")
    block.parse(child)
    state.append_token(
        {"type": "component", "attrs": attrs, "children": child.tokens}
    )
    return _resume_at(src, close_end)


def components(md: Any) -> None:
    """mistune plugin registering the block-level component rule."""
    md.block.register(
        "component", COMPONENT_START, parse_component, before="raw_html"
    )
