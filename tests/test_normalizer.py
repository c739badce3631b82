"""Tests for canonical markdown normalization and checksums."""

import pytest

from troubleshoot_sync.content.components import split_props
from troubleshoot_sync.content.normalizer import checksum, normalize
from troubleshoot_sync.errors import MalformedContentError

SAMPLE = """\
# Connection refused

When the pooler is *unreachable*, check the following:

- The project is not paused
- The password is correct
  - Including special characters

1. Open the dashboard
2. Restart the project

```sql
select 1;
```

| Port | Mode |
| --- | --- |
| 5432 | session |
| 6543 | transaction |

<Admonition type="caution">

Do not share the **service** key.

</Admonition>
"""


class TestNormalize:
    def test_setext_and_atx_headings_match(self):
        assert normalize("Title\n=====\n\nBody\n") == normalize(
            "# Title\n\nBody\n"
        )

    def test_bullet_markers_match(self):
        assert normalize("* one\n* two\n") == normalize("- one\n- two\n")
        assert normalize("+ one\n+ two\n") == normalize("- one\n- two\n")

    def test_emphasis_markers_match(self):
        assert normalize("an _important_ note\n") == normalize(
            "an *important* note\n"
        )
        assert normalize("a __bold__ word\n") == normalize(
            "a **bold** word\n"
        )

    def test_trailing_whitespace_ignored(self):
        assert normalize("Some text   \n\nMore\t\n") == normalize(
            "Some text\n\nMore\n"
        )

    def test_fence_markers_match(self):
        assert normalize("~~~py\nx = 1\n~~~\n") == normalize(
            "```py\nx = 1\n```\n"
        )

    def test_ordered_list_renumbered(self):
        assert normalize("1. a\n1. b\n1. c\n") == normalize(
            "1. a\n2. b\n3. c\n"
        )

    def test_table_padding_ignored(self):
        compact = "|a|b|\n|-|-|\n|1|2|\n"
        padded = "| a   | b   |\n| --- | --- |\n| 1   | 2   |\n"
        assert normalize(compact) == normalize(padded)

    def test_component_prop_quote_style_ignored(self):
        single = "<Admonition type='caution'>\n\nHi\n\n</Admonition>\n"
        double = '<Admonition type="caution">\n\nHi\n\n</Admonition>\n'
        assert normalize(single) == normalize(double)

    def test_component_body_is_normalized(self):
        a = "<Admonition>\n\nan _x_\n\n</Admonition>\n"
        b = "<Admonition>\n\nan *x*\n\n</Admonition>\n"
        assert normalize(a) == normalize(b)

    def test_self_closing_component(self):
        out = normalize('<Image src="/img/a.png" />\n\nAfter\n')
        assert '<Image src="/img/a.png" />' in out
        assert "After" in out

    def test_different_text_differs(self):
        assert normalize("Restart the project.\n") != normalize(
            "Pause the project.\n"
        )

    @pytest.mark.parametrize(
        "source",
        [
            SAMPLE,
            "a line\n\\=\\=\\=\n",
            "a\n\\---\n",
            "\\---\n",
            "- item\n  \\---\n",
        ],
        ids=["sample", "escaped-equals", "escaped-dashes", "leading-dashes", "list-item"],
    )
    def test_idempotent(self, source):
        once = normalize(source)
        assert normalize(once) == once

    def test_escaped_underline_stays_paragraph(self):
        out = normalize("a line\n\\=\\=\\=\n")
        assert not out.startswith("#")
        assert out == "a line\n\\===\n"

    def test_ends_with_single_newline(self):
        out = normalize(SAMPLE)
        assert out.endswith("\n")
        assert not out.endswith("\n\n")

    def test_empty_input(self):
        assert normalize("") == ""
        assert normalize("  \n\n") == ""

    def test_byte_order_mark_ignored(self):
        assert normalize("\ufeff# Title\n") == normalize("# Title\n")

    def test_unclosed_component_raises(self):
        with pytest.raises(MalformedContentError, match="never closed"):
            normalize("<Admonition type=\"note\">\n\nBody\n")

    def test_unterminated_tag_raises(self):
        with pytest.raises(MalformedContentError, match="Unterminated"):
            normalize('<Admonition type="note"\n\nBody\n')


class TestChecksum:
    def test_base64_sha256_length(self):
        assert len(checksum(SAMPLE)) == 44

    def test_deterministic(self):
        assert checksum(SAMPLE) == checksum(SAMPLE)

    def test_cosmetic_change_keeps_checksum(self):
        restyled = SAMPLE.replace("*unreachable*", "_unreachable_").replace(
            "- The", "* The"
        )
        assert checksum(restyled) == checksum(SAMPLE)

    def test_content_change_changes_checksum(self):
        assert checksum(SAMPLE) != checksum(SAMPLE.replace("5432", "5433"))


class TestSplitProps:
    def test_splits_on_whitespace(self):
        assert split_props('type="note" title="Hi"') == [
            'type="note"',
            'title="Hi"',
        ]

    def test_keeps_quoted_spaces_and_expressions(self):
        assert split_props('title="a b" items={[1, 2]}') == [
            'title="a b"',
            "items={[1, 2]}",
        ]

    def test_rewrites_single_quotes(self):
        assert split_props("type='note'") == ['type="note"']
