"""Tests for file_handler module: encoding-aware reads and atomic writes."""

import os
import stat

import pytest

from troubleshoot_sync.file_handler import (
    read_file_with_encoding,
    write_file_atomic,
)


class TestReadFileWithEncoding:
    def test_utf8(self, tmp_path):
        f = tmp_path / "a.md"
        f.write_text("héllo wörld", encoding="utf-8")
        text, encoding = read_file_with_encoding(f)
        assert text == "héllo wörld"
        assert encoding == "utf-8"

    def test_empty_file(self, tmp_path):
        f = tmp_path / "a.md"
        f.write_bytes(b"")
        assert read_file_with_encoding(f) == ("", "utf-8")

    def test_non_utf8_detected(self, tmp_path):
        f = tmp_path / "a.md"
        content = "Le problème est résolu après le redémarrage du serveur.\n" * 5
        f.write_bytes(content.encode("latin-1"))

        text, encoding = read_file_with_encoding(f)

        assert encoding != "utf-8"
        assert "redémarrage" in text


class TestWriteFileAtomic:
    def test_writes_content(self, tmp_path):
        f = tmp_path / "a.md"
        written = write_file_atomic(f, "hello\n")
        assert f.read_text(encoding="utf-8") == "hello\n"
        assert written == 6

    def test_replaces_existing_and_keeps_mode(self, tmp_path):
        f = tmp_path / "a.md"
        f.write_text("old", encoding="utf-8")
        os.chmod(f, 0o640)

        write_file_atomic(f, "new")

        assert f.read_text(encoding="utf-8") == "new"
        assert stat.S_IMODE(f.stat().st_mode) == 0o640

    def test_failed_encode_leaves_original(self, tmp_path):
        f = tmp_path / "a.md"
        f.write_text("old", encoding="utf-8")

        with pytest.raises(UnicodeEncodeError):
            write_file_atomic(f, "ünïcode", encoding="ascii")

        assert f.read_text(encoding="utf-8") == "old"
        assert [p.name for p in tmp_path.iterdir()] == ["a.md"]
