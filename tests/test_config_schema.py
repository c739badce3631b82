"""Tests for the config file schema and the build_config() factory."""

import pytest
from pydantic import ValidationError

from troubleshoot_sync.config_schema import (
    FileConfig,
    LoggingSection,
    SyncSection,
    build_config,
)


class TestFileConfig:
    def test_empty_produces_valid_defaults(self):
        config = FileConfig()
        assert config.database.url is None
        assert config.github.token is None
        assert config.sync.max_parallel is None
        assert config.logging.level == "INFO"

    def test_full_config(self):
        config = build_config(
            {
                "database": {"url": "https://p.supabase.co", "table": "t"},
                "github": {"repository": "acme/docs"},
                "sync": {"content_dir": "docs", "max_parallel": 4},
                "logging": {"level": "DEBUG", "file": "/tmp/sync.log"},
            }
        )
        assert config.database.table == "t"
        assert config.github.repository == "acme/docs"
        assert config.sync.max_parallel == 4
        assert config.logging.file == "/tmp/sync.log"

    def test_build_config_empty(self):
        assert build_config({}) == FileConfig()

    def test_frozen(self):
        config = FileConfig()
        with pytest.raises(ValidationError):
            config.logging = LoggingSection(level="DEBUG")


class TestSyncSection:
    @pytest.mark.parametrize("value", [0, 101])
    def test_max_parallel_bounds(self, value):
        with pytest.raises(ValidationError):
            SyncSection(max_parallel=value)

    def test_max_parallel_in_range(self):
        assert SyncSection(max_parallel=100).max_parallel == 100
