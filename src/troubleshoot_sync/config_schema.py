"""Configuration file schema for troubleshoot_sync.

Pydantic models for the YAML config file, one section per concern.  Every
field is optional so that environment variables and CLI args can supply
values instead; ``load_config()`` applies precedence and validation.

Example ``.troubleshoot_sync/config.yml``::

    database:
      url: https://project.supabase.co
      service_key: ${SUPABASE_SERVICE_ROLE_KEY}
    github:
      repository: acme/docs
      discussion_category_id: DIC_kwDOAbc123
    sync:
      content_dir: content/troubleshooting
      max_parallel: 8
    logging:
      level: INFO
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class DatabaseSection(BaseModel):
    """PostgREST gateway settings."""

    url: str | None = Field(default=None, description="Project URL")
    service_key: str | None = Field(
        default=None, description="Service role API key"
    )
    table: str | None = Field(
        default=None, description="Table holding troubleshooting entries"
    )

    model_config = {"frozen": True}


class GitHubSection(BaseModel):
    """GitHub Discussions settings."""

    token: str | None = Field(default=None, description="API token")
    repository: str | None = Field(
        default=None, description="Repository as owner/name"
    )
    discussion_category_id: str | None = Field(
        default=None, description="Node id of the discussion category"
    )

    model_config = {"frozen": True}


class SyncSection(BaseModel):
    """Reconciliation settings."""

    content_dir: str | None = Field(
        default=None, description="Directory holding article files"
    )
    site_url: str | None = Field(
        default=None, description="Origin used to absolutize links"
    )
    article_base_url: str | None = Field(
        default=None, description="URL prefix of published articles"
    )
    max_parallel: int | None = Field(
        default=None,
        ge=1,
        le=100,
        description="Maximum concurrent reconciliations (1-100)",
    )

    model_config = {"frozen": True}


class LoggingSection(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", description="Log level")
    file: str | None = Field(default=None, description="Log file path")

    model_config = {"frozen": True}


class FileConfig(BaseModel):
    """Top-level config file model.  ``FileConfig()`` is always valid."""

    database: DatabaseSection = Field(default_factory=DatabaseSection)
    github: GitHubSection = Field(default_factory=GitHubSection)
    sync: SyncSection = Field(default_factory=SyncSection)
    logging: LoggingSection = Field(default_factory=LoggingSection)

    model_config = {"frozen": True}


def build_config(raw_data: dict) -> FileConfig:
    """Validate the merged dict returned by ``load_hierarchical_config()``."""
    if not raw_data:
        return FileConfig()
    return FileConfig(**raw_data)
