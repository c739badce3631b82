"""Runtime configuration for a sync run.

Settings come from CLI args, environment variables, a ``.env`` file and
YAML config file fallbacks.

Precedence (highest to lowest):
    CLI args > Environment variables > .env file > YAML config > Built-in defaults

Environment variables:
    SUPABASE_URL: Database project URL (required)
    SUPABASE_SERVICE_ROLE_KEY: Service role key for the REST gateway (required)
    TROUBLESHOOTING_TABLE: Table name (optional, default: troubleshooting_entries)
    GITHUB_TOKEN: Token with discussion write access (required)
    GITHUB_REPOSITORY: Repository as owner/name (required)
    GITHUB_DISCUSSION_CATEGORY_ID: Discussion category node id (required)
    DOCS_SITE_URL: Origin for root-relative links (optional)
    DOCS_ARTICLE_BASE_URL: URL prefix of published articles (optional)
    SYNC_CONTENT_DIR: Directory of article files (optional)
    SYNC_MAX_PARALLEL: Max concurrent reconciliations, 1-100 (optional, default: unbounded)
"""

import logging
import os
from dataclasses import dataclass
from urllib.parse import urlparse

from .config_schema import FileConfig
from .errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_TABLE = "troubleshooting_entries"
DEFAULT_SITE_URL = "https://supabase.com"
DEFAULT_ARTICLE_BASE_URL = "https://supabase.com/docs/guides/troubleshooting"
DEFAULT_CONTENT_DIR = "content/troubleshooting"


@dataclass
class Config:
    database_url: str
    database_key: str
    github_token: str
    github_repository: str
    discussion_category_id: str
    database_table: str = DEFAULT_TABLE
    site_url: str = DEFAULT_SITE_URL
    article_base_url: str = DEFAULT_ARTICLE_BASE_URL
    content_dir: str = DEFAULT_CONTENT_DIR
    max_parallel: int | None = None
    debug: bool = False

    @property
    def repository_owner(self) -> str:
        return self.github_repository.split("/", 1)[0]

    @property
    def repository_name(self) -> str:
        return self.github_repository.split("/", 1)[1]


def _validate_url(name: str, value: str) -> str:
    value = value.strip()
    if not value.startswith(("http://", "https://")):
        raise ConfigurationError(
            f"Invalid {name} '{value}': must start with http:// or https://"
        )
    if not urlparse(value).hostname:
        raise ConfigurationError(
            f"Invalid {name} '{value}': URL must include a hostname"
        )
    return value.removesuffix("/")


def validate_config(config: Config) -> None:
    """Validate configuration values, normalising URLs in place.

    Raises:
        ConfigurationError: If a URL is malformed or the repository is not
            in ``owner/name`` form.
    """
    config.database_url = _validate_url("SUPABASE_URL", config.database_url)
    config.site_url = _validate_url("DOCS_SITE_URL", config.site_url)
    config.article_base_url = _validate_url(
        "DOCS_ARTICLE_BASE_URL", config.article_base_url
    )

    owner, _, name = config.github_repository.strip().partition("/")
    if not owner or not name or "/" in name:
        raise ConfigurationError(
            f"Invalid GITHUB_REPOSITORY '{config.github_repository}': "
            "expected owner/name"
        )
    config.github_repository = f"{owner}/{name}"

    if config.max_parallel is not None and not (
        1 <= config.max_parallel <= 100
    ):
        raise ConfigurationError(
            f"Invalid max_parallel '{config.max_parallel}': "
            "must be a number between 1 and 100"
        )


def _require(name: str, *values: str | None) -> str:
    for value in values:
        if value and value.strip():
            return value.strip()
    raise ConfigurationError(
        f"{name} not found. Set the {name} environment variable "
        "or add it to .troubleshoot_sync/config.yml."
    )


def _optional(default: str, *values: str | None) -> str:
    for value in values:
        if value and value.strip():
            return value.strip()
    return default


def load_config(
    overrides: dict | None = None,
    file_config: FileConfig | None = None,
) -> Config:
    """Load configuration with unified precedence.

    The caller is responsible for calling ``load_dotenv()`` first so that
    ``.env`` values are visible through ``os.getenv()``.

    Args:
        overrides: CLI values (``content_dir``, ``max_parallel``, ``debug``).
        file_config: Parsed YAML config used as fallback.

    Returns:
        Validated Config instance.

    Raises:
        ConfigurationError: If required settings are missing or invalid.
    """
    cli = overrides or {}
    fc = file_config or FileConfig()

    max_parallel: int | None
    max_parallel_raw = os.getenv("SYNC_MAX_PARALLEL")
    if cli.get("max_parallel") is not None:
        max_parallel = int(cli["max_parallel"])
    elif max_parallel_raw:
        try:
            max_parallel = int(max_parallel_raw)
        except ValueError:
            raise ConfigurationError(
                f"Invalid SYNC_MAX_PARALLEL '{max_parallel_raw}': "
                "must be a number between 1 and 100"
            ) from None
    else:
        max_parallel = fc.sync.max_parallel

    config = Config(
        database_url=_require(
            "SUPABASE_URL", os.getenv("SUPABASE_URL"), fc.database.url
        ),
        database_key=_require(
            "SUPABASE_SERVICE_ROLE_KEY",
            os.getenv("SUPABASE_SERVICE_ROLE_KEY"),
            fc.database.service_key,
        ),
        github_token=_require(
            "GITHUB_TOKEN", os.getenv("GITHUB_TOKEN"), fc.github.token
        ),
        github_repository=_require(
            "GITHUB_REPOSITORY",
            os.getenv("GITHUB_REPOSITORY"),
            fc.github.repository,
        ),
        discussion_category_id=_require(
            "GITHUB_DISCUSSION_CATEGORY_ID",
            os.getenv("GITHUB_DISCUSSION_CATEGORY_ID"),
            fc.github.discussion_category_id,
        ),
        database_table=_optional(
            DEFAULT_TABLE,
            os.getenv("TROUBLESHOOTING_TABLE"),
            fc.database.table,
        ),
        site_url=_optional(
            DEFAULT_SITE_URL, os.getenv("DOCS_SITE_URL"), fc.sync.site_url
        ),
        article_base_url=_optional(
            DEFAULT_ARTICLE_BASE_URL,
            os.getenv("DOCS_ARTICLE_BASE_URL"),
            fc.sync.article_base_url,
        ),
        content_dir=_optional(
            DEFAULT_CONTENT_DIR,
            cli.get("content_dir"),
            os.getenv("SYNC_CONTENT_DIR"),
            fc.sync.content_dir,
        ),
        max_parallel=max_parallel,
        debug=bool(cli.get("debug", False)),
    )

    validate_config(config)
    logger.debug(
        "Config: database=%s table=%s repository=%s",
        config.database_url,
        config.database_table,
        config.github_repository,
    )
    return config
