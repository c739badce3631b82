"""Store clients and async helpers shared by the sync engine and CLI."""

from .async_utils import run_sync
from .database import DatabaseClient
from .discussions import DiscussionClient

__all__ = ["DatabaseClient", "DiscussionClient", "run_sync"]
