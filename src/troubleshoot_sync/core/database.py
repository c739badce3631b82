import logging
import threading
from typing import Any

import requests

from ..config import Config
from ..errors import StoreError

logger = logging.getLogger(__name__)

STORE = "database"


class DatabaseClient:
    """Troubleshooting-entry table access through a PostgREST gateway.

    One ``requests.Session`` is kept per thread so the client can be shared
    by concurrent reconciliations running in worker threads.
    """

    ROW_COLUMNS = "id,checksum,github_id,github_url"

    def __init__(self, config: Config):
        self.config = config
        self._thread_local = threading.local()
        self.table_url = (
            f"{config.database_url}/rest/v1/{config.database_table}"
        )

    def _get_session(self) -> requests.Session:
        """Get or create a thread-local requests.Session."""
        if not hasattr(self._thread_local, "session"):
            self._thread_local.session = self._create_session()
        return self._thread_local.session

    def _create_session(self) -> requests.Session:
        session = requests.Session()
        session.headers.update(
            {
                "apikey": self.config.database_key,
                "Authorization": f"Bearer {self.config.database_key}",
                "Content-Type": "application/json",
                "Accept": "application/json",
            }
        )
        return session

    def _request(
        self,
        method: str,
        params: dict[str, str] | None = None,
        payload: dict[str, Any] | None = None,
        prefer: str | None = None,
    ) -> Any:
        """
        Make a REST request against the entries table.

        Raises:
            StoreError: On transport failure, non-2xx status or a body that
                is not JSON.
        """
        headers = {"Prefer": prefer} if prefer else None
        try:
            response = self._get_session().request(
                method,
                self.table_url,
                params=params,
                json=payload,
                headers=headers,
                timeout=(10, 60),
            )
            response.raise_for_status()
        except requests.HTTPError as exc:
            detail = exc.response.text if exc.response is not None else ""
            raise StoreError(
                STORE, f"{method} {self.config.database_table} failed: {exc} {detail}".rstrip()
            ) from exc
        except requests.RequestException as exc:
            raise StoreError(
                STORE, f"{method} {self.config.database_table} failed: {exc}"
            ) from exc

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise StoreError(
                STORE, f"{method} {self.config.database_table} returned invalid JSON"
            ) from exc

    def validate_connection(self) -> None:
        """
        Check that the gateway is reachable and the key can read the table.
        """
        self._request("GET", params={"select": "id", "limit": "1"})

    def select_by_checksum(self, checksum: str) -> dict[str, Any] | None:
        """
        Return the row whose content checksum is *checksum*, if any.
        """
        rows = self._request(
            "GET",
            params={
                "select": self.ROW_COLUMNS,
                "checksum": f"eq.{checksum}",
                "limit": "1",
            },
        )
        return rows[0] if rows else None

    def select_by_id(self, entry_id: str) -> dict[str, Any]:
        """
        Return the row with primary key *entry_id*.

        Raises:
            StoreError: If no such row exists.
        """
        rows = self._request(
            "GET",
            params={"select": self.ROW_COLUMNS, "id": f"eq.{entry_id}"},
        )
        if not rows:
            raise StoreError(STORE, f"no row with id {entry_id}")
        return rows[0]

    def insert(self, row: dict[str, Any]) -> str:
        """
        Insert a new entry row.

        Returns:
            The store-assigned id, as a string.
        """
        rows = self._request(
            "POST",
            params={"select": "id"},
            payload=row,
            prefer="return=representation",
        )
        if not rows or rows[0].get("id") is None:
            raise StoreError(STORE, "insert did not return an id")
        new_id = str(rows[0]["id"])
        logger.debug("Inserted row %s", new_id)
        return new_id

    def update(self, entry_id: str, fields: dict[str, Any]) -> None:
        """
        Update columns of an existing row in place.
        """
        self._request(
            "PATCH",
            params={"id": f"eq.{entry_id}"},
            payload=fields,
            prefer="return=minimal",
        )
