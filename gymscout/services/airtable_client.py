"""HTTP client for the Airtable REST API.

Airtable API docs: https://airtable.com/developers/web/api/introduction
All requests require a personal access token passed as a Bearer token.

Reads are simple: one request for the first page of a table,
no offset traversal and no retries.  ``fetch_table`` turns any failure into
an empty list, so callers treat "Airtable is down" and "the table is empty"
the same way.
"""

from __future__ import annotations

import logging
import threading
from typing import Any
from urllib.parse import quote

import httpx

from gymscout import config
from gymscout.records import RawRecord
from gymscout.services.cache import TTLCache
from gymscout.services.metrics import timed_call

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT_SECONDS = 15.0
# Airtable's page size limit
MAX_PAGE_SIZE = 100

_CK_TABLE = "table:"


def _is_row(row: Any) -> bool:
    return isinstance(row, dict) and isinstance(row.get("fields") or {}, dict)


class AirtableAPIError(Exception):
    """Raised when an Airtable call fails (transport error or non-2xx)."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class AirtableClient:
    """Thin wrapper around one Airtable base.

    An optional :class:`TTLCache` can be injected to serve repeated table
    reads from memory; without one, every ``fetch_table`` hits the API.
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_id: str | None = None,
        *,
        base_url: str | None = None,
        max_records: int | None = None,
        cache: TTLCache | None = None,
    ):
        self._api_key = api_key or config.AIRTABLE_API_KEY
        self._base_id = base_id or config.AIRTABLE_BASE_ID
        self._max_records = max_records or config.AIRTABLE_MAX_RECORDS
        root = (base_url or config.AIRTABLE_BASE_URL).rstrip("/")
        self._client = httpx.Client(
            base_url=f"{root}/{self._base_id}",
            headers={
                "Authorization": f"Bearer {self._api_key}",
                "Content-Type": "application/json",
            },
            timeout=REQUEST_TIMEOUT_SECONDS,
        )
        self._cache = cache

    # ── Internal helpers ─────────────────────────────────────────────

    def _request(
        self,
        method: str,
        table: str,
        *,
        params: dict[str, Any] | None = None,
        json_body: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Execute one HTTP request against *table*.  No retries."""
        path = "/" + quote(table, safe="")
        with timed_call("airtable", f"{method} {table}"):
            try:
                response = self._client.request(method, path, params=params, json=json_body)
            except httpx.HTTPError as exc:
                raise AirtableAPIError(
                    f"Airtable request to {table!r} failed: {type(exc).__name__}: {exc}"
                ) from exc

            if response.status_code >= 400:
                raise AirtableAPIError(
                    f"Airtable error {response.status_code}: {response.text}",
                    status_code=response.status_code,
                )
            try:
                return response.json()
            except ValueError as exc:
                raise AirtableAPIError(
                    f"Airtable returned a non-JSON body for {table!r}",
                    status_code=response.status_code,
                ) from exc

    # ── Public API methods ───────────────────────────────────────────

    def list_records(self, table: str, max_records: int | None = None) -> list[RawRecord]:
        """Return the first page of rows in *table*, in Airtable's order."""
        limit = max_records or self._max_records
        data = self._request(
            "GET",
            table,
            params={"maxRecords": limit, "pageSize": min(limit, MAX_PAGE_SIZE)},
        )
        rows = data.get("records", []) if isinstance(data, dict) else None
        if not isinstance(rows, list) or not all(_is_row(row) for row in rows):
            raise AirtableAPIError(f"Airtable returned an unexpected body for {table!r}")
        return [RawRecord.from_api(row) for row in rows]

    def fetch_table(self, table: str) -> list[RawRecord]:
        """Fetch all rows of *table*, degrading any failure to ``[]``."""
        cache_key = f"{_CK_TABLE}{table}"
        if self._cache is not None:
            cached = self._cache.get(cache_key)
            if cached is not None:
                logger.debug("Cache: hit for %s", cache_key)
                return cached

        try:
            records = self.list_records(table)
        except AirtableAPIError as exc:
            logger.error("Could not fetch Airtable table %r: %s", table, exc)
            return []

        logger.info("Fetched %d rows from Airtable table %r", len(records), table)
        if self._cache is not None and records:
            self._cache.put(cache_key, records)
        return records

    def create_record(self, table: str, fields: dict[str, Any]) -> RawRecord:
        """Append one row to *table*.

        ``typecast`` lets Airtable coerce strings into select options and
        dates.  Raises :class:`AirtableAPIError` with the upstream error
        text so callers can explain schema problems.
        """
        data = self._request(
            "POST",
            table,
            json_body={"fields": fields, "typecast": True},
        )
        if self._cache is not None:
            self._cache.invalidate(f"{_CK_TABLE}{table}")
        return RawRecord.from_api(data)

    def field_names(self, table: str) -> list[str]:
        """Sorted union of field names across the rows of *table*.

        Airtable omits empty cells, so a single row rarely shows every column.
        """
        names: set[str] = set()
        for record in self.list_records(table):
            names.update(record.fields)
        return sorted(names)

    def close(self) -> None:
        self._client.close()


# ── Module-level singleton (thread-safe) ────────────────────────────
_client: AirtableClient | None = None
_client_lock = threading.Lock()


def get_airtable_client() -> AirtableClient | None:
    """Return a shared AirtableClient, or ``None`` when not configured.

    Uses double-checked locking so that the lock is only acquired during
    the first initialisation.
    """
    global _client
    if not config.airtable_configured():
        return None
    if _client is None:
        with _client_lock:
            if _client is None:
                cache = None
                if config.AIRTABLE_CACHE_TTL_SECONDS > 0:
                    cache = TTLCache(config.AIRTABLE_CACHE_TTL_SECONDS)
                _client = AirtableClient(cache=cache)
    return _client
