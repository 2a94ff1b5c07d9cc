# src/notion_mirror/notion/client.py

from __future__ import annotations

import logging
from typing import Any

import httpx

from ..core.errors import (
    AuthenticationError,
    ConfigError,
    MalformedResponseError,
    NotFoundError,
    RemoteError,
    TransientRemoteError,
)
from ..sync.mapping import plain_title
from ..sync.models import DatabaseSchema, DataSourceRef, ListingEntry, ListingPage, PropertyMap

logger = logging.getLogger(__name__)

_TRANSIENT_STATUSES = {429, 500, 502, 503, 504}
_AUTH_STATUSES = {401, 403}


def _retry_after_seconds(resp: httpx.Response) -> float | None:
    raw = resp.headers.get("Retry-After")
    if not raw:
        return None
    try:
        return max(0.0, float(raw))
    except ValueError:
        return None


def _error_from_response(resp: httpx.Response, context: str) -> RemoteError:
    """Map a non-2xx response onto the error taxonomy."""
    status = resp.status_code
    code: str | None = None
    message = resp.text.strip()
    try:
        body = resp.json()
        if isinstance(body, dict):
            code = body.get("code")
            message = str(body.get("message") or message)
    except ValueError:
        pass

    text = f"{context} failed ({status}{', ' + code if code else ''}): {message[:300]}"
    if status in _TRANSIENT_STATUSES:
        return TransientRemoteError(text, status=status, code=code, retry_after=_retry_after_seconds(resp))
    if status in _AUTH_STATUSES:
        return AuthenticationError(text, status=status, code=code)
    if status == 404:
        return NotFoundError(text, status=status, code=code)
    return RemoteError(text, status=status, code=code)


def _properties_map(obj: dict[str, Any]) -> PropertyMap:
    props = obj.get("properties") or {}
    if not isinstance(props, dict):
        raise MalformedResponseError("Schema 'properties' is not an object")
    out: PropertyMap = {}
    for name, definition in props.items():
        pid = definition.get("id") if isinstance(definition, dict) else None
        if isinstance(pid, str) and pid:
            out[str(name)] = pid
    return out


class NotionClient:
    """
    Thin Notion REST client for the three endpoints the mirror needs.

    It does not retry: the orchestrator owns the retry policy (same page,
    fixed delay), and the hydrator owns per-record failure handling. This
    client only turns transport and HTTP failures into the error taxonomy.
    """

    def __init__(
        self,
        api_key: str,
        *,
        notion_version: str = "2025-09-03",
        base_url: str = "https://api.notion.com/v1",
        connect_timeout_seconds: float = 5.0,
        read_timeout_seconds: float = 120.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        if not api_key or not api_key.strip():
            raise ConfigError("Notion API key is not set. Set NOTION_MIRROR_API_KEY in your .env.")

        timeout = httpx.Timeout(
            connect=connect_timeout_seconds,
            read=read_timeout_seconds,
            write=10.0,
            pool=connect_timeout_seconds,
        )
        self._http = httpx.Client(
            base_url=base_url.rstrip("/"),
            headers={
                "Authorization": f"Bearer {api_key.strip()}",
                "Notion-Version": notion_version,
                "Content-Type": "application/json",
            },
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_settings(cls, settings, *, transport: httpx.BaseTransport | None = None) -> NotionClient:
        return cls(
            settings.api_key or "",
            notion_version=settings.notion_version,
            base_url=settings.base_url,
            connect_timeout_seconds=settings.connect_timeout_seconds,
            read_timeout_seconds=settings.read_timeout_seconds,
            transport=transport,
        )

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> NotionClient:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    # ---- transport ----

    def _request(self, method: str, path: str, *, context: str, **kwargs: Any) -> dict[str, Any]:
        try:
            resp = self._http.request(method, path, **kwargs)
        except httpx.TimeoutException as e:
            raise TransientRemoteError(f"{context} timed out: {e}") from e
        except httpx.TransportError as e:
            raise TransientRemoteError(f"{context} connection error: {e}") from e

        if not resp.is_success:
            raise _error_from_response(resp, context)

        try:
            data = resp.json()
        except ValueError as e:
            raise MalformedResponseError(f"{context} returned non-JSON body", status=resp.status_code) from e
        if not isinstance(data, dict):
            raise MalformedResponseError(f"{context} returned {type(data).__name__}, expected object")
        return data

    # ---- endpoints ----

    def query_data_source(
        self,
        data_source_id: str,
        *,
        page_size: int,
        start_cursor: str | None = None,
        title_property: str | None = None,
    ) -> ListingPage:
        """One listing page, most recently edited first."""
        body: dict[str, Any] = {
            "page_size": int(page_size),
            "sorts": [{"timestamp": "last_edited_time", "direction": "descending"}],
        }
        if start_cursor:
            body["start_cursor"] = start_cursor

        data = self._request(
            "POST",
            f"/data_sources/{data_source_id}/query",
            context="Data source query",
            json=body,
        )

        results = data.get("results")
        if not isinstance(results, list):
            raise MalformedResponseError("Data source query response has no 'results' list")

        entries: list[ListingEntry] = []
        for item in results:
            if not isinstance(item, dict) or not isinstance(item.get("id"), str):
                raise MalformedResponseError("Data source query returned a result without 'id'")
            props = item.get("properties")
            title = None
            if title_property and isinstance(props, dict):
                title = plain_title(props.get(title_property))
            entries.append(
                ListingEntry(id=item["id"], title=title, last_edited_time=item.get("last_edited_time"))
            )

        next_cursor = data.get("next_cursor")
        return ListingPage(
            entries=entries,
            has_more=data.get("has_more") is True,
            next_cursor=next_cursor if isinstance(next_cursor, str) and next_cursor else None,
        )

    def retrieve_page(self, page_id: str, *, filter_properties: list[str] | None = None) -> dict[str, Any]:
        params = [("filter_properties", pid) for pid in (filter_properties or [])]
        return self._request("GET", f"/pages/{page_id}", context=f"Page {page_id}", params=params)

    def retrieve_schema(self, database_id: str, *, data_source_id: str | None = None) -> DatabaseSchema:
        """
        Database schema: property name -> id and the declared data sources.

        Newer API versions move properties onto the data source; in that case
        they are read from `data_source_id`, or from the first declared source
        when none is given.
        """
        db = self._request("GET", f"/databases/{database_id}", context="Database schema")

        sources: list[DataSourceRef] = []
        for ds in db.get("data_sources") or []:
            if isinstance(ds, dict) and isinstance(ds.get("id"), str):
                sources.append(DataSourceRef(id=ds["id"], name=str(ds.get("name") or "")))

        properties = _properties_map(db)
        source_id = data_source_id or (sources[0].id if sources else None)
        if not properties and source_id:
            ds = self._request("GET", f"/data_sources/{source_id}", context="Data source schema")
            properties = _properties_map(ds)

        logger.debug("Schema fetched database=%s properties=%d sources=%d", database_id, len(properties), len(sources))
        return DatabaseSchema(properties=properties, data_sources=sources)
