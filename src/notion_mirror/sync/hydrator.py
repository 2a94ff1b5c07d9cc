# src/notion_mirror/sync/hydrator.py

from __future__ import annotations

"""
Hydrator.

Turns a page of lightweight listing entries into full task records:
- one detail request per entry, restricted to the configured fields
  (resolved to stable property ids through the property map),
- map the response to a TaskRecord + relation edges,
- hand each result to `persist` before the next entry is fetched,
- pace after every successful record.

A single entry's remote failure is logged and skipped. Authentication
failures and anything raised by `persist` abort the batch.
"""

import logging
from collections.abc import Callable, Iterable, Sequence

from ..core.errors import AuthenticationError, RemoteError
from ..core.ports import NotionApi, RateLimiter
from .mapping import hydrate_page
from .models import HydratedTask, HydrationReport, ListingEntry, PropertyMap
from .rate_limit import NoopLimiter

logger = logging.getLogger(__name__)

PersistFn = Callable[[HydratedTask], int]


class Hydrator:
    def __init__(
        self,
        api: NotionApi,
        *,
        field_names: Sequence[str],
        title_property: str | None = None,
        limiter: RateLimiter | None = None,
    ) -> None:
        self._api = api
        self._field_names = list(field_names)
        self._title_property = title_property
        self._limiter = limiter or NoopLimiter()
        self._warned_missing: set[str] = set()

    def resolve_field_ids(self, property_map: PropertyMap) -> list[str]:
        """Allow-list of property ids for the detail request."""
        ids: list[str] = []
        for name in self._field_names:
            pid = property_map.get(name)
            if pid is None:
                if name not in self._warned_missing:
                    self._warned_missing.add(name)
                    logger.warning(
                        "Property %r is not in the property cache; not requesting it. "
                        "Invalidate the cache if the schema changed.",
                        name,
                    )
                continue
            if pid not in ids:
                ids.append(pid)
        return ids

    def hydrate_batch(
        self,
        entries: Iterable[ListingEntry],
        property_map: PropertyMap,
        persist: PersistFn,
    ) -> HydrationReport:
        report = HydrationReport()
        field_ids = self.resolve_field_ids(property_map)

        for entry in entries:
            report.requested += 1
            try:
                page = self._api.retrieve_page(entry.id, filter_properties=field_ids)
                hydrated = hydrate_page(
                    page,
                    title_property=self._title_property,
                    fallback_title=entry.title,
                )
            except AuthenticationError:
                raise
            except RemoteError as e:
                report.failed += 1
                report.failed_ids.append(entry.id)
                logger.warning("Hydrate failed for %s: %s", entry.id, e)
                continue

            report.links += persist(hydrated)
            report.hydrated += 1
            logger.debug(
                "Hydrated %s %r links=%d",
                hydrated.record.client_id,
                (hydrated.title or "Untitled")[:35],
                len(hydrated.links),
            )
            self._limiter.wait()

        return report
