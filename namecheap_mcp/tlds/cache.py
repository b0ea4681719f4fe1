"""In-memory TLD catalog cache.

Namecheap only offers the TLD catalog as a single bulk call
(``namecheap.domains.getTldList``) and the catalog rarely changes, so the
cache keeps one immutable :class:`CatalogSnapshot` and answers every
filtered, sorted, paginated query from it.

Refresh rules:

* The snapshot is fetched lazily on the first query and replaced wholesale
  once it is older than ``ttl`` seconds.
* Concurrent queries that find the snapshot stale share one in-flight
  fetch instead of each starting their own.
* If a refresh fails while an older snapshot exists, the stale snapshot is
  served and the failure is logged.  With no snapshot at all the query
  fails with :class:`~namecheap_mcp.errors.UpstreamUnavailableError`.
"""

from __future__ import annotations

import asyncio
import logging
import math
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional, Protocol, Sequence, Tuple

from namecheap_mcp.constants import TLD_CACHE_TTL, TLD_DEFAULT_PAGE_SIZE, TLD_MAX_PAGE_SIZE
from namecheap_mcp.errors import UpstreamUnavailableError
from namecheap_mcp.namecheap.models import TldRecord

logger = logging.getLogger(__name__)

SORT_BY_NAME = "name"
SORT_BY_POPULARITY = "popularity"
SORT_FIELDS = (SORT_BY_NAME, SORT_BY_POPULARITY)


class CatalogSource(Protocol):
    """Anything that can fetch the complete TLD catalog in one call."""

    async def fetch_all_tlds(self) -> Sequence[TldRecord]: ...


# ── Value types ─────────────────────────────────────────────────────────


@dataclass(frozen=True)
class CatalogSnapshot:
    """An immutable, timestamped copy of the full catalog."""

    records: Tuple[TldRecord, ...]
    fetched_at: float

    def age(self, now: float) -> float:
        return now - self.fetched_at

    def __len__(self) -> int:
        return len(self.records)


@dataclass(frozen=True)
class TldQuery:
    """One query against the cache; ranges are normalised, not rejected."""

    search: Optional[str] = None
    registerable: Optional[bool] = None
    sort_by: str = SORT_BY_NAME
    page: Optional[int] = 1
    page_size: Optional[int] = None


@dataclass(frozen=True)
class TldPage:
    """One page of query results plus pagination metadata."""

    items: Tuple[TldRecord, ...]
    page: int
    page_size: int
    total_count: int
    total_pages: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "items": [r.to_dict() for r in self.items],
            "page": self.page,
            "pageSize": self.page_size,
            "totalCount": self.total_count,
            "totalPages": self.total_pages,
        }


# ── Query pipeline ──────────────────────────────────────────────────────


def filter_records(
    records: Iterable[TldRecord],
    search: Optional[str] = None,
    registerable: Optional[bool] = None,
) -> List[TldRecord]:
    """Keep records whose name contains *search* (case-insensitive) and
    whose ``registerable`` flag equals *registerable* when given."""
    needle = search.lower() if search else ""
    return [
        r
        for r in records
        if (not needle or needle in r.name.lower())
        and (registerable is None or r.registerable == registerable)
    ]


def sort_records(records: Iterable[TldRecord], sort_by: str = SORT_BY_NAME) -> List[TldRecord]:
    """Name ascending, or popularity descending with name as tie-breaker."""
    if sort_by == SORT_BY_POPULARITY:
        return sorted(records, key=lambda r: (-r.popularity, r.name))
    return sorted(records, key=lambda r: r.name)


def paginate(records: Sequence[TldRecord], page: int, page_size: int) -> TldPage:
    """Slice *records*; *page* and *page_size* must already be normalised."""
    total_count = len(records)
    total_pages = math.ceil(total_count / page_size) if total_count else 0
    offset = (page - 1) * page_size
    return TldPage(
        items=tuple(records[offset : offset + page_size]),
        page=page,
        page_size=page_size,
        total_count=total_count,
        total_pages=total_pages,
    )


# ── Cache ───────────────────────────────────────────────────────────────


class TldCache:
    """Owns the TLD catalog snapshot and serves queries against it.

    Parameters
    ----------
    source:
        Catalog source, normally the :class:`NamecheapClient`.
    ttl:
        Seconds after which the snapshot is considered stale.
    default_page_size:
        Page size used when a query does not specify one.
    max_page_size:
        Hard ceiling for ``page_size``.
    clock:
        Monotonic time source; injectable for tests.
    """

    def __init__(
        self,
        source: CatalogSource,
        *,
        ttl: float = TLD_CACHE_TTL,
        default_page_size: int = TLD_DEFAULT_PAGE_SIZE,
        max_page_size: int = TLD_MAX_PAGE_SIZE,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._source = source
        self._ttl = ttl
        self._max_page_size = max(1, max_page_size)
        self._default_page_size = min(max(1, default_page_size), self._max_page_size)
        self._clock = clock
        self._snapshot: Optional[CatalogSnapshot] = None
        self._invalidated = False
        self._invalidation_count = 0
        self._pending: Optional[asyncio.Task[CatalogSnapshot]] = None

    @property
    def snapshot(self) -> Optional[CatalogSnapshot]:
        return self._snapshot

    @property
    def is_stale(self) -> bool:
        """``True`` if there is no snapshot or it has outlived the TTL."""
        snap = self._snapshot
        if snap is None or self._invalidated:
            return True
        return snap.age(self._clock()) > self._ttl

    def invalidate(self) -> None:
        """Force the next query to refresh; the old snapshot stays as fallback."""
        self._invalidated = True
        self._invalidation_count += 1

    # ── refresh ─────────────────────────────────────────────────────

    async def _fetch(self) -> CatalogSnapshot:
        logger.debug("Refreshing TLD catalog from upstream...")
        invalidations_at_start = self._invalidation_count
        records = await self._source.fetch_all_tlds()
        snapshot = CatalogSnapshot(records=tuple(records), fetched_at=self._clock())
        current = self._snapshot
        # A snapshot only ever moves forward in time.
        if current is None or snapshot.fetched_at >= current.fetched_at:
            self._snapshot = snapshot
            # An invalidate() issued mid-fetch still applies to this snapshot.
            if self._invalidation_count == invalidations_at_start:
                self._invalidated = False
            logger.info("TLD catalog snapshot refreshed (%d TLDs).", len(snapshot))
            return snapshot
        logger.debug("Discarding TLD catalog fetch older than the current snapshot.")
        return current

    def _on_refresh_done(self, task: asyncio.Task[CatalogSnapshot]) -> None:
        if self._pending is task:
            self._pending = None
        if not task.cancelled() and task.exception() is not None:
            logger.debug("TLD catalog refresh task failed: %s", task.exception())

    def _refresh_task(self) -> asyncio.Task[CatalogSnapshot]:
        """Return the in-flight refresh, starting one if none is pending."""
        if self._pending is None or self._pending.done():
            task = asyncio.get_running_loop().create_task(self._fetch())
            task.add_done_callback(self._on_refresh_done)
            self._pending = task
        else:
            logger.debug("Joining in-flight TLD catalog refresh.")
        return self._pending

    async def refresh(self) -> CatalogSnapshot:
        """Refresh now (joining any in-flight fetch); raises on failure."""
        return await asyncio.shield(self._refresh_task())

    async def _current_snapshot(self) -> CatalogSnapshot:
        snap = self._snapshot
        if snap is not None and not self.is_stale:
            return snap
        try:
            return await self.refresh()
        except Exception as exc:
            fallback = self._snapshot
            if fallback is None:
                logger.error("TLD catalog unavailable and no cached snapshot: %s", exc)
                raise UpstreamUnavailableError(exc) from exc
            logger.warning(
                "TLD catalog refresh failed; serving stale snapshot (age %.0fs, %d TLDs): %s",
                fallback.age(self._clock()),
                len(fallback),
                exc,
            )
            return fallback

    # ── queries ─────────────────────────────────────────────────────

    def _normalise_page_size(self, page_size: Optional[int]) -> int:
        if page_size is None:
            return self._default_page_size
        return min(max(1, int(page_size)), self._max_page_size)

    async def get_tlds(self, query: Optional[TldQuery] = None) -> TldPage:
        """Return one page of the catalog matching *query*."""
        query = query or TldQuery()
        snapshot = await self._current_snapshot()

        page_size = self._normalise_page_size(query.page_size)
        page = max(1, int(query.page or 1))
        sort_by = query.sort_by if query.sort_by in SORT_FIELDS else SORT_BY_NAME

        matched = filter_records(snapshot.records, query.search, query.registerable)
        result = paginate(sort_records(matched, sort_by), page, page_size)
        logger.debug(
            "TLD query search=%r registerable=%s sort_by=%s page=%d/%d size=%d -> %d item(s)",
            query.search,
            query.registerable,
            sort_by,
            result.page,
            result.total_pages,
            result.page_size,
            len(result.items),
        )
        return result
