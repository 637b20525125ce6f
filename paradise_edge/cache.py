"""Request-keyed response cache local to the serving node.

Entries carry their own freshness: the ``max-age`` of the stored response's
Cache-Control header decides how long an entry is served. Expired entries are
dropped when they are looked up and swept on every store. The number of live
entries is capped; when full, the entry closest to expiry is evicted.

Stores never run on the response path. ``get_or_compute`` schedules them on
Starlette's ``BackgroundTasks`` so they run after the response has been sent,
and a failing store is logged and forgotten.
"""

from __future__ import annotations

import logging
import re
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from starlette.background import BackgroundTasks
from starlette.responses import Response

logger = logging.getLogger("paradise_edge.cache")

_MAX_AGE_RE = re.compile(r"max-age\s*=\s*(\d+)", re.IGNORECASE)

DEFAULT_MAX_ENTRIES = 1024


@dataclass(frozen=True)
class CachedResponse:
    """A complete response (status, headers and body) as held by the cache."""

    status_code: int
    headers: tuple[tuple[str, str], ...] = ()
    body: bytes = b""

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    def header(self, name: str, default: str = "") -> str:
        """Get a header value (case-insensitive)."""
        name = name.lower()
        for key, value in self.headers:
            if key.lower() == name:
                return value
        return default

    def with_headers(self, **headers: str) -> CachedResponse:
        """Copy with headers set or replaced (underscores become dashes)."""
        replaced = {key.replace("_", "-").lower(): value for key, value in headers.items()}
        kept = tuple((k, v) for k, v in self.headers if k.lower() not in replaced)
        return CachedResponse(
            status_code=self.status_code,
            headers=kept + tuple(replaced.items()),
            body=self.body,
        )

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")

    def to_response(self) -> Response:
        """Build a Starlette response carrying this entry unmodified."""
        response = Response(content=self.body, status_code=self.status_code)
        # Drop the content-length Starlette computed; the stored one is identical.
        del response.headers["content-length"]
        for key, value in self.headers:
            response.headers.append(key, value)
        if "content-length" not in response.headers:
            response.headers["content-length"] = str(len(self.body))
        return response


def max_age(cache_control: str) -> int | None:
    """Get the freshness lifetime declared by a Cache-Control header.

    Returns None when the response must not be stored (no max-age, or
    ``no-store``/``private`` present).
    """
    directives = cache_control.lower()
    if "no-store" in directives or "private" in directives:
        return None
    m = _MAX_AGE_RE.search(directives)
    if not m:
        return None
    seconds = int(m.group(1))
    return seconds if seconds > 0 else None


@dataclass
class _Entry:
    response: CachedResponse
    expires_at: float


@dataclass
class EdgeCache:
    """In-process shared response cache with last-write-wins semantics.

    Args:
        clock: Monotonic clock in seconds (injectable for tests)
        max_entries: Upper bound on stored entries
    """

    clock: Callable[[], float] = time.monotonic
    max_entries: int = DEFAULT_MAX_ENTRIES
    _entries: dict[str, _Entry] = field(default_factory=dict)

    async def match(self, key: str) -> CachedResponse | None:
        """Look up a fresh entry."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self.clock() >= entry.expires_at:
            self._entries.pop(key, None)
            return None
        return entry.response

    async def put(self, key: str, response: CachedResponse) -> bool:
        """Store a response for as long as its Cache-Control allows.

        Returns:
            True if the response was stored
        """
        if not response.ok:
            return False
        ttl = max_age(response.header("cache-control"))
        if ttl is None:
            return False

        now = self.clock()
        self._evict_expired(now)
        self._entries.pop(key, None)
        while self._entries and len(self._entries) >= self.max_entries:
            oldest = min(self._entries, key=lambda k: self._entries[k].expires_at)
            del self._entries[oldest]
        self._entries[key] = _Entry(response=response, expires_at=now + ttl)
        return True

    def _evict_expired(self, now: float) -> None:
        expired = [k for k, entry in self._entries.items() if now >= entry.expires_at]
        for k in expired:
            del self._entries[k]
        if expired:
            logger.debug("evicted %d expired cache entries", len(expired))

    def __len__(self) -> int:
        return len(self._entries)

    async def _put_quietly(self, key: str, response: CachedResponse) -> None:
        try:
            await self.put(key, response)
        except Exception:
            logger.warning("cache store failed for %s", key, exc_info=True)

    async def get_or_compute(
        self,
        key: str,
        compute: Callable[[], Awaitable[CachedResponse]],
        background: BackgroundTasks,
    ) -> tuple[CachedResponse, bool]:
        """Serve ``key`` from cache, or compute it and schedule a store.

        Args:
            key: Fully-qualified URL identifying the response
            compute: Coroutine function producing the response on a miss
            background: Task list run after the client response is sent

        Returns:
            Tuple of (response, hit)
        """
        cached = await self.match(key)
        if cached is not None:
            logger.debug("cache hit: %s", key)
            return cached, True

        logger.debug("cache miss: %s", key)
        response = await compute()
        if response.ok:
            background.add_task(self._put_quietly, key, response)
        return response, False
