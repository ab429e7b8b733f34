"""Decide between cached and network data for a single request.

:class:`CachePolicyResolver` is one generic algorithm, parameterized by three
coroutines: read the cache, fetch from the network, write the cache.
:class:`~foli.client.client.FoliClient` builds one per resource kind it
serves, binding the three operations to a
:class:`~foli.cache.keys.ResourceKey`.

Failure policy:

* A cache read that fails (:class:`~foli.exceptions.StorageError` or
  :class:`~foli.exceptions.DecodingError`) counts as a miss.
* A cache write that fails after a successful fetch is logged and ignored;
  the fetched data is still returned.
* Network failures propagate unchanged.
"""

from __future__ import annotations

import logging
from typing import Awaitable, Callable, Generic, Optional, TypeVar

from foli.cache.behavior import CacheAction, consults_cache, plan_action
from foli.exceptions import CacheMissError, DecodingError, StorageError
from foli.models import CacheBehavior

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CachePolicyResolver(Generic[T]):
    """Run one request through the cache policy for a given :class:`CacheBehavior`.

    Args:
        read: Returns the cached value, or ``None`` when there is no valid
            entry.
        fetch: Fetches the value from the network.
        write: Persists a freshly fetched value.
        label: Human-readable name of the resource, used in logs and in the
            :class:`~foli.exceptions.CacheMissError` message.

    Example::

        resolver = CachePolicyResolver(
            read=lambda: store.load(ROUTES),
            fetch=lambda: fetcher.fetch(ROUTES),
            write=lambda routes: store.save(ROUTES, routes),
            label="routes",
        )
        routes = await resolver.resolve(CacheBehavior.CACHED_OR_FETCH)
    """

    def __init__(
        self,
        read: Callable[[], Awaitable[Optional[T]]],
        fetch: Callable[[], Awaitable[T]],
        write: Callable[[T], Awaitable[None]],
        label: str,
    ) -> None:
        self._read = read
        self._fetch = fetch
        self._write = write
        self._label = label

    async def resolve(self, behavior: CacheBehavior) -> T:
        """Return the value for this resource according to *behavior*.

        Raises:
            CacheMissError: ``CACHED_ONLY`` and no valid cached entry.
            NetworkError: The fetch failed (never raised for cache hits or
                ``CACHED_ONLY``).
            DecodingError: The network payload could not be decoded.
        """
        cached: Optional[T] = None
        cache_hit: Optional[bool] = None
        if consults_cache(behavior):
            cached = await self._probe()
            cache_hit = cached is not None

        action = plan_action(behavior, cache_hit)
        logger.debug("%s: %s -> %s", self._label, behavior.value, action.value)

        if action is CacheAction.SERVE_CACHE:
            assert cached is not None
            return cached
        if action is CacheAction.FAIL_NO_DATA:
            raise CacheMissError(f"No valid cached data for {self._label}")

        value = await self._fetch()
        if action is CacheAction.FETCH_THEN_CACHE:
            await self._store(value)
        return value

    async def _probe(self) -> Optional[T]:
        try:
            return await self._read()
        except (StorageError, DecodingError) as exc:
            logger.warning("Ignoring unreadable cache for %s: %s", self._label, exc)
            return None

    async def _store(self, value: T) -> None:
        try:
            await self._write(value)
        except StorageError as exc:
            logger.warning("Could not cache %s: %s", self._label, exc)
