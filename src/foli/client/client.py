"""High-level async client for the Föli transit feed.

:class:`FoliClient` ties the three collaborators together: a
:class:`~foli.cache.store.CacheStore` for persistence, a
:class:`~foli.client.network.FeedFetcher` for the network, and a
:class:`~foli.cache.resolver.CachePolicyResolver` per request to decide
between the two.
"""

from __future__ import annotations

import functools
import logging
from typing import Any, Optional

import httpx

from foli.cache.keys import ROUTES, STOP_TIMES, STOPS, TRIPS, ResourceKey
from foli.cache.resolver import CachePolicyResolver
from foli.cache.store import CacheStore
from foli.client.network import FeedFetcher
from foli.config import get_feed_cache_dir
from foli.exceptions import NetworkError, StorageError
from foli.models import (
    Arrival,
    ArrivalResponse,
    CacheBehavior,
    CacheConfig,
    GlobalConfig,
    Route,
    Stop,
    StopTime,
    Trip,
)

logger = logging.getLogger(__name__)


class FoliClient:
    """Cache-aware access to Föli routes, stops, trips and arrivals.

    Args:
        config: Effective configuration; defaults to :class:`GlobalConfig`
            defaults.  Supplies the cache policy, feed URLs, request
            settings and the default :class:`CacheBehavior`.
        store: Pre-built cache store.  When omitted, one is created in
            :func:`~foli.config.get_feed_cache_dir`; if that directory
            cannot be created the client continues with caching disabled.
        transport: Optional httpx transport, e.g. :class:`httpx.MockTransport`.
        default_behavior: Overrides ``config.default_behavior``.

    Example::

        async with FoliClient() as client:
            routes = await client.routes()
            fresh = await client.stops(CacheBehavior.FORCE_REFRESH)
    """

    def __init__(
        self,
        config: Optional[GlobalConfig] = None,
        store: Optional[CacheStore] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        default_behavior: Optional[CacheBehavior] = None,
    ) -> None:
        self._config = config or GlobalConfig()
        self._store = store if store is not None else self._open_store()
        self._fetcher = FeedFetcher(self._config.feed, self._config.request, transport=transport)
        self._default_behavior = default_behavior or self._config.default_behavior

    async def __aenter__(self) -> FoliClient:
        await self._fetcher.__aenter__()
        return self

    async def __aexit__(self, *args: object) -> None:
        await self._fetcher.__aexit__(*args)

    def _open_store(self) -> CacheStore:
        directory = get_feed_cache_dir()
        try:
            return CacheStore(directory, self._config.cache.to_cache_config())
        except StorageError as exc:
            logger.warning("Disk cache unavailable, continuing without it: %s", exc)
            return CacheStore(directory, CacheConfig.disabled())

    @property
    def store(self) -> CacheStore:
        return self._store

    @property
    def default_behavior(self) -> CacheBehavior:
        return self._default_behavior

    # -- Core operations ------------------------------------------------

    async def get(self, key: ResourceKey, behavior: Optional[CacheBehavior] = None) -> list[Any]:
        """Return the collection addressed by *key* according to *behavior*.

        Raises:
            CacheMissError: ``CACHED_ONLY`` found no valid entry.
            NetworkError: The feed could not be reached.
            DecodingError: The feed returned a malformed payload.
        """
        resolver: CachePolicyResolver[list[Any]] = CachePolicyResolver(
            read=functools.partial(self._store.load, key),
            fetch=functools.partial(self.fetch_from_network, key),
            write=functools.partial(self._store.save, key),
            label=key.describe(),
        )
        return await resolver.resolve(behavior or self._default_behavior)

    async def fetch_from_network(self, key: ResourceKey) -> list[Any]:
        """Fetch *key*'s collection from the feed, bypassing the cache."""
        return await self._fetcher.fetch(key)

    async def invalidate(self, key: ResourceKey) -> None:
        await self._store.clear(key)

    async def invalidate_all(self) -> None:
        await self._store.clear_all()

    async def is_fresh(self, key: ResourceKey) -> bool:
        return await self._store.is_valid(key)

    async def age_of(self, key: ResourceKey) -> Optional[float]:
        return await self._store.age(key)

    # -- Static data ----------------------------------------------------

    async def routes(self, behavior: Optional[CacheBehavior] = None) -> list[Route]:
        return await self.get(ROUTES, behavior)

    async def route(
        self, route_id: str, behavior: Optional[CacheBehavior] = None
    ) -> Optional[Route]:
        """Look up a single route by ``route_id`` in the routes collection."""
        for route in await self.routes(behavior):
            if route.id == route_id:
                return route
        return None

    async def routes_for_line(
        self, line_ref: str, behavior: Optional[CacheBehavior] = None
    ) -> list[Route]:
        """Routes whose short name (the public line number) equals *line_ref*."""
        return [route for route in await self.routes(behavior) if route.short_name == line_ref]

    async def stops(self, behavior: Optional[CacheBehavior] = None) -> list[Stop]:
        return await self.get(STOPS, behavior)

    async def stop(self, stop_id: str, behavior: Optional[CacheBehavior] = None) -> Optional[Stop]:
        for stop in await self.stops(behavior):
            if stop.id == stop_id:
                return stop
        return None

    async def trips(self, behavior: Optional[CacheBehavior] = None) -> list[Trip]:
        return await self.get(TRIPS, behavior)

    async def stop_times(self, behavior: Optional[CacheBehavior] = None) -> list[StopTime]:
        return await self.get(STOP_TIMES, behavior)

    async def stop_times_for_trip(
        self, trip_id: str, behavior: Optional[CacheBehavior] = None
    ) -> list[StopTime]:
        return await self.get(ResourceKey.stop_times_for_trip(trip_id), behavior)

    async def stop_times_for_stop(
        self, stop_id: str, behavior: Optional[CacheBehavior] = None
    ) -> list[StopTime]:
        return await self.get(ResourceKey.stop_times_for_stop(stop_id), behavior)

    # -- Real-time data (never cached) -----------------------------------

    async def stop_monitoring(self, stop_id: str) -> ArrivalResponse:
        """Return the raw SIRI stop-monitoring response for *stop_id*."""
        return await self._fetcher.fetch_arrivals(stop_id)

    async def arrivals(self, stop_id: str) -> list[Arrival]:
        """Upcoming arrivals at *stop_id*, in the order the feed lists them.

        Raises:
            NetworkError: Also when the feed answers with a status other
                than ``OK``.
        """
        response = await self.stop_monitoring(stop_id)
        if not response.is_valid:
            raise NetworkError(f"Feed reported status {response.status} for stop {stop_id}")
        return response.result
