"""Network access to the Föli GTFS and SIRI endpoints.

:class:`FeedFetcher` is the network collaborator of the cache: it knows how
to build the URL for each :class:`~foli.cache.keys.ResourceKey`, performs a
single GET through :class:`httpx.AsyncClient`, and hands the body to
:mod:`foli.client.decoding`.  It never retries; a failed request raises
:class:`~foli.exceptions.NetworkError` straight away.
"""

from __future__ import annotations

import logging
from typing import Any, Optional
from urllib.parse import quote

import httpx

from foli.cache.keys import ResourceKey, ResourceKind
from foli.client.decoding import decode_arrivals, decode_collection, parse_json
from foli.exceptions import NetworkError
from foli.models import ArrivalResponse, FeedConfig, RequestConfig

logger = logging.getLogger(__name__)

_GTFS_PATHS = {
    ResourceKind.ROUTES: "/routes",
    ResourceKind.STOPS: "/stops",
    ResourceKind.TRIPS: "/trips",
    ResourceKind.STOP_TIMES: "/stop_times",
    ResourceKind.STOP_TIMES_FOR_TRIP: "/stop_times/trip/{id}",
    ResourceKind.STOP_TIMES_FOR_STOP: "/stop_times/stop/{id}",
}


class FeedFetcher:
    """Fetch and decode feed collections over HTTP.

    Must be used as an async context manager, which opens and closes the
    underlying :class:`httpx.AsyncClient`.

    Args:
        feed: Base URLs of the GTFS and SIRI endpoints.
        request: Timeout and SSL settings.
        transport: Optional httpx transport, e.g. :class:`httpx.MockTransport`
            in tests.

    Example::

        async with FeedFetcher(FeedConfig(), RequestConfig()) as fetcher:
            routes = await fetcher.fetch(ROUTES)
    """

    def __init__(
        self,
        feed: FeedConfig,
        request: RequestConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._feed = feed
        self._request = request
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self) -> FeedFetcher:
        self._client = httpx.AsyncClient(
            timeout=self._request.timeout,
            verify=self._request.verify_ssl,
            follow_redirects=True,
            transport=self._transport,
            headers={"Accept": "application/json"},
        )
        return self

    async def __aexit__(self, *args: object) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    def url_for(self, key: ResourceKey) -> str:
        """Return the GTFS URL serving *key*'s collection."""
        path = _GTFS_PATHS[key.kind]
        if key.identifier is not None:
            path = path.format(id=quote(key.identifier, safe=""))
        return f"{self._feed.gtfs_base_url.rstrip('/')}{path}"

    def arrivals_url(self, stop_id: str) -> str:
        """Return the SIRI stop-monitoring URL for *stop_id*."""
        return f"{self._feed.siri_base_url.rstrip('/')}/sm/{quote(stop_id, safe='')}"

    async def fetch(self, key: ResourceKey) -> list[Any]:
        """Download and decode the collection addressed by *key*.

        Raises:
            NetworkError: On transport failure or a non-2xx response.
            DecodingError: If the body is not a valid payload for *key*.
        """
        label = key.describe()
        data = await self._get_json(self.url_for(key), label)
        records = decode_collection(key, data)
        logger.debug("Fetched %d records for %s", len(records), label)
        return records

    async def fetch_arrivals(self, stop_id: str) -> ArrivalResponse:
        """Download the real-time stop-monitoring response for *stop_id*."""
        data = await self._get_json(self.arrivals_url(stop_id), f"arrivals at stop {stop_id}")
        return decode_arrivals(data)

    async def _get_json(self, url: str, label: str) -> Any:
        assert self._client is not None, "Fetcher not initialised -- use as async context manager"

        logger.debug("GET %s", url)
        try:
            response = await self._client.get(url)
        except httpx.HTTPError as exc:
            raise NetworkError(f"Failed to fetch {label}: {exc}") from exc

        if not response.is_success:
            detail = response.text[:200] if response.text else ""
            message = f"Failed to fetch {label}: HTTP {response.status_code}"
            if detail:
                message = f"{message}: {detail}"
            raise NetworkError(message, status_code=response.status_code)

        return parse_json(response.content, label)
