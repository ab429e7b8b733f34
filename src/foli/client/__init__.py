"""Feed client: network access, payload decoding and the cache-aware façade."""

from foli.client.client import FoliClient
from foli.client.network import FeedFetcher

__all__ = ["FeedFetcher", "FoliClient"]
