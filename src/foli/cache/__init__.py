"""Persistent caching of Föli feed collections.

This package decides, per request, whether feed data is served from disk or
fetched from the network, and persists fetched collections with a
time-based validity window.

* :mod:`foli.cache.keys` -- :class:`ResourceKey`, the address of a cached
  collection, and its mapping to a file name.
* :mod:`foli.cache.store` -- :class:`CacheStore`, the TTL-aware disk store.
* :mod:`foli.cache.behavior` -- :class:`CacheAction` and the
  ``(behavior, probe) -> action`` table.
* :mod:`foli.cache.resolver` -- :class:`CachePolicyResolver`, which executes
  the table against a read/fetch/write triple.

The policy parameters (:class:`~foli.models.CacheConfig`) and the
caller-facing :class:`~foli.models.CacheBehavior` are defined in
:mod:`foli.models` together with the other shared models.
"""

from foli.cache.behavior import CacheAction, consults_cache, plan_action
from foli.cache.keys import (
    ROUTES,
    SINGLETON_KEYS,
    STOP_TIMES,
    STOPS,
    TRIPS,
    ResourceKey,
    ResourceKind,
)
from foli.cache.resolver import CachePolicyResolver
from foli.cache.store import CacheStore
from foli.models import CacheBehavior, CacheConfig

__all__ = [
    "CacheAction",
    "CacheBehavior",
    "CacheConfig",
    "CachePolicyResolver",
    "CacheStore",
    "ResourceKey",
    "ResourceKind",
    "ROUTES",
    "SINGLETON_KEYS",
    "STOPS",
    "STOP_TIMES",
    "TRIPS",
    "consults_cache",
    "plan_action",
]
