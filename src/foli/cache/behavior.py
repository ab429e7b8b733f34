"""Table-driven cache decision: which steps a request runs for a given behavior.

:func:`plan_action` is a pure function from ``(behavior, cache probe result)``
to a :class:`CacheAction`.  :class:`~foli.cache.resolver.CachePolicyResolver`
probes the cache when :func:`consults_cache` says so, asks the table for an
action, and executes it.

=================  ===========  =====================
behavior           cache hit    cache miss / no probe
=================  ===========  =====================
cached-or-fetch    SERVE_CACHE  FETCH_THEN_CACHE
force-refresh      --           FETCH_THEN_CACHE
cached-only        SERVE_CACHE  FAIL_NO_DATA
no-cache           --           FETCH
=================  ===========  =====================
"""

from __future__ import annotations

import enum
from typing import Optional

from foli.models import CacheBehavior

__all__ = ["CacheAction", "CacheBehavior", "consults_cache", "plan_action"]


class CacheAction(str, enum.Enum):
    """What the resolver does after the optional cache probe."""

    SERVE_CACHE = "serve-cache"
    FETCH = "fetch"
    FETCH_THEN_CACHE = "fetch-then-cache"
    FAIL_NO_DATA = "fail-no-data"


_PROBING = frozenset({CacheBehavior.CACHED_OR_FETCH, CacheBehavior.CACHED_ONLY})

_PLAN: dict[tuple[CacheBehavior, Optional[bool]], CacheAction] = {
    (CacheBehavior.CACHED_OR_FETCH, True): CacheAction.SERVE_CACHE,
    (CacheBehavior.CACHED_OR_FETCH, False): CacheAction.FETCH_THEN_CACHE,
    (CacheBehavior.FORCE_REFRESH, None): CacheAction.FETCH_THEN_CACHE,
    (CacheBehavior.CACHED_ONLY, True): CacheAction.SERVE_CACHE,
    (CacheBehavior.CACHED_ONLY, False): CacheAction.FAIL_NO_DATA,
    (CacheBehavior.NO_CACHE, None): CacheAction.FETCH,
}


def consults_cache(behavior: CacheBehavior) -> bool:
    """Return ``True`` if *behavior* reads the cache before deciding."""
    return behavior in _PROBING


def plan_action(behavior: CacheBehavior, cache_hit: Optional[bool]) -> CacheAction:
    """Map a behavior and the cache probe result to the action to execute.

    Args:
        behavior: The caller's caching strategy.
        cache_hit: ``True``/``False`` for the outcome of a cache read, or
            ``None`` if the cache was not probed.

    Raises:
        ValueError: If *cache_hit* is inconsistent with *behavior* (a probe
            result for a non-probing behavior, or a missing probe result
            for a probing one).
    """
    try:
        return _PLAN[(behavior, cache_hit)]
    except KeyError:
        expected = "a probe result" if consults_cache(behavior) else "no probe result"
        raise ValueError(
            f"{behavior.value} expects {expected}, got cache_hit={cache_hit!r}"
        ) from None
