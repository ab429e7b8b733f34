"""foli -- Cache-aware access to the Föli (Turku region) public transport feed.

Static GTFS collections (routes, stops, trips, stop times) are fetched from
``data.foli.fi`` and kept on disk with a time-based validity window.  Each
request picks a :class:`~foli.models.CacheBehavior`: serve from cache or
fetch, force a refresh, cache only (offline), or bypass the cache.
Real-time SIRI arrivals are never cached.

Typical use::

    from foli.client import FoliClient

    async with FoliClient() as client:
        routes = await client.routes()

or from the shell::

    foli routes --line 15
    foli --behavior cached-only stops

Modules:
    app: Typer application and CLI entry point.
    models: Pydantic models shared across the package.
    config: XDG-aware configuration and precedence resolution.
    cache: Disk store, resource keys and the cache policy.
    client: Network fetcher, payload decoding and :class:`FoliClient`.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes.
    output: stdout/stderr formatting with Rich support.
"""

__version__ = "0.1.0"
