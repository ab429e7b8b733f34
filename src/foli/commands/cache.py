"""Cache commands -- inspect and clear the on-disk feed cache.

Example::

    foli cache status
    foli cache clear routes
    foli cache clear stop_times_trip --id 00010005__1001010
    foli cache clear
"""

from __future__ import annotations

from typing import Optional

import typer

from foli.cache.keys import ResourceKey, ResourceKind
from foli.commands.common import open_client, run
from foli.exceptions import InvalidUsageError
from foli.output import format_age, info, print_table, success, warning


cache_app = typer.Typer(no_args_is_help=True)


@cache_app.command("status")
def cache_status(ctx: typer.Context) -> None:
    """List cached entries with their age and freshness.

    Expired entries are listed too; they are removed the next time they
    are read.
    """

    async def _collect() -> tuple[str, bool, list[list[str]]]:
        async with open_client(ctx) as client:
            store = client.store
            rows = []
            for key in await store.keys():
                age = await client.age_of(key)
                fresh = await client.is_fresh(key)
                rows.append([
                    key.kind.value,
                    key.identifier or "",
                    format_age(age),
                    "yes" if fresh else "no",
                ])
            return str(store.directory), store.config.enabled, rows

    directory, enabled, rows = run(_collect())
    info(f"Cache directory: {directory}")
    if not enabled:
        warning("The cache is disabled; these entries are never served.")
    if not rows:
        info("Cache is empty.")
    print_table(["Resource", "Id", "Age", "Fresh"], rows, title="Feed cache")


@cache_app.command("clear")
def cache_clear(
    ctx: typer.Context,
    resource: Optional[ResourceKind] = typer.Argument(
        None, help="Resource to clear; omit to clear everything."
    ),
    identifier: Optional[str] = typer.Option(
        None, "--id", help="Trip or stop id for stop_times_trip / stop_times_stop."
    ),
) -> None:
    """Remove one cached entry, or all of them."""
    key: Optional[ResourceKey] = None
    if resource is None:
        if identifier is not None:
            raise InvalidUsageError("--id requires a resource")
    else:
        try:
            key = ResourceKey(resource, identifier)
        except ValueError as exc:
            raise InvalidUsageError(str(exc)) from None

    async def _clear() -> None:
        async with open_client(ctx) as client:
            if key is None:
                await client.invalidate_all()
            else:
                await client.invalidate(key)

    run(_clear())
    success(f"Cleared {key.describe() if key else 'all cached entries'}.")
