"""Helpers shared by the feed and cache commands."""

from __future__ import annotations

import asyncio
from collections.abc import Coroutine
from typing import Any, TypeVar

import typer

from foli.client import FoliClient
from foli.models import GlobalConfig
from foli.output import debug

T = TypeVar("T")


def open_client(ctx: typer.Context) -> FoliClient:
    """Build a :class:`FoliClient` from the config resolved in the root callback.

    ``ctx.obj["transport"]``, when present, is handed to httpx.
    """
    obj = ctx.obj or {}
    config = obj.get("config") or GlobalConfig()
    debug(f"Cache behavior: {config.default_behavior.value}")
    return FoliClient(config=config, transport=obj.get("transport"))


def run(coro: Coroutine[Any, Any, T]) -> T:
    """Run a command coroutine to completion on a fresh event loop."""
    return asyncio.run(coro)
