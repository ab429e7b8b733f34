"""Disk-backed, TTL-aware storage of feed collections.

Each :class:`~foli.cache.keys.ResourceKey` owns one JSON file in the cache
directory.  There is no index: an entry exists if its file exists, and its
age is derived from the file's modification time.  Files are written with
:func:`~foli.config.atomic_write`, so a reader sees either the previous
entry or the complete new one.

On-disk format::

    {
      "identifier": null,
      "records": [{"route_id": "1", "route_short_name": "1", ...}, ...],
      "resource": "routes"
    }

Records are dumped with their feed aliases and explicit ``null`` for unset
optional fields, and loaded back through a :class:`pydantic.TypeAdapter`.

See Also:
    :class:`~foli.models.CacheConfig` -- the policy (validity window and
    enabled flag) applied by the store.
"""

from __future__ import annotations

import asyncio
import functools
import json
import logging
import time
from collections.abc import Sequence
from pathlib import Path
from typing import Any, Callable, Optional

from pydantic import BaseModel, TypeAdapter, ValidationError

from foli.cache.keys import ResourceKey
from foli.config import atomic_write
from foli.exceptions import DecodingError, StorageError
from foli.models import CacheConfig

logger = logging.getLogger(__name__)


@functools.lru_cache(maxsize=None)
def _records_adapter(record_type: type[BaseModel]) -> TypeAdapter:
    return TypeAdapter(list[record_type])  # type: ignore[valid-type]


class CacheStore:
    """Persist typed record collections under :class:`ResourceKey` addresses.

    All public methods are coroutines; file I/O runs in a worker thread via
    :func:`asyncio.to_thread`.  Operations on the same key are serialised by
    a per-key :class:`asyncio.Lock`; operations on different keys run
    concurrently.  A cancelled operation keeps its key locked until its
    worker thread returns, so it never lands after a later operation.

    ``load``, ``save`` and ``is_valid`` honour ``config.enabled``: a disabled
    store never returns data and never writes.  ``clear``, ``clear_all`` and
    ``age`` act on whatever is on disk regardless.

    Args:
        directory: Directory holding the cache files.  Created on
            construction when the config is enabled.
        config: Validity window and enabled flag.
        clock: Returns the current time as a Unix timestamp.  Entry ages
            are measured against it and saved entries are stamped with it.

    Raises:
        StorageError: If the cache directory cannot be created.

    Example::

        from foli.cache import CacheStore, ROUTES
        from foli.models import CacheConfig

        store = CacheStore("/tmp/foli-cache", CacheConfig.short_lived())
        await store.save(ROUTES, routes)
        cached = await store.load(ROUTES)
    """

    def __init__(
        self,
        directory: str | Path,
        config: CacheConfig,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._directory = Path(directory)
        self._config = config
        self._clock = clock
        self._locks: dict[ResourceKey, asyncio.Lock] = {}
        self._lock_users: dict[ResourceKey, int] = {}
        if config.enabled:
            try:
                self._directory.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                raise StorageError(
                    f"Cannot create cache directory {self._directory}: {exc}"
                ) from exc

    @property
    def config(self) -> CacheConfig:
        return self._config

    @property
    def directory(self) -> Path:
        return self._directory

    def path_for(self, key: ResourceKey) -> Path:
        """Return the file that holds *key*'s entry."""
        return self._directory / key.location

    # ------------------------------------------------------------------ #
    # Public operations
    # ------------------------------------------------------------------ #

    async def load(self, key: ResourceKey) -> Optional[list[Any]]:
        """Return the cached records for *key*, or ``None``.

        ``None`` is returned when the store is disabled, when no entry
        exists, or when the entry is older than the validity window.  A
        stale entry is deleted before returning (lazy eviction); a failure
        of that delete is logged and ignored.  An entry that cannot be
        decoded is treated the same way.

        Raises:
            StorageError: If the entry exists but cannot be read.
        """
        if not self._config.enabled:
            return None
        return await self._run_locked(key, self._load_sync, key)

    async def save(self, key: ResourceKey, records: Sequence[BaseModel]) -> None:
        """Replace *key*'s entry with *records*, stamped with the current time.

        A no-op when the store is disabled.

        Raises:
            TypeError: If a record is not an instance of the key's record type.
            StorageError: If the entry cannot be written.
        """
        if not self._config.enabled:
            return
        items = list(records)
        record_type = key.record_type
        for item in items:
            if not isinstance(item, record_type):
                raise TypeError(
                    f"{key.describe()} holds {record_type.__name__} records, "
                    f"got {type(item).__name__}"
                )
        await self._run_locked(key, self._save_sync, key, items)

    async def clear(self, key: ResourceKey) -> None:
        """Delete *key*'s entry; a no-op if there is none.

        Raises:
            StorageError: If the entry exists but cannot be deleted.
        """
        await self._run_locked(key, self._remove, self.path_for(key))

    async def clear_all(self) -> None:
        """Delete every entry in the cache directory.

        Files that do not belong to a resource key are left alone.

        Raises:
            StorageError: If the directory cannot be listed or an entry
                cannot be deleted.
        """
        for key in await self.keys():
            await self.clear(key)

    async def is_valid(self, key: ResourceKey) -> bool:
        """Return ``True`` if the store is enabled and *key* has an unexpired entry.

        Unlike :meth:`load` this never deletes anything.
        """
        if not self._config.enabled:
            return False
        age = await self.age(key)
        return age is not None and age <= self._config.validity_seconds

    async def age(self, key: ResourceKey) -> Optional[float]:
        """Seconds since *key*'s entry was written, or ``None`` if there is no entry.

        Expired entries still report their true age.
        """
        try:
            mtime = await self._run_locked(key, self._mtime, self.path_for(key))
        except StorageError as exc:
            logger.debug("Cannot stat cache entry for %s: %s", key.describe(), exc)
            return None
        if mtime is None:
            return None
        return max(0.0, self._clock() - mtime)

    async def keys(self) -> list[ResourceKey]:
        """Return the keys that currently have an entry on disk, expired or not.

        Raises:
            StorageError: If the cache directory cannot be listed.
        """
        names = await asyncio.to_thread(self._list_names)
        found = (ResourceKey.from_location(name) for name in names)
        return [key for key in found if key is not None]

    # ------------------------------------------------------------------ #
    # Per-key serialisation
    # ------------------------------------------------------------------ #

    async def _run_locked(self, key: ResourceKey, func: Callable[..., Any], *args: Any) -> Any:
        """Run blocking *func* in a worker thread while holding *key*'s lock.

        A worker thread cannot be interrupted, so when the calling task is
        cancelled the lock stays held until the thread has finished.  The
        next operation on the same key therefore always runs after it.

        Locks live in ``self._locks`` only while some task holds or waits
        on them.
        """
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        self._lock_users[key] = self._lock_users.get(key, 0) + 1
        try:
            async with lock:
                future = asyncio.ensure_future(asyncio.to_thread(func, *args))
                try:
                    return await asyncio.shield(future)
                except asyncio.CancelledError:
                    await self._drain(future)
                    raise
        finally:
            self._lock_users[key] -= 1
            if not self._lock_users[key]:
                del self._lock_users[key]
                del self._locks[key]

    @staticmethod
    async def _drain(future: asyncio.Future) -> None:
        while not future.done():
            try:
                await asyncio.wait((future,))
            except asyncio.CancelledError:
                continue
        if not future.cancelled() and future.exception() is not None:
            logger.debug("Cancelled cache operation failed: %s", future.exception())

    # ------------------------------------------------------------------ #
    # Blocking helpers (run in a worker thread)
    # ------------------------------------------------------------------ #

    def _load_sync(self, key: ResourceKey) -> Optional[list[Any]]:
        path = self.path_for(key)
        mtime = self._mtime(path)
        if mtime is None:
            logger.debug("Cache miss for %s", key.describe())
            return None

        age = self._clock() - mtime
        if age > self._config.validity_seconds:
            logger.debug(
                "Evicting stale cache entry for %s (age %.0fs > %.0fs)",
                key.describe(), age, self._config.validity_seconds,
            )
            self._discard(path)
            return None

        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise StorageError(f"Cannot read cache entry {path.name}: {exc}") from exc

        try:
            records = self._decode(key, text)
        except DecodingError as exc:
            logger.warning("Discarding unreadable cache entry %s: %s", path.name, exc)
            self._discard(path)
            return None

        logger.debug("Cache hit for %s (%d records)", key.describe(), len(records))
        return records

    def _save_sync(self, key: ResourceKey, records: list[BaseModel]) -> None:
        path = self.path_for(key)
        text = self._encode(key, records)
        try:
            atomic_write(path, text, mtime=self._clock())
        except OSError as exc:
            raise StorageError(f"Cannot write cache entry {path.name}: {exc}") from exc
        logger.debug("Cached %d records for %s", len(records), key.describe())

    def _list_names(self) -> list[str]:
        try:
            return sorted(p.name for p in self._directory.iterdir() if p.is_file())
        except FileNotFoundError:
            return []
        except OSError as exc:
            raise StorageError(
                f"Cannot list cache directory {self._directory}: {exc}"
            ) from exc

    @staticmethod
    def _mtime(path: Path) -> Optional[float]:
        try:
            return path.stat().st_mtime
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise StorageError(f"Cannot stat cache entry {path.name}: {exc}") from exc

    @staticmethod
    def _remove(path: Path) -> None:
        try:
            path.unlink()
        except FileNotFoundError:
            pass
        except OSError as exc:
            raise StorageError(f"Cannot delete cache entry {path.name}: {exc}") from exc

    @staticmethod
    def _discard(path: Path) -> None:
        """Best-effort delete used by lazy eviction."""
        try:
            path.unlink()
        except FileNotFoundError:
            pass
        except OSError as exc:
            logger.debug("Could not evict cache entry %s: %s", path.name, exc)

    # ------------------------------------------------------------------ #
    # Serialisation
    # ------------------------------------------------------------------ #

    @staticmethod
    def _encode(key: ResourceKey, records: list[BaseModel]) -> str:
        adapter = _records_adapter(key.record_type)
        payload = {
            "resource": key.kind.value,
            "identifier": key.identifier,
            "records": adapter.dump_python(records, mode="json", by_alias=True),
        }
        return json.dumps(payload, indent=2, sort_keys=True, ensure_ascii=False) + "\n"

    @staticmethod
    def _decode(key: ResourceKey, text: str) -> list[Any]:
        try:
            payload = json.loads(text)
        except json.JSONDecodeError as exc:
            raise DecodingError(f"invalid JSON: {exc}") from exc
        if not isinstance(payload, dict):
            raise DecodingError("entry is not a JSON object")
        if payload.get("resource") != key.kind.value or payload.get("identifier") != key.identifier:
            raise DecodingError(
                f"entry belongs to {payload.get('resource')!r}/{payload.get('identifier')!r}"
            )
        try:
            return _records_adapter(key.record_type).validate_python(payload.get("records"))
        except ValidationError as exc:
            raise DecodingError(f"invalid records: {exc.error_count()} validation error(s)") from exc
