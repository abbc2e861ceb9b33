"""Persisted snapshot of the last fetched crate catalog.

The cache is a single JSON document holding the fetch timestamp and every
record keyed by crate name. Anything unreadable is reported as a cache miss
so that the caller falls back to a fresh fetch instead of failing.
"""

from __future__ import annotations

import json
import os
from collections.abc import Callable, Iterable
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

import platformdirs
import structlog

from ratcrate_browse.models import CacheSnapshot, CrateRecord

log = structlog.get_logger()

DEFAULT_TTL = timedelta(days=7)
CACHE_FILE_NAME = "ratcrate.json"


def default_cache_path() -> Path:
    return Path(platformdirs.user_cache_dir("ratcrate")) / CACHE_FILE_NAME


def is_stale(
    snapshot: CacheSnapshot | None,
    now: datetime,
    ttl: timedelta = DEFAULT_TTL,
) -> bool:
    if snapshot is None:
        return True
    return now - snapshot.fetched_at > ttl


def snapshot_to_json(snapshot: CacheSnapshot) -> dict[str, Any]:
    return {
        "fetched_at": snapshot.fetched_at.isoformat(),
        "crates": {record.name: record.to_dict() for record in snapshot.records},
    }


def snapshot_from_json(payload: Any) -> CacheSnapshot:
    """Parse a cache document; raises ``ValueError`` when it is malformed."""
    if not isinstance(payload, dict):
        raise ValueError("cache document is not an object")
    crates = payload.get("crates")
    if not isinstance(crates, dict):
        raise ValueError("cache document has no crate mapping")

    try:
        fetched_at = datetime.fromisoformat(payload["fetched_at"])
        records = []
        for name, data in crates.items():
            record = CrateRecord.from_dict(data)
            if record.name != name:
                raise ValueError(f"cache key {name!r} does not match record name")
            records.append(record)
    except (KeyError, TypeError, OverflowError) as exc:
        raise ValueError(f"malformed cache entry: {exc!s}") from exc

    if fetched_at.tzinfo is None:
        fetched_at = fetched_at.replace(tzinfo=UTC)
    return CacheSnapshot(records=tuple(records), fetched_at=fetched_at)


class CacheStore:
    """Owns the on-disk snapshot; the only component that touches the file."""

    def __init__(self, path: Path | None = None) -> None:
        self.path = path if path is not None else default_cache_path()

    def load(self) -> CacheSnapshot | None:
        try:
            raw = self.path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError:
            log.warning("cache_read_error", path=str(self.path), exc_info=True)
            return None

        try:
            snapshot = snapshot_from_json(json.loads(raw.decode("utf-8")))
        except ValueError as exc:
            log.warning("cache_corrupt", path=str(self.path), error=str(exc))
            return None

        log.info(
            "cache_loaded",
            path=str(self.path),
            crates=len(snapshot.records),
            fetched_at=snapshot.fetched_at.isoformat(),
        )
        return snapshot

    def save(self, snapshot: CacheSnapshot) -> None:
        """Replace the persisted snapshot in one step.

        The document is written to a sibling ``.part`` file which is renamed
        over the target only after it has been flushed to disk, so readers
        see either the old or the new snapshot, never a partial one.
        """
        self.path.parent.mkdir(parents=True, exist_ok=True)
        temporary_path = self.path.with_name(f"{self.path.name}.part")
        try:
            with temporary_path.open("w", encoding="utf-8") as handle:
                json.dump(snapshot_to_json(snapshot), handle, indent=2)
                handle.flush()
                os.fsync(handle.fileno())
            temporary_path.replace(self.path)
        except BaseException:
            temporary_path.unlink(missing_ok=True)
            raise
        log.info("cache_saved", path=str(self.path), crates=len(snapshot.records))

    def is_stale(
        self,
        snapshot: CacheSnapshot | None,
        now: datetime | None = None,
        ttl: timedelta = DEFAULT_TTL,
    ) -> bool:
        return is_stale(snapshot, now or datetime.now(UTC), ttl)

    def refresh(
        self,
        fetch: Callable[[], Iterable[CrateRecord]],
        now: datetime | None = None,
    ) -> CacheSnapshot:
        """Fetch a fresh catalog, persist it and return the new snapshot.

        Errors raised by ``fetch`` propagate unchanged and leave the previous
        snapshot on disk as it was. A failed write is logged; the fetched
        snapshot is still returned so the session can use it.
        """
        records = tuple(fetch())
        snapshot = CacheSnapshot(records=records, fetched_at=now or datetime.now(UTC))
        try:
            self.save(snapshot)
        except OSError:
            log.warning("cache_write_error", path=str(self.path), exc_info=True)
        return snapshot
