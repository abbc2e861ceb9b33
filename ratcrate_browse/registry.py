"""Fetch the published crate catalog and convert it into records."""

from __future__ import annotations

import json
from collections.abc import Iterable
from datetime import UTC, datetime
from typing import Any

import structlog

from ratcrate_browse.downloads import download_bytes
from ratcrate_browse.models import Category, CrateRecord, require_int

log = structlog.get_logger()

DEFAULT_REGISTRY_URL = "https://ratcrate.github.io/data/ratcrate.json"
DEFAULT_TIMEOUT_SECONDS = 30.0

# Matched against the top-level part of crates.io category slugs, in order.
_CATEGORY_SLUGS: tuple[tuple[Category, frozenset[str]], ...] = (
    (Category.GAMES, frozenset({"games", "game-development", "game-engines"})),
    (Category.MEDIA, frozenset({"multimedia", "graphics", "rendering"})),
    (
        Category.NETWORK,
        frozenset({"network-programming", "web-programming", "email"}),
    ),
    (
        Category.SYSTEM,
        frozenset({"os", "filesystem", "hardware-support", "embedded"}),
    ),
    (
        Category.PRODUCTIVITY,
        frozenset({"command-line-utilities", "text-editors", "visualization"}),
    ),
    (
        Category.DEVELOPMENT,
        frozenset({"development-tools", "command-line-interface", "gui"}),
    ),
)


class FetchError(RuntimeError):
    """The registry could not provide a usable catalog."""


def category_for(slugs: Iterable[str]) -> Category:
    roots = {slug.casefold().split("::")[0] for slug in slugs}
    for category, known_slugs in _CATEGORY_SLUGS:
        if roots & known_slugs:
            return category
    return Category.OTHER


def parse_timestamp(value: Any) -> datetime:
    if not isinstance(value, str) or not value:
        raise ValueError(f"invalid timestamp: {value!r}")
    if value.endswith("Z"):
        value = f"{value[:-1]}+00:00"
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def record_from_registry(entry: dict[str, Any]) -> CrateRecord:
    """Convert one entry of the registry document into a CrateRecord."""
    categories = [str(slug) for slug in entry.get("categories") or ()]
    keywords = [str(word) for word in entry.get("keywords") or ()]
    screenshots = entry.get("screenshots") or ()
    return CrateRecord(
        name=str(entry["name"]),
        description=str(entry.get("description") or "").strip(),
        version=str(entry.get("version") or ""),
        license=str(entry.get("license") or ""),
        downloads_total=require_int(entry.get("downloads") or 0, "downloads"),
        downloads_recent=require_int(
            entry.get("recent_downloads") or 0, "recent_downloads"
        ),
        created_at=parse_timestamp(entry["created_at"]),
        updated_at=parse_timestamp(entry.get("updated_at") or entry["created_at"]),
        category=category_for(categories),
        tags=frozenset(categories + keywords),
        is_core=bool(entry.get("is_core_library", False)),
        manual_review=bool(entry.get("manual_review", False)),
        repository_url=entry.get("repository") or None,
        homepage=entry.get("homepage") or None,
        documentation_url=entry.get("documentation") or None,
        screenshots=tuple(str(url) for url in screenshots),
    )


def records_from_document(document: Any) -> list[CrateRecord]:
    if not isinstance(document, dict) or not isinstance(
        document.get("crates"), list
    ):
        raise FetchError("registry document has no crate list")

    records: list[CrateRecord] = []
    seen: set[str] = set()
    for entry in document["crates"]:
        try:
            record = record_from_registry(entry)
        except (KeyError, TypeError, ValueError, OverflowError) as exc:
            log.warning(
                "registry_entry_skipped", entry=_entry_name(entry), error=str(exc)
            )
            continue
        if record.name in seen:
            log.warning("registry_duplicate_skipped", entry=record.name)
            continue
        seen.add(record.name)
        records.append(record)
    return records


def fetch_all_crates(
    url: str = DEFAULT_REGISTRY_URL,
    *,
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
) -> list[CrateRecord]:
    log.info("registry_fetch_started", url=url)
    try:
        payload = download_bytes(url, timeout_seconds=timeout_seconds)
    except OSError as exc:
        raise FetchError(f"failed to download {url}: {exc!s}") from exc

    try:
        document = json.loads(payload)
    except ValueError as exc:
        raise FetchError(f"failed to parse registry data: {exc!s}") from exc

    records = records_from_document(document)
    log.info("registry_fetch_finished", url=url, crates=len(records))
    return records


def _entry_name(entry: Any) -> str:
    if isinstance(entry, dict):
        return str(entry.get("name", "<unnamed>"))
    return "<invalid>"
