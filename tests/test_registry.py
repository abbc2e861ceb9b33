import io
import json
import urllib.error
from datetime import UTC, datetime

import pytest

from ratcrate_browse import registry
from ratcrate_browse.models import Category
from ratcrate_browse.registry import (
    FetchError,
    category_for,
    fetch_all_crates,
    parse_timestamp,
    records_from_document,
)


def _entry(name: str, **overrides: object) -> dict[str, object]:
    entry: dict[str, object] = {
        "id": name,
        "name": name,
        "description": f"{name} description",
        "version": "0.1.0",
        "created_at": "2023-05-01T10:00:00.000000+00:00",
        "updated_at": "2024-05-01T10:00:00Z",
        "downloads": 1200,
        "recent_downloads": 100,
        "categories": ["command-line-utilities"],
        "repository": "https://github.com/example/" + name,
        "homepage": None,
        "documentation": "",
        "ratatui_dependency": {
            "version": "0.26",
            "optional": False,
            "dev_dependency": False,
        },
        "is_core_library": False,
    }
    entry.update(overrides)
    return entry


def test_records_from_document_converts_registry_fields() -> None:
    document = {
        "metadata": {"total_crates": 1},
        "crates": [_entry("gitui", is_core_library=True)],
    }

    [record] = records_from_document(document)

    assert record.name == "gitui"
    assert record.downloads_total == 1200
    assert record.downloads_recent == 100
    assert record.created_at == datetime(2023, 5, 1, 10, tzinfo=UTC)
    assert record.updated_at == datetime(2024, 5, 1, 10, tzinfo=UTC)
    assert record.category is Category.PRODUCTIVITY
    assert record.tags == frozenset({"command-line-utilities"})
    assert record.is_core is True
    assert record.repository_url == "https://github.com/example/gitui"
    assert record.homepage is None
    assert record.documentation_url is None


def test_records_from_document_skips_invalid_and_duplicate_entries() -> None:
    document = {
        "crates": [
            _entry("gitui"),
            _entry("broken", downloads=1, recent_downloads=5),
            {"description": "no name"},
            _entry("gitui", downloads=99999),
            _entry("bottom"),
        ]
    }

    records = records_from_document(document)

    assert [record.name for record in records] == ["gitui", "bottom"]
    assert records[0].downloads_total == 1200


@pytest.mark.parametrize("downloads", [1e400, 12.5, "12", True])
def test_records_from_document_skips_non_integer_download_counts(
    downloads: object,
) -> None:
    document = {"crates": [_entry("broken", downloads=downloads), _entry("gitui")]}

    records = records_from_document(document)

    assert [record.name for record in records] == ["gitui"]


def test_fetch_all_crates_skips_infinite_download_counts(monkeypatch) -> None:
    payload = (
        b'{"crates": [{"name": "x", "created_at": "2024-01-01T00:00:00Z",'
        b' "downloads": 1e400}]}'
    )
    monkeypatch.setattr(
        registry, "download_bytes", lambda url, *, timeout_seconds: payload
    )

    assert fetch_all_crates("https://example.invalid/data.json") == []


def test_records_from_document_requires_crate_list() -> None:
    with pytest.raises(FetchError):
        records_from_document({"metadata": {}})


@pytest.mark.parametrize(
    ("slugs", "expected"),
    [
        (["games"], Category.GAMES),
        (["multimedia::audio"], Category.MEDIA),
        (["network-programming"], Category.NETWORK),
        (["os::unix-apis"], Category.SYSTEM),
        (["development-tools::debugging"], Category.DEVELOPMENT),
        (["science"], Category.OTHER),
        ([], Category.OTHER),
    ],
)
def test_category_for_maps_slugs(slugs: list[str], expected: Category) -> None:
    assert category_for(slugs) is expected


def test_parse_timestamp_assumes_utc_for_naive_values() -> None:
    assert parse_timestamp("2024-01-02T03:04:05") == datetime(
        2024, 1, 2, 3, 4, 5, tzinfo=UTC
    )


def test_fetch_all_crates_downloads_and_parses(monkeypatch) -> None:
    captured: dict[str, object] = {}

    def _fake_urlopen(request: object, timeout: float) -> io.BytesIO:
        captured["url"] = request.full_url  # type: ignore[attr-defined]
        captured["timeout"] = timeout
        return io.BytesIO(json.dumps({"crates": [_entry("ratatui")]}).encode())

    monkeypatch.setattr("urllib.request.urlopen", _fake_urlopen)

    records = fetch_all_crates("https://example.invalid/data.json", timeout_seconds=5)

    assert [record.name for record in records] == ["ratatui"]
    assert captured == {"url": "https://example.invalid/data.json", "timeout": 5}


def test_fetch_all_crates_wraps_network_errors(monkeypatch) -> None:
    def _failing_download(url: str, *, timeout_seconds: float) -> bytes:
        raise urllib.error.URLError("offline")

    monkeypatch.setattr(registry, "download_bytes", _failing_download)

    with pytest.raises(FetchError, match="failed to download"):
        fetch_all_crates("https://example.invalid/data.json")


def test_fetch_all_crates_wraps_invalid_json(monkeypatch) -> None:
    monkeypatch.setattr(
        registry, "download_bytes", lambda url, *, timeout_seconds: b"<html>"
    )

    with pytest.raises(FetchError, match="failed to parse"):
        fetch_all_crates()
