from datetime import timedelta

import pytest
from factories import BASE_TIME, make_record

from ratcrate_browse.catalog import CrateCatalog, record_names
from ratcrate_browse.models import (
    AllFilter,
    Category,
    CommunityFilter,
    CoreFilter,
    NewestFilter,
    RecentFilter,
    SearchFilter,
    TopFilter,
)
from ratcrate_browse.stats import compute_stats


def _catalog() -> CrateCatalog:
    return CrateCatalog(
        [
            make_record(
                "gitui",
                description="Blazing fast terminal UI for git",
                downloads_total=8000,
                downloads_recent=300,
                created_at=BASE_TIME + timedelta(days=2),
                category=Category.DEVELOPMENT,
            ),
            make_record(
                "bottom",
                description="A cross-platform graphical process monitor",
                downloads_total=5000,
                downloads_recent=900,
                created_at=BASE_TIME + timedelta(days=5),
                category=Category.SYSTEM,
            ),
            make_record(
                "spotify-tui",
                description="Spotify for the Terminal",
                downloads_total=9000,
                downloads_recent=300,
                created_at=BASE_TIME + timedelta(days=5),
                category=Category.MEDIA,
            ),
            make_record(
                "ratatui",
                description="A library to build rich terminal user interfaces",
                downloads_total=8000,
                downloads_recent=5000,
                created_at=BASE_TIME,
                is_core=True,
                category=Category.DEVELOPMENT,
            ),
        ]
    )


def test_all_preserves_insertion_order() -> None:
    assert record_names(_catalog().all()) == (
        "gitui",
        "bottom",
        "spotify-tui",
        "ratatui",
    )


def test_duplicate_names_are_rejected() -> None:
    with pytest.raises(ValueError, match="duplicate crate name"):
        CrateCatalog([make_record("gitui"), make_record("gitui")])


def test_filter_core_splits_core_and_community() -> None:
    catalog = _catalog()

    assert record_names(catalog.filter_core(True)) == ("ratatui",)
    assert record_names(catalog.filter_core(False)) == (
        "gitui",
        "bottom",
        "spotify-tui",
    )


def test_top_sorts_by_downloads_with_name_tie_break() -> None:
    assert record_names(_catalog().top(4)) == (
        "spotify-tui",
        "gitui",
        "ratatui",
        "bottom",
    )


@pytest.mark.parametrize("query", ["top", "recent", "newest"])
def test_ranked_queries_default_to_ten_and_clamp_to_catalog_size(query: str) -> None:
    ranked = getattr(_catalog(), query)

    assert len(ranked()) == 4
    assert len(ranked(100)) == 4
    assert ranked(0) == ()


@pytest.mark.parametrize("query", ["top", "recent", "newest"])
def test_ranked_queries_reject_negative_limit(query: str) -> None:
    with pytest.raises(ValueError):
        getattr(_catalog(), query)(-1)


def test_recent_sorts_by_recent_downloads_with_name_tie_break() -> None:
    assert record_names(_catalog().recent(3)) == ("ratatui", "bottom", "gitui")


def test_newest_sorts_by_creation_time_with_name_tie_break() -> None:
    assert record_names(_catalog().newest(3)) == ("bottom", "spotify-tui", "gitui")


def test_search_is_case_insensitive_over_name_and_description() -> None:
    catalog = _catalog()

    assert record_names(catalog.search("TERMINAL")) == (
        "gitui",
        "spotify-tui",
        "ratatui",
    )
    assert record_names(catalog.search("Bott")) == ("bottom",)
    assert catalog.search("does-not-exist") == ()


def test_search_with_empty_query_returns_everything() -> None:
    catalog = _catalog()

    assert catalog.search("") == catalog.all()


def test_queries_do_not_mutate_catalog() -> None:
    catalog = _catalog()
    before = catalog.all()

    catalog.top(2)
    catalog.recent(2)
    catalog.newest(2)
    catalog.search("git")

    assert catalog.all() == before


@pytest.mark.parametrize(
    ("active_filter", "expected"),
    [
        (AllFilter(), ("gitui", "bottom", "spotify-tui", "ratatui")),
        (CoreFilter(), ("ratatui",)),
        (CommunityFilter(), ("gitui", "bottom", "spotify-tui")),
        (TopFilter(2), ("spotify-tui", "gitui")),
        (RecentFilter(1), ("ratatui",)),
        (NewestFilter(1), ("bottom",)),
        (SearchFilter("git"), ("gitui",)),
    ],
)
def test_apply_dispatches_each_filter(active_filter, expected) -> None:
    assert record_names(_catalog().apply(active_filter)) == expected


def test_get_and_contains_use_crate_name() -> None:
    catalog = _catalog()

    assert "gitui" in catalog
    assert "unknown" not in catalog
    record = catalog.get("bottom")
    assert record is not None
    assert record.downloads_total == 5000
    assert catalog.get("unknown") is None


def test_compute_stats_over_full_catalog() -> None:
    stats = compute_stats(_catalog())

    assert stats.total_crates == 4
    assert stats.total_downloads == 30000
    assert stats.recent_downloads == 6500
    assert stats.core_count == 1
    assert stats.community_count == 3
    assert stats.core_share == pytest.approx(0.25)
    assert stats.community_share == pytest.approx(0.75)
    assert record_names(stats.top) == ("spotify-tui", "gitui", "ratatui", "bottom")
    assert stats.categories == (
        (Category.MEDIA, 1),
        (Category.DEVELOPMENT, 2),
        (Category.SYSTEM, 1),
    )


def test_compute_stats_on_empty_catalog() -> None:
    stats = compute_stats(CrateCatalog())

    assert stats.total_crates == 0
    assert stats.total_downloads == 0
    assert stats.core_share == 0.0
    assert stats.community_share == 0.0
    assert stats.top == ()
    assert stats.categories == ()
