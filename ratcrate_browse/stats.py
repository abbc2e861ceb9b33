from __future__ import annotations

from collections import Counter
from dataclasses import dataclass

from ratcrate_browse.catalog import CrateCatalog
from ratcrate_browse.models import Category, CrateRecord

TOP_COUNT = 5


@dataclass(frozen=True)
class CatalogStats:
    total_crates: int
    total_downloads: int
    recent_downloads: int
    core_count: int
    community_count: int
    core_share: float
    community_share: float
    top: tuple[CrateRecord, ...]
    categories: tuple[tuple[Category, int], ...]


def compute_stats(catalog: CrateCatalog) -> CatalogStats:
    """Aggregate numbers over the full catalog, independent of any filter."""
    records = catalog.all()
    total = len(records)
    core_count = sum(1 for record in records if record.is_core)
    community_count = total - core_count
    category_counts = Counter(record.category for record in records)

    return CatalogStats(
        total_crates=total,
        total_downloads=sum(record.downloads_total for record in records),
        recent_downloads=sum(record.downloads_recent for record in records),
        core_count=core_count,
        community_count=community_count,
        core_share=core_count / total if total else 0.0,
        community_share=community_count / total if total else 0.0,
        top=catalog.top(min(TOP_COUNT, total)),
        categories=tuple(
            (category, category_counts[category])
            for category in Category
            if category_counts[category]
        ),
    )
