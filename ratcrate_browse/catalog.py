from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator

from ratcrate_browse.models import (
    ActiveFilter,
    AllFilter,
    CommunityFilter,
    CoreFilter,
    CrateRecord,
    NewestFilter,
    RecentFilter,
    SearchFilter,
    TopFilter,
)

DEFAULT_LIMIT = 10


class CrateCatalog:
    """Immutable, name-indexed view over a sequence of crate records.

    Every query returns a fresh tuple and leaves the catalog untouched, so the
    same filter always yields the same list for the same records.
    """

    def __init__(self, records: Iterable[CrateRecord] = ()) -> None:
        self._records: tuple[CrateRecord, ...] = tuple(records)
        self._by_name: dict[str, CrateRecord] = {}
        for record in self._records:
            if record.name in self._by_name:
                raise ValueError(f"duplicate crate name: {record.name}")
            self._by_name[record.name] = record

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[CrateRecord]:
        return iter(self._records)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def get(self, name: str) -> CrateRecord | None:
        return self._by_name.get(name)

    def all(self) -> tuple[CrateRecord, ...]:
        return self._records

    def filter_core(self, is_core: bool) -> tuple[CrateRecord, ...]:
        return tuple(record for record in self._records if record.is_core == is_core)

    def top(self, n: int = DEFAULT_LIMIT) -> tuple[CrateRecord, ...]:
        return self._ranked(lambda record: record.downloads_total, n)

    def recent(self, n: int = DEFAULT_LIMIT) -> tuple[CrateRecord, ...]:
        return self._ranked(lambda record: record.downloads_recent, n)

    def newest(self, n: int = DEFAULT_LIMIT) -> tuple[CrateRecord, ...]:
        _check_limit(n)
        # Two stable passes: name ascending, then created_at descending.
        by_name = sorted(self._records, key=lambda record: record.name)
        ordered = sorted(by_name, key=lambda record: record.created_at, reverse=True)
        return tuple(ordered[:n])

    def search(self, query: str) -> tuple[CrateRecord, ...]:
        needle = query.casefold()
        if not needle:
            return self._records
        return tuple(
            record
            for record in self._records
            if needle in record.name.casefold()
            or needle in record.description.casefold()
        )

    def apply(self, active_filter: ActiveFilter) -> tuple[CrateRecord, ...]:
        if isinstance(active_filter, AllFilter):
            return self.all()
        if isinstance(active_filter, CoreFilter):
            return self.filter_core(True)
        if isinstance(active_filter, CommunityFilter):
            return self.filter_core(False)
        if isinstance(active_filter, TopFilter):
            return self.top(active_filter.n)
        if isinstance(active_filter, RecentFilter):
            return self.recent(active_filter.n)
        if isinstance(active_filter, NewestFilter):
            return self.newest(active_filter.n)
        if isinstance(active_filter, SearchFilter):
            return self.search(active_filter.query)
        raise TypeError(f"unsupported filter: {active_filter!r}")

    def _ranked(
        self, field: Callable[[CrateRecord], int], n: int
    ) -> tuple[CrateRecord, ...]:
        _check_limit(n)
        ordered = sorted(
            self._records,
            key=lambda record: (-field(record), record.name),
        )
        return tuple(ordered[:n])


def _check_limit(n: int) -> None:
    if n < 0:
        raise ValueError(f"limit must be non-negative, got {n}")


def record_names(records: Iterable[CrateRecord]) -> tuple[str, ...]:
    return tuple(record.name for record in records)
