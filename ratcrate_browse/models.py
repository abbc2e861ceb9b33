from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


def require_int(value: Any, field_name: str) -> int:
    """Return ``value`` if it is a plain integer, else raise ``ValueError``."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{field_name} must be an integer, got {value!r}")
    return value


def require_bool(value: Any, field_name: str) -> bool:
    if not isinstance(value, bool):
        raise ValueError(f"{field_name} must be a boolean, got {value!r}")
    return value


def require_str(value: Any, field_name: str) -> str:
    if not isinstance(value, str):
        raise ValueError(f"{field_name} must be a string, got {value!r}")
    return value


def require_str_list(value: Any, field_name: str) -> list[str]:
    if not isinstance(value, list | tuple):
        raise ValueError(f"{field_name} must be a list, got {value!r}")
    return [require_str(item, field_name) for item in value]


def _optional_str(value: Any, field_name: str) -> str | None:
    return None if value is None else require_str(value, field_name)


class Category(Enum):
    MEDIA = "Media"
    DEVELOPMENT = "Development"
    SYSTEM = "System"
    GAMES = "Games"
    PRODUCTIVITY = "Productivity"
    NETWORK = "Network"
    OTHER = "Other"


class Mode(Enum):
    NORMAL = "normal"
    COMMAND = "command"
    HELP = "help"
    STATS = "stats"


@dataclass(frozen=True)
class CrateRecord:
    name: str
    description: str
    version: str
    license: str
    downloads_total: int
    downloads_recent: int
    created_at: datetime
    updated_at: datetime
    category: Category = Category.OTHER
    tags: frozenset[str] = frozenset()
    is_core: bool = False
    manual_review: bool = False
    repository_url: str | None = None
    homepage: str | None = None
    documentation_url: str | None = None
    screenshots: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("crate name must not be empty")
        if self.downloads_recent < 0:
            raise ValueError(f"{self.name}: downloads_recent must be non-negative")
        if self.downloads_total < self.downloads_recent:
            raise ValueError(
                f"{self.name}: downloads_total is lower than downloads_recent"
            )
        if self.created_at > self.updated_at:
            raise ValueError(f"{self.name}: created_at is later than updated_at")

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "version": self.version,
            "license": self.license,
            "downloads_total": self.downloads_total,
            "downloads_recent": self.downloads_recent,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
            "category": self.category.value,
            "tags": sorted(self.tags),
            "is_core": self.is_core,
            "manual_review": self.manual_review,
            "repository_url": self.repository_url,
            "homepage": self.homepage,
            "documentation_url": self.documentation_url,
            "screenshots": list(self.screenshots),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CrateRecord:
        """Rebuild a record written by :meth:`to_dict`.

        Raises ``KeyError``, ``TypeError`` or ``ValueError`` for payloads that
        do not describe a valid record.
        """
        return cls(
            name=require_str(data["name"], "name"),
            description=require_str(data.get("description", ""), "description"),
            version=require_str(data.get("version", ""), "version"),
            license=require_str(data.get("license", ""), "license"),
            downloads_total=require_int(data["downloads_total"], "downloads_total"),
            downloads_recent=require_int(
                data["downloads_recent"], "downloads_recent"
            ),
            created_at=datetime.fromisoformat(data["created_at"]),
            updated_at=datetime.fromisoformat(data["updated_at"]),
            category=Category(data.get("category", Category.OTHER.value)),
            tags=frozenset(require_str_list(data.get("tags", []), "tags")),
            is_core=require_bool(data.get("is_core", False), "is_core"),
            manual_review=require_bool(
                data.get("manual_review", False), "manual_review"
            ),
            repository_url=_optional_str(data.get("repository_url"), "repository_url"),
            homepage=_optional_str(data.get("homepage"), "homepage"),
            documentation_url=_optional_str(
                data.get("documentation_url"), "documentation_url"
            ),
            screenshots=tuple(
                require_str_list(data.get("screenshots", []), "screenshots")
            ),
        )


@dataclass(frozen=True)
class CacheSnapshot:
    records: tuple[CrateRecord, ...]
    fetched_at: datetime


@dataclass(frozen=True)
class AllFilter:
    pass


@dataclass(frozen=True)
class CoreFilter:
    pass


@dataclass(frozen=True)
class CommunityFilter:
    pass


@dataclass(frozen=True)
class TopFilter:
    n: int = 10


@dataclass(frozen=True)
class RecentFilter:
    n: int = 10


@dataclass(frozen=True)
class NewestFilter:
    n: int = 10


@dataclass(frozen=True)
class SearchFilter:
    query: str


ActiveFilter = (
    AllFilter
    | CoreFilter
    | CommunityFilter
    | TopFilter
    | RecentFilter
    | NewestFilter
    | SearchFilter
)


@dataclass
class ViewState:
    mode: Mode = Mode.NORMAL
    active_filter: ActiveFilter = field(default_factory=AllFilter)
    visible_list: tuple[str, ...] = ()
    selected_index: int | None = None
    command_buffer: str = ""
    status_message: str = ""
    stale: bool = False
    running: bool = True
