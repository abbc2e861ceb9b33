"""Modal key handling and view state for the crate browser.

The controller is the only writer of :class:`ViewState`. Every key event is
applied completely before the next one arrives; the visible list is always
recomputed from the catalog and never edited in place.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum

import structlog

from ratcrate_browse.cache import CacheStore
from ratcrate_browse.catalog import CrateCatalog, record_names
from ratcrate_browse.commands import (
    SEARCH_PREFIX,
    Command,
    Help,
    Invalid,
    New,
    Quit,
    Recent,
    Refresh,
    Search,
    ShowAll,
    ShowCommunity,
    ShowCore,
    Top,
    parse_command,
)
from ratcrate_browse.models import (
    ActiveFilter,
    AllFilter,
    CommunityFilter,
    CoreFilter,
    CrateRecord,
    Mode,
    NewestFilter,
    RecentFilter,
    SearchFilter,
    TopFilter,
    ViewState,
)

log = structlog.get_logger()

PAGE_SIZE = 10


class Action(Enum):
    NONE = "none"
    QUIT = "quit"
    REFRESH = "refresh"


@dataclass
class AppState:
    cache_store: CacheStore
    catalog: CrateCatalog
    view: ViewState = field(default_factory=ViewState)


class NavigationController:
    def __init__(self, state: AppState) -> None:
        self.state = state
        self._normal_keys: dict[str, Callable[[], Action]] = {
            "j": lambda: self._move(1),
            "down": lambda: self._move(1),
            "k": lambda: self._move(-1),
            "up": lambda: self._move(-1),
            "pagedown": lambda: self._move(PAGE_SIZE),
            "ctrl+d": lambda: self._move(PAGE_SIZE),
            "pageup": lambda: self._move(-PAGE_SIZE),
            "ctrl+u": lambda: self._move(-PAGE_SIZE),
            "g": self._go_to_top,
            "home": self._go_to_top,
            "G": self._go_to_bottom,
            "shift+g": self._go_to_bottom,
            "end": self._go_to_bottom,
            "tab": lambda: self._set_mode(Mode.STATS),
            "question_mark": lambda: self._set_mode(Mode.HELP),
            "?": lambda: self._set_mode(Mode.HELP),
            "colon": lambda: self._enter_command(""),
            ":": lambda: self._enter_command(""),
            "slash": lambda: self._enter_command(SEARCH_PREFIX),
            "/": lambda: self._enter_command(SEARCH_PREFIX),
            "q": self._quit,
        }
        self._recompute_visible(reset_selection=True)
        if not self.view.status_message:
            self.view.status_message = self._catalog_summary()

    @property
    def view(self) -> ViewState:
        return self.state.view

    @property
    def catalog(self) -> CrateCatalog:
        return self.state.catalog

    def handle_key(self, key: str, character: str | None = None) -> Action:
        mode = self.view.mode
        if mode is Mode.NORMAL:
            handler = self._normal_keys.get(key)
            if handler is None and character:
                handler = self._normal_keys.get(character)
            return handler() if handler is not None else Action.NONE
        if mode is Mode.COMMAND:
            return self._handle_command_key(key, character)
        if mode is Mode.STATS:
            return self._handle_overlay_key(key, character, {"tab"})
        return self._handle_overlay_key(key, character, {"question_mark", "?"})

    def submit_command(self) -> Action:
        command = parse_command(self.view.command_buffer)
        self.view.command_buffer = ""
        self.view.mode = Mode.NORMAL
        return self.apply_command(command)

    def cancel_command(self) -> None:
        self.view.command_buffer = ""
        self.view.mode = Mode.NORMAL

    def apply_command(self, command: Command) -> Action:
        if isinstance(command, Quit):
            return self._quit()
        if isinstance(command, Help):
            self.view.mode = Mode.HELP
            return Action.NONE
        if isinstance(command, Refresh):
            self.view.status_message = "Refreshing catalog..."
            return Action.REFRESH
        if isinstance(command, Invalid):
            self.view.status_message = f"Invalid command: {command.reason}"
            log.debug("command_rejected", reason=command.reason)
            return Action.NONE

        self.set_filter(_filter_for(command))
        return Action.NONE

    def set_filter(self, active_filter: ActiveFilter) -> None:
        self.view.active_filter = active_filter
        self._recompute_visible(reset_selection=True)
        self.view.status_message = _describe_filter(
            active_filter, len(self.view.visible_list)
        )

    def replace_catalog(self, catalog: CrateCatalog, *, stale: bool = False) -> None:
        """Swap in a new catalog and re-derive the list under the same filter."""
        self.state.catalog = catalog
        self.view.stale = stale
        self._recompute_visible(reset_selection=False)
        self.view.status_message = self._catalog_summary()

    def mark_stale(self, message: str) -> None:
        self.view.stale = True
        self.view.status_message = message

    def select(self, index: int) -> None:
        self.view.selected_index = self._clamp(index)

    def selected_name(self) -> str | None:
        index = self.view.selected_index
        if index is None:
            return None
        return self.view.visible_list[index]

    def selected_record(self) -> CrateRecord | None:
        name = self.selected_name()
        if name is None:
            return None
        return self.catalog.get(name)

    def visible_records(self) -> list[CrateRecord]:
        records = (self.catalog.get(name) for name in self.view.visible_list)
        return [record for record in records if record is not None]

    def _handle_command_key(self, key: str, character: str | None) -> Action:
        if key == "enter":
            return self.submit_command()
        if key == "escape":
            self.cancel_command()
            return Action.NONE
        if key == "backspace":
            self.view.command_buffer = self.view.command_buffer[:-1]
            return Action.NONE
        if key == "space":
            self.view.command_buffer += " "
            return Action.NONE
        if character and character.isprintable():
            self.view.command_buffer += character
        return Action.NONE

    def _handle_overlay_key(
        self, key: str, character: str | None, close_keys: set[str]
    ) -> Action:
        if key == "q" or character == "q":
            return self._quit()
        if key == "escape" or key in close_keys or character in close_keys:
            self.view.mode = Mode.NORMAL
        return Action.NONE

    def _recompute_visible(self, *, reset_selection: bool) -> None:
        previous = self.selected_name() if not reset_selection else None
        self.view.visible_list = record_names(
            self.catalog.apply(self.view.active_filter)
        )
        if previous is not None and previous in self.view.visible_list:
            self.view.selected_index = self.view.visible_list.index(previous)
            return
        if reset_selection or self.view.selected_index is None:
            self.view.selected_index = self._clamp(0)
        else:
            self.view.selected_index = self._clamp(self.view.selected_index)

    def _clamp(self, index: int) -> int | None:
        if not self.view.visible_list:
            return None
        return max(0, min(index, len(self.view.visible_list) - 1))

    def _move(self, delta: int) -> Action:
        if self.view.selected_index is not None:
            self.view.selected_index = self._clamp(self.view.selected_index + delta)
        return Action.NONE

    def _go_to_top(self) -> Action:
        self.view.selected_index = self._clamp(0)
        return Action.NONE

    def _go_to_bottom(self) -> Action:
        self.view.selected_index = self._clamp(len(self.view.visible_list) - 1)
        return Action.NONE

    def _set_mode(self, mode: Mode) -> Action:
        self.view.mode = mode
        return Action.NONE

    def _enter_command(self, seed: str) -> Action:
        self.view.mode = Mode.COMMAND
        self.view.command_buffer = seed
        return Action.NONE

    def _quit(self) -> Action:
        self.view.running = False
        return Action.QUIT

    def _catalog_summary(self) -> str:
        if not len(self.catalog):
            return "No crates loaded."
        core_count = len(self.catalog.filter_core(True))
        return (
            f"Total: {len(self.catalog)} | Core: {core_count} | "
            f"Community: {len(self.catalog) - core_count} | "
            "Press ':' for commands or '?' for help"
        )


def _filter_for(command: Command) -> ActiveFilter:
    if isinstance(command, ShowAll):
        return AllFilter()
    if isinstance(command, ShowCore):
        return CoreFilter()
    if isinstance(command, ShowCommunity):
        return CommunityFilter()
    if isinstance(command, Top):
        return TopFilter(command.n)
    if isinstance(command, Recent):
        return RecentFilter(command.n)
    if isinstance(command, New):
        return NewestFilter(command.n)
    if isinstance(command, Search):
        return SearchFilter(command.query)
    raise TypeError(f"command does not select a filter: {command!r}")


def _describe_filter(active_filter: ActiveFilter, count: int) -> str:
    if isinstance(active_filter, AllFilter):
        return f"Showing all {count} crates"
    if isinstance(active_filter, CoreFilter):
        return f"Showing {count} core libraries"
    if isinstance(active_filter, CommunityFilter):
        return f"Showing {count} community packages"
    if isinstance(active_filter, TopFilter):
        return f"Showing top {count} by downloads"
    if isinstance(active_filter, RecentFilter):
        return f"Showing top {count} by recent downloads"
    if isinstance(active_filter, NewestFilter):
        return f"Showing {count} newest crates"
    return f"Found {count} crates matching '{active_filter.query}'"
