from __future__ import annotations

import asyncio
from collections.abc import Callable, Iterable
from datetime import timedelta

import structlog
from rich.text import Text
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.events import Key, Resize
from textual.widgets import OptionList, Static
from textual.widgets.option_list import Option

from ratcrate_browse.cache import DEFAULT_TTL, CacheStore
from ratcrate_browse.catalog import CrateCatalog
from ratcrate_browse.commands import Refresh
from ratcrate_browse.models import CacheSnapshot, CrateRecord, Mode, ViewState
from ratcrate_browse.navigation import Action, AppState, NavigationController
from ratcrate_browse.registry import FetchError, fetch_all_crates
from ratcrate_browse.rendering import (
    crate_icon,
    render_crate_details,
    render_help,
    render_stats,
)
from ratcrate_browse.stats import compute_stats

log = structlog.get_logger()


class CrateList(OptionList, can_focus=False, inherit_bindings=False):
    """Option list that only mirrors the controller's selection."""


class CrateBrowserTui(App[None]):
    CSS_PATH = "browser.tcss"
    ENABLE_COMMAND_PALETTE = False
    AUTO_FOCUS = None
    BINDINGS = [
        Binding("tab", "tab_key", show=False, priority=True),
        Binding("ctrl+c", "quit", show=False, priority=True),
    ]

    def __init__(
        self,
        *,
        cache_store: CacheStore,
        snapshot: CacheSnapshot | None = None,
        fetch: Callable[[], Iterable[CrateRecord]] = fetch_all_crates,
        ttl: timedelta = DEFAULT_TTL,
        force_refresh: bool = False,
    ) -> None:
        super().__init__()
        self.theme = "rose-pine"
        self._snapshot = snapshot
        self._fetch = fetch
        stale = cache_store.is_stale(snapshot, ttl=ttl)
        self._needs_refresh = force_refresh or stale
        catalog = CrateCatalog(snapshot.records if snapshot is not None else ())
        view = ViewState(stale=snapshot is not None and stale)
        self._controller = NavigationController(
            AppState(cache_store=cache_store, catalog=catalog, view=view)
        )
        self._refresh_in_progress = False
        self._rendered_names: tuple[str, ...] | None = None

    @property
    def controller(self) -> NavigationController:
        return self._controller

    def compose(self) -> ComposeResult:
        with Horizontal(id="body"):
            with Vertical(id="sidebar"):
                yield CrateList(id="crate-list")
            with Vertical(id="main-panel"):
                yield Static("", id="main-placeholder")
        yield Static("", id="status")

    def on_mount(self) -> None:
        if self._needs_refresh:
            self._after_action(self._controller.apply_command(Refresh()))
            return
        self._render_view()

    def on_key(self, event: Key) -> None:
        action = self._controller.handle_key(event.key, event.character)
        event.stop()
        self._after_action(action)

    def action_tab_key(self) -> None:
        self._after_action(self._controller.handle_key("tab"))

    def on_resize(self, event: Resize) -> None:
        del event
        self.call_after_refresh(self._render_view)

    def on_option_list_option_highlighted(
        self, event: OptionList.OptionHighlighted
    ) -> None:
        if event.option_list.id != "crate-list":
            return
        view = self._controller.view
        if not view.visible_list or event.option_index == view.selected_index:
            return
        self._controller.select(event.option_index)
        self._update_main_panel()

    def _after_action(self, action: Action) -> None:
        if action is Action.QUIT:
            self.exit()
            return
        if action is Action.REFRESH:
            self._request_refresh()
        self._render_view()

    def _request_refresh(self) -> None:
        if self._refresh_in_progress:
            return
        self._refresh_in_progress = True
        try:
            self.run_worker(
                self._refresh_catalog(),
                group="catalog-refresh",
                exclusive=True,
                exit_on_error=False,
            )
        except Exception:
            self._refresh_in_progress = False
            raise

    async def _refresh_catalog(self) -> None:
        cache_store = self._controller.state.cache_store
        try:
            snapshot = await asyncio.to_thread(cache_store.refresh, self._fetch)
            catalog = CrateCatalog(snapshot.records)
        except (FetchError, ValueError) as exc:
            log.warning("catalog_refresh_failed", error=str(exc))
            self._controller.mark_stale(
                f"Refresh failed: {exc!s}. Showing cached data."
            )
            self.notify(
                f"Failed to refresh catalog: {exc!s}",
                title="Refresh",
                severity="error",
            )
            return
        finally:
            self._refresh_in_progress = False
            self._render_view()

        self._snapshot = snapshot
        self._controller.replace_catalog(catalog)
        self._render_view()
        self.notify(f"Loaded {len(catalog):,} crates", title="Refresh")

    def _render_view(self) -> None:
        self._update_crate_list()
        self._update_main_panel()
        self._update_status()

    def _update_crate_list(self) -> None:
        view = self._controller.view
        crate_list = self.query_one("#crate-list", OptionList)
        if view.visible_list != self._rendered_names:
            crate_list.clear_options()
            if view.visible_list:
                crate_list.add_options(
                    [
                        f"{crate_icon(record)} {record.name}"
                        for record in self._controller.visible_records()
                    ]
                )
            else:
                crate_list.add_option(Option("No crates found", disabled=True))
            self._rendered_names = view.visible_list
        crate_list.highlighted = view.selected_index

        sidebar = self.query_one("#sidebar", Vertical)
        sidebar.border_title = (
            f"Crates ({len(view.visible_list)}/{len(self._controller.catalog)})"
        )

    def _main_panel_content_width(self) -> int:
        main_panel = self.query_one("#main-panel", Vertical)
        if main_panel.size.width <= 0:
            return 90
        return max(50, main_panel.size.width - 6)

    def _main_panel_text(self) -> str:
        view = self._controller.view
        if view.mode is Mode.HELP:
            return render_help()
        if view.mode is Mode.STATS:
            return render_stats(
                compute_stats(self._controller.catalog),
                fetched_at=self._snapshot.fetched_at if self._snapshot else None,
                stale=view.stale,
            )
        if not view.visible_list:
            if self._refresh_in_progress:
                return "Loading crate catalog..."
            return "No crates match the current selection."
        return render_crate_details(
            self._controller.selected_record(),
            content_width=self._main_panel_content_width(),
        )

    def _update_main_panel(self) -> None:
        view = self._controller.view
        main_panel = self.query_one("#main-panel", Vertical)
        main_panel.border_title = {
            Mode.HELP: "Help (? or Esc to close)",
            Mode.STATS: "Statistics (Tab or Esc to close)",
        }.get(view.mode, "Detail")
        self.query_one("#main-placeholder", Static).update(self._main_panel_text())

    def _status_text(self) -> Text:
        view = self._controller.view
        status = Text()
        if view.mode is Mode.COMMAND:
            status.append(" COMMAND ", style="bold black on green")
            status.append(" :")
            status.append(view.command_buffer, style="bold yellow")
            status.append("_", style="blink")
            return status

        status.append(f" {view.mode.name} ", style="bold black on blue")
        status.append(f" {view.status_message}")
        if view.stale:
            status.append("  [stale]", style="bold red")
        return status

    def _update_status(self) -> None:
        self.query_one("#status", Static).update(self._status_text())
