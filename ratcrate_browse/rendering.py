from __future__ import annotations

import textwrap
from datetime import datetime

from rich.markup import escape

from ratcrate_browse.models import CrateRecord
from ratcrate_browse.stats import CatalogStats


def format_detail_row(label: str, value: str) -> str:
    return f"{label:<20}{value}"


def format_number(value: int) -> str:
    if value >= 1_000_000:
        return f"{value / 1_000_000:.1f}M"
    if value >= 1_000:
        return f"{value / 1_000:.1f}K"
    return str(value)


def format_share(share: float) -> str:
    return f"{share * 100:.1f}%"


def format_timestamp(value: datetime) -> str:
    return value.strftime("%Y-%m-%d")


def format_optional(value: str | None) -> str:
    if not value:
        return "not available"
    return escape(value)


def render_kv_box(rows: list[tuple[str, str]], width: int) -> list[str]:
    if not rows:
        return []
    label_width = max(len(label) for label, _ in rows)
    inner_width = max(30, width - 2)
    value_width = max(10, inner_width - label_width - 3)

    lines = ["╭" + ("─" * inner_width) + "╮"]
    for label, value in rows:
        wrapped = textwrap.wrap(value, width=value_width) or [""]
        lines.append(f"│ {label:<{label_width}} {wrapped[0]:<{value_width}} │")
        for continuation in wrapped[1:]:
            lines.append(f"│ {'':<{label_width}} {continuation:<{value_width}} │")
    lines.append("╰" + ("─" * inner_width) + "╯")
    return lines


def crate_icon(record: CrateRecord) -> str:
    return "⭐" if record.is_core else "📦"


def render_crate_details(record: CrateRecord | None, *, content_width: int) -> str:
    if record is None:
        return "No crate selected."

    table_rows = [
        ("Downloads", format_number(record.downloads_total)),
        ("Recent Downloads", format_number(record.downloads_recent)),
        ("Category", record.category.value),
        ("License", record.license or "unknown"),
        ("Created", format_timestamp(record.created_at)),
        ("Updated", format_timestamp(record.updated_at)),
        ("Reviewed", "yes" if record.manual_review else "no"),
    ]

    lines = [
        f"# {crate_icon(record)} {escape(record.name)} v{escape(record.version)}",
    ]
    if record.is_core:
        lines.append("[bold yellow]CORE LIBRARY[/bold yellow]")
    lines.extend(
        [
            "",
            "Description:",
            escape(record.description) or "none",
            "",
        ]
    )
    lines.extend(render_kv_box(table_rows, content_width))
    lines.extend(
        [
            "",
            "Install:",
            f"  cargo add {escape(record.name)}",
            "",
            "Links:",
            format_detail_row("  Repository", format_optional(record.repository_url)),
            format_detail_row(
                "  Documentation", format_optional(record.documentation_url)
            ),
            format_detail_row("  Homepage", format_optional(record.homepage)),
        ]
    )
    if record.tags:
        lines.extend(["", "Tags:", "  " + escape(", ".join(sorted(record.tags)))])
    if record.screenshots:
        lines.extend(["", "Screenshots:"])
        lines.extend(f" - {escape(url)}" for url in record.screenshots)
    return "\n".join(lines)


HELP_TEXT = """\
# ratcrate-browse help

Navigation:
  j / ↓          Move down
  k / ↑          Move up
  Ctrl+d / PgDn  Page down
  Ctrl+u / PgUp  Page up
  g / Home       Go to top
  G / End        Go to bottom
  Tab            Toggle statistics
  ?              Toggle this help
  q              Quit

Commands (press ':'):
  :q, :quit         Quit
  :all              Show all crates
  :core             Show core libraries only
  :community        Show community packages only
  :top [N]          Top N by downloads (default: 10)
  :recent [N]       Top N by recent downloads
  :new [N]          N newest crates
  :search <query>   Search names and descriptions
  /<query>          Quick search
  :refresh          Download a fresh catalog
  :help             Show this help

Esc cancels a command or closes this panel."""


def render_help() -> str:
    return escape(HELP_TEXT)


def render_stats(
    stats: CatalogStats, *, fetched_at: datetime | None, stale: bool
) -> str:
    lines = [
        "# Catalog statistics",
        "",
        format_detail_row("Crates", f"{stats.total_crates:,}"),
        format_detail_row("Total downloads", f"{stats.total_downloads:,}"),
        format_detail_row("Recent downloads", f"{stats.recent_downloads:,}"),
        format_detail_row(
            "Core libraries",
            f"{stats.core_count:,} ({format_share(stats.core_share)})",
        ),
        format_detail_row(
            "Community",
            f"{stats.community_count:,} ({format_share(stats.community_share)})",
        ),
        format_detail_row(
            "Fetched",
            fetched_at.isoformat(timespec="seconds") if fetched_at else "never",
        ),
    ]
    if stale:
        lines.append("[bold red]Catalog data is stale.[/bold red]")

    lines.extend(["", f"Top {len(stats.top)} by downloads:"])
    if stats.top:
        for rank, record in enumerate(stats.top, start=1):
            downloads = format_number(record.downloads_total)
            lines.append(f" {rank}. {escape(record.name):<24} {downloads}")
    else:
        lines.append(" - none")

    lines.extend(["", "Categories:"])
    if stats.categories:
        for category, count in stats.categories:
            lines.append(f" - {category.value:<14} {count:,}")
    else:
        lines.append(" - none")
    return "\n".join(lines)
