from __future__ import annotations

from typing import Callable, List, Optional, Sequence

from rich import box
from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from checkschedule.engine.aggregation import PivotLine, PivotResult, format_hours
from checkschedule.engine.grid import HOURS, AlertThresholds, GridEntry, WeekGrid, is_alert

LEVEL_STYLES = ("bold", "", "dim")
INDENT = "  "


def _price_text(price: Optional[int]) -> str:
    return f"{price:,}원" if price and price > 0 else "-"


def build_pivot_table(pivot: PivotResult, lines: Sequence[PivotLine]) -> Table:
    """
    Render the competitor pivot as a rich table.

    One row per visible tree line, one column per displayed broadcaster, a
    row-total column, and a per-broadcaster totals footer.
    """
    table = Table(
        title="경쟁사 편성 가중시 (시간)",
        box=box.ROUNDED,
        caption=f"{pivot.row_count:,} rows · top {len(pivot.ranking)} ranked by total",
        show_footer=True,
    )
    table.add_column(
        "중분류 › 소분류 › 브랜드", style="cyan", no_wrap=True, footer="방송사별 가중시 합계"
    )
    for column in pivot.columns:
        table.add_column(
            column,
            justify="right",
            footer=format_hours(pivot.column_totals.get(column, 0.0)),
        )
    table.add_column(
        "분류별 가중시 합계",
        justify="right",
        style="bold",
        footer=format_hours(pivot.grand_total),
    )

    if pivot.is_empty:
        table.add_row("데이터가 없습니다.", *[""] * (len(pivot.columns) + 1))
        return table

    for line in lines:
        node = line.node
        marker = "▾ " if line.expanded else ("▸ " if node.has_children else "  ")
        label = Text(INDENT * line.level + marker, style=LEVEL_STYLES[min(line.level, 2)])
        label.append(node.name)
        if node.rank is not None:
            label.append(f" #{node.rank}", style="bold magenta")
        cells = [format_hours(node.value(column)) for column in pivot.columns]
        table.add_row(label, *cells, format_hours(node.row_total))
    return table


def _entry_text(entry: GridEntry, thresholds: AlertThresholds) -> Text:
    alert = is_alert(entry, thresholds)
    style = "bold red" if alert else ("bold" if entry.is_self else "")
    text = Text()
    text.append(f"[{entry.channel_label}] ", style="reverse" if entry.is_self else "dim")
    text.append(entry.time_range, style=style)
    text.append("\n")
    if alert:
        text.append("🔔 ", style="red")
    if entry.category:
        text.append(f"{entry.category} | ", style="dim")
    text.append(entry.product_name, style=style)
    return text


def build_grid_table(
    grid: WeekGrid,
    is_expanded: Optional[Callable[[str, int], bool]] = None,
    thresholds: AlertThresholds = AlertThresholds(),
    title: str = "주간 편성 분석 (Weekly Analysis)",
) -> Table:
    """
    Render the weekly grid: one row per hour, one column per day.

    Collapsed cells show their capped entry list followed by a "+N more"
    hint; expanded cells show every entry.
    """
    is_expanded = is_expanded or (lambda day, hour: False)
    table = Table(title=title, box=box.SIMPLE_HEAVY, show_lines=True)
    table.add_column("시간대", justify="center", style="dim", no_wrap=True)
    for day, weekday in grid.day_labels():
        table.add_column(f"{day[5:]} ({weekday})", min_width=18, vertical="top")

    for hour in HOURS:
        cells: List[Group | str] = []
        for day in grid.dates:
            cell = grid.cell(day, hour)
            expanded = is_expanded(day, hour)
            parts: List[Text] = [_entry_text(entry, thresholds) for entry in cell.visible(expanded)]
            if not expanded and cell.hidden_count > 0:
                parts.append(Text(f"+{cell.hidden_count} more", style="italic blue"))
            cells.append(Group(*parts) if parts else "")
        table.add_row(f"{hour:02d}", *cells)
    return table


def build_entry_panel(
    entry: GridEntry,
    thresholds: AlertThresholds = AlertThresholds(),
) -> Panel:
    """Detail view for one grid entry."""
    row = entry.row
    channel = entry.channel_label if entry.is_self else (row.other_broad_name or "경쟁사")
    details = Table.grid(padding=(0, 2))
    details.add_column(style="dim")
    details.add_column()
    details.add_row("방송시간", f"{entry.time_range} ({entry.duration_minutes}분)")
    details.add_row("채널", channel)
    details.add_row("판매가", Text(_price_text(row.product_sale_price), style="bold blue"))
    details.add_row("상품 설명", row.other_item_desc or "설명 없음")
    body: List[Table | Text] = [details]
    if is_alert(entry, thresholds):
        alert = Text("🔔 유사도 알림 발생", style="bold red")
        if row.comp_alert:
            alert.append(f"\n{row.comp_alert}", style="red")
        body.append(alert)
    return Panel(Group(*body), title=entry.product_name, box=box.ROUNDED)


def print_pivot(
    pivot: PivotResult, lines: Sequence[PivotLine], console: Optional[Console] = None
) -> None:
    (console or Console()).print(build_pivot_table(pivot, lines))


def print_grid(
    grid: WeekGrid,
    is_expanded: Optional[Callable[[str, int], bool]] = None,
    thresholds: AlertThresholds = AlertThresholds(),
    console: Optional[Console] = None,
) -> None:
    console = console or Console()
    if grid.is_empty:
        console.print("[yellow]No schedule rows in this week.[/yellow]")
    console.print(build_grid_table(grid, is_expanded, thresholds))


def print_dates(dates: Sequence[str], console: Optional[Console] = None) -> None:
    console = console or Console()
    if not dates:
        console.print("[yellow]No broadcast dates in the store.[/yellow]")
        return
    table = Table(title="Broadcast dates", box=box.ROUNDED)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Date", style="cyan")
    for index, value in enumerate(dates, start=1):
        table.add_row(str(index), value)
    console.print(table)


__all__ = [
    "build_entry_panel",
    "build_grid_table",
    "build_pivot_table",
    "print_dates",
    "print_grid",
    "print_pivot",
]
