"""Gemeinsamer Renderer für die Terminal-Anzeige des Semesterplans.

Wird von den CLI-Befehlen show, alternatives und closures verwendet.
"""

from collections import defaultdict
from datetime import date, timedelta
from typing import TYPE_CHECKING

from rich import box
from rich.table import Table

if TYPE_CHECKING:
    from config.schema import PlanningConfig
    from models.schedule import ClosureDay, ScheduleEntry


def week_monday(day: date) -> date:
    return day - timedelta(days=day.weekday())


def group_by_week(entries: list["ScheduleEntry"]) -> dict[date, list["ScheduleEntry"]]:
    """Montag → Einträge dieser Woche (chronologisch sortiert)."""
    weeks: dict[date, list] = defaultdict(list)
    for e in sorted(entries, key=lambda e: (e.start_time, e.staff_id)):
        weeks[week_monday(e.day)].append(e)
    return dict(sorted(weeks.items()))


def _cell(entry: "ScheduleEntry", show_staff: bool) -> str:
    text = entry.activity
    if show_staff and entry.staff_name:
        text += f"\n{entry.staff_name}"
    text += f" ({len(entry.children)})"
    if entry.cancelled:
        text = f"[strike]{text}[/strike] ✗"
    return text


def render_week_rows(
    entries: list["ScheduleEntry"],
    config: "PlanningConfig",
    show_staff: bool = True,
) -> list[list[str]]:
    """Tabellenzeilen für eine Woche.

    Jede Zeile: [slot_nr, zeit, Lundi, …, Vendredi]; zwischen Vormittag und
    Nachmittag wird eine Pausenzeile eingefügt.
    """
    grid = config.time_grid
    days = sorted(grid.days, key=lambda d: d.day_of_week)
    by_cell: dict[tuple, list] = defaultdict(list)
    for e in entries:
        clock = e.start_time.strftime("%H:%M")
        by_cell[(e.day_of_week, clock)].append(e)

    rows: list[list[str]] = []
    previous_period = None
    for slot in grid.slots:
        if previous_period == "morning" and slot.period == "afternoon":
            rows.append(["—", "Pause déjeuner"] + ["─" * 8] * len(days))
        previous_period = slot.period
        cells = [str(slot.slot_index), slot.label]
        for layout in days:
            if slot.slot_index > layout.slot_count:
                cells.append("[dim]·[/dim]")
                continue
            found = by_cell.get((layout.day_of_week, slot.start_time), [])
            cells.append("\n".join(_cell(e, show_staff) for e in found) or "—")
        rows.append(cells)
    return rows


def week_table(entries: list["ScheduleEntry"], config: "PlanningConfig",
               title: str, show_staff: bool = True) -> Table:
    table = Table(title=title, box=box.ROUNDED, show_lines=True)
    table.add_column("Nr", justify="center")
    table.add_column("Zeit")
    for layout in sorted(config.time_grid.days, key=lambda d: d.day_of_week):
        table.add_column(layout.sheet_name, justify="center")
    for row in render_week_rows(entries, config, show_staff):
        table.add_row(*row)
    return table


def entry_table(entries: list["ScheduleEntry"], title: str) -> Table:
    """Flache Liste mit IDs (für cancel/reassign)."""
    table = Table(title=title, box=box.SIMPLE)
    table.add_column("ID", style="dim", no_wrap=True)
    table.add_column("Datum")
    table.add_column("Zeit")
    table.add_column("Betreuung")
    table.add_column("Aktivität")
    table.add_column("Kinder", justify="right")
    table.add_column("Status")
    for e in entries:
        table.add_row(
            e.id or "—",
            e.start_time.strftime("%a %d.%m.%Y"),
            f"{e.start_time:%H:%M}–{e.end_time:%H:%M}",
            e.staff_name or str(e.staff_id),
            e.activity,
            str(len(e.children)),
            "[red]abgesagt[/red]" if e.cancelled else "[green]aktiv[/green]",
        )
    return table


def closures_table(closures: list["ClosureDay"], title: str) -> Table:
    table = Table(title=title, box=box.SIMPLE)
    table.add_column("Datum")
    table.add_column("Art")
    table.add_column("Bezeichnung")
    for c in closures:
        table.add_row(c.day.strftime("%a %d.%m.%Y"), c.label, c.name)
    return table
