"""Vergleich eines neuen Semesterplans mit dem gespeicherten (Änderungsvorschau).

Einträge werden über ihren Inhalt verglichen (Person, Zeitfenster, Aktivität,
Kinder), IDs spielen keine Rolle. Gibt strukturierte Unterschiede zurück, die
als Rich-Tabelle oder JSON ausgegeben werden können.
"""

from __future__ import annotations

import json
from collections import Counter
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from models.schedule import ScheduleEntry


@dataclass
class StaffChange:
    """Hinzugefügte / entfernte Vorkommen für eine Betreuungsperson."""

    staff_id: int
    staff_name: str
    added: int
    removed: int


@dataclass
class ScheduleDiff:
    """Diff zwischen gespeichertem und neuem Plan eines Semesters."""

    added: int = 0
    removed: int = 0
    unchanged: int = 0
    # Abgesagte Einträge und Umbuchungen gehen beim Ersetzen verloren
    cancelled_dropped: int = 0
    transfers_dropped: int = 0
    staff_changes: list[StaffChange] = field(default_factory=list)

    def is_empty(self) -> bool:
        """Gibt True zurück wenn kein Unterschied gefunden wurde."""
        return (
            not self.added
            and not self.removed
            and not self.cancelled_dropped
            and not self.transfers_dropped
        )

    def to_dict(self) -> dict:
        """Serialisiert den Diff als Dictionary (für JSON-Ausgabe)."""
        return {
            "added": self.added,
            "removed": self.removed,
            "unchanged": self.unchanged,
            "cancelled_dropped": self.cancelled_dropped,
            "transfers_dropped": self.transfers_dropped,
            "staff_changes": [
                {
                    "staff_id": c.staff_id,
                    "staff_name": c.staff_name,
                    "added": c.added,
                    "removed": c.removed,
                }
                for c in self.staff_changes
            ],
        }

    def to_json(self, indent: int = 2) -> str:
        """Gibt den Diff als JSON-String zurück."""
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)

    def print_rich(self) -> None:
        from rich.console import Console
        from rich.panel import Panel
        from rich.table import Table
        from rich import box

        console = Console()
        lines = [
            f"[green]+ {self.added}[/green] neu   "
            f"[red]− {self.removed}[/red] entfällt   "
            f"[dim]= {self.unchanged} unverändert[/dim]",
        ]
        if self.cancelled_dropped or self.transfers_dropped:
            lines.append(
                f"[yellow]Beim Ersetzen verloren: {self.cancelled_dropped} Absage(n), "
                f"{self.transfers_dropped} Umbuchung(en)[/yellow]"
            )
        console.print(Panel("\n".join(lines), title="Änderungsvorschau", border_style="cyan"))
        if not self.staff_changes:
            return
        table = Table(box=box.SIMPLE)
        table.add_column("Betreuungsperson", style="bold")
        table.add_column("Neu", justify="right", style="green")
        table.add_column("Entfällt", justify="right", style="red")
        for c in self.staff_changes:
            table.add_row(c.staff_name or str(c.staff_id), str(c.added), str(c.removed))
        console.print(table)


def diff_schedules(
    current: list["ScheduleEntry"], proposed: list["ScheduleEntry"]
) -> ScheduleDiff:
    """Vergleicht den gespeicherten mit dem vorgeschlagenen Plan.

    Args:
        current:  Gespeicherte Einträge des Semesters.
        proposed: Ergebnis der Expansion des neuen Templates.

    Returns:
        ScheduleDiff mit Zählern gesamt und pro Betreuungsperson.
    """
    old = Counter(e.content_key() for e in current)
    new = Counter(e.content_key() for e in proposed)
    added = new - old
    removed = old - new

    diff = ScheduleDiff(
        added=sum(added.values()),
        removed=sum(removed.values()),
        unchanged=sum((old & new).values()),
        cancelled_dropped=sum(1 for e in current if e.cancelled),
        transfers_dropped=sum(
            1 for e in current for c in e.children if c.original_entry_id
        ),
    )

    names = {e.staff_id: e.staff_name for e in list(current) + list(proposed)}
    per_staff_added: Counter = Counter()
    per_staff_removed: Counter = Counter()
    for key, n in added.items():
        per_staff_added[key[0]] += n
    for key, n in removed.items():
        per_staff_removed[key[0]] += n
    for staff_id in sorted(set(per_staff_added) | set(per_staff_removed)):
        diff.staff_changes.append(StaffChange(
            staff_id=staff_id,
            staff_name=names.get(staff_id, ""),
            added=per_staff_added[staff_id],
            removed=per_staff_removed[staff_id],
        ))
    return diff
