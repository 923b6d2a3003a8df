"""Prüfbericht eines Templates: alle Verstöße in einem Durchlauf."""

from typing import Literal, Optional

from pydantic import BaseModel

ViolationKind = Literal[
    "unknown_staff",
    "unknown_child",
    "missing_staff",
    "missing_child_coverage",
    "staff_conflict",
    "ambiguous_name",
]

_KIND_LABELS = {
    "unknown_staff": "Unbekannte Betreuungsperson",
    "unknown_child": "Unbekanntes Kind",
    "missing_staff": "Betreuungsperson fehlt",
    "missing_child_coverage": "Kind nicht abgedeckt",
    "staff_conflict": "Doppelbelegung",
    "ambiguous_name": "Name nicht eindeutig",
}


class Violation(BaseModel):
    """Ein einzelner Verstoß mit genug Kontext, um das Blatt zu korrigieren."""

    kind: ViolationKind
    name: str                         # betroffene Person
    day_of_week: Optional[int] = None
    slot_index: Optional[int] = None
    period: Optional[str] = None      # "morning" / "afternoon" bei Abdeckung
    sheet: Optional[str] = None
    row: Optional[int] = None
    column: Optional[int] = None
    description: str

    @property
    def label(self) -> str:
        return _KIND_LABELS[self.kind]


class ValidationReport(BaseModel):
    """Ergebnis der Template-Prüfung."""

    violations: list[Violation] = []

    @property
    def is_valid(self) -> bool:
        return not self.violations

    def by_kind(self, kind: str) -> list[Violation]:
        return [v for v in self.violations if v.kind == kind]

    def summary(self) -> str:
        """Kurze Textübersicht (eine Zeile pro Verstoß)."""
        if self.is_valid:
            return "Template gültig."
        lines = [f"{len(self.violations)} Problem(e):"]
        for v in self.violations:
            lines.append(f"  • [{v.label}] {v.description}")
        return "\n".join(lines)

    def print_rich(self) -> None:
        """Gibt den Report formatiert über Rich aus."""
        from rich.console import Console
        from rich.panel import Panel
        from rich.table import Table
        from rich import box

        console = Console()
        status = (
            "[bold green]✓ TEMPLATE GÜLTIG[/bold green]"
            if self.is_valid
            else "[bold red]✗ TEMPLATE ABGELEHNT[/bold red]"
        )
        counts = {}
        for v in self.violations:
            counts[v.label] = counts.get(v.label, 0) + 1
        lines = [status]
        for label, n in counts.items():
            lines.append(f"  {label}: {n}")
        console.print(Panel("\n".join(lines), title="Template-Prüfung", border_style="cyan"))

        if self.is_valid:
            return

        table = Table(box=box.ROUNDED, show_lines=True)
        table.add_column("Art", width=26)
        table.add_column("Name", width=22)
        table.add_column("Position", width=16)
        table.add_column("Beschreibung")
        for v in self.violations:
            pos = ""
            if v.sheet:
                pos = v.sheet + (f" Z{v.row}/S{v.column}" if v.row else "")
            table.add_row(f"[red]{v.label}[/red]", v.name, pos, v.description)
        console.print(table)
