"""Testdaten-Generator für die Semesterplanung.

Erzeugt ein Verzeichnis (Betreuungspersonen + Kinder) und ein dazu passendes,
gültiges Wochen-Template:
  - jedes Kind ist in jedem Slot genau einer Betreuungsperson zugeteilt
    (damit ist die Vormittags-/Nachmittags-Abdeckung immer erfüllt)
  - Zuteilung reihum über einen Allocator, der nur für einen Lauf lebt
  - Personen ohne Kinder in einem Slot erhalten "Pause"
"""

import random
from dataclasses import dataclass, field
from typing import Optional

from config.schema import PlanningConfig
from data.excel_import import template_bytes
from models.directory import Child, Directory, StaffMember

# ─── Namens-Listen ────────────────────────────────────────────────────────────

_FIRST_NAMES = [
    "Camille", "Léa", "Manon", "Chloé", "Inès", "Jade", "Louise", "Alice",
    "Lina", "Emma", "Zoé", "Sarah", "Hugo", "Lucas", "Louis", "Nathan",
    "Gabriel", "Jules", "Arthur", "Adam", "Raphaël", "Théo", "Paul", "Noah",
    "Tom", "Maël", "Sacha", "Nina", "Rose", "Anna",
]

_LAST_NAMES = [
    "Martin", "Bernard", "Dubois", "Thomas", "Robert", "Richard", "Petit",
    "Durand", "Leroy", "Moreau", "Simon", "Laurent", "Lefebvre", "Michel",
    "Garcia", "David", "Bertrand", "Roux", "Vincent", "Fournier", "Morel",
    "Girard", "André", "Mercier", "Dupont", "Lambert", "Bonnet", "Fontaine",
]

_ACTIVITIES = [
    "Lecture", "Peinture", "Jeux de société", "Sport", "Musique",
    "Jardinage", "Cuisine", "Théâtre", "Bricolage", "Danse",
]


class RoundRobinAllocator:
    """Verteilt reihum auf eine feste Liste; Zustand gilt nur für einen Lauf."""

    def __init__(self, items: list) -> None:
        if not items:
            raise ValueError("Allocator benötigt mindestens ein Element")
        self._items = list(items)
        self._index = 0

    def next(self):
        item = self._items[self._index % len(self._items)]
        self._index += 1
        return item


@dataclass
class FakeDataset:
    """Verzeichnis plus Template-Zeilen pro Wochentag."""

    directory: Directory
    rows_by_day: dict[int, list[list[str]]] = field(default_factory=dict)

    def to_bytes(self, config: PlanningConfig) -> bytes:
        return template_bytes(config, self.rows_by_day)


class FakeDataGenerator:
    """Generiert Verzeichnis und gültiges Template auf Basis der PlanningConfig."""

    def __init__(self, config: PlanningConfig, seed: Optional[int] = None) -> None:
        self.config = config
        self.rng = random.Random(seed)

    def _unique_names(self, count: int, used: set[str]) -> list[tuple[str, str]]:
        names = []
        while len(names) < count:
            first = self.rng.choice(_FIRST_NAMES)
            last = self.rng.choice(_LAST_NAMES)
            key = f"{first} {last}".casefold()
            if key in used:
                continue
            used.add(key)
            names.append((first, last))
        return names

    def generate_directory(self, num_staff: int = 6, num_children: int = 24) -> Directory:
        if num_staff < 1:
            raise ValueError("Mindestens eine Betreuungsperson erforderlich")
        if len(_FIRST_NAMES) * len(_LAST_NAMES) < num_staff + num_children:
            raise ValueError("Zu viele Personen für die Namenslisten")
        used: set[str] = set()
        staff = [
            StaffMember(id=i, first_name=f, last_name=l)
            for i, (f, l) in enumerate(self._unique_names(num_staff, used), 1)
        ]
        children = [
            Child(id=i, first_name=f, last_name=l)
            for i, (f, l) in enumerate(self._unique_names(num_children, used), 1)
        ]
        return Directory(staff=staff, children=children)

    def generate_rows(self, directory: Directory) -> dict[int, list[list[str]]]:
        """Template-Zeilen [Name, Slot1, …] für jeden Wochentag."""
        sep = self.config.template.separators[0]
        pause = self.config.template.pause_keyword
        staff = directory.staff
        rows_by_day: dict[int, list[list[str]]] = {}
        allocator = RoundRobinAllocator(staff)

        for layout in self.config.time_grid.days:
            rows = {s.id: [s.full_name] for s in staff}
            for _ in range(layout.slot_count):
                groups: dict[int, list[str]] = {s.id: [] for s in staff}
                for child in directory.children:
                    groups[allocator.next().id].append(child.full_name)
                for member in staff:
                    names = groups[member.id]
                    if names:
                        activity = self.rng.choice(_ACTIVITIES)
                        rows[member.id].append(f"{activity} {sep} {', '.join(names)}")
                    else:
                        rows[member.id].append(pause)
            rows_by_day[layout.day_of_week] = [rows[s.id] for s in staff]
        return rows_by_day

    def generate(self, num_staff: int = 6, num_children: int = 24) -> FakeDataset:
        """Erzeugt den vollständigen Datensatz."""
        directory = self.generate_directory(num_staff, num_children)
        return FakeDataset(directory=directory, rows_by_day=self.generate_rows(directory))

    # ─── Ausgabe ──────────────────────────────────────────────────────────────

    def print_summary(self, data: FakeDataset) -> None:
        """Gibt eine Rich-Tabelle mit Übersicht der erzeugten Daten aus."""
        from rich.console import Console
        from rich.table import Table
        from rich import box

        console = Console()
        table = Table(title="Erzeugte Testdaten", box=box.ROUNDED)
        table.add_column("Kategorie", style="bold cyan")
        table.add_column("Anzahl", justify="right")
        table.add_column("Details")

        cells = sum(len(r) - 1 for rows in data.rows_by_day.values() for r in rows)
        table.add_row("Betreuungspersonen", str(len(data.directory.staff)), "")
        table.add_row("Kinder", str(len(data.directory.children)), "")
        table.add_row("Template-Zellen", str(cells),
                      f"{len(data.rows_by_day)} Wochentag-Blätter")
        console.print(table)
