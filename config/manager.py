"""Konfigurationsmanager: Laden, Speichern und Anzeigen der Planungs-Konfiguration.

Nutzt ruamel.yaml für YAML-Serialisierung mit Kommentaren.
"""

import json
from datetime import date
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.table import Table
from rich import box
from ruamel.yaml import YAML
from ruamel.yaml.comments import CommentedMap

from config.schema import PlanningConfig

console = Console()
yaml = YAML()
yaml.default_flow_style = False
yaml.width = 120


# ─── YAML-KOMMENTAR-AUFBAU ───

_YAML_HEADER = f"""\
# ============================================
# Semesterplanung — Konfiguration
# Erstellt: {date.today().isoformat()}
# ============================================
"""

_SECTION_COMMENTS = {
    "time_grid": (
        "Zeitraster",
        "Feste Slot-Spalten pro Wochentag-Blatt. Der kurze Tag hat nur Vormittags-Slots.",
    ),
    "template": (
        "Template-Grammatik",
        "Zellformat: <Aktivität> – <Name1>, <Name2>",
    ),
    "calendar": (
        "Ferien & Feiertage",
        "Wochen, deren Montag in den Ferien liegt oder ein Feiertag ist, werden übersprungen.",
    ),
    "database": (
        "Datenbank",
        None,
    ),
    "storage": (
        "Archiv",
        None,
    ),
    "logging": (
        "Logging",
        None,
    ),
}


class ConfigManager:
    CONFIG_DIR = Path("config")
    DEFAULT_CONFIG = CONFIG_DIR / "planning_config.yaml"

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path else self.DEFAULT_CONFIG

    def first_run_check(self) -> bool:
        """Gibt True zurück wenn noch keine Config existiert (Erstaufruf)."""
        return not self.path.exists()

    # ─── Laden ───

    def load(self, path: Optional[Path] = None) -> PlanningConfig:
        """Lade Config aus YAML. Validiert automatisch via Pydantic."""
        target = path or self.path
        if not target.exists():
            raise FileNotFoundError(
                f"Konfigurationsdatei nicht gefunden: {target}\n"
                f"Führen Sie 'semesterplan setup' aus, um die Einrichtung anzulegen."
            )
        with open(target, "r", encoding="utf-8") as f:
            raw = yaml.load(f)
        try:
            return PlanningConfig.model_validate(dict(raw or {}))
        except Exception as e:
            raise ValueError(
                f"Konfigurationsdatei ungültig: {target}\n"
                f"Pydantic-Fehler: {e}"
            ) from e

    # ─── Speichern ───

    def save(self, config: PlanningConfig, path: Optional[Path] = None,
             quiet: bool = False) -> Path:
        """Speichere Config als YAML mit Abschnitts-Kommentaren."""
        target = path or self.path
        target.parent.mkdir(parents=True, exist_ok=True)

        data = self._build_commented_yaml(config)

        with open(target, "w", encoding="utf-8") as f:
            f.write(_YAML_HEADER + "\n")
            yaml.dump(data, f)

        if not quiet:
            console.print(f"[green]✓[/green] Konfiguration gespeichert: {target}")
        return target

    def _build_commented_yaml(self, config: PlanningConfig) -> CommentedMap:
        """Baut die YAML-Struktur mit Kommentaren auf."""
        raw = json.loads(config.model_dump_json())
        cm = CommentedMap(raw)

        for field, (label, comment) in _SECTION_COMMENTS.items():
            if field not in cm:
                continue
            cm.yaml_set_comment_before_after_key(
                field,
                before=f"\n─── {label} ───" + (f"\n{comment}" if comment else ""),
            )

        grid_map = CommentedMap(cm["time_grid"])
        grid_map.yaml_add_eol_comment("1 = Montag … 5 = Freitag", "short_day")
        cm["time_grid"] = grid_map

        return cm

    # ─── Anzeige ───

    def print_summary(self, config: PlanningConfig) -> None:
        """Zeigt Zeitraster und Kalender als Rich-Tabellen."""
        grid = config.time_grid
        table = Table(title=f"Zeitraster — {config.organisation_name}", box=box.SIMPLE)
        table.add_column("Blatt", style="bold")
        for slot in grid.slots:
            table.add_column(f"Slot {slot.slot_index}\n{slot.label}", justify="center")
        for day in grid.days:
            cells = [
                ("✓" if slot.slot_index <= day.slot_count else "—")
                for slot in grid.slots
            ]
            table.add_row(day.sheet_name, *cells)
        console.print(table)

        cal = config.calendar
        console.print(
            f"  Ferienzeiträume: [bold]{len(cal.vacations)}[/bold]   "
            f"Feiertage: [bold]{'Frankreich + ' if cal.french_holidays else ''}"
            f"{len(cal.public_holidays)}[/bold]   "
            f"Brückentage nach: {', '.join(cal.bridge_after) or '—'}"
        )
        console.print(f"  Datenbank: [dim]{config.database.url}[/dim]")
        console.print(f"  Archiv:    [dim]{config.storage.archive_dir}[/dim]")
