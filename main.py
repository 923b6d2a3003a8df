"""Semesterplanung — Haupt-CLI.

Verwendung:
  semesterplan setup                              Standard-Konfiguration anlegen
  semesterplan config show                        Konfiguration anzeigen
  semesterplan generate                           Testverzeichnis + Beispiel-Template
  semesterplan template                           Leere Wochenvorlage erzeugen
  semesterplan semester create <name> <von> <bis> Semester anlegen
  semesterplan semester list                      Semester auflisten
  semesterplan preview <semester> <datei.xlsx>    Trockenlauf (optional --diff)
  semesterplan import <semester> <datei.xlsx>     Plan prüfen und veröffentlichen
  semesterplan show <semester>                    Plan anzeigen
  semesterplan closures <semester>                Schließtage anzeigen
  semesterplan missing <semester>                 Personen ohne Eintrag
  semesterplan cancel <eintrag>                   Eintrag absagen (--reactivate)
  semesterplan reassign <quelle> <ziel>           Kinder umbuchen
  semesterplan alternatives <eintrag>             Alternativen im selben Zeitfenster
  semesterplan transfers <eintrag>                Umgebuchte Kinder anzeigen
  semesterplan download <semester>                Archiviertes Template speichern
"""

import logging
import sys
from datetime import datetime
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table
from rich import box

from models.errors import PlanningError, TemplateValidationError

console = Console()
logger = logging.getLogger(__name__)

DATE_FORMAT = ["%Y-%m-%d", "%d.%m.%Y"]


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=False)],
        force=True,
    )


def _load_config_or_abort():
    """Lädt die Konfiguration oder bricht mit Fehlermeldung ab."""
    from config.manager import ConfigManager
    mgr = ConfigManager()
    if mgr.first_run_check():
        console.print(
            "[red]Keine Konfiguration gefunden.[/red]\n"
            "Führen Sie zunächst [bold]semesterplan setup[/bold] aus."
        )
        sys.exit(1)
    try:
        config = mgr.load()
    except ValueError as e:
        console.print(f"[red bold]{e}[/red bold]")
        sys.exit(1)
    ctx = click.get_current_context(silent=True)
    if not (ctx and ctx.find_root().params.get("verbose")):
        logging.getLogger().setLevel(config.logging.level)
    return mgr, config


def _service():
    from services.planning import PlanningService
    _, config = _load_config_or_abort()
    return config, PlanningService(config)


def _fail(error: Exception) -> None:
    """Fachlichen Fehler ausgeben und mit Status 1 beenden."""
    if isinstance(error, TemplateValidationError):
        error.report.print_rich()
    console.print(f"[red bold]Fehler:[/red bold] {error}")
    sys.exit(1)


# ─── SETUP ────────────────────────────────────────────────────────────────────

@click.command("setup")
@click.option("--name", default=None, help="Name der Einrichtung.")
@click.option("--force", is_flag=True, default=False,
              help="Vorhandene Konfiguration überschreiben.")
def cmd_setup(name, force: bool):
    """Ersteinrichtung: Standard-Konfiguration (Raster, Ferien Zone C) anlegen."""
    from config.defaults import default_planning_config
    from config.manager import ConfigManager

    mgr = ConfigManager()
    if not mgr.first_run_check() and not force:
        console.print(
            "[yellow]Eine Konfiguration existiert bereits.[/yellow]\n"
            f"Bearbeiten Sie [bold]{mgr.path}[/bold] oder verwenden Sie --force."
        )
        return

    config = default_planning_config()
    if name:
        config = config.model_copy(update={"organisation_name": name})
    mgr.save(config)
    console.print("[bold green]Einrichtung abgeschlossen![/bold green]")
    console.print("Führen Sie jetzt [bold]semesterplan generate[/bold] aus.")


# ─── CONFIG ───────────────────────────────────────────────────────────────────

@click.group("config")
def cmd_config():
    """Konfiguration anzeigen."""


@cmd_config.command("show")
def config_show():
    """Zeigt die aktuelle Konfiguration an."""
    mgr, config = _load_config_or_abort()
    console.print(Panel(
        f"[bold]{config.organisation_name}[/bold]  |  Datei: {mgr.path}",
        title="Konfiguration",
        border_style="cyan",
    ))
    mgr.print_summary(config)


# ─── GENERATE ─────────────────────────────────────────────────────────────────

@click.command("generate")
@click.option("--seed", default=42, help="Zufalls-Seed für reproduzierbare Daten.")
@click.option("--staff", "num_staff", default=6, help="Anzahl Betreuungspersonen.")
@click.option("--children", "num_children", default=24, help="Anzahl Kinder.")
@click.option("--output", "-o", default="output/planning_demo.xlsx",
              help="Ausgabepfad für das ausgefüllte Template.")
def cmd_generate(seed: int, num_staff: int, num_children: int, output: str):
    """Erzeugt ein Testverzeichnis (in der Datenbank) und ein gültiges Template."""
    from data.fake_data import FakeDataGenerator
    from data.excel_import import write_template

    config, service = _service()
    console.print("[bold]Testdaten werden generiert...[/bold]")
    gen = FakeDataGenerator(config, seed=seed)
    data = gen.generate(num_staff=num_staff, num_children=num_children)
    gen.print_summary(data)

    service.repository.seed_directory(data.directory)
    out_path = Path(output)
    write_template(config, out_path, data.rows_by_day)
    console.print(f"[green]✓[/green] Template gespeichert: {out_path}")


# ─── TEMPLATE ─────────────────────────────────────────────────────────────────

@click.command("template")
@click.option("--output", "-o", default="output/planning_vorlage.xlsx",
              help="Ausgabepfad für die Wochenvorlage.")
def cmd_template(output: str):
    """Erzeugt eine leere Wochenvorlage mit allen Betreuungspersonen."""
    from data.excel_import import generate_template

    config, service = _service()
    names = [s.full_name for s in service.repository.load_directory().staff]
    out_path = Path(output)
    generate_template(config, out_path, names)
    console.print(f"[green]✓[/green] Vorlage gespeichert: {out_path}")
    sheets = ", ".join(d.sheet_name for d in config.time_grid.days)
    sep = config.template.separators[0]
    console.print(
        f"\nBlätter: [cyan]{sheets}[/cyan]\n"
        f"Zellformat: [bold]Aktivität {sep} Name1, Name2[/bold]  |  "
        f"[bold]{config.template.pause_keyword}[/bold]  |  "
        f"[bold]{config.template.all_children_keyword}[/bold] = alle Kinder"
    )


# ─── SEMESTER ─────────────────────────────────────────────────────────────────

@click.group("semester")
def cmd_semester():
    """Semester anlegen und auflisten."""


@cmd_semester.command("create")
@click.argument("name")
@click.argument("start", type=click.DateTime(formats=DATE_FORMAT))
@click.argument("end", type=click.DateTime(formats=DATE_FORMAT))
def semester_create(name: str, start: datetime, end: datetime):
    """Legt ein Semester an (Datum als JJJJ-MM-TT oder TT.MM.JJJJ)."""
    _, service = _service()
    try:
        semester = service.create_semester(name, start.date(), end.date())
    except (PlanningError, ValueError) as e:
        _fail(e)
    console.print(f"[green]✓[/green] Semester {semester.id} angelegt: {semester}")


@cmd_semester.command("list")
def semester_list():
    """Listet alle Semester auf."""
    _, service = _service()
    semesters = service.list_semesters()
    if not semesters:
        console.print("[dim]Keine Semester vorhanden.[/dim]")
        return
    table = Table(title="Semester", box=box.ROUNDED)
    table.add_column("ID", justify="right")
    table.add_column("Name", style="bold")
    table.add_column("Beginn")
    table.add_column("Ende")
    for s in semesters:
        table.add_row(str(s.id), s.name, f"{s.start_date:%d.%m.%Y}", f"{s.end_date:%d.%m.%Y}")
    console.print(table)


# ─── PREVIEW / IMPORT ─────────────────────────────────────────────────────────

@click.command("preview")
@click.argument("semester_id", type=int)
@click.argument("datei", type=click.Path(exists=True, path_type=Path))
@click.option("--diff", "show_diff", is_flag=True, default=False,
              help="Unterschiede zum gespeicherten Plan anzeigen.")
def cmd_preview(semester_id: int, datei: Path, show_diff: bool):
    """Trockenlauf: zeigt, was ein Import speichern würde (nichts wird geschrieben)."""
    from export.tui_renderer import group_by_week, week_table

    config, service = _service()
    data = datei.read_bytes()
    try:
        if show_diff:
            service.preview_changes(semester_id, data).print_rich()
            return
        entries = service.preview_schedule(semester_id, data)
    except PlanningError as e:
        _fail(e)

    weeks = group_by_week(entries)
    console.print(
        f"[green]✓[/green] Template gültig: [bold]{len(entries)}[/bold] Einträge "
        f"in {len(weeks)} Wochen"
    )
    if weeks:
        monday, first = next(iter(weeks.items()))
        console.print(week_table(first, config, f"Woche ab {monday:%d.%m.%Y}"))


@click.command("import")
@click.argument("semester_id", type=int)
@click.argument("datei", type=click.Path(exists=True, path_type=Path))
def cmd_import(semester_id: int, datei: Path):
    """Prüft das Template und ersetzt den Plan des Semesters."""
    _, service = _service()
    console.print(f"[bold]Importiere:[/bold] {datei}")
    try:
        count = service.import_schedule(semester_id, datei.read_bytes())
    except PlanningError as e:
        _fail(e)
    console.print(f"[green]✓[/green] Plan veröffentlicht: {count} Einträge")


# ─── ANZEIGE ──────────────────────────────────────────────────────────────────

@click.command("show")
@click.argument("semester_id", type=int)
@click.option("--staff", "staff_id", type=int, default=None, help="Nur diese Betreuungsperson.")
@click.option("--child", "child_id", type=int, default=None, help="Nur dieses Kind.")
@click.option("--week", type=click.DateTime(formats=DATE_FORMAT), default=None,
              help="Woche, die diesen Tag enthält (Standard: erste Woche).")
@click.option("--list", "as_list", is_flag=True, default=False,
              help="Flache Liste mit Eintrags-IDs statt Wochenraster.")
def cmd_show(semester_id: int, staff_id, child_id, week, as_list: bool):
    """Zeigt den gespeicherten Plan eines Semesters."""
    from export.tui_renderer import entry_table, group_by_week, week_monday, week_table

    config, service = _service()
    try:
        semester = service.get_semester(semester_id)
        if staff_id is not None:
            entries = service.get_staff_schedule(semester_id, staff_id)
        elif child_id is not None:
            entries = service.get_child_schedule(semester_id, child_id)
        else:
            entries = service.get_overview(semester_id)
    except PlanningError as e:
        _fail(e)

    weeks = group_by_week(entries)
    if not weeks:
        console.print("[dim]Keine Einträge.[/dim]")
        return
    monday = week_monday(week.date()) if week else next(iter(weeks))
    selected = weeks.get(monday, [])
    title = f"{semester.name} — Woche ab {monday:%d.%m.%Y}"
    if as_list:
        console.print(entry_table(selected, title))
    else:
        console.print(week_table(selected, config, title, show_staff=staff_id is None))
    console.print(f"[dim]{len(entries)} Einträge in {len(weeks)} Wochen[/dim]")


@click.command("closures")
@click.argument("semester_id", type=int)
def cmd_closures(semester_id: int):
    """Zeigt Feiertage, Brückentage und Ferientage im Semester."""
    from export.tui_renderer import closures_table

    _, service = _service()
    try:
        semester = service.get_semester(semester_id)
        closures = service.get_closures(semester_id)
    except PlanningError as e:
        _fail(e)
    console.print(closures_table(closures, f"Schließtage — {semester.name}"))


@click.command("missing")
@click.argument("semester_id", type=int)
def cmd_missing(semester_id: int):
    """Listet Betreuungspersonen ohne Eintrag im Semester."""
    _, service = _service()
    try:
        missing = service.missing_staff(semester_id)
    except PlanningError as e:
        _fail(e)
    if not missing:
        console.print("[green]✓[/green] Alle Betreuungspersonen sind eingeplant.")
        return
    for s in missing:
        console.print(f"  [yellow]•[/yellow] {s.full_name} (ID {s.id})")


# ─── ÄNDERUNGEN ───────────────────────────────────────────────────────────────

@click.command("cancel")
@click.argument("entry_id")
@click.option("--reactivate", is_flag=True, default=False,
              help="Eintrag wieder aktivieren (umgebuchte Kinder kehren zurück).")
def cmd_cancel(entry_id: str, reactivate: bool):
    """Sagt einen Eintrag ab oder reaktiviert ihn."""
    _, service = _service()
    try:
        entry = service.set_entry_cancelled(entry_id, not reactivate)
    except PlanningError as e:
        _fail(e)
    state = "reaktiviert" if reactivate else "abgesagt"
    console.print(
        f"[green]✓[/green] {entry.activity} ({entry.start_time:%d.%m.%Y %H:%M}) {state}, "
        f"{len(entry.children)} Kind(er)"
    )


@click.command("reassign")
@click.argument("source_id")
@click.argument("target_id")
@click.option("--child", "child_id", type=int, default=None,
              help="Nur dieses Kind umbuchen.")
@click.option("--keep-source", is_flag=True, default=False,
              help="Quell-Eintrag nach dem Umbuchen aller Kinder nicht absagen.")
def cmd_reassign(source_id: str, target_id: str, child_id, keep_source: bool):
    """Bucht Kinder in einen Eintrag im selben Zeitfenster um."""
    _, service = _service()
    try:
        if child_id is not None:
            target = service.reassign_one_child(source_id, child_id, target_id)
        else:
            target = service.reassign_children(source_id, target_id,
                                               cancel_source=not keep_source)
    except PlanningError as e:
        _fail(e)
    console.print(
        f"[green]✓[/green] Ziel {target.id}: {target.activity} mit "
        f"{len(target.children)} Kind(ern)"
    )


@click.command("alternatives")
@click.argument("entry_id")
def cmd_alternatives(entry_id: str):
    """Zeigt Einträge anderer Personen im selben Zeitfenster (wenigste Kinder zuerst)."""
    from export.tui_renderer import entry_table

    _, service = _service()
    try:
        alternatives = service.find_alternatives(entry_id)
    except PlanningError as e:
        _fail(e)
    if not alternatives:
        console.print("[yellow]Keine Alternativen im selben Zeitfenster.[/yellow]")
        return
    console.print(entry_table(alternatives, "Alternativen"))


@click.command("transfers")
@click.argument("entry_id")
def cmd_transfers(entry_id: str):
    """Zeigt Kinder, die aus einem Eintrag umgebucht wurden."""
    _, service = _service()
    try:
        transfers = service.transferred_children(entry_id)
    except PlanningError as e:
        _fail(e)
    if not transfers:
        console.print("[dim]Keine umgebuchten Kinder.[/dim]")
        return
    table = Table(title="Umgebuchte Kinder", box=box.SIMPLE)
    table.add_column("Kind", style="bold")
    table.add_column("Jetzt bei")
    table.add_column("Aktivität")
    table.add_column("Eintrag", style="dim")
    for t in transfers:
        table.add_row(t.child_name, t.current_staff_name, t.activity, t.current_entry_id)
    console.print(table)


@click.command("download")
@click.argument("semester_id", type=int)
@click.option("--output", "-o", default=None, help="Zielpfad (Standard: output/…).")
def cmd_download(semester_id: int, output):
    """Speichert das zuletzt veröffentlichte Template eines Semesters."""
    _, service = _service()
    try:
        data = service.archived_template(semester_id)
    except PlanningError as e:
        _fail(e)
    out_path = Path(output or f"output/semester_{semester_id}_template.xlsx")
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_bytes(data)
    console.print(f"[green]✓[/green] Template gespeichert: {out_path}")


# ─── HAUPT-CLI ────────────────────────────────────────────────────────────────

@click.group()
@click.option("--verbose", "-v", is_flag=True, default=False, help="Debug-Ausgaben.")
def cli(verbose: bool):
    """Semesterplanung: Wochen-Template → Semesterplan.

    Starten Sie mit: semesterplan setup
    """
    _setup_logging("DEBUG" if verbose else "INFO")


def main():
    """Einstiegspunkt. Legt beim ersten Aufruf ohne Argumente die Konfiguration an."""
    from config.manager import ConfigManager
    mgr = ConfigManager()

    if len(sys.argv) == 1 and mgr.first_run_check():
        console.print(Panel(
            "[bold]Willkommen bei der Semesterplanung![/bold]\n\n"
            "Keine Konfiguration gefunden.\n"
            "Die Standard-Konfiguration wird jetzt angelegt...",
            border_style="cyan",
        ))
        sys.argv.append("setup")

    cli()


# Befehle registrieren
cli.add_command(cmd_setup)
cli.add_command(cmd_config)
cli.add_command(cmd_generate)
cli.add_command(cmd_template)
cli.add_command(cmd_semester)
cli.add_command(cmd_preview)
cli.add_command(cmd_import)
cli.add_command(cmd_show)
cli.add_command(cmd_closures)
cli.add_command(cmd_missing)
cli.add_command(cmd_cancel)
cli.add_command(cmd_reassign)
cli.add_command(cmd_alternatives)
cli.add_command(cmd_transfers)
cli.add_command(cmd_download)


if __name__ == "__main__":
    main()
