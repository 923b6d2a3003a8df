"""Fassade der Semesterplanung: Import, Vorschau, Abfragen, Änderungen.

Datenfluss Import:
  Bytes → TemplateParser → CoverageValidator (Abbruch ohne Schreiben)
        → SemesterExpander → PersistenceCoordinator → Archiv
Die Vorschau durchläuft dieselben Schritte ohne die letzten beiden.
"""

import logging
from pathlib import Path
from typing import Optional

from sqlalchemy.orm import sessionmaker

from analysis.coverage_validator import CoverageValidator
from analysis.diff import ScheduleDiff, diff_schedules
from config.schema import PlanningConfig
from data.excel_import import OpenpyxlReader, TemplateParser
from models.directory import StaffMember
from models.errors import TemplateValidationError
from models.report import ValidationReport
from models.schedule import ClosureDay, ScheduleEntry, TransferredChild
from models.semester import Semester
from planner.calendar import SchoolCalendar
from planner.expander import SemesterExpander
from services.mutation import EntryMutationService
from storage.archive import TemplateArchive
from storage.coordinator import PersistenceCoordinator
from storage.database import create_session_factory
from storage.repository import PlanningRepository

logger = logging.getLogger(__name__)


class PlanningService:
    """Einstiegspunkt für CLI und andere Aufrufer."""

    def __init__(self, config: PlanningConfig,
                 session_factory: Optional[sessionmaker] = None,
                 archive: Optional[TemplateArchive] = None) -> None:
        self.config = config
        if session_factory is None:
            session_factory = create_session_factory(config.database.url, config.database.echo)
        self.repository = PlanningRepository(session_factory)
        self.coordinator = PersistenceCoordinator(session_factory)
        self.mutations = EntryMutationService(session_factory)
        self.archive = archive or TemplateArchive(Path(config.storage.archive_dir))
        self.calendar = SchoolCalendar(config.calendar)
        self.parser = TemplateParser(config)
        self.validator = CoverageValidator(config)
        self.expander = SemesterExpander(config, self.calendar)

    # ─── Import-Pipeline ───

    def _build(self, semester_id: int, data: bytes) -> list[ScheduleEntry]:
        semester = self.repository.get_semester(semester_id)
        slots = self.parser.parse(OpenpyxlReader.from_bytes(data))
        # Eine Momentaufnahme für Prüfung und Expansion
        directory = self.repository.load_directory()
        report = self.validator.validate(slots, directory)
        if not report.is_valid:
            raise TemplateValidationError(report)
        return self.expander.expand(slots, semester, directory)

    def preview_schedule(self, semester_id: int, data: bytes) -> list[ScheduleEntry]:
        """Trockenlauf: liefert, was ein Import speichern würde.

        Raises:
            SemesterNotFoundError, TemplateReadError, MalformedCellError,
            EmptyCellError, TemplateValidationError
        """
        return self._build(semester_id, data)

    def import_schedule(self, semester_id: int, data: bytes) -> int:
        """Prüft und ersetzt den Plan des Semesters atomar; gibt die Anzahl zurück.

        Archiviert wird erst nach dem Commit. Schlägt das Ablegen der Datei
        fehl, bleibt der neue Plan veröffentlicht; der Fehler wird geloggt
        und `archived_template` liefert weiter die vorherige Version.
        """
        entries = self._build(semester_id, data)
        ids = self.coordinator.replace_semester_schedule(semester_id, entries)
        try:
            self.archive.store(semester_id, data)
        except OSError as exc:
            logger.error(
                f"Semester {semester_id}: Plan veröffentlicht, Template nicht archiviert: {exc}"
            )
        logger.info(f"Semester {semester_id}: Plan mit {len(ids)} Einträgen veröffentlicht")
        return len(ids)

    def preview_changes(self, semester_id: int, data: bytes) -> ScheduleDiff:
        """Vergleicht den gespeicherten Plan mit dem, den `data` erzeugen würde."""
        proposed = self._build(semester_id, data)
        return diff_schedules(self.repository.list_entries(semester_id), proposed)

    def validate_template(self, data: bytes) -> ValidationReport:
        """Nur Parser + Prüfung, ohne Semesterbezug."""
        slots = self.parser.parse(OpenpyxlReader.from_bytes(data))
        return self.validator.validate(slots, self.repository.load_directory())

    def revalidate_archived(self, semester_id: int) -> ValidationReport:
        """Prüft das zuletzt veröffentlichte Template gegen das aktuelle Verzeichnis."""
        self.repository.get_semester(semester_id)
        return self.validate_template(self.archive.load(semester_id))

    def archived_template(self, semester_id: int) -> bytes:
        self.repository.get_semester(semester_id)
        return self.archive.load(semester_id)

    # ─── Abfragen ───

    def get_overview(self, semester_id: int) -> list[ScheduleEntry]:
        return self.repository.list_entries(semester_id)

    def get_staff_schedule(self, semester_id: int, staff_id: int) -> list[ScheduleEntry]:
        return self.repository.list_entries(semester_id, staff_id=staff_id)

    def get_child_schedule(self, semester_id: int, child_id: int,
                           include_cancelled: bool = False) -> list[ScheduleEntry]:
        """Einträge eines Kindes; die Berechtigung prüft der Aufrufer."""
        return self.repository.list_entries(
            semester_id, child_id=child_id, include_cancelled=include_cancelled)

    def get_closures(self, semester_id: int) -> list[ClosureDay]:
        semester = self.repository.get_semester(semester_id)
        self.calendar.warn_if_uncovered(
            semester.start_date, semester.end_date, f"Semester {semester_id}"
        )
        return self.calendar.closures_between(semester.start_date, semester.end_date)

    def missing_staff(self, semester_id: int) -> list[StaffMember]:
        """Betreuungspersonen ohne einen einzigen Eintrag im Semester."""
        self.repository.get_semester(semester_id)
        present = self.repository.staff_with_entries(semester_id)
        return [s for s in self.repository.load_directory().staff if s.id not in present]

    # ─── Semester ───

    def create_semester(self, name, start_date, end_date) -> Semester:
        return self.repository.create_semester(name, start_date, end_date)

    def list_semesters(self) -> list[Semester]:
        return self.repository.list_semesters()

    def get_semester(self, semester_id: int) -> Semester:
        return self.repository.get_semester(semester_id)

    def update_semester(self, semester_id: int, **changes) -> Semester:
        return self.repository.update_semester(semester_id, **changes)

    # ─── Änderungen ───

    def set_entry_cancelled(self, entry_id: str, cancel: bool) -> ScheduleEntry:
        return self.mutations.set_cancelled(entry_id, cancel)

    def reassign_children(self, source_id: str, target_id: str,
                          cancel_source: bool = True) -> ScheduleEntry:
        return self.mutations.reassign_children(source_id, target_id, cancel_source)

    def reassign_one_child(self, source_id: str, child_id: int,
                           target_id: str) -> ScheduleEntry:
        return self.mutations.reassign_one_child(source_id, child_id, target_id)

    def find_alternatives(self, entry_id: str) -> list[ScheduleEntry]:
        return self.mutations.find_alternatives(entry_id)

    def transferred_children(self, entry_id: str) -> list[TransferredChild]:
        return self.mutations.transferred_children(entry_id)
