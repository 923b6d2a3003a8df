"""Lesende Zugriffe und Stammdatenpflege (Semester, Verzeichnis)."""

import logging
from datetime import date
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload, sessionmaker

from models.directory import Child, Directory, StaffMember
from models.errors import EntryNotFoundError, SemesterNotFoundError
from models.schedule import ChildRef, ScheduleEntry
from models.semester import Semester
from storage.database import (
    ChildRow,
    EntryChildRow,
    ScheduleEntryRow,
    SemesterRow,
    StaffRow,
)

logger = logging.getLogger(__name__)


# ─── Row → Modell ─────────────────────────────────────────────────────────────

def semester_from_row(row: SemesterRow) -> Semester:
    return Semester(id=row.id, name=row.name, start_date=row.start_date, end_date=row.end_date)


def entry_from_row(row: ScheduleEntryRow) -> ScheduleEntry:
    return ScheduleEntry(
        id=row.id,
        semester_id=row.semester_id,
        staff_id=row.staff_id,
        staff_name=f"{row.staff.first_name} {row.staff.last_name}" if row.staff else "",
        day_of_week=row.day_of_week,
        start_time=row.start_time,
        end_time=row.end_time,
        activity=row.activity,
        cancelled=row.cancelled,
        children=[
            ChildRef(
                child_id=link.child_id,
                name=f"{link.child.first_name} {link.child.last_name}" if link.child else "",
                original_entry_id=link.original_entry_id,
            )
            for link in row.children
        ],
    )


def _entry_query():
    return select(ScheduleEntryRow).options(
        selectinload(ScheduleEntryRow.staff),
        selectinload(ScheduleEntryRow.children).selectinload(EntryChildRow.child),
    )


def load_entry_row(session: Session, entry_id: str) -> ScheduleEntryRow:
    """Eintrag inkl. Kinder laden oder EntryNotFoundError."""
    row = session.scalars(_entry_query().where(ScheduleEntryRow.id == entry_id)).first()
    if row is None:
        raise EntryNotFoundError(entry_id)
    return row


class PlanningRepository:
    """Zugriff auf Semester, Verzeichnis und gespeicherte Einträge."""

    def __init__(self, session_factory: sessionmaker) -> None:
        self.session_factory = session_factory

    # ─── Semester ───

    def create_semester(self, name: str, start_date: date, end_date: date) -> Semester:
        # Validierung über das Modell, bevor etwas geschrieben wird
        Semester(id=0, name=name, start_date=start_date, end_date=end_date)
        with self.session_factory.begin() as session:
            row = SemesterRow(name=name, start_date=start_date, end_date=end_date)
            session.add(row)
            session.flush()
            semester = semester_from_row(row)
        logger.info(f"Semester angelegt: {semester}")
        return semester

    def update_semester(self, semester_id: int, *, name: Optional[str] = None,
                        start_date: Optional[date] = None,
                        end_date: Optional[date] = None) -> Semester:
        """Administrative Änderung; bestehende Einträge bleiben unverändert."""
        with self.session_factory.begin() as session:
            row = session.get(SemesterRow, semester_id)
            if row is None:
                raise SemesterNotFoundError(semester_id)
            updated = semester_from_row(row).model_copy(update={
                k: v for k, v in
                {"name": name, "start_date": start_date, "end_date": end_date}.items()
                if v is not None
            })
            Semester.model_validate(updated.model_dump())
            row.name = updated.name
            row.start_date = updated.start_date
            row.end_date = updated.end_date
        return updated

    def get_semester(self, semester_id: int) -> Semester:
        with self.session_factory() as session:
            row = session.get(SemesterRow, semester_id)
            if row is None:
                raise SemesterNotFoundError(semester_id)
            return semester_from_row(row)

    def list_semesters(self) -> list[Semester]:
        with self.session_factory() as session:
            rows = session.scalars(
                select(SemesterRow).order_by(SemesterRow.start_date, SemesterRow.id)
            ).all()
            return [semester_from_row(r) for r in rows]

    # ─── Verzeichnis ───

    def load_directory(self) -> Directory:
        """Momentaufnahme aller Personen in einer einzigen Session."""
        with self.session_factory() as session:
            staff = session.scalars(select(StaffRow).order_by(StaffRow.id)).all()
            children = session.scalars(select(ChildRow).order_by(ChildRow.id)).all()
            return Directory(
                staff=[StaffMember(id=s.id, first_name=s.first_name, last_name=s.last_name)
                       for s in staff],
                children=[Child(id=c.id, first_name=c.first_name, last_name=c.last_name)
                          for c in children],
            )

    def seed_directory(self, directory: Directory) -> None:
        """Übernimmt Personen mit ihren IDs (vorhandene werden überschrieben)."""
        with self.session_factory.begin() as session:
            for s in directory.staff:
                session.merge(StaffRow(id=s.id, first_name=s.first_name, last_name=s.last_name))
            for c in directory.children:
                session.merge(ChildRow(id=c.id, first_name=c.first_name, last_name=c.last_name))
        logger.info(
            f"Verzeichnis übernommen: {len(directory.staff)} Betreuungspersonen, "
            f"{len(directory.children)} Kinder"
        )

    def add_staff(self, first_name: str, last_name: str) -> StaffMember:
        with self.session_factory.begin() as session:
            row = StaffRow(first_name=first_name, last_name=last_name)
            session.add(row)
            session.flush()
            return StaffMember(id=row.id, first_name=row.first_name, last_name=row.last_name)

    def add_child(self, first_name: str, last_name: str) -> Child:
        with self.session_factory.begin() as session:
            row = ChildRow(first_name=first_name, last_name=last_name)
            session.add(row)
            session.flush()
            return Child(id=row.id, first_name=row.first_name, last_name=row.last_name)

    # ─── Einträge ───

    def list_entries(self, semester_id: int, *, staff_id: Optional[int] = None,
                     child_id: Optional[int] = None,
                     include_cancelled: bool = True) -> list[ScheduleEntry]:
        """Einträge eines Semesters, chronologisch."""
        self.get_semester(semester_id)
        query = _entry_query().where(ScheduleEntryRow.semester_id == semester_id)
        if staff_id is not None:
            query = query.where(ScheduleEntryRow.staff_id == staff_id)
        if child_id is not None:
            query = query.where(ScheduleEntryRow.children.any(EntryChildRow.child_id == child_id))
        if not include_cancelled:
            query = query.where(ScheduleEntryRow.cancelled.is_(False))
        query = query.order_by(ScheduleEntryRow.start_time, ScheduleEntryRow.staff_id,
                               ScheduleEntryRow.id)
        with self.session_factory() as session:
            return [entry_from_row(r) for r in session.scalars(query).all()]

    def get_entry(self, entry_id: str) -> ScheduleEntry:
        with self.session_factory() as session:
            return entry_from_row(load_entry_row(session, entry_id))

    def staff_with_entries(self, semester_id: int) -> set[int]:
        with self.session_factory() as session:
            return set(session.scalars(
                select(ScheduleEntryRow.staff_id)
                .where(ScheduleEntryRow.semester_id == semester_id)
                .distinct()
            ).all())
