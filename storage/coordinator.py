"""Atomares Ersetzen des Semesterplans.

Löschen der alten und Einfügen der neuen Einträge laufen in genau einer
Transaktion. Schlägt irgendetwas fehl, bleibt der vorherige Plan vollständig
erhalten. Importe für dasselbe Semester werden zusätzlich über eine Sperre
pro Semester serialisiert; verschiedene Semester laufen unabhängig.
"""

import logging
import threading
import uuid
from collections import defaultdict

from sqlalchemy import delete, select
from sqlalchemy.orm import sessionmaker

from models.errors import SemesterNotFoundError
from models.schedule import ScheduleEntry
from storage.database import EntryChildRow, ScheduleEntryRow, SemesterRow

logger = logging.getLogger(__name__)


class PersistenceCoordinator:
    """Einziger Schreibweg für den kompletten Plan eines Semesters."""

    ISOLATION_LEVEL = "SERIALIZABLE"

    def __init__(self, session_factory: sessionmaker) -> None:
        self.session_factory = session_factory
        self._locks: dict[int, threading.Lock] = defaultdict(threading.Lock)
        self._locks_guard = threading.Lock()

    def _lock_for(self, semester_id: int) -> threading.Lock:
        with self._locks_guard:
            return self._locks[semester_id]

    def replace_semester_schedule(self, semester_id: int,
                                  entries: list[ScheduleEntry]) -> list[str]:
        """Ersetzt alle Einträge des Semesters; gibt die neuen IDs zurück.

        Raises:
            SemesterNotFoundError: Semester existiert nicht (nichts wird geändert).
        """
        with self._lock_for(semester_id):
            session = self.session_factory()
            try:
                session.connection(execution_options={"isolation_level": self.ISOLATION_LEVEL})
                if session.get(SemesterRow, semester_id) is None:
                    raise SemesterNotFoundError(semester_id)

                old_ids = select(ScheduleEntryRow.id).where(
                    ScheduleEntryRow.semester_id == semester_id)
                removed_links = session.execute(
                    delete(EntryChildRow).where(EntryChildRow.entry_id.in_(old_ids))
                ).rowcount
                removed = session.execute(
                    delete(ScheduleEntryRow).where(ScheduleEntryRow.semester_id == semester_id)
                ).rowcount

                new_ids = []
                for entry in entries:
                    entry_id = str(uuid.uuid4())
                    new_ids.append(entry_id)
                    row = ScheduleEntryRow(
                        id=entry_id,
                        semester_id=semester_id,
                        staff_id=entry.staff_id,
                        day_of_week=entry.day_of_week,
                        start_time=entry.start_time,
                        end_time=entry.end_time,
                        activity=entry.activity,
                        cancelled=entry.cancelled,
                    )
                    row.children = [
                        EntryChildRow(child_id=ref.child_id) for ref in entry.children
                    ]
                    session.add(row)
                session.commit()
            except Exception:
                session.rollback()
                logger.error(
                    f"Semester {semester_id}: Ersetzen fehlgeschlagen, Rollback durchgeführt"
                )
                raise
            finally:
                session.close()

        logger.info(
            f"Semester {semester_id}: {removed} Einträge ({removed_links} Zuordnungen) "
            f"ersetzt durch {len(new_ids)} Einträge"
        )
        return new_ids
