"""Nachträgliche Änderungen an veröffentlichten Einträgen.

Absagen/Reaktivieren, Umbuchen von Kindern, Suche nach Alternativen.
Jede Operation läuft in einer eigenen Transaktion über höchstens zwei
Einträge; die semesterweite Abdeckungsprüfung wird dabei nicht erneut
ausgeführt.
"""

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload, sessionmaker

from models.errors import ChildNotInEntryError, CrossContextReassignError, ReassignError
from models.schedule import ScheduleEntry, TransferredChild
from storage.database import EntryChildRow, ScheduleEntryRow
from storage.repository import entry_from_row, load_entry_row

logger = logging.getLogger(__name__)


def _same_context(a: ScheduleEntryRow, b: ScheduleEntryRow) -> bool:
    return (
        a.semester_id == b.semester_id
        and a.day_of_week == b.day_of_week
        and a.start_time == b.start_time
        and a.end_time == b.end_time
    )


class EntryMutationService:
    """Feingranulare Änderungen an bereits gespeicherten Einträgen."""

    def __init__(self, session_factory: sessionmaker) -> None:
        self.session_factory = session_factory

    def _reload(self, session: Session, entry_id: str) -> ScheduleEntry:
        session.flush()
        session.expire_all()
        return entry_from_row(load_entry_row(session, entry_id))

    def _load_pair(self, session: Session, source_id: str,
                   target_id: str) -> tuple[ScheduleEntryRow, ScheduleEntryRow]:
        if source_id == target_id:
            raise ReassignError("Quelle und Ziel sind derselbe Eintrag")
        source = load_entry_row(session, source_id)
        target = load_entry_row(session, target_id)
        if not _same_context(source, target):
            raise CrossContextReassignError(source_id, target_id)
        if target.cancelled:
            raise ReassignError(f"Ziel-Eintrag {target_id} ist abgesagt")
        return source, target

    @staticmethod
    def _move(source: ScheduleEntryRow, target: ScheduleEntryRow,
              link: EntryChildRow) -> bool:
        """Verschiebt eine Zuordnung; False, wenn das Kind schon im Ziel war."""
        source.children.remove(link)
        if any(c.child_id == link.child_id for c in target.children):
            return False
        origin = link.original_entry_id or source.id
        target.children.append(EntryChildRow(
            child_id=link.child_id,
            # zurück an den Ursprung = keine Umbuchung mehr
            original_entry_id=None if origin == target.id else origin,
        ))
        return True

    # ─── Absagen / Reaktivieren ───

    def set_cancelled(self, entry_id: str, cancel: bool) -> ScheduleEntry:
        """Sagt einen Eintrag ab oder reaktiviert ihn.

        Beim Reaktivieren kehren alle Kinder, die aus diesem Eintrag umgebucht
        wurden, hierher zurück.
        """
        with self.session_factory.begin() as session:
            row = load_entry_row(session, entry_id)
            restored = 0
            if not cancel and row.cancelled:
                moved = session.scalars(
                    select(EntryChildRow)
                    .options(selectinload(EntryChildRow.entry))
                    .where(EntryChildRow.original_entry_id == entry_id)
                ).all()
                present = {c.child_id for c in row.children}
                for link in moved:
                    link.entry.children.remove(link)
                    if link.child_id not in present:
                        row.children.append(EntryChildRow(child_id=link.child_id))
                        present.add(link.child_id)
                        restored += 1
            row.cancelled = cancel
            result = self._reload(session, entry_id)

        if cancel:
            logger.info(f"Eintrag {entry_id} abgesagt")
        else:
            logger.info(f"Eintrag {entry_id} reaktiviert ({restored} Kind(er) zurückgeholt)")
        return result

    # ─── Umbuchen ───

    def reassign_children(self, source_id: str, target_id: str,
                          cancel_source: bool = True) -> ScheduleEntry:
        """Verschiebt alle Kinder von `source_id` nach `target_id`.

        Raises:
            CrossContextReassignError: anderer Wochentag / anderes Zeitfenster.
            ReassignError: identische Einträge oder abgesagtes Ziel.
        """
        with self.session_factory.begin() as session:
            source, target = self._load_pair(session, source_id, target_id)
            moved = sum(1 for link in list(source.children) if self._move(source, target, link))
            if cancel_source:
                source.cancelled = True
            result = self._reload(session, target_id)

        logger.info(
            f"{moved} Kind(er) von {source_id} nach {target_id} umgebucht"
            + (" (Quelle abgesagt)" if cancel_source else "")
        )
        return result

    def reassign_one_child(self, source_id: str, child_id: int,
                           target_id: str) -> ScheduleEntry:
        """Verschiebt ein einzelnes Kind.

        Raises:
            CrossContextReassignError: anderer Wochentag / anderes Zeitfenster.
            ChildNotInEntryError: Kind nicht im Quell-Eintrag.
            ReassignError: Kind bereits im Ziel, identische Einträge, abgesagtes Ziel.
        """
        with self.session_factory.begin() as session:
            source, target = self._load_pair(session, source_id, target_id)
            link = next((c for c in source.children if c.child_id == child_id), None)
            if link is None:
                raise ChildNotInEntryError(child_id, source_id)
            if any(c.child_id == child_id for c in target.children):
                raise ReassignError(f"Kind {child_id} ist bereits in Eintrag {target_id}")
            self._move(source, target, link)
            result = self._reload(session, target_id)

        logger.info(f"Kind {child_id} von {source_id} nach {target_id} umgebucht")
        return result

    # ─── Abfragen ───

    def find_alternatives(self, entry_id: str) -> list[ScheduleEntry]:
        """Nicht abgesagte Einträge im selben Zeitfenster bei anderer Person.

        Sortiert nach aktueller Kinderzahl (am wenigsten belegt zuerst).
        """
        with self.session_factory() as session:
            source = load_entry_row(session, entry_id)
            rows = session.scalars(
                select(ScheduleEntryRow)
                .options(
                    selectinload(ScheduleEntryRow.staff),
                    selectinload(ScheduleEntryRow.children).selectinload(EntryChildRow.child),
                )
                .where(
                    ScheduleEntryRow.semester_id == source.semester_id,
                    ScheduleEntryRow.day_of_week == source.day_of_week,
                    ScheduleEntryRow.start_time == source.start_time,
                    ScheduleEntryRow.end_time == source.end_time,
                    ScheduleEntryRow.staff_id != source.staff_id,
                    ScheduleEntryRow.cancelled.is_(False),
                )
            ).all()
            candidates = [entry_from_row(r) for r in rows]
        return sorted(candidates, key=lambda e: (len(e.children), e.start_time, e.staff_id))

    def transferred_children(self, entry_id: str) -> list[TransferredChild]:
        """Kinder, die aus `entry_id` in andere Einträge umgebucht wurden."""
        with self.session_factory() as session:
            load_entry_row(session, entry_id)
            links = session.scalars(
                select(EntryChildRow)
                .options(
                    selectinload(EntryChildRow.child),
                    selectinload(EntryChildRow.entry).selectinload(ScheduleEntryRow.staff),
                )
                .where(EntryChildRow.original_entry_id == entry_id)
                .order_by(EntryChildRow.child_id)
            ).all()
            return [
                TransferredChild(
                    child_id=link.child_id,
                    child_name=f"{link.child.first_name} {link.child.last_name}",
                    current_entry_id=link.entry_id,
                    current_staff_id=link.entry.staff_id,
                    current_staff_name=(
                        f"{link.entry.staff.first_name} {link.entry.staff.last_name}"
                    ),
                    activity=link.entry.activity,
                )
                for link in links
            ]
