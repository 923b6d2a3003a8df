"""Ausrollen des Wochen-Templates auf alle offenen Wochen eines Semesters."""

import logging

from config.schema import PlanningConfig
from models.directory import Child, Directory
from models.errors import PlanningError
from models.schedule import ChildRef, ScheduleEntry
from models.semester import Semester
from models.template import TemplateSlot
from planner.calendar import SchoolCalendar
from planner.time_anchor import anchor, anchor_date, week_count

logger = logging.getLogger(__name__)


class SemesterExpander:
    """Erzeugt pro Template-Slot und offener Woche einen datierten Eintrag.

    "tous" wird hier gegen die übergebene Kinderliste aufgelöst, nicht beim
    Parsen: Kinder, die nach dem Upload angelegt werden, erscheinen beim
    nächsten Ausrollen automatisch.
    """

    def __init__(self, config: PlanningConfig, calendar: SchoolCalendar) -> None:
        self.config = config
        self.grid = config.time_grid
        self.calendar = calendar

    def eligible_weeks(self, semester: Semester) -> list[int]:
        """Wochen-Offsets ab dem ersten Montag, die nicht übersprungen werden."""
        return [
            w for w in range(week_count(semester))
            if not self.calendar.is_week_skipped(anchor_date(semester, 1, w))
        ]

    def _resolve_children(self, slot: TemplateSlot, directory: Directory) -> list[Child]:
        if slot.includes_all:
            chosen = list(directory.children)
        else:
            chosen = []
        for name in slot.child_names:
            child = directory.find_child(name)
            if child is None:
                raise PlanningError(
                    f"{slot.position}: Kind '{name}' nicht eindeutig im Verzeichnis "
                    f"(Template vor dem Ausrollen prüfen)"
                )
            chosen.append(child)
        unique = {}
        for child in chosen:
            unique.setdefault(child.id, child)
        return list(unique.values())

    def expand(
        self, slots: list[TemplateSlot], semester: Semester, directory: Directory
    ) -> list[ScheduleEntry]:
        """Flache Liste aller Einträge; Reihenfolge nach Woche, dann Template."""
        self.calendar.warn_if_uncovered(
            semester.start_date, semester.end_date, f"Semester {semester.id}"
        )
        prepared = []
        for slot in slots:
            if slot.is_pause:
                continue
            staff = directory.find_staff(slot.staff_name)
            if staff is None:
                raise PlanningError(
                    f"{slot.position}: Betreuungsperson '{slot.staff_name}' nicht eindeutig im Verzeichnis"
                )
            refs = [
                ChildRef(child_id=c.id, name=c.full_name)
                for c in self._resolve_children(slot, directory)
            ]
            prepared.append((slot, staff, refs, self.grid.slot(slot.slot_index)))

        skip_days = self.config.calendar.skip_closed_days
        entries: list[ScheduleEntry] = []
        weeks = self.eligible_weeks(semester)
        for w in weeks:
            for slot, staff, refs, definition in prepared:
                start = anchor(semester, slot.day_of_week, definition.start_time, w)
                if start.date() > semester.end_date:
                    continue
                if skip_days and self.calendar.is_closed(start.date()):
                    continue
                entries.append(ScheduleEntry(
                    semester_id=semester.id,
                    staff_id=staff.id,
                    staff_name=staff.full_name,
                    day_of_week=slot.day_of_week,
                    start_time=start,
                    end_time=anchor(semester, slot.day_of_week, definition.end_time, w),
                    activity=slot.activity,
                    children=[r.model_copy() for r in refs],
                ))
        logger.debug(
            f"Semester {semester.id}: {len(entries)} Einträge aus {len(prepared)} Slots "
            f"× {len(weeks)} Wochen"
        )
        return entries
