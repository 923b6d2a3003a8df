"""Konkrete, datierte Planeinträge und abgeleitete Sichten."""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field


class ChildRef(BaseModel):
    """Kind-Zuordnung innerhalb eines Eintrags."""

    child_id: int
    name: str = ""
    # Eintrag, aus dem das Kind umgebucht wurde (None = ursprünglich hier)
    original_entry_id: Optional[str] = None


class ScheduleEntry(BaseModel):
    """Ein datiertes Vorkommen einer Aktivität für eine Betreuungsperson."""

    id: Optional[str] = None        # None = noch nicht gespeichert (Preview)
    semester_id: int
    staff_id: int
    staff_name: str = ""
    day_of_week: int = Field(ge=1, le=5)
    start_time: datetime
    end_time: datetime
    activity: str
    cancelled: bool = False
    children: list[ChildRef] = []

    @property
    def child_ids(self) -> frozenset[int]:
        return frozenset(c.child_id for c in self.children)

    @property
    def day(self) -> date:
        return self.start_time.date()

    def same_window(self, other: "ScheduleEntry") -> bool:
        """Gleicher Wochentag und gleiches Zeitfenster."""
        return (
            self.day_of_week == other.day_of_week
            and self.start_time == other.start_time
            and self.end_time == other.end_time
        )

    def content_key(self) -> tuple:
        """Inhalt ohne ID, zum Vergleich zweier Importe."""
        return (
            self.staff_id,
            self.day_of_week,
            self.start_time,
            self.end_time,
            self.activity,
            self.child_ids,
        )


class ClosureDay(BaseModel):
    """Ein geschlossener Wochentag im Semester."""

    day: date
    label: str           # "Jour férié", "Vacances scolaires", "Pont"
    name: str = ""       # z.B. "Ascension", "Vacances de Noël"


class TransferredChild(BaseModel):
    """Ein aus einem Eintrag umgebuchtes Kind und sein aktueller Ziel-Eintrag."""

    child_id: int
    child_name: str
    current_entry_id: str
    current_staff_id: int
    current_staff_name: str = ""
    activity: str
