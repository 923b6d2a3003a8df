"""Personenverzeichnis: Mitarbeitende und Kinder (nur lesend genutzt)."""

from collections import defaultdict

from pydantic import BaseModel, PrivateAttr


def normalize_name(name: str) -> str:
    """Vergleichsschlüssel: Leerraum zusammengezogen, Kleinschreibung."""
    return " ".join(str(name).split()).casefold()


class StaffMember(BaseModel):
    """Eine Betreuungsperson."""

    id: int
    first_name: str
    last_name: str

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class Child(BaseModel):
    """Ein betreutes Kind."""

    id: int
    first_name: str
    last_name: str

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class Directory(BaseModel):
    """Momentaufnahme des Verzeichnisses für genau einen Import-/Preview-Lauf.

    Wird einmal zu Beginn gelesen, damit Prüfung und Expansion dieselbe
    Personenliste sehen.
    """

    staff: list[StaffMember] = []
    children: list[Child] = []

    # Normalisierter Name → alle Personen dieses Namens (Namensgleiche möglich)
    _staff_index: dict[str, list[StaffMember]] = PrivateAttr(default_factory=dict)
    _child_index: dict[str, list[Child]] = PrivateAttr(default_factory=dict)

    def model_post_init(self, __context) -> None:
        staff_index = defaultdict(list)
        for s in self.staff:
            staff_index[normalize_name(s.full_name)].append(s)
        child_index = defaultdict(list)
        for c in self.children:
            child_index[normalize_name(c.full_name)].append(c)
        self._staff_index = dict(staff_index)
        self._child_index = dict(child_index)

    def staff_named(self, name: str) -> list[StaffMember]:
        return list(self._staff_index.get(normalize_name(name), []))

    def children_named(self, name: str) -> list[Child]:
        return list(self._child_index.get(normalize_name(name), []))

    def find_staff(self, name: str):
        """Eindeutige Betreuungsperson zum Namen; None bei keinem oder mehreren Treffern."""
        matches = self.staff_named(name)
        return matches[0] if len(matches) == 1 else None

    def find_child(self, name: str):
        """Eindeutiges Kind zum Namen; None bei keinem oder mehreren Treffern."""
        matches = self.children_named(name)
        return matches[0] if len(matches) == 1 else None

    def staff_by_id(self, staff_id: int):
        return next((s for s in self.staff if s.id == staff_id), None)

    def child_by_id(self, child_id: int):
        return next((c for c in self.children if c.id == child_id), None)
