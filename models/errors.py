"""Fehlerhierarchie der Semesterplanung.

Strukturfehler (Parser) und Lookup-Fehler brechen sofort ab; Auflösungs- und
Abdeckungsprobleme werden dagegen gesammelt und als ValidationReport in
TemplateValidationError transportiert.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from models.report import ValidationReport


class PlanningError(Exception):
    """Basisklasse aller fachlichen Fehler."""


class MalformedTimeError(PlanningError, ValueError):
    """Uhrzeit nicht im Format HH:MM."""

    def __init__(self, value: str):
        self.value = value
        super().__init__(f"Ungültige Uhrzeit '{value}' (erwartet HH:MM)")


# ─── Template lesen ───

class TemplateReadError(PlanningError):
    """Datei ist keine lesbare Arbeitsmappe."""


class TemplateStructureError(PlanningError):
    """Zelle entspricht nicht der Template-Grammatik (mit Position)."""

    reason = "Strukturfehler"

    def __init__(self, sheet: str, row: int, column: int, value: Optional[str] = None):
        self.sheet = sheet
        self.row = row
        self.column = column
        self.value = value
        detail = f": '{value}'" if value else ""
        super().__init__(f"{self.reason} in Blatt '{sheet}', Zeile {row}, Spalte {column}{detail}")


class MalformedCellError(TemplateStructureError):
    reason = "Zelle ohne Trennzeichen '–'"


class EmptyCellError(TemplateStructureError):
    reason = "Leere Pflichtzelle"


class TemplateValidationError(PlanningError):
    """Template abgelehnt; enthält den vollständigen Report."""

    def __init__(self, report: "ValidationReport"):
        self.report = report
        super().__init__(
            f"Template abgelehnt: {len(report.violations)} Problem(e) gefunden"
        )


# ─── Lookups ───

class SemesterNotFoundError(PlanningError, LookupError):
    def __init__(self, semester_id: int):
        self.semester_id = semester_id
        super().__init__(f"Semester {semester_id} nicht gefunden")


class EntryNotFoundError(PlanningError, LookupError):
    def __init__(self, entry_id: str):
        self.entry_id = entry_id
        super().__init__(f"Eintrag {entry_id} nicht gefunden")


class ArchivedTemplateNotFoundError(PlanningError, LookupError):
    def __init__(self, semester_id: int):
        self.semester_id = semester_id
        super().__init__(f"Kein archiviertes Template für Semester {semester_id}")


# ─── Umbuchungen ───

class ReassignError(PlanningError):
    """Umbuchung von Kindern nicht möglich."""


class CrossContextReassignError(ReassignError):
    """Quelle und Ziel liegen nicht im selben Wochentag/Zeitfenster."""

    def __init__(self, source_id: str, target_id: str):
        self.source_id = source_id
        self.target_id = target_id
        super().__init__(
            f"Einträge {source_id} und {target_id} liegen nicht im selben Zeitfenster"
        )


class ChildNotInEntryError(ReassignError):
    def __init__(self, child_id: int, entry_id: str):
        self.child_id = child_id
        self.entry_id = entry_id
        super().__init__(f"Kind {child_id} ist nicht in Eintrag {entry_id} eingetragen")
