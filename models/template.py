"""Geparste Template-Zelle (nicht persistiert)."""

from pydantic import BaseModel, Field


class TemplateSlot(BaseModel):
    """Bedeutung einer Zelle: wer, wann, was, mit wem.

    `child_names` enthält die Namen wie im Blatt geschrieben; das
    Schlüsselwort "tous" wird erst bei der Expansion aufgelöst.
    """

    staff_name: str
    day_of_week: int = Field(ge=1, le=5)
    slot_index: int = Field(ge=1)
    activity: str
    child_names: list[str] = []
    is_pause: bool = False
    includes_all: bool = False      # "tous" in der Namensliste
    # Position im Blatt (1-basiert) für Fehlermeldungen
    sheet: str = ""
    row: int = 0
    column: int = 0

    @property
    def position(self) -> str:
        return f"{self.sheet} Z{self.row}/S{self.column}"
