from datetime import date
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator


def _check_clock(value: str) -> str:
    """Prüft das Format "HH:MM" (00:00 – 23:59)."""
    parts = value.split(":")
    if len(parts) != 2 or not all(p.isdigit() for p in parts):
        raise ValueError(f"Ungültige Uhrzeit '{value}' (erwartet HH:MM)")
    hours, minutes = int(parts[0]), int(parts[1])
    if not (0 <= hours <= 23 and 0 <= minutes <= 59):
        raise ValueError(f"Ungültige Uhrzeit '{value}' (erwartet HH:MM)")
    return f"{hours:02d}:{minutes:02d}"


# ─── ZEITRASTER (feste Slot-Spalten) ───

class SlotDefinition(BaseModel):
    """Eine feste Slot-Spalte im Wochen-Template."""
    # Laufende Nummer des Slots, 1-basiert (Spalte 2 im Blatt = Slot 1)
    slot_index: int = Field(ge=1)
    # Beginn im Format "HH:MM"
    start_time: str
    # Ende im Format "HH:MM"
    end_time: str
    # Vormittag oder Nachmittag (für die Abdeckungsprüfung)
    period: Literal["morning", "afternoon"]

    @field_validator("start_time", "end_time")
    @classmethod
    def _valid_clock(cls, v: str) -> str:
        return _check_clock(v)

    @model_validator(mode="after")
    def _start_before_end(self):
        if self.start_time >= self.end_time:
            raise ValueError(
                f"Slot {self.slot_index}: Beginn {self.start_time} liegt nicht vor Ende {self.end_time}"
            )
        return self

    @property
    def label(self) -> str:
        """Anzeige wie im Template, z.B. "09:00-10:00"."""
        return f"{self.start_time}-{self.end_time}"


class DayLayout(BaseModel):
    """Ein Wochentag = ein Tabellenblatt."""
    # 1 = Montag … 5 = Freitag
    day_of_week: int = Field(ge=1, le=5)
    # Exakter Blattname im Template ("Lundi", …)
    sheet_name: str
    # Anzahl der Slot-Spalten an diesem Tag
    slot_count: int = Field(ge=1)


class TimeGridConfig(BaseModel):
    """Festes Wochenraster des Templates.

    Jede Zeile eines Tagesblatts hat genau `slot_count` Slot-Spalten,
    der kurze Tag (Mittwoch) hat nur Vormittags-Slots.
    """
    slots: list[SlotDefinition] = Field(
        description="Alle Slot-Spalten mit Uhrzeiten")
    days: list[DayLayout] = Field(
        description="Ein Eintrag pro Wochentag-Blatt")
    short_day: int = Field(3, ge=1, le=5,
        description="Wochentag ohne Nachmittag (Mittwoch)")

    @model_validator(mode="after")
    def _validate_grid(self):
        indexes = [s.slot_index for s in self.slots]
        if indexes != list(range(1, len(indexes) + 1)):
            raise ValueError("Slot-Nummern müssen lückenlos bei 1 beginnen")
        dows = [d.day_of_week for d in self.days]
        if len(set(dows)) != len(dows):
            raise ValueError("Jeder Wochentag darf nur einmal vorkommen")
        names = [d.sheet_name.strip().lower() for d in self.days]
        if len(set(names)) != len(names):
            raise ValueError("Blattnamen müssen eindeutig sein")
        for day in self.days:
            if day.slot_count > len(self.slots):
                raise ValueError(
                    f"{day.sheet_name}: {day.slot_count} Slots, Raster hat nur {len(self.slots)}"
                )
            if day.day_of_week == self.short_day:
                if any(s.period == "afternoon" for s in self.slots[:day.slot_count]):
                    raise ValueError(
                        f"{day.sheet_name} ist der kurze Tag und darf keine Nachmittags-Slots haben"
                    )
        return self

    def day(self, day_of_week: int) -> Optional[DayLayout]:
        return next((d for d in self.days if d.day_of_week == day_of_week), None)

    def day_for_sheet(self, sheet_name: str) -> Optional[DayLayout]:
        """Blattname → DayLayout (exakter Name, Leerzeichen am Rand ignoriert)."""
        wanted = sheet_name.strip()
        return next((d for d in self.days if d.sheet_name == wanted), None)

    def slot(self, slot_index: int) -> SlotDefinition:
        return self.slots[slot_index - 1]

    def slots_for_day(self, day_of_week: int) -> list[SlotDefinition]:
        layout = self.day(day_of_week)
        return self.slots[:layout.slot_count] if layout else []

    def needs_afternoon(self, day_of_week: int) -> bool:
        """True wenn an diesem Tag Nachmittags-Abdeckung gefordert ist."""
        if day_of_week == self.short_day:
            return False
        return any(s.period == "afternoon" for s in self.slots_for_day(day_of_week))


# ─── TEMPLATE-GRAMMATIK ───

class TemplateFormatConfig(BaseModel):
    """Zell-Grammatik "<Aktivität> – <Name1>, <Name2>"."""
    separators: list[str] = Field(default=["–", "—"],
        description="Trennzeichen zwischen Aktivität und Namensliste")
    pause_keyword: str = Field("Pause",
        description="Aktivität ohne Kinder")
    all_children_keyword: str = Field("tous",
        description="Platzhalter für alle bekannten Kinder")

    @field_validator("separators")
    @classmethod
    def _non_empty(cls, v: list[str]) -> list[str]:
        if not v or any(not s for s in v):
            raise ValueError("Mindestens ein nicht-leeres Trennzeichen erforderlich")
        return v


# ─── FERIEN & FEIERTAGE ───

class VacationPeriod(BaseModel):
    """Schulferien, Start und Ende jeweils inklusive."""
    label: str = "Vacances scolaires"
    start: date
    end: date

    @model_validator(mode="after")
    def _ordered(self):
        if self.end < self.start:
            raise ValueError(f"Ferien '{self.label}': Ende {self.end} vor Start {self.start}")
        return self

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end


class PublicHoliday(BaseModel):
    """Ein gesetzlicher Feiertag."""
    day: date
    name: str


class CalendarConfig(BaseModel):
    """Schließtage: Ferien, Feiertage, Brückentage."""
    vacations: list[VacationPeriod] = Field(default_factory=list)
    public_holidays: list[PublicHoliday] = Field(default_factory=list)
    # Gesetzliche Feiertage Frankreichs für jedes Jahr berechnen (zusätzlich
    # zu public_holidays)
    french_holidays: bool = False
    # Feiertage, deren Folgetag ebenfalls geschlossen ist (Pont de l'Ascension)
    bridge_after: list[str] = Field(default=["Ascension"])
    # Einzelne Schließtage in offenen Wochen ebenfalls überspringen
    skip_closed_days: bool = True


# ─── INFRASTRUKTUR ───

class DatabaseConfig(BaseModel):
    """Relationale Ablage (SQLAlchemy-URL)."""
    url: str = "sqlite:///output/planning.db"
    echo: bool = False


class StorageConfig(BaseModel):
    """Archiv der hochgeladenen Template-Dateien."""
    archive_dir: str = "uploads/planning_staff"


class LoggingConfig(BaseModel):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"


# ─── GESAMT-CONFIG ───

class PlanningConfig(BaseModel):
    """Gesamtkonfiguration der Semesterplanung."""
    # Name der Einrichtung
    organisation_name: str = Field("Centre de loisirs",
        description="Name der Einrichtung")
    # Festes Wochenraster
    time_grid: TimeGridConfig
    # Zell-Grammatik
    template: TemplateFormatConfig = Field(default_factory=TemplateFormatConfig)
    # Ferien und Feiertage
    calendar: CalendarConfig = Field(default_factory=CalendarConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
