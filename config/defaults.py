from datetime import date

from config.schema import (
    CalendarConfig,
    DayLayout,
    PlanningConfig,
    SlotDefinition,
    TimeGridConfig,
    VacationPeriod,
)

# Blattnamen im Template (Französisch, exakt so erwartet)
WEEKDAY_SHEETS = ["Lundi", "Mardi", "Mercredi", "Jeudi", "Vendredi"]


def default_time_grid() -> TimeGridConfig:
    """Standard-Raster der Einrichtung.

    Slot-Spalten:
    1. Slot  09:00 - 10:00  (Vormittag)
    2. Slot  10:00 - 11:00  (Vormittag)
    3. Slot  11:00 - 12:00  (Vormittag)
       ── Mittagspause ──
    4. Slot  14:00 - 15:00  (Nachmittag)
    5. Slot  15:00 - 16:00  (Nachmittag)

    Mittwoch (Mercredi) ist der kurze Tag: nur Slots 1-3.
    """
    return TimeGridConfig(
        slots=[
            SlotDefinition(slot_index=1, start_time="09:00", end_time="10:00", period="morning"),
            SlotDefinition(slot_index=2, start_time="10:00", end_time="11:00", period="morning"),
            SlotDefinition(slot_index=3, start_time="11:00", end_time="12:00", period="morning"),
            SlotDefinition(slot_index=4, start_time="14:00", end_time="15:00", period="afternoon"),
            SlotDefinition(slot_index=5, start_time="15:00", end_time="16:00", period="afternoon"),
        ],
        days=[
            DayLayout(day_of_week=dow, sheet_name=name, slot_count=3 if dow == 3 else 5)
            for dow, name in enumerate(WEEKDAY_SHEETS, 1)
        ],
        short_day=3,
    )


# Schulferien Zone C, Ende = letzter Ferientag (Tag vor Wiederaufnahme)
ZONE_C_VACATIONS: list[tuple[str, date, date]] = [
    ("Vacances d'été", date(2024, 7, 6), date(2024, 9, 1)),
    ("Vacances de la Toussaint", date(2024, 10, 19), date(2024, 11, 3)),
    ("Vacances de Noël", date(2024, 12, 21), date(2025, 1, 5)),
    ("Vacances d'hiver", date(2025, 2, 15), date(2025, 3, 2)),
    ("Vacances de printemps", date(2025, 4, 12), date(2025, 4, 27)),
    ("Vacances d'été", date(2025, 7, 5), date(2025, 8, 31)),
    ("Vacances de la Toussaint", date(2025, 10, 18), date(2025, 11, 2)),
    ("Vacances de Noël", date(2025, 12, 20), date(2026, 1, 4)),
    ("Vacances d'hiver", date(2026, 2, 21), date(2026, 3, 8)),
    ("Vacances de printemps", date(2026, 4, 18), date(2026, 5, 3)),
    ("Vacances d'été", date(2026, 7, 4), date(2026, 8, 31)),
]


def default_calendar() -> CalendarConfig:
    """Feiertage Frankreich (für jedes Jahr berechnet) + Schulferien Zone C.

    Die Ferientermine werden pro Schuljahr veröffentlicht und sind nur für
    2024/25 und 2025/26 hinterlegt; für spätere Semester warnt der Kalender.
    """
    return CalendarConfig(
        vacations=[
            VacationPeriod(label=label, start=start, end=end)
            for label, start, end in ZONE_C_VACATIONS
        ],
        french_holidays=True,
        bridge_after=["Ascension"],
        skip_closed_days=True,
    )


def default_planning_config() -> PlanningConfig:
    """Vollständige Standard-Konfiguration."""
    return PlanningConfig(
        organisation_name="Centre de loisirs",
        time_grid=default_time_grid(),
        calendar=default_calendar(),
    )
