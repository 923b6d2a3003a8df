"""Schließtage der Einrichtung: Feiertage, Brückentage, Schulferien."""

import logging
from datetime import date, timedelta
from typing import Optional

from dateutil.easter import easter

from config.schema import CalendarConfig
from models.schedule import ClosureDay

logger = logging.getLogger(__name__)

HOLIDAY_LABEL = "Jour férié"
VACATION_LABEL = "Vacances scolaires"
BRIDGE_LABEL = "Pont"


def french_public_holidays(year: int) -> list[tuple[date, str]]:
    """Gesetzliche Feiertage Frankreichs (Metropole) eines Jahres.

    Die beweglichen Feiertage hängen am Ostersonntag:
    Lundi de Pâques (+1), Ascension (+39), Lundi de Pentecôte (+50).
    """
    sunday = easter(year)
    return sorted([
        (date(year, 1, 1), "Jour de l'an"),
        (sunday + timedelta(days=1), "Lundi de Pâques"),
        (date(year, 5, 1), "Fête du travail"),
        (date(year, 5, 8), "Victoire 1945"),
        (sunday + timedelta(days=39), "Ascension"),
        (sunday + timedelta(days=50), "Lundi de Pentecôte"),
        (date(year, 7, 14), "Fête nationale"),
        (date(year, 8, 15), "Assomption"),
        (date(year, 11, 1), "Toussaint"),
        (date(year, 11, 11), "Armistice"),
        (date(year, 12, 25), "Noël"),
    ])


class SchoolCalendar:
    """Nachschlagen von Schließtagen auf Basis der CalendarConfig.

    Feiertage und Brückentage werden pro Kalenderjahr einmal aufgebaut
    und zwischengespeichert.
    """

    def __init__(self, config: CalendarConfig) -> None:
        self.config = config
        self._years: dict[int, tuple[dict[date, str], dict[date, str]]] = {}

    def _year(self, year: int) -> tuple[dict[date, str], dict[date, str]]:
        """(Feiertage, Brückentage), deren Feiertag in `year` liegt."""
        if year not in self._years:
            holidays: dict[date, str] = {}
            if self.config.french_holidays:
                holidays.update(french_public_holidays(year))
            holidays.update(
                (h.day, h.name) for h in self.config.public_holidays if h.day.year == year
            )
            bridges: dict[date, str] = {}
            for day, name in holidays.items():
                if name not in self.config.bridge_after:
                    continue
                following = day + timedelta(days=1)
                if following.weekday() >= 5 or following in holidays:
                    continue
                if following.year != year and self.is_holiday(following):
                    continue
                bridges[following] = f"Pont de l'{name}"
            self._years[year] = (holidays, bridges)
        return self._years[year]

    def _holiday_name(self, day: date) -> Optional[str]:
        return self._year(day.year)[0].get(day)

    def _bridge_name(self, day: date) -> Optional[str]:
        # Brückentag am 1. Januar gehört zu einem Feiertag des Vorjahres
        for year in (day.year, day.year - 1):
            name = self._year(year)[1].get(day)
            if name is not None:
                return name
        return None

    def closure(self, day: date) -> Optional[ClosureDay]:
        """Schließtag-Info für `day` oder None, wenn geöffnet."""
        name = self._holiday_name(day)
        if name is not None:
            return ClosureDay(day=day, label=HOLIDAY_LABEL, name=name)
        name = self._bridge_name(day)
        if name is not None:
            return ClosureDay(day=day, label=BRIDGE_LABEL, name=name)
        for period in self.config.vacations:
            if period.contains(day):
                return ClosureDay(day=day, label=VACATION_LABEL, name=period.label)
        return None

    def is_closed(self, day: date) -> bool:
        return self.closure(day) is not None

    def is_holiday(self, day: date) -> bool:
        return self._holiday_name(day) is not None

    def in_vacation(self, day: date) -> bool:
        return any(p.contains(day) for p in self.config.vacations)

    def is_week_skipped(self, monday: date) -> bool:
        """Woche entfällt, wenn ihr Montag in den Ferien liegt oder ein Feiertag ist."""
        return self.in_vacation(monday) or self.is_holiday(monday)

    def closures_between(self, start: date, end: date) -> list[ClosureDay]:
        """Alle geschlossenen Werktage (Mo–Fr) im Bereich, beide Enden inklusive."""
        result = []
        day = start
        while day <= end:
            if day.weekday() < 5:
                info = self.closure(day)
                if info is not None:
                    result.append(info)
            day += timedelta(days=1)
        return result

    # ── Abdeckung der Kalenderdaten ───────────────────────────────────────────

    def uncovered_years(self, start: date, end: date) -> list[int]:
        """Jahre im Bereich, für die konfigurierte Ferien/Feiertage fehlen.

        Ferien gelten als abgedeckt, solange der Teil des Bereichs im Jahr
        zwischen erstem Ferienbeginn und letztem Ferienende liegt; feste
        Feiertage, sobald einer im Jahr liegt. Ein Kalender ganz ohne Ferien
        bzw. ohne feste Feiertage wird nicht bemängelt.
        """
        vacations = self.config.vacations
        missing = []
        for year in range(start.year, end.year + 1):
            lo = max(start, date(year, 1, 1))
            hi = min(end, date(year, 12, 31))
            no_vacations = bool(vacations) and (
                lo < min(p.start for p in vacations) or hi > max(p.end for p in vacations)
            )
            no_holidays = (
                not self.config.french_holidays
                and bool(self.config.public_holidays)
                and not any(h.day.year == year for h in self.config.public_holidays)
            )
            if no_vacations or no_holidays:
                missing.append(year)
        return missing

    def warn_if_uncovered(self, start: date, end: date, context: str) -> list[int]:
        """Loggt eine Warnung, wenn der Kalender den Bereich nicht abdeckt."""
        years = self.uncovered_years(start, end)
        if years:
            logger.warning(
                f"{context}: Kalender enthält keine Ferien/Feiertage für "
                f"{', '.join(str(y) for y in years)}; Schließtage fehlen ggf."
            )
        return years
