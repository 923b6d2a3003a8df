"""Tests für Zeitverankerung, Schließtage und das Ausrollen auf das Semester."""

import logging
from datetime import date, datetime, time

import pytest

from config.defaults import default_calendar, default_planning_config
from config.schema import CalendarConfig, PublicHoliday, VacationPeriod
from data.excel_import import TemplateParser
from models.directory import Child, Directory, StaffMember
from models.errors import MalformedTimeError, PlanningError
from models.semester import Semester
from planner import (
    SchoolCalendar,
    SemesterExpander,
    anchor,
    first_monday,
    parse_clock,
    week_count,
)
from planner.calendar import french_public_holidays

SEMESTER = Semester(id=1, name="Printemps 2025",
                    start_date=date(2025, 1, 6), end_date=date(2025, 6, 27))

DIRECTORY = Directory(
    staff=[StaffMember(id=1, first_name="Jean", last_name="Dupont")],
    children=[
        Child(id=1, first_name="Alice", last_name="Martin"),
        Child(id=2, first_name="Bob", last_name="Smith"),
    ],
)


def _config(calendar: CalendarConfig | None = None):
    """Default-Raster mit wählbarem Kalender (Default: keine Schließtage)."""
    return default_planning_config().model_copy(
        update={"calendar": calendar or CalendarConfig()}
    )


def _slot(text: str, day_of_week: int, slot_index: int, staff: str = "Jean Dupont"):
    return TemplateParser(_config()).parse_cell(
        text, staff_name=staff, day_of_week=day_of_week, slot_index=slot_index,
    )


def _expander(calendar: CalendarConfig | None = None) -> SemesterExpander:
    config = _config(calendar)
    return SemesterExpander(config, SchoolCalendar(config.calendar))


# ─── ZEITVERANKERUNG ──────────────────────────────────────────────────────────

class TestTimeAnchor:
    def test_first_monday(self):
        assert first_monday(date(2025, 1, 6)) == date(2025, 1, 6)
        assert first_monday(date(2025, 1, 8)) == date(2025, 1, 13)
        assert first_monday(date(2025, 1, 5)) == date(2025, 1, 6)

    def test_anchor(self):
        assert anchor(SEMESTER, 3, "14:00") == datetime(2025, 1, 8, 14, 0)
        assert anchor(SEMESTER, 5, "09:00", 2) == datetime(2025, 1, 24, 9, 0)

    def test_anchor_from_midweek_start(self):
        """Semester beginnt Mittwoch → Woche 0 beginnt am folgenden Montag."""
        sem = Semester(id=2, name="x", start_date=date(2025, 1, 8), end_date=date(2025, 2, 28))
        assert anchor(sem, 1, "09:00") == datetime(2025, 1, 13, 9, 0)

    def test_parse_clock(self):
        assert parse_clock("09:30") == time(9, 30)
        assert parse_clock(" 8:05 ") == time(8, 5)

    @pytest.mark.parametrize("value", ["25:00", "12:60", "abc", "9h00", ""])
    def test_malformed_time(self, value):
        with pytest.raises(MalformedTimeError):
            parse_clock(value)

    def test_malformed_time_is_value_error(self):
        with pytest.raises(ValueError):
            anchor(SEMESTER, 1, "nope")

    def test_week_count(self):
        assert week_count(SEMESTER) == 25
        short = Semester(id=3, name="x", start_date=date(2025, 1, 7), end_date=date(2025, 1, 10))
        assert week_count(short) == 0


# ─── SCHLIESSTAGE ─────────────────────────────────────────────────────────────

class TestSchoolCalendar:
    def test_ascension_and_bridge(self):
        """Ascension (Donnerstag) plus Pont am Freitag."""
        cal = SchoolCalendar(default_calendar())
        closures = cal.closures_between(date(2025, 5, 26), date(2025, 5, 30))
        assert [(c.day, c.label) for c in closures] == [
            (date(2025, 5, 29), "Jour férié"),
            (date(2025, 5, 30), "Pont"),
        ]
        assert closures[0].name == "Ascension"

    def test_vacation_label(self):
        cal = SchoolCalendar(default_calendar())
        info = cal.closure(date(2025, 2, 20))
        assert info is not None
        assert info.label == "Vacances scolaires"

    def test_weekends_not_listed(self):
        cal = SchoolCalendar(CalendarConfig(
            vacations=[VacationPeriod(start=date(2025, 2, 15), end=date(2025, 2, 23))],
        ))
        closures = cal.closures_between(date(2025, 2, 14), date(2025, 2, 24))
        assert [c.day for c in closures] == [date(2025, 2, d) for d in (17, 18, 19, 20, 21)]

    def test_week_skipped(self):
        cal = SchoolCalendar(default_calendar())
        assert cal.is_week_skipped(date(2025, 4, 21))      # Lundi de Pâques
        assert cal.is_week_skipped(date(2025, 2, 17))      # Winterferien
        assert not cal.is_week_skipped(date(2025, 5, 26))  # nur Do/Fr geschlossen

    def test_no_bridge_onto_weekend(self):
        cal = SchoolCalendar(CalendarConfig(
            public_holidays=[PublicHoliday(day=date(2025, 7, 4), name="Ascension")],
        ))
        assert cal.closure(date(2025, 7, 5)) is None

    def test_bridge_into_next_year(self):
        cal = SchoolCalendar(CalendarConfig(
            public_holidays=[PublicHoliday(day=date(2025, 12, 31), name="Saint-Sylvestre")],
            bridge_after=["Saint-Sylvestre"],
        ))
        assert cal.closure(date(2026, 1, 1)).label == "Pont"


class TestFrenchHolidays:
    def test_easter_based_dates(self):
        """Bewegliche Feiertage folgen dem Ostersonntag (2027: 28. März)."""
        holidays = dict((name, day) for day, name in french_public_holidays(2027))
        assert holidays["Lundi de Pâques"] == date(2027, 3, 29)
        assert holidays["Ascension"] == date(2027, 5, 6)
        assert holidays["Lundi de Pentecôte"] == date(2027, 5, 17)
        assert len(holidays) == 11

    def test_matches_known_years(self):
        days = {day for year in (2025, 2026) for day, _ in french_public_holidays(year)}
        assert {date(2025, 4, 21), date(2025, 6, 9), date(2026, 4, 6), date(2026, 5, 14)} <= days

    def test_closures_beyond_vacation_table(self):
        """Auch außerhalb der hinterlegten Schuljahre gibt es Feiertage und Pont."""
        cal = SchoolCalendar(default_calendar())
        closures = cal.closures_between(date(2027, 5, 3), date(2027, 5, 7))
        assert [(c.day, c.label) for c in closures] == [
            (date(2027, 5, 6), "Jour férié"),
            (date(2027, 5, 7), "Pont"),
        ]
        assert cal.is_week_skipped(date(2027, 3, 29))

    def test_disabled_by_default(self):
        assert SchoolCalendar(CalendarConfig()).closure(date(2027, 5, 6)) is None


class TestCalendarCoverage:
    def test_covered_semester(self, caplog):
        cal = SchoolCalendar(default_calendar())
        with caplog.at_level(logging.WARNING, logger="planner.calendar"):
            assert cal.warn_if_uncovered(date(2025, 1, 6), date(2025, 6, 27), "Semester 1") == []
        assert caplog.records == []

    def test_semester_after_vacation_table(self):
        cal = SchoolCalendar(default_calendar())
        assert cal.uncovered_years(date(2026, 9, 1), date(2027, 6, 30)) == [2026, 2027]
        assert cal.uncovered_years(date(2026, 3, 2), date(2026, 6, 26)) == []

    def test_fixed_holidays_only(self):
        cal = SchoolCalendar(CalendarConfig(
            public_holidays=[PublicHoliday(day=date(2025, 5, 29), name="Ascension")],
        ))
        assert cal.uncovered_years(date(2025, 1, 6), date(2025, 6, 27)) == []
        assert cal.uncovered_years(date(2027, 1, 4), date(2027, 6, 25)) == [2027]

    def test_empty_calendar_not_reported(self):
        cal = SchoolCalendar(CalendarConfig())
        assert cal.uncovered_years(date(2030, 1, 7), date(2030, 6, 28)) == []

    def test_expand_warns_for_uncovered_semester(self, caplog):
        """Semester 2027 mit Ferien nur bis 2026 → Warnung, Ausrollen läuft trotzdem."""
        config = _config(default_calendar())
        expander = SemesterExpander(config, SchoolCalendar(config.calendar))
        sem = Semester(id=9, name="Printemps 2027",
                       start_date=date(2027, 1, 4), end_date=date(2027, 1, 29))
        with caplog.at_level(logging.WARNING, logger="planner.calendar"):
            entries = expander.expand([_slot("A – Alice Martin", 1, 1)], sem, DIRECTORY)
        assert len(entries) == 4
        warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
        assert len(warnings) == 1
        assert "Semester 9" in warnings[0].getMessage()
        assert "2027" in warnings[0].getMessage()


# ─── EXPANSION ────────────────────────────────────────────────────────────────

class TestSemesterExpander:
    def test_monday_lecture_scenario(self):
        """Montag 09–10 Lecture mit zwei Kindern, 14–15 Pause → ein Eintrag pro Montag."""
        slots = [
            _slot("Lecture – Alice Martin, Bob Smith", 1, 1),
            _slot("Pause", 1, 4),
        ]
        entries = _expander().expand(slots, SEMESTER, DIRECTORY)
        assert len(entries) == 25
        assert all(e.start_time.weekday() == 0 for e in entries)
        assert all(e.start_time.time() == time(9, 0) for e in entries)
        assert all(e.end_time.time() == time(10, 0) for e in entries)
        assert all(e.activity == "Lecture" for e in entries)
        assert all(e.child_ids == {1, 2} for e in entries)
        assert entries[0].start_time == datetime(2025, 1, 6, 9, 0)
        assert entries[-1].start_time == datetime(2025, 6, 23, 9, 0)

    def test_count_is_weeks_times_slots(self):
        slots = [
            _slot("Lecture – Alice Martin", 1, 1),
            _slot("Sport – Bob Smith", 2, 4),
            _slot("Musique – tous", 5, 5),
            _slot("Pause", 3, 2),
        ]
        entries = _expander().expand(slots, SEMESTER, DIRECTORY)
        assert len(entries) == 25 * 3

    def test_order_by_week_then_template(self):
        slots = [_slot("B – Bob Smith", 2, 1), _slot("A – Alice Martin", 1, 1)]
        entries = _expander().expand(slots, SEMESTER, DIRECTORY)
        assert [e.activity for e in entries[:4]] == ["B", "A", "B", "A"]

    def test_vacation_week_skipped(self):
        calendar = CalendarConfig(vacations=[
            VacationPeriod(start=date(2025, 2, 15), end=date(2025, 3, 2)),
        ])
        expander = _expander(calendar)
        assert len(expander.eligible_weeks(SEMESTER)) == 23
        entries = expander.expand([_slot("Lecture – Alice Martin", 1, 1)], SEMESTER, DIRECTORY)
        days = {e.day for e in entries}
        assert date(2025, 2, 17) not in days
        assert date(2025, 2, 24) not in days
        assert date(2025, 3, 3) in days

    def test_holiday_monday_skips_whole_week(self):
        calendar = CalendarConfig(public_holidays=[
            PublicHoliday(day=date(2025, 4, 21), name="Lundi de Pâques"),
        ])
        entries = _expander(calendar).expand(
            [_slot("Sport – Bob Smith", 3, 1)], SEMESTER, DIRECTORY
        )
        assert len(entries) == 24
        assert date(2025, 4, 23) not in {e.day for e in entries}

    def test_closed_day_in_open_week(self):
        """Ascension/Pont: Woche bleibt offen, nur die Tage selbst entfallen."""
        calendar = CalendarConfig(public_holidays=[
            PublicHoliday(day=date(2025, 5, 29), name="Ascension"),
        ])
        slots = [_slot("A – Alice Martin", d, 1) for d in (1, 4, 5)]
        days = {e.day for e in _expander(calendar).expand(slots, SEMESTER, DIRECTORY)}
        assert date(2025, 5, 26) in days
        assert date(2025, 5, 29) not in days
        assert date(2025, 5, 30) not in days

    def test_closed_day_kept_without_day_skipping(self):
        calendar = CalendarConfig(
            public_holidays=[PublicHoliday(day=date(2025, 5, 29), name="Ascension")],
            skip_closed_days=False,
        )
        slots = [_slot("A – Alice Martin", 4, 1)]
        days = {e.day for e in _expander(calendar).expand(slots, SEMESTER, DIRECTORY)}
        assert date(2025, 5, 29) in days

    def test_no_entries_after_end_date(self):
        sem = Semester(id=4, name="x", start_date=date(2025, 1, 6), end_date=date(2025, 1, 8))
        slots = [_slot("A – Alice Martin", 1, 1), _slot("B – Bob Smith", 5, 1)]
        entries = _expander().expand(slots, sem, DIRECTORY)
        assert [e.activity for e in entries] == ["A"]

    def test_tous_resolved_against_current_directory(self):
        """ "tous" wird erst beim Ausrollen aufgelöst: neue Kinder erscheinen."""
        slots = [_slot("Sortie – tous", 1, 1)]
        first = _expander().expand(slots, SEMESTER, DIRECTORY)
        assert first[0].child_ids == {1, 2}

        grown = Directory(
            staff=DIRECTORY.staff,
            children=DIRECTORY.children + [Child(id=3, first_name="Chloé", last_name="Petit")],
        )
        second = _expander().expand(slots, SEMESTER, grown)
        assert second[0].child_ids == {1, 2, 3}

    def test_tous_plus_name_no_duplicates(self):
        entries = _expander().expand(
            [_slot("Sortie – tous, Alice Martin", 1, 1)], SEMESTER, DIRECTORY
        )
        assert len(entries[0].children) == 2

    def test_unknown_name_raises(self):
        with pytest.raises(PlanningError):
            _expander().expand([_slot("A – Zoé Inconnue", 1, 1)], SEMESTER, DIRECTORY)
        with pytest.raises(PlanningError):
            _expander().expand(
                [_slot("A – Alice Martin", 1, 1, staff="Paul Inconnu")], SEMESTER, DIRECTORY
            )

    def test_ambiguous_name_raises(self):
        twins = Directory(
            staff=DIRECTORY.staff,
            children=DIRECTORY.children + [Child(id=3, first_name="Alice", last_name="Martin")],
        )
        with pytest.raises(PlanningError):
            _expander().expand([_slot("A – Alice Martin", 1, 1)], SEMESTER, twins)

    def test_entries_are_unsaved(self):
        entries = _expander().expand([_slot("A – Alice Martin", 1, 1)], SEMESTER, DIRECTORY)
        assert all(e.id is None and not e.cancelled for e in entries)
        assert entries[0].semester_id == 1
        assert entries[0].staff_name == "Jean Dupont"
