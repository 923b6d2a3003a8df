"""Planungs-Modul: Zeitverankerung, Schließtage, Semester-Expansion."""

from .calendar import SchoolCalendar
from .expander import SemesterExpander
from .time_anchor import anchor, first_monday, parse_clock, week_count

__all__ = [
    "SchoolCalendar",
    "SemesterExpander",
    "anchor",
    "first_monday",
    "parse_clock",
    "week_count",
]
