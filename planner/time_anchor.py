"""Verankerung von (Wochentag, Uhrzeit) auf absolute Zeitpunkte im Semester.

Ursprung ist der erste Montag am oder nach dem Semesterbeginn.
"""

from datetime import date, datetime, time, timedelta

from models.errors import MalformedTimeError
from models.semester import Semester


def first_monday(start: date) -> date:
    """Erster Montag am oder nach `start`."""
    return start + timedelta(days=(7 - start.weekday()) % 7)


def parse_clock(value: str) -> time:
    """'HH:MM' → time; alles andere → MalformedTimeError."""
    parts = str(value).strip().split(":")
    if len(parts) != 2 or not all(p.isdigit() for p in parts):
        raise MalformedTimeError(value)
    hours, minutes = int(parts[0]), int(parts[1])
    if not (0 <= hours <= 23 and 0 <= minutes <= 59):
        raise MalformedTimeError(value)
    return time(hours, minutes)


def week_count(semester: Semester) -> int:
    """Anzahl der Wochen ab dem ersten Montag, deren Montag vor Semesterende liegt."""
    monday = first_monday(semester.start_date)
    if monday > semester.end_date:
        return 0
    return (semester.end_date - monday).days // 7 + 1


def anchor_date(semester: Semester, day_of_week: int, week_offset: int = 0) -> date:
    return first_monday(semester.start_date) + timedelta(
        days=(day_of_week - 1) + 7 * week_offset
    )


def anchor(semester: Semester, day_of_week: int, clock: str, week_offset: int = 0) -> datetime:
    """Absoluter Zeitpunkt für Wochentag (1 = Montag) und Uhrzeit in Woche `week_offset`."""
    return datetime.combine(anchor_date(semester, day_of_week, week_offset), parse_clock(clock))
