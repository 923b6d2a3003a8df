"""Prüfung eines geparsten Templates gegen das Personenverzeichnis.

Alle Prüfungen laufen vollständig durch; der Report enthält jeden Verstoß,
damit das Blatt in einem Durchgang korrigiert werden kann.
"""

import logging
from collections import defaultdict

from config.schema import PlanningConfig
from models.directory import Directory, normalize_name
from models.report import ValidationReport, Violation
from models.template import TemplateSlot

logger = logging.getLogger(__name__)

_PERIOD_LABELS = {"morning": "Vormittag", "afternoon": "Nachmittag"}


class CoverageValidator:
    """Namensauflösung, Vollständigkeit und Abdeckung eines Templates."""

    def __init__(self, config: PlanningConfig) -> None:
        self.grid = config.time_grid

    def validate(self, slots: list[TemplateSlot], directory: Directory) -> ValidationReport:
        """Führt alle Checks durch und gibt einen ValidationReport zurück."""
        violations: list[Violation] = []
        violations.extend(self._check_unknown_staff(slots, directory))
        violations.extend(self._check_unknown_children(slots, directory))
        violations.extend(self._check_ambiguous_names(slots, directory))
        violations.extend(self._check_staff_conflicts(slots))
        violations.extend(self._check_missing_staff(slots, directory))
        violations.extend(self._check_child_coverage(slots, directory))

        report = ValidationReport(violations=violations)
        if report.is_valid:
            logger.debug(f"Template gültig ({len(slots)} Slots)")
        else:
            logger.warning(f"Template abgelehnt: {len(violations)} Verstoß/Verstöße")
        return report

    def _day_name(self, day_of_week: int) -> str:
        layout = self.grid.day(day_of_week)
        return layout.sheet_name if layout else str(day_of_week)

    # ── Einzelne Prüfungen ────────────────────────────────────────────────────

    def _check_unknown_staff(
        self, slots: list[TemplateSlot], directory: Directory
    ) -> list[Violation]:
        """Jede Zeile muss einer bekannten Betreuungsperson gehören."""
        violations = []
        seen: set[tuple] = set()
        for s in slots:
            key = (normalize_name(s.staff_name), s.day_of_week)
            if key in seen or directory.staff_named(s.staff_name):
                continue
            seen.add(key)
            violations.append(Violation(
                kind="unknown_staff",
                name=s.staff_name,
                day_of_week=s.day_of_week,
                sheet=s.sheet, row=s.row, column=1,
                description=(
                    f"{self._day_name(s.day_of_week)}: '{s.staff_name}' "
                    f"ist keine bekannte Betreuungsperson."
                ),
            ))
        return violations

    def _check_unknown_children(
        self, slots: list[TemplateSlot], directory: Directory
    ) -> list[Violation]:
        """Jeder Kindername muss im Verzeichnis stehen ("tous" ausgenommen)."""
        violations = []
        seen: set[tuple] = set()
        for s in slots:
            if s.is_pause:
                continue
            for name in s.child_names:
                key = (normalize_name(name), s.day_of_week)
                if key in seen or directory.children_named(name):
                    continue
                seen.add(key)
                violations.append(Violation(
                    kind="unknown_child",
                    name=name,
                    day_of_week=s.day_of_week,
                    slot_index=s.slot_index,
                    sheet=s.sheet, row=s.row, column=s.column,
                    description=(
                        f"{self._day_name(s.day_of_week)}, Slot {s.slot_index}: "
                        f"Kind '{name}' unbekannt."
                    ),
                ))
        return violations

    def _check_ambiguous_names(
        self, slots: list[TemplateSlot], directory: Directory
    ) -> list[Violation]:
        """Ein Name im Template muss genau eine Person bezeichnen."""
        violations = []
        seen: set[tuple] = set()
        for s in slots:
            candidates = [("staff", s.staff_name, 1, directory.staff_named(s.staff_name))]
            if not s.is_pause:
                candidates += [
                    ("child", name, s.column, directory.children_named(name))
                    for name in s.child_names
                ]
            for role, name, column, matches in candidates:
                key = (role, normalize_name(name))
                if len(matches) < 2 or key in seen:
                    continue
                seen.add(key)
                ids = ", ".join(str(m.id) for m in matches)
                who = "Betreuungspersonen" if role == "staff" else "Kinder"
                violations.append(Violation(
                    kind="ambiguous_name",
                    name=name,
                    day_of_week=s.day_of_week,
                    slot_index=None if role == "staff" else s.slot_index,
                    sheet=s.sheet, row=s.row, column=column,
                    description=(
                        f"{self._day_name(s.day_of_week)}: '{name}' passt auf "
                        f"{len(matches)} {who} (IDs {ids}); Namen im Verzeichnis "
                        f"eindeutig machen."
                    ),
                ))
        return violations

    def _check_staff_conflicts(self, slots: list[TemplateSlot]) -> list[Violation]:
        """Eine Person darf pro Tag und Slot nur einmal eingeplant sein."""
        by_slot: dict[tuple, list[TemplateSlot]] = defaultdict(list)
        for s in slots:
            by_slot[(normalize_name(s.staff_name), s.day_of_week, s.slot_index)].append(s)

        violations = []
        for (_, day, slot_index), group in by_slot.items():
            if len(group) <= 1:
                continue
            rows = ", ".join(str(s.row) for s in group)
            first = group[0]
            violations.append(Violation(
                kind="staff_conflict",
                name=first.staff_name,
                day_of_week=day,
                slot_index=slot_index,
                sheet=first.sheet, row=group[1].row, column=first.column,
                description=(
                    f"{self._day_name(day)}, Slot {slot_index}: '{first.staff_name}' "
                    f"mehrfach eingeplant (Zeilen {rows})."
                ),
            ))
        return violations

    def _check_missing_staff(
        self, slots: list[TemplateSlot], directory: Directory
    ) -> list[Violation]:
        """Jede bekannte Betreuungsperson muss mindestens einmal vorkommen."""
        present = {normalize_name(s.staff_name) for s in slots}
        return [
            Violation(
                kind="missing_staff",
                name=member.full_name,
                description=f"'{member.full_name}' kommt im Template nicht vor.",
            )
            for member in directory.staff
            if normalize_name(member.full_name) not in present
        ]

    def _check_child_coverage(
        self, slots: list[TemplateSlot], directory: Directory
    ) -> list[Violation]:
        """Jedes Kind braucht pro Tag einen Vormittags- und ggf. Nachmittags-Slot."""
        # (Tag, Periode) → abgedeckte Namen bzw. "alle"
        covered: dict[tuple, set[str]] = defaultdict(set)
        everyone: set[tuple] = set()
        for s in slots:
            if s.is_pause:
                continue
            period = self.grid.slot(s.slot_index).period
            key = (s.day_of_week, period)
            if s.includes_all:
                everyone.add(key)
            covered[key].update(normalize_name(n) for n in s.child_names)

        violations = []
        for layout in sorted(self.grid.days, key=lambda d: d.day_of_week):
            dow = layout.day_of_week
            periods = ["morning"]
            if self.grid.needs_afternoon(dow):
                periods.append("afternoon")
            for period in periods:
                key = (dow, period)
                if key in everyone:
                    continue
                for child in directory.children:
                    if normalize_name(child.full_name) in covered[key]:
                        continue
                    violations.append(Violation(
                        kind="missing_child_coverage",
                        name=child.full_name,
                        day_of_week=dow,
                        period=period,
                        sheet=layout.sheet_name,
                        description=(
                            f"{layout.sheet_name}: '{child.full_name}' hat keinen "
                            f"Slot am {_PERIOD_LABELS[period]}."
                        ),
                    ))
        return violations
