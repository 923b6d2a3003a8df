"""Tests für die Template-Prüfung (Namensauflösung, Vollständigkeit, Abdeckung)."""

import pytest

from analysis.coverage_validator import CoverageValidator
from config.defaults import default_planning_config
from data.excel_import import TemplateParser, parse_template
from data.fake_data import FakeDataGenerator, RoundRobinAllocator
from models.directory import Child, Directory, StaffMember

CONFIG = default_planning_config()
PARSER = TemplateParser(CONFIG)

DIRECTORY = Directory(
    staff=[
        StaffMember(id=1, first_name="Jean", last_name="Dupont"),
        StaffMember(id=2, first_name="Marie", last_name="Curie"),
    ],
    children=[
        Child(id=1, first_name="Alice", last_name="Martin"),
        Child(id=2, first_name="Bob", last_name="Smith"),
    ],
)


def _week(rows: list[tuple[str, str]], overrides: dict | None = None) -> list:
    """Baut ein vollständiges Wochen-Template: jede Zeile füllt alle Slots aller Tage.

    `overrides` ersetzt einzelne Zellen: {(Name, Wochentag, Slot): Text}.
    """
    overrides = overrides or {}
    slots = []
    for layout in CONFIG.time_grid.days:
        for row_no, (name, cell) in enumerate(rows, 2):
            for i in range(1, layout.slot_count + 1):
                text = overrides.get((name, layout.day_of_week, i), cell)
                slots.append(PARSER.parse_cell(
                    text, staff_name=name, day_of_week=layout.day_of_week,
                    slot_index=i, sheet=layout.sheet_name, row=row_no, column=i + 1,
                ))
    return slots


def _validate(slots, directory: Directory = DIRECTORY):
    return CoverageValidator(CONFIG).validate(slots, directory)


VALID_ROWS = [
    ("Jean Dupont", "Lecture – Alice Martin, Bob Smith"),
    ("Marie Curie", "Pause"),
]


# ─── GÜLTIGE TEMPLATES ────────────────────────────────────────────────────────

class TestValidTemplates:
    def test_valid_template(self):
        """Alle Personen vorhanden, alle Kinder abgedeckt → gültig."""
        report = _validate(_week(VALID_ROWS))
        assert report.is_valid
        assert report.summary() == "Template gültig."

    def test_pause_counts_as_present(self):
        """Eine Person nur mit "Pause" gilt als im Template vorhanden."""
        report = _validate(_week(VALID_ROWS))
        assert report.by_kind("missing_staff") == []

    def test_names_case_and_whitespace_insensitive(self):
        rows = [
            ("jean   DUPONT", "Lecture – alice martin, BOB  Smith"),
            ("Marie Curie", "Pause"),
        ]
        assert _validate(_week(rows)).is_valid

    def test_tous_covers_everyone(self):
        """ "tous" deckt alle Kinder ab, auch ohne einzelne Namen."""
        rows = [("Jean Dupont", "Sortie – tous"), ("Marie Curie", "Pause")]
        directory = Directory(
            staff=DIRECTORY.staff,
            children=DIRECTORY.children + [Child(id=3, first_name="Chloé", last_name="Petit")],
        )
        assert _validate(_week(rows), directory).is_valid

    def test_generated_fake_data_is_valid(self):
        """Generierte Testdaten bestehen die Prüfung."""
        dataset = FakeDataGenerator(CONFIG, seed=42).generate(num_staff=4, num_children=10)
        slots = parse_template(dataset.to_bytes(CONFIG), CONFIG)
        assert _validate(slots, dataset.directory).is_valid


# ─── VERSTÖSSE ────────────────────────────────────────────────────────────────

class TestViolations:
    def test_unknown_staff_once_per_day(self):
        rows = VALID_ROWS + [("Paul Inconnu", "Pause")]
        report = _validate(_week(rows))
        found = report.by_kind("unknown_staff")
        assert len(found) == 5
        assert {v.day_of_week for v in found} == {1, 2, 3, 4, 5}
        assert all(v.name == "Paul Inconnu" and v.column == 1 for v in found)
        assert len(report.violations) == 5

    def test_unknown_child_reports_position(self):
        rows = [
            ("Jean Dupont", "Lecture – Alice Martin, Bob Smith, Zoé Inconnue"),
            ("Marie Curie", "Pause"),
        ]
        found = _validate(_week(rows)).by_kind("unknown_child")
        assert len(found) == 5
        monday = next(v for v in found if v.day_of_week == 1)
        assert (monday.sheet, monday.row, monday.column) == ("Lundi", 2, 2)

    def test_missing_staff(self):
        report = _validate(_week([("Jean Dupont", "Lecture – Alice Martin, Bob Smith")]))
        found = report.by_kind("missing_staff")
        assert [v.name for v in found] == ["Marie Curie"]

    def test_missing_afternoon_coverage(self):
        """Bob fehlt am Montagnachmittag → genau ein Abdeckungs-Verstoß."""
        overrides = {
            ("Jean Dupont", 1, 4): "Lecture – Alice Martin",
            ("Jean Dupont", 1, 5): "Lecture – Alice Martin",
        }
        report = _validate(_week(VALID_ROWS, overrides))
        found = report.by_kind("missing_child_coverage")
        assert len(found) == 1
        assert (found[0].name, found[0].day_of_week, found[0].period) == ("Bob Smith", 1, "afternoon")

    def test_partial_morning_is_enough(self):
        """Ein einziger Vormittags-Slot reicht für die Abdeckung."""
        overrides = {
            ("Jean Dupont", 2, 1): "Lecture – Alice Martin",
            ("Jean Dupont", 2, 2): "Lecture – Alice Martin",
        }
        assert _validate(_week(VALID_ROWS, overrides)).is_valid

    def test_short_day_requires_morning_only(self):
        """Mittwoch: nur Vormittag gefordert, fehlt er → ein Verstoß."""
        overrides = {("Jean Dupont", 3, i): "Lecture – Alice Martin" for i in (1, 2, 3)}
        found = _validate(_week(VALID_ROWS, overrides)).by_kind("missing_child_coverage")
        assert [(v.name, v.day_of_week, v.period) for v in found] == [("Bob Smith", 3, "morning")]

    def test_pause_does_not_cover(self):
        overrides = {("Jean Dupont", 5, i): "Pause" for i in (4, 5)}
        found = _validate(_week(VALID_ROWS, overrides)).by_kind("missing_child_coverage")
        assert {(v.name, v.period) for v in found} == {
            ("Alice Martin", "afternoon"), ("Bob Smith", "afternoon"),
        }

    def test_staff_conflict(self):
        """Zwei Zeilen für dieselbe Person → Doppelbelegung in jedem Slot."""
        rows = VALID_ROWS + [("jean dupont", "Peinture – Alice Martin")]
        report = _validate(_week(rows))
        found = report.by_kind("staff_conflict")
        slot_total = sum(d.slot_count for d in CONFIG.time_grid.days)
        assert len(found) == slot_total
        assert report.by_kind("unknown_staff") == []

    def test_all_violations_in_one_report(self):
        """Alle Prüfungen laufen durch, nichts bricht beim ersten Fehler ab."""
        rows = [
            ("Jean Dupont", "Lecture – Alice Martin, Zoé Inconnue"),
            ("Paul Inconnu", "Pause"),
        ]
        report = _validate(_week(rows))
        assert not report.is_valid
        assert {v.kind for v in report.violations} == {
            "unknown_staff", "unknown_child", "missing_staff", "missing_child_coverage",
        }
        assert report.summary().startswith(f"{len(report.violations)} Problem(e):")

    def test_print_rich(self):
        report = _validate(_week([("Paul Inconnu", "Pause")]))
        report.print_rich()


# ─── NAMENSGLEICHE ─────────────────────────────────────────────────────────────

TWIN_CHILDREN = Directory(
    staff=DIRECTORY.staff,
    children=[
        Child(id=1, first_name="Alice", last_name="Martin"),
        Child(id=2, first_name="Alice", last_name="Martin"),
    ],
)

TWIN_STAFF = Directory(
    staff=[
        StaffMember(id=1, first_name="Jean", last_name="Dupont"),
        StaffMember(id=2, first_name="Jean", last_name="Dupont"),
    ],
    children=[Child(id=1, first_name="Alice", last_name="Martin")],
)


class TestHomonyms:
    def test_directory_keeps_all_homonyms(self):
        assert [c.id for c in TWIN_CHILDREN.children_named("alice  MARTIN")] == [1, 2]
        assert TWIN_CHILDREN.find_child("Alice Martin") is None
        assert TWIN_STAFF.find_staff("Jean Dupont") is None
        assert DIRECTORY.find_child("Alice Martin").id == 1

    def test_ambiguous_child_rejected(self):
        """Zwei Kinder "Alice Martin" → der Name im Template ist nicht zuordenbar."""
        rows = [("Jean Dupont", "Lecture – Alice Martin"), ("Marie Curie", "Pause")]
        report = _validate(_week(rows), TWIN_CHILDREN)
        assert not report.is_valid
        found = report.by_kind("ambiguous_name")
        assert [v.name for v in found] == ["Alice Martin"]
        assert "IDs 1, 2" in found[0].description
        assert report.by_kind("unknown_child") == []

    def test_ambiguous_staff_rejected(self):
        report = _validate(_week([("Jean Dupont", "Lecture – Alice Martin")]), TWIN_STAFF)
        assert not report.is_valid
        found = report.by_kind("ambiguous_name")
        assert [v.name for v in found] == ["Jean Dupont"]
        assert found[0].column == 1
        assert report.by_kind("unknown_staff") == []

    def test_ambiguous_staff_with_pause_only(self):
        directory = Directory(
            staff=DIRECTORY.staff + [StaffMember(id=3, first_name="Marie", last_name="Curie")],
            children=DIRECTORY.children,
        )
        report = _validate(_week(VALID_ROWS), directory)
        assert [v.name for v in report.by_kind("ambiguous_name")] == ["Marie Curie"]

    def test_tous_covers_homonyms(self):
        """Ohne ausgeschriebenen Namen bleibt das Template eindeutig."""
        rows = [("Jean Dupont", "Sortie – tous"), ("Marie Curie", "Pause")]
        assert _validate(_week(rows), TWIN_CHILDREN).is_valid


# ─── ALLOCATOR ────────────────────────────────────────────────────────────────

class TestRoundRobinAllocator:
    def test_cycles(self):
        alloc = RoundRobinAllocator(["a", "b", "c"])
        assert [alloc.next() for _ in range(5)] == ["a", "b", "c", "a", "b"]

    def test_fresh_state_per_instance(self):
        first = RoundRobinAllocator([1, 2])
        first.next()
        assert RoundRobinAllocator([1, 2]).next() == 1

    def test_empty_list_raises(self):
        with pytest.raises(ValueError):
            RoundRobinAllocator([])
