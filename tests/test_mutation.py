"""Tests für nachträgliche Änderungen: Absagen, Umbuchen, Alternativen."""

from datetime import date, time

import pytest

from config.defaults import default_planning_config
from config.schema import CalendarConfig
from data.excel_import import template_bytes
from models.directory import Child, Directory, StaffMember
from models.errors import (
    ChildNotInEntryError,
    CrossContextReassignError,
    EntryNotFoundError,
    ReassignError,
)
from services.planning import PlanningService
from storage.archive import TemplateArchive
from storage.database import create_session_factory

CONFIG = default_planning_config().model_copy(update={"calendar": CalendarConfig()})

JEAN, MARIE, LUC = 1, 2, 3
ALICE, BOB, CHLOE, DAVID = 1, 2, 3, 4

DIRECTORY = Directory(
    staff=[
        StaffMember(id=JEAN, first_name="Jean", last_name="Dupont"),
        StaffMember(id=MARIE, first_name="Marie", last_name="Curie"),
        StaffMember(id=LUC, first_name="Luc", last_name="Moreau"),
    ],
    children=[
        Child(id=ALICE, first_name="Alice", last_name="Martin"),
        Child(id=BOB, first_name="Bob", last_name="Smith"),
        Child(id=CHLOE, first_name="Chloé", last_name="Petit"),
        Child(id=DAVID, first_name="David", last_name="Roux"),
    ],
)

ROWS = [
    ["Jean Dupont", "Lecture – Alice Martin, Bob Smith"],
    ["Marie Curie", "Peinture – Chloé Petit"],
    ["Luc Moreau", "Sport – David Roux"],
]


@pytest.fixture
def service(tmp_path):
    svc = PlanningService(
        CONFIG,
        session_factory=create_session_factory("sqlite://"),
        archive=TemplateArchive(tmp_path / "archive"),
    )
    svc.repository.seed_directory(DIRECTORY)
    sem = svc.create_semester("Semaine test", date(2025, 1, 6), date(2025, 1, 10))
    rows = {
        layout.day_of_week: [[name] + [cell] * layout.slot_count for name, cell in ROWS]
        for layout in CONFIG.time_grid.days
    }
    svc.import_schedule(sem.id, template_bytes(CONFIG, rows))
    return svc


def _entry(service, staff_id: int, day_of_week: int = 1, start: time = time(9, 0)):
    """Gespeicherter Eintrag einer Person an Wochentag/Uhrzeit (Woche 0)."""
    return next(
        e for e in service.get_staff_schedule(1, staff_id)
        if e.day_of_week == day_of_week and e.start_time.time() == start
    )


# ─── ABSAGEN / REAKTIVIEREN ───────────────────────────────────────────────────

class TestCancel:
    def test_cancel_and_reactivate(self, service):
        entry = _entry(service, JEAN)
        assert service.set_entry_cancelled(entry.id, True).cancelled is True
        assert service.set_entry_cancelled(entry.id, False).cancelled is False

    def test_cancel_keeps_children(self, service):
        entry = _entry(service, JEAN)
        cancelled = service.set_entry_cancelled(entry.id, True)
        assert cancelled.child_ids == {ALICE, BOB}

    def test_reactivation_restores_transferred_children(self, service):
        """Umbuchen mit Absage, dann Reaktivieren → Kinder kehren zurück."""
        jean = _entry(service, JEAN)
        marie = _entry(service, MARIE)
        service.reassign_children(jean.id, marie.id)

        restored = service.set_entry_cancelled(jean.id, False)
        assert restored.child_ids == {ALICE, BOB}
        assert all(c.original_entry_id is None for c in restored.children)
        assert service.transferred_children(jean.id) == []
        assert _entry(service, MARIE).child_ids == {CHLOE}

    def test_unknown_entry(self, service):
        with pytest.raises(EntryNotFoundError):
            service.set_entry_cancelled("gibt-es-nicht", True)


# ─── UMBUCHEN ─────────────────────────────────────────────────────────────────

class TestReassign:
    def test_cross_day_refused(self, service):
        """Anderer Wochentag → Fehler, beide Einträge unverändert."""
        monday = _entry(service, JEAN, 1)
        tuesday = _entry(service, MARIE, 2)
        with pytest.raises(CrossContextReassignError):
            service.reassign_one_child(monday.id, ALICE, tuesday.id)
        assert _entry(service, JEAN, 1).child_ids == {ALICE, BOB}
        assert _entry(service, MARIE, 2).child_ids == {CHLOE}

    def test_cross_time_refused(self, service):
        early = _entry(service, JEAN, 1, time(9, 0))
        late = _entry(service, MARIE, 1, time(10, 0))
        with pytest.raises(CrossContextReassignError):
            service.reassign_children(early.id, late.id)
        assert _entry(service, JEAN, 1).cancelled is False

    def test_reassign_one_child(self, service):
        jean = _entry(service, JEAN)
        marie = _entry(service, MARIE)
        target = service.reassign_one_child(jean.id, ALICE, marie.id)
        assert target.child_ids == {CHLOE, ALICE}
        moved = next(c for c in target.children if c.child_id == ALICE)
        assert moved.original_entry_id == jean.id
        assert moved.name == "Alice Martin"
        assert _entry(service, JEAN).child_ids == {BOB}

    def test_child_not_in_source(self, service):
        jean = _entry(service, JEAN)
        marie = _entry(service, MARIE)
        with pytest.raises(ChildNotInEntryError):
            service.reassign_one_child(jean.id, CHLOE, marie.id)

    def test_child_already_in_target(self, service):
        """Alice steht im Template bei Jean und Marie im selben Slot."""
        rows = {
            layout.day_of_week: [
                ["Jean Dupont"] + ["Lecture – Alice Martin, Bob Smith"] * layout.slot_count,
                ["Marie Curie"] + ["Peinture – Chloé Petit, Alice Martin"] * layout.slot_count,
                ["Luc Moreau"] + ["Sport – David Roux"] * layout.slot_count,
            ]
            for layout in CONFIG.time_grid.days
        }
        service.import_schedule(1, template_bytes(CONFIG, rows))
        jean = _entry(service, JEAN)
        marie = _entry(service, MARIE)
        with pytest.raises(ReassignError):
            service.reassign_one_child(jean.id, ALICE, marie.id)

        target = service.reassign_children(jean.id, marie.id)
        assert target.child_ids == {ALICE, BOB, CHLOE}
        assert len(target.children) == 3

    def test_same_entry_refused(self, service):
        jean = _entry(service, JEAN)
        with pytest.raises(ReassignError):
            service.reassign_children(jean.id, jean.id)

    def test_cancelled_target_refused(self, service):
        jean = _entry(service, JEAN)
        marie = _entry(service, MARIE)
        service.set_entry_cancelled(marie.id, True)
        with pytest.raises(ReassignError):
            service.reassign_one_child(jean.id, ALICE, marie.id)
        assert _entry(service, JEAN).child_ids == {ALICE, BOB}

    def test_reassign_all_cancels_source(self, service):
        jean = _entry(service, JEAN)
        luc = _entry(service, LUC)
        target = service.reassign_children(jean.id, luc.id)
        assert target.child_ids == {ALICE, BOB, DAVID}
        source = _entry(service, JEAN)
        assert source.cancelled is True
        assert source.child_ids == frozenset()

    def test_reassign_all_keep_source(self, service):
        jean = _entry(service, JEAN)
        luc = _entry(service, LUC)
        service.reassign_children(jean.id, luc.id, cancel_source=False)
        assert _entry(service, JEAN).cancelled is False

    def test_move_back_clears_origin(self, service):
        """Zurück an den Ursprung → keine Umbuchung mehr vermerkt."""
        jean = _entry(service, JEAN)
        marie = _entry(service, MARIE)
        service.reassign_one_child(jean.id, ALICE, marie.id)
        back = service.reassign_one_child(marie.id, ALICE, jean.id)
        alice = next(c for c in back.children if c.child_id == ALICE)
        assert alice.original_entry_id is None

    def test_transferred_children(self, service):
        jean = _entry(service, JEAN)
        marie = _entry(service, MARIE)
        service.reassign_one_child(jean.id, BOB, marie.id)
        transfers = service.transferred_children(jean.id)
        assert len(transfers) == 1
        assert transfers[0].child_name == "Bob Smith"
        assert transfers[0].current_entry_id == marie.id
        assert transfers[0].current_staff_name == "Marie Curie"
        assert transfers[0].activity == "Peinture"

    def test_other_weeks_untouched(self, service):
        jean = _entry(service, JEAN)
        marie = _entry(service, MARIE)
        service.reassign_children(jean.id, marie.id)
        others = [e for e in service.get_staff_schedule(1, JEAN) if e.id != jean.id]
        assert all(not e.cancelled for e in others)


# ─── ALTERNATIVEN ─────────────────────────────────────────────────────────────

class TestAlternatives:
    def test_same_window_other_staff(self, service):
        jean = _entry(service, JEAN)
        alternatives = service.find_alternatives(jean.id)
        assert {e.staff_id for e in alternatives} == {MARIE, LUC}
        assert all(e.start_time == jean.start_time for e in alternatives)

    def test_least_loaded_first(self, service):
        jean = _entry(service, JEAN)
        marie = _entry(service, MARIE)
        luc = _entry(service, LUC)
        service.reassign_children(luc.id, marie.id, cancel_source=False)
        alternatives = service.find_alternatives(jean.id)
        assert [(e.staff_id, len(e.children)) for e in alternatives] == [(LUC, 0), (MARIE, 2)]

    def test_tie_broken_by_staff(self, service):
        jean = _entry(service, JEAN)
        assert [e.staff_id for e in service.find_alternatives(jean.id)] == [MARIE, LUC]

    def test_cancelled_excluded(self, service):
        jean = _entry(service, JEAN)
        service.set_entry_cancelled(_entry(service, LUC).id, True)
        assert [e.staff_id for e in service.find_alternatives(jean.id)] == [MARIE]
