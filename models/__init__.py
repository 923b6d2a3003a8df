from models.directory import Child, Directory, StaffMember
from models.semester import Semester
from models.template import TemplateSlot
from models.schedule import ChildRef, ClosureDay, ScheduleEntry, TransferredChild
from models.report import ValidationReport, Violation

__all__ = [
    "Child",
    "Directory",
    "StaffMember",
    "Semester",
    "TemplateSlot",
    "ChildRef",
    "ClosureDay",
    "ScheduleEntry",
    "TransferredChild",
    "ValidationReport",
    "Violation",
]
