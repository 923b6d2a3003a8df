"""Export-Modul: Rich-Darstellung des Semesterplans im Terminal."""

from export.tui_renderer import closures_table, entry_table, group_by_week, week_table

__all__ = ["closures_table", "entry_table", "group_by_week", "week_table"]
