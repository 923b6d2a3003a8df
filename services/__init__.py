"""Anwendungsdienste: Import-Fassade und Eintrags-Änderungen."""

from .mutation import EntryMutationService
from .planning import PlanningService

__all__ = ["EntryMutationService", "PlanningService"]
