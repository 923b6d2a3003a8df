"""Persistenz: Datenbank, Lesezugriffe, atomares Ersetzen, Template-Archiv."""

from .archive import TemplateArchive
from .coordinator import PersistenceCoordinator
from .database import create_session_factory
from .repository import PlanningRepository

__all__ = [
    "TemplateArchive",
    "PersistenceCoordinator",
    "create_session_factory",
    "PlanningRepository",
]
