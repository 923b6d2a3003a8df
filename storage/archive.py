"""Archiv der hochgeladenen Template-Dateien.

Dateiname: <semesterId>_<Zeitstempel>_<Zufall>.xlsx, die neueste Datei eines
Semesters ist die des zuletzt veröffentlichten Plans.
"""

import logging
import secrets
from datetime import datetime
from pathlib import Path

from models.errors import ArchivedTemplateNotFoundError

logger = logging.getLogger(__name__)


class TemplateArchive:
    SUFFIX = ".xlsx"

    def __init__(self, base_dir: Path) -> None:
        self.base_dir = Path(base_dir)

    def store(self, semester_id: int, data: bytes) -> Path:
        """Legt die Datei unverändert ab und gibt den Pfad zurück."""
        self.base_dir.mkdir(parents=True, exist_ok=True)
        stamp = datetime.now().strftime("%Y%m%d%H%M%S%f")
        path = self.base_dir / f"{semester_id}_{stamp}_{secrets.token_hex(4)}{self.SUFFIX}"
        path.write_bytes(data)
        logger.debug(f"Template archiviert: {path}")
        return path

    def versions(self, semester_id: int) -> list[Path]:
        """Alle archivierten Dateien des Semesters, älteste zuerst."""
        if not self.base_dir.exists():
            return []
        files = self.base_dir.glob(f"{semester_id}_*{self.SUFFIX}")
        return sorted(files, key=lambda p: p.stem.split("_")[1])

    def latest(self, semester_id: int) -> Path:
        versions = self.versions(semester_id)
        if not versions:
            raise ArchivedTemplateNotFoundError(semester_id)
        return versions[-1]

    def load(self, semester_id: int) -> bytes:
        return self.latest(semester_id).read_bytes()
