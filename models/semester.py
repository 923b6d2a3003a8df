"""Datenmodell für ein Semester (Pydantic v2)."""

from datetime import date

from pydantic import BaseModel, model_validator


class Semester(BaseModel):
    """Datumsbereich, über den das Wochen-Template ausgerollt wird."""

    id: int
    name: str
    start_date: date
    end_date: date

    @model_validator(mode="after")
    def _check_range(self):
        if self.end_date < self.start_date:
            raise ValueError(
                f"Semester '{self.name}': Ende {self.end_date} liegt vor Beginn {self.start_date}"
            )
        return self

    def __str__(self) -> str:
        return f"{self.name} ({self.start_date:%d.%m.%Y} – {self.end_date:%d.%m.%Y})"
