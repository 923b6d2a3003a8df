"""Template-Import und Template-Generator für den Wochenplan.

Import:             Arbeitsmappe (Bytes) → list[TemplateSlot], nur Strukturprüfung.
Template-Generator: Leere Wochenvorlage mit einem Blatt pro Wochentag.

Der Parser kennt nur die schmale SpreadsheetReader-Schnittstelle
(Blattnamen + Zellraster); openpyxl steckt ausschließlich im Adapter.
"""

import io
import logging
from pathlib import Path
from typing import BinaryIO, Optional, Protocol, Sequence, Union

from config.schema import PlanningConfig
from models.directory import normalize_name
from models.errors import EmptyCellError, MalformedCellError, TemplateReadError
from models.template import TemplateSlot

logger = logging.getLogger(__name__)

# Kopfzelle der Namensspalte
STAFF_HEADER = "Personnel"


# ─── READER-SCHNITTSTELLE ─────────────────────────────────────────────────────

class SpreadsheetReader(Protocol):
    """Minimale Sicht auf eine Arbeitsmappe."""

    def sheet_names(self) -> list[str]:
        ...

    def rows(self, sheet: str) -> list[tuple]:
        """Alle Zeilen des Blatts als Wert-Tupel (Zeile 1 = Kopfzeile)."""
        ...


class OpenpyxlReader:
    """Adapter für .xlsx-Dateien über openpyxl."""

    def __init__(self, workbook) -> None:
        self._wb = workbook

    @classmethod
    def from_bytes(cls, data: bytes) -> "OpenpyxlReader":
        import openpyxl
        try:
            wb = openpyxl.load_workbook(io.BytesIO(data), read_only=True, data_only=True)
        except Exception as e:
            raise TemplateReadError(f"Fehler beim Öffnen der Excel-Datei: {e}") from e
        return cls(wb)

    @classmethod
    def from_path(cls, path: Path) -> "OpenpyxlReader":
        path = Path(path)
        if not path.exists():
            raise TemplateReadError(f"Datei nicht gefunden: {path}")
        return cls.from_bytes(path.read_bytes())

    def sheet_names(self) -> list[str]:
        return list(self._wb.sheetnames)

    def rows(self, sheet: str) -> list[tuple]:
        return list(self._wb[sheet].iter_rows(values_only=True))


class InMemoryReader:
    """Adapter über ein Dict {Blattname: Zeilen}, z.B. für Tests oder CSV-Quellen."""

    def __init__(self, sheets: dict[str, Sequence[Sequence]]) -> None:
        self._sheets = {name: [tuple(r) for r in rows] for name, rows in sheets.items()}

    def sheet_names(self) -> list[str]:
        return list(self._sheets)

    def rows(self, sheet: str) -> list[tuple]:
        return list(self._sheets[sheet])


# ─── PARSER ───────────────────────────────────────────────────────────────────

def _cell_text(value) -> str:
    if value is None:
        return ""
    return str(value).strip()


class TemplateParser:
    """Wandelt die Tagesblätter in TemplateSlots um.

    Jede nicht-leere Zeile ab Zeile 2 ist eine Betreuungsperson (Spalte 1),
    Spalte 2 … slot_count+1 sind die festen Slots des Tages. Unbekannte
    Blattnamen werden ignoriert. Der erste Strukturfehler bricht den ganzen
    Lauf ab.
    """

    def __init__(self, config: PlanningConfig) -> None:
        self.grid = config.time_grid
        self.fmt = config.template

    def parse(self, reader: SpreadsheetReader) -> list[TemplateSlot]:
        slots: list[TemplateSlot] = []
        recognized = 0
        for sheet in reader.sheet_names():
            layout = self.grid.day_for_sheet(sheet)
            if layout is None:
                logger.debug(f"Blatt '{sheet}' ignoriert (kein Wochentag)")
                continue
            recognized += 1
            slots.extend(self._parse_sheet(sheet, layout.day_of_week,
                                           layout.slot_count, reader.rows(sheet)))
        if recognized == 0:
            expected = ", ".join(d.sheet_name for d in self.grid.days)
            raise TemplateReadError(f"Keine Wochentag-Blätter gefunden (erwartet: {expected})")
        logger.debug(f"{len(slots)} Template-Slots aus {recognized} Blättern gelesen")
        return slots

    def _parse_sheet(self, sheet: str, day_of_week: int, slot_count: int,
                     rows: list[tuple]) -> list[TemplateSlot]:
        result = []
        # Zeile 1 = Kopfzeile
        for row_no, row in enumerate(rows[1:], 2):
            if all(_cell_text(v) == "" for v in row):
                continue
            staff_name = _cell_text(row[0]) if row else ""
            if not staff_name:
                continue
            for slot_index in range(1, slot_count + 1):
                column = slot_index + 1
                raw = _cell_text(row[column - 1]) if len(row) >= column else ""
                if not raw:
                    raise EmptyCellError(sheet, row_no, column)
                result.append(self.parse_cell(
                    raw, staff_name=staff_name, day_of_week=day_of_week,
                    slot_index=slot_index, sheet=sheet, row=row_no, column=column,
                ))
        return result

    def _split(self, text: str) -> Optional[tuple[str, str]]:
        """Trennt an der ersten Fundstelle eines Trennzeichens."""
        hits = [(text.find(sep), sep) for sep in self.fmt.separators if sep in text]
        if not hits:
            return None
        pos, sep = min(hits)
        return text[:pos].strip(), text[pos + len(sep):].strip()

    def parse_cell(self, text: str, *, staff_name: str, day_of_week: int,
                   slot_index: int, sheet: str = "", row: int = 0,
                   column: int = 0) -> TemplateSlot:
        """Eine Zelle "<Aktivität> – <Name1>, <Name2>" oder "Pause"."""
        pause = normalize_name(self.fmt.pause_keyword)
        position = dict(staff_name=staff_name, day_of_week=day_of_week,
                        slot_index=slot_index, sheet=sheet, row=row, column=column)

        if normalize_name(text) == pause:
            return TemplateSlot(activity=self.fmt.pause_keyword, is_pause=True, **position)

        parts = self._split(text)
        if parts is None:
            raise MalformedCellError(sheet, row, column, text)
        activity, names_part = parts
        if not activity:
            raise MalformedCellError(sheet, row, column, text)
        if normalize_name(activity) == pause:
            return TemplateSlot(activity=self.fmt.pause_keyword, is_pause=True, **position)

        everyone = normalize_name(self.fmt.all_children_keyword)
        names, includes_all = [], False
        for token in names_part.split(","):
            token = " ".join(token.split())
            if not token:
                continue
            if normalize_name(token) == everyone:
                includes_all = True
            else:
                names.append(token)
        return TemplateSlot(activity=activity, child_names=names,
                            includes_all=includes_all, **position)


def parse_template(data: bytes, config: PlanningConfig) -> list[TemplateSlot]:
    """Liest ein hochgeladenes .xlsx-Template.

    Raises:
        TemplateReadError:  Datei nicht lesbar oder ohne Wochentag-Blatt.
        MalformedCellError: Zelle ohne Trennzeichen (und nicht "Pause").
        EmptyCellError:     Pflichtzelle leer.
    """
    return TemplateParser(config).parse(OpenpyxlReader.from_bytes(data))


# ─── TEMPLATE-GENERATOR ───────────────────────────────────────────────────────

def write_template(
    config: PlanningConfig,
    target: Union[Path, BinaryIO],
    rows_by_day: dict[int, list[list[str]]],
) -> None:
    """Schreibt eine Wochenvorlage: ein Blatt pro Wochentag.

    `rows_by_day` ordnet jedem Wochentag die Datenzeilen zu
    ([Name, Slot1, Slot2, …]); fehlende Tage erhalten nur die Kopfzeile.
    """
    import openpyxl
    from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
    from openpyxl.utils import get_column_letter

    wb = openpyxl.Workbook()
    wb.remove(wb.active)

    hdr_font = Font(bold=True, color="FFFFFF", size=11)
    hdr_fill = PatternFill("solid", fgColor="2E6DA4")
    alt_fill = PatternFill("solid", fgColor="D6E4F0")
    center = Alignment(horizontal="center", vertical="center", wrap_text=True)
    thin = Side(style="thin", color="BBBBBB")
    border = Border(left=thin, right=thin, top=thin, bottom=thin)

    grid = config.time_grid
    for layout in sorted(grid.days, key=lambda d: d.day_of_week):
        ws = wb.create_sheet(layout.sheet_name)
        headers = [STAFF_HEADER] + [s.label for s in grid.slots[:layout.slot_count]]
        for col, h in enumerate(headers, 1):
            cell = ws.cell(row=1, column=col, value=h)
            cell.font = hdr_font
            cell.fill = hdr_fill
            cell.alignment = center
            cell.border = border
        ws.column_dimensions[get_column_letter(1)].width = 24
        for col in range(2, len(headers) + 1):
            ws.column_dimensions[get_column_letter(col)].width = 34
        ws.freeze_panes = "B2"

        for r, values in enumerate(rows_by_day.get(layout.day_of_week, []), 2):
            for col, val in enumerate(values[:len(headers)], 1):
                cell = ws.cell(row=r, column=col, value=val or None)
                cell.border = border
                if r % 2 == 0:
                    cell.fill = alt_fill

    if isinstance(target, (str, Path)):
        Path(target).parent.mkdir(parents=True, exist_ok=True)
        wb.save(str(target))
    else:
        wb.save(target)


def generate_template(config: PlanningConfig, path: Path,
                      staff_names: Sequence[str] = ()) -> None:
    """Erzeugt eine leere Vorlage, Spalte 1 mit den Namen vorausgefüllt."""
    rows = {
        layout.day_of_week: [[name] + [""] * layout.slot_count for name in staff_names]
        for layout in config.time_grid.days
    }
    write_template(config, path, rows)
    logger.info(f"Vorlage mit {len(staff_names)} Personen geschrieben: {path}")


def template_bytes(config: PlanningConfig, rows_by_day: dict[int, list[list[str]]]) -> bytes:
    """Wie write_template, aber als Bytes im Speicher."""
    buffer = io.BytesIO()
    write_template(config, buffer, rows_by_day)
    return buffer.getvalue()
