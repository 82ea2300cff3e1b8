"""Column-mapped spreadsheet (CSV) import."""

import io
import logging
import re
import warnings
from dataclasses import dataclass, field
from decimal import Decimal

import pandas as pd

from tradelog.errors import (
    MissingRequiredFieldError,
    NonPositiveValueError,
    ParseError,
    SheetFormatError,
)
from tradelog.ingest.normalize import (
    parse_date,
    parse_direction,
    parse_number,
    parse_optional_number,
)
from tradelog.journal.types import Trade

logger = logging.getLogger(__name__)

JUSTIFICATION_LABEL = "Justificación técnica"
NOTES_LABEL = "Notas adicionales"


@dataclass(frozen=True)
class MappableField:
    """A trade field that can be bound to a spreadsheet column."""

    key: str
    label: str
    required: bool
    keywords: tuple[str, ...]


# Order matters: a header is bound to the first unassigned field it matches
MAPPABLE_FIELDS: tuple[MappableField, ...] = (
    MappableField("date", "Fecha", True, ("fecha", "date")),
    MappableField("asset", "Par", True, ("par", "asset", "symbol", "pair")),
    MappableField("direction", "Dirección", True, ("dirección", "direccion", "direction", "side")),
    MappableField("leverage", "Apalancamiento", False, ("apalancamiento", "leverage")),
    MappableField("entry_price", "Entrada", True, ("entrada", "entry")),
    MappableField("exit_price", "Salida", True, ("salida", "exit")),
    MappableField("size", "Tamaño", True, ("tamaño", "tamano", "size", "qty", "quantity")),
    MappableField("stop_loss", "Stop Loss", False, ("stop loss", "stop")),
    MappableField("take_profit", "Take Profit", False, ("take profit", "target")),
    MappableField("justification", JUSTIFICATION_LABEL, False, ("justificación", "justificacion", "rationale")),
    MappableField("notes", NOTES_LABEL, False, ("notas", "notes")),
)

REQUIRED_FIELDS = [f.key for f in MAPPABLE_FIELDS if f.required]

ColumnMapping = dict[str, str]

_SHEET_URL = re.compile(r"https://docs\.google\.com/spreadsheets/d/([a-zA-Z0-9_-]+)/")


@dataclass
class SheetData:
    """Raw header and data rows of a spreadsheet export."""

    headers: list[str]
    rows: list[list[str]]

    @property
    def preview(self) -> list[list[str]]:
        return self.rows[:3]


@dataclass
class RowError:
    """Why a data row was skipped."""

    row_number: int
    reason: str


@dataclass
class ImportReport:
    """Outcome of a mapped import. Bad rows are skipped, never fatal."""

    trades: list[Trade] = field(default_factory=list)
    skipped: list[RowError] = field(default_factory=list)

    @property
    def imported_count(self) -> int:
        return len(self.trades)

    @property
    def skipped_count(self) -> int:
        return len(self.skipped)


def google_sheet_csv_url(url: str) -> str | None:
    """CSV export URL of the ``operaciones`` sheet of a public Google Sheet."""
    match = _SHEET_URL.search(url or "")
    if not match:
        return None
    sheet_id = match.group(1)
    return (
        f"https://docs.google.com/spreadsheets/d/{sheet_id}"
        "/gviz/tq?tqx=out:csv&sheet=operaciones"
    )


def read_sheet(text: str) -> SheetData:
    """
    Split RFC 4180 CSV text into a header row and data rows.

    Quoted fields may contain commas, newlines and doubled quotes. Blank
    lines are ignored and every cell is kept as raw text. Cells past the
    header width are dropped.

    Raises:
        SheetFormatError: If there is no header or no data row
    """
    text = (text or "").lstrip("\ufeff")
    if not text.strip():
        raise SheetFormatError("Sheet is empty or has no data rows.")

    with warnings.catch_warnings():
        warnings.simplefilter("ignore", pd.errors.ParserWarning)
        try:
            df = pd.read_csv(
                io.StringIO(text),
                header=None,
                dtype=str,
                keep_default_na=False,
                skip_blank_lines=True,
                engine="python",
                on_bad_lines=lambda fields: fields,
            )
        except pd.errors.EmptyDataError:
            raise SheetFormatError("Sheet is empty or has no data rows.") from None

    cells = [[str(cell) for cell in row] for row in df.fillna("").itertuples(index=False, name=None)]
    rows = [row for row in cells[1:] if any(cell.strip() for cell in row)]
    if not cells or not rows:
        raise SheetFormatError("Sheet is empty or has no data rows.")

    headers = [h.strip() for h in cells[0]]
    return SheetData(headers=headers, rows=rows)


def auto_map_headers(headers: list[str]) -> ColumnMapping:
    """
    Guess a column mapping from header names.

    Each header is bound to the first still-unassigned field whose keyword
    appears in the lowercased header text.
    """
    mapping: ColumnMapping = {}
    for header in headers:
        lower = header.strip().lower()
        if header in mapping.values():
            continue
        for mappable in MAPPABLE_FIELDS:
            if mappable.key in mapping:
                continue
            if any(keyword in lower for keyword in mappable.keywords):
                mapping[mappable.key] = header
                break
    return mapping


def missing_required(mapping: ColumnMapping) -> list[str]:
    """Required fields with no column assigned."""
    return [key for key in REQUIRED_FIELDS if not mapping.get(key)]


def import_rows(sheet: SheetData, mapping: ColumnMapping) -> ImportReport:
    """
    Convert mapped data rows into closed trade candidates.

    Rows failing to parse are logged and skipped; the rest are returned.
    """
    report = ImportReport()
    # Duplicate headers resolve to their first column
    column_index: dict[str, int] = {}
    for i, h in enumerate(sheet.headers):
        column_index.setdefault(h, i)

    for offset, row in enumerate(sheet.rows):
        # +2: one-based numbering plus the header row
        row_number = offset + 2
        values: dict[str, str] = {}
        for key, header in mapping.items():
            index = column_index.get(header)
            if header and index is not None and index < len(row):
                values[key] = row[index]

        try:
            report.trades.append(parse_row(values))
        except ParseError as e:
            logger.warning("Skipping row %d: %s", row_number, e)
            report.skipped.append(RowError(row_number=row_number, reason=str(e)))

    logger.info(
        "Sheet import parsed %d trades, skipped %d rows",
        report.imported_count,
        report.skipped_count,
    )
    return report


def parse_row(values: dict[str, str]) -> Trade:
    """
    Build a trade candidate from one row's mapped cell values.

    Raises:
        ParseError: On a missing required field or an unparseable value
    """
    for key in ("date", "asset", "direction", "entry_price", "exit_price", "size"):
        if not values.get(key, "").strip():
            raise MissingRequiredFieldError(_label(key))

    date = parse_date(values["date"])
    entry_price = parse_number(values["entry_price"])
    exit_price = parse_number(values["exit_price"])
    size = parse_number(values["size"])
    if entry_price <= 0:
        raise NonPositiveValueError(_label("entry_price"), values["entry_price"])
    if size <= 0:
        raise NonPositiveValueError(_label("size"), values["size"])
    direction = parse_direction(values["direction"])

    return Trade(
        date=date,
        asset=values["asset"].strip(),
        direction=direction,
        entry_price=entry_price,
        size=size,
        exit_price=exit_price if exit_price > 0 else None,
        leverage=values.get("leverage", "").strip(),
        stop_loss=_optional(values.get("stop_loss")),
        take_profit=_optional(values.get("take_profit")),
        journal=compose_journal(values.get("justification", ""), values.get("notes", "")),
    )


def compose_journal(justification: str, notes: str) -> str:
    """Join the two spreadsheet text columns into one journal entry."""
    parts = []
    if justification and justification.strip():
        parts.append(f"{JUSTIFICATION_LABEL}: {justification.strip()}")
    if notes and notes.strip():
        parts.append(f"{NOTES_LABEL}: {notes.strip()}")
    return "\n\n".join(parts)


def split_journal(journal: str) -> tuple[str, str]:
    """Inverse of compose_journal: (justification, notes)."""
    head, _, notes = (journal or "").partition(f"{NOTES_LABEL}:")
    justification = head.replace(f"{JUSTIFICATION_LABEL}:", "").strip()
    return justification, notes.strip()


def _optional(raw: str | None) -> Decimal | None:
    # Optional numeric cells that do not parse are dropped, not fatal
    try:
        return parse_optional_number(raw)
    except ParseError:
        return None


def _label(key: str) -> str:
    return next((f.label for f in MAPPABLE_FIELDS if f.key == key), key)
