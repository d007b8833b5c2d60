"""
Spreadsheet uploads and downloads.

Imports accept Excel workbooks (.xlsx, first sheet) or CSV. The first row is
the header row; every following row becomes a dict keyed by header.
Exports are written as .xlsx by default, with CSV as an alternative.
"""

import csv
import io
import zipfile
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Optional
from openpyxl import Workbook, load_workbook
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter
from openpyxl.utils.exceptions import InvalidFileException
from kol360.config import get_settings
from kol360.exceptions import BadRequestError

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
EXCEL_EXTENSIONS = (".xlsx", ".xlsm")
ZIP_MAGIC = b"PK\x03\x04"

# DictReader key for cells beyond the header row
EXTRA_CELLS = "__extra__"


def _cell_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    # Whole numbers typed into Excel come back as floats (NPI 1234567890.0)
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, datetime):
        # Excel stores plain dates as midnight datetimes
        if value.time() == datetime.min.time():
            return value.date().isoformat()
        return value.isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return str(value).strip()


def _rows_from_xlsx(content: bytes) -> list[dict]:
    try:
        wb = load_workbook(io.BytesIO(content), read_only=True, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError, ValueError):
        raise BadRequestError("Could not read Excel file")
    try:
        ws = wb.active
        rows = ws.iter_rows(values_only=True)
        header_row = next(rows, None)
        if not header_row or not any(h is not None and str(h).strip() for h in header_row):
            raise BadRequestError("File is empty")
        headers = [_cell_text(h) for h in header_row]

        records = []
        for values in rows:
            record = {}
            for header, value in zip(headers, values):
                if header:
                    record[header] = _cell_text(value)
            records.append(record)
    finally:
        wb.close()

    # Formatted but empty rows at the bottom of a sheet
    while records and not any(records[-1].values()):
        records.pop()
    return records


def _rows_from_csv(content: bytes) -> list[dict]:
    try:
        text = content.decode("utf-8-sig")
    except UnicodeDecodeError:
        raise BadRequestError("File must be an Excel workbook or a UTF-8 encoded CSV")
    reader = csv.DictReader(io.StringIO(text), restkey=EXTRA_CELLS)
    if not reader.fieldnames:
        raise BadRequestError("File is empty")
    records = []
    for row in reader:
        row.pop(EXTRA_CELLS, None)
        records.append({(k or "").strip(): (v or "").strip() for k, v in row.items() if k})
    return records


def read_rows(content: bytes, filename: Optional[str] = None) -> list[dict]:
    """Parse an uploaded .xlsx or .csv file into one dict per data row."""
    name = (filename or "").lower()
    if name.endswith(".xls"):
        raise BadRequestError("Legacy .xls files are not supported. Save the file as .xlsx")
    if name.endswith(EXCEL_EXTENSIONS) or (not name.endswith(".csv") and content.startswith(ZIP_MAGIC)):
        return _rows_from_xlsx(content)
    if name and not name.endswith((".csv", ".txt")):
        raise BadRequestError("Unsupported file format. Upload an .xlsx or .csv file")
    return _rows_from_csv(content)


def cell(row: dict, *names: str) -> str:
    """First non-empty value among the given column names (case-insensitive)."""
    lowered = {k.lower(): v for k, v in row.items()}
    for name in names:
        value = row.get(name)
        if value is None:
            value = lowered.get(name.lower())
        if value:
            return str(value).strip()
    return ""


async def read_upload(file) -> bytes:
    """Read an UploadFile, enforcing the configured size limit."""
    max_bytes = get_settings().upload_max_bytes
    content = await file.read(max_bytes + 1)
    if len(content) > max_bytes:
        raise BadRequestError(f"File exceeds the {max_bytes // (1024 * 1024)} MB upload limit")
    if not content:
        raise BadRequestError("No file uploaded")
    return content


@dataclass
class Sheet:
    """A tabular export: one header row plus data rows."""

    title: str
    headers: list[str]
    rows: list[list] = field(default_factory=list)

    def to_xlsx(self) -> bytes:
        wb = Workbook()
        ws = wb.active
        # Excel caps sheet titles at 31 characters
        ws.title = self.title[:31]
        for row_index, values in enumerate([self.headers] + self.rows, start=1):
            for column_index, value in enumerate(values, start=1):
                c = ws.cell(row=row_index, column=column_index, value=value)
                # Free text such as survey answers is never a formula
                if isinstance(value, str) and value.startswith("="):
                    c.data_type = "s"
                if row_index == 1:
                    c.font = Font(bold=True)
        ws.freeze_panes = "A2"
        for index, header in enumerate(self.headers, start=1):
            width = max([len(str(header))] + [len(_cell_text(r[index - 1])) for r in self.rows if len(r) >= index])
            ws.column_dimensions[get_column_letter(index)].width = min(max(width + 2, 10), 60)
        buffer = io.BytesIO()
        wb.save(buffer)
        return buffer.getvalue()

    def to_csv(self) -> bytes:
        buffer = io.StringIO()
        writer = csv.writer(buffer)
        writer.writerow(self.headers)
        for row in self.rows:
            writer.writerow(["" if v is None else v for v in row])
        return buffer.getvalue().encode("utf-8")
