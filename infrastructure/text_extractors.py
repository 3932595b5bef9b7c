# infrastructure/text_extractors.py
"""Plain-text extraction from uploaded PDF, TXT and spreadsheet files.

Dispatch order: declared MIME type first, then filename extension, since
browsers often send an unreliable MIME type for spreadsheets.
Workbooks keep their cell grid (`ExtractedText.sheets`) so families can be
read from the table structure before it is flattened to text.
"""
import datetime
import io
import logging
import zipfile
from typing import Any, Dict, List, Optional

import fitz  # PyMuPDF
import openpyxl
import pandas as pd
import xlrd
from openpyxl.utils.exceptions import InvalidFileException

from config import settings
from core.domain import ExtractedText
from core.errors import ExtractionError, UnsupportedFormatError
from utils.common import get_file_extension

logger = logging.getLogger(settings.LOGGER_NAME)

PDF = "pdf"
TEXT = "txt"
SPREADSHEET = "spreadsheet"

MIME_FORMATS: Dict[str, str] = {
    "application/pdf": PDF,
    "text/plain": TEXT,
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet": SPREADSHEET,
    "application/vnd.ms-excel": SPREADSHEET,
}

EXTENSION_FORMATS: Dict[str, str] = {
    "pdf": PDF,
    "txt": TEXT,
    "xlsx": SPREADSHEET,
    "xls": SPREADSHEET,
}

ACCEPTED_EXTENSIONS: List[str] = list(EXTENSION_FORMATS)

# Legacy .xls files are OLE2 compound documents
_OLE2_SIGNATURE = b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1"

Sheets = Dict[str, List[List[str]]]


def detect_format(mime_type: Optional[str], filename: str) -> Optional[str]:
    """Resolve the file format, trusting a known MIME type over the extension."""
    mime = (mime_type or "").split(";")[0].strip().lower()
    if mime in MIME_FORMATS:
        return MIME_FORMATS[mime]
    return EXTENSION_FORMATS.get(get_file_extension(filename))


def extract_text(content: bytes, mime_type: Optional[str], filename: str) -> ExtractedText:
    """
    Convert raw upload bytes to plain text.

    Raises:
        UnsupportedFormatError: neither MIME type nor extension is supported.
        ExtractionError: the parsing library could not decode the bytes.
    """
    file_format = detect_format(mime_type, filename)

    if file_format == PDF:
        return ExtractedText(raw_text=_extract_pdf(content), source_filename=filename)
    if file_format == TEXT:
        return ExtractedText(raw_text=content.decode("utf-8", errors="replace"), source_filename=filename)
    if file_format == SPREADSHEET:
        sheets = read_workbook(content)
        return ExtractedText(raw_text=workbook_to_text(sheets), source_filename=filename, sheets=sheets)

    raise UnsupportedFormatError(filename, ACCEPTED_EXTENSIONS)


# ============= PDF =============

def _extract_pdf(content: bytes) -> str:
    try:
        with fitz.open(stream=content, filetype="pdf") as doc:
            pages = [page.get_text() for page in doc]
    except (RuntimeError, ValueError) as e:
        # fitz.FileDataError derives from RuntimeError
        raise ExtractionError(f"Could not read the PDF file: {e}")

    logger.info(f"Extracted text from {len(pages)} PDF page(s)")
    return "\n".join(pages)


# ============= Spreadsheets =============

def _cell_to_str(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float):
        if value != value:  # NaN from pandas
            return ""
        if value.is_integer():
            return str(int(value))
    if isinstance(value, datetime.datetime) and value.time() == datetime.time(0):
        return value.date().isoformat()
    if isinstance(value, (datetime.date, datetime.time)):
        return value.isoformat()
    return str(value)


def read_workbook(content: bytes) -> Sheets:
    """Read every sheet of a workbook as rows of cell strings, in sheet order."""
    if content[:8] == _OLE2_SIGNATURE:
        return _read_xls(content)
    return _read_xlsx(content)


def _read_xlsx(content: bytes) -> Sheets:
    try:
        workbook = openpyxl.load_workbook(io.BytesIO(content), read_only=True, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, KeyError, ValueError, OSError) as e:
        raise ExtractionError(f"Could not read the Excel file: {e}")

    try:
        sheets: Sheets = {}
        for worksheet in workbook.worksheets:
            sheets[worksheet.title] = [
                [_cell_to_str(value) for value in row]
                for row in worksheet.iter_rows(values_only=True)
            ]
        return sheets
    finally:
        workbook.close()


def _read_xls(content: bytes) -> Sheets:
    try:
        frames = pd.read_excel(
            io.BytesIO(content), sheet_name=None, header=None, dtype=object, engine="xlrd"
        )
    except (xlrd.XLRDError, ValueError, OSError) as e:
        raise ExtractionError(f"Could not read the Excel file: {e}")

    return {
        str(name): [[_cell_to_str(value) for value in row] for row in frame.itertuples(index=False)]
        for name, frame in frames.items()
    }


def _row_to_text(row: List[str]) -> str:
    return " | ".join(cell.strip() for cell in row if cell and cell.strip())


def workbook_to_text(sheets: Sheets) -> str:
    """
    Flatten a workbook: pipe-delimited non-empty cells per row, sheets
    separated by a blank line. Falls back to per-sheet CSV when that
    produces no text.
    """
    blocks = []
    for rows in sheets.values():
        lines = [line for line in (_row_to_text(row) for row in rows) if line]
        if lines:
            blocks.append("\n".join(lines))

    text = "\n\n".join(blocks)
    if text.strip():
        return text

    logger.warning("Structured workbook extraction produced no text, falling back to CSV")
    parts = []
    for name, rows in sheets.items():
        csv = pd.DataFrame(rows).to_csv(index=False, header=False)
        if csv.strip():
            parts.append(f"Feuille: {name}\n{csv}")
    return "\n\n".join(parts)
