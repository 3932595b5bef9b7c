# services/table_family_extractor.py
"""Family extraction from spreadsheet rows.

Each sheet is handled on its own: a header row is searched for known
column titles (French / English / Arabic); when no name column is found the
rows are scanned without headers instead.
"""
import logging
import re
from typing import Dict, List, Optional, Sequence

from config import settings
from core.domain import DEFAULT_DISTRICT, DEFAULT_NEEDS, FamilyRecord
from core.enums import Priority
from core.keywords import HEADER_KEYWORDS, NEEDS_DELIMITERS, TABLE_PRIORITY_HIGH, TABLE_PRIORITY_LOW
from services.extraction_strategies import (
    ARABIC_SCRIPT, PROPER_NAME, StrategyResult, is_valid_name, run_strategies
)
from utils.arabic_text import contains_any, find_column

logger = logging.getLogger(settings.LOGGER_NAME)

Rows = Sequence[Sequence[object]]

_DIGITS = re.compile(r"\d+")
_ASCII_NUMBER = re.compile(r"[0-9]+")


def _cell(row: Sequence[object], index: int) -> str:
    if index < 0 or index >= len(row) or row[index] is None:
        return ""
    return str(row[index])


def _parse_members(value: str) -> int:
    match = _DIGITS.search(value)
    return int(match.group()) if match else 0


def _parse_needs(value: str) -> List[str]:
    needs = [need.strip() for need in re.split(NEEDS_DELIMITERS, value)]
    return [need for need in needs if need] or [DEFAULT_NEEDS]


def _parse_priority(value: str) -> Priority:
    if contains_any(value, TABLE_PRIORITY_HIGH):
        return Priority.HIGH
    if contains_any(value, TABLE_PRIORITY_LOW):
        return Priority.LOW
    return Priority.MEDIUM


def locate_columns(header_row: Sequence[object]) -> Dict[str, int]:
    """Map each field to the index of its header cell, -1 when absent."""
    header = [str(cell if cell is not None else "").lower().strip() for cell in header_row]
    return {field: find_column(header, keywords) for field, keywords in HEADER_KEYWORDS.items()}


def extract_with_headers(rows: Rows) -> StrategyResult:
    """Read families using the first row as header. Matches when a name column exists."""
    columns = locate_columns(rows[0])
    if columns["name"] < 0:
        return False, []

    families = []
    for row in rows[1:]:
        if not row:
            continue

        name = _cell(row, columns["name"]).strip()
        if not is_valid_name(name):
            continue

        families.append(FamilyRecord(
            name=name,
            district=_cell(row, columns["district"]).strip() or DEFAULT_DISTRICT,
            members=_parse_members(_cell(row, columns["members"])),
            needs=_parse_needs(_cell(row, columns["needs"])),
            priority=_parse_priority(_cell(row, columns["priority"])),
        ))
    return True, families


def scan_rows_without_headers(rows: Rows) -> StrategyResult:
    """
    Headerless heuristic scan. Per row, left to right: the first proper-name
    cell is the name, the first all-digit cell the member count, and the
    first other cell of 3-29 characters the district. Needs and priority
    are not inferred.
    """
    families = []
    unrecognized_script = 0

    for row in rows:
        name: Optional[str] = None
        district: Optional[str] = None
        members: Optional[int] = None

        for raw in row or []:
            cell = str(raw if raw is not None else "").strip()
            if not cell:
                continue
            if name is None and PROPER_NAME.match(cell):
                name = cell
            elif members is None and _ASCII_NUMBER.fullmatch(cell):
                members = int(cell)
            elif district is None and 3 <= len(cell) <= 29:
                district = cell

        if name is None or not is_valid_name(name):
            if any(ARABIC_SCRIPT.search(str(cell or "")) for cell in row or []):
                unrecognized_script += 1
            continue

        families.append(FamilyRecord(
            name=name,
            district=district or DEFAULT_DISTRICT,
            members=members or 0,
        ))

    if unrecognized_script:
        logger.debug(f"Headerless scan skipped {unrecognized_script} row(s) with Arabic-script cells and no Latin name")
    return True, families


TABLE_STRATEGIES = [
    ("table-header", extract_with_headers),
    ("table-headerless", scan_rows_without_headers),
]


def extract_from_table(rows: Rows) -> List[FamilyRecord]:
    """Families of one sheet; sheets with fewer than 2 rows contribute nothing."""
    if len(rows) < 2:
        return []
    return run_strategies(TABLE_STRATEGIES, rows)


def extract_from_workbook(sheets: Dict[str, Rows]) -> List[FamilyRecord]:
    """Families of every sheet, in sheet order then row order."""
    families: List[FamilyRecord] = []
    for sheet_name, rows in sheets.items():
        sheet_families = extract_from_table(rows)
        logger.debug(f"Sheet '{sheet_name}': {len(sheet_families)} family(ies)")
        families.extend(sheet_families)
    return families
