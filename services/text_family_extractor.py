# services/text_family_extractor.py
"""Family extraction from free text with cascading regex patterns.

1. "Famille <name> - <district> - <N> membres" (French, English, Arabic keywords)
2. "<Capitalized Name>, <district>, <N> membres" at the start of a line
3. Any short line that starts with a capitalized multi-word name

The first pattern yielding at least one family wins. For patterns 1 and 2
needs and priority are read from the text around the match.
"""
import logging
import re
from typing import List, Optional, Pattern

from config import settings
from core.domain import DEFAULT_DISTRICT, DEFAULT_NEEDS, INCOMPLETE_NEEDS, FamilyRecord
from core.enums import Priority
from core.keywords import (
    CONTEXT_PRIORITY_HIGH, CONTEXT_PRIORITY_LOW, CONTEXT_PRIORITY_NEGATED, NEED_LABELS
)
from services.extraction_strategies import NAME_WORD, StrategyResult, is_valid_name, run_strategies
from utils.arabic_text import contains_any, fold_text

logger = logging.getLogger(settings.LOGGER_NAME)

FIELD_MAX_LENGTH = 80

FAMILY_KEYWORD_PATTERN = re.compile(
    r"(?:famille|family|أسرة)\s+"
    rf"([^\n-]{{1,{FIELD_MAX_LENGTH}}}?)(?>\s*-\s*|\s+)"
    rf"([^\n-]{{1,{FIELD_MAX_LENGTH}}}?)(?>\s*-\s*|\s+)"
    r"(\d+)\s*(?:membres|members|أفراد)",
    re.IGNORECASE,
)

NAME_LINE_PATTERN = re.compile(
    rf"(?:^|\n)\s*({NAME_WORD}(?:\s+{NAME_WORD}){{0,5}})\s*(?>-\s*|,)\s*"
    rf"([^,\n]{{1,{FIELD_MAX_LENGTH}}}?)(?>,\s*|\s+)(\d+)\s*"
    r"(?i:membres|members|personnes|أفراد)",
    re.MULTILINE,
)

LEADING_NAME_PATTERN = re.compile(rf"^({NAME_WORD}(?:\s+{NAME_WORD})+)")

CONTEXT_BEFORE = 100
CONTEXT_AFTER = 300
MIN_LINE_LENGTH = 5
MAX_LINE_LENGTH = 100


def needs_from_context(context: str) -> List[str]:
    """Need labels whose keywords appear in the context, in table order, without duplicates."""
    folded = fold_text(context)
    needs: List[str] = []
    for keyword, label in NEED_LABELS.items():
        if keyword in folded and label not in needs:
            needs.append(label)
    return needs


def priority_from_context(context: str) -> Priority:
    if contains_any(context, CONTEXT_PRIORITY_NEGATED):
        return Priority.LOW
    if contains_any(context, CONTEXT_PRIORITY_HIGH):
        return Priority.HIGH
    if contains_any(context, CONTEXT_PRIORITY_LOW):
        return Priority.LOW
    return Priority.MEDIUM


def _match_with_context(pattern: Pattern, text: str) -> StrategyResult:
    families = []
    seen = set()

    for match in pattern.finditer(text):
        name = match.group(1).strip()
        if not is_valid_name(name) or name in seen:
            continue
        seen.add(name)

        start = max(0, match.start() - CONTEXT_BEFORE)
        end = min(len(text), match.end() + CONTEXT_AFTER)
        context = text[start:end]

        families.append(FamilyRecord(
            name=name,
            district=match.group(2).strip() or DEFAULT_DISTRICT,
            members=int(match.group(3)),
            needs=needs_from_context(context) or [DEFAULT_NEEDS],
            priority=priority_from_context(context),
        ))

    return bool(families), families


def match_family_keyword(text: str) -> StrategyResult:
    return _match_with_context(FAMILY_KEYWORD_PATTERN, text)


def match_name_lines(text: str) -> StrategyResult:
    return _match_with_context(NAME_LINE_PATTERN, text)


def scan_leading_names(text: str) -> StrategyResult:
    """Recover bare names; the sentinel need marks records without contextual detail."""
    families = []
    seen = set()

    for line in text.split("\n"):
        line = line.strip()
        if not MIN_LINE_LENGTH < len(line) <= MAX_LINE_LENGTH:
            continue

        match: Optional[re.Match] = LEADING_NAME_PATTERN.match(line)
        if not match or match.group(1) in seen:
            continue
        seen.add(match.group(1))

        families.append(FamilyRecord(
            name=match.group(1),
            district=DEFAULT_DISTRICT,
            members=0,
            needs=[INCOMPLETE_NEEDS],
            priority=Priority.MEDIUM,
        ))

    return bool(families), families


TEXT_STRATEGIES = [
    ("family-keyword", match_family_keyword),
    ("name-line", match_name_lines),
    ("leading-name", scan_leading_names),
]


def extract_from_text(text: str) -> List[FamilyRecord]:
    families = run_strategies(TEXT_STRATEGIES, text)
    logger.info(f"Extracted {len(families)} family(ies) from text")
    return families
