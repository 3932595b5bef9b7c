# services/extraction_strategies.py
"""Ordered fallback strategies for family extraction.

A strategy is a pure function `input -> (matched, records)`. The runner
tries strategies in order and stops at the first one that reports a match.
What counts as a match is up to each strategy: the spreadsheet header
strategy matches as soon as it finds a name column, the freeform patterns
only when they produce at least one family.
"""
import logging
import re
from typing import Callable, List, Sequence, Tuple, TypeVar

from config import settings
from core.domain import FamilyRecord

logger = logging.getLogger(settings.LOGGER_NAME)

T = TypeVar("T")

StrategyResult = Tuple[bool, List[FamilyRecord]]
Strategy = Callable[[T], StrategyResult]

# A capitalized word: Latin letters, French accents allowed
NAME_WORD = r"[A-ZÀ-ÖØ-Þ][a-zß-öø-ÿ]+"

# "Ben Ali", "Fatima Zahra El Idrissi": two or more capitalized words
PROPER_NAME = re.compile(rf"^{NAME_WORD}(?:\s+{NAME_WORD})+")

ARABIC_SCRIPT = re.compile(r"[؀-ۿ]")

MIN_NAME_LENGTH = 2


def is_valid_name(name: str) -> bool:
    return len(name.strip()) >= MIN_NAME_LENGTH


def run_strategies(strategies: Sequence[Tuple[str, Strategy]], data: T) -> List[FamilyRecord]:
    """Return the records of the first strategy that matches, or an empty list."""
    for label, strategy in strategies:
        matched, records = strategy(data)
        if matched:
            logger.debug(f"Extraction strategy '{label}' matched with {len(records)} record(s)")
            return records
    return []
