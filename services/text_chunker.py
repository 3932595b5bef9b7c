# services/text_chunker.py
"""Sliding-window chunking with overlap"""
import logging
import re
from typing import List

from config import settings
from core.domain import TextChunk
from core.errors import ValidationError

logger = logging.getLogger(settings.LOGGER_NAME)

DEFAULT_MAX_CHUNKS = 10000

_WHITESPACE = re.compile(r"\s+")
_EXCESS_NEWLINES = re.compile(r"\n{3,}")


def normalize_text(text: str) -> str:
    """Collapse whitespace runs to one space and 3+ newlines to two, then trim."""
    text = _WHITESPACE.sub(" ", text)
    text = _EXCESS_NEWLINES.sub("\n\n", text)
    return text.strip()


def effective_overlap(chunk_size: int, overlap: int) -> int:
    """Clamp overlap into [0, chunk_size); an overlap >= chunk_size becomes 20% of chunk_size."""
    if overlap < 0:
        return 0
    if overlap >= chunk_size:
        return int(chunk_size * 0.2)
    return overlap


def chunk_text(
    text: str,
    chunk_size: int,
    overlap: int,
    max_chunks: int = DEFAULT_MAX_CHUNKS,
) -> List[TextChunk]:
    """
    Split text into overlapping windows of at most `chunk_size` characters.

    Pure function of its inputs. The window stops at the end of the text,
    so the last chunk is the only one that can be shorter than chunk_size.
    Windows are kept untrimmed so that dropping the overlap from every chunk
    after the first rebuilds the normalized text; whitespace-only windows
    are skipped.
    Hitting `max_chunks` truncates the output and logs a warning.

    Raises:
        ValidationError: chunk_size <= 0
    """
    if chunk_size <= 0:
        raise ValidationError("chunk_size must be greater than 0", field="chunk_size")

    overlap = effective_overlap(chunk_size, overlap)
    cleaned = normalize_text(text)
    if not cleaned:
        return []

    length = len(cleaned)
    chunks: List[TextChunk] = []
    start = 0

    while start < length and len(chunks) < max_chunks:
        end = min(start + chunk_size, length)
        piece = cleaned[start:end]
        if piece.strip():
            chunks.append(TextChunk(index=len(chunks), text=piece))

        if end >= length:
            break

        next_start = end - overlap
        start = next_start if next_start > start else start + 1
    else:
        if len(chunks) >= max_chunks and start < length:
            logger.warning(f"Chunk limit of {max_chunks} reached; text truncated at offset {start}/{length}")

    return chunks
