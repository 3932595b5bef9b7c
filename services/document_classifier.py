# services/document_classifier.py
"""Document type detection and document-level metadata"""
import logging
import re

from config import settings
from core.domain import DocumentMetadata, ExtractedData
from core.enums import DocumentType
from core.keywords import DOCUMENT_TYPE_KEYWORDS
from services.text_family_extractor import extract_from_text
from utils.arabic_text import contains_any

logger = logging.getLogger(settings.LOGGER_NAME)

_PHONE_NUMBER = re.compile(r"\d{10,}")
_EMAIL = re.compile(r"[\w.-]{1,64}@[\w.-]+\.\w+")


def classify(text: str, filename: str) -> DocumentType:
    """First category whose keywords appear in the text or the filename wins."""
    for document_type, keywords in DOCUMENT_TYPE_KEYWORDS:
        if contains_any(text, keywords) or contains_any(filename, keywords):
            return document_type
    return DocumentType.OTHER


def extract_data(text: str) -> ExtractedData:
    return ExtractedData(
        word_count=len(text.split()),
        line_count=len(text.split("\n")),
        has_phone_numbers=bool(_PHONE_NUMBER.search(text)),
        has_emails=bool(_EMAIL.search(text)),
    )


def parse_document(text: str, filename: str) -> DocumentMetadata:
    """Classify a document and, for family lists, extract families from its text."""
    document_type = classify(text, filename)
    metadata = DocumentMetadata(
        filename=filename,
        document_type=document_type,
        extracted_data=extract_data(text),
    )

    if document_type == DocumentType.FAMILY_LIST:
        metadata.extracted_families = extract_from_text(text)

    logger.info(
        f"Parsed '{filename}': type={document_type.value}, "
        f"families={metadata.family_count}, words={metadata.extracted_data.word_count}"
    )
    return metadata
