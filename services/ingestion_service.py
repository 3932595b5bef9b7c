# services/ingestion_service.py
"""Document ingestion: extract, classify, chunk, embed and index one upload"""
import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from config import settings
from core.domain import (
    DocumentMetadata,
    FamilyRecord,
    IngestionResult,
    TextChunk,
    UploadedDocument,
    VectorRecord,
)
from core.enums import DocumentType, EmbeddingTaskType, ErrorCode
from core.errors import ConfigurationError, ExtractionError, SadaqaError, ValidationError
from core.interfaces import IEmbeddingService, IVectorStore
from infrastructure.text_extractors import extract_text
from services.document_classifier import parse_document
from services.table_family_extractor import extract_from_workbook
from services.text_chunker import chunk_text
from utils.common import sanitize_filename, validate_upload

logger = logging.getLogger(settings.LOGGER_NAME)

UNEXPECTED_ERROR_MESSAGE = "An unexpected error occurred while processing the document."


class IngestionService:
    def __init__(
        self,
        embedding_service: IEmbeddingService,
        vector_store: IVectorStore,
        chunk_size: int = 1000,
        chunk_overlap: int = 200,
        max_chunks: int = 10000,
        max_file_size: int = 10 * 1024 * 1024,
        allowed_extensions: Sequence[str] = ("pdf", "txt", "xlsx", "xls"),
        missing_credentials: Sequence[str] = (),
    ):
        self.embedding_service = embedding_service
        self.vector_store = vector_store
        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap
        self.max_chunks = max_chunks
        self.max_file_size = max_file_size
        self.allowed_extensions = list(allowed_extensions)
        self.missing_credentials = list(missing_credentials)

    def check_declared_size(self, filename: str, size: Optional[int]) -> Optional[IngestionResult]:
        """Refuse an upload on its declared size, before the body is read."""
        if size is None or size <= self.max_file_size:
            return None
        max_mb = self.max_file_size // 1024 // 1024
        error = ValidationError(f"File too large. Max size: {max_mb}MB.", field="size")
        logger.warning(f"Rejected '{filename}' ({size} bytes) before reading: {error}")
        return IngestionResult(
            success=False,
            filename=sanitize_filename(filename or ""),
            error=error.message,
            error_code=error.error_code.value,
        )

    async def ingest(self, document: UploadedDocument) -> IngestionResult:
        """
        Run the whole pipeline for one upload.

        Never raises: every failure becomes `IngestionResult(success=False)`
        with a single user-facing sentence in `error`.
        """
        filename = sanitize_filename(document.filename or "")
        try:
            return await self._ingest(document, filename)
        except SadaqaError as e:
            logger.error(f"Ingestion of '{filename}' failed: {e}")
            return IngestionResult(
                success=False, filename=filename, error=e.message, error_code=e.error_code.value
            )
        except Exception as e:
            logger.error(f"Unexpected error ingesting '{filename}': {e}", exc_info=True)
            return IngestionResult(
                success=False,
                filename=filename,
                error=UNEXPECTED_ERROR_MESSAGE,
                error_code=ErrorCode.PROCESSING_FAILED.value,
            )

    async def _ingest(self, document: UploadedDocument, filename: str) -> IngestionResult:
        if self.missing_credentials:
            raise ConfigurationError(self.missing_credentials)

        validate_upload(filename, document.size, self.allowed_extensions, self.max_file_size)
        logger.info(f"Ingesting '{filename}' ({document.size} bytes, {document.mime_type or 'unknown type'})")

        extracted = await asyncio.to_thread(extract_text, document.content, document.mime_type, filename)

        table_families: List[FamilyRecord] = []
        if extracted.sheets:
            try:
                table_families = await asyncio.to_thread(extract_from_workbook, extracted.sheets)
            except Exception as e:
                logger.error(f"Table extraction failed for '{filename}', using text parsing: {e}", exc_info=True)

        metadata = await asyncio.to_thread(parse_document, extracted.raw_text, filename)
        if table_families:
            metadata.extracted_families = table_families

        chunks = await asyncio.to_thread(
            chunk_text, extracted.raw_text, self.chunk_size, self.chunk_overlap, self.max_chunks
        )
        if not chunks:
            raise ExtractionError(f"No text could be extracted from '{filename}'.")
        logger.info(f"Created {len(chunks)} chunk(s) for '{filename}'")

        vectors = await self.embedding_service.embed_batch(
            [chunk.text for chunk in chunks], EmbeddingTaskType.RETRIEVAL_DOCUMENT
        )
        records = build_records(filename, chunks, vectors, metadata, datetime.now(timezone.utc))
        await self.vector_store.upsert(records)

        return IngestionResult(
            success=True,
            filename=filename,
            message=success_message(filename, len(chunks), metadata),
            document_type=metadata.document_type,
            extracted_families=metadata.extracted_families or None,
            chunks=len(chunks),
        )


def record_metadata(chunk: TextChunk, metadata: DocumentMetadata, timestamp: datetime) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "filename": metadata.filename,
        "chunkIndex": chunk.index,
        "text": chunk.text,
        "timestamp": timestamp.isoformat(),
        "documentType": metadata.document_type.value,
        "wordCount": metadata.extracted_data.word_count,
        "hasPhoneNumbers": metadata.extracted_data.has_phone_numbers,
        "hasEmails": metadata.extracted_data.has_emails,
    }
    if metadata.family_count:
        data["hasFamilies"] = True
        data["familyCount"] = metadata.family_count
    return data


def build_records(
    filename: str,
    chunks: List[TextChunk],
    vectors: List[List[float]],
    metadata: DocumentMetadata,
    timestamp: datetime,
) -> List[VectorRecord]:
    """Ids are `<filename>-<chunk index>-<epoch millis>`, unique across concurrent uploads."""
    if len(chunks) != len(vectors):
        raise ValueError(f"Got {len(vectors)} vectors for {len(chunks)} chunks")

    millis = int(timestamp.timestamp() * 1000)
    return [
        VectorRecord(
            id=f"{filename}-{chunk.index}-{millis}",
            values=vector,
            metadata=record_metadata(chunk, metadata, timestamp),
        )
        for chunk, vector in zip(chunks, vectors)
    ]


def success_message(filename: str, chunk_count: int, metadata: DocumentMetadata) -> str:
    message = f'Document "{filename}" indexed successfully. {chunk_count} chunk(s) created and stored.'
    if metadata.family_count:
        message += f" {metadata.family_count} family(ies) detected."
    if metadata.document_type != DocumentType.OTHER:
        message += f" Type: {metadata.document_type.value}."
    return message
