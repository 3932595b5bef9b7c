"""Shared enumerations used across the application."""
from enum import Enum


class ErrorCode(str, Enum):
    """Error codes for user-facing error messages."""
    CONFIGURATION_MISSING = "CONFIGURATION_MISSING"
    INVALID_INPUT = "INVALID_INPUT"
    FILE_TOO_LARGE = "FILE_TOO_LARGE"
    INVALID_FORMAT = "INVALID_FORMAT"
    EXTRACTION_FAILED = "EXTRACTION_FAILED"
    STORE_WRITE_FAILED = "STORE_WRITE_FAILED"
    NO_MODEL_AVAILABLE = "NO_MODEL_AVAILABLE"
    STREAM_FAILED = "STREAM_FAILED"
    PROCESSING_FAILED = "PROCESSING_FAILED"


class DocumentType(str, Enum):
    """Document categories, decided from keyword signals."""
    FAMILY_LIST = "family_list"
    INVENTORY = "inventory"
    ZAKAT_GUIDE = "zakat_guide"
    OTHER = "other"


class Priority(str, Enum):
    """Assistance priority of a family."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class EmbeddingTaskType(str, Enum):
    """Task hint sent to the embedding provider."""
    RETRIEVAL_DOCUMENT = "RETRIEVAL_DOCUMENT"
    RETRIEVAL_QUERY = "RETRIEVAL_QUERY"


class ChatStage(str, Enum):
    """Stages of one chat turn."""
    IDLE = "idle"
    EMBEDDING = "embedding"
    RETRIEVING = "retrieving"
    GENERATING = "generating"
    STREAMING = "streaming"
    DONE = "done"
