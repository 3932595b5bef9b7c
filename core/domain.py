"""Domain models for the ingestion and retrieval pipelines."""
from dataclasses import dataclass, field
from typing import List, Dict, Any, Optional

from core.enums import DocumentType, Priority

DEFAULT_DISTRICT = "Unspecified"
DEFAULT_NEEDS = "General aid"
INCOMPLETE_NEEDS = "Information to complete"

# ============= Ingestion =============

@dataclass(frozen=True)
class UploadedDocument:
    """Raw upload, consumed entirely by one ingestion request"""
    filename: str
    mime_type: str
    content: bytes

    @property
    def size(self) -> int:
        return len(self.content)

@dataclass(frozen=True)
class ExtractedText:
    """Plain text of a document; `sheets` holds the cell grid of each workbook sheet"""
    raw_text: str
    source_filename: str
    sheets: Optional[Dict[str, List[List[str]]]] = None

@dataclass(frozen=True)
class FamilyRecord:
    """A family in need, extracted from a document"""
    name: str
    district: str = DEFAULT_DISTRICT
    members: int = 0
    needs: List[str] = field(default_factory=lambda: [DEFAULT_NEEDS])
    priority: Priority = Priority.MEDIUM

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "district": self.district,
            "members": self.members,
            "needs": list(self.needs),
            "priority": self.priority.value,
        }

@dataclass(frozen=True)
class ExtractedData:
    """Cheap statistics about the document text"""
    word_count: int
    line_count: int
    has_phone_numbers: bool
    has_emails: bool

@dataclass
class DocumentMetadata:
    """Classification and extraction results for one document"""
    filename: str
    document_type: DocumentType
    extracted_data: ExtractedData
    extracted_families: Optional[List[FamilyRecord]] = None

    @property
    def family_count(self) -> int:
        return len(self.extracted_families or [])

@dataclass(frozen=True)
class TextChunk:
    """A bounded window of normalized text; `index` is its permanent position"""
    index: int
    text: str

@dataclass(frozen=True)
class VectorRecord:
    """One (id, vector, metadata) entry written to the vector store"""
    id: str
    values: List[float]
    metadata: Dict[str, Any]

@dataclass
class IngestionResult:
    """Outcome of one ingestion request"""
    success: bool
    filename: str
    message: Optional[str] = None
    error: Optional[str] = None
    error_code: Optional[str] = None
    document_type: Optional[DocumentType] = None
    extracted_families: Optional[List[FamilyRecord]] = None
    chunks: int = 0

# ============= Retrieval =============

@dataclass(frozen=True)
class VectorMatch:
    """A vector-store hit; `score` is a relevance signal, not a probability"""
    id: str
    score: float
    metadata: Dict[str, Any]

@dataclass(frozen=True)
class RetrievedContext:
    """One labeled piece of retrieved text fed to the prompt"""
    source_label: str
    similarity_score: float
    text: str
