# api/schemas.py
from pydantic import BaseModel, Field
from typing import Dict, List, Optional

from config import settings
from core.domain import IngestionResult
from core.enums import DocumentType, Priority

class ChatRequest(BaseModel):
    message: str = Field(
        ...,
        min_length=settings.CHAT_MESSAGE_MIN_LENGTH,
        max_length=settings.CHAT_MESSAGE_MAX_LENGTH,
    )

class FamilyRecordSchema(BaseModel):
    name: str
    district: str
    members: int
    needs: List[str]
    priority: Priority

class UploadResponse(BaseModel):
    success: bool
    filename: str
    message: Optional[str] = None
    error: Optional[str] = None
    error_code: Optional[str] = None
    extracted_families: Optional[List[FamilyRecordSchema]] = None
    document_type: Optional[DocumentType] = None
    chunks: int = 0

    @classmethod
    def from_result(cls, result: IngestionResult) -> "UploadResponse":
        families = None
        if result.extracted_families:
            families = [FamilyRecordSchema(**family.to_dict()) for family in result.extracted_families]
        return cls(
            success=result.success,
            filename=result.filename,
            message=result.message,
            error=result.error,
            error_code=result.error_code,
            extracted_families=families,
            document_type=result.document_type,
            chunks=result.chunks,
        )

class EnvCheckResponse(BaseModel):
    status: str
    configured: bool
    variables: Dict[str, bool]
    message: str
