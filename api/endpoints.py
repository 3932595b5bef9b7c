# api/endpoints.py
"""
API endpoints for document ingestion and chat.

These endpoints have no authentication: the service is meant to run
behind the association's own access layer.
"""
import logging

from fastapi import APIRouter, Depends, File, HTTPException, Response, UploadFile
from fastapi.responses import PlainTextResponse, StreamingResponse

from api.schemas import ChatRequest, EnvCheckResponse, UploadResponse
from config import settings
from core.domain import UploadedDocument
from core.enums import ErrorCode
from core.errors import ValidationError
from services.chat_service import ChatService
from services.factory import get_chat_service, get_ingestion_service
from services.ingestion_service import IngestionService

logger = logging.getLogger(settings.LOGGER_NAME)

router = APIRouter()

FAILURE_STATUS = {
    ErrorCode.INVALID_INPUT.value: 400,
    ErrorCode.INVALID_FORMAT.value: 400,
    ErrorCode.EXTRACTION_FAILED.value: 400,
    ErrorCode.FILE_TOO_LARGE.value: 413,
    ErrorCode.CONFIGURATION_MISSING.value: 503,
    ErrorCode.STORE_WRITE_FAILED.value: 502,
}

CHAT_STATUS_HEADER = "X-Chat-Status"


# ---------- Upload ----------
@router.post("/upload-document", response_model=UploadResponse)
async def upload_document(
    response: Response,
    file: UploadFile = File(...),
    ingestion_service: IngestionService = Depends(get_ingestion_service),
) -> UploadResponse:
    result = ingestion_service.check_declared_size(file.filename or "", file.size)
    if result is None:
        content = await file.read()
        result = await ingestion_service.ingest(
            UploadedDocument(
                filename=file.filename or "",
                mime_type=file.content_type or "",
                content=content,
            )
        )
    if not result.success:
        response.status_code = FAILURE_STATUS.get(result.error_code, 500)
    return UploadResponse.from_result(result)


# ---------- Chat ----------
@router.post("/chat")
async def chat_endpoint(
    chat_request: ChatRequest,
    chat_service: ChatService = Depends(get_chat_service),
) -> Response:
    try:
        result = await chat_service.chat(chat_request.message)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=e.message)

    if isinstance(result, str):
        return PlainTextResponse(result, headers={CHAT_STATUS_HEADER: "error"})
    return StreamingResponse(
        result,
        media_type="text/plain; charset=utf-8",
        headers={CHAT_STATUS_HEADER: "stream"},
    )


# ---------- Configuration ----------
@router.get("/check-env", response_model=EnvCheckResponse)
async def check_env() -> EnvCheckResponse:
    variables = {
        "GEMINI_API_KEY": bool(settings.GEMINI_API_KEY),
        "VECTOR_STORE_API_KEY": bool(settings.VECTOR_STORE_API_KEY),
        "VECTOR_STORE_INDEX_NAME": bool(settings.VECTOR_STORE_INDEX_NAME),
        "VECTOR_STORE_ENVIRONMENT": bool(settings.VECTOR_STORE_ENVIRONMENT),
    }
    missing = settings.missing_credentials(for_chat=True)
    if missing:
        return EnvCheckResponse(
            status="error",
            configured=False,
            variables=variables,
            message=f"Missing environment variable(s): {', '.join(missing)}.",
        )
    return EnvCheckResponse(
        status="ok",
        configured=True,
        variables=variables,
        message="All required environment variables are set.",
    )


@router.get("/health")
async def health():
    return {"status": "ok"}
