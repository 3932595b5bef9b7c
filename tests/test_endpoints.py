import pytest
from fastapi.testclient import TestClient
from starlette.datastructures import UploadFile

from conftest import FakeEmbeddingService, FakeLLMService, FakeStream, FakeVectorStore
from config import settings
from main import app
from services.chat_service import ChatService
from services.factory import get_chat_service, get_ingestion_service
from services.ingestion_service import IngestionService

XLSX_MIME = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@pytest.fixture
def client():
    yield TestClient(app)
    app.dependency_overrides.clear()


def _use_ingestion(store, **options):
    app.dependency_overrides[get_ingestion_service] = lambda: IngestionService(
        embedding_service=FakeEmbeddingService(), vector_store=store, **options
    )


def _use_chat(llm, missing=()):
    app.dependency_overrides[get_chat_service] = lambda: ChatService(
        embedding_service=FakeEmbeddingService(),
        vector_store=FakeVectorStore(),
        llm_service=llm,
        models=["gemini-2.5-pro", "gemini-2.5-flash"],
        missing_credentials=missing,
    )


def test_upload_spreadsheet(client, family_workbook):
    store = FakeVectorStore()
    _use_ingestion(store)

    response = client.post(
        "/upload-document",
        files={"file": ("familles.xlsx", family_workbook, XLSX_MIME)},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["document_type"] == "family_list"
    assert body["extracted_families"] == [{
        "name": "Ben Ali",
        "district": "Maarif",
        "members": 5,
        "needs": ["Nourriture", "Médicaments"],
        "priority": "high",
    }]
    assert body["chunks"] == len(store.upserted) == 1


@pytest.mark.parametrize(
    "options, upload, status, code",
    [
        ({}, ("photo.png", b"\x89PNG", "image/png"), 400, "INVALID_INPUT"),
        ({"max_file_size": 4}, ("notes.txt", b"Zakat al-Fitr", "text/plain"), 413, "FILE_TOO_LARGE"),
        ({"missing_credentials": ["GEMINI_API_KEY"]}, ("notes.txt", b"Zakat", "text/plain"), 503, "CONFIGURATION_MISSING"),
    ],
)
def test_upload_failures_map_to_status_codes(client, options, upload, status, code):
    _use_ingestion(FakeVectorStore(), **options)

    response = client.post("/upload-document", files={"file": upload})

    assert response.status_code == status
    body = response.json()
    assert body["success"] is False
    assert body["error_code"] == code
    assert body["error"]


@pytest.fixture
def reads(monkeypatch):
    """Filenames whose upload body was read."""
    names = []
    original_read = UploadFile.read

    async def tracking_read(self, *args):
        names.append(self.filename)
        return await original_read(self, *args)

    monkeypatch.setattr(UploadFile, "read", tracking_read)
    return names


def test_oversized_upload_is_refused_before_reading(client, reads):
    store = FakeVectorStore()
    _use_ingestion(store, max_file_size=4)

    response = client.post("/upload-document", files={"file": ("notes.txt", b"Zakat al-Fitr", "text/plain")})

    assert response.status_code == 413
    assert response.json()["error_code"] == "FILE_TOO_LARGE"
    assert reads == []
    assert store.upserted == []


def test_upload_within_limit_is_read_and_indexed(client, reads):
    store = FakeVectorStore()
    _use_ingestion(store)

    response = client.post("/upload-document", files={"file": ("notes.txt", b"Zakat al-Fitr", "text/plain")})

    assert response.status_code == 200
    assert reads == ["notes.txt"]
    assert len(store.upserted) == 1


def test_chat_streams_plain_text(client):
    _use_chat(FakeLLMService({"gemini-2.5-pro": FakeStream("gemini-2.5-pro", ["Salam ", "alaykoum"])}))

    response = client.post("/chat", json={"message": "Bonjour"})

    assert response.status_code == 200
    assert response.headers["x-chat-status"] == "stream"
    assert response.headers["content-type"].startswith("text/plain")
    assert response.text == "Salam alaykoum"


def test_chat_short_circuit_is_a_single_message(client):
    _use_chat(FakeLLMService({}))

    response = client.post("/chat", json={"message": "Bonjour"})

    assert response.status_code == 200
    assert response.headers["x-chat-status"] == "error"
    assert "gemini-2.5-pro" in response.text and "gemini-2.5-flash" in response.text


def test_chat_reports_missing_configuration(client):
    _use_chat(FakeLLMService({}), missing=["GEMINI_API_KEY"])

    response = client.post("/chat", json={"message": "Bonjour"})

    assert response.headers["x-chat-status"] == "error"
    assert "GEMINI_API_KEY" in response.text


@pytest.mark.parametrize("message", ["", "x" * 2001])
def test_chat_rejects_invalid_length(client, message):
    _use_chat(FakeLLMService({}))
    assert client.post("/chat", json={"message": message}).status_code == 422


def test_check_env_reports_presence_only(client, monkeypatch):
    monkeypatch.setattr(settings, "GEMINI_API_KEY", "secret-value")
    monkeypatch.setattr(settings, "VECTOR_STORE_API_KEY", None)
    monkeypatch.setattr(settings, "VECTOR_STORE_TYPE", "chroma_cloud")

    response = client.get("/check-env")

    body = response.json()
    assert body["configured"] is False
    assert body["variables"]["GEMINI_API_KEY"] is True
    assert body["variables"]["VECTOR_STORE_API_KEY"] is False
    assert "VECTOR_STORE_API_KEY" in body["message"]
    assert "secret-value" not in response.text


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}
