import httpx
import pytest

from config import settings
from services import factory


@pytest.fixture
def fresh_http_client():
    factory.get_http_client.cache_clear()
    yield
    factory.get_http_client.cache_clear()


def test_embedding_and_generation_share_one_http_client(monkeypatch, fresh_http_client):
    monkeypatch.setattr(settings, "EMBEDDING_PROVIDER", "gemini")

    embeddings = factory.get_embedding_service()
    llm = factory.get_llm_service()

    assert isinstance(factory.get_http_client(), httpx.AsyncClient)
    assert embeddings._client is factory.get_http_client()
    assert llm._client is factory.get_http_client()
    assert factory.get_embedding_service()._client is embeddings._client


def test_unknown_embedding_provider_is_rejected(monkeypatch):
    monkeypatch.setattr(settings, "EMBEDDING_PROVIDER", "nope")
    with pytest.raises(ValueError):
        factory.get_embedding_service()
