import json
import math

import httpx
import pytest

from core.enums import EmbeddingTaskType
from infrastructure.embedding_services import GeminiEmbeddingService, simulated_embedding


def _service(handler, api_key="test-key", dimension=4, batch_size=2):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return GeminiEmbeddingService(api_key=api_key, dimension=dimension, batch_size=batch_size, client=client)


def test_simulated_embedding_is_deterministic():
    assert simulated_embedding("", 3) == [0.0, math.sin(0.001) * 0.5, math.sin(0.002) * 0.5]
    assert simulated_embedding("a", 2) == [math.sin(97 * 0.001) * 0.5, math.sin(98 * 0.001) * 0.5]
    assert simulated_embedding("Famille Benali", 768) == simulated_embedding("Famille Benali", 768)
    assert len(simulated_embedding("x", 768)) == 768


@pytest.mark.parametrize(
    "first, second",
    [("Benali", "Haddad"), ("Maarif", "Anfa"), ("a", "b"), ("ab", "ba"), ("", " "), ("Famille 1", "Famille 2")],
)
@pytest.mark.parametrize("dimension", [4, 768])
def test_simulated_embedding_differs_for_different_texts(first, second, dimension):
    assert simulated_embedding(first, dimension) != simulated_embedding(second, dimension)


def test_simulated_embedding_hash_wraps_to_signed_32_bit():
    vector = simulated_embedding("une longue phrase pour dépasser 32 bits", 1)
    assert -0.5 <= vector[0] <= 0.5


async def test_embed_sends_task_type_and_dimension():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["key"] = request.headers["x-goog-api-key"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"embedding": {"values": [0.1, 0.2, 0.3, 0.4]}})

    vector = await _service(handler).embed("Famille Benali", EmbeddingTaskType.RETRIEVAL_QUERY)

    assert vector == [0.1, 0.2, 0.3, 0.4]
    assert seen["url"].endswith("/models/text-embedding-004:embedContent")
    assert seen["key"] == "test-key"
    assert seen["body"]["taskType"] == "RETRIEVAL_QUERY"
    assert seen["body"]["outputDimensionality"] == 4
    assert seen["body"]["content"] == {"parts": [{"text": "Famille Benali"}]}


async def test_provider_error_falls_back_to_simulated_vector():
    def handler(request):
        return httpx.Response(500, json={"error": {"message": "internal"}})

    assert await _service(handler).embed("Maarif") == simulated_embedding("Maarif", 4)


async def test_wrong_dimension_falls_back_to_simulated_vector():
    def handler(request):
        return httpx.Response(200, json={"embedding": {"values": [1.0, 2.0]}})

    assert await _service(handler).embed("Maarif") == simulated_embedding("Maarif", 4)


async def test_missing_key_never_calls_provider():
    def handler(request):
        pytest.fail("provider should not be called without a key")

    assert await _service(handler, api_key=None).embed("Anfa") == simulated_embedding("Anfa", 4)


async def test_embed_batch_preserves_input_order():
    def handler(request):
        text = json.loads(request.content)["content"]["parts"][0]["text"]
        if text == "boom":
            return httpx.Response(429, json={"error": {"message": "quota"}})
        return httpx.Response(200, json={"embedding": [float(len(text))] * 4})

    texts = ["a", "bb", "boom", "dddd", "eeeee"]
    vectors = await _service(handler).embed_batch(texts)

    assert vectors[0] == [1.0] * 4
    assert vectors[1] == [2.0] * 4
    assert vectors[2] == simulated_embedding("boom", 4)
    assert vectors[3] == [4.0] * 4
    assert vectors[4] == [5.0] * 4


def test_service_keeps_one_client_for_its_lifetime():
    service = GeminiEmbeddingService(api_key=None, dimension=4, timeout=12.0)

    assert isinstance(service._client, httpx.AsyncClient)
    assert service._client.timeout == httpx.Timeout(12.0)


async def test_batch_reuses_the_injected_client():
    requests = []

    def handler(request):
        requests.append(request)
        return httpx.Response(200, json={"embedding": {"values": [0.1, 0.2, 0.3, 0.4]}})

    service = _service(handler, batch_size=2)
    client = service._client

    await service.embed_batch(["Benali", "Haddad", "Tazi", "Alaoui", "Fassi"])

    assert len(requests) == 5
    assert service._client is client
    assert client.is_closed is False
