# infrastructure/embedding_services.py
"""Embedding generation with a deterministic offline fallback.

Provider failures of any kind (network, auth, malformed response) never
reach the caller: the affected text gets a simulated vector instead. The
simulated vector is a hash of the text, not a semantic representation, so
recall degrades for those texts.
"""
import asyncio
import logging
import math
from abc import abstractmethod
from typing import List, Optional

import httpx

from config import settings
from core.enums import EmbeddingTaskType
from core.interfaces import IEmbeddingService

logger = logging.getLogger(settings.LOGGER_NAME)


def simulated_embedding(text: str, dimension: int) -> List[float]:
    """
    Deterministic fallback vector: a 32-bit rolling hash of the text
    (h = h*31 + code point) seeds one sine value per dimension.
    """
    h = 0
    for char in text:
        h = ((h << 5) - h + ord(char)) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000  # back to signed 32-bit

    return [math.sin((h + i) * 0.001) * 0.5 for i in range(dimension)]


class BaseEmbeddingService(IEmbeddingService):
    """Batching and fallback shared by all providers"""

    def __init__(self, dimension: int, batch_size: int = 5):
        if dimension <= 0:
            raise ValueError("dimension must be positive")
        self.dimension = dimension
        self.batch_size = max(1, batch_size)

    @abstractmethod
    async def _embed_remote(self, text: str, task_type: EmbeddingTaskType) -> List[float]:
        """Provider call; may raise anything"""
        pass

    def fallback(self, text: str) -> List[float]:
        return simulated_embedding(text, self.dimension)

    async def embed(
        self, text: str, task_type: EmbeddingTaskType = EmbeddingTaskType.RETRIEVAL_DOCUMENT
    ) -> List[float]:
        try:
            vector = await self._embed_remote(text, task_type)
            if len(vector) != self.dimension:
                raise ValueError(f"expected {self.dimension} dimensions, got {len(vector)}")
            return vector
        except Exception as e:
            logger.warning(f"Embedding provider failed, using simulated embedding: {e}")
            return self.fallback(text)

    async def embed_batch(
        self, texts: List[str], task_type: EmbeddingTaskType = EmbeddingTaskType.RETRIEVAL_DOCUMENT
    ) -> List[List[float]]:
        """
        Embed texts in sequential groups of `batch_size`, each group
        concurrently. Output order matches input order.
        """
        vectors: List[List[float]] = []
        for i in range(0, len(texts), self.batch_size):
            group = texts[i:i + self.batch_size]
            try:
                vectors.extend(await asyncio.gather(*(self.embed(text, task_type) for text in group)))
            except Exception as e:
                logger.warning(f"Embedding batch {i // self.batch_size} failed, using simulated embeddings: {e}")
                vectors.extend(self.fallback(text) for text in group)
        return vectors


class GeminiEmbeddingService(BaseEmbeddingService):
    """Google Generative Language API `embedContent` over REST"""

    def __init__(
        self,
        api_key: Optional[str],
        model: str = "text-embedding-004",
        base_url: str = "https://generativelanguage.googleapis.com/v1beta",
        dimension: int = 768,
        batch_size: int = 5,
        timeout: float = 60.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        super().__init__(dimension=dimension, batch_size=batch_size)
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def _post(self, text: str, task_type: EmbeddingTaskType) -> httpx.Response:
        return await self._client.post(
            f"{self.base_url}/models/{self.model}:embedContent",
            headers={"x-goog-api-key": self.api_key or ""},
            json={
                "model": f"models/{self.model}",
                "content": {"parts": [{"text": text}]},
                "taskType": task_type.value,
                "outputDimensionality": self.dimension,
            },
        )

    async def _embed_remote(self, text: str, task_type: EmbeddingTaskType) -> List[float]:
        if not self.api_key:
            raise RuntimeError("GEMINI_API_KEY is not configured")

        response = await self._post(text, task_type)

        if response.is_error:
            raise RuntimeError(f"Embedding API error ({response.status_code}): {_error_message(response)}")

        data = response.json()
        embedding = data.get("embedding")
        if isinstance(embedding, dict) and isinstance(embedding.get("values"), list):
            return [float(v) for v in embedding["values"]]
        if isinstance(embedding, list):
            return [float(v) for v in embedding]
        raise ValueError("Unexpected embedding response format")


def _error_message(response: httpx.Response) -> str:
    try:
        return response.json()["error"]["message"]
    except (ValueError, KeyError, TypeError):
        return response.text[:200]
