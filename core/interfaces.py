# core/interfaces.py
"""Core interfaces for the ingestion and chat pipelines"""
from abc import ABC, abstractmethod
from typing import Any, AsyncIterator, Dict, List, Optional

from core.domain import VectorMatch, VectorRecord
from core.enums import EmbeddingTaskType

# ============= Vector Store Interface =============
class IVectorStore(ABC):
    """Interface for vector storage operations"""

    @abstractmethod
    async def upsert(self, records: List[VectorRecord]) -> int:
        """
        Write records in fixed-size batches, sequentially.

        Returns the number of records written. Raises StoreWriteError on
        the first failing batch; earlier batches are not rolled back.
        """
        pass

    @abstractmethod
    async def query(
        self,
        vector: List[float],
        top_k: int = 5,
        metadata_filter: Optional[Dict[str, Any]] = None,
    ) -> List[VectorMatch]:
        """Return the top_k nearest records, most similar first"""
        pass

# ============= Embedding Service Interface =============
class IEmbeddingService(ABC):
    """Interface for embedding generation"""

    dimension: int

    @abstractmethod
    async def embed(
        self, text: str, task_type: EmbeddingTaskType = EmbeddingTaskType.RETRIEVAL_DOCUMENT
    ) -> List[float]:
        """Embed one text. Never raises for provider failures."""
        pass

    @abstractmethod
    async def embed_batch(
        self, texts: List[str], task_type: EmbeddingTaskType = EmbeddingTaskType.RETRIEVAL_DOCUMENT
    ) -> List[List[float]]:
        """Embed many texts, preserving input order"""
        pass

# ============= Generation Interface =============
class IGenerationStream(ABC):
    """An opened generation call producing text fragments in arrival order"""

    model: str

    @abstractmethod
    def fragments(self) -> AsyncIterator[str]:
        """Yield fragments until completion; raise GenerationStreamError on transport failure"""
        pass

    @abstractmethod
    async def aclose(self) -> None:
        """Release the underlying transport"""
        pass

class ILLMService(ABC):
    """Interface for streaming text generation"""

    @abstractmethod
    async def open_stream(self, model: str, prompt: str) -> IGenerationStream:
        """
        Start a streaming generation call with `model`.

        Raises ModelUnavailableError when the provider does not serve the
        model; any other exception means the attempt failed for another reason.
        """
        pass
