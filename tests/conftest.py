"""Shared fakes for the ingestion and chat pipelines.

External systems are never contacted: the embedding provider, the vector
store and the generation models are replaced by in-memory doubles that
implement the core interfaces.
"""
import io
from typing import Any, Dict, List, Optional

import openpyxl
import pytest

from core.domain import VectorMatch, VectorRecord
from core.enums import EmbeddingTaskType
from core.errors import GenerationStreamError, ModelUnavailableError
from core.interfaces import IGenerationStream, ILLMService, IVectorStore
from infrastructure.embedding_services import BaseEmbeddingService


class FakeEmbeddingService(BaseEmbeddingService):
    """Returns a constant vector and records what was embedded."""

    def __init__(self, dimension: int = 4, fail: bool = False):
        super().__init__(dimension=dimension, batch_size=5)
        self.fail = fail
        self.calls: List[tuple] = []

    async def _embed_remote(self, text: str, task_type: EmbeddingTaskType) -> List[float]:
        self.calls.append((text, task_type))
        if self.fail:
            raise RuntimeError("provider down")
        return [0.25] * self.dimension


class FakeCollection:
    """In-memory stand-in for a ChromaDB collection."""

    def __init__(self, fail_on_call: Optional[int] = None):
        self.fail_on_call = fail_on_call
        self.upsert_calls: List[Dict[str, Any]] = []
        self.stored: List[Dict[str, Any]] = []
        self.last_query: Optional[Dict[str, Any]] = None

    def upsert(self, ids, embeddings, metadatas, documents):
        self.upsert_calls.append({"ids": ids, "embeddings": embeddings, "metadatas": metadatas})
        if self.fail_on_call == len(self.upsert_calls):
            raise ConnectionError("store unreachable")
        for record_id, metadata, document in zip(ids, metadatas, documents):
            self.stored.append({"id": record_id, "metadata": metadata, "document": document})

    def query(self, query_embeddings, n_results, where=None, include=None):
        self.last_query = {"n_results": n_results, "where": where}
        hits = self.stored[:n_results]
        return {
            "ids": [[hit["id"] for hit in hits]],
            "metadatas": [[hit["metadata"] for hit in hits]],
            "documents": [[hit["document"] for hit in hits]],
            "distances": [[0.1 * (i + 1) for i in range(len(hits))]],
        }


class FakeChromaClient:
    def __init__(self, collection: FakeCollection):
        self.collection = collection
        self.opened: List[Dict[str, Any]] = []

    def get_or_create_collection(self, name, metadata=None):
        self.opened.append({"name": name, "metadata": metadata})
        return self.collection


class FakeVectorStore(IVectorStore):
    def __init__(self, matches: Optional[List[VectorMatch]] = None, error: Optional[Exception] = None):
        self.matches = matches or []
        self.error = error
        self.upserted: List[VectorRecord] = []

    async def upsert(self, records: List[VectorRecord]) -> int:
        self.upserted.extend(records)
        return len(records)

    async def query(self, vector, top_k=5, metadata_filter=None) -> List[VectorMatch]:
        if self.error:
            raise self.error
        return self.matches[:top_k]


class FakeStream(IGenerationStream):
    def __init__(self, model: str, fragments: List[str], fail_after: Optional[int] = None):
        self.model = model
        self._fragments = fragments
        self._fail_after = fail_after
        self.closed = False

    async def fragments(self):
        for i, fragment in enumerate(self._fragments):
            if self._fail_after is not None and i >= self._fail_after:
                raise GenerationStreamError("The response stream was interrupted: reset")
            yield fragment

    async def aclose(self) -> None:
        self.closed = True


class FakeLLMService(ILLMService):
    """
    `behaviour` maps model name to: "missing" (404), an exception to raise,
    or a FakeStream to return. Unlisted models are reported missing.
    """

    def __init__(self, behaviour: Dict[str, Any]):
        self.behaviour = behaviour
        self.attempts: List[str] = []
        self.prompts: List[str] = []

    async def open_stream(self, model: str, prompt: str) -> IGenerationStream:
        self.attempts.append(model)
        self.prompts.append(prompt)
        outcome = self.behaviour.get(model, "missing")
        if outcome == "missing":
            raise ModelUnavailableError(model, "models/" + model + " is not found")
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def build_workbook(sheets: Dict[str, List[List[Any]]]) -> bytes:
    workbook = openpyxl.Workbook()
    workbook.remove(workbook.active)
    for title, rows in sheets.items():
        worksheet = workbook.create_sheet(title)
        for row in rows:
            worksheet.append(row)
    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


@pytest.fixture
def family_rows() -> List[List[str]]:
    return [
        ["Nom", "Quartier", "Membres", "Besoins", "Priorité"],
        ["Ben Ali", "Maarif", "5", "Nourriture, Médicaments", "Haute"],
    ]


@pytest.fixture
def family_workbook(family_rows) -> bytes:
    return build_workbook({"Familles": family_rows})


@pytest.fixture
def fake_embeddings() -> FakeEmbeddingService:
    return FakeEmbeddingService()


@pytest.fixture
def fake_collection() -> FakeCollection:
    return FakeCollection()


@pytest.fixture
def fake_chroma_client(fake_collection) -> FakeChromaClient:
    return FakeChromaClient(fake_collection)
