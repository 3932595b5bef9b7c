# infrastructure/vector_stores.py
"""ChromaDB implementation of the vector store gateway"""
import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional

from chromadb.api import ClientAPI

from config import settings
from core.domain import VectorMatch, VectorRecord
from core.errors import StoreWriteError
from core.interfaces import IVectorStore

logger = logging.getLogger(settings.LOGGER_NAME)

class ChromaDBVectorStore(IVectorStore):
    """
    Cosine-space ChromaDB collection. Records are append-mostly: ids embed
    filename, chunk index and ingestion time, so concurrent uploads never
    collide and nothing is updated or deleted here.
    """

    def __init__(self, client_factory: Callable[[], ClientAPI], collection_name: str, batch_size: int = 100):
        self._client_factory = client_factory
        self._collection_name = collection_name
        self._batch_size = max(1, batch_size)
        self._collection = None

    async def _ensure_collection(self):
        """Lazy initialization of client and collection"""
        if not self._collection:
            client = await asyncio.to_thread(self._client_factory)
            self._collection = await asyncio.to_thread(
                client.get_or_create_collection,
                name=self._collection_name,
                metadata={"hnsw:space": "cosine"},
            )

    async def upsert(self, records: List[VectorRecord]) -> int:
        """Upsert in batches, one store call per batch, sequentially. No rollback on failure."""
        if not records:
            return 0

        batches = [records[i:i + self._batch_size] for i in range(0, len(records), self._batch_size)]

        try:
            await self._ensure_collection()
        except Exception as e:
            logger.error(f"Could not open collection '{self._collection_name}': {e}", exc_info=True)
            raise StoreWriteError(0, len(batches), e)

        for number, batch in enumerate(batches):
            try:
                await asyncio.to_thread(
                    self._collection.upsert,
                    ids=[record.id for record in batch],
                    embeddings=[record.values for record in batch],
                    metadatas=[record.metadata for record in batch],
                    documents=[str(record.metadata.get("text", "")) for record in batch],
                )
            except Exception as e:
                logger.error(
                    f"Upsert batch {number + 1}/{len(batches)} failed; "
                    f"{number} batch(es) already persisted: {e}",
                    exc_info=True,
                )
                raise StoreWriteError(number, len(batches), e)
            logger.debug(f"Upserted batch {number + 1}/{len(batches)} ({len(batch)} records)")

        logger.info(f"Upserted {len(records)} vectors in {len(batches)} batch(es) into '{self._collection_name}'")
        return len(records)

    async def query(
        self,
        vector: List[float],
        top_k: int = 5,
        metadata_filter: Optional[Dict[str, Any]] = None,
    ) -> List[VectorMatch]:
        """Nearest neighbours by cosine similarity (score = 1 - distance), best first"""
        await self._ensure_collection()

        results = await asyncio.to_thread(
            self._collection.query,
            query_embeddings=[vector],
            n_results=top_k,
            where=_to_where(metadata_filter),
            include=["metadatas", "documents", "distances"],
        )

        matches = []
        if results["ids"] and results["ids"][0]:
            for i, record_id in enumerate(results["ids"][0]):
                metadata = dict(results["metadatas"][0][i] or {})
                if "text" not in metadata and results.get("documents"):
                    metadata["text"] = results["documents"][0][i]
                matches.append(VectorMatch(
                    id=record_id,
                    score=1 - results["distances"][0][i],
                    metadata=metadata,
                ))
        return matches


def _to_where(metadata_filter: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Chroma accepts one top-level condition; several fields are combined with $and."""
    if not metadata_filter:
        return None
    if len(metadata_filter) == 1 or any(key.startswith("$") for key in metadata_filter):
        return metadata_filter
    return {"$and": [{key: value} for key, value in metadata_filter.items()]}
