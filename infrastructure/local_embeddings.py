# infrastructure/local_embeddings.py
"""Local sentence-transformers embeddings with L2 normalization"""
import asyncio
import logging
from typing import List, Optional

import numpy as np
from sentence_transformers import SentenceTransformer

from config import settings
from core.enums import EmbeddingTaskType
from infrastructure.embedding_services import BaseEmbeddingService

logger = logging.getLogger(settings.LOGGER_NAME)

class SentenceTransformerEmbedding(BaseEmbeddingService):
    """
    Offline provider. Vectors are unit length so that the store's cosine
    distance and a plain dot product agree. The task type is ignored: the
    model embeds queries and documents the same way.
    """

    _model: Optional[SentenceTransformer] = None  # Singleton cache

    def __init__(self, model_name: str = "paraphrase-multilingual-MiniLM-L12-v2", batch_size: int = 5):
        if SentenceTransformerEmbedding._model is None:
            try:
                logger.info(f"Attempting to load model {model_name} from local cache...")
                SentenceTransformerEmbedding._model = SentenceTransformer(model_name, local_files_only=True)
            except OSError as e:
                logger.warning(f"Model {model_name} not found in cache, downloading. Error: {e}")
                SentenceTransformerEmbedding._model = SentenceTransformer(model_name)
            logger.info(f"Loaded embedding model {model_name}")

        self.model = SentenceTransformerEmbedding._model
        super().__init__(dimension=self.model.get_sentence_embedding_dimension(), batch_size=batch_size)

    async def _embed_remote(self, text: str, task_type: EmbeddingTaskType) -> List[float]:
        raw = await asyncio.to_thread(self.model.encode, text, convert_to_tensor=False)
        vector = np.asarray(raw, dtype="float32")
        norm = float(np.linalg.norm(vector)) or 1e-12
        return (vector / norm).tolist()
