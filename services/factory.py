# services/factory.py
from functools import lru_cache

import chromadb
import httpx
from chromadb.api import ClientAPI
from fastapi import Depends

from config import settings
from core.interfaces import IEmbeddingService, ILLMService, IVectorStore
from infrastructure.embedding_services import GeminiEmbeddingService
from infrastructure.vector_stores import ChromaDBVectorStore
from services.chat_service import ChatService
from services.ingestion_service import IngestionService
from services.llm_service import GeminiLLMService

# Provider functions for each component

@lru_cache(maxsize=1)
def get_http_client() -> httpx.AsyncClient:
    """One connection pool shared by the embedding and generation clients; closed on shutdown."""
    return httpx.AsyncClient(timeout=settings.REQUEST_TIMEOUT)

@lru_cache(maxsize=1)
def get_chroma_client() -> ClientAPI:
    """One ChromaDB client per process; opened on first store access."""
    if settings.VECTOR_STORE_TYPE == "chroma_cloud":
        return chromadb.CloudClient(
            tenant=settings.VECTOR_STORE_ENVIRONMENT,
            database=settings.VECTOR_STORE_DATABASE,
            api_key=settings.VECTOR_STORE_API_KEY,
        )
    elif settings.VECTOR_STORE_TYPE == "chromadb":
        return chromadb.PersistentClient(path=settings.VECTOR_DB_PATH)
    else:
        raise ValueError(f"Unknown vector store type: {settings.VECTOR_STORE_TYPE}")

def get_vector_store() -> IVectorStore:
    """Create vector store based on configuration."""
    return ChromaDBVectorStore(
        get_chroma_client,
        collection_name=settings.VECTOR_STORE_INDEX_NAME,
        batch_size=settings.UPSERT_BATCH_SIZE,
    )

def get_embedding_service() -> IEmbeddingService:
    """Create embedding service based on configuration."""
    if settings.EMBEDDING_PROVIDER == "gemini":
        return GeminiEmbeddingService(
            api_key=settings.GEMINI_API_KEY,
            model=settings.EMBEDDING_MODEL_NAME,
            base_url=settings.GEMINI_BASE_URL,
            dimension=settings.EMBEDDING_DIMENSION,
            batch_size=settings.EMBEDDING_BATCH_SIZE,
            timeout=settings.REQUEST_TIMEOUT,
            client=get_http_client(),
        )
    elif settings.EMBEDDING_PROVIDER == "sentence_transformers":
        # Optional extra; only imported when selected
        from infrastructure.local_embeddings import SentenceTransformerEmbedding
        return SentenceTransformerEmbedding(
            settings.LOCAL_EMBEDDING_MODEL_NAME, batch_size=settings.EMBEDDING_BATCH_SIZE
        )
    else:
        raise ValueError(f"Unknown embedding provider: {settings.EMBEDDING_PROVIDER}")

def get_llm_service() -> ILLMService:
    """Create generation service based on configuration."""
    return GeminiLLMService(
        api_key=settings.GEMINI_API_KEY,
        base_url=settings.GEMINI_BASE_URL,
        timeout=settings.REQUEST_TIMEOUT,
        client=get_http_client(),
    )

# Main service providers using FastAPI DI
def get_ingestion_service(
    embedding_service: IEmbeddingService = Depends(get_embedding_service),
    vector_store: IVectorStore = Depends(get_vector_store),
) -> IngestionService:
    return IngestionService(
        embedding_service=embedding_service,
        vector_store=vector_store,
        chunk_size=settings.CHUNK_SIZE,
        chunk_overlap=settings.CHUNK_OVERLAP,
        max_chunks=settings.MAX_CHUNKS,
        max_file_size=settings.MAX_FILE_SIZE,
        allowed_extensions=settings.ALLOWED_FILE_EXTENSIONS,
        missing_credentials=settings.missing_credentials(),
    )

def get_chat_service(
    embedding_service: IEmbeddingService = Depends(get_embedding_service),
    vector_store: IVectorStore = Depends(get_vector_store),
    llm_service: ILLMService = Depends(get_llm_service),
) -> ChatService:
    """
    Create the chat service with full dependency injection.

    Missing credentials are handed over rather than raised here, so the
    caller gets the configuration message as a normal chat reply.
    """
    return ChatService(
        embedding_service=embedding_service,
        vector_store=vector_store,
        llm_service=llm_service,
        models=settings.GENERATION_MODELS,
        top_k=settings.TOP_K,
        missing_credentials=settings.missing_credentials(for_chat=True),
        min_length=settings.CHAT_MESSAGE_MIN_LENGTH,
        max_length=settings.CHAT_MESSAGE_MAX_LENGTH,
    )
