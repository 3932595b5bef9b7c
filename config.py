# config.py
"""Application configuration loaded from the environment (.env supported)"""
from typing import List, Optional
from pydantic_settings import BaseSettings
from utils.common import get_log_file_path

class Settings(BaseSettings):
    """Application configuration"""

    # Logging
    LOGGER_NAME: str = "sadaqa"
    LOG_FILE_PATH: str = get_log_file_path()
    LOG_LEVEL: str = "INFO"

    # App metadata
    APP_TITLE: str = "Sadaqa Document Assistant"
    APP_VERSION: str = "1.0.0"

    # Embedding / generation provider (Google Generative Language API)
    GEMINI_API_KEY: Optional[str] = None
    GEMINI_BASE_URL: str = "https://generativelanguage.googleapis.com/v1beta"
    REQUEST_TIMEOUT: float = 60.0

    # Embeddings
    EMBEDDING_PROVIDER: str = "gemini"  # Options: gemini, sentence_transformers
    EMBEDDING_MODEL_NAME: str = "text-embedding-004"
    LOCAL_EMBEDDING_MODEL_NAME: str = "paraphrase-multilingual-MiniLM-L12-v2"
    EMBEDDING_DIMENSION: int = 768
    EMBEDDING_BATCH_SIZE: int = 5

    # Generation models, tried in order
    GENERATION_MODELS: List[str] = [
        "gemini-2.5-pro",
        "gemini-2.5-flash",
        "gemini-2.5-pro-exp",
        "gemini-2.5-flash-exp",
        "gemini-2.0-flash-exp",
        "gemini-2.0-flash",
        "gemini-1.5-flash",
        "gemini-1.5-pro",
    ]

    # Vector store
    VECTOR_STORE_TYPE: str = "chroma_cloud"  # Options: chroma_cloud, chromadb
    VECTOR_STORE_API_KEY: Optional[str] = None
    VECTOR_STORE_INDEX_NAME: str = "casa-ramadan-2026"
    VECTOR_STORE_ENVIRONMENT: Optional[str] = None
    VECTOR_STORE_DATABASE: str = "default_database"
    VECTOR_DB_PATH: str = "./vector_db"
    UPSERT_BATCH_SIZE: int = 100

    # Document processing
    CHUNK_SIZE: int = 1000
    CHUNK_OVERLAP: int = 200
    MAX_CHUNKS: int = 10000
    MAX_FILE_SIZE: int = 10 * 1024 * 1024
    ALLOWED_FILE_EXTENSIONS: List[str] = ["pdf", "txt", "xlsx", "xls"]

    # Retrieval / chat
    TOP_K: int = 5
    CHAT_MESSAGE_MIN_LENGTH: int = 1
    CHAT_MESSAGE_MAX_LENGTH: int = 2000

    @property
    def requires_store_key(self) -> bool:
        return self.VECTOR_STORE_TYPE == "chroma_cloud"

    def missing_credentials(self, for_chat: bool = False) -> List[str]:
        """
        Names of required environment variables that are not set.

        The provider key is always required for chat (generation), but only
        required at ingestion when embeddings come from the remote provider.
        """
        missing = []
        if not self.GEMINI_API_KEY and (for_chat or self.EMBEDDING_PROVIDER == "gemini"):
            missing.append("GEMINI_API_KEY")
        if self.requires_store_key and not self.VECTOR_STORE_API_KEY:
            missing.append("VECTOR_STORE_API_KEY")
        return missing

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"

settings = Settings()
