# services/chat_service.py
"""Retrieval-augmented chat with ordered model failover"""
import logging
from typing import AsyncIterator, List, Optional, Sequence, Union

from config import settings
from core.domain import RetrievedContext, VectorMatch
from core.enums import ChatStage, EmbeddingTaskType
from core.errors import (
    ConfigurationError,
    ModelUnavailableError,
    NoModelAvailableError,
    ValidationError,
)
from core.interfaces import IEmbeddingService, IGenerationStream, ILLMService, IVectorStore
from services.prompts import build_prompt

logger = logging.getLogger(settings.LOGGER_NAME)

UNEXPECTED_ERROR_MESSAGE = "Sorry, an unexpected error occurred while preparing the answer. Please try again."


def to_context(match: VectorMatch) -> Optional[RetrievedContext]:
    """Label a store match as `<filename> (Chunk n)`; None when it has no stored text."""
    text = str(match.metadata.get("text") or "")
    if not text:
        return None

    source = match.metadata.get("filename") or "Document"
    chunk_index = match.metadata.get("chunkIndex")
    if chunk_index is not None:
        source = f"{source} (Chunk {int(chunk_index) + 1})"

    return RetrievedContext(source_label=source, similarity_score=match.score or 0.0, text=text)


class ChatService:
    """
    One chat turn: embed the question, retrieve context, assemble the
    prompt, then stream from the first generation model that answers.

    `chat` returns either an async iterator of text fragments or a single
    message string when the turn could not start.
    """

    def __init__(
        self,
        embedding_service: IEmbeddingService,
        vector_store: IVectorStore,
        llm_service: ILLMService,
        models: Sequence[str],
        top_k: int = 5,
        missing_credentials: Sequence[str] = (),
        min_length: int = 1,
        max_length: int = 2000,
    ):
        if not models:
            raise ValueError("At least one generation model is required")
        self.embedding_service = embedding_service
        self.vector_store = vector_store
        self.llm_service = llm_service
        self.models = list(models)
        self.top_k = top_k
        self.missing_credentials = list(missing_credentials)
        self.min_length = min_length
        self.max_length = max_length

    def validate_message(self, message: str) -> None:
        if not self.min_length <= len(message or "") <= self.max_length:
            raise ValidationError(
                f"Message must be between {self.min_length} and {self.max_length} characters.",
                field="message",
            )

    async def chat(self, message: str) -> Union[AsyncIterator[str], str]:
        logger.debug(f"Stage {ChatStage.IDLE.value}: turn received ({len(message)} chars)")
        self.validate_message(message)

        if self.missing_credentials:
            error = ConfigurationError(self.missing_credentials)
            logger.error(f"Chat unavailable: {error}")
            return error.message

        try:
            blocks = await self.retrieve_context(message)
            prompt = build_prompt(message, blocks)
            stream = await self.open_first_available(prompt)
        except NoModelAvailableError as e:
            logger.error(f"Chat failed: {e}")
            return e.message
        except Exception as e:
            logger.error(f"Unexpected chat failure: {e}", exc_info=True)
            return UNEXPECTED_ERROR_MESSAGE

        logger.info(f"Stage {ChatStage.STREAMING.value}: model '{stream.model}'")
        return self._forward(stream)

    async def retrieve_context(self, message: str) -> List[RetrievedContext]:
        """Never raises: a failed embedding or store query means an empty context."""
        try:
            logger.debug(f"Stage {ChatStage.EMBEDDING.value}")
            vector = await self.embedding_service.embed(message, EmbeddingTaskType.RETRIEVAL_QUERY)
            logger.debug(f"Stage {ChatStage.RETRIEVING.value}")
            matches = await self.vector_store.query(vector, top_k=self.top_k)
        except Exception as e:
            logger.warning(f"Retrieval failed, answering without context: {e}")
            return []

        blocks = [block for block in map(to_context, matches) if block is not None]
        logger.info(f"Retrieved {len(blocks)} context block(s)")
        return blocks

    async def open_first_available(self, prompt: str) -> IGenerationStream:
        """
        Try each model in order and return the first stream that opens.

        Raises:
            NoModelAvailableError: every model failed; carries the list and the last error.
        """
        logger.debug(f"Stage {ChatStage.GENERATING.value}")
        last_error: Optional[BaseException] = None

        for model in self.models:
            try:
                return await self.llm_service.open_stream(model, prompt)
            except ModelUnavailableError as e:
                logger.warning(f"Model '{model}' unavailable, trying next: {e}")
                last_error = e
            except Exception as e:
                logger.warning(f"Model '{model}' failed, trying next: {e}")
                last_error = e

        raise NoModelAvailableError(self.models, last_error)

    async def _forward(self, stream: IGenerationStream) -> AsyncIterator[str]:
        try:
            async for fragment in stream.fragments():
                yield fragment
            logger.info(f"Stage {ChatStage.DONE.value}: stream from '{stream.model}' completed")
        finally:
            await stream.aclose()
