"""Error taxonomy for the ingestion and chat pipelines.

Every error carries an ErrorCode and a `message` that is safe to show to
an end user as a single sentence. Provider and retrieval degradations are
not errors: they are absorbed and logged where they happen.
"""
from typing import List, Optional

from core.enums import ErrorCode


class SadaqaError(Exception):
    """Base class for errors surfaced to the caller"""

    error_code: ErrorCode = ErrorCode.PROCESSING_FAILED

    def __init__(self, message: str, error_code: Optional[ErrorCode] = None):
        self.message = message
        if error_code is not None:
            self.error_code = error_code
        super().__init__(message)

    def __str__(self):
        # Format used for logging
        return f"[{self.error_code.value}] {self.message}"


class ConfigurationError(SadaqaError):
    """A required credential or setting is missing."""

    error_code = ErrorCode.CONFIGURATION_MISSING

    def __init__(self, missing: List[str]):
        self.missing = list(missing)
        names = ", ".join(self.missing)
        super().__init__(
            f"Configuration missing: set the environment variable(s) {names} and restart the service."
        )


class ValidationError(SadaqaError):
    """Malformed input, detected before any external call."""

    error_code = ErrorCode.INVALID_INPUT

    def __init__(self, message: str, field: str):
        self.field = field
        super().__init__(
            message,
            ErrorCode.FILE_TOO_LARGE if field == "size" else None,
        )


class UnsupportedFormatError(SadaqaError):
    """The uploaded file type is not one we can read."""

    error_code = ErrorCode.INVALID_FORMAT

    def __init__(self, filename: str, accepted: List[str]):
        self.filename = filename
        self.accepted = list(accepted)
        super().__init__(
            f"Unsupported file type for '{filename}'. Accepted formats: "
            f"{', '.join(ext.upper() for ext in self.accepted)}."
        )


class ExtractionError(SadaqaError):
    """The parsing library could not decode the file bytes."""

    error_code = ErrorCode.EXTRACTION_FAILED


class StoreWriteError(SadaqaError):
    """A vector-store upsert batch failed. Earlier batches stay persisted."""

    error_code = ErrorCode.STORE_WRITE_FAILED

    def __init__(self, batches_written: int, total_batches: int, cause: Exception):
        self.batches_written = batches_written
        self.total_batches = total_batches
        self.cause = cause
        super().__init__(
            f"Storing the document failed after {batches_written} of {total_batches} batch(es); "
            "the document may be partially indexed."
        )


class NoModelAvailableError(SadaqaError):
    """Every candidate generation model failed to start streaming."""

    error_code = ErrorCode.NO_MODEL_AVAILABLE

    def __init__(self, attempted_models: List[str], last_error: Optional[BaseException]):
        self.attempted_models = list(attempted_models)
        self.last_error = last_error
        detail = str(last_error) if last_error else "unknown"
        super().__init__(
            f"No generation model is available. Models tried: {', '.join(self.attempted_models)}. "
            f"Last error: {detail}. Check that the API key is valid and that the account has access to these models."
        )


class ModelUnavailableError(Exception):
    """The provider reports that a model does not exist or is not served (HTTP 404)."""

    def __init__(self, model: str, detail: str = ""):
        self.model = model
        super().__init__(f"Model '{model}' not found{': ' + detail if detail else ''}")


class GenerationStreamError(SadaqaError):
    """The provider failed after streaming had started."""

    error_code = ErrorCode.STREAM_FAILED
