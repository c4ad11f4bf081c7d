"""Error taxonomy for the translation pipeline."""

from __future__ import annotations

from enum import Enum


class APIErrorType(Enum):
    """API 错误类型分类。"""
    RATE_LIMIT = "rate_limit"      # 429 / quota, 额外冷却
    CONNECTION = "connection"       # 网络问题
    AUTH = "auth"                   # 401
    SAFETY = "safety"               # 内容被拦截
    BAD_REQUEST = "bad_request"     # 400
    SERVER = "server"               # 500+
    UNKNOWN = "unknown"


class TranslatorError(Exception):
    """Base class for all pipeline errors."""


class InvalidArgument(TranslatorError, ValueError):
    """Malformed configuration, e.g. a non-positive chunk size."""


class EmptyInput(TranslatorError):
    """The source document has no content."""


class TransportError(TranslatorError):
    """A remote call failed; ``message`` is already user-facing."""

    def __init__(self, message: str, category: APIErrorType = APIErrorType.UNKNOWN):
        self.message = message
        self.category = category
        super().__init__(message)

    @property
    def is_rate_limit(self) -> bool:
        return self.category is APIErrorType.RATE_LIMIT


class StructuralMismatch(TranslatorError):
    """Cue count outside the accepted band, at chunk or document scope."""

    def __init__(self, original: int, translated: int, scope: str = "document"):
        self.original = original
        self.translated = translated
        self.scope = scope
        if scope == "chunk":
            message = (
                f"Chunk validation failed: expected {original} cues, "
                f"got {translated}."
            )
        else:
            message = (
                "Validation Failed: The output has a mismatched number of subtitle cues. "
                f"Original: {original}, Translated: {translated}. "
                "The AI likely produced an incomplete or malformed response."
            )
        super().__init__(message)


class ChunkExhausted(TranslatorError):
    """Retry budget for a single chunk is spent."""

    def __init__(self, chunk_index: int, total: int, attempts: int, last_error: Exception | None):
        self.chunk_index = chunk_index
        self.total = total
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(
            f"Failed on chunk {chunk_index + 1}/{total} after {attempts} attempts. "
            f"Details: {last_error}"
        )


class JobCancelled(TranslatorError):
    """Raised at a checkpoint once the user asked the run to stop."""
