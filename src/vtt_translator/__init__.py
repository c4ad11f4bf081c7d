"""
VTT Translator - Chunked, session-aware LLM translator for WebVTT subtitles.

Features:
- Cue-aligned chunking that never splits a cue
- Stateful chat sessions: full instructions once, lean follow-ups after
- Cue-count validation per chunk and per document
- Retries with exponential and rate-limit-aware backoff
- Sequential batch queue with cooperative cancellation
"""

__version__ = "1.0.0"

from .models import VttDocument, Chunk, JobStatus, TranslationJob, QueueStats
from .parser import (
    split_vtt_into_cues,
    group_cues_into_chunks,
    build_chunks,
    read_vtt,
    save_vtt,
    validate_vtt_file,
    output_path_for,
)
from .text_utils import count_cues, validate_translation, validate_chunk, clean_chunk_response
from .errors import (
    TranslatorError,
    InvalidArgument,
    EmptyInput,
    TransportError,
    StructuralMismatch,
    ChunkExhausted,
    JobCancelled,
)
from .session import ChatSession, TranslationContext, TranslationSessionClient
from .translator import CancellationToken, ChunkRetryEngine
from .job_queue import JobQueue, RunOutcome
from .progress import EventLog, LogEvent, Notification
from .glossary import Glossary, load_glossary, parse_glossary
from .credentials import SecretStore, MemorySecretStore, DotenvSecretStore
from .config import TranslatorConfig, Throttle

__all__ = [
    # Models
    "VttDocument",
    "Chunk",
    "JobStatus",
    "TranslationJob",
    "QueueStats",
    "TranslatorConfig",
    "Throttle",
    "Glossary",
    # Parsing
    "split_vtt_into_cues",
    "group_cues_into_chunks",
    "build_chunks",
    "read_vtt",
    "save_vtt",
    "validate_vtt_file",
    "output_path_for",
    # Validation
    "count_cues",
    "validate_translation",
    "validate_chunk",
    "clean_chunk_response",
    # Errors
    "TranslatorError",
    "InvalidArgument",
    "EmptyInput",
    "TransportError",
    "StructuralMismatch",
    "ChunkExhausted",
    "JobCancelled",
    # Translation
    "ChatSession",
    "TranslationContext",
    "TranslationSessionClient",
    "CancellationToken",
    "ChunkRetryEngine",
    "JobQueue",
    "RunOutcome",
    # Events
    "EventLog",
    "LogEvent",
    "Notification",
    # Glossary
    "load_glossary",
    "parse_glossary",
    # Credentials
    "SecretStore",
    "MemorySecretStore",
    "DotenvSecretStore",
]
