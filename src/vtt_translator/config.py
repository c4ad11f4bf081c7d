"""Configuration and constants."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

# Load environment variables once
load_dotenv()


# Name under which the API credential is stored
API_KEY_NAME = "DEEPSEEK_API_KEY"

DEFAULT_BASE_URL = "https://api.deepseek.com"
DEFAULT_MODEL = "deepseek-chat"

# Number of cues per chunk
DEFAULT_CHUNK_SIZE = 70
MAX_CHUNK_SIZE = 500

# Delays are user-tunable in seconds, bounded by MAX_DELAY
DEFAULT_CHUNK_DELAY = 3.0
DEFAULT_FILE_DELAY = 5.0
MAX_DELAY = 30.0

DEFAULT_MAX_RETRIES = 3
MAX_RETRIES_LIMIT = 10

# Default glossary filename
DEFAULT_GLOSSARY_FILENAME = "glossary.txt"

# Supported file extensions
SUPPORTED_EXTENSIONS = {".vtt"}

# Largest accepted input file
MAX_FILE_SIZE = 50 * 1024 * 1024


@dataclass
class Throttle:
    """
    Run-wide pacing settings shared by the queue and the retry engine.

    The queue reads the delays; only the chunk attempt that is currently
    running may raise ``chunk_delay`` after hitting a rate limit.
    """

    chunk_delay: float = DEFAULT_CHUNK_DELAY
    file_delay: float = DEFAULT_FILE_DELAY
    max_delay: float = MAX_DELAY

    def raise_chunk_delay(self, step: float) -> float:
        """Increase the inter-chunk delay by ``step`` (capped) and return it."""
        self.chunk_delay = min(self.chunk_delay + step, self.max_delay)
        return self.chunk_delay


@dataclass
class TranslatorConfig:
    """Configuration for subtitle translator."""

    # API settings
    api_key: Optional[str] = None
    base_url: str = DEFAULT_BASE_URL
    model_name: str = DEFAULT_MODEL
    temperature: float = 0.3
    request_timeout: float = 300.0

    # Languages
    source_language: str = "English"
    target_language: str = "Vietnamese"

    # Processing settings
    chunk_size: int = DEFAULT_CHUNK_SIZE
    max_retries: int = DEFAULT_MAX_RETRIES
    chunk_delay: float = DEFAULT_CHUNK_DELAY
    file_delay: float = DEFAULT_FILE_DELAY

    # Backoff settings
    retry_base_delay: float = 2.0
    rate_limit_cooldown: float = 30.0
    rate_limit_delay_step: float = 5.0

    # Output settings
    output_suffix: str = "_vi"

    def __post_init__(self):
        """Load API key from environment if not provided."""
        if self.api_key is None:
            self.api_key = os.environ.get(API_KEY_NAME)

    @classmethod
    def from_args(cls, args) -> "TranslatorConfig":
        """Create config from argparse namespace."""
        return cls(
            api_key=getattr(args, 'api_key', None) or None,
            base_url=getattr(args, 'base_url', DEFAULT_BASE_URL),
            model_name=getattr(args, 'model_name', DEFAULT_MODEL),
            source_language=getattr(args, 'source_language', "English"),
            target_language=getattr(args, 'target_language', "Vietnamese"),
            chunk_size=getattr(args, 'chunk_size', DEFAULT_CHUNK_SIZE),
            max_retries=getattr(args, 'max_retries', DEFAULT_MAX_RETRIES),
            chunk_delay=getattr(args, 'chunk_delay', DEFAULT_CHUNK_DELAY),
            file_delay=getattr(args, 'file_delay', DEFAULT_FILE_DELAY),
            output_suffix=getattr(args, 'suffix', "_vi"),
        )

    def make_throttle(self) -> Throttle:
        """Create the shared pacing settings for one run."""
        return Throttle(chunk_delay=self.chunk_delay, file_delay=self.file_delay)

    def validate(self) -> Optional[str]:
        """
        Validate configuration.

        Returns:
            Error message if invalid, None if valid
        """
        if not self.api_key:
            return f"API key is required. Set {API_KEY_NAME}, use --api-key or --save-key"

        if self.chunk_size < 1 or self.chunk_size > MAX_CHUNK_SIZE:
            return f"Chunk size must be 1-{MAX_CHUNK_SIZE}, got {self.chunk_size}"

        if self.max_retries < 0 or self.max_retries > MAX_RETRIES_LIMIT:
            return f"Max retries must be 0-{MAX_RETRIES_LIMIT}, got {self.max_retries}"

        for name in ("chunk_delay", "file_delay"):
            value = getattr(self, name)
            if value < 0 or value > MAX_DELAY:
                return f"{name.replace('_', ' ').capitalize()} must be 0-{MAX_DELAY:g}s, got {value}"

        return None
