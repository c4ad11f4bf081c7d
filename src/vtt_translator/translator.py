"""Chunk retry engine: drives one chunk to an accepted translation."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional

from .config import Throttle
from .errors import ChunkExhausted, JobCancelled, StructuralMismatch, TransportError
from .models import Chunk, TranslationJob
from .progress import EventLog
from .session import TranslationContext, TranslationSessionClient
from .text_utils import clean_chunk_response, validate_chunk

logger = logging.getLogger(__name__)

# 流式输出时刷新界面的最小间隔（秒）
UI_UPDATE_INTERVAL = 0.2


class CancellationToken:
    """Cooperative stop flag polled at safe checkpoints."""

    def __init__(self):
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def check(self) -> None:
        """Raise JobCancelled if a stop was requested."""
        if self._cancelled:
            raise JobCancelled("Processing stopped by user")


class ChunkRetryEngine:
    """
    Sends a chunk through the job's session until it validates.

    Every failed attempt discards the session, so the next attempt starts
    a fresh conversation with the full instructions.
    """

    def __init__(
        self,
        session_client: TranslationSessionClient,
        throttle: Throttle,
        max_retries: int = 3,
        base_delay: float = 2.0,
        rate_limit_cooldown: float = 30.0,
        rate_limit_delay_step: float = 5.0,
        events: Optional[EventLog] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        on_progress: Optional[Callable[[TranslationJob], None]] = None,
    ):
        self.session_client = session_client
        self.throttle = throttle
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.rate_limit_cooldown = rate_limit_cooldown
        self.rate_limit_delay_step = rate_limit_delay_step
        self.events = events if events is not None else EventLog()
        self.sleep = sleep
        self.on_progress = on_progress

    @property
    def max_attempts(self) -> int:
        return 1 + self.max_retries

    def compute_backoff(self, attempt: int, error: Exception) -> float:
        """
        Delay before the next attempt.

        Exponential in the attempt number; a rate-limit failure adds a fixed
        cooldown on top.
        """
        delay = self.base_delay * (2 ** (attempt - 1))
        if isinstance(error, TransportError) and error.is_rate_limit:
            delay += self.rate_limit_cooldown
        return delay

    async def translate_chunk(
        self,
        job: TranslationJob,
        chunk: Chunk,
        context: TranslationContext,
        cancel: CancellationToken,
    ) -> str:
        """
        Translate one chunk and append it to ``job.output``.

        Args:
            job: Owner of the session and the running output
            chunk: Chunk to translate
            context: Languages and glossary
            cancel: Polled before every attempt

        Returns:
            Cleaned chunk translation

        Raises:
            JobCancelled: if a stop was requested at a checkpoint
            ChunkExhausted: once every attempt failed
        """
        last_error: Optional[Exception] = None

        for attempt in range(1, self.max_attempts + 1):
            cancel.check()

            try:
                text = await self._attempt(job, chunk, context)
            except (TransportError, StructuralMismatch) as e:
                last_error = e
                self.session_client.discard(job.session)
                job.session = None

                if isinstance(e, TransportError) and e.is_rate_limit:
                    new_delay = self.throttle.raise_chunk_delay(self.rate_limit_delay_step)
                    self.events.warn(f"Rate limit hit; chunk delay raised to {new_delay:g}s")

                if attempt >= self.max_attempts:
                    break

                delay = self.compute_backoff(attempt, e)
                self.events.warn(
                    f"{job.name}: chunk {chunk.label} attempt {attempt}/{self.max_attempts} "
                    f"failed: {str(e).rstrip('.')}. Retrying in {delay:g}s with a new session..."
                )
                await self.sleep(delay)
                continue

            job.output += text + "\n\n"
            if attempt > 1:
                self.events.info(f"{job.name}: chunk {chunk.label} succeeded on attempt {attempt}")
            return text

        # 最后一次尝试期间收到的停止请求优先于失败
        cancel.check()
        raise ChunkExhausted(chunk.index, chunk.total, self.max_attempts, last_error)

    async def _attempt(self, job: TranslationJob, chunk: Chunk, context: TranslationContext) -> str:
        session, stream = await self.session_client.send(job.session, chunk.text, context)
        job.session = session

        parts = []
        job.streamed_chars = 0
        last_update = 0.0
        async for fragment in stream:
            parts.append(fragment)
            job.streamed_chars += len(fragment)
            now = time.monotonic()
            if self.on_progress and now - last_update > UI_UPDATE_INTERVAL:
                self.on_progress(job)
                last_update = now

        text = clean_chunk_response("".join(parts), keep_header=chunk.is_initial)
        validate_chunk(chunk.cue_count, text)
        return text
