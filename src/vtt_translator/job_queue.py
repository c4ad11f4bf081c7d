"""
Job queue orchestrator.

Processes one file at a time, one chunk at a time, through the chunk retry
engine. Emits job updates and log events for the front end.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from pathlib import Path
from typing import Awaitable, Callable, Iterable, List, Optional

from .config import TranslatorConfig
from .errors import EmptyInput, JobCancelled, TranslatorError
from .glossary import Glossary
from .models import JobStatus, QueueStats, TranslationJob
from .parser import build_chunks, read_vtt, split_vtt_into_cues
from .progress import EventLog, NotificationType
from .session import TranslationContext, TranslationSessionClient
from .text_utils import count_cues, validate_translation
from .translator import CancellationToken, ChunkRetryEngine

logger = logging.getLogger(__name__)


class RunOutcome(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    STOPPED = "stopped"


class JobQueue:
    """
    Sequential translation queue.

    Jobs run strictly one after another; a failed job is marked ``error``
    and the run moves on, a stopped job goes back to ``queued``.
    """

    def __init__(
        self,
        session_client: TranslationSessionClient,
        config: TranslatorConfig | None = None,
        glossary: Glossary | None = None,
        events: EventLog | None = None,
        reader: Callable[[Path], str] = read_vtt,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.config = config or TranslatorConfig()
        self.glossary = glossary or Glossary()
        self.events = events if events is not None else EventLog()
        self.reader = reader
        self.sleep = sleep
        self.throttle = self.config.make_throttle()
        self.jobs: List[TranslationJob] = []
        self._cancel = CancellationToken()
        self._running = False

        # Callbacks
        self.on_job_updated: Optional[Callable[[TranslationJob], None]] = None

        self.engine = ChunkRetryEngine(
            session_client,
            self.throttle,
            max_retries=self.config.max_retries,
            base_delay=self.config.retry_base_delay,
            rate_limit_cooldown=self.config.rate_limit_cooldown,
            rate_limit_delay_step=self.config.rate_limit_delay_step,
            events=self.events,
            sleep=sleep,
            on_progress=self._emit,
        )

    # ── Queue management ──────────────────────────────────────────────

    @property
    def is_running(self) -> bool:
        return self._running

    def add_files(self, paths: Iterable[Path]) -> List[TranslationJob]:
        """Queue one job per file. Returns the created jobs."""
        created = [TranslationJob(source=Path(p)) for p in paths]
        self.jobs.extend(created)
        for job in created:
            self.events.info(f"Queued {job.name}")
        return created

    def get_job(self, job_id: int) -> Optional[TranslationJob]:
        return next((j for j in self.jobs if j.id == job_id), None)

    def clear(self) -> None:
        """Remove every job; refused while a run is active."""
        if self._running:
            raise RuntimeError("Cannot clear the queue while it is processing")
        self.jobs.clear()
        self.events.dismiss()

    def retry_job(self, job_id: int) -> bool:
        """Put a finished job back in the queue. Returns True if it was reset."""
        if self._running:
            return False
        job = self.get_job(job_id)
        if job is None or not job.is_finished:
            return False
        job.reset()
        self.events.dismiss()
        self.events.info(f"Re-queued {job.name}")
        self._emit(job)
        return True

    def cancel(self) -> None:
        """Ask the running queue to stop at its next checkpoint."""
        if self._running:
            self.events.warn("Stop requested; finishing the current request...")
        self._cancel.cancel()

    def stats(self) -> QueueStats:
        return QueueStats.from_jobs(self.jobs)

    # ── Processing ────────────────────────────────────────────────────

    async def process(self) -> RunOutcome:
        """Run every queued job in order and report the run outcome."""
        if self._running:
            raise RuntimeError("Queue is already processing")

        self._running = True
        self._cancel = CancellationToken()
        try:
            return await self._run()
        finally:
            self._running = False

    async def _run(self) -> RunOutcome:
        queued = [j for j in self.jobs if j.status is JobStatus.QUEUED]
        if not queued:
            self.events.notify(NotificationType.INFO, "No queued files to process.")
            return RunOutcome.SUCCESS

        self.events.notify(
            NotificationType.INFO,
            f"Starting translation process for {len(queued)} file(s)...",
        )

        failed = 0
        stopped = False

        for job in self.jobs:
            if job.status is not JobStatus.QUEUED:
                continue
            if self._cancel.cancelled:
                stopped = True
                break

            try:
                await self._process_job(job)
            except JobCancelled:
                self._drop_session(job)
                job.reset()
                self._emit(job)
                self.events.warn(f"{job.name}: stopped, returned to the queue")
                stopped = True
                break
            except (TranslatorError, OSError, UnicodeDecodeError) as e:
                job.status = JobStatus.ERROR
                job.error = str(e)
                self._drop_session(job)
                self._emit(job)
                self.events.error(f"Translation failed for {job.name}: {e}")
                failed += 1

            if self._has_queued() and not self._cancel.cancelled:
                await self.sleep(self.throttle.file_delay)

        if stopped:
            self.events.notify(
                NotificationType.INFO,
                "Processing stopped. Unfinished files are back in the queue.",
            )
            return RunOutcome.STOPPED

        if failed:
            self.events.notify(
                NotificationType.ERROR,
                f"{failed} file(s) failed. Retry them individually to try again.",
            )
            return RunOutcome.ERROR

        self.events.notify(NotificationType.SUCCESS, "All files translated successfully!")
        return RunOutcome.SUCCESS

    async def _process_job(self, job: TranslationJob) -> None:
        job.status = JobStatus.PROCESSING
        job.output = ""
        job.error = None
        job.session = None
        self._emit(job)

        source_text = self.reader(job.source)
        if not source_text.strip():
            raise EmptyInput("VTT file is empty or could not be read.")

        document = split_vtt_into_cues(source_text)
        if not document.cues:
            job.output = document.header
            job.status = JobStatus.COMPLETED
            self._emit(job)
            self.events.info(f"{job.name}: no cues found, header copied as-is")
            return

        chunks = build_chunks(document, self.config.chunk_size)
        job.total_chunks = len(chunks)
        context = TranslationContext(
            source_language=self.config.source_language,
            target_language=self.config.target_language,
            glossary=self.glossary,
        )
        self.events.info(
            f"{job.name}: {document.cue_count} cues in {len(chunks)} chunk(s)"
        )

        for chunk in chunks:
            self._cancel.check()

            job.current_chunk = chunk.index + 1
            self._emit(job)
            self.events.info(f"Translating {job.name} (chunk {chunk.label})...")

            await self.engine.translate_chunk(job, chunk, context, self._cancel)
            self._emit(job)

            if chunk.index < chunk.total - 1 and not self._cancel.cancelled:
                await self.sleep(self.throttle.chunk_delay)

        job.output = job.output.strip()
        translated = validate_translation(count_cues(source_text), job.output)

        job.status = JobStatus.COMPLETED
        self._drop_session(job)
        self._emit(job)
        self.events.info(f"{job.name}: completed ({translated}/{document.cue_count} cues)")

    def _drop_session(self, job: TranslationJob) -> None:
        self.engine.session_client.discard(job.session)
        job.session = None

    def _has_queued(self) -> bool:
        return any(j.status is JobStatus.QUEUED for j in self.jobs)

    def _emit(self, job: TranslationJob) -> None:
        if self.on_job_updated:
            self.on_job_updated(job)
