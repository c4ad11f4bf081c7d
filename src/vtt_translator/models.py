"""Data models for subtitle documents and translation jobs."""

from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, List, Optional

if TYPE_CHECKING:
    from .session import ChatSession


_job_ids = itertools.count(1)


@dataclass
class VttDocument:
    """A subtitle file split into its header and opaque cue blocks."""

    header: str
    cues: List[str] = field(default_factory=list)

    @property
    def cue_count(self) -> int:
        return len(self.cues)

    def to_text(self) -> str:
        """Recombine header and cues with blank-line separators."""
        parts = [self.header] if self.header else []
        parts.extend(self.cues)
        return "\n\n".join(parts)


@dataclass
class Chunk:
    """A contiguous group of cues sent as one translation request."""

    index: int
    total: int
    text: str
    cue_count: int

    @property
    def is_initial(self) -> bool:
        return self.index == 0

    @property
    def label(self) -> str:
        return f"{self.index + 1}/{self.total}"


class JobStatus(str, Enum):
    QUEUED = "queued"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"


@dataclass
class TranslationJob:
    """One file moving through the queue."""

    source: Path
    id: int = field(default_factory=lambda: next(_job_ids))
    status: JobStatus = JobStatus.QUEUED
    output: str = ""
    error: Optional[str] = None
    current_chunk: int = 0
    total_chunks: int = 0
    streamed_chars: int = 0
    session: Optional["ChatSession"] = field(default=None, repr=False)

    @property
    def name(self) -> str:
        return self.source.name

    @property
    def is_finished(self) -> bool:
        return self.status in (JobStatus.COMPLETED, JobStatus.ERROR)

    def reset(self) -> None:
        """Return the job to ``queued`` with no output, error, session or progress."""
        self.status = JobStatus.QUEUED
        self.output = ""
        self.error = None
        self.session = None
        self.current_chunk = 0
        self.total_chunks = 0
        self.streamed_chars = 0


@dataclass
class QueueStats:
    """Job counts shown next to the queue."""

    total: int = 0
    completed: int = 0
    remaining: int = 0
    failed: int = 0

    @classmethod
    def from_jobs(cls, jobs: List[TranslationJob]) -> "QueueStats":
        return cls(
            total=len(jobs),
            completed=sum(1 for j in jobs if j.status is JobStatus.COMPLETED),
            remaining=sum(
                1 for j in jobs if j.status in (JobStatus.QUEUED, JobStatus.PROCESSING)
            ),
            failed=sum(1 for j in jobs if j.status is JobStatus.ERROR),
        )
