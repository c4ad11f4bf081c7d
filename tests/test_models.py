"""Tests for data models and configuration."""

import pytest
from pathlib import Path
from types import SimpleNamespace

from vtt_translator.config import MAX_DELAY, Throttle, TranslatorConfig
from vtt_translator.models import JobStatus, QueueStats, TranslationJob, VttDocument
from vtt_translator.session import ChatSession


class TestVttDocument:

    def test_to_text(self):
        doc = VttDocument("WEBVTT", ["00:00:01.000 --> 00:00:02.000\nA", "00:00:03.000 --> 00:00:04.000\nB"])
        assert doc.to_text() == "WEBVTT\n\n00:00:01.000 --> 00:00:02.000\nA\n\n00:00:03.000 --> 00:00:04.000\nB"
        assert doc.cue_count == 2

    def test_to_text_without_header(self):
        doc = VttDocument("", ["00:00:01.000 --> 00:00:02.000\nA"])
        assert doc.to_text() == "00:00:01.000 --> 00:00:02.000\nA"


class TestTranslationJob:

    def test_defaults(self):
        job = TranslationJob(source=Path("/tmp/talk.vtt"))
        assert job.status is JobStatus.QUEUED
        assert job.name == "talk.vtt"
        assert job.output == ""
        assert job.session is None

    def test_unique_ids(self):
        a = TranslationJob(source=Path("a.vtt"))
        b = TranslationJob(source=Path("b.vtt"))
        assert a.id != b.id

    def test_reset(self):
        job = TranslationJob(source=Path("a.vtt"))
        job.status = JobStatus.ERROR
        job.output = "partial"
        job.error = "boom"
        job.session = ChatSession()
        job.current_chunk, job.total_chunks = 2, 3

        job.reset()

        assert job.status is JobStatus.QUEUED
        assert job.output == ""
        assert job.error is None
        assert job.session is None
        assert (job.current_chunk, job.total_chunks) == (0, 0)


class TestQueueStats:

    def test_from_jobs(self):
        statuses = [JobStatus.QUEUED, JobStatus.PROCESSING, JobStatus.COMPLETED, JobStatus.ERROR, JobStatus.COMPLETED]
        jobs = []
        for status in statuses:
            job = TranslationJob(source=Path("x.vtt"))
            job.status = status
            jobs.append(job)

        assert QueueStats.from_jobs(jobs) == QueueStats(total=5, completed=2, remaining=2, failed=1)


class TestConfig:

    def test_validate_ok(self):
        assert TranslatorConfig(api_key="sk-test").validate() is None

    def test_missing_api_key(self, monkeypatch):
        monkeypatch.delenv("DEEPSEEK_API_KEY", raising=False)
        assert "API key is required" in TranslatorConfig().validate()

    def test_api_key_from_env(self, monkeypatch):
        monkeypatch.setenv("DEEPSEEK_API_KEY", "sk-env")
        assert TranslatorConfig().api_key == "sk-env"

    @pytest.mark.parametrize("changes,fragment", [
        ({"chunk_size": 0}, "Chunk size"),
        ({"max_retries": -1}, "Max retries"),
        ({"chunk_delay": MAX_DELAY + 1}, "Chunk delay"),
        ({"file_delay": -1}, "File delay"),
    ])
    def test_validate_ranges(self, changes, fragment):
        config = TranslatorConfig(api_key="sk-test", **changes)
        assert fragment in config.validate()

    def test_from_args(self):
        args = SimpleNamespace(api_key="sk-arg", chunk_size=20, chunk_delay=1.0, suffix="_fr")
        config = TranslatorConfig.from_args(args)
        assert config.api_key == "sk-arg"
        assert config.chunk_size == 20
        assert config.chunk_delay == 1.0
        assert config.output_suffix == "_fr"
        assert config.file_delay == 5.0


class TestThrottle:

    def test_raise_is_capped(self):
        throttle = Throttle(chunk_delay=20.0)
        assert throttle.raise_chunk_delay(5.0) == 25.0
        assert throttle.raise_chunk_delay(10.0) == MAX_DELAY
        assert throttle.chunk_delay == MAX_DELAY

    def test_make_throttle_copies_delays(self):
        config = TranslatorConfig(api_key="x", chunk_delay=2.0, file_delay=4.0)
        throttle = config.make_throttle()
        throttle.raise_chunk_delay(5.0)
        assert (throttle.chunk_delay, throttle.file_delay) == (7.0, 4.0)
        assert config.chunk_delay == 2.0
