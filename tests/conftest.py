"""Shared fakes for translation tests."""

from typing import List, Optional

import pytest

from vtt_translator.session import ChatSession, TranslationContext


SAMPLE_VTT = """WEBVTT

1
00:00:01.000 --> 00:00:03.500
Hello world

2
00:00:04.000 --> 00:00:06.500
<v Anna>How are you?

3
00:00:07.000 --> 00:00:09.000
Goodbye
"""


def translate_text(text: str) -> str:
    """Fake translation that keeps the structure intact."""
    return text.replace("Hello", "Xin chào").replace("Goodbye", "Tạm biệt")


class FakeSessionClient:
    """
    Records every send and replays scripted responses.

    Each scripted response is an exception (raised by send), a string
    (returned as is), or a callable taking the chunk text. Once the script
    runs out, chunks are "translated" with translate_text.
    """

    def __init__(self, responses: Optional[list] = None, fragment_size: int = 7):
        self.responses = list(responses or [])
        self.fragment_size = fragment_size
        self.calls: List[dict] = []
        self.discarded: List[int] = []
        self.on_send = None

    async def send(self, session, chunk_text, context: TranslationContext):
        is_new = session is None or not session.active
        if is_new:
            session = ChatSession()
        self.calls.append({
            "session_id": session.id,
            "first_message": is_new,
            "text": chunk_text,
        })
        if self.on_send:
            self.on_send(len(self.calls))

        response = self.responses.pop(0) if self.responses else translate_text
        if isinstance(response, Exception):
            raise response
        text = response(chunk_text) if callable(response) else response
        return session, self._stream(text)

    async def _stream(self, text):
        for i in range(0, len(text), self.fragment_size):
            yield text[i:i + self.fragment_size]

    def discard(self, session):
        if session is None:
            return
        session.active = False
        self.discarded.append(session.id)


class SleepRecorder:
    """Drop-in for asyncio.sleep that only records the delays."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def fake_client():
    return FakeSessionClient()


@pytest.fixture
def sleeper():
    return SleepRecorder()
