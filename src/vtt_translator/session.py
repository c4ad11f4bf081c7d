"""Stateful chat sessions used to translate one job chunk by chunk."""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass, field
from typing import AsyncIterator, Dict, List, Optional

from openai import AsyncOpenAI

from .glossary import Glossary
from .llm_client import stream_chat
from .text_utils import TRANSLATED_END_MARKER, TRANSLATED_START_MARKER

logger = logging.getLogger(__name__)

_session_ids = itertools.count(1)


@dataclass
class TranslationContext:
    """Per-job translation settings embedded in the prompts."""

    source_language: str = "English"
    target_language: str = "Vietnamese"
    glossary: Glossary = field(default_factory=Glossary)


@dataclass
class ChatSession:
    """
    Client-side conversation state.

    The remote endpoint is stateless; the session is the message history
    replayed with every follow-up request. A discarded session is never
    reused.
    """

    id: int = field(default_factory=lambda: next(_session_ids))
    messages: List[Dict[str, str]] = field(default_factory=list)
    active: bool = True

    @property
    def turns(self) -> int:
        """Number of completed assistant replies."""
        return sum(1 for m in self.messages if m["role"] == "assistant")


def build_first_message(chunk_text: str, context: TranslationContext) -> str:
    """Full instructions plus the chunk; used whenever a session starts."""
    src = context.source_language
    dst = context.target_language

    glossary_section = ""
    if context.glossary:
        glossary_list = "\n".join(f"  - {t}" for t in context.glossary.format_terms())
        glossary_section = f"""
## Glossary (must use these translations):
{glossary_list}
"""

    return f"""You are a WebVTT subtitle translation engine.

Your task is to translate the subtitle text from {src} to {dst} without modifying the WebVTT structure in any way.

## Hard rules (absolutely no exceptions):
1. Do NOT modify timestamps.
2. Do NOT merge, split or reorder cues.
3. Do NOT alter cue identifiers, blank lines, or formatting.
4. Keep inline tags such as <i>, <b>, <v Speaker> and <c.class> exactly as they are; translate only the text between them.
5. Preserve technical terms, code identifiers (camelCase, snake_case, model.fit()), file paths and acronyms (API, CLI, GPU).
6. The number of lines inside each cue must stay the same.
7. Only translate natural-language sentences.
8. If the input does not start with a WEBVTT header, do not add one.
{glossary_section}
## Output requirements:
Start your answer with the line '{TRANSLATED_START_MARKER}', followed by the translated content, and finish with the line '{TRANSLATED_END_MARKER}'.
No other explanation or commentary.

More parts of the same file may follow in this conversation; translate each of them under the same rules.

BEGIN INPUT VTT
{chunk_text}
END INPUT VTT"""


def build_follow_up_message(chunk_text: str, context: TranslationContext) -> str:
    """Short reminder plus the chunk; relies on the conversation's context."""
    terms = context.glossary.format_terms(context.glossary.find_matches(chunk_text))
    glossary_hint = f"\nGlossary: {'; '.join(terms)}" if terms else ""

    return f"""Next part of the same file. Same rules: translate {context.source_language} to {context.target_language}, keep every timestamp, cue, tag and line count unchanged, no markers, no commentary.{glossary_hint}

{chunk_text}"""


class TranslationSessionClient:
    """
    Sends chunks through a chat conversation.

    Retry policy is not handled here; every transport failure reaches the
    caller as a ``TransportError``.
    """

    def __init__(self, client: AsyncOpenAI, model: str, temperature: float = 0.3):
        self.client = client
        self.model = model
        self.temperature = temperature

    async def send(
        self,
        session: Optional[ChatSession],
        chunk_text: str,
        context: TranslationContext,
    ) -> tuple[ChatSession, AsyncIterator[str]]:
        """
        Send one chunk.

        Args:
            session: Live session of the job, or None to start a new one
            chunk_text: Cue content to translate
            context: Languages and glossary

        Returns:
            (session, stream of response fragments)
        """
        if session is None or not session.active:
            session = ChatSession()
            content = build_first_message(chunk_text, context)
            logger.debug(f"Session #{session.id}: first message ({len(content)} chars)")
        else:
            content = build_follow_up_message(chunk_text, context)
            logger.debug(f"Session #{session.id}: follow-up #{session.turns + 1} ({len(content)} chars)")

        session.messages.append({"role": "user", "content": content})
        stream = await stream_chat(self.client, self.model, session.messages, self.temperature)
        return session, self._record_reply(session, stream)

    async def _record_reply(self, session: ChatSession, stream: AsyncIterator[str]) -> AsyncIterator[str]:
        parts: List[str] = []
        async for fragment in stream:
            parts.append(fragment)
            yield fragment
        # 完整回复写入历史，后续请求依赖它
        session.messages.append({"role": "assistant", "content": "".join(parts)})

    def discard(self, session: Optional[ChatSession]) -> None:
        """Drop a session after a failed attempt."""
        if session is None:
            return
        session.active = False
        session.messages.clear()
        logger.debug(f"Session #{session.id} discarded")
