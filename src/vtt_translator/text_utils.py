"""Cue counting, structural validation and response cleanup."""

from __future__ import annotations

import re

from .errors import StructuralMismatch


# 时间轴分隔符，每个 cue 恰好一个
CUE_MARKER = "-->"

# Framing markers the first message asks the model to emit
TRANSLATED_START_MARKER = "=== TRANSLATED VTT ==="
TRANSLATED_END_MARKER = "=== END OF TRANSLATION ==="

# Document-scope tolerance: at least 95% of the cues, at most 5 extra
MIN_RATIO_PERCENT = 95
MAX_EXTRA_CUES = 5

_FENCE_START = re.compile(r'^```[\w-]*[ \t]*\n')
_FENCE_END = re.compile(r'\n?```\s*$')


def count_cues(text: str | None) -> int:
    """Count subtitle cues by their timestamp arrows; blank-line spacing is ignored."""
    if not text:
        return 0
    return text.count(CUE_MARKER)


def min_accepted_cues(original_count: int) -> int:
    """Smallest cue count accepted for a document of ``original_count`` cues."""
    return (original_count * MIN_RATIO_PERCENT + 99) // 100


def validate_translation(original_count: int, translated_text: str) -> int:
    """
    Validate a fully assembled translation against the source cue count.

    Args:
        original_count: Cues in the source document
        translated_text: Assembled translation

    Returns:
        Translated cue count

    Raises:
        StructuralMismatch: if the count is outside the tolerance band
    """
    translated_count = count_cues(translated_text)

    is_sufficient = translated_count >= min_accepted_cues(original_count)
    is_not_excessive = translated_count <= original_count + MAX_EXTRA_CUES

    if not (is_sufficient and is_not_excessive):
        raise StructuralMismatch(original_count, translated_count, scope="document")

    return translated_count


def validate_chunk(expected_count: int, translated_text: str) -> None:
    """
    Validate one chunk response; the cue count must match exactly.

    Raises:
        StructuralMismatch: on any difference
    """
    translated_count = count_cues(translated_text)
    if translated_count != expected_count:
        raise StructuralMismatch(expected_count, translated_count, scope="chunk")


def strip_markers(text: str) -> str:
    """Remove the start/end framing markers."""
    return text.replace(TRANSLATED_START_MARKER, '').replace(TRANSLATED_END_MARKER, '')


def clean_chunk_response(text: str, keep_header: bool = True) -> str:
    """
    Clean a raw chunk response before it is validated and appended.

    Args:
        text: Accumulated stream text
        keep_header: False for chunks that were sent without a header; a
            leading ``WEBVTT`` block the model added on its own is dropped

    Returns:
        Trimmed cue content
    """
    if not text:
        return ""

    text = strip_markers(text).strip()

    # 移除可能的 markdown 代码块
    text = _FENCE_START.sub('', text)
    text = _FENCE_END.sub('', text)
    text = text.strip()

    if not keep_header and text.startswith("WEBVTT"):
        head, sep, rest = text.partition('\n\n')
        if CUE_MARKER not in head:
            text = rest.strip() if sep else ""

    return text
