"""VTT file splitting, chunking and file I/O utilities."""

from __future__ import annotations

import re
import logging
from pathlib import Path
from typing import List, Sequence, Optional

from .config import MAX_FILE_SIZE, SUPPORTED_EXTENSIONS
from .errors import InvalidArgument
from .models import Chunk, VttDocument
from .text_utils import CUE_MARKER, count_cues

logger = logging.getLogger(__name__)


def normalize_newlines(content: str) -> str:
    return content.replace('\r\n', '\n').replace('\r', '\n')


def split_vtt_into_cues(content: str) -> VttDocument:
    """
    Split subtitle content into its header and individual cue blocks.

    The cue block containing the first timestamp line starts at the nearest
    preceding blank line, so an identifier line above the timestamp belongs
    to the cue rather than to the header.

    Args:
        content: Raw file content

    Returns:
        VttDocument; without any timestamp line the whole trimmed input is
        the header and there are no cues
    """
    text = normalize_newlines(content or "")
    lines = text.split('\n')

    first_cue_line = -1
    for i, line in enumerate(lines):
        if CUE_MARKER in line:
            start = i
            while start > 0 and lines[start - 1].strip() != '':
                start -= 1
            first_cue_line = start
            break

    if first_cue_line == -1:
        return VttDocument(header=text.strip(), cues=[])

    header = '\n'.join(lines[:first_cue_line]).strip()
    body = '\n'.join(lines[first_cue_line:])
    cues = [cue for cue in re.split(r'\n\n+', body) if cue.strip()]

    return VttDocument(header=header, cues=cues)


def group_cues_into_chunks(cues: Sequence[str], chunk_size: int) -> List[str]:
    """
    Group cue blocks into chunks of at most ``chunk_size`` cues.

    Raises:
        InvalidArgument: if chunk_size is not positive
    """
    if chunk_size <= 0:
        raise InvalidArgument(f"chunk_size must be a positive number, got {chunk_size}")

    return [
        '\n\n'.join(cues[i:i + chunk_size])
        for i in range(0, len(cues), chunk_size)
    ]


def build_chunks(document: VttDocument, chunk_size: int) -> List[Chunk]:
    """Build positional chunks for a document; the first carries the header."""
    texts = group_cues_into_chunks(document.cues, chunk_size)
    total = len(texts)

    chunks: List[Chunk] = []
    for index, text in enumerate(texts):
        if index == 0 and document.header:
            text = f"{document.header}\n\n{text}"
        chunks.append(Chunk(index=index, total=total, text=text, cue_count=count_cues(text)))

    return chunks


def validate_vtt_file(path: Path) -> Optional[str]:
    """
    Validate subtitle file before processing.

    Args:
        path: Path to subtitle file

    Returns:
        Error message if invalid, None if valid
    """
    if not path.exists():
        return f"File not found: {path}"

    if not path.is_file():
        return f"Not a file: {path}"

    suffix = path.suffix.lower()
    if suffix not in SUPPORTED_EXTENSIONS:
        expected = ", ".join(sorted(SUPPORTED_EXTENSIONS))
        return f"Invalid file extension: {suffix} (expected {expected})"

    size = path.stat().st_size
    if size == 0:
        return "File is empty"
    if size > MAX_FILE_SIZE:
        return f"File too large: {size / 1024 / 1024:.1f}MB (max {MAX_FILE_SIZE // 1024 // 1024}MB)"

    return None


def read_vtt(path: Path) -> str:
    """Read a subtitle file as text, tolerating a UTF-8 BOM."""
    return path.read_text(encoding="utf-8-sig")


def output_path_for(path: Path, suffix: str = "_vi", output_dir: Optional[Path] = None) -> Path:
    """
    Derive the translated file name, e.g. ``talk.vtt`` -> ``talk_vi.vtt``.

    Args:
        path: Source file path
        suffix: Language suffix inserted before the extension
        output_dir: Directory for the result; defaults to the source directory
    """
    directory = output_dir if output_dir is not None else path.parent
    return directory / f"{path.stem}{suffix}{path.suffix}"


def save_vtt(content: str, path: Path) -> None:
    """
    Save translated subtitle text to a file.

    Args:
        content: Subtitle text
        path: Output file path
    """
    # 确保父目录存在
    path.parent.mkdir(parents=True, exist_ok=True)

    text = content.strip() + '\n'
    with path.open("w", encoding="utf-8") as f:
        f.write(text)

    logger.info(f"Saved {count_cues(text)} cues to {path}")
