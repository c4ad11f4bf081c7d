"""Glossary loading and management utilities."""

from __future__ import annotations

import re
import logging
from pathlib import Path
from typing import Dict, List

logger = logging.getLogger(__name__)

# 支持 "Term: 译文"、"Term = 译文" 和 "Term -> 译文"
_ENTRY_PATTERN = re.compile(r'^(.+?)\s*(?:->|=|:)\s*(.+)$')


class Glossary:
    """术语表管理类，匹配时不区分大小写。"""

    def __init__(self):
        # 保存原始大小写的术语
        self._terms: Dict[str, str] = {}
        # 小写索引用于匹配
        self._lower_index: Dict[str, str] = {}

    def add(self, term: str, translation: str) -> None:
        """添加术语。"""
        term = term.strip()
        translation = translation.strip()
        if term and translation:
            self._terms[term] = translation
            self._lower_index[term.lower()] = term

    def get(self, term: str) -> str | None:
        """获取术语翻译（不区分大小写）。"""
        original_term = self._lower_index.get(term.lower())
        if original_term:
            return self._terms.get(original_term)
        return None

    def find_matches(self, text: str) -> Dict[str, str]:
        """
        在文本中查找匹配的术语。

        返回原始大小写的术语及其翻译。
        """
        text_lower = text.lower()
        return {
            term: translation
            for term, translation in self._terms.items()
            if term.lower() in text_lower
        }

    def format_terms(self, terms: Dict[str, str] | None = None) -> List[str]:
        """Render terms as ``Term: Translation`` lines for a prompt."""
        source = self._terms if terms is None else terms
        return [f"{term}: {translation}" for term, translation in source.items()]

    def __len__(self) -> int:
        return len(self._terms)

    def __bool__(self) -> bool:
        return len(self._terms) > 0


def parse_glossary(content: str) -> Glossary:
    """
    Parse glossary text, one term per line.

    Supported formats:
        Term: Translation
        Term = Translation
        Term -> Translation
        # Comment lines
    """
    glossary = Glossary()

    for line_num, line in enumerate(content.splitlines(), 1):
        line = line.strip()

        # 跳过空行和注释
        if not line or line.startswith('#'):
            continue

        match = _ENTRY_PATTERN.match(line)
        if match:
            term, translation = match.groups()
            glossary.add(term, translation)
        else:
            logger.debug(f"Skipping invalid line {line_num}: {line}")

    return glossary


def load_glossary(path: Path) -> Glossary:
    """
    Load glossary from a text file.

    Args:
        path: Path to glossary file

    Returns:
        Glossary instance, empty when the file is missing or unreadable
    """
    if not path.exists():
        logger.warning(f"Glossary file not found: {path}")
        return Glossary()

    try:
        glossary = parse_glossary(path.read_text(encoding='utf-8'))
    except (OSError, UnicodeDecodeError) as e:
        logger.error(f"Error loading glossary: {e}")
        return Glossary()

    logger.info(f"Loaded {len(glossary)} terms from glossary")
    return glossary
