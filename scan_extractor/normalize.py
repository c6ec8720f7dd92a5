"""
Text normalization for raw OCR output.

Matching happens on a lower-cased, whitespace-collapsed copy of the text,
while values are always cut out of the original-case lines so that names and
document numbers keep the casing that was printed.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

_WHITESPACE_RE = re.compile(r"\s+")
_LINE_BREAK_RE = re.compile(r"\r?\n|\r")
_PUNCTUATION_RE = re.compile(r"[^\w\s]")


@dataclass(frozen=True)
class ScanText:
    """One OCR result, prepared for matching.

    Built once per extraction call and never mutated.
    """

    raw: str
    normalized: str  # lower-case, whitespace collapsed
    lines: tuple[str, ...]  # original case, trimmed, no empty lines

    @property
    def text(self) -> str:
        """Trimmed lines re-joined with newlines, original case preserved."""
        return "\n".join(self.lines)

    @property
    def is_empty(self) -> bool:
        return not self.lines


def normalize(raw: str | None) -> ScanText:
    """Prepare raw OCR output for extraction.

    Args:
        raw: The OCR text. ``None`` is treated as empty.

    Returns:
        ScanText; empty input yields an empty ScanText.
    """
    if not raw:
        return ScanText(raw="", normalized="", lines=())

    normalized = _WHITESPACE_RE.sub(" ", raw).strip().lower()
    lines = tuple(
        line.strip() for line in _LINE_BREAK_RE.split(raw) if line.strip()
    )
    return ScanText(raw=raw, normalized=normalized, lines=lines)


def normalize_label(text: str) -> str:
    """Reduce a label or line to lower-case words separated by single spaces.

    Example:
        "Date-of-Birth:" → "date of birth"
    """
    text = _PUNCTUATION_RE.sub(" ", text)
    return _WHITESPACE_RE.sub(" ", text).strip().lower()
