"""
Ordered regex pattern sets — the one matching engine behind every
pattern-driven field.

A PatternSet is a prioritized list of synonym regexes for a single field.
Each regex has exactly one capture group holding the value. The set is
searched against the whole text first and then line by line; the first
capture that survives cleanup (and the optional acceptance predicate) wins.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass, field

from .models import Strategy
from .normalize import ScanText

_WHITESPACE_RE = re.compile(r"\s+")
_EDGE_PUNCTUATION = " \t:;.,"


def clean_capture(value: str) -> str:
    """Collapse whitespace and trim separator punctuation from both ends."""
    return _WHITESPACE_RE.sub(" ", value).strip(_EDGE_PUNCTUATION)


def has_digit(value: str) -> bool:
    return any(ch.isdigit() for ch in value)


@dataclass(frozen=True)
class PatternMatch:
    value: str
    strategy: Strategy
    pattern: str  # Source of the regex that produced the value


@dataclass(frozen=True)
class PatternSet:
    """A named, prioritized list of capture regexes for one field."""

    name: str
    patterns: tuple[re.Pattern[str], ...]
    accept: Callable[[str], bool] | None = field(default=None, compare=False)

    @classmethod
    def compile(
        cls,
        name: str,
        sources: Iterable[str],
        accept: Callable[[str], bool] | None = None,
    ) -> PatternSet:
        """Compile regex sources case-insensitively, keeping their order."""
        return cls(
            name=name,
            patterns=tuple(re.compile(src, re.IGNORECASE) for src in sources),
            accept=accept,
        )

    def captures(self, text: str) -> Iterator[tuple[str, re.Pattern[str]]]:
        """Yield every accepted capture in pattern priority order."""
        for pattern in self.patterns:
            for match in pattern.finditer(text):
                value = clean_capture(match.group(1) or "")
                if not value:
                    continue
                if self.accept is not None and not self.accept(value):
                    continue
                yield value, pattern

    def search(self, scan: ScanText) -> PatternMatch | None:
        """Search the whole text, then each line; first accepted capture wins."""
        for value, pattern in self.captures(scan.text):
            return PatternMatch(value, Strategy.PATTERN_TEXT, pattern.pattern)

        for line in scan.lines:
            for value, pattern in self.captures(line):
                return PatternMatch(value, Strategy.PATTERN_LINE, pattern.pattern)

        return None
