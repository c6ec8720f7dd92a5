"""
Label → value lookup over OCR lines.

Four strategies, tried in order of decreasing strictness. The first
strategy that yields an acceptable value wins:

  1. explicit-label     "Nationality: MALAYSIA" — text after the label
  2. bounded-regex      label words as a whole-word regex, separators free
  3. line-start-label   line begins with the label; value may be on the
                        next line when the label stands alone
  4. fuzzy-label        more than half the label's significant words appear
                        on a line (OCR dropped or mangled the rest)

Each strategy is a generator of raw candidates, so a caller-supplied
``accept`` predicate can reject one candidate without abandoning the
strategy.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass

from .models import Strategy
from .normalize import normalize_label

_LEADING_DELIMITERS_RE = re.compile(r"^[:;.,\s]+")
_WORD_RE = re.compile(r"[A-Za-z0-9]+")

# Words of this length or shorter ("of", "no") don't count as evidence
_MIN_SIGNIFICANT_LEN = 2

LabelStrategy = Callable[[str, Sequence[str]], Iterator[str]]


@dataclass(frozen=True)
class LabelMatch:
    value: str
    strategy: Strategy


# ─── Helpers ─────────────────────────────────────────────────────────


def _strip_delimiters(text: str) -> str:
    return _LEADING_DELIMITERS_RE.sub("", text).strip()


def _label_regex(label: str) -> re.Pattern[str] | None:
    """Compile a label into a whole-word regex tolerant of any separators.

    "date of birth" matches "Date of Birth", "DATE-OF-BIRTH" and
    "date_of  birth".
    """
    words = _WORD_RE.findall(label)
    if not words:
        return None
    body = r"[\W_]*".join(re.escape(word) for word in words)
    return re.compile(rf"\b{body}\b", re.IGNORECASE)


# ─── Strategies ──────────────────────────────────────────────────────


def _after_label(label: str, lines: Sequence[str]) -> Iterator[str]:
    needle = label.lower()
    for line in lines:
        idx = line.lower().find(needle)
        if idx >= 0:
            yield _strip_delimiters(line[idx + len(label):])


def _bounded_regex(label: str, lines: Sequence[str]) -> Iterator[str]:
    label_re = _label_regex(label)
    if label_re is None:
        return
    value_re = re.compile(
        label_re.pattern + r"[^A-Za-z0-9]?\s*([\w\s]+)", re.IGNORECASE
    )
    for line in lines:
        match = value_re.search(line)
        if match:
            yield match.group(1).strip()


def _line_starts_with_label(label: str, lines: Sequence[str]) -> Iterator[str]:
    wanted = normalize_label(label)
    label_re = _label_regex(label)
    if not wanted or label_re is None:
        return
    for i, line in enumerate(lines):
        if not normalize_label(line).startswith(wanted):
            continue
        match = label_re.search(line)
        rest = _strip_delimiters(line[match.end():]) if match else ""
        if rest:
            yield rest
        elif i + 1 < len(lines):
            # Label on its own line, value printed underneath
            yield lines[i + 1].strip()


def _fuzzy_word_overlap(label: str, lines: Sequence[str]) -> Iterator[str]:
    words = [w for w in normalize_label(label).split() if len(w) > _MIN_SIGNIFICANT_LEN]
    if not words:
        return
    for line in lines:
        ends = []
        for word in words:
            found = re.search(re.escape(word), line, re.IGNORECASE)
            if found:
                ends.append(found.end())
        if len(ends) > len(words) / 2:
            yield _strip_delimiters(line[max(ends):])


LABEL_STRATEGIES: tuple[tuple[Strategy, LabelStrategy], ...] = (
    (Strategy.EXPLICIT_LABEL, _after_label),
    (Strategy.BOUNDED_REGEX, _bounded_regex),
    (Strategy.LINE_START_LABEL, _line_starts_with_label),
    (Strategy.FUZZY_LABEL, _fuzzy_word_overlap),
)


# ─── Public API ──────────────────────────────────────────────────────


def match_label(
    label: str,
    lines: Sequence[str],
    full_text: str = "",
    accept: Callable[[str], bool] | None = None,
) -> LabelMatch | None:
    """Find the value printed next to ``label``.

    Args:
        label: Human label, e.g. "date of issue".
        lines: Original-case OCR lines.
        full_text: The whole OCR text; used only when ``lines`` is empty.
        accept: Optional predicate a candidate must satisfy.

    Returns:
        LabelMatch with the value and the strategy that found it, or None.
    """
    if not label or not label.strip():
        return None
    if not lines and full_text:
        lines = [ln.strip() for ln in full_text.splitlines() if ln.strip()]

    for strategy, find in LABEL_STRATEGIES:
        for candidate in find(label, lines):
            if not candidate:
                continue
            if accept is not None and not accept(candidate):
                continue
            return LabelMatch(candidate, strategy)
    return None


def find_by_label(label: str, lines: Sequence[str], full_text: str = "") -> str | None:
    """Return the first non-empty value found next to ``label``, or None."""
    match = match_label(label, lines, full_text)
    return match.value if match else None
