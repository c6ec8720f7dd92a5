"""
Exception hierarchy for extraction failures.

None of these ever reach a caller of the public extraction functions: the
pipeline converts each one into a finding and keeps going with the next
strategy. They exist so that the individual decoders can fail loudly and be
tested in isolation.
"""

from __future__ import annotations


class ExtractionError(Exception):
    """Base exception for all extraction failures."""

    def __init__(self, code: str, message: str, details: dict | None = None):
        self.code = code
        self.details = details or {}
        super().__init__(message)


class MRZDecodeError(ExtractionError):
    """A located MRZ line could not be decoded."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__("MRZ_DECODE_FAILED", message, details)
