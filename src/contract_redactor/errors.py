"""Exceptions raised at the edges of the pipeline.

The core itself never raises on well-formed text.  These are raised by the
calling layer: the size cap and the hard stop before transmission.
"""

from __future__ import annotations


class RedactionError(Exception):
    """Base class for contract-redactor errors."""


class InputTooLarge(RedactionError):
    """Input exceeds the configured character cap."""

    def __init__(self, size: int, limit: int) -> None:
        super().__init__(f"input of {size} chars exceeds limit of {limit}")
        self.size = size
        self.limit = limit


class TransmissionBlocked(RedactionError):
    """The validation gate refused the redacted text.

    Carries reason labels and per-reason counts only, never the offending
    values themselves.
    """

    def __init__(self, reasons: frozenset[str], counts: dict[str, int] | None = None) -> None:
        self.reasons = frozenset(reasons)
        self.counts = dict(counts or {})
        super().__init__("transmission blocked: " + ", ".join(sorted(self.reasons)))
