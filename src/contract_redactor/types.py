"""Core types."""

from __future__ import annotations
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional, Pattern


class EntityCategory(str, Enum):
    """Categories of personal or sensitive data the detector reports."""
    PERSON = "PERSON"
    COMPANY = "COMPANY"
    TAX_ID = "TAX_ID"
    ADDRESS = "ADDRESS"
    ADDRESS_NUMBER = "ADDRESS_NUMBER"
    EMAIL = "EMAIL"
    PHONE = "PHONE"
    AMOUNT = "AMOUNT"
    IBAN = "IBAN"


# Reason label used when a check could not run to completion
UNVERIFIED = "UNVERIFIED"


@dataclass(frozen=True, slots=True)
class DetectedEntity:
    """A span of the original text holding personal data.

    Only the category and offsets are kept; the raw value is re-read from
    the caller's text when needed and never stored here.
    """
    category: EntityCategory
    start: int             # inclusive
    end: int               # exclusive

    def __post_init__(self) -> None:
        if self.start >= self.end:
            raise ValueError(f"empty entity span [{self.start}, {self.end})")

    def overlaps(self, start: int, end: int) -> bool:
        return self.start < end and self.end > start


@dataclass(frozen=True, slots=True)
class RedactionRule:
    """One pattern contributing candidate spans to the detector.

    `group` selects the capture group that forms the span (0 = whole match).
    `guard` receives the full text and the match and may veto the candidate.
    """
    name: str
    pattern: Pattern[str]
    category: EntityCategory
    priority: int
    group: int = 0
    guard: Optional[Callable[[str, re.Match[str]], bool]] = None


@dataclass(frozen=True, slots=True)
class GateVerdict:
    """Combined result of the privacy checks."""
    ok: bool
    reasons: frozenset[str] = frozenset()
    counts: dict[str, int] = field(default_factory=dict)  # reason → hits

    @classmethod
    def combine(cls, *verdicts: "GateVerdict") -> "GateVerdict":
        reasons: set[str] = set()
        counts: dict[str, int] = {}
        for v in verdicts:
            reasons |= v.reasons
            for key, n in v.counts.items():
                counts[key] = counts.get(key, 0) + n
        return cls(
            ok=all(v.ok for v in verdicts),
            reasons=frozenset(reasons),
            counts=counts,
        )


@dataclass(frozen=True, slots=True)
class PreambleResult:
    """Outcome of preamble zone classification."""
    text: str
    skipped: bool
    reason: Optional[str] = None
    cut_index: Optional[int] = None    # offset in the input where terms begin
