"""Preamble zone classification.

Greek contracts usually open with an identity block (parties, addresses,
tax numbers) before the substantive terms.  The classifier finds the line
where terms begin.  The pipeline can drop everything before it, and the
validation gate treats it as the zone where unlabelled names are risky.

    result = classify_preamble(text)
    if result.skipped:
        result.text          # banner + text[result.cut_index:]
"""

from __future__ import annotations
import logging
import re
from dataclasses import dataclass

from .lexicon import (
    CORE_START_HEADINGS, GREEK_NUMBER_WORDS, NEGATIVE_HEADINGS,
    PREAMBLE_BANNER, SEMANTIC_ANCHORS, fold_phrase, to_greek_all_caps,
)
from .types import PreambleResult

# Relative ordering matters; the absolute values are tie-breakers.
CORE_SCORE_AFTER_NEGATIVE = 3.0
CORE_SCORE = 2.5
ANCHOR_SCORE_AFTER_NEGATIVE = 2.0
ANCHOR_SCORE = 1.5
CUT_THRESHOLD = 2.0

_NUMBER_WORDS = "|".join(GREEK_NUMBER_WORDS)

# Applied to folded (accent-free, uppercase) lines
NUMBERING_PREFIXES = [
    re.compile(r"^ΑΡΘΡΟ\s+\d+"),                       # Άρθρο 1
    re.compile(rf"^ΑΡΘΡΟ\s+(?:{_NUMBER_WORDS})"),       # Άρθρο Πρώτο
    re.compile(r"^[IVX]+(?:\.-|\.|\s)\s*"),            # I. II.- III
    re.compile(r"^\d+\.-?\s*"),                        # 1. 1.-
    re.compile(r"^\d+\.\d+(?:\.\d+)*\.?\s*"),          # 1.1 1.2.1
    re.compile(r"^[Α-ΩA-Z]\.\s*"),                     # Α. Β.
    re.compile(r"^[Α-ΩA-Z]\)\s*"),                     # α) β)
    re.compile(r"^\((?:[IVX]+|\d+|[Α-ΩA-Z])\)\s*"),    # (i) (2)
]

_SEPARATORS = "-–—:. \t"
_LINE_SPLIT_RE = re.compile(r"\r?\n")
_HSPACE_RE = re.compile(r"[ \t]+")


def normalize_line(line: str) -> str:
    """Accent-free uppercase with horizontal whitespace collapsed."""
    return _HSPACE_RE.sub(" ", to_greek_all_caps(line)).strip()


@dataclass(frozen=True)
class _Heading:
    phrase: str
    after_prefix: re.Pattern[str]
    contained: re.Pattern[str]

    @classmethod
    def build(cls, phrase: str) -> "_Heading":
        folded = fold_phrase(phrase)
        esc = re.escape(folded)
        return cls(
            phrase=folded,
            after_prefix=re.compile(rf"^{esc}(?![\w])"),
            contained=re.compile(rf"(?:^|(?<=[\s\-–—:])){esc}(?=[\s\-–—:.,;!?/)]|$)"),
        )

    def matches(self, norm: str) -> bool:
        if norm == self.phrase or self.contained.search(norm):
            return True
        for prefix in NUMBERING_PREFIXES:
            m = prefix.match(norm)
            if m is None:
                continue
            rest = norm[m.end():].lstrip(_SEPARATORS)
            if self.after_prefix.match(rest):
                return True
        return False


@dataclass(frozen=True)
class _Line:
    offset: int
    normalized: str


def split_lines(text: str) -> list[_Line]:
    """Split on \\r?\\n keeping each line's start offset in `text`."""
    out: list[_Line] = []
    pos = 0
    for m in _LINE_SPLIT_RE.finditer(text):
        out.append(_Line(pos, normalize_line(text[pos:m.start()])))
        pos = m.end()
    out.append(_Line(pos, normalize_line(text[pos:])))
    return out


class PreambleZoneClassifier:
    """Scores lines against heading vocabularies and picks the cut point."""

    def __init__(self) -> None:
        self.negative = [_Heading.build(h) for h in NEGATIVE_HEADINGS]
        self.core = [_Heading.build(h) for h in CORE_START_HEADINGS]
        self.anchors = [fold_phrase(a) for a in SEMANTIC_ANCHORS]
        self.logger = logging.getLogger(__name__)

    def find_cut(self, text: str) -> tuple[int, str] | None:
        """Offset where terms begin and the reason, or None."""
        best: tuple[float, int, str] | None = None
        seen_negative = False

        for line in split_lines(text):
            norm = line.normalized
            if not norm:
                continue
            if any(h.matches(norm) for h in self.negative):
                # Never start on an identity heading
                seen_negative = True
                continue

            score = 0.0
            reason = ""
            for h in self.core:
                if h.matches(norm):
                    score = CORE_SCORE_AFTER_NEGATIVE if seen_negative else CORE_SCORE
                    reason = f"heading: {h.phrase}"
                    break
            if not score and any(a in norm for a in self.anchors):
                score = ANCHOR_SCORE_AFTER_NEGATIVE if seen_negative else ANCHOR_SCORE
                reason = "semantic anchor"

            if score and (best is None or score > best[0]):
                best = (score, line.offset, reason)

        if best is None or best[0] < CUT_THRESHOLD:
            return None
        return best[1], best[2]

    def classify(self, text: str) -> PreambleResult:
        if not text or not text.strip():
            return PreambleResult(text=text, skipped=False)

        cut = self.find_cut(text)
        if cut is None:
            self.logger.debug("no terms boundary found")
            return PreambleResult(text=text, skipped=False)

        index, reason = cut
        self.logger.debug("terms start at offset %d (%s)", index, reason)
        return PreambleResult(
            text=PREAMBLE_BANNER + text[index:],
            skipped=True,
            reason=reason,
            cut_index=index,
        )


_default: PreambleZoneClassifier | None = None


def classify_preamble(text: str) -> PreambleResult:
    """Classify with a shared classifier instance."""
    global _default
    if _default is None:
        _default = PreambleZoneClassifier()
    return _default.classify(text)
