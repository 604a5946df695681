"""EntityDetector — pattern families plus greedy overlap resolution.

Usage:
    from contract_redactor import EntityDetector

    detector = EntityDetector()
    entities = detector.detect(text)     # sorted, non-overlapping
    count_by_category(entities)          # {"PERSON": 2, "EMAIL": 1}

Families run in priority order: structured identifiers, person names,
company names, addresses, and (optionally) Presidio NER last.  Every family
contributes candidates independently; resolution then walks candidates by
start offset and keeps the first one that doesn't intersect anything kept so
far.  When two candidates start at the same offset, the family order breaks
the tie.
"""

from __future__ import annotations
import logging
import re
from dataclasses import dataclass
from typing import Iterable, Sequence

from . import patterns as P
from .diagnostics import DiagnosticSink, NullSink
from .lexicon import (
    COMPANY_KEYWORD_RE, HEADING_WORDS, PRESERVE_WORDS,
    SUFFIX_EN_ALT, SUFFIX_GR_ALT, WORK_CONTEXT_KEYWORDS,
    is_excluded_name, is_heading_run, to_greek_all_caps,
)
from .types import DetectedEntity, EntityCategory, RedactionRule

IDENTIFIER_PRIORITY = 1
PERSON_PRIORITY = 2
COMPANY_PRIORITY = 3
ADDRESS_PRIORITY = 4
NER_PRIORITY = 5

_QUOTE_CHARS = "«»\"“”'‘’"
_COMPANY_TAIL_RE = re.compile(rf"[ \t]*(?:{SUFFIX_GR_ALT}|{SUFFIX_EN_ALT})(?!\w)")


# ── Guards ───────────────────────────────────────────────────────────

def _near(text: str, m: re.Match[str], radius: int) -> str:
    return text[max(0, m.start() - radius): m.end() + radius]


def _person_guard(text: str, m: re.Match[str], group: int = 0) -> bool:
    """Reject name-shaped text that is really a company head or a phrase."""
    value = m.group(group)
    if is_excluded_name(value):
        return False
    end = m.end(group)
    # "Acme Films Ltd." / "Γιώργος Παπαδόπουλος Α.Ε." belong to the company family
    if COMPANY_KEYWORD_RE.search(text[m.start(group): end + 1]):
        return False
    return _COMPANY_TAIL_RE.match(text, end) is None


def _honorific_guard(text: str, m: re.Match[str]) -> bool:
    return _person_guard(text, m, 1)


def _creator_guard(text: str, m: re.Match[str]) -> bool:
    if not _person_guard(text, m, 1):
        return False
    window = to_greek_all_caps(_near(text, m, 100))
    return any(word in window for word in WORK_CONTEXT_KEYWORDS)


def _standalone_quoted_guard(text: str, m: re.Match[str]) -> bool:
    return COMPANY_KEYWORD_RE.search(_near(text, m, 50)) is not None


def _all_caps_guard(text: str, m: re.Match[str]) -> bool:
    run = m.group(0)
    if len(run) < 4 or is_heading_run(run):
        return False
    window = _near(text, m, 30)
    return (
        COMPANY_KEYWORD_RE.search(window) is not None
        or any(q in window for q in _QUOTE_CHARS)
    )


# ── Rule families ────────────────────────────────────────────────────

IDENTIFIER_RULES = [
    RedactionRule(f"identifier:{cat.value.lower()}", pat, cat, IDENTIFIER_PRIORITY)
    for cat, pat in P.IDENTIFIER_PATTERNS
]

PERSON_RULES = [
    RedactionRule("person:latin-title", P.LATIN_TITLE_NAME_RE, EntityCategory.PERSON,
                  PERSON_PRIORITY, guard=_person_guard),
    RedactionRule("person:greek-honorific", P.GREEK_HONORIFIC_RE, EntityCategory.PERSON,
                  PERSON_PRIORITY, group=1, guard=_honorific_guard),
    RedactionRule("person:latin", P.LATIN_NAME_RE, EntityCategory.PERSON,
                  PERSON_PRIORITY, guard=_person_guard),
    RedactionRule("person:greek", P.GREEK_NAME_RE, EntityCategory.PERSON,
                  PERSON_PRIORITY, guard=_person_guard),
    RedactionRule("person:creator", P.CREATOR_NAME_RE, EntityCategory.PERSON,
                  PERSON_PRIORITY, group=1, guard=_creator_guard),
]

COMPANY_RULES = [
    RedactionRule("company:quoted", P.QUOTED_COMPANY_RE, EntityCategory.COMPANY, COMPANY_PRIORITY),
    RedactionRule("company:caps", P.BARE_COMPANY_CAPS_RE, EntityCategory.COMPANY, COMPANY_PRIORITY),
    RedactionRule("company:latin", P.BARE_COMPANY_EN_RE, EntityCategory.COMPANY, COMPANY_PRIORITY),
    RedactionRule("company:greek", P.BARE_COMPANY_GR_RE, EntityCategory.COMPANY, COMPANY_PRIORITY),
    RedactionRule("company:brand", P.LABELLED_BRAND_RE, EntityCategory.COMPANY,
                  COMPANY_PRIORITY, group=1),
    RedactionRule("company:standalone-quoted", P.STANDALONE_QUOTED_RE, EntityCategory.COMPANY,
                  COMPANY_PRIORITY, guard=_standalone_quoted_guard),
    RedactionRule("company:all-caps", P.ALL_CAPS_RUN_RE, EntityCategory.COMPANY,
                  COMPANY_PRIORITY, guard=_all_caps_guard),
]

ADDRESS_RULES = [
    RedactionRule("address:latin", P.LATIN_ADDRESS_RE, EntityCategory.ADDRESS, ADDRESS_PRIORITY),
    RedactionRule("address:greek", P.GREEK_ADDRESS_RE, EntityCategory.ADDRESS, ADDRESS_PRIORITY),
    RedactionRule("address:number", P.ADDRESS_NUMBER_RE, EntityCategory.ADDRESS_NUMBER,
                  ADDRESS_PRIORITY),
    RedactionRule("address:street-comma-number", P.STREET_COMMA_NUMBER_RE,
                  EntityCategory.ADDRESS_NUMBER, ADDRESS_PRIORITY, group=1),
    RedactionRule("address:postal-code", P.POSTAL_CODE_RE, EntityCategory.ADDRESS_NUMBER,
                  ADDRESS_PRIORITY),
]

DEFAULT_RULES: tuple[RedactionRule, ...] = tuple(
    IDENTIFIER_RULES + PERSON_RULES + COMPANY_RULES + ADDRESS_RULES
)


# ── Resolution ───────────────────────────────────────────────────────

@dataclass(frozen=True, slots=True)
class Candidate:
    start: int
    end: int
    priority: int
    order: int              # rule position, breaks ties inside a family
    category: EntityCategory


def resolve_overlaps(candidates: Iterable[Candidate]) -> list[DetectedEntity]:
    """Greedy non-overlapping selection in (start, priority) order."""
    ranked = sorted(candidates, key=lambda c: (c.start, c.priority, c.order, -(c.end - c.start)))
    taken: list[DetectedEntity] = []
    for c in ranked:
        if c.start >= c.end:
            continue
        if any(t.overlaps(c.start, c.end) for t in taken):
            continue
        taken.append(DetectedEntity(c.category, c.start, c.end))
    return taken


def count_by_category(entities: Iterable[DetectedEntity]) -> dict[str, int]:
    """Category → number of entities.  Safe to log."""
    counts: dict[str, int] = {}
    for e in entities:
        counts[e.category.value] = counts.get(e.category.value, 0) + 1
    return counts


def _brand_token(value: str) -> str | None:
    """Leading brand word of an accepted company span, if usable."""
    words = value.strip(_QUOTE_CHARS + " \t").split()
    if not words:
        return None
    token = words[0].strip(_QUOTE_CHARS + ",;:")
    if len(token) < 3 or not token[0].isupper():
        return None
    if COMPANY_KEYWORD_RE.fullmatch(token) or token in PRESERVE_WORDS:
        return None
    if to_greek_all_caps(token) in HEADING_WORDS:
        return None
    return token


class EntityDetector:
    """Runs the rule families over a text and resolves overlaps."""

    def __init__(
        self,
        rules: Sequence[RedactionRule] | None = None,
        *,
        use_presidio: bool = False,
        language: str = "el",
        score_threshold: float = 0.35,
        presidio_entities: list[str] | None = None,
        sink: DiagnosticSink | None = None,
    ) -> None:
        self.rules = tuple(rules) if rules is not None else DEFAULT_RULES
        self.use_presidio = use_presidio
        self.language = language
        self.score_threshold = score_threshold
        self.presidio_entities = presidio_entities
        self.sink = sink or NullSink()
        self.logger = logging.getLogger(__name__)

    def detect(self, text: str) -> list[DetectedEntity]:
        """Return the final entity list, sorted by start, non-overlapping."""
        if not text:
            return []

        candidates = self._collect(text)

        if self.use_presidio:
            from .presidio_layer import scan_presidio
            ner = scan_presidio(
                text,
                language=self.language,
                entities=self.presidio_entities,
                score_threshold=self.score_threshold,
            )
            base = len(self.rules)
            candidates.extend(
                Candidate(start, end, NER_PRIORITY, base, cat) for cat, start, end in ner
            )

        entities = resolve_overlaps(candidates)
        entities = self._add_brand_repeats(text, entities)

        counts = count_by_category(entities)
        self.sink.record("detect", counts)
        self.logger.debug("detected %d entities", len(entities))
        return entities

    def _collect(self, text: str) -> list[Candidate]:
        out: list[Candidate] = []
        for order, rule in enumerate(self.rules):
            for m in rule.pattern.finditer(text):
                start, end = m.span(rule.group)
                if start < 0 or start >= end:
                    continue
                if rule.guard is not None and not rule.guard(text, m):
                    continue
                out.append(Candidate(start, end, rule.priority, order, rule.category))
        return out

    def _add_brand_repeats(
        self, text: str, entities: list[DetectedEntity],
    ) -> list[DetectedEntity]:
        """Add bare repeats of each accepted company's leading brand word."""
        tokens: list[str] = []
        for e in entities:
            if e.category is not EntityCategory.COMPANY:
                continue
            token = _brand_token(text[e.start:e.end])
            if token and token not in tokens:
                tokens.append(token)
        if not tokens:
            return entities

        extra: list[DetectedEntity] = []
        for token in tokens:
            pattern = re.compile(r"(?<!\w)" + re.escape(token) + r"(?!\w)", re.IGNORECASE)
            for m in pattern.finditer(text):
                if any(e.overlaps(m.start(), m.end()) for e in entities):
                    continue
                if any(e.overlaps(m.start(), m.end()) for e in extra):
                    continue
                extra.append(DetectedEntity(EntityCategory.COMPANY, m.start(), m.end()))
        if not extra:
            return entities
        self.sink.record("detect.brand-repeats", {EntityCategory.COMPANY.value: len(extra)})
        return sorted(entities + extra, key=lambda e: e.start)


_default: EntityDetector | None = None


def detect(text: str) -> list[DetectedEntity]:
    """Detect with the default, pattern-only detector."""
    global _default
    if _default is None:
        _default = EntityDetector()
    return _default.detect(text)
