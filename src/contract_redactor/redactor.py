"""Redactor — nine ordered rewrite stages over the original text.

Usage:
    from contract_redactor import EntityDetector, Redactor

    entities = EntityDetector().detect(text)
    safe = Redactor().redact(text, entities)

Stages, in order.  Each one assumes the text shape the previous one left:

    1. protect structural labels behind private-use markers
    2. full-address phrases            → FULL_ENTITY_MASK
    3. quoted company names after legal triggers → FULL_ENTITY_MASK
    4. detected entities               → PLACEHOLDER
    5. name fragments next to a placeholder → MERGED_MASK
    6. quoted work titles              → MERGED_MASK
    7. venue names (ALL-CAPS Latin)    → MERGED_MASK
    8. placeholders glued to word characters → MERGED_MASK
    9. restore the labels from stage 1

Stage functions are plain module-level functions returning
``(text, replacements)`` so they can be exercised one at a time.
"""

from __future__ import annotations
import logging
import re
from typing import Iterable, Sequence

from .diagnostics import DiagnosticSink, NullSink
from .lexicon import (
    COMPANY_KEYWORD_RE, HEADING_WORDS, LETTER, PRESERVE_WORDS, PROTECTED_LABELS,
    UPPER, WORK_CONTEXT_KEYWORDS, is_preserved_place, to_greek_all_caps,
)
from .types import DetectedEntity

PLACEHOLDER = "XXXXXX"
MERGED_MASK = "XXXXXXXXXX"
FULL_ENTITY_MASK = "XXXXXXXXXX"

PLACEHOLDER_RUN_RE = re.compile(r"X{6,}")

_Span = tuple[int, int, str]          # start, end, replacement


def _apply_descending(text: str, spans: Iterable[_Span]) -> str:
    for start, end, repl in sorted(spans, key=lambda s: s[0], reverse=True):
        text = text[:start] + repl + text[end:]
    return text


def _greedy(spans: Iterable[_Span]) -> list[_Span]:
    """Keep spans in the given order, dropping any that intersect a kept one."""
    kept: list[_Span] = []
    for span in spans:
        s, e, _ = span
        if s >= e or any(s < ke and e > ks for ks, ke, _ in kept):
            continue
        kept.append(span)
    return kept


# ── Stage 1 / 9: label protection ────────────────────────────────────

_LABEL_PATTERNS = [
    re.compile(r"(?<!\w)" + re.escape(label) + r"(?!\w)", re.IGNORECASE)
    for label in sorted(PROTECTED_LABELS, key=len, reverse=True)
]


def _marker(n: int) -> str:
    return "\ue000" + chr(0xE100 + n) + "\ue001"


def protect_labels(text: str) -> tuple[str, dict[str, str]]:
    """Swap every label occurrence for its own marker.  Returns the mapping."""
    labels: dict[str, str] = {}

    def swap(m: re.Match[str]) -> str:
        marker = _marker(len(labels))
        labels[marker] = m.group(0)
        return marker

    for pattern in _LABEL_PATTERNS:
        text = pattern.sub(swap, text)
    return text, labels


def restore_labels(text: str, labels: dict[str, str]) -> str:
    for marker, label in labels.items():
        text = text.replace(marker, label)
    return text


# ── Stage 2: full addresses ──────────────────────────────────────────

_CAP = rf"[{UPPER}][{LETTER}]+"
_CITY = rf"[{UPPER}][{LETTER}\-]{{2,30}}"
_NUM = r"\d+[A-Za-zΑ-Ωα-ω]?(?!\d)"
_TRIG = r"(?<!\w)(?:(?i:οδός|οδού|οδου|οδ\.|λεωφόρος|λεωφ\.|street|st\.|road|rd\.|avenue|ave\.)|Λ\.)"
_NUMKW = r"(?i:αρ\.|αριθμός)"
_VERB = r"(?i:εδρεύει|εδρεύουν|κάτοικος|κατοίκου|κατοικεί)"
_PREP = r"(?i:στην|στον|στη|στο|σε)"
_TAIL = r"(?=\s|$|[.,;:!?)])"

_ADDR_IN_PARENS_RE = re.compile(
    rf"\([^()\n]*?(?:{_TRIG}|(?<!\w){_NUMKW})\s+{_CAP}(?:\s+{_CAP}){{0,5}}"
    rf"(?:\s+{_NUMKW}\s*{_NUM})?[^()\n]*\)"
)
_ADDR_WITH_CONTEXT_RE = re.compile(
    rf"(?<!\w)(?P<verb>{_VERB}\s+)(?:{_PREP})\s+{_CAP}(?:\s+{_CAP})?\s*"
    rf"\([^()\n]*(?:{_TRIG}|{_NUMKW})\s+[^()\n]{{2,40}}\)"
)
_ADDR_WITH_AR_RE = re.compile(
    rf"{_TRIG}\s+{_CAP}(?:\s+{_CAP}){{0,5}}\s+{_NUMKW}\s*{_NUM}"
)
_ADDR_WITH_NUMBER_RE = re.compile(
    rf"{_TRIG}\s+{_CAP}(?:\s+{_CAP}){{0,5}}\s+{_NUM}"
)
_ADDR_CONTEXT_PREFIX_RE = re.compile(
    rf"(?<!\w){_VERB}\s+{_CAP}(?:\s+{_CAP})?\s*,\s*(?:{_TRIG}|{_NUMKW})\s+"
    rf"{_CAP}(?:\s+{_CAP}){{0,5}}(?:\s+{_NUMKW})?\s*{_NUM}"
)
_ADDR_GENERAL_RE = re.compile(
    rf"{_TRIG}\s+[^\d\n]{{3,50}}?(?:\s+{_NUMKW}\s*)?\d+"
)
_STREET_STANDALONE_RE = re.compile(
    rf"{_TRIG}\s+{_CAP}(?:\s+{_CAP}){{0,5}}{_TAIL}"
)
_CITY_AFTER_VERB_RE = re.compile(
    rf"(?<!\w)(?P<verb>{_VERB}\s+){_PREP}\s+(?P<city>{_CITY}){_TAIL}"
)
_CITY_AFTER_PREP_RE = re.compile(
    rf"(?<!\w)(?i:στην|στον|στη|στο|σε|εκ|από)\s+(?P<city>{_CITY}){_TAIL}"
)
_CITY_AFTER_RESIDENT_RE = re.compile(
    rf"(?<!\w)(?P<verb>(?i:κάτοικος|κάτοικοι|κατοίκου|κατοίκων)\s+)(?P<city>{_CITY}){_TAIL}"
)
_CITY_GENITIVE_RE = re.compile(
    rf",\s+(?P<city>[{UPPER}][{LETTER}]+(?:ης|εως|ας)){_TAIL}"
)
_TAX_OFFICE_RE = re.compile(r"Δ\.Ο\.Υ\.\s*:?\s*(?P<city>[" + UPPER + r"][^\s,.;:!?)]{3,40})")

# Capitalized words that follow a preposition but are not places
_NON_PLACE_WORDS = frozenset(to_greek_all_caps(w) for w in """
Άρθρο Άρθρου Άρθρα Παράρτημα Παραρτήματος Σύμβαση Συμβάσεως Σύμβασης
Εταιρεία Εταιρείας Εταιρίας Μέρος Μέρη Ηθοποιό Παραγωγό Σκηνοθέτη
Δευτέρα Τρίτη Τετάρτη Πέμπτη Παρασκευή Σάββατο Κυριακή
Ιανουάριο Φεβρουάριο Μάρτιο Απρίλιο Μάιο Ιούνιο Ιούλιο Αύγουστο
Σεπτέμβριο Οκτώβριο Νοέμβριο Δεκέμβριο Ιανουαρίου Φεβρουαρίου Μαρτίου
Απριλίου Μαΐου Ιουνίου Ιουλίου Αυγούστου Σεπτεμβρίου Οκτωβρίου
Νοεμβρίου Δεκεμβρίου Κοινού Μέρους Όρους Παρούσας
Θέατρο Θεάτρου Χώρο Χώρος Χώρου Σκηνή Σκηνής Venue Location Theatre Cinema
""".split()) | WORK_CONTEXT_KEYWORDS


def _is_place(name: str) -> bool:
    if is_preserved_place(name):
        return False
    folded = to_greek_all_caps(name.strip(".-"))
    if folded in _NON_PLACE_WORDS or folded in HEADING_WORDS:
        return False
    if COMPANY_KEYWORD_RE.fullmatch(name) or name in PRESERVE_WORDS:
        return False
    return True


def redact_full_addresses(text: str) -> tuple[str, int]:
    spans: list[_Span] = []

    for pattern in (_ADDR_IN_PARENS_RE, _ADDR_WITH_CONTEXT_RE, _ADDR_WITH_AR_RE,
                    _ADDR_WITH_NUMBER_RE, _ADDR_CONTEXT_PREFIX_RE, _ADDR_GENERAL_RE,
                    _STREET_STANDALONE_RE):
        for m in pattern.finditer(text):
            if m.group(0).startswith("(") and m.group(0).endswith(")"):
                spans.append((m.start(), m.end(), f"({FULL_ENTITY_MASK})"))
            elif "verb" in pattern.groupindex:
                # governing verb stays, its object goes
                spans.append((m.end("verb"), m.end(), FULL_ENTITY_MASK))
            else:
                spans.append((m.start(), m.end(), FULL_ENTITY_MASK))

    # verb + city first so the bare preposition rule doesn't split it
    for m in _CITY_AFTER_VERB_RE.finditer(text):
        if _is_place(m.group("city")):
            spans.append((m.end("verb"), m.end(), FULL_ENTITY_MASK))
    for m in _CITY_AFTER_RESIDENT_RE.finditer(text):
        if _is_place(m.group("city")):
            spans.append((m.end("verb"), m.end(), FULL_ENTITY_MASK))
    for m in _CITY_AFTER_PREP_RE.finditer(text):
        if _is_place(m.group("city")):
            spans.append((m.start(), m.end(), FULL_ENTITY_MASK))
    for m in _CITY_GENITIVE_RE.finditer(text):
        if _is_place(m.group("city")):
            spans.append((m.start("city"), m.end("city"), FULL_ENTITY_MASK))
    for m in _TAX_OFFICE_RE.finditer(text):
        # keep the Δ.Ο.Υ. marker, mask the city
        if _is_place(m.group("city")):
            spans.append((m.start("city"), m.end("city"), FULL_ENTITY_MASK))

    kept = _greedy(spans)
    return _apply_descending(text, kept), len(kept)


# ── Stage 3: quoted company names ────────────────────────────────────

COMPANY_TRIGGERS = [
    re.compile(p, re.IGNORECASE) for p in (
        r"υπό\s+την\s+επωνυμία",
        r"με\s+την\s+επωνυμία",
        r"της\s+ανώνυμης\s+εταιρείας",
        r"της\s+εταιρείας",
        r"(?<!\w)επωνυμία",
        r"διακριτικό\s+τίτλο",
        r"trade\s+name",
        r"of\s+the\s+company",
    )
]

QUOTED_SPAN_PATTERNS = [
    re.compile(r"«[^»\n]{1,120}»"),
    re.compile(r"\"[^\"\n]{1,120}\""),
    re.compile(r"“[^”\n]{1,120}”"),
    re.compile(r"'[^'\n]{1,120}'"),
]

COMPANY_WINDOW = 150
TITLE_WINDOW = 200


def _first_quoted(text: str, start: int, end: int) -> tuple[int, int] | None:
    """Earliest quoted span (any style) inside text[start:end]."""
    best: tuple[int, int] | None = None
    for pattern in QUOTED_SPAN_PATTERNS:
        m = pattern.search(text, start, end)
        if m and (best is None or m.start() < best[0]):
            best = (m.start(), m.end())
    return best


def _mask_quoted_after(
    text: str, triggers: Sequence[re.Pattern[str]], window: int, mask: str,
) -> tuple[str, int]:
    count = 0
    for trigger in triggers:
        pos = 0
        while True:
            m = trigger.search(text, pos)
            if m is None:
                break
            span = _first_quoted(text, m.end(), min(len(text), m.end() + window))
            if span is None:
                pos = m.end()
                continue
            text = text[:span[0]] + mask + text[span[1]:]
            count += 1
            # each replacement removes a pair of quotes, so this terminates
            pos = m.start()
    return text, count


def redact_quoted_companies(text: str) -> tuple[str, int]:
    return _mask_quoted_after(text, COMPANY_TRIGGERS, COMPANY_WINDOW, FULL_ENTITY_MASK)


# ── Stage 4: entity substitution ─────────────────────────────────────

RELOCATE_WINDOW = 200


def _nearest(haystack: str, needle: str, lo: int, hi: int, target: int) -> int:
    best = -1
    i = haystack.find(needle, lo, hi)
    while i != -1:
        if best == -1 or abs(i - target) < abs(best - target):
            best = i
        i = haystack.find(needle, i + 1, hi)
    return best


def substitute_entities(
    working: str, original: str, entities: Sequence[DetectedEntity],
) -> tuple[str, int]:
    """Replace each entity's text with PLACEHOLDER, last entity first.

    Earlier stages shift offsets, so each value is re-located near where it
    sat in the original.  Values an earlier stage already masked are left
    alone; anything else falls back to the original offsets.
    """
    count = 0
    for e in sorted(entities, key=lambda e: e.start, reverse=True):
        value = original[e.start:e.end]
        if not value:
            continue
        lo = max(0, e.start - RELOCATE_WINDOW)
        hi = min(len(working), e.end + RELOCATE_WINDOW)
        i = _nearest(working, value, lo, hi, e.start)
        if i != -1:
            working = working[:i] + PLACEHOLDER + working[i + len(value):]
        elif value not in working:
            continue
        else:
            start = min(e.start, len(working))
            end = min(e.end, len(working))
            working = working[:start] + PLACEHOLDER + working[end:]
        count += 1
    return working, count


# ── Stage 5: adjacent fragment collapse ──────────────────────────────

# Capitalized word that is not itself a mask run
_W = rf"(?!X{{5,}}(?![{LETTER}]))[{UPPER}][{LETTER}]{{2,}}"
_ART = r"(?i:του|της|των)"
_ART_WIDE = r"(?i:του|της|των|στον|στη|στο)"
_PH = r"X{6,}"
_SP = r"[ \t]+"
_END = r"(?=\s|$|[.,;:!?])"

# (pattern, group holding the word that must not be preserved).
# Article rules come first so they win overlaps with the bare adjacency ones.
FRAGMENT_RULES: list[tuple[re.Pattern[str], int]] = [
    (re.compile(rf"(?<!\w){_ART_WIDE}{_SP}{_PH}{_SP}{_ART_WIDE}{_SP}({_W}){_END}"), 1),
    (re.compile(rf"(?<!\w)({_W}){_SP}{_ART}{_SP}{_PH}{_END}"), 1),
    (re.compile(rf"(?<!\w){_PH}{_SP}{_ART}{_SP}({_W}){_END}"), 1),
    (re.compile(rf"(?<!\w)X{{5,}}{_SP}{_ART}{_SP}({_W}){_END}"), 1),
    (re.compile(rf"(?<!\w){_ART}{_SP}({_W}){_SP}{_PH}{_END}"), 1),
    (re.compile(rf"(?<!\w)({_W}){_SP}{_PH}{_END}"), 1),
    (re.compile(rf"(?<!\w){_PH}{_SP}({_W}){_END}"), 1),
]


def should_preserve(word: str) -> bool:
    """Role nouns, legal nouns, heading words, years, numbers and very short tokens stay."""
    w = word.strip()
    if any(p in w or w in p for p in PRESERVE_WORDS):
        return True
    if to_greek_all_caps(w) in HEADING_WORDS:
        return True
    if w.isdigit():
        return True
    return len(w) < 3


def _fragment_spans(text: str) -> list[_Span]:
    spans: list[_Span] = []
    for pattern, group in FRAGMENT_RULES:
        for m in pattern.finditer(text):
            if should_preserve(m.group(group)):
                continue
            if PLACEHOLDER_RUN_RE.search(text, m.start(), m.end()):
                spans.append((m.start(), m.end(), MERGED_MASK))
    return _greedy(spans)


def collapse_adjacent_fragments(text: str) -> tuple[str, int]:
    """Merge name fragments into the placeholder beside them.

    Repeats until nothing changes, since a merge can leave a new mask
    next to the following fragment.  Every merge removes at least one
    token, so this terminates.
    """
    total = 0
    while True:
        kept = _fragment_spans(text)
        if not kept:
            return text, total
        text = _apply_descending(text, kept)
        total += len(kept)


# ── Stage 6: work titles ─────────────────────────────────────────────

TITLE_TRIGGERS = [
    re.compile(rf"(?<!\w){p}(?!\w)", re.IGNORECASE) for p in (
        r"θεατρικής\s+παράστασ(?:ης|η|εις|εων)",
        r"θεατρικό\s+έργο",
        r"παράστασ(?:η|ης|εις|εων)",
        r"κινηματογραφικής\s+ταινίας?",
        r"κινηματογραφικό\s+έργο",
        r"ταινί(?:α|ας|ες|ών)",
        r"μικρού\s+μήκους",
        r"διαφημιστικής\s+καμπάνιας?",
        r"διαφήμιση|διαφήμισης",
        r"σποτ",
        r"έργου",
        r"film|production|campaign",
    )
]


def redact_work_titles(text: str) -> tuple[str, int]:
    return _mask_quoted_after(text, TITLE_TRIGGERS, TITLE_WINDOW, MERGED_MASK)


# ── Stage 7: venues ──────────────────────────────────────────────────

_VENUE_WORD = r"(?!X{5,}(?![A-Za-z]))[A-Z]+"
VENUE_RUN_RE = re.compile(rf"(?<![\w]){_VENUE_WORD}(?: {_VENUE_WORD})*(?![\w])")
VENUE_LABEL_RE = re.compile(
    r"(?<!\w)(?:Χώρος|Θέατρο|Venue|Location|Σκηνή|Theatre|Cinema)\s*:", re.IGNORECASE
)
VENUE_WINDOW = 100


def _venue_ok(run: str) -> bool:
    return 4 <= len(run) <= 40 and not run.isdigit()


def redact_venues(text: str) -> tuple[str, int]:
    count = 0
    pos = 0
    while True:
        label = VENUE_LABEL_RE.search(text, pos)
        if label is None:
            break
        end = min(len(text), label.end() + VENUE_WINDOW)
        for run in VENUE_RUN_RE.finditer(text, label.end(), end):
            if _venue_ok(run.group(0)):
                text = text[:run.start()] + MERGED_MASK + text[run.end():]
                count += 1
                break
        pos = label.end()

    spans = [
        (m.start(), m.end(), MERGED_MASK)
        for m in VENUE_RUN_RE.finditer(text)
        if _venue_ok(m.group(0))
    ]
    return _apply_descending(text, spans), count + len(spans)


# ── Stage 8: glued placeholder normalization ─────────────────────────

_TOKEN = r"[A-Za-z0-9_\u0370-\u03FF\u1F00-\u1FFF.\-]"
_GLUED_MIDDLE_RE = re.compile(rf"{_TOKEN}+{PLACEHOLDER}{_TOKEN}+")
_GLUED_PREFIX_RE = re.compile(rf"{_TOKEN}+{PLACEHOLDER}")
_GLUED_SUFFIX_RE = re.compile(rf"{PLACEHOLDER}{_TOKEN}+")


def normalize_placeholders(text: str) -> tuple[str, int]:
    """Collapse placeholders glued to word characters.  Idempotent."""
    total = 0
    for pattern in (_GLUED_MIDDLE_RE, _GLUED_PREFIX_RE, _GLUED_SUFFIX_RE):
        text, n = pattern.subn(MERGED_MASK, text)
        total += n
    return text, total


# ── Pipeline of stages ───────────────────────────────────────────────

class Redactor:
    """Runs the nine stages in order.  Stateless; safe to share."""

    def __init__(self, sink: DiagnosticSink | None = None) -> None:
        self.sink = sink or NullSink()
        self.logger = logging.getLogger(__name__)

    def redact(self, original: str, entities: Sequence[DetectedEntity]) -> str:
        if not original:
            return original

        text, labels = protect_labels(original)
        counts = {"labels": len(labels)}

        text, counts["addresses"] = redact_full_addresses(text)
        text, counts["quoted_companies"] = redact_quoted_companies(text)
        text, counts["entities"] = substitute_entities(text, original, entities)
        text, counts["fragments"] = collapse_adjacent_fragments(text)
        text, counts["titles"] = redact_work_titles(text)
        text, counts["venues"] = redact_venues(text)
        text, counts["glued"] = normalize_placeholders(text)
        text = restore_labels(text, labels)

        self.sink.record("redact", counts)
        self.logger.debug("redacted %d entities", counts["entities"])
        return text


_default = Redactor()


def redact(text: str, entities: Sequence[DetectedEntity]) -> str:
    return _default.redact(text, entities)
