"""Privacy validation gate.

Three independent checks run over the redacted text before it may leave
the device.  Each one fails closed: a hit blocks transmission, and so does
any exception raised while checking (reason ``UNVERIFIED``).

    verdict = validate(original, redacted, entities)
    if not verdict.ok:
        raise TransmissionBlocked(verdict.reasons, verdict.counts)

Verdicts carry category labels and counts only.  Nothing here logs or
returns a raw value.
"""

from __future__ import annotations
import logging
import re
from typing import Iterable, Protocol, Sequence

from . import patterns as P
from .diagnostics import DiagnosticSink, NullSink
from .lexicon import (
    PREAMBLE_BANNER, RELATIONAL_CUE_RE,
    is_excluded_name, is_heading_run, is_safe_phrase,
)
from .preamble import classify_preamble
from .redactor import PLACEHOLDER_RUN_RE
from .types import UNVERIFIED, DetectedEntity, EntityCategory, GateVerdict

RELATIONAL_WINDOW = 80

REASON_LABELS = {
    EntityCategory.PERSON.value: "ΠΙΘΑΝΟ ΟΝΟΜΑ",
    EntityCategory.COMPANY.value: "ΠΙΘΑΝΗ ΕΤΑΙΡΕΙΑ",
    EntityCategory.EMAIL.value: "ΠΙΘΑΝΟ EMAIL",
    EntityCategory.IBAN.value: "ΠΙΘΑΝΟ IBAN",
    EntityCategory.PHONE.value: "ΠΙΘΑΝΟ ΤΗΛΕΦΩΝΟ",
    EntityCategory.TAX_ID.value: "ΠΙΘΑΝΟ ΑΦΜ",
    EntityCategory.ADDRESS.value: "ΠΙΘΑΝΗ ΔΙΕΥΘΥΝΣΗ",
    EntityCategory.ADDRESS_NUMBER.value: "ΠΙΘΑΝΗ ΔΙΕΥΘΥΝΣΗ",
    UNVERIFIED: "ΑΔΥΝΑΜΙΑ ΕΠΑΛΗΘΕΥΣΗΣ",
}
OTHER_LABEL = "ΛΟΙΠΑ ΣΤΟΙΧΕΙΑ"


def reason_labels(reasons: Iterable[str]) -> list[str]:
    """User-facing Greek labels for a set of reasons, deduplicated."""
    out: list[str] = []
    for reason in sorted(reasons):
        label = REASON_LABELS.get(reason, OTHER_LABEL)
        if label not in out:
            out.append(label)
    return out


# ── Normalization ────────────────────────────────────────────────────

_WS_RE = re.compile(r"\s+")
_QUOTES = "«»\"'`“”‘’"
_PUNCT = ".,;:!?"
_MASK_ONLY_LINE_RE = re.compile(r"^(?:X{6,}|[\W_])*$")


def normalize(text: str) -> str:
    """Trim, collapse whitespace, lowercase, strip outer quotes and punctuation."""
    text = _WS_RE.sub(" ", text.strip()).lower()
    return text.strip(_QUOTES + _PUNCT + " ")


def strip_placeholders(text: str) -> str:
    return PLACEHOLDER_RUN_RE.sub(" ", text)


def _hits(hits: dict[str, int]) -> GateVerdict:
    return GateVerdict(ok=not hits, reasons=frozenset(hits), counts=dict(hits))


def _bump(hits: dict[str, int], category: EntityCategory | str) -> None:
    key = category.value if isinstance(category, EntityCategory) else category
    hits[key] = hits.get(key, 0) + 1


class Check(Protocol):
    name: str

    def run(
        self, original: str, redacted: str, entities: Sequence[DetectedEntity],
    ) -> GateVerdict: ...


# ── Check 1: detected entities must be gone ──────────────────────────

class EntityResidualCheck:
    """Every detected entity's value must be absent from the redacted text."""

    name = "entity-residual"

    def run(self, original, redacted, entities):
        haystack = normalize(strip_placeholders(redacted))
        hits: dict[str, int] = {}
        for e in entities:
            value = normalize(original[e.start:e.end])
            if len(value) < 2:
                continue
            if self.is_present(value, haystack):
                _bump(hits, e.category)
        return _hits(hits)

    @staticmethod
    def is_present(value: str, haystack: str) -> bool:
        if re.search(r"(?<!\w)" + re.escape(value) + r"(?!\w)", haystack):
            return True
        return len(value) >= 4 and value in haystack


# ── Check 2: nothing in the redacted text looks like personal data ───

_SUFFIX_OWNER_RE = re.compile(r"(\S+)[ \t]*$")


def _suffix_has_owner(line: str, suffix_start: int) -> bool:
    """True when a legal-form token follows an unmasked name or a quote."""
    m = _SUFFIX_OWNER_RE.search(line, 0, suffix_start)
    if m is None:
        return False
    word = m.group(1)
    core = word.strip(_QUOTES + ",;:")
    if not core:
        return any(q in word for q in _QUOTES)
    if PLACEHOLDER_RUN_RE.fullmatch(core):
        return False
    return len(core) >= 2 and core[0].isupper() and core[0].isalpha()


def _real_words(run: str) -> list[str]:
    return [w for w in run.split() if not PLACEHOLDER_RUN_RE.fullmatch(w)]


def preamble_zone(redacted: str) -> tuple[int, int]:
    """Offsets in `redacted` that belong to the identity preamble."""
    if redacted.startswith(PREAMBLE_BANNER):
        return 0, len(PREAMBLE_BANNER)
    result = classify_preamble(redacted)
    if result.skipped and result.cut_index:
        return 0, result.cut_index
    return 0, 0


class SuspiciousPatternScan:
    """Line-oriented shape scan of the redacted text."""

    name = "suspicious-pattern"

    def run(self, original, redacted, entities):
        hits: dict[str, int] = {}
        zone_start, zone_end = preamble_zone(redacted)

        pos = 0
        for line in redacted.splitlines(keepends=True):
            offset = pos
            pos += len(line)
            body = line.rstrip("\r\n")
            if not body.strip() or _MASK_ONLY_LINE_RE.match(body):
                continue
            self._scan_line(redacted, body, offset, (zone_start, zone_end), hits)
        return _hits(hits)

    def _scan_line(self, text, line, offset, zone, hits):
        for category, pattern in P.GATE_IDENTIFIER_PATTERNS:
            for _ in pattern.finditer(line):
                _bump(hits, category)

        for m in P.COMPANY_SUFFIX_TOKEN_RE.finditer(line):
            if _suffix_has_owner(line, m.start()):
                _bump(hits, EntityCategory.COMPANY)

        for _ in P.ADDRESS_CUE_RE.finditer(line):
            _bump(hits, EntityCategory.ADDRESS)

        for pattern in P.NAME_SHAPES:
            for m in pattern.finditer(line):
                candidate = m.group(0)
                if is_excluded_name(candidate):
                    continue
                start, end = offset + m.start(), offset + m.end()
                in_zone = zone[0] <= start < zone[1]
                if in_zone or self._near_cue(text, start, end):
                    _bump(hits, EntityCategory.PERSON)

        for m in P.COMPANY_KEYWORD_RUN_RE.finditer(line):
            words = _real_words(m.group(1))
            if words and not is_excluded_name(" ".join(words)):
                _bump(hits, EntityCategory.COMPANY)

        for m in P.ALL_CAPS_RUN_RE.finditer(line):
            run = m.group(0)
            words = run.split()
            if not 2 <= len(words) <= 3:
                continue
            if not _real_words(run) or is_heading_run(run) or is_safe_phrase(run):
                continue
            _bump(hits, EntityCategory.COMPANY)

    @staticmethod
    def _near_cue(text: str, start: int, end: int) -> bool:
        lo = max(0, start - RELATIONAL_WINDOW)
        hi = min(len(text), end + RELATIONAL_WINDOW)
        return RELATIONAL_CUE_RE.search(text, lo, hi) is not None


# ── Check 3: re-derive candidates from the original ──────────────────

_COMPANY_SHAPES = [
    P.QUOTED_COMPANY_RE, P.BARE_COMPANY_CAPS_RE, P.BARE_COMPANY_EN_RE, P.BARE_COMPANY_GR_RE,
]
_ADDRESS_SHAPES = [P.LATIN_ADDRESS_RE, P.GREEK_ADDRESS_RE]


class ResidualComparisonCheck:
    """Catches detector misses by deriving candidates from the original."""

    name = "residual-comparison"

    def candidates(self, original: str) -> list[tuple[EntityCategory, str]]:
        out: list[tuple[EntityCategory, str]] = []

        for category, pattern in P.GATE_IDENTIFIER_PATTERNS:
            out.extend((category, m.group(0)) for m in pattern.finditer(original))

        for pattern in P.NAME_SHAPES:
            for m in pattern.finditer(original):
                out.append((EntityCategory.PERSON, m.group(0)))

        for m in P.COMPANY_KEYWORD_RUN_RE.finditer(original):
            out.append((EntityCategory.COMPANY, m.group(1)))
        for pattern in _COMPANY_SHAPES:
            for m in pattern.finditer(original):
                out.append((EntityCategory.COMPANY, m.group(0)))
        for m in P.ALL_CAPS_RUN_RE.finditer(original):
            run = m.group(0)
            if 2 <= len(run.split()) <= 3 and not is_heading_run(run):
                out.append((EntityCategory.COMPANY, run))

        for pattern in _ADDRESS_SHAPES:
            for m in pattern.finditer(original):
                out.append((EntityCategory.ADDRESS, m.group(0)))
        return out

    @staticmethod
    def _keep(category: EntityCategory, value: str) -> bool:
        if category in (EntityCategory.PERSON, EntityCategory.COMPANY):
            if len(value.split()) < 2 or is_safe_phrase(value):
                return False
            if category is EntityCategory.PERSON and is_excluded_name(value):
                return False
        return True

    def run(self, original, redacted, entities):
        haystack = normalize(strip_placeholders(redacted))
        hits: dict[str, int] = {}
        for category, value in self.candidates(original):
            if not self._keep(category, value):
                continue
            needle = normalize(value)
            if len(needle) >= 2 and needle in haystack:
                _bump(hits, category)
        return _hits(hits)


# ── Gate ─────────────────────────────────────────────────────────────

class PrivacyValidationGate:
    """Runs every check; all must pass for `ok`."""

    def __init__(
        self,
        checks: Sequence[Check] | None = None,
        sink: DiagnosticSink | None = None,
    ) -> None:
        self.checks = list(checks) if checks is not None else [
            EntityResidualCheck(),
            SuspiciousPatternScan(),
            ResidualComparisonCheck(),
        ]
        self.sink = sink or NullSink()
        self.logger = logging.getLogger(__name__)

    def validate(
        self, original: str, redacted: str, entities: Sequence[DetectedEntity],
    ) -> GateVerdict:
        verdicts = [self._run_check(c, original, redacted, entities) for c in self.checks]
        verdict = GateVerdict.combine(*verdicts)
        self.sink.record("gate", verdict.counts)
        if not verdict.ok:
            self.logger.warning(
                "privacy gate blocked transmission: %s", ", ".join(sorted(verdict.reasons))
            )
        return verdict

    def _run_check(self, check, original, redacted, entities) -> GateVerdict:
        try:
            return check.run(original, redacted, entities)
        except Exception as e:
            # exception text could quote input, log the type only
            self.logger.error("check %s could not complete: %s", check.name, type(e).__name__)
            return GateVerdict(ok=False, reasons=frozenset({UNVERIFIED}), counts={UNVERIFIED: 1})


_default: PrivacyValidationGate | None = None


def validate(
    original: str, redacted: str, entities: Sequence[DetectedEntity],
) -> GateVerdict:
    global _default
    if _default is None:
        _default = PrivacyValidationGate()
    return _default.validate(original, redacted, entities)
