"""Pattern tables for every detection family.

Structured identifiers come first and are near-zero cost.  Name, company
and address shapes follow.  The shape patterns are also used by the
validation gate, so the gate looks for exactly what the detector looks for.

All patterns are compiled once at import.  Matching always goes through
`finditer`/`search` on an explicit string, so no matcher state is carried
between calls.
"""

from __future__ import annotations
import re

from .lexicon import (
    GREEK_LOWER, GREEK_UPPER, LETTER, LOWER, UPPER,
    SUFFIX_EN_ALT, SUFFIX_GR_ALT,
)
from .types import EntityCategory

# ── Structured identifiers ───────────────────────────────────────────

EMAIL_RE = re.compile(
    r"\b[A-Za-z0-9._%+\-]+@[A-Za-z0-9.\-]+\.[A-Za-z]{2,}\b"
)

# International and Greek formats: +30 210 1234567, 210-123-4567, 6912345678
PHONE_RE = re.compile(
    r"(?<![\d.,])"
    r"(?:\+?\d{1,3}[\-.\s]?)?"
    r"\(?\d{3}\)?[\-.\s]?\d{3}[\-.\s]?\d{4}"
    r"(?![\d.,]\d)"
)

# GR16 0110 1250 0000 0001 2300 695 or the unspaced form
IBAN_RE = re.compile(
    r"\b[A-Z]{2}\d{2}(?:[ ]?[A-Z0-9]{4}){2,7}(?:[ ]?[A-Z0-9]{1,4})?\b"
)

# Greek ΑΦΜ (9 digits) and the dashed 10-digit form
TAX_ID_RE = re.compile(
    r"(?<!\d)\d{2}[\-.\s]?\d{7}[\-.\s]?\d(?!\d)|(?<!\d)\d{9}(?!\d)"
)

# 1.500€, 2.000,00 €, $1,200.00, 300 ευρώ
AMOUNT_RE = re.compile(
    r"\$\d{1,3}(?:,\d{3})*(?:\.\d{2})?"
    r"|(?<![\d.,])\d{1,3}(?:[.,]?\d{3})*(?:[.,]\d{2})?\s*(?:USD|EUR|GBP|€|£|ΕΥΡΩ|ευρώ)",
    re.IGNORECASE,
)

# Each entry: (category, compiled regex).  Order is the family order.
IDENTIFIER_PATTERNS: list[tuple[EntityCategory, re.Pattern]] = [
    (EntityCategory.EMAIL, EMAIL_RE),
    (EntityCategory.PHONE, PHONE_RE),
    (EntityCategory.IBAN, IBAN_RE),
    (EntityCategory.TAX_ID, TAX_ID_RE),
    (EntityCategory.AMOUNT, AMOUNT_RE),
]

# The gate scans for these; amounts are not personal data on their own
GATE_IDENTIFIER_PATTERNS = [
    (cat, pat) for cat, pat in IDENTIFIER_PATTERNS
    if cat is not EntityCategory.AMOUNT
]

# ── Person names ─────────────────────────────────────────────────────

_GAP = r"[ \t]+"

LATIN_TITLE_NAME_RE = re.compile(
    r"(?:Mr|Mrs|Ms|Dr|Prof)\.[ \t]+[A-Z][a-z]+(?:[ \t]+[A-Z][a-z]+)+"
)

LATIN_NAME_RE = re.compile(
    r"(?<![\w])[A-Z][a-z]+(?:[ \t]+[A-Z][a-z]+){1,2}(?![\w])"
)

GREEK_NAME_RE = re.compile(
    rf"(?<![\w])[{GREEK_UPPER}][{GREEK_LOWER}]+(?:{_GAP}[{GREEK_UPPER}][{GREEK_LOWER}]+){{1,2}}(?![\w])"
)

# κ. Παπαδόπουλος, κα Νικολάου, κος Ιωάννης Δήμου
GREEK_HONORIFIC_RE = re.compile(
    rf"(?<![\w])(?:κ\.|κα\.?|κος|κας)[ \t]+"
    rf"([{GREEK_UPPER}][{GREEK_LOWER}]+(?:{_GAP}[{GREEK_UPPER}][{GREEK_LOWER}]+){{0,2}})(?![\w])"
)

# Sentence-initial "του/της" followed by a capitalized name
CREATOR_NAME_RE = re.compile(
    rf"(?:^|[.!?])[ \t]*(?:του|της)[ \t]+"
    rf"([{UPPER}][{LETTER}]+(?:{_GAP}[{UPPER}][{LETTER}]+)+)",
    re.MULTILINE,
)

# Shapes the gate scans for (2-3 capitalized words, Latin or Greek)
NAME_SHAPES = [LATIN_NAME_RE, GREEK_NAME_RE]

# ── Company names ────────────────────────────────────────────────────

_END = r"(?![\w])"

# «CORAL» Α.Ε.   "ALPHA FILMS" ΕΠΕ
QUOTED_COMPANY_RE = re.compile(
    rf"[«\"“][{UPPER}][{UPPER}0-9 &\-]+[»\"”][ \t]*(?:{SUFFIX_GR_ALT}|{SUFFIX_EN_ALT}){_END}"
)

# Acme Films Ltd.   Παπαδόπουλος Α.Ε.   CORAL Α.Ε.
BARE_COMPANY_EN_RE = re.compile(
    rf"(?<![\w])[A-Z][A-Za-z&\-]+(?:[ \t]+[A-Z][A-Za-z&\-]+)*[ \t]+(?:{SUFFIX_EN_ALT}){_END}"
)
BARE_COMPANY_GR_RE = re.compile(
    rf"(?<![\w])[{GREEK_UPPER}][{GREEK_LOWER}]+(?:[ \t]+[{GREEK_UPPER}][{GREEK_LOWER}]+)*"
    rf"[ \t]+(?:{SUFFIX_GR_ALT}){_END}"
)
BARE_COMPANY_CAPS_RE = re.compile(
    rf"(?<![\w])[{UPPER}][{UPPER}0-9&\-]+(?:[ \t]+[{UPPER}][{UPPER}0-9&\-]+)*"
    rf"[ \t]+(?:{SUFFIX_GR_ALT}|{SUFFIX_EN_ALT}){_END}"
)

# διακριτικό τίτλο «X», trade name: "X"
LABELLED_BRAND_RE = re.compile(
    r"(?i:διακριτικό τίτλο|διακριτικός τίτλος|επωνυμία|Επωνυμία|trade name|brand name)"
    r"[ \t]*:?[ \t]*"
    rf"([«\"“'][{UPPER}][^»\"”'\n]{{0,80}}[»\"”'])"
)

STANDALONE_QUOTED_RE = re.compile(rf"«[{UPPER}][{UPPER}0-9 ]{{2,}}»")

ALL_CAPS_RUN_RE = re.compile(
    rf"(?<![\w])[{UPPER}]{{2,}}(?:[ \t]+[{UPPER}]{{2,}})+(?![\w])"
)

# Capitalized run of 2-5 words right after a company keyword
COMPANY_KEYWORD_RUN_RE = re.compile(
    r"(?i:εταιρεία|εταιρείας|επωνυμία|company|Ltd\.|Inc\.)[ \t]*[:,]?[ \t]+"
    rf"([{UPPER}][{LETTER}&\-]+(?:[ \t]+[{UPPER}][{LETTER}&\-]+){{1,4}})"
)

# Abbreviated legal-form tokens only; bare "Εταιρεία" is ordinary prose
COMPANY_SUFFIX_TOKEN_RE = re.compile(
    r"(?<![\w.])(?:Α\.Β\.Ε\.Ε\.|Ε\.Π\.Ε\.|Ι\.Κ\.Ε\.|Α\.Ε\.|Ο\.Ε\.|Ε\.Ε\.|ΑΒΕΕ|ΕΠΕ|ΙΚΕ|ΑΕ|ΟΕ|ΕΕ"
    r"|Inc\.|LLC|Ltd\.|Corp\.|LLP|GmbH)(?![\w])"
)

# ── Addresses ────────────────────────────────────────────────────────

_STREET_EN = r"(?:Street|St\.?|Avenue|Ave\.?|Road|Rd\.?|Boulevard|Blvd\.?|Lane|Ln\.?|Drive|Dr\.?|Court|Ct\.?|Place|Pl\.?|Way|Parkway|Pkwy)"
_STREET_GR = r"(?:Οδός|οδός|Οδού|οδού|Οδ\.|οδ\.|Λεωφόρος|λεωφόρος|Λεωφ\.|Λ\.)"
_HOUSE_NO = rf"\d+[A-Za-z{GREEK_UPPER}{GREEK_LOWER}]?"

# 12 Baker Street[, London[, NY 10001]]
LATIN_ADDRESS_RE = re.compile(
    rf"(?<!\d)\d+[ \t]+[A-Z][a-z]+(?:[ \t]+[A-Z][a-z]+)*[ \t]+{_STREET_EN}"
    r"(?:,?[ \t]+[A-Z][a-z]+)?(?:,?[ \t]+[A-Z]{2}[ \t]+\d{5})?(?![\w])"
)

# Οδός Ερμού αρ. 12[, Αθήνα[ 10563]]
GREEK_ADDRESS_RE = re.compile(
    rf"{_STREET_GR}[ \t]+[{UPPER}][{LOWER}]+(?:[ \t]+[{UPPER}][{LOWER}]+){{0,3}}"
    rf"[ \t]+(?:(?:αρ\.?|αριθμός)[ \t]*)?{_HOUSE_NO}"
    rf"(?:[ \t]*,[ \t]*[{UPPER}][{LOWER}]+(?:[ \t]+\d{{3}}[ \t]?\d{{2}})?)?"
)

ADDRESS_NUMBER_RE = re.compile(rf"(?<![\w])αρ\.[ \t]*{_HOUSE_NO}", re.IGNORECASE)

STREET_COMMA_NUMBER_RE = re.compile(
    rf"(?:{_STREET_GR}|{_STREET_EN})[ \t]+[{UPPER}][{LOWER} \t]*,[ \t]*({_HOUSE_NO})"
)

POSTAL_CODE_RE = re.compile(r"(?<![\w])Τ\.?[ \t]?Κ\.?[ \t]*\d{3}[ \t]?\d{2}(?!\d)")

# Address cue followed by something that still looks like an address
ADDRESS_CUE_RE = re.compile(
    r"(?<![\w])(?i:οδός|οδού|οδ\.|λεωφόρος|λεωφ\.|αρ\.|street|avenue|road|Τ\.Κ\.)"
    rf"[ \t]*(?!X{{5,}})(?=[{UPPER}]|\d)"
)


def scan_identifiers(text: str) -> list[tuple[EntityCategory, int, int]]:
    """Run the structured-identifier patterns.  Returns raw, possibly
    overlapping (category, start, end) triples in family order."""
    out: list[tuple[EntityCategory, int, int]] = []
    for category, pattern in IDENTIFIER_PATTERNS:
        for m in pattern.finditer(text):
            out.append((category, m.start(), m.end()))
    return out
