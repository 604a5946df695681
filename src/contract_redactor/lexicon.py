"""Shared vocabularies and character classes.

The detector, the redactor and the validation gate all read from here so
that they agree on what counts as a name, a heading or a safe phrase.
Everything is built once at import time and never mutated.
"""

from __future__ import annotations
import re
import unicodedata

# ── Character classes (for use inside [...]) ─────────────────────────

GREEK_UPPER = "Α-ΩΆΈΉΊΌΎΏΪΫ"
GREEK_LOWER = "α-ωάέήίόύώϊϋΐΰ"
UPPER = "A-Z" + GREEK_UPPER
LOWER = "a-z" + GREEK_LOWER
LETTER = UPPER + LOWER


def to_greek_all_caps(text: str) -> str:
    """Uppercase with accents and diaeresis stripped (Ά → Α, ϋ → Υ)."""
    decomposed = unicodedata.normalize("NFD", text)
    stripped = "".join(c for c in decomposed if unicodedata.category(c) != "Mn")
    return stripped.upper()


def fold_phrase(text: str) -> str:
    """Accent-free uppercase with whitespace collapsed, for list lookups."""
    return " ".join(to_greek_all_caps(text).split())


# ── Corporate vocabulary ─────────────────────────────────────────────

CORPORATE_SUFFIXES_GR = [
    "Α.Β.Ε.Ε.", "Ε.Π.Ε.", "Ι.Κ.Ε.", "Α.Ε.", "Ο.Ε.", "Ε.Ε.",
    "ΑΒΕΕ", "ΕΠΕ", "ΙΚΕ", "ΑΕ", "ΟΕ", "ΕΕ",
    "Ανώνυμη Εταιρεία", "Εταιρεία",
]

CORPORATE_SUFFIXES_EN = [
    "Inc.", "LLC", "Ltd.", "Corp.", "Corporation", "Company", "Co.", "LLP",
    "GmbH", "Partners", "Group", "Holdings", "Enterprises", "Industries",
    "Services",
]

COMPANY_KEYWORDS = CORPORATE_SUFFIXES_EN + CORPORATE_SUFFIXES_GR + [
    "Μονοπρόσωπη", "Υποκατάστημα", "Brand", "Επωνυμία", "επωνυμία",
    "εταιρεία", "εταιρείας", "Εταιρείας",
    "Διακριτικός τίτλος", "διακριτικό τίτλο", "διακριτικός τίτλος",
]


def alternation(words: list[str]) -> str:
    """Regex alternation, longest first so prefixes never shadow."""
    return "|".join(re.escape(w) for w in sorted(set(words), key=len, reverse=True))


SUFFIX_GR_ALT = alternation(CORPORATE_SUFFIXES_GR)
SUFFIX_EN_ALT = alternation(CORPORATE_SUFFIXES_EN)

COMPANY_KEYWORD_RE = re.compile(
    r"(?<!\w)(?:" + alternation(COMPANY_KEYWORDS) + r")(?!\w)"
)

# ── Name-family exclusions ───────────────────────────────────────────

NAME_STOP_WORDS = frozenset({"The", "This", "That", "These", "Those"})

PROTECTED_LEGAL_PHRASES = [
    "εκπροσωπείται", "εξουσιοδοτείται", "νομίμως", "υπογράφει",
    "εκπροσωπεί", "εξουσιοδοτεί",
    "represented by", "is represented", "duly", "authorizes", "authorised",
    "authorized",
]

# Structural labels that stay readable in the redacted text
PROTECTED_LABELS = [
    "Ημέρες Παραστάσεων",
    "Παραστάσεων",
    "Παραστάσεις",
    "Πρόβες",
    "Προβών",
]

WORK_CONTEXT_KEYWORDS = frozenset(
    to_greek_all_caps(w) for w in (
        "Παράστασης", "Έργου", "Ταινίας", "Καμπάνιας",
        "Production", "Film", "Campaign",
    )
)

# Role and legal nouns kept when collapsing fragments next to a placeholder
PRESERVE_WORDS = [
    "Ηθοποιός", "Παραγωγός", "Σκηνοθέτης", "Σενάριο", "Σκηνογραφία",
    "Actor", "Producer", "Director", "Script", "Production",
    "Εταιρεία", "Επωνυμία", "Συμβόλαιο", "Ρήτρα",
]

PRESERVED_PLACES = ["Ελλάδα", "Greece", "Ευρώπη", "Europe"]

# Institutional phrases that are never treated as personal data
SAFE_PHRASES = frozenset(fold_phrase(p) for p in (
    "Ελληνικό Δημόσιο",
    "Ευρωπαϊκή Ένωση",
    "Αστικός Κώδικας",
    "Αστικού Κώδικα",
    "Ποινικός Κώδικας",
    "Εφημερίδα της Κυβερνήσεως",
    "Δημόσια Οικονομική Υπηρεσία",
    "Γενικός Κανονισμός Προστασίας Δεδομένων",
    "Υπουργείο Πολιτισμού",
    "Ημέρες Παραστάσεων",
    "European Union",
    "Civil Code",
    "General Data Protection Regulation",
))

_LOWER_GREEK_RUN = re.compile(rf"^[{GREEK_LOWER}\s]+$")


def is_safe_phrase(text: str) -> bool:
    return fold_phrase(text.strip(" \t«»\"'“”‘’.,;:")) in SAFE_PHRASES


def is_preserved_place(name: str) -> bool:
    low = name.strip().lower()
    return any(p.lower() in low or low in p.lower() for p in PRESERVED_PLACES)


def is_excluded_name(candidate: str) -> bool:
    """True when a capitalized sequence must not be treated as a name."""
    if len(candidate) < 4:
        return True
    words = candidate.split()
    if words and words[0] in NAME_STOP_WORDS:
        return True
    low = candidate.lower()
    if any(p.lower() in low for p in PROTECTED_LEGAL_PHRASES):
        return True
    if _LOWER_GREEK_RUN.match(candidate):
        return True
    if COMPANY_KEYWORD_RE.search(candidate):
        return True
    if any(ch.isdigit() for ch in candidate):
        return True
    if any(label.lower() in low for label in PROTECTED_LABELS):
        return True
    return is_safe_phrase(candidate)


# ── Contract headings ────────────────────────────────────────────────

NEGATIVE_HEADINGS = [
    "ΣΥΜΒΑΛΛΟΜΕΝΑ ΜΕΡΗ",
    "ΣΥΜΒΑΛΛΟΜΕΝΟΙ",
    "ΜΕΤΑΞΥ ΤΩΝ ΚΑΤΩΘΙ ΣΥΜΒΑΛΛΟΜΕΝΩΝ",
    "ΙΔΙΩΤΙΚΟ ΣΥΜΦΩΝΗΤΙΚΟ",
    "ΕΙΣΑΓΩΓΙΚΑ",
    "ΕΙΣΑΓΩΓΗ",
    "ΠΡΟΟΙΜΙΟ – ΔΗΛΩΣΕΙΣ",
    "ΠΡΟΟΙΜΙΟ",
    "ΔΗΛΩΣΕΙΣ ΚΑΙ ΒΕΒΑΙΩΣΕΙΣ ΤΩΝ ΜΕΡΩΝ",
    "ΟΡΙΣΜΟΙ",
    "ΥΠΟΓΡΑΦΕΣ",
]

CORE_START_HEADINGS = [
    "ΣΚΟΠΟΣ ΤΗΣ ΣΥΜΒΑΣΗΣ",
    "ΑΝΤΙΚΕΙΜΕΝΟ ΤΟΥ ΣΥΜΦΩΝΗΤΙΚΟΥ",
    "ΑΝΤΙΚΕΙΜΕΝΟ",
    "ΕΙΔΙΚΟΙ ΟΡΟΙ",
    "ΟΡΟΙ ΚΑΙ ΠΡΟΫΠΟΘΕΣΕΙΣ",
    "ΥΠΟΧΡΕΩΣΕΙΣ ΤΩΝ ΜΕΡΩΝ",
    "ΔΙΚΑΙΩΜΑΤΑ ΤΩΝ ΜΕΡΩΝ",
    "ΑΝΤΙΠΑΡΟΧΗ / ΑΜΟΙΒΗ",
    "ΑΝΤΙΠΑΡΟΧΗ",
    "ΑΜΟΙΒΗ",
    "ΤΡΟΠΟΣ ΠΛΗΡΩΜΗΣ",
    "ΔΙΑΡΚΕΙΑ",
    "ΛΥΣΗ",
    "ΚΑΤΑΓΓΕΛΙΑ",
    "ΤΡΟΠΟΠΟΙΗΣΗ ΣΥΜΒΑΣΗΣ",
    "ΠΕΡΙΟΡΙΣΜΟΣ ΕΥΘΥΝΗΣ",
    "ΕΥΘΥΝΗ",
    "ΑΝΩΤΕΡΑ ΒΙΑ",
    "ΕΜΠΙΣΤΕΥΤΙΚΟΤΗΤΑ",
    "ΠΡΟΣΤΑΣΙΑ ΔΕΔΟΜΕΝΩΝ",
    "ΕΚΧΩΡΗΣΗ",
    "ΥΠΕΡΓΟΛΑΒΙΑ",
    "ΤΡΙΤΟΙ",
    "ΜΗ ΑΝΤΑΓΩΝΙΣΜΟΣ",
    "ΠΟΙΝΙΚΗ ΡΗΤΡΑ",
    "ΡΗΤΡΕΣ",
    "ΤΕΛΙΚΕΣ ΔΙΑΤΑΞΕΙΣ",
    "ΛΟΙΠΟΙ ΟΡΟΙ",
    "ΔΙΑΦΟΡΕΣ",
    "ΕΦΑΡΜΟΣΤΕΟ ΔΙΚΑΙΟ",
    "ΑΡΜΟΔΙΟΤΗΤΑ ΔΙΚΑΣΤΗΡΙΩΝ",
    "ΟΛΟΚΛΗΡΗ Η ΣΥΜΒΑΣΗ",
    "ΑΚΥΡΟΤΗΤΑ ΟΡΟΥ",
    "ΠΑΡΑΙΤΗΣΗ ΔΙΚΑΙΩΜΑΤΩΝ",
    "ΕΙΔΟΠΟΙΗΣΕΙΣ",
]

SEMANTIC_ANCHORS = [
    "ΟΙ ΣΥΜΒΑΛΛΟΜΕΝΟΙ ΣΥΜΦΩΝΟΥΝ",
    "ΣΥΜΦΩΝΟΥΝ ΚΑΙ ΣΥΝΟΜΟΛΟΓΟΥΝ",
    "Η ΠΑΡΟΥΣΑ ΣΥΜΒΑΣΗ",
    "ΑΝΤΙΚΕΙΜΕΝΟ ΤΗΣ ΠΑΡΟΥΣΑΣ",
    "Η ΑΜΟΙΒΗ",
    "Η ΔΙΑΡΚΕΙΑ",
    "ΤΑ ΔΙΚΑΙΩΜΑΤΑ",
    "ΟΙ ΥΠΟΧΡΕΩΣΕΙΣ",
    "ΟΙ ΥΠΟΧΡΡΕΩΣΕΙΣ",  # common typo in scanned contracts
]

GREEK_NUMBER_WORDS = [
    "ΠΡΩΤΟ", "ΔΕΥΤΕΡΟ", "ΤΡΙΤΟ", "ΤΕΤΑΡΤΟ", "ΠΕΜΠΤΟ",
    "ΕΚΤΟ", "ΕΒΔΟΜΟ", "ΟΓΔΟΟ", "ΕΝΑΤΟ", "ΔΕΚΑΤΟ",
]

PREAMBLE_BANNER = (
    "[ΑΦΑΙΡΕΘΗΚΕ ΤΜΗΜΑ ΤΑΥΤΟΠΟΙΗΣΗΣ – ΑΚΟΛΟΥΘΟΥΝ ΟΙ ΟΡΟΙ ΤΗΣ ΣΥΜΒΑΣΗΣ]\n\n"
)

_EXTRA_HEADING_WORDS = """
ΑΡΘΡΟ ΑΡΘΡΑ ΣΥΜΒΑΣΗ ΣΥΜΒΑΣΗΣ ΣΥΜΒΑΣΕΩΣ ΣΥΜΦΩΝΗΤΙΚΟ ΣΥΜΦΩΝΗΤΙΚΟΥ
ΠΑΡΑΓΩΓΗΣ ΣΥΝΕΡΓΑΣΙΑΣ ΠΑΡΟΧΗΣ ΥΠΗΡΕΣΙΩΝ ΕΡΓΟΥ ΕΡΓΑΣΙΑΣ ΜΙΣΘΩΣΗΣ
ΗΘΟΠΟΙΟΣ ΗΘΟΠΟΙΟΥ ΠΑΡΑΓΩΓΟΣ ΠΑΡΑΓΩΓΟΥ ΣΚΗΝΟΘΕΤΗΣ ΣΚΗΝΟΘΕΤΗ
ΔΙΚΑΙΩΜΑΤΩΝ ΠΝΕΥΜΑΤΙΚΗΣ ΙΔΙΟΚΤΗΣΙΑΣ ΠΑΡΑΡΤΗΜΑ ΓΕΝΙΚΟΙ ΟΡΟΙ ΟΡΟΣ
ΠΛΗΡΩΜΗ ΠΛΗΡΩΜΗΣ ΤΙΜΗΜΑ ΕΓΓΥΗΣΗ ΥΠΟΓΡΑΦΗ ΜΕΡΟΣ ΜΕΡΗ ΜΕΡΩΝ
ΠΡΩΤΟΣ ΔΕΥΤΕΡΟΣ ΠΡΩΤΗ ΔΕΥΤΕΡΗ ΣΥΜΒΑΛΛΟΜΕΝΟΣ ΣΥΜΒΑΛΛΟΜΕΝΗ
ΚΑΙ ΤΟΥ ΤΗΣ ΤΩΝ ΣΤΟ ΣΤΗΝ ΣΤΟΝ ΜΕ ΓΙΑ ΑΠΟ ΟΙ ΤΑ ΤΟ ΤΟΝ ΤΗΝ
TERMS AND CONDITIONS AGREEMENT CONTRACT ARTICLE SECTION PARTIES SCOPE
PAYMENT FEE FEES DURATION TERM TERMINATION CONFIDENTIALITY GOVERNING LAW
SIGNATURES DEFINITIONS SCHEDULE ANNEX THE OF TO FOR BY WITH
""".split()

HEADING_WORDS = frozenset(
    to_greek_all_caps(word)
    for phrase in (
        NEGATIVE_HEADINGS + CORE_START_HEADINGS + SEMANTIC_ANCHORS
        + GREEK_NUMBER_WORDS + [PREAMBLE_BANNER] + _EXTRA_HEADING_WORDS
    )
    for word in re.findall(r"\w+", phrase)
)

_MASK_WORD = re.compile(r"^X{6,}$")


def is_heading_run(run: str) -> bool:
    """True when every word of an ALL-CAPS run is heading vocabulary or a mask."""
    words = re.findall(r"\w+", run)
    return bool(words) and all(
        _MASK_WORD.match(w) or to_greek_all_caps(w) in HEADING_WORDS
        for w in words
    )


# ── Relational cue words (names nearby are treated as risky) ────────

RELATIONAL_CUE_RE = re.compile(
    r"(?<!\w)(?:"
    r"του|της|των|μεταξύ|between|"
    r"εταιρεί\w*|ηθοποι\w*|παραγωγ\w*|σκηνοθ\w*|συγγραφ\w*|δικηγόρ\w*|λογιστ\w*|"
    r"company|actor|producer|director|author|lawyer"
    r")(?!\w)",
    re.IGNORECASE,
)
