"""Tests for the entity detector — pattern families + overlap resolution."""

import sys, os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from contract_redactor import CollectingSink, EntityCategory, EntityDetector, count_by_category, detect
from contract_redactor.detector import Candidate, resolve_overlaps
from contract_redactor.patterns import scan_identifiers
from contract_redactor.types import DetectedEntity


def _values(text, entities):
    return [(e.category, text[e.start:e.end]) for e in entities]


# ── Structured identifiers ───────────────────────────────────────────

def test_email_detection():
    text = "Επικοινωνία: info@example.com"
    assert _values(text, detect(text)) == [(EntityCategory.EMAIL, "info@example.com")]


def test_iban_detection():
    text = "IBAN: GR1601101250000000012300695"
    found = _values(text, detect(text))
    assert (EntityCategory.IBAN, "GR1601101250000000012300695") in found


def test_amount_detection():
    text = "Η αμοιβή ορίζεται σε 1.500€ μικτά."
    found = _values(text, detect(text))
    assert (EntityCategory.AMOUNT, "1.500€") in found


def test_postal_code_detection():
    text = "Τ.Κ. 10563"
    cats = [e.category for e in detect(text)]
    assert EntityCategory.ADDRESS_NUMBER in cats


def test_scan_identifiers_returns_raw_triples():
    text = "a@b.gr and c@d.gr"
    triples = scan_identifiers(text)
    emails = [t for t in triples if t[0] is EntityCategory.EMAIL]
    assert [(s, e) for _, s, e in emails] == [(0, 6), (11, 17)]


# ── Names ────────────────────────────────────────────────────────────

def test_greek_honorific_keeps_only_the_name():
    text = "Ο κ. Παπαδόπουλος υπογράφει."
    assert _values(text, detect(text)) == [(EntityCategory.PERSON, "Παπαδόπουλος")]


def test_latin_name():
    text = "Agreement with John Smith for services."
    assert _values(text, detect(text)) == [(EntityCategory.PERSON, "John Smith")]


def test_name_followed_by_company_suffix_is_a_company():
    text = "Signed by Acme Films Ltd. today"
    assert _values(text, detect(text)) == [(EntityCategory.COMPANY, "Acme Films Ltd.")]


def test_heading_run_is_not_an_entity():
    assert detect("ΓΕΝΙΚΟΙ ΟΡΟΙ") == []


# ── Companies ────────────────────────────────────────────────────────

def test_company_brand_repeats_are_detected():
    text = "Η εταιρεία CORAL Α.Ε. παρέχει υπηρεσίες. Η CORAL θα ενημερώνει."
    found = _values(text, detect(text))
    assert found == [
        (EntityCategory.COMPANY, "CORAL Α.Ε."),
        (EntityCategory.COMPANY, "CORAL"),
    ]


# ── Resolution ───────────────────────────────────────────────────────

def test_resolution_walks_by_start_offset():
    candidates = [
        Candidate(0, 10, 3, 0, EntityCategory.COMPANY),
        Candidate(0, 5, 2, 0, EntityCategory.PERSON),
        Candidate(4, 8, 1, 0, EntityCategory.EMAIL),
    ]
    assert resolve_overlaps(candidates) == [DetectedEntity(EntityCategory.PERSON, 0, 5)]


def test_resolution_priority_breaks_ties():
    candidates = [
        Candidate(3, 9, 4, 0, EntityCategory.ADDRESS),
        Candidate(3, 9, 1, 0, EntityCategory.PHONE),
        Candidate(12, 15, 2, 0, EntityCategory.PERSON),
    ]
    assert resolve_overlaps(candidates) == [
        DetectedEntity(EntityCategory.PHONE, 3, 9),
        DetectedEntity(EntityCategory.PERSON, 12, 15),
    ]


def test_entities_are_sorted_and_disjoint():
    text = (
        "Ο κ. Παπαδόπουλος (info@example.com, τηλ. 210-123-4567) "
        "συνεργάζεται με την Acme Films Ltd."
    )
    entities = detect(text)
    assert entities == sorted(entities, key=lambda e: e.start)
    for a, b in zip(entities, entities[1:]):
        assert a.end <= b.start


def test_empty_text():
    assert detect("") == []


def test_entity_rejects_empty_span():
    try:
        DetectedEntity(EntityCategory.PERSON, 5, 5)
    except ValueError:
        pass
    else:
        raise AssertionError("empty span accepted")


# ── Diagnostics ──────────────────────────────────────────────────────

def test_count_by_category():
    entities = [
        DetectedEntity(EntityCategory.PERSON, 0, 3),
        DetectedEntity(EntityCategory.PERSON, 5, 9),
        DetectedEntity(EntityCategory.EMAIL, 10, 20),
    ]
    assert count_by_category(entities) == {"PERSON": 2, "EMAIL": 1}


def test_sink_receives_counts_only():
    sink = CollectingSink()
    EntityDetector(sink=sink).detect("Επικοινωνία: info@example.com")
    assert sink.records == [("detect", {"EMAIL": 1})]


def test_presidio_family_has_lowest_priority(monkeypatch):
    from contract_redactor import presidio_layer

    def fake_scan(text, *, language, entities, score_threshold):
        # overlaps the email and adds one span of its own
        return [(EntityCategory.PERSON, 13, 17), (EntityCategory.PERSON, 0, 11)]

    monkeypatch.setattr(presidio_layer, "scan_presidio", fake_scan)
    text = "Επικοινωνία: info@example.com"
    found = _values(text, EntityDetector(use_presidio=True).detect(text))
    assert found == [
        (EntityCategory.PERSON, "Επικοινωνία"),
        (EntityCategory.EMAIL, "info@example.com"),
    ]


if __name__ == "__main__":
    import pytest
    pytest.main([__file__, "-v"])
