"""Tests for the redactor — the nine rewrite stages and their properties."""

import sys, os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from contract_redactor import CollectingSink, EntityCategory, Redactor, detect, redact
from contract_redactor.gate import EntityResidualCheck
from contract_redactor.redactor import (
    FULL_ENTITY_MASK, MERGED_MASK, PLACEHOLDER,
    collapse_adjacent_fragments, normalize_placeholders, protect_labels,
    redact_full_addresses, redact_quoted_companies, redact_venues,
    redact_work_titles, restore_labels, should_preserve, substitute_entities,
)
from contract_redactor.types import DetectedEntity


CORAL_TEXT = "Η εταιρεία CORAL Α.Ε. παρέχει υπηρεσίες. Η CORAL θα ενημερώνει."


def _entity(text, value, category=EntityCategory.PERSON):
    start = text.index(value)
    return DetectedEntity(category, start, start + len(value))


# ── Stage 1 / 9: labels ──────────────────────────────────────────────

def test_labels_survive_redaction():
    text = "Ημέρες Παραστάσεων: 20"
    assert redact(text, []) == text


def test_protect_and_restore_labels():
    text = "Πρόβες: 10, Ημέρες Παραστάσεων: 20"
    protected, labels = protect_labels(text)
    assert "Πρόβες" not in protected
    assert "Παραστάσεων" not in protected
    assert len(labels) == 2
    assert restore_labels(protected, labels) == text


# ── Stage 2: addresses ───────────────────────────────────────────────

def test_parenthesized_address_keeps_parens():
    text = "Τα γραφεία βρίσκονται (οδός Νικομάχου αρ. 51) όπως δηλώνεται."
    assert redact(text, []) == f"Τα γραφεία βρίσκονται ({FULL_ENTITY_MASK}) όπως δηλώνεται."


def test_city_after_preposition():
    out, n = redact_full_addresses("Συντάχθηκε στην Πάτρα σήμερα.")
    assert out == f"Συντάχθηκε {FULL_ENTITY_MASK} σήμερα."
    assert n == 1


def test_preserved_place_is_not_masked():
    text = "Η σύμβαση ισχύει στην Ελλάδα."
    assert redact_full_addresses(text) == (text, 0)


def test_tax_office_keeps_marker():
    out, _ = redact_full_addresses("ΑΦΜ και Δ.Ο.Υ. Καλαμάτας")
    assert out == f"ΑΦΜ και Δ.Ο.Υ. {FULL_ENTITY_MASK}"


def test_residency_verb_is_kept():
    out, _ = redact_full_addresses("ο οποίος κατοικεί στη Λάρισα.")
    assert out == f"ο οποίος κατοικεί {FULL_ENTITY_MASK}."


def test_city_after_residency_noun():
    out, n = redact_full_addresses("Ο Γιώργος, κάτοικος Αθηνών, δηλώνει.")
    assert out == f"Ο Γιώργος, κάτοικος {FULL_ENTITY_MASK}, δηλώνει."
    assert n == 1


def test_street_number_shaped_like_year_is_masked():
    out, n = redact_full_addresses("Η έδρα είναι οδός Πατησίων 1821.")
    assert out == f"Η έδρα είναι {FULL_ENTITY_MASK}."
    assert n == 1


def test_venue_label_is_not_a_place():
    text = "Η παράσταση δίνεται στο Θέατρο: ACROPOL, 20:00"
    assert redact_full_addresses(text) == (text, 0)
    assert redact(text, []) == f"Η παράσταση δίνεται στο Θέατρο: {MERGED_MASK}, 20:00"


# ── Stage 3: quoted company names ────────────────────────────────────

def test_quoted_company_after_trigger():
    text = "Συμβαλλόμενη είναι η εταιρεία με την επωνυμία «ΑΛΦΑ ΠΑΡΑΓΩΓΕΣ»."
    out, n = redact_quoted_companies(text)
    assert out == f"Συμβαλλόμενη είναι η εταιρεία με την επωνυμία {FULL_ENTITY_MASK}."
    assert n == 1


def test_quote_outside_window_is_kept():
    text = "υπό την επωνυμία" + " λόγια" * 40 + " «ΜΑΚΡΙΑ»"
    out, n = redact_quoted_companies(text)
    assert out == text
    assert n == 0


# ── Stage 4: entity substitution ─────────────────────────────────────

def test_substitution_relocates_after_drift():
    original = "abc 1234567890 John Smith"
    working = "abc X John Smith"
    out, n = substitute_entities(working, original, [_entity(original, "John Smith")])
    assert out == f"abc X {PLACEHOLDER}"
    assert n == 1


def test_substitution_skips_values_already_masked():
    original = "abc John Smith"
    working = f"abc {FULL_ENTITY_MASK}"
    out, n = substitute_entities(working, original, [_entity(original, "John Smith")])
    assert out == working
    assert n == 0


# ── Stage 5: fragments ───────────────────────────────────────────────

def test_fragment_next_to_placeholder_is_merged():
    out, n = collapse_adjacent_fragments(f"Ο ΕΥΘΥΜΙΟΣ {PLACEHOLDER} θα εμφανιστεί.")
    assert out == f"Ο {MERGED_MASK} θα εμφανιστεί."
    assert n == 1


def test_placeholder_then_surname():
    out, n = collapse_adjacent_fragments(f"Ο {PLACEHOLDER} Παπαδάκης θα εμφανιστεί.")
    assert out == f"Ο {MERGED_MASK} θα εμφανιστεί."
    assert n == 1


def test_placeholder_between_articles():
    out, n = collapse_adjacent_fragments(f"η συμφωνία του {PLACEHOLDER} του Παπαδάκη ισχύει")
    assert out == f"η συμφωνία {MERGED_MASK} ισχύει"
    assert n == 1


def test_word_article_placeholder():
    out, n = collapse_adjacent_fragments(f"ο Γεώργιος του {PLACEHOLDER} υπογράφει")
    assert out == f"ο {MERGED_MASK} υπογράφει"
    assert n == 1


def test_placeholder_article_word():
    out, n = collapse_adjacent_fragments(f"η σύμβαση με {PLACEHOLDER} της Παπαδάκη λήγει")
    assert out == f"η σύμβαση με {MERGED_MASK} λήγει"
    assert n == 1


def test_merged_mask_article_word():
    out, n = collapse_adjacent_fragments(f"η σύμβαση με {MERGED_MASK} της Παπαδάκη λήγει")
    assert out == f"η σύμβαση με {MERGED_MASK} λήγει"
    assert n == 1


def test_article_word_placeholder():
    out, n = collapse_adjacent_fragments(f"η υπογραφή της Μαρίας {PLACEHOLDER} ακολουθεί")
    assert out == f"η υπογραφή {MERGED_MASK} ακολουθεί"
    assert n == 1


def test_short_x_run_is_not_a_placeholder():
    text = "η σύμβαση με XXXXX της Παπαδάκη λήγει"
    assert collapse_adjacent_fragments(text) == (text, 0)


def test_mask_next_to_mask_is_not_a_word():
    out, _ = collapse_adjacent_fragments(f"{PLACEHOLDER} {PLACEHOLDER} Παπαδάκης θα")
    assert out == f"{PLACEHOLDER} {MERGED_MASK} θα"


def test_collapse_repeats_until_stable():
    out, n = collapse_adjacent_fragments(f"Ο Γιώργος {PLACEHOLDER} Παπαδάκης θα υπογράψει.")
    assert out == f"Ο {MERGED_MASK} θα υπογράψει."
    assert n == 2


def test_role_noun_next_to_placeholder_is_kept():
    text = f"Ο Ηθοποιός {PLACEHOLDER} θα εμφανιστεί."
    assert collapse_adjacent_fragments(text) == (text, 0)


def test_heading_word_next_to_placeholder_is_kept():
    text = f"ΑΜΟΙΒΗ {PLACEHOLDER} ευρώ"
    assert collapse_adjacent_fragments(text) == (text, 0)


def test_fragments_do_not_merge_across_lines():
    text = f"Παπαδάκης\n{PLACEHOLDER} δηλώνει"
    assert collapse_adjacent_fragments(text) == (text, 0)


def test_heading_line_survives_redaction():
    text = "ΙΔΙΩΤΙΚΟ ΣΥΜΦΩΝΗΤΙΚΟ\nΣτην Αθήνα σήμερα συμβάλλονται τα μέρη.\n"
    out = redact(text, detect(text))
    assert out == f"ΙΔΙΩΤΙΚΟ ΣΥΜΦΩΝΗΤΙΚΟ\n{FULL_ENTITY_MASK} σήμερα συμβάλλονται τα μέρη.\n"


def test_should_preserve():
    assert should_preserve("2024")
    assert should_preserve("15")
    assert should_preserve("Ηθοποιός")
    assert should_preserve("ΣΥΜΦΩΝΗΤΙΚΟ")
    assert should_preserve("Αντικείμενο")
    assert should_preserve("Ο")
    assert not should_preserve("Παπαδάκης")


def test_first_name_fragment_does_not_leak():
    text = "Ο ΕΥΘΥΜΙΟΣ Παπαδάκης θα εμφανιστεί."
    out = redact(text, [_entity(text, "Παπαδάκης")])
    assert out == f"Ο {MERGED_MASK} θα εμφανιστεί."
    assert "ΕΥΘΥΜΙΟΣ" not in out


# ── Stage 6 / 7: titles and venues ───────────────────────────────────

def test_work_title_after_trigger():
    out, n = redact_work_titles("Για τις ανάγκες της παράστασης «Ο Γλάρος» ισχύουν τα εξής.")
    assert out == f"Για τις ανάγκες της παράστασης {MERGED_MASK} ισχύουν τα εξής."
    assert n == 1


def test_labelled_venue():
    out, _ = redact_venues("Χώρος: STAGE ONE, 20:00")
    assert out == f"Χώρος: {MERGED_MASK}, 20:00"


def test_short_caps_are_not_venues():
    text = "Οι ώρες είναι GMT+2."
    assert redact_venues(text) == (text, 0)


# ── Stage 8: placeholder normalization ───────────────────────────────

def test_glued_placeholder_is_merged():
    out, _ = normalize_placeholders(f"ΤΟΥ{PLACEHOLDER} και {PLACEHOLDER}ς")
    assert out == f"{MERGED_MASK} και {MERGED_MASK}"


def test_normalization_is_idempotent():
    text = f"abc{PLACEHOLDER} και {PLACEHOLDER}def και a{PLACEHOLDER}b, {PLACEHOLDER} μόνο"
    once, _ = normalize_placeholders(text)
    twice, _ = normalize_placeholders(once)
    assert once == twice


# ── Whole redactor ───────────────────────────────────────────────────

def test_detected_company_is_removed():
    entities = detect(CORAL_TEXT)
    out = redact(CORAL_TEXT, entities)
    assert "CORAL" not in out
    assert EntityResidualCheck().run(CORAL_TEXT, out, entities).ok


def test_every_detected_entity_is_gone():
    text = (
        "Ο κ. Παπαδόπουλος, email info@example.com, τηλ. 2101234567, "
        "ΑΦΜ 123456789, IBAN GR1601101250000000012300695."
    )
    entities = detect(text)
    out = redact(text, entities)
    verdict = EntityResidualCheck().run(text, out, entities)
    assert verdict.ok, verdict.reasons


def test_empty_input_is_returned_unchanged():
    assert redact("", []) == ""


def test_sink_records_stage_counts():
    sink = CollectingSink()
    Redactor(sink=sink).redact(CORAL_TEXT, detect(CORAL_TEXT))
    (stage, counts), = sink.records
    assert stage == "redact"
    assert counts["entities"] == 2


if __name__ == "__main__":
    import pytest
    pytest.main([__file__, "-v"])
