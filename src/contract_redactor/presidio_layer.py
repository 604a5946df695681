"""Optional NER layer: Presidio over spaCy.

Catches names, organisations and places the pattern families miss.  Off by
default; enable with ``use_presidio: true`` and install the ``ner`` extra
plus a spaCy model for the configured language (``el_core_news_sm`` for
Greek, ``en_core_web_sm`` for English).
"""

from __future__ import annotations
from typing import TYPE_CHECKING

from .types import EntityCategory

if TYPE_CHECKING:
    from presidio_analyzer import AnalyzerEngine

# Lazy singleton, spaCy loads on first use
_engine: AnalyzerEngine | None = None
_engine_lang: str = ""

# spaCy ships Greek only as a news model
_MODELS = {
    "el": "el_core_news_sm",
    "en": "en_core_web_sm",
}

DEFAULT_ENTITIES = [
    "PERSON",
    "ORGANIZATION",
    "LOCATION",
    "EMAIL_ADDRESS",
    "PHONE_NUMBER",
    "IBAN_CODE",
]

# Presidio entity type → our category.  Anything else is dropped.
CATEGORY_MAP = {
    "PERSON": EntityCategory.PERSON,
    "ORGANIZATION": EntityCategory.COMPANY,
    "ORG": EntityCategory.COMPANY,
    "LOCATION": EntityCategory.ADDRESS,
    "EMAIL_ADDRESS": EntityCategory.EMAIL,
    "PHONE_NUMBER": EntityCategory.PHONE,
    "IBAN_CODE": EntityCategory.IBAN,
}


def _get_engine(language: str = "el") -> AnalyzerEngine:
    """Lazy-init the Presidio analyzer engine."""
    global _engine, _engine_lang
    if _engine is None or _engine_lang != language:
        from presidio_analyzer import AnalyzerEngine
        from presidio_analyzer.nlp_engine import NlpEngineProvider

        model = _MODELS.get(language, f"{language}_core_news_sm")
        provider = NlpEngineProvider(nlp_configuration={
            "nlp_engine_name": "spacy",
            "models": [{"lang_code": language, "model_name": model}],
        })
        nlp_engine = provider.create_engine()
        _engine = AnalyzerEngine(nlp_engine=nlp_engine, supported_languages=[language])
        _engine_lang = language
    return _engine


def scan_presidio(
    text: str,
    *,
    language: str = "el",
    entities: list[str] | None = None,
    score_threshold: float = 0.35,
) -> list[tuple[EntityCategory, int, int]]:
    """Run Presidio analysis on text.

    Returns (category, start, end) triples sorted by start.  Overlaps with
    the pattern families are left to the detector's resolution step.
    """
    engine = _get_engine(language)
    results = engine.analyze(
        text=text,
        language=language,
        entities=entities or DEFAULT_ENTITIES,
        score_threshold=score_threshold,
    )

    out: list[tuple[EntityCategory, int, int]] = []
    for r in results:
        category = CATEGORY_MAP.get(r.entity_type)
        if category is None or r.start >= r.end:
            continue
        out.append((category, r.start, r.end))
    return sorted(out, key=lambda t: t[1])
