"""Tests for the middleware and the config loader."""

import sys, os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

import pytest

from contract_redactor import (
    Pipeline, RedactMiddleware, TransmissionBlocked,
    create_middleware, load_config, load_from_yaml,
)
from contract_redactor.config import to_pipeline_config


CORAL_TEXT = "Η εταιρεία CORAL Α.Ε. παρέχει υπηρεσίες. Η CORAL θα ενημερώνει."


class _Bypass:
    def redact(self, original, entities):
        return original


# ── Middleware ───────────────────────────────────────────────────────

def test_pre_send_redacts_contents():
    mw = RedactMiddleware.create()
    messages = [
        {"role": "system", "content": "Είσαι βοηθός ανάλυσης συμβάσεων."},
        {"role": "user", "content": CORAL_TEXT},
    ]
    safe = mw.pre_send(messages)

    assert safe[0] == messages[0]
    assert safe[1]["role"] == "user"
    assert "CORAL" not in safe[1]["content"]
    # input untouched
    assert messages[1]["content"] == CORAL_TEXT


def test_pre_send_passes_non_text_content_through():
    mw = RedactMiddleware.create()
    messages = [{"role": "assistant", "content": None, "tool_calls": []}]
    assert mw.pre_send(messages) == messages


def test_pre_send_blocks_on_any_failure():
    mw = RedactMiddleware(pipeline=Pipeline(redactor=_Bypass()))
    messages = [
        {"role": "user", "content": "Καλημέρα."},
        {"role": "user", "content": "Επικοινωνία: info@example.com"},
    ]
    with pytest.raises(TransmissionBlocked) as exc:
        mw.pre_send(messages)
    assert "EMAIL" in exc.value.reasons
    assert "info@example.com" not in str(exc.value)


def test_redact_text():
    mw = RedactMiddleware.create()
    assert "CORAL" not in mw.redact_text(CORAL_TEXT)


def test_stats_count_blocked():
    mw = RedactMiddleware(pipeline=Pipeline(redactor=_Bypass()))
    mw.redact_text("Καλημέρα.")
    with pytest.raises(TransmissionBlocked):
        mw.redact_text("Επικοινωνία: info@example.com")
    assert mw.stats == {"processed": 2, "blocked": 1}


# ── Config ───────────────────────────────────────────────────────────

def test_load_config_defaults():
    cfg = load_config({})
    assert cfg["use_presidio"] is False
    assert cfg["language"] == "el"
    assert cfg["score_threshold"] == 0.35
    assert cfg["presidio_entities"] is None
    assert cfg["skip_preamble"] is True
    assert cfg["max_input_chars"] == 300_000
    assert cfg["log_level"] == "WARNING"


def test_load_config_nested():
    cfg = load_config({"contract_redactor": {"skip_preamble": False, "language": "en"}})
    assert cfg["skip_preamble"] is False
    assert cfg["language"] == "en"


def test_load_from_yaml(tmp_path):
    path = tmp_path / "redactor.yaml"
    path.write_text(
        "contract_redactor:\n"
        "  use_presidio: true\n"
        "  score_threshold: 0.5\n"
        "  presidio_entities:\n"
        "    - PERSON\n"
        "  max_input_chars: 1000\n"
        "  log_level: debug\n",
        encoding="utf-8",
    )
    cfg = load_from_yaml(path)
    assert cfg["use_presidio"] is True
    assert cfg["score_threshold"] == 0.5
    assert cfg["presidio_entities"] == ["PERSON"]
    assert cfg["max_input_chars"] == 1000
    assert cfg["log_level"] == "DEBUG"


def test_empty_yaml_gives_defaults(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("", encoding="utf-8")
    assert load_from_yaml(path) == load_config({})


def test_create_middleware_applies_config():
    mw = create_middleware({"skip_preamble": False, "max_input_chars": 50})
    assert mw.pipeline.config.skip_preamble is False
    assert mw.pipeline.config.max_input_chars == 50
    assert mw.pipeline.detector.use_presidio is False


def test_to_pipeline_config_accepts_normalized_dict():
    cfg = load_config({"language": "en"})
    assert to_pipeline_config(cfg).language == "en"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
