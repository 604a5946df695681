"""Tests for the command-line interface."""

import sys, os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

import io
import json

from contract_redactor import cli


CORAL_TEXT = "Η εταιρεία CORAL Α.Ε. παρέχει υπηρεσίες. Η CORAL θα ενημερώνει."


def _run(monkeypatch, capsys, argv, stdin=""):
    monkeypatch.setattr(sys, "stdin", io.StringIO(stdin))
    code = cli.main(argv)
    return code, capsys.readouterr().out


# ── Commands ─────────────────────────────────────────────────────────

def test_redact_outputs_verdict_and_text(monkeypatch, capsys):
    code, out = _run(monkeypatch, capsys, ["redact"], CORAL_TEXT)
    data = json.loads(out)
    assert code == 0
    assert data["ok"] is True
    assert data["entity_counts"] == {"COMPANY": 2}
    assert "CORAL" not in data["text"]


def test_redact_over_cap_is_refused(monkeypatch, capsys):
    code, out = _run(monkeypatch, capsys, ["--max-chars", "5", "redact"], CORAL_TEXT)
    assert code == cli.EXIT_BLOCKED
    assert "CORAL" not in out


def test_detect_prints_counts_only(monkeypatch, capsys):
    code, out = _run(monkeypatch, capsys, ["detect"], CORAL_TEXT)
    assert code == 0
    assert json.loads(out) == {"total": 2, "counts": {"COMPANY": 2}}
    assert "CORAL" not in out


def test_preamble_reports_cut(monkeypatch, capsys):
    text = "ΣΥΜΒΑΛΛΟΜΕΝΟΙ\nΟ Α και ο Β.\nΆρθρο 1 – ΑΝΤΙΚΕΙΜΕΝΟ\nΚείμενο.\n"
    code, out = _run(monkeypatch, capsys, ["preamble"], text)
    data = json.loads(out)
    assert data["skipped"] is True
    assert data["cut_index"] == text.index("Άρθρο")


def test_redact_messages(monkeypatch, capsys):
    messages = json.dumps([{"role": "user", "content": CORAL_TEXT}], ensure_ascii=False)
    code, out = _run(monkeypatch, capsys, ["redact-messages"], messages)
    assert code == 0
    assert "CORAL" not in json.loads(out)[0]["content"]


def test_check_passes_on_clean_fixture(monkeypatch, capsys, tmp_path):
    fixture = tmp_path / "contract.txt"
    fixture.write_text(CORAL_TEXT, encoding="utf-8")
    code, out = _run(monkeypatch, capsys, ["check", str(fixture)])
    assert code == 0
    assert out.startswith("PASS ")
    assert "entities: 2" in out
    assert "CORAL" not in out


if __name__ == "__main__":
    import pytest
    pytest.main([__file__, "-v"])
