"""Tests for the HTTP sidecar."""

import sys, os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

import json
import threading
import urllib.error
import urllib.request
from http.server import HTTPServer

import pytest

from contract_redactor import server


CORAL_TEXT = "Η εταιρεία CORAL Α.Ε. παρέχει υπηρεσίες. Η CORAL θα ενημερώνει."


@pytest.fixture
def base_url():
    httpd = HTTPServer(("127.0.0.1", 0), server.RedactHandler)
    thread = threading.Thread(target=httpd.serve_forever, daemon=True)
    thread.start()
    yield f"http://127.0.0.1:{httpd.server_address[1]}"
    httpd.shutdown()
    httpd.server_close()


def _post(url, body):
    data = json.dumps(body, ensure_ascii=False).encode("utf-8")
    req = urllib.request.Request(url, data=data, headers={"Content-Type": "application/json"})
    try:
        with urllib.request.urlopen(req) as resp:
            return resp.status, json.loads(resp.read().decode("utf-8"))
    except urllib.error.HTTPError as e:
        return e.code, json.loads(e.read().decode("utf-8"))


# ── Endpoints ────────────────────────────────────────────────────────

def test_health(base_url):
    with urllib.request.urlopen(base_url + "/health") as resp:
        assert json.loads(resp.read())["status"] == "ok"


def test_redact_text(base_url):
    status, data = _post(base_url + "/redact-text", {"text": CORAL_TEXT})
    assert status == 200
    assert data["ok"] is True
    assert "CORAL" not in data["text"]


def test_detect(base_url):
    status, data = _post(base_url + "/detect", {"text": CORAL_TEXT})
    assert status == 200
    assert data == {"total": 2, "counts": {"COMPANY": 2}}


def test_unknown_path(base_url):
    status, data = _post(base_url + "/nope", {})
    assert status == 404


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
