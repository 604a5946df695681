"""HTTP sidecar server for contract-redactor.

Runs as a lightweight stdlib HTTP server on localhost.  A desktop or web
client calls this before it sends anything to the analysis provider.

Endpoints:
    POST /redact-text     — Redact one contract (JSON body {"text": ...})
    POST /redact          — Redact messages (JSON body {"messages": [...]})
    POST /detect          — Entity counts per category (JSON body {"text": ...})
    GET  /health          — Health check

All endpoints expect/return JSON.  A blocked verdict answers 422 with
reasons and counts, never with text.
"""

from __future__ import annotations
import json
import logging
import os
from http.server import HTTPServer, BaseHTTPRequestHandler
from typing import Any

from .config import configure_logging, create_pipeline, load_config, load_from_yaml
from .detector import count_by_category
from .errors import InputTooLarge, TransmissionBlocked
from .gate import reason_labels
from .middleware import RedactMiddleware
from .pipeline import Pipeline

DEFAULT_PORT = int(os.environ.get("CONTRACT_REDACTOR_PORT", "18792"))

logger = logging.getLogger(__name__)

# Shared state
_pipeline: Pipeline | None = None
_config: dict[str, Any] | None = None


def _get_config() -> dict[str, Any]:
    global _config
    if _config is None:
        path = os.environ.get("CONTRACT_REDACTOR_CONFIG")
        _config = load_from_yaml(path) if path else load_config({})
        if os.environ.get("CONTRACT_REDACTOR_PRESIDIO", "") not in ("", "0"):
            _config["use_presidio"] = True
        threshold = os.environ.get("CONTRACT_REDACTOR_THRESHOLD")
        if threshold:
            _config["score_threshold"] = float(threshold)
    return _config


def _get_pipeline() -> Pipeline:
    global _pipeline
    if _pipeline is None:
        _pipeline = create_pipeline(_get_config())
    return _pipeline


def _blocked(reasons: frozenset[str], counts: dict[str, int]) -> dict[str, Any]:
    return {
        "ok": False,
        "reasons": sorted(reasons),
        "labels": reason_labels(reasons),
        "counts": counts,
    }


class RedactHandler(BaseHTTPRequestHandler):
    """HTTP request handler for the redaction sidecar."""

    def _read_json(self) -> dict[str, Any]:
        length = int(self.headers.get("Content-Length", 0))
        body = self.rfile.read(length).decode("utf-8")
        return json.loads(body) if body else {}

    def _respond(self, status: int, data: Any) -> None:
        body = json.dumps(data, ensure_ascii=False).encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format: str, *args: Any) -> None:
        # Request lines go to the module logger, never to stderr
        logger.debug(format, *args)

    def do_GET(self) -> None:
        if self.path == "/health":
            cfg = _get_config()
            self._respond(200, {"status": "ok", "presidio": cfg["use_presidio"]})
        else:
            self._respond(404, {"error": "not found"})

    def do_POST(self) -> None:
        try:
            body = self._read_json()
            pipeline = _get_pipeline()

            if self.path == "/redact-text":
                result = pipeline.run(body.get("text", ""))
                if not result.ok:
                    self._respond(422, _blocked(result.verdict.reasons, result.verdict.counts))
                    return
                self._respond(200, {
                    "ok": True,
                    "text": result.text,
                    "entity_counts": result.entity_counts,
                    "preamble_skipped": bool(result.preamble and result.preamble.skipped),
                })

            elif self.path == "/redact":
                mw = RedactMiddleware(pipeline=pipeline)
                try:
                    messages = mw.pre_send(body.get("messages", []))
                except TransmissionBlocked as e:
                    self._respond(422, _blocked(e.reasons, e.counts))
                    return
                self._respond(200, {"ok": True, "messages": messages})

            elif self.path == "/detect":
                entities = pipeline.detector.detect(body.get("text", ""))
                self._respond(200, {"total": len(entities), "counts": count_by_category(entities)})

            else:
                self._respond(404, {"error": "not found"})

        except InputTooLarge as e:
            self._respond(413, {"error": str(e)})
        except Exception as e:
            # exception text could quote the request body
            logger.error("request failed: %s", type(e).__name__)
            self._respond(500, {"error": type(e).__name__})


def serve(port: int = DEFAULT_PORT) -> None:
    """Start the contract-redactor HTTP sidecar."""
    cfg = _get_config()
    logging.basicConfig(format="%(levelname)s %(name)s: %(message)s")
    configure_logging(cfg)

    server = HTTPServer(("127.0.0.1", port), RedactHandler)
    print(f"contract-redactor sidecar listening on http://127.0.0.1:{port}")
    print(f"  presidio: {'enabled' if cfg['use_presidio'] else 'disabled'}")
    print(f"  skip preamble: {'yes' if cfg['skip_preamble'] else 'no'}")
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        print("\nShutting down...")
        server.shutdown()


if __name__ == "__main__":
    import argparse
    parser = argparse.ArgumentParser(description="Contract redactor HTTP sidecar")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT)
    args = parser.parse_args()
    serve(port=args.port)
