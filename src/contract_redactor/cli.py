"""CLI interface for contract-redactor.

Usage:
    # Redact a contract (stdin: text, stdout: JSON verdict + redacted text)
    contract-redactor redact < contract.txt

    # Redact OpenAI messages (stdin: JSON array, stdout: redacted JSON)
    echo '[{"role":"user","content":"..."}]' | contract-redactor redact-messages

    # Entity counts per category (no values)
    contract-redactor detect < contract.txt

    # Where do the contract terms begin?
    contract-redactor preamble < contract.txt

    # Privacy regression over fixture files
    contract-redactor check demo/contract-a.txt demo/contract-b.txt

Exit codes: 0 ok, 1 a regression check failed, 2 transmission blocked.
Nothing printed by any command contains a detected value, except the
redacted text of a passing verdict.
"""

from __future__ import annotations
import argparse
import json
import logging
import os
import sys
from typing import Any

from .config import configure_logging, create_pipeline, load_config, load_from_yaml
from .detector import count_by_category
from .errors import InputTooLarge, TransmissionBlocked
from .gate import reason_labels
from .middleware import RedactMiddleware
from .pipeline import Pipeline

EXIT_CHECK_FAILED = 1
EXIT_BLOCKED = 2


def _build_config(args: argparse.Namespace) -> dict[str, Any]:
    cfg = load_from_yaml(args.config) if args.config else load_config({})
    if args.presidio or os.environ.get("CONTRACT_REDACTOR_PRESIDIO", "") not in ("", "0"):
        cfg["use_presidio"] = True
    if args.language:
        cfg["language"] = args.language
    threshold = args.threshold or os.environ.get("CONTRACT_REDACTOR_THRESHOLD")
    if threshold:
        cfg["score_threshold"] = float(threshold)
    if args.no_skip_preamble:
        cfg["skip_preamble"] = False
    if args.max_chars:
        cfg["max_input_chars"] = args.max_chars
    if args.log_level:
        cfg["log_level"] = args.log_level.upper()
    return cfg


def _build_pipeline(args: argparse.Namespace) -> Pipeline:
    cfg = _build_config(args)
    logging.basicConfig(stream=sys.stderr, format="%(levelname)s %(name)s: %(message)s")
    configure_logging(cfg)
    return create_pipeline(cfg)


def _dump(data: Any) -> None:
    json.dump(data, sys.stdout, ensure_ascii=False, indent=2)
    sys.stdout.write("\n")


def cmd_redact(args: argparse.Namespace) -> int:
    """Redact a contract on stdin."""
    pipeline = _build_pipeline(args)
    result = pipeline.run(sys.stdin.read())

    output = {
        "ok": result.ok,
        "reasons": sorted(result.verdict.reasons),
        "labels": result.labels,
        "counts": result.verdict.counts,
        "entity_counts": result.entity_counts,
        "preamble_skipped": bool(result.preamble and result.preamble.skipped),
        "preamble_reason": result.preamble.reason if result.preamble else None,
    }
    if result.ok:
        output["text"] = result.text
    _dump(output)
    return 0 if result.ok else EXIT_BLOCKED


def cmd_redact_messages(args: argparse.Namespace) -> int:
    """Redact OpenAI-format messages on stdin."""
    mw = RedactMiddleware(pipeline=_build_pipeline(args))
    messages = json.loads(sys.stdin.read())
    try:
        redacted = mw.pre_send(messages)
    except TransmissionBlocked as e:
        _dump({"ok": False, "reasons": sorted(e.reasons), "labels": reason_labels(e.reasons),
               "counts": e.counts})
        return EXIT_BLOCKED
    json.dump(redacted, sys.stdout, ensure_ascii=False)
    sys.stdout.write("\n")
    return 0


def cmd_detect(args: argparse.Namespace) -> int:
    """Print entity counts per category for stdin."""
    pipeline = _build_pipeline(args)
    entities = pipeline.detector.detect(sys.stdin.read())
    _dump({"total": len(entities), "counts": count_by_category(entities)})
    return 0


def cmd_preamble(args: argparse.Namespace) -> int:
    """Report where the contract terms begin."""
    pipeline = _build_pipeline(args)
    result = pipeline.classifier.classify(sys.stdin.read())
    _dump({"skipped": result.skipped, "reason": result.reason, "cut_index": result.cut_index})
    return 0


def check_file(pipeline: Pipeline, path: str) -> dict[str, Any]:
    """Run the full flow over one file and report booleans and counts only."""
    with open(path, encoding="utf-8") as f:
        original = f.read()

    entities = pipeline.detector.detect(original)
    redacted = pipeline.redactor.redact(original, entities)
    outbound = pipeline.classifier.classify(redacted).text
    verdict = pipeline.gate.validate(original, outbound, entities)

    # short values such as house numbers recur in ordinary text
    values = (original[e.start:e.end].strip() for e in entities)
    leaked = any(len(v) >= 4 and v in outbound for v in values)
    return {
        "file": path,
        "ok": verdict.ok and not leaked,
        "entities": len(entities),
        "leaked": leaked,
        "reasons": sorted(verdict.reasons),
        "counts": verdict.counts,
    }


def cmd_check(args: argparse.Namespace) -> int:
    """Privacy regression over fixture files."""
    pipeline = _build_pipeline(args)
    failed = 0
    for path in args.files:
        r = check_file(pipeline, path)
        status = "PASS" if r["ok"] else "FAIL"
        detail = f"entities: {r['entities']}, leak: {'yes' if r['leaked'] else 'no'}"
        if r["counts"]:
            counts = sorted(r["counts"].items(), key=lambda kv: -kv[1])
            detail += ", offending: " + ", ".join(f"{k}={n}" for k, n in counts)
        print(f"{status} {r['file']} ({detail})")
        if not r["ok"]:
            failed += 1
    return EXIT_CHECK_FAILED if failed else 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="contract-redactor",
        description="On-device redaction and privacy gate for Greek contracts",
    )
    parser.add_argument("--config", default=None, help="YAML config file")
    parser.add_argument("--presidio", action="store_true", help="Enable the NER family")
    parser.add_argument("--language", default=None, help="Language code for NER")
    parser.add_argument("--threshold", type=float, default=None, help="NER score threshold")
    parser.add_argument("--no-skip-preamble", action="store_true", help="Keep the identity preamble")
    parser.add_argument("--max-chars", type=int, default=None, help="Input size cap")
    parser.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING, ...")

    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("redact", help="Redact a contract (text stdin)")
    sub.add_parser("redact-messages", help="Redact OpenAI messages (JSON stdin)")
    sub.add_parser("detect", help="Entity counts per category (text stdin)")
    sub.add_parser("preamble", help="Locate the start of the terms (text stdin)")
    check = sub.add_parser("check", help="Privacy regression over files")
    check.add_argument("files", nargs="+")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    cmds = {
        "redact": cmd_redact,
        "redact-messages": cmd_redact_messages,
        "detect": cmd_detect,
        "preamble": cmd_preamble,
        "check": cmd_check,
    }
    try:
        return cmds[args.command](args)
    except InputTooLarge as e:
        sys.stderr.write(f"{e}\n")
        return EXIT_BLOCKED


if __name__ == "__main__":
    sys.exit(main())
