"""YAML/dict config loader for contract-redactor.

Supports loading from a YAML file or a plain dict (for embedding in a
larger application config).

Example YAML:

    contract_redactor:
      use_presidio: false
      language: el
      score_threshold: 0.35
      presidio_entities:
        - PERSON
        - ORGANIZATION
      skip_preamble: true
      max_input_chars: 300000
      log_level: INFO

There is no "enabled" switch.  Text never leaves without passing the gate.
"""

from __future__ import annotations
import logging
from pathlib import Path
from typing import Any

from .middleware import RedactMiddleware
from .pipeline import DEFAULT_MAX_INPUT_CHARS, Pipeline, PipelineConfig

_KEYS = {
    "use_presidio", "language", "score_threshold", "presidio_entities",
    "skip_preamble", "max_input_chars", "log_level",
}


def load_config(data: dict[str, Any] | None) -> dict[str, Any]:
    """Normalize a config dict (from YAML or inline)."""
    data = data or {}
    # Support nested under "contract_redactor" key or flat
    if "contract_redactor" in data:
        data = data["contract_redactor"] or {}

    entities = data.get("presidio_entities")
    return {
        "use_presidio": bool(data.get("use_presidio", False)),
        "language": data.get("language", "el"),
        "score_threshold": float(data.get("score_threshold", 0.35)),
        "presidio_entities": list(entities) if entities else None,
        "skip_preamble": bool(data.get("skip_preamble", True)),
        "max_input_chars": int(data.get("max_input_chars", DEFAULT_MAX_INPUT_CHARS)),
        "log_level": str(data.get("log_level", "WARNING")).upper(),
    }


def load_from_yaml(path: str | Path) -> dict[str, Any]:
    """Load config from a YAML file."""
    import yaml
    with open(path, encoding="utf-8") as f:
        return load_config(yaml.safe_load(f))


def to_pipeline_config(config: dict[str, Any]) -> PipelineConfig:
    cfg = config if _KEYS <= config.keys() else load_config(config)
    return PipelineConfig(
        use_presidio=cfg["use_presidio"],
        language=cfg["language"],
        score_threshold=cfg["score_threshold"],
        presidio_entities=cfg["presidio_entities"],
        skip_preamble=cfg["skip_preamble"],
        max_input_chars=cfg["max_input_chars"],
    )


def configure_logging(config: dict[str, Any]) -> None:
    """Apply `log_level` to the package logger."""
    level = config.get("log_level", "WARNING")
    logging.getLogger("contract_redactor").setLevel(getattr(logging, level, logging.WARNING))


def create_pipeline(config: dict[str, Any]) -> Pipeline:
    return Pipeline(to_pipeline_config(config))


def create_middleware(config: dict[str, Any]) -> RedactMiddleware:
    """Create a fully configured middleware from a config dict."""
    return RedactMiddleware(pipeline=create_pipeline(config))
