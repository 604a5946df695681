"""Pipeline — detect, redact, skip the preamble, validate.

Usage:
    from contract_redactor import Pipeline

    pipeline = Pipeline()
    result = pipeline.run(contract_text)
    if result.ok:
        send(result.text)
    else:
        result.labels        # ["ΠΙΘΑΝΟ ΟΝΟΜΑ", ...]

The four stages run as one unit on the caller's thread.  Nothing leaves
`run` except through `PipelineResult`, and its text is empty unless the
gate passed.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field

from .detector import EntityDetector, count_by_category
from .diagnostics import DiagnosticSink, NullSink
from .errors import InputTooLarge
from .gate import PrivacyValidationGate, reason_labels
from .preamble import PreambleZoneClassifier
from .redactor import Redactor
from .types import UNVERIFIED, GateVerdict, PreambleResult

DEFAULT_MAX_INPUT_CHARS = 300_000


@dataclass
class PipelineConfig:
    """Configuration for the Pipeline."""
    use_presidio: bool = False        # optional NER family
    language: str = "el"
    score_threshold: float = 0.35     # minimum confidence for Presidio
    presidio_entities: list[str] | None = None  # None = defaults
    skip_preamble: bool = True
    max_input_chars: int = DEFAULT_MAX_INPUT_CHARS


@dataclass(frozen=True)
class PipelineResult:
    text: str                          # "" when blocked
    verdict: GateVerdict
    entity_counts: dict[str, int] = field(default_factory=dict)
    preamble: PreambleResult | None = None

    @property
    def ok(self) -> bool:
        return self.verdict.ok

    @property
    def labels(self) -> list[str]:
        return reason_labels(self.verdict.reasons)


def _unverified() -> GateVerdict:
    return GateVerdict(ok=False, reasons=frozenset({UNVERIFIED}), counts={UNVERIFIED: 1})


class Pipeline:
    """Runs the whole redaction flow and enforces the gate."""

    def __init__(
        self,
        config: PipelineConfig | None = None,
        *,
        detector: EntityDetector | None = None,
        redactor: Redactor | None = None,
        gate: PrivacyValidationGate | None = None,
        sink: DiagnosticSink | None = None,
    ) -> None:
        self.config = config or PipelineConfig()
        self.sink = sink or NullSink()
        self.detector = detector or EntityDetector(
            use_presidio=self.config.use_presidio,
            language=self.config.language,
            score_threshold=self.config.score_threshold,
            presidio_entities=self.config.presidio_entities,
            sink=self.sink,
        )
        self.redactor = redactor or Redactor(sink=self.sink)
        self.gate = gate or PrivacyValidationGate(sink=self.sink)
        self.classifier = PreambleZoneClassifier()
        self.logger = logging.getLogger(__name__)

    def run(self, text: str) -> PipelineResult:
        """Redact `text` and validate the outbound version.

        Raises InputTooLarge above the configured cap.  Every other failure
        is reported as a blocked verdict with reason UNVERIFIED.
        """
        limit = self.config.max_input_chars
        if limit and len(text) > limit:
            raise InputTooLarge(len(text), limit)

        try:
            entities = self.detector.detect(text)
            redacted = self.redactor.redact(text, entities)
        except Exception as e:
            self.logger.error("redaction could not complete: %s", type(e).__name__)
            return PipelineResult(text="", verdict=_unverified())

        counts = count_by_category(entities)
        preamble: PreambleResult | None = None
        outbound = redacted
        if self.config.skip_preamble:
            try:
                preamble = self.classifier.classify(redacted)
            except Exception as e:
                self.logger.error("preamble classification failed: %s", type(e).__name__)
                return PipelineResult(text="", verdict=_unverified(), entity_counts=counts)
            outbound = preamble.text

        verdict = self.gate.validate(text, outbound, entities)
        if not verdict.ok:
            return PipelineResult(text="", verdict=verdict, entity_counts=counts, preamble=preamble)

        self.logger.info("redacted %d entities, gate passed", len(entities))
        return PipelineResult(text=outbound, verdict=verdict, entity_counts=counts, preamble=preamble)


_default: Pipeline | None = None


def run(text: str) -> PipelineResult:
    """Run with a shared default pipeline."""
    global _default
    if _default is None:
        _default = Pipeline()
    return _default.run(text)
