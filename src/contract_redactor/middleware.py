"""OpenAI-compatible middleware: redact before anything is sent.

Usage:
    mw = RedactMiddleware.create()

    # Before sending to the analysis provider
    safe_messages = mw.pre_send(messages)   # raises TransmissionBlocked

Redaction is one-way.  No mapping from masks back to values is kept, so
there is nothing to rehydrate in the provider's response.
"""

from __future__ import annotations
from dataclasses import dataclass, field

from .errors import TransmissionBlocked
from .pipeline import Pipeline, PipelineConfig, PipelineResult
from .types import GateVerdict


@dataclass
class RedactMiddleware:
    """Middleware that sits between the client and the analysis provider."""

    pipeline: Pipeline
    _processed: int = field(default=0, init=False, repr=False)
    _blocked: int = field(default=0, init=False, repr=False)

    @classmethod
    def create(cls, *, config: PipelineConfig | None = None) -> "RedactMiddleware":
        """Factory, builds its own pipeline."""
        return cls(pipeline=Pipeline(config))

    def _run(self, text: str) -> PipelineResult:
        result = self.pipeline.run(text)
        self._processed += 1
        if not result.ok:
            self._blocked += 1
        return result

    def pre_send(self, messages: list[dict]) -> list[dict]:
        """Redact every string `content`; all messages pass or none are sent."""
        out: list[dict] = []
        verdicts: list[GateVerdict] = []
        for msg in messages:
            content = msg.get("content")
            if not isinstance(content, str) or not content:
                out.append(dict(msg))
                continue
            result = self._run(content)
            verdicts.append(result.verdict)
            out.append({**msg, "content": result.text})

        verdict = GateVerdict.combine(*verdicts) if verdicts else GateVerdict(ok=True)
        if not verdict.ok:
            raise TransmissionBlocked(verdict.reasons, verdict.counts)
        return out

    def redact_text(self, text: str) -> str:
        """Redact a single string (convenience)."""
        result = self._run(text)
        if not result.ok:
            raise TransmissionBlocked(result.verdict.reasons, result.verdict.counts)
        return result.text

    @property
    def stats(self) -> dict:
        return {"processed": self._processed, "blocked": self._blocked}
