"""Diagnostic sinks.

Stages report what they did as category → count metadata.  A sink never
receives text, so nothing it records can leak a raw value.

    sink = LoggingSink()
    detector = EntityDetector(sink=sink)
"""

from __future__ import annotations
import logging
from typing import Mapping, Protocol


class DiagnosticSink(Protocol):
    def record(self, stage: str, counts: Mapping[str, int]) -> None: ...


class NullSink:
    """Discards everything.  The default."""

    def record(self, stage: str, counts: Mapping[str, int]) -> None:
        pass


class LoggingSink:
    """Writes stage counts to a logger at DEBUG."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self.logger = logger or logging.getLogger("contract_redactor.diagnostics")

    def record(self, stage: str, counts: Mapping[str, int]) -> None:
        if not self.logger.isEnabledFor(logging.DEBUG):
            return
        summary = ", ".join(f"{k}={v}" for k, v in sorted(counts.items()))
        self.logger.debug("%s: %s", stage, summary or "nothing")


class CollectingSink:
    """Keeps every record in memory; handy for tests and the CLI check."""

    def __init__(self) -> None:
        self.records: list[tuple[str, dict[str, int]]] = []

    def record(self, stage: str, counts: Mapping[str, int]) -> None:
        self.records.append((stage, dict(counts)))
