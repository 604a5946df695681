"""Contract Redactor — on-device PII redaction and a fail-closed privacy gate for Greek contracts."""

from .types import DetectedEntity, EntityCategory, GateVerdict, PreambleResult, RedactionRule, UNVERIFIED
from .errors import RedactionError, InputTooLarge, TransmissionBlocked
from .diagnostics import CollectingSink, LoggingSink, NullSink
from .detector import EntityDetector, count_by_category, detect
from .redactor import Redactor, redact
from .preamble import PreambleZoneClassifier, classify_preamble
from .gate import PrivacyValidationGate, reason_labels, validate
from .pipeline import Pipeline, PipelineConfig, PipelineResult
from .middleware import RedactMiddleware
from .config import create_middleware, load_config, load_from_yaml

__all__ = [
    "DetectedEntity", "EntityCategory", "GateVerdict", "PreambleResult", "RedactionRule",
    "UNVERIFIED",
    "RedactionError", "InputTooLarge", "TransmissionBlocked",
    "CollectingSink", "LoggingSink", "NullSink",
    "EntityDetector", "count_by_category", "detect",
    "Redactor", "redact",
    "PreambleZoneClassifier", "classify_preamble",
    "PrivacyValidationGate", "reason_labels", "validate",
    "Pipeline", "PipelineConfig", "PipelineResult",
    "RedactMiddleware",
    "create_middleware", "load_config", "load_from_yaml",
]
__version__ = "0.1.0"
