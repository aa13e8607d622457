"""Admission policy requiring liveness and readiness probes on every container."""

from .aggregator import validate_pod_spec
from .evaluator import PARSE_ERROR_MESSAGE, Decision, ProbesPolicy
from .model import Container, EphemeralContainer, PodSpec, ProbedContainer
from .request import RequestParseError, ValidationRequest, extract_pod_spec, parse_validation_request
from .rules import ValidationOutcome, check_container
from .settings import Settings, protocol_version, validate_settings

__all__ = [
    "Container",
    "Decision",
    "EphemeralContainer",
    "PARSE_ERROR_MESSAGE",
    "PodSpec",
    "ProbedContainer",
    "ProbesPolicy",
    "RequestParseError",
    "Settings",
    "ValidationOutcome",
    "ValidationRequest",
    "check_container",
    "extract_pod_spec",
    "parse_validation_request",
    "protocol_version",
    "validate_pod_spec",
    "validate_settings",
]
