from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from src.common.log import PolicyLogger, policy_logger

from .aggregator import validate_pod_spec
from .model import PodSpec
from .request import RawRequest, RequestParseError, extract_pod_spec, parse_validation_request

PARSE_ERROR_MESSAGE = "Cannot parse validation request"


@dataclass(frozen=True)
class Decision:
    accepted: bool
    message: Optional[str] = None

    @classmethod
    def accept(cls) -> "Decision":
        return cls(accepted=True)

    @classmethod
    def reject(cls, message: str) -> "Decision":
        return cls(accepted=False, message=message)

    def to_response(self) -> Dict[str, Any]:
        """Render the decision as a Kubewarden ``ValidationResponse``."""

        return {
            "accepted": self.accepted,
            "message": self.message,
            "code": None,
            "mutated_object": None,
        }


class ProbesPolicy:
    """Admit workloads only when every container declares liveness and readiness probes.

    Instances hold nothing but their logger and can be shared between
    concurrent callers.
    """

    def __init__(self, logger: Optional[PolicyLogger] = None) -> None:
        self.logger = logger if logger is not None else policy_logger()

    def evaluate(self, raw: RawRequest) -> Decision:
        """Decide on one validation request.

        Unparsable requests are rejected. Objects without a pod spec are
        outside the policy and accepted.
        """

        self.logger.info("starting validation")
        try:
            request = parse_validation_request(raw)
            pod_spec = extract_pod_spec(request)
        except RequestParseError as exc:
            self.logger.warning(
                "cannot unmarshal resource: this policy does not know how to evaluate this resource; reject it",
                extra={"error": str(exc)},
            )
            return Decision.reject(PARSE_ERROR_MESSAGE)

        if pod_spec is None:
            return Decision.accept()
        return self.evaluate_pod_spec(pod_spec)

    def evaluate_pod_spec(self, pod_spec: PodSpec) -> Decision:
        outcome = validate_pod_spec(pod_spec, logger=self.logger)
        if outcome.valid:
            return Decision.accept()
        return Decision.reject(outcome.message or "")


__all__ = ["Decision", "PARSE_ERROR_MESSAGE", "ProbesPolicy"]
