from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from src.common.log import PolicyLogger

from .model import ProbedContainer


@dataclass(frozen=True)
class ValidationOutcome:
    errors: Tuple[str, ...] = ()

    @classmethod
    def of(cls, errors: Sequence[str]) -> "ValidationOutcome":
        return cls(tuple(errors))

    @property
    def valid(self) -> bool:
        return not self.errors

    @property
    def message(self) -> Optional[str]:
        if not self.errors:
            return None
        return "\n".join(self.errors)


def check_container(container: ProbedContainer, logger: Optional[PolicyLogger] = None) -> ValidationOutcome:
    """Require both a liveness and a readiness probe on ``container``.

    Each missing probe is reported as its own finding, liveness first.
    """

    findings = []
    if not container.has_liveness_probe:
        findings.append(f"container {container.name} without liveness probe is not accepted")
    if not container.has_readiness_probe:
        findings.append(f"container {container.name} without readiness probe is not accepted")
    if findings and logger is not None:
        logger.info("rejecting pod", extra={"container_name": container.name})
    return ValidationOutcome.of(findings)


__all__ = ["ValidationOutcome", "check_container"]
