from __future__ import annotations

from typing import Iterator, List, Optional, Tuple

from src.common.log import PolicyLogger

from .model import PodSpec, ProbedContainer
from .rules import ValidationOutcome, check_container

# Traversal order is part of the output contract: primary, init, ephemeral.
CONTAINER_CLASSES: Tuple[Tuple[str, str], ...] = (
    ("container", "containers"),
    ("init container", "init_containers"),
    ("ephemeral container", "ephemeral_containers"),
)

FINDING_SEPARATOR = "; "


def iter_containers(pod_spec: PodSpec) -> Iterator[Tuple[str, ProbedContainer]]:
    """Yield ``(label, container)`` for every container of the pod in check order."""

    for label, attr in CONTAINER_CLASSES:
        containers = getattr(pod_spec, attr) or ()
        for container in containers:
            yield label, container


def validate_pod_spec(pod_spec: PodSpec, logger: Optional[PolicyLogger] = None) -> ValidationOutcome:
    """Check every container of ``pod_spec`` and collect one line per failing container.

    All containers are visited even after a failure. A pod without any
    containers is valid.
    """

    errors: List[str] = []
    for label, container in iter_containers(pod_spec):
        outcome = check_container(container, logger=logger)
        if outcome.valid:
            continue
        detail = FINDING_SEPARATOR.join(outcome.errors)
        errors.append(f"{label} {container.name} is invalid: {detail}")
    return ValidationOutcome.of(errors)


__all__ = ["CONTAINER_CLASSES", "iter_containers", "validate_pod_spec"]
