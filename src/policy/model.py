"""Subset of the Kubernetes core/v1 pod model that the probes rule reads.

Only the fields needed to locate containers and their probes are modelled.
Probe bodies are kept as opaque mappings: the rule cares about presence only.
Unknown fields are ignored so full API objects parse without loss of meaning.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class KubeModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)


class ProbedContainer(KubeModel):
    """Fields shared by every container class that can carry probes."""

    name: str
    liveness_probe: Optional[Dict[str, Any]] = Field(default=None, alias="livenessProbe")
    readiness_probe: Optional[Dict[str, Any]] = Field(default=None, alias="readinessProbe")

    @property
    def has_liveness_probe(self) -> bool:
        return self.liveness_probe is not None

    @property
    def has_readiness_probe(self) -> bool:
        return self.readiness_probe is not None


class Container(ProbedContainer):
    pass


class EphemeralContainer(ProbedContainer):
    pass


class PodSpec(KubeModel):
    containers: List[Container]
    init_containers: Optional[List[Container]] = Field(default=None, alias="initContainers")
    ephemeral_containers: Optional[List[EphemeralContainer]] = Field(
        default=None, alias="ephemeralContainers"
    )


__all__ = ["Container", "EphemeralContainer", "PodSpec", "ProbedContainer"]
