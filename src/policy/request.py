"""Parsing of inbound validation requests and pod spec extraction.

Requests use the Kubewarden ``ValidationRequest`` envelope::

    {"settings": {...}, "request": <Kubernetes AdmissionRequest>}

A Kubernetes ``AdmissionReview`` carries the same ``request`` member and
parses the same way.
"""

from __future__ import annotations

import json
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from pydantic import Field, ValidationError

from .model import KubeModel, PodSpec


class RequestParseError(Exception):
    """Raised when a request cannot be interpreted by this policy."""


RawRequest = Union[bytes, bytearray, str, Mapping[str, Any]]

# Where each pod-bearing kind keeps its pod spec, relative to the object root.
_POD_SPEC_PATHS: Dict[str, Tuple[str, ...]] = {
    "Pod": ("spec",),
    "Deployment": ("spec", "template", "spec"),
    "ReplicaSet": ("spec", "template", "spec"),
    "StatefulSet": ("spec", "template", "spec"),
    "DaemonSet": ("spec", "template", "spec"),
    "ReplicationController": ("spec", "template", "spec"),
    "Job": ("spec", "template", "spec"),
    "CronJob": ("spec", "jobTemplate", "spec", "template", "spec"),
}

POD_BEARING_KINDS = tuple(_POD_SPEC_PATHS)


class GroupVersionKind(KubeModel):
    group: str = ""
    version: str = ""
    kind: str = ""


class AdmissionRequest(KubeModel):
    uid: str = ""
    kind: GroupVersionKind = Field(default_factory=GroupVersionKind)
    operation: Optional[str] = None
    name: Optional[str] = None
    namespace: Optional[str] = None
    object: Optional[Dict[str, Any]] = None


class ValidationRequest(KubeModel):
    settings: Optional[Dict[str, Any]] = None
    request: AdmissionRequest

    @property
    def object_kind(self) -> str:
        kind = self.request.kind.kind
        if kind:
            return kind
        obj = self.request.object
        if isinstance(obj, dict) and isinstance(obj.get("kind"), str):
            return obj["kind"]
        return ""


def load_json_payload(raw: RawRequest) -> Any:
    """Decode ``raw`` into a JSON value; mappings are passed through untouched."""

    if isinstance(raw, Mapping):
        return raw
    if isinstance(raw, (bytes, bytearray)):
        try:
            raw = bytes(raw).decode("utf-8")
        except UnicodeDecodeError as exc:
            raise RequestParseError(f"payload is not UTF-8: {exc}") from exc
    if not isinstance(raw, str):
        raise RequestParseError(f"unsupported payload type: {type(raw).__name__}")
    # ValueError also covers JSONDecodeError and oversized integer literals.
    try:
        return json.loads(raw)
    except (ValueError, RecursionError) as exc:
        raise RequestParseError(f"invalid JSON: {exc}") from exc


def parse_validation_request(raw: RawRequest) -> ValidationRequest:
    data = load_json_payload(raw)
    if not isinstance(data, Mapping):
        raise RequestParseError("validation request must be a JSON object")
    try:
        return ValidationRequest.model_validate(dict(data))
    except (ValidationError, RecursionError) as exc:
        raise RequestParseError(f"invalid validation request: {exc}") from exc


def extract_pod_spec(request: ValidationRequest) -> Optional[PodSpec]:
    """Return the pod spec carried by the request object, if it has one.

    Kinds that do not embed a pod spec, and pod-bearing objects whose spec or
    template is unset, yield ``None``. A pod spec that is present but does not
    fit the pod model raises :class:`RequestParseError`.
    """

    kind = request.object_kind
    path = _POD_SPEC_PATHS.get(kind)
    if path is None:
        return None

    obj = request.request.object
    if not isinstance(obj, dict):
        raise RequestParseError(f"{kind} request carries no object")

    node: Any = obj
    walked = []
    for key in path:
        if not isinstance(node, dict):
            location = ".".join(walked) or "object"
            raise RequestParseError(f"{kind} {location} is not an object")
        node = node.get(key)
        walked.append(key)
        if node is None:
            return None

    if not isinstance(node, dict):
        raise RequestParseError(f"{kind} {'.'.join(walked)} is not an object")
    try:
        return PodSpec.model_validate(node)
    except (ValidationError, RecursionError) as exc:
        raise RequestParseError(f"invalid pod spec in {kind}: {exc}") from exc


__all__ = [
    "AdmissionRequest",
    "GroupVersionKind",
    "POD_BEARING_KINDS",
    "RawRequest",
    "RequestParseError",
    "ValidationRequest",
    "extract_pod_spec",
    "load_json_payload",
    "parse_validation_request",
]
