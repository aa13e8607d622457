from __future__ import annotations

from functools import lru_cache
from typing import Any, Dict, Optional

from fastapi import Depends, FastAPI, Request

from src.policy.evaluator import Decision, ProbesPolicy
from src.policy.request import RequestParseError, load_json_payload
from src.policy.settings import protocol_version, validate_settings

ADMISSION_API_VERSION = "admission.k8s.io/v1"


def create_app(policy: Optional[ProbesPolicy] = None) -> FastAPI:
    """Build the webhook app; ``policy`` replaces the cached default evaluator."""

    app = FastAPI(
        title="Probes Policy",
        description="Rejects workloads whose containers lack liveness or readiness probes.",
        version="0.1.0",
    )
    if policy is not None:
        app.dependency_overrides[get_policy] = lambda: policy

    @app.get("/healthz")
    def healthz() -> Dict[str, str]:
        return {"status": "ok"}

    @app.get("/protocol_version")
    def get_protocol_version() -> Dict[str, str]:
        return protocol_version()

    @app.post("/validate_settings")
    async def post_validate_settings(request: Request) -> Dict[str, Any]:
        body = await request.body()
        return validate_settings(body).to_dict()

    @app.post("/validate")
    async def post_validate(
        request: Request,
        policy: ProbesPolicy = Depends(get_policy),
    ) -> Dict[str, Any]:
        body = await request.body()
        return policy.evaluate(body).to_response()

    @app.post("/admission")
    async def post_admission(
        request: Request,
        policy: ProbesPolicy = Depends(get_policy),
    ) -> Dict[str, Any]:
        body = await request.body()
        decision = policy.evaluate(body)
        return build_admission_review(review_uid(body), decision)

    return app


@lru_cache()
def get_policy() -> ProbesPolicy:
    return ProbesPolicy()


def review_uid(body: bytes) -> str:
    """Best-effort lookup of ``request.uid``; malformed reviews answer with an empty uid."""

    try:
        data = load_json_payload(body)
    except RequestParseError:
        return ""
    if not isinstance(data, dict):
        return ""
    request = data.get("request")
    if not isinstance(request, dict):
        return ""
    uid = request.get("uid")
    return uid if isinstance(uid, str) else ""


def build_admission_review(uid: str, decision: Decision) -> Dict[str, Any]:
    response: Dict[str, Any] = {"uid": uid, "allowed": decision.accepted}
    if not decision.accepted:
        response["status"] = {"code": 403, "message": decision.message}
    return {
        "apiVersion": ADMISSION_API_VERSION,
        "kind": "AdmissionReview",
        "response": response,
    }


app = create_app()


__all__ = [
    "app",
    "build_admission_review",
    "create_app",
    "get_policy",
    "review_uid",
]
