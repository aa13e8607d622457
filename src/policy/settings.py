"""Policy settings.

The probes policy takes no parameters. Hosts still ask it to validate the
settings they were configured with, so any JSON object is accepted and
unknown keys are ignored.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, ValidationError

from .request import RawRequest, RequestParseError, load_json_payload

PROTOCOL_VERSION = "v1"


class Settings(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)


@dataclass(frozen=True)
class SettingsValidationResponse:
    valid: bool
    message: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"valid": self.valid, "message": self.message}


def parse_settings(raw: Optional[RawRequest]) -> Settings:
    if raw is None or (isinstance(raw, (bytes, bytearray, str)) and not raw.strip()):
        return Settings()
    data = load_json_payload(raw)
    if not isinstance(data, dict):
        raise RequestParseError("settings must be a JSON object")
    try:
        return Settings.model_validate(data)
    except ValidationError as exc:  # pragma: no cover - no fields to fail on today
        raise RequestParseError(f"invalid settings: {exc}") from exc


def validate_settings(raw: Optional[RawRequest]) -> SettingsValidationResponse:
    try:
        parse_settings(raw)
    except RequestParseError as exc:
        return SettingsValidationResponse(valid=False, message=str(exc))
    return SettingsValidationResponse(valid=True)


def protocol_version() -> Dict[str, str]:
    return {"protocol_version": PROTOCOL_VERSION}


__all__ = [
    "PROTOCOL_VERSION",
    "Settings",
    "SettingsValidationResponse",
    "parse_settings",
    "protocol_version",
    "validate_settings",
]
