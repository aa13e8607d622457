"""Logging helpers shared by the policy core, the webhook and the CLI."""

from __future__ import annotations

import logging
from typing import Any, MutableMapping, Optional, Tuple, Union


POLICY_NAME = "probes-policy"
LOGGER_NAME = "probes_policy"
LOG_FORMAT = "%(levelname)s: %(message)s"

PolicyLogger = Union[logging.Logger, logging.LoggerAdapter]


class PolicyLoggerAdapter(logging.LoggerAdapter):
    """Adapter that tags every record with the policy name.

    Fields passed through ``extra=`` on a single call are merged on top of the
    adapter's own fields instead of replacing them.
    """

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> Tuple[Any, MutableMapping[str, Any]]:
        merged = dict(self.extra or {})
        merged.update(kwargs.get("extra") or {})
        kwargs["extra"] = merged
        return msg, kwargs


def policy_logger(logger: Optional[logging.Logger] = None) -> PolicyLoggerAdapter:
    base = logger if logger is not None else logging.getLogger(LOGGER_NAME)
    return PolicyLoggerAdapter(base, {"policy": POLICY_NAME})


def configure_logging(level: str = "INFO") -> None:
    numeric = logging.getLevelName(level.strip().upper())
    if not isinstance(numeric, int):
        raise ValueError(f"unknown log level: {level}")
    logging.basicConfig(level=numeric, format=LOG_FORMAT)


__all__ = [
    "LOGGER_NAME",
    "LOG_FORMAT",
    "POLICY_NAME",
    "PolicyLogger",
    "PolicyLoggerAdapter",
    "configure_logging",
    "policy_logger",
]
