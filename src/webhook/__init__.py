"""HTTP webhook exposing the probes policy to admission hosts."""

from .server import app, create_app, get_policy

__all__ = ["app", "create_app", "get_policy"]
