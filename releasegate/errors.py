# releasegate/errors.py
from __future__ import annotations

from typing import Optional


class GateError(RuntimeError):
    """Base class for failures the gate reports to its caller."""


class ConfigError(GateError):
    """Raised when a required setting is missing from the environment."""


class LinkNotFoundError(GateError):
    """Raised when a pipeline resource does not carry the requested link relation."""

    def __init__(self, rel: str, resource: str = "resource"):
        super().__init__(f"{resource} has no link with relation {rel!r}")
        self.rel = rel


class MissingBuildStepError(GateError):
    """The execution for a dev deploy has no sibling build step."""


class SourceError(GateError):
    """Cloning or checking out the source repository failed."""


class RegistryError(GateError):
    """A call against the function registry (AWS Lambda) failed."""


class BuildError(GateError):
    """Building or packaging a single unit failed."""

    def __init__(self, unit: str, message: str):
        super().__init__(f"{unit}: {message}")
        self.unit = unit


class PipelineApiError(GateError):
    """The pipeline API answered with a non-success status or could not be reached."""

    def __init__(self, message: str, url: str = "", status: Optional[int] = None):
        super().__init__(message)
        self.url = url
        self.status = status


class CredentialError(GateError):
    """Exchanging the signed assertion for an access token failed."""


class InvocationError(GateError):
    """The deploy function reported an error instead of a result."""


__all__ = [
    "GateError",
    "ConfigError",
    "LinkNotFoundError",
    "MissingBuildStepError",
    "SourceError",
    "RegistryError",
    "BuildError",
    "PipelineApiError",
    "CredentialError",
    "InvocationError",
]
