# releasegate/models/deployment.py
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

CREATED = "created"
UPDATED = "updated"
FAILED = "failed"

_INVALID_FUNCTION_CHARS = re.compile(r"[^A-Za-z0-9_-]")


def target_name(unit_name: str, release_version: str) -> str:
    """Deployment target for a unit at a release version, e.g. ``hello-1.2.3``."""
    return f"{unit_name}-{release_version}"


def function_name(target: str) -> str:
    """Registry-facing form of a target; Lambda only accepts [A-Za-z0-9_-]."""
    return _INVALID_FUNCTION_CHARS.sub("_", target)


# One folder under the units directory of a checkout
@dataclass(frozen=True)
class DeployableUnit:
    name: str
    source_dir: str

    def target(self, release_version: str) -> str:
        return target_name(self.name, release_version)


@dataclass(frozen=True)
class UnitOutcome:
    """What happened to one unit in a deploy run."""
    unit: str
    target: str
    operation: str             # created | updated | failed
    message: str = ""
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.operation != FAILED

    def to_dict(self) -> Dict[str, Any]:
        out = {"unit": self.unit, "action": self.target, "operation": self.operation, "message": self.message}
        if self.error:
            out["error"] = self.error
        return out


@dataclass(frozen=True)
class RunResult:
    """
    Result of one orchestration run.

    In verify mode ``missing`` lists the targets absent from the registry;
    in deploy mode ``outcomes`` holds one entry per unit in discovery order.
    """
    success: bool
    missing: List[str] = field(default_factory=list)
    outcomes: List[UnitOutcome] = field(default_factory=list)

    def to_payload(self, verify_only: bool) -> Dict[str, Any]:
        """Wire shape returned by the deploy function."""
        if verify_only:
            return {"result": self.success, "missingActions": list(self.missing)}
        return {"result": [o.to_dict() for o in self.outcomes], "success": self.success}


__all__ = [
    "CREATED",
    "UPDATED",
    "FAILED",
    "target_name",
    "function_name",
    "DeployableUnit",
    "UnitOutcome",
    "RunResult",
]
