# releasegate/models/pipeline.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Tuple
from urllib.parse import urljoin

from releasegate.errors import LinkNotFoundError

# event envelope vocabulary
STARTED = "https://ns.adobe.com/experience/cloudmanager/event/started"
WAITING = "https://ns.adobe.com/experience/cloudmanager/event/waiting"
STEP_STATE = "https://ns.adobe.com/experience/cloudmanager/execution-step-state"

# link relations on step state resources
REL_EXECUTION = "http://ns.adobe.com/adobecloud/rel/execution"
REL_PROGRAM = "http://ns.adobe.com/adobecloud/rel/program"
REL_ADVANCE = "http://ns.adobe.com/adobecloud/rel/pipeline/advance"
REL_CANCEL = "http://ns.adobe.com/adobecloud/rel/pipeline/cancel"


def _links(body: Mapping[str, Any]) -> Tuple[Tuple[str, str], ...]:
    """Flatten a HAL ``_links`` block to (rel, href) pairs."""
    out = []
    for rel, link in (body.get("_links") or {}).items():
        # HAL allows a list of links per relation; the first one wins
        if isinstance(link, list):
            link = link[0] if link else {}
        href = link.get("href") if isinstance(link, dict) else None
        if href:
            out.append((rel, href))
    return tuple(out)


@dataclass(frozen=True)
class PipelineEvent:
    """The part of an inbound pipeline notification the router cares about."""
    type: str
    object_type: str
    object_url: str

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "PipelineEvent":
        """
        Accepts either the webhook wrapper ``{"event": {...}}`` or the bare
        event. Missing fields become empty strings so unknown shapes fall
        through to a no-op instead of failing.
        """
        payload = payload or {}
        event = payload.get("event", payload)
        if not isinstance(event, Mapping):
            event = {}
        obj = event.get("activitystreams:object") or {}
        return cls(
            type=str(event.get("@type", "")),
            object_type=str(event.get("xdmEventEnvelope:objectType", "")),
            object_url=str(obj.get("@id", "")) if isinstance(obj, Mapping) else "",
        )


@dataclass(frozen=True)
class Linked:
    """Base for pipeline resources that carry hyperlinks."""
    url: str = ""
    links: Tuple[Tuple[str, str], ...] = ()

    def link(self, rel: str) -> str:
        """Absolute URL of the named relation, resolved against ``url``."""
        for name, href in self.links:
            if name == rel:
                return urljoin(self.url, href) if self.url else href
        raise LinkNotFoundError(rel, type(self).__name__)

    def has_link(self, rel: str) -> bool:
        return any(name == rel for name, _ in self.links)


@dataclass(frozen=True)
class StepState(Linked):
    id: str = ""
    action: str = ""
    environment_type: str = ""
    branch: str = ""
    status: str = ""

    @classmethod
    def from_api_response(cls, body: Mapping[str, Any], url: str = "") -> "StepState":
        return cls(
            url=url,
            links=_links(body),
            id=str(body.get("id", "")),
            action=body.get("action") or "",
            environment_type=body.get("environmentType") or "",
            branch=body.get("branch") or "",
            status=body.get("status") or "",
        )


@dataclass(frozen=True)
class Execution(Linked):
    id: str = ""
    artifacts_version: str = ""
    step_states: Tuple[StepState, ...] = ()

    @classmethod
    def from_api_response(cls, body: Mapping[str, Any], url: str = "") -> "Execution":
        embedded = (body.get("_embedded") or {}).get("stepStates") or []
        return cls(
            url=url,
            links=_links(body),
            id=str(body.get("id", "")),
            artifacts_version=str(body.get("artifactsVersion") or ""),
            step_states=tuple(StepState.from_api_response(s, url) for s in embedded),
        )

    def find_step(self, action: str) -> Optional[StepState]:
        """First sibling step with the given action, or None."""
        return next((s for s in self.step_states if s.action == action), None)


@dataclass(frozen=True)
class Program(Linked):
    id: str = ""
    name: str = ""

    @classmethod
    def from_api_response(cls, body: Mapping[str, Any], url: str = "") -> "Program":
        return cls(url=url, links=_links(body), id=str(body.get("id", "")), name=body.get("name") or "")


@dataclass(frozen=True)
class StepContext:
    """A step state together with the execution and program it belongs to."""
    step: StepState
    execution: Execution
    program: Program

    def summary(self) -> Dict[str, Any]:
        return {
            "program": self.program.id,
            "execution": self.execution.id,
            "step": self.step.id,
            "stepAction": self.step.action,
            "environmentType": self.step.environment_type,
        }


__all__ = [
    "STARTED",
    "WAITING",
    "STEP_STATE",
    "REL_EXECUTION",
    "REL_PROGRAM",
    "REL_ADVANCE",
    "REL_CANCEL",
    "PipelineEvent",
    "StepState",
    "Execution",
    "Program",
    "StepContext",
]
