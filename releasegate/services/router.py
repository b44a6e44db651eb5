# releasegate/services/router.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional, Union

from releasegate.config import GateConfig
from releasegate.errors import MissingBuildStepError
from releasegate.models.pipeline import STARTED, STEP_STATE, WAITING, PipelineEvent, StepContext
from releasegate.services.credentials import CredentialIssuer
from releasegate.services.invoker import DeployInvoker
from releasegate.services.pipeline_api import PipelineClient

logger = logging.getLogger(__name__)

DEV_VERSION = "dev"
ADVANCE = "advance"
CANCEL = "cancel"


@dataclass(frozen=True)
class NoAction:
    reason: str


@dataclass(frozen=True)
class Deploy:
    ref: str
    version: str


@dataclass(frozen=True)
class VerifyGate:
    ref: str
    version: str


Decision = Union[NoAction, Deploy, VerifyGate]


# ---- pure decision logic ----

def classify(event: PipelineEvent) -> Optional[NoAction]:
    """NoAction for events the router never fetches state for, else None."""
    if event.object_type != STEP_STATE:
        return NoAction(f"ignoring object type {event.object_type or '<none>'}")
    if event.type not in (STARTED, WAITING):
        return NoAction(f"ignoring event type {event.type or '<none>'}")
    if not event.object_url:
        return NoAction("event carries no step state url")
    return None


def decide(event: PipelineEvent, ctx: StepContext, program_id: str) -> Decision:
    skipped = classify(event)
    if skipped:
        return skipped
    if str(ctx.program.id) != str(program_id):
        return NoAction(f"event is for program {ctx.program.id}, not {program_id}")

    step, execution = ctx.step, ctx.execution
    if event.type == STARTED:
        if step.action != "deploy":
            return NoAction(f"started step has action {step.action}")
        if step.environment_type == "dev":
            build = execution.find_step("build")
            if build is None:
                raise MissingBuildStepError(
                    f"Could not find build step for execution {execution.id} (step {step.id})")
            return Deploy(ref=build.branch, version=DEV_VERSION)
        if step.environment_type == "stage":
            return Deploy(ref=execution.artifacts_version, version=execution.artifacts_version)
        return NoAction(f"no deploys for environment {step.environment_type or '<none>'}")

    if step.action != "approval":
        return NoAction(f"waiting step has action {step.action}")
    return VerifyGate(ref=execution.artifacts_version, version=execution.artifacts_version)


def gate_decision(verify_result: Mapping[str, Any]) -> str:
    return ADVANCE if verify_result.get("result") is True else CANCEL


# ---- effectful router ----

class EventRouter:
    """Turns one pipeline event into at most one deploy or gate action."""

    def __init__(
        self,
        program_id: str,
        issuer,
        invoker,
        client_factory: Callable[[str], Any],
    ) -> None:
        self._program_id = str(program_id)
        self._issuer = issuer
        self._invoker = invoker
        self._client_factory = client_factory

    @classmethod
    def from_config(cls, config: GateConfig, lambda_client=None, session=None) -> "EventRouter":
        config.require("program_id")
        return cls(
            program_id=config.program_id,
            issuer=CredentialIssuer.from_config(config, session=session),
            invoker=DeployInvoker.from_config(config, client=lambda_client),
            client_factory=lambda token: PipelineClient.from_config(config, token, session=session),
        )

    def handle(self, payload: Mapping[str, Any]) -> Dict[str, Any]:
        event = PipelineEvent.from_payload(payload)
        skipped = classify(event)
        if skipped:
            logger.info("no action: %s", skipped.reason)
            return {"action": "none", "reason": skipped.reason}

        logger.info("received %s event for %s", event.type.rsplit("/", 1)[-1], event.object_url)
        client = self._client_factory(self._issuer.issue())
        ctx = client.step_context(event.object_url)
        decision = decide(event, ctx, self._program_id)
        out: Dict[str, Any] = ctx.summary()

        if isinstance(decision, NoAction):
            logger.info("no action: %s", decision.reason)
            out.update(action="none", reason=decision.reason)
            return out

        if isinstance(decision, Deploy):
            logger.info("deploying %s as %s", decision.ref, decision.version)
            out.update(action="deploy", ref=decision.ref, version=decision.version,
                       invocation=self._invoker.deploy_async(decision.ref, decision.version))
            return out

        # the gate is only opened after verification has returned
        result = self._invoker.verify(decision.ref, decision.version)
        verdict = gate_decision(result)
        if verdict == ADVANCE:
            logger.info("all actions were deployed with the expected versions, approving")
            client.advance(ctx.step)
        else:
            logger.warning("not all actions were deployed with the expected versions: %s",
                           result.get("missingActions"))
            client.cancel(ctx.step)
        out.update(action=verdict, ref=decision.ref, version=decision.version,
                   missingActions=list(result.get("missingActions") or []))
        return out


__all__ = [
    "NoAction",
    "Deploy",
    "VerifyGate",
    "classify",
    "decide",
    "gate_decision",
    "EventRouter",
    "ADVANCE",
    "CANCEL",
    "DEV_VERSION",
]
