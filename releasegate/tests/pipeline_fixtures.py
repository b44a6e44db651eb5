# releasegate/tests/pipeline_fixtures.py
# Builders for pipeline API resources and events used across tests.
from typing import Any, Dict, List, Optional

from releasegate.models.pipeline import (
    REL_ADVANCE,
    REL_CANCEL,
    REL_EXECUTION,
    REL_PROGRAM,
    STARTED,
    STEP_STATE,
    WAITING,
    Execution,
    Program,
    StepContext,
    StepState,
)

BASE = "https://cloudmanager.adobe.io"
EXECUTION_PATH = "/api/program/1234/pipeline/5/execution/77"
STEP_URL = f"{BASE}{EXECUTION_PATH}/phase/8/step/9"
EXECUTION_URL = f"{BASE}{EXECUTION_PATH}"
PROGRAM_URL = f"{BASE}/api/program/1234"
ADVANCE_URL = f"{STEP_URL}/advance"
CANCEL_URL = f"{STEP_URL}/cancel"


def event(event_type: str = STARTED, object_type: str = STEP_STATE, url: str = STEP_URL,
          wrapped: bool = True) -> Dict[str, Any]:
    body = {
        "@id": "urn:oeid:cloudmanager:1234",
        "@type": event_type,
        "xdmEventEnvelope:objectType": object_type,
        "activitystreams:object": {"@id": url},
    }
    return {"event": body} if wrapped else body


def step_body(action: str, environment: str = "stage", step_id: str = "9") -> Dict[str, Any]:
    return {
        "id": step_id,
        "action": action,
        "environmentType": environment,
        "status": "RUNNING" if action == "deploy" else "WAITING",
        "_links": {
            REL_EXECUTION: {"href": EXECUTION_PATH},
            REL_PROGRAM: {"href": "/api/program/1234"},
            REL_ADVANCE: {"href": f"{EXECUTION_PATH}/phase/8/step/9/advance"},
            REL_CANCEL: {"href": f"{EXECUTION_PATH}/phase/8/step/9/cancel"},
        },
    }


def execution_body(artifacts_version: str = "1.2.3",
                   siblings: Optional[List[Dict[str, Any]]] = None) -> Dict[str, Any]:
    if siblings is None:
        siblings = [
            {"id": "1", "action": "validate"},
            {"id": "2", "action": "build", "branch": "feature-x"},
        ]
    return {"id": "77", "artifactsVersion": artifacts_version, "_embedded": {"stepStates": siblings}}


def program_body(program_id: str = "1234") -> Dict[str, Any]:
    return {"id": program_id, "name": "demo"}


def resources(action: str, environment: str = "stage", artifacts_version: str = "1.2.3",
              program_id: str = "1234", siblings=None) -> Dict[str, Any]:
    return {
        STEP_URL: step_body(action, environment),
        EXECUTION_URL: execution_body(artifacts_version, siblings),
        PROGRAM_URL: program_body(program_id),
    }


def context(action: str, environment: str = "stage", artifacts_version: str = "1.2.3",
            program_id: str = "1234", siblings=None) -> StepContext:
    return StepContext(
        step=StepState.from_api_response(step_body(action, environment), STEP_URL),
        execution=Execution.from_api_response(execution_body(artifacts_version, siblings), EXECUTION_URL),
        program=Program.from_api_response(program_body(program_id), PROGRAM_URL),
    )


__all__ = [
    "STARTED",
    "WAITING",
    "STEP_STATE",
    "STEP_URL",
    "ADVANCE_URL",
    "CANCEL_URL",
    "event",
    "resources",
    "context",
]
