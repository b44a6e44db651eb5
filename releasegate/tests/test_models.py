import pytest

from releasegate.errors import LinkNotFoundError
from releasegate.models.deployment import (
    CREATED,
    FAILED,
    RunResult,
    UnitOutcome,
    function_name,
    target_name,
)
from releasegate.models.pipeline import (
    REL_EXECUTION,
    STARTED,
    STEP_STATE,
    Execution,
    PipelineEvent,
    StepState,
)


def test_event_from_wrapped_and_bare_payloads():
    body = {
        "@type": STARTED,
        "xdmEventEnvelope:objectType": STEP_STATE,
        "activitystreams:object": {"@id": "https://api/step/1"},
    }
    assert PipelineEvent.from_payload({"event": body}) == PipelineEvent.from_payload(body)
    ev = PipelineEvent.from_payload(body)
    assert ev.type == STARTED and ev.object_url == "https://api/step/1"


@pytest.mark.parametrize("payload", [None, {}, {"event": "nope"}, {"event": {"activitystreams:object": []}}])
def test_event_from_malformed_payloads(payload):
    ev = PipelineEvent.from_payload(payload)
    assert ev.type == "" and ev.object_type == "" and ev.object_url == ""


def test_links_resolve_against_resource_url():
    step = StepState.from_api_response(
        {"id": 3, "action": "deploy", "_links": {REL_EXECUTION: {"href": "/api/execution/7"}}},
        "https://cloudmanager.adobe.io/api/step/3",
    )
    assert step.id == "3"
    assert step.link(REL_EXECUTION) == "https://cloudmanager.adobe.io/api/execution/7"
    assert step.has_link(REL_EXECUTION)


def test_hal_link_lists_use_first_entry():
    step = StepState.from_api_response(
        {"_links": {REL_EXECUTION: [{"href": "https://a/1"}, {"href": "https://a/2"}]}})
    assert step.link(REL_EXECUTION) == "https://a/1"


def test_missing_link_raises():
    step = StepState.from_api_response({"id": "1"})
    with pytest.raises(LinkNotFoundError) as exc:
        step.link(REL_EXECUTION)
    assert exc.value.rel == REL_EXECUTION
    assert not step.has_link(REL_EXECUTION)


def test_execution_siblings():
    execution = Execution.from_api_response({
        "id": "9",
        "artifactsVersion": 12,
        "_embedded": {"stepStates": [
            {"action": "validate"},
            {"action": "build", "branch": "main"},
            {"action": "build", "branch": "other"},
        ]},
    })
    assert execution.artifacts_version == "12"
    assert execution.find_step("build").branch == "main"
    assert execution.find_step("deploy") is None


def test_function_names():
    assert target_name("hello", "dev") == "hello-dev"
    assert function_name("hello-dev") == "hello-dev"
    assert function_name("hello-2024.05.1+b7") == "hello-2024_05_1_b7"


def test_run_result_payloads():
    verify = RunResult(success=False, missing=["a-1"])
    assert verify.to_payload(verify_only=True) == {"result": False, "missingActions": ["a-1"]}

    deploy = RunResult(success=False, outcomes=[
        UnitOutcome("a", "a-1", CREATED, "action (a-1) created!"),
        UnitOutcome("b", "b-1", FAILED, "action (b-1) failed", error="b: boom"),
    ])
    payload = deploy.to_payload(verify_only=False)
    assert payload["success"] is False
    assert payload["result"][0] == {"unit": "a", "action": "a-1", "operation": CREATED,
                                    "message": "action (a-1) created!"}
    assert payload["result"][1]["error"] == "b: boom"
