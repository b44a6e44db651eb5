import json

import pytest

from releasegate.errors import InvocationError
from releasegate.services.invoker import DeployInvoker, deploy_params
from releasegate.tests.fakes import FakeLambda


def test_deploy_params():
    assert deploy_params("main", "dev") == {"ref": "main", "version": "dev"}
    assert deploy_params("1.0", "1.0", check=True) == {"ref": "1.0", "version": "1.0", "check": True}


def test_deploy_async_is_fire_and_forget():
    client = FakeLambda()
    out = DeployInvoker(client, "deploy-to-runtime").deploy_async("feature-x", "dev")

    call = client.calls[0]
    assert call["FunctionName"] == "deploy-to-runtime"
    assert call["InvocationType"] == "Event"
    assert json.loads(call["Payload"]) == {"ref": "feature-x", "version": "dev"}
    assert out["statusCode"] == 202


def test_verify_waits_for_result():
    client = FakeLambda({"result": False, "missingActions": ["hello-42"]})
    out = DeployInvoker(client, "deploy-to-runtime").verify("42", "42")

    assert client.calls[0]["InvocationType"] == "RequestResponse"
    assert json.loads(client.calls[0]["Payload"])["check"] is True
    assert out == {"result": False, "missingActions": ["hello-42"]}


def test_verify_surfaces_function_errors():
    client = FakeLambda({"errorMessage": "git clone failed", "errorType": "SourceError"}, function_error="Unhandled")
    with pytest.raises(InvocationError) as exc:
        DeployInvoker(client, "deploy-to-runtime").verify("42", "42")
    assert "git clone failed" in str(exc.value)


def test_verify_rejects_payload_without_result():
    with pytest.raises(InvocationError):
        DeployInvoker(FakeLambda({"statusCode": 200}), "deploy").verify("1", "1")
