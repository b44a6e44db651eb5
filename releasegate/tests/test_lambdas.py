import pytest

from releasegate.errors import ConfigError, SourceError
from releasegate.lambdas.deploy import app as deploy_app
from releasegate.lambdas.event_handler import app as event_app
from releasegate.models.deployment import RunResult
from releasegate.services.orchestrator import DeployOrchestrator
from releasegate.services.router import EventRouter


class RecordingOrchestrator:
    def __init__(self, result=None, error=None):
        self.result = result or RunResult(success=True)
        self.error = error
        self.calls = []

    def run(self, revision, release_version, verify_only=False):
        self.calls.append((revision, release_version, verify_only))
        if self.error:
            raise self.error
        return self.result


@pytest.fixture
def deploy_env(monkeypatch):
    monkeypatch.setenv("GIT_URL", "https://git.example.com/actions.git")
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")


def _use(monkeypatch, orchestrator):
    monkeypatch.setattr(DeployOrchestrator, "from_config", classmethod(lambda cls, config: orchestrator))


def test_deploy_mode(deploy_env, monkeypatch):
    orch = RecordingOrchestrator()
    _use(monkeypatch, orch)

    out = deploy_app.lambda_handler({"ref": "feature-x", "version": "dev"}, None)

    assert orch.calls == [("feature-x", "dev", False)]
    assert out == {"result": [], "success": True}


@pytest.mark.parametrize("flag", [True, "true", "1"])
def test_check_mode(deploy_env, monkeypatch, flag):
    orch = RecordingOrchestrator(RunResult(success=False, missing=["hello-42"]))
    _use(monkeypatch, orch)

    out = deploy_app.lambda_handler({"ref": "42", "version": "42", "check": flag}, None)

    assert orch.calls == [("42", "42", True)]
    assert out == {"result": False, "missingActions": ["hello-42"]}


@pytest.mark.parametrize("event", [{}, {"ref": "main"}, {"version": "dev"}, None])
def test_deploy_requires_ref_and_version(deploy_env, monkeypatch, event):
    orch = RecordingOrchestrator()
    _use(monkeypatch, orch)
    with pytest.raises(ValueError):
        deploy_app.lambda_handler(event, None)
    assert orch.calls == []


def test_deploy_without_repository_is_config_error(monkeypatch):
    monkeypatch.delenv("GIT_URL", raising=False)
    with pytest.raises(ConfigError):
        deploy_app.lambda_handler({"ref": "main", "version": "dev"}, None)


def test_deploy_failure_propagates(deploy_env, monkeypatch):
    _use(monkeypatch, RecordingOrchestrator(error=SourceError("no such ref")))
    with pytest.raises(SourceError):
        deploy_app.lambda_handler({"ref": "nope", "version": "dev"}, None)


def test_event_handler_delegates_to_router(monkeypatch):
    seen = []

    class Router:
        def handle(self, payload):
            seen.append(payload)
            return {"action": "none", "reason": "not a step state event"}

    monkeypatch.setattr(EventRouter, "from_config", classmethod(lambda cls, config: Router()))

    out = event_app.lambda_handler({"event": {"@type": "x"}}, None)

    assert seen == [{"event": {"@type": "x"}}]
    assert out["action"] == "none"


def test_event_handler_requires_program(monkeypatch):
    monkeypatch.delenv("PROGRAM_ID", raising=False)
    with pytest.raises(ConfigError):
        event_app.lambda_handler({}, None)
