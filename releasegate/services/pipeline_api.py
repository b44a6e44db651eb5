# releasegate/services/pipeline_api.py
from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

import requests

from releasegate.config import GateConfig
from releasegate.errors import PipelineApiError
from releasegate.models.pipeline import (
    REL_ADVANCE,
    REL_CANCEL,
    REL_EXECUTION,
    REL_PROGRAM,
    Execution,
    Program,
    StepContext,
    StepState,
)

logger = logging.getLogger(__name__)


class PipelineClient:
    """
    Client for the pipeline (Cloud Manager) API. Only the step-state URL from
    the event is known up front; everything else is reached through the link
    relations on the returned resources.
    """

    def __init__(self, access_token: str, organization_id: str, api_key: str,
                 timeout: float = 30.0, session: Optional[requests.Session] = None) -> None:
        self._session = session or requests.Session()
        self._timeout = timeout
        self._headers = {
            "x-gw-ims-org-id": organization_id,
            "x-api-key": api_key,
            "Authorization": f"Bearer {access_token}",
        }

    @classmethod
    def from_config(cls, config: GateConfig, access_token: str, session=None) -> "PipelineClient":
        return cls(access_token, config.organization_id, config.api_key,
                   timeout=config.http_timeout, session=session)

    def _call(self, method: str, url: str, body: Optional[Dict[str, Any]] = None) -> requests.Response:
        headers = dict(self._headers)
        data = None
        if body is not None:
            data = json.dumps(body)
            headers["content-type"] = "application/json"
        try:
            resp = self._session.request(method, url, headers=headers, data=data, timeout=self._timeout)
        except requests.RequestException as e:
            raise PipelineApiError(f"{method} {url} failed: {e}", url=url) from e
        if not resp.ok:
            raise PipelineApiError(f"{method} {url} returned {resp.status_code}: {resp.text[:500]}",
                                   url=url, status=resp.status_code)
        return resp

    def get(self, url: str) -> Dict[str, Any]:
        resp = self._call("GET", url)
        try:
            return resp.json()
        except ValueError as e:
            raise PipelineApiError(f"GET {url} returned invalid JSON", url=url, status=resp.status_code) from e

    def step_context(self, step_state_url: str) -> StepContext:
        """Fetch a step state plus the execution and program it links to."""
        step = StepState.from_api_response(self.get(step_state_url), step_state_url)

        execution_url = step.link(REL_EXECUTION)
        execution = Execution.from_api_response(self.get(execution_url), execution_url)

        program_url = step.link(REL_PROGRAM)
        program = Program.from_api_response(self.get(program_url), program_url)

        logger.info("step %s of execution %s in program %s has action %s",
                    step.id, execution.id, program.id, step.action)
        return StepContext(step=step, execution=execution, program=program)

    def advance(self, step: StepState) -> int:
        url = step.link(REL_ADVANCE)
        logger.info("advancing pipeline via %s", url)
        return self._call("PUT", url, {"approved": True}).status_code

    def cancel(self, step: StepState) -> int:
        url = step.link(REL_CANCEL)
        logger.info("cancelling pipeline via %s", url)
        return self._call("PUT", url, {"approved": False}).status_code


__all__ = ["PipelineClient"]
