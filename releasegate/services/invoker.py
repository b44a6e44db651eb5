# releasegate/services/invoker.py
from __future__ import annotations

import json
import logging
from typing import Any, Dict

from botocore.exceptions import BotoCoreError, ClientError

from releasegate.config import GateConfig
from releasegate.errors import InvocationError
from releasegate.utils.aws_clients import lambda_client

logger = logging.getLogger(__name__)


def deploy_params(ref: str, version: str, check: bool = False) -> Dict[str, Any]:
    """Parameters understood by the deploy function."""
    params = {"ref": ref, "version": version}
    if check:
        params["check"] = True
    return params


class DeployInvoker:
    """Calls the deploy function: fire-and-forget for deploys, blocking for checks."""

    def __init__(self, client, function: str) -> None:
        self._lambda = client
        self._function = function

    @classmethod
    def from_config(cls, config: GateConfig, client=None) -> "DeployInvoker":
        return cls(client or lambda_client(config), config.deploy_function)

    def deploy_async(self, ref: str, version: str) -> Dict[str, Any]:
        params = deploy_params(ref, version)
        logger.info("invoking %s asynchronously with %s", self._function, params)
        try:
            resp = self._lambda.invoke(
                FunctionName=self._function,
                InvocationType="Event",
                Payload=json.dumps(params).encode("utf-8"),
            )
        except (ClientError, BotoCoreError) as e:
            raise InvocationError(f"Failed to invoke {self._function}: {e}") from e
        return {"function": self._function, "statusCode": resp.get("StatusCode"), "params": params}

    def verify(self, ref: str, version: str) -> Dict[str, Any]:
        """Run the deploy function in check mode and return its result payload."""
        params = deploy_params(ref, version, check=True)
        logger.info("invoking %s synchronously with %s", self._function, params)
        try:
            resp = self._lambda.invoke(
                FunctionName=self._function,
                InvocationType="RequestResponse",
                Payload=json.dumps(params).encode("utf-8"),
            )
            raw = resp["Payload"].read()
        except (ClientError, BotoCoreError) as e:
            raise InvocationError(f"Failed to invoke {self._function}: {e}") from e

        try:
            body = json.loads(raw or b"null")
        except ValueError as e:
            raise InvocationError(f"{self._function} returned a non-JSON payload") from e
        if resp.get("FunctionError"):
            message = body.get("errorMessage") if isinstance(body, dict) else body
            raise InvocationError(f"{self._function} failed: {message}")
        if not isinstance(body, dict) or "result" not in body:
            raise InvocationError(f"{self._function} returned an unexpected payload: {body!r}")
        return body


__all__ = ["DeployInvoker", "deploy_params"]
