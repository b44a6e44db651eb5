# releasegate/services/registry.py
from __future__ import annotations

import logging
from typing import FrozenSet, Optional

from botocore.exceptions import BotoCoreError, ClientError

from releasegate.config import GateConfig
from releasegate.errors import ConfigError, RegistryError
from releasegate.utils.aws_clients import lambda_client

logger = logging.getLogger(__name__)

WEB_EXPORT_TAG = "web-export"
_URL_PERMISSION_SID = "releasegate-public-url"


class LambdaRegistry:
    """
    Deployment registry backed by AWS Lambda. Units become functions; a
    function is "web exposed" when it has a public function URL.
    """

    def __init__(self, client, role_arn: str = "", runtime: str = "nodejs18.x",
                 handler: str = "index.main") -> None:
        self._lambda = client
        self._role_arn = role_arn
        self._runtime = runtime
        self._handler = handler

    @classmethod
    def from_config(cls, config: GateConfig, client=None) -> "LambdaRegistry":
        return cls(
            client or lambda_client(config),
            role_arn=config.unit_role_arn,
            runtime=config.unit_runtime,
            handler=config.unit_handler,
        )

    def list_names(self) -> FrozenSet[str]:
        """Names of every function currently deployed in the account/region."""
        try:
            paginator = self._lambda.get_paginator("list_functions")
            names = set()
            for page in paginator.paginate():
                for fn in page.get("Functions", []):
                    names.add(fn["FunctionName"])
        except (ClientError, BotoCoreError) as e:
            raise RegistryError(f"Failed to list functions: {e}") from e
        logger.info("registry holds %d function(s)", len(names))
        return frozenset(names)

    def create(self, name: str, archive: bytes) -> None:
        if not self._role_arn:
            raise ConfigError("UNIT_ROLE_ARN is required to create functions")
        try:
            self._lambda.create_function(
                FunctionName=name,
                Runtime=self._runtime,
                Role=self._role_arn,
                Handler=self._handler,
                Code={"ZipFile": archive},
                Publish=False,
                Tags={WEB_EXPORT_TAG: "true"},
            )
        except (ClientError, BotoCoreError) as e:
            raise RegistryError(f"Failed to create function {name}: {e}") from e
        self._expose(name)
        logger.info("function (%s) created", name)

    def update(self, name: str, archive: bytes) -> None:
        try:
            resp = self._lambda.update_function_code(FunctionName=name, ZipFile=archive)
            if resp.get("FunctionArn"):
                self._lambda.tag_resource(Resource=resp["FunctionArn"], Tags={WEB_EXPORT_TAG: "true"})
        except (ClientError, BotoCoreError) as e:
            raise RegistryError(f"Failed to update function {name}: {e}") from e
        self._expose(name)
        logger.info("function (%s) updated", name)

    def _expose(self, name: str) -> Optional[str]:
        """Give the function a public URL; safe to repeat."""
        url = None
        try:
            resp = self._lambda.create_function_url_config(FunctionName=name, AuthType="NONE")
            url = resp.get("FunctionUrl")
        except ClientError as e:
            if e.response["Error"]["Code"] != "ResourceConflictException":
                raise RegistryError(f"Failed to expose function {name}: {e}") from e
        except BotoCoreError as e:
            raise RegistryError(f"Failed to expose function {name}: {e}") from e

        try:
            self._lambda.add_permission(
                FunctionName=name,
                StatementId=_URL_PERMISSION_SID,
                Action="lambda:InvokeFunctionUrl",
                Principal="*",
                FunctionUrlAuthType="NONE",
            )
        except ClientError as e:
            if e.response["Error"]["Code"] != "ResourceConflictException":
                raise RegistryError(f"Failed to grant public access to {name}: {e}") from e
        except BotoCoreError as e:
            raise RegistryError(f"Failed to grant public access to {name}: {e}") from e

        if url:
            logger.info("function (%s) exposed at %s", name, url)
        return url


__all__ = ["LambdaRegistry", "WEB_EXPORT_TAG"]
