# releasegate/config.py
from __future__ import annotations

import os
from dataclasses import dataclass, field, fields
from typing import Mapping, Optional, Tuple

from releasegate.errors import ConfigError

# field name -> environment variable, for error messages
_ENV_NAMES = {
    "git_url": "GIT_URL",
    "git_username": "GIT_USERNAME",
    "git_password": "GIT_PASSWORD",
    "program_id": "PROGRAM_ID",
    "organization_id": "ORGANIZATION_ID",
    "technical_account_id": "TECHNICAL_ACCOUNT_ID",
    "api_key": "API_KEY",
    "client_secret": "CLIENT_SECRET",
    "private_key": "PRIVATE_KEY",
    "ims_host": "IMS_HOST",
    "meta_scopes": "META_SCOPES",
    "deploy_function": "DEPLOY_FUNCTION_NAME",
    "units_dir": "UNITS_DIR",
    "unit_role_arn": "UNIT_ROLE_ARN",
    "unit_runtime": "UNIT_RUNTIME",
    "unit_handler": "UNIT_HANDLER",
    "deploy_concurrency": "DEPLOY_CONCURRENCY",
    "http_timeout": "HTTP_TIMEOUT",
    "region": "AWS_REGION",
    "lambda_endpoint_url": "AWS_ENDPOINT_URL_LAMBDA",
    "log_level": "LOG_LEVEL",
}


def _region(env: Mapping[str, str]) -> str:
    return env.get("AWS_REGION") or env.get("AWS_DEFAULT_REGION") or "us-east-1"


@dataclass(frozen=True)
class GateConfig:
    """
    Settings for one invocation. Built once at the entry point with
    ``GateConfig.from_env()`` and handed to every component; nothing below
    the entry points reads the environment.
    """
    git_url: str = ""
    git_username: str = ""
    git_password: str = field(default="", repr=False)
    program_id: str = ""
    organization_id: str = ""
    technical_account_id: str = ""
    api_key: str = ""
    client_secret: str = field(default="", repr=False)
    private_key: str = field(default="", repr=False)
    ims_host: str = "https://ims-na1.adobelogin.com"
    meta_scopes: Tuple[str, ...] = ("ent_cloudmgr_sdk",)
    deploy_function: str = "deploy-to-runtime"
    units_dir: str = "runtime-actions"
    unit_role_arn: str = ""
    unit_runtime: str = "nodejs18.x"
    unit_handler: str = "index.main"
    deploy_concurrency: int = 4
    http_timeout: float = 30.0
    region: str = "us-east-1"
    lambda_endpoint_url: Optional[str] = None
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "GateConfig":
        env = os.environ if environ is None else environ
        scopes = tuple(s.strip() for s in env.get("META_SCOPES", "ent_cloudmgr_sdk").split(",") if s.strip())
        try:
            concurrency = int(env.get("DEPLOY_CONCURRENCY", "4"))
            timeout = float(env.get("HTTP_TIMEOUT", "30"))
        except ValueError as e:
            raise ConfigError(f"invalid numeric setting: {e}") from e

        return cls(
            git_url=env.get("GIT_URL", ""),
            git_username=env.get("GIT_USERNAME", ""),
            git_password=env.get("GIT_PASSWORD", ""),
            program_id=str(env.get("PROGRAM_ID", "")),
            organization_id=env.get("ORGANIZATION_ID", ""),
            technical_account_id=env.get("TECHNICAL_ACCOUNT_ID", ""),
            api_key=env.get("API_KEY", ""),
            client_secret=env.get("CLIENT_SECRET", ""),
            # keys pasted into Lambda env vars often carry literal "\n"
            private_key=env.get("PRIVATE_KEY", "").replace("\\n", "\n"),
            ims_host=env.get("IMS_HOST", "https://ims-na1.adobelogin.com").rstrip("/"),
            meta_scopes=scopes,
            deploy_function=env.get("DEPLOY_FUNCTION_NAME", "deploy-to-runtime"),
            units_dir=env.get("UNITS_DIR", "runtime-actions"),
            unit_role_arn=env.get("UNIT_ROLE_ARN", ""),
            unit_runtime=env.get("UNIT_RUNTIME", "nodejs18.x"),
            unit_handler=env.get("UNIT_HANDLER", "index.main"),
            deploy_concurrency=max(1, concurrency),
            http_timeout=timeout,
            region=_region(env),
            lambda_endpoint_url=env.get("AWS_ENDPOINT_URL_LAMBDA") or None,
            log_level=env.get("LOG_LEVEL", "INFO").upper(),
        )

    def require(self, *names: str) -> "GateConfig":
        """Raise ConfigError listing every named setting that is empty."""
        known = {f.name for f in fields(self)}
        missing = []
        for name in names:
            if name not in known:
                raise ValueError(f"unknown setting {name!r}")
            if not getattr(self, name):
                missing.append(_ENV_NAMES.get(name, name.upper()))
        if missing:
            raise ConfigError(f"missing required settings: {', '.join(missing)}")
        return self


__all__ = ["GateConfig"]
