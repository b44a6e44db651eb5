# releasegate/lambdas/deploy/app.py
import json
import logging
from typing import Any, Dict

from releasegate.config import GateConfig
from releasegate.errors import GateError
from releasegate.services.orchestrator import DeployOrchestrator

logger = logging.getLogger()
logger.setLevel(logging.INFO)


def _truthy(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes")
    return bool(value)


def lambda_handler(event: Dict[str, Any], context):
    """
    Builds and deploys every runtime unit at a revision, or checks that
    they are already deployed.
    Expected event:
    {
        "ref": "<branch, tag or commit>",
        "version": "<release version, e.g. dev or 2024.1.3>",
        "check": false
    }
    Check mode returns {"result": bool, "missingActions": [...]};
    deploy mode returns {"result": [per-unit outcome], "success": bool}.
    """
    config = GateConfig.from_env()
    logger.setLevel(config.log_level)
    logger.info("Received event: %s", json.dumps(event))

    ref = (event or {}).get("ref")
    version = (event or {}).get("version")
    check = _truthy((event or {}).get("check", False))
    if not ref or not version:
        raise ValueError("deploy requires 'ref' and 'version'")

    try:
        config.require("git_url")
        orchestrator = DeployOrchestrator.from_config(config)
        result = orchestrator.run(ref, version, verify_only=check)
    except GateError:
        logger.exception("deploy of %s as %s failed", ref, version)
        raise

    payload = result.to_payload(verify_only=check)
    logger.info("deploy of %s as %s finished: success=%s", ref, version, result.success)
    return payload
