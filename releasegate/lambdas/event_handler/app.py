# releasegate/lambdas/event_handler/app.py
import json
import logging
from typing import Any, Dict

from releasegate.config import GateConfig
from releasegate.errors import GateError
from releasegate.services.router import EventRouter

logger = logging.getLogger()
logger.setLevel(logging.INFO)


def lambda_handler(event: Dict[str, Any], context):
    """
    Receives pipeline events (directly or wrapped as {"event": {...}}).
    Deploy steps start an asynchronous deploy; approval steps are advanced
    or cancelled depending on whether the expected versions are deployed.
    Events it does not handle resolve to {"action": "none"}.
    """
    config = GateConfig.from_env()
    logger.setLevel(config.log_level)
    logger.info("Received event: %s", json.dumps(event))

    try:
        router = EventRouter.from_config(config)
        result = router.handle(event or {})
    except GateError:
        logger.exception("event handling failed")
        raise

    logger.info("event handled: %s", json.dumps(result))
    return result
