# releasegate/utils/aws_clients.py
import boto3
from botocore.config import Config

from releasegate.config import GateConfig

# Lambda control-plane calls get throttled under concurrent deploys
_RETRIES = Config(retries={"max_attempts": 5, "mode": "standard"})


def lambda_client(config: GateConfig):
    kwargs = {"region_name": config.region, "config": _RETRIES}
    if config.lambda_endpoint_url:
        kwargs["endpoint_url"] = config.lambda_endpoint_url
    return boto3.client("lambda", **kwargs)
