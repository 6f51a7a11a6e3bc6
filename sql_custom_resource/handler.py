"""
Lambda Function: SQL Custom Resource
====================================

PURPOSE
-------
Backs a CloudFormation custom resource that runs one SQL statement against
a database when the resource is created.

FLOW
----
CloudFormation custom resource event
    → EventProcessor (validate → secret → connect → transaction)
    → PUT result to the event's ResponseURL

Resource Properties:
- Database:  target database name
- SqlQuery:  statement to run on Create
- SecretId:  Secrets Manager secret holding host/port/username/password
             (optional when the SECRET_ID environment variable is set)

IAM Permissions Required:
- secretsmanager:GetSecretValue, secretsmanager:DescribeSecret
- ec2:CreateNetworkInterface, ec2:DescribeNetworkInterfaces, ec2:DeleteNetworkInterface (VPC)
- logs:CreateLogGroup, logs:CreateLogStream, logs:PutLogEvents
"""

from typing import Any, Dict, Optional

import boto3
import requests
from botocore.config import Config as BotoConfig

from . import cfn_response
from .config import VALID_LOG_LEVELS, Config
from .connection import ConnectionFactory, SqlAlchemyConnectionFactory
from .logger import configure_logging, get_logger
from .models import CustomResourceResponse, LifecycleEvent
from .processor import EventProcessor
from .secret_resolver import CachingSecretResolver, DirectSecretResolver

logger = get_logger(__name__)

# =============================================================================
# CONTAINER STATE (BUILT ON FIRST INVOCATION, REUSED WHILE WARM)
# =============================================================================

_config: Optional[Config] = None
_processor: Optional[EventProcessor] = None
_http: Optional[requests.Session] = None

RESPONSE_RESERVE_SECONDS = 2.0

# Per-call bounds for the shared Secrets Manager client
SECRETS_CONNECT_TIMEOUT_SECONDS = 3
SECRETS_READ_TIMEOUT_SECONDS = 5
SECRETS_MAX_ATTEMPTS = 2


def secrets_client_config() -> BotoConfig:
    return BotoConfig(
        connect_timeout=SECRETS_CONNECT_TIMEOUT_SECONDS,
        read_timeout=SECRETS_READ_TIMEOUT_SECONDS,
        retries={"max_attempts": SECRETS_MAX_ATTEMPTS, "mode": "standard"},
    )


def build_processor(
        config: Config,
        client=None,
        connection_factory: Optional[ConnectionFactory] = None
) -> EventProcessor:
    """
    Wire an EventProcessor from configuration.

    Args:
        config: validated Config
        client: boto3 secretsmanager client; created for config.aws_region if omitted
        connection_factory: defaults to SqlAlchemyConnectionFactory(config.db_driver)
    """
    if client is None:
        client = boto3.client(
            "secretsmanager",
            region_name=config.aws_region,
            config=secrets_client_config()
        )

    if config.secret_cache_enabled:
        resolver = CachingSecretResolver.from_client(client, config.secret_cache_ttl_seconds)
    else:
        resolver = DirectSecretResolver(client)

    return EventProcessor(
        secret_resolver=resolver,
        connection_factory=connection_factory or SqlAlchemyConnectionFactory(config.db_driver),
        secret_id=config.secret_id,
    )


def _bootstrap() -> None:
    global _config, _processor, _http

    if _processor is not None:
        return

    config = Config.from_env()
    problems = config.validate()
    configure_logging(config.log_level if config.log_level in VALID_LOG_LEVELS else "INFO")
    if problems:
        logger.critical("CONFIG_INVALID", extra={"problems": problems})
        raise RuntimeError("Invalid configuration: " + "; ".join(problems))

    logger.info("CONFIG_LOADED", extra=config.summary())
    _processor = build_processor(config)
    _http = requests.Session()
    _config = config


def _deadline_from(context):
    if context is None or not hasattr(context, "get_remaining_time_in_millis"):
        return None
    # Keep enough time to PUT the response before Lambda kills us
    return lambda: context.get_remaining_time_in_millis() / 1000.0 - RESPONSE_RESERVE_SECONDS


def _response_timeout() -> float:
    if _config is None:
        return cfn_response.DEFAULT_TIMEOUT_SECONDS
    return _config.response_timeout_seconds


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    AWS Lambda entry point.

    Always answers CloudFormation, even when the event does not parse or
    processing blows up with an unexpected exception; that exception is then
    re-raised.
    """
    log_stream_name = getattr(context, "log_stream_name", "") or ""
    lifecycle_event = None

    try:
        _bootstrap()
        lifecycle_event = LifecycleEvent.from_lambda_event(event)
        response = _processor.process(lifecycle_event, deadline=_deadline_from(context))
    except Exception as e:
        logger.exception(
            "EVENT_UNEXPECTED_ERROR",
            extra={"exception_type": type(e).__name__, "error": str(e)}
        )
        if lifecycle_event is None:
            lifecycle_event = LifecycleEvent.envelope_of(event)
        response = CustomResourceResponse(
            physical_resource_id=lifecycle_event.physical_resource_id,
            error=f"{type(e).__name__}: {e}"
        )
        body = cfn_response.build_response_body(lifecycle_event, response, log_stream_name)
        cfn_response.send(lifecycle_event, body, timeout=_response_timeout(), session=_http)
        raise

    body = cfn_response.build_response_body(lifecycle_event, response, log_stream_name)
    cfn_response.send(lifecycle_event, body, timeout=_response_timeout(), session=_http)
    return body
