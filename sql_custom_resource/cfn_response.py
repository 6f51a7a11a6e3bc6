"""
Delivery of custom resource responses to CloudFormation.

CloudFormation waits on a pre-signed S3 URL (``ResponseURL``) for a JSON
document describing the outcome. Until something is PUT there the stack
operation hangs, so every invocation must end with exactly one send.
"""

import json
from typing import Any, Dict, Optional

import requests

from .logger import get_logger
from .models import CustomResourceResponse, LifecycleEvent

logger = get_logger(__name__)

DEFAULT_TIMEOUT_SECONDS = 10

SUCCESS = "SUCCESS"
FAILED = "FAILED"


def build_response_body(
        event: LifecycleEvent,
        response: CustomResourceResponse,
        log_stream_name: str = ""
) -> Dict[str, Any]:
    """
    Build the document CloudFormation expects at ``ResponseURL``.

    CloudFormation rejects an empty PhysicalResourceId, which is what a
    failed Create carries; the Lambda log stream name stands in for it.
    """
    status = SUCCESS if response.succeeded else FAILED
    reason = response.error or ""
    if log_stream_name:
        reason = reason or f"See the details in CloudWatch Log Stream: {log_stream_name}"

    return {
        "Status": status,
        "Reason": reason,
        "PhysicalResourceId": response.physical_resource_id or log_stream_name,
        "StackId": event.stack_id,
        "RequestId": event.request_id,
        "LogicalResourceId": event.logical_resource_id,
        "NoEcho": False,
        "Data": response.data,
    }


def send(
        event: LifecycleEvent,
        body: Dict[str, Any],
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        session: Optional[requests.Session] = None
) -> Optional[int]:
    """
    PUT ``body`` to the event's ResponseURL.

    Returns the HTTP status code, or None when the event has no ResponseURL
    (direct invocation). Transport failures are raised so the invocation
    fails loudly; CloudFormation would otherwise wait for its timeout.
    """
    if not event.response_url:
        logger.info("CFN_RESPONSE_SKIPPED", extra={"reason": "no_response_url"})
        return None

    payload = json.dumps(body)
    http = session or requests
    logger.info(
        "CFN_RESPONSE_SENDING",
        extra={"status": body["Status"], "physical_resource_id": body["PhysicalResourceId"]}
    )
    try:
        result = http.put(
            event.response_url,
            data=payload,
            headers={"Content-Type": "", "Content-Length": str(len(payload))},
            timeout=timeout,
        )
        result.raise_for_status()
    except requests.RequestException as e:
        logger.error(
            "CFN_RESPONSE_FAILED",
            extra={"exception_type": type(e).__name__, "error": str(e)}
        )
        raise

    logger.info("CFN_RESPONSE_SENT", extra={"http_status": result.status_code})
    return result.status_code
