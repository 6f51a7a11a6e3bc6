"""
Lifecycle Event Processor
=========================

Turns one CloudFormation custom resource event into one response.

FLOW (Create)
-------------
Event received
    → validate Database / SqlQuery / SecretId
    → resolve secret → decode credentials
    → build connection string
    → open connection → BEGIN → statement → COMMIT
    → physical id = sha1(database + query + secret id)

Any failure ends the flow: the response carries the error message and the
physical id the event arrived with. Update and Delete are acknowledged
without touching the database.
"""

from typing import Any, Mapping, Optional

from .connection import ConnectionFactory, build_connection_string
from .errors import CustomResourceError, DatabaseConnectionError, MissingParameter, SecretStoreError
from .executor import Deadline, execute_statement
from .identity import resource_identity
from .logger import get_logger
from .models import REQUEST_CREATE, CustomResourceResponse, LifecycleEvent, ValidatedParameters
from .secret_resolver import SecretResolver, decode_credentials

logger = get_logger(__name__)


def _required_string(properties: Mapping[str, Any], key: str) -> str:
    value = properties.get(key)
    if not isinstance(value, str) or not value:
        raise MissingParameter(key)
    return value


def validate_parameters(event: LifecycleEvent, configured_secret_id: Optional[str]) -> ValidatedParameters:
    """
    Pull Database, SqlQuery and the secret id out of the event.

    Checked in that order; only the first missing one is reported. A
    ``SecretId`` resource property wins over the configured secret id.
    """
    properties = event.resource_properties
    database = _required_string(properties, "Database")
    sql_query = _required_string(properties, "SqlQuery")

    secret_id = properties.get("SecretId")
    if not isinstance(secret_id, str) or not secret_id:
        secret_id = configured_secret_id
    if not secret_id:
        raise MissingParameter("SecretId")

    return ValidatedParameters(database=database, sql_query=sql_query, secret_id=secret_id)


def _check_deadline(deadline: Optional[Deadline], error_type, step: str) -> Optional[float]:
    """Seconds left before ``step``, or None without a deadline"""
    if deadline is None:
        return None
    remaining = deadline()
    if remaining <= 0:
        logger.error("DEADLINE_EXCEEDED", extra={"step": step})
        raise error_type(f"Invocation deadline exceeded before {step}")
    return remaining


class EventProcessor:
    """
    Processes lifecycle events with injected collaborators.

    The secret resolver and connection factory are built once by the Lambda
    entry point and reused across invocations.
    """

    def __init__(
            self,
            secret_resolver: SecretResolver,
            connection_factory: ConnectionFactory,
            secret_id: Optional[str] = None
    ):
        self.secret_resolver = secret_resolver
        self.connection_factory = connection_factory
        self.secret_id = secret_id

    def process(self, event: LifecycleEvent, deadline: Optional[Deadline] = None) -> CustomResourceResponse:
        logger.info("EVENT_RECEIVED", extra={"event": event.log_view()})

        if event.request_type != REQUEST_CREATE:
            logger.info("EVENT_IGNORED", extra={"request_type": event.request_type})
            return CustomResourceResponse(physical_resource_id=event.physical_resource_id)

        try:
            physical_resource_id = self._create(event, deadline)
        except CustomResourceError as e:
            logger.error(
                "EVENT_FAILED",
                extra={
                    "request_type": event.request_type,
                    "exception_type": type(e).__name__,
                    "error": str(e),
                }
            )
            return CustomResourceResponse(
                physical_resource_id=event.physical_resource_id,
                error=str(e)
            )

        logger.info("EVENT_SUCCEEDED", extra={"physical_resource_id": physical_resource_id})
        return CustomResourceResponse(physical_resource_id=physical_resource_id)

    def _create(self, event: LifecycleEvent, deadline: Optional[Deadline]) -> str:
        params = validate_parameters(event, self.secret_id)

        _check_deadline(deadline, SecretStoreError, "secret resolution")
        credentials = decode_credentials(self.secret_resolver.resolve(params.secret_id))

        descriptor = build_connection_string(credentials, params.database)

        remaining = _check_deadline(deadline, DatabaseConnectionError, "database connection")
        if remaining is not None:
            descriptor = descriptor.bounded_by(remaining)
        execute_statement(self.connection_factory, descriptor, params.sql_query, deadline=deadline)

        return resource_identity(params.database, params.sql_query, params.secret_id)
