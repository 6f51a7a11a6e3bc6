"""
Secrets Manager integration
===========================

Two resolvers with the same contract, ``resolve(secret_id) -> str``:

- DirectSecretResolver: one GetSecretValue call per resolve.
- CachingSecretResolver: aws_secretsmanager_caching.SecretCache, shared by
  every invocation in a warm container (DescribeSecret + GetSecretValue on
  a miss or after the refresh interval).

Both raise SecretStoreError when Secrets Manager fails and EmptySecret when
the secret has no string payload. ``decode_credentials`` turns the payload
into a CredentialSet.
"""

from typing import Protocol

from aws_secretsmanager_caching import SecretCache, SecretCacheConfig
from botocore.exceptions import BotoCoreError, ClientError
from pydantic import ValidationError

from .errors import EmptySecret, MalformedSecret, SecretStoreError
from .logger import get_logger
from .models import CredentialSet

logger = get_logger(__name__)

VERSION_STAGE = "AWSCURRENT"


class SecretResolver(Protocol):
    def resolve(self, secret_id: str) -> str:
        ...


def _store_error(secret_id: str, error: Exception) -> SecretStoreError:
    error_code = None
    if isinstance(error, ClientError):
        error_code = error.response.get("Error", {}).get("Code")
    logger.error(
        "SECRET_FETCH_FAILED",
        extra={
            "secret_id": secret_id,
            "error_code": error_code,
            "exception_type": type(error).__name__,
            "error": str(error),
        }
    )
    return SecretStoreError(str(error))


def _require_payload(secret_id: str, secret_string) -> str:
    if not secret_string:
        logger.error("SECRET_EMPTY", extra={"secret_id": secret_id})
        raise EmptySecret()
    return secret_string


class DirectSecretResolver:
    """Always asks Secrets Manager"""

    def __init__(self, client):
        """
        Args:
            client: boto3 ``secretsmanager`` client
        """
        self.client = client

    def resolve(self, secret_id: str) -> str:
        logger.info("SECRET_FETCH_STARTED", extra={"secret_id": secret_id})
        try:
            response = self.client.get_secret_value(
                SecretId=secret_id,
                VersionStage=VERSION_STAGE
            )
        except (ClientError, BotoCoreError) as e:
            raise _store_error(secret_id, e) from e

        secret_string = _require_payload(secret_id, response.get("SecretString"))
        logger.info("SECRET_FETCH_SUCCEEDED", extra={"secret_id": secret_id})
        return secret_string


class CachingSecretResolver:
    """
    Serves secrets from an ``aws_secretsmanager_caching.SecretCache``.

    The cache is thread safe, so one resolver is shared by every invocation
    in a warm container. A cached value may be up to ``ttl_seconds`` old.
    Errors come back the same way DirectSecretResolver reports them.
    """

    def __init__(self, cache: SecretCache):
        self.cache = cache

    @classmethod
    def from_client(cls, client, ttl_seconds: int = 3600) -> "CachingSecretResolver":
        """
        Args:
            client: boto3 ``secretsmanager`` client
            ttl_seconds: how long a fetched secret is served before refreshing
        """
        config = SecretCacheConfig(
            secret_refresh_interval=ttl_seconds,
            default_version_stage=VERSION_STAGE
        )
        return cls(SecretCache(config=config, client=client))

    def resolve(self, secret_id: str) -> str:
        logger.info("SECRET_FETCH_STARTED", extra={"secret_id": secret_id, "cached": True})
        try:
            secret_string = self.cache.get_secret_string(secret_id)
        except (ClientError, BotoCoreError) as e:
            raise _store_error(secret_id, e) from e

        secret_string = _require_payload(secret_id, secret_string)
        logger.info("SECRET_FETCH_SUCCEEDED", extra={"secret_id": secret_id, "cached": True})
        return secret_string


def decode_credentials(secret_string: str) -> CredentialSet:
    """
    Parse a secret payload into a CredentialSet.

    Raises
    ------
    MalformedSecret
        If the payload is not JSON or lacks host/port/username/password.
    """
    try:
        return CredentialSet.model_validate_json(secret_string)
    except ValidationError as e:
        # str(e) echoes the input, which holds the password
        problems = [
            f"{'.'.join(map(str, err['loc'])) or 'payload'}: {err['msg']}"
            for err in e.errors()
        ]
        logger.error("SECRET_PARSE_FAILED", extra={"problems": problems})
        raise MalformedSecret("Malformed secret: " + "; ".join(problems)) from e
