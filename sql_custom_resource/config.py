"""
config.py - Configuration for the SQL custom resource Lambda
=============================================================

All settings come from environment variables set on the Lambda function by
the CloudFormation template that deploys it.

Environment Variables:
  SECRET_ID                  → Secrets Manager id/ARN of the DB credentials
                               (optional when events pass a SecretId property)
  AWS_REGION                 → Region for the Secrets Manager client
  SECRET_CACHE_ENABLED       → 'true' to serve secrets from an in-memory cache
  SECRET_CACHE_TTL_SECONDS   → How long a cached secret is trusted
  DB_DRIVER                  → SQLAlchemy driver: mssql+pymssql (default),
                               postgresql+psycopg2
  LOG_LEVEL                  → 'INFO', 'DEBUG', etc.
  RESPONSE_TIMEOUT_SECONDS   → Timeout for the PUT back to CloudFormation

Usage:
```python
config = Config.from_env()
problems = config.validate()
if problems:
    raise RuntimeError(problems)
```

The config object is built once by the Lambda entry point and passed down;
nothing below the entry point reads the environment.
"""

import os
from typing import List, Mapping, Optional

VALID_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}

TRUE_VALUES = {"1", "true", "yes", "on"}


class Config:
    """Deployment-wide settings for one Lambda container"""

    def __init__(
            self,
            secret_id: Optional[str] = None,
            aws_region: str = "us-east-1",
            secret_cache_enabled: bool = True,
            secret_cache_ttl_seconds: str = "3600",
            log_level: str = "INFO",
            db_driver: str = "mssql+pymssql",
            response_timeout_seconds: str = "10"
    ):
        self.secret_id = secret_id or None
        self.aws_region = aws_region
        self.secret_cache_enabled = secret_cache_enabled
        self.log_level = log_level.upper()
        self.db_driver = db_driver

        # Numeric settings are kept raw until validate() so a bad value is
        # reported by validate() instead of raising here.
        self._raw_cache_ttl = secret_cache_ttl_seconds
        self._raw_response_timeout = response_timeout_seconds

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Config":
        """Build a Config from ``environ`` (defaults to ``os.environ``)"""
        env = os.environ if environ is None else environ
        return cls(
            secret_id=env.get("SECRET_ID"),
            aws_region=env.get("AWS_REGION", "us-east-1"),
            secret_cache_enabled=env.get("SECRET_CACHE_ENABLED", "true").strip().lower() in TRUE_VALUES,
            secret_cache_ttl_seconds=env.get("SECRET_CACHE_TTL_SECONDS", "3600"),
            log_level=env.get("LOG_LEVEL", "INFO"),
            db_driver=env.get("DB_DRIVER", "mssql+pymssql"),
            response_timeout_seconds=env.get("RESPONSE_TIMEOUT_SECONDS", "10"),
        )

    @property
    def secret_cache_ttl_seconds(self) -> int:
        return int(self._raw_cache_ttl)

    @property
    def response_timeout_seconds(self) -> float:
        return float(self._raw_response_timeout)

    def validate(self) -> List[str]:
        """
        Check every setting and return a list of human readable problems.

        An empty list means the configuration is usable.
        """
        problems = []

        try:
            if self.secret_cache_ttl_seconds < 0:
                problems.append("SECRET_CACHE_TTL_SECONDS must not be negative")
        except ValueError:
            problems.append(
                f"SECRET_CACHE_TTL_SECONDS must be an integer, got {self._raw_cache_ttl!r}"
            )

        try:
            if self.response_timeout_seconds <= 0:
                problems.append("RESPONSE_TIMEOUT_SECONDS must be positive")
        except ValueError:
            problems.append(
                f"RESPONSE_TIMEOUT_SECONDS must be a number, got {self._raw_response_timeout!r}"
            )

        if not self.db_driver:
            problems.append("DB_DRIVER must not be empty")

        if self.log_level not in VALID_LOG_LEVELS:
            problems.append(f"LOG_LEVEL must be one of {sorted(VALID_LOG_LEVELS)}")

        return problems

    def summary(self) -> dict:
        """Loggable view of the settings"""
        return {
            "secret_id_configured": self.secret_id is not None,
            "aws_region": self.aws_region,
            "secret_cache_enabled": self.secret_cache_enabled,
            "secret_cache_ttl_seconds": self._raw_cache_ttl,
            "log_level": self.log_level,
            "db_driver": self.db_driver,
        }
