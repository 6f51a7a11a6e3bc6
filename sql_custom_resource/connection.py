"""
Connection strings and the connection factory seam.

The processor never talks to a database driver directly: it asks a
ConnectionFactory for a handle. The default factory opens one unpooled
SQLAlchemy connection for a configurable driver (SQL Server via pymssql
unless told otherwise); tests swap in their own.
"""

import math
from typing import Any, Dict, Optional, Protocol

from pydantic import BaseModel, ConfigDict, SecretStr
from sqlalchemy import create_engine
from sqlalchemy.engine import Connection, URL
from sqlalchemy.pool import NullPool

from .logger import get_logger
from .models import CredentialSet

logger = get_logger(__name__)

CONNECTION_TIMEOUT_SECONDS = 5

CONNECTION_STRING_TEMPLATE = (
    "Server={host};Port={port};Database={database};"
    "User Id={username};password={password};"
    "Connection Timeout={timeout}"
)


class ConnectionDescriptor(BaseModel):
    """
    A driver connection string together with the values it was built from.

    ``str()`` and ``repr()`` never show the password; use
    ``connection_string.get_secret_value()`` for the real thing.
    """

    model_config = ConfigDict(frozen=True)

    connection_string: SecretStr
    host: str
    port: int
    database: str
    username: str
    password: SecretStr
    timeout: int = CONNECTION_TIMEOUT_SECONDS
    login_timeout: float = CONNECTION_TIMEOUT_SECONDS
    statement_timeout: Optional[float] = None

    def bounded_by(self, remaining_seconds: float) -> "ConnectionDescriptor":
        """
        A copy whose login and statement timeouts fit in ``remaining_seconds``.

        The connection string keeps its fixed timeout; only what the factory
        passes to the driver shrinks.
        """
        return self.model_copy(
            update={
                "login_timeout": min(self.timeout, remaining_seconds),
                "statement_timeout": remaining_seconds,
            }
        )

    def redacted(self) -> str:
        """The connection string with the password masked, for logs"""
        return _render(self.host, self.port, self.database, self.username, "***", self.timeout)

    def __str__(self):
        return self.redacted()


def _render(host, port, database, username, password, timeout) -> str:
    return CONNECTION_STRING_TEMPLATE.format(
        host=host,
        port=port,
        database=database,
        username=username,
        password=password,
        timeout=timeout,
    )


def build_connection_string(credentials: CredentialSet, database: str) -> ConnectionDescriptor:
    """Assemble the connection descriptor for ``database``"""
    password = credentials.password.get_secret_value()
    descriptor = ConnectionDescriptor(
        connection_string=_render(
            credentials.host,
            credentials.port,
            database,
            credentials.username,
            password,
            CONNECTION_TIMEOUT_SECONDS,
        ),
        host=credentials.host,
        port=credentials.port,
        database=database,
        username=credentials.username,
        password=password,
    )
    logger.info("CONNECTION_STRING_BUILT", extra={"connection_string": descriptor.redacted()})
    return descriptor


class ConnectionFactory(Protocol):
    def open(self, descriptor: ConnectionDescriptor) -> Connection:
        ...


# Name of the login timeout argument each DBAPI driver accepts
LOGIN_TIMEOUT_ARGS = {
    "postgresql": "connect_timeout",
    "mssql": "login_timeout",
    "mysql": "connect_timeout",
}

DEFAULT_DRIVER = "mssql+pymssql"


def _whole_seconds(seconds: float) -> int:
    # Drivers take integer seconds and read 0 as "no timeout"
    return max(1, math.ceil(seconds))


class SqlAlchemyConnectionFactory:
    """
    Opens one unpooled connection per call.

    The returned SQLAlchemy Connection is a context manager; closing it
    closes the DBAPI connection. The descriptor's login timeout bounds the
    connect; its statement timeout, when set, bounds every statement on the
    connection, COMMIT included.

    The ADO-style ``connection_string`` is not handed to the driver: pymssql
    and psycopg2 take keyword arguments, so the URL is built from the
    descriptor's structured fields instead.

    Args:
        drivername: SQLAlchemy driver, e.g. ``mssql+pymssql`` or
            ``postgresql+psycopg2``
    """

    def __init__(self, drivername: str = DEFAULT_DRIVER):
        self.drivername = drivername

    @property
    def dialect(self) -> str:
        return self.drivername.split("+", 1)[0]

    def url_for(self, descriptor: ConnectionDescriptor) -> URL:
        return URL.create(
            self.drivername,
            username=descriptor.username,
            password=descriptor.password.get_secret_value(),
            host=descriptor.host,
            port=descriptor.port,
            database=descriptor.database,
        )

    def connect_args(self, descriptor: ConnectionDescriptor) -> Dict[str, Any]:
        args: Dict[str, Any] = {}
        timeout_arg = LOGIN_TIMEOUT_ARGS.get(self.dialect)
        if timeout_arg is not None:
            args[timeout_arg] = _whole_seconds(descriptor.login_timeout)

        if descriptor.statement_timeout is not None:
            if self.dialect == "postgresql":
                millis = max(1, int(descriptor.statement_timeout * 1000))
                args["options"] = f"-c statement_timeout={millis}"
            elif self.dialect == "mssql":
                args["timeout"] = _whole_seconds(descriptor.statement_timeout)
            elif self.dialect == "mysql":
                args["read_timeout"] = _whole_seconds(descriptor.statement_timeout)
        return args

    def open(self, descriptor: ConnectionDescriptor) -> Connection:
        engine = create_engine(
            self.url_for(descriptor),
            poolclass=NullPool,
            connect_args=self.connect_args(descriptor),
        )
        return engine.connect()
