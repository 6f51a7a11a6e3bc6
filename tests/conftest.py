"""Shared fixtures for the SQL custom resource tests."""

from __future__ import annotations

import logging
import typing as typ
from unittest import mock

import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from sql_custom_resource.connection import ConnectionDescriptor
from sql_custom_resource.logger import LOGGER_NAME
from sql_custom_resource.models import LifecycleEvent

SECRET_PAYLOAD = '{"host": "host","username": "user","password": "password", "port":1344}'


class FakeSecretResolver:
    """Secret resolver double returning a fixed payload or raising."""

    def __init__(self, value: str | None = None, error: Exception | None = None) -> None:
        self.value = value
        self.error = error
        self.calls: list[str] = []

    def resolve(self, secret_id: str) -> str:
        self.calls.append(secret_id)
        if self.error is not None:
            raise self.error
        return typ.cast("str", self.value)


class SQLiteConnectionFactory:
    """Connection factory backed by one shared in-memory SQLite database."""

    def __init__(self) -> None:
        self.engine = create_engine(
            "sqlite://",
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
        self.descriptors: list[ConnectionDescriptor] = []

    def open(self, descriptor: ConnectionDescriptor):
        self.descriptors.append(descriptor)
        return self.engine.connect()

    def scalar(self, sql: str) -> typ.Any:
        with self.engine.connect() as conn:
            return conn.exec_driver_sql(sql).scalar()


def make_event(
    request_type: str = "Create",
    properties: dict[str, typ.Any] | None = None,
    physical_resource_id: str = "",
    **envelope: str,
) -> LifecycleEvent:
    """Build a LifecycleEvent from CloudFormation-style keys."""
    raw: dict[str, typ.Any] = {
        "RequestType": request_type,
        "ResourceProperties": properties if properties is not None else {},
        "PhysicalResourceId": physical_resource_id,
    }
    raw.update(envelope)
    return LifecycleEvent.from_lambda_event(raw)


@pytest.fixture
def secret_resolver() -> FakeSecretResolver:
    return FakeSecretResolver(value=SECRET_PAYLOAD)


@pytest.fixture
def mock_handle() -> mock.MagicMock:
    """A SQLAlchemy-like connection whose transaction is ``handle.begin()``."""
    return mock.MagicMock(name="connection")


@pytest.fixture
def mock_factory(mock_handle: mock.MagicMock) -> mock.MagicMock:
    factory = mock.MagicMock(name="factory")
    factory.open.return_value = mock_handle
    return factory


@pytest.fixture
def sqlite_factory() -> typ.Iterator[SQLiteConnectionFactory]:
    factory = SQLiteConnectionFactory()
    with factory.engine.begin() as conn:
        conn.exec_driver_sql("CREATE TABLE users (id INTEGER PRIMARY KEY, name TEXT NOT NULL)")
    yield factory
    factory.engine.dispose()


@pytest.fixture(autouse=True)
def _restore_package_logger() -> typ.Iterator[None]:
    """Undo configure_logging so caplog keeps seeing package records."""
    logger = logging.getLogger(LOGGER_NAME)
    handlers, level, propagate = list(logger.handlers), logger.level, logger.propagate
    yield
    logger.handlers = handlers
    logger.setLevel(level)
    logger.propagate = propagate
