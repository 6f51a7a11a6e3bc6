"""Unit tests for connection string building and the default factory."""

from __future__ import annotations

import pytest

from sql_custom_resource.connection import (
    CONNECTION_TIMEOUT_SECONDS,
    SqlAlchemyConnectionFactory,
    build_connection_string,
)
from sql_custom_resource.models import CredentialSet


@pytest.fixture
def credentials() -> CredentialSet:
    return CredentialSet(host="h", port=1344, username="u", password="p;w=d")


class TestBuildConnectionString:
    """Tests for build_connection_string."""

    def test_format(self, credentials: CredentialSet) -> None:
        descriptor = build_connection_string(credentials, "db")

        assert descriptor.connection_string.get_secret_value() == (
            "Server=h;Port=1344;Database=db;User Id=u;password=p;w=d;Connection Timeout=5"
        )
        assert descriptor.timeout == CONNECTION_TIMEOUT_SECONDS == 5

    def test_is_deterministic(self, credentials: CredentialSet) -> None:
        assert build_connection_string(credentials, "db") == build_connection_string(credentials, "db")

    def test_redacted_masks_password(self, credentials: CredentialSet) -> None:
        descriptor = build_connection_string(credentials, "db")

        assert descriptor.redacted() == (
            "Server=h;Port=1344;Database=db;User Id=u;password=***;Connection Timeout=5"
        )
        assert "p;w=d" not in str(descriptor)
        assert "p;w=d" not in repr(descriptor)

    def test_build_log_never_contains_password(
        self, credentials: CredentialSet, caplog: pytest.LogCaptureFixture
    ) -> None:
        caplog.set_level("DEBUG", logger="sql_custom_resource")

        build_connection_string(credentials, "db")

        assert "CONNECTION_STRING_BUILT" in caplog.messages
        for record in caplog.records:
            assert "p;w=d" not in str(record.__dict__)


class TestSqlAlchemyConnectionFactory:
    """Tests for the URL and connect arguments the default factory derives."""

    def test_url_uses_structured_fields(self, credentials: CredentialSet) -> None:
        url = SqlAlchemyConnectionFactory().url_for(build_connection_string(credentials, "db"))

        assert url.drivername == "mssql+pymssql"
        assert (url.host, url.port, url.database, url.username, url.password) == (
            "h", 1344, "db", "u", "p;w=d",
        )

    @pytest.mark.parametrize(
        ("drivername", "expected"),
        [
            pytest.param("postgresql+psycopg2", {"connect_timeout": 5}, id="postgres"),
            pytest.param("mssql+pymssql", {"login_timeout": 5}, id="sqlserver"),
            pytest.param("sqlite", {}, id="unknown"),
        ],
    )
    def test_login_timeout_argument(
        self, credentials: CredentialSet, drivername: str, expected: dict
    ) -> None:
        factory = SqlAlchemyConnectionFactory(drivername)

        assert factory.connect_args(build_connection_string(credentials, "db")) == expected

    @pytest.mark.parametrize(
        ("drivername", "expected"),
        [
            pytest.param(
                "postgresql+psycopg2",
                {"connect_timeout": 3, "options": "-c statement_timeout=2500"},
                id="postgres",
            ),
            pytest.param("mssql+pymssql", {"login_timeout": 3, "timeout": 3}, id="sqlserver"),
            pytest.param("mysql+pymysql", {"connect_timeout": 3, "read_timeout": 3}, id="mysql"),
        ],
    )
    def test_remaining_time_bounds_login_and_statement(
        self, credentials: CredentialSet, drivername: str, expected: dict
    ) -> None:
        descriptor = build_connection_string(credentials, "db").bounded_by(2.5)

        assert SqlAlchemyConnectionFactory(drivername).connect_args(descriptor) == expected

    def test_timeouts_never_round_down_to_zero(self, credentials: CredentialSet) -> None:
        descriptor = build_connection_string(credentials, "db").bounded_by(0.01)

        assert SqlAlchemyConnectionFactory().connect_args(descriptor) == {
            "login_timeout": 1,
            "timeout": 1,
        }


class TestBoundedBy:
    """Tests for fitting a descriptor's timeouts into the time left."""

    def test_plenty_of_time_keeps_login_timeout(self, credentials: CredentialSet) -> None:
        descriptor = build_connection_string(credentials, "db").bounded_by(120.0)

        assert descriptor.login_timeout == CONNECTION_TIMEOUT_SECONDS
        assert descriptor.statement_timeout == 120.0

    def test_little_time_shrinks_login_timeout(self, credentials: CredentialSet) -> None:
        original = build_connection_string(credentials, "db")
        descriptor = original.bounded_by(1.5)

        assert descriptor.login_timeout == 1.5
        assert descriptor.connection_string == original.connection_string
        assert original.statement_timeout is None
