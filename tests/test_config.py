"""Unit tests for Config."""

from __future__ import annotations

import pytest

from sql_custom_resource.config import Config


class TestConfigFromEnv:
    """Tests for reading configuration from the environment."""

    def test_defaults(self) -> None:
        config = Config.from_env({})

        assert config.secret_id is None
        assert config.aws_region == "us-east-1"
        assert config.secret_cache_enabled is True
        assert config.secret_cache_ttl_seconds == 3600
        assert config.log_level == "INFO"
        assert config.db_driver == "mssql+pymssql"
        assert config.response_timeout_seconds == 10.0
        assert config.validate() == []

    def test_reads_values(self) -> None:
        config = Config.from_env(
            {
                "SECRET_ID": "arn:aws:secretsmanager:eu-west-1:123:secret:db",
                "AWS_REGION": "eu-west-1",
                "SECRET_CACHE_ENABLED": "false",
                "SECRET_CACHE_TTL_SECONDS": "60",
                "LOG_LEVEL": "debug",
                "DB_DRIVER": "postgresql+psycopg2",
                "RESPONSE_TIMEOUT_SECONDS": "2.5",
            }
        )

        assert config.secret_id == "arn:aws:secretsmanager:eu-west-1:123:secret:db"
        assert config.aws_region == "eu-west-1"
        assert config.secret_cache_enabled is False
        assert config.secret_cache_ttl_seconds == 60
        assert config.log_level == "DEBUG"
        assert config.db_driver == "postgresql+psycopg2"
        assert config.response_timeout_seconds == 2.5

    def test_empty_secret_id_is_none(self) -> None:
        assert Config.from_env({"SECRET_ID": ""}).secret_id is None

    def test_reads_process_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SECRET_ID", "from-env")
        assert Config.from_env().secret_id == "from-env"

    @pytest.mark.parametrize("value", ["1", "true", "TRUE", "yes", "on"])
    def test_cache_enabled_truthy_values(self, value: str) -> None:
        assert Config.from_env({"SECRET_CACHE_ENABLED": value}).secret_cache_enabled is True


class TestConfigValidate:
    """Tests for Config.validate."""

    @pytest.mark.parametrize(
        ("env", "fragment"),
        [
            pytest.param({"SECRET_CACHE_TTL_SECONDS": "soon"}, "SECRET_CACHE_TTL_SECONDS", id="ttl_nan"),
            pytest.param({"SECRET_CACHE_TTL_SECONDS": "-1"}, "must not be negative", id="ttl_negative"),
            pytest.param({"RESPONSE_TIMEOUT_SECONDS": "0"}, "must be positive", id="timeout_zero"),
            pytest.param({"RESPONSE_TIMEOUT_SECONDS": "x"}, "must be a number", id="timeout_nan"),
            pytest.param({"LOG_LEVEL": "LOUD"}, "LOG_LEVEL", id="log_level"),
            pytest.param({"DB_DRIVER": ""}, "DB_DRIVER", id="driver"),
        ],
    )
    def test_reports_problem(self, env: dict[str, str], fragment: str) -> None:
        problems = Config.from_env(env).validate()

        assert len(problems) == 1
        assert fragment in problems[0]

    def test_summary_hides_secret_id(self) -> None:
        summary = Config.from_env({"SECRET_ID": "very-secret-arn"}).summary()

        assert summary["secret_id_configured"] is True
        assert "very-secret-arn" not in str(summary)
