"""Tests for HarnessConfig resolution."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from tracewell.config import ENV_VARS, HarnessConfig


class TestDefaults:
    def test_defaults(self) -> None:
        config = HarnessConfig.from_env()
        assert config.server_host == "localhost"
        assert config.query_port == 16686
        assert config.agent_zipkin_thrift_port == 5775
        assert config.agent_compact_port == 6831
        assert config.agent_binary_port == 6832
        assert config.zipkin_collector_port == 14268
        assert config.otlp_port == 4318
        assert config.flush_interval_ms == 100
        assert config.query_url == "http://localhost:16686"
        assert config.otlp_endpoint == "http://localhost:4318"

    def test_every_field_has_an_env_var(self) -> None:
        assert set(ENV_VARS) == set(HarnessConfig.model_fields)
        assert ENV_VARS["server_host"] == "JAEGER_QUERY_HOST"
        assert ENV_VARS["otlp_port"] == "JAEGER_PORT_OTLP_HTTP"


class TestResolution:
    def test_environment_overrides_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        for name, value in {
            "JAEGER_QUERY_HOST": "jaeger-query",
            "JAEGER_QUERY_PROTOCOL": "https",
            "JAEGER_PORT_QUERY_HTTP": "443",
            "JAEGER_AGENT_HOST": "agent",
            "JAEGER_PORT_OTLP_HTTP": "4319",
            "JAEGER_FLUSH_INTERVAL": "250",
        }.items():
            monkeypatch.setenv(name, value)

        config = HarnessConfig.from_env()
        assert config.query_url == "https://jaeger-query:443"
        assert config.otlp_endpoint == "http://agent:4319"
        assert config.flush_interval_ms == 250

    def test_keyword_overrides_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("JAEGER_QUERY_HOST", "from-env")
        config = HarnessConfig.from_env(server_host="from-kwarg", service_name=None)
        assert config.server_host == "from-kwarg"
        assert config.service_name == "tracewell-test"

    def test_constructor_reads_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("JAEGER_SERVICE_NAME", "checkout")
        assert HarnessConfig().service_name == "checkout"
        assert HarnessConfig(service_name="billing").service_name == "billing"

    def test_field_names_are_not_env_vars(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("service_name", "from-field-name")
        assert HarnessConfig().service_name == "tracewell-test"

    def test_unknown_override_rejected(self) -> None:
        with pytest.raises(TypeError, match="query_host"):
            HarnessConfig.from_env(query_host="x")

    @pytest.mark.parametrize(
        ("env_var", "value"),
        [
            ("JAEGER_PORT_QUERY_HTTP", "not-a-port"),
            ("JAEGER_PORT_QUERY_HTTP", "70000"),
            ("JAEGER_PORT_OTLP_HTTP", "0"),
            ("JAEGER_FLUSH_INTERVAL", "0"),
            ("JAEGER_QUERY_PROTOCOL", "ftp"),
        ],
    )
    def test_invalid_values(
        self, monkeypatch: pytest.MonkeyPatch, env_var: str, value: str
    ) -> None:
        monkeypatch.setenv(env_var, value)
        with pytest.raises(ValidationError):
            HarnessConfig.from_env()

    def test_frozen(self) -> None:
        config = HarnessConfig()
        with pytest.raises(ValidationError):
            config.query_port = 1  # type: ignore[misc]
