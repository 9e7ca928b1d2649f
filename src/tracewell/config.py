"""Harness configuration.

Each setting resolves in order: explicit keyword argument, environment
variable, built-in default.

==============================  ==================================  ==============
Field                           Environment variable                Default
==============================  ==================================  ==============
``server_host``                 ``JAEGER_QUERY_HOST``               ``localhost``
``query_protocol``              ``JAEGER_QUERY_PROTOCOL``           ``http``
``agent_host``                  ``JAEGER_AGENT_HOST``               ``localhost``
``query_port``                  ``JAEGER_PORT_QUERY_HTTP``          ``16686``
``agent_zipkin_thrift_port``    ``JAEGER_PORT_AGENT_ZIPKIN_THRIFT`` ``5775``
``agent_compact_port``          ``JAEGER_PORT_AGENT_COMPACT``       ``6831``
``agent_binary_port``           ``JAEGER_PORT_AGENT_BINARY``        ``6832``
``zipkin_collector_port``       ``JAEGER_PORT_ZIPKIN_COLLECTOR``    ``14268``
``otlp_port``                   ``JAEGER_PORT_OTLP_HTTP``           ``4318``
``flush_interval_ms``           ``JAEGER_FLUSH_INTERVAL``           ``100``
``service_name``                ``JAEGER_SERVICE_NAME``             ``tracewell-test``
==============================  ==================================  ==============
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

__all__ = ["ENV_VARS", "HarnessConfig"]


def _env(field: str, env_var: str) -> AliasChoices:
    # The field name comes first so keyword arguments beat the environment.
    return AliasChoices(field, env_var)


class HarnessConfig(BaseSettings):
    """Immutable connection and timing settings for a tracing test run.

    Constructing the model reads ``JAEGER_*`` environment variables for any
    field not passed explicitly.  Values from the environment are validated
    like any other input, so a non-numeric port raises
    ``pydantic.ValidationError``.
    """

    model_config = SettingsConfigDict(frozen=True, case_sensitive=True)

    server_host: str = Field(
        default="localhost", validation_alias=_env("server_host", "JAEGER_QUERY_HOST")
    )
    query_protocol: Literal["http", "https"] = Field(
        default="http", validation_alias=_env("query_protocol", "JAEGER_QUERY_PROTOCOL")
    )
    agent_host: str = Field(
        default="localhost", validation_alias=_env("agent_host", "JAEGER_AGENT_HOST")
    )
    query_port: int = Field(
        default=16686,
        gt=0,
        lt=65536,
        validation_alias=_env("query_port", "JAEGER_PORT_QUERY_HTTP"),
    )
    agent_zipkin_thrift_port: int = Field(
        default=5775,
        gt=0,
        lt=65536,
        validation_alias=_env("agent_zipkin_thrift_port", "JAEGER_PORT_AGENT_ZIPKIN_THRIFT"),
    )
    agent_compact_port: int = Field(
        default=6831,
        gt=0,
        lt=65536,
        validation_alias=_env("agent_compact_port", "JAEGER_PORT_AGENT_COMPACT"),
    )
    agent_binary_port: int = Field(
        default=6832,
        gt=0,
        lt=65536,
        validation_alias=_env("agent_binary_port", "JAEGER_PORT_AGENT_BINARY"),
    )
    zipkin_collector_port: int = Field(
        default=14268,
        gt=0,
        lt=65536,
        validation_alias=_env("zipkin_collector_port", "JAEGER_PORT_ZIPKIN_COLLECTOR"),
    )
    otlp_port: int = Field(
        default=4318,
        gt=0,
        lt=65536,
        validation_alias=_env("otlp_port", "JAEGER_PORT_OTLP_HTTP"),
    )
    flush_interval_ms: int = Field(
        default=100, gt=0, validation_alias=_env("flush_interval_ms", "JAEGER_FLUSH_INTERVAL")
    )
    service_name: str = Field(
        default="tracewell-test",
        min_length=1,
        validation_alias=_env("service_name", "JAEGER_SERVICE_NAME"),
    )

    @classmethod
    def from_env(cls, **overrides: Any) -> HarnessConfig:
        """Resolve settings from overrides, then the environment, then defaults.

        Parameters:
            **overrides: Field values that win over the environment.
                ``None`` values are ignored so optional parameters can be
                passed through unconditionally.

        Raises:
            TypeError: If an override names no field.
            pydantic.ValidationError: If a value fails validation.
        """
        unknown = set(overrides) - set(cls.model_fields)
        if unknown:
            msg = f"Unknown configuration field(s): {', '.join(sorted(unknown))}"
            raise TypeError(msg)
        return cls(**{k: v for k, v in overrides.items() if v is not None})

    @property
    def query_url(self) -> str:
        """Root URL of the query service."""
        return f"{self.query_protocol}://{self.server_host}:{self.query_port}"

    @property
    def otlp_endpoint(self) -> str:
        """Root URL of the collector's OTLP/HTTP receiver."""
        return f"http://{self.agent_host}:{self.otlp_port}"


ENV_VARS: dict[str, str] = {
    name: str(field.validation_alias.choices[-1])  # type: ignore[union-attr]
    for name, field in HarnessConfig.model_fields.items()
}
