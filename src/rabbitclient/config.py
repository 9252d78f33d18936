"""
Configuration for rabbitclient.

This module contains the client settings model and the environment variable
names it can be loaded from.
"""

import os
from typing import Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Global library name for logging
SERVICE_NAME = "rabbitclient"

ENV_PREFIX = "RABBITCLIENT_"

DEFAULT_RETRY_DELAY_MS = 3000


class ClientSettings(BaseModel):
    """Settings for a Client and its connection manager."""

    model_config = ConfigDict(extra="forbid")

    uri: str = Field(description="AMQP URI of the broker")
    retry_delay_ms: int = Field(
        default=DEFAULT_RETRY_DELAY_MS,
        ge=0,
        description="Delay between reconnection attempts in milliseconds",
    )
    max_reconnect_attempts: Optional[int] = Field(
        default=None,
        ge=1,
        description="Give up reconnecting after this many attempts, None retries forever",
    )
    monitor_interval: float = Field(
        default=1.0,
        gt=0,
        description="Seconds between checks for closed connections",
    )
    resubscribe_on_reconnect: bool = Field(
        default=False,
        description="Re-issue live subscriptions after the connections are rebuilt",
    )
    ssl_options: Optional[dict] = Field(
        default=None, description="SSL options passed to amqpstorm for amqps:// URIs"
    )

    @field_validator("uri")
    @classmethod
    def validate_uri(cls, value: str) -> str:
        if not value.startswith(("amqp://", "amqps://")):
            raise ValueError("uri must start with amqp:// or amqps://")
        return value

    @property
    def retry_delay(self) -> float:
        """Retry delay in seconds."""
        return self.retry_delay_ms / 1000.0

    @classmethod
    def from_env(
        cls, prefix: str = ENV_PREFIX, environ: Optional[Mapping[str, str]] = None
    ) -> "ClientSettings":
        """
        Load settings from environment variables.

        Reads ``URI``, ``RETRY_DELAY_MS``, ``MAX_RECONNECT_ATTEMPTS``,
        ``MONITOR_INTERVAL`` and ``RESUBSCRIBE_ON_RECONNECT`` with ``prefix``
        prepended. Unset or empty variables keep their defaults.

        :param prefix: Prefix for the variable names.
        :param environ: Mapping to read from, defaults to ``os.environ``.
        :return: Validated settings.
        """
        if environ is None:
            environ = os.environ

        values = {}
        for name in (
            "uri",
            "retry_delay_ms",
            "max_reconnect_attempts",
            "monitor_interval",
            "resubscribe_on_reconnect",
        ):
            value = environ.get(f"{prefix}{name.upper()}")
            if value is not None and len(value) > 0:
                values[name] = value
        return cls(**values)
