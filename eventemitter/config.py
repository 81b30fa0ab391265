"""Configuration for event emitters.

Settings come from keyword arguments or from ``EVENTEMITTER_*``
environment variables.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from eventemitter.logging_config import LOG_LEVELS, configure_logging

ENV_PREFIX = "EVENTEMITTER_"

_TRUTHY = ("1", "true", "yes", "on")


@dataclass
class EmitterConfig:
    """
    Configuration for an EventEmitter.

    Args:
        channel_capacity: Values buffered per consumer channel before
            ``emit`` suspends (1 = one-element backpressure)
        log_level: Log level used by ``configure_logging``
        json_logs: Render logs as JSON instead of console output
    """
    channel_capacity: int = 1
    log_level: str = "INFO"
    json_logs: bool = False

    def __post_init__(self):
        if self.channel_capacity < 1:
            raise ValueError("channel_capacity must be >= 1")
        self.log_level = self.log_level.upper()
        if self.log_level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {LOG_LEVELS}")

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> EmitterConfig:
        """Load configuration from environment variables.

        Args:
            environ: Mapping to read instead of ``os.environ``

        Returns:
            EmitterConfig instance
        """
        env = os.environ if environ is None else environ

        capacity = env.get(f"{ENV_PREFIX}CHANNEL_CAPACITY", "1")
        try:
            channel_capacity = int(capacity)
        except ValueError:
            raise ValueError(
                f"{ENV_PREFIX}CHANNEL_CAPACITY must be an integer, got {capacity!r}"
            ) from None

        return cls(
            channel_capacity=channel_capacity,
            log_level=env.get(f"{ENV_PREFIX}LOG_LEVEL", "INFO"),
            json_logs=env.get(f"{ENV_PREFIX}JSON_LOGS", "").lower() in _TRUTHY,
        )

    def configure_logging(self) -> None:
        """Apply the logging settings to structlog."""
        configure_logging(
            level=self.log_level,
            json_output=self.json_logs,
            colors=not self.json_logs,
        )
