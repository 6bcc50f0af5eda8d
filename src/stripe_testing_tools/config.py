"""Server configuration read from environment variables."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass

from stripe_testing_tools.credentials import LiveKeyPolicy
from stripe_testing_tools.log_config import LogLevel

DEFAULT_PORT = 4010
DEFAULT_HOST = "0.0.0.0"
LOG_PREFIX = "MCP"

_TRUE_VALUES = ("1", "true", "yes", "on")
_FALSE_VALUES = ("0", "false", "no", "off")


@dataclass
class ServerConfig:
    log_level: LogLevel = LogLevel.INFO
    log_file: str | None = None
    include_timestamp: bool = True
    live_key_policy: LiveKeyPolicy = LiveKeyPolicy.PREFIX_SEGMENT
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT


def _parse_bool(name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be a boolean (true/false), got {raw!r}")


def _parse(name: str, raw: str, parser):
    try:
        return parser(raw)
    except ValueError as e:
        raise ValueError(f"Invalid {name}: {e}") from e


def load_config(environ: Mapping[str, str] | None = None) -> ServerConfig:
    """
    Build a ServerConfig from environment variables.

    Unset or empty variables keep their defaults. Invalid values raise
    ValueError naming the offending variable.
    """
    env = os.environ if environ is None else environ
    config = ServerConfig()

    if raw := env.get("STRIPE_TESTING_LOG_LEVEL"):
        config.log_level = _parse("STRIPE_TESTING_LOG_LEVEL", raw, LogLevel.parse)
    if raw := env.get("STRIPE_TESTING_LOG_FILE"):
        config.log_file = raw
    if raw := env.get("STRIPE_TESTING_LOG_TIMESTAMPS"):
        config.include_timestamp = _parse_bool("STRIPE_TESTING_LOG_TIMESTAMPS", raw)
    if raw := env.get("STRIPE_LIVE_KEY_POLICY"):
        config.live_key_policy = _parse("STRIPE_LIVE_KEY_POLICY", raw, LiveKeyPolicy.parse)
    if raw := env.get("STRIPE_TESTING_HOST"):
        config.host = raw
    if raw := env.get("STRIPE_TESTING_PORT"):
        config.port = _parse("STRIPE_TESTING_PORT", raw, int)

    return config
