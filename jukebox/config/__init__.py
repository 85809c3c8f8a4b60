"""
Configuration management for the jukebox daemon.

Settings come from the environment, optionally layered over a TOML file
(`[daemon]` table). Environment variables always win over the file, so a
shared file can be overridden per process.

Environment variables:
    JUKEBOX_DAEMON_SOCKET       Socket path (or host:port for TCP)
    JUKEBOX_DAEMON_TOKEN        Shared secret required on every command
    JUKEBOX_ALLOW_INSECURE      "1"/"true" to admit plain http:// URLs
    JUKEBOX_ADAPTER             Force an adapter (mpv, system, macos, catalog, noop)
    JUKEBOX_CATALOG_ENABLED     "1"/"true" to enable live catalog lookups
    JUKEBOX_CATALOG_TOKEN       Catalog developer token
    JUKEBOX_CATALOG_USER_TOKEN  Optional catalog user token
    JUKEBOX_CATALOG_STOREFRONT  Catalog storefront (default "us")
    JUKEBOX_CONFIG              Path to a TOML file with a [daemon] table
"""

from __future__ import annotations

import logging
import os
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

ENV_PREFIX = "JUKEBOX_"

# Per-connection idle read bound
DEFAULT_IDLE_TIMEOUT_SECONDS = 30.0

# Reachability probe bound for https:// items
DEFAULT_PROBE_TIMEOUT_SECONDS = 5.0

# How long in-flight connections may run on after shutdown is requested
DEFAULT_SHUTDOWN_GRACE_SECONDS = 5.0

ADAPTER_NAMES = ("mpv", "system", "macos", "catalog", "noop")

# Environment variable -> DaemonConfig field
_ENV_FIELDS: dict[str, str] = {
    "JUKEBOX_DAEMON_SOCKET": "socket",
    "JUKEBOX_DAEMON_TOKEN": "token",
    "JUKEBOX_ALLOW_INSECURE": "allow_insecure",
    "JUKEBOX_ADAPTER": "adapter",
    "JUKEBOX_CATALOG_ENABLED": "catalog_enabled",
    "JUKEBOX_CATALOG_TOKEN": "catalog_token",
    "JUKEBOX_CATALOG_USER_TOKEN": "catalog_user_token",
    "JUKEBOX_CATALOG_STOREFRONT": "catalog_storefront",
}


class ConfigError(ValueError):
    """Raised for unreadable or invalid configuration."""


def parse_bool(value: object) -> bool:
    """Interpret "1"/"true" (any case) and real booleans as True."""
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true")


@dataclass
class DaemonConfig:
    """Resolved daemon settings."""

    socket: str | None = None
    token: str | None = None
    allow_insecure: bool = False
    adapter: str | None = None
    idle_timeout: float = DEFAULT_IDLE_TIMEOUT_SECONDS
    probe_timeout: float = DEFAULT_PROBE_TIMEOUT_SECONDS
    shutdown_grace: float = DEFAULT_SHUTDOWN_GRACE_SECONDS

    catalog_enabled: bool = False
    catalog_token: str | None = None
    catalog_user_token: str | None = None
    catalog_storefront: str = "us"

    # Where values came from, for the startup log line
    sources: dict[str, str] = field(default_factory=dict, repr=False)

    def __post_init__(self) -> None:
        # An empty secret means "no secret"; otherwise nobody could ever authenticate
        if not self.token:
            self.token = None
        if self.adapter is not None:
            self.adapter = self.adapter.strip().lower() or None
        if self.adapter is not None and self.adapter not in ADAPTER_NAMES:
            raise ConfigError(
                f"unknown adapter {self.adapter!r} (expected one of {', '.join(ADAPTER_NAMES)})"
            )

    @property
    def auth_required(self) -> bool:
        return self.token is not None


def _coerce(name: str, value: Any) -> Any:
    if name in ("allow_insecure", "catalog_enabled"):
        return parse_bool(value)
    if name in ("idle_timeout", "probe_timeout", "shutdown_grace"):
        try:
            return float(value)
        except (TypeError, ValueError):
            raise ConfigError(f"{name} must be a number, got {value!r}") from None
    return None if value is None else str(value)


def _load_file(config_path: Path) -> dict[str, Any]:
    logger.debug("Loading daemon config from %s", config_path)
    try:
        with config_path.open("rb") as f:
            data = tomllib.load(f)
    except OSError as e:
        raise ConfigError(f"cannot read {config_path}: {e}") from e
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"invalid TOML in {config_path}: {e}") from e

    section = data.get("daemon", {})
    if not isinstance(section, dict):
        raise ConfigError(f"[daemon] in {config_path} must be a table")
    return section


def load_config(
    env: Mapping[str, str] | None = None,
    config_path: Path | None = None,
) -> DaemonConfig:
    """
    Build the daemon configuration.

    Args:
        env: Environment mapping (defaults to os.environ).
        config_path: Optional TOML file. Falls back to $JUKEBOX_CONFIG.

    Returns:
        The resolved DaemonConfig.

    Raises:
        ConfigError: If the file is unreadable or a value is invalid.
    """
    if env is None:
        env = os.environ

    if config_path is None and env.get("JUKEBOX_CONFIG"):
        config_path = Path(env["JUKEBOX_CONFIG"])

    known = {f.name for f in fields(DaemonConfig)} - {"sources"}
    values: dict[str, Any] = {}
    sources: dict[str, str] = {}

    if config_path is not None:
        for key, value in _load_file(config_path).items():
            if key not in known:
                logger.warning("Ignoring unknown config key %r in %s", key, config_path)
                continue
            values[key] = _coerce(key, value)
            sources[key] = str(config_path)

    for var, name in _ENV_FIELDS.items():
        if var in env:
            values[name] = _coerce(name, env[var])
            sources[name] = "env"

    return DaemonConfig(**values, sources=sources)
