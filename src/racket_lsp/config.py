"""Server configuration loader.

Loads server settings from a YAML file. Every key is optional; anything
left out falls back to the defaults of ``ServerConfig``.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from racket_lsp.protocol.jsonrpc import MAX_MESSAGE_SIZE


class ConfigLoadError(Exception):
    """Raised when configuration loading or validation fails."""

    pass


def expand_env_vars(value: str) -> str:
    """Expand environment variables in a string.

    Supports ${VAR_NAME} syntax. Unknown variables are left unchanged.

    Args:
        value: String potentially containing environment variable references.

    Returns:
        String with known environment variables expanded.
    """
    pattern = re.compile(r"\$\{([^}]+)\}")

    def replacer(match: re.Match[str]) -> str:
        var_name = match.group(1)
        env_value = os.environ.get(var_name)
        if env_value is not None:
            return env_value
        if var_name == "HOME":
            return os.path.expanduser("~")
        return match.group(0)

    return pattern.sub(replacer, value)


def _open_command(value: Any) -> list[str] | None:
    if value is None:
        return None
    if isinstance(value, str):
        return value.split()
    if isinstance(value, list) and value and all(isinstance(part, str) for part in value):
        return list(value)
    raise ConfigLoadError(f"commands.open_command must be a string or list of strings: {value!r}")


def _timeout(value: Any) -> float | None:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int | float) or value <= 0:
        raise ConfigLoadError(f"commands.timeout must be a positive number: {value!r}")
    return float(value)


@dataclass
class ServerConfig:
    """Language server configuration."""

    # Server identity reported in the initialize response
    server_name: str = "racket-langserver"
    server_version: str = "1.0.0"

    # workspace/executeCommand settings
    open_command: list[str] | None = None
    command_timeout: float | None = None

    # Message trace settings
    trace_log_file: str = ""
    trace_max_string_length: int = 200

    # Transport settings
    max_message_size: int = MAX_MESSAGE_SIZE

    @classmethod
    def from_dict(cls, config: dict[str, Any]) -> ServerConfig:
        """Create a ServerConfig from a configuration dictionary.

        Args:
            config: Dictionary parsed from YAML configuration.

        Returns:
            ServerConfig instance with all settings populated.

        Raises:
            ConfigLoadError: If a setting has the wrong type.
        """
        server = config.get("server") or {}
        commands = config.get("commands") or {}
        trace = config.get("trace") or {}
        transport = config.get("transport") or {}

        for section, value in (
            ("server", server),
            ("commands", commands),
            ("trace", trace),
            ("transport", transport),
        ):
            if not isinstance(value, dict):
                raise ConfigLoadError(f"'{section}' must be a mapping")

        return cls(
            server_name=server.get("name", "racket-langserver"),
            server_version=str(server.get("version", "1.0.0")),
            open_command=_open_command(commands.get("open_command")),
            command_timeout=_timeout(commands.get("timeout")),
            trace_log_file=expand_env_vars(trace.get("log_file") or ""),
            trace_max_string_length=int(trace.get("max_string_length", 200)),
            max_message_size=int(transport.get("max_message_size", MAX_MESSAGE_SIZE)),
        )

    @property
    def server_info(self) -> dict[str, str]:
        return {"name": self.server_name, "version": self.server_version}


def load_config(path: Path) -> ServerConfig:
    """Load server configuration from a YAML file.

    Args:
        path: Path to the configuration YAML file.

    Returns:
        ServerConfig instance.

    Raises:
        ConfigLoadError: If the file cannot be found, parsed, or validated.
    """
    if not path.exists():
        raise ConfigLoadError(f"Config file not found: {path}")

    try:
        with open(path) as f:
            config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigLoadError(f"Failed to parse config YAML: {e}") from e

    if config is None:
        return ServerConfig()

    if not isinstance(config, dict):
        raise ConfigLoadError("Config must be a YAML mapping")

    return ServerConfig.from_dict(config)
