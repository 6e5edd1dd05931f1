"""
Agent configuration: defaults, optional YAML file, command-line overrides.
"""

import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, Optional
from urllib.parse import urlparse

import yaml

from mesh_agent.errors import ConfigError

DEFAULT_SERVER = 'ws://localhost:3001'
DEFAULT_INTERVAL = 2
VALID_SCHEMES = ['ws', 'wss']
VALID_LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR']
CONFIG_KEYS = ['server', 'name', 'interval', 'log_level', 'log_file', 'json_logs']


@dataclass(frozen=True)
class AgentConfig:
    server: str = DEFAULT_SERVER
    name: Optional[str] = None
    interval: int = DEFAULT_INTERVAL
    log_level: str = 'INFO'
    log_file: Optional[str] = None
    json_logs: bool = True

    @property
    def log_level_value(self) -> int:
        return getattr(logging, self.log_level)


def parse_config_file(config_path: str) -> Dict[str, Any]:
    """
    Read the `agent:` section of a YAML config file.

    String values may reference environment variables ($VAR or ${VAR}).

    Raises:
        ConfigError: If the file is missing, not YAML, or holds unknown keys
    """
    try:
        with open(config_path, 'r') as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        raise ConfigError(f"Config file not found: {config_path}")
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML: {e}")

    if not isinstance(data, dict):
        raise ConfigError("Config file must contain a mapping")

    section = data.get('agent') or {}
    if not isinstance(section, dict):
        raise ConfigError("'agent' section must be a mapping")

    unknown = sorted(set(section) - set(CONFIG_KEYS))
    if unknown:
        raise ConfigError(f"Unknown config keys: {unknown}. Must be among {CONFIG_KEYS}")

    return {
        key: os.path.expandvars(value) if isinstance(value, str) else value
        for key, value in section.items()
    }


def load_config(config_path: Optional[str] = None, **overrides) -> AgentConfig:
    """
    Resolve the effective configuration.

    Precedence: keyword overrides (command line), then the config file, then
    defaults. Overrides set to None are ignored.
    """
    values: Dict[str, Any] = {}
    if config_path:
        values.update(parse_config_file(config_path))
    values.update({key: value for key, value in overrides.items() if value is not None})

    if isinstance(values.get('log_level'), str):
        values['log_level'] = values['log_level'].upper()

    unknown = sorted(set(values) - set(CONFIG_KEYS))
    if unknown:
        raise ConfigError(f"Unknown config keys: {unknown}")

    config = AgentConfig(**values)
    validate_config(config)
    return config


def validate_config(config: AgentConfig) -> None:
    scheme = urlparse(config.server).scheme
    if scheme not in VALID_SCHEMES:
        raise ConfigError(f"Invalid server URL: {config.server}. Scheme must be one of {VALID_SCHEMES}")

    if isinstance(config.interval, bool) or not isinstance(config.interval, int) or config.interval < 1:
        raise ConfigError(f"Invalid interval: {config.interval}. Must be a whole number of seconds >= 1")

    if config.log_level not in VALID_LOG_LEVELS:
        raise ConfigError(f"Invalid log level: {config.log_level}. Must be one of {VALID_LOG_LEVELS}")

    if not isinstance(config.json_logs, bool):
        raise ConfigError(f"Invalid json_logs: {config.json_logs}. Must be true or false")
