"""Configuration loader for RemoteFS."""

import os
import json
from pathlib import Path
from typing import Optional, Dict, Any
from dotenv import load_dotenv

from log_config.logging_config import get_logger

load_dotenv()

logger = get_logger("RemoteFS.Config")

PROJECT_CONFIG_FILE = ".remotefs.json"

DEFAULT_TRANSPORT = "stdio"
DEFAULT_HTTP_HOST = "0.0.0.0"
DEFAULT_HTTP_PORT = 3001
DEFAULT_CONNECT_TIMEOUT = 30.0
DEFAULT_SHUTDOWN_TIMEOUT = 10.0
DEFAULT_RMDIR_MAX_CONCURRENCY = 0
DEFAULT_TRANSFER_CHUNK_SIZE = 32 * 1024


def _load_project_config() -> Dict[str, Any]:
    """
    Load project-specific configuration from PROJECT_PATH/.remotefs.json.

    Returns:
        Dictionary with project configuration, or empty dict if not found
    """
    project_path_env = os.environ.get("PROJECT_PATH")

    if not project_path_env:
        logger.debug("PROJECT_PATH not set, using environment variables only")
        return {}

    # Unexpanded placeholders such as ${workspaceFolder} mean the client did not substitute them
    if "${" in project_path_env or "$(" in project_path_env:
        logger.info(f"PROJECT_PATH contains an unexpanded placeholder: {project_path_env}, ignoring it")
        return {}

    project_dir = Path(project_path_env).resolve()
    if not project_dir.is_dir():
        logger.warning(f"PROJECT_PATH is not an existing directory: {project_path_env}, ignoring it")
        return {}

    config_file = project_dir / PROJECT_CONFIG_FILE
    if not config_file.exists():
        logger.info(f"Project config file not found: {config_file}, using environment variables")
        return {}

    try:
        with open(config_file, 'r', encoding='utf-8') as f:
            config = json.load(f)
    except json.JSONDecodeError as e:
        logger.warning(f"Invalid JSON in project config file {config_file}: {e}")
        return {}
    except OSError as e:
        logger.warning(f"Could not read project config file {config_file}: {e}")
        return {}

    if not isinstance(config, dict):
        logger.warning(f"Project config file {config_file} must contain a JSON object")
        return {}

    logger.info(f"Loaded project config file: {config_file}")
    return config


def _get_config_value(key: str, project_config: Dict[str, Any], env_key: str = None) -> Optional[str]:
    """
    Get configuration value from project config or environment variable.

    Args:
        key: Key name in project config
        project_config: Project configuration dictionary
        env_key: Environment variable key (defaults to key if not specified)

    Returns:
        Configuration value or None
    """
    env_key = env_key or key
    # Priority: project config > environment variable
    value = project_config.get(key)
    if value is None or value == "":
        value = os.environ.get(env_key)
    return value


def _as_number(key: str, value: Any, default, cast=float, minimum=0):
    """Convert a raw config value, falling back to the default on garbage."""
    if value is None or value == "":
        return default
    try:
        number = cast(value)
    except (ValueError, TypeError):
        logger.warning(f"Invalid value for {key}: {value!r}, using default {default}")
        return default
    if number < minimum:
        logger.warning(f"{key} must be >= {minimum}, got {number}, using default {default}")
        return default
    return number


class Config:
    """Configuration class for RemoteFS."""

    def __init__(self):
        """Initialize configuration from project config and environment variables."""
        project_config = _load_project_config()

        transport = (_get_config_value("MCP_TRANSPORT", project_config) or DEFAULT_TRANSPORT).lower()
        if transport not in ("stdio", "http"):
            logger.warning(f"Unknown MCP_TRANSPORT {transport!r}, falling back to {DEFAULT_TRANSPORT}")
            transport = DEFAULT_TRANSPORT
        self.TRANSPORT = transport

        self.HTTP_HOST = _get_config_value("HOST", project_config) or DEFAULT_HTTP_HOST
        self.HTTP_PORT = _as_number(
            "PORT", _get_config_value("PORT", project_config), DEFAULT_HTTP_PORT, cast=int, minimum=1)

        self.CONNECT_TIMEOUT = _as_number(
            "CONNECT_TIMEOUT", _get_config_value("CONNECT_TIMEOUT", project_config), DEFAULT_CONNECT_TIMEOUT)
        self.SHUTDOWN_TIMEOUT = _as_number(
            "SHUTDOWN_TIMEOUT", _get_config_value("SHUTDOWN_TIMEOUT", project_config), DEFAULT_SHUTDOWN_TIMEOUT)
        self.RMDIR_MAX_CONCURRENCY = _as_number(
            "RMDIR_MAX_CONCURRENCY", _get_config_value("RMDIR_MAX_CONCURRENCY", project_config),
            DEFAULT_RMDIR_MAX_CONCURRENCY, cast=int)
        self.TRANSFER_CHUNK_SIZE = _as_number(
            "TRANSFER_CHUNK_SIZE", _get_config_value("TRANSFER_CHUNK_SIZE", project_config),
            DEFAULT_TRANSFER_CHUNK_SIZE, cast=int, minimum=1)

    def to_public_dict(self) -> Dict[str, Any]:
        """Settings safe to expose to MCP clients."""
        return {
            "transport": self.TRANSPORT,
            "http_host": self.HTTP_HOST,
            "http_port": self.HTTP_PORT,
            "connect_timeout": self.CONNECT_TIMEOUT,
            "shutdown_timeout": self.SHUTDOWN_TIMEOUT,
            "rmdir_max_concurrency": self.RMDIR_MAX_CONCURRENCY,
            "transfer_chunk_size": self.TRANSFER_CHUNK_SIZE,
        }


def load_config() -> Config:
    """
    Load and return configuration.

    Returns:
        Config instance with all configuration values
    """
    return Config()
