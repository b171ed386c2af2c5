"""MCP resources."""

import json

from config.config_loader import Config
from connections.registry import ConnectionRegistry


def get_remotefs_config(config: Config) -> str:
    """
    Get current server configuration (no credentials are ever part of it).

    Args:
        config: Configuration instance

    Returns:
        JSON string with configuration
    """
    return json.dumps(config.to_public_dict(), indent=2)


def get_active_connections(registry: ConnectionRegistry) -> str:
    """
    List the active connection handles with their protocol and connection time.

    Args:
        registry: Connection registry

    Returns:
        JSON string with the active connections
    """
    connections = [record.describe() for record in registry.records()]
    return json.dumps({"total": len(connections), "connections": connections}, indent=2)
