"""MCP resources and prompts module."""

from .resources import get_remotefs_config, get_active_connections
from .prompts import edit_remote_file_workflow, deploy_file_workflow

__all__ = [
    'get_remotefs_config',
    'get_active_connections',
    'edit_remote_file_workflow',
    'deploy_file_workflow',
]
