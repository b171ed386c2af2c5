"""MCP tools module."""

from .connection_tools import connect, disconnect
from .file_tools import (
    list_directory,
    download_file,
    upload_file,
    delete_file,
    create_directory,
    remove_directory,
    rename,
    read_file,
    write_file,
)

__all__ = [
    'connect',
    'disconnect',
    'list_directory',
    'download_file',
    'upload_file',
    'delete_file',
    'create_directory',
    'remove_directory',
    'rename',
    'read_file',
    'write_file',
]
