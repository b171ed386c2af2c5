"""Connection registry and connect flow."""

from .registry import ConnectionRecord, ConnectionRegistry, generate_connection_id
from .connector import AdapterOptions, Credentials, connect, disconnect, open_adapter

__all__ = [
    'ConnectionRecord',
    'ConnectionRegistry',
    'generate_connection_id',
    'AdapterOptions',
    'Credentials',
    'connect',
    'disconnect',
    'open_adapter',
]
