"""Utility functions module."""

from .error_utils import (
    CONNECTION_NOT_FOUND,
    connection_not_found,
    describe_error,
    return_error,
    return_success,
)
from .errors import ConnectionClosedError, DuplicateHandleError, LocalFileNotFoundError, RemoteFSError

__all__ = [
    'CONNECTION_NOT_FOUND',
    'connection_not_found',
    'describe_error',
    'return_error',
    'return_success',
    'ConnectionClosedError',
    'DuplicateHandleError',
    'LocalFileNotFoundError',
    'RemoteFSError',
]
