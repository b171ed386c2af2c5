"""Custom exceptions for RemoteFS."""


class RemoteFSError(Exception):
    """Base exception for RemoteFS errors."""
    pass


class LocalFileNotFoundError(RemoteFSError, FileNotFoundError):
    """Local source file for an upload does not exist."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Local file not found: {path}")


class ConnectionClosedError(RemoteFSError):
    """Operation attempted on an adapter that has already been closed."""
    pass


class DuplicateHandleError(RemoteFSError):
    """A connection handle is already registered."""
    pass
