"""Connect flow: open a protocol session, wrap it in an adapter, register it."""

import asyncio
from dataclasses import dataclass
from typing import Optional

from connections.registry import ConnectionRegistry
from filesystem.adapter import DEFAULT_CHUNK_SIZE, FilesystemAdapter
from filesystem.ftp_adapter import FTPAdapter
from filesystem.models import ProtocolKind
from filesystem.sftp_adapter import SFTPAdapter
from ftp.ftp_client import get_ftp_client
from log_config.logging_config import get_logger
from ssh.ssh_client import get_ssh_client

logger = get_logger("RemoteFS.Connector")


@dataclass(repr=False)
class Credentials:
    """Connection parameters. Held only while the session is being established."""

    host: str
    username: str
    port: Optional[int] = None
    password: Optional[str] = None
    private_key: Optional[str] = None
    passphrase: Optional[str] = None

    def __repr__(self) -> str:
        return f"Credentials(host={self.host!r}, port={self.port!r}, username={self.username!r})"


@dataclass
class AdapterOptions:
    connect_timeout: Optional[float] = None
    chunk_size: int = DEFAULT_CHUNK_SIZE
    max_concurrency: int = 0


async def open_adapter(kind: ProtocolKind, credentials: Credentials,
                       options: Optional[AdapterOptions] = None) -> FilesystemAdapter:
    """Authenticate against the server and return an adapter for the session."""
    options = options or AdapterOptions()

    if kind is ProtocolKind.FTP:
        client = await asyncio.to_thread(
            get_ftp_client,
            credentials.host,
            credentials.port,
            credentials.username,
            credentials.password,
            options.connect_timeout,
        )
        return FTPAdapter(client, chunk_size=options.chunk_size, max_concurrency=options.max_concurrency)

    ssh = await asyncio.to_thread(
        get_ssh_client,
        credentials.host,
        credentials.port,
        credentials.username,
        credentials.password,
        credentials.private_key,
        credentials.passphrase,
        options.connect_timeout,
    )
    try:
        sftp = await asyncio.to_thread(ssh.open_sftp)
    except BaseException:
        ssh.close()
        raise
    return SFTPAdapter(kind, ssh, sftp, chunk_size=options.chunk_size, max_concurrency=options.max_concurrency)


async def connect(registry: ConnectionRegistry, kind: ProtocolKind, credentials: Credentials,
                  options: Optional[AdapterOptions] = None) -> str:
    """
    Establish a session and register it.

    Returns:
        The new connection handle. Nothing is registered when this raises.
    """
    adapter = await open_adapter(kind, credentials, options)
    handle = registry.new_handle()
    registry.insert(handle, adapter, kind)
    logger.info(f"Connection {handle} established to {credentials.host} via {kind.value.upper()}")
    return handle


async def disconnect(registry: ConnectionRegistry, handle: str) -> bool:
    """
    Unregister and close a connection.

    Returns:
        False when the handle is unknown.
    """
    adapter = registry.remove(handle)
    if adapter is None:
        return False
    await adapter.close()
    logger.info(f"Connection {handle} closed")
    return True
