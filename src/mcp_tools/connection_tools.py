"""MCP tools for opening and closing remote connections."""

from typing import Optional, Dict, Any

from connections.connector import AdapterOptions, Credentials, connect as open_connection, disconnect as close_connection
from connections.registry import ConnectionRegistry
from filesystem.models import ProtocolKind
from log_config.logging_config import get_logger
from utils.error_utils import connection_not_found, describe_error, return_error, return_success

logger = get_logger("RemoteFS.ConnectionTools")


async def connect(
    protocol: str,
    host: str,
    username: str,
    port: Optional[int],
    password: Optional[str],
    private_key: Optional[str],
    passphrase: Optional[str],
    registry: ConnectionRegistry,
    options: Optional[AdapterOptions] = None
) -> Dict[str, Any]:
    """
    Connect to an FTP or SSH/SFTP server and register the session.

    Args:
        protocol: "ftp", "sftp" or "ssh"
        host: Server hostname
        username: Login name
        port: Server port (protocol default when omitted)
        password: Password (takes precedence over the private key for SSH)
        private_key: SSH private key text or key file path
        passphrase: Private key passphrase
        registry: Connection registry receiving the new session
        options: Timeouts and transfer tuning

    Returns:
        Dictionary with the connection handle or error
    """
    try:
        kind = ProtocolKind.parse(protocol)
    except ValueError as e:
        logger.error(str(e))
        return return_error(str(e))

    logger.info(f"Connecting to {host} via {kind.value.upper()} as {username}")
    credentials = Credentials(
        host=host,
        username=username,
        port=port,
        password=password,
        private_key=private_key,
        passphrase=passphrase,
    )

    try:
        handle = await open_connection(registry, kind, credentials, options)
    except Exception as e:
        error_msg = describe_error(e)
        logger.error(f"Connection to {host} via {kind.value.upper()} failed: {error_msg}")
        return return_error(error_msg)

    return return_success(
        connection_id=handle,
        message=f"Successfully connected to {host} via {kind.value.upper()}"
    )


async def disconnect(connection_id: str, registry: ConnectionRegistry) -> Dict[str, Any]:
    """
    Close a connection and forget its handle.

    Args:
        connection_id: Handle returned by connect
        registry: Connection registry

    Returns:
        Dictionary with confirmation or error
    """
    logger.info(f"Disconnecting {connection_id}")
    try:
        closed = await close_connection(registry, connection_id)
    except Exception as e:
        error_msg = describe_error(e)
        logger.error(f"Error while disconnecting {connection_id}: {error_msg}")
        return return_error(error_msg)

    if not closed:
        return connection_not_found()
    return return_success(message="Disconnected successfully")
