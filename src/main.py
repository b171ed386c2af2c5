#!/usr/bin/env python3
"""
RemoteFS MCP Server

A Model Context Protocol server for working with files on remote hosts over
FTP or SSH/SFTP through one set of tools:
- Connection management (connect / disconnect, addressed by connection_id)
- Directory listing, creation and (recursive) removal
- File upload, download, rename and deletion
- Reading and writing remote text files

Runs over stdio by default, or over HTTP with --http (HOST / PORT).
"""

import asyncio
import signal
import sys
from typing import Optional, Dict, Any, Literal

from fastmcp import FastMCP

from log_config.logging_config import setup_logging, get_logger
from config.config_loader import Config, load_config
from connections.connector import AdapterOptions
from connections.registry import ConnectionRegistry
from mcp_tools import connection_tools, file_tools
from mcp_resources.resources import get_remotefs_config, get_active_connections
from mcp_resources.prompts import (
    edit_remote_file_workflow as _edit_remote_file_workflow,
    deploy_file_workflow as _deploy_file_workflow
)

logger = get_logger("RemoteFS")


def create_mcp_server(config: Config, registry: ConnectionRegistry) -> FastMCP:
    """
    Create the MCP server with its tools bound to one connection registry.

    Args:
        config: Configuration instance
        registry: Registry holding every connection opened through this server

    Returns:
        FastMCP: Configured MCP server instance
    """
    mcp = FastMCP(
        "RemoteFS",
        instructions=(
            "Work with files on remote servers over FTP or SSH/SFTP. Call connect first; "
            "every other tool takes the returned connection_id. Call disconnect when done."
        ),
    )
    options = AdapterOptions(
        connect_timeout=config.CONNECT_TIMEOUT,
        chunk_size=config.TRANSFER_CHUNK_SIZE,
        max_concurrency=config.RMDIR_MAX_CONCURRENCY,
    )

    @mcp.tool()
    async def connect(protocol: Literal["ftp", "sftp", "ssh"], host: str, username: str,
                      port: Optional[int] = None, password: Optional[str] = None,
                      private_key: Optional[str] = None, passphrase: Optional[str] = None) -> Dict[str, Any]:
        """
        Connect to an FTP or SSH/SFTP server.

        Args:
            protocol: "ftp", "sftp" or "ssh" (sftp and ssh both use SFTP over SSH)
            host: Server hostname
            username: Login name
            port: Server port (default 21 for FTP, 22 for SSH)
            password: Password; used before the private key when both are given
            private_key: SSH private key text or path to a key file
            passphrase: Passphrase of the private key

        Returns:
            Dictionary with connection_id on success
        """
        return await connection_tools.connect(
            protocol, host, username, port, password, private_key, passphrase, registry, options
        )

    @mcp.tool()
    async def list_directory(connection_id: str, path: str) -> Dict[str, Any]:
        """
        List files and directories in a remote path.

        Args:
            connection_id: Handle returned by connect
            path: Remote directory path

        Returns:
            Dictionary with the entries (name, type, size, date, rights, owner, group)
        """
        return await file_tools.list_directory(connection_id, path, registry)

    @mcp.tool()
    async def download_file(connection_id: str, remote_path: str, local_path: str) -> Dict[str, Any]:
        """
        Download a file from the remote server.

        Args:
            connection_id: Handle returned by connect
            remote_path: Remote file path
            local_path: Local destination path (parent directories are created)

        Returns:
            Dictionary with the local path
        """
        return await file_tools.download_file(connection_id, remote_path, local_path, registry)

    @mcp.tool()
    async def upload_file(connection_id: str, local_path: str, remote_path: str) -> Dict[str, Any]:
        """
        Upload a local file to the remote server.

        Args:
            connection_id: Handle returned by connect
            local_path: Local file path
            remote_path: Remote destination path

        Returns:
            Dictionary with the remote path
        """
        return await file_tools.upload_file(connection_id, local_path, remote_path, registry)

    @mcp.tool()
    async def delete_file(connection_id: str, path: str) -> Dict[str, Any]:
        """Delete a file on the remote server."""
        return await file_tools.delete_file(connection_id, path, registry)

    @mcp.tool()
    async def create_directory(connection_id: str, path: str) -> Dict[str, Any]:
        """Create a directory on the remote server. The parent directory must exist."""
        return await file_tools.create_directory(connection_id, path, registry)

    @mcp.tool()
    async def remove_directory(connection_id: str, path: str, recursive: bool = False) -> Dict[str, Any]:
        """
        Remove a directory on the remote server.

        Args:
            connection_id: Handle returned by connect
            path: Remote directory path
            recursive: Also remove everything inside the directory (default: False)

        Returns:
            Dictionary with confirmation. A failed recursive removal may leave part of the tree.
        """
        return await file_tools.remove_directory(connection_id, path, recursive, registry)

    @mcp.tool()
    async def rename(connection_id: str, old_path: str, new_path: str) -> Dict[str, Any]:
        """Rename or move a file or directory on the remote server."""
        return await file_tools.rename(connection_id, old_path, new_path, registry)

    @mcp.tool()
    async def read_file(connection_id: str, path: str, encoding: str = "utf-8") -> Dict[str, Any]:
        """
        Read the contents of a remote text file.

        Decoding is strict: a file with bytes that are invalid in the given
        encoding fails instead of returning text with replacement characters.

        Args:
            connection_id: Handle returned by connect
            path: Remote file path
            encoding: Text encoding (default: utf-8)

        Returns:
            Dictionary with the file content
        """
        return await file_tools.read_file(connection_id, path, encoding, registry)

    @mcp.tool()
    async def write_file(connection_id: str, path: str, content: str, encoding: str = "utf-8") -> Dict[str, Any]:
        """
        Write text content to a remote file, replacing any existing content.

        Args:
            connection_id: Handle returned by connect
            path: Remote file path
            content: Text to write
            encoding: Text encoding (default: utf-8)

        Returns:
            Dictionary with confirmation
        """
        return await file_tools.write_file(connection_id, path, content, encoding, registry)

    @mcp.tool()
    async def disconnect(connection_id: str) -> Dict[str, Any]:
        """Close a connection opened with connect."""
        return await connection_tools.disconnect(connection_id, registry)

    @mcp.resource("remotefs://config")
    def get_config_resource() -> str:
        """
        Get current server configuration (without sensitive data).
        """
        return get_remotefs_config(config)

    @mcp.resource("remotefs://connections")
    def get_connections_resource() -> str:
        """
        Get the active connections (handle, protocol, connection time).
        """
        return get_active_connections(registry)

    @mcp.prompt()
    def edit_remote_file_workflow(remote_path: str) -> str:
        """
        A workflow prompt for editing a file on a remote host with a backup.
        """
        return _edit_remote_file_workflow(remote_path)

    @mcp.prompt()
    def deploy_file_workflow(local_path: str, remote_dir: str) -> str:
        """
        A workflow prompt for uploading a local file into a remote directory.
        """
        return _deploy_file_workflow(local_path, remote_dir)

    return mcp


def shutdown_sweep(registry: ConnectionRegistry, timeout: Optional[float]) -> None:
    """Close every connection still registered when the server stops."""
    if not len(registry):
        return
    logger.info("Closing active connections...")
    loop = asyncio.new_event_loop()
    try:
        loop.run_until_complete(registry.drain_all(timeout=timeout))
    finally:
        # close() does not join the default executor, so a close still blocked
        # in a worker thread cannot hold up the sweep past its timeout
        loop.close()


def main():
    """Main entry point for the MCP server."""
    setup_logging()
    config = load_config()
    registry = ConnectionRegistry()
    mcp = create_mcp_server(config, registry)

    # SIGTERM takes the same path as Ctrl-C so the sweep below still runs
    signal.signal(signal.SIGTERM, signal.default_int_handler)

    http_mode = "--http" in sys.argv[1:] or config.TRANSPORT == "http"
    logger.info("Starting RemoteFS MCP Server")
    logger.debug(f"Configuration: {config.to_public_dict()}")

    try:
        if http_mode:
            shown_host = "localhost" if config.HTTP_HOST == "0.0.0.0" else config.HTTP_HOST
            logger.info(f"RemoteFS MCP server running at http://{shown_host}:{config.HTTP_PORT}")
            mcp.run(transport="streamable-http", host=config.HTTP_HOST, port=config.HTTP_PORT)
        else:
            logger.info("RemoteFS MCP server started in stdio mode")
            mcp.run()
    except KeyboardInterrupt:
        logger.info("Server stopped by user")
    except Exception as e:
        logger.opt(exception=e).error(f"Server error: {str(e)}")
        raise
    finally:
        shutdown_sweep(registry, config.SHUTDOWN_TIMEOUT)
        logger.info("All connections closed. Exiting")


if __name__ == "__main__":
    main()
