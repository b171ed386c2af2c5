"""MCP tools for remote file operations."""

import os
from pathlib import Path
from typing import Dict, Any

from connections.registry import ConnectionRegistry
from log_config.logging_config import get_logger
from utils.error_utils import connection_not_found, describe_error, return_error, return_success

logger = get_logger("RemoteFS.FileTools")


def _operation_failed(action: str, connection_id: str, error: Exception) -> Dict[str, Any]:
    error_msg = describe_error(error)
    logger.error(f"{action} failed on {connection_id}: {error_msg}")
    return return_error(error_msg)


async def list_directory(connection_id: str, path: str, registry: ConnectionRegistry) -> Dict[str, Any]:
    """
    List files and directories at a remote path.

    Args:
        connection_id: Handle returned by connect
        path: Remote directory path
        registry: Connection registry

    Returns:
        Dictionary with the path and its entries
    """
    logger.info(f"Listing remote directory: {path} ({connection_id})")
    adapter = registry.resolve(connection_id)
    if adapter is None:
        return connection_not_found()

    try:
        entries = await adapter.list(path)
    except Exception as e:
        return _operation_failed(f"Listing {path}", connection_id, e)

    logger.info(f"Listed {path}: {len(entries)} entries")
    return return_success(path=path, files=[entry.to_dict() for entry in entries])


async def download_file(connection_id: str, remote_path: str, local_path: str,
                        registry: ConnectionRegistry) -> Dict[str, Any]:
    """
    Download a remote file, creating missing local parent directories.

    Args:
        connection_id: Handle returned by connect
        remote_path: Remote file path
        local_path: Local destination, overwritten if it exists
        registry: Connection registry

    Returns:
        Dictionary with the local path or error
    """
    logger.info(f"Downloading {remote_path} -> {local_path} ({connection_id})")
    adapter = registry.resolve(connection_id)
    if adapter is None:
        return connection_not_found()

    local_path = os.path.expanduser(local_path)
    try:
        Path(local_path).parent.mkdir(parents=True, exist_ok=True)
        result = await adapter.download(remote_path, local_path)
    except Exception as e:
        return _operation_failed(f"Download of {remote_path}", connection_id, e)

    logger.info(f"Downloaded {remote_path} -> {result}")
    return return_success(local_path=result, message=f"File downloaded successfully to {result}")


async def upload_file(connection_id: str, local_path: str, remote_path: str,
                      registry: ConnectionRegistry) -> Dict[str, Any]:
    """
    Upload a local file to the remote server.

    Args:
        connection_id: Handle returned by connect
        local_path: Local file path
        remote_path: Remote destination path
        registry: Connection registry

    Returns:
        Dictionary with the remote path or error
    """
    logger.info(f"Uploading {local_path} -> {remote_path} ({connection_id})")
    adapter = registry.resolve(connection_id)
    if adapter is None:
        return connection_not_found()

    try:
        result = await adapter.upload(os.path.expanduser(local_path), remote_path)
    except Exception as e:
        return _operation_failed(f"Upload to {remote_path}", connection_id, e)

    return return_success(remote_path=result, message=f"File uploaded successfully to {result}")


async def delete_file(connection_id: str, path: str, registry: ConnectionRegistry) -> Dict[str, Any]:
    """Delete a remote file."""
    logger.info(f"Deleting remote file: {path} ({connection_id})")
    adapter = registry.resolve(connection_id)
    if adapter is None:
        return connection_not_found()

    try:
        await adapter.delete_file(path)
    except Exception as e:
        return _operation_failed(f"Deleting {path}", connection_id, e)

    return return_success(message=f"File {path} deleted successfully")


async def create_directory(connection_id: str, path: str, registry: ConnectionRegistry) -> Dict[str, Any]:
    """Create one remote directory; its parent must already exist."""
    logger.info(f"Creating remote directory: {path} ({connection_id})")
    adapter = registry.resolve(connection_id)
    if adapter is None:
        return connection_not_found()

    try:
        await adapter.mkdir(path)
    except Exception as e:
        return _operation_failed(f"Creating directory {path}", connection_id, e)

    return return_success(message=f"Directory {path} created successfully")


async def remove_directory(connection_id: str, path: str, recursive: bool,
                           registry: ConnectionRegistry) -> Dict[str, Any]:
    """
    Remove a remote directory.

    A failed recursive removal may already have deleted part of the tree;
    list the directory again to find out what is left.
    """
    logger.info(f"Removing remote directory: {path} (recursive={recursive}, {connection_id})")
    adapter = registry.resolve(connection_id)
    if adapter is None:
        return connection_not_found()

    try:
        await adapter.rmdir(path, recursive)
    except Exception as e:
        return _operation_failed(f"Removing directory {path}", connection_id, e)

    return return_success(message=f"Directory {path} removed successfully")


async def rename(connection_id: str, old_path: str, new_path: str,
                 registry: ConnectionRegistry) -> Dict[str, Any]:
    """Rename or move a remote file or directory."""
    logger.info(f"Renaming {old_path} -> {new_path} ({connection_id})")
    adapter = registry.resolve(connection_id)
    if adapter is None:
        return connection_not_found()

    try:
        await adapter.rename(old_path, new_path)
    except Exception as e:
        return _operation_failed(f"Renaming {old_path}", connection_id, e)

    return return_success(message=f"Successfully renamed {old_path} to {new_path}")


async def read_file(connection_id: str, path: str, encoding: str,
                    registry: ConnectionRegistry) -> Dict[str, Any]:
    """
    Read the contents of a remote text file.

    Decoding is strict, so binary or wrongly encoded content is reported as
    an error rather than returned with replacement characters.

    Args:
        connection_id: Handle returned by connect
        path: Remote file path
        encoding: Text encoding (default: utf-8)
        registry: Connection registry

    Returns:
        Dictionary with file contents or error
    """
    logger.info(f"Reading remote file: {path} (encoding: {encoding}, {connection_id})")
    adapter = registry.resolve(connection_id)
    if adapter is None:
        return connection_not_found()

    try:
        content = await adapter.read_file(path, encoding)
    except UnicodeDecodeError as e:
        return _operation_failed(f"Decoding {path} as {encoding}", connection_id,
                                 ValueError(f"Failed to decode file with {encoding} encoding: {e}"))
    except Exception as e:
        return _operation_failed(f"Reading {path}", connection_id, e)

    logger.info(f"Read remote file: {path} ({len(content)} characters)")
    return return_success(path=path, content=content)


async def write_file(connection_id: str, path: str, content: str, encoding: str,
                     registry: ConnectionRegistry) -> Dict[str, Any]:
    """
    Write text content to a remote file, replacing it if it exists.

    Args:
        connection_id: Handle returned by connect
        path: Remote file path
        content: Text to write
        encoding: Text encoding (default: utf-8)
        registry: Connection registry

    Returns:
        Dictionary with confirmation or error
    """
    logger.info(f"Writing remote file: {path} ({len(content)} characters, {connection_id})")
    adapter = registry.resolve(connection_id)
    if adapter is None:
        return connection_not_found()

    try:
        await adapter.write_file(path, content, encoding)
    except Exception as e:
        return _operation_failed(f"Writing {path}", connection_id, e)

    return return_success(message=f"File {path} written successfully")
