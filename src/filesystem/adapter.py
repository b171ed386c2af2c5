"""Protocol-agnostic remote filesystem adapter.

A concrete adapter supplies a handful of blocking primitives for its protocol
client; this base class runs them in worker threads and builds the uniform
operation set on top of them, including transfers and recursive removal.
"""

import asyncio
import contextlib
import os
import posixpath
from abc import ABC, abstractmethod
from typing import Any, Callable, List, Optional

import aiofiles

from filesystem.models import DirectoryEntry, ProtocolKind
from log_config.logging_config import get_logger
from utils.error_utils import describe_error
from utils.errors import ConnectionClosedError, LocalFileNotFoundError

logger = get_logger("RemoteFS.Adapter")

DEFAULT_CHUNK_SIZE = 32 * 1024


class FilesystemAdapter(ABC):
    """
    Uniform async operations over one live protocol session.

    Remote streams returned by ``_open_reader`` / ``_open_writer`` are blocking
    file-like objects with ``read(size)`` or ``write(data)`` and ``close()``.
    ``close()`` must not return before the transfer is complete on the server.
    """

    def __init__(self, kind: ProtocolKind, chunk_size: int = DEFAULT_CHUNK_SIZE,
                 max_concurrency: int = 0):
        self.kind = kind
        self.chunk_size = chunk_size
        self.max_concurrency = max_concurrency
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    # Protocol primitives, called from worker threads.

    @abstractmethod
    def _list_entries(self, path: str) -> List[DirectoryEntry]:
        ...

    @abstractmethod
    def _unlink(self, path: str) -> None:
        ...

    @abstractmethod
    def _mkdir(self, path: str) -> None:
        ...

    @abstractmethod
    def _rmdir(self, path: str) -> None:
        ...

    @abstractmethod
    def _rename(self, old_path: str, new_path: str) -> None:
        ...

    @abstractmethod
    def _open_reader(self, path: str):
        ...

    @abstractmethod
    def _open_writer(self, path: str):
        ...

    @abstractmethod
    def _close_client(self) -> None:
        ...

    def _exclusive(self):
        """Async context manager held around every use of the client."""
        return contextlib.nullcontext()

    def _ensure_open(self) -> None:
        if self._closed:
            raise ConnectionClosedError(f"{self.kind.value.upper()} connection is closed")

    async def _call(self, func: Callable[..., Any], *args: Any) -> Any:
        self._ensure_open()
        async with self._exclusive():
            return await asyncio.to_thread(func, *args)

    async def _discard(self, stream) -> None:
        """Close a stream whose transfer already failed; the original error wins."""
        try:
            await asyncio.to_thread(stream.close)
        except Exception as e:
            logger.warning(f"Error closing aborted {self.kind.value} transfer: {describe_error(e)}")

    @contextlib.asynccontextmanager
    async def _remote_stream(self, opener: Callable[[str], Any], path: str):
        stream = await asyncio.to_thread(opener, path)
        try:
            yield stream
        except BaseException:
            await self._discard(stream)
            raise
        await asyncio.to_thread(stream.close)

    # Public operations.

    async def list(self, path: str) -> List[DirectoryEntry]:
        logger.debug(f"list {path} ({self.kind.value})")
        return await self._call(self._list_entries, path)

    async def download(self, remote_path: str, local_path: str) -> str:
        """Stream a remote file into ``local_path``, replacing any existing file."""
        self._ensure_open()
        logger.debug(f"download {remote_path} -> {local_path} ({self.kind.value})")
        async with self._exclusive():
            async with aiofiles.open(local_path, "wb") as sink:
                async with self._remote_stream(self._open_reader, remote_path) as reader:
                    while True:
                        chunk = await asyncio.to_thread(reader.read, self.chunk_size)
                        if not chunk:
                            break
                        await sink.write(chunk)
        return local_path

    async def upload(self, local_path: str, remote_path: str) -> str:
        """Stream ``local_path`` to the server; done once the remote writer has closed."""
        if not os.path.isfile(local_path):
            raise LocalFileNotFoundError(local_path)
        self._ensure_open()
        logger.debug(f"upload {local_path} -> {remote_path} ({self.kind.value})")
        async with self._exclusive():
            async with aiofiles.open(local_path, "rb") as source:
                async with self._remote_stream(self._open_writer, remote_path) as writer:
                    while True:
                        chunk = await source.read(self.chunk_size)
                        if not chunk:
                            break
                        await asyncio.to_thread(writer.write, chunk)
        return remote_path

    async def delete_file(self, path: str) -> bool:
        await self._call(self._unlink, path)
        return True

    async def mkdir(self, path: str) -> bool:
        """Create a single directory level; the parent must exist."""
        await self._call(self._mkdir, path)
        return True

    async def rmdir(self, path: str, recursive: bool = False) -> bool:
        if not recursive:
            await self._call(self._rmdir, path)
            return True

        limiter = asyncio.Semaphore(self.max_concurrency) if self.max_concurrency > 0 else None
        await self._remove_tree(path, limiter)
        return True

    async def _limited(self, limiter: Optional[asyncio.Semaphore], func: Callable[..., Any], *args: Any) -> Any:
        if limiter is None:
            return await self._call(func, *args)
        async with limiter:
            return await self._call(func, *args)

    async def _remove_tree(self, path: str, limiter: Optional[asyncio.Semaphore]) -> None:
        """
        Post-order removal: children are removed concurrently, then ``path``.

        The semaphore only wraps single primitive calls, never a recursion, so
        a bounded fan-out cannot deadlock. If a child fails the siblings are
        still awaited, then the first failure is raised and ``path`` is kept.
        """
        entries = await self._limited(limiter, self._list_entries, path)

        if entries:
            pending = []
            for entry in entries:
                child = posixpath.join(path, entry.name)
                if entry.is_directory:
                    pending.append(self._remove_tree(child, limiter))
                else:
                    pending.append(self._limited(limiter, self._unlink, child))

            results = await asyncio.gather(*pending, return_exceptions=True)
            for result in results:
                if isinstance(result, BaseException):
                    raise result

        await self._limited(limiter, self._rmdir, path)

    async def rename(self, old_path: str, new_path: str) -> bool:
        await self._call(self._rename, old_path, new_path)
        return True

    async def read_file(self, path: str, encoding: str = "utf-8") -> str:
        """Read a whole remote text file. Binary content is not guaranteed to decode."""
        self._ensure_open()
        chunks = []
        async with self._exclusive():
            async with self._remote_stream(self._open_reader, path) as reader:
                while True:
                    chunk = await asyncio.to_thread(reader.read, self.chunk_size)
                    if not chunk:
                        break
                    chunks.append(chunk)
        return b"".join(chunks).decode(encoding)

    async def write_file(self, path: str, content: str, encoding: str = "utf-8") -> bool:
        data = content.encode(encoding)
        self._ensure_open()
        async with self._exclusive():
            async with self._remote_stream(self._open_writer, path) as writer:
                if data:
                    await asyncio.to_thread(writer.write, data)
        return True

    async def close(self) -> None:
        """
        Release the protocol client. Calling it again is a no-op.

        New operations are refused at once; one already holding the client
        finishes before the client is closed.
        """
        if self._closed:
            return
        self._closed = True
        logger.debug(f"Closing {self.kind.value} client")
        async with self._exclusive():
            await asyncio.to_thread(self._close_client)
