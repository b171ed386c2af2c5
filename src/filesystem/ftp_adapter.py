"""Filesystem adapter over an ftplib session."""

import asyncio
from ftplib import FTP, error_perm
from typing import List

from filesystem.adapter import DEFAULT_CHUNK_SIZE, FilesystemAdapter
from filesystem.models import DirectoryEntry, ProtocolKind
from ftp import listing
from log_config.logging_config import get_logger

logger = get_logger("RemoteFS.FTPAdapter")

# Reply codes meaning "command not implemented / not understood"
_UNSUPPORTED_CODES = ("500", "501", "502", "504")


class FTPTransferStream:
    """
    One data-connection transfer (RETR or STOR).

    ``close`` shuts the data socket and then waits for the server's final
    reply, so a completed close means the server has the whole file.
    """

    def __init__(self, ftp: FTP, command: str):
        self._ftp = ftp
        ftp.voidcmd("TYPE I")
        self._conn = ftp.transfercmd(command)
        self._finished = False

    def read(self, size: int) -> bytes:
        return self._conn.recv(size)

    def write(self, data: bytes) -> None:
        self._conn.sendall(data)

    def close(self) -> None:
        if self._finished:
            return
        self._finished = True
        self._conn.close()
        self._ftp.voidresp()


class FTPAdapter(FilesystemAdapter):
    """
    FTP variant. ftplib drives one control connection that cannot carry two
    commands at once, so every client call holds the adapter's lock.
    """

    def __init__(self, client: FTP, chunk_size: int = DEFAULT_CHUNK_SIZE, max_concurrency: int = 0):
        super().__init__(ProtocolKind.FTP, chunk_size=chunk_size, max_concurrency=max_concurrency)
        self._client = client
        self._lock = asyncio.Lock()
        self._use_mlsd = True

    def _exclusive(self):
        return self._lock

    def _list_entries(self, path: str) -> List[DirectoryEntry]:
        if self._use_mlsd:
            try:
                entries = []
                for name, facts in self._client.mlsd(path):
                    entry = listing.entry_from_facts(name, facts)
                    if entry is not None:
                        entries.append(entry)
                return entries
            except error_perm as e:
                if not str(e).startswith(_UNSUPPORTED_CODES):
                    raise
                logger.debug(f"MLSD not supported by server ({e}), falling back to LIST")
                self._use_mlsd = False

        lines = []
        self._client.retrlines(f"LIST {path}", lines.append)
        return listing.parse_list_output(lines)

    def _unlink(self, path: str) -> None:
        self._client.delete(path)

    def _mkdir(self, path: str) -> None:
        self._client.mkd(path)

    def _rmdir(self, path: str) -> None:
        self._client.rmd(path)

    def _rename(self, old_path: str, new_path: str) -> None:
        self._client.rename(old_path, new_path)

    def _open_reader(self, path: str) -> FTPTransferStream:
        return FTPTransferStream(self._client, f"RETR {path}")

    def _open_writer(self, path: str) -> FTPTransferStream:
        return FTPTransferStream(self._client, f"STOR {path}")

    def _close_client(self) -> None:
        try:
            self._client.quit()
        except Exception as e:
            logger.debug(f"FTP QUIT failed ({e}), closing socket")
            self._client.close()
