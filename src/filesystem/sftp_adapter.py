"""Filesystem adapter over a paramiko SFTP channel."""

import stat
from datetime import datetime, timezone
from typing import List

import paramiko

from filesystem.adapter import DEFAULT_CHUNK_SIZE, FilesystemAdapter
from filesystem.models import ENTRY_DIRECTORY, ENTRY_FILE, DirectoryEntry, ProtocolKind
from log_config.logging_config import get_logger

logger = get_logger("RemoteFS.SFTPAdapter")


def entry_from_attributes(attrs: paramiko.SFTPAttributes) -> DirectoryEntry:
    """
    Map one ``listdir_attr`` item to a directory entry.

    Rights are left blank: the mode bits are not decomposed for SFTP listings.
    """
    mode = attrs.st_mode or 0
    mtime = attrs.st_mtime
    return DirectoryEntry(
        name=attrs.filename,
        type=ENTRY_DIRECTORY if stat.S_ISDIR(mode) else ENTRY_FILE,
        size=attrs.st_size or 0,
        date=datetime.fromtimestamp(mtime, tz=timezone.utc) if mtime is not None else None,
        owner=str(attrs.st_uid) if attrs.st_uid is not None else "",
        group=str(attrs.st_gid) if attrs.st_gid is not None else "",
    )


class SFTPAdapter(FilesystemAdapter):
    """SFTP variant, used for both the ``sftp`` and ``ssh`` protocol kinds."""

    def __init__(self, kind: ProtocolKind, ssh: paramiko.SSHClient, sftp: paramiko.SFTPClient,
                 chunk_size: int = DEFAULT_CHUNK_SIZE, max_concurrency: int = 0):
        if not kind.uses_ssh:
            raise ValueError(f"SFTPAdapter cannot serve protocol {kind.value!r}")
        super().__init__(kind, chunk_size=chunk_size, max_concurrency=max_concurrency)
        self._ssh = ssh
        self._sftp = sftp

    def _list_entries(self, path: str) -> List[DirectoryEntry]:
        return [entry_from_attributes(attrs) for attrs in self._sftp.listdir_attr(path)]

    def _unlink(self, path: str) -> None:
        self._sftp.remove(path)

    def _mkdir(self, path: str) -> None:
        self._sftp.mkdir(path)

    def _rmdir(self, path: str) -> None:
        self._sftp.rmdir(path)

    def _rename(self, old_path: str, new_path: str) -> None:
        self._sftp.rename(old_path, new_path)

    def _open_reader(self, path: str):
        return self._sftp.open(path, "rb")

    def _open_writer(self, path: str):
        handle = self._sftp.open(path, "wb")
        # close() still waits for every pipelined write to be acknowledged
        handle.set_pipelined(True)
        return handle

    def _close_client(self) -> None:
        try:
            self._sftp.close()
        finally:
            self._ssh.close()
