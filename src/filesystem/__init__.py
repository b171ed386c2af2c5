"""Protocol-unifying filesystem adapters."""

from .models import DirectoryEntry, ProtocolKind, Rights
from .adapter import FilesystemAdapter
from .ftp_adapter import FTPAdapter
from .sftp_adapter import SFTPAdapter

__all__ = [
    'DirectoryEntry',
    'ProtocolKind',
    'Rights',
    'FilesystemAdapter',
    'FTPAdapter',
    'SFTPAdapter',
]
