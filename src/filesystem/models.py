"""Protocol kinds and normalized directory entries."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional


class ProtocolKind(str, Enum):
    """Wire protocol of a connection. SFTP and SSH share the SSH transport."""

    FTP = "ftp"
    SFTP = "sftp"
    SSH = "ssh"

    @classmethod
    def parse(cls, value: str) -> "ProtocolKind":
        try:
            return cls(value.strip().lower())
        except (AttributeError, ValueError):
            choices = ", ".join(kind.value for kind in cls)
            raise ValueError(f"Unsupported protocol: {value!r} (expected one of {choices})") from None

    @property
    def uses_ssh(self) -> bool:
        return self in (ProtocolKind.SFTP, ProtocolKind.SSH)


ENTRY_DIRECTORY = "d"
ENTRY_FILE = "-"
ENTRY_LINK = "l"


@dataclass
class Rights:
    """Symbolic permission triplets, e.g. ``rwx``. Blank when not exposed."""

    user: str = ""
    group: str = ""
    other: str = ""

    @classmethod
    def from_mode(cls, mode: int) -> "Rights":
        def triplet(bits: int) -> str:
            return "".join(flag if bits & mask else "-" for flag, mask in (("r", 4), ("w", 2), ("x", 1)))

        return cls(user=triplet(mode >> 6 & 7), group=triplet(mode >> 3 & 7), other=triplet(mode & 7))

    @classmethod
    def from_symbolic(cls, text: str) -> "Rights":
        """Parse the nine permission characters of an ``ls -l`` line."""
        if len(text) < 9:
            return cls()
        return cls(user=text[0:3], group=text[3:6], other=text[6:9])


@dataclass
class DirectoryEntry:
    """One item of a remote directory listing."""

    name: str
    type: str = ENTRY_FILE
    size: int = 0
    date: Optional[datetime] = None
    rights: Rights = field(default_factory=Rights)
    owner: str = ""
    group: str = ""

    @property
    def is_directory(self) -> bool:
        return self.type == ENTRY_DIRECTORY

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "type": self.type,
            "size": self.size,
            "date": self.date.isoformat() if self.date else None,
            "rights": {
                "user": self.rights.user,
                "group": self.rights.group,
                "other": self.rights.other,
            },
            "owner": self.owner,
            "group": self.group,
        }
