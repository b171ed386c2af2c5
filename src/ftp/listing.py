"""Parsing of FTP directory listings (MLSD facts and LIST output)."""

import re
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

from filesystem.models import ENTRY_DIRECTORY, ENTRY_FILE, ENTRY_LINK, DirectoryEntry, Rights

UNIX_LINE = re.compile(
    r"^(?P<type>[\-dlbcps])(?P<perms>[rwxsStTl\-]{9})[.+@]?\s+"
    r"\d+\s+(?P<owner>\S+)\s+(?P<group>\S+)\s+(?P<size>\d+)\s+"
    r"(?P<month>[A-Za-z]{3})\s+(?P<day>\d{1,2})\s+(?P<when>\d{1,2}:\d{2}|\d{4})\s+"
    r"(?P<name>.+)$"
)

DOS_LINE = re.compile(
    r"^(?P<date>\d{2}-\d{2}-(?:\d{4}|\d{2}))\s+(?P<time>\d{1,2}:\d{2}\s*[AaPp][Mm])\s+"
    r"(?P<size><DIR>|\d+)\s+(?P<name>.+)$"
)


def _parse_mlsd_time(value: str) -> Optional[datetime]:
    # YYYYMMDDHHMMSS[.sss], always UTC per RFC 3659
    try:
        return datetime.strptime(value[:14], "%Y%m%d%H%M%S").replace(tzinfo=timezone.utc)
    except ValueError:
        return None


def entry_from_facts(name: str, facts: Dict[str, str]) -> Optional[DirectoryEntry]:
    """
    Build an entry from one MLSD line. Returns None for ``.`` and ``..``.

    ftplib lowercases fact names but leaves values untouched.
    """
    kind = facts.get("type", "").lower()
    if kind in ("cdir", "pdir") or name in (".", ".."):
        return None

    if kind == "dir":
        entry_type = ENTRY_DIRECTORY
    elif "slink" in kind or "symlink" in kind:
        entry_type = ENTRY_LINK
    else:
        entry_type = ENTRY_FILE

    size = facts.get("size") or facts.get("sizd") or "0"
    mode = facts.get("unix.mode")
    rights = Rights()
    if mode:
        try:
            rights = Rights.from_mode(int(mode, 8))
        except ValueError:
            pass

    return DirectoryEntry(
        name=name,
        type=entry_type,
        size=int(size) if size.isdigit() else 0,
        date=_parse_mlsd_time(facts["modify"]) if "modify" in facts else None,
        rights=rights,
        owner=facts.get("unix.owner") or facts.get("unix.uid") or facts.get("unix.user") or "",
        group=facts.get("unix.group") or facts.get("unix.gid") or "",
    )


def _parse_unix_date(month: str, day: str, when: str, now: datetime) -> Optional[datetime]:
    try:
        if ":" in when:
            # Recent files show a time instead of a year; a date in the future means last year
            parsed = datetime.strptime(f"{month} {day} {now.year} {when}", "%b %d %Y %H:%M")
            if parsed > now + timedelta(days=1):
                parsed = parsed.replace(year=now.year - 1)
            return parsed
        return datetime.strptime(f"{month} {day} {when}", "%b %d %Y")
    except ValueError:
        return None


def _parse_dos_date(date: str, time: str) -> Optional[datetime]:
    year_format = "%Y" if len(date) == 10 else "%y"
    try:
        return datetime.strptime(f"{date} {time.replace(' ', '').upper()}", f"%m-%d-{year_format} %I:%M%p")
    except ValueError:
        return None


def parse_list_line(line: str, now: Optional[datetime] = None) -> Optional[DirectoryEntry]:
    """Parse one line of ``LIST`` output (Unix ``ls -l`` or DOS style)."""
    line = line.rstrip("\r\n")
    now = now or datetime.now()

    match = UNIX_LINE.match(line)
    if match:
        name = match.group("name")
        entry_type = match.group("type")
        if entry_type == ENTRY_LINK:
            name = name.split(" -> ", 1)[0]
        elif entry_type != ENTRY_DIRECTORY:
            entry_type = ENTRY_FILE
        if name in (".", ".."):
            return None
        return DirectoryEntry(
            name=name,
            type=entry_type,
            size=int(match.group("size")),
            date=_parse_unix_date(match.group("month"), match.group("day"), match.group("when"), now),
            rights=Rights.from_symbolic(match.group("perms")),
            owner=match.group("owner"),
            group=match.group("group"),
        )

    match = DOS_LINE.match(line)
    if match:
        is_dir = match.group("size") == "<DIR>"
        return DirectoryEntry(
            name=match.group("name"),
            type=ENTRY_DIRECTORY if is_dir else ENTRY_FILE,
            size=0 if is_dir else int(match.group("size")),
            date=_parse_dos_date(match.group("date"), match.group("time")),
        )

    return None


def parse_list_output(lines: List[str], now: Optional[datetime] = None) -> List[DirectoryEntry]:
    """Parse ``LIST`` output, skipping ``total`` lines and anything unrecognised."""
    entries = []
    for line in lines:
        entry = parse_list_line(line, now)
        if entry is not None:
            entries.append(entry)
    return entries
