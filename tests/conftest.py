"""
Shared fixtures: an in-memory remote tree served through fake ftplib and
paramiko clients, so adapter behaviour can be tested without a network.
"""

import errno
import io
import posixpath
import stat
import threading
import time
from ftplib import error_perm

import paramiko
import pytest

from connections.registry import ConnectionRegistry
from filesystem.ftp_adapter import FTPAdapter
from filesystem.models import ProtocolKind
from filesystem.sftp_adapter import SFTPAdapter

MTIME = 1700000000


class MemoryTree:
    """Directories and file contents of a fake remote server."""

    def __init__(self):
        self.dirs = {"/"}
        self.files = {}

    @staticmethod
    def norm(path):
        return posixpath.normpath(path) if path else "/"

    def add_dir(self, path):
        path = self.norm(path)
        while path not in self.dirs:
            self.dirs.add(path)
            path = posixpath.dirname(path)
        return self

    def add_file(self, path, data=b""):
        path = self.norm(path)
        self.add_dir(posixpath.dirname(path))
        self.files[path] = data
        return self

    def is_dir(self, path):
        return self.norm(path) in self.dirs

    def is_file(self, path):
        return self.norm(path) in self.files

    def exists(self, path):
        return self.is_dir(path) or self.is_file(path)

    def children(self, path):
        path = self.norm(path)
        names = []
        for item in sorted(self.dirs | set(self.files)):
            if item != "/" and posixpath.dirname(item) == path:
                names.append(posixpath.basename(item))
        return names

    def snapshot(self):
        return set(self.dirs), dict(self.files)


class CallTracker:
    """Records client calls and how many ran at the same time."""

    def __init__(self, delay=0.0):
        self.calls = []
        self.delay = delay
        self.in_flight = 0
        self.max_in_flight = 0
        self._lock = threading.Lock()

    def __call__(self, name, *args):
        self.calls.append((name,) + args)
        return self

    def __enter__(self):
        with self._lock:
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)
        if self.delay:
            time.sleep(self.delay)
        return self

    def __exit__(self, *exc):
        with self._lock:
            self.in_flight -= 1
        return False


class FakeSFTPFile:
    def __init__(self, tree, path, mode, data=b""):
        self.tree = tree
        self.path = path
        self.mode = mode
        self.buffer = io.BytesIO(data)
        self.closed = False
        self.pipelined = False

    def read(self, size):
        return self.buffer.read(size)

    def write(self, data):
        self.buffer.write(data)

    def set_pipelined(self, pipelined=True):
        self.pipelined = pipelined

    def close(self):
        if self.closed:
            return
        self.closed = True
        if "w" in self.mode:
            # Nothing is visible on the server before close
            self.tree.files[self.path] = self.buffer.getvalue()


class FakeSFTPClient:
    def __init__(self, tree, tracker=None, fail_on=None):
        self.tree = tree
        self.track = tracker or CallTracker()
        self.fail_on = fail_on or set()
        self.closed = False

    def _missing(self, path):
        return FileNotFoundError(errno.ENOENT, "No such file", path)

    def _check_failure(self, path):
        if self.tree.norm(path) in self.fail_on:
            raise PermissionError(errno.EACCES, "Permission denied", path)

    def listdir_attr(self, path="."):
        with self.track("listdir_attr", path):
            if not self.tree.is_dir(path):
                raise self._missing(path)
            result = []
            for name in self.tree.children(path):
                full = posixpath.join(self.tree.norm(path), name)
                attrs = paramiko.SFTPAttributes()
                attrs.filename = name
                if self.tree.is_dir(full):
                    attrs.st_mode = stat.S_IFDIR | 0o755
                    attrs.st_size = 4096
                else:
                    attrs.st_mode = stat.S_IFREG | 0o644
                    attrs.st_size = len(self.tree.files[full])
                attrs.st_mtime = MTIME
                attrs.st_uid = 1000
                attrs.st_gid = 1001
                result.append(attrs)
            return result

    def remove(self, path):
        with self.track("remove", path):
            self._check_failure(path)
            if not self.tree.is_file(path):
                raise self._missing(path)
            del self.tree.files[self.tree.norm(path)]

    def mkdir(self, path, mode=511):
        with self.track("mkdir", path):
            if self.tree.exists(path):
                raise OSError("Failure")
            if not self.tree.is_dir(posixpath.dirname(self.tree.norm(path))):
                raise self._missing(path)
            self.tree.dirs.add(self.tree.norm(path))

    def rmdir(self, path):
        with self.track("rmdir", path):
            self._check_failure(path)
            if not self.tree.is_dir(path):
                raise self._missing(path)
            if self.tree.children(path):
                raise OSError("Failure")
            self.tree.dirs.discard(self.tree.norm(path))

    def rename(self, oldpath, newpath):
        with self.track("rename", oldpath, newpath):
            old, new = self.tree.norm(oldpath), self.tree.norm(newpath)
            if old in self.tree.files:
                self.tree.files[new] = self.tree.files.pop(old)
            elif old in self.tree.dirs:
                for item in [d for d in self.tree.dirs if d == old or d.startswith(old + "/")]:
                    self.tree.dirs.discard(item)
                    self.tree.dirs.add(new + item[len(old):])
                for item in [f for f in self.tree.files if f.startswith(old + "/")]:
                    self.tree.files[new + item[len(old):]] = self.tree.files.pop(item)
            else:
                raise self._missing(oldpath)

    def open(self, filename, mode="r", bufsize=-1):
        with self.track("open", filename, mode):
            path = self.tree.norm(filename)
            if "w" in mode:
                if not self.tree.is_dir(posixpath.dirname(path)):
                    raise self._missing(filename)
                return FakeSFTPFile(self.tree, path, mode)
            if not self.tree.is_file(path):
                raise self._missing(filename)
            return FakeSFTPFile(self.tree, path, mode, self.tree.files[path])

    def close(self):
        self.track("close")
        self.closed = True


class FakeSSHClient:
    def __init__(self, sftp=None):
        self.sftp = sftp
        self.closed = False

    def open_sftp(self):
        return self.sftp

    def close(self):
        self.closed = True


class FakeDataConnection:
    def __init__(self, data=b""):
        self.incoming = io.BytesIO(data)
        self.outgoing = io.BytesIO()
        self.closed = False

    def recv(self, size):
        return self.incoming.read(size)

    def sendall(self, data):
        self.outgoing.write(data)

    def close(self):
        self.closed = True


class FakeFTP:
    """Just enough of ftplib.FTP for the adapter, backed by a MemoryTree."""

    def __init__(self, tree, tracker=None, mlsd_supported=True):
        self.tree = tree
        self.track = tracker or CallTracker()
        self.mlsd_supported = mlsd_supported
        self._pending_store = None
        self.quit_called = False
        self.closed = False

    def _missing(self, path):
        return error_perm(f"550 {path}: No such file or directory")

    def voidcmd(self, cmd):
        self.track("voidcmd", cmd)
        return "200 OK"

    def mlsd(self, path="", facts=[]):
        with self.track("mlsd", path):
            if not self.mlsd_supported:
                raise error_perm("500 Unknown command MLSD")
            if not self.tree.is_dir(path):
                raise self._missing(path)
            entries = [(".", {"type": "cdir"})]
            for name in self.tree.children(path):
                full = posixpath.join(self.tree.norm(path), name)
                if self.tree.is_dir(full):
                    entries.append((name, {"type": "dir", "modify": "20231114221320", "unix.mode": "0755",
                                           "unix.owner": "web", "unix.group": "www"}))
                else:
                    entries.append((name, {"type": "file", "size": str(len(self.tree.files[full])),
                                           "modify": "20231114221320", "unix.mode": "0644",
                                           "unix.owner": "web", "unix.group": "www"}))
        for entry in entries:
            yield entry

    def retrlines(self, cmd, callback=None):
        with self.track("retrlines", cmd):
            path = cmd.split(" ", 1)[1] if " " in cmd else "/"
            if not self.tree.is_dir(path):
                raise self._missing(path)
            callback("total 8")
            for name in self.tree.children(path):
                full = posixpath.join(self.tree.norm(path), name)
                if self.tree.is_dir(full):
                    callback(f"drwxr-xr-x    2 web      www          4096 Nov 14  2023 {name}")
                else:
                    size = len(self.tree.files[full])
                    callback(f"-rw-r--r--    1 web      www      {size:>8} Nov 14  2023 {name}")
        return "226 Transfer complete"

    def transfercmd(self, cmd, rest=None):
        with self.track("transfercmd", cmd):
            verb, path = cmd.split(" ", 1)
            path = self.tree.norm(path)
            if verb == "RETR":
                if not self.tree.is_file(path):
                    raise self._missing(path)
                return FakeDataConnection(self.tree.files[path])
            if not self.tree.is_dir(posixpath.dirname(path)):
                raise self._missing(path)
            conn = FakeDataConnection()
            self._pending_store = (path, conn)
            return conn

    def voidresp(self):
        self.track("voidresp")
        if self._pending_store is not None:
            path, conn = self._pending_store
            self._pending_store = None
            self.tree.files[path] = conn.outgoing.getvalue()
        return "226 Transfer complete"

    def delete(self, path):
        with self.track("delete", path):
            if not self.tree.is_file(path):
                raise self._missing(path)
            del self.tree.files[self.tree.norm(path)]
            return "250 Deleted"

    def mkd(self, path):
        with self.track("mkd", path):
            if self.tree.exists(path) or not self.tree.is_dir(posixpath.dirname(self.tree.norm(path))):
                raise self._missing(path)
            self.tree.dirs.add(self.tree.norm(path))
            return path

    def rmd(self, path):
        with self.track("rmd", path):
            if not self.tree.is_dir(path):
                raise self._missing(path)
            if self.tree.children(path):
                raise error_perm(f"550 {path}: Directory not empty")
            self.tree.dirs.discard(self.tree.norm(path))
            return "250 Removed"

    def rename(self, fromname, toname):
        with self.track("rename", fromname, toname):
            old, new = self.tree.norm(fromname), self.tree.norm(toname)
            if old not in self.tree.files:
                raise self._missing(fromname)
            self.tree.files[new] = self.tree.files.pop(old)
            return "250 Renamed"

    def quit(self):
        with self.track("quit"):
            self.quit_called = True
            return "221 Goodbye"

    def close(self):
        self.closed = True


@pytest.fixture
def tree():
    return MemoryTree()


@pytest.fixture
def sftp_client(tree):
    return FakeSFTPClient(tree)


@pytest.fixture
def ssh_client(sftp_client):
    return FakeSSHClient(sftp_client)


@pytest.fixture
def ftp_client(tree):
    return FakeFTP(tree)


@pytest.fixture
def sftp_adapter(ssh_client, sftp_client):
    return SFTPAdapter(ProtocolKind.SFTP, ssh_client, sftp_client, chunk_size=4)


@pytest.fixture
def ftp_adapter(ftp_client):
    return FTPAdapter(ftp_client, chunk_size=4)


@pytest.fixture(params=["ftp", "sftp"])
def adapter(request, ftp_client, ssh_client, sftp_client):
    """Each adapter variant over the same fake tree."""
    if request.param == "ftp":
        return FTPAdapter(ftp_client, chunk_size=4)
    return SFTPAdapter(ProtocolKind.SFTP, ssh_client, sftp_client, chunk_size=4)


@pytest.fixture
def client_calls(request, ftp_client, sftp_client):
    """Calls recorded by whichever fake client backs the ``adapter`` fixture."""
    return ftp_client.track.calls if request.node.callspec.params["adapter"] == "ftp" else sftp_client.track.calls


@pytest.fixture
def registry():
    return ConnectionRegistry()


@pytest.fixture
def ftp_factory(tree):
    """Builds independent FTP sessions onto the shared tree."""
    return lambda: FakeFTP(tree)
