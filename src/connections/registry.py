"""Registry of live connections, keyed by generated handle."""

import asyncio
import secrets
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional

from filesystem.adapter import FilesystemAdapter
from filesystem.models import ProtocolKind
from log_config.logging_config import get_logger
from utils.error_utils import describe_error
from utils.errors import DuplicateHandleError

logger = get_logger("RemoteFS.Registry")


def generate_connection_id() -> str:
    """Time-based prefix plus random suffix, e.g. ``conn_1718000000000_9f2c4a1b7e3d``."""
    return f"conn_{int(time.time() * 1000)}_{secrets.token_hex(6)}"


@dataclass
class ConnectionRecord:
    handle: str
    adapter: FilesystemAdapter
    protocol: ProtocolKind
    connected_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def describe(self) -> Dict[str, str]:
        return {
            "connection_id": self.handle,
            "protocol": self.protocol.value,
            "connected_at": self.connected_at.isoformat(),
        }


class ConnectionRegistry:
    """
    Maps connection handles to live adapters and owns their lifetime.

    Only touched from the event loop thread, so plain dict operations are
    atomic with respect to other coroutines.
    """

    def __init__(self):
        self._records: Dict[str, ConnectionRecord] = {}

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, handle: str) -> bool:
        return handle in self._records

    def new_handle(self) -> str:
        handle = generate_connection_id()
        while handle in self._records:
            handle = generate_connection_id()
        return handle

    def insert(self, handle: str, adapter: FilesystemAdapter, protocol: Optional[ProtocolKind] = None) -> ConnectionRecord:
        if handle in self._records:
            raise DuplicateHandleError(f"Connection handle already registered: {handle}")
        record = ConnectionRecord(handle=handle, adapter=adapter, protocol=protocol or adapter.kind)
        self._records[handle] = record
        logger.debug(f"Registered {handle} ({record.protocol.value}), {len(self._records)} active")
        return record

    def resolve(self, handle: str) -> Optional[FilesystemAdapter]:
        record = self._records.get(handle)
        return record.adapter if record else None

    def remove(self, handle: str) -> Optional[FilesystemAdapter]:
        """Forget a handle and return its adapter; unknown handles are ignored."""
        record = self._records.pop(handle, None)
        if record is None:
            return None
        logger.debug(f"Unregistered {handle}, {len(self._records)} active")
        return record.adapter

    def records(self) -> List[ConnectionRecord]:
        return list(self._records.values())

    async def drain_all(self, timeout: Optional[float] = None) -> None:
        """
        Unregister every connection and close all adapters concurrently.

        Handles are removed before their close runs. Closes still pending
        after ``timeout`` seconds are abandoned.
        """
        records = list(self._records.values())
        self._records.clear()
        if not records:
            return

        logger.info(f"Closing {len(records)} active connection(s)")
        tasks = {asyncio.ensure_future(record.adapter.close()): record.handle for record in records}
        done, pending = await asyncio.wait(tasks, timeout=timeout)

        for task in done:
            error = task.exception()
            if error is not None:
                logger.warning(f"Error closing {tasks[task]}: {describe_error(error)}")
        for task in pending:
            logger.warning(f"Close of {tasks[task]} did not finish within {timeout}s, abandoning it")
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

        logger.info("All connections closed")
