"""
Email attempt log.

Records every tier-level delivery attempt in a bounded in-memory ring
(most recent first) and in a durable JSON document on disk. Durable writes
are best effort: failures are logged and never reach the caller.
"""

import asyncio
import json
import logging
import secrets
import time
from collections import deque
from datetime import datetime, timezone
from itertools import islice
from pathlib import Path
from typing import Any

import aiofiles
from pydantic import ValidationError

from storefront_mail.constants import (
    DEFAULT_RECENT_LIMIT,
    DURABLE_LOG_CAPACITY,
    MEMORY_LOG_CAPACITY,
    AttemptStatus,
)
from storefront_mail.types.delivery import AttemptLogEntry, AttemptRecord, AttemptStats

logger = logging.getLogger(__name__)


def _new_entry_id() -> str:
    return f"email_{int(time.time() * 1000)}_{secrets.token_hex(3)[:5]}"


class AttemptLogger:
    """
    In-memory and durable record of delivery attempts.

    Stats are computed from the in-memory ring only; the durable log is for
    audit and replay.
    """

    def __init__(
        self,
        log_file: Path | None = None,
        memory_capacity: int = MEMORY_LOG_CAPACITY,
        durable_capacity: int = DURABLE_LOG_CAPACITY,
    ):
        """
        Initialize the logger.

        Args:
            log_file: Path of the durable JSON log. None keeps entries in
                memory only.
            memory_capacity: Maximum entries kept in memory.
            durable_capacity: Maximum entries kept in the durable log.
        """
        self.log_file = log_file
        self.memory_capacity = memory_capacity
        self.durable_capacity = durable_capacity

        self._entries: deque[AttemptLogEntry] = deque(maxlen=memory_capacity)
        self._write_lock = asyncio.Lock()
        self._initialized = False

    @property
    def durable(self) -> bool:
        """Whether entries are currently being written to disk."""
        return self._initialized

    async def init(self) -> None:
        """Create the log directory and an empty log document if missing."""
        if self.log_file is None:
            return

        try:
            self.log_file.parent.mkdir(parents=True, exist_ok=True)
            if not self.log_file.exists():
                async with aiofiles.open(self.log_file, mode="w", encoding="utf-8") as f:
                    await f.write("[]")
            self._initialized = True
            logger.info("Email attempt log initialized", extra={"log_file": str(self.log_file)})
        except OSError:
            logger.exception(
                "Failed to initialize email attempt log, keeping entries in memory only",
                extra={"log_file": str(self.log_file)},
            )

    async def record_attempt(self, record: AttemptRecord) -> AttemptLogEntry:
        """
        Record one delivery attempt.

        Args:
            record: What was attempted and how it ended.

        Returns:
            The stored, immutable log entry.
        """
        entry = AttemptLogEntry(
            id=_new_entry_id(),
            timestamp=datetime.now(timezone.utc),
            type=record.message_type,
            to=record.to,
            subject=record.subject,
            order_id=record.order_id,
            status=AttemptStatus.SUCCESS if record.success else AttemptStatus.FAILED,
            message_id=record.message_id,
            error=record.error,
            retry_count=record.retry_count,
            tier=record.tier,
        )

        self._entries.appendleft(entry)

        if self._initialized:
            await self._append_durable(entry)

        return entry

    def recent_entries(self, limit: int = DEFAULT_RECENT_LIMIT) -> list[AttemptLogEntry]:
        """Most recent entries first, at most ``limit`` of them."""
        return list(islice(self._entries, max(0, limit)))

    def stats(self) -> AttemptStats:
        """Aggregate delivery stats over the in-memory entries."""
        total = len(self._entries)
        success = sum(1 for entry in self._entries if entry.status == AttemptStatus.SUCCESS)

        return AttemptStats(
            total=total,
            success=success,
            failed=total - success,
            success_rate=round(success / total * 100, 2) if total else 0.0,
            last_attempt_at=self._entries[0].timestamp if total else None,
        )

    async def read_durable(self, limit: int | None = None) -> list[AttemptLogEntry]:
        """
        Read entries back from the durable log, most recent first.

        Returns an empty list when the log is missing or unreadable. Items
        that are not attempt entries are skipped.
        """
        if self.log_file is None:
            return []

        try:
            raw = await self._read_document()
        except OSError:
            logger.exception("Failed to read email attempt log")
            return []

        entries = []
        skipped = 0
        for item in raw:
            try:
                entries.append(AttemptLogEntry.model_validate(item))
            except ValidationError:
                skipped += 1

        if skipped:
            logger.warning(
                "Skipped unrecognised entries in email attempt log",
                extra={"log_file": str(self.log_file), "skipped": skipped},
            )
        return entries if limit is None else entries[:limit]

    async def _append_durable(self, entry: AttemptLogEntry) -> None:
        # Read-modify-write; the lock keeps in-process writers from
        # interleaving across the awaits.
        async with self._write_lock:
            try:
                logs = await self._read_document()
                logs.insert(0, entry.model_dump(mode="json"))
                del logs[self.durable_capacity:]

                async with aiofiles.open(self.log_file, mode="w", encoding="utf-8") as f:
                    await f.write(json.dumps(logs, indent=2))
            except Exception:
                logger.exception(
                    "Failed to write to email attempt log",
                    extra={"log_file": str(self.log_file), "entry_id": entry.id},
                )

    async def _read_document(self) -> list[dict[str, Any]]:
        try:
            async with aiofiles.open(self.log_file, mode="r", encoding="utf-8") as f:
                content = await f.read()
        except FileNotFoundError:
            return []
        except UnicodeDecodeError:
            logger.warning(
                "Email attempt log is not valid UTF-8, starting fresh",
                extra={"log_file": str(self.log_file)},
            )
            return []

        try:
            logs = json.loads(content) if content.strip() else []
        except json.JSONDecodeError:
            logger.warning(
                "Email attempt log is not valid JSON, starting fresh",
                extra={"log_file": str(self.log_file)},
            )
            return []

        return logs if isinstance(logs, list) else []
