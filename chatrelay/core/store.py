from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

import aiosqlite

from .errors import StorageFailure
from .proto import BROADCAST, Message

"""
Message stores
--------------
The message log persists through one of two backends:

  • MemoryStore  - plain list, lost on restart; default when no db_path is configured
  • SqliteStore  - aiosqlite-backed table; ``seq`` (autoincrement) is the append order

Both implement the visibility rule in ``select_visible``: a message is returned to
``viewer`` iff it is addressed to the broadcast sentinel, to the viewer, or was sent
by the viewer. Results are newest-first and truncated to ``limit`` (None = all).
"""

log = logging.getLogger("chatrelay.store")

SCHEMA = """
CREATE TABLE IF NOT EXISTS messages(
    seq       INTEGER PRIMARY KEY AUTOINCREMENT,
    sender    TEXT NOT NULL,
    recipient TEXT NOT NULL,
    text      TEXT NOT NULL,
    kind      TEXT NOT NULL,
    time      TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS messages_recipient ON messages(recipient);
CREATE INDEX IF NOT EXISTS messages_sender ON messages(sender);
"""


class MessageStore:
    """Ordered append-only storage used by MessageLog."""

    async def open(self) -> None:
        pass

    async def close(self) -> None:
        pass

    async def append(self, message: Message) -> None:
        raise NotImplementedError

    async def select_visible(self, viewer: str, limit: Optional[int] = None) -> List[Message]:
        raise NotImplementedError


class MemoryStore(MessageStore):
    def __init__(self) -> None:
        self._messages: List[Message] = []

    async def append(self, message: Message) -> None:
        self._messages.append(message)

    async def select_visible(self, viewer: str, limit: Optional[int] = None) -> List[Message]:
        result: List[Message] = []
        for message in reversed(self._messages):
            if limit is not None and len(result) >= limit:
                break
            if message.visible_to(viewer):
                result.append(message)
        return result

    def __len__(self) -> int:
        return len(self._messages)


class SqliteStore(MessageStore):
    """Persistent message table backed by aiosqlite."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._db: Optional[aiosqlite.Connection] = None

    async def open(self) -> None:
        if str(self.path) != ":memory:":
            self.path.parent.mkdir(parents=True, exist_ok=True)
        try:
            self._db = await aiosqlite.connect(str(self.path))
            await self._db.executescript(SCHEMA)
            await self._db.commit()
        except aiosqlite.Error as exc:
            raise StorageFailure(f"cannot open message store {self.path}: {exc}") from exc
        log.info("Opened message store %s", self.path)

    async def close(self) -> None:
        if self._db is not None:
            await self._db.close()
            self._db = None

    async def append(self, message: Message) -> None:
        db = self._require_db()
        try:
            await db.execute(
                "INSERT INTO messages(sender, recipient, text, kind, time) VALUES(?,?,?,?,?)",
                (message.from_, message.to, message.text, message.kind.value, message.time),
            )
            await db.commit()
        except aiosqlite.Error as exc:
            raise StorageFailure(f"append failed: {exc}") from exc

    async def select_visible(self, viewer: str, limit: Optional[int] = None) -> List[Message]:
        db = self._require_db()
        sql = (
            "SELECT sender, recipient, text, kind, time FROM messages "
            "WHERE recipient = ? OR recipient = ? OR sender = ? ORDER BY seq DESC"
        )
        params: tuple = (BROADCAST, viewer, viewer)
        if limit is not None:
            sql += " LIMIT ?"
            params += (limit,)
        try:
            async with db.execute(sql, params) as cur:
                rows = await cur.fetchall()
        except aiosqlite.Error as exc:
            raise StorageFailure(f"query failed: {exc}") from exc
        return [
            Message(from_=sender, to=recipient, text=text, kind=kind, time=time)
            for sender, recipient, text, kind, time in rows
        ]

    def _require_db(self) -> aiosqlite.Connection:
        if self._db is None:
            raise StorageFailure("message store is not open")
        return self._db


__all__ = ["MessageStore", "MemoryStore", "SqliteStore"]
