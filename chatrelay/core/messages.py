from __future__ import annotations

import asyncio
import logging
import re
from typing import Any, List, Optional

from .errors import InvalidArgument
from .proto import Message
from .store import MessageStore

log = logging.getLogger("chatrelay.messages")

LIMIT_RE = re.compile(r"[+-]?[0-9]+", re.ASCII)


def parse_limit(value: Any) -> Optional[int]:
    """Validate a caller-supplied ``limit``.

    ``None`` means unbounded. Integers and digit strings (as handed over from a
    query string) must be >= 1; anything else is an InvalidArgument, never a
    silently clamped value.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        raise InvalidArgument(f"limit must be a positive integer, got {value!r}")
    if isinstance(value, str):
        text = value.strip()
        if not LIMIT_RE.fullmatch(text):
            raise InvalidArgument(f"limit must be a positive integer, got {value!r}")
        value = int(text)
    if not isinstance(value, int):
        raise InvalidArgument(f"limit must be a positive integer, got {value!r}")
    if value < 1:
        raise InvalidArgument(f"limit must be >= 1, got {value}")
    return value


class MessageLog:
    """Append-only, insertion-ordered message sequence.

    Appends are serialized so every reader observes the same total order;
    reads are scoped by the visibility rule and returned newest-first.
    """

    def __init__(self, store: MessageStore) -> None:
        self.store = store
        self._append_lock = asyncio.Lock()

    async def append(self, message: Message) -> Message:
        async with self._append_lock:
            await self.store.append(message)
        log.debug("Appended %s message %s -> %s", message.kind.value, message.from_, message.to)
        return message

    async def query(self, viewer: str, limit: Any = None) -> List[Message]:
        bound = parse_limit(limit)
        return await self.store.select_visible(viewer, bound)


__all__ = ["MessageLog", "parse_limit"]
