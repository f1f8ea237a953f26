from __future__ import annotations

from enum import Enum
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field, field_validator


# ---------------------------------------------------------------------------
# Message model
# ---------------------------------------------------------------------------

BROADCAST = "Everyone"

JOIN_TEXT = "joined"
LEAVE_TEXT = "left"


class MessageKind(str, Enum):
    STATUS = "status"
    CHAT = "chat"
    DIRECT = "direct"


# kinds a participant may post; status notices are emitted by the relay only
POSTABLE_KINDS = frozenset({MessageKind.CHAT, MessageKind.DIRECT})


class Message(BaseModel):
    """One immutable entry of the message log."""

    from_: str = Field(alias="from")
    to: str
    text: str
    kind: MessageKind = Field(alias="type")
    time: str

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    @field_validator("from_", "to")
    @classmethod
    def _non_empty(cls, value: str) -> str:
        if not value:
            raise ValueError("address must be non-empty")
        return value

    @property
    def is_broadcast(self) -> bool:
        return self.to == BROADCAST

    def visible_to(self, viewer: str) -> bool:
        return self.to == BROADCAST or self.to == viewer or self.from_ == viewer

    def to_dict(self) -> Dict[str, Any]:
        """Wire form: ``{"from", "to", "text", "type", "time"}``."""

        return self.model_dump(by_alias=True, mode="json")


# ---------------------------------------------------------------------------
# Constructors
# ---------------------------------------------------------------------------

def status_message(name: str, text: str, time: str) -> Message:
    return Message(from_=name, to=BROADCAST, text=text, kind=MessageKind.STATUS, time=time)


def parse_kind(value: Any) -> MessageKind:
    try:
        return MessageKind(value)
    except ValueError:
        raise ValueError(f"unknown message kind {value!r}") from None


__all__ = [
    "BROADCAST",
    "JOIN_TEXT",
    "LEAVE_TEXT",
    "Message",
    "MessageKind",
    "POSTABLE_KINDS",
    "parse_kind",
    "status_message",
]
