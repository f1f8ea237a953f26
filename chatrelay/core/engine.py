from __future__ import annotations

import logging
from typing import Any, List

from pydantic import ValidationError

from .clock import Clock
from .errors import InvalidArgument, Rejected, StorageFailure
from .messages import MessageLog
from .participants import Participant, ParticipantRegistry
from .proto import JOIN_TEXT, POSTABLE_KINDS, Message, parse_kind, status_message

log = logging.getLogger("chatrelay.engine")


class Engine:
    """Operations consumed by the transport layer.

    The registry and the log are injected; the same instances are handed to
    the PresenceReaper so both sides see one shared state.
    """

    def __init__(self, registry: ParticipantRegistry, messages: MessageLog, clock: Clock) -> None:
        self.registry = registry
        self.messages = messages
        self.clock = clock

    async def join_participant(self, name: str) -> Participant:
        """Register ``name`` and announce it.

        A failed announcement leaves the registration in place and re-raises
        the StorageFailure.
        """
        participant = await self.registry.register(name)
        try:
            await self.messages.append(status_message(name, JOIN_TEXT, self.clock.stamp()))
        except StorageFailure:
            log.error("Participant %s registered but join notice was not stored", name)
            raise
        return participant

    async def record_heartbeat(self, name: str) -> Participant:
        return await self.registry.heartbeat(name)

    async def post_message(self, from_: str, to: str, text: str, kind: Any) -> Message:
        try:
            message_kind = parse_kind(kind)
        except ValueError as exc:
            raise InvalidArgument(str(exc)) from None
        if message_kind not in POSTABLE_KINDS:
            raise InvalidArgument(f"participants cannot post {message_kind.value!r} messages")
        if not await self.registry.is_live(from_):
            log.info("Rejected message from unknown sender %s", from_)
            raise Rejected(f"sender {from_!r} is not a live participant")
        try:
            message = Message(from_=from_, to=to, text=text, kind=message_kind, time=self.clock.stamp())
        except ValidationError as exc:
            raise InvalidArgument(f"malformed message: {exc.errors()[0]['msg']}") from None
        return await self.messages.append(message)

    async def list_participants(self) -> List[Participant]:
        return await self.registry.list()

    async def list_visible_messages(self, viewer: str, limit: Any = None) -> List[Message]:
        return await self.messages.query(viewer, limit)


__all__ = ["Engine"]
