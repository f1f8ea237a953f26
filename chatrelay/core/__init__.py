from .clock import Clock
from .engine import Engine
from .errors import Conflict, InvalidArgument, NotFound, Rejected, RelayError, StorageFailure
from .messages import MessageLog
from .participants import Participant, ParticipantRegistry
from .proto import BROADCAST, Message, MessageKind
from .reaper import PresenceReaper
from .store import MemoryStore, MessageStore, SqliteStore

__all__ = [
    "BROADCAST",
    "Clock",
    "Conflict",
    "Engine",
    "InvalidArgument",
    "MemoryStore",
    "Message",
    "MessageKind",
    "MessageLog",
    "MessageStore",
    "NotFound",
    "Participant",
    "ParticipantRegistry",
    "PresenceReaper",
    "Rejected",
    "RelayError",
    "SqliteStore",
    "StorageFailure",
]
