from __future__ import annotations


class RelayError(Exception):
    """Base class for every error the relay core reports to its caller."""

    code = "RELAY_ERROR"

    def __init__(self, detail: str = "") -> None:
        super().__init__(detail or self.code)
        self.detail = detail


class Conflict(RelayError):
    """A live participant already holds the requested name."""

    code = "NAME_IN_USE"


class NotFound(RelayError):
    """No live participant with that name; the caller should re-register."""

    code = "USER_NOT_FOUND"


class Rejected(RelayError):
    """Message post from a sender that is not currently live."""

    code = "SENDER_UNKNOWN"


class InvalidArgument(RelayError, ValueError):
    code = "INVALID_ARGUMENT"


class StorageFailure(RelayError):
    """The message store could not complete a read or append."""

    code = "STORAGE_FAILURE"


__all__ = ["RelayError", "Conflict", "NotFound", "Rejected", "InvalidArgument", "StorageFailure"]
