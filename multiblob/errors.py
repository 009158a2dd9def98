"""Exception taxonomy and the process-wide last-error slot."""

from __future__ import annotations


class MultiblobError(Exception):
    """Base class for every failure raised by multiblob."""


class InvalidUri(MultiblobError):
    """The URI scheme is unsupported or the object segment is missing."""


class NoMatch(MultiblobError):
    """A pattern resolved to zero shards."""


class HeaderScanFailed(MultiblobError):
    """No line terminator was found in the first shard of a multi-shard file."""


class SeekOverflow(MultiblobError):
    """Offset arithmetic would leave the signed 64-bit range."""


class InvalidSeek(MultiblobError):
    """A seek resolved to a negative offset or used an unknown whence."""


class OutOfBounds(MultiblobError):
    """A non-empty read was requested at or past the end of the file."""


class BadLength(MultiblobError):
    """An element size of zero, or a size/count product that cannot be represented."""


class UnknownHandle(MultiblobError):
    """The handle is not open (never was, or was already closed)."""


class InvalidMode(MultiblobError):
    """Open mode is not one of ``r``, ``w`` or ``a``."""


class NotConnected(MultiblobError):
    """The driver was used before ``connect()`` or after ``disconnect()``."""


class TransportFailure(MultiblobError):
    """A storage call failed; carries the status/reason pair of the store."""

    def __init__(self, status: int | None, reason: str) -> None:
        super().__init__(f"{status}: {reason}" if status is not None else reason)
        self.status = status
        self.reason = reason


# Last-write-wins, not thread safe. Only the most recent failure is kept.
_last_error: str | None = None


def set_last_error(message: str) -> None:
    global _last_error
    _last_error = message


def get_last_error() -> str | None:
    return _last_error
