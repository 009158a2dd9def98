"""Abstract interface of the remote object store."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterator
from dataclasses import dataclass

from multiblob.errors import TransportFailure


@dataclass(frozen=True)
class BlobItem:
    """One entry of a container listing."""

    name: str
    size: int
    deleted: bool = False


class BlobStore(ABC):
    """Abstract base class for blob storage backends.

    Every method raises :class:`~multiblob.errors.TransportFailure` on failure;
    implementations translate their native errors at this boundary.
    """

    @abstractmethod
    def list_blobs(self, container: str, prefix: str = "") -> Iterator[BlobItem]:
        """Yield the blobs whose name starts with *prefix*, in listing order."""
        ...

    @abstractmethod
    def get_size(self, container: str, name: str) -> int:
        """Return the size in bytes of a blob (404 if it does not exist)."""
        ...

    @abstractmethod
    def read_range(self, container: str, name: str, offset: int, length: int) -> bytes:
        """Return up to *length* bytes starting at *offset*.

        Fewer bytes are returned only when the blob ends before
        ``offset + length``.
        """
        ...

    @abstractmethod
    def create_object(self, container: str, name: str) -> bool:
        """Create an empty appendable blob, replacing any existing one.

        Returns True when a blob was created.
        """
        ...

    @abstractmethod
    def create_if_not_exists(self, container: str, name: str) -> bool:
        """Create an empty appendable blob unless one exists.

        Returns True when a blob was created, False when it already existed.
        """
        ...

    @abstractmethod
    def append_block(self, container: str, name: str, data: bytes) -> None:
        """Append *data* at the end of an existing blob."""
        ...

    @abstractmethod
    def delete(self, container: str, name: str) -> bool:
        """Delete a blob. Returns False when there was nothing to delete."""
        ...

    @abstractmethod
    def ping(self) -> None:
        """Check that the store is reachable."""
        ...

    def exists(self, container: str, name: str) -> bool:
        """Return True when the blob exists."""
        try:
            self.get_size(container, name)
        except TransportFailure as exc:
            if exc.status == 404:
                return False
            raise
        return True
