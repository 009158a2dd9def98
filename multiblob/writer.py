"""Append-only writer on a single blob."""

from __future__ import annotations

import enum

from multiblob.config import MIB
from multiblob.errors import TransportFailure, UnknownHandle
from multiblob.listing import filter_list
from multiblob.logging_config import log
from multiblob.stores.base import BlobStore
from multiblob.uri import find_pattern_special_char, unescape

DEFAULT_MAX_BLOCK_SIZE = 100 * MIB


class WriterMode(enum.Enum):
    CREATE = "w"
    APPEND = "a"


class Writer:
    """Writes to one physical blob by appending blocks.

    Every append is durable when :meth:`write` returns, so there is no
    commit step: :meth:`flush` and :meth:`close` do not talk to the store.
    """

    def __init__(
        self,
        store: BlobStore,
        container: str,
        name: str,
        max_block_size: int = DEFAULT_MAX_BLOCK_SIZE,
    ) -> None:
        self.store = store
        self.container = container
        self.name = name
        self.max_block_size = max_block_size
        self.closed = False

    @classmethod
    def open(
        cls,
        store: BlobStore,
        container: str,
        name: str,
        mode: WriterMode,
        max_block_size: int = DEFAULT_MAX_BLOCK_SIZE,
    ) -> Writer:
        """Create (``CREATE``) or reuse-or-create (``APPEND``) the target blob."""
        if mode is WriterMode.CREATE:
            if not store.create_object(container, name):
                raise TransportFailure(409, f"Blob {container}/{name} was not created.")
        else:
            if not store.create_if_not_exists(container, name):
                log.debug("Blob %s/%s already exists, no creation needed before appending.", container, name)
        return cls(store, container, name, max_block_size)

    @classmethod
    def open_for_append(
        cls,
        store: BlobStore,
        container: str,
        pattern: str,
        max_block_size: int = DEFAULT_MAX_BLOCK_SIZE,
    ) -> Writer:
        """Open *pattern* for appending.

        A pattern targets the last matching blob in listing order.
        """
        first_special = find_pattern_special_char(pattern)
        if first_special is None:
            target = unescape(pattern)
        else:
            target = filter_list(store, container, pattern, first_special)[-1].name
            log.debug("Appending to last shard %s of %s", target, pattern)
        return cls.open(store, container, target, WriterMode.APPEND, max_block_size)

    def write(self, data: bytes) -> int:
        """Append *data* and return the number of bytes written.

        Buffers larger than ``max_block_size`` go out as several blocks. A
        failure part-way leaves the earlier blocks in place.
        """
        if self.closed:
            raise UnknownHandle("Writer is closed.")
        view = memoryview(data).cast("B")
        for start in range(0, len(view), self.max_block_size):
            self.store.append_block(
                self.container, self.name, bytes(view[start : start + self.max_block_size])
            )
        return len(view)

    def flush(self) -> None:
        if self.closed:
            raise UnknownHandle("Writer is closed.")

    def close(self) -> None:
        self.closed = True
