"""Logical reader over a shard set."""

from __future__ import annotations

import os

from multiblob.errors import (
    BadLength,
    InvalidSeek,
    OutOfBounds,
    SeekOverflow,
    TransportFailure,
    UnknownHandle,
)
from multiblob.header import DEFAULT_BLOCK_SIZE, build_index
from multiblob.logging_config import log
from multiblob.shard import MAX_OFFSET, ShardIndex
from multiblob.stores.base import BlobStore

MIN_OFFSET = -(2**63)


class Reader:
    """Seekable, read-only view of one or many blobs as a single byte stream.

    The cursor is the only mutable state. A failed read leaves it where it
    was before the call.
    """

    def __init__(self, store: BlobStore, container: str, pattern: str, index: ShardIndex) -> None:
        self.store = store
        self.container = container
        self.pattern = pattern
        self.index = index
        self.offset = 0
        self.closed = False

    @classmethod
    def open(
        cls,
        store: BlobStore,
        container: str,
        pattern: str,
        block_size: int = DEFAULT_BLOCK_SIZE,
    ) -> Reader:
        """Resolve *pattern*, analyse the shard headers and return a reader at offset 0."""
        index = build_index(store, container, pattern, block_size)
        log.debug(
            "Opened reader on %s/%s: %d shards, %d bytes",
            container,
            pattern,
            index.num_shards,
            index.total_length,
        )
        return cls(store, container, pattern, index)

    @property
    def total_size(self) -> int:
        return self.index.total_length

    def _check_open(self) -> None:
        if self.closed:
            raise UnknownHandle("Reader is closed.")

    def seek(self, offset: int, whence: int = os.SEEK_SET) -> int:
        """Move the cursor and return its new value.

        ``SEEK_END`` is relative to the last byte of a non-empty file (to 0
        for an empty one). Seeking past the end is allowed.
        """
        self._check_open()
        if not MIN_OFFSET <= offset <= MAX_OFFSET:
            raise SeekOverflow(f"Seek offset {offset} is out of the 64-bit range.")

        total = self.total_size
        if whence == os.SEEK_SET:
            target = offset
        elif whence == os.SEEK_CUR:
            if offset > MAX_OFFSET - self.offset:
                raise SeekOverflow("Signed overflow prevented")
            target = self.offset + offset
        elif whence == os.SEEK_END:
            base = total - 1 if total > 0 else 0
            if offset > MAX_OFFSET - base:
                raise SeekOverflow("Signed overflow prevented")
            target = base + offset
        else:
            raise InvalidSeek(f"Invalid seek mode {whence}")

        if target < 0:
            raise InvalidSeek(f"Invalid seek offset {target}")
        self.offset = target
        return target

    def tell(self) -> int:
        return self.offset

    def read(self, size: int, count: int = 1) -> bytes:
        """Read *count* elements of *size* bytes from the cursor.

        Requests running past the end are shortened to the end of the file;
        the returned bytes are exactly what was delivered.
        """
        self._check_open()
        if size <= 0:
            raise BadLength(f"Invalid element size {size}")
        if count < 0:
            raise BadLength(f"Invalid element count {count}")
        if count == 0:
            return b""
        if size > MAX_OFFSET // count:
            raise BadLength("product size * count is too large, would overflow")
        to_read = size * count

        if self.offset > MAX_OFFSET - to_read:
            raise SeekOverflow("signed overflow prevented on reading attempt")

        total = self.total_size
        if self.offset >= total:
            raise OutOfBounds("Error trying to read more bytes while already out of bounds")
        if self.offset + to_read > total:
            log.debug(
                "offset %d, req len %d exceeds file size (%d) -> reducing len to %d",
                self.offset,
                to_read,
                total,
                total - self.offset,
            )
            to_read = total - self.offset

        return self._read_bytes(to_read)

    def _read_bytes(self, to_read: int) -> bytes:
        """Read *to_read* bytes at the cursor, walking across shards.

        1. Binary-search the shard holding the cursor.
        2. Read the rest of that shard's logical range, or less.
        3. Continue with the next shards, past their header, until done.
        """
        index = self.index
        start = self.offset
        parts: list[bytes] = []
        idx = index.lookup(start)
        cursor = start
        remaining = to_read
        while remaining > 0:
            length = min(remaining, index.cumulative[idx] - cursor)
            if length > 0:
                name = index.shards[idx].name
                physical = index.physical_offset(idx, cursor)
                data = self.store.read_range(self.container, name, physical, length)
                if len(data) != length:
                    raise TransportFailure(
                        None,
                        f"Short read on {name}: expected {length} bytes, got {len(data)}",
                    )
                parts.append(data)
                cursor += length
                remaining -= length
            idx += 1
        # The cursor only moves once every part has been delivered.
        self.offset = cursor
        return b"".join(parts)

    def close(self) -> None:
        self.closed = True
