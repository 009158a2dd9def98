"""VirtualFile, a file-like, lazily fetched view of a (multi-)blob."""

from __future__ import annotations

import os
from collections.abc import Iterator

from multiblob.reader import Reader

DEFAULT_CHUNK_SIZE = 4 * 1024 * 1024


class VirtualFile:
    """A bytes-like, seekable object backed by one or many blobs.

    Supports ``vf[n:n+k]`` with O(log n) shard lookup; only the needed
    ranges are fetched from the store. Slicing does not move the cursor used
    by :meth:`read`.

    This is *not* an ``io.RawIOBase`` subclass: ``SEEK_END`` follows the
    driver convention of counting from the last byte, not from the size.
    """

    def __init__(self, reader: Reader, chunk_size: int = DEFAULT_CHUNK_SIZE) -> None:
        self._reader = reader
        self._chunk_size = chunk_size

    # -- stream access ---------------------------------------------------------

    def read(self, size: int = -1) -> bytes:
        """Read up to *size* bytes (everything left when negative)."""
        remaining = len(self) - self._reader.tell()
        if remaining <= 0 or size == 0:
            return b""
        if size < 0 or size > remaining:
            size = remaining
        return self._reader.read(size)

    def seek(self, offset: int, whence: int = os.SEEK_SET) -> int:
        return self._reader.seek(offset, whence)

    def tell(self) -> int:
        return self._reader.tell()

    def close(self) -> None:
        self._reader.close()

    @property
    def reader(self) -> Reader:
        return self._reader

    @property
    def closed(self) -> bool:
        return self._reader.closed

    def __enter__(self) -> VirtualFile:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # -- bytes protocol --------------------------------------------------------

    def __len__(self) -> int:
        return self._reader.total_size

    def _fetch(self, start: int, stop: int) -> bytes:
        if start >= stop:
            return b""
        saved = self._reader.tell()
        try:
            self._reader.seek(start)
            return self._reader.read(stop - start)
        finally:
            self._reader.seek(saved)

    def __getitem__(self, key: int | slice) -> int | bytes:
        if isinstance(key, int):
            if key < 0:
                key = len(self) + key
            if key < 0 or key >= len(self):
                raise IndexError("index out of range")
            return self._fetch(key, key + 1)[0]
        if isinstance(key, slice):
            start, stop, step = key.indices(len(self))
            if step != 1:
                # Fetch the covering range once and stride through it.
                positions = range(start, stop, step)
                if not positions:
                    return b""
                lo = min(positions[0], positions[-1])
                data = self._fetch(lo, max(positions[0], positions[-1]) + 1)
                return bytes(data[i - lo] for i in positions)
            return self._fetch(start, stop)
        raise TypeError(f"indices must be integers or slices, not {type(key).__name__}")

    def __repr__(self) -> str:
        r = self._reader
        return (
            f"VirtualFile(container={r.container!r}, pattern={r.pattern!r}, "
            f"length={len(self):,}, shards={r.index.num_shards})"
        )

    def find(self, sub: bytes, start: int = 0, end: int | None = None) -> int:
        """Return the lowest logical offset of *sub* in ``[start, end)``, or -1.

        Scans chunk by chunk with an overlap so that matches spanning a chunk
        boundary are found.
        """
        if end is None or end > len(self):
            end = len(self)
        overlap = len(sub) - 1 if len(sub) > 1 else 0
        pos = start
        while pos < end:
            chunk_end = min(end, pos + self._chunk_size)
            chunk = self._fetch(max(start, pos - overlap), chunk_end)
            found = chunk.find(sub)
            if found != -1:
                return max(start, pos - overlap) + found
            pos = chunk_end
        return -1 if sub else min(start, len(self))

    def __contains__(self, item: bytes) -> bool:
        return self.find(item) != -1

    def __iter__(self) -> Iterator[bytes]:
        """Iterate over lines from the cursor, ``\\n`` included."""
        pending = b""
        while True:
            chunk = self.read(self._chunk_size)
            if not chunk:
                break
            pending += chunk
            *lines, pending = pending.split(b"\n")
            for line in lines:
                yield line + b"\n"
        if pending:
            yield pending

    def __bool__(self) -> bool:
        return len(self) > 0
