"""Transfers between virtual files and local files."""

from __future__ import annotations

from pathlib import Path

from multiblob.errors import TransportFailure
from multiblob.logging_config import log
from multiblob.reader import Reader
from multiblob.writer import Writer

DEFAULT_DOWNLOAD_CHUNK = 10 * 1024 * 1024


def copy_to_local(reader: Reader, dest: str | Path, chunk_size: int = DEFAULT_DOWNLOAD_CHUNK) -> int:
    """Stream the whole virtual file behind *reader* into *dest*.

    Never holds more than one chunk in memory at a time. Returns the number
    of bytes written. On failure the reader is rewound to offset 0 and the
    error propagates; *dest* may then hold a partial copy.
    """
    dest = Path(dest)
    total = reader.total_size
    reader.seek(0)
    written = 0
    try:
        with open(dest, "wb") as f:
            while written < total:
                chunk = reader.read(min(chunk_size, total - written))
                f.write(chunk)
                written += len(chunk)
    except (OSError, TransportFailure):
        reader.seek(0)
        raise
    log.debug("Copied %d bytes from %s/%s to %s", written, reader.container, reader.pattern, dest)
    return written


def copy_from_local(src: str | Path, writer: Writer, chunk_size: int | None = None) -> int:
    """Append the content of local file *src* to *writer*, chunk by chunk.

    Returns the number of bytes uploaded.
    """
    src = Path(src)
    chunk_size = chunk_size or writer.max_block_size
    sent = 0
    with open(src, "rb") as f:
        while True:
            chunk = f.read(chunk_size)
            if not chunk:
                break
            sent += writer.write(chunk)
    log.debug("Copied %d bytes from %s to %s/%s", sent, src, writer.container, writer.name)
    return sent
