"""Detection of a header line repeated at the start of every shard.

Sharded table exports usually repeat their column-header line in each
shard. When all shards share the first shard's header byte for byte, the
copies in shards ``1..n-1`` are left out of the logical address space so
the virtual file reads as if the header appeared exactly once.
"""

from __future__ import annotations

from multiblob.config import MIB
from multiblob.errors import HeaderScanFailed
from multiblob.listing import resolve_shards
from multiblob.logging_config import log
from multiblob.shard import HeaderInfo, ShardIndex, ShardMeta
from multiblob.stores.base import BlobStore

DEFAULT_BLOCK_SIZE = 10 * MIB


def find_header(
    store: BlobStore, container: str, shard: ShardMeta, block_size: int = DEFAULT_BLOCK_SIZE
) -> bytes | None:
    """Return the first line of *shard*, terminator included.

    The shard is fetched in *block_size* blocks so that a huge or missing
    first line does not force the whole object into memory at once.
    Returns None when the shard ends without a ``\\n``.
    """
    header = bytearray()
    while len(header) < shard.physical_size:
        block = store.read_range(container, shard.name, len(header), block_size)
        if not block:
            break
        pos = block.find(b"\n")
        if pos != -1:
            header += block[: pos + 1]
            return bytes(header)
        header += block
    return None


def headers_match(
    store: BlobStore, container: str, shards: list[ShardMeta], header: bytes
) -> bool:
    """Return True when every shard in *shards* starts with *header*.

    Stops at the first mismatch. A shard shorter than the header never matches.
    """
    for shard in shards:
        if shard.physical_size < len(header):
            log.debug("Shard %s is shorter than the header", shard.name)
            return False
        if store.read_range(container, shard.name, 0, len(header)) != header:
            log.debug("Shard %s has a different header", shard.name)
            return False
    return True


def analyze_header(
    store: BlobStore,
    container: str,
    shards: list[ShardMeta],
    block_size: int = DEFAULT_BLOCK_SIZE,
) -> HeaderInfo:
    """Compute the header shared by *shards*.

    A single shard is never scanned.

    Raises:
        HeaderScanFailed: When the first of several shards has no line terminator.
    """
    if len(shards) < 2:
        return HeaderInfo()

    header = find_header(store, container, shards[0], block_size)
    if header is None:
        raise HeaderScanFailed(f"Error while reading header of first file {shards[0].name!r}.")

    applies = headers_match(store, container, shards[1:], header)
    log.debug(
        "Header of %d bytes %s across %d shards",
        len(header),
        "shared" if applies else "not shared",
        len(shards),
    )
    return HeaderInfo(header_length=len(header), applies=applies)


def build_index(
    store: BlobStore, container: str, pattern: str, block_size: int = DEFAULT_BLOCK_SIZE
) -> ShardIndex:
    """Resolve *pattern* and return its deduplicated shard index."""
    shards = resolve_shards(store, container, pattern)
    header = analyze_header(store, container, shards, block_size)
    return ShardIndex.build(shards, header)


def logical_size(
    store: BlobStore, container: str, pattern: str, block_size: int = DEFAULT_BLOCK_SIZE
) -> int:
    """Return the size of the virtual file named by *pattern*.

    Unlike :func:`build_index`, a first shard without a line terminator is
    not an error here: the size falls back to the plain sum of the shards'
    physical sizes.
    """
    shards = resolve_shards(store, container, pattern)
    try:
        header = analyze_header(store, container, shards, block_size)
    except HeaderScanFailed as exc:
        log.warning("%s Reporting the size without header deduplication.", exc)
        header = HeaderInfo()
    return ShardIndex.build(shards, header).total_length
