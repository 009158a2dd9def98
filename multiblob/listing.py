"""Shard enumeration: resolve an object name or pattern to an ordered shard list."""

from __future__ import annotations

from multiblob.errors import NoMatch
from multiblob.logging_config import log
from multiblob.matching import glob_match
from multiblob.shard import ShardMeta
from multiblob.stores.base import BlobStore
from multiblob.uri import find_pattern_special_char, unescape


def filter_list(
    store: BlobStore, container: str, pattern: str, first_special: int
) -> list[ShardMeta]:
    """List the blobs of *container* matching *pattern*.

    Only names starting with the literal part of the pattern are requested
    from the store; the full pattern is then applied to each of them.
    Deleted entries are skipped. Listing order is kept.

    Raises:
        NoMatch: When no blob matches.
    """
    prefix = unescape(pattern[:first_special])
    log.debug("Listing %s with prefix %r for pattern %r", container, prefix, pattern)
    shards = [
        ShardMeta(name=item.name, physical_size=item.size)
        for item in store.list_blobs(container, prefix)
        if not item.deleted and glob_match(item.name, pattern)
    ]
    if not shards:
        raise NoMatch(f"No blob matching pattern {pattern!r} in container {container!r}.")
    return shards


def resolve_shards(store: BlobStore, container: str, pattern: str) -> list[ShardMeta]:
    """Return the shards named by *pattern*.

    A name without unescaped metacharacters is looked up directly and
    yields a single shard; a missing object surfaces as the store's 404.
    """
    first_special = find_pattern_special_char(pattern)
    if first_special is None:
        name = unescape(pattern)
        return [ShardMeta(name=name, physical_size=store.get_size(container, name))]
    return filter_list(store, container, pattern, first_special)
