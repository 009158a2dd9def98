"""Shard metadata and the cumulative logical-offset index."""

from __future__ import annotations

from bisect import bisect_right
from dataclasses import dataclass, field

# Offsets are signed 64-bit quantities for every caller of the stream API.
MAX_OFFSET = 2**63 - 1


@dataclass(frozen=True)
class ShardMeta:
    """One physical object of a (possibly multi-object) virtual file."""

    name: str
    physical_size: int


@dataclass(frozen=True)
class HeaderInfo:
    """Header shared by all shards.

    ``applies`` is True only when every shard after the first starts with
    the same ``header_length`` bytes as the first one.
    """

    header_length: int = 0
    applies: bool = False

    @property
    def skip(self) -> int:
        """Bytes to skip at the start of every shard but the first."""
        return self.header_length if self.applies else 0


@dataclass
class ShardIndex:
    """Index mapping logical offsets to shards.

    ``cumulative[i]`` is the logical end offset of shard ``i``. Shard 0
    keeps its full physical size; later shards lose ``header.skip`` bytes.
    Lookup is a binary search over ``cumulative``.
    """

    shards: list[ShardMeta]
    header: HeaderInfo = field(default_factory=HeaderInfo)
    cumulative: list[int] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.cumulative:
            self.cumulative = cumulative_sizes(self.shards, self.header)

    @property
    def total_length(self) -> int:
        return self.cumulative[-1] if self.cumulative else 0

    @property
    def num_shards(self) -> int:
        return len(self.shards)

    @property
    def names(self) -> list[str]:
        return [s.name for s in self.shards]

    def lookup(self, offset: int) -> int:
        """Return the index of the shard holding logical *offset*.

        The result equals ``num_shards`` when *offset* is at or past the end.
        """
        return bisect_right(self.cumulative, offset)

    def shard_start(self, idx: int) -> int:
        """Logical offset of the first byte of shard *idx*."""
        return 0 if idx == 0 else self.cumulative[idx - 1]

    def logical_size(self, idx: int) -> int:
        return self.cumulative[idx] - self.shard_start(idx)

    def physical_offset(self, idx: int, offset: int) -> int:
        """Translate logical *offset*, which lies in shard *idx*, to a position in that shard."""
        if idx == 0:
            return offset
        return offset - self.cumulative[idx - 1] + self.header.skip

    @classmethod
    def build(cls, shards: list[ShardMeta], header: HeaderInfo | None = None) -> ShardIndex:
        """Build a ShardIndex from a shard list and its header analysis."""
        return cls(shards=list(shards), header=header or HeaderInfo())


def cumulative_sizes(shards: list[ShardMeta], header: HeaderInfo) -> list[int]:
    """Return the running totals of the shards' logical sizes."""
    result: list[int] = []
    total = 0
    for i, shard in enumerate(shards):
        size = shard.physical_size
        if i > 0:
            size -= header.skip
        total += size
        result.append(total)
    return result
