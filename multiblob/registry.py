"""Tables of open streams addressed by generation-tagged handles."""

from __future__ import annotations

import itertools
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from multiblob.errors import UnknownHandle

T = TypeVar("T")

_table_tokens = itertools.count(1)


@dataclass(frozen=True)
class Handle:
    """Opaque reference to an open stream.

    A handle stays valid until its stream is closed. Reusing a freed slot
    bumps its generation, so a stale handle never resolves to the stream
    that took its place, and a handle issued by one table is unknown to
    every other table.
    """

    table: int
    kind: str
    slot: int
    generation: int


class _Slot:
    __slots__ = ("generation", "obj", "position")

    def __init__(self) -> None:
        self.generation = 0
        self.obj: Any = None
        self.position = -1


class HandleTable(Generic[T]):
    """Open streams of one kind.

    Live handles are also kept in a dense list so that they can be counted
    and iterated; removal swaps the last entry into the freed position, so
    iteration order is unspecified and must not be relied upon.
    """

    def __init__(self, kind: str) -> None:
        self.kind = kind
        self.token = next(_table_tokens)
        self._slots: list[_Slot] = []
        self._free: list[int] = []
        self._live: list[Handle] = []

    def insert(self, obj: T) -> Handle:
        if self._free:
            index = self._free.pop()
        else:
            index = len(self._slots)
            self._slots.append(_Slot())
        slot = self._slots[index]
        slot.obj = obj
        slot.position = len(self._live)
        handle = Handle(self.token, self.kind, index, slot.generation)
        self._live.append(handle)
        return handle

    def find(self, handle: object) -> T | None:
        """Return the stream for *handle*, or None if it is not open here."""
        if not isinstance(handle, Handle) or handle.table != self.token:
            return None
        if not 0 <= handle.slot < len(self._slots):
            return None
        slot = self._slots[handle.slot]
        if slot.obj is None or slot.generation != handle.generation:
            return None
        return slot.obj

    def get(self, handle: object) -> T:
        obj = self.find(handle)
        if obj is None:
            raise UnknownHandle(f"Cannot identify stream as a {self.kind} stream.")
        return obj

    def remove(self, handle: object) -> T:
        """Close *handle* in this table and return its stream."""
        obj = self.get(handle)
        slot = self._slots[handle.slot]  # type: ignore[union-attr]

        # swap-and-pop
        last = self._live.pop()
        if last != handle:
            self._live[slot.position] = last
            self._slots[last.slot].position = slot.position

        slot.obj = None
        slot.position = -1
        slot.generation += 1
        self._free.append(handle.slot)  # type: ignore[union-attr]
        return obj

    def clear(self) -> None:
        for handle in list(self._live):
            self.remove(handle)

    def __contains__(self, handle: object) -> bool:
        return self.find(handle) is not None

    def __len__(self) -> int:
        return len(self._live)

    def __iter__(self) -> Iterator[Handle]:
        return iter(list(self._live))
