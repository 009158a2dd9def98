"""Tests for the append-only writer."""

import pytest

from multiblob.errors import NoMatch, TransportFailure, UnknownHandle
from multiblob.reader import Reader
from multiblob.stores import FileStore
from multiblob.writer import Writer, WriterMode

from conftest import CONTAINER


def _content(store, name):
    return store.read_range(CONTAINER, name, 0, store.get_size(CONTAINER, name))


def test_create_then_read_back(store):
    w = Writer.open(store, CONTAINER, "out/new.bin", WriterMode.CREATE)
    assert w.write(b"hello ") == 6
    assert w.write(b"world") == 5
    w.close()
    reader = Reader.open(store, CONTAINER, "out/new.bin")
    assert reader.read(11) == b"hello world"


def test_create_truncates_existing(store, put):
    put("old.txt", b"previous content")
    Writer.open(store, CONTAINER, "old.txt", WriterMode.CREATE).close()
    assert store.get_size(CONTAINER, "old.txt") == 0


class RefusingStore(FileStore):
    def create_object(self, container, name):
        return False


def test_create_refused_by_store(tmp_path, store):
    with pytest.raises(TransportFailure) as info:
        Writer.open(RefusingStore(tmp_path), CONTAINER, "x.bin", WriterMode.CREATE)
    assert info.value.status == 409


def test_append_creates_missing_blob(store):
    w = Writer.open(store, CONTAINER, "log.txt", WriterMode.APPEND)
    w.write(b"line 1\n")
    assert _content(store, "log.txt") == b"line 1\n"


def test_append_keeps_existing_content(store, put):
    put("log.txt", b"line 1\n")
    w = Writer.open(store, CONTAINER, "log.txt", WriterMode.APPEND)
    w.write(b"line 2\n")
    assert _content(store, "log.txt") == b"line 1\nline 2\n"


def test_append_to_pattern_targets_last_shard(store, sharded):
    w = Writer.open_for_append(store, CONTAINER, "export/part-*.csv")
    assert w.name == "export/part-02.csv"
    w.write(b"ccc")
    assert store.get_size(CONTAINER, "export/part-02.csv") == 103
    assert store.get_size(CONTAINER, "export/part-01.csv") == 100


def test_append_to_pattern_without_match(store):
    with pytest.raises(NoMatch):
        Writer.open_for_append(store, CONTAINER, "export/part-*.csv")


def test_append_to_escaped_name(store):
    w = Writer.open_for_append(store, CONTAINER, r"weird\*name.txt")
    assert w.name == "weird*name.txt"


class RecordingStore(FileStore):
    def __init__(self, root):
        super().__init__(root)
        self.blocks = []

    def append_block(self, container, name, data):
        self.blocks.append(data)
        super().append_block(container, name, data)


def test_large_buffer_split_into_blocks(tmp_path, store):
    recording = RecordingStore(tmp_path)
    w = Writer.open(recording, CONTAINER, "big.bin", WriterMode.CREATE, max_block_size=4)
    assert w.write(b"0123456789") == 10
    assert recording.blocks == [b"0123", b"4567", b"89"]
    assert _content(recording, "big.bin") == b"0123456789"


class FailSecondAppendStore(FileStore):
    def __init__(self, root):
        super().__init__(root)
        self.appends = 0

    def append_block(self, container, name, data):
        self.appends += 1
        if self.appends == 2:
            raise TransportFailure(500, "Internal Server Error")
        super().append_block(container, name, data)


def test_failed_block_keeps_earlier_blocks(tmp_path, store):
    failing = FailSecondAppendStore(tmp_path)
    w = Writer.open(failing, CONTAINER, "part.bin", WriterMode.CREATE, max_block_size=3)
    with pytest.raises(TransportFailure):
        w.write(b"abcdef")
    assert _content(failing, "part.bin") == b"abc"


def test_write_accepts_memoryview(store):
    w = Writer.open(store, CONTAINER, "mv.bin", WriterMode.CREATE)
    assert w.write(memoryview(b"xyz")) == 3
    assert _content(store, "mv.bin") == b"xyz"


def test_closed_writer(store):
    w = Writer.open(store, CONTAINER, "c.bin", WriterMode.CREATE)
    w.flush()
    w.close()
    with pytest.raises(UnknownHandle):
        w.write(b"x")
    with pytest.raises(UnknownHandle):
        w.flush()
