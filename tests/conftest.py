"""Shared fixtures: a FileStore rooted in tmp_path and a connected Driver."""

import pytest

from multiblob import Driver, FileStore
from multiblob.config import Settings

CONTAINER = "data"
BASE_URI = "http://127.0.0.1:10000/devstoreaccount1/data/"


def put_blob(store, name, data, container=CONTAINER):
    """Create blob *name* holding *data*."""
    store.create_object(container, name)
    if data:
        store.append_block(container, name, data)


@pytest.fixture
def store(tmp_path):
    (tmp_path / CONTAINER).mkdir()
    return FileStore(tmp_path)


@pytest.fixture
def put(store):
    def _put(name, data, container=CONTAINER):
        put_blob(store, name, data, container)

    return _put


@pytest.fixture
def settings(tmp_path):
    return Settings(store="file", root=str(tmp_path), header_block_size=4, download_chunk_size=7)


@pytest.fixture
def driver(settings, store):
    d = Driver(settings, store=store)
    d.connect()
    yield d
    d.disconnect()


@pytest.fixture
def sharded(put):
    """Three 100-byte shards, each starting with the same 10-byte header."""
    header = b"c1,c2,c3,\n"
    bodies = [bytes([ord("a") + i]) * 90 for i in range(3)]
    for i, body in enumerate(bodies):
        put(f"export/part-{i:02d}.csv", header + body)
    return header, bodies
