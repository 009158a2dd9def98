"""File-system based blob store."""

from __future__ import annotations

import errno
from collections.abc import Iterator
from pathlib import Path

from multiblob.errors import TransportFailure
from multiblob.stores.base import BlobItem, BlobStore


class FileStore(BlobStore):
    """Store that keeps blobs as local files.

    Containers are directories directly under ``root``; blob names may
    contain ``/`` and map onto sub-directories. Listing is lexicographic,
    like the remote stores.
    """

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)

    def _container_path(self, container: str) -> Path:
        return self.root / container

    def _blob_path(self, container: str, name: str) -> Path:
        return self._container_path(container) / name

    def list_blobs(self, container: str, prefix: str = "") -> Iterator[BlobItem]:
        base = self._container_path(container)
        if not base.is_dir():
            raise TransportFailure(404, f"container not found: {container}")
        names = sorted(
            p.relative_to(base).as_posix() for p in base.rglob("*") if p.is_file()
        )
        for name in names:
            if name.startswith(prefix):
                yield BlobItem(name=name, size=(base / name).stat().st_size)

    def get_size(self, container: str, name: str) -> int:
        path = self._blob_path(container, name)
        try:
            if not path.is_file():
                raise TransportFailure(404, f"blob not found: {container}/{name}")
            return path.stat().st_size
        except OSError as exc:
            raise _failure(exc) from exc

    def read_range(self, container: str, name: str, offset: int, length: int) -> bytes:
        try:
            with open(self._blob_path(container, name), "rb") as f:
                f.seek(offset)
                return f.read(length)
        except OSError as exc:
            raise _failure(exc) from exc

    def create_object(self, container: str, name: str) -> bool:
        path = self._blob_path(container, name)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(b"")
        except OSError as exc:
            raise _failure(exc) from exc
        return True

    def create_if_not_exists(self, container: str, name: str) -> bool:
        if self.exists(container, name):
            return False
        return self.create_object(container, name)

    def append_block(self, container: str, name: str, data: bytes) -> None:
        path = self._blob_path(container, name)
        if not path.is_file():
            raise TransportFailure(404, f"blob not found: {container}/{name}")
        try:
            with open(path, "ab") as f:
                f.write(data)
        except OSError as exc:
            raise _failure(exc) from exc

    def delete(self, container: str, name: str) -> bool:
        path = self._blob_path(container, name)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as exc:
            raise _failure(exc) from exc
        return True

    def ping(self) -> None:
        if not self.root.is_dir():
            raise TransportFailure(404, f"store root not found: {self.root}")


def _failure(exc: OSError) -> TransportFailure:
    if exc.errno == errno.ENOENT:
        return TransportFailure(404, f"not found: {exc.filename}")
    if exc.errno in (errno.EACCES, errno.EPERM):
        return TransportFailure(403, str(exc))
    return TransportFailure(None, str(exc))
