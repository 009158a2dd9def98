"""Driver: the file-style API over blob storage.

Streams are addressed by :class:`~multiblob.registry.Handle` values handed
out by :meth:`Driver.open`. Every failing call records its message in the
process-wide last-error slot (see :func:`multiblob.errors.get_last_error`)
before raising.
"""

from __future__ import annotations

import functools
import os
from pathlib import Path

from multiblob import __version__
from multiblob.config import Settings, load_settings
from multiblob.core import VirtualFile
from multiblob.errors import (
    BadLength,
    InvalidMode,
    InvalidUri,
    MultiblobError,
    NoMatch,
    NotConnected,
    TransportFailure,
    UnknownHandle,
    get_last_error,
    set_last_error,
)
from multiblob.header import logical_size
from multiblob.listing import resolve_shards
from multiblob.logging_config import log
from multiblob.reader import Reader
from multiblob.registry import Handle, HandleTable
from multiblob.stores import BlobStore, make_store
from multiblob.transfer import copy_from_local, copy_to_local
from multiblob.uri import SERVICE_BLOB, ParsedUri, parse_uri, unescape
from multiblob.writer import Writer, WriterMode

DISK_FREE_SPACE = 5 * 1024**4
PREFERRED_BUFFER_SIZE = 4 * 1024 * 1024


def _records_errors(method):
    """Record and log the failure of a driver call before re-raising it."""

    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        try:
            return method(self, *args, **kwargs)
        except (MultiblobError, OSError) as exc:
            message = f"{method.__name__}: {exc}"
            set_last_error(message)
            log.error(message)
            raise

    return wrapper


class Driver:
    """Open, read, write and manage virtual files addressed by URI.

    Not thread safe: callers serialise access to the driver and its handles.
    """

    name = "multiblob driver"
    version = __version__
    scheme = "https"

    def __init__(self, settings: Settings | None = None, store: BlobStore | None = None) -> None:
        self.settings = settings or load_settings()
        self._store = store
        self._connected = False
        self.readers: HandleTable[Reader] = HandleTable("reader")
        self.writers: HandleTable[Writer] = HandleTable("writer")

    # -- lifecycle ---------------------------------------------------------------

    @_records_errors
    def connect(self) -> None:
        """Build the store if needed and check that it answers."""
        log.debug("Connect (store=%s)", self.settings.store)
        if self._store is None:
            self._store = make_store(self.settings)
        self._store.ping()
        self._connected = True

    def disconnect(self) -> None:
        self.readers.clear()
        self.writers.clear()
        self._connected = False

    def is_connected(self) -> bool:
        return self._connected

    def is_read_only(self) -> bool:
        return False

    def preferred_buffer_size(self) -> int:
        return PREFERRED_BUFFER_SIZE

    @property
    def store(self) -> BlobStore:
        self._check_connected()
        return self._store

    def _check_connected(self) -> None:
        if not self._connected or self._store is None:
            raise NotConnected("Error: driver not connected.")

    def _parse(self, uri: str) -> ParsedUri:
        parsed = parse_uri(uri, self.settings.production_domains)
        if parsed.service != SERVICE_BLOB:
            raise InvalidUri(f"Functionality not implemented for this type of service: {uri}")
        return parsed

    # -- streams -----------------------------------------------------------------

    @_records_errors
    def open(self, uri: str, mode: str = "r") -> Handle:
        """Open *uri* for reading (``r``), writing (``w``) or appending (``a``)."""
        log.debug("open %s %s", uri, mode)
        store = self.store
        if mode not in ("r", "w", "a"):
            raise InvalidMode(f"Invalid open mode: {mode!r}")
        parsed = self._parse(uri)

        if mode == "r":
            reader = Reader.open(
                store, parsed.container, parsed.object, self.settings.header_block_size
            )
            return self.readers.insert(reader)
        if mode == "w":
            writer = Writer.open(
                store,
                parsed.container,
                unescape(parsed.object),
                WriterMode.CREATE,
                self.settings.max_block_size,
            )
            return self.writers.insert(writer)
        writer = Writer.open_for_append(
            store, parsed.container, parsed.object, self.settings.max_block_size
        )
        return self.writers.insert(writer)

    @_records_errors
    def open_file(self, uri: str) -> VirtualFile:
        """Open *uri* for reading as a :class:`VirtualFile`, outside the handle tables."""
        log.debug("open_file %s", uri)
        store = self.store
        parsed = self._parse(uri)
        reader = Reader.open(store, parsed.container, parsed.object, self.settings.header_block_size)
        return VirtualFile(reader, self.settings.download_chunk_size)

    @_records_errors
    def close(self, handle: Handle) -> None:
        log.debug("close %s", handle)
        if handle in self.readers:
            self.readers.remove(handle).close()
            return
        if handle in self.writers:
            self.writers.remove(handle).close()
            return
        raise UnknownHandle("Cannot identify stream.")

    @_records_errors
    def seek(self, handle: Handle, offset: int, whence: int = os.SEEK_SET) -> int:
        log.debug("seek %s %d %d", handle, offset, whence)
        self._check_connected()
        return self.readers.get(handle).seek(offset, whence)

    @_records_errors
    def tell(self, handle: Handle) -> int:
        self._check_connected()
        return self.readers.get(handle).tell()

    @_records_errors
    def read(self, handle: Handle, size: int, count: int = 1) -> bytes:
        """Read *count* elements of *size* bytes; see :meth:`Reader.read`."""
        log.debug("read %s %d %d", handle, size, count)
        self._check_connected()
        return self.readers.get(handle).read(size, count)

    @_records_errors
    def write(self, handle: Handle, data: bytes, size: int = 1, count: int | None = None) -> int:
        """Append ``size * count`` bytes of *data* and return how many were written.

        *count* defaults to as many whole elements as *data* holds.
        """
        log.debug("write %s %d %s", handle, size, count)
        self._check_connected()
        if size <= 0:
            raise BadLength("Error passing size 0 to write")
        writer = self.writers.get(handle)
        view = memoryview(data).cast("B")
        if count is None:
            count = len(view) // size
        if count < 0 or size * count > len(view):
            raise BadLength(f"Buffer of {len(view)} bytes holds fewer than {count} elements of {size} bytes")
        if count == 0:
            return 0
        return writer.write(view[: size * count])

    @_records_errors
    def flush(self, handle: Handle) -> None:
        self._check_connected()
        self.writers.get(handle).flush()

    # -- whole-file operations ---------------------------------------------------

    @_records_errors
    def size(self, uri: str) -> int:
        """Return the logical size of *uri*, header deduplication included."""
        log.debug("size %s", uri)
        store = self.store
        parsed = self._parse(uri)
        return logical_size(store, parsed.container, parsed.object, self.settings.header_block_size)

    def exists(self, uri: str) -> bool:
        log.debug("exist %s", uri)
        if uri.endswith("/"):
            return self.dir_exists(uri)
        return self.file_exists(uri)

    def file_exists(self, uri: str) -> bool:
        """Return True when *uri* names an object or a pattern with matches.

        Failures other than "not found" are recorded as the last error.
        """
        try:
            return self._file_exists(uri)
        except MultiblobError:
            return False

    @_records_errors
    def _file_exists(self, uri: str) -> bool:
        store = self.store
        parsed = self._parse(uri)
        try:
            resolve_shards(store, parsed.container, parsed.object)
        except NoMatch as exc:
            log.debug("%s", exc)
            return False
        except TransportFailure as exc:
            if exc.status == 404:
                log.debug("File not found. %s", exc)
                return False
            raise
        return True

    def dir_exists(self, uri: str) -> bool:
        """Directories are implicit in blob storage and always exist."""
        log.debug("dirExist %s", uri)
        return True

    @_records_errors
    def remove(self, uri: str) -> None:
        log.debug("remove %s", uri)
        store = self.store
        parsed = self._parse(uri)
        name = unescape(parsed.object)
        log.info("Deleting blob: %s.", name)
        if not store.delete(parsed.container, name):
            log.info("The blob didn't exist.")

    def mkdir(self, uri: str) -> None:
        log.debug("mkdir %s", uri)

    def rmdir(self, uri: str) -> None:
        log.debug("rmdir %s (does nothing)", uri)

    def disk_free_space(self, uri: str) -> int:
        log.debug("diskFreeSpace %s", uri)
        return DISK_FREE_SPACE

    @_records_errors
    def copy_to_local(self, uri: str, dest: str | Path) -> int:
        """Download the virtual file *uri* to the local path *dest*."""
        log.debug("copyToLocal %s %s", uri, dest)
        store = self.store
        parsed = self._parse(uri)
        reader = Reader.open(store, parsed.container, parsed.object, self.settings.header_block_size)
        try:
            return copy_to_local(reader, dest, self.settings.download_chunk_size)
        finally:
            reader.close()

    @_records_errors
    def copy_from_local(self, src: str | Path, uri: str) -> int:
        """Upload the local file *src* to a freshly created object *uri*."""
        log.debug("copyFromLocal %s %s", src, uri)
        store = self.store
        parsed = self._parse(uri)
        if not Path(src).is_file():
            raise FileNotFoundError(f"Failed to open local file: {src}")
        writer = Writer.open(
            store,
            parsed.container,
            unescape(parsed.object),
            WriterMode.CREATE,
            self.settings.max_block_size,
        )
        try:
            return copy_from_local(src, writer)
        finally:
            writer.close()

    @staticmethod
    def last_error() -> str | None:
        return get_last_error()
