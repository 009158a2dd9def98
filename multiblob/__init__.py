"""multiblob: glob-addressed blob shards read and written as single files."""

__version__ = "0.1.0"

from multiblob.core import VirtualFile  # noqa: E402
from multiblob.driver import Driver  # noqa: E402
from multiblob.errors import MultiblobError, get_last_error  # noqa: E402
from multiblob.reader import Reader  # noqa: E402
from multiblob.shard import HeaderInfo, ShardIndex, ShardMeta  # noqa: E402
from multiblob.stores import BlobStore, FileStore  # noqa: E402
from multiblob.writer import Writer, WriterMode  # noqa: E402

__all__ = [
    "BlobStore",
    "Driver",
    "FileStore",
    "HeaderInfo",
    "MultiblobError",
    "Reader",
    "ShardIndex",
    "ShardMeta",
    "VirtualFile",
    "Writer",
    "WriterMode",
    "get_last_error",
]
