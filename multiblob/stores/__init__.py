"""Blob storage backends."""

from __future__ import annotations

from typing import TYPE_CHECKING

from multiblob.stores.base import BlobItem, BlobStore
from multiblob.stores.file_store import FileStore

if TYPE_CHECKING:
    from multiblob.config import Settings

__all__ = ["BlobItem", "BlobStore", "FileStore", "make_store"]

# S3Store imported lazily to keep boto3 off the import path of file-only use.


def make_store(settings: Settings) -> BlobStore:
    """Build the store named by ``settings.store``."""
    if settings.store == "file":
        return FileStore(settings.root)
    if settings.store == "s3":
        from multiblob.stores.s3_store import S3Store

        return S3Store(
            endpoint_url=settings.endpoint_url,
            signature_version=settings.signature_version,
            aws_access_key_id=settings.access_key_id,
            aws_secret_access_key=settings.secret_access_key,
            region_name=settings.region,
        )
    raise ValueError(f"unknown store type: {settings.store!r}")
