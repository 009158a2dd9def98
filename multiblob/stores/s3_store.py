"""S3/MinIO-compatible blob store."""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any

import boto3
from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError

from multiblob.errors import TransportFailure
from multiblob.logging_config import log
from multiblob.stores.base import BlobItem, BlobStore

# S3 rejects non-final multipart parts below 5 MiB and copy parts above 5 GiB.
MULTIPART_THRESHOLD = 5 * 1024 * 1024
MAX_COPY_PART = 5 * 1024**3


class S3Store(BlobStore):
    """Store backed by an S3-compatible object service.

    Works with AWS S3 and MinIO (via ``endpoint_url``). Containers are
    buckets. S3 has no append primitive, so :meth:`append_block` replaces
    the object with one that ends with the new block.
    """

    def __init__(
        self,
        endpoint_url: str | None = None,
        signature_version: str = "s3v4",
        client: Any = None,
        **boto_kwargs: Any,
    ) -> None:
        if client is None:
            client = boto3.client(
                "s3",
                endpoint_url=endpoint_url,
                config=Config(
                    signature_version=signature_version,
                    s3={"addressing_style": "path"},
                ),
                **boto_kwargs,
            )
        self._client = client

    def list_blobs(self, container: str, prefix: str = "") -> Iterator[BlobItem]:
        paginator = self._client.get_paginator("list_objects_v2")
        try:
            for page in paginator.paginate(Bucket=container, Prefix=prefix):
                for obj in page.get("Contents", []):
                    yield BlobItem(name=obj["Key"], size=int(obj["Size"]))
        except (ClientError, BotoCoreError) as exc:
            raise _failure(exc) from exc

    def get_size(self, container: str, name: str) -> int:
        try:
            resp = self._client.head_object(Bucket=container, Key=name)
        except (ClientError, BotoCoreError) as exc:
            raise _failure(exc) from exc
        return int(resp["ContentLength"])

    def read_range(self, container: str, name: str, offset: int, length: int) -> bytes:
        if length <= 0:
            return b""
        byte_range = f"bytes={offset}-{offset + length - 1}"
        try:
            resp = self._client.get_object(Bucket=container, Key=name, Range=byte_range)
            return resp["Body"].read()
        except ClientError as exc:
            # A range starting past the end is not an error for callers.
            if _status(exc) == 416:
                return b""
            raise _failure(exc) from exc
        except BotoCoreError as exc:
            raise _failure(exc) from exc

    def create_object(self, container: str, name: str) -> bool:
        try:
            self._client.put_object(Bucket=container, Key=name, Body=b"")
        except (ClientError, BotoCoreError) as exc:
            raise _failure(exc) from exc
        return True

    def create_if_not_exists(self, container: str, name: str) -> bool:
        try:
            self._client.put_object(Bucket=container, Key=name, Body=b"", IfNoneMatch="*")
        except ClientError as exc:
            if _status(exc) in (409, 412):
                return False
            raise _failure(exc) from exc
        except BotoCoreError as exc:
            raise _failure(exc) from exc
        return True

    def append_block(self, container: str, name: str, data: bytes) -> None:
        """Append *data* to an existing object.

        Small objects are rewritten whole. From ``MULTIPART_THRESHOLD`` bytes
        on, a multipart upload copies the existing bytes server side and adds
        *data* as the final part, so nothing already stored is downloaded.
        Both paths are conditional on the ETag seen at the start.
        """
        if not data:
            return
        try:
            head = self._client.head_object(Bucket=container, Key=name)
            size = int(head["ContentLength"])
            if size >= MULTIPART_THRESHOLD:
                self._append_multipart(container, name, data, size, head["ETag"])
            else:
                resp = self._client.get_object(Bucket=container, Key=name)
                self._client.put_object(
                    Bucket=container,
                    Key=name,
                    Body=resp["Body"].read() + bytes(data),
                    IfMatch=resp["ETag"],
                )
        except (ClientError, BotoCoreError) as exc:
            raise _failure(exc) from exc
        log.debug("Appended %d bytes to s3://%s/%s", len(data), container, name)

    def _append_multipart(
        self, container: str, name: str, data: bytes, size: int, etag: str
    ) -> None:
        upload_id = self._client.create_multipart_upload(Bucket=container, Key=name)["UploadId"]
        try:
            parts = []
            # Copy parts are capped at 5 GiB; equal ranges keep each one above the 5 MiB minimum.
            count = -(-size // MAX_COPY_PART)
            step = -(-size // count)
            for number, start in enumerate(range(0, size, step), start=1):
                stop = min(size, start + step) - 1
                resp = self._client.upload_part_copy(
                    Bucket=container,
                    Key=name,
                    UploadId=upload_id,
                    PartNumber=number,
                    CopySource={"Bucket": container, "Key": name},
                    CopySourceRange=f"bytes={start}-{stop}",
                    CopySourceIfMatch=etag,
                )
                parts.append({"PartNumber": number, "ETag": resp["CopyPartResult"]["ETag"]})
            number = len(parts) + 1
            resp = self._client.upload_part(
                Bucket=container,
                Key=name,
                UploadId=upload_id,
                PartNumber=number,
                Body=bytes(data),
            )
            parts.append({"PartNumber": number, "ETag": resp["ETag"]})
            self._client.complete_multipart_upload(
                Bucket=container,
                Key=name,
                UploadId=upload_id,
                MultipartUpload={"Parts": parts},
            )
        except (ClientError, BotoCoreError):
            log.debug("Aborting multipart append %s on s3://%s/%s", upload_id, container, name)
            self._client.abort_multipart_upload(Bucket=container, Key=name, UploadId=upload_id)
            raise

    def delete(self, container: str, name: str) -> bool:
        if not self.exists(container, name):
            return False
        try:
            self._client.delete_object(Bucket=container, Key=name)
        except (ClientError, BotoCoreError) as exc:
            raise _failure(exc) from exc
        return True

    def ping(self) -> None:
        try:
            self._client.list_buckets()
        except (ClientError, BotoCoreError) as exc:
            raise _failure(exc) from exc


def _status(exc: ClientError) -> int | None:
    meta = exc.response.get("ResponseMetadata", {})
    status = meta.get("HTTPStatusCode")
    if status is None:
        code = exc.response.get("Error", {}).get("Code", "")
        if code in ("NoSuchKey", "NoSuchBucket", "NotFound", "404"):
            return 404
        return None
    return int(status)


def _failure(exc: Exception) -> TransportFailure:
    if isinstance(exc, ClientError):
        error = exc.response.get("Error", {})
        reason = error.get("Message") or error.get("Code") or str(exc)
        return TransportFailure(_status(exc), reason)
    return TransportFailure(None, str(exc))
