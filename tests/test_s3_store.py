"""Tests for S3Store against a mocked boto3 client."""

import io
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

from multiblob.errors import TransportFailure
from multiblob.stores.s3_store import MAX_COPY_PART, MULTIPART_THRESHOLD, S3Store


def client_error(status, code, op="GetObject"):
    return ClientError(
        {
            "Error": {"Code": code, "Message": f"{code} message"},
            "ResponseMetadata": {"HTTPStatusCode": status},
        },
        op,
    )


@pytest.fixture
def client():
    return MagicMock()


@pytest.fixture
def s3(client):
    return S3Store(client=client)


def test_list_blobs_paginates(s3, client):
    paginator = MagicMock()
    paginator.paginate.return_value = [
        {"Contents": [{"Key": "p/a.csv", "Size": 3}, {"Key": "p/b.csv", "Size": 4}]},
        {"Contents": [{"Key": "p/c.csv", "Size": 5}]},
        {},
    ]
    client.get_paginator.return_value = paginator

    items = list(s3.list_blobs("bucket", "p/"))
    assert [(i.name, i.size) for i in items] == [("p/a.csv", 3), ("p/b.csv", 4), ("p/c.csv", 5)]
    client.get_paginator.assert_called_once_with("list_objects_v2")
    paginator.paginate.assert_called_once_with(Bucket="bucket", Prefix="p/")


def test_get_size(s3, client):
    client.head_object.return_value = {"ContentLength": 42}
    assert s3.get_size("bucket", "k") == 42


def test_get_size_missing(s3, client):
    client.head_object.side_effect = client_error(404, "404", "HeadObject")
    with pytest.raises(TransportFailure) as info:
        s3.get_size("bucket", "k")
    assert info.value.status == 404
    assert not s3.exists("bucket", "k")


def test_read_range_sends_inclusive_range(s3, client):
    client.get_object.return_value = {"Body": io.BytesIO(b"bcd")}
    assert s3.read_range("bucket", "k", 1, 3) == b"bcd"
    client.get_object.assert_called_once_with(Bucket="bucket", Key="k", Range="bytes=1-3")


def test_read_range_past_end(s3, client):
    client.get_object.side_effect = client_error(416, "InvalidRange")
    assert s3.read_range("bucket", "k", 100, 3) == b""


def test_read_range_empty_request(s3, client):
    assert s3.read_range("bucket", "k", 0, 0) == b""
    client.get_object.assert_not_called()


def test_read_range_server_error(s3, client):
    client.get_object.side_effect = client_error(503, "SlowDown")
    with pytest.raises(TransportFailure) as info:
        s3.read_range("bucket", "k", 0, 3)
    assert info.value.status == 503
    assert info.value.reason == "SlowDown message"


def test_connection_error(s3, client):
    client.list_buckets.side_effect = EndpointConnectionError(endpoint_url="http://nowhere")
    with pytest.raises(TransportFailure) as info:
        s3.ping()
    assert info.value.status is None


def test_create_object(s3, client):
    assert s3.create_object("bucket", "k")
    client.put_object.assert_called_once_with(Bucket="bucket", Key="k", Body=b"")


def test_create_if_not_exists(s3, client):
    assert s3.create_if_not_exists("bucket", "k")
    client.put_object.side_effect = client_error(412, "PreconditionFailed", "PutObject")
    assert not s3.create_if_not_exists("bucket", "k")


def test_append_block_rewrites_small_object(s3, client):
    client.head_object.return_value = {"ContentLength": 3, "ETag": '"e1"'}
    client.get_object.return_value = {"Body": io.BytesIO(b"abc"), "ETag": '"e1"'}
    s3.append_block("bucket", "k", b"def")
    client.put_object.assert_called_once_with(
        Bucket="bucket", Key="k", Body=b"abcdef", IfMatch='"e1"'
    )


def test_append_block_conflict(s3, client):
    client.head_object.return_value = {"ContentLength": 3, "ETag": '"e1"'}
    client.get_object.return_value = {"Body": io.BytesIO(b"abc"), "ETag": '"e1"'}
    client.put_object.side_effect = client_error(412, "PreconditionFailed", "PutObject")
    with pytest.raises(TransportFailure) as info:
        s3.append_block("bucket", "k", b"def")
    assert info.value.status == 412


def test_delete(s3, client):
    client.head_object.return_value = {"ContentLength": 1}
    assert s3.delete("bucket", "k")
    client.delete_object.assert_called_once_with(Bucket="bucket", Key="k")

    client.head_object.side_effect = client_error(404, "404", "HeadObject")
    assert not s3.delete("bucket", "gone")


@pytest.fixture
def large_object(client):
    client.head_object.return_value = {"ContentLength": MULTIPART_THRESHOLD, "ETag": '"big"'}
    client.create_multipart_upload.return_value = {"UploadId": "u1"}
    client.upload_part_copy.return_value = {"CopyPartResult": {"ETag": '"p1"'}}
    client.upload_part.return_value = {"ETag": '"p2"'}
    return client


def test_append_block_large_object_copies_server_side(s3, large_object):
    client = large_object
    s3.append_block("bucket", "k", b"tail")

    client.get_object.assert_not_called()
    client.put_object.assert_not_called()
    client.upload_part_copy.assert_called_once_with(
        Bucket="bucket",
        Key="k",
        UploadId="u1",
        PartNumber=1,
        CopySource={"Bucket": "bucket", "Key": "k"},
        CopySourceRange=f"bytes=0-{MULTIPART_THRESHOLD - 1}",
        CopySourceIfMatch='"big"',
    )
    client.upload_part.assert_called_once_with(
        Bucket="bucket", Key="k", UploadId="u1", PartNumber=2, Body=b"tail"
    )
    client.complete_multipart_upload.assert_called_once_with(
        Bucket="bucket",
        Key="k",
        UploadId="u1",
        MultipartUpload={
            "Parts": [{"PartNumber": 1, "ETag": '"p1"'}, {"PartNumber": 2, "ETag": '"p2"'}]
        },
    )


def test_append_block_huge_object_splits_copy(s3, large_object):
    client = large_object
    size = MAX_COPY_PART + 10
    client.head_object.return_value = {"ContentLength": size, "ETag": '"big"'}
    s3.append_block("bucket", "k", b"tail")

    ranges = [c.kwargs["CopySourceRange"] for c in client.upload_part_copy.call_args_list]
    half = -(-size // 2)
    assert ranges == [f"bytes=0-{half - 1}", f"bytes={half}-{size - 1}"]
    assert client.upload_part.call_args.kwargs["PartNumber"] == 3


def test_append_block_large_object_failure_aborts(s3, large_object):
    client = large_object
    client.upload_part.side_effect = client_error(500, "InternalError", "UploadPart")
    with pytest.raises(TransportFailure) as info:
        s3.append_block("bucket", "k", b"tail")
    assert info.value.status == 500
    client.abort_multipart_upload.assert_called_once_with(Bucket="bucket", Key="k", UploadId="u1")
    client.complete_multipart_upload.assert_not_called()


def test_append_empty_block_is_a_no_op(s3, client):
    s3.append_block("bucket", "k", b"")
    client.head_object.assert_not_called()
