"""Tests for the durable record stores and storage helpers."""

import io

import pytest
from botocore.exceptions import ClientError

from askupi.core.db import (
    CHATS_KEY,
    HISTORY_KEY,
    S3RecordStore,
    SqlRecordStore,
    build_store,
    storage_info,
)
from askupi.core.errors import StorageUnavailable
from askupi.core.settings import Settings


class FakeS3:
    """Just enough of the boto3 S3 client for the record store."""

    def __init__(self, bucket_exists: bool = True) -> None:
        self.objects: dict[str, bytes] = {}
        self.buckets: set[str] = set()
        self.bucket_exists = bucket_exists

    def head_bucket(self, Bucket: str) -> None:  # noqa: N803
        if not self.bucket_exists and Bucket not in self.buckets:
            raise ClientError({"Error": {"Code": "404"}}, "HeadBucket")

    def create_bucket(self, Bucket: str) -> None:  # noqa: N803
        self.buckets.add(Bucket)

    def put_object(self, Bucket: str, Key: str, Body: bytes) -> None:  # noqa: N803
        self.objects[Key] = Body

    def get_object(self, Bucket: str, Key: str) -> dict:  # noqa: N803
        if Key not in self.objects:
            raise ClientError({"Error": {"Code": "NoSuchKey"}}, "GetObject")
        return {"Body": io.BytesIO(self.objects[Key])}

    def delete_object(self, Bucket: str, Key: str) -> None:  # noqa: N803
        self.objects.pop(Key, None)

    def list_objects_v2(self, Bucket: str, Prefix: str) -> dict:  # noqa: N803
        return {"Contents": [{"Key": k} for k in self.objects if k.startswith(Prefix)]}


def test_sql_store_read_write_delete(store: SqlRecordStore) -> None:
    """Records are replaced wholesale and can be removed."""
    if store.read(HISTORY_KEY) is not None:
        raise AssertionError("Fresh store should be empty")
    store.write(HISTORY_KEY, "[1]")
    store.write(HISTORY_KEY, "[2]")
    if store.read(HISTORY_KEY) != "[2]" or store.keys() != [HISTORY_KEY]:
        raise AssertionError("Second write should replace the first")
    store.delete(HISTORY_KEY)
    if store.read(HISTORY_KEY) is not None:
        raise AssertionError("Record should be deleted")


def test_storage_info_counts_utf16_bytes(store: SqlRecordStore) -> None:
    """Usage is two bytes per character of every key and value."""
    store.write(HISTORY_KEY, "[]")
    info = storage_info(store, quota=1000)
    expected = (len(HISTORY_KEY) + 2) * 2
    if info.used != expected or info.total != 1000:
        msg = f"Unexpected usage {info}"
        raise AssertionError(msg)
    if info.percent_used != pytest.approx(expected / 10):
        msg = f"Unexpected percentage {info.percent_used}"
        raise AssertionError(msg)


def test_storage_info_without_store() -> None:
    """Unavailable storage reports zero usage."""
    info = storage_info(None, quota=1000)
    if (info.used, info.total, info.percent_used) != (0, 0, 0.0):
        msg = f"Unexpected usage {info}"
        raise AssertionError(msg)


def test_s3_store_round_trip() -> None:
    """The S3 store keeps one object per record."""
    client = FakeS3(bucket_exists=False)
    s3_store = S3RecordStore(client, "askupi")
    if "askupi" not in client.buckets:
        raise AssertionError("Missing bucket should be created")
    if s3_store.read(CHATS_KEY) is not None:
        raise AssertionError("Missing record should read as None")
    s3_store.write(CHATS_KEY, '[{"id": "1"}]')
    if s3_store.read(CHATS_KEY) != '[{"id": "1"}]' or s3_store.keys() != [CHATS_KEY]:
        raise AssertionError("Record should round-trip through S3")
    s3_store.delete(CHATS_KEY)
    if s3_store.keys():
        raise AssertionError("Record should be deleted")


def test_s3_errors_become_storage_unavailable() -> None:
    """Backend errors other than a missing key are StorageUnavailable."""
    client = FakeS3()

    def denied(**kwargs: object) -> None:
        raise ClientError({"Error": {"Code": "AccessDenied"}}, "PutObject")

    client.put_object = denied
    with pytest.raises(StorageUnavailable):
        S3RecordStore(client, "askupi").write(HISTORY_KEY, "[]")


def test_build_store_defaults_to_sql() -> None:
    """The default backend is the SQL table."""
    built = build_store(Settings(database_url="sqlite://"))
    if not isinstance(built, SqlRecordStore):
        msg = f"Expected SqlRecordStore, got {type(built).__name__}"
        raise AssertionError(msg)


def test_build_store_unreachable_backend_is_none() -> None:
    """A store that cannot be built degrades to None."""
    if build_store(Settings(database_url="nosuchdriver://nowhere")) is not None:
        raise AssertionError("Expected None for an unusable database URL")
