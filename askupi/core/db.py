"""Durable key-value record stores for the AskUPI ledgers.

Each ledger keeps one named record (a JSON document) that is read and rewritten wholesale. Two backends are provided: a SQLAlchemy table for local use and an S3 bucket for shared deployments. Backend failures surface as StorageUnavailable so callers can degrade instead of failing.
"""

from abc import ABC, abstractmethod

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from sqlalchemy import Column, String, Text, create_engine, delete, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from askupi.core.errors import StorageUnavailable
from askupi.core.models import StorageInfo
from askupi.core.settings import Settings
from askupi.core.utils import get_logger

HISTORY_KEY = "askupi-history"
CHATS_KEY = "askupi-chats"

Base = declarative_base()
logger = get_logger("askupi.storage")


class Record(Base):
    """A named JSON document."""

    __tablename__ = "records"
    key = Column(String, primary_key=True)
    value = Column(Text, nullable=False)


class RecordStore(ABC):
    """Abstract wholesale read/write store of named string records."""

    @abstractmethod
    def read(self, key: str) -> str | None:
        """Return the record stored under key, or None."""

    @abstractmethod
    def write(self, key: str, value: str) -> None:
        """Replace the record stored under key."""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove the record stored under key, if any."""

    @abstractmethod
    def keys(self) -> list[str]:
        """List the keys of all stored records."""


def get_engine(url: str) -> Engine:
    """Create a SQLAlchemy engine; in-memory SQLite shares one connection."""
    if url in ("sqlite://", "sqlite:///:memory:"):
        return create_engine(url, connect_args={"check_same_thread": False}, poolclass=StaticPool)
    return create_engine(url)


class SqlRecordStore(RecordStore):
    """Record store backed by a single SQLAlchemy table."""

    def __init__(self, engine: Engine) -> None:
        """Bind the store to an engine and make sure the records table exists."""
        self.engine = engine
        self.Session = sessionmaker(bind=engine, autocommit=False, autoflush=False)
        try:
            Base.metadata.create_all(engine)
        except SQLAlchemyError as exc:
            raise StorageUnavailable(f"Cannot initialize records table: {exc}") from exc

    def read(self, key: str) -> str | None:
        """Return the record stored under key, or None."""
        try:
            with self.Session() as session:
                return session.execute(select(Record.value).where(Record.key == key)).scalar_one_or_none()
        except SQLAlchemyError as exc:
            raise StorageUnavailable(f"Failed to read '{key}': {exc}") from exc

    def write(self, key: str, value: str) -> None:
        """Replace the record stored under key."""
        try:
            with self.Session() as session:
                session.merge(Record(key=key, value=value))
                session.commit()
        except SQLAlchemyError as exc:
            raise StorageUnavailable(f"Failed to write '{key}': {exc}") from exc

    def delete(self, key: str) -> None:
        """Remove the record stored under key, if any."""
        try:
            with self.Session() as session:
                session.execute(delete(Record).where(Record.key == key))
                session.commit()
        except SQLAlchemyError as exc:
            raise StorageUnavailable(f"Failed to delete '{key}': {exc}") from exc

    def keys(self) -> list[str]:
        """List the keys of all stored records."""
        try:
            with self.Session() as session:
                return list(session.execute(select(Record.key)).scalars())
        except SQLAlchemyError as exc:
            raise StorageUnavailable(f"Failed to list records: {exc}") from exc


class S3RecordStore(RecordStore):
    """Record store keeping one S3 object per record."""

    def __init__(self, client: object, bucket: str, prefix: str = "records/") -> None:
        """Initialize the store and ensure the bucket exists."""
        self.s3 = client
        self.bucket = bucket
        self.prefix = prefix
        self.ensure_bucket()

    @classmethod
    def from_settings(cls, settings: Settings) -> "S3RecordStore":
        """Build a store from the S3 settings."""
        client = boto3.client(
            "s3",
            endpoint_url=settings.s3_endpoint_url,
            aws_access_key_id=settings.s3_access_key,
            aws_secret_access_key=settings.s3_secret_key,
        )
        return cls(client, settings.s3_bucket)

    def ensure_bucket(self) -> None:
        """Ensure the S3 bucket exists, create if not present."""
        try:
            self.s3.head_bucket(Bucket=self.bucket)
        except ClientError:
            try:
                self.s3.create_bucket(Bucket=self.bucket)
            except (BotoCoreError, ClientError) as exc:
                raise StorageUnavailable(f"Cannot create bucket '{self.bucket}': {exc}") from exc
        except BotoCoreError as exc:
            raise StorageUnavailable(f"Cannot reach bucket '{self.bucket}': {exc}") from exc

    def _object_key(self, key: str) -> str:
        return f"{self.prefix}{key}.json"

    def read(self, key: str) -> str | None:
        """Return the record stored under key, or None."""
        try:
            obj = self.s3.get_object(Bucket=self.bucket, Key=self._object_key(key))
        except ClientError as exc:
            if exc.response.get("Error", {}).get("Code") in ("NoSuchKey", "404"):
                return None
            raise StorageUnavailable(f"Failed to read '{key}': {exc}") from exc
        except BotoCoreError as exc:
            raise StorageUnavailable(f"Failed to read '{key}': {exc}") from exc
        return obj["Body"].read().decode("utf-8")

    def write(self, key: str, value: str) -> None:
        """Replace the record stored under key."""
        try:
            self.s3.put_object(Bucket=self.bucket, Key=self._object_key(key), Body=value.encode("utf-8"))
        except (BotoCoreError, ClientError) as exc:
            raise StorageUnavailable(f"Failed to write '{key}': {exc}") from exc

    def delete(self, key: str) -> None:
        """Remove the record stored under key, if any."""
        try:
            self.s3.delete_object(Bucket=self.bucket, Key=self._object_key(key))
        except (BotoCoreError, ClientError) as exc:
            raise StorageUnavailable(f"Failed to delete '{key}': {exc}") from exc

    def keys(self) -> list[str]:
        """List the keys of all stored records."""
        try:
            resp = self.s3.list_objects_v2(Bucket=self.bucket, Prefix=self.prefix)
        except (BotoCoreError, ClientError) as exc:
            raise StorageUnavailable(f"Failed to list records: {exc}") from exc
        names = [item["Key"] for item in resp.get("Contents", [])]
        return [name[len(self.prefix) : -len(".json")] for name in names if name.endswith(".json")]


def build_store(settings: Settings) -> RecordStore | None:
    """Build the configured record store, or None when storage cannot be reached."""
    try:
        if settings.storage_backend == "s3":
            return S3RecordStore.from_settings(settings)
        return SqlRecordStore(get_engine(settings.database_url))
    except (StorageUnavailable, SQLAlchemyError, BotoCoreError):
        logger.exception("Durable storage unavailable; ledgers will not persist")
        return None


def storage_info(store: RecordStore | None, quota: int) -> StorageInfo:
    """Estimate storage usage as UTF-16 bytes of every key and value."""
    if store is None:
        return StorageInfo(used=0, total=0, percent_used=0.0)
    try:
        used = 0
        for key in store.keys():
            value = store.read(key) or ""
            used += (len(key) + len(value)) * 2
    except StorageUnavailable:
        logger.exception("Error calculating storage size")
        return StorageInfo(used=0, total=0, percent_used=0.0)
    return StorageInfo(used=used, total=quota, percent_used=(used / quota) * 100 if quota else 0.0)
