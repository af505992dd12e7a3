"""Wholesale JSON list persistence shared by the history and conversation ledgers."""

import json
from typing import Generic, TypeVar

from pydantic import BaseModel, ValidationError

from askupi.core.db import RecordStore
from askupi.core.errors import StorageUnavailable
from askupi.core.utils import get_logger

ModelT = TypeVar("ModelT", bound=BaseModel)

logger = get_logger("askupi.ledger")


class JsonLedger(Generic[ModelT]):
    """An ordered list of records kept under one storage key.

    Every mutation reads the full list and rewrites it; there is no merge, so
    the last writer wins. The ledger also keeps the latest list in memory:
    when the store is missing or failing, reads and writes fall back to that
    copy, so records last for the ledger's lifetime without being persisted.
    """

    model: type[ModelT]

    def __init__(self, store: RecordStore | None, key: str) -> None:
        """Bind the ledger to a store (None means storage is unavailable)."""
        self.store = store
        self.key = key
        self._items: list[ModelT] = []
        # Set while the in-memory list holds changes the store has not accepted.
        self._unsaved = False

    def _load(self) -> list[ModelT]:
        if self.store is None or self._unsaved:
            return list(self._items)
        try:
            raw = self.store.read(self.key)
        except StorageUnavailable:
            logger.exception(f"Failed to load '{self.key}' from storage; using in-memory copy")
            return list(self._items)
        if not raw:
            items: list[ModelT] = []
        else:
            try:
                items = [self.model.model_validate(item) for item in json.loads(raw)]
            except (ValueError, TypeError, ValidationError):
                logger.exception(f"Corrupt '{self.key}' record; treating as empty")
                items = []
        self._items = items
        return list(items)

    def _save(self, items: list[ModelT]) -> bool:
        self._items = list(items)
        if self.store is None:
            self._unsaved = True
            logger.warning(f"Storage unavailable; '{self.key}' kept in memory only")
            return False
        payload = json.dumps([item.model_dump(mode="json", by_alias=True) for item in items])
        try:
            self.store.write(self.key, payload)
        except StorageUnavailable:
            self._unsaved = True
            logger.exception(f"Failed to save '{self.key}' to storage; kept in memory only")
            return False
        self._unsaved = False
        return True

    def entries(self) -> list[ModelT]:
        """Return the records in storage order."""
        return self._load()

    def clear(self) -> None:
        """Drop the whole record."""
        self._items = []
        self._unsaved = False
        if self.store is None:
            return
        try:
            self.store.delete(self.key)
        except StorageUnavailable:
            self._unsaved = True
            logger.exception(f"Failed to clear '{self.key}'")
