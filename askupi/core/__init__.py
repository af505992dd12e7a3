"""Core package: provides models, record stores, settings, errors and shared utilities."""

from .db import RecordStore, build_store  # noqa: F401
from .errors import AskUpiError  # noqa: F401
from .models import Analysis, Conversation, HistoryEntry, Message, Transaction  # noqa: F401
from .settings import Settings  # noqa: F401
from .utils import get_logger  # noqa: F401
