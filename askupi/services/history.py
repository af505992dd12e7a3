"""History ledger: persisted record of past analyses, most recent first."""

from askupi.core.db import HISTORY_KEY, RecordStore
from askupi.core.models import Analysis, HistoryEntry
from askupi.core.utils import get_logger, new_id, utcnow_iso
from askupi.services.conversations import ChatSession, ConversationLedger
from askupi.services.ledger import JsonLedger

DEFAULT_APP_NAME = "UPI App"

# Ordered; the first needle found in the first transaction's description wins.
KNOWN_APPS: tuple[tuple[str, str], ...] = (
    ("phonepe", "PhonePe"),
    ("gpay", "Google Pay"),
    ("google pay", "Google Pay"),
    ("paytm", "Paytm"),
)

logger = get_logger("askupi.history")


def infer_app_name(analysis: Analysis) -> str:
    """Guess the payment app from the first transaction's description."""
    if not analysis.transactions:
        return DEFAULT_APP_NAME
    description = analysis.transactions[0].description.lower()
    for needle, name in KNOWN_APPS:
        if needle in description:
            return name
    return DEFAULT_APP_NAME


class HistoryLedger(JsonLedger[HistoryEntry]):
    """Append-only list of analyses; deleting an entry also deletes its conversation."""

    model = HistoryEntry

    def __init__(
        self, store: RecordStore | None, conversations: ConversationLedger | None = None, key: str = HISTORY_KEY
    ) -> None:
        """Bind the ledger to the history record and, optionally, the conversation ledger."""
        super().__init__(store, key)
        self.conversations = conversations

    def append(self, analysis: Analysis) -> str:
        """Record an analysis at the front of the history and return its id."""
        entry = HistoryEntry(
            id=new_id(),
            app_name=infer_app_name(analysis),
            start_date=analysis.summary.start_date,
            end_date=analysis.summary.end_date,
            analysis_date=utcnow_iso(),
            data=analysis,
        )
        entries = self._load()
        if self._save([entry, *entries]):
            logger.info(f"Saved analysis {entry.id} ({entry.app_name}, {entry.start_date}..{entry.end_date})")
        return entry.id

    def get(self, entry_id: str) -> HistoryEntry | None:
        """Return one entry by id."""
        return next((e for e in self._load() if e.id == entry_id), None)

    def remove(self, entry_id: str, session: ChatSession | None = None) -> bool:
        """Delete an entry and the conversation linked to it."""
        entries = self._load()
        target = next((e for e in entries if e.id == entry_id), None)
        if target is None:
            return False
        self._save([e for e in entries if e.id != entry_id])
        if self.conversations is not None:
            start, end = target.data.date_range
            self.conversations.delete_matching(start, end, history_id=target.id, session=session)
        logger.info(f"Removed analysis {entry_id}")
        return True
