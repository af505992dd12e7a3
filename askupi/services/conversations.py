"""Conversation ledger: one persisted chat thread per analysis.

The "current conversation" pointer lives in a ChatSession value passed to each call rather than in ledger state. Conversations created from a history entry carry its id as a foreign key; matching by the (start_date, end_date) pair is kept only for conversations that have no such link.
"""

import datetime as dt
from dataclasses import dataclass
from typing import Literal

from askupi.core.db import CHATS_KEY, RecordStore
from askupi.core.models import Analysis, Conversation, Message
from askupi.core.utils import format_inr, get_logger, new_id, utcnow_iso
from askupi.services.ledger import JsonLedger

logger = get_logger("askupi.conversations")


@dataclass
class ChatSession:
    """Per-session pointer to the selected conversation (None when nothing is selected)."""

    current_id: str | None = None


def _short_date(value: str) -> str:
    try:
        parsed = dt.date.fromisoformat(value)
    except ValueError:
        return value
    return f"{parsed.day} {parsed.strftime('%b')}"


def conversation_title(analysis: Analysis) -> str:
    """Title a conversation after the analysis date range."""
    start, end = analysis.date_range
    return f"Analysis {_short_date(start)} to {_short_date(end)}"


def seed_message(analysis: Analysis) -> str:
    """Natural-language summary that opens every conversation."""
    start, end = analysis.date_range
    summary = analysis.summary
    return (
        f"I've analyzed your UPI transactions from {_short_date(start)} to {_short_date(end)}. "
        f"You spent ₹{format_inr(abs(summary.total_spent))} and received ₹{format_inr(summary.total_received)}. "
        f"Your net change was ₹{format_inr(summary.net_change)}. "
        "What would you like to know about this data?"
    )


def _same_range(conversation: Conversation, start: str, end: str) -> bool:
    return conversation.analysis_data.date_range == (start, end)


class ConversationLedger(JsonLedger[Conversation]):
    """Persisted list of conversations, most recent first."""

    model = Conversation

    def __init__(self, store: RecordStore | None, key: str = CHATS_KEY) -> None:
        """Bind the ledger to the conversations record."""
        super().__init__(store, key)

    def get(self, conversation_id: str) -> Conversation | None:
        """Return one conversation by id."""
        return next((c for c in self._load() if c.id == conversation_id), None)

    def current(self, session: ChatSession) -> Conversation | None:
        """Return the conversation the session points at, if it still exists."""
        if session.current_id is None:
            return None
        return self.get(session.current_id)

    def _find(self, conversations: list[Conversation], analysis: Analysis, history_id: str | None) -> int | None:
        start, end = analysis.date_range
        if history_id is not None:
            for idx, conv in enumerate(conversations):
                if conv.history_id == history_id:
                    return idx
            candidates = [(i, c) for i, c in enumerate(conversations) if c.history_id is None]
        else:
            candidates = list(enumerate(conversations))
        for idx, conv in candidates:
            if _same_range(conv, start, end):
                return idx
        return None

    def create_or_get(self, session: ChatSession, analysis: Analysis, history_id: str | None = None) -> str:
        """Select the conversation for this analysis, creating and seeding it when missing."""
        conversations = self._load()
        idx = self._find(conversations, analysis, history_id)
        if idx is not None:
            existing = conversations[idx]
            if history_id is not None and existing.history_id is None:
                # Adopt an unlinked conversation so later lookups use the foreign key.
                conversations[idx] = existing.model_copy(update={"history_id": history_id})
                self._save(conversations)
            session.current_id = existing.id
            logger.info(f"Selected existing conversation {existing.id}")
            return existing.id
        now = utcnow_iso()
        conversation = Conversation(
            id=new_id(),
            title=conversation_title(analysis),
            created_at=now,
            analysis_data=analysis,
            messages=[Message(id=new_id(), role="assistant", content=seed_message(analysis), timestamp=now)],
            history_id=history_id,
        )
        self._save([conversation, *conversations])
        session.current_id = conversation.id
        logger.info(f"Created conversation {conversation.id}: {conversation.title}")
        return conversation.id

    def select(self, session: ChatSession, conversation_id: str) -> None:
        """Point the session at a conversation."""
        session.current_id = conversation_id

    def add_message(self, session: ChatSession, role: Literal["user", "assistant"], content: str) -> Message | None:
        """Append a turn to the selected conversation; no-op when nothing is selected."""
        if session.current_id is None:
            logger.warning("No conversation selected; message dropped")
            return None
        conversations = self._load()
        for idx, conv in enumerate(conversations):
            if conv.id == session.current_id:
                message = Message(id=new_id(), role=role, content=content, timestamp=utcnow_iso())
                conversations[idx] = conv.model_copy(update={"messages": [*conv.messages, message]})
                self._save(conversations)
                return message
        logger.warning(f"Selected conversation {session.current_id} no longer exists; message dropped")
        return None

    def delete(self, session: ChatSession | None, conversation_id: str) -> bool:
        """Delete one conversation and clear the session pointer if it pointed at it."""
        conversations = self._load()
        remaining = [c for c in conversations if c.id != conversation_id]
        removed = len(remaining) != len(conversations)
        if removed:
            self._save(remaining)
        if session is not None and session.current_id == conversation_id:
            session.current_id = None
        return removed

    def delete_matching(
        self, start: str, end: str, history_id: str | None = None, session: ChatSession | None = None
    ) -> list[str]:
        """Delete conversations linked to a history entry; return the removed ids."""
        conversations = self._load()

        def linked(conv: Conversation) -> bool:
            if history_id is not None and conv.history_id is not None:
                return conv.history_id == history_id
            return _same_range(conv, start, end)

        removed = [c.id for c in conversations if linked(c)]
        if not removed:
            return []
        self._save([c for c in conversations if c.id not in removed])
        if session is not None and session.current_id in removed:
            session.current_id = None
        logger.info(f"Deleted conversations linked to {start}..{end}: {removed}")
        return removed
