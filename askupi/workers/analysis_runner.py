"""Client-side orchestration: upload, normalize, persist, then chat about the result."""

from askupi.core.db import build_store, storage_info
from askupi.core.errors import AskUpiError, Cancelled
from askupi.core.models import Analysis, StorageInfo
from askupi.core.settings import Settings
from askupi.core.utils import get_logger
from askupi.services.conversations import ChatSession, ConversationLedger
from askupi.services.dispatcher import AnalysisDispatcher, CancelToken, UploadGuard
from askupi.services.history import HistoryLedger
from askupi.services.intake import FileIntake, StatementFile
from askupi.services.normalizer import normalize_response

DEFAULT_STORAGE_QUOTA = 5 * 1024 * 1024

logger = get_logger("askupi.runner")


class AnalysisRunner:
    """Runs one upload at a time and keeps the latest analysis for the session."""

    def __init__(
        self,
        dispatcher: AnalysisDispatcher,
        history: HistoryLedger,
        conversations: ConversationLedger,
        intake: FileIntake,
        storage_quota: int = DEFAULT_STORAGE_QUOTA,
    ) -> None:
        """Wire the runner to its collaborators."""
        self.dispatcher = dispatcher
        self.history = history
        self.conversations = conversations
        self.intake = intake
        self.storage_quota = storage_quota
        self.guard = UploadGuard()
        self.current_analysis: Analysis | None = None
        self.current_history_id: str | None = None
        self._token: CancelToken | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "AnalysisRunner":
        """Build a runner with the configured store, service URL and upload limit."""
        store = build_store(settings)
        conversations = ConversationLedger(store)
        return cls(
            dispatcher=AnalysisDispatcher(settings.api_base_url, timeout=settings.request_timeout),
            history=HistoryLedger(store, conversations),
            conversations=conversations,
            intake=FileIntake(settings.max_upload_bytes),
            storage_quota=settings.storage_quota_bytes,
        )

    @property
    def busy(self) -> bool:
        """Whether an upload is in flight."""
        return self.guard.held

    async def submit(self, file: StatementFile, cancel_token: CancelToken | None = None) -> Analysis:
        """Validate, upload and normalize a statement, then record it in the history.

        Raises FileValidationError, UploadInProgress, Cancelled, NetworkFailure
        or an AnalysisRejected subclass; on any of them nothing is stored.
        """
        with self.guard:
            self.intake.select(file)
            self._token = cancel_token or CancelToken()
            try:
                body = await self.dispatcher.analyze(file, self._token)
                if self._token.cancelled:
                    msg = "Request cancelled by client"
                    raise Cancelled(msg)
            finally:
                self._token = None
            analysis = normalize_response(body)
            self.current_analysis = analysis
            self.current_history_id = self.history.append(analysis)
            logger.info(f"Done! Found {len(analysis.transactions)} transactions")
            return analysis

    def cancel(self) -> bool:
        """Abort the in-flight upload, if any."""
        if self._token is None:
            return False
        self._token.cancel()
        return True

    def reset(self) -> None:
        """Forget the current analysis and file selection."""
        self.current_analysis = None
        self.current_history_id = None
        self.intake.clear()

    def start_conversation(self, session: ChatSession) -> str:
        """Select (or create) the conversation for the current analysis."""
        if self.current_analysis is None:
            msg = "No analysis to chat about"
            raise AskUpiError(msg)
        return self.conversations.create_or_get(session, self.current_analysis, self.current_history_id)

    def open_history_entry(self, session: ChatSession, entry_id: str) -> str | None:
        """Load a past analysis and select its conversation; None when the entry is gone."""
        entry = self.history.get(entry_id)
        if entry is None:
            logger.warning(f"History entry {entry_id} not found")
            return None
        self.current_analysis = entry.data
        self.current_history_id = entry.id
        return self.conversations.create_or_get(session, entry.data, entry.id)

    def delete_history_entry(self, session: ChatSession, entry_id: str) -> bool:
        """Delete a past analysis together with its conversation."""
        removed = self.history.remove(entry_id, session)
        if removed and self.current_history_id == entry_id:
            self.current_analysis = None
            self.current_history_id = None
        return removed

    def storage_usage(self) -> StorageInfo:
        """Report how much of the storage quota the ledgers use."""
        return storage_info(self.history.store, self.storage_quota)

    def clear_history(self, session: ChatSession) -> None:
        """Drop every analysis and conversation, and forget the current selection."""
        self.history.clear()
        self.conversations.clear()
        session.current_id = None
        self.reset()
        logger.info("All local storage cleared")

    async def ask(self, session: ChatSession, question: str) -> str:
        """Record a user question, send it with the conversation context and record the reply."""
        conversation = self.conversations.current(session)
        if conversation is None:
            msg = "No conversation selected"
            raise AskUpiError(msg)
        user_message = self.conversations.add_message(session, "user", question)
        history = [*conversation.messages, user_message] if user_message else conversation.messages
        reply = await self.dispatcher.chat(history, conversation.analysis_data)
        self.conversations.add_message(session, "assistant", reply)
        return reply

    async def aclose(self) -> None:
        """Release network resources."""
        await self.dispatcher.aclose()
