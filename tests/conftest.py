"""Shared fixtures: sample analyses, in-memory storage and a stub agent."""

import copy
from typing import Any

import pytest

from askupi.agents.base import BaseAgent
from askupi.core.db import SqlRecordStore, get_engine
from askupi.core.models import Analysis
from askupi.services.conversations import ChatSession, ConversationLedger
from askupi.services.history import HistoryLedger
from askupi.services.intake import PDF_MIME_TYPE, StatementFile

SAMPLE_ANALYSIS: dict[str, Any] = {
    "transactions": [
        {
            "date": "2024-01-05",
            "time": "10:30",
            "description": "Paid to Swiggy via PhonePe",
            "amount": -450.0,
            "upi_id": "swiggy@ybl",
            "category": "food",
        },
        {
            "date": "2024-01-20",
            "time": None,
            "description": "Received from Rahul",
            "amount": 1000.0,
            "upi_id": None,
            "category": "other",
        },
    ],
    "summary": {
        "total_spent": -450.0,
        "total_received": 1000.0,
        "net_change": 550.0,
        "transaction_count": 2,
        "start_date": "2024-01-01",
        "end_date": "2024-01-31",
    },
    "category_breakdown": {"food": {"total": 450.0, "percentage": 100.0, "count": 1}},
    "insights": [{"type": "tip", "description": "Cook at home twice a week", "impact": 200.0}],
    "recommendations": [{"category": "food", "action": "Limit food delivery orders", "potential_savings": 200.0}],
}


def make_analysis_dict(start: str = "2024-01-01", end: str = "2024-01-31", description: str | None = None) -> dict:
    """Return a copy of the sample analysis with a different date range or first description."""
    data = copy.deepcopy(SAMPLE_ANALYSIS)
    data["summary"]["start_date"] = start
    data["summary"]["end_date"] = end
    if description is not None:
        data["transactions"][0]["description"] = description
    return data


def make_analysis(start: str = "2024-01-01", end: str = "2024-01-31", description: str | None = None) -> Analysis:
    """Build a validated Analysis for the given date range."""
    return Analysis.model_validate(make_analysis_dict(start, end, description))


def make_pdf(size: int = 1024, content_type: str = PDF_MIME_TYPE, filename: str = "statement.pdf") -> StatementFile:
    """Build an in-memory statement file of the given size."""
    return StatementFile(filename=filename, content_type=content_type, data=b"%PDF" + b"0" * max(size - 4, 0))


class StubAgent(BaseAgent):
    """Agent returning canned outputs and recording its calls."""

    def __init__(self, analysis_output: str = "", chat_output: str = "ok", error: Exception | None = None) -> None:
        self.analysis_output = analysis_output
        self.chat_output = chat_output
        self.error = error
        self.calls: list[tuple[str, Any]] = []

    def analyze_statement(self, statement_text: str, filename: str) -> str:
        self.calls.append(("analyze", (statement_text, filename)))
        if self.error:
            raise self.error
        return self.analysis_output

    def chat(self, messages: list[dict[str, Any]], analysis_data: dict[str, Any]) -> str:
        self.calls.append(("chat", (messages, analysis_data)))
        if self.error:
            raise self.error
        return self.chat_output


@pytest.fixture
def analysis() -> Analysis:
    """The sample analysis covering January 2024."""
    return make_analysis()


@pytest.fixture
def store() -> SqlRecordStore:
    """A fresh in-memory SQLite record store."""
    return SqlRecordStore(get_engine("sqlite://"))


@pytest.fixture
def conversations(store: SqlRecordStore) -> ConversationLedger:
    """Conversation ledger over the in-memory store."""
    return ConversationLedger(store)


@pytest.fixture
def history(store: SqlRecordStore, conversations: ConversationLedger) -> HistoryLedger:
    """History ledger wired to the conversation ledger."""
    return HistoryLedger(store, conversations)


@pytest.fixture
def session() -> ChatSession:
    """A chat session with nothing selected."""
    return ChatSession()
