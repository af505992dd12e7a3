"""Pydantic models for AskUPI.

This module defines the analysis shape produced by the LLM (transactions, summary, category breakdown, insights and recommendations) and the persisted records built on top of it: history entries, conversations and chat messages. Persisted records use the camelCase keys of the browser-era storage format.
"""

import datetime as dt
from enum import Enum
from typing import Any, Literal, get_args

from pydantic import BaseModel, ConfigDict, Field, field_validator

MAX_DESCRIPTION_LEN = 200
MAX_INSIGHTS = 3
MAX_RECOMMENDATIONS = 3

InsightType = Literal["saving_opportunity", "spending_pattern", "anomaly", "tip"]


def _optional_number(value: Any) -> float | None:
    """Return value as a float, or None when it is not a plain number (e.g. "500 per month")."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.replace(",", "").strip())
        except ValueError:
            return None
    return None


class Category(str, Enum):
    """Spending category assigned to a transaction."""

    FOOD = "food"
    SHOPPING = "shopping"
    ENTERTAINMENT = "entertainment"
    UTILITIES = "utilities"
    TRANSPORT = "transport"
    HEALTH = "health"
    EDUCATION = "education"
    TRAVEL = "travel"
    SUBSCRIPTION = "subscription"
    OTHER = "other"


class Transaction(BaseModel):
    """A single statement line; negative amounts are debits, positive are credits."""

    model_config = ConfigDict(frozen=True)

    date: dt.date
    time: str | None = None
    description: str
    amount: float
    upi_id: str | None = None
    category: Category = Category.OTHER

    @field_validator("description", mode="before")
    @classmethod
    def _bound_description(cls, value: Any) -> str:
        text = "" if value is None else str(value)
        return text[:MAX_DESCRIPTION_LEN]

    @field_validator("category", mode="before")
    @classmethod
    def _coerce_category(cls, value: Any) -> str:
        text = str(value or "").strip().lower()
        return text if text in Category._value2member_map_ else Category.OTHER.value


class Summary(BaseModel):
    """Totals reported by the model for the whole statement."""

    model_config = ConfigDict(frozen=True)

    total_spent: float
    total_received: float
    net_change: float
    transaction_count: int
    start_date: str
    end_date: str


class CategoryStat(BaseModel):
    """Per-category share of spending; unusable numbers read as zero."""

    model_config = ConfigDict(frozen=True)

    total: float = 0.0
    percentage: float = 0.0
    count: int = 0

    @field_validator("total", "percentage", mode="before")
    @classmethod
    def _zero_if_not_numeric(cls, value: Any) -> float:
        number = _optional_number(value)
        return 0.0 if number is None else number

    @field_validator("count", mode="before")
    @classmethod
    def _count_or_zero(cls, value: Any) -> int:
        number = _optional_number(value)
        return 0 if number is None else int(number)


class Insight(BaseModel):
    """A short observation about the statement."""

    model_config = ConfigDict(frozen=True)

    type: InsightType = "tip"
    description: str
    impact: float | None = None

    @field_validator("type", mode="before")
    @classmethod
    def _coerce_type(cls, value: Any) -> str:
        text = str(value or "").strip().lower()
        return text if text in get_args(InsightType) else "tip"

    @field_validator("description", mode="before")
    @classmethod
    def _description_text(cls, value: Any) -> str:
        return str(value)

    @field_validator("impact", mode="before")
    @classmethod
    def _impact_number(cls, value: Any) -> float | None:
        return _optional_number(value)


class Recommendation(BaseModel):
    """An actionable suggestion for one category."""

    model_config = ConfigDict(frozen=True)

    category: str = Category.OTHER.value
    action: str
    potential_savings: float | None = None

    @field_validator("category", mode="before")
    @classmethod
    def _category_text(cls, value: Any) -> str:
        return str(value) if value else Category.OTHER.value

    @field_validator("action", mode="before")
    @classmethod
    def _action_text(cls, value: Any) -> str:
        return str(value)

    @field_validator("potential_savings", mode="before")
    @classmethod
    def _savings_number(cls, value: Any) -> float | None:
        return _optional_number(value)


def _entries_with(value: Any, required: str) -> list[Any]:
    """Keep the list entries that are objects carrying a non-empty ``required`` text."""
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, BaseModel) or (isinstance(item, dict) and item.get(required))]


class Analysis(BaseModel):
    """The structured result of one statement upload."""

    model_config = ConfigDict(frozen=True)

    transactions: list[Transaction]
    summary: Summary
    category_breakdown: dict[str, CategoryStat] = Field(default_factory=dict)
    insights: list[Insight] = Field(default_factory=list)
    recommendations: list[Recommendation] = Field(default_factory=list)

    @field_validator("category_breakdown", mode="before")
    @classmethod
    def _drop_unusable_categories(cls, value: Any) -> dict[str, Any]:
        if not isinstance(value, dict):
            return {}
        return {str(name): stat for name, stat in value.items() if isinstance(stat, dict | BaseModel)}

    @field_validator("insights", mode="before")
    @classmethod
    def _drop_unusable_insights(cls, value: Any) -> list[Any]:
        return _entries_with(value, "description")

    @field_validator("recommendations", mode="before")
    @classmethod
    def _drop_unusable_recommendations(cls, value: Any) -> list[Any]:
        return _entries_with(value, "action")

    @field_validator("insights")
    @classmethod
    def _cap_insights(cls, value: list[Insight]) -> list[Insight]:
        return value[:MAX_INSIGHTS]

    @field_validator("recommendations")
    @classmethod
    def _cap_recommendations(cls, value: list[Recommendation]) -> list[Recommendation]:
        return value[:MAX_RECOMMENDATIONS]

    @property
    def date_range(self) -> tuple[str, str]:
        """Return the (start_date, end_date) pair of the summary."""
        return self.summary.start_date, self.summary.end_date


class HistoryEntry(BaseModel):
    """A persisted record of one past analysis."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    app_name: str = Field(alias="appName")
    start_date: str = Field(alias="startDate")
    end_date: str = Field(alias="endDate")
    analysis_date: str = Field(alias="analysisDate")
    data: Analysis


class Message(BaseModel):
    """One chat turn."""

    model_config = ConfigDict(frozen=True)

    id: str
    role: Literal["user", "assistant"]
    content: str
    timestamp: str


class Conversation(BaseModel):
    """A chat thread grounded in one analysis."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    title: str
    created_at: str = Field(alias="createdAt")
    analysis_data: Analysis = Field(alias="analysisData")
    messages: list[Message] = Field(default_factory=list)
    history_id: str | None = Field(default=None, alias="historyId")


class StorageInfo(BaseModel):
    """Estimated durable storage usage."""

    used: int
    total: int
    percent_used: float
