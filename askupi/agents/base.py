"""Base agent abstraction for statement analysis agents.

This module defines the abstract base class for all LLM-backed agents, enforcing a standard interface for analyzing statement text and answering chat questions about an analysis.
"""

from abc import ABC, abstractmethod
from typing import Any


class BaseAgent(ABC):
    """Abstract base class for all agents."""

    @abstractmethod
    def analyze_statement(self, statement_text: str, filename: str) -> str:
        """Return the raw model output describing the statement."""

    @abstractmethod
    def chat(self, messages: list[dict[str, Any]], analysis_data: dict[str, Any]) -> str:
        """Answer the last user message using the analysis as context."""
