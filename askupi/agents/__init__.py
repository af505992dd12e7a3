"""Agents package: provides the agent registry, base class, and the Groq statement agent."""

from .base import BaseAgent  # noqa: F401
from .registry import AgentRegistry  # noqa: F401
from .statement_agent import StatementAgent  # noqa: F401
