"""FastAPI dependencies for DI (settings, agent).

This module provides dependency injection helpers for settings and agent instantiation, so endpoints can be tested with a stub agent through ``app.dependency_overrides``.
"""

from groq import Groq

from askupi.agents.base import BaseAgent
from askupi.agents.registry import AgentRegistry
from askupi.core.settings import Settings, get_settings


def get_app_settings() -> Settings:
    """Provide the application settings for dependency injection."""
    return get_settings()


def get_agent() -> BaseAgent:
    """Provide the configured agent instance for dependency injection."""
    settings = get_settings()
    client = Groq(api_key=settings.groq_api_key)
    agent_cls = AgentRegistry.get(settings.agent_name)
    return agent_cls(client, settings)
