"""API package: provides FastAPI dependencies and route definitions for the analysis service."""

from .dependencies import get_agent, get_app_settings  # noqa: F401
from .routes import router  # noqa: F401
