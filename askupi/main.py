"""Main entrypoint and application factory for the AskUPI analysis API.

This module initializes the FastAPI application, configures logging, and exposes the Scalar API reference endpoint for interactive OpenAPI documentation. It also includes the entrypoint for running the app with Uvicorn.
"""

import logging
from pathlib import Path

from fastapi import FastAPI
from fastapi.responses import HTMLResponse
from scalar_fastapi import get_scalar_api_reference

from askupi.api.routes import router
from askupi.core.settings import get_settings
from askupi.core.utils import get_logger


# --- Logging Setup ---
def setup_logging() -> None:
    """Configure the project logger for console and file output."""
    settings = get_settings()
    logger = get_logger("askupi")
    logger.setLevel(logging.INFO)
    # Add file handler for persistent logs (not colorized)
    if not any(isinstance(h, logging.FileHandler) for h in logger.handlers):
        log_path = Path(settings.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path)
        file_handler.setLevel(logging.INFO)
        file_handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s"))
        logger.addHandler(file_handler)
    logger.propagate = False


def create_app() -> FastAPI:
    """Build the FastAPI application."""
    setup_logging()
    app = FastAPI(
        docs_url="/docs",
        redoc_url="/redoc",
        title="AskUPI API",
        description="""
    The AskUPI API analyzes UPI statement PDFs with an LLM and answers questions about the result.
    Statements are forwarded to the model only; nothing is stored server-side.

    **Endpoints:**
    - `POST /api`: Upload a statement PDF and receive the analysis JSON.
    - `POST /api/chat`: Ask a question about an analysis.
    - `GET /health`: Health check endpoint.
    - `GET /scalar`: Interactive Scalar OpenAPI documentation.
    """,
        version="1.0.0",
    )
    app.include_router(router)

    @app.get("/scalar", include_in_schema=False)
    async def scalar_docs() -> HTMLResponse:
        """Return Scalar API reference."""
        return get_scalar_api_reference(openapi_url=app.openapi_url, title=app.title)

    return app


app = create_app()


def run() -> None:
    """Run the API with Uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run("askupi.main:app", host=settings.server_host, port=settings.server_port, reload=True)


if __name__ == "__main__":
    run()
