"""FastAPI endpoints for the AskUPI analysis service.

This module defines the statement upload endpoint (``POST /api``), the chat endpoint (``POST /api/chat``) and a health check. Uploaded files are only forwarded to the LLM; nothing is stored server-side and results go straight back to the client.
"""

from typing import Any

from fastapi import APIRouter, Depends, File, Request, UploadFile
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from askupi.agents.base import BaseAgent
from askupi.api.dependencies import get_agent, get_app_settings
from askupi.core.errors import MalformedResponse
from askupi.core.settings import Settings
from askupi.core.utils import get_logger
from askupi.services.file_service import extract_statement_text
from askupi.services.intake import StatementFile, validate_statement
from askupi.services.normalizer import parse_json_object

router = APIRouter()
logger = get_logger("askupi.api")

HTTP_400_BAD_REQUEST = 400
HTTP_499_CLIENT_CLOSED_REQUEST = 499
HTTP_500_INTERNAL_SERVER_ERROR = 500


def _error(status_code: int, error: str, **extra: Any) -> JSONResponse:
    return JSONResponse({"error": error, **extra}, status_code=status_code)


def _cancelled() -> JSONResponse:
    logger.info("Client disconnected; dropping result")
    return _error(HTTP_499_CLIENT_CLOSED_REQUEST, "Request cancelled by client")


@router.post(
    "/api",
    summary="Analyze a UPI statement PDF",
    description=(
        "Upload one UPI statement PDF. The text of the statement is sent to the LLM, whose answer is "
        "cleaned up and returned as the analysis JSON.\n\n"
        "**Request:**\n"
        "- Content-Type: multipart/form-data\n"
        "- Form field: `file` (PDF file)\n\n"
        "**Response:**\n"
        "- 200 OK: the analysis (`transactions`, `summary`, `category_breakdown`, `insights`, `recommendations`).\n"
        "- 400 Bad Request: no file, wrong type, too large or unreadable PDF.\n"
        "- 499: the client cancelled the request.\n"
        "- 500 Internal Server Error: LLM failure or unparseable model output."
    ),
    responses={
        400: {"content": {"application/json": {"example": {"error": "No file provided"}}}},
        499: {"content": {"application/json": {"example": {"error": "Request cancelled by client"}}}},
        500: {
            "content": {
                "application/json": {
                    "example": {"error": "Failed to parse analysis data", "details": "...", "rawResponse": "..."}
                }
            }
        },
    },
)
async def analyze_statement(
    request: Request,
    file: UploadFile | None = File(None),
    agent: BaseAgent = Depends(get_agent),
    settings: Settings = Depends(get_app_settings),
) -> JSONResponse:
    """Analyze an uploaded statement with the LLM."""
    if file is None:
        return _error(HTTP_400_BAD_REQUEST, "No file provided")
    data = await file.read()
    statement = StatementFile(
        filename=file.filename or "statement.pdf",
        content_type=file.content_type or "",
        data=data,
    )
    logger.info(f"Starting analysis for {statement.filename} type: {statement.content_type} size: {statement.size}")
    violations = validate_statement(statement, settings.max_upload_bytes)
    if violations:
        logger.warning(f"Rejected upload {statement.filename}: {violations}")
        return _error(HTTP_400_BAD_REQUEST, "; ".join(violations))
    try:
        text = await run_in_threadpool(extract_statement_text, statement.data, settings.statement_max_pages)
    except ValueError as exc:
        return _error(HTTP_400_BAD_REQUEST, str(exc))
    if await request.is_disconnected():
        return _cancelled()
    try:
        raw_output = await run_in_threadpool(agent.analyze_statement, text, statement.filename)
    except Exception as exc:
        logger.exception("Error during file analysis")
        return _error(HTTP_500_INTERNAL_SERVER_ERROR, str(exc) or "Unknown error")
    if await request.is_disconnected():
        return _cancelled()
    logger.info("Analysis complete, parsing results")
    try:
        parsed = parse_json_object(raw_output)
    except MalformedResponse as exc:
        return _error(
            HTTP_500_INTERNAL_SERVER_ERROR,
            "Failed to parse analysis data",
            details=str(exc),
            rawResponse=exc.raw_prefix,
        )
    return JSONResponse(parsed)


@router.post(
    "/api/chat",
    summary="Ask a question about an analysis",
    description=(
        "Send the conversation so far together with the analysis it is grounded in. "
        "The last message must come from the user.\n\n"
        "**Request body:** `{ messages: Message[], analysisData: Analysis }`\n\n"
        "**Response:**\n"
        "- 200 OK: `{ text: string }`\n"
        "- 400 Bad Request: missing parameters or last message not from the user.\n"
        "- 500 Internal Server Error: `{ error: 'Failed to process chat' }`"
    ),
    responses={
        200: {"content": {"application/json": {"example": {"text": "You spent most on food."}}}},
        400: {"content": {"application/json": {"example": {"error": "Missing required parameters"}}}},
        500: {"content": {"application/json": {"example": {"error": "Failed to process chat"}}}},
    },
)
async def chat(request: Request, agent: BaseAgent = Depends(get_agent)) -> JSONResponse:
    """Answer a chat question about an analysis."""
    try:
        body = await request.json()
    except ValueError:
        return _error(HTTP_400_BAD_REQUEST, "Missing required parameters")
    messages = body.get("messages") if isinstance(body, dict) else None
    analysis_data = body.get("analysisData") if isinstance(body, dict) else None
    if not messages or not analysis_data or not isinstance(messages, list):
        return _error(HTTP_400_BAD_REQUEST, "Missing required parameters")
    if not all(isinstance(m, dict) and "role" in m and "content" in m for m in messages):
        return _error(HTTP_400_BAD_REQUEST, "Malformed messages")
    if messages[-1]["role"] != "user":
        return _error(HTTP_400_BAD_REQUEST, "Last message must be from user")
    try:
        text = await run_in_threadpool(agent.chat, messages, analysis_data)
    except Exception:
        logger.exception("Chat API error")
        return _error(HTTP_500_INTERNAL_SERVER_ERROR, "Failed to process chat")
    return JSONResponse({"text": text})


@router.get(
    "/health",
    summary="Health check",
    description="Simple health check endpoint. Returns status ok.",
    response_description="Status ok.",
    responses={200: {"description": "API is healthy.", "content": {"application/json": {"example": {"status": "ok"}}}}},
)
async def health() -> dict:
    """Health check endpoint."""
    return {"status": "ok"}
