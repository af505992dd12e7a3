"""Response normalizer: recover one analysis object from free-text model output.

Extraction runs through enumerated tiers, each usable on its own:

1. ``extract_fenced``: inner content of a fenced code block (optionally tagged ``json``).
2. ``trim_to_braces``: drop text before the first ``{`` and after the last ``}``.
3. ``json.loads`` on whatever is left.

Nothing beyond trimming is attempted; malformed JSON is rejected, not repaired.
"""

import json
import re
from typing import Any

from pydantic import ValidationError

from askupi.core.errors import EmptyAnalysis, IncompleteAnalysis, MalformedResponse
from askupi.core.models import Analysis
from askupi.core.utils import get_logger, truncate

RAW_PREFIX_LEN = 1000

_FENCE_RE = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```")

logger = get_logger("askupi.normalizer")


def extract_fenced(text: str) -> str | None:
    """Return the inner content of the first fenced block, or None."""
    match = _FENCE_RE.search(text)
    if match and match.group(1):
        return match.group(1)
    return None


def trim_to_braces(text: str) -> str:
    """Trim whitespace and any non-JSON prose around the outermost braces."""
    cleaned = text.strip()
    if not cleaned.startswith("{"):
        start = cleaned.find("{")
        if start >= 0:
            cleaned = cleaned[start:]
    if not cleaned.endswith("}"):
        end = cleaned.rfind("}")
        if end >= 0:
            cleaned = cleaned[: end + 1]
    return cleaned


def extract_json_text(text: str) -> str:
    """Run the fence and brace tiers and return the candidate JSON text."""
    fenced = extract_fenced(text)
    return trim_to_braces(fenced if fenced is not None else text)


def parse_json_object(text: Any) -> dict[str, Any]:
    """Parse one JSON object out of model output or raise MalformedResponse."""
    raw = text if isinstance(text, str) else str(text)
    candidate = extract_json_text(raw)
    try:
        data = json.loads(candidate)
    except (ValueError, RecursionError) as exc:
        logger.warning(f"Failed to parse JSON response: {exc}")
        raise MalformedResponse(f"Failed to parse analysis data: {exc}", truncate(raw, RAW_PREFIX_LEN)) from exc
    if not isinstance(data, dict):
        msg = f"Expected a JSON object, got {type(data).__name__}"
        logger.warning(msg)
        raise MalformedResponse(msg, truncate(raw, RAW_PREFIX_LEN))
    return data


def unwrap_response(body: Any) -> dict[str, Any]:
    """Return the analysis object from a flat body or one wrapped under ``text``."""
    if isinstance(body, str):
        return parse_json_object(body)
    if not isinstance(body, dict):
        raise MalformedResponse(f"Unexpected response body: {type(body).__name__}", truncate(str(body), RAW_PREFIX_LEN))
    if body.get("text"):
        embedded = body["text"]
        return embedded if isinstance(embedded, dict) else parse_json_object(embedded)
    return body


def validate_analysis(data: dict[str, Any]) -> Analysis:
    """Check the required fields and build an Analysis."""
    transactions = data.get("transactions")
    if not isinstance(transactions, list) or not transactions:
        raise EmptyAnalysis("No transactions found. Is this a UPI statement?")
    if not isinstance(data.get("summary"), dict):
        raise IncompleteAnalysis("Analysis is missing its summary")
    try:
        return Analysis.model_validate(data)
    except ValidationError as exc:
        logger.warning(f"Analysis failed validation: {exc.error_count()} errors")
        raise IncompleteAnalysis(f"Analysis has malformed fields: {exc}") from exc


def normalize_response(body: Any) -> Analysis:
    """Turn an upload response body into a validated Analysis."""
    return validate_analysis(unwrap_response(body))
