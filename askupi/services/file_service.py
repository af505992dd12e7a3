"""Statement file handling: text extraction from uploaded PDFs."""

import io

import pdfplumber

from askupi.core.utils import get_logger

logger = get_logger("askupi.files")


def extract_statement_text(data: bytes, max_pages: int) -> str:
    """Return the text of the first ``max_pages`` pages of a PDF statement."""
    chunks: list[str] = []
    try:
        with pdfplumber.open(io.BytesIO(data)) as pdf:
            pages = pdf.pages
            if len(pages) > max_pages:
                logger.warning(f"Statement has {len(pages)} pages; reading the first {max_pages}")
            for page in pages[:max_pages]:
                chunks.append(page.extract_text() or "")
    except Exception as exc:
        msg = f"Could not read PDF statement: {exc}"
        logger.exception(msg)
        raise ValueError(msg) from exc
    text = "\n".join(chunks).strip()
    if not text:
        msg = "PDF statement contains no extractable text"
        raise ValueError(msg)
    return text
