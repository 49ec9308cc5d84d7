"""Text extraction from resume files (PDF, DOCX, plain text)."""

import io
from typing import Optional

import structlog

logger = structlog.get_logger()

DOCX_CONTENT_TYPES = (
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
)


def extract_text_from_file(
    content: bytes,
    filename: str,
    content_type: Optional[str] = None,
) -> str:
    """Extract text content from a resume file.

    Args:
        content: File content as bytes
        filename: Original filename or URL path (for extension detection)
        content_type: MIME type (optional)

    Returns:
        Extracted text content
    """
    ext = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
    content_type = (content_type or "").split(";")[0].strip()

    if content_type == "application/pdf" or ext == "pdf" or content.startswith(b"%PDF"):
        return _extract_from_pdf(content)
    if content_type in DOCX_CONTENT_TYPES or ext == "docx":
        return _extract_from_docx(content)
    return content.decode("utf-8", errors="ignore")


def _extract_from_pdf(content: bytes) -> str:
    """Extract text from a PDF file."""
    from pypdf import PdfReader
    from pypdf.errors import PdfReadError

    try:
        reader = PdfReader(io.BytesIO(content))
        text = "\n\n".join(filter(None, (page.extract_text() for page in reader.pages)))
    except (PdfReadError, ValueError) as e:
        logger.error("PDF extraction failed", error=str(e))
        raise ExtractionError(f"PDF extraction failed: {str(e)}") from e

    logger.info("PDF text extracted", pages=len(reader.pages), chars=len(text))
    return text


def _extract_from_docx(content: bytes) -> str:
    """Extract text from a DOCX file, including table cells."""
    from docx import Document

    try:
        doc = Document(io.BytesIO(content))
    except (ValueError, KeyError) as e:
        logger.error("DOCX extraction failed", error=str(e))
        raise ExtractionError(f"DOCX extraction failed: {str(e)}") from e

    text_parts = [p.text for p in doc.paragraphs if p.text.strip()]
    for table in doc.tables:
        for row in table.rows:
            cells = [c.text.strip() for c in row.cells if c.text.strip()]
            if cells:
                text_parts.append(" | ".join(cells))

    text = "\n\n".join(text_parts)
    logger.info("DOCX text extracted", paragraphs=len(doc.paragraphs), chars=len(text))
    return text


class ExtractionError(Exception):
    """Raised when text extraction fails."""

    pass
