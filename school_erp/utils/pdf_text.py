"""Plain-text extraction from PDF files."""
import logging

from pypdf import PdfReader
from pypdf.errors import PdfReadError

logger = logging.getLogger(__name__)


def extract_pdf_text(path: str) -> str:
    """Concatenate the text of every page; unreadable files give an empty string."""
    try:
        reader = PdfReader(path)
        pages = []
        for page in reader.pages:
            text = page.extract_text()
            if text:
                pages.append(text)
    except (PdfReadError, OSError, ValueError) as e:
        logger.error(f"PDF extraction failed for {path}: {e}")
        return ""
    return "\n".join(pages).strip()
