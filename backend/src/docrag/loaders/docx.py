import io
import logging

from docx import Document

from docrag.errors import UnsupportedFormat
from .base import BaseTextExtractor

logger = logging.getLogger(__name__)


class DocxExtractor(BaseTextExtractor):
    """Word documents via python-docx; one line per paragraph."""

    source = "docx"
    extensions = (".docx",)

    def extract_text(self, data: bytes) -> str:
        try:
            document = Document(io.BytesIO(data))
        except Exception as e:
            raise UnsupportedFormat(f"Failed to read DOCX: {e}") from e

        text = "\n".join(paragraph.text for paragraph in document.paragraphs)
        logger.debug(f"Extracted {len(text)} characters from DOCX")
        return text.strip()
