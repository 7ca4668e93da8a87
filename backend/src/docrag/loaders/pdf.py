from docrag.errors import UnsupportedFormat
from .base import BaseTextExtractor


class PDFExtractor(BaseTextExtractor):
    """PDF support is declared but disabled; extraction always fails fast."""

    source = "pdf"
    extensions = (".pdf",)

    def extract_text(self, data: bytes) -> str:
        raise UnsupportedFormat(
            "PDF support is disabled. Use TXT, MD or DOCX files."
        )
