from pathlib import Path

from docrag.errors import UnsupportedFormat
from .base import BaseTextExtractor
from .docx import DocxExtractor
from .pdf import PDFExtractor
from .text import MarkdownExtractor, PlainTextExtractor

_EXTRACTORS: tuple[type[BaseTextExtractor], ...] = (
    PlainTextExtractor,
    MarkdownExtractor,
    DocxExtractor,
    PDFExtractor,
)

SUPPORTED_EXTENSIONS = tuple(
    ext for cls in _EXTRACTORS if cls is not PDFExtractor for ext in cls.extensions
)


def get_extractor_for_file(file_path: Path | str) -> BaseTextExtractor:
    """Get the extractor for a file based on its extension.

    Raises:
        UnsupportedFormat: If no extractor handles the extension.
    """
    suffix = Path(file_path).suffix.lower()
    for cls in _EXTRACTORS:
        if suffix in cls.extensions:
            return cls()
    raise UnsupportedFormat(f"Unsupported file type: {suffix or Path(file_path).name}")


def detect_format(file_path: Path | str) -> str:
    """Return the chunk source name ("txt", "markdown", "docx") for a file."""
    return get_extractor_for_file(file_path).source


__all__ = [
    "BaseTextExtractor",
    "DocxExtractor",
    "MarkdownExtractor",
    "PDFExtractor",
    "PlainTextExtractor",
    "SUPPORTED_EXTENSIONS",
    "detect_format",
    "get_extractor_for_file",
]
