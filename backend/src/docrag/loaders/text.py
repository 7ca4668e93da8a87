from docrag.errors import UnsupportedFormat
from .base import BaseTextExtractor


class PlainTextExtractor(BaseTextExtractor):
    """UTF-8 plain text files."""

    source = "txt"
    extensions = (".txt",)

    def extract_text(self, data: bytes) -> str:
        try:
            return data.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise UnsupportedFormat(f"File is not valid UTF-8 text: {e}") from e


class MarkdownExtractor(PlainTextExtractor):
    """Markdown is kept verbatim so the splitter can cut on header markers."""

    source = "markdown"
    extensions = (".md", ".markdown")
