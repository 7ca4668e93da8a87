from abc import ABC, abstractmethod
from pathlib import Path


class BaseTextExtractor(ABC):
    """Abstract base class for raw text extractors, one per file format."""

    #: Metadata source recorded on chunks produced from this format.
    source: str = ""
    extensions: tuple[str, ...] = ()

    @abstractmethod
    def extract_text(self, data: bytes) -> str:
        """Extract plain text from raw file bytes."""
        pass

    def load_file(self, file_path: Path | str) -> str:
        """Read a file from disk and extract its text."""
        return self.extract_text(Path(file_path).read_bytes())
