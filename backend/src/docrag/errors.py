"""Exception hierarchy for docrag."""


class DocRAGError(Exception):
    """Base exception for all docrag errors."""
    pass


class ConfigurationError(DocRAGError):
    """Raised when chunking or component configuration is invalid."""
    pass


class UnsupportedFormat(DocRAGError):
    """Raised for unrecognized file extensions or disabled formats."""
    pass


class IndexNotInitialized(DocRAGError):
    """Raised when the vector store is used before initialize()."""

    def __init__(self, message: str = "Vector store not initialized"):
        super().__init__(message)


class NoRelevantDocuments(DocRAGError):
    """Raised when retrieval returns zero results for a question."""

    def __init__(self, message: str = "No relevant documents found"):
        super().__init__(message)


class EmbeddingFailed(DocRAGError):
    """Raised when the embedding provider fails."""
    pass


class GenerationFailed(DocRAGError):
    """Raised when the generation provider fails."""
    pass


class PersistenceFailed(DocRAGError):
    """Raised when writing the index snapshot fails."""
    pass


class LoadCorrupted(DocRAGError):
    """Raised when a snapshot exists but cannot be read back."""
    pass
