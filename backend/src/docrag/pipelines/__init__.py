from .base import (
    ANSWER_PROMPT_TEMPLATE,
    DEFAULT_SEARCH_LIMIT,
    DEFAULT_TOP_K,
    STREAM_PROMPT_TEMPLATE,
    create_embedder_from_config,
    create_llm_from_config,
    create_vector_store_from_config,
    extract_answer,
    format_context,
)
from .ingestion import IngestionPipeline
from .retrieval import RetrievalPipeline

__all__ = [
    "ANSWER_PROMPT_TEMPLATE",
    "DEFAULT_SEARCH_LIMIT",
    "DEFAULT_TOP_K",
    "IngestionPipeline",
    "RetrievalPipeline",
    "STREAM_PROMPT_TEMPLATE",
    "create_embedder_from_config",
    "create_llm_from_config",
    "create_vector_store_from_config",
    "extract_answer",
    "format_context",
]
