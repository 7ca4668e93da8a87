import re
from pathlib import Path
from typing import Any, Callable

from docrag.adapters import BaseEmbedder, BaseLLM, create_embedder, create_llm
from docrag.config import get_config_value, get_snapshot_dir
from docrag.models import SearchResult
from docrag.stores import BaseVectorStore, create_vector_store

DEFAULT_TOP_K = 4
DEFAULT_SEARCH_LIMIT = 10

DOCUMENT_TEMPLATE = """<document index="{index}">
<source>{filename}</source>
<content>
{content}
</content>
</document>"""

ANSWER_PROMPT_TEMPLATE = """Answer the user's question using the documents below.

IMPORTANT RULES:
1. Use ONLY information from the provided documents
2. If the answer is not in the documents, say so plainly
3. ALWAYS cite your sources: mention the filename and index of the document
4. Quote specific passages where it helps
5. If the documents contradict each other, point it out

Documents:
{context}

Question: {question}

Response format:
<answer>
Your detailed answer, citing sources
</answer>

<sources>
<source index="0">Short quote or summary of what was taken from this document</source>
<source index="1">...</source>
</sources>"""

STREAM_PROMPT_TEMPLATE = """Answer the user's question using the documents below.

IMPORTANT RULES:
1. Use ONLY information from the provided documents
2. If the answer is not in the documents, say so plainly
3. Mention your sources (filename and index)
4. Be specific and precise

Documents:
{context}

Question: {question}

Give a detailed answer, stating where each piece of information comes from."""

_ANSWER_PATTERN = re.compile(r"<answer>(.*?)</answer>", re.DOTALL)


def format_context(results: list[SearchResult]) -> str:
    """Render search results as indexed <document> blocks."""
    return "\n\n".join(
        DOCUMENT_TEMPLATE.format(
            index=i,
            filename=result.metadata.filename,
            content=result.content,
        )
        for i, result in enumerate(results)
    )


def extract_answer(response_text: str) -> str:
    """Return the trimmed contents of the first <answer> block, or the raw text."""
    match = _ANSWER_PATTERN.search(response_text)
    return match.group(1).strip() if match else response_text


def _create_adapter_from_config(
    config: dict[str, Any],
    section: str,
    create_fn: Callable[..., Any],
    defaults: dict[str, str],
) -> Any:
    """Create an adapter (embedder or LLM) from configuration."""
    section_config = config.get(section, {})
    provider = section_config.get("provider", defaults["provider"])
    model = section_config.get("model", defaults["model"])

    extra_kwargs = {
        k: v for k, v in section_config.items() if k not in ("provider", "model")
    }

    return create_fn(provider, model=model, **extra_kwargs)


def create_embedder_from_config(config: dict[str, Any]) -> BaseEmbedder:
    """Create an embedder instance from configuration."""
    defaults = {"provider": "openai", "model": "text-embedding-3-small"}
    return _create_adapter_from_config(config, "embedding", create_embedder, defaults)


def create_llm_from_config(config: dict[str, Any]) -> BaseLLM:
    """Create an LLM instance from configuration."""
    defaults = {"provider": "anthropic", "model": "claude-sonnet-4-20250514"}
    return _create_adapter_from_config(config, "llm", create_llm, defaults)


def create_vector_store_from_config(
    config: dict[str, Any], config_path: Path, embedder: BaseEmbedder
) -> BaseVectorStore:
    """Create the vector store rooted at the configured snapshot directory."""
    index_config = config.get("index", {})
    return create_vector_store(
        index_config.get("provider", "faiss"),
        embedder=embedder,
        snapshot_dir=get_snapshot_dir(config, config_path),
        hnsw_m=get_config_value(config, "index.hnsw_m", 32),
        ef_construction=get_config_value(config, "index.ef_construction", 200),
        ef_search=get_config_value(config, "index.ef_search", 64),
    )
