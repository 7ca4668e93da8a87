"""Shared utilities for adapter implementations."""

import requests
import tiktoken

from docrag.models import TokenUsage

ENCODING_CACHE: dict[str, tiktoken.Encoding] = {}


def create_session_with_pooling(
    pool_connections: int = 10,
    pool_maxsize: int = 20,
    max_retries: int = 0,
) -> requests.Session:
    """Create a requests Session with connection pooling.

    Args:
        pool_connections: Number of connection pools to cache.
        pool_maxsize: Maximum number of connections to save per pool.
        max_retries: Connection-level retries; 0 surfaces failures immediately.
    """
    session = requests.Session()
    adapter = requests.adapters.HTTPAdapter(
        pool_connections=pool_connections,
        pool_maxsize=pool_maxsize,
        max_retries=max_retries,
    )
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    return session


def get_tokenizer(model: str) -> tiktoken.Encoding:
    if model not in ENCODING_CACHE:
        try:
            ENCODING_CACHE[model] = tiktoken.encoding_for_model(model)
        except KeyError:
            ENCODING_CACHE[model] = tiktoken.get_encoding("cl100k_base")
    return ENCODING_CACHE[model]


def count_tokens(text: str, model: str = "gpt-4") -> int:
    return len(get_tokenizer(model).encode(text))


def estimate_usage(prompt: str, completion: str, model: str) -> TokenUsage:
    """Approximate token usage for providers that do not report it."""
    return TokenUsage(
        input_tokens=count_tokens(prompt, model),
        output_tokens=count_tokens(completion, model),
    )
