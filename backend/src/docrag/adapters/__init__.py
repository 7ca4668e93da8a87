from typing import Any, Type

from docrag.adapters.base import BaseEmbedder, BaseLLM

_EMBEDDER_REGISTRY: dict[str, Type[BaseEmbedder]] = {}
_LLM_REGISTRY: dict[str, Type[BaseLLM]] = {}


def register_embedder(provider: str, cls: Type[BaseEmbedder]) -> None:
    """Register an embedder provider under a config name."""
    _EMBEDDER_REGISTRY[provider] = cls


def register_llm(provider: str, cls: Type[BaseLLM]) -> None:
    """Register an LLM provider under a config name."""
    _LLM_REGISTRY[provider] = cls


def create_embedder(provider: str, **kwargs: Any) -> BaseEmbedder:
    """Create an embedder instance based on provider.

    Raises:
        ValueError: If provider is not registered
    """
    if provider not in _EMBEDDER_REGISTRY:
        available = list(_EMBEDDER_REGISTRY.keys())
        raise ValueError(
            f"Unknown embedder provider: {provider}. Available: {available}"
        )
    return _EMBEDDER_REGISTRY[provider](**kwargs)


def create_llm(provider: str, **kwargs: Any) -> BaseLLM:
    """Create an LLM instance based on provider.

    Raises:
        ValueError: If provider is not registered
    """
    if provider not in _LLM_REGISTRY:
        available = list(_LLM_REGISTRY.keys())
        raise ValueError(f"Unknown LLM provider: {provider}. Available: {available}")
    return _LLM_REGISTRY[provider](**kwargs)


def list_embedder_providers() -> list[str]:
    return list(_EMBEDDER_REGISTRY.keys())


def list_llm_providers() -> list[str]:
    return list(_LLM_REGISTRY.keys())


from docrag.adapters.anthropic import AnthropicLLM
from docrag.adapters.embedding import OllamaEmbedder, OpenAIEmbedder
from docrag.adapters.llm import OllamaLLM, OpenAILLM
from docrag.adapters.nim import NIMEmbedder, NIMLLM

register_embedder("openai", OpenAIEmbedder)
register_embedder("ollama", OllamaEmbedder)
register_embedder("nim", NIMEmbedder)
register_llm("openai", OpenAILLM)
register_llm("anthropic", AnthropicLLM)
register_llm("ollama", OllamaLLM)
register_llm("nim", NIMLLM)

__all__ = [
    "BaseEmbedder",
    "BaseLLM",
    "create_embedder",
    "create_llm",
    "list_embedder_providers",
    "list_llm_providers",
    "register_embedder",
    "register_llm",
]
