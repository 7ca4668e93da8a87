import logging
from typing import Any, Iterator, Optional

from docrag.adapters import BaseLLM
from docrag.config import get_config_value
from docrag.errors import DocRAGError, GenerationFailed, NoRelevantDocuments
from docrag.models import Completion, RAGResponse, SearchResult, StreamEvent
from docrag.stores import BaseVectorStore
from .base import (
    ANSWER_PROMPT_TEMPLATE,
    DEFAULT_SEARCH_LIMIT,
    DEFAULT_TOP_K,
    STREAM_PROMPT_TEMPLATE,
    extract_answer,
    format_context,
)

logger = logging.getLogger(__name__)


class RetrievalPipeline:
    """Pipeline for retrieving chunks and generating grounded answers.

    Supports dependency injection for flexible composition.
    """

    def __init__(
        self,
        llm: BaseLLM,
        vector_store: BaseVectorStore,
        top_k: int = DEFAULT_TOP_K,
        search_limit: int = DEFAULT_SEARCH_LIMIT,
        answer_template: str = ANSWER_PROMPT_TEMPLATE,
        stream_template: str = STREAM_PROMPT_TEMPLATE,
    ):
        self.llm = llm
        self.vector_store = vector_store
        self.top_k = top_k
        self.search_limit = search_limit
        self.answer_template = answer_template
        self.stream_template = stream_template

    @classmethod
    def from_config(
        cls, config: dict[str, Any], llm: BaseLLM, vector_store: BaseVectorStore
    ) -> "RetrievalPipeline":
        """Create pipeline from configuration dictionary."""
        return cls(
            llm=llm,
            vector_store=vector_store,
            top_k=get_config_value(config, "retrieval.top_k", DEFAULT_TOP_K),
            search_limit=get_config_value(
                config, "retrieval.search_limit", DEFAULT_SEARCH_LIMIT
            ),
        )

    def search(self, query: str, limit: Optional[int] = None) -> list[SearchResult]:
        """Plain similarity search, no generation."""
        k = self.search_limit if limit is None else limit
        return self.vector_store.search(query, k=k)

    def retrieve(self, question: str) -> list[SearchResult]:
        """Retrieve context for a question.

        Raises:
            NoRelevantDocuments: If the index returns nothing.
        """
        logger.info(f"Retrieving context for: {question[:50]}...")
        results = self.vector_store.search(question, k=self.top_k)
        if not results:
            raise NoRelevantDocuments()

        logger.info(f"Found {len(results)} results")
        return results

    def build_prompt(
        self, question: str, results: list[SearchResult], template: str
    ) -> str:
        return template.format(context=format_context(results), question=question)

    def _complete(self, prompt: str) -> Completion:
        try:
            return self.llm.complete(prompt)
        except DocRAGError:
            raise
        except Exception as e:
            raise GenerationFailed(str(e)) from e

    def query(self, question: str) -> RAGResponse:
        """Execute a full RAG query: retrieve, then generate in one call."""
        results = self.retrieve(question)
        prompt = self.build_prompt(question, results, self.answer_template)

        logger.info("Generating response...")
        completion = self._complete(prompt)

        return RAGResponse(
            answer=extract_answer(completion.text),
            sources=results,
            tokens_used=completion.usage,
        )

    def stream_query(self, question: str) -> Iterator[StreamEvent]:
        """Stream a RAG answer as sources, answer fragments, then done.

        Nothing runs until the first ``next()``. Closing the generator closes
        the provider stream; closing it right after the sources event means
        generation is never started.
        """
        results = self.retrieve(question)
        yield StreamEvent(type="sources", data=results)

        prompt = self.build_prompt(question, results, self.stream_template)
        logger.info("Streaming response...")

        try:
            fragments = self.llm.stream(prompt)
        except DocRAGError:
            raise
        except Exception as e:
            raise GenerationFailed(str(e)) from e

        try:
            for fragment in fragments:
                if fragment:
                    yield StreamEvent(type="answer", data=fragment)
        except DocRAGError:
            raise
        except Exception as e:
            raise GenerationFailed(str(e)) from e
        finally:
            close = getattr(fragments, "close", None)
            if close is not None:
                close()

        yield StreamEvent(type="done", data="")
