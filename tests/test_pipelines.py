from pathlib import Path

import pytest

from docrag.errors import (
    ConfigurationError,
    GenerationFailed,
    NoRelevantDocuments,
    UnsupportedFormat,
)
from docrag.models import ChunkMetadata, ProjectFile, SearchResult
from docrag.pipelines import (
    IngestionPipeline,
    RetrievalPipeline,
    extract_answer,
    format_context,
)
from docrag.stores import FAISSVectorStore
from conftest import FailingLLM, MockEmbedder, MockLLM

HANDBOOK = (
    "Vacation requests must be approved by a manager two weeks in advance.\n\n"
    "Remote work is allowed up to three days per week.\n\n"
    "Laptops are replaced every four years."
)


@pytest.fixture
def ingestion(vector_store: FAISSVectorStore) -> IngestionPipeline:
    return IngestionPipeline(vector_store=vector_store, chunk_size=80, chunk_overlap=10)


@pytest.fixture
def retrieval(vector_store: FAISSVectorStore, mock_llm: MockLLM) -> RetrievalPipeline:
    return RetrievalPipeline(llm=mock_llm, vector_store=vector_store)


class TestPromptHelpers:
    def test_format_context(self) -> None:
        results = [
            SearchResult(
                content="Alpha content",
                metadata=ChunkMetadata(source="txt", filename="a.txt"),
                score=0.1,
            ),
            SearchResult(
                content="Beta content",
                metadata=ChunkMetadata(source="markdown", filename="b.md"),
                score=0.2,
            ),
        ]

        context = format_context(results)

        assert '<document index="0">\n<source>a.txt</source>' in context
        assert '<document index="1">\n<source>b.md</source>' in context
        assert "<content>\nBeta content\n</content>" in context

    def test_extract_answer(self) -> None:
        response = "Preamble\n<answer>\n  The answer.\n</answer>\n<sources></sources>"
        assert extract_answer(response) == "The answer."

    def test_extract_answer_first_block(self) -> None:
        assert extract_answer("<answer>one</answer><answer>two</answer>") == "one"

    def test_extract_answer_without_tags(self) -> None:
        assert extract_answer("Plain response") == "Plain response"


class TestIngestionPipeline:
    def test_ingest_upload_txt(
        self, ingestion: IngestionPipeline, vector_store: FAISSVectorStore
    ) -> None:
        count = ingestion.ingest_upload("handbook.txt", HANDBOOK.encode("utf-8"))

        chunks = vector_store.get_all()
        assert count == len(chunks) == 3
        assert {c.metadata.source for c in chunks} == {"txt"}
        assert {c.metadata.filename for c in chunks} == {"handbook.txt"}
        assert len({c.metadata.uploaded_at for c in chunks}) == 1
        assert all(c.metadata.page is None for c in chunks)

    def test_ingest_upload_markdown(
        self, ingestion: IngestionPipeline, vector_store: FAISSVectorStore
    ) -> None:
        text = "# Guide\n\nIntro paragraph.\n## Setup\nInstall the tool.\n## Usage\nRun it."
        ingestion.ingest_upload("guide.md", text.encode("utf-8"))

        chunks = vector_store.get_all()
        assert chunks
        assert all(c.metadata.source == "markdown" for c in chunks)

    def test_ingest_upload_pdf_rejected(
        self, ingestion: IngestionPipeline, vector_store: FAISSVectorStore
    ) -> None:
        with pytest.raises(UnsupportedFormat):
            ingestion.ingest_upload("paper.pdf", b"%PDF-1.4")
        assert vector_store.count == 0

    def test_blank_upload_adds_nothing(
        self,
        ingestion: IngestionPipeline,
        vector_store: FAISSVectorStore,
        mock_embedder: MockEmbedder,
    ) -> None:
        assert ingestion.ingest_upload("empty.txt", b"  \n\n ") == 0
        assert vector_store.count == 0
        assert mock_embedder.batch_calls == 0

    def test_project_files_are_one_batch(
        self,
        ingestion: IngestionPipeline,
        vector_store: FAISSVectorStore,
        mock_embedder: MockEmbedder,
    ) -> None:
        files = [
            ProjectFile(path="src/main.py", content="def main():\n    return 42\n"),
            ProjectFile(path="README.md", content="## Title\nProject readme."),
            ProjectFile(path="empty.txt", content=""),
        ]

        count = ingestion.ingest_project_files(files)

        chunks = vector_store.get_all()
        assert count == 2
        assert mock_embedder.batch_calls == 1
        assert {c.metadata.source for c in chunks} == {"project"}
        assert [c.metadata.filename for c in chunks] == ["src/main.py", "README.md"]

    def test_ingest_file(
        self, ingestion: IngestionPipeline, vector_store: FAISSVectorStore, tmp_path: Path
    ) -> None:
        path = tmp_path / "notes.txt"
        path.write_text("Meeting notes from Monday.", encoding="utf-8")

        assert ingestion.ingest_file(path) == 1
        assert vector_store.get_all()[0].metadata.filename == "notes.txt"

    def test_discover_files(self, ingestion: IngestionPipeline, tmp_path: Path) -> None:
        (tmp_path / "docs" / "nested").mkdir(parents=True)
        for name in ["docs/a.txt", "docs/nested/b.md", "docs/c.pdf", "docs/d.png"]:
            (tmp_path / name).write_text("x")

        found = ingestion.discover_files(tmp_path / "docs")

        assert [p.name for p in found] == ["a.txt", "b.md"]

    def test_invalid_chunking_rejected_at_construction(
        self, vector_store: FAISSVectorStore
    ) -> None:
        with pytest.raises(ConfigurationError):
            IngestionPipeline(vector_store=vector_store, chunk_size=100, chunk_overlap=100)

    def test_from_config(self, vector_store: FAISSVectorStore) -> None:
        config = {"ingestion": {"chunk_size": 600, "chunk_overlap": 60}}
        pipeline = IngestionPipeline.from_config(config, vector_store)
        assert pipeline.chunk_size == 600
        assert pipeline.chunk_overlap == 60

    def test_list_documents_and_clear(
        self, ingestion: IngestionPipeline, vector_store: FAISSVectorStore
    ) -> None:
        ingestion.ingest_upload("handbook.txt", HANDBOOK.encode("utf-8"))
        ingestion.ingest_upload("notes.md", b"Short note.")

        listing = ingestion.list_documents()
        assert [f.filename for f in listing.files] == ["handbook.txt", "notes.md"]
        assert listing.total_chunks == 4

        assert ingestion.clear_all() is True
        assert vector_store.count == 0


class TestRetrievalPipeline:
    def test_query_returns_answer(
        self,
        ingestion: IngestionPipeline,
        retrieval: RetrievalPipeline,
        mock_llm: MockLLM,
    ) -> None:
        ingestion.ingest_upload("handbook.txt", HANDBOOK.encode("utf-8"))

        response = retrieval.query("How often are laptops replaced?")

        assert response.answer == "Mock answer"
        assert 1 <= len(response.sources) <= 4
        assert response.tokens_used.input_tokens == 120
        assert response.tokens_used.output_tokens == 30
        prompt = mock_llm.prompts[-1]
        assert "<source>handbook.txt</source>" in prompt
        assert "Question: How often are laptops replaced?" in prompt
        assert "<answer>" in prompt

    def test_query_falls_back_to_raw_response(
        self, ingestion: IngestionPipeline, vector_store: FAISSVectorStore
    ) -> None:
        ingestion.ingest_upload("handbook.txt", HANDBOOK.encode("utf-8"))
        pipeline = RetrievalPipeline(
            llm=MockLLM(response="No tags here."), vector_store=vector_store
        )

        assert pipeline.query("Remote work?").answer == "No tags here."

    def test_query_uses_top_k(
        self, vector_store: FAISSVectorStore, ingestion: IngestionPipeline
    ) -> None:
        for i in range(6):
            ingestion.ingest_upload(f"doc{i}.txt", f"Document number {i} body.".encode())
        pipeline = RetrievalPipeline(llm=MockLLM(), vector_store=vector_store, top_k=4)

        assert len(pipeline.query("Document body").sources) == 4

    def test_query_empty_index(self, retrieval: RetrievalPipeline) -> None:
        with pytest.raises(NoRelevantDocuments):
            retrieval.query("Anything?")

    def test_unrelated_question_still_answers(
        self, ingestion: IngestionPipeline, retrieval: RetrievalPipeline
    ) -> None:
        ingestion.ingest_upload("handbook.txt", HANDBOOK.encode("utf-8"))

        response = retrieval.query("What is the boiling point of tungsten?")

        assert response.sources
        assert response.answer == "Mock answer"

    def test_generation_failure(
        self, ingestion: IngestionPipeline, vector_store: FAISSVectorStore
    ) -> None:
        ingestion.ingest_upload("handbook.txt", HANDBOOK.encode("utf-8"))
        pipeline = RetrievalPipeline(llm=FailingLLM(), vector_store=vector_store)

        with pytest.raises(GenerationFailed, match="rate limited") as exc_info:
            pipeline.query("Vacation?")
        assert isinstance(exc_info.value.__cause__, RuntimeError)

    def test_search_limit(
        self, ingestion: IngestionPipeline, vector_store: FAISSVectorStore
    ) -> None:
        for i in range(12):
            ingestion.ingest_upload(f"doc{i}.txt", f"Document number {i} body.".encode())
        pipeline = RetrievalPipeline(llm=MockLLM(), vector_store=vector_store)

        assert len(pipeline.search("Document")) == 10
        assert len(pipeline.search("Document", limit=2)) == 2


class TestStreamQuery:
    def test_event_order(
        self, ingestion: IngestionPipeline, retrieval: RetrievalPipeline
    ) -> None:
        ingestion.ingest_upload("handbook.txt", HANDBOOK.encode("utf-8"))

        events = list(retrieval.stream_query("Remote work?"))

        assert [e.type for e in events] == ["sources", "answer", "answer", "answer", "done"]
        assert events[0].data
        assert all(isinstance(r, SearchResult) for r in events[0].data)
        assert "".join(e.data for e in events[1:-1]) == "Mock streamed answer"
        assert events[-1].data == ""

    def test_stream_prompt_has_no_answer_tags(
        self,
        ingestion: IngestionPipeline,
        retrieval: RetrievalPipeline,
        mock_llm: MockLLM,
    ) -> None:
        ingestion.ingest_upload("handbook.txt", HANDBOOK.encode("utf-8"))

        list(retrieval.stream_query("Remote work?"))

        assert "<answer>" not in mock_llm.prompts[-1]
        assert "<source>handbook.txt</source>" in mock_llm.prompts[-1]

    def test_empty_fragments_skipped(
        self, ingestion: IngestionPipeline, vector_store: FAISSVectorStore
    ) -> None:
        ingestion.ingest_upload("handbook.txt", HANDBOOK.encode("utf-8"))
        pipeline = RetrievalPipeline(
            llm=MockLLM(fragments=["a", "", "b"]), vector_store=vector_store
        )

        answers = [e.data for e in pipeline.stream_query("q") if e.type == "answer"]

        assert answers == ["a", "b"]

    def test_retrieval_is_lazy(
        self, retrieval: RetrievalPipeline, mock_embedder: MockEmbedder
    ) -> None:
        events = retrieval.stream_query("Anything?")
        assert mock_embedder.query_calls == 0

        with pytest.raises(NoRelevantDocuments):
            next(events)

    def test_close_after_sources_never_generates(
        self,
        ingestion: IngestionPipeline,
        retrieval: RetrievalPipeline,
        mock_llm: MockLLM,
    ) -> None:
        ingestion.ingest_upload("handbook.txt", HANDBOOK.encode("utf-8"))

        events = retrieval.stream_query("Remote work?")
        assert next(events).type == "sources"
        events.close()

        assert mock_llm.streams_opened == 0
        assert mock_llm.fragments_yielded == 0

    def test_close_mid_answer_closes_provider_stream(
        self,
        ingestion: IngestionPipeline,
        retrieval: RetrievalPipeline,
        mock_llm: MockLLM,
    ) -> None:
        ingestion.ingest_upload("handbook.txt", HANDBOOK.encode("utf-8"))

        events = retrieval.stream_query("Remote work?")
        assert next(events).type == "sources"
        assert next(events).type == "answer"
        events.close()

        assert mock_llm.streams_opened == 1
        assert mock_llm.streams_closed == 1
        assert mock_llm.fragments_yielded == 1

    def test_stream_failure_raises_generation_failed(
        self, ingestion: IngestionPipeline, vector_store: FAISSVectorStore
    ) -> None:
        ingestion.ingest_upload("handbook.txt", HANDBOOK.encode("utf-8"))
        pipeline = RetrievalPipeline(llm=FailingLLM(), vector_store=vector_store)

        received = []
        with pytest.raises(GenerationFailed, match="connection reset"):
            for event in pipeline.stream_query("q"):
                received.append(event.type)

        assert received == ["sources", "answer"]
