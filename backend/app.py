import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent / "src"))

import streamlit as st

from docrag.config import find_config_path, load_config, setup_logging
from docrag.errors import DocRAGError
from docrag.service import RAGService

MAX_FILE_SIZE_MB = 50
MAX_FILE_SIZE_BYTES = MAX_FILE_SIZE_MB * 1024 * 1024

st.set_page_config(page_title="docrag", page_icon="📚")

st.title("📚 docrag - Document Q&A")

CONFIG_PATH = find_config_path()
CONFIG = load_config(CONFIG_PATH)
setup_logging(CONFIG)


@st.cache_resource
def get_service() -> RAGService:
    return RAGService.from_config(CONFIG, CONFIG_PATH)


def answer_fragments(events, sources_slot):
    """Render the sources event, then pass answer fragments to st.write_stream."""
    try:
        for event in events:
            if event.type == "sources":
                with sources_slot.expander(f"Sources ({len(event.data)})"):
                    for i, result in enumerate(event.data):
                        st.write(
                            f"**[{i}] {result.metadata.filename}** "
                            f"(distance: {result.score:.4f})"
                        )
                        st.write(result.content[:500] + "...")
                        st.divider()
            elif event.type == "answer":
                yield event.data
    finally:
        events.close()


try:
    service = get_service()
except DocRAGError as e:
    st.error(f"Failed to load service: {e}")
    st.stop()

tab_docs, tab_query = st.tabs(["Documents", "Query"])

with tab_docs:
    st.header("Upload Documents")

    uploaded_files = st.file_uploader(
        "Upload TXT, MD or DOCX files",
        type=["txt", "md", "markdown", "docx"],
        accept_multiple_files=True,
    )

    if uploaded_files and st.button("Ingest"):
        for uploaded_file in uploaded_files:
            if uploaded_file.size > MAX_FILE_SIZE_BYTES:
                st.error(
                    f"❌ {uploaded_file.name}: File exceeds maximum size of "
                    f"{MAX_FILE_SIZE_MB}MB"
                )
                continue
            try:
                with st.spinner(f"Embedding {uploaded_file.name}..."):
                    count = service.ingest_upload(
                        Path(uploaded_file.name).name, uploaded_file.getvalue()
                    )
                st.success(f"✅ {uploaded_file.name}: {count} chunks")
            except DocRAGError as e:
                st.error(f"❌ {uploaded_file.name}: {e}")

    st.header("Indexed Documents")
    listing = service.list_documents()
    if listing.files:
        st.table(
            [
                {
                    "File": summary.filename,
                    "Chunks": summary.chunk_count,
                    "Last uploaded": summary.last_uploaded_at.strftime("%Y-%m-%d %H:%M"),
                }
                for summary in listing.files
            ]
        )
        st.caption(f"Total chunks: {listing.total_chunks}")
    else:
        st.info("No documents indexed yet.")

    if st.button("Clear all documents", type="secondary"):
        try:
            service.clear_all()
            st.success("All documents cleared")
            st.rerun()
        except DocRAGError as e:
            st.error(f"Error: {e}")

with tab_query:
    st.header("Query Documents")

    query = st.text_input("Ask a question about your documents:")

    if query:
        sources_slot = st.container()
        st.subheader("Answer:")
        try:
            st.write_stream(answer_fragments(service.stream_query(query), sources_slot))
        except DocRAGError as e:
            st.error(f"Error: {e}")
