"""docrag: document question answering over a persistent FAISS index."""

__version__ = "0.1.0"
