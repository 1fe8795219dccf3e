"""Query embedding plus vector store lookup."""

from quartz_expert.core.embeddings import Embedder
from quartz_expert.core.vectorstore import SimilarityResult, VectorStore


class Retriever:
    """Finds the stored chunks closest to a natural-language query."""

    def __init__(self, embedder: Embedder, vector_store: VectorStore, top_k: int = 5):
        self.embedder = embedder
        self.vector_store = vector_store
        self.top_k = top_k

    def retrieve(self, query: str, k: int | None = None) -> list[SimilarityResult]:
        """Return up to ``k`` (default ``top_k``) results, best first.

        Raises:
            RetrievalError: If the vector store is not ready.
        """
        query_embedding = self.embedder.embed(query)
        return self.vector_store.query(query_embedding, self.top_k if k is None else k)
