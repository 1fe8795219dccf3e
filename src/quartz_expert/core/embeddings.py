"""Embedding model wrapper using sentence-transformers."""

import logging

from sentence_transformers import SentenceTransformer

logger = logging.getLogger(__name__)


class Embedder:
    """Maps text to fixed-dimension, unit-normalised vectors."""

    def __init__(self, model_name: str = "all-mpnet-base-v2", batch_size: int = 32):
        """Initialize the embedder with the specified model.

        Args:
            model_name: Name of the sentence-transformers model to use.
            batch_size: Number of texts encoded per forward pass during
                ingestion.
        """
        logger.info("Loading embedding model %s", model_name)
        self.model = SentenceTransformer(model_name)
        self.model_name = model_name
        self.batch_size = batch_size

    def embed(self, text: str) -> list[float]:
        """Embed a single query or passage."""
        return self.model.encode(
            text, convert_to_numpy=True, normalize_embeddings=True
        ).tolist()

    def embed_batch(self, texts: list[str]) -> list[list[float]]:
        """Embed multiple texts, preserving order."""
        if not texts:
            return []
        embeddings = self.model.encode(
            texts,
            batch_size=self.batch_size,
            convert_to_numpy=True,
            normalize_embeddings=True,
        )
        return [emb.tolist() for emb in embeddings]

    @property
    def dimension(self) -> int:
        """Return the dimension of the embedding vectors."""
        return self.model.get_sentence_embedding_dimension()
