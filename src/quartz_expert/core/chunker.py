"""Recursive character chunker for RAG indexing."""

import hashlib
import logging
from dataclasses import dataclass, field

from quartz_expert.core.loader import Document

logger = logging.getLogger(__name__)

DEFAULT_SEPARATORS = ("\n\n", "\n", " ", "")


@dataclass
class Chunk:
    """A window of text from a markdown document."""

    id: str
    source: str
    text: str
    metadata: dict
    start_index: int = 0
    end_index: int = 0
    embedding: list[float] | None = None

    @property
    def title(self) -> str:
        return self.metadata.get("title", "")

    @property
    def category(self) -> str:
        return self.metadata.get("category", "")


@dataclass
class RecursiveChunker:
    """Chunker that splits text on the coarsest separator that fits.

    Windows end on a paragraph break when one fits inside ``chunk_size``,
    then a line break, then a space, and finally at an arbitrary character.
    Each following window starts early enough to repeat at least
    ``chunk_overlap`` characters of the previous one, aligned to the same
    separator hierarchy where possible.
    """

    chunk_size: int = 1000
    chunk_overlap: int = 200
    separators: tuple[str, ...] = field(default=DEFAULT_SEPARATORS)

    def __post_init__(self):
        if self.chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        if not 0 <= self.chunk_overlap < self.chunk_size:
            raise ValueError("chunk_overlap must be in [0, chunk_size)")
        if "" not in self.separators:
            self.separators = (*self.separators, "")

    def split(self, document: Document) -> list[Chunk]:
        """Split a document into chunks carrying its metadata."""
        return self.split_text(document.content, document.path, document.metadata)

    def split_text(
        self,
        text: str,
        source: str = "",
        metadata: dict | None = None,
    ) -> list[Chunk]:
        """Split raw text into chunks.

        Args:
            text: The text to split.
            source: Document path recorded on each chunk.
            metadata: Metadata copied onto each chunk.

        Returns:
            List of Chunk objects in document order.
        """
        chunks = []
        for start, end in self.spans(text):
            piece = text[start:end]
            if not piece.strip():
                continue
            chunks.append(
                self._create_chunk(piece, source, metadata or {}, len(chunks), start, end)
            )
        return chunks

    def spans(self, text: str) -> list[tuple[int, int]]:
        """Compute ``(start, end)`` offsets of every window over ``text``."""
        if not text.strip():
            return []

        spans = []
        start = end = 0
        while True:
            limit = start + self.chunk_size
            if limit >= len(text):
                spans.append((start, len(text)))
                return spans

            # A window must reach past the previous one or it would be nested in it.
            end = self._find_end(text, max(start + self.chunk_overlap + 1, end + 1), limit)
            spans.append((start, end))
            start = self._find_start(text, start + 1, end - self.chunk_overlap)

    def _find_end(self, text: str, lo: int, hi: int) -> int:
        """Latest break in ``[lo, hi]`` after the coarsest separator found.

        Only separators ending at or after ``lo`` count, so a break that
        sits earlier in the window never decides where the window ends.
        """
        for sep in self.separators:
            if not sep:
                return hi
            idx = text.rfind(sep, max(0, lo - len(sep)), hi)
            if idx != -1 and idx + len(sep) >= lo:
                return idx + len(sep)
        return hi

    def _find_start(self, text: str, earliest: int, latest: int) -> int:
        """Latest separator boundary in ``[earliest, latest]``.

        The search is limited to ``chunk_overlap`` characters before
        ``latest`` so windows do not repeat more than twice the overlap.
        """
        floor = max(earliest, latest - self.chunk_overlap)
        for sep in self.separators:
            if not sep:
                break
            idx = text.rfind(sep, max(0, floor - len(sep)), latest)
            if idx != -1 and idx + len(sep) >= floor:
                return idx + len(sep)
        return latest

    def _create_chunk(
        self,
        text: str,
        source: str,
        metadata: dict,
        index: int,
        start: int,
        end: int,
    ) -> Chunk:
        """Create a Chunk object with computed ID and metadata."""
        id_source = f"{source}:{index}:{start}:{text[:100]}"
        chunk_id = hashlib.sha256(id_source.encode()).hexdigest()[:16]

        return Chunk(
            id=chunk_id,
            source=source,
            text=text,
            metadata={**metadata, "chunk_index": index},
            start_index=start,
            end_index=end,
        )
