"""Embedding contract for the knowledge base index.

Chunks of uploaded documents are embedded in batches at indexing time;
search queries are embedded one at a time. Any provider whose vectors are
comparable by cosine similarity fits.
"""

from typing import Protocol, runtime_checkable

__all__ = [
    "EmbeddingServiceInterface",
]


@runtime_checkable
class EmbeddingServiceInterface(Protocol):
    """Turns text into fixed-length vectors.

    The orchestrator reuses the language model as the embedding service
    when it satisfies this protocol.
    """

    async def embed(self, text: str) -> list[float]:
        """Vector for a single search query."""
        ...

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        """Vectors for document chunks, one per input and in input order.

        An empty input returns an empty list without calling the provider.
        """
        ...
