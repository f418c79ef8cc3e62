"""
Vector-based semantic search over catalog works.

Embeds the query once and ranks every work by cosine similarity, computing
missing work embeddings on the way.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from ..embeddings import EmbeddingClient
from ..storage import CatalogStorage
from .ranker import DEFAULT_TOP_K, ScoredWork, rank_works
from .vectors import WorkVectorStore


class SemanticWorksSearch:
    """Embed a query and rank stored work embeddings against it."""

    def __init__(
        self,
        storage: CatalogStorage,
        embedding_client: EmbeddingClient,
        vector_store: WorkVectorStore,
    ) -> None:
        self.storage = storage
        self.embedding_client = embedding_client
        self.vector_store = vector_store

    async def search(self, query: str, *, limit: int = DEFAULT_TOP_K) -> list[ScoredWork]:
        """Return the top *limit* works by cosine similarity."""
        query_vector = await self.embedding_client.embed_query(query)

        candidates: list[tuple[dict[str, Any], Sequence[float] | None]] = []
        for work in self.storage.list_works():
            vector = await self.vector_store.get_or_compute(work)
            candidates.append((work.summary(), vector))
        return rank_works(query_vector, candidates, limit=limit)
