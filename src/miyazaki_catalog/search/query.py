"""
Catalog search orchestration: semantic works ranking with substring fallback.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Callable

from ..embeddings import EmbeddingClient
from ..errors import InvalidQueryError
from ..logging_config import get_logger
from ..storage import CatalogStorage, DuckDBCatalog
from .ranker import DEFAULT_TOP_K
from .semantic import SemanticWorksSearch
from .vectors import WorkVectorStore

logger = get_logger(__name__)


@dataclass(frozen=True)
class SearchResults:
    """Search response for works, persons, and characters."""

    query: str
    works: list[dict[str, Any]] = field(default_factory=list)
    persons: list[dict[str, Any]] = field(default_factory=list)
    characters: list[dict[str, Any]] = field(default_factory=list)
    mode: str = "text"

    def to_dict(self) -> dict[str, Any]:
        return {
            "query": self.query,
            "works": self.works,
            "persons": self.persons,
            "characters": self.characters,
        }


class CatalogSearchEngine:
    """Run the works, persons, and characters search branches for one query."""

    def __init__(
        self,
        storage: CatalogStorage,
        embedding_client: EmbeddingClient,
        *,
        backfill_on_search: bool = True,
        limit: int = DEFAULT_TOP_K,
    ) -> None:
        self.storage = storage
        self.embedding_client = embedding_client
        self.limit = limit
        self.semantic = SemanticWorksSearch(
            storage,
            embedding_client,
            WorkVectorStore(storage, embedding_client, backfill=backfill_on_search),
        )

    async def search(self, query: str | None) -> SearchResults:
        trimmed = (query or "").strip()
        if not trimmed:
            raise InvalidQueryError("Query parameter q is required")

        (works, mode), persons, characters = await asyncio.gather(
            self._search_works(trimmed),
            asyncio.to_thread(self._scoped_query, "search_persons", trimmed),
            asyncio.to_thread(self._scoped_query, "search_characters", trimmed),
        )
        logger.info(
            "search_completed",
            query=trimmed,
            mode=mode,
            works=len(works),
            persons=len(persons),
            characters=len(characters),
        )
        return SearchResults(
            query=trimmed,
            works=works,
            persons=persons,
            characters=characters,
            mode=mode,
        )

    async def _search_works(self, query: str) -> tuple[list[dict[str, Any]], str]:
        if self.embedding_client.enabled:
            try:
                ranked = await self.semantic.search(query, limit=self.limit)
            except Exception as exc:
                logger.warning(
                    "semantic_search_failed", query=query, error=str(exc), exc_info=True
                )
            else:
                if ranked:
                    return [item.to_dict() for item in ranked], "semantic"
                logger.info("semantic_search_empty", query=query)

        return self.storage.search_works_text(query=query, limit=self.limit), "text"

    def _scoped_query(self, method: str, query: str) -> list[dict[str, Any]]:
        scoped_storage, cleanup = self._acquire_query_storage()
        try:
            return getattr(scoped_storage, method)(query=query, limit=self.limit)
        finally:
            cleanup()

    def _acquire_query_storage(self) -> tuple[CatalogStorage, Callable[[], None]]:
        if isinstance(self.storage, DuckDBCatalog):
            clone = self.storage.duplicate()
            return clone, clone.close
        return self.storage, lambda: None
