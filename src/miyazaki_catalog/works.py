"""
Works write path and embedding backfill.

Unlike search-time backfill, embedding generation here is strict: when the
provider is enabled and fails, the write is rejected and nothing is stored.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .embeddings import EmbeddingClient
from .errors import (
    EmbeddingError,
    InvalidWorkError,
    UpstreamEmbeddingError,
    WorkNotFoundError,
)
from .logging_config import get_logger
from .models import WorkPayload
from .search.vectors import WorkVectorStore, coerce_vector, work_prompt
from .storage import CatalogStorage, WorkRecord

logger = get_logger(__name__)

_MERGED_FIELDS: tuple[str, ...] = (
    "title_ru",
    "title_en",
    "release_year",
    "type",
    "synopsis",
    "poster_url",
    "trailer_url",
    "runtime_minutes",
    "rating",
    "age_rating",
)


@dataclass(frozen=True)
class BackfillResult:
    """Summary output for an embedding backfill run."""

    total_works: int
    missing: int
    embeddings_written: int
    failed: int


class WorksService:
    """Create, update, fetch, and delete works with fresh embeddings."""

    def __init__(self, storage: CatalogStorage, embedding_client: EmbeddingClient) -> None:
        self.storage = storage
        self.embedding_client = embedding_client

    async def create(self, payload: WorkPayload) -> WorkRecord:
        fields = payload.model_dump()
        if not fields.get("title_ru"):
            raise InvalidWorkError("Field title_ru is required")

        embedding = await self._generate_embedding(fields, action="create")
        work = self.storage.create_work(fields, embedding)
        logger.info("work_created", work_id=work.id, has_embedding=embedding is not None)
        return work

    async def update(self, work_id: int, payload: WorkPayload) -> WorkRecord:
        current = self.get(work_id)
        merged: dict[str, Any] = {name: getattr(current, name) for name in _MERGED_FIELDS}
        merged.update(payload.provided_fields())
        if not merged.get("title_ru"):
            raise InvalidWorkError("Field title_ru is required")

        embedding = coerce_vector(current.embedding)
        generated = await self._generate_embedding(merged, action="update")
        if generated is not None:
            embedding = generated

        updated = self.storage.update_work(work_id, merged, embedding)
        if updated is None:
            raise WorkNotFoundError(f"Work {work_id} not found")
        logger.info("work_updated", work_id=work_id, regenerated=generated is not None)
        return updated

    def get(self, work_id: int) -> WorkRecord:
        work = self.storage.get_work(work_id)
        if work is None:
            raise WorkNotFoundError(f"Work {work_id} not found")
        return work

    def delete(self, work_id: int) -> None:
        if not self.storage.delete_work(work_id):
            raise WorkNotFoundError(f"Work {work_id} not found")
        logger.info("work_deleted", work_id=work_id)

    async def backfill_embeddings(self) -> BackfillResult:
        """Compute embeddings for every work that has none stored."""
        works = self.storage.list_works()
        missing = [work for work in works if coerce_vector(work.embedding) is None]
        store = WorkVectorStore(self.storage, self.embedding_client, backfill=True)

        written = 0
        for work in missing:
            if await store.get_or_compute(work) is not None:
                written += 1

        result = BackfillResult(
            total_works=len(works),
            missing=len(missing),
            embeddings_written=written,
            failed=len(missing) - written,
        )
        logger.info(
            "embedding_backfill_completed",
            total_works=result.total_works,
            missing=result.missing,
            written=result.embeddings_written,
            failed=result.failed,
        )
        return result

    async def _generate_embedding(
        self, fields: dict[str, Any], *, action: str
    ) -> list[float] | None:
        if not self.embedding_client.enabled:
            return None
        prompt = work_prompt(fields)
        if not prompt.strip():
            return None
        try:
            return await self.embedding_client.embed(prompt)
        except EmbeddingError as exc:
            logger.error("work_embedding_failed", action=action, error=str(exc))
            raise UpstreamEmbeddingError(
                "Failed to obtain an embedding from the external service"
            ) from exc
