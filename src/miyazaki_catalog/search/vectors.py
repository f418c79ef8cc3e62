"""
Stored work embeddings: decoding and lazy backfill.
"""

from __future__ import annotations

import json
import math
from collections.abc import Mapping
from typing import Any

import duckdb

from ..embeddings import EmbeddingClient
from ..errors import EmbeddingError
from ..logging_config import get_logger
from ..prompts import build_prompt
from ..storage import CatalogStorage, WorkRecord

logger = get_logger(__name__)


def coerce_vector(raw: Any) -> list[float] | None:
    """Normalize a stored embedding to a list of floats.

    Accepts a list/tuple, a JSON-encoded array, or a mapping with numeric
    keys (ordered by key). Anything else decodes to None.
    """
    if raw is None:
        return None
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError:
            return None
        if not isinstance(raw, list):
            return None
    if isinstance(raw, Mapping):
        try:
            ordered_keys = sorted(raw, key=lambda key: int(key))
        except (TypeError, ValueError):
            return None
        raw = [raw[key] for key in ordered_keys]
    if not isinstance(raw, (list, tuple)) or not raw:
        return None

    values: list[float] = []
    for item in raw:
        if isinstance(item, bool) or not isinstance(item, (int, float)):
            return None
        value = float(item)
        if not math.isfinite(value):
            return None
        values.append(value)
    return values


def work_prompt(work: WorkRecord | Mapping[str, Any]) -> str:
    """Build the embedding prompt for a stored work or a work payload."""
    if isinstance(work, WorkRecord):
        fields: Mapping[str, Any] = work.to_dict()
    else:
        fields = work
    return build_prompt(
        title_ru=fields.get("title_ru"),
        title_en=fields.get("title_en"),
        synopsis=fields.get("synopsis"),
        work_type=fields.get("type"),
    )


class WorkVectorStore:
    """Resolve a work's embedding, computing and persisting it when missing."""

    def __init__(
        self,
        storage: CatalogStorage,
        embedding_client: EmbeddingClient,
        *,
        backfill: bool = True,
    ) -> None:
        self.storage = storage
        self.embedding_client = embedding_client
        self.backfill = backfill

    async def get_or_compute(self, work: WorkRecord) -> list[float] | None:
        """Return the work's vector, or None when none can be produced."""
        vector = coerce_vector(work.embedding)
        if vector is not None:
            return vector
        if not self.backfill or not self.embedding_client.enabled:
            return None

        prompt = work_prompt(work)
        if not prompt.strip():
            return None

        try:
            vector = await self.embedding_client.embed(prompt)
            self.storage.store_work_embedding(work.id, vector)
        except (EmbeddingError, duckdb.Error) as exc:
            logger.warning(
                "work_embedding_backfill_failed", work_id=work.id, error=str(exc)
            )
            return None

        logger.info("work_embedding_backfilled", work_id=work.id, dim=len(vector))
        return vector
