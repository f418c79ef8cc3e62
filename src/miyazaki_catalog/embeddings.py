"""
Embedding client for work and query vectors.

Wraps the Google GenAI ``embedContent`` API. The client is constructed from
an explicit ``EmbeddingSettings``; when no API key is configured it reports
itself as disabled and never touches the network.
"""

from __future__ import annotations

import math
from typing import Any

from google.genai import Client as GenAIClient
from google.genai import errors as genai_errors
from google.genai.types import HttpOptions

from .errors import (
    EmbeddingDisabledError,
    EmbeddingInputError,
    EmbeddingProviderError,
    EmbeddingResponseError,
    EmbeddingTransportError,
)
from .logging_config import get_logger
from .settings import EmbeddingSettings

logger = get_logger(__name__)

DOCUMENT_TASK_TYPE = "RETRIEVAL_DOCUMENT"
QUERY_TASK_TYPE = "RETRIEVAL_QUERY"


class EmbeddingClient:
    """Generate text embeddings via Google GenAI."""

    def __init__(
        self,
        settings: EmbeddingSettings,
        *,
        client: Any | None = None,
    ) -> None:
        self.settings = settings
        self.model = settings.model
        self._client = client
        if self._client is None and settings.enabled:
            self._client = GenAIClient(
                api_key=settings.api_key,
                http_options=HttpOptions(
                    api_version="v1beta",
                    timeout=int(settings.timeout_seconds * 1000),
                ),
            )

    @property
    def enabled(self) -> bool:
        return self.settings.enabled and self._client is not None

    def prepare_text(self, text: str | None) -> str:
        """Strip and truncate *text*, rejecting empty input."""
        trimmed = (text or "").strip()
        if not trimmed:
            raise EmbeddingInputError("Cannot generate embedding for empty text")
        return trimmed[: self.settings.max_chars]

    async def embed(
        self,
        text: str,
        *,
        task_type: str = DOCUMENT_TASK_TYPE,
    ) -> list[float]:
        """Embed a single text and return its vector."""
        if not self.enabled:
            raise EmbeddingDisabledError(
                "Embedding service is not configured. Set GEMINI_API_KEY."
            )
        content = self.prepare_text(text)

        try:
            result = await self._client.aio.models.embed_content(
                model=self.model,
                contents=[content],
                config={"task_type": task_type},
            )
        except genai_errors.APIError as exc:
            body = exc.message or str(exc.details or "")
            raise EmbeddingProviderError(exc.code, body) from exc
        except Exception as exc:
            raise EmbeddingTransportError(
                f"Embedding request could not be completed: {exc}"
            ) from exc

        vector = self._extract_values(result)
        logger.debug(
            "embedding_generated",
            model=self.model,
            task_type=task_type,
            chars=len(content),
            dim=len(vector),
        )
        return vector

    async def embed_query(self, query: str) -> list[float]:
        """Embed a search query for retrieval."""
        return await self.embed(query, task_type=QUERY_TASK_TYPE)

    @staticmethod
    def _extract_values(result: Any) -> list[float]:
        embeddings = getattr(result, "embeddings", None)
        if not embeddings:
            raise EmbeddingResponseError("Invalid embedding response payload")
        values = getattr(embeddings[0], "values", None)
        if not isinstance(values, (list, tuple)):
            raise EmbeddingResponseError("Invalid embedding response payload")
        try:
            vector = [float(value) for value in values]
        except (TypeError, ValueError) as exc:
            raise EmbeddingResponseError(
                "Embedding response contains non-numeric values"
            ) from exc
        if not all(math.isfinite(value) for value in vector):
            raise EmbeddingResponseError("Embedding response contains non-finite values")
        return vector
