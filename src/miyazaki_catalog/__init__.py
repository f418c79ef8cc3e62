"""
MiyazakiCatalog - Miyazaki filmography catalog with semantic search.

This package stores catalog works, persons, and characters in DuckDB and
ranks works against free-text queries using Google GenAI embeddings,
falling back to substring search when embeddings are unavailable.

Example usage:
    >>> from miyazaki_catalog import CatalogSearchEngine, DuckDBCatalog, EmbeddingClient
    >>> from miyazaki_catalog import CatalogSettings
    >>> settings = CatalogSettings.from_env()
    >>> engine = CatalogSearchEngine(
    ...     DuckDBCatalog(settings.db_path), EmbeddingClient(settings.embedding)
    ... )
    >>> results = await engine.search("Totoro")
"""

from .embeddings import EmbeddingClient
from .errors import (
    CatalogError,
    ConfigurationError,
    EmbeddingDisabledError,
    EmbeddingError,
    EmbeddingInputError,
    EmbeddingProviderError,
    EmbeddingResponseError,
    EmbeddingTransportError,
    InvalidQueryError,
    InvalidWorkError,
    UpstreamEmbeddingError,
    WorkNotFoundError,
)
from .models import WorkPayload
from .prompts import build_prompt
from .search import (
    CatalogSearchEngine,
    ScoredWork,
    SearchResults,
    WorkVectorStore,
    coerce_vector,
    cosine_similarity,
    rank_works,
)
from .settings import CatalogSettings, EmbeddingSettings
from .storage import DuckDBCatalog, WorkRecord
from .works import BackfillResult, WorksService

__all__ = [
    # Embeddings
    "EmbeddingClient",
    "build_prompt",
    # Search
    "CatalogSearchEngine",
    "ScoredWork",
    "SearchResults",
    "WorkVectorStore",
    "coerce_vector",
    "cosine_similarity",
    "rank_works",
    # Catalog
    "DuckDBCatalog",
    "WorkRecord",
    "WorkPayload",
    "WorksService",
    "BackfillResult",
    # Settings
    "CatalogSettings",
    "EmbeddingSettings",
    # Errors
    "CatalogError",
    "ConfigurationError",
    "EmbeddingDisabledError",
    "EmbeddingError",
    "EmbeddingInputError",
    "EmbeddingProviderError",
    "EmbeddingResponseError",
    "EmbeddingTransportError",
    "InvalidQueryError",
    "InvalidWorkError",
    "UpstreamEmbeddingError",
    "WorkNotFoundError",
]
