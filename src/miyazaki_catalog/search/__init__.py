"""Search helpers for the catalog."""

from .query import CatalogSearchEngine, SearchResults
from .ranker import ScoredWork, cosine_similarity, rank_works
from .semantic import SemanticWorksSearch
from .vectors import WorkVectorStore, coerce_vector, work_prompt

__all__ = [
    "CatalogSearchEngine",
    "SearchResults",
    "ScoredWork",
    "cosine_similarity",
    "rank_works",
    "SemanticWorksSearch",
    "WorkVectorStore",
    "coerce_vector",
    "work_prompt",
]
