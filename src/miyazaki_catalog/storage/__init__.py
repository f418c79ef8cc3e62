"""Storage backends for the catalog."""

from .base import (
    CatalogStorage,
    CharacterRecord,
    PersonRecord,
    WORK_SUMMARY_FIELDS,
    WorkRecord,
)
from .duckdb import DuckDBCatalog

__all__ = [
    "CatalogStorage",
    "CharacterRecord",
    "PersonRecord",
    "WORK_SUMMARY_FIELDS",
    "WorkRecord",
    "DuckDBCatalog",
]
