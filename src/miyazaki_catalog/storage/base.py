"""
Storage interfaces and data models for the catalog.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol


WORK_SUMMARY_FIELDS: tuple[str, ...] = (
    "id",
    "title_ru",
    "title_en",
    "release_year",
    "type",
    "synopsis",
    "poster_url",
    "rating",
    "age_rating",
)


@dataclass(frozen=True)
class WorkRecord:
    """A catalog work as stored, including its optional embedding."""

    id: int
    title_ru: str
    title_en: str | None = None
    release_year: int | None = None
    type: str | None = None
    synopsis: str | None = None
    poster_url: str | None = None
    trailer_url: str | None = None
    runtime_minutes: int | None = None
    rating: float | None = None
    age_rating: str | None = None
    embedding: Any = None

    def summary(self) -> dict[str, Any]:
        """Public fields returned by search; never includes the embedding."""
        return {name: getattr(self, name) for name in WORK_SUMMARY_FIELDS}

    def to_dict(self) -> dict[str, Any]:
        return {
            **self.summary(),
            "trailer_url": self.trailer_url,
            "runtime_minutes": self.runtime_minutes,
        }


@dataclass(frozen=True)
class PersonRecord:
    """A person credited on catalog works."""

    id: int | None
    full_name_ru: str
    full_name_en: str | None = None
    roles: list[str] | None = None
    biography: str | None = None
    country: str | None = None


@dataclass(frozen=True)
class CharacterRecord:
    """A character appearing in catalog works."""

    id: int | None
    name_ru: str
    name_en: str | None = None
    description: str | None = None


class CatalogStorage(Protocol):
    """Protocol for persistence operations used by search and the works service."""

    def initialize(self) -> None:
        """Initialize required tables/sequences."""

    def create_work(
        self, fields: dict[str, Any], embedding: list[float] | None
    ) -> WorkRecord:
        """Insert a work and return the stored record."""

    def update_work(
        self, work_id: int, fields: dict[str, Any], embedding: list[float] | None
    ) -> WorkRecord | None:
        """Replace a work's fields and embedding; None when the id is unknown."""

    def get_work(self, work_id: int) -> WorkRecord | None:
        """Fetch a work by id."""

    def delete_work(self, work_id: int) -> bool:
        """Delete a work; return whether a row was removed."""

    def list_works(self) -> list[WorkRecord]:
        """List every work with its stored embedding."""

    def store_work_embedding(self, work_id: int, embedding: list[float]) -> None:
        """Persist a freshly computed embedding for a work."""

    def search_works_text(self, *, query: str, limit: int = 3) -> list[dict[str, Any]]:
        """Case-insensitive substring search over titles and synopsis."""

    def search_persons(self, *, query: str, limit: int = 3) -> list[dict[str, Any]]:
        """Case-insensitive substring search over person names and biography."""

    def search_characters(self, *, query: str, limit: int = 3) -> list[dict[str, Any]]:
        """Case-insensitive substring search over character names and description."""

    def add_person(self, person: PersonRecord) -> int:
        """Insert a person and return its id."""

    def add_character(self, character: CharacterRecord) -> int:
        """Insert a character and return its id."""

    def count_works(self, *, missing_embedding: bool = False) -> int:
        """Count works, optionally only those without an embedding."""
