import re
from typing import Any, Literal, TypeAlias

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

WorkType: TypeAlias = Literal["feature", "short", "manga", "series", "other"]
WORK_TYPES: frozenset[str] = frozenset({"feature", "short", "manga", "series", "other"})

_LEADING_INT_RE = re.compile(r"^\s*([-+]?\d+)")


class WorkPayload(BaseModel):
    """Body of a work create/update request.

    Accepts snake_case and camelCase field names. Fields left out (or null)
    keep their stored value on update.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    title_ru: str | None = Field(
        default=None, validation_alias=AliasChoices("title_ru", "titleRu")
    )
    title_en: str | None = Field(
        default=None, validation_alias=AliasChoices("title_en", "titleEn")
    )
    release_year: int | None = Field(
        default=None, validation_alias=AliasChoices("release_year", "releaseYear")
    )
    type: WorkType | None = Field(
        default=None, validation_alias=AliasChoices("type", "workType")
    )
    synopsis: str | None = Field(
        default=None, validation_alias=AliasChoices("synopsis", "description")
    )
    poster_url: str | None = Field(
        default=None, validation_alias=AliasChoices("poster_url", "posterUrl")
    )
    trailer_url: str | None = Field(
        default=None, validation_alias=AliasChoices("trailer_url", "trailerUrl")
    )
    runtime_minutes: int | None = Field(
        default=None, validation_alias=AliasChoices("runtime_minutes", "runtimeMinutes")
    )

    @field_validator(
        "title_ru", "title_en", "synopsis", "poster_url", "trailer_url", mode="before"
    )
    @classmethod
    def _strip_text(cls, value: Any) -> Any:
        if value is None:
            return None
        if isinstance(value, str):
            return value.strip()
        return str(value)

    @field_validator("release_year", "runtime_minutes", mode="before")
    @classmethod
    def _lenient_int(cls, value: Any) -> int | None:
        if value is None or isinstance(value, bool):
            return None
        if isinstance(value, int):
            return value
        if isinstance(value, float):
            return int(value)
        match = _LEADING_INT_RE.match(str(value))
        return int(match.group(1)) if match else None

    @field_validator("type", mode="before")
    @classmethod
    def _known_type(cls, value: Any) -> str | None:
        if isinstance(value, str) and value.strip() in WORK_TYPES:
            return value.strip()
        return None

    def provided_fields(self) -> dict[str, Any]:
        """Fields with a non-null value."""
        return {
            name: value
            for name, value in self.model_dump().items()
            if value is not None
        }
