from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from types import SimpleNamespace
from typing import Any

import pytest

from miyazaki_catalog.embeddings import EmbeddingClient
from miyazaki_catalog.settings import CatalogSettings, EmbeddingSettings
from miyazaki_catalog.storage import CharacterRecord, DuckDBCatalog, PersonRecord


# Keyword -> vector table used by the fake provider. The first keyword found
# (case-insensitive) in the embedded text wins.
KEYWORD_VECTORS: list[tuple[str, list[float]]] = [
    ("catbus", [0.95, 0.05, 0.0]),
    ("bathhouse", [0.05, 0.95, 0.05]),
    ("boar", [0.05, 0.0, 0.95]),
    ("totoro", [1.0, 0.1, 0.0]),
    ("spirited", [0.0, 1.0, 0.1]),
    ("mononoke", [0.1, 0.0, 1.0]),
]
DEFAULT_VECTOR = [0.3, 0.3, 0.3]


@dataclass
class FakeEmbedding:
    values: list[float] | None


@dataclass
class FakeEmbedResult:
    embeddings: list[FakeEmbedding] | None


class FakeAsyncModels:
    """Records embed_content calls and returns keyword-driven vectors."""

    def __init__(self) -> None:
        self.calls: list[dict[str, Any]] = []
        self.error: Exception | None = None
        self.result: FakeEmbedResult | None = None

    async def embed_content(
        self, *, model: str, contents: list[str], config: dict
    ) -> FakeEmbedResult:
        self.calls.append({"model": model, "contents": contents, "config": config})
        if self.error is not None:
            raise self.error
        if self.result is not None:
            return self.result
        return FakeEmbedResult(
            embeddings=[FakeEmbedding(values=vector_for(text)) for text in contents]
        )


class FakeGenAIClient:
    def __init__(self) -> None:
        self.models = FakeAsyncModels()
        self.aio = SimpleNamespace(models=self.models)


def vector_for(text: str) -> list[float]:
    lowered = text.lower()
    for keyword, vector in KEYWORD_VECTORS:
        if keyword in lowered:
            return list(vector)
    return list(DEFAULT_VECTOR)


WORKS: list[dict[str, Any]] = [
    {
        "title_ru": "Мой сосед Тоторо",
        "title_en": "My Neighbor Totoro",
        "release_year": 1988,
        "type": "feature",
        "synopsis": "Two sisters meet forest spirits and ride the Catbus.",
    },
    {
        "title_ru": "Унесённые призраками",
        "title_en": "Spirited Away",
        "release_year": 2001,
        "type": "feature",
        "synopsis": "A girl works in a bathhouse for spirits.",
    },
    {
        "title_ru": "Принцесса Мононоке",
        "title_en": "Princess Mononoke",
        "release_year": 1997,
        "type": "feature",
        "synopsis": "A cursed prince meets a boar god and a wolf girl.",
    },
    {
        "title_ru": "Мэй и котобус",
        "title_en": "Mei and the Kittenbus",
        "release_year": 2002,
        "type": "short",
        "synopsis": "A Totoro short film shown at the Ghibli Museum.",
    },
]


def seed_catalog(catalog: DuckDBCatalog, *, with_embeddings: bool = False) -> None:
    for work in WORKS:
        embedding = None
        if with_embeddings:
            embedding = vector_for(f"{work['title_en']} {work['synopsis']}")
        catalog.create_work(dict(work), embedding)

    catalog.add_person(
        PersonRecord(
            id=None,
            full_name_ru="Хаяо Миядзаки",
            full_name_en="Hayao Miyazaki",
            roles=["director", "screenwriter"],
            biography="Created Totoro and co-founded Studio Ghibli.",
            country="Japan",
        )
    )
    catalog.add_person(
        PersonRecord(
            id=None,
            full_name_ru="Дзё Хисаиси",
            full_name_en="Joe Hisaishi",
            roles=["composer"],
            biography="Composer of most Ghibli scores.",
            country="Japan",
        )
    )
    catalog.add_character(
        CharacterRecord(
            id=None,
            name_ru="Тоторо",
            name_en="Totoro",
            description="A large forest spirit.",
        )
    )
    catalog.add_character(
        CharacterRecord(
            id=None,
            name_ru="Тихиро",
            name_en="Chihiro",
            description="A girl lost in the spirit world.",
        )
    )


@pytest.fixture()
def fake_genai() -> FakeGenAIClient:
    return FakeGenAIClient()


@pytest.fixture()
def embedding_settings() -> EmbeddingSettings:
    return EmbeddingSettings(api_key="test-api-key", model="test-embedding-model")


@pytest.fixture()
def embedding_client(
    embedding_settings: EmbeddingSettings, fake_genai: FakeGenAIClient
) -> EmbeddingClient:
    return EmbeddingClient(embedding_settings, client=fake_genai)


@pytest.fixture()
def disabled_client() -> EmbeddingClient:
    return EmbeddingClient(EmbeddingSettings(api_key=None))


@pytest.fixture()
def db_path(tmp_path: Path) -> str:
    return str(tmp_path / "catalog.duckdb")


@pytest.fixture()
def catalog(db_path: str):
    storage = DuckDBCatalog(db_path)
    seed_catalog(storage)
    yield storage
    storage.close()


@pytest.fixture()
def settings(db_path: str, embedding_settings: EmbeddingSettings) -> CatalogSettings:
    return CatalogSettings(db_path=db_path, embedding=embedding_settings)
