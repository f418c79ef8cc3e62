"""Tests for the /api/search and /api/works REST endpoints."""

from __future__ import annotations

import httpx
import pytest
from fastapi.testclient import TestClient

from miyazaki_catalog.embeddings import EmbeddingClient
from miyazaki_catalog.server import create_app
from miyazaki_catalog.settings import CatalogSettings, EmbeddingSettings
from miyazaki_catalog.storage import DuckDBCatalog

from .conftest import seed_catalog


@pytest.fixture()
def seeded_db(db_path: str) -> str:
    storage = DuckDBCatalog(db_path)
    seed_catalog(storage)
    storage.close()
    return db_path


@pytest.fixture()
def api(seeded_db: str, settings: CatalogSettings, embedding_client: EmbeddingClient):
    app = create_app(settings, embedding_client=embedding_client)
    with TestClient(app) as client:
        yield client


@pytest.fixture()
def text_only_api(seeded_db: str):
    settings = CatalogSettings(db_path=seeded_db, embedding=EmbeddingSettings(api_key=None))
    with TestClient(create_app(settings)) as client:
        yield client


def test_health_reports_embedding_status(api: TestClient) -> None:
    response = api.get("/api/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"
    assert response.json()["embeddings_enabled"] is True


def test_health_without_api_key(text_only_api: TestClient) -> None:
    assert text_only_api.get("/api/health").json()["embeddings_enabled"] is False


def test_search_endpoint_returns_semantic_works(api: TestClient) -> None:
    response = api.get("/api/search", params={"q": "  catbus "})

    assert response.status_code == 200
    data = response.json()
    assert data["query"] == "catbus"
    assert len(data["works"]) == 3
    assert data["works"][0]["title_en"] == "My Neighbor Totoro"
    assert data["works"][0]["score"] == pytest.approx(1.0)
    assert set(data) == {"query", "works", "persons", "characters"}


def test_search_endpoint_text_fallback(text_only_api: TestClient) -> None:
    response = text_only_api.get("/api/search", params={"q": "Totoro"})

    assert response.status_code == 200
    data = response.json()
    assert [work["title_en"] for work in data["works"]] == [
        "Mei and the Kittenbus",
        "My Neighbor Totoro",
    ]
    assert data["persons"][0]["full_name_en"] == "Hayao Miyazaki"
    assert data["characters"][0]["name_en"] == "Totoro"


@pytest.mark.parametrize("params", [{}, {"q": ""}, {"q": "   "}])
def test_search_endpoint_requires_query(api: TestClient, params) -> None:
    response = api.get("/api/search", params=params)

    assert response.status_code == 400
    assert "error" in response.json()


def test_create_work_returns_201_without_embedding(api: TestClient) -> None:
    response = api.post(
        "/api/works",
        json={"titleRu": "Ведьмина служба доставки", "titleEn": "Kiki's Delivery Service", "releaseYear": 1989},
    )

    assert response.status_code == 201
    data = response.json()
    assert data["title_en"] == "Kiki's Delivery Service"
    assert data["release_year"] == 1989
    assert "embedding" not in data

    fetched = api.get(f"/api/works/{data['id']}")
    assert fetched.status_code == 200
    assert fetched.json()["title_ru"] == "Ведьмина служба доставки"


def test_create_work_requires_title(api: TestClient) -> None:
    response = api.post("/api/works", json={"title_en": "No Russian title"})

    assert response.status_code == 400


def test_create_work_502_when_provider_fails(
    api: TestClient, fake_genai, seeded_db: str
) -> None:
    fake_genai.models.error = httpx.ConnectError("connection refused")

    response = api.post("/api/works", json={"title_ru": "Ветер крепчает"})

    assert response.status_code == 502
    assert "error" in response.json()
    search = api.get("/api/search", params={"q": "Ветер"})
    assert search.json()["works"] == []


def test_update_and_delete_work(api: TestClient) -> None:
    created = api.post("/api/works", json={"title_ru": "Порко Россо"}).json()

    updated = api.put(f"/api/works/{created['id']}", json={"releaseYear": 1992})
    assert updated.status_code == 200
    assert updated.json()["release_year"] == 1992
    assert updated.json()["title_ru"] == "Порко Россо"

    assert api.delete(f"/api/works/{created['id']}").status_code == 204
    assert api.get(f"/api/works/{created['id']}").status_code == 404
    assert api.delete(f"/api/works/{created['id']}").status_code == 404


def test_update_unknown_work_404(api: TestClient) -> None:
    response = api.put("/api/works/9999", json={"title_ru": "X"})

    assert response.status_code == 404
