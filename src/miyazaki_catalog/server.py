"""
FastAPI server for the Miyazaki catalog.

Provides the search endpoint, the works write path, and a health check.
"""

from __future__ import annotations

import time
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from .embeddings import EmbeddingClient
from .errors import (
    InvalidQueryError,
    InvalidWorkError,
    UpstreamEmbeddingError,
    WorkNotFoundError,
)
from .logging_config import configure_logging, get_logger
from .models import WorkPayload
from .search import CatalogSearchEngine
from .settings import CatalogSettings
from .storage import CatalogStorage, DuckDBCatalog
from .works import WorksService

logger = get_logger(__name__)


class LoggingMiddleware(BaseHTTPMiddleware):
    """Middleware for request/response logging."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        start_time = time.time()
        logger.info(
            "request_started",
            method=request.method,
            path=request.url.path,
            query=str(request.query_params),
        )

        response = await call_next(request)

        duration_ms = (time.time() - start_time) * 1000
        logger.info(
            "request_completed",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=round(duration_ms, 2),
        )
        return response


def create_app(
    settings: CatalogSettings | None = None,
    *,
    storage: CatalogStorage | None = None,
    embedding_client: EmbeddingClient | None = None,
) -> FastAPI:
    """Build the application; collaborators default to ones built from *settings*."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        resolved = settings or CatalogSettings.from_env()
        configure_logging(resolved.log_level, json_output=resolved.log_json)

        owned_storage = storage is None
        catalog = storage if storage is not None else DuckDBCatalog(resolved.db_path)
        client = embedding_client or EmbeddingClient(resolved.embedding)

        app.state.settings = resolved
        app.state.embedding_client = client
        app.state.search_engine = CatalogSearchEngine(
            catalog, client, backfill_on_search=resolved.backfill_on_search
        )
        app.state.works = WorksService(catalog, client)
        logger.info(
            "catalog_started",
            db_path=resolved.db_path,
            embeddings_enabled=client.enabled,
        )
        try:
            yield
        finally:
            if owned_storage and isinstance(catalog, DuckDBCatalog):
                catalog.close()

    app = FastAPI(
        title="MiyazakiCatalog",
        description="Miyazaki filmography catalog with semantic search",
        lifespan=lifespan,
    )
    app.add_middleware(LoggingMiddleware)
    _register_routes(app)
    return app


def _register_routes(app: FastAPI) -> None:
    @app.get("/api/health")
    async def health(request: Request):
        """Report service status and whether embeddings are enabled."""
        return {
            "status": "ok",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "embeddings_enabled": request.app.state.embedding_client.enabled,
        }

    @app.get("/api/search")
    async def search(request: Request, q: str | None = None):
        """Search works, persons, and characters."""
        engine: CatalogSearchEngine = request.app.state.search_engine
        try:
            results = await engine.search(q)
        except InvalidQueryError as exc:
            return JSONResponse({"error": exc.message}, status_code=400)
        except Exception:
            logger.exception("search_failed", query=q)
            return JSONResponse({"error": "Internal Server Error"}, status_code=500)
        return results.to_dict()

    @app.get("/api/works/{work_id}")
    async def get_work(request: Request, work_id: int):
        """Fetch a single work."""
        works: WorksService = request.app.state.works
        try:
            return works.get(work_id).to_dict()
        except WorkNotFoundError:
            return JSONResponse({"error": "Work not found"}, status_code=404)

    @app.post("/api/works")
    async def create_work(request: Request, payload: WorkPayload):
        """Create a work and compute its embedding."""
        works: WorksService = request.app.state.works
        try:
            work = await works.create(payload)
        except InvalidWorkError as exc:
            return JSONResponse({"error": exc.message}, status_code=400)
        except UpstreamEmbeddingError as exc:
            return JSONResponse({"error": exc.message}, status_code=502)
        except Exception:
            logger.exception("work_create_failed")
            return JSONResponse({"error": "Internal Server Error"}, status_code=500)
        return JSONResponse(work.to_dict(), status_code=201)

    @app.put("/api/works/{work_id}")
    async def update_work(request: Request, work_id: int, payload: WorkPayload):
        """Update a work, regenerating its embedding from the merged fields."""
        works: WorksService = request.app.state.works
        try:
            work = await works.update(work_id, payload)
        except WorkNotFoundError:
            return JSONResponse({"error": "Work not found"}, status_code=404)
        except InvalidWorkError as exc:
            return JSONResponse({"error": exc.message}, status_code=400)
        except UpstreamEmbeddingError as exc:
            return JSONResponse({"error": exc.message}, status_code=502)
        except Exception:
            logger.exception("work_update_failed", work_id=work_id)
            return JSONResponse({"error": "Internal Server Error"}, status_code=500)
        return work.to_dict()

    @app.delete("/api/works/{work_id}")
    async def delete_work(request: Request, work_id: int):
        """Delete a work."""
        works: WorksService = request.app.state.works
        try:
            works.delete(work_id)
        except WorkNotFoundError:
            return JSONResponse({"error": "Work not found"}, status_code=404)
        return Response(status_code=204)


app = create_app()


def run_server(host: str = "127.0.0.1", port: int = 8000, db_path: str | None = None):
    """Run the FastAPI server."""
    import uvicorn

    target = app if db_path is None else create_app(CatalogSettings.from_env(db_path))
    uvicorn.run(target, host=host, port=port)


if __name__ == "__main__":
    run_server()
