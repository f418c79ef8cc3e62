import asyncio
import json
from pathlib import Path
from typing import Annotated, Any

import duckdb
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from typer import Argument, Exit, Option, Typer

from .embeddings import EmbeddingClient
from .errors import ConfigurationError, InvalidQueryError
from .logging_config import configure_logging
from .models import WorkPayload
from .search import CatalogSearchEngine, SearchResults, coerce_vector
from .settings import CatalogSettings
from .storage import CharacterRecord, DuckDBCatalog, PersonRecord
from .works import WorksService

app = Typer(help="Miyazaki filmography catalog.")

DbPathOption = Annotated[
    str | None,
    Option("--db-path", help="DuckDB catalog path (defaults to MIYAZAKI_CATALOG_DB_PATH)."),
]


def _load_settings(db_path: str | None) -> CatalogSettings:
    try:
        settings = CatalogSettings.from_env(db_path)
    except ConfigurationError as exc:
        Console(stderr=True).print(f"[bold red]{exc.message}[/]")
        raise Exit(code=1)
    configure_logging(settings.log_level, json_output=settings.log_json)
    return settings


async def run_search(query: str, db_path: str | None = None) -> SearchResults:
    settings = _load_settings(db_path)
    storage = DuckDBCatalog(settings.db_path)
    try:
        engine = CatalogSearchEngine(
            storage,
            EmbeddingClient(settings.embedding),
            backfill_on_search=settings.backfill_on_search,
        )
        return await engine.search(query)
    finally:
        storage.close()


def _results_table(title: str, columns: list[str], rows: list[dict[str, Any]]) -> Table:
    table = Table(title=title, title_justify="left")
    for column in columns:
        table.add_column(column)
    for row in rows:
        cells = []
        for column in columns:
            value = row.get(column)
            if isinstance(value, float):
                cells.append(f"{value:.4f}")
            elif isinstance(value, list):
                cells.append(", ".join(str(item) for item in value))
            else:
                cells.append("" if value is None else str(value))
        table.add_row(*cells)
    return table


@app.command()
def search(
    query: Annotated[str, Argument(help="Free-text search query.")],
    db_path: DbPathOption = None,
) -> None:
    """Search works, persons, and characters."""
    console = Console()
    try:
        results = asyncio.run(run_search(query, db_path))
    except InvalidQueryError as exc:
        console.print(f"[bold red]{exc.message}[/]")
        raise Exit(code=2)

    work_columns = ["id", "title_ru", "title_en", "release_year", "type"]
    if results.mode == "semantic":
        work_columns.append("score")
    console.print(
        Panel(
            f"Query: [bold]{results.query}[/]  (works matched by {results.mode} search)",
            border_style="bold green",
        )
    )
    console.print(_results_table("Works", work_columns, results.works))
    console.print(
        _results_table(
            "Persons",
            ["id", "full_name_ru", "full_name_en", "roles", "country"],
            results.persons,
        )
    )
    console.print(
        _results_table("Characters", ["id", "name_ru", "name_en"], results.characters)
    )


def _seed_items(data: dict[str, Any], key: str, required: str, console: Console):
    for item in data.get(key) or []:
        if not isinstance(item, dict):
            console.print(f"[yellow]Skipping malformed {key} entry: {escape(repr(item))}[/]")
            continue
        value = item.get(required)
        if not isinstance(value, str) or not value.strip():
            console.print(
                f"[yellow]Skipping {key} entry without {required}: {escape(repr(item))}[/]"
            )
            continue
        yield item


def _import_seed(
    storage: DuckDBCatalog, data: dict[str, Any], console: Console
) -> dict[str, int]:
    counts = {"works": 0, "vectors": 0, "persons": 0, "characters": 0}

    for item in data.get("works") or []:
        if not isinstance(item, dict):
            console.print(f"[yellow]Skipping malformed works entry: {escape(repr(item))}[/]")
            continue
        fields = WorkPayload.model_validate(item).model_dump()
        if not fields.get("title_ru"):
            console.print(
                f"[yellow]Skipping works entry without title_ru: {escape(repr(item))}[/]"
            )
            continue
        fields["rating"] = item.get("rating")
        fields["age_rating"] = item.get("age_rating")
        embedding = coerce_vector(item.get("embedding"))
        storage.create_work(fields, embedding)
        counts["works"] += 1
        if embedding is not None:
            counts["vectors"] += 1

    for item in _seed_items(data, "persons", "full_name_ru", console):
        storage.add_person(
            PersonRecord(
                id=item.get("id"),
                full_name_ru=item["full_name_ru"].strip(),
                full_name_en=item.get("full_name_en"),
                roles=item.get("roles"),
                biography=item.get("biography"),
                country=item.get("country"),
            )
        )
        counts["persons"] += 1

    for item in _seed_items(data, "characters", "name_ru", console):
        storage.add_character(
            CharacterRecord(
                id=item.get("id"),
                name_ru=item["name_ru"].strip(),
                name_en=item.get("name_en"),
                description=item.get("description"),
            )
        )
        counts["characters"] += 1

    return counts


@app.command()
def seed(
    file: Annotated[Path, Argument(help="JSON file with works, persons, and characters.")],
    db_path: DbPathOption = None,
) -> None:
    """Import catalog records from a JSON document."""
    console = Console()
    settings = _load_settings(db_path)
    data = json.loads(file.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        console.print("[bold red]Seed file must contain a JSON object.[/]")
        raise Exit(code=1)

    storage = DuckDBCatalog(settings.db_path)
    try:
        with storage.transaction():
            counts = _import_seed(storage, data, console)
    except (duckdb.Error, ValidationError) as exc:
        console.print(f"[bold red]Seed failed, nothing was imported: {escape(str(exc))}[/]")
        raise Exit(code=1)
    finally:
        storage.close()

    console.print(
        Panel(
            f"Works: {counts['works']} ({counts['vectors']} with stored embeddings)\n"
            f"Persons: {counts['persons']}\n"
            f"Characters: {counts['characters']}",
            title="Seed complete",
            title_align="left",
            border_style="bold green",
        )
    )


@app.command()
def backfill(db_path: DbPathOption = None) -> None:
    """Compute embeddings for works that have none stored."""
    console = Console()
    settings = _load_settings(db_path)
    client = EmbeddingClient(settings.embedding)
    if not client.enabled:
        console.print("[bold red]Embeddings are disabled: set GEMINI_API_KEY.[/]")
        raise Exit(code=1)

    storage = DuckDBCatalog(settings.db_path)
    try:
        with console.status(status="Generating embeddings..."):
            result = asyncio.run(WorksService(storage, client).backfill_embeddings())
    finally:
        storage.close()

    console.print(
        Panel(
            f"Works: {result.total_works}\n"
            f"Missing embeddings: {result.missing}\n"
            f"Written: {result.embeddings_written}\n"
            f"Failed: {result.failed}",
            title="Backfill complete",
            title_align="left",
            border_style="bold yellow" if result.failed else "bold green",
        )
    )


@app.command()
def serve(
    host: Annotated[str, Option("--host", help="Bind address.")] = "127.0.0.1",
    port: Annotated[int, Option("--port", "-p", help="Bind port.")] = 8000,
    db_path: DbPathOption = None,
) -> None:
    """Run the HTTP API."""
    from .server import run_server

    run_server(host=host, port=port, db_path=db_path)
