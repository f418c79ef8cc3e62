"""
DuckDB storage backend for the catalog.
"""

from __future__ import annotations

import contextlib
from collections.abc import Iterator
from pathlib import Path
from typing import Any

import duckdb

from .base import CharacterRecord, PersonRecord, WorkRecord

_WORK_COLUMNS: tuple[str, ...] = (
    "id",
    "title_ru",
    "title_en",
    "release_year",
    "type",
    "synopsis",
    "poster_url",
    "trailer_url",
    "runtime_minutes",
    "rating",
    "age_rating",
    "embedding",
)

_WRITABLE_WORK_FIELDS: tuple[str, ...] = (
    "title_ru",
    "title_en",
    "release_year",
    "type",
    "synopsis",
    "poster_url",
    "trailer_url",
    "runtime_minutes",
    "rating",
    "age_rating",
)


def _like_pattern(query: str) -> str:
    return query.strip().lower()


class DuckDBCatalog:
    """DuckDB-backed persistence for works, persons, and characters."""

    def __init__(
        self,
        db_path: str,
        *,
        read_only: bool = False,
        initialize: bool = True,
        connection: duckdb.DuckDBPyConnection | None = None,
    ) -> None:
        self.db_path = db_path
        self.read_only = read_only
        if connection is not None:
            self._conn = connection
            return
        if db_path != ":memory:":
            self.db_path = str(Path(db_path).expanduser().resolve())
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        self._conn = duckdb.connect(self.db_path, read_only=read_only)
        if initialize and not read_only:
            self.initialize()

    def close(self) -> None:
        """Close the underlying DuckDB connection."""
        self._conn.close()

    @contextlib.contextmanager
    def transaction(self) -> Iterator[None]:
        """Provide commit/rollback transaction scope."""
        self._conn.begin()
        try:
            yield
            self._conn.commit()
        except BaseException:
            self._conn.rollback()
            raise

    def duplicate(self) -> DuckDBCatalog:
        """Return a catalog on a duplicated cursor, safe to use from another thread."""
        return DuckDBCatalog(
            self.db_path,
            read_only=self.read_only,
            connection=self._conn.cursor(),
        )

    def initialize(self) -> None:
        self._conn.execute("CREATE SEQUENCE IF NOT EXISTS works_id_seq START 1;")
        self._conn.execute("CREATE SEQUENCE IF NOT EXISTS persons_id_seq START 1;")
        self._conn.execute("CREATE SEQUENCE IF NOT EXISTS characters_id_seq START 1;")
        # No PRIMARY KEY on works: DuckDB rewrites list-column updates as
        # delete+insert, which trips unique index checks on older releases.
        self._conn.execute(
            """
            CREATE TABLE IF NOT EXISTS works (
                id INTEGER NOT NULL,
                title_ru VARCHAR NOT NULL,
                title_en VARCHAR,
                release_year INTEGER,
                type VARCHAR,
                synopsis VARCHAR,
                poster_url VARCHAR,
                trailer_url VARCHAR,
                runtime_minutes INTEGER,
                rating DOUBLE,
                age_rating VARCHAR,
                embedding DOUBLE[]
            );
            """
        )
        self._conn.execute(
            """
            CREATE TABLE IF NOT EXISTS persons (
                id INTEGER PRIMARY KEY,
                full_name_ru VARCHAR NOT NULL,
                full_name_en VARCHAR,
                roles VARCHAR[],
                biography VARCHAR,
                country VARCHAR
            );
            """
        )
        self._conn.execute(
            """
            CREATE TABLE IF NOT EXISTS characters (
                id INTEGER PRIMARY KEY,
                name_ru VARCHAR NOT NULL,
                name_en VARCHAR,
                description VARCHAR
            );
            """
        )

    # -- works -----------------------------------------------------------

    def create_work(
        self, fields: dict[str, Any], embedding: list[float] | None
    ) -> WorkRecord:
        row = self._conn.execute("SELECT nextval('works_id_seq')").fetchone()
        if row is None:
            raise RuntimeError("Failed to allocate a work id")
        work_id = int(row[0])
        columns = ", ".join(_WRITABLE_WORK_FIELDS)
        placeholders = ", ".join(["?"] * len(_WRITABLE_WORK_FIELDS))
        self._conn.execute(
            f"""
            INSERT INTO works (id, {columns}, embedding)
            VALUES (?, {placeholders}, ?::DOUBLE[])
            """,
            [
                work_id,
                *[fields.get(name) for name in _WRITABLE_WORK_FIELDS],
                embedding,
            ],
        )
        created = self.get_work(work_id)
        if created is None:
            raise RuntimeError(f"Failed to create work {work_id}")
        return created

    def update_work(
        self, work_id: int, fields: dict[str, Any], embedding: list[float] | None
    ) -> WorkRecord | None:
        if self.get_work(work_id) is None:
            return None
        assignments = ", ".join(f"{name} = ?" for name in _WRITABLE_WORK_FIELDS)
        self._conn.execute(
            f"""
            UPDATE works
            SET {assignments}, embedding = ?::DOUBLE[]
            WHERE id = ?
            """,
            [
                *[fields.get(name) for name in _WRITABLE_WORK_FIELDS],
                embedding,
                work_id,
            ],
        )
        return self.get_work(work_id)

    def get_work(self, work_id: int) -> WorkRecord | None:
        row = self._conn.execute(
            f"SELECT {', '.join(_WORK_COLUMNS)} FROM works WHERE id = ? LIMIT 1",
            [work_id],
        ).fetchone()
        if row is None:
            return None
        return self._row_to_work(row)

    def delete_work(self, work_id: int) -> bool:
        if self.get_work(work_id) is None:
            return False
        self._conn.execute("DELETE FROM works WHERE id = ?", [work_id])
        return True

    def list_works(self) -> list[WorkRecord]:
        rows = self._conn.execute(
            f"SELECT {', '.join(_WORK_COLUMNS)} FROM works ORDER BY id"
        ).fetchall()
        return [self._row_to_work(row) for row in rows]

    def store_work_embedding(self, work_id: int, embedding: list[float]) -> None:
        self._conn.execute(
            "UPDATE works SET embedding = ?::DOUBLE[] WHERE id = ?",
            [embedding, work_id],
        )

    def count_works(self, *, missing_embedding: bool = False) -> int:
        sql = "SELECT COUNT(*) FROM works"
        if missing_embedding:
            sql += " WHERE embedding IS NULL OR len(embedding) = 0"
        row = self._conn.execute(sql).fetchone()
        return int(row[0]) if row else 0

    def search_works_text(self, *, query: str, limit: int = 3) -> list[dict[str, Any]]:
        pattern = _like_pattern(query)
        if not pattern:
            return []
        rows = self._conn.execute(
            """
            SELECT id, title_ru, title_en, release_year, type, synopsis,
                   poster_url, rating, age_rating
            FROM works
            WHERE lower(title_ru) LIKE '%' || ? || '%'
               OR lower(coalesce(title_en, '')) LIKE '%' || ? || '%'
               OR lower(coalesce(synopsis, '')) LIKE '%' || ? || '%'
            ORDER BY release_year DESC NULLS LAST, title_ru ASC
            LIMIT ?
            """,
            [pattern, pattern, pattern, limit],
        ).fetchall()
        return [
            {
                "id": int(row[0]),
                "title_ru": row[1],
                "title_en": row[2],
                "release_year": row[3],
                "type": row[4],
                "synopsis": row[5],
                "poster_url": row[6],
                "rating": row[7],
                "age_rating": row[8],
            }
            for row in rows
        ]

    # -- persons and characters -------------------------------------------

    def add_person(self, person: PersonRecord) -> int:
        person_id = person.id
        if person_id is None:
            person_id = self._next_id("persons_id_seq", "persons")
        self._conn.execute(
            """
            INSERT INTO persons (id, full_name_ru, full_name_en, roles, biography, country)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            [
                person_id,
                person.full_name_ru,
                person.full_name_en,
                person.roles,
                person.biography,
                person.country,
            ],
        )
        return person_id

    def add_character(self, character: CharacterRecord) -> int:
        character_id = character.id
        if character_id is None:
            character_id = self._next_id("characters_id_seq", "characters")
        self._conn.execute(
            """
            INSERT INTO characters (id, name_ru, name_en, description)
            VALUES (?, ?, ?, ?)
            """,
            [character_id, character.name_ru, character.name_en, character.description],
        )
        return character_id

    def search_persons(self, *, query: str, limit: int = 3) -> list[dict[str, Any]]:
        pattern = _like_pattern(query)
        if not pattern:
            return []
        rows = self._conn.execute(
            """
            SELECT id, full_name_ru, full_name_en, roles, country
            FROM persons
            WHERE lower(full_name_ru) LIKE '%' || ? || '%'
               OR lower(coalesce(full_name_en, '')) LIKE '%' || ? || '%'
               OR lower(coalesce(biography, '')) LIKE '%' || ? || '%'
            ORDER BY full_name_ru ASC
            LIMIT ?
            """,
            [pattern, pattern, pattern, limit],
        ).fetchall()
        return [
            {
                "id": int(row[0]),
                "full_name_ru": row[1],
                "full_name_en": row[2],
                "roles": list(row[3]) if row[3] is not None else None,
                "country": row[4],
            }
            for row in rows
        ]

    def search_characters(self, *, query: str, limit: int = 3) -> list[dict[str, Any]]:
        pattern = _like_pattern(query)
        if not pattern:
            return []
        rows = self._conn.execute(
            """
            SELECT id, name_ru, name_en, description
            FROM characters
            WHERE lower(name_ru) LIKE '%' || ? || '%'
               OR lower(coalesce(name_en, '')) LIKE '%' || ? || '%'
               OR lower(coalesce(description, '')) LIKE '%' || ? || '%'
            ORDER BY name_ru ASC
            LIMIT ?
            """,
            [pattern, pattern, pattern, limit],
        ).fetchall()
        return [
            {
                "id": int(row[0]),
                "name_ru": row[1],
                "name_en": row[2],
                "description": row[3],
            }
            for row in rows
        ]

    def _next_id(self, sequence: str, table: str) -> int:
        row = self._conn.execute(f"SELECT nextval('{sequence}')").fetchone()
        if row is None:
            raise RuntimeError(f"Failed to allocate id from {sequence}")
        # Explicit ids (seed imports) do not advance the sequence; stay above them.
        top = self._conn.execute(f"SELECT coalesce(max(id), 0) FROM {table}").fetchone()
        return max(int(row[0]), int(top[0]) + 1 if top else 1)

    @staticmethod
    def _row_to_work(row: tuple[Any, ...]) -> WorkRecord:
        values = dict(zip(_WORK_COLUMNS, row))
        embedding = values.pop("embedding")
        return WorkRecord(
            **{**values, "id": int(values["id"])},
            embedding=list(embedding) if embedding is not None else None,
        )
