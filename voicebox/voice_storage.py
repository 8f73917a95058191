"""Voice record storage backed by PostgreSQL.

Falls back to a local JSON file when no connection string is set (local dev).

Table auto-created on first use:
  voices(id SERIAL PRIMARY KEY, voice_path TEXT, name TEXT, description TEXT,
         tags TEXT[], author TEXT, author_id BIGINT)

All methods are blocking; callers on the event loop use asyncio.to_thread.
"""

import json
import logging
import os
import threading
from typing import Optional

import psycopg2
from psycopg2 import sql
from pydantic import ValidationError

from .errors import RepositoryError
from .models import VoiceRecord

logger = logging.getLogger(__name__)

# Columns users may change through the edit dialogue
EDITABLE_FIELDS = ("name", "description")

_COLUMNS = "id, voice_path, name, description, tags, author, author_id"


def _check_field(field_name: str) -> None:
    if field_name not in EDITABLE_FIELDS:
        raise ValueError(f"Field '{field_name}' cannot be edited")


class PostgresVoiceRepository:
    """Voice records in the `voices` table."""

    def __init__(self, dsn: str):
        self.dsn = dsn
        self._ready = False

    def _connect(self):
        conn = psycopg2.connect(self.dsn)
        conn.autocommit = True
        if not self._ready:
            try:
                cur = conn.cursor()
                cur.execute("""
                    CREATE TABLE IF NOT EXISTS voices (
                        id SERIAL PRIMARY KEY,
                        voice_path TEXT NOT NULL,
                        name TEXT NOT NULL DEFAULT '',
                        description TEXT NOT NULL DEFAULT '',
                        tags TEXT[] NOT NULL DEFAULT '{}',
                        author TEXT NOT NULL DEFAULT '',
                        author_id BIGINT NOT NULL
                    )
                """)
                cur.close()
            except psycopg2.Error:
                conn.close()
                raise
            self._ready = True
        return conn

    def _execute(self, query, params: tuple, fetch: str = ""):
        conn = None
        try:
            conn = self._connect()
            cur = conn.cursor()
            cur.execute(query, params)
            if fetch == "all":
                result = cur.fetchall()
            elif fetch == "one":
                result = cur.fetchone()
            else:
                result = cur.rowcount
            cur.close()
            return result
        except psycopg2.Error as e:
            raise RepositoryError(f"Database error: {e}") from e
        finally:
            if conn is not None:
                conn.close()

    def list_by_author(self, author_id: int) -> list[VoiceRecord]:
        rows = self._execute(
            f"SELECT {_COLUMNS} FROM voices WHERE author_id = %s ORDER BY id",
            (author_id,),
            fetch="all",
        )
        return [
            VoiceRecord(
                id=row[0],
                voice_path=row[1],
                name=row[2],
                description=row[3],
                tags=list(row[4] or []),
                author=row[5],
                author_id=row[6],
            )
            for row in rows
        ]

    def insert(
        self,
        voice_path: str,
        name: str,
        description: str,
        tags: list[str],
        author: str,
        author_id: int,
    ) -> int:
        row = self._execute(
            """INSERT INTO voices (voice_path, name, description, tags, author, author_id)
               VALUES (%s, %s, %s, %s, %s, %s) RETURNING id""",
            (voice_path, name, description, list(tags), author, author_id),
            fetch="one",
        )
        logger.info(f"Voice saved: id={row[0]} author_id={author_id} path={voice_path}")
        return row[0]

    def update_field(self, voice_id: int, field_name: str, value: str) -> None:
        _check_field(field_name)
        query = sql.SQL("UPDATE voices SET {} = %s WHERE id = %s").format(sql.Identifier(field_name))
        updated = self._execute(query, (value, voice_id))
        if not updated:
            logger.warning(f"Voice {voice_id} not found for update of '{field_name}'")

    def delete(self, voice_id: int) -> None:
        deleted = self._execute("DELETE FROM voices WHERE id = %s", (voice_id,))
        if not deleted:
            logger.warning(f"Voice {voice_id} not found for delete")


class JsonVoiceRepository:
    """Voice records in a single JSON file. Same interface as the PostgreSQL one."""

    def __init__(self, path: str):
        self.path = path
        self._lock = threading.Lock()

    def _load(self) -> list[dict]:
        if not os.path.exists(self.path):
            return []
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise RepositoryError(f"Cannot read {self.path}: {e}") from e
        return data if isinstance(data, list) else []

    def _save(self, records: list[dict]) -> None:
        try:
            os.makedirs(os.path.dirname(self.path) or ".", exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump(records, f, ensure_ascii=False, indent=2)
        except OSError as e:
            raise RepositoryError(f"Cannot write {self.path}: {e}") from e

    def list_by_author(self, author_id: int) -> list[VoiceRecord]:
        with self._lock:
            records = self._load()
        try:
            matching = [VoiceRecord(**r) for r in records if r.get("author_id") == author_id]
        except (AttributeError, TypeError, ValidationError) as e:
            raise RepositoryError(f"Malformed voice record in {self.path}: {e}") from e
        return sorted(matching, key=lambda r: r.id)

    def insert(
        self,
        voice_path: str,
        name: str,
        description: str,
        tags: list[str],
        author: str,
        author_id: int,
    ) -> int:
        with self._lock:
            records = self._load()
            voice_id = max((r.get("id", 0) for r in records), default=0) + 1
            record = VoiceRecord(
                id=voice_id,
                voice_path=voice_path,
                name=name,
                description=description,
                tags=list(tags),
                author=author,
                author_id=author_id,
            )
            records.append(record.model_dump())
            self._save(records)
        logger.info(f"Voice saved: id={voice_id} author_id={author_id} path={voice_path}")
        return voice_id

    def update_field(self, voice_id: int, field_name: str, value: str) -> None:
        _check_field(field_name)
        with self._lock:
            records = self._load()
            for r in records:
                if r.get("id") == voice_id:
                    r[field_name] = value
                    self._save(records)
                    return
        logger.warning(f"Voice {voice_id} not found for update of '{field_name}'")

    def delete(self, voice_id: int) -> None:
        with self._lock:
            records = self._load()
            kept = [r for r in records if r.get("id") != voice_id]
            if len(kept) == len(records):
                logger.warning(f"Voice {voice_id} not found for delete")
                return
            self._save(kept)


def create_repository(database_url: str, storage_path: Optional[str] = None):
    """PostgreSQL repository if a connection string is given, JSON file otherwise."""
    if database_url:
        logger.info("Voice storage: PostgreSQL")
        return PostgresVoiceRepository(database_url)
    path = storage_path or os.path.join("data", "voices.json")
    logger.warning(f"Voice storage: no database configured, using local file {path}")
    return JsonVoiceRepository(path)
