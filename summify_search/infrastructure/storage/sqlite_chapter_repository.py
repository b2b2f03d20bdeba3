"""SQLite store for books and chapters.

Serves both query shapes the search core needs: a substring candidate query and a
vector-distance ordered query. Chapter embeddings are float32 BLOBs scored by
brute-force cosine distance in numpy, which is adequate for catalogues of a few
hundred thousand chapters.
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from pathlib import Path

import numpy as np

from summify_search.domain.errors import StorageError, VectorIndexUnavailable
from summify_search.domain.models import (
    BookRecord,
    ChapterRecord,
    ChapterWithBook,
    MetricKind,
    Query,
    RawHit,
)

logger = logging.getLogger(__name__)

_SELECT_JOINED = """
    SELECT
        c.id AS chapter_id,
        c.book_id AS book_id,
        c.title AS chapter_title,
        c.text AS chapter_text,
        c.chapter_number AS chapter_number,
        c.embedding AS embedding,
        b.title AS book_title,
        b.author AS author,
        b.cover_url AS cover_url,
        b.isbn AS isbn
    FROM chapters c
    JOIN books b ON b.id = c.book_id
"""


def _like_pattern(text: str) -> str:
    escaped = text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _casefold(value: str | None) -> str:
    return (value or "").casefold()


def _decode_embedding(blob: bytes | None) -> tuple[float, ...] | None:
    if not blob:
        return None
    return tuple(float(x) for x in np.frombuffer(blob, dtype="float32"))


class SQLiteChapterRepository:
    """Chapter repository and vector store over one SQLite database."""

    def __init__(self, db_path: Path | str, *, dimension: int | None = None) -> None:
        self.db_path = Path(db_path)
        self.dimension = dimension
        try:
            if str(db_path) != ":memory:":
                self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(str(db_path), check_same_thread=False)
        except (OSError, sqlite3.Error) as ex:
            raise StorageError(f"cannot open database {db_path}: {ex}") from ex
        self._conn.row_factory = sqlite3.Row
        # LIKE folds ASCII only; columns are compared through Python casefold instead.
        self._conn.create_function("casefold", 1, _casefold, deterministic=True)
        self._lock = threading.RLock()
        self._conn.execute("PRAGMA foreign_keys=ON;")
        self._ensure_schema()

    def close(self) -> None:
        self._conn.close()

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        with self._lock:
            try:
                yield self._conn
                self._conn.commit()
            except sqlite3.Error as ex:
                self._conn.rollback()
                raise StorageError(f"sqlite: {ex}") from ex
            except Exception:
                self._conn.rollback()
                raise

    def _ensure_schema(self) -> None:
        with self.transaction() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS books (
                    id INTEGER PRIMARY KEY,
                    title TEXT NOT NULL,
                    author TEXT NOT NULL DEFAULT 'Unknown Author',
                    cover_url TEXT NOT NULL DEFAULT '',
                    isbn TEXT NOT NULL DEFAULT ''
                )
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS chapters (
                    id INTEGER PRIMARY KEY,
                    book_id INTEGER NOT NULL,
                    title TEXT NOT NULL,
                    text TEXT NOT NULL DEFAULT '',
                    chapter_number INTEGER,
                    embedding BLOB,
                    FOREIGN KEY(book_id) REFERENCES books(id) ON DELETE CASCADE
                )
                """
            )
            conn.execute("CREATE INDEX IF NOT EXISTS idx_chapters_book_id ON chapters(book_id)")

    # ----- writes -----

    def add_book(self, book: BookRecord) -> int:
        with self.transaction() as conn:
            cur = conn.execute(
                "INSERT INTO books(id, title, author, cover_url, isbn) VALUES (?, ?, ?, ?, ?)",
                (book.id or None, book.title, book.author, book.cover_url, book.isbn),
            )
            return int(cur.lastrowid)

    def add_chapter(self, chapter: ChapterRecord) -> int:
        blob = None
        if chapter.embedding is not None:
            blob = sqlite3.Binary(np.asarray(chapter.embedding, dtype="float32").tobytes())
        with self.transaction() as conn:
            cur = conn.execute(
                """
                INSERT INTO chapters(id, book_id, title, text, chapter_number, embedding)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    chapter.id or None,
                    chapter.book_id,
                    chapter.title,
                    chapter.text,
                    chapter.chapter_number,
                    blob,
                ),
            )
            return int(cur.lastrowid)

    def count_books(self) -> int:
        with self.transaction() as conn:
            return int(conn.execute("SELECT COUNT(*) FROM books").fetchone()[0])

    # ----- ChapterRepositoryPort -----

    def find_text_candidates(self, query: Query, limit: int = 200) -> list[ChapterWithBook]:
        pattern = _like_pattern(query.normalized)
        first_word = _like_pattern(query.first_word)
        with self.transaction() as conn:
            rows = conn.execute(
                _SELECT_JOINED
                + """
                WHERE casefold(c.title) LIKE :p ESCAPE '\\'
                   OR casefold(c.text) LIKE :p ESCAPE '\\'
                   OR casefold(b.title) LIKE :p ESCAPE '\\'
                   OR casefold(b.author) LIKE :p ESCAPE '\\'
                ORDER BY
                    CASE
                        WHEN casefold(c.title) LIKE :p ESCAPE '\\' THEN 1
                        WHEN casefold(c.text) LIKE :p ESCAPE '\\'
                             AND casefold(c.title) LIKE :w ESCAPE '\\' THEN 2
                        WHEN casefold(c.text) LIKE :p ESCAPE '\\' THEN 3
                        WHEN casefold(b.title) LIKE :p ESCAPE '\\' THEN 4
                        ELSE 5
                    END,
                    LENGTH(c.text) DESC,
                    c.id
                LIMIT :n
                """,
                {"p": pattern, "w": first_word, "n": max(limit, 0)},
            ).fetchall()
        return [self._row_to_joined(r) for r in rows]

    def get_chapters(self, chapter_ids: Sequence[int]) -> list[ChapterWithBook]:
        ids = list(dict.fromkeys(int(i) for i in chapter_ids))
        if not ids:
            return []
        placeholders = ",".join("?" for _ in ids)
        with self.transaction() as conn:
            rows = conn.execute(
                _SELECT_JOINED + f" WHERE c.id IN ({placeholders})", ids
            ).fetchall()
        by_id = {r["chapter_id"]: self._row_to_joined(r) for r in rows}
        return [by_id[i] for i in ids if i in by_id]

    def iter_chapters(self, only_missing_embeddings: bool = False) -> list[ChapterWithBook]:
        where = " WHERE c.embedding IS NULL" if only_missing_embeddings else ""
        with self.transaction() as conn:
            rows = conn.execute(_SELECT_JOINED + where + " ORDER BY c.id").fetchall()
        return [self._row_to_joined(r) for r in rows]

    # ----- VectorStorePort -----

    def ensure_collection(self, name: str, dim: int) -> None:
        # Embeddings live on the chapters table; only the dimension is recorded.
        self.dimension = dim

    def upsert(
        self,
        ids: Sequence[int],
        vectors: Sequence[Sequence[float]],
        payloads: Sequence[dict[str, object]],
    ) -> None:
        if len(ids) != len(vectors):
            raise ValueError("ids and vectors length mismatch")
        with self.transaction() as conn:
            for chapter_id, vector in zip(ids, vectors, strict=True):
                conn.execute(
                    "UPDATE chapters SET embedding = ? WHERE id = ?",
                    (sqlite3.Binary(np.asarray(vector, dtype="float32").tobytes()), chapter_id),
                )

    def search(self, query_vector: Sequence[float], top_k: int = 20) -> list[RawHit]:
        query = np.asarray(query_vector, dtype="float32")
        try:
            with self.transaction() as conn:
                rows = conn.execute(
                    "SELECT id, book_id, embedding FROM chapters WHERE embedding IS NOT NULL"
                ).fetchall()
        except StorageError as ex:
            raise VectorIndexUnavailable(f"vector query failed: {ex}") from ex

        if not rows:
            raise VectorIndexUnavailable("no chapter embeddings indexed")

        try:
            embeddings = np.vstack([np.frombuffer(r["embedding"], dtype="float32") for r in rows])
        except ValueError as ex:
            raise VectorIndexUnavailable(f"inconsistent embedding sizes: {ex}") from ex
        if embeddings.shape[1] != query.shape[0]:
            raise VectorIndexUnavailable(
                f"index dimension {embeddings.shape[1]} != query dimension {query.shape[0]}"
            )

        norms = np.linalg.norm(embeddings, axis=1) * (np.linalg.norm(query) or 1.0)
        similarities = (embeddings @ query) / np.where(norms == 0, 1.0, norms)
        distances = 1.0 - similarities

        k = min(max(top_k, 0), len(distances))
        if k == 0:
            return []
        if k < len(distances):
            top = np.argpartition(distances, k - 1)[:k]
            top = top[np.argsort(distances[top], kind="stable")]
        else:
            top = np.argsort(distances, kind="stable")

        return [
            RawHit(
                chapter_id=int(rows[i]["id"]),
                book_id=int(rows[i]["book_id"]),
                metric=float(distances[i]),
                kind=MetricKind.DISTANCE,
            )
            for i in top
        ]

    @staticmethod
    def _row_to_joined(row: sqlite3.Row) -> ChapterWithBook:
        return ChapterWithBook(
            chapter=ChapterRecord(
                id=row["chapter_id"],
                book_id=row["book_id"],
                title=row["chapter_title"],
                text=row["chapter_text"] or "",
                embedding=_decode_embedding(row["embedding"]),
                chapter_number=row["chapter_number"],
            ),
            book=BookRecord(
                id=row["book_id"],
                title=row["book_title"],
                author=row["author"] or "Unknown Author",
                cover_url=row["cover_url"] or "",
                isbn=row["isbn"] or "",
            ),
        )
