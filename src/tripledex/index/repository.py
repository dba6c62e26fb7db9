"""Writer and reader boundaries over the on-disk SQLite/FTS5 index."""

from __future__ import annotations

from dataclasses import dataclass
import logging
import os
from pathlib import Path
import sqlite3
import threading

from tripledex.index.analysis import build_term_vector
from tripledex.index.generator import FIELD_BODY, FIELD_ID, GeneratedDocument
from tripledex.index.schema import (
    PRAGMA_BUSY_TIMEOUT_MS,
    apply_runtime_pragmas,
    ensure_schema,
    optimize_fts,
    read_index_options,
    release_wal,
)

LOGGER = logging.getLogger(__name__)

INDEX_FILENAME = "index.db"


@dataclass(slots=True)
class IndexAccessError(RuntimeError):
    """The index is missing, unreadable, incompatible, or failed on I/O."""

    path: Path
    message: str

    def __str__(self) -> str:
        return f"{self.message} (path={self.path})"


@dataclass(slots=True)
class StoredField:
    name: str
    value: str


@dataclass(slots=True)
class TermVectorEntry:
    term: str
    freq: int
    positions: list[int]


class IndexWriter:
    """Persists generated documents; safe to share between worker threads."""

    def __init__(
        self,
        index_dir: Path,
        connection: sqlite3.Connection,
        *,
        positional: bool,
        vectors: bool = False,
    ) -> None:
        self._index_dir = index_dir
        self._connection = connection
        self._positional = positional
        self._vectors = vectors
        self._lock = threading.Lock()

    @classmethod
    def open(cls, index_dir: str | Path, *, positional: bool, vectors: bool = False) -> "IndexWriter":
        directory = Path(index_dir)
        try:
            directory.mkdir(parents=True, exist_ok=True)
            connection = sqlite3.connect(str(directory / INDEX_FILENAME), check_same_thread=False)
        except (OSError, sqlite3.Error) as exc:
            raise IndexAccessError(directory, f"Cannot open index for writing: {exc}") from exc

        connection.row_factory = sqlite3.Row
        try:
            apply_runtime_pragmas(connection)
            ensure_schema(connection, positional=positional, vectors=vectors)
            existing = read_index_options(connection)
        except sqlite3.Error as exc:
            connection.close()
            raise IndexAccessError(directory, f"Cannot initialize index schema: {exc}") from exc

        if existing is not None and existing != (positional, vectors):
            connection.close()
            built_positional, built_vectors = existing
            raise IndexAccessError(
                directory,
                f"Index was built with positional={built_positional}, vectors={built_vectors}; "
                f"positional={positional}, vectors={vectors} conflicts",
            )

        LOGGER.info("Writing index to %s (positional=%s, vectors=%s)", directory, positional, vectors)
        return cls(directory, connection, positional=positional, vectors=vectors)

    @property
    def index_dir(self) -> Path:
        return self._index_dir

    @property
    def positional(self) -> bool:
        return self._positional

    @property
    def vectors(self) -> bool:
        return self._vectors

    @property
    def connection(self) -> sqlite3.Connection:
        return self._connection

    def close(self) -> None:
        try:
            with self._lock:
                release_wal(self._connection)
        except sqlite3.Error as exc:
            raise IndexAccessError(self._index_dir, f"Failed to finalize index: {exc}") from exc
        finally:
            self._connection.close()

    def __enter__(self) -> "IndexWriter":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def add_document(self, document: GeneratedDocument) -> int:
        """Store one document in a single transaction and return its doc id."""

        id_fields = [item for item in document.fields if item.name == FIELD_ID and item.indexed and not item.tokenized]
        if len(id_fields) != 1:
            raise ValueError(f"Document must carry exactly one exact-match {FIELD_ID!r} field: {document.key}")

        for item in document.fields:
            if item.indexed and item.tokenized:
                if item.name != FIELD_BODY:
                    raise ValueError(f"Only {FIELD_BODY!r} can be full-text indexed, got {item.name!r}")
                if item.positions != self._positional:
                    raise IndexAccessError(
                        self._index_dir,
                        f"Document {document.key!r} requests positions={item.positions} "
                        f"but index is positional={self._positional}",
                    )
                if item.vectors and not self._vectors:
                    raise IndexAccessError(
                        self._index_dir,
                        f"Document {document.key!r} requests term vectors but index was built without them",
                    )

        try:
            with self._lock, self._connection:
                cursor = self._connection.execute(
                    "INSERT INTO documents(doc_key) VALUES(?)",
                    (id_fields[0].value,),
                )
                doc_id = int(cursor.lastrowid)

                self._connection.executemany(
                    "INSERT INTO stored_fields(doc_id, ordinal, name, value) VALUES(?, ?, ?, ?)",
                    [
                        (doc_id, ordinal, item.name, item.value)
                        for ordinal, item in enumerate(document.stored_fields())
                    ],
                )

                body = document.get(FIELD_BODY)
                if body is not None and body.indexed:
                    self._connection.execute(
                        "INSERT INTO body_fts(rowid, contents) VALUES(?, ?)",
                        (doc_id, body.value),
                    )
                    if body.vectors:
                        self._connection.executemany(
                            "INSERT INTO term_vectors(doc_id, term, freq, positions) VALUES(?, ?, ?, ?)",
                            [
                                (doc_id, term, len(positions), " ".join(str(p) for p in positions))
                                for term, positions in build_term_vector(body.value).items()
                            ],
                        )
        except sqlite3.Error as exc:
            raise IndexAccessError(self._index_dir, f"Failed to write document {document.key!r}: {exc}") from exc

        return doc_id

    def optimize(self) -> None:
        try:
            with self._lock, self._connection:
                optimize_fts(self._connection)
        except sqlite3.Error as exc:
            raise IndexAccessError(self._index_dir, f"FTS optimize failed: {exc}") from exc


class IndexReader:
    """Read-only handle used by the query engine."""

    def __init__(self, index_dir: Path, connection: sqlite3.Connection) -> None:
        self._index_dir = index_dir
        self._connection = connection

    @classmethod
    def open(cls, index_dir: str | Path) -> "IndexReader":
        directory = Path(index_dir)
        if not directory.is_dir() or not os.access(directory, os.R_OK):
            raise IndexAccessError(directory, "Index path does not exist or is not a readable directory")

        db_path = directory / INDEX_FILENAME
        if not db_path.is_file():
            raise IndexAccessError(directory, f"Index directory has no {INDEX_FILENAME}")

        LOGGER.info("Reading index from %s", directory)
        try:
            connection = sqlite3.connect(f"{db_path.resolve().as_uri()}?mode=ro", uri=True)
        except sqlite3.Error as exc:
            raise IndexAccessError(directory, f"Cannot open index: {exc}") from exc
        try:
            connection.execute(f"PRAGMA busy_timeout={PRAGMA_BUSY_TIMEOUT_MS};")
            connection.execute("PRAGMA query_only=ON;")
        except sqlite3.Error as exc:
            connection.close()
            raise IndexAccessError(directory, f"Cannot open index: {exc}") from exc
        connection.row_factory = sqlite3.Row
        return cls(directory, connection)

    @property
    def index_dir(self) -> Path:
        return self._index_dir

    @property
    def connection(self) -> sqlite3.Connection:
        return self._connection

    def close(self) -> None:
        self._connection.close()

    def __enter__(self) -> "IndexReader":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _fetchall(self, sql: str, params: tuple[object, ...]) -> list[sqlite3.Row]:
        try:
            return self._connection.execute(sql, params).fetchall()
        except sqlite3.Error as exc:
            raise IndexAccessError(self._index_dir, f"Index read failed: {exc}") from exc

    def match_term(self, field_name: str, term: str) -> set[int]:
        """Exact-match term lookup; only the id field is searchable this way."""

        if field_name != FIELD_ID:
            raise ValueError(f"Field {field_name!r} does not support exact-match lookup")
        rows = self._fetchall("SELECT id FROM documents WHERE doc_key = ?", (term,))
        return {int(row["id"]) for row in rows}

    def stored_fields(self, doc_id: int) -> list[StoredField]:
        rows = self._fetchall(
            "SELECT name, value FROM stored_fields WHERE doc_id = ? ORDER BY ordinal ASC",
            (doc_id,),
        )
        return [StoredField(name=row["name"], value=row["value"]) for row in rows]

    def term_vector(self, doc_id: int) -> list[TermVectorEntry]:
        rows = self._fetchall(
            "SELECT term, freq, positions FROM term_vectors WHERE doc_id = ? ORDER BY term ASC",
            (doc_id,),
        )
        return [
            TermVectorEntry(
                term=row["term"],
                freq=int(row["freq"]),
                positions=[int(value) for value in row["positions"].split()],
            )
            for row in rows
        ]

    def document_count(self) -> int:
        rows = self._fetchall("SELECT COUNT(*) AS c FROM documents", ())
        return int(rows[0]["c"])
