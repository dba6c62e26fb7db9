"""SQLite schema and pragmas for the triple index."""

from __future__ import annotations

import sqlite3


PRAGMA_BUSY_TIMEOUT_MS = 5000

# FTS5 "full" keeps token positions (phrase queries work); "column" keeps
# only per-column term frequencies.
DETAIL_POSITIONAL = "full"
DETAIL_FREQUENCIES = "column"


def apply_runtime_pragmas(connection: sqlite3.Connection) -> None:
    """Apply runtime pragmas recommended for local indexing throughput."""

    connection.execute("PRAGMA journal_mode=WAL;")
    connection.execute(f"PRAGMA busy_timeout={PRAGMA_BUSY_TIMEOUT_MS};")
    connection.execute("PRAGMA synchronous=NORMAL;")
    connection.execute("PRAGMA foreign_keys=ON;")


def ensure_schema(connection: sqlite3.Connection, *, positional: bool, vectors: bool) -> None:
    """Create document, stored-field, FTS and term-vector tables if missing."""

    detail = DETAIL_POSITIONAL if positional else DETAIL_FREQUENCIES
    connection.executescript(
        f"""
        CREATE TABLE IF NOT EXISTS index_meta (
            id INTEGER PRIMARY KEY CHECK(id = 1),
            positional INTEGER NOT NULL CHECK(positional IN (0,1)),
            vectors INTEGER NOT NULL CHECK(vectors IN (0,1)),
            created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
        );

        CREATE TABLE IF NOT EXISTS documents (
            id INTEGER PRIMARY KEY,
            doc_key TEXT NOT NULL,
            indexed_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
        );

        CREATE TABLE IF NOT EXISTS stored_fields (
            doc_id INTEGER NOT NULL REFERENCES documents(id) ON DELETE CASCADE,
            ordinal INTEGER NOT NULL,
            name TEXT NOT NULL,
            value TEXT NOT NULL,
            PRIMARY KEY (doc_id, ordinal)
        );

        CREATE VIRTUAL TABLE IF NOT EXISTS body_fts USING fts5(
            contents,
            content='',
            detail={detail},
            tokenize='unicode61 remove_diacritics 2'
        );

        CREATE TABLE IF NOT EXISTS term_vectors (
            doc_id INTEGER NOT NULL REFERENCES documents(id) ON DELETE CASCADE,
            term TEXT NOT NULL,
            freq INTEGER NOT NULL,
            positions TEXT NOT NULL,
            PRIMARY KEY (doc_id, term)
        );

        CREATE INDEX IF NOT EXISTS idx_documents_doc_key ON documents(doc_key);
        """
    )
    connection.execute(
        "INSERT OR IGNORE INTO index_meta(id, positional, vectors) VALUES(1, ?, ?)",
        (int(positional), int(vectors)),
    )
    connection.commit()


def read_index_options(connection: sqlite3.Connection) -> tuple[bool, bool] | None:
    """Return the (positional, vectors) flags the index was created with, if any."""

    row = connection.execute("SELECT positional, vectors FROM index_meta WHERE id = 1").fetchone()
    if row is None:
        return None
    return bool(row[0]), bool(row[1])


def optimize_fts(connection: sqlite3.Connection) -> None:
    """Run FTS optimize maintenance command."""

    connection.execute("INSERT INTO body_fts(body_fts) VALUES ('optimize');")


def release_wal(connection: sqlite3.Connection) -> None:
    """Checkpoint and leave WAL so readers need no -wal/-shm files."""

    connection.execute("PRAGMA wal_checkpoint(TRUNCATE);")
    connection.execute("PRAGMA journal_mode=DELETE;")
