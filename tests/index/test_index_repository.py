from __future__ import annotations

import os
from pathlib import Path
import sqlite3

import pytest

from tripledex.index.generator import DocumentGenerator, GeneratedDocument, GeneratorConfig, IndexCounters
from tripledex.index import repository
from tripledex.index.query import search_subject
from tripledex.index.repository import INDEX_FILENAME, IndexAccessError, IndexReader, IndexWriter
from tripledex.records.entity import EntityRecord


def _alice() -> EntityRecord:
    record = EntityRecord.from_triple("ex:Alice", "ex:knows", "ex:Bob")
    record.add_predicate_and_value("ex:knows", "ex:Carol")
    return record


def _document(config: GeneratorConfig, record: EntityRecord) -> GeneratedDocument:
    document = DocumentGenerator(config, IndexCounters()).generate(record)
    assert document is not None
    return document


def test_writer_creates_expected_tables(tmp_path: Path) -> None:
    with IndexWriter.open(tmp_path / "index", positional=True) as writer:
        rows = writer.connection.execute(
            "SELECT name FROM sqlite_master WHERE type IN ('table', 'view')"
        ).fetchall()
        names = {row["name"] for row in rows}

    assert {"index_meta", "documents", "stored_fields", "body_fts", "term_vectors"} <= names
    assert (tmp_path / "index" / INDEX_FILENAME).is_file()


def test_stored_fields_round_trip_in_storage_order(tmp_path: Path) -> None:
    config = GeneratorConfig(store_raw=True, store_transformed=True, store_positions=True)
    record = _alice()
    content = record.to_ntriples()

    with IndexWriter.open(tmp_path, positional=True) as writer:
        doc_id = writer.add_document(_document(config, record))

    with IndexReader.open(tmp_path) as reader:
        assert reader.match_term("id", "ex:Alice") == {doc_id}
        assert reader.match_term("id", "ex:alice") == set()
        assert reader.document_count() == 1
        fields = [(item.name, item.value) for item in reader.stored_fields(doc_id)]

    assert fields == [
        ("id", "ex:Alice"),
        ("raw", content),
        ("contents", content),
        ("ex:knows", "ex:Bob"),
        ("ex:knows", "ex:Carol"),
    ]


def test_positional_index_supports_phrase_queries(tmp_path: Path) -> None:
    with IndexWriter.open(tmp_path, positional=True) as writer:
        writer.add_document(_document(GeneratorConfig(store_positions=True), _alice()))
        rows = writer.connection.execute(
            "SELECT rowid FROM body_fts WHERE body_fts MATCH ?",
            ('"alice ex knows"',),
        ).fetchall()

    assert len(rows) == 1


def test_frequency_only_index_rejects_phrase_queries(tmp_path: Path) -> None:
    with IndexWriter.open(tmp_path, positional=False) as writer:
        writer.add_document(_document(GeneratorConfig(store_positions=False), _alice()))

        term_rows = writer.connection.execute(
            "SELECT rowid FROM body_fts WHERE body_fts MATCH ?",
            ("carol",),
        ).fetchall()
        assert len(term_rows) == 1

        with pytest.raises(sqlite3.OperationalError):
            writer.connection.execute(
                "SELECT rowid FROM body_fts WHERE body_fts MATCH ?",
                ('"alice ex knows"',),
            ).fetchall()


def test_unstored_body_is_indexed_but_not_returned(tmp_path: Path) -> None:
    with IndexWriter.open(tmp_path, positional=False) as writer:
        doc_id = writer.add_document(_document(GeneratorConfig(), _alice()))

    with IndexReader.open(tmp_path) as reader:
        names = [item.name for item in reader.stored_fields(doc_id)]

    assert "contents" not in names
    assert "raw" not in names


def test_term_vectors_are_stored_only_when_requested(tmp_path: Path) -> None:
    class _Plain:
        def __init__(self, key: str, text: str) -> None:
            self._key = key
            self._text = text

        def identifier(self) -> str:
            return self._key

        def content(self) -> str:
            return self._text

        def is_indexable(self) -> bool:
            return True

    with_vectors = GeneratorConfig(store_vectors=True, store_positions=True)
    without_vectors = GeneratorConfig(store_positions=True)
    counters = IndexCounters()

    with IndexWriter.open(tmp_path, positional=True, vectors=True) as writer:
        first = writer.add_document(DocumentGenerator(with_vectors, counters).generate(_Plain("a", "red fox red hen")))
        second = writer.add_document(DocumentGenerator(without_vectors, counters).generate(_Plain("b", "red fox")))

    with IndexReader.open(tmp_path) as reader:
        vector = {entry.term: (entry.freq, entry.positions) for entry in reader.term_vector(first)}
        assert reader.term_vector(second) == []

    assert vector == {"fox": (1, [1]), "hen": (1, [3]), "red": (2, [0, 2])}


def test_reopening_with_different_positional_setting_fails(tmp_path: Path) -> None:
    with IndexWriter.open(tmp_path, positional=True):
        pass

    with pytest.raises(IndexAccessError) as excinfo:
        IndexWriter.open(tmp_path, positional=False)

    assert excinfo.value.path == tmp_path


def test_document_positions_must_match_index(tmp_path: Path) -> None:
    with IndexWriter.open(tmp_path, positional=False) as writer:
        with pytest.raises(IndexAccessError):
            writer.add_document(_document(GeneratorConfig(store_positions=True), _alice()))


def test_reader_rejects_missing_or_non_directory_paths(tmp_path: Path) -> None:
    with pytest.raises(IndexAccessError):
        IndexReader.open(tmp_path / "missing")

    not_a_dir = tmp_path / "file.db"
    not_a_dir.write_text("x", encoding="utf-8")
    with pytest.raises(IndexAccessError):
        IndexReader.open(not_a_dir)

    with pytest.raises(IndexAccessError):
        IndexReader.open(tmp_path)


def test_reader_only_supports_exact_match_on_id(tmp_path: Path) -> None:
    with IndexWriter.open(tmp_path, positional=False):
        pass

    with IndexReader.open(tmp_path) as reader:
        with pytest.raises(ValueError):
            reader.match_term("contents", "alice")


def test_reopening_with_different_vectors_setting_fails(tmp_path: Path) -> None:
    with IndexWriter.open(tmp_path, positional=True, vectors=True) as writer:
        assert writer.vectors

    with pytest.raises(IndexAccessError) as excinfo:
        IndexWriter.open(tmp_path, positional=True)

    assert "vectors=True" in excinfo.value.message
    with IndexWriter.open(tmp_path, positional=True, vectors=True):
        pass


def test_document_vectors_require_vector_index(tmp_path: Path) -> None:
    config = GeneratorConfig(store_vectors=True, store_positions=True)
    with IndexWriter.open(tmp_path, positional=True) as writer:
        with pytest.raises(IndexAccessError):
            writer.add_document(_document(config, _alice()))
        assert writer.connection.execute("SELECT COUNT(*) FROM documents").fetchone()[0] == 0


def test_closed_writer_leaves_a_self_contained_database(tmp_path: Path) -> None:
    with IndexWriter.open(tmp_path, positional=True) as writer:
        writer.add_document(_document(GeneratorConfig(store_positions=True), _alice()))

    assert sorted(path.name for path in tmp_path.iterdir()) == [INDEX_FILENAME]

    with IndexReader.open(tmp_path) as reader:
        assert reader.document_count() == 1

    assert sorted(path.name for path in tmp_path.iterdir()) == [INDEX_FILENAME]


def test_reader_searches_an_index_in_a_read_only_directory(tmp_path: Path) -> None:
    index_dir = tmp_path / "index"
    config = GeneratorConfig(store_positions=True)
    with IndexWriter.open(index_dir, positional=True) as writer:
        writer.add_document(_document(config, EntityRecord.from_triple("ex:Alice", "ex:knows", "ex:Bob")))

    os.chmod(index_dir, 0o500)
    try:
        with IndexReader.open(index_dir) as reader:
            lookup = search_subject(reader, "ex:Alice", "ex:knows")
    finally:
        os.chmod(index_dir, 0o700)

    assert lookup.found
    assert lookup.values() == ["ex:Bob"]


def test_reader_closes_connection_when_setup_fails(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    with IndexWriter.open(tmp_path, positional=False):
        pass

    class _FailingConnection:
        closed = False

        def execute(self, sql: str) -> None:
            raise sqlite3.OperationalError("disk I/O error")

        def close(self) -> None:
            self.closed = True

    connection = _FailingConnection()
    monkeypatch.setattr(repository.sqlite3, "connect", lambda *args, **kwargs: connection)

    with pytest.raises(IndexAccessError):
        IndexReader.open(tmp_path)

    assert connection.closed
