from __future__ import annotations

import json
from pathlib import Path

import pytest

from tripledex.cli.index_triples import main as index_triples_main
from tripledex.index.repository import IndexReader, IndexWriter


def test_cli_reports_structured_stats(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    shards = tmp_path / "shards"
    shards.mkdir()
    (shards / "a.nt").write_text("ex:A\tex:p\tone\t.\nex:A\tex:p\ttwo\t.\n", encoding="utf-8")
    (shards / "b.tsv").write_text("ex:B\tex:p\tthree\t.\nbroken\n", encoding="utf-8")

    exit_code = index_triples_main(
        [
            "--input",
            str(shards),
            "--index",
            str(tmp_path / "index"),
            "--store-raw",
            "--store-vectors",
            "--store-positions",
            "--optimize",
        ]
    )
    payload = json.loads(capsys.readouterr().out)

    assert exit_code == 0
    assert payload["shards"] == 2
    assert payload["indexed"] == 2
    assert payload["malformed_lines"] == 1
    assert payload["errors"] == 0
    assert payload["empty_documents"] == 0
    assert payload["duration_ms"] >= 0

    with IndexReader.open(tmp_path / "index") as reader:
        assert reader.document_count() == 2
        (doc_id,) = reader.match_term("id", "ex:A")
        names = [item.name for item in reader.stored_fields(doc_id)]
        terms = {entry.term for entry in reader.term_vector(doc_id)}

    assert names == ["id", "raw", "ex:p", "ex:p"]
    assert {"one", "two"} <= terms


def test_cli_fails_on_incompatible_index(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    triples = tmp_path / "a.nt"
    triples.write_text("ex:A\tex:p\tone\t.\n", encoding="utf-8")
    with IndexWriter.open(tmp_path / "index", positional=True):
        pass

    exit_code = index_triples_main(["--input", str(triples), "--index", str(tmp_path / "index")])

    assert exit_code == 1
    assert capsys.readouterr().out == ""


def test_cli_rejects_unknown_transform(tmp_path: Path) -> None:
    with pytest.raises(SystemExit) as excinfo:
        index_triples_main(["--input", str(tmp_path), "--transform", "stemmer"])

    assert excinfo.value.code == 2
