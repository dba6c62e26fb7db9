"""Concurrent batch indexing of triple shards."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
import logging
from pathlib import Path
import time

from tripledex.index.generator import DocumentGenerator, GeneratorConfig, IndexCounters
from tripledex.index.repository import IndexWriter
from tripledex.records.collection import collect_shards, iter_entity_records, read_triple_lines
from tripledex.records.entity import MalformedTripleError

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class IndexRunStats:
    shards: int = 0
    indexed: int = 0
    empty_documents: int = 0
    errors: int = 0
    unindexable: int = 0
    malformed_lines: int = 0
    duration_ms: int = 0
    error_details: list[dict[str, str]] = field(default_factory=list)

    def to_dict(self) -> dict[str, int | list[dict[str, str]]]:
        return {
            "shards": self.shards,
            "indexed": self.indexed,
            "empty_documents": self.empty_documents,
            "errors": self.errors,
            "unindexable": self.unindexable,
            "malformed_lines": self.malformed_lines,
            "duration_ms": self.duration_ms,
            "error_details": self.error_details,
        }


class TripleIndexer:
    """Indexes triple shards into the SQLite/FTS5 index, one worker per shard."""

    def __init__(self, writer: IndexWriter, generator: DocumentGenerator, *, threads: int = 1) -> None:
        if threads < 1:
            raise ValueError("threads must be >= 1")
        self._writer = writer
        self._generator = generator
        self._threads = threads

    @classmethod
    def from_index_path(
        cls,
        index_path: str | Path,
        config: GeneratorConfig,
        *,
        threads: int = 1,
    ) -> "TripleIndexer":
        writer = IndexWriter.open(index_path, positional=config.store_positions, vectors=config.store_vectors)
        generator = DocumentGenerator(config, IndexCounters())
        return cls(writer=writer, generator=generator, threads=threads)

    @property
    def writer(self) -> IndexWriter:
        return self._writer

    @property
    def counters(self) -> IndexCounters:
        return self._generator.counters

    def close(self) -> None:
        self._writer.close()

    def __enter__(self) -> "TripleIndexer":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def index_path(self, input_path: str | Path, *, optimize: bool = False) -> IndexRunStats:
        started = time.perf_counter()
        shards = collect_shards(input_path)
        LOGGER.info("Indexing %d shard(s) from %s with %d thread(s)", len(shards), input_path, self._threads)

        with ThreadPoolExecutor(max_workers=self._threads, thread_name_prefix="tripledex-indexer") as executor:
            # list() re-raises the first fatal worker error (IndexAccessError).
            list(executor.map(self._index_shard, shards))

        if optimize:
            self._writer.optimize()

        counters = self.counters
        stats = IndexRunStats(shards=len(shards), **counters.snapshot())
        stats.error_details = counters.skip_details
        stats.duration_ms = int((time.perf_counter() - started) * 1000)
        LOGGER.info(
            "Indexing completed: %d indexed, %d empty, %d errors in %d ms",
            stats.indexed,
            stats.empty_documents,
            stats.errors,
            stats.duration_ms,
        )
        return stats

    def _index_shard(self, shard: Path) -> None:
        counters = self.counters

        def _on_malformed(line_no: int, error: MalformedTripleError) -> None:
            LOGGER.warning("Skipping malformed line %s:%d: %s", shard, line_no, error)
            counters.increment_malformed()

        try:
            lines = read_triple_lines(shard)
            for record in iter_entity_records(lines, on_malformed=_on_malformed):
                try:
                    if not record.is_indexable():
                        counters.increment_unindexable()
                        continue

                    document = self._generator.generate(record)
                    if document is None:
                        continue

                    self._writer.add_document(document)
                    counters.increment_indexed()
                finally:
                    record.clear()
        except (OSError, ValueError) as exc:
            LOGGER.error("Failed to read shard %s: %s", shard, exc)
            counters.record_error(str(shard), str(exc))
