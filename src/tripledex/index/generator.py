"""Turn source records into index-ready documents under a storage policy."""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
import threading

from tripledex.index.transform import StringTransform, no_transform
from tripledex.records.base import FieldedSourceRecord, SourceRecord

LOGGER = logging.getLogger(__name__)

FIELD_ID = "id"
FIELD_RAW = "raw"
FIELD_BODY = "contents"

_MAX_SKIP_DETAILS = 100


@dataclass(frozen=True, slots=True)
class GeneratorConfig:
    """How generated documents are stored and indexed."""

    store_raw: bool = False
    store_transformed: bool = False
    store_vectors: bool = False
    store_positions: bool = False
    transform: StringTransform = no_transform


@dataclass(frozen=True, slots=True)
class DocumentField:
    name: str
    value: str
    stored: bool = False
    indexed: bool = False
    tokenized: bool = False
    positions: bool = False
    vectors: bool = False


@dataclass(slots=True)
class GeneratedDocument:
    key: str
    fields: list[DocumentField] = field(default_factory=list)

    def get(self, name: str) -> DocumentField | None:
        for item in self.fields:
            if item.name == name:
                return item
        return None

    def stored_fields(self) -> list[DocumentField]:
        return [item for item in self.fields if item.stored]


@dataclass(slots=True)
class TransformError(Exception):
    """The content transform failed; the record is skipped."""

    identifier: str
    message: str

    def __str__(self) -> str:
        return f"Error extracting document text: {self.message} (id={self.identifier})"


@dataclass(slots=True)
class EmptyContentWarning(Exception):
    """Transformed content was blank; the record is skipped."""

    identifier: str

    def __str__(self) -> str:
        return f"Empty document (id={self.identifier})"


class IndexCounters:
    """Outcome tallies shared by every worker of one indexing run."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._indexed = 0
        self._empty_documents = 0
        self._errors = 0
        self._unindexable = 0
        self._malformed_lines = 0
        self._skip_details: list[dict[str, str]] = []

    @property
    def indexed(self) -> int:
        return self._indexed

    @property
    def empty_documents(self) -> int:
        return self._empty_documents

    @property
    def errors(self) -> int:
        return self._errors

    @property
    def unindexable(self) -> int:
        return self._unindexable

    @property
    def malformed_lines(self) -> int:
        return self._malformed_lines

    @property
    def skip_details(self) -> list[dict[str, str]]:
        with self._lock:
            return list(self._skip_details)

    def increment_indexed(self) -> None:
        with self._lock:
            self._indexed += 1

    def increment_unindexable(self) -> None:
        with self._lock:
            self._unindexable += 1

    def increment_malformed(self) -> None:
        with self._lock:
            self._malformed_lines += 1

    def record_error(self, identifier: str, message: str) -> None:
        """Count a per-record or per-shard failure that did not abort the run."""

        with self._lock:
            self._errors += 1
            self._append_detail(identifier, "error", message)

    def record_skip(self, reason: TransformError | EmptyContentWarning) -> None:
        with self._lock:
            if isinstance(reason, TransformError):
                self._errors += 1
                self._append_detail(reason.identifier, "transform_error", str(reason))
            else:
                self._empty_documents += 1
                self._append_detail(reason.identifier, "empty_document", str(reason))

    def _append_detail(self, identifier: str, reason: str, message: str) -> None:
        if len(self._skip_details) < _MAX_SKIP_DETAILS:
            self._skip_details.append({"identifier": identifier, "reason": reason, "message": message})

    def snapshot(self) -> dict[str, int]:
        with self._lock:
            return {
                "indexed": self._indexed,
                "empty_documents": self._empty_documents,
                "errors": self._errors,
                "unindexable": self._unindexable,
                "malformed_lines": self._malformed_lines,
            }


class DocumentGenerator:
    """Build one document per source record, or skip it and count why.

    Stateless per record; the only shared state is the counters object, so a
    single generator can serve many worker threads.
    """

    def __init__(self, config: GeneratorConfig, counters: IndexCounters) -> None:
        self._config = config
        self._counters = counters

    @property
    def config(self) -> GeneratorConfig:
        return self._config

    @property
    def counters(self) -> IndexCounters:
        return self._counters

    def generate(self, record: SourceRecord) -> GeneratedDocument | None:
        identifier = record.identifier()
        raw_content = record.content()

        try:
            contents = self._config.transform(raw_content)
        except Exception as exc:
            LOGGER.exception("Error extracting document text, skipping document: %s", identifier)
            self._counters.record_skip(TransformError(identifier=identifier, message=str(exc)))
            return None

        if not contents.strip():
            LOGGER.info("Empty document: %s", identifier)
            self._counters.record_skip(EmptyContentWarning(identifier=identifier))
            return None

        document = GeneratedDocument(key=identifier)
        document.fields.append(DocumentField(FIELD_ID, identifier, stored=True, indexed=True))

        if self._config.store_raw:
            document.fields.append(DocumentField(FIELD_RAW, raw_content, stored=True))

        document.fields.append(
            DocumentField(
                FIELD_BODY,
                contents,
                stored=self._config.store_transformed,
                indexed=True,
                tokenized=True,
                positions=self._config.store_positions,
                vectors=self._config.store_vectors,
            )
        )

        if isinstance(record, FieldedSourceRecord):
            for name, value in record.stored_fields():
                document.fields.append(DocumentField(name, value, stored=True))

        return document
