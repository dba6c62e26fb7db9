"""Document generation, index storage, and subject lookup."""

from .generator import (
    FIELD_BODY,
    FIELD_ID,
    FIELD_RAW,
    DocumentGenerator,
    GeneratedDocument,
    GeneratorConfig,
    IndexCounters,
)
from .query import FieldValue, NotFoundError, SubjectLookup, search_subject
from .repository import IndexAccessError, IndexReader, IndexWriter

__all__ = [
    "FIELD_BODY",
    "FIELD_ID",
    "FIELD_RAW",
    "DocumentGenerator",
    "FieldValue",
    "GeneratedDocument",
    "GeneratorConfig",
    "IndexAccessError",
    "IndexCounters",
    "IndexReader",
    "IndexWriter",
    "NotFoundError",
    "SubjectLookup",
    "search_subject",
]
