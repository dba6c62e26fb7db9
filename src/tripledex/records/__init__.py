"""Source records: triple parsing and entity aggregation."""

from .base import FieldedSourceRecord, SourceRecord
from .entity import (
    EntityRecord,
    MalformedInputError,
    MalformedTripleError,
    Triple,
    parse_triple,
)

__all__ = [
    "EntityRecord",
    "FieldedSourceRecord",
    "MalformedInputError",
    "MalformedTripleError",
    "SourceRecord",
    "Triple",
    "parse_triple",
]
