"""Exact-subject lookup with optional predicate projection."""

from __future__ import annotations

from dataclasses import dataclass, field
import logging

from tripledex.index.generator import FIELD_ID
from tripledex.index.repository import IndexReader

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class FieldValue:
    name: str
    value: str

    def display(self) -> str:
        return f"{self.name}\t:\t{self.value}"

    def to_dict(self) -> dict[str, str]:
        return {"name": self.name, "value": self.value}


@dataclass(slots=True)
class NotFoundError(Exception):
    """No indexed document matched the subject; reported, never raised."""

    query: str

    def __str__(self) -> str:
        return f"Cannot find subject: {self.query}"


@dataclass(slots=True)
class SubjectLookup:
    subject: str
    predicate: str | None
    doc_ids: list[int] = field(default_factory=list)
    fields: list[FieldValue] = field(default_factory=list)
    error: NotFoundError | None = None

    @property
    def found(self) -> bool:
        return self.error is None

    def values(self) -> list[str]:
        return [item.value for item in self.fields]

    def to_dict(self) -> dict[str, object]:
        return {
            "subject": self.subject,
            "predicate": self.predicate,
            "found": self.found,
            "matches": len(self.doc_ids),
            "error": str(self.error) if self.error is not None else None,
            "fields": [item.to_dict() for item in self.fields],
        }


def describe_query(subject: str) -> str:
    return f"{FIELD_ID}:{subject}"


def search_subject(reader: IndexReader, subject: str, predicate: str | None = None) -> SubjectLookup:
    """Return the stored fields of every document keyed by ``subject``.

    Subjects are expected to be unique, but duplicate ingestion is tolerated:
    all matching documents are read and their fields merged in doc-id order.
    Field order within a document follows storage order.
    """

    if not subject or not subject.strip():
        raise ValueError("subject cannot be empty")

    LOGGER.info("Querying started...")
    lookup = SubjectLookup(subject=subject, predicate=predicate)
    lookup.doc_ids = sorted(reader.match_term(FIELD_ID, subject))

    if not lookup.doc_ids:
        lookup.error = NotFoundError(query=describe_query(subject))
        LOGGER.warning("%s", lookup.error)
        return lookup

    for doc_id in lookup.doc_ids:
        for stored in reader.stored_fields(doc_id):
            if predicate is None or stored.name == predicate:
                lookup.fields.append(FieldValue(name=stored.name, value=stored.value))

    LOGGER.info("Querying completed.")
    return lookup
