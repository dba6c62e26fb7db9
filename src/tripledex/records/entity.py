"""Subject-centric aggregation of tab-delimited triples."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator

TRIPLE_DELIMITER = "\t"
TRIPLE_TERMINATOR = "."
_TRIPLE_FIELD_COUNT = 4


class MalformedInputError(ValueError):
    """Base error for input lines that cannot be parsed."""


@dataclass(slots=True)
class MalformedTripleError(MalformedInputError):
    """A line did not split into subject, predicate, object and terminator."""

    line: str
    field_count: int

    def __str__(self) -> str:
        return (
            f"Cannot parse triple from line: {self.line!r} "
            f"(got {self.field_count} fields, expected {_TRIPLE_FIELD_COUNT})"
        )


@dataclass(frozen=True, slots=True)
class Triple:
    subject: str
    predicate: str
    object: str


def parse_triple(line: str) -> Triple:
    """Split one ``s<TAB>p<TAB>o<TAB>.`` line; trailing empty fields do not count."""

    pieces = line.rstrip("\r\n").split(TRIPLE_DELIMITER)
    while pieces and pieces[-1] == "":
        pieces.pop()

    if len(pieces) != _TRIPLE_FIELD_COUNT:
        raise MalformedTripleError(line=line, field_count=len(pieces))
    return Triple(subject=pieces[0], predicate=pieces[1], object=pieces[2])


def format_triple(subject: str, predicate: str, value: str) -> str:
    return TRIPLE_DELIMITER.join((subject, predicate, value, TRIPLE_TERMINATOR)) + "\n"


@dataclass(slots=True)
class EntityRecord:
    """All predicate values seen for one subject.

    Values under a predicate keep first-seen order and are never deduplicated.
    Predicate order is irrelevant in memory; serialization sorts predicates so
    identical input always produces identical output.
    """

    subject: str | None
    predicate_values: dict[str, list[str]] | None = field(default_factory=dict)

    @classmethod
    def from_triple(cls, subject: str, predicate: str, obj: str) -> "EntityRecord":
        record = cls(subject=subject)
        record.add_predicate_and_value(predicate, obj)
        return record

    @classmethod
    def from_line(cls, line: str) -> "EntityRecord":
        triple = parse_triple(line)
        return cls.from_triple(triple.subject, triple.predicate, triple.object)

    def _require_live(self) -> dict[str, list[str]]:
        if self.predicate_values is None:
            raise RuntimeError("EntityRecord has been cleared and cannot be reused")
        return self.predicate_values

    def add_predicate_and_value(self, predicate: str, obj: str) -> None:
        values = self._require_live().setdefault(predicate, [])
        values.append(obj)

    def copy(self) -> "EntityRecord":
        """Return an independent record; value lists are copied, not shared."""

        source = self._require_live()
        return EntityRecord(
            subject=self.subject,
            predicate_values={predicate: list(values) for predicate, values in source.items()},
        )

    def clear(self) -> None:
        """Release all state. The record must not be used afterwards."""

        if self.predicate_values is not None:
            self.predicate_values.clear()
        self.predicate_values = None
        self.subject = None

    def iter_pairs(self) -> Iterator[tuple[str, str]]:
        values_by_predicate = self._require_live()
        for predicate in sorted(values_by_predicate):
            for value in values_by_predicate[predicate]:
                yield predicate, value

    def to_ntriples(self) -> str:
        subject = self.subject
        return "".join(format_triple(subject, predicate, value) for predicate, value in self.iter_pairs())

    def __str__(self) -> str:
        return self.to_ntriples()

    # SourceRecord / FieldedSourceRecord

    def identifier(self) -> str:
        self._require_live()
        return self.subject

    def content(self) -> str:
        return self.to_ntriples()

    def is_indexable(self) -> bool:
        return True

    def stored_fields(self) -> Iterator[tuple[str, str]]:
        return self.iter_pairs()
