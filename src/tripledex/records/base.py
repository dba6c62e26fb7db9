"""Shared record contract for anything the document generator can index."""

from __future__ import annotations

from typing import Iterable, Protocol, runtime_checkable


@runtime_checkable
class SourceRecord(Protocol):
    """Protocol that every indexable source record must implement."""

    def identifier(self) -> str:
        """Return the unique key stored in the exact-match id field."""

    def content(self) -> str:
        """Return the untransformed text handed to the body field."""

    def is_indexable(self) -> bool:
        """Return False when the record should be skipped entirely."""


@runtime_checkable
class FieldedSourceRecord(SourceRecord, Protocol):
    """Source record that also exposes named values to store verbatim."""

    def stored_fields(self) -> Iterable[tuple[str, str]]:
        """Yield ``(field_name, value)`` pairs in a stable order."""
