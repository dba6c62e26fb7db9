"""Triple-file shards: discovery, decoding, and grouping into entity records."""

from __future__ import annotations

import codecs
import gzip
import io
from pathlib import Path
from typing import BinaryIO, Callable, Iterable, Iterator

from charset_normalizer import from_bytes

from tripledex.records.entity import EntityRecord, MalformedTripleError, parse_triple

_SUPPORTED_SUFFIXES = {".nt", ".tsv"}

MalformedLineHandler = Callable[[int, MalformedTripleError], None]


def _is_supported(path: Path) -> bool:
    suffixes = [part.lower() for part in path.suffixes]
    if not suffixes:
        return False
    if suffixes[-1] == ".gz":
        suffixes = suffixes[:-1]
    return bool(suffixes) and suffixes[-1] in _SUPPORTED_SUFFIXES


def collect_shards(target: str | Path) -> list[Path]:
    path = Path(target)
    if path.is_file():
        return [path]
    if path.is_dir():
        return sorted(item for item in path.rglob("*") if item.is_file() and _is_supported(item))
    return []


_ENCODING_SAMPLE_BYTES = 64 * 1024


def _open_binary(source: Path) -> BinaryIO:
    if source.suffix.lower() == ".gz":
        return gzip.open(source, "rb")
    return source.open("rb")


def _detect_encoding(sample: bytes) -> str:
    try:
        # Not final: the sample may end in the middle of a multi-byte sequence.
        codecs.getincrementaldecoder("utf-8")().decode(sample, final=False)
        return "utf-8"
    except UnicodeDecodeError:
        pass

    best = from_bytes(sample).best()
    if best and best.encoding:
        return best.encoding
    raise ValueError("Could not detect triple file encoding")


def read_triple_lines(path: str | Path) -> Iterator[str]:
    """Stream the lines of one shard, transparently un-gzipping ``.gz`` files.

    The encoding is sniffed from the leading bytes; the rest of the shard is
    decoded lazily so memory stays flat regardless of shard size.
    """

    source = Path(path)
    with _open_binary(source) as handle:
        encoding = _detect_encoding(handle.read(_ENCODING_SAMPLE_BYTES))
        handle.seek(0)
        # Literals may contain unicode line separators; only "\n" ends a triple.
        with io.TextIOWrapper(handle, encoding=encoding, newline="\n") as text:
            for line in text:
                yield line[:-1] if line.endswith("\n") else line


def iter_entity_records(
    lines: Iterable[str],
    *,
    on_malformed: MalformedLineHandler | None = None,
) -> Iterator[EntityRecord]:
    """Group contiguous triples sharing a subject into one record each.

    A subject that reappears after a different subject starts a new record.
    Malformed lines go to ``on_malformed`` and are skipped; without a handler
    the error propagates.
    """

    current: EntityRecord | None = None

    for line_no, line in enumerate(lines, start=1):
        if not line.strip() or line.lstrip().startswith("#"):
            continue

        try:
            triple = parse_triple(line)
        except MalformedTripleError as exc:
            if on_malformed is None:
                raise
            on_malformed(line_no, exc)
            continue

        if current is not None and current.subject == triple.subject:
            current.add_predicate_and_value(triple.predicate, triple.object)
            continue

        finished = current
        current = EntityRecord.from_triple(triple.subject, triple.predicate, triple.object)
        if finished is not None:
            yield finished

    if current is not None:
        yield current
