"""CLI entrypoint for batch indexing of triple shards."""

from __future__ import annotations

import argparse
from dataclasses import replace
import json
import logging

from dotenv import load_dotenv

from tripledex.config import IndexSettings, configure_logging
from tripledex.index.indexer import TripleIndexer
from tripledex.index.repository import IndexAccessError
from tripledex.index.transform import TRANSFORMS

logger = logging.getLogger(__name__)


def _build_parser(settings: IndexSettings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Index tab-delimited triples into a SQLite FTS5 index")
    parser.add_argument("--input", "-input", dest="input", required=True, help="Triple file or directory of shards")
    parser.add_argument("--index", "-index", dest="index", default=str(settings.index_path), help="Index directory")
    parser.add_argument("--threads", type=int, default=settings.threads, help="Number of shard workers")
    parser.add_argument("--store-raw", action="store_true", default=settings.store_raw, help="Store raw content")
    parser.add_argument(
        "--store-transformed",
        action="store_true",
        default=settings.store_transformed,
        help="Store the transformed body so it can be retrieved",
    )
    parser.add_argument(
        "--store-vectors",
        action="store_true",
        default=settings.store_vectors,
        help="Store per-document term vectors with positions",
    )
    parser.add_argument(
        "--store-positions",
        action="store_true",
        default=settings.store_positions,
        help="Build a positional index instead of a frequency-only one",
    )
    parser.add_argument(
        "--transform",
        choices=sorted(TRANSFORMS),
        default=settings.transform,
        help="Content transform applied before indexing",
    )
    parser.add_argument("--optimize", action="store_true", help="Run FTS optimize after indexing")
    return parser


def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    try:
        settings = IndexSettings.from_env()
    except ValueError as exc:
        configure_logging()
        logger.error("Configuration error: %s", exc)
        return 1

    args = _build_parser(settings).parse_args(argv)
    configure_logging(settings.log_level)

    if args.threads < 1:
        logger.error("Configuration error: --threads must be >= 1")
        return 1

    run_settings = replace(
        settings,
        store_raw=args.store_raw,
        store_transformed=args.store_transformed,
        store_vectors=args.store_vectors,
        store_positions=args.store_positions,
        transform=args.transform,
    )

    try:
        with TripleIndexer.from_index_path(
            args.index,
            run_settings.generator_config(),
            threads=args.threads,
        ) as indexer:
            stats = indexer.index_path(args.input, optimize=args.optimize)
    except IndexAccessError as exc:
        logger.error("Indexing aborted: %s", exc)
        return 1

    print(json.dumps(stats.to_dict(), ensure_ascii=True, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
