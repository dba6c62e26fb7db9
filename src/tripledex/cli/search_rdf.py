"""CLI entrypoint for exact-subject lookups against a triple index."""

from __future__ import annotations

import argparse
import json
import logging

from dotenv import load_dotenv

from tripledex.config import IndexSettings, configure_logging
from tripledex.index.query import search_subject
from tripledex.index.repository import IndexAccessError, IndexReader

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Print the stored fields of one subject",
        epilog="Example: tripledex-search -index .tripledex-index -subject ex:Alice -predicate ex:knows",
    )
    parser.add_argument("-index", "--index", dest="index", required=True, metavar="PATH", help="Index directory")
    parser.add_argument("-subject", "--subject", dest="subject", required=True, metavar="URI", help="Entity subject")
    parser.add_argument("-predicate", "--predicate", dest="predicate", metavar="NAME", help="Predicate to return")
    parser.add_argument("--json", action="store_true", help="Emit a JSON payload instead of field lines")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)

    load_dotenv()
    try:
        settings = IndexSettings.from_env()
    except ValueError as exc:
        configure_logging()
        logger.error("Configuration error: %s", exc)
        return 1
    configure_logging(settings.log_level)

    if not args.subject.strip():
        logger.error("Configuration error: -subject cannot be empty")
        return 1

    try:
        with IndexReader.open(args.index) as reader:
            lookup = search_subject(reader, args.subject, args.predicate)
    except IndexAccessError as exc:
        logger.error("Search failed: %s", exc)
        return 1

    if args.json:
        print(json.dumps(lookup.to_dict(), ensure_ascii=True, indent=2))
    else:
        for item in lookup.fields:
            print(item.display())
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
