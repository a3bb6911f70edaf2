"""
Command-line entry point: parse one rent roll file and print the result as JSON.

    python -m cli rent_roll.xlsx --no-ai --cache none
"""
import argparse
import json
import logging
import mimetypes
import sys
from pathlib import Path
from typing import Optional, Sequence

from agents.rent_roll_agent import RentRollAgent
from config import settings
from config.logging_config import configure_logging
from engine.rent_roll_processor import ProcessingOptions, RentRollProcessor
from storage.detection_cache import build_cache

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Extract unit and tenant data from a rent roll file")
    parser.add_argument("file", help="Path to an Excel, CSV or PDF rent roll")
    parser.add_argument("--mime", default=None, help="Declared mime type (guessed from the name if omitted)")
    parser.add_argument("--no-ai", action="store_true", help="Use keyword heuristics only")
    parser.add_argument(
        "--cache",
        choices=["memory", "duckdb", "none"],
        default=settings.CACHE_BACKEND,
        help="Header detection cache backend",
    )
    parser.add_argument("--cache-path", default=None, help="DuckDB file for --cache duckdb")
    parser.add_argument("--max-sheets", type=int, default=None, help="Only examine the first N sheets")
    parser.add_argument(
        "--min-units", type=int, default=0, help="Drop sheets with fewer extracted units",
    )
    parser.add_argument("--log-level", default=settings.LOG_LEVEL, help="DEBUG, INFO, WARNING or ERROR")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging(args.log_level)

    path = Path(args.file)
    if not path.is_file():
        parser.error(f"File not found: {args.file}")

    mime_type = args.mime or mimetypes.guess_type(path.name)[0] or ""
    agent = None if args.no_ai else RentRollAgent()
    if agent is not None and not agent.available:
        logger.info("AI detection unavailable, using keyword heuristics")

    processor = RentRollProcessor(
        agent=agent,
        cache=build_cache(args.cache, args.cache_path),
        options=ProcessingOptions(max_sheets=args.max_sheets, require_minimum_units=args.min_units),
    )
    result = processor.process_file(path.read_bytes(), path.name, mime_type)

    print(json.dumps(result.to_dict(), indent=2, default=str))
    return 0 if result.success else 1


if __name__ == "__main__":
    sys.exit(main())
