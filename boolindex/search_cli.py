"""
Interactive boolean search over a saved (or freshly built) index.

Queries use AND, OR, NOT and parentheses, e.g.
    cat AND (dog OR NOT bird)

Each query runs against the inverted index and the term-document matrix,
and prints the matching documents from both.

Usage (from repo root, after building the index):
    python -m boolindex.search_cli \
        --index output/inverted_index.json \
        --matrix output/term_document_matrix.json

or build in memory first:
    python -m boolindex.search_cli --texts path/to/texts
"""

from __future__ import annotations

import argparse
import logging
import time
from pathlib import Path
from typing import Iterable, Sequence

from .config import DEFAULT_OUTPUT_DIR
from .index_builder import BuildCancelled, IndexBuilder, cancel_on_sigint, discover_files
from .log import setup_logging
from .posting import IndexAccessor
from .query_parser import QueryParseError, QueryParser
from .search import BooleanSearchService
from .serialization import INVERTED_INDEX_JSON, MATRIX_JSON, serializer_for

EXIT_COMMAND = "exit"

logger = logging.getLogger(__name__)


def print_results(
    label: str,
    query,
    accessor: IndexAccessor,
    service: BooleanSearchService,
) -> set[str]:
    start = time.perf_counter()
    results = service.execute_query(query, accessor)
    elapsed_ms = (time.perf_counter() - start) * 1000

    print(f"\n  Results from the {label}:")
    if not results:
        print(f"    No documents found ({elapsed_ms:.1f} ms).")
        return results
    print(f"    Found {len(results)} documents ({elapsed_ms:.1f} ms):")
    for doc_id in sorted(results, key=str.casefold):
        print(f"      - {doc_id}")
    return results


def run_search_loop(
    accessors: Sequence[tuple[str, IndexAccessor]],
    parser: QueryParser | None = None,
    service: BooleanSearchService | None = None,
) -> None:
    """
    Read queries until an empty line, 'exit', EOF or Ctrl+C.
    Malformed queries are reported and the loop continues.
    """
    parser = parser or QueryParser()
    service = service or BooleanSearchService()

    print("Enter a boolean query, e.g. 'word1 AND (word2 OR NOT word3)'.")
    print("Operators: AND, OR, NOT. Parentheses are supported.")
    print(f"Type '{EXIT_COMMAND}' or an empty line to quit.")

    while True:
        try:
            raw_query = input("\nquery> ").strip()
        except (EOFError, KeyboardInterrupt):
            print()
            break
        if not raw_query or raw_query.lower() == EXIT_COMMAND:
            break

        try:
            query = parser.parse(raw_query)
        except QueryParseError as e:
            print(f"  Could not parse query: {e}")
            continue

        logger.debug("Parsed query: %s", query)
        for label, accessor in accessors:
            print_results(label, query, accessor, service)


def load_accessors(index_path: Path, matrix_path: Path) -> list[tuple[str, IndexAccessor]]:
    """Load the saved structures; the format follows each file's suffix."""
    index = serializer_for(index_path).deserialize(index_path)
    matrix = serializer_for(matrix_path, matrix=True).deserialize(matrix_path)
    return [("inverted index", index), ("term-document matrix", matrix)]


def build_accessors(texts_dir: Path, single_threaded: bool = False) -> list[tuple[str, IndexAccessor]]:
    """Build both structures in memory. Ctrl+C raises BuildCancelled."""
    with cancel_on_sigint() as cancel_event:
        result = IndexBuilder().build(
            discover_files(texts_dir), cancel_event, single_threaded=single_threaded
        )
    if result.report.files_failed:
        print(f"Warning: {result.report.files_failed} files could not be indexed.")
    return [
        ("inverted index", result.inverted_index),
        ("term-document matrix", result.term_document_matrix),
    ]


def main(argv: Iterable[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Boolean search over an inverted index and a term-document matrix.")
    parser.add_argument(
        "--index",
        type=Path,
        default=DEFAULT_OUTPUT_DIR / INVERTED_INDEX_JSON,
        help="Saved inverted index (.json or custom text).",
    )
    parser.add_argument(
        "--matrix",
        type=Path,
        default=DEFAULT_OUTPUT_DIR / MATRIX_JSON,
        help="Saved term-document matrix (.json or custom text).",
    )
    parser.add_argument(
        "--texts",
        type=Path,
        default=None,
        help="Build both structures in memory from this directory instead of loading them.",
    )
    parser.add_argument(
        "--single-threaded",
        action="store_true",
        help="Build with a single worker (only with --texts).",
    )
    parser.add_argument("--verbose", action="store_true", help="Debug logging.")
    args = parser.parse_args(list(argv) if argv is not None else None)

    setup_logging(logging.DEBUG if args.verbose else logging.WARNING)

    try:
        if args.texts is not None:
            accessors = build_accessors(args.texts, args.single_threaded)
        else:
            accessors = load_accessors(args.index, args.matrix)
    except BuildCancelled:
        print("Build cancelled.")
        raise SystemExit(130)
    except (OSError, ValueError) as e:
        raise SystemExit(f"Could not load the index: {e}")

    run_search_loop(accessors)


if __name__ == "__main__":
    main()
