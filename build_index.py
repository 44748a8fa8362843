"""
Build the inverted index and the term-document matrix for a directory of
texts, print collection statistics and save both structures.

Usage:
    python build_index.py path/to/texts [--output output] [--search]

Output (in the output directory):
  - inverted_index.json / inverted_index_custom.txt
  - term_document_matrix.json / term_document_matrix_custom.txt
  - Statistics table printed to console

Ctrl+C during the build cancels it; nothing is saved in that case.
"""

import argparse
import logging
import sys
import time
from pathlib import Path

from boolindex.config import (
    DEFAULT_MIN_FILE_COUNT,
    DEFAULT_MIN_FILE_SIZE_KB,
    DEFAULT_OUTPUT_DIR,
    AppConfig,
    ConfigurationError,
)
from boolindex.index_builder import BuildCancelled, IndexBuilder, cancel_on_sigint, discover_files
from boolindex.log import setup_logging
from boolindex.search_cli import run_search_loop
from boolindex.serialization import save_structures
from boolindex.stats import IndexStatistics


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Build an inverted index and a term-document matrix")
    parser.add_argument("texts", type=Path, help="Directory with the documents to index")
    parser.add_argument(
        "--output",
        type=Path,
        default=DEFAULT_OUTPUT_DIR,
        help="Directory for the saved structures (default: output)",
    )
    parser.add_argument(
        "--min-size-kb",
        type=int,
        default=DEFAULT_MIN_FILE_SIZE_KB,
        help=f"Ignore files smaller than this (default: {DEFAULT_MIN_FILE_SIZE_KB})",
    )
    parser.add_argument(
        "--min-files",
        type=int,
        default=DEFAULT_MIN_FILE_COUNT,
        help=f"Warn when fewer files qualify (default: {DEFAULT_MIN_FILE_COUNT})",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Number of indexing threads (default: one per CPU)",
    )
    parser.add_argument(
        "--single-threaded",
        action="store_true",
        help="Index with one thread, in file order",
    )
    parser.add_argument("--recursive", action="store_true", help="Include subdirectories")
    parser.add_argument("--search", action="store_true", help="Start the search loop after building")
    parser.add_argument("--log-file", type=Path, default=None, help="Also write logs to this file")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    setup_logging(logging.INFO, args.log_file)

    config = AppConfig.from_args(args)
    try:
        config.validate()
    except ConfigurationError as e:
        print(f"Configuration error: {e}")
        return 1

    file_paths = discover_files(config.texts_dir, config.min_file_size_kb, config.recursive)
    if not file_paths:
        print(f"No files of at least {config.min_file_size_kb} KB found in {config.texts_dir}.")
        return 1
    if len(file_paths) < config.min_file_count:
        print(
            f"Warning: only {len(file_paths)} files qualify "
            f"(at least {config.min_file_count} expected)."
        )
    else:
        print(f"Found {len(file_paths)} files to index.")

    start = time.perf_counter()
    try:
        with cancel_on_sigint() as cancel_event:
            result = IndexBuilder().build(
                file_paths,
                cancel_event,
                config.workers,
                single_threaded=config.single_threaded,
            )
    except BuildCancelled:
        print("Build cancelled; nothing was saved.")
        return 130
    elapsed = time.perf_counter() - start

    report = result.report
    print(f"\nBuilt both structures in {elapsed:.2f}s")
    if report.failed:
        print(f"Warning: {report.files_failed} of {len(file_paths)} files could not be indexed:")
        for path, error in sorted(report.failed.items()):
            print(f"  - {path}: {error}")
    if result.inverted_index.vocabulary_size() == 0:
        print("Warning: the vocabulary is empty. Check the readers and the input files.")

    stats = IndexStatistics.collect(result.inverted_index, result.term_document_matrix, report.indexed)
    print("\n" + "=" * 50)
    print("INDEX STATISTICS")
    print("=" * 50)
    print()
    print(stats.format_report())
    print()

    for saved in save_structures(result.inverted_index, result.term_document_matrix, config.output_dir):
        print(f"Saved {saved.path} ({saved.size_bytes / 1024:.2f} KB, {saved.seconds * 1000:.0f} ms)")

    if args.search:
        print()
        run_search_loop([
            ("inverted index", result.inverted_index),
            ("term-document matrix", result.term_document_matrix),
        ])
    return 0


if __name__ == "__main__":
    sys.exit(main())
