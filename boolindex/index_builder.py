"""
Index builder: ingests a document collection into the posting stores.

Files are spread over a bounded pool of worker threads, one file per task.
For each file the builder resolves a reader by extension, streams its raw
words, normalizes them and adds every surviving term to each requested store.
The stores do their own locking, so the builder needs none.

Failure policy:
- files with no matching reader are skipped (expected in mixed directories)
- a file that fails to open or parse is logged and recorded in the report;
  the rest of the collection is still indexed
- cancellation (a threading.Event) is checked per file and per token, and
  aborts the whole build with BuildCancelled. No partial result is returned.
"""

import logging
import os
import signal
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterable, Iterator, NamedTuple

from .posting import InvertedIndex, TermDocumentMatrix
from .readers import ReaderFactory
from .text_processing import normalize

logger = logging.getLogger(__name__)

_INDEXED = "indexed"
_SKIPPED = "skipped"
_FAILED = "failed"


class BuildCancelled(Exception):
    """The build was cancelled before it completed."""


@dataclass
class BuildReport:
    """Per-file outcome of a build."""

    indexed: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)

    @property
    def files_indexed(self) -> int:
        return len(self.indexed)

    @property
    def files_failed(self) -> int:
        return len(self.failed)


class BuildResult(NamedTuple):
    inverted_index: InvertedIndex | None
    term_document_matrix: TermDocumentMatrix | None
    report: BuildReport


def resolve_parallelism(
    degree_of_parallelism: int | None = None,
    single_threaded: bool = False,
) -> int:
    """
    Number of workers for a build: 1 when forced single-threaded, otherwise
    the requested degree or the number of available CPUs.
    """
    if single_threaded:
        return 1
    if degree_of_parallelism is None:
        return os.cpu_count() or 1
    if degree_of_parallelism < 1:
        raise ValueError(
            f"degree_of_parallelism must be >= 1, got {degree_of_parallelism}"
        )
    return degree_of_parallelism


def document_id_for(file_path: str | Path) -> str:
    """Document id of a file: its base name."""
    return Path(file_path).name


def discover_files(
    directory: str | Path,
    min_size_kb: int = 0,
    recursive: bool = False,
) -> list[Path]:
    """
    List the files in a directory (sorted) that are at least min_size_kb.
    """
    directory = Path(directory)
    candidates = directory.rglob("*") if recursive else directory.iterdir()
    files = []
    for path in candidates:
        try:
            if path.is_file() and path.stat().st_size >= min_size_kb * 1024:
                files.append(path)
        except OSError as e:
            logger.warning("Could not stat %s: %s", path, e)
    return sorted(files, key=lambda p: str(p))


@contextmanager
def cancel_on_sigint() -> Iterator[threading.Event]:
    """
    Yield an Event that Ctrl+C sets instead of raising KeyboardInterrupt.
    The previous SIGINT handler is restored on exit. Main thread only.
    """
    cancel_event = threading.Event()

    def _sigint_handler(sig, frame):
        print("\nCtrl+C received, cancelling the build ...")
        cancel_event.set()

    previous_handler = signal.signal(signal.SIGINT, _sigint_handler)
    try:
        yield cancel_event
    finally:
        signal.signal(signal.SIGINT, previous_handler)


def _raise_if_cancelled(cancel_event: threading.Event) -> None:
    if cancel_event.is_set():
        raise BuildCancelled("Index build was cancelled")


class IndexBuilder:
    """Builds an InvertedIndex and/or a TermDocumentMatrix from files."""

    def __init__(
        self,
        reader_factory: ReaderFactory | None = None,
        normalizer: Callable[[str], str] = normalize,
    ) -> None:
        self.reader_factory = reader_factory or ReaderFactory()
        self.normalizer = normalizer

    def build(
        self,
        file_paths: Iterable[str | Path],
        cancel_event: threading.Event | None = None,
        degree_of_parallelism: int | None = None,
        *,
        single_threaded: bool = False,
    ) -> BuildResult:
        """
        Build both structures from file_paths.
        Raises BuildCancelled if cancel_event is set before the build finishes.
        """
        inverted_index = InvertedIndex()
        matrix = TermDocumentMatrix()
        report = self._run(
            file_paths,
            (inverted_index, matrix),
            cancel_event,
            resolve_parallelism(degree_of_parallelism, single_threaded),
        )
        return BuildResult(inverted_index, matrix, report)

    def build_inverted_index(
        self,
        file_paths: Iterable[str | Path],
        cancel_event: threading.Event | None = None,
        degree_of_parallelism: int | None = None,
        *,
        single_threaded: bool = False,
    ) -> BuildResult:
        """Build only the inverted index; the matrix slot of the result is None."""
        inverted_index = InvertedIndex()
        report = self._run(
            file_paths,
            (inverted_index,),
            cancel_event,
            resolve_parallelism(degree_of_parallelism, single_threaded),
        )
        return BuildResult(inverted_index, None, report)

    def _run(self, file_paths, stores, cancel_event, workers) -> BuildReport:
        if cancel_event is None:
            cancel_event = threading.Event()
        paths = list(file_paths)
        report = BuildReport()
        logger.info("Indexing %d files with %d worker(s)", len(paths), workers)

        if workers == 1:
            # Deterministic mode: input order, calling thread.
            for path in paths:
                outcome = self._index_file(path, stores, cancel_event)
                self._record(report, path, outcome)
        else:
            with ThreadPoolExecutor(
                max_workers=workers, thread_name_prefix="indexer"
            ) as pool:
                futures = {
                    pool.submit(self._index_file, path, stores, cancel_event): path
                    for path in paths
                }
                try:
                    for future in as_completed(futures):
                        self._record(report, futures[future], future.result())
                except BuildCancelled:
                    pool.shutdown(wait=True, cancel_futures=True)
                    raise

        _raise_if_cancelled(cancel_event)
        logger.info(
            "Indexed %d files (%d skipped, %d failed)",
            report.files_indexed,
            len(report.skipped),
            report.files_failed,
        )
        return report

    def _index_file(self, path, stores, cancel_event) -> tuple[str, str | None]:
        _raise_if_cancelled(cancel_event)

        reader = self.reader_factory.get_reader(path)
        if reader is None:
            logger.debug("No reader for %s, skipping", path)
            return _SKIPPED, None

        document_id = document_id_for(path)
        try:
            with open(path, "rb") as stream:
                for raw_word in reader.read_words(stream):
                    _raise_if_cancelled(cancel_event)
                    term = self.normalizer(raw_word)
                    if not term or term.isspace():
                        continue
                    for store in stores:
                        store.add(term, document_id)
        except BuildCancelled:
            raise
        except Exception as e:
            logger.warning("Error processing file %s: %s", path, e)
            return _FAILED, str(e) or type(e).__name__
        return _INDEXED, None

    @staticmethod
    def _record(report: BuildReport, path, outcome: tuple[str, str | None]) -> None:
        status, error = outcome
        if status == _INDEXED:
            report.indexed.append(str(path))
        elif status == _SKIPPED:
            report.skipped.append(str(path))
        else:
            report.failed[str(path)] = error
