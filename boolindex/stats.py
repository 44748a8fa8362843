"""Collection and index statistics for the build report."""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from .posting import InvertedIndex, TermDocumentMatrix

logger = logging.getLogger(__name__)


@dataclass
class IndexStatistics:
    file_count: int
    collection_bytes: int
    total_tokens: int | None = None
    index_vocabulary: int | None = None
    index_documents: int | None = None
    total_postings: int | None = None
    matrix_vocabulary: int | None = None
    matrix_documents: int | None = None
    non_zero_entries: int | None = None

    @classmethod
    def collect(
        cls,
        inverted_index: InvertedIndex | None,
        matrix: TermDocumentMatrix | None,
        file_paths: Iterable[str | Path],
    ) -> "IndexStatistics":
        file_paths = list(file_paths)
        stats = cls(
            file_count=len(file_paths),
            collection_bytes=_collection_size(file_paths),
        )
        if inverted_index is not None:
            stats.total_tokens = inverted_index.total_token_count()
            stats.index_vocabulary = inverted_index.vocabulary_size()
            stats.index_documents = inverted_index.document_count()
            stats.total_postings = inverted_index.total_postings()
        if matrix is not None:
            stats.matrix_vocabulary = matrix.vocabulary_size()
            stats.matrix_documents = matrix.document_count()
            stats.non_zero_entries = matrix.non_zero_entries()
        return stats

    def format_report(self) -> str:
        rows = [
            ("Files processed", self.file_count),
            ("Collection size (MB)", f"{self.collection_bytes / (1024 * 1024):.2f}"),
        ]
        if self.index_vocabulary is not None:
            rows += [
                ("Total tokens (inverted index)", self.total_tokens),
                ("Vocabulary size (inverted index)", self.index_vocabulary),
                ("Documents (inverted index)", self.index_documents),
                ("Postings (term -> document)", self.total_postings),
            ]
        if self.matrix_vocabulary is not None:
            rows += [
                ("Vocabulary size (matrix)", self.matrix_vocabulary),
                ("Documents (matrix)", self.matrix_documents),
                ("Non-zero matrix entries", self.non_zero_entries),
            ]
        width = max(len(name) for name, _ in rows)
        lines = [f"| {'Metric':<{width}} | Value |", f"|{'-' * (width + 2)}|-------|"]
        lines += [f"| {name:<{width}} | {value} |" for name, value in rows]
        return "\n".join(lines)


def _collection_size(file_paths: list[str | Path]) -> int:
    total = 0
    for path in file_paths:
        try:
            total += Path(path).stat().st_size
        except OSError:
            logger.warning("File %s vanished before its size was counted", path)
    return total
