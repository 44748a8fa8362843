"""
Saving and loading the posting stores.

Two formats per store:

Custom text (line oriented, sorted by term then document):
    inverted index          term-document matrix
        [term]                  [term]
        doc.txt=3               doc.txt
        other.txt=1             other.txt

JSON:
    inverted index:  {"term": {"doc.txt": 3, ...}, ...}
    matrix:          {"term": ["doc.txt", ...], ...}

Loading rebuilds the store through its add() method, so every posting and
every document id survives a round trip.
"""

import json
import logging
import re
import time
from dataclasses import dataclass
from pathlib import Path

from .posting import InvertedIndex, TermDocumentMatrix

logger = logging.getLogger(__name__)

_TERM_LINE = re.compile(r"^\[(.*)\]$")
_DOC_FREQ_LINE = re.compile(r"^(.*)=(\d+)$")

INVERTED_INDEX_JSON = "inverted_index.json"
INVERTED_INDEX_TEXT = "inverted_index_custom.txt"
MATRIX_JSON = "term_document_matrix.json"
MATRIX_TEXT = "term_document_matrix_custom.txt"


def _require_file(path: Path) -> None:
    if not path.exists():
        raise FileNotFoundError(f"Index file not found: {path}")


def _read_sections(path: Path):
    """Yield (term, line, line_no) for each entry of a [term]-sectioned file."""
    current_term = None
    with open(path, "r", encoding="utf-8") as f:
        for line_no, line in enumerate(f, start=1):
            line = line.rstrip("\r\n")
            if not line.strip():
                continue
            match = _TERM_LINE.match(line)
            if match:
                current_term = match.group(1)
                continue
            if current_term is None:
                logger.warning(
                    "%s:%d: document entry before any term, skipped", path, line_no
                )
                continue
            yield current_term, line, line_no


class TextIndexSerializer:
    def serialize(self, index: InvertedIndex, path: str | Path) -> None:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            for term, postings in index.to_dict().items():
                f.write(f"[{term}]\n")
                for doc_id, tf in postings.items():
                    f.write(f"{doc_id}={tf}\n")

    def deserialize(self, path: str | Path) -> InvertedIndex:
        path = Path(path)
        _require_file(path)
        index = InvertedIndex()
        for term, line, line_no in _read_sections(path):
            match = _DOC_FREQ_LINE.match(line)
            if not match or int(match.group(2)) < 1:
                logger.warning(
                    "%s:%d: malformed posting for term '%s', skipped", path, line_no, term
                )
                continue
            index.add(term, match.group(1), count=int(match.group(2)))
        return index


class JsonIndexSerializer:
    def serialize(self, index: InvertedIndex, path: str | Path) -> None:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(index.to_dict(), f, indent=2, ensure_ascii=False)

    def deserialize(self, path: str | Path) -> InvertedIndex:
        path = Path(path)
        _require_file(path)
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        index = InvertedIndex()
        for term, postings in data.items():
            for doc_id, tf in postings.items():
                if not isinstance(tf, int) or tf < 1:
                    logger.warning(
                        "%s: bad frequency %r for '%s' in '%s', skipped",
                        path, tf, term, doc_id,
                    )
                    continue
                index.add(term, doc_id, count=tf)
        return index


class TextMatrixSerializer:
    def serialize(self, matrix: TermDocumentMatrix, path: str | Path) -> None:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            for term, doc_ids in matrix.to_dict().items():
                f.write(f"[{term}]\n")
                for doc_id in doc_ids:
                    f.write(f"{doc_id}\n")

    def deserialize(self, path: str | Path) -> TermDocumentMatrix:
        path = Path(path)
        _require_file(path)
        matrix = TermDocumentMatrix()
        for term, line, _line_no in _read_sections(path):
            matrix.add(term, line.strip())
        return matrix


class JsonMatrixSerializer:
    def serialize(self, matrix: TermDocumentMatrix, path: str | Path) -> None:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(matrix.to_dict(), f, indent=2, ensure_ascii=False)

    def deserialize(self, path: str | Path) -> TermDocumentMatrix:
        path = Path(path)
        _require_file(path)
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        matrix = TermDocumentMatrix()
        for term, doc_ids in data.items():
            for doc_id in doc_ids:
                matrix.add(term, doc_id)
        return matrix


def serializer_for(path: str | Path, matrix: bool = False):
    """Pick a serializer by file suffix: .json is JSON, anything else text."""
    is_json = Path(path).suffix.lower() == ".json"
    if matrix:
        return JsonMatrixSerializer() if is_json else TextMatrixSerializer()
    return JsonIndexSerializer() if is_json else TextIndexSerializer()


@dataclass
class SavedFile:
    path: Path
    seconds: float
    size_bytes: int


def save_structures(
    inverted_index: InvertedIndex | None,
    matrix: TermDocumentMatrix | None,
    output_dir: str | Path,
) -> list[SavedFile]:
    """
    Write each given structure in both formats into output_dir.
    A writer that fails is logged and the others still run.
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    jobs = []
    if inverted_index is not None:
        jobs += [
            (JsonIndexSerializer(), inverted_index, INVERTED_INDEX_JSON),
            (TextIndexSerializer(), inverted_index, INVERTED_INDEX_TEXT),
        ]
    if matrix is not None:
        jobs += [
            (JsonMatrixSerializer(), matrix, MATRIX_JSON),
            (TextMatrixSerializer(), matrix, MATRIX_TEXT),
        ]

    saved: list[SavedFile] = []
    for serializer, store, filename in jobs:
        path = output_dir / filename
        start = time.perf_counter()
        try:
            serializer.serialize(store, path)
        except OSError as e:
            logger.error("Could not save %s: %s", path, e)
            continue
        elapsed = time.perf_counter() - start
        saved.append(SavedFile(path, elapsed, path.stat().st_size))
        logger.info("Saved %s in %.3fs", path, elapsed)
    return saved
