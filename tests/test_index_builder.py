import logging
import threading

import pytest

from boolindex.index_builder import (
    BuildCancelled,
    IndexBuilder,
    discover_files,
    document_id_for,
    resolve_parallelism,
)
from boolindex.readers import ReaderFactory, TextReader
from boolindex.search import BooleanSearchService


class ExplodingReader(TextReader):
    extensions = (".bad",)

    def read_words(self, stream):
        yield "partial"
        raise ValueError("corrupt document")


class CancellingReader(TextReader):
    """Sets the cancel event after a few words."""

    extensions = (".txt",)

    def __init__(self, event, after=3):
        self.event = event
        self.after = after

    def read_words(self, stream):
        for i in range(1000):
            if i == self.after:
                self.event.set()
            yield f"word{chr(ord('a') + i % 26)}"


@pytest.fixture
def corpus(write_corpus):
    return write_corpus({"d1.txt": "cat dog", "d2.txt": "dog bird"})


@pytest.mark.parametrize("single_threaded", [True, False])
def test_build_and_query_small_corpus(corpus, single_threaded):
    result = IndexBuilder().build(corpus, degree_of_parallelism=4, single_threaded=single_threaded)
    service = BooleanSearchService()

    for store in (result.inverted_index, result.term_document_matrix):
        assert service.search("dog", store) == {"d1.txt", "d2.txt"}
        assert service.search("cat AND dog", store) == {"d1.txt"}
        assert service.search("NOT dog", store) == set()
        assert service.search("cat OR bird", store) == {"d1.txt", "d2.txt"}

    assert result.report.files_indexed == 2
    assert result.report.files_failed == 0


def test_tokens_are_normalized_and_empty_ones_dropped(write_corpus):
    paths = write_corpus({"doc.txt": "Cat, CAT! cat's 1234 --- Dog"})
    result = IndexBuilder().build(paths, single_threaded=True)
    index = result.inverted_index
    # "cat's" splits into "cat" and "s"; digits and dashes yield no words
    assert index.frequency("cat", "doc.txt") == 3
    assert index.frequency("dog", "doc.txt") == 1
    assert "" not in index
    assert sorted(index.terms()) == ["cat", "dog", "s"]


def test_legacy_encoded_text_is_indexed(write_corpus):
    paths = write_corpus({"kobzar.txt": "Реве та стогне Дніпр широкий".encode("cp1251")})
    result = IndexBuilder().build(paths, single_threaded=True)
    assert result.report.files_failed == 0
    assert result.inverted_index.documents_for_term("дніпр") == {"kobzar.txt"}
    assert result.inverted_index.vocabulary_size() == 5


def test_unsupported_files_are_skipped(write_corpus):
    paths = write_corpus({"d1.txt": "cat", "image.png": b"\x89PNG\r\n"})
    result = IndexBuilder().build(paths, single_threaded=True)
    assert result.report.skipped == [str(paths[1])]
    assert result.report.files_failed == 0
    assert result.inverted_index.all_document_ids() == {"d1.txt"}


def test_failing_file_does_not_abort_build(write_corpus, caplog):
    paths = write_corpus({"broken.bad": "x", "d1.txt": "cat dog", "d2.txt": "dog"})
    factory = ReaderFactory(ReaderFactory().readers + [ExplodingReader()])

    with caplog.at_level(logging.WARNING, logger="boolindex.index_builder"):
        result = IndexBuilder(reader_factory=factory).build(paths, degree_of_parallelism=3)

    assert result.report.files_failed == 1
    assert "corrupt document" in result.report.failed[str(paths[0])]
    assert result.inverted_index.documents_for_term("dog") == {"d1.txt", "d2.txt"}
    assert "broken.bad" in caplog.text


def test_missing_file_is_recorded_as_failure(tmp_path, write_corpus):
    paths = write_corpus({"d1.txt": "cat"}) + [tmp_path / "gone.txt"]
    result = IndexBuilder().build(paths, single_threaded=True)
    assert list(result.report.failed) == [str(tmp_path / "gone.txt")]
    assert result.inverted_index.documents_for_term("cat") == {"d1.txt"}


def test_single_threaded_and_parallel_builds_agree(write_corpus):
    words = ["alpha", "beta", "gamma", "delta", "epsilon"]
    files = {
        f"doc{i}.txt": " ".join(words[(i + j) % len(words)] for j in range(200 + i))
        for i in range(20)
    }
    paths = write_corpus(files)

    serial = IndexBuilder().build(paths, single_threaded=True)
    parallel = IndexBuilder().build(paths, degree_of_parallelism=8)

    assert serial.inverted_index.to_dict() == parallel.inverted_index.to_dict()
    assert serial.term_document_matrix.to_dict() == parallel.term_document_matrix.to_dict()
    assert serial.inverted_index.total_token_count() == sum(200 + i for i in range(20))


def test_same_document_name_in_many_files_accumulates(tmp_path):
    paths = []
    for i in range(10):
        folder = tmp_path / f"part{i}"
        folder.mkdir()
        path = folder / "same.txt"
        path.write_text("cat " * 100, encoding="utf-8")
        paths.append(path)

    result = IndexBuilder().build(paths, degree_of_parallelism=10)
    assert result.inverted_index.frequency("cat", "same.txt") == 1000
    assert result.term_document_matrix.documents_for_term("cat") == {"same.txt"}


def test_cancel_before_start_raises(corpus):
    event = threading.Event()
    event.set()
    with pytest.raises(BuildCancelled):
        IndexBuilder().build(corpus, event, single_threaded=True)


@pytest.mark.parametrize("workers", [1, 4])
def test_cancel_mid_build_never_returns_result(write_corpus, workers):
    paths = write_corpus({f"doc{i}.txt": "ignored" for i in range(50)})
    event = threading.Event()
    builder = IndexBuilder(reader_factory=ReaderFactory([CancellingReader(event)]))
    with pytest.raises(BuildCancelled):
        builder.build(paths, event, degree_of_parallelism=workers)


def test_build_inverted_index_only(corpus):
    result = IndexBuilder().build_inverted_index(corpus, single_threaded=True)
    assert result.term_document_matrix is None
    assert result.inverted_index.documents_for_term("dog") == {"d1.txt", "d2.txt"}


def test_custom_normalizer_is_used(corpus):
    builder = IndexBuilder(normalizer=lambda w: "" if w == "dog" else w.upper())
    result = builder.build(corpus, single_threaded=True)
    assert "dog" not in result.inverted_index
    assert result.inverted_index.documents_for_term("CAT") == {"d1.txt"}


def test_resolve_parallelism():
    assert resolve_parallelism(8, single_threaded=True) == 1
    assert resolve_parallelism(3) == 3
    assert resolve_parallelism() >= 1
    with pytest.raises(ValueError):
        resolve_parallelism(0)


def test_document_id_is_base_name(tmp_path):
    assert document_id_for(tmp_path / "sub" / "Book.fb2") == "Book.fb2"


def test_discover_files_filters_by_size(tmp_path):
    (tmp_path / "small.txt").write_text("x", encoding="utf-8")
    (tmp_path / "big.txt").write_text("x" * 3000, encoding="utf-8")
    nested = tmp_path / "nested"
    nested.mkdir()
    (nested / "deep.txt").write_text("x" * 3000, encoding="utf-8")

    assert discover_files(tmp_path) == sorted(
        [tmp_path / "big.txt", tmp_path / "small.txt"], key=str
    )
    assert discover_files(tmp_path, min_size_kb=2) == [tmp_path / "big.txt"]
    assert discover_files(tmp_path, min_size_kb=2, recursive=True) == [
        tmp_path / "big.txt",
        nested / "deep.txt",
    ]
