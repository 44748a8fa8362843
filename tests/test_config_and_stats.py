import argparse

import pytest

from boolindex.config import AppConfig, ConfigurationError
from boolindex.posting import InvertedIndex, TermDocumentMatrix
from boolindex.stats import IndexStatistics


def test_config_defaults_validate(tmp_path):
    config = AppConfig(texts_dir=tmp_path)
    config.validate()
    assert config.min_file_size_kb == 150
    assert config.min_file_count == 10
    assert config.workers is None


@pytest.mark.parametrize(
    "overrides",
    [
        {"texts_dir": None},
        {"min_file_size_kb": -1},
        {"min_file_count": -5},
        {"workers": 0},
    ],
)
def test_invalid_config(tmp_path, overrides):
    config = AppConfig(**{"texts_dir": tmp_path, **overrides})
    with pytest.raises(ConfigurationError):
        config.validate()


def test_missing_texts_dir(tmp_path):
    with pytest.raises(ConfigurationError, match="not found"):
        AppConfig(texts_dir=tmp_path / "missing").validate()


def test_config_from_args(tmp_path):
    args = argparse.Namespace(
        texts=tmp_path,
        output=tmp_path / "out",
        min_size_kb=0,
        min_files=1,
        single_threaded=True,
        workers=2,
        recursive=True,
    )
    config = AppConfig.from_args(args)
    assert config.output_dir == tmp_path / "out"
    assert config.single_threaded and config.recursive
    assert config.workers == 2


def test_statistics(write_corpus):
    paths = write_corpus({"a.txt": "x" * 1024, "b.txt": "y"})
    index, matrix = InvertedIndex(), TermDocumentMatrix()
    for term, doc in [("cat", "a.txt"), ("cat", "a.txt"), ("dog", "b.txt")]:
        index.add(term, doc)
        matrix.add(term, doc)

    stats = IndexStatistics.collect(index, matrix, paths)
    assert stats.file_count == 2
    assert stats.collection_bytes == 1025
    assert stats.total_tokens == 3
    assert stats.index_vocabulary == 2
    assert stats.total_postings == 2
    assert stats.non_zero_entries == 2

    report = stats.format_report()
    assert "| Total tokens (inverted index)" in report
    assert "Non-zero matrix entries" in report


def test_statistics_without_matrix(tmp_path):
    stats = IndexStatistics.collect(InvertedIndex(), None, [tmp_path / "vanished.txt"])
    assert stats.collection_bytes == 0
    assert stats.matrix_vocabulary is None
    assert "matrix" not in stats.format_report()
