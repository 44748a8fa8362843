import logging

import pytest


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Drop handlers installed by the CLIs so they don't outlive capture."""
    yield
    logger = logging.getLogger("boolindex")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def write_corpus(tmp_path):
    """Write {file name: text} into a temp directory and return the paths."""

    def _write(files: dict[str, str | bytes]):
        paths = []
        for name, content in files.items():
            path = tmp_path / name
            if isinstance(content, bytes):
                path.write_bytes(content)
            else:
                path.write_text(content, encoding="utf-8")
            paths.append(path)
        return paths

    return _write


class RecordingAccessor:
    """IndexAccessor over a plain dict that records every term lookup."""

    def __init__(self, postings: dict[str, set[str]], universe: set[str] | None = None):
        self.postings = postings
        self.universe = universe if universe is not None else set().union(*postings.values())
        self.lookups: list[str] = []

    def documents_for_term(self, term):
        self.lookups.append(term)
        if term == "boom":
            raise AssertionError("right-hand side must not be evaluated")
        return set(self.postings.get(term, set()))

    def all_document_ids(self):
        return set(self.universe)


@pytest.fixture
def accessor():
    return RecordingAccessor(
        {
            "cat": {"d1.txt"},
            "dog": {"d1.txt", "d2.txt"},
            "bird": {"d2.txt", "d3.txt"},
        }
    )
