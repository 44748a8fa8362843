"""
Posting stores: the inverted index and the term-document incidence matrix.

Both are filled concurrently by the index builder and then read, without
further mutation, by the query evaluator through the IndexAccessor protocol:
    documents_for_term(term) -> set of document ids (empty if unknown)
    all_document_ids()      -> every document the store has seen

Terms and document ids are compared case-insensitively. The first spelling
of a document id seen by a store is the one it reports back.
"""

import threading
from dataclasses import dataclass
from typing import Iterator, Protocol

# Number of lock stripes guarding per-term updates.
LOCK_STRIPES = 64


class IndexAccessor(Protocol):
    """Read-side capability shared by both posting stores."""

    def documents_for_term(self, term: str) -> set[str]:
        ...

    def all_document_ids(self) -> set[str]:
        ...


@dataclass(frozen=True)
class Posting:
    """
    A term's occurrence in a document.
    - doc_id: document identifier (file base name)
    - tf: term frequency in that document
    """

    doc_id: str
    tf: int


class _StripedLocks:
    """Fixed pool of locks; a key always maps to the same lock."""

    def __init__(self, stripes: int = LOCK_STRIPES) -> None:
        self._locks = [threading.Lock() for _ in range(stripes)]

    def for_key(self, key: str) -> threading.Lock:
        return self._locks[hash(key) % len(self._locks)]


class _DocumentRegistry:
    """The universe of document ids one store has seen."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._ids: dict[str, str] = {}

    def register(self, doc_id: str) -> str:
        """Record a document id and return its canonical spelling."""
        key = doc_id.casefold()
        with self._lock:
            return self._ids.setdefault(key, doc_id)

    def lookup(self, doc_id: str) -> str | None:
        with self._lock:
            return self._ids.get(doc_id.casefold())

    def snapshot(self) -> set[str]:
        with self._lock:
            return set(self._ids.values())

    def __len__(self) -> int:
        with self._lock:
            return len(self._ids)


class InvertedIndex:
    """
    Inverted index: term -> (document -> frequency).

    add() is safe under any number of concurrent callers. Updates to one term
    are serialized by that term's lock stripe, so concurrent increments of the
    same (term, document) pair are never lost.
    """

    def __init__(self) -> None:
        self._index: dict[str, dict[str, int]] = {}
        self._locks = _StripedLocks()
        self._documents = _DocumentRegistry()

    def add(self, term: str, doc_id: str, count: int = 1) -> None:
        """Increment the frequency of term in doc_id by count."""
        if count < 1:
            raise ValueError(f"count must be >= 1, got {count}")
        # The document joins the universe before its posting becomes visible.
        doc_id = self._documents.register(doc_id)
        key = term.casefold()
        with self._locks.for_key(key):
            postings = self._index.get(key)
            if postings is None:
                postings = self._index[key] = {}
            postings[doc_id] = postings.get(doc_id, 0) + count

    def documents_for_term(self, term: str) -> set[str]:
        key = term.casefold()
        with self._locks.for_key(key):
            postings = self._index.get(key)
            return set(postings) if postings else set()

    def all_document_ids(self) -> set[str]:
        return self._documents.snapshot()

    def frequency(self, term: str, doc_id: str) -> int:
        """Return how often term occurs in doc_id (0 if it does not)."""
        canonical = self._documents.lookup(doc_id)
        if canonical is None:
            return 0
        key = term.casefold()
        with self._locks.for_key(key):
            return self._index.get(key, {}).get(canonical, 0)

    def get_postings(self, term: str) -> list[Posting]:
        """Return the postings for a term sorted by document id, or []."""
        key = term.casefold()
        with self._locks.for_key(key):
            items = list(self._index.get(key, {}).items())
        return [Posting(doc_id=d, tf=tf) for d, tf in sorted(items)]

    def terms(self) -> Iterator[str]:
        """Iterate over all terms in the index."""
        return iter(list(self._index))

    def vocabulary_size(self) -> int:
        return len(self._index)

    def document_count(self) -> int:
        return len(self._documents)

    def total_token_count(self) -> int:
        """Sum of all frequencies: the number of tokens indexed."""
        return sum(sum(postings.values()) for postings in list(self._index.values()))

    def total_postings(self) -> int:
        """Number of distinct (term, document) pairs."""
        return sum(len(postings) for postings in list(self._index.values()))

    def __len__(self) -> int:
        return len(self._index)

    def __contains__(self, term: str) -> bool:
        return term.casefold() in self._index

    def to_dict(self) -> dict[str, dict[str, int]]:
        """Serialize to a JSON-serializable dict, sorted by term and document."""
        return {
            term: {p.doc_id: p.tf for p in self.get_postings(term)}
            for term in sorted(self.terms())
        }


class TermDocumentMatrix:
    """
    Term-document incidence matrix: term -> set of documents.

    Presence only; adding the same pair twice has no further effect.
    """

    def __init__(self) -> None:
        self._matrix: dict[str, set[str]] = {}
        self._locks = _StripedLocks()
        self._documents = _DocumentRegistry()

    def add(self, term: str, doc_id: str) -> None:
        """Mark term as present in doc_id. Rejects blank terms and ids."""
        if term is None or not term.strip():
            raise ValueError("term must be a non-empty string")
        if doc_id is None or not doc_id.strip():
            raise ValueError("doc_id must be a non-empty string")
        doc_id = self._documents.register(doc_id)
        key = term.casefold()
        with self._locks.for_key(key):
            documents = self._matrix.get(key)
            if documents is None:
                documents = self._matrix[key] = set()
            documents.add(doc_id)

    def documents_for_term(self, term: str) -> set[str]:
        key = term.casefold()
        with self._locks.for_key(key):
            return set(self._matrix.get(key, ()))

    def all_document_ids(self) -> set[str]:
        return self._documents.snapshot()

    def terms(self) -> Iterator[str]:
        return iter(list(self._matrix))

    def vocabulary_size(self) -> int:
        return len(self._matrix)

    def document_count(self) -> int:
        return len(self._documents)

    def non_zero_entries(self) -> int:
        """Number of (term, document) cells that are set."""
        return sum(len(documents) for documents in list(self._matrix.values()))

    def __len__(self) -> int:
        return len(self._matrix)

    def __contains__(self, term: str) -> bool:
        return term.casefold() in self._matrix

    def to_dict(self) -> dict[str, list[str]]:
        return {
            term: sorted(self.documents_for_term(term))
            for term in sorted(self.terms())
        }
