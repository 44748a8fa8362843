"""Boolean search service: runs parsed queries against a posting store."""

from .posting import IndexAccessor
from .query_ast import EvaluationServices, QueryNode, evaluate
from .query_parser import QueryParser


class BooleanSearchService:
    """
    Thin facade over the evaluator. The only state it keeps is the shared,
    immutable EvaluationServices bundle.
    """

    def __init__(self, services: EvaluationServices | None = None) -> None:
        self._services = services or EvaluationServices()

    def execute_query(
        self, query_ast_root: QueryNode, index_accessor: IndexAccessor
    ) -> set[str]:
        """Return the ids of the documents matching the query tree."""
        if query_ast_root is None:
            raise ValueError("query_ast_root is required")
        if index_accessor is None:
            raise ValueError("index_accessor is required")
        return evaluate(query_ast_root, index_accessor, self._services)

    def search(
        self,
        raw_query: str,
        index_accessor: IndexAccessor,
        parser: QueryParser | None = None,
    ) -> set[str]:
        """Parse raw_query and execute it. Parse errors propagate."""
        query = (parser or QueryParser()).parse(raw_query)
        return self.execute_query(query, index_accessor)
