"""Boolean search over an inverted index and a term-document matrix."""

from .posting import IndexAccessor, InvertedIndex, Posting, TermDocumentMatrix
from .index_builder import BuildCancelled, BuildReport, BuildResult, IndexBuilder, discover_files
from .query_ast import AndNode, EvaluationServices, NotNode, OrNode, QueryNode, TermNode, evaluate
from .query_parser import (
    EmptyQueryError,
    InvalidTermError,
    QueryNestingError,
    QueryParseError,
    QueryParser,
    QuerySyntaxError,
)
from .query_tokenizer import QueryToken, QueryTokenType, tokenize_query
from .search import BooleanSearchService
from .text_processing import normalize
