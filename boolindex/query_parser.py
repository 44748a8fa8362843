"""
Recursive-descent parser for boolean queries.

Grammar (lowest to highest precedence):
    Query   ::= OrExpr EndOfQuery
    OrExpr  ::= AndExpr ( OR AndExpr )*
    AndExpr ::= NotExpr ( AND NotExpr )*
    NotExpr ::= NOT NotExpr | Factor
    Factor  ::= Term | '(' OrExpr ')'

AND and OR fold to the left; NOT nests to the right. Term tokens are
normalized here, and a term that normalizes to nothing is an error: at query
time the user can fix it.
"""

from typing import Callable

from .query_ast import AndNode, NotNode, OrNode, QueryNode, TermNode
from .query_tokenizer import QueryToken, QueryTokenType, tokenize_query
from .text_processing import normalize

LOOKAHEAD_TOKENS = 3


class QueryParseError(Exception):
    """Base class for malformed queries."""


class EmptyQueryError(QueryParseError):
    def __init__(self) -> None:
        super().__init__("Query cannot be empty.")


class InvalidTermError(QueryParseError):
    def __init__(self, raw_value: str) -> None:
        self.raw_value = raw_value
        super().__init__(f"Invalid term: '{raw_value}' normalizes to an empty string.")


class QueryNestingError(QueryParseError):
    """Parentheses nested deeper than the parser can follow."""

    def __init__(self) -> None:
        super().__init__("Query is nested too deeply.")


class QuerySyntaxError(QueryParseError):
    """
    A token did not fit the grammar.
    - expected: token types that would have been accepted
    - found: the token actually there
    - lookahead: the next few tokens, for context
    """

    def __init__(
        self,
        expected: tuple[QueryTokenType, ...],
        found: QueryToken,
        lookahead: str,
    ) -> None:
        self.expected = expected
        self.found = found
        self.lookahead = lookahead
        wanted = " or ".join(str(t) for t in expected)
        got = str(found.type)
        if found.value is not None:
            got += f" ('{found.value}')"
        super().__init__(
            f"Syntax error: expected {wanted} but found {got} near '{lookahead}'."
        )


class _TokenCursor:
    """Position in a token list; never moves past END_OF_QUERY."""

    def __init__(self, tokens: list[QueryToken]) -> None:
        self.tokens = tokens
        self.index = 0

    @property
    def current(self) -> QueryToken:
        return self.tokens[self.index]

    def advance(self) -> QueryToken:
        token = self.current
        if self.index < len(self.tokens) - 1:
            self.index += 1
        return token

    def lookahead(self, count: int = LOOKAHEAD_TOKENS) -> str:
        upcoming = self.tokens[self.index:self.index + count]
        return " ".join(t.value if t.value is not None else str(t.type) for t in upcoming)

    def error(self, *expected: QueryTokenType) -> QuerySyntaxError:
        return QuerySyntaxError(expected, self.current, self.lookahead())

    def expect(self, expected: QueryTokenType) -> QueryToken:
        if self.current.type is not expected:
            raise self.error(expected)
        return self.advance()


class QueryParser:
    """
    Parses query strings into QueryNode trees. Holds no per-query state, so
    one instance can be shared between threads.
    """

    def __init__(self, normalizer: Callable[[str], str] = normalize) -> None:
        self.normalizer = normalizer

    def parse(self, raw_query: str) -> QueryNode:
        cursor = _TokenCursor(tokenize_query(raw_query))
        if cursor.current.type is QueryTokenType.END_OF_QUERY:
            raise EmptyQueryError()

        try:
            node = self._parse_or(cursor)
        except RecursionError:
            raise QueryNestingError() from None
        cursor.expect(QueryTokenType.END_OF_QUERY)
        return node

    def _parse_or(self, cursor: _TokenCursor) -> QueryNode:
        node = self._parse_and(cursor)
        while cursor.current.type is QueryTokenType.OR:
            cursor.advance()
            node = OrNode(node, self._parse_and(cursor))
        return node

    def _parse_and(self, cursor: _TokenCursor) -> QueryNode:
        node = self._parse_not(cursor)
        while cursor.current.type is QueryTokenType.AND:
            cursor.advance()
            node = AndNode(node, self._parse_not(cursor))
        return node

    def _parse_not(self, cursor: _TokenCursor) -> QueryNode:
        depth = 0
        while cursor.current.type is QueryTokenType.NOT:
            cursor.advance()
            depth += 1
        node = self._parse_factor(cursor)
        for _ in range(depth):
            node = NotNode(node)
        return node

    def _parse_factor(self, cursor: _TokenCursor) -> QueryNode:
        token = cursor.current
        if token.type is QueryTokenType.TERM:
            cursor.advance()
            # Raw text is still available here (e.g. for wildcard detection).
            term = self.normalizer(token.value)
            if not term or term.isspace():
                raise InvalidTermError(token.value)
            return TermNode(term)

        if token.type is QueryTokenType.LPAREN:
            cursor.advance()
            node = self._parse_or(cursor)
            cursor.expect(QueryTokenType.RPAREN)
            return node

        raise cursor.error(QueryTokenType.TERM, QueryTokenType.LPAREN)
