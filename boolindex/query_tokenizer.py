"""
Query tokenizer: raw boolean query string -> flat list of QueryTokens.

Terms keep their raw text; normalization happens in the parser.
"""

import re
from dataclasses import dataclass
from enum import Enum


class QueryTokenType(Enum):
    TERM = "Term"
    AND = "And"
    OR = "Or"
    NOT = "Not"
    LPAREN = "LParen"
    RPAREN = "RParen"
    END_OF_QUERY = "EndOfQuery"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class QueryToken:
    type: QueryTokenType
    value: str | None = None  # raw text, for terms only

    def __str__(self) -> str:
        if self.value is not None:
            return f"{self.type}({self.value})"
        return str(self.type)


_OPERATORS = {
    "AND": QueryTokenType.AND,
    "OR": QueryTokenType.OR,
    "NOT": QueryTokenType.NOT,
}

# A parenthesis, or a maximal run of anything but whitespace and parentheses.
_TOKEN_RE = re.compile(r"[()]|[^\s()]+")


def tokenize_query(raw_query: str) -> list[QueryToken]:
    """
    Split a query into tokens, always ending with END_OF_QUERY.
    AND, OR and NOT are operators in any letter case.
    """
    tokens: list[QueryToken] = []
    for match in _TOKEN_RE.finditer(raw_query or ""):
        value = match.group()
        if value == "(":
            tokens.append(QueryToken(QueryTokenType.LPAREN))
        elif value == ")":
            tokens.append(QueryToken(QueryTokenType.RPAREN))
        elif value.upper() in _OPERATORS:
            tokens.append(QueryToken(_OPERATORS[value.upper()]))
        else:
            tokens.append(QueryToken(QueryTokenType.TERM, value))
    tokens.append(QueryToken(QueryTokenType.END_OF_QUERY))
    return tokens
