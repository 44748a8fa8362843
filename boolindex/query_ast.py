"""
Boolean query AST and its evaluator.

A query is a tree built from four immutable node kinds:
    TermNode(term)          documents containing the (normalized) term
    AndNode(left, right)    intersection; right is skipped when left is empty
    OrNode(left, right)     union
    NotNode(operand)        every known document minus the operand's result

evaluate() walks the tree against any IndexAccessor. It never mutates the
accessor or the sets it returns; each node yields a new set.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from .posting import IndexAccessor


@dataclass(frozen=True)
class EvaluationServices:
    """
    Extra services available during evaluation. Empty for now; reserved for
    index-specific helpers such as prefix or suffix lookups.
    """


class _Evaluable:
    def evaluate(
        self, accessor: IndexAccessor, services: EvaluationServices | None = None
    ) -> set[str]:
        return evaluate(self, accessor, services)


@dataclass(frozen=True)
class TermNode(_Evaluable):
    term: str

    def __post_init__(self) -> None:
        if self.term is None:
            raise ValueError("term is required")

    def __str__(self) -> str:
        return f"TERM({self.term})"


@dataclass(frozen=True)
class AndNode(_Evaluable):
    left: QueryNode
    right: QueryNode

    def __post_init__(self) -> None:
        if self.left is None or self.right is None:
            raise ValueError("AndNode needs both operands")

    def __str__(self) -> str:
        return f"({self.left} AND {self.right})"


@dataclass(frozen=True)
class OrNode(_Evaluable):
    left: QueryNode
    right: QueryNode

    def __post_init__(self) -> None:
        if self.left is None or self.right is None:
            raise ValueError("OrNode needs both operands")

    def __str__(self) -> str:
        return f"({self.left} OR {self.right})"


@dataclass(frozen=True)
class NotNode(_Evaluable):
    operand: QueryNode

    def __post_init__(self) -> None:
        if self.operand is None:
            raise ValueError("NotNode needs an operand")

    def __str__(self) -> str:
        depth, inner = 0, self
        while isinstance(inner, NotNode):
            depth, inner = depth + 1, inner.operand
        return "NOT(" * depth + str(inner) + ")" * depth


QueryNode = Union[TermNode, AndNode, OrNode, NotNode]


def evaluate(
    node: QueryNode,
    accessor: IndexAccessor,
    services: EvaluationServices | None = None,
) -> set[str]:
    """
    Return the set of document ids matching node.

    The tree is walked with an explicit stack, so nesting depth is not
    bounded by the interpreter's recursion limit. Each stack entry is a node
    and the step to resume it at; operand results wait on `results`.
    """
    results: list[set[str]] = []
    pending: list[tuple[QueryNode, int]] = [(node, 0)]
    while pending:
        current, step = pending.pop()
        match current:
            case TermNode(term=term):
                results.append(set(accessor.documents_for_term(term)))
            case AndNode(left=left, right=right):
                if step == 0:
                    pending += [(current, 1), (left, 0)]
                elif step == 1:
                    # Empty left side: the right side is never looked up.
                    if results[-1]:
                        pending += [(current, 2), (right, 0)]
                else:
                    right_docs = results.pop()
                    results[-1] &= right_docs
            case OrNode(left=left, right=right):
                if step == 0:
                    pending += [(current, 1), (right, 0), (left, 0)]
                else:
                    right_docs = results.pop()
                    results[-1] |= right_docs
            case NotNode(operand=operand):
                if step == 0:
                    pending += [(current, 1), (operand, 0)]
                else:
                    results.append(set(accessor.all_document_ids()) - results.pop())
            case _:
                raise TypeError(f"Unsupported query node: {current!r}")
    return results.pop()
