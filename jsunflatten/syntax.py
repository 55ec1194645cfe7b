"""Thin glue around the ``esprima`` parser and the ``escodegen`` printer.

The rest of the package never touches either library directly.  Nodes are
the plain objects produced by :mod:`esprima`; every pass dispatches on the
``type`` tag carried by each node, using the constants declared below.  The
helpers here provide three things the passes share:

* :func:`parse_source` / :func:`generate` convert between text and trees and
  translate library failures into :mod:`jsunflatten.errors` exceptions.
* :func:`walk` performs a document-order traversal that threads the
  structural nesting depth downwards instead of recomputing it per node.
* :class:`DiscriminantTest` is the semantic view of ``name === N`` and
  ``name < N`` comparisons used by the normaliser and the extractors.
"""

from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterator, List, Optional, Tuple, Union

import escodegen
import esprima

from .errors import ParseFailure, SerializationFailure

logger = logging.getLogger(__name__)

Number = Union[int, float]

# node variant tags
CONDITIONAL = "IfStatement"
BLOCK = "BlockStatement"
BINARY = "BinaryExpression"
IDENTIFIER = "Identifier"
LITERAL = "Literal"
DECLARATOR = "VariableDeclarator"
ASSIGNMENT = "AssignmentExpression"
ARRAY = "ArrayExpression"

EQUALITY = "==="
LESS_THAN = "<"

_NESTING_TAGS = frozenset({CONDITIONAL, BLOCK})
_SKIPPED_FIELDS = frozenset({"type", "loc", "range", "leadingComments", "trailingComments"})
_SOURCE_TYPES = ("script", "module")

# esprima and escodegen recurse several frames deep per else-if level
RECURSION_LIMIT = 10000


# ---------------------------------------------------------------------------
# parsing and printing
# ---------------------------------------------------------------------------


@contextmanager
def _deep_recursion() -> Iterator[None]:
    old_limit = sys.getrecursionlimit()
    sys.setrecursionlimit(max(old_limit, RECURSION_LIMIT))
    try:
        yield
    finally:
        sys.setrecursionlimit(old_limit)


def parse_source(source: str, *, source_type: str = "script", tolerant: bool = False) -> Any:
    """Parse ``source`` and return the root ``Program`` node."""

    if source_type not in _SOURCE_TYPES:
        raise ValueError(f"unsupported source type: {source_type!r}")
    options = {"tolerant": tolerant}
    parse = esprima.parseModule if source_type == "module" else esprima.parseScript
    try:
        with _deep_recursion():
            return parse(source, options)
    except Exception as exc:  # esprima raises its own Error type for syntax errors
        raise ParseFailure(str(exc)) from exc


def generate(node: Any) -> str:
    """Serialise ``node`` (a tree or any sub-node) back into source text."""

    try:
        with _deep_recursion():
            return escodegen.generate(node)
    except Exception as exc:
        tag = node_type(node) or type(node).__name__
        raise SerializationFailure(f"cannot serialise {tag} node: {exc}") from exc


def generate_statements(statements: List[Any]) -> str:
    """Return ``statements`` printed one by one and joined by single spaces."""

    pieces = (generate(statement).strip() for statement in statements)
    return " ".join(piece for piece in pieces if piece)


# ---------------------------------------------------------------------------
# node inspection
# ---------------------------------------------------------------------------


def node_type(value: Any) -> Optional[str]:
    if isinstance(value, str):
        return None
    tag = getattr(value, "type", None)
    return tag if isinstance(tag, str) else None


def is_node(value: Any) -> bool:
    return node_type(value) is not None


def numeric_value(node: Any) -> Optional[Number]:
    """Return the value of a numeric literal node or ``None``."""

    if node_type(node) != LITERAL:
        return None
    value = getattr(node, "value", None)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def identifier_name(node: Any) -> Optional[str]:
    if node_type(node) != IDENTIFIER:
        return None
    return getattr(node, "name", None)


def block_body(node: Any) -> Optional[List[Any]]:
    """Return the statement list of a block node, ``None`` for other nodes."""

    if node_type(node) != BLOCK:
        return None
    return list(getattr(node, "body", None) or [])


def iter_child_nodes(node: Any) -> Iterator[Tuple[str, Any]]:
    """Yield ``(field, child)`` pairs in declaration order."""

    for field, value in vars(node).items():
        if field in _SKIPPED_FIELDS or value is None:
            continue
        if isinstance(value, list):
            for item in value:
                if is_node(item):
                    yield field, item
        elif is_node(value):
            yield field, value


@dataclass(frozen=True)
class NodeVisit:
    """A node reached during :func:`walk` together with its context."""

    node: Any
    parent: Optional[Any]
    field: Optional[str]
    depth: int

    @property
    def tag(self) -> Optional[str]:
        return node_type(self.node)

    @property
    def is_else_branch(self) -> bool:
        """``True`` when the node sits in the ``alternate`` slot of a conditional."""

        return self.field == "alternate" and node_type(self.parent) == CONDITIONAL


def walk(root: Any) -> Iterator[NodeVisit]:
    """Traverse ``root`` in document order.

    ``depth`` counts the conditional and block ancestors of each node.  An
    explicit stack is used so arbitrarily long else-if spines are safe.
    """

    stack: List[NodeVisit] = [NodeVisit(root, None, None, 0)]
    while stack:
        visit = stack.pop()
        yield visit
        child_depth = visit.depth + (1 if visit.tag in _NESTING_TAGS else 0)
        children = list(iter_child_nodes(visit.node))
        for field, child in reversed(children):
            stack.append(NodeVisit(child, visit.node, field, child_depth))


def iter_nodes(root: Any, tag: str) -> Iterator[NodeVisit]:
    for visit in walk(root):
        if visit.tag == tag:
            yield visit


def iter_chain(head: Any) -> Iterator[Any]:
    """Yield ``head`` followed by every conditional along its else-if spine."""

    current = head
    while node_type(current) == CONDITIONAL:
        yield current
        current = getattr(current, "alternate", None)


def chain_tail(head: Any) -> Any:
    tail = head
    for tail in iter_chain(head):
        pass
    return tail


# ---------------------------------------------------------------------------
# synthetic nodes
# ---------------------------------------------------------------------------


def make_literal(value: Number) -> Any:
    return esprima.nodes.Literal(value, format_number(value))


def make_conditional(test: Any, consequent: Any, alternate: Any = None) -> Any:
    return esprima.nodes.IfStatement(test, consequent, alternate)


def format_number(value: Number) -> str:
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value)


@dataclass(frozen=True)
class DiscriminantTest:
    """Semantic view of a ``name === N`` or ``name < N`` comparison."""

    variable: str
    operator: str
    value: Number

    @classmethod
    def from_node(cls, node: Any) -> Optional["DiscriminantTest"]:
        """Recognise ``node``; anything else is opaque and yields ``None``."""

        if node_type(node) != BINARY:
            return None
        operator = getattr(node, "operator", None)
        if operator not in (EQUALITY, LESS_THAN):
            return None
        variable = identifier_name(getattr(node, "left", None))
        value = numeric_value(getattr(node, "right", None))
        if variable is None or value is None:
            return None
        return cls(variable, operator, value)

    @classmethod
    def equality(cls, variable: str, value: Number) -> "DiscriminantTest":
        return cls(variable, EQUALITY, value)

    @property
    def is_equality(self) -> bool:
        return self.operator == EQUALITY

    def matches(self, variable: Optional[str]) -> bool:
        """Return ``True`` for an equality test against ``variable``."""

        return self.is_equality and variable is not None and self.variable == variable

    def to_node(self) -> Any:
        return esprima.nodes.BinaryExpression(
            self.operator,
            esprima.nodes.Identifier(self.variable),
            make_literal(self.value),
        )

    def describe(self) -> str:
        return f"{self.variable} {self.operator} {format_number(self.value)}"


__all__ = [
    "CONDITIONAL",
    "BLOCK",
    "BINARY",
    "IDENTIFIER",
    "LITERAL",
    "DECLARATOR",
    "ASSIGNMENT",
    "ARRAY",
    "EQUALITY",
    "LESS_THAN",
    "DiscriminantTest",
    "NodeVisit",
    "block_body",
    "chain_tail",
    "format_number",
    "generate",
    "generate_statements",
    "identifier_name",
    "is_node",
    "iter_chain",
    "iter_child_nodes",
    "iter_nodes",
    "make_conditional",
    "make_literal",
    "node_type",
    "numeric_value",
    "parse_source",
    "walk",
]
