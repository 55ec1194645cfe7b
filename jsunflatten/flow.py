"""Discovery of the execution order array in the original source."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Iterator, List, Optional, Tuple

from .syntax import (
    ARRAY,
    ASSIGNMENT,
    CONDITIONAL,
    DECLARATOR,
    Number,
    identifier_name,
    node_type,
    numeric_value,
    walk,
)

logger = logging.getLogger(__name__)

PREVIEW_LENGTH = 10

ORIGIN_DECLARATION = "declaration"
ORIGIN_ASSIGNMENT = "assignment"
ORIGIN_POSITIONAL = "positional"


@dataclass(frozen=True)
class FlowSequence:
    """Ordered selector values describing the intended execution order."""

    values: Tuple[Number, ...]
    origin: str

    def __iter__(self) -> Iterator[Number]:
        return iter(self.values)

    def __len__(self) -> int:
        return len(self.values)

    @property
    def is_fallback(self) -> bool:
        return self.origin == ORIGIN_POSITIONAL

    def preview(self, limit: int = PREVIEW_LENGTH) -> str:
        head = ", ".join(str(value) for value in self.values[:limit])
        suffix = ", ..." if len(self.values) > limit else ""
        return f"[{head}{suffix}]"

    def to_json(self) -> List[Number]:
        return list(self.values)

    def dumps(self) -> str:
        return json.dumps(self.to_json(), indent=2)


def array_values(node: Any) -> List[Number]:
    """Return the numeric elements of an array literal; others are dropped."""

    values: List[Number] = []
    for element in getattr(node, "elements", None) or []:
        value = numeric_value(element)
        if value is not None:
            values.append(value)
    return values


class FlowSequenceExtractor:
    """Locate the order array named ``control_flow_var``.

    A matching ``var``/``let``/``const`` declaration initialised with an array
    literal wins.  Failing that, the first plain assignment of an array
    literal to the same identifier is used.  When the tree contains neither,
    the sequence degrades to ``0, 1, 2, ...`` with one value per conditional
    statement.
    """

    def __init__(self, control_flow_var: Optional[str]) -> None:
        self.control_flow_var = control_flow_var

    def extract(self, tree: Any) -> FlowSequence:
        declared: Optional[Any] = None
        assigned: Optional[Any] = None
        conditionals = 0
        for visit in walk(tree):
            tag = visit.tag
            if tag == CONDITIONAL:
                conditionals += 1
            elif tag == DECLARATOR and declared is None:
                if self._names_flow_var(visit.node.id) and node_type(visit.node.init) == ARRAY:
                    declared = visit.node.init
            elif tag == ASSIGNMENT and assigned is None:
                if self._names_flow_var(visit.node.left) and node_type(visit.node.right) == ARRAY:
                    assigned = visit.node.right

        if declared is not None:
            sequence = FlowSequence(tuple(array_values(declared)), ORIGIN_DECLARATION)
        elif assigned is not None:
            sequence = FlowSequence(tuple(array_values(assigned)), ORIGIN_ASSIGNMENT)
        else:
            logger.warning(
                "order array %s not found; falling back to %d positional value(s)",
                self.control_flow_var,
                conditionals,
            )
            return FlowSequence(tuple(range(conditionals)), ORIGIN_POSITIONAL)

        logger.info(
            "found order array %s (%s) with %d element(s): %s",
            self.control_flow_var,
            sequence.origin,
            len(sequence),
            sequence.preview(),
        )
        return sequence

    def _names_flow_var(self, node: Any) -> bool:
        if not self.control_flow_var:
            return False
        return identifier_name(node) == self.control_flow_var


__all__ = [
    "FlowSequence",
    "FlowSequenceExtractor",
    "ORIGIN_ASSIGNMENT",
    "ORIGIN_DECLARATION",
    "ORIGIN_POSITIONAL",
    "array_values",
]
