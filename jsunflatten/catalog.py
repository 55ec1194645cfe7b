"""Extraction of leaf branch bodies keyed by their selector value."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Sequence, Set, Union

from .syntax import (
    CONDITIONAL,
    DiscriminantTest,
    Number,
    block_body,
    generate_statements,
    iter_chain,
    iter_nodes,
    node_type,
)

logger = logging.getLogger(__name__)

ELSE_TAG = "else"

SelectorValue = Union[int, float, str]


@dataclass(frozen=True)
class BlockCatalogEntry:
    """A single leaf block together with the selector value guarding it."""

    index: int
    condition: str
    value: SelectorValue
    code: str

    @property
    def is_else(self) -> bool:
        return self.value == ELSE_TAG

    def selects(self, flow_value: Number) -> bool:
        """Return ``True`` when ``flow_value`` activates this block.

        Only numeric values compare; the ``else`` tag never matches.
        """

        if self.is_else or isinstance(flow_value, bool):
            return False
        return self.value == flow_value

    def to_json(self) -> Dict[str, object]:
        return {"condition": self.condition, "value": self.value, "code": self.code}


class BlockCatalog:
    """Ordered collection of :class:`BlockCatalogEntry` objects."""

    def __init__(self, entries: Sequence[BlockCatalogEntry] = ()) -> None:
        self._entries: List[BlockCatalogEntry] = list(entries)

    def __iter__(self) -> Iterator[BlockCatalogEntry]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __getitem__(self, index: int) -> BlockCatalogEntry:
        return self._entries[index]

    def append(self, condition: str, value: SelectorValue, code: str) -> BlockCatalogEntry:
        entry = BlockCatalogEntry(len(self._entries), condition, value, code)
        self._entries.append(entry)
        return entry

    def lookup(self, flow_value: Number) -> Optional[BlockCatalogEntry]:
        """Return the first entry selected by ``flow_value``.

        Later entries sharing the same value are never returned.
        """

        for entry in self._entries:
            if entry.selects(flow_value):
                return entry
        return None

    def values(self) -> List[SelectorValue]:
        return [entry.value for entry in self._entries]

    def to_json(self) -> Dict[str, Dict[str, object]]:
        return {str(entry.index): entry.to_json() for entry in self._entries}

    def to_simple_json(self) -> Dict[str, str]:
        return {str(entry.index): entry.code for entry in self._entries}

    def dumps(self, *, simple: bool = False) -> str:
        payload = self.to_simple_json() if simple else self.to_json()
        return json.dumps(payload, indent=2, ensure_ascii=False)


def is_bottom_level(conditional: Any) -> bool:
    """Return ``True`` if the consequent block holds no direct conditional."""

    statements = block_body(getattr(conditional, "consequent", None))
    if statements is None:
        return False
    return all(node_type(statement) != CONDITIONAL for statement in statements)


class BlockCatalogExtractor:
    """Collect the branch bodies of bottom-level discriminant chains.

    Conditionals are visited in document order.  The first bottom-level
    member of a chain starts a walk along the rest of its else-if spine;
    every member reached that way is skipped later, so each branch is
    catalogued once.
    """

    def __init__(self, condition_var: Optional[str]) -> None:
        self.condition_var = condition_var
        self.dropped = 0

    def extract(self, tree: Any) -> BlockCatalog:
        catalog = BlockCatalog()
        if not self.condition_var:
            logger.warning("no condition variable given; block catalog is empty")
            return catalog
        covered: Set[int] = set()
        for visit in iter_nodes(tree, CONDITIONAL):
            if id(visit.node) in covered or not is_bottom_level(visit.node):
                continue
            covered.update(self._extract_chain(visit.node, catalog))
        logger.info(
            "extracted %d bottom-level block(s) for %s (%d dropped)",
            len(catalog),
            self.condition_var,
            self.dropped,
        )
        return catalog

    def _extract_chain(self, head: Any, catalog: BlockCatalog) -> List[int]:
        """Catalogue ``head`` and its spine; return the ids of the visited nodes."""

        visited: List[int] = []
        tail = head
        matched = False
        for conditional in iter_chain(head):
            tail = conditional
            visited.append(id(conditional))
            test = DiscriminantTest.from_node(getattr(conditional, "test", None))
            if test is None or not test.matches(self.condition_var):
                self.dropped += 1
                continue
            matched = True
            statements = block_body(getattr(conditional, "consequent", None))
            code = generate_statements(statements) if statements else ""
            if not code:
                self.dropped += 1
                continue
            catalog.append(test.describe(), test.value, code)

        # a trailing else only belongs to chains that test the discriminant
        statements = block_body(getattr(tail, "alternate", None))
        if statements is None or not matched:
            return visited
        code = generate_statements(statements)
        if code:
            catalog.append(ELSE_TAG, ELSE_TAG, code)
        else:
            self.dropped += 1
        return visited


__all__ = [
    "ELSE_TAG",
    "BlockCatalog",
    "BlockCatalogEntry",
    "BlockCatalogExtractor",
    "is_bottom_level",
]
