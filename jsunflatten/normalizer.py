"""Structural rewrites applied before block extraction.

Two passes run over the parsed tree, both mutating it in place:

``ElseNormalizer``
    Turns the trailing plain ``else`` of a discriminant chain into a
    synthetic ``else if`` guarded by the next unused selector value, so that
    every branch of the chain carries an explicit selector.

``ConditionSimplifier``
    Rewrites ``name < N`` into ``name === N - 1``.  Flattening schemes encode
    the last remaining branch of a range split this way.  The rewrite is a
    heuristic: it only checks the shape of the comparison, so an unrelated
    numeric comparison with the same shape is rewritten as well.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, DefaultDict, Iterator, List, Optional, Set

from .syntax import (
    BINARY,
    BLOCK,
    CONDITIONAL,
    LESS_THAN,
    DiscriminantTest,
    Number,
    chain_tail,
    iter_chain,
    iter_nodes,
    make_conditional,
    node_type,
)

logger = logging.getLogger(__name__)


@dataclass
class NormalizerMetrics:
    """Rewrite counts recorded by the normalisation passes."""

    chains_seen: int = 0
    else_rewrites: int = 0
    less_than_rewrites: int = 0
    skipped_chains: int = 0

    def observe(self, other: "NormalizerMetrics") -> None:
        self.chains_seen += other.chains_seen
        self.else_rewrites += other.else_rewrites
        self.less_than_rewrites += other.less_than_rewrites
        self.skipped_chains += other.skipped_chains

    def describe(self) -> str:
        parts = [
            f"chains={self.chains_seen}",
            f"else_rewrites={self.else_rewrites}",
            f"less_than_rewrites={self.less_than_rewrites}",
            f"skipped={self.skipped_chains}",
        ]
        return " ".join(parts)


@dataclass
class NestingDepthIndex:
    """Chain heads grouped by their structural nesting depth."""

    levels: DefaultDict[int, List[Any]] = field(default_factory=lambda: defaultdict(list))

    @classmethod
    def collect(cls, tree: Any) -> "NestingDepthIndex":
        index = cls()
        for visit in iter_nodes(tree, CONDITIONAL):
            if visit.is_else_branch:
                continue
            index.levels[visit.depth].append(visit.node)
        return index

    def __len__(self) -> int:
        return sum(len(chains) for chains in self.levels.values())

    def iter_outer_first(self) -> Iterator[Any]:
        for depth in sorted(self.levels):
            yield from self.levels[depth]


class ElseNormalizer:
    """Convert trailing ``else`` blocks into synthetic ``else if`` branches.

    Chains are handled outermost first.  The depth index is captured before
    any rewrite; a rewrite only replaces the ``alternate`` slot of a chain's
    last conditional and keeps the original block object as the new
    consequent, so references held by the index stay valid.  Only the
    recorded depth of conditionals inside a moved block becomes stale, and
    the depth is used for ordering alone.
    """

    def __init__(self) -> None:
        self.metrics = NormalizerMetrics()

    def run(self, tree: Any) -> int:
        index = NestingDepthIndex.collect(tree)
        rewrites = 0
        for head in index.iter_outer_first():
            self.metrics.chains_seen += 1
            if self._rewrite_chain(head):
                rewrites += 1
            else:
                self.metrics.skipped_chains += 1
        self.metrics.else_rewrites += rewrites
        logger.info("converted %d trailing else block(s) into else-if", rewrites)
        return rewrites

    def next_selector(self, head: Any) -> Optional[DiscriminantTest]:
        """Return the synthetic equality test for ``head``'s final else."""

        head_test = DiscriminantTest.from_node(getattr(head, "test", None))
        if head_test is None or not head_test.is_equality:
            return None
        used: Set[Number] = set()
        for conditional in iter_chain(head):
            test = DiscriminantTest.from_node(getattr(conditional, "test", None))
            if test is not None and test.matches(head_test.variable):
                used.add(test.value)
        if not used:
            return None
        return DiscriminantTest.equality(head_test.variable, max(used) + 1)

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------
    def _rewrite_chain(self, head: Any) -> bool:
        tail = chain_tail(head)
        final_else = getattr(tail, "alternate", None)
        if node_type(final_else) != BLOCK:
            return False
        synthetic = self.next_selector(head)
        if synthetic is None:
            logger.debug("leaving chain untouched: unrecognised head test")
            return False
        tail.alternate = make_conditional(synthetic.to_node(), final_else, None)
        logger.debug("final else now guarded by %s", synthetic.describe())
        return True


class ConditionSimplifier:
    """Rewrite ``name < N`` comparisons into ``name === N - 1``."""

    def __init__(self) -> None:
        self.metrics = NormalizerMetrics()

    def run(self, tree: Any) -> int:
        rewrites = 0
        for visit in iter_nodes(tree, BINARY):
            test = DiscriminantTest.from_node(visit.node)
            if test is None or test.operator != LESS_THAN:
                continue
            target = test.value - 1
            if target < 0:
                continue
            replacement = DiscriminantTest.equality(test.variable, target).to_node()
            visit.node.operator = replacement.operator
            visit.node.right = replacement.right
            rewrites += 1
        self.metrics.less_than_rewrites += rewrites
        logger.info("simplified %d less-than comparison(s)", rewrites)
        return rewrites


def normalise_tree(tree: Any, *, simplify_less_than: bool = True) -> NormalizerMetrics:
    """Run both passes over ``tree`` and return the merged metrics."""

    metrics = NormalizerMetrics()
    else_pass = ElseNormalizer()
    else_pass.run(tree)
    metrics.observe(else_pass.metrics)
    if simplify_less_than:
        simplifier = ConditionSimplifier()
        simplifier.run(tree)
        metrics.observe(simplifier.metrics)
    return metrics


__all__ = [
    "ConditionSimplifier",
    "ElseNormalizer",
    "NestingDepthIndex",
    "NormalizerMetrics",
    "normalise_tree",
]
