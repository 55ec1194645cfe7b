import pytest

from jsunflatten.normalizer import (
    ConditionSimplifier,
    ElseNormalizer,
    NestingDepthIndex,
    normalise_tree,
)
from jsunflatten.syntax import CONDITIONAL, DiscriminantTest, generate, iter_chain, iter_nodes, parse_source


def _squash(text: str) -> str:
    return "".join(text.split())


def _chain_values(tree):
    head = next(visit.node for visit in iter_nodes(tree, CONDITIONAL) if not visit.is_else_branch)
    values = []
    for node in iter_chain(head):
        test = DiscriminantTest.from_node(node.test)
        values.append(test.value if test else None)
    return values


def test_else_becomes_next_selector() -> None:
    tree = parse_source("if (_C === 0) { one(); } else { two(); }")
    assert ElseNormalizer().run(tree) == 1
    text = _squash(generate(tree))
    assert "elseif(_C===1){two();}" in text
    assert _chain_values(tree) == [0, 1]


def test_synthetic_value_is_max_of_chain_plus_one() -> None:
    tree = parse_source(
        "if (S === 5) { a(); } else if (S === 1) { b(); } else if (S === 3) { c(); } else { d(); }"
    )
    ElseNormalizer().run(tree)
    assert _chain_values(tree) == [5, 1, 3, 6]


def test_second_run_performs_no_rewrites() -> None:
    tree = parse_source("if (S === 0) { a(); } else if (S === 1) { b(); } else { c(); }")
    normalizer = ElseNormalizer()
    assert normalizer.run(tree) == 1
    before = generate(tree)
    assert ElseNormalizer().run(tree) == 0
    assert generate(tree) == before


def test_chain_without_else_is_untouched() -> None:
    source = "if (S === 0) { a(); } else if (S === 1) { b(); }"
    tree = parse_source(source)
    before = generate(tree)
    assert ElseNormalizer().run(tree) == 0
    assert generate(tree) == before


@pytest.mark.parametrize(
    "source",
    [
        "if (S < 2) { a(); } else { b(); }",
        "if (ready) { a(); } else { b(); }",
        "if (1 === S) { a(); } else { b(); }",
    ],
)
def test_unrecognised_head_leaves_chain_alone(source: str) -> None:
    tree = parse_source(source)
    before = generate(tree)
    normalizer = ElseNormalizer()
    assert normalizer.run(tree) == 0
    assert normalizer.metrics.skipped_chains == 1
    assert generate(tree) == before


def test_spine_members_on_other_variables_are_ignored() -> None:
    tree = parse_source("if (S === 2) { a(); } else if (T === 9) { b(); } else { c(); }")
    ElseNormalizer().run(tree)
    assert _chain_values(tree) == [2, 9, 3]


def test_nested_chains_are_rewritten_outer_first() -> None:
    source = (
        "if (S === 0) { if (T === 4) { a(); } else { b(); } }"
        " else { if (T === 7) { c(); } else { d(); } }"
    )
    tree = parse_source(source)
    index = NestingDepthIndex.collect(tree)
    assert len(index) == 3
    assert sorted(index.levels) == [0, 2]

    assert ElseNormalizer().run(tree) == 3
    text = _squash(generate(tree))
    assert "elseif(S===1){if(T===7){c();}elseif(T===8){d();}}" in text
    assert "if(T===4){a();}elseif(T===5){b();}" in text


def test_less_than_becomes_equality() -> None:
    tree = parse_source("if (x < 3) { a(); }")
    assert ConditionSimplifier().run(tree) == 1
    assert "x===2" in _squash(generate(tree))


def test_less_than_zero_is_left_alone() -> None:
    tree = parse_source("if (x < 0) { a(); }")
    assert ConditionSimplifier().run(tree) == 0
    assert "x<0" in _squash(generate(tree))


def test_other_comparisons_are_not_simplified() -> None:
    tree = parse_source("if (x <= 3 || 3 < x || x < y) { a(); }")
    assert ConditionSimplifier().run(tree) == 0


def test_normalise_tree_runs_else_pass_before_simplifier() -> None:
    tree = parse_source("if (S < 1) { a(); } else { b(); }")
    metrics = normalise_tree(tree)
    # the head is a range test during the else pass, so the else stays plain
    assert metrics.else_rewrites == 0
    assert metrics.less_than_rewrites == 1
    assert "if(S===0){a();}else{b();}" in _squash(generate(tree))
    assert "less_than_rewrites=1" in metrics.describe()


def test_normalise_tree_can_skip_simplification() -> None:
    tree = parse_source("if (S < 3) { a(); }")
    metrics = normalise_tree(tree, simplify_less_than=False)
    assert metrics.less_than_rewrites == 0
    assert "S<3" in _squash(generate(tree))
