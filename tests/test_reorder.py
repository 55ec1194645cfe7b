from jsunflatten.catalog import ELSE_TAG, BlockCatalog
from jsunflatten.flow import ORIGIN_DECLARATION, FlowSequence
from jsunflatten.reorder import ReorderAssembler


def _catalog() -> BlockCatalog:
    catalog = BlockCatalog()
    catalog.append("S === 0", 0, "a();")
    catalog.append("S === 1", 1, "b();")
    return catalog


def test_blocks_follow_flow_order() -> None:
    flow = FlowSequence((1, 0), ORIGIN_DECLARATION)
    text = ReorderAssembler().render(flow, _catalog())
    assert text == (
        "// control flow position 0: S === 1\n"
        "b();\n"
        "\n"
        "// control flow position 1: S === 0\n"
        "a();\n"
    )


def test_unmatched_positions_contribute_nothing() -> None:
    flow = FlowSequence((5, 0, 7), ORIGIN_DECLARATION)
    output = ReorderAssembler().assemble(flow, _catalog())
    assert output.blocks == [("// control flow position 1: S === 0", "a();")]
    assert output.unmatched == [0, 2]


def test_only_first_duplicate_is_reachable() -> None:
    catalog = _catalog()
    catalog.append("S === 0", 0, "shadowed();")
    flow = FlowSequence((0, 0), ORIGIN_DECLARATION)
    output = ReorderAssembler().assemble(flow, catalog)
    assert [code for _, code in output.blocks] == ["a();", "a();"]


def test_else_entries_are_never_replayed() -> None:
    catalog = BlockCatalog()
    catalog.append("else", ELSE_TAG, "fallback();")
    flow = FlowSequence((0, 1), ORIGIN_DECLARATION)
    assert ReorderAssembler().render(flow, catalog) == ""


def test_custom_annotation_prefix() -> None:
    flow = FlowSequence((0,), ORIGIN_DECLARATION)
    text = ReorderAssembler("step").render(flow, _catalog())
    assert text.startswith("// step 0: S === 0\n")
