import json
from pathlib import Path

import pytest

from jsunflatten import DeflattenOptions, DeflattenPipeline, MissingInput, ParseFailure
from jsunflatten.pipeline import ArtifactSet

SAMPLE = "let _F=[1,0]; if (_C===0){one();} else { two(); }"

FLATTENED = """\
var order = [3, 1, 0, 2];
var step = 0;
for (var i = 0; i < order.length; i++) {
    step = order[i];
    if (step < 2) {
        if (step < 1) {
            init();
        } else {
            load();
        }
    } else {
        if (step < 3) {
            render();
        } else {
            setup();
        }
    }
}
"""


def _squash(text: str) -> str:
    return "".join(text.split())


def _pipeline(flow_var="_F", condition_var="_C", **kwargs) -> DeflattenPipeline:
    return DeflattenPipeline(
        DeflattenOptions(control_flow_var=flow_var, condition_var=condition_var, **kwargs)
    )


def test_end_to_end_reorders_blocks() -> None:
    result = _pipeline().run(SAMPLE)

    assert "elseif(_C===1)" in _squash(result.normalized_source)
    assert result.catalog.to_json() == {
        "0": {"condition": "_C === 0", "value": 0, "code": "one();"},
        "1": {"condition": "_C === 1", "value": 1, "code": "two();"},
    }
    assert list(result.flow) == [1, 0]
    reordered = result.reordered_source
    assert reordered.index("two();") < reordered.index("one();")
    assert "// control flow position 0: _C === 1" in reordered
    assert result.metrics.else_rewrites == 1


def test_positional_flow_counts_original_conditionals() -> None:
    # normalisation adds a synthetic else-if, which must not change the fallback
    result = _pipeline(flow_var=None).run("if (_C === 0) { a(); } else { b(); }")
    assert list(result.flow) == [0]
    assert result.flow.is_fallback
    assert [entry.value for entry in result.catalog] == [0, 1]
    assert [code for _, code in result.reordered.blocks] == ["a();"]


def test_range_split_dispatch_is_partially_recovered() -> None:
    result = _pipeline("order", "step").run(FLATTENED)
    assert result.metrics.else_rewrites == 0
    assert result.metrics.less_than_rewrites == 3
    # range tests only become equalities after the else pass, so the else
    # branches of the split stay tagged and cannot be replayed
    assert [entry.value for entry in result.catalog] == [0, "else", 2, "else"]
    assert list(result.flow) == [3, 1, 0, 2]
    assert [code for _, code in result.reordered.blocks] == ["init();", "render();"]
    assert result.reordered.unmatched == [0, 1]


def test_missing_condition_variable_gives_empty_catalog() -> None:
    result = _pipeline(condition_var=None).run(SAMPLE)
    assert len(result.catalog) == 0
    assert result.reordered_source == ""


def test_parse_failure_is_fatal() -> None:
    with pytest.raises(ParseFailure):
        _pipeline().run("if (_C === ) {")


def test_run_file_writes_all_artifacts(tmp_path: Path) -> None:
    source_path = tmp_path / "demo.js"
    source_path.write_text(SAMPLE, "utf-8")
    out_dir = tmp_path / "out"

    artifacts = _pipeline(output_dir=out_dir).run_file(source_path)

    assert artifacts == ArtifactSet.for_input(source_path, out_dir)
    assert artifacts.processed == out_dir / "demo_processed.js"
    for path, _ in artifacts.describe():
        assert path.exists()
    mapping = json.loads(artifacts.condition_mapping.read_text("utf-8"))
    assert mapping["1"] == {"condition": "_C === 1", "value": 1, "code": "two();"}
    assert json.loads(artifacts.simple_mapping.read_text("utf-8")) == {"0": "one();", "1": "two();"}
    assert json.loads(artifacts.control_flow.read_text("utf-8")) == [1, 0]
    assert "two();" in artifacts.reordered.read_text("utf-8")


def test_artifacts_default_to_input_directory(tmp_path: Path) -> None:
    source_path = tmp_path / "demo.js"
    artifacts = ArtifactSet.for_input(source_path)
    assert artifacts.reordered == tmp_path / "demo_reordered.js"
    assert artifacts.control_flow == tmp_path / "demo_control_flow.json"


def test_run_file_requires_existing_input(tmp_path: Path) -> None:
    with pytest.raises(MissingInput):
        _pipeline().run_file(tmp_path / "absent.js")


def test_run_file_rejects_undecodable_input(tmp_path: Path) -> None:
    source_path = tmp_path / "latin.js"
    source_path.write_bytes(b"a('\xff');")
    with pytest.raises(ParseFailure) as info:
        _pipeline().run_file(source_path)
    assert info.value.stage == "read"
    assert "utf-8" in str(info.value)


def test_unrelated_if_else_stays_out_of_reordered_output() -> None:
    source = SAMPLE + "\nif (typeof window !== 'undefined') { init(); } else { fallback(); }\n"
    result = _pipeline().run(source)
    assert "fallback();" not in result.catalog.to_simple_json().values()
    assert "fallback();" not in result.reordered_source
