"""High level entry points that sequence the deflattening stages.

The stages run strictly one after another.  The original source is parsed
twice: once for normalisation (whose output is printed and parsed again for
block extraction) and once, untouched, for discovering the order array.
No tree is shared between the two paths.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Optional, Tuple

from .catalog import BlockCatalog, BlockCatalogExtractor
from .errors import MissingInput, ParseFailure
from .flow import FlowSequence, FlowSequenceExtractor
from .normalizer import NormalizerMetrics, normalise_tree
from .options import DeflattenOptions
from .reorder import ReorderAssembler, ReorderedOutput
from .syntax import generate, parse_source

logger = logging.getLogger(__name__)


@dataclass
class DeflattenResult:
    """Everything produced by a single run."""

    normalized_source: str
    catalog: BlockCatalog
    flow: FlowSequence
    reordered: ReorderedOutput
    metrics: NormalizerMetrics

    @property
    def reordered_source(self) -> str:
        return self.reordered.render()


@dataclass(frozen=True)
class ArtifactSet:
    """Paths of the files written for one input."""

    processed: Path
    condition_mapping: Path
    simple_mapping: Path
    control_flow: Path
    reordered: Path

    @classmethod
    def for_input(cls, input_path: Path, output_dir: Optional[Path] = None) -> "ArtifactSet":
        directory = output_dir if output_dir is not None else input_path.parent
        stem = input_path.stem
        return cls(
            processed=directory / f"{stem}_processed.js",
            condition_mapping=directory / f"{stem}_condition_mapping.json",
            simple_mapping=directory / f"{stem}_simple_mapping.json",
            control_flow=directory / f"{stem}_control_flow.json",
            reordered=directory / f"{stem}_reordered.js",
        )

    def describe(self) -> List[Tuple[Path, str]]:
        return [
            (self.processed, "normalized source"),
            (self.condition_mapping, "condition and code block mapping"),
            (self.simple_mapping, "index to code block mapping"),
            (self.control_flow, "control flow sequence"),
            (self.reordered, "code reordered by control flow"),
        ]

    def write(self, result: DeflattenResult) -> None:
        self.processed.parent.mkdir(parents=True, exist_ok=True)
        self.processed.write_text(result.normalized_source, "utf-8")
        self.condition_mapping.write_text(result.catalog.dumps(), "utf-8")
        self.simple_mapping.write_text(result.catalog.dumps(simple=True), "utf-8")
        self.control_flow.write_text(result.flow.dumps(), "utf-8")
        self.reordered.write_text(result.reordered_source, "utf-8")


class DeflattenPipeline:
    """Normalise, extract and reorder a control-flow flattened script."""

    def __init__(self, options: Optional[DeflattenOptions] = None) -> None:
        self.options = options or DeflattenOptions()

    def parse(self, source: str) -> Any:
        return parse_source(
            source,
            source_type=self.options.source_type,
            tolerant=self.options.tolerant,
        )

    def normalise(self, source: str) -> Tuple[str, NormalizerMetrics]:
        tree = self.parse(source)
        metrics = normalise_tree(tree, simplify_less_than=self.options.simplify_less_than)
        logger.info("normalizer metrics: %s", metrics.describe())
        return generate(tree), metrics

    def extract_catalog(self, normalized_source: str) -> BlockCatalog:
        tree = self.parse(normalized_source)
        return BlockCatalogExtractor(self.options.condition_var).extract(tree)

    def extract_flow(self, source: str) -> FlowSequence:
        tree = self.parse(source)
        return FlowSequenceExtractor(self.options.control_flow_var).extract(tree)

    def reorder(self, flow: FlowSequence, catalog: BlockCatalog) -> ReorderedOutput:
        return ReorderAssembler(self.options.annotation_prefix).assemble(flow, catalog)

    def run(self, source: str) -> DeflattenResult:
        normalized, metrics = self.normalise(source)
        catalog = self.extract_catalog(normalized)
        flow = self.extract_flow(source)
        reordered = self.reorder(flow, catalog)
        return DeflattenResult(
            normalized_source=normalized,
            catalog=catalog,
            flow=flow,
            reordered=reordered,
            metrics=metrics,
        )

    def run_file(self, input_path: Path) -> ArtifactSet:
        if not input_path.is_file():
            raise MissingInput(input_path)
        try:
            source = input_path.read_text("utf-8")
        except UnicodeDecodeError as exc:
            raise ParseFailure(str(exc), stage="read") from exc
        result = self.run(source)
        artifacts = ArtifactSet.for_input(input_path, self.options.output_dir)
        artifacts.write(result)
        return artifacts


__all__ = ["ArtifactSet", "DeflattenPipeline", "DeflattenResult"]
