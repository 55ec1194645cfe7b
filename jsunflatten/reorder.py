"""Replay the flow sequence against the block catalog."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Tuple

from .catalog import BlockCatalog
from .flow import FlowSequence

logger = logging.getLogger(__name__)

DEFAULT_ANNOTATION_PREFIX = "control flow position"


@dataclass
class ReorderedOutput:
    """Annotated code blocks in flow order."""

    blocks: List[Tuple[str, str]] = field(default_factory=list)
    unmatched: List[int] = field(default_factory=list)

    def render(self) -> str:
        lines: List[str] = []
        for annotation, code in self.blocks:
            lines.append(annotation)
            lines.append(code)
            lines.append("")
        return "\n".join(lines)


class ReorderAssembler:
    """Emit catalog blocks in the order given by a flow sequence."""

    def __init__(self, annotation_prefix: str = DEFAULT_ANNOTATION_PREFIX) -> None:
        self.annotation_prefix = annotation_prefix

    def assemble(self, flow: FlowSequence, catalog: BlockCatalog) -> ReorderedOutput:
        output = ReorderedOutput()
        for position, flow_value in enumerate(flow):
            entry = catalog.lookup(flow_value)
            if entry is None:
                output.unmatched.append(position)
                continue
            annotation = f"// {self.annotation_prefix} {position}: {entry.condition}"
            output.blocks.append((annotation, entry.code))
        logger.info(
            "reordered %d of %d flow position(s)", len(output.blocks), len(flow)
        )
        if output.unmatched:
            logger.debug("flow positions without a block: %s", output.unmatched)
        return output

    def render(self, flow: FlowSequence, catalog: BlockCatalog) -> str:
        return self.assemble(flow, catalog).render()


__all__ = ["DEFAULT_ANNOTATION_PREFIX", "ReorderAssembler", "ReorderedOutput"]
