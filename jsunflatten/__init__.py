"""Public package exports for the control-flow deflattener."""

from .catalog import BlockCatalog, BlockCatalogEntry, BlockCatalogExtractor
from .errors import ConfigError, DeflattenError, MissingInput, ParseFailure, SerializationFailure
from .flow import FlowSequence, FlowSequenceExtractor
from .normalizer import ConditionSimplifier, ElseNormalizer, NormalizerMetrics
from .options import DeflattenOptions
from .pipeline import ArtifactSet, DeflattenPipeline, DeflattenResult
from .reorder import ReorderAssembler, ReorderedOutput
from .syntax import DiscriminantTest

__all__ = [
    "ArtifactSet",
    "BlockCatalog",
    "BlockCatalogEntry",
    "BlockCatalogExtractor",
    "ConditionSimplifier",
    "ConfigError",
    "DeflattenError",
    "DeflattenOptions",
    "DeflattenPipeline",
    "DeflattenResult",
    "DiscriminantTest",
    "ElseNormalizer",
    "FlowSequence",
    "FlowSequenceExtractor",
    "MissingInput",
    "NormalizerMetrics",
    "ParseFailure",
    "ReorderAssembler",
    "ReorderedOutput",
    "SerializationFailure",
]
