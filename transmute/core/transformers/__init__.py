"""
Transformer system: declarative transformer configuration, the execution
pipeline and the registry resolving transformer identifiers.
"""

from .base import BaseTransformer, TransformContent, ValidatesInput
from .pipeline import TransformationPipeline, get_default_pipeline
from .registry import TransformerRegistry, registry
from .summarize import SummarizeTransformer

# Register built-in transformers
registry.register(SummarizeTransformer)

__all__ = [
    "BaseTransformer",
    "TransformContent",
    "ValidatesInput",
    "TransformationPipeline",
    "get_default_pipeline",
    "TransformerRegistry",
    "registry",
    "SummarizeTransformer",
]
