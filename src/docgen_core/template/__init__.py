"""Template resolution, merging and rendering."""

from .binder import MISSING, Binding, VariableBinder, is_truthy, split_path, stringify
from .filters import FILTERS
from .merger import AnchorMerger
from .parser import parse_body, validate_body
from .renderer import Renderer
from .resolver import BUILTIN_TEMPLATE_ID, TemplateResolver, builtin_default, fallback_chain
from .types import MergedTemplate, RenderContext, RenderResult, Resolution, ResolutionRequest
from .validator import TemplateValidator

__all__ = [
    "AnchorMerger",
    "Binding",
    "BUILTIN_TEMPLATE_ID",
    "FILTERS",
    "MISSING",
    "MergedTemplate",
    "RenderContext",
    "RenderResult",
    "Renderer",
    "Resolution",
    "ResolutionRequest",
    "TemplateResolver",
    "TemplateValidator",
    "VariableBinder",
    "builtin_default",
    "fallback_chain",
    "is_truthy",
    "parse_body",
    "split_path",
    "stringify",
    "validate_body",
]
