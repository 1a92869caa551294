"""Template expansion engine."""

from .engine import TemplateExpander, expand
from .errors import (
    ExpansionError,
    FormatConversionError,
    InvalidPatternError,
    InvalidReferenceError,
    MalformedEncodingError,
    UnknownTimeZoneError,
)
from .grammar import TokenOptions, compile_options
from .operators import Operator, OpType
from .renderer import BatchRenderer, RenderResult
from .validator import TemplateValidator, ValidationLevel, ValidationResult

__all__ = [
    "TemplateExpander",
    "expand",
    "BatchRenderer",
    "RenderResult",
    "TemplateValidator",
    "ValidationResult",
    "ValidationLevel",
    "TokenOptions",
    "compile_options",
    "Operator",
    "OpType",
    "ExpansionError",
    "FormatConversionError",
    "InvalidPatternError",
    "InvalidReferenceError",
    "MalformedEncodingError",
    "UnknownTimeZoneError",
]
