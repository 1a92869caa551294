"""Brace-token template expansion."""

__version__ = "0.1.0"

from .templates import ExpansionError, TemplateExpander, expand

__all__ = ["__version__", "expand", "TemplateExpander", "ExpansionError"]
