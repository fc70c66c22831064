"""Mustache template synthesis.

Usage:
    >>> from crudable.templates import TemplateSynthesizer, TemplateContext
"""

from crudable.templates.renderers import DEFAULT_RENDERERS, RendererTable, apply_pattern
from crudable.templates.synthesizer import DEFAULT_MAX_DEPTH, TemplateContext, TemplateSynthesizer

__all__ = [
    "DEFAULT_MAX_DEPTH",
    "DEFAULT_RENDERERS",
    "RendererTable",
    "TemplateContext",
    "TemplateSynthesizer",
    "apply_pattern",
]
