"""Renderer patterns: how a field's value placeholder is wrapped.

A pattern is Mustache markup using two pseudo-keys:

- ``{{key}}``: replaced by the field name (CSS class hooks)
- ``value``: replaced by the field name in every tag form
  (``{{value}}``, ``{{{value}}}``, ``{{#value}}``, ``{{^value}}``, ``{{/value}}``)

Patterns containing an inverted ``{{^value}}`` section render something
for falsy values too, so the caller must not guard them with
``{{#field}}``.

The ``markdown`` pattern is the only unescaped one (``{{{value}}}``): the
value must already be HTML rendered from the markdown source, since Mustache
does no markdown conversion.
"""

import re
from collections.abc import Mapping

from crudable.config.models import FieldDefinition

DEFAULT_RENDERERS: dict[str, str] = {
    "image": "<img class='field-value image {{key}}' src='{{value}}' alt='{{value}}' />",
    "email": "<a class='field-value email {{key}}' href='mailto:{{value}}'>{{value}}</a>",
    "telephone": "<a class='field-value telephone {{key}}' href='tel:{{value}}'>{{value}}</a>",
    "url": "<a class='field-value url {{key}}' href='{{value}}' target='_blank'>{{value}}</a>",
    "date": "<time class='field-value date {{key}}' datetime='{{value}}'>{{value}}</time>",
    "datetime": "<time class='field-value datetime {{key}}' datetime='{{value}}'>{{value}}</time>",
    "time": "<time class='field-value time {{key}}'>{{value}}</time>",
    "boolean": (
        "<span class='field-value boolean {{key}} {{#value}}true{{/value}}{{^value}}false{{/value}}'>"
        "{{#value}}✓{{/value}}{{^value}}✗{{/value}}</span>"
    ),
    "number": "<span class='field-value number {{key}}'>{{value}}</span>",
    "currency": "<span class='field-value currency {{key}}'>{{value}} €</span>",
    "percentage": "<span class='field-value percentage {{key}}'>{{value}}%</span>",
    # Pre-rendered HTML, emitted unescaped
    "markdown": "<div class='field-value markdown {{key}}'>{{{value}}}</div>",
}

# Storage types that imply a renderer when none is declared
TYPE_RENDERERS: dict[str, str] = {
    "boolean": "boolean",
    "date": "date",
    "datetime": "datetime",
    "timestamp": "datetime",
    "time": "time",
}

_KEY_TAG = re.compile(r"\{\{key\}\}")
_VALUE_TAG = re.compile(r"\{\{([#^/]?)value\}\}")


class RendererTable:
    """Closed mapping from renderer name to wrapper pattern.

    Args:
        overrides: Extra or replacement patterns, usually the schema file's
            ``renderer`` table.

    Example:
        table = RendererTable()
        table.wrap("email", FieldDefinition(renderer="email"))
        # ("<a class='field-value email email' href='mailto:{{email}}'>{{email}}</a>", True)
    """

    def __init__(self, overrides: Mapping[str, str] | None = None) -> None:
        self.patterns: dict[str, str] = {**DEFAULT_RENDERERS, **(overrides or {})}

    def resolve(self, field_def: FieldDefinition) -> str | None:
        """Name of the renderer applied to *field_def*, or None for a bare placeholder."""
        if field_def.renderer and field_def.renderer in self.patterns:
            return field_def.renderer
        implied = TYPE_RENDERERS.get(field_def.type.lower())
        if implied and implied in self.patterns:
            return implied
        return None

    def wrap(self, field_name: str, field_def: FieldDefinition) -> tuple[str, bool]:
        """Value markup for one field.

        Returns:
            Tuple of (markup, guarded).  ``guarded`` is False when the
            markup handles falsy values itself and must be emitted
            without a ``{{#field}}`` section.
        """
        name = self.resolve(field_def)
        if name is None:
            return f"{{{{{field_name}}}}}", True
        return apply_pattern(self.patterns[name], field_name), "{{^value}}" not in self.patterns[name]


def apply_pattern(pattern: str, field_name: str) -> str:
    """Substitute *field_name* for the ``key``/``value`` pseudo-keys of *pattern*.

    Example:
        >>> apply_pattern("<b class='{{key}}'>{{value}}</b>", "title")
        "<b class='title'>{{title}}</b>"
    """
    markup = _KEY_TAG.sub(lambda _: field_name, pattern)
    return _VALUE_TAG.sub(lambda m: f"{{{{{m.group(1)}{field_name}}}}}", markup)
