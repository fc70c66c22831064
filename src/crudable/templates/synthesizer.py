"""Mustache template synthesis from the relation graph.

Generates, for one table, a logic-less template rendering a list of
records (``{{#rows}}``) with:

- every displayable field of the table, in declaration order
- N:1 relations expanded into ``relation manyToOne`` sub-blocks while the
  remaining depth allows (the bare foreign-key value otherwise)
- one ``relation oneToMany`` table per inverse relation of the top-level
  table, looping over the relation's array name

Output is a pure function of the schema snapshot and the
``(table, context, max_depth)`` arguments.

Usage:
    from crudable.schema import SchemaGraph
    from crudable.templates import TemplateSynthesizer

    synthesizer = TemplateSynthesizer(SchemaGraph(schema))
    text = synthesizer.generate("Organization", "section", max_depth=1)
"""

import logging
from enum import Enum
from html import escape

from crudable.config.models import FieldDefinition
from crudable.schema.graph import SchemaGraph
from crudable.schema.models import ManyToOneRelation, OneToManyRelation
from crudable.templates.renderers import RendererTable

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 1
INDENT = "  "


class TemplateContext(str, Enum):
    """Wrapper markup emitted around the rows container."""

    SECTION = "section"
    PAGE = "page"


class _Lines:
    """Indented line buffer; joined only once generation succeeded."""

    def __init__(self) -> None:
        self.lines: list[str] = []

    def add(self, level: int, text: str) -> None:
        self.lines.append(f"{INDENT * level}{text}")

    def text(self) -> str:
        return "\n".join(self.lines) + "\n"


class TemplateSynthesizer:
    """Generate Mustache templates for the tables of one schema snapshot.

    Args:
        graph: Relation graph over the schema.
        renderers: Renderer table (default: built-in patterns merged with
            the schema's ``renderer`` overrides).
    """

    def __init__(self, graph: SchemaGraph, renderers: RendererTable | None = None) -> None:
        self.graph = graph
        self.renderers = renderers or RendererTable(graph.schema.renderer)

    def generate(
        self,
        table_name: str,
        context: TemplateContext | str = TemplateContext.SECTION,
        max_depth: int = DEFAULT_MAX_DEPTH,
        include_one_to_many: bool = True,
    ) -> str:
        """Generate the template for *table_name*.

        Args:
            table_name: Exact table name.
            context: ``"section"`` or ``"page"``; only changes the wrapper.
            max_depth: Levels of nested N:1 expansion (0 = no expansion).
            include_one_to_many: Emit the 1:N relation tables.

        Returns:
            Template text.  Byte-identical for identical inputs.

        Raises:
            UnknownTableError: If the table is not in the schema.
            SchemaIntegrityError: If relation derivation fails.
            ValueError: If *context* or *max_depth* is invalid.
        """
        context = TemplateContext(context)
        if max_depth < 0:
            raise ValueError(f"max_depth must be >= 0, got {max_depth}")

        relations = self.graph.relations_of(table_name)
        table = self.graph.table(table_name)
        pk = self.graph.primary_key(table_name)
        out = _Lines()

        level = 0
        if context is TemplateContext.PAGE:
            out.add(0, '<div class="page {{slug}}" data-id="{{id}}" data-table="Page">')
            out.add(1, "<h1>{{name}}</h1>")
            out.add(1, "{{#description}}<p class=\"description\">{{description}}</p>{{/description}}")
            out.add(1, "{{#sections}}")
            out.add(1, '<section class="section {{slug}}" data-id="{{id}}" data-table="Section">')
            out.add(2, "<h2>{{name}}</h2>")
            out.add(2, "{{#description}}<p class=\"description\">{{description}}</p>{{/description}}")
            level = 2

        label = escape(table.label or table_name)
        out.add(level, f'<div class="rows" data-table="{table_name}" data-label="{label}">')
        out.add(level, "{{#rows}}")
        out.add(level + 1, f'<article class="row" data-id="{{{{{pk}}}}}">')

        for field_name, field_def in self.graph.fields(table_name).items():
            if field_name == pk or self.graph.is_system_field(field_name) or field_def.is_calculated:
                continue
            relation = relations.relations_n1.get(field_name)
            if relation is not None and max_depth > 0:
                self._many_to_one_block(out, level + 2, relation, field_def, max_depth)
            else:
                self._field_block(out, level + 2, field_name, field_def)

        if include_one_to_many:
            for relation in relations.relations_1n.values():
                self._one_to_many_block(out, level + 2, relation, max_depth)

        out.add(level + 1, "</article>")
        out.add(level, "{{/rows}}")
        out.add(level, "</div>")

        if context is TemplateContext.PAGE:
            out.add(1, "</section>")
            out.add(1, "{{/sections}}")
            out.add(0, "</div>")

        logger.debug(
            f"Generated {context.value} template for {table_name} "
            f"(max_depth={max_depth}, {len(out.lines)} lines)"
        )
        return out.text()

    # ------------------------------------------------------------------
    # Blocks
    # ------------------------------------------------------------------

    def _field_block(self, out: _Lines, level: int, field_name: str, field_def: FieldDefinition) -> None:
        markup, guarded = self.renderers.wrap(field_name, field_def)
        label = escape(field_def.label or field_name)
        if guarded:
            out.add(level, f"{{{{#{field_name}}}}}")
        out.add(level, f'<div data-field="{field_name}">')
        out.add(level + 1, f'<div class="label">{label}</div>')
        out.add(level + 1, f'<div class="value">{markup}</div>')
        out.add(level, "</div>")
        if guarded:
            out.add(level, f"{{{{/{field_name}}}}}")

    def _many_to_one_block(
        self,
        out: _Lines,
        level: int,
        relation: ManyToOneRelation,
        field_def: FieldDefinition,
        depth: int,
    ) -> None:
        """Labeled sub-block for an N:1 field, consuming one level of *depth*."""
        target = relation.target_table
        target_fields = self.graph.fields(target)
        target_relations = self.graph.relations_of(target).relations_n1
        display = self._shown_display_fields(target)
        remaining = depth - 1
        name = relation.field_name

        out.add(level, f'<div data-field="{name}">')
        out.add(level + 1, f'<div class="label">{escape(field_def.label or name)}</div>')
        out.add(level + 1, f'<div data-field="{name}" class="relation manyToOne" data-relation="{target}">')
        out.add(level + 1, f"{{{{#{name}}}}}")

        for display_name in display:
            nested = target_relations.get(display_name)
            if nested is not None and remaining > 0:
                self._many_to_one_block(out, level + 2, nested, target_fields[display_name], remaining)
            else:
                self._field_block(out, level + 2, display_name, target_fields[display_name])

        if remaining > 0:
            for nested_name, nested in target_relations.items():
                if nested_name in display:
                    continue
                self._many_to_one_block(out, level + 2, nested, target_fields[nested_name], remaining)

        out.add(level + 1, f"{{{{/{name}}}}}")
        out.add(level + 1, "</div>")
        out.add(level, "</div>")

    def _one_to_many_block(self, out: _Lines, level: int, relation: OneToManyRelation, max_depth: int) -> None:
        related = relation.related_table
        related_fields = self.graph.fields(related)
        related_pk = self.graph.primary_key(related)
        related_n1 = self.graph.relations_of(related).relations_n1
        array = relation.array_name

        columns = [
            (name, field_def)
            for name, field_def in related_fields.items()
            if name != related_pk
            and not field_def.is_relation
            and not field_def.is_calculated
            and not self.graph.is_system_field(name)
        ]
        # N:1 columns of the related table stop at its display fields
        relation_columns = list(related_n1.values()) if max_depth > 0 else []

        out.add(level, f'<div class="relation oneToMany {array}" data-relation="{related}">')
        out.add(level + 1, f"<h4>{escape(array)}</h4>")
        out.add(level + 1, "<table>")
        out.add(level + 2, "<thead>")
        out.add(level + 3, "<tr>")
        for name, field_def in columns:
            out.add(level + 4, f"<th>{escape(field_def.label or name)}</th>")
        for nested in relation_columns:
            out.add(level + 4, f"<th>{escape(related_fields[nested.field_name].label or nested.field_name)}</th>")
        out.add(level + 3, "</tr>")
        out.add(level + 2, "</thead>")
        out.add(level + 2, "<tbody>")
        out.add(level + 2, f"{{{{#{array}}}}}")
        out.add(level + 3, f'<tr data-id="{{{{{related_pk}}}}}">')
        for name, field_def in columns:
            out.add(level + 4, f'<td data-field="{name}">{self._inline_value(name, field_def)}</td>')
        for nested in relation_columns:
            out.add(level + 4, self._inline_relation(nested))
        out.add(level + 3, "</tr>")
        out.add(level + 2, f"{{{{/{array}}}}}")
        out.add(level + 2, "</tbody>")
        out.add(level + 1, "</table>")
        out.add(level, "</div>")

    def _inline_value(self, field_name: str, field_def: FieldDefinition) -> str:
        markup, guarded = self.renderers.wrap(field_name, field_def)
        if guarded:
            return f"{{{{#{field_name}}}}}{markup}{{{{/{field_name}}}}}"
        return markup

    def _inline_relation(self, relation: ManyToOneRelation) -> str:
        """Table cell showing the display fields of an N:1 target, one level only."""
        target = relation.target_table
        target_fields = self.graph.fields(target)
        parts = []
        for display_name in self._shown_display_fields(target):
            field_def = target_fields[display_name]
            if field_def.is_relation:
                parts.append(f"{{{{#{display_name}}}}}{{{{{display_name}}}}}{{{{/{display_name}}}}}")
            else:
                parts.append(self._inline_value(display_name, field_def))
        name = relation.field_name
        return (
            f'<td data-field="{name}" class="relation manyToOne" data-relation="{target}">'
            f"{{{{#{name}}}}}{' '.join(parts)}{{{{/{name}}}}}</td>"
        )

    def _shown_display_fields(self, table_name: str) -> list[str]:
        fields = self.graph.fields(table_name)
        return [name for name in self.graph.display_fields(table_name) if not fields[name].is_calculated]
