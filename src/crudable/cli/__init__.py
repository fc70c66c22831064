"""CLI module for schema-driven template generation.

Provides commands to generate Mustache templates from the table schema,
inspect relation graphs, and load a record with its relation payload.

Usage:
    crudable generate Organization
    crudable generate Page page --depth 2
    crudable relations Person
    crudable tables
    CRUDABLE_DATABASE_URL=postgresql://... crudable show Organization 1

Commands:
    generate   - Generate and save the template of a table
    relations  - Show N:1 and 1:N relations of a table
    tables     - List tables with field and relation counts
    show       - Load one record with its relations and print it as JSON
"""

import argparse
import asyncio
import json
import os
import sys
from collections.abc import Mapping
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.table import Table
from sqlalchemy.exc import SQLAlchemyError

from crudable.adapters.postgres import AsyncPostgresAdapter
from crudable.config.loader import load_schema
from crudable.errors import CrudableError
from crudable.payload.loader import RelationPayloadLoader
from crudable.projection.view import project
from crudable.schema.graph import SchemaGraph
from crudable.schema.models import RelationGraph
from crudable.templates.synthesizer import DEFAULT_MAX_DEPTH, TemplateContext, TemplateSynthesizer

console = Console()

DEFAULT_TEMPLATES_DIR = "templates"


# ============================================================================
# Helpers
# ============================================================================


def _load_graph(args: argparse.Namespace) -> SchemaGraph:
    """Load the schema selected by ``--schema`` / environment into a graph.

    Raises:
        FileNotFoundError: If the schema file doesn't exist.
        ValueError: If the schema file cannot be parsed.
    """
    env_prefix = getattr(args, "env_prefix", "")
    schema_path = getattr(args, "schema", None)
    return SchemaGraph(load_schema(Path(schema_path) if schema_path else None, env_prefix=env_prefix))


def _resolve_table(graph: SchemaGraph, name: str) -> str:
    """Exact table name for *name*, ignoring case; unknown names pass through unchanged."""
    return graph.find_table(name) or name


def _resolve_out_dir(args: argparse.Namespace) -> Path:
    """Output directory: ``--out-dir``, then ``{prefix}CRUDABLE_TEMPLATES_DIR``, then ``templates/``."""
    if getattr(args, "out_dir", None):
        return Path(args.out_dir)
    env_prefix = getattr(args, "env_prefix", "")
    return Path(os.environ.get(f"{env_prefix}CRUDABLE_TEMPLATES_DIR") or DEFAULT_TEMPLATES_DIR)


def _print_relations(relations: RelationGraph) -> None:
    if relations.relations_n1:
        table = Table(title="Relations N:1 (Many-to-One)", show_header=True, header_style="bold")
        table.add_column("Field")
        table.add_column("Target")
        table.add_column("Foreign key")
        for rel in relations.relations_n1.values():
            table.add_row(rel.field_name, rel.target_table, rel.foreign_key)
        console.print(table)
    else:
        console.print("Relations N:1 (Many-to-One): [dim]none[/dim]")

    if relations.relations_1n:
        table = Table(title="Relations 1:N (One-to-Many)", show_header=True, header_style="bold")
        table.add_column("Array")
        table.add_column("Via")
        table.add_column("Strength")
        for rel in relations.relations_1n.values():
            table.add_row(
                rel.array_name,
                f"{rel.related_table}.{rel.field_name}",
                rel.relationship_strength,
            )
        console.print(table)
    else:
        console.print("Relations 1:N (One-to-Many): [dim]none[/dim]")


def _print_error(error: Exception) -> None:
    console.print(f"[red]Error: {escape(str(error))}[/red]")


async def _check_connection(adapter: AsyncPostgresAdapter) -> bool:
    """Run the adapter's ``SELECT 1`` check, reporting a failed connection."""
    try:
        if await adapter.test_connection():
            return True
        error = "unexpected SELECT 1 result"
    except (SQLAlchemyError, OSError) as e:
        error = str(e)
    console.print(f"[bold red]Error:[/bold red] Connection failed: {escape(error)}")
    return False


def _parse_key(raw: str) -> int | str:
    return int(raw) if raw.isdigit() else raw


def _json_default(value):
    if isinstance(value, Mapping):
        return dict(value)
    return str(value)


# ============================================================================
# Async command implementations
# ============================================================================


async def _async_show(args: argparse.Namespace) -> int:
    """Async implementation for show command.

    Returns:
        0 on success, 1 on failure.
    """
    env_prefix = getattr(args, "env_prefix", "")
    database_url = args.database_url or os.environ.get(f"{env_prefix}CRUDABLE_DATABASE_URL")
    if not database_url:
        console.print(
            f"[red]Error: no database URL. Pass --database-url or set {env_prefix}CRUDABLE_DATABASE_URL.[/red]"
        )
        return 1

    try:
        graph = _load_graph(args)
        adapter = AsyncPostgresAdapter(database_url)
    except (FileNotFoundError, SQLAlchemyError, ValueError) as e:
        _print_error(e)
        return 1

    table_name = _resolve_table(graph, args.table)
    relations = [r.strip() for r in args.relations.split(",") if r.strip()] if args.relations else None

    try:
        if not await _check_connection(adapter):
            return 1
        loader = RelationPayloadLoader(graph, adapter)
        row = await loader.load(table_name, _parse_key(args.key), relations=relations)
    except (CrudableError, SQLAlchemyError, OSError, ValueError) as e:
        _print_error(e)
        return 1
    finally:
        await adapter.close()

    if row is None:
        console.print(f"[yellow]{table_name} {args.key} not found.[/yellow]")
        return 1

    view = project(row, graph.schema.relation_container_key)
    console.print_json(json.dumps(view, default=_json_default))
    return 0


# ============================================================================
# Command handlers
# ============================================================================


def cmd_generate(args: argparse.Namespace) -> int:
    """Generate, print and save the template of a table.

    Args:
        args: Parsed CLI arguments.

    Returns:
        0 on success, 1 on any generation failure.
    """
    try:
        graph = _load_graph(args)
        table_name = _resolve_table(graph, args.table)
        synthesizer = TemplateSynthesizer(graph)
        console.print(
            f"Generating template for [bold cyan]{table_name}[/bold cyan] "
            f"(context: {args.context}, depth: {args.depth})",
            style="dim",
        )
        template = synthesizer.generate(
            table_name,
            args.context,
            max_depth=args.depth,
            include_one_to_many=not args.no_one_to_many,
        )
        relations = graph.relations_of(table_name)
    except (CrudableError, FileNotFoundError, ValueError) as e:
        _print_error(e)
        return 1

    console.print(template, markup=False, highlight=False, emoji=False, soft_wrap=True)

    out_dir = _resolve_out_dir(args)
    out_file = out_dir / f"{table_name}.mustache"
    try:
        out_dir.mkdir(parents=True, exist_ok=True)
        out_file.write_text(template, encoding="utf-8")
    except OSError as e:
        console.print(f"[red]Error: could not write {out_file}: {e}[/red]")
        return 1
    console.print(f"[green]Template saved to {out_file}[/green]")

    _print_relations(relations)
    return 0


def cmd_relations(args: argparse.Namespace) -> int:
    """Show N:1 and 1:N relations of a table.

    Returns:
        0 on success, 1 on failure.
    """
    try:
        graph = _load_graph(args)
        relations = graph.relations_of(_resolve_table(graph, args.table))
    except (CrudableError, FileNotFoundError, ValueError) as e:
        _print_error(e)
        return 1

    _print_relations(relations)
    return 0


def cmd_tables(args: argparse.Namespace) -> int:
    """List tables with their field and relation counts.

    Returns:
        0 on success, 1 on failure.
    """
    try:
        graph = _load_graph(args)
        table = Table(title="Tables", show_header=True, header_style="bold")
        table.add_column("Table")
        table.add_column("Fields", justify="right")
        table.add_column("N:1", justify="right")
        table.add_column("1:N", justify="right")
        for name in graph.table_names():
            relations = graph.relations_of(name)
            table.add_row(
                name,
                str(len(graph.fields(name))),
                str(len(relations.relations_n1)),
                str(len(relations.relations_1n)),
            )
    except (CrudableError, FileNotFoundError, ValueError) as e:
        _print_error(e)
        return 1

    console.print(table)
    return 0


def cmd_show(args: argparse.Namespace) -> int:
    """Load one record with its relations and print it as JSON.

    Wraps the async implementation with ``asyncio.run()``.

    Returns:
        0 on success, 1 on failure.
    """
    return asyncio.run(_async_show(args))


# ============================================================================
# Main entry point
# ============================================================================


def main() -> int:
    """Main CLI entry point.

    Parses command line arguments and dispatches to appropriate handler.

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    parser = argparse.ArgumentParser(
        prog="crudable",
        description="Schema-driven relation graphs and Mustache template generation",
    )

    parser.add_argument(
        "--schema",
        default=None,
        help="Path to the schema file (.toml or .json; default: schema.toml or CRUDABLE_SCHEMA)",
    )
    parser.add_argument(
        "--env-prefix",
        default="",
        help=(
            "Prefix for environment variable lookup "
            "(e.g., --env-prefix APP_ reads APP_CRUDABLE_SCHEMA)"
        ),
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # generate command
    p_generate = subparsers.add_parser(
        "generate",
        help="Generate and save the template of a table",
    )
    p_generate.add_argument("table", help="Table name")
    p_generate.add_argument(
        "context",
        nargs="?",
        default=TemplateContext.SECTION.value,
        choices=[c.value for c in TemplateContext],
        help="Wrapper context (default: section)",
    )
    p_generate.add_argument(
        "--depth",
        type=int,
        default=DEFAULT_MAX_DEPTH,
        help=f"Levels of nested N:1 expansion (default: {DEFAULT_MAX_DEPTH})",
    )
    p_generate.add_argument(
        "--no-one-to-many",
        action="store_true",
        help="Skip the 1:N relation tables",
    )
    p_generate.add_argument(
        "--out-dir",
        default=None,
        help="Directory for <Table>.mustache (default: templates/ or CRUDABLE_TEMPLATES_DIR)",
    )
    p_generate.set_defaults(func=cmd_generate)

    # relations command
    p_relations = subparsers.add_parser(
        "relations",
        help="Show N:1 and 1:N relations of a table",
    )
    p_relations.add_argument("table", help="Table name")
    p_relations.set_defaults(func=cmd_relations)

    # tables command
    p_tables = subparsers.add_parser(
        "tables",
        help="List tables with field and relation counts",
    )
    p_tables.set_defaults(func=cmd_tables)

    # show command
    p_show = subparsers.add_parser(
        "show",
        help="Load one record with its relations and print it as JSON",
    )
    p_show.add_argument("table", help="Table name")
    p_show.add_argument("key", help="Primary key value")
    p_show.add_argument(
        "--relations",
        default=None,
        help="Comma-separated relation names (default: every N:1 and Strong 1:N)",
    )
    p_show.add_argument(
        "--database-url",
        default=None,
        help="PostgreSQL URL (default: CRUDABLE_DATABASE_URL)",
    )
    p_show.set_defaults(func=cmd_show)

    args = parser.parse_args()
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
