"""crudable: schema-driven relation graphs, Mustache templates and relation views.

Derives N:1 / 1:N relation graphs from a declarative table schema,
generates logic-less templates for any table, and exposes loaded relation
payloads as ordinary record keys.

Usage:
    from crudable import load_schema, SchemaGraph, TemplateSynthesizer, project
    from crudable import RelationPayloadLoader, AsyncPostgresAdapter
    from crudable import UnknownTableError, SchemaIntegrityError
"""

__version__ = "0.1.0"

# Adapters
from crudable.adapters.base import DatabaseClient
from crudable.adapters.postgres import AsyncPostgresAdapter

# Config
from crudable.config.loader import load_schema, parse_schema
from crudable.config.models import FieldDefinition, SchemaDefinition, TableDefinition

# Errors
from crudable.errors import CrudableError, SchemaIntegrityError, UnknownTableError

# Relation payloads
from crudable.payload.loader import RelationPayloadLoader

# Projection
from crudable.projection.view import ProjectedRecord, project, transform_api_response

# Schema graph
from crudable.schema.graph import SchemaGraph
from crudable.schema.models import ManyToOneRelation, OneToManyRelation, RelationGraph

# Templates
from crudable.templates.synthesizer import TemplateContext, TemplateSynthesizer

__all__ = [
    # Adapters
    "DatabaseClient",
    "AsyncPostgresAdapter",
    # Config
    "load_schema",
    "parse_schema",
    "FieldDefinition",
    "SchemaDefinition",
    "TableDefinition",
    # Errors
    "CrudableError",
    "SchemaIntegrityError",
    "UnknownTableError",
    # Relation payloads
    "RelationPayloadLoader",
    # Projection
    "ProjectedRecord",
    "project",
    "transform_api_response",
    # Schema graph
    "SchemaGraph",
    "ManyToOneRelation",
    "OneToManyRelation",
    "RelationGraph",
    # Templates
    "TemplateContext",
    "TemplateSynthesizer",
]
