"""Schema file loading.

Reads a TOML or JSON schema file once into an immutable
``SchemaDefinition``.  Callers pass the result to ``SchemaGraph``; there
is no module-level schema state.
"""

import json
import os
import tomllib
from pathlib import Path

from pydantic import ValidationError

from crudable.config.models import SchemaDefinition
from crudable.errors import SchemaIntegrityError

DEFAULT_SCHEMA_FILE = "schema.toml"


def resolve_schema_path(config_path: Path | None = None, env_prefix: str = "") -> Path:
    """Resolve which schema file to load.

    Priority:
    1. Explicit *config_path*
    2. ``{env_prefix}CRUDABLE_SCHEMA`` environment variable
    3. ``schema.toml`` in the current working directory

    Args:
        config_path: Explicit path, used as-is when given.
        env_prefix: Prefix for the environment variable lookup
            (e.g. ``"APP_"`` reads ``APP_CRUDABLE_SCHEMA``).

    Returns:
        Path to the schema file (not checked for existence).
    """
    if config_path is not None:
        return Path(config_path)

    env_path = os.environ.get(f"{env_prefix}CRUDABLE_SCHEMA")
    if env_path:
        return Path(env_path)

    return Path.cwd() / DEFAULT_SCHEMA_FILE


def parse_schema(data: dict) -> SchemaDefinition:
    """Validate raw schema data into a ``SchemaDefinition``.

    Args:
        data: Mapping with a top-level ``tables`` key, as read from a
            schema file.

    Returns:
        Frozen ``SchemaDefinition``.

    Raises:
        SchemaIntegrityError: If the data does not match the schema model.
    """
    try:
        return SchemaDefinition.model_validate(data)
    except ValidationError as e:
        raise SchemaIntegrityError(f"Invalid schema definition:\n{e}") from e


def load_schema(config_path: Path | None = None, env_prefix: str = "") -> SchemaDefinition:
    """Load a table-definition set from a TOML or JSON file.

    Args:
        config_path: Path to the schema file (default: see
            ``resolve_schema_path``).
        env_prefix: Prefix for environment variable lookup.

    Returns:
        SchemaDefinition with all tables

    Raises:
        FileNotFoundError: If the schema file doesn't exist
        ValueError: If the file extension is unsupported or the file
            cannot be parsed
        SchemaIntegrityError: If the parsed data is not a valid schema
    """
    path = resolve_schema_path(config_path, env_prefix=env_prefix)

    if not path.exists():
        raise FileNotFoundError(
            f"Schema file not found: {path}\n"
            f"Pass --schema or set {env_prefix}CRUDABLE_SCHEMA."
        )

    suffix = path.suffix.lower()
    try:
        if suffix == ".toml":
            with open(path, "rb") as f:
                data = tomllib.load(f)
        elif suffix == ".json":
            data = json.loads(path.read_text(encoding="utf-8"))
        else:
            raise ValueError(f"Unsupported schema file type '{suffix}' (expected .toml or .json)")
    except (tomllib.TOMLDecodeError, json.JSONDecodeError) as e:
        raise ValueError(f"Could not parse {path.name}: {e}") from e

    if not isinstance(data, dict) or "tables" not in data:
        raise ValueError(f"{path.name} has no top-level 'tables' mapping")

    return parse_schema(data)
