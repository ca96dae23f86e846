"""Load an API schema file from disk.

Reads the JSON document and hands it to schema.parse_schema.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from .errors import SchemaError
from .schema import Schema, parse_schema


def load_raw_schema(path: Path | str) -> dict[str, Any]:
    """Read the schema JSON, raising SchemaError if it cannot be parsed."""
    schema_file = Path(path)
    try:
        with open(schema_file, encoding="utf-8") as f:
            data = json.load(f)
    except OSError as e:
        raise SchemaError(f"Failed to load API schema '{schema_file}': {e}") from e
    except json.JSONDecodeError as e:
        raise SchemaError(f"Failed to load API schema '{schema_file}', invalid JSON: {e}") from e

    if not isinstance(data, dict):
        raise SchemaError("API schema must be a JSON object.")
    return data


def load_schema(path: Path | str) -> Schema:
    """Load and validate a schema file."""
    return parse_schema(load_raw_schema(path))
