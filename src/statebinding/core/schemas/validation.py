"""Schema validation for YAML configuration payloads.

Conventions and machine definitions are validated with JSON Schema. Schemas
are stored as YAML files under ``statebinding.data/schemas/``.
"""
from __future__ import annotations

from typing import Any, Dict, List

import jsonschema
from jsonschema import Draft202012Validator

from statebinding.core.exceptions import SchemaValidationError
from statebinding.data import get_data_path, read_yaml


def load_schema(schema_name: str) -> Dict[str, Any]:
    """Load a bundled schema by name.

    Automatically appends ``.schema.yaml`` if no extension is present.

    Raises:
        FileNotFoundError: If the schema file doesn't exist.
        ValueError: If the schema is not a YAML mapping.
    """
    lowered = schema_name.lower()
    if not (lowered.endswith(".yaml") or lowered.endswith(".yml")):
        schema_name = f"{schema_name}.schema.yaml"

    path = get_data_path("schemas", schema_name)
    if not path.exists():
        raise FileNotFoundError(f"Schema not found: {schema_name} (searched {path.parent})")

    schema = read_yaml("schemas", schema_name)
    if not isinstance(schema, dict):
        raise ValueError(f"Schema must be a YAML mapping, got {type(schema).__name__}")
    return schema


def iter_errors(payload: Any, schema_name: str) -> List[str]:
    """Return readable validation messages (empty if valid)."""
    validator = Draft202012Validator(load_schema(schema_name))
    errors: List[str] = []
    for error in sorted(validator.iter_errors(payload), key=lambda e: str(e.path)):
        if error.path:
            path_str = ".".join(str(p) for p in error.path)
            errors.append(f"{path_str}: {error.message}")
        else:
            errors.append(error.message)
    return errors


def validate_payload(payload: Any, schema_name: str, *, source: str | None = None) -> None:
    """Validate a payload against a bundled JSON schema.

    Raises:
        SchemaValidationError: If validation fails.
    """
    try:
        jsonschema.validate(instance=payload, schema=load_schema(schema_name))
    except jsonschema.ValidationError as exc:
        details = iter_errors(payload, schema_name) or [exc.message]
        raise SchemaValidationError(
            f"Validation failed against schema '{schema_name}': {'; '.join(details)}",
            context={"schema": schema_name, "source": source, "errors": details},
        ) from exc


__all__ = [
    "load_schema",
    "iter_errors",
    "validate_payload",
    "SchemaValidationError",
]
