"""
statebinding data resource helpers.

Provides utilities for accessing the bundled convention defaults and
JSON schemas using importlib.resources.
"""

from __future__ import annotations

from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Any

import yaml


def get_data_path(subpackage: str, filename: str = "") -> Path:
    """
    Get absolute path to a data file or directory.

    Args:
        subpackage: Name of the data subpackage (e.g., "config", "schemas")
        filename: Optional filename within the subpackage

    Returns:
        Absolute path to the file or directory

    Example:
        >>> get_data_path("config", "conventions.yaml")
        PosixPath('/path/to/statebinding/data/config/conventions.yaml')
    """
    pkg = resources.files("statebinding.data")
    base = Path(str(pkg / subpackage))
    return base / filename if filename else base


@lru_cache(maxsize=16)
def read_yaml(subpackage: str, filename: str) -> dict[str, Any]:
    """
    Read and parse a bundled YAML data file (cached).

    Callers must not mutate the returned mapping.
    """
    path = get_data_path(subpackage, filename)
    return yaml.safe_load(path.read_text(encoding="utf-8"))


__all__ = ["get_data_path", "read_yaml"]
