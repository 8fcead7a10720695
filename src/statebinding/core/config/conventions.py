"""Naming conventions mapping handler roles to ordered member-name prefixes.

Defaults are bundled in ``statebinding/data/config/conventions.yaml``. An
override file (explicit path, or the ``STATEBINDING_CONVENTIONS`` environment
variable) is deep-merged over the defaults and the result is validated against
``schemas/conventions.schema.yaml``.
"""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

import yaml

from statebinding.core.binding.models import HandlerRole
from statebinding.core.exceptions import ConventionsError
from statebinding.core.schemas.validation import validate_payload
from statebinding.core.utils.merge import deep_merge
from statebinding.data import read_yaml

logger = logging.getLogger(__name__)

CONVENTIONS_ENV_VAR = "STATEBINDING_CONVENTIONS"
IDENTIFIER_STYLES = ("preserve", "lower", "snake")

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")


def _snake_case(name: str) -> str:
    return _CAMEL_BOUNDARY.sub("_", name).lower()


@dataclass(frozen=True)
class StateMachineConventions:
    """Ordered name prefixes per handler role; earliest prefix wins."""

    prefixes: Mapping[HandlerRole, Tuple[str, ...]] = field(default_factory=dict)
    identifier_style: str = "preserve"

    def __post_init__(self) -> None:
        if self.identifier_style not in IDENTIFIER_STYLES:
            raise ConventionsError(
                f"Unknown identifier_style {self.identifier_style!r}",
                context={"allowed": list(IDENTIFIER_STYLES)},
            )
        frozen = {role: tuple(self.prefixes.get(role, ())) for role in HandlerRole}
        object.__setattr__(self, "prefixes", MappingProxyType(frozen))

    def prefixes_for(self, role: HandlerRole) -> Tuple[str, ...]:
        return self.prefixes[role]

    def format_identifier(self, name: str) -> str:
        if self.identifier_style == "lower":
            return name.lower()
        if self.identifier_style == "snake":
            return _snake_case(name)
        return name

    def candidate_names(self, role: HandlerRole, identifier_name: str) -> Tuple[str, ...]:
        ident = self.format_identifier(identifier_name)
        return tuple(prefix + ident for prefix in self.prefixes_for(role))

    def with_prefixes(self, role: HandlerRole, prefixes: Iterable[str]) -> "StateMachineConventions":
        updated = dict(self.prefixes)
        updated[role] = tuple(prefixes)
        return StateMachineConventions(prefixes=updated, identifier_style=self.identifier_style)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "StateMachineConventions":
        """Build from the ``conventions`` section of a conventions file."""
        raw_prefixes = data.get("prefixes") or {}
        prefixes: Dict[HandlerRole, Tuple[str, ...]] = {}
        for key, values in raw_prefixes.items():
            try:
                role = HandlerRole.from_key(str(key))
            except ValueError as exc:
                raise ConventionsError(str(exc), context={"role": key}) from exc
            prefixes[role] = tuple(str(v) for v in values or ())
        return cls(
            prefixes=prefixes,
            identifier_style=str(data.get("identifier_style") or "preserve"),
        )

    def to_mapping(self) -> Dict[str, Any]:
        return {
            "identifier_style": self.identifier_style,
            "prefixes": {role.config_key: list(p) for role, p in self.prefixes.items()},
        }


def _read_override(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise ConventionsError(
            f"Conventions file not found: {path}", context={"path": str(path)}
        )
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ConventionsError(
            f"Invalid YAML in conventions file {path}: {exc}", context={"path": str(path)}
        ) from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConventionsError(
            f"Conventions file must be a YAML mapping: {path}", context={"path": str(path)}
        )
    return data


def load_conventions(path: Optional[Path | str] = None) -> StateMachineConventions:
    """Load bundled conventions merged with an optional override file.

    Args:
        path: Override YAML file. When omitted, ``$STATEBINDING_CONVENTIONS``
            is used if set.

    Raises:
        ConventionsError: If the override file is missing or malformed.
        SchemaValidationError: If the merged payload violates the schema.
    """
    payload: Dict[str, Any] = dict(read_yaml("config", "conventions.yaml"))

    if path is None:
        env_path = os.environ.get(CONVENTIONS_ENV_VAR)
        if env_path:
            path = env_path

    source = "bundled"
    if path is not None:
        override_path = Path(path).expanduser()
        payload = deep_merge(payload, _read_override(override_path))
        source = str(override_path)
        logger.debug("Merged conventions override from %s", override_path)

    validate_payload(payload, "conventions", source=source)
    return StateMachineConventions.from_mapping(payload["conventions"])


_default_conventions: Optional[StateMachineConventions] = None


def get_default_conventions() -> StateMachineConventions:
    """Return the process-wide default conventions, loading them on first use."""
    global _default_conventions
    if _default_conventions is None:
        _default_conventions = load_conventions()
    return _default_conventions


def set_default_conventions(conventions: Optional[StateMachineConventions]) -> None:
    """Replace the default conventions; None reloads them on next use.

    Providers capture their conventions at construction, so this only affects
    providers created afterwards.
    """
    global _default_conventions
    _default_conventions = conventions


__all__ = [
    "CONVENTIONS_ENV_VAR",
    "IDENTIFIER_STYLES",
    "StateMachineConventions",
    "load_conventions",
    "get_default_conventions",
    "set_default_conventions",
]
