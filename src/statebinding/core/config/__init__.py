"""Configuration inputs consumed by the binding provider."""

from .conventions import (
    CONVENTIONS_ENV_VAR,
    StateMachineConventions,
    get_default_conventions,
    load_conventions,
    set_default_conventions,
)
from .definition import (
    MachineDefinition,
    TransitionSpec,
    coerce_identifier,
    load_definition,
)

__all__ = [
    "CONVENTIONS_ENV_VAR",
    "StateMachineConventions",
    "load_conventions",
    "get_default_conventions",
    "set_default_conventions",
    "MachineDefinition",
    "TransitionSpec",
    "coerce_identifier",
    "load_definition",
]
