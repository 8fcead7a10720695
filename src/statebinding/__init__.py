"""
statebinding - convention-based handler bindings for state machines

Resolves an owner type's guard predicates and notification callbacks for each
state and transition identifier, and caches them as immutable bindings that a
transition executor consumes.
"""

__version__ = "1.0.0"

from statebinding.core.binding import (
    BindingProvider,
    GuardOutcome,
    HandlerRole,
    StateBinding,
    StateChange,
    TransitionBinding,
    get_default_provider,
    set_default_provider,
)
from statebinding.core.config import (
    MachineDefinition,
    StateMachineConventions,
    TransitionSpec,
    load_conventions,
    load_definition,
)

__all__ = [
    "__version__",
    "BindingProvider",
    "GuardOutcome",
    "HandlerRole",
    "StateBinding",
    "StateChange",
    "TransitionBinding",
    "get_default_provider",
    "set_default_provider",
    "MachineDefinition",
    "StateMachineConventions",
    "TransitionSpec",
    "load_conventions",
    "load_definition",
]
