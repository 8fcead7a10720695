"""Convention-based binding of owner members to state machine handlers.

- `models.py`: binding descriptors, roles and the tri-state guard outcome
- `catalog.py`: per-owner-type member index
- `resolver.py`: prefix lookup with signature-shape filtering
- `adapter.py`: wraps members into notification and guard handlers
- `provider.py`: memoizing binding provider
- `defaults.py`: process-wide default providers
"""

from .models import (
    STATE_ROLES,
    TRANSITION_ROLES,
    GuardOutcome,
    HandlerRole,
    MemberKind,
    StateBinding,
    StateChange,
    TransitionBinding,
)
from .catalog import MemberCatalog, MemberScope
from .resolver import ELIGIBLE_SHAPES, HandlerShape, MemberHandle, MethodResolver
from .adapter import Diagnostic, HandlerAdapter
from .provider import BindingProvider
from .defaults import get_default_provider, reset_default_providers, set_default_provider

__all__ = [
    "STATE_ROLES",
    "TRANSITION_ROLES",
    "GuardOutcome",
    "HandlerRole",
    "MemberKind",
    "StateBinding",
    "StateChange",
    "TransitionBinding",
    "MemberCatalog",
    "MemberScope",
    "ELIGIBLE_SHAPES",
    "HandlerShape",
    "MemberHandle",
    "MethodResolver",
    "Diagnostic",
    "HandlerAdapter",
    "BindingProvider",
    "get_default_provider",
    "reset_default_providers",
    "set_default_provider",
]
