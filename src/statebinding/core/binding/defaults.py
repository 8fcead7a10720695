"""Process-wide default providers, one per (states, transitions, owner) triple.

The defaults are a convenience for callers that do not want to thread a
provider through their code; any provider can be constructed and passed
explicitly instead.
"""
from __future__ import annotations

import logging
from enum import Enum
from typing import Dict, Optional, Tuple, Type

from statebinding.core.config.conventions import get_default_conventions, set_default_conventions
from statebinding.core.config.definition import MachineDefinition

from .provider import BindingProvider

logger = logging.getLogger(__name__)

_ProviderKey = Tuple[Type[Enum], Type[Enum], type]

_providers: Dict[_ProviderKey, BindingProvider] = {}


def get_default_provider(definition: MachineDefinition, owner_type: type) -> BindingProvider:
    """Return the default provider for the triple, creating it on first use."""
    key: _ProviderKey = (definition.states, definition.transitions, owner_type)
    provider = _providers.get(key)
    if provider is None:
        provider = BindingProvider(definition, owner_type)
        _providers[key] = provider
        logger.debug("Created default %r", provider)
    return provider


def set_default_provider(provider: BindingProvider) -> Optional[BindingProvider]:
    """Install ``provider`` as the default for its triple.

    Returns:
        The provider previously installed for that triple, if any.
    """
    previous = _providers.get(provider.key)
    _providers[provider.key] = provider
    return previous


def reset_default_providers() -> None:
    _providers.clear()


__all__ = [
    "get_default_provider",
    "set_default_provider",
    "reset_default_providers",
    "get_default_conventions",
    "set_default_conventions",
]
