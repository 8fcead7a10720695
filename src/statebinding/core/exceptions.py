from __future__ import annotations

from typing import Any, Dict, Mapping


class StateBindingError(Exception):
    """Base exception for statebinding."""

    context: Dict[str, Any]

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        super().__init__(message)
        if context is not None:
            # Store a shallow copy to avoid accidental mutation.
            self.context = dict(context)
        else:
            self.context = {}

    def to_json_error(self) -> Dict[str, Any]:
        """Return a JSON-serializable error payload."""
        return {
            "message": str(self),
            "code": self.__class__.__name__,
            "context": self.context,
        }


class ConfigurationError(StateBindingError, ValueError):
    """Raised when machine configuration is missing or malformed."""

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        StateBindingError.__init__(self, message, context=context)
        ValueError.__init__(self, message)


class TransitionConfigurationError(ConfigurationError):
    """Raised when a transition has no From/To definition."""


class DefinitionError(ConfigurationError):
    """Raised when a machine definition references unknown identifiers."""


class ConventionsError(ConfigurationError):
    """Raised when naming conventions cannot be loaded."""


class SchemaValidationError(ConfigurationError):
    """Raised when a YAML payload fails JSON schema validation."""


class UnknownIdentifierError(StateBindingError, LookupError):
    """Raised when an identifier is not a member of the configured enum."""

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        StateBindingError.__init__(self, message, context=context)
        LookupError.__init__(self, message)


class BindingFrozenError(StateBindingError, RuntimeError):
    """Raised when a handler is registered for an already cached binding."""

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        StateBindingError.__init__(self, message, context=context)
        RuntimeError.__init__(self, message)


__all__ = [
    "StateBindingError",
    "ConfigurationError",
    "TransitionConfigurationError",
    "DefinitionError",
    "ConventionsError",
    "SchemaValidationError",
    "UnknownIdentifierError",
    "BindingFrozenError",
]
