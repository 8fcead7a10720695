"""Binding provider: resolves and memoizes state and transition bindings.

A provider serves one (states, transitions, owner type) combination. Each
identifier moves through ``uncached -> resolving -> cached`` exactly once;
a binding whose roles could not all be adapted is still cached, with the
failed roles left unbound.

Two cache layers are kept:

- the member catalog (intermediate; dropped by ``clear_intermediate_cache``)
- the state and transition binding maps (kept for the provider's lifetime)

The provider does no locking. Concurrent first population from several
threads is a data race; call ``warm_up()`` once, then read concurrently.
"""
from __future__ import annotations

import inspect
import logging
from enum import Enum
from typing import Any, Callable, Dict, Optional, Tuple, Type, Union

from statebinding.core.config.conventions import StateMachineConventions, get_default_conventions
from statebinding.core.config.definition import Identifier, MachineDefinition, coerce_identifier
from statebinding.core.exceptions import (
    BindingFrozenError,
    ConfigurationError,
    TransitionConfigurationError,
)

from .adapter import Diagnostic, HandlerAdapter
from .catalog import MemberCatalog, MemberScope
from .models import (
    HandlerRole,
    MemberKind,
    StateBinding,
    StateChange,
    TransitionBinding,
)
from .resolver import HandlerShape, MemberHandle, MethodResolver, method_shape

logger = logging.getLogger(__name__)

TransitionInfoProvider = Callable[[Enum], Any]


class BindingProvider:
    def __init__(
        self,
        definition: MachineDefinition,
        owner_type: type,
        *,
        conventions: Optional[StateMachineConventions] = None,
        scope: MemberScope = MemberScope.DEFAULT,
        context_type: type = StateChange,
        transition_info: Optional[TransitionInfoProvider] = None,
    ) -> None:
        """Create a provider with empty caches.

        Args:
            definition: Transition endpoints and state markers.
            owner_type: Class whose members implement the handlers.
            conventions: Role prefixes; defaults to the process-wide conventions.
            scope: Member visibility considered for binding.
            context_type: Type accepted by single-parameter handlers.
            transition_info: Supplies the opaque ``info`` of a transition.
                Defaults to the ``info`` recorded in the definition.
        """
        self.definition = definition
        self.owner_type = owner_type
        self.conventions = conventions if conventions is not None else get_default_conventions()
        self.context_type = context_type
        self._transition_info = transition_info

        self.catalog = MemberCatalog(owner_type, scope)
        self.resolver = MethodResolver(self.catalog, context_type)
        self.adapter = HandlerAdapter()

        self._states: Dict[str, StateBinding] = {}
        self._transitions: Dict[str, TransitionBinding] = {}
        self._registered: Dict[Tuple[str, HandlerRole], MemberHandle] = {}

    @property
    def states(self) -> Type[Enum]:
        return self.definition.states

    @property
    def transitions(self) -> Type[Enum]:
        return self.definition.transitions

    @property
    def key(self) -> Tuple[Type[Enum], Type[Enum], type]:
        return (self.states, self.transitions, self.owner_type)

    @property
    def diagnostics(self) -> Tuple[Diagnostic, ...]:
        return self.adapter.diagnostics

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------
    def get_state_binding(self, state: Identifier) -> StateBinding:
        member = coerce_identifier(self.states, state)
        cached = self._states.get(member.name)
        if cached is not None:
            return cached

        logger.debug("Resolving state binding %s.%s", self.states.__name__, member.name)
        if not self.definition.has_state_marker(member):
            logger.debug("State %s has no marker; continuing", member.name)

        binding = StateBinding(
            member,
            can_enter=self._guard(member.name, HandlerRole.CAN_ENTER_STATE),
            can_leave=self._guard(member.name, HandlerRole.CAN_LEAVE_STATE),
            on_entering=self._notification(member.name, HandlerRole.ENTERING_STATE),
            on_leaving=self._notification(member.name, HandlerRole.LEAVING_STATE),
        )
        self._states[member.name] = binding
        return binding

    def get_transition_binding(self, transition: Identifier) -> TransitionBinding:
        """Return the binding for ``transition``, building it on first use.

        Raises:
            TransitionConfigurationError: If the definition has no From/To
                entry for the transition. Nothing is cached in that case.
            UnknownIdentifierError: If ``transition`` is not a member of the
                transition enum.
        """
        member = coerce_identifier(self.transitions, transition)
        cached = self._transitions.get(member.name)
        if cached is not None:
            return cached

        spec = self.definition.transition_spec(member)
        if spec is None:
            raise TransitionConfigurationError(
                f"Transition {self.transitions.__name__}.{member.name} has no From/To definition",
                context={"transition": member.name, "enum": self.transitions.__name__},
            )

        logger.debug("Resolving transition binding %s.%s", self.transitions.__name__, member.name)
        from_binding = self.get_state_binding(spec.from_state) if spec.from_state is not None else None
        to_binding = self.get_state_binding(spec.to_state) if spec.to_state is not None else None

        info = self._transition_info(member) if self._transition_info is not None else spec.info
        binding = TransitionBinding(
            member,
            info=info,
            can_transition=self._guard(member.name, HandlerRole.CAN_TRANSITION),
            on_transitioning=self._notification(member.name, HandlerRole.ON_TRANSITION),
            from_=from_binding,
            to=to_binding,
        )
        self._transitions[member.name] = binding
        return binding

    def clear_intermediate_cache(self) -> None:
        """Drop the member catalog. Cached bindings stay valid."""
        self.catalog.clear()

    def warm_up(self) -> int:
        """Resolve every state and every defined transition.

        Returns:
            Number of bindings built by this call.
        """
        before = len(self._states) + len(self._transitions)
        for state in self.states:
            self.get_state_binding(state)
        for transition in self.definition.defined_transitions():
            self.get_transition_binding(transition)
        built = len(self._states) + len(self._transitions) - before
        logger.debug("Warm-up built %d bindings for %s", built, self.owner_type.__qualname__)
        return built

    def cached_states(self) -> Tuple[StateBinding, ...]:
        return tuple(self._states.values())

    def cached_transitions(self) -> Tuple[TransitionBinding, ...]:
        return tuple(self._transitions.values())

    # ------------------------------------------------------------------
    # Explicit registration
    # ------------------------------------------------------------------
    def register_handler(
        self,
        identifier: Identifier,
        role: HandlerRole,
        handler: Union[str, Callable[..., Any]],
    ) -> None:
        """Pin a role to a specific handler, bypassing the naming conventions.

        ``handler`` is either an owner member name or a callable taking
        ``(owner)`` or ``(owner, context)``.

        Raises:
            BindingFrozenError: If the identifier's binding is already cached.
            ConfigurationError: If a member name is not found on the owner.
        """
        if role.is_state_role:
            member = coerce_identifier(self.states, identifier)
            frozen = member.name in self._states
        else:
            member = coerce_identifier(self.transitions, identifier)
            frozen = member.name in self._transitions
        if frozen:
            raise BindingFrozenError(
                f"Binding for {member.name} is already cached; register handlers before first lookup",
                context={"identifier": member.name, "role": role.config_key},
            )
        self._registered[(member.name, role)] = self._registration_handle(handler, role)

    def _registration_handle(self, handler: Union[str, Callable[..., Any]], role: HandlerRole) -> MemberHandle:
        if isinstance(handler, str):
            func = self.catalog.get_method(handler)
            if func is not None:
                return MemberHandle(handler, MemberKind.METHOD, func, self.resolver.shape_of(func))
            if role.member_kinds & MemberKind.PROPERTY and self.catalog.get_property(handler) is not None:
                return MemberHandle(handler, MemberKind.PROPERTY, self.catalog.get_property(handler), HandlerShape.NO_ARGS)
            raise ConfigurationError(
                f"{self.owner_type.__qualname__} has no member {handler!r} usable for {role.config_key}",
                context={"member": handler, "role": role.config_key},
            )
        if not callable(handler):
            raise TypeError("handler must be callable or a member name")
        name = getattr(handler, "__name__", repr(handler))
        shape = method_shape(handler, self.context_type) if _takes_owner(handler) else HandlerShape.UNSUPPORTED
        return MemberHandle(name, MemberKind.METHOD, handler, shape, on_owner=False)

    # ------------------------------------------------------------------
    # Role resolution
    # ------------------------------------------------------------------
    def _locate(self, identifier_name: str, role: HandlerRole) -> Optional[MemberHandle]:
        registered = self._registered.get((identifier_name, role))
        if registered is not None:
            return registered
        return self.resolver.resolve(
            self.conventions.candidate_names(role, identifier_name),
            member_kinds=role.member_kinds,
        )

    def _guard(self, identifier_name: str, role: HandlerRole):
        handle = self._locate(identifier_name, role)
        return self.adapter.guard(handle, identifier=identifier_name, role=role)

    def _notification(self, identifier_name: str, role: HandlerRole):
        handle = self._locate(identifier_name, role)
        return self.adapter.notification(handle, identifier=identifier_name, role=role)

    def __repr__(self) -> str:
        return (
            f"BindingProvider(states={self.states.__name__}, transitions={self.transitions.__name__}, "
            f"owner={self.owner_type.__qualname__})"
        )


def _takes_owner(handler: Callable[..., Any]) -> bool:
    try:
        params = inspect.signature(handler).parameters
    except (TypeError, ValueError):
        return False
    return len(params) >= 1


__all__ = ["BindingProvider", "TransitionInfoProvider"]
