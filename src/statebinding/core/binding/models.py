"""Binding descriptors and the value types shared by the resolver stack.

Bindings are immutable. A transition executor reads them to gate
(``can_enter`` / ``can_leave`` / ``can_transition``) and notify
(``on_entering`` / ``on_leaving`` / ``on_transitioning``) around a transition.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, Flag
from typing import Any, Callable, Optional, Tuple

# Canonical handler shapes: (owner, context) -> ...
NotificationHandler = Callable[[Any, Any], None]
GuardHandler = Callable[[Any, Any], "GuardOutcome"]


class MemberKind(Flag):
    NONE = 0
    METHOD = 1
    PROPERTY = 2
    ANY = METHOD | PROPERTY


class HandlerRole(Enum):
    """Handler roles an owner member can be bound to.

    The value is the stable configuration key used in convention files.
    """

    CAN_ENTER_STATE = "can_enter_state"
    CAN_LEAVE_STATE = "can_leave_state"
    ENTERING_STATE = "entering_state"
    LEAVING_STATE = "leaving_state"
    CAN_TRANSITION = "can_transition"
    ON_TRANSITION = "on_transition"

    @property
    def config_key(self) -> str:
        return self.value

    @property
    def is_guard(self) -> bool:
        return self in _GUARD_ROLES

    @property
    def member_kinds(self) -> MemberKind:
        # Transition notifications only bind to methods.
        if self is HandlerRole.ON_TRANSITION:
            return MemberKind.METHOD
        return MemberKind.ANY

    @property
    def is_state_role(self) -> bool:
        return self in STATE_ROLES

    @classmethod
    def from_key(cls, key: str) -> "HandlerRole":
        for role in cls:
            if role.value == key or role.name == key:
                return role
        raise ValueError(f"Unknown handler role: {key!r}")


_GUARD_ROLES = frozenset(
    {HandlerRole.CAN_ENTER_STATE, HandlerRole.CAN_LEAVE_STATE, HandlerRole.CAN_TRANSITION}
)

STATE_ROLES: Tuple[HandlerRole, ...] = (
    HandlerRole.CAN_ENTER_STATE,
    HandlerRole.CAN_LEAVE_STATE,
    HandlerRole.ENTERING_STATE,
    HandlerRole.LEAVING_STATE,
)
TRANSITION_ROLES: Tuple[HandlerRole, ...] = (
    HandlerRole.CAN_TRANSITION,
    HandlerRole.ON_TRANSITION,
)


class GuardOutcome(Enum):
    """Tri-state result of a guard handler."""

    ALLOW = "allow"
    DENY = "deny"
    UNCONSTRAINED = "unconstrained"

    @classmethod
    def from_result(cls, value: Any) -> "GuardOutcome":
        """Map a member's return value to an outcome.

        Booleans carry an opinion, as do zero-dimensional boolean scalars
        such as ``numpy.bool_``. Anything else (including None and truthy
        non-booleans like ``1``) is unconstrained.
        """
        if value is True:
            return cls.ALLOW
        if value is False:
            return cls.DENY
        if _is_bool_scalar(value):
            return cls.ALLOW if bool(value) else cls.DENY
        return cls.UNCONSTRAINED

    @property
    def is_denied(self) -> bool:
        return self is GuardOutcome.DENY


@dataclass(frozen=True)
class StateChange:
    """Default context passed to single-parameter handlers.

    Executors may pass any subclass; the binding layer never reads it.
    """

    transition: Optional[Enum] = None
    from_state: Optional[Enum] = None
    to_state: Optional[Enum] = None


@dataclass(frozen=True)
class StateBinding:
    state: Enum
    can_enter: Optional[GuardHandler] = None
    can_leave: Optional[GuardHandler] = None
    on_entering: Optional[NotificationHandler] = None
    on_leaving: Optional[NotificationHandler] = None

    def check_can_enter(self, owner: Any, context: Any = None) -> GuardOutcome:
        return _check(self.can_enter, owner, context)

    def check_can_leave(self, owner: Any, context: Any = None) -> GuardOutcome:
        return _check(self.can_leave, owner, context)

    def notify_entering(self, owner: Any, context: Any = None) -> None:
        if self.on_entering is not None:
            self.on_entering(owner, context)

    def notify_leaving(self, owner: Any, context: Any = None) -> None:
        if self.on_leaving is not None:
            self.on_leaving(owner, context)

    def bound_roles(self) -> Tuple[HandlerRole, ...]:
        handlers = (self.can_enter, self.can_leave, self.on_entering, self.on_leaving)
        return tuple(role for role, h in zip(STATE_ROLES, handlers) if h is not None)


@dataclass(frozen=True)
class TransitionBinding:
    transition: Enum
    info: Any = None
    can_transition: Optional[GuardHandler] = None
    on_transitioning: Optional[NotificationHandler] = None
    from_: Optional[StateBinding] = None
    to: Optional[StateBinding] = None

    def check_can_transition(self, owner: Any, context: Any = None) -> GuardOutcome:
        return _check(self.can_transition, owner, context)

    def notify_transitioning(self, owner: Any, context: Any = None) -> None:
        if self.on_transitioning is not None:
            self.on_transitioning(owner, context)

    def bound_roles(self) -> Tuple[HandlerRole, ...]:
        handlers = (self.can_transition, self.on_transitioning)
        return tuple(role for role, h in zip(TRANSITION_ROLES, handlers) if h is not None)


def _check(guard: Optional[GuardHandler], owner: Any, context: Any) -> GuardOutcome:
    if guard is None:
        return GuardOutcome.UNCONSTRAINED
    return guard(owner, context)


def _is_bool_scalar(value: Any) -> bool:
    # numpy.bool_ and friends, detected without importing numpy.
    dtype = getattr(value, "dtype", None)
    return getattr(dtype, "kind", None) == "b" and getattr(value, "shape", None) == ()


__all__ = [
    "MemberKind",
    "HandlerRole",
    "STATE_ROLES",
    "TRANSITION_ROLES",
    "GuardOutcome",
    "StateChange",
    "StateBinding",
    "TransitionBinding",
    "NotificationHandler",
    "GuardHandler",
]
