"""Adapt located owner members into the two canonical handler shapes.

- notification: ``(owner, context) -> None``
- guard: ``(owner, context) -> GuardOutcome``

Members that take no arguments are called without the context; members that
take one context parameter receive it. Any other shape yields no handler and
records a diagnostic instead of failing the binding.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Tuple

from .models import GuardHandler, GuardOutcome, HandlerRole, MemberKind, NotificationHandler
from .resolver import HandlerShape, MemberHandle

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Diagnostic:
    """A non-fatal problem found while adapting a member."""

    identifier: str
    role: Optional[HandlerRole]
    member: str
    message: str


class HandlerAdapter:
    def __init__(self) -> None:
        self._diagnostics: List[Diagnostic] = []

    @property
    def diagnostics(self) -> Tuple[Diagnostic, ...]:
        return tuple(self._diagnostics)

    def notification(
        self, handle: Optional[MemberHandle], *, identifier: str = "", role: Optional[HandlerRole] = None
    ) -> Optional[NotificationHandler]:
        invoke = self._invoker(handle, identifier, role)
        if invoke is None:
            return None

        def notify(owner: Any, context: Any) -> None:
            invoke(owner, context)

        notify.__qualname__ = f"notify[{handle.name}]"  # type: ignore[union-attr]
        return notify

    def guard(
        self, handle: Optional[MemberHandle], *, identifier: str = "", role: Optional[HandlerRole] = None
    ) -> Optional[GuardHandler]:
        invoke = self._invoker(handle, identifier, role)
        if invoke is None:
            return None

        def check(owner: Any, context: Any) -> GuardOutcome:
            return GuardOutcome.from_result(invoke(owner, context))

        check.__qualname__ = f"guard[{handle.name}]"  # type: ignore[union-attr]
        return check

    def _invoker(
        self, handle: Optional[MemberHandle], identifier: str, role: Optional[HandlerRole]
    ) -> Optional[Callable[[Any, Any], Any]]:
        if handle is None:
            return None

        name = handle.name
        if handle.kind is MemberKind.PROPERTY:
            return lambda owner, context: getattr(owner, name)

        if handle.on_owner:
            # Look the method up on the instance so subclass overrides run.
            if handle.shape is HandlerShape.NO_ARGS:
                return lambda owner, context: getattr(owner, name)()
            if handle.shape is HandlerShape.CONTEXT:
                return lambda owner, context: getattr(owner, name)(context)
        else:
            func = handle.member
            if handle.shape is HandlerShape.NO_ARGS:
                return lambda owner, context: func(owner)
            if handle.shape is HandlerShape.CONTEXT:
                return lambda owner, context: func(owner, context)

        message = (
            "Unsupported state machine method. Must have zero parameters, "
            f"or one context parameter: {name}"
        )
        logger.warning("[state machine] %s (identifier=%s)", message, identifier or "?")
        self._diagnostics.append(Diagnostic(identifier, role, name, message))
        return None


__all__ = ["Diagnostic", "HandlerAdapter"]
