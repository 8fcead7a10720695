"""Locate owner members by convention prefix and filter them by signature shape."""
from __future__ import annotations

import enum
import inspect
import logging
import types
import typing
from dataclasses import dataclass
from typing import Any, FrozenSet, Iterable, Optional

from .catalog import MemberCatalog
from .models import MemberKind

logger = logging.getLogger(__name__)


class HandlerShape(enum.Enum):
    NO_ARGS = "no_args"
    CONTEXT = "context"
    UNSUPPORTED = "unsupported"


ELIGIBLE_SHAPES: FrozenSet[HandlerShape] = frozenset({HandlerShape.NO_ARGS, HandlerShape.CONTEXT})


@dataclass(frozen=True)
class MemberHandle:
    """A located handler.

    ``on_owner`` is False for standalone callables registered explicitly;
    those are called with the owner as first argument instead of being
    looked up on the instance.
    """

    name: str
    kind: MemberKind
    member: Any
    shape: HandlerShape
    on_owner: bool = True


def _annotation_matches(annotation: Any, context_type: type) -> bool:
    if annotation is inspect.Parameter.empty:
        return True
    if isinstance(annotation, str):
        # Unresolvable forward reference: compare by class name.
        bare = annotation.strip("'\"").rsplit(".", 1)[-1]
        return any(bare == base.__name__ for base in context_type.__mro__)
    if typing.get_origin(annotation) in (typing.Union, types.UnionType):
        args = [a for a in typing.get_args(annotation) if a is not type(None)]
        return len(args) == 1 and _annotation_matches(args[0], context_type)
    # The handler must accept whatever the provider passes in.
    return isinstance(annotation, type) and issubclass(context_type, annotation)


def method_shape(func: Any, context_type: type) -> HandlerShape:
    """Classify an instance method by the parameters it takes after ``self``."""
    try:
        sig = inspect.signature(func)
    except (TypeError, ValueError):
        return HandlerShape.UNSUPPORTED

    params = list(sig.parameters.values())[1:]
    if not params:
        return HandlerShape.NO_ARGS
    if len(params) != 1:
        return HandlerShape.UNSUPPORTED

    param = params[0]
    if param.kind not in (
        inspect.Parameter.POSITIONAL_ONLY,
        inspect.Parameter.POSITIONAL_OR_KEYWORD,
    ):
        return HandlerShape.UNSUPPORTED

    annotation = param.annotation
    if isinstance(annotation, str):
        try:
            annotation = typing.get_type_hints(func).get(param.name, annotation)
        except (NameError, TypeError, AttributeError):
            # Local or missing names; fall back to matching by class name.
            pass
    return HandlerShape.CONTEXT if _annotation_matches(annotation, context_type) else HandlerShape.UNSUPPORTED


class MethodResolver:
    """Resolve ``prefix + identifier`` names against a member catalog.

    Methods are searched across the whole prefix list before any property is
    considered. Candidates whose shape is not allowed are skipped.
    """

    def __init__(self, catalog: MemberCatalog, context_type: type) -> None:
        self.catalog = catalog
        self.context_type = context_type

    def shape_of(self, func: Any) -> HandlerShape:
        return method_shape(func, self.context_type)

    def resolve(
        self,
        candidate_names: Iterable[str],
        *,
        member_kinds: MemberKind = MemberKind.ANY,
        allowed_shapes: Optional[FrozenSet[HandlerShape]] = ELIGIBLE_SHAPES,
    ) -> Optional[MemberHandle]:
        """Return the first eligible member, or None when the role is unbound.

        Args:
            candidate_names: ``prefix + identifier`` names in priority order.
            member_kinds: Member kinds the role may bind to.
            allowed_shapes: Method shapes to accept; None disables filtering.
        """
        names = tuple(candidate_names)

        if member_kinds & MemberKind.METHOD:
            for name in names:
                func = self.catalog.get_method(name)
                if func is None:
                    continue
                shape = self.shape_of(func)
                if allowed_shapes is not None and shape not in allowed_shapes:
                    logger.debug(
                        "Skipping %s.%s: %s signature",
                        self.catalog.owner_type.__qualname__,
                        name,
                        shape.value,
                    )
                    continue
                return MemberHandle(name, MemberKind.METHOD, func, shape)

        if member_kinds & MemberKind.PROPERTY:
            for name in names:
                prop = self.catalog.get_property(name)
                if prop is not None:
                    return MemberHandle(name, MemberKind.PROPERTY, prop, HandlerShape.NO_ARGS)

        return None


__all__ = [
    "HandlerShape",
    "ELIGIBLE_SHAPES",
    "MemberHandle",
    "MethodResolver",
    "method_shape",
]
