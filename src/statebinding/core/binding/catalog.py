"""Per-owner-type index of candidate handler members.

The catalog walks the owner's MRO once per epoch and splits the surviving
attributes into two name-keyed indexes: instance methods and readable
properties. ``clear()`` ends the epoch; the next lookup rebuilds.
"""
from __future__ import annotations

import enum
import functools
import inspect
import logging
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class MemberScope(enum.Flag):
    """Visibility of members considered for binding."""

    NONE = 0
    PUBLIC = 1
    NON_PUBLIC = 2
    DEFAULT = PUBLIC | NON_PUBLIC

    def admits(self, name: str) -> bool:
        if name.startswith("__") and name.endswith("__"):
            return False
        if name.startswith("_"):
            return bool(self & MemberScope.NON_PUBLIC)
        return bool(self & MemberScope.PUBLIC)


def is_readable_property(attr: Any) -> bool:
    if isinstance(attr, property):
        return attr.fget is not None
    return isinstance(attr, functools.cached_property)


class MemberCatalog:
    """Lazily built method and property indexes for one owner type."""

    def __init__(self, owner_type: type, scope: MemberScope = MemberScope.DEFAULT) -> None:
        if not isinstance(owner_type, type):
            raise TypeError(f"owner_type must be a class, got {owner_type!r}")
        self.owner_type = owner_type
        self.scope = scope
        self._methods: Optional[Dict[str, Any]] = None
        self._properties: Optional[Dict[str, Any]] = None
        self.build_count = 0

    @property
    def is_built(self) -> bool:
        return self._methods is not None

    @property
    def methods(self) -> Dict[str, Any]:
        if self._methods is None:
            self._build()
        assert self._methods is not None
        return self._methods

    @property
    def properties(self) -> Dict[str, Any]:
        if self._properties is None:
            self._build()
        assert self._properties is not None
        return self._properties

    def get_method(self, name: str) -> Optional[Any]:
        return self.methods.get(name)

    def get_property(self, name: str) -> Optional[Any]:
        return self.properties.get(name)

    def clear(self) -> None:
        self._methods = None
        self._properties = None

    def _build(self) -> None:
        # Later classes in the reversed MRO override earlier ones, so a
        # subclass property shadows a base-class method of the same name.
        surface: Dict[str, Any] = {}
        for cls in reversed(inspect.getmro(self.owner_type)):
            if cls is object:
                continue
            for name, attr in vars(cls).items():
                if self.scope.admits(name):
                    surface[name] = attr

        methods: Dict[str, Any] = {}
        properties: Dict[str, Any] = {}
        for name, attr in surface.items():
            if inspect.isfunction(attr):
                methods[name] = attr
            elif is_readable_property(attr):
                properties[name] = attr

        self._methods = methods
        self._properties = properties
        self.build_count += 1
        logger.debug(
            "Built member catalog for %s: %d methods, %d properties",
            self.owner_type.__qualname__,
            len(methods),
            len(properties),
        )


__all__ = ["MemberScope", "MemberCatalog", "is_readable_property"]
