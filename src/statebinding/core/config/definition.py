"""Explicit machine definition: transition endpoints and state markers.

The definition is supplied when a provider is constructed instead of being
discovered on the identifier declarations. It can be built in code or loaded
from YAML::

    machine:
      states:
        Idle: {}
        Active: {}
      transitions:
        Activate: {from: Idle, to: Active}
        Reset: {to: Idle, info: {label: "Reset"}}
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, Iterable, Mapping, Optional, Type, Union

import yaml

from statebinding.core.exceptions import DefinitionError, UnknownIdentifierError
from statebinding.core.schemas.validation import validate_payload

logger = logging.getLogger(__name__)

Identifier = Union[Enum, str]


def coerce_identifier(enum_type: Type[Enum], value: Identifier) -> Enum:
    """Return the member of ``enum_type`` named by ``value``.

    Members are matched by their stable ``.name``; a member of a different
    enum with the same name is rejected.
    """
    if isinstance(value, enum_type):
        return value
    if isinstance(value, Enum):
        raise UnknownIdentifierError(
            f"{value!r} is not a member of {enum_type.__name__}",
            context={"enum": enum_type.__name__, "identifier": value.name},
        )
    try:
        return enum_type[str(value)]
    except KeyError:
        raise UnknownIdentifierError(
            f"{enum_type.__name__} has no member named {value!r}",
            context={"enum": enum_type.__name__, "identifier": str(value)},
        ) from None


@dataclass(frozen=True)
class TransitionSpec:
    """From/To endpoints of a transition; either may be absent."""

    from_state: Optional[Enum] = None
    to_state: Optional[Enum] = None
    info: Any = None


@dataclass(frozen=True)
class MachineDefinition:
    states: Type[Enum]
    transitions: Type[Enum]
    transition_specs: Mapping[str, TransitionSpec] = field(default_factory=dict)
    state_markers: FrozenSet[str] = frozenset()

    def __post_init__(self) -> None:
        for enum_type, label in ((self.states, "states"), (self.transitions, "transitions")):
            if not (isinstance(enum_type, type) and issubclass(enum_type, Enum)):
                raise DefinitionError(
                    f"{label} must be an Enum subclass, got {enum_type!r}",
                    context={"field": label},
                )
        for name, spec in self.transition_specs.items():
            self._check_member(self.transitions, name, "transition")
            for endpoint in (spec.from_state, spec.to_state):
                if endpoint is not None and not isinstance(endpoint, self.states):
                    raise DefinitionError(
                        f"Transition {name!r} endpoint {endpoint!r} is not a {self.states.__name__} member",
                        context={"transition": name},
                    )
        for name in self.state_markers:
            self._check_member(self.states, name, "state")
        object.__setattr__(self, "transition_specs", MappingProxyType(dict(self.transition_specs)))
        object.__setattr__(self, "state_markers", frozenset(self.state_markers))

    @staticmethod
    def _check_member(enum_type: Type[Enum], name: str, kind: str) -> None:
        if name not in enum_type.__members__:
            raise DefinitionError(
                f"Unknown {kind} {name!r} for {enum_type.__name__}",
                context={kind: name, "enum": enum_type.__name__},
            )

    @classmethod
    def build(
        cls,
        states: Type[Enum],
        transitions: Type[Enum],
        transition_specs: Optional[Mapping[Identifier, Any]] = None,
        *,
        markers: Iterable[Identifier] = (),
    ) -> "MachineDefinition":
        """Build a definition from loose values.

        Each transition value may be a ``TransitionSpec``, a ``(from, to)``
        pair, or a mapping with ``from``/``to``/``info`` keys. Endpoints may be
        state members or state names.
        """
        specs: Dict[str, TransitionSpec] = {}
        for key, value in (transition_specs or {}).items():
            name = _member_name(transitions, key)
            specs[name] = _coerce_spec(states, name, value)
        marker_names = frozenset(_member_name(states, m) for m in markers)
        return cls(states, transitions, specs, marker_names)

    def transition_spec(self, transition: Identifier) -> Optional[TransitionSpec]:
        member = coerce_identifier(self.transitions, transition)
        return self.transition_specs.get(member.name)

    def has_state_marker(self, state: Identifier) -> bool:
        return coerce_identifier(self.states, state).name in self.state_markers

    def defined_transitions(self) -> tuple:
        return tuple(self.transitions[name] for name in self.transition_specs)


def _member_name(enum_type: Type[Enum], value: Identifier) -> str:
    try:
        return coerce_identifier(enum_type, value).name
    except UnknownIdentifierError as exc:
        raise DefinitionError(str(exc), context=exc.context) from exc


def _endpoint(states: Type[Enum], transition: str, value: Any) -> Optional[Enum]:
    if value is None:
        return None
    try:
        return coerce_identifier(states, value)
    except UnknownIdentifierError as exc:
        raise DefinitionError(
            f"Transition {transition!r} references unknown state {value!r}",
            context={"transition": transition, **exc.context},
        ) from exc


def _coerce_spec(states: Type[Enum], transition: str, value: Any) -> TransitionSpec:
    if isinstance(value, TransitionSpec):
        return TransitionSpec(
            _endpoint(states, transition, value.from_state),
            _endpoint(states, transition, value.to_state),
            value.info,
        )
    if isinstance(value, Mapping):
        return TransitionSpec(
            _endpoint(states, transition, value.get("from")),
            _endpoint(states, transition, value.get("to")),
            value.get("info"),
        )
    if isinstance(value, (tuple, list)) and len(value) == 2:
        return TransitionSpec(
            _endpoint(states, transition, value[0]),
            _endpoint(states, transition, value[1]),
        )
    raise DefinitionError(
        f"Unsupported definition for transition {transition!r}: {value!r}",
        context={"transition": transition},
    )


def load_definition(
    path: Union[Path, str],
    states: Type[Enum],
    transitions: Type[Enum],
) -> MachineDefinition:
    """Load and validate a machine definition YAML file.

    Raises:
        DefinitionError: If the file is missing, not YAML, or names unknown identifiers.
        SchemaValidationError: If the payload violates ``machine.schema.yaml``.
    """
    path = Path(path).expanduser()
    if not path.exists():
        raise DefinitionError(f"Machine definition not found: {path}", context={"path": str(path)})
    try:
        payload = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise DefinitionError(
            f"Invalid YAML in machine definition {path}: {exc}", context={"path": str(path)}
        ) from exc

    validate_payload(payload, "machine", source=str(path))
    machine = payload["machine"]
    definition = MachineDefinition.build(
        states,
        transitions,
        machine.get("transitions") or {},
        markers=(machine.get("states") or {}).keys(),
    )
    logger.debug(
        "Loaded machine definition from %s: %d transitions, %d state markers",
        path,
        len(definition.transition_specs),
        len(definition.state_markers),
    )
    return definition


__all__ = [
    "Identifier",
    "TransitionSpec",
    "MachineDefinition",
    "coerce_identifier",
    "load_definition",
]
