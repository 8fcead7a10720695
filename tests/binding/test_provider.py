import pytest

from helpers.machines import State, Transition, Workflow

from statebinding.core.binding import (
    BindingProvider,
    GuardOutcome,
    HandlerRole,
    MemberScope,
    StateChange,
)
from statebinding.core.config import StateMachineConventions, get_default_conventions
from statebinding.core.exceptions import (
    BindingFrozenError,
    ConfigurationError,
    TransitionConfigurationError,
    UnknownIdentifierError,
)


def test_state_binding_is_memoized(provider):
    first = provider.get_state_binding(State.Active)
    assert provider.get_state_binding(State.Active) is first
    assert provider.get_state_binding("Active") is first


def test_can_enter_surfaces_allow_and_deny(provider):
    binding = provider.get_state_binding(State.Active)

    assert binding.check_can_enter(Workflow(ready=True)) is GuardOutcome.ALLOW
    assert binding.check_can_enter(Workflow(ready=False)) is GuardOutcome.DENY


def test_unmatched_state_has_all_roles_unbound(provider):
    binding = provider.get_state_binding(State.Idle)

    assert binding.can_enter is None
    assert binding.can_leave is None
    assert binding.on_entering is None
    assert binding.on_leaving is None
    assert binding.bound_roles() == ()
    assert binding.check_can_leave(Workflow()) is GuardOutcome.UNCONSTRAINED
    binding.notify_entering(Workflow())


def test_state_roles_resolved_from_conventions(provider):
    owner = Workflow()
    change = StateChange(Transition.Activate, State.Idle, State.Active)
    binding = provider.get_state_binding(State.Active)

    binding.notify_entering(owner, change)
    assert owner.calls == [("entering", change)]
    # can_leave_Active returns None: no opinion.
    assert binding.check_can_leave(owner, change) is GuardOutcome.UNCONSTRAINED
    # OnLeavingActive takes two arguments and is never selected.
    assert binding.on_leaving is None
    assert binding.bound_roles() == (
        HandlerRole.CAN_ENTER_STATE,
        HandlerRole.CAN_LEAVE_STATE,
        HandlerRole.ENTERING_STATE,
    )


def test_property_fallback_for_state_guard(provider):
    binding = provider.get_state_binding(State.Done)
    assert binding.check_can_enter(Workflow()) is GuardOutcome.DENY


def test_transition_endpoints_share_state_bindings(provider):
    binding = provider.get_transition_binding(Transition.Activate)

    assert binding.from_ is provider.get_state_binding(State.Idle)
    assert binding.to is provider.get_state_binding(State.Active)
    assert provider.get_transition_binding("Activate") is binding


def test_transition_handlers(provider):
    owner = Workflow()
    binding = provider.get_transition_binding(Transition.Activate)

    assert binding.check_can_transition(owner, StateChange()) is GuardOutcome.ALLOW
    assert binding.check_can_transition(owner, None) is GuardOutcome.DENY
    binding.notify_transitioning(owner, StateChange())
    assert owner.calls == ["activate"]


def test_transition_notification_never_binds_to_property(provider):
    binding = provider.get_transition_binding(Transition.Finish)

    assert binding.on_transitioning is None
    # _CanFinish does not match the "Can" prefix.
    assert binding.can_transition is None
    assert binding.info == {"label": "finish"}


def test_transition_with_single_endpoint(provider):
    binding = provider.get_transition_binding(Transition.Reset)

    assert binding.from_ is None
    assert binding.to is provider.get_state_binding(State.Idle)
    assert binding.info is None


def test_undefined_transition_raises_and_is_not_cached(provider):
    with pytest.raises(TransitionConfigurationError) as excinfo:
        provider.get_transition_binding(Transition.Broken)

    assert excinfo.value.context["transition"] == "Broken"
    assert isinstance(excinfo.value, ValueError)
    assert all(b.transition is not Transition.Broken for b in provider.cached_transitions())
    with pytest.raises(TransitionConfigurationError):
        provider.get_transition_binding(Transition.Broken)


def test_unknown_identifiers_raise(provider):
    with pytest.raises(UnknownIdentifierError):
        provider.get_state_binding("Missing")
    with pytest.raises(UnknownIdentifierError):
        provider.get_state_binding(Transition.Activate)
    with pytest.raises(UnknownIdentifierError):
        provider.get_transition_binding(State.Idle)


def test_transition_info_provider_overrides_definition(definition):
    provider = BindingProvider(definition, Workflow, transition_info=lambda t: f"info:{t.name}")

    assert provider.get_transition_binding(Transition.Finish).info == "info:Finish"


def test_clear_intermediate_cache_keeps_bindings(provider):
    state = provider.get_state_binding(State.Active)
    provider.get_state_binding(State.Idle)
    assert provider.catalog.build_count == 1

    provider.clear_intermediate_cache()
    assert not provider.catalog.is_built
    assert provider.get_state_binding(State.Active) is state
    assert provider.catalog.build_count == 1

    provider.get_state_binding(State.Done)
    assert provider.catalog.build_count == 2


def test_custom_conventions_priority(definition):
    class Owner:
        def allow_Active(self):
            return True

        def deny_Active(self):
            return False

    conventions = StateMachineConventions(
        prefixes={HandlerRole.CAN_ENTER_STATE: ("deny_", "allow_")},
    )
    provider = BindingProvider(definition, Owner, conventions=conventions)

    assert provider.get_state_binding(State.Active).check_can_enter(Owner()) is GuardOutcome.DENY


def test_snake_identifier_style(definition):
    class Owner:
        def can_enter_active(self):
            return True

    conventions = StateMachineConventions(
        prefixes={HandlerRole.CAN_ENTER_STATE: ("can_enter_",)},
        identifier_style="snake",
    )
    provider = BindingProvider(definition, Owner, conventions=conventions)

    assert provider.get_state_binding(State.Active).check_can_enter(Owner()) is GuardOutcome.ALLOW


def test_public_scope_ignores_private_members(definition):
    class Owner:
        def _CanActivate(self):
            return False

        def _OnEnteringIdle(self):
            pass

    conventions = StateMachineConventions(
        prefixes={
            HandlerRole.CAN_TRANSITION: ("_Can",),
            HandlerRole.ENTERING_STATE: ("_OnEntering",),
        }
    )
    default_scope = BindingProvider(definition, Owner, conventions=conventions)
    public_scope = BindingProvider(definition, Owner, conventions=conventions, scope=MemberScope.PUBLIC)

    assert default_scope.get_transition_binding(Transition.Activate).can_transition is not None
    assert public_scope.get_transition_binding(Transition.Activate).can_transition is None
    assert public_scope.get_state_binding(State.Idle).on_entering is None


def test_register_handler_overrides_conventions(provider):
    provider.register_handler(State.Active, HandlerRole.CAN_ENTER_STATE, lambda owner: False)
    provider.register_handler("Idle", HandlerRole.ENTERING_STATE, lambda owner, change: owner.calls.append(change))
    provider.register_handler(Transition.Finish, HandlerRole.ON_TRANSITION, "OnActivate")

    owner = Workflow(ready=True)
    assert provider.get_state_binding(State.Active).check_can_enter(owner) is GuardOutcome.DENY
    provider.get_state_binding(State.Idle).notify_entering(owner, "ctx")
    provider.get_transition_binding(Transition.Finish).notify_transitioning(owner)
    assert owner.calls == ["ctx", "activate"]


def test_register_handler_after_lookup_is_rejected(provider):
    provider.get_state_binding(State.Active)

    with pytest.raises(BindingFrozenError):
        provider.register_handler(State.Active, HandlerRole.CAN_ENTER_STATE, lambda owner: True)


def test_register_unknown_member_name(provider):
    with pytest.raises(ConfigurationError):
        provider.register_handler(State.Idle, HandlerRole.CAN_ENTER_STATE, "NoSuchMember")


def test_register_unsupported_callable_is_diagnosed(provider):
    provider.register_handler(State.Idle, HandlerRole.LEAVING_STATE, lambda: None)

    assert provider.get_state_binding(State.Idle).on_leaving is None
    [diagnostic] = provider.diagnostics
    assert diagnostic.identifier == "Idle"
    assert diagnostic.role is HandlerRole.LEAVING_STATE


def test_warm_up_resolves_everything_once(provider):
    assert provider.warm_up() == len(State) + 3
    assert provider.warm_up() == 0
    assert {b.state for b in provider.cached_states()} == set(State)
    assert {b.transition for b in provider.cached_transitions()} == {
        Transition.Activate,
        Transition.Finish,
        Transition.Reset,
    }


def test_handler_exceptions_propagate(definition):
    class Owner:
        def CanEnterActive(self):
            raise LookupError("business failure")

    binding = BindingProvider(definition, Owner).get_state_binding(State.Active)
    with pytest.raises(LookupError, match="business failure"):
        binding.check_can_enter(Owner())


def test_bundled_default_conventions_bind_transition_handlers(definition):
    provider = BindingProvider(definition, Workflow, conventions=get_default_conventions())
    owner = Workflow()

    binding = provider.get_transition_binding(Transition.Activate)
    binding.notify_transitioning(owner, StateChange(Transition.Activate, State.Idle, State.Active))

    assert provider.conventions.prefixes_for(HandlerRole.ON_TRANSITION) == ("On", "on_")
    assert binding.on_transitioning is not None
    assert owner.calls == ["activate"]
    assert provider.diagnostics == ()


def test_subclass_overrides_are_honored(definition):
    class Base:
        def CanEnterActive(self):
            return True

        def OnEnteringActive(self, change: StateChange):
            self.entered = ("base", change)

    class Override(Base):
        def CanEnterActive(self):
            return False

        def OnEnteringActive(self, change: StateChange):
            self.entered = ("override", change)

    binding = BindingProvider(definition, Base).get_state_binding(State.Active)
    owner = Override()
    binding.notify_entering(owner, "ctx")

    assert binding.check_can_enter(Base()) is GuardOutcome.ALLOW
    assert binding.check_can_enter(owner) is GuardOutcome.DENY
    assert owner.entered == ("override", "ctx")


def test_narrower_context_type_binds_base_annotated_handlers(definition):
    class AuditedChange(StateChange):
        pass

    class Owner:
        def CanEnterActive(self, change: StateChange):
            return isinstance(change, AuditedChange)

    provider = BindingProvider(definition, Owner, context_type=AuditedChange)
    binding = provider.get_state_binding(State.Active)

    assert binding.can_enter is not None
    assert binding.check_can_enter(Owner(), AuditedChange()) is GuardOutcome.ALLOW
    assert provider.diagnostics == ()


def test_handler_annotated_with_narrower_type_is_not_bound(definition):
    class AuditedChange(StateChange):
        pass

    class Owner:
        def CanEnterActive(self, change: AuditedChange):
            return True

    binding = BindingProvider(definition, Owner).get_state_binding(State.Active)

    assert binding.can_enter is None
