from types import SimpleNamespace

import pytest

from LearningManagementApp.core.errors import DomainValidationError, InvalidStateTransition
from LearningManagementApp.core.state_machine import StateMachine, Transition


def refuse_without_flag(obj, now):
    if not obj.ready:
        raise DomainValidationError("not ready")


def stamp(obj, now):
    obj.stamped_at = now


MACHINE = StateMachine(
    "Door",
    ["open", "closed", "locked"],
    [
        Transition("open", "closed", effect=stamp),
        Transition("closed", "open"),
        Transition("closed", "locked", guard=refuse_without_flag),
    ],
)


def test_apply_runs_effect_and_sets_status():
    door = SimpleNamespace(status="open", stamped_at=None, ready=True)
    MACHINE.apply(door, "closed")
    assert door.status == "closed"
    assert door.stamped_at is not None


def test_unlisted_pair_refused():
    door = SimpleNamespace(status="open", ready=True)
    with pytest.raises(InvalidStateTransition) as exc:
        MACHINE.apply(door, "locked")
    assert "from open to locked" in str(exc.value.detail)
    assert door.status == "open"


def test_self_transition_refused_unless_listed():
    door = SimpleNamespace(status="closed", ready=True)
    with pytest.raises(InvalidStateTransition) as exc:
        MACHINE.apply(door, "closed")
    assert "already closed" in str(exc.value.detail)


def test_guard_failure_leaves_state_untouched():
    door = SimpleNamespace(status="closed", ready=False)
    with pytest.raises(DomainValidationError):
        MACHINE.apply(door, "locked")
    assert door.status == "closed"


def test_allowed_targets_and_can():
    assert MACHINE.allowed_targets("closed") == ["locked", "open"]
    assert MACHINE.can("open", "closed")
    assert not MACHINE.can("locked", "open")


def test_unknown_state_in_table_rejected():
    with pytest.raises(ValueError):
        StateMachine("Broken", ["a"], [Transition("a", "b")])
