"""Tests for the instance lifecycle state machine."""

import pytest

from compute_providers.lifecycle import (
    DEFAULT_INSTANCE_STATES,
    STATES,
    StateMachine,
    Transition,
)


@pytest.mark.parametrize("state,expected", [
    pytest.param("start", {"create"}, id="start"),
    pytest.param("pending", set(), id="pending"),
    pytest.param("stopped", {"start", "destroy"}, id="stopped"),
    pytest.param("running", {"reboot", "stop"}, id="running"),
    pytest.param("shutting_down", set(), id="shutting_down"),
    pytest.param("finish", set(), id="finish"),
])
def test_actions_for_each_state(state, expected):
    assert set(DEFAULT_INSTANCE_STATES.actions_for(state)) == expected


def test_actions_keep_table_order():
    assert DEFAULT_INSTANCE_STATES.actions_for("running") == ["reboot", "stop"]
    assert DEFAULT_INSTANCE_STATES.actions_for("stopped") == ["start", "destroy"]


def test_uniform_states_are_accepted():
    assert DEFAULT_INSTANCE_STATES.actions_for("RUNNING") == ["reboot", "stop"]
    assert DEFAULT_INSTANCE_STATES.actions_for("PENDING") == []


@pytest.mark.parametrize("state", ["suspended", "", None])
def test_unknown_states_have_no_actions(state):
    assert DEFAULT_INSTANCE_STATES.actions_for(state) == []


def test_automatic_transitions_are_never_offered():
    automatic = [t for t in DEFAULT_INSTANCE_STATES.transitions if t.automatic]
    assert {(t.source, t.target) for t in automatic} == {
        ("pending", "stopped"),
        ("shutting_down", "stopped"),
    }
    for t in automatic:
        assert None not in DEFAULT_INSTANCE_STATES.actions_for(t.source)


def test_every_state_appears_in_the_table():
    assert set(DEFAULT_INSTANCE_STATES.states) == set(STATES)


def test_target_of():
    assert DEFAULT_INSTANCE_STATES.target_of("running", "reboot") == "running"
    assert DEFAULT_INSTANCE_STATES.target_of("running", "stop") == "shutting_down"
    assert DEFAULT_INSTANCE_STATES.target_of("stopped", "reboot") is None


@pytest.mark.parametrize("transition", [
    pytest.param(Transition("a", "b"), id="neither"),
    pytest.param(Transition("a", "b", trigger="go", automatic=True), id="both"),
])
def test_transition_needs_trigger_or_automatic(transition):
    with pytest.raises(ValueError):
        StateMachine([transition])
