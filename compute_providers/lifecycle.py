"""Instance lifecycle state machine.

The machine is a plain table of transitions. Automatic transitions model
state changes the remote system makes on its own after an earlier action
completes; they are never offered to users as actions.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

START = "start"
PENDING = "pending"
STOPPED = "stopped"
RUNNING = "running"
SHUTTING_DOWN = "shutting_down"
FINISH = "finish"

STATES = (START, PENDING, STOPPED, RUNNING, SHUTTING_DOWN, FINISH)


@dataclass(frozen=True)
class Transition:
    source: str
    target: str
    trigger: str | None = None
    automatic: bool = False


class StateMachine:
    """Lookup over an ordered list of transitions."""

    def __init__(self, transitions: Iterable[Transition]):
        self.transitions = tuple(transitions)
        for t in self.transitions:
            if t.automatic == (t.trigger is not None):
                raise ValueError(
                    f"Transition {t.source}->{t.target} must have either a trigger "
                    f"or be automatic, not both"
                )

    @property
    def states(self) -> list[str]:
        seen: list[str] = []
        for t in self.transitions:
            for state in (t.source, t.target):
                if state not in seen:
                    seen.append(state)
        return seen

    def actions_for(self, state: str | None) -> list[str]:
        """User-invocable triggers leaving ``state``, in table order."""
        if not state:
            return []
        state = state.lower()
        actions: list[str] = []
        for t in self.transitions:
            if t.source == state and not t.automatic and t.trigger not in actions:
                actions.append(t.trigger)
        return actions

    def target_of(self, state: str, trigger: str) -> str | None:
        state = state.lower()
        for t in self.transitions:
            if t.source == state and t.trigger == trigger:
                return t.target
        return None


DEFAULT_INSTANCE_STATES = StateMachine([
    Transition(START, PENDING, trigger="create"),
    Transition(PENDING, STOPPED, automatic=True),
    Transition(STOPPED, RUNNING, trigger="start"),
    Transition(RUNNING, RUNNING, trigger="reboot"),
    Transition(RUNNING, SHUTTING_DOWN, trigger="stop"),
    Transition(SHUTTING_DOWN, STOPPED, automatic=True),
    Transition(STOPPED, FINISH, trigger="destroy"),
])
