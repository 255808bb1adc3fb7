"""Fleet summary

Buckets pane activities into available / busy / problem groups and
suggests what to do next. Data only, callers decide how to show it.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import TypedDict

from .types import AgentActivity, AgentState


class ActivitySummaryDict(TypedDict):
    total_agents: int
    by_state: dict[str, int]
    available_agents: list[str]
    busy_agents: list[str]
    problem_agents: list[str]
    summary: str
    suggested_actions: list[str]


@dataclass
class ActivitySummary:
    """Aggregate state across panes"""

    total_agents: int = 0
    by_state: dict[str, int] = field(default_factory=dict)
    available_agents: list[str] = field(default_factory=list)  # WAITING
    busy_agents: list[str] = field(default_factory=list)  # GENERATING, THINKING
    problem_agents: list[str] = field(default_factory=list)  # ERROR, STALLED
    summary: str = ""
    suggested_actions: list[str] = field(default_factory=list)

    def to_dict(self) -> ActivitySummaryDict:
        return {
            "total_agents": self.total_agents,
            "by_state": dict(self.by_state),
            "available_agents": list(self.available_agents),
            "busy_agents": list(self.busy_agents),
            "problem_agents": list(self.problem_agents),
            "summary": self.summary,
            "suggested_actions": list(self.suggested_actions),
        }


def summarize_states(states: dict[str, AgentState]) -> ActivitySummary:
    """Build the summary from pane_id → state, panes in sorted order"""
    result = ActivitySummary(total_agents=len(states))

    for pane_id in sorted(states):
        state = states[pane_id]
        result.by_state[state.value] = result.by_state.get(state.value, 0) + 1
        if state.is_available:
            result.available_agents.append(pane_id)
        elif state.is_busy:
            result.busy_agents.append(pane_id)
        elif state.is_problem:
            result.problem_agents.append(pane_id)

    _fill_hints(result)
    return result


def summarize_activities(activities: Iterable[AgentActivity]) -> ActivitySummary:
    return summarize_states({a.pane_id: a.state for a in activities})


def _fill_hints(result: ActivitySummary) -> None:
    if result.total_agents == 0:
        result.summary = "No agents found"
        result.suggested_actions = ["Spawn agents to start monitoring"]
        return

    available = len(result.available_agents)
    busy = len(result.busy_agents)
    problems = len(result.problem_agents)

    result.summary = (
        f"{result.total_agents} agents: {available} available, {busy} busy, {problems} problems"
    )

    if problems:
        result.suggested_actions.append(
            f"Check error/stalled agents in panes: {', '.join(result.problem_agents)}"
        )
    if available and not busy:
        result.suggested_actions.append("All agents idle - ready for new prompts")
    if busy and not available:
        result.suggested_actions.append("All agents busy - wait for completion")
    if available:
        result.suggested_actions.append(
            f"Send work to available panes: {', '.join(result.available_agents)}"
        )
