"""ActivityPoller tests"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from agentwatch.activity import ActivityMonitor, AgentState, ClassifierConfig, PatternLibrary
from agentwatch.adapters.tmux import TmuxClient
from agentwatch.poller import ActivityPoller
from agentwatch.telemetry import metrics


def _pane(pane_id: str, title: str) -> dict:
    return {
        "pane_id": pane_id,
        "session_name": "work",
        "window_index": 0,
        "pane_index": 0,
        "pane_title": title,
        "current_command": "node",
        "active": False,
    }


@pytest.fixture
def monitor():
    return ActivityMonitor(ClassifierConfig(pattern_library=PatternLibrary()))


@pytest.fixture
def client():
    """TmuxClient double with canned panes and captures"""
    mock = MagicMock(spec=TmuxClient)
    mock.list_panes = AsyncMock(return_value=[
        _pane("%1", "✳ Claude Code"),
        _pane("%2", "codex"),
        _pane("%3", "zsh"),
    ])
    captures = {
        "%1": "\x1b[1mclaude\x1b[0m>  \n\n",
        "%2": "Traceback\npanic: runtime error\n",
        "%3": "$ ",
    }
    mock.capture_pane = AsyncMock(side_effect=lambda pane_id, lines: captures.get(pane_id))
    return mock


class TestPollOnce:
    """Single capture round"""

    @pytest.mark.asyncio
    async def test_classifies_agent_panes(self, monitor, client):
        poller = ActivityPoller(monitor, client)

        activities = await poller.poll_once(now=100.0)

        assert set(activities) == {"%1", "%2"}
        assert activities["%1"].state == AgentState.WAITING
        assert activities["%1"].agent_type == "claude"
        assert activities["%1"].trigger == "claude_prompt"
        assert activities["%2"].state == AgentState.ERROR
        assert metrics.get_counter("poller.rounds") == 1

    @pytest.mark.asyncio
    async def test_excluded_panes_not_captured(self, monitor, client):
        poller = ActivityPoller(monitor, client)
        await poller.poll_once(now=100.0)

        captured = [call.args[0] for call in client.capture_pane.call_args_list]
        assert "%3" not in captured
        assert monitor.get("%3") is None

    @pytest.mark.asyncio
    async def test_custom_exclusions(self, monitor, client):
        poller = ActivityPoller(monitor, client, exclude_agent_types={"codex"})
        activities = await poller.poll_once(now=100.0)
        assert set(activities) == {"%1", "%3"}

    @pytest.mark.asyncio
    async def test_capture_lines_passed(self, monitor, client):
        poller = ActivityPoller(monitor, client, capture_lines=120)
        await poller.poll_once(now=100.0)
        assert client.capture_pane.call_args.kwargs["lines"] == 120

    @pytest.mark.asyncio
    async def test_failed_capture_skips_pane(self, monitor, client):
        poller = ActivityPoller(monitor, client)
        await poller.poll_once(now=100.0)
        before = monitor.get("%1").velocity_tracker.sample_count()

        client.capture_pane.side_effect = lambda pane_id, lines: None
        activities = await poller.poll_once(now=102.0)

        assert activities == {}
        assert metrics.get_counter("poller.capture_failed") == 2
        # Still listed, so the classifier is kept but not fed
        assert monitor.get("%1").velocity_tracker.sample_count() == before

    @pytest.mark.asyncio
    async def test_vanished_panes_dropped(self, monitor, client):
        poller = ActivityPoller(monitor, client)
        await poller.poll_once(now=100.0)
        assert monitor.count() == 2

        client.list_panes.return_value = [_pane("%1", "✳ Claude Code")]
        await poller.poll_once(now=102.0)

        assert monitor.pane_ids() == ["%1"]

    @pytest.mark.asyncio
    async def test_failed_listing_keeps_classifiers(self, monitor, client):
        poller = ActivityPoller(monitor, client)
        await poller.poll_once(now=100.0)
        history = monitor.get("%1").get_state_history()
        assert len(history) == 1

        client.list_panes.return_value = None
        activities = await poller.poll_once(now=102.0)

        assert activities == {}
        assert metrics.get_counter("poller.list_failed") == 1
        assert sorted(monitor.pane_ids()) == ["%1", "%2"]
        assert monitor.get("%1").get_state_history() == history

    @pytest.mark.asyncio
    async def test_empty_listing_drops_classifiers(self, monitor, client):
        """tmux answered with no panes: they really are gone"""
        poller = ActivityPoller(monitor, client)
        await poller.poll_once(now=100.0)

        client.list_panes.return_value = []
        await poller.poll_once(now=102.0)

        assert monitor.count() == 0
        assert metrics.get_counter("poller.list_failed") == 0


class TestRunLoop:
    """run() / stop()"""

    @pytest.mark.asyncio
    async def test_run_until_stopped(self, monitor, client):
        poller = ActivityPoller(monitor, client)
        rounds = []

        async def on_round(activities):
            rounds.append(activities)

        poller.add_callback(on_round)
        task = asyncio.create_task(poller.run(interval=0.01))
        await asyncio.sleep(0.1)
        poller.stop()
        await asyncio.wait_for(task, timeout=1.0)

        assert len(rounds) >= 2
        assert set(rounds[0]) == {"%1", "%2"}

    @pytest.mark.asyncio
    async def test_round_failure_keeps_loop_alive(self, monitor, client):
        client.list_panes.side_effect = [RuntimeError("tmux gone"), []]
        poller = ActivityPoller(monitor, client)
        rounds = []

        async def on_round(activities):
            rounds.append(activities)
            poller.stop()

        poller.add_callback(on_round)
        await asyncio.wait_for(poller.run(interval=0.01), timeout=1.0)

        assert rounds == [{}]

    @pytest.mark.asyncio
    async def test_callback_error_isolated(self, monitor, client):
        poller = ActivityPoller(monitor, client)
        calls = []

        async def bad(activities):
            raise ValueError("boom")

        async def good(activities):
            calls.append(activities)
            poller.stop()

        poller.add_callback(bad)
        poller.add_callback(good)
        await asyncio.wait_for(poller.run(interval=0.01), timeout=1.0)

        assert len(calls) == 1
