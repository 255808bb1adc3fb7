"""Tests for TmuxClient."""

from unittest.mock import AsyncMock, patch

import pytest

from agentwatch.adapters.tmux.client import PANE_FORMAT, TmuxClient, parse_pane_line
from agentwatch.telemetry import metrics


class TestTmuxClient:
    """Tests for TmuxClient class."""

    def test_init_default(self):
        """Test TmuxClient initialization with defaults."""
        client = TmuxClient()
        assert client._socket_path is None

    @pytest.mark.asyncio
    async def test_run_success(self):
        """Test running tmux command successfully."""
        client = TmuxClient()

        with patch("asyncio.create_subprocess_exec", new_callable=AsyncMock) as mock_exec:
            mock_proc = AsyncMock()
            mock_proc.communicate.return_value = (b"output\n", b"")
            mock_proc.returncode = 0
            mock_exec.return_value = mock_proc

            result = await client.run("list-sessions")

            assert result == "output\n"
            call_args = mock_exec.call_args[0]
            assert call_args[0] == "tmux"
            assert "list-sessions" in call_args

    @pytest.mark.asyncio
    async def test_run_with_socket(self):
        """Test running tmux command with socket path."""
        client = TmuxClient(socket_path="/tmp/test.sock")

        with patch("asyncio.create_subprocess_exec", new_callable=AsyncMock) as mock_exec:
            mock_proc = AsyncMock()
            mock_proc.communicate.return_value = (b"ok\n", b"")
            mock_proc.returncode = 0
            mock_exec.return_value = mock_proc

            await client.run("list-panes")

            call_args = mock_exec.call_args[0]
            assert call_args[1:3] == ("-S", "/tmp/test.sock")

    @pytest.mark.asyncio
    async def test_run_failure(self):
        """Non-zero exit status yields None."""
        client = TmuxClient()

        with patch("asyncio.create_subprocess_exec", new_callable=AsyncMock) as mock_exec:
            mock_proc = AsyncMock()
            mock_proc.communicate.return_value = (b"", b"no server running\n")
            mock_proc.returncode = 1
            mock_exec.return_value = mock_proc

            assert await client.run("list-sessions") is None
            assert metrics.get_counter("tmux.command_failed", {"command": "list-sessions"}) == 1

    @pytest.mark.asyncio
    async def test_run_missing_binary(self):
        """A missing tmux binary yields None instead of raising."""
        client = TmuxClient()

        with patch("asyncio.create_subprocess_exec", new_callable=AsyncMock) as mock_exec:
            mock_exec.side_effect = FileNotFoundError("tmux")
            assert await client.run("list-sessions") is None

    @pytest.mark.asyncio
    async def test_list_panes(self):
        """Test listing tmux panes."""
        client = TmuxClient()

        output = (
            "%0\twork\t0\t0\t✳ Claude Code\tnode\t1\n"
            "%1\twork\t0\t1\tbuild: make all\tmake\t0\n"
            "%2\tscratch\t1\t0\tzsh\tzsh\t1\n"
        )
        with patch.object(client, "run", return_value=output) as mock_run:
            panes = await client.list_panes()

            assert mock_run.call_args[0][:2] == ("list-panes", "-a")
            assert len(panes) == 3
            assert panes[0] == {
                "pane_id": "%0",
                "session_name": "work",
                "window_index": 0,
                "pane_index": 0,
                "pane_title": "✳ Claude Code",
                "current_command": "node",
                "active": True,
            }
            assert panes[1]["pane_title"] == "build: make all"
            assert panes[1]["active"] is False
            assert panes[2]["session_name"] == "scratch"

    @pytest.mark.asyncio
    async def test_list_panes_one_session(self):
        client = TmuxClient()

        with patch.object(client, "run", return_value="") as mock_run:
            await client.list_panes("work")
            assert mock_run.call_args[0][:4] == ("list-panes", "-s", "-t", "work")

    @pytest.mark.asyncio
    async def test_list_panes_skips_bad_lines(self):
        client = TmuxClient()

        output = "%0\twork\tx\t0\ttitle\tzsh\t1\nshort line\n%1\twork\t0\t1\tt\tzsh\t0\n"
        with patch.object(client, "run", return_value=output):
            panes = await client.list_panes()
            assert [p["pane_id"] for p in panes] == ["%1"]

    @pytest.mark.asyncio
    async def test_list_panes_empty(self):
        """Test listing panes when tmux returns nothing."""
        client = TmuxClient()

        with patch.object(client, "run", return_value=""):
            assert await client.list_panes() == []

    @pytest.mark.asyncio
    async def test_list_panes_failure(self):
        """A failed listing is None, not an empty pane list."""
        client = TmuxClient()

        with patch.object(client, "run", return_value=None):
            assert await client.list_panes() is None

    @pytest.mark.asyncio
    async def test_capture_pane(self):
        """Test capturing pane content."""
        client = TmuxClient()

        with patch.object(client, "run", return_value="line1\nline2\n") as mock_run:
            content = await client.capture_pane("%0", lines=20)

            assert content == "line1\nline2\n"
            args = mock_run.call_args[0]
            assert args[0] == "capture-pane"
            assert args[args.index("-t") + 1] == "%0"
            assert "-20" in args
            assert "-e" not in args

    @pytest.mark.asyncio
    async def test_capture_pane_with_escape(self):
        client = TmuxClient()

        with patch.object(client, "run", return_value="") as mock_run:
            await client.capture_pane("%0", escape=True)
            assert "-e" in mock_run.call_args[0]

    @pytest.mark.asyncio
    async def test_capture_pane_failure(self):
        client = TmuxClient()

        with patch.object(client, "run", return_value=None):
            assert await client.capture_pane("%9") is None


class TestParsePaneLine:
    """Row parsing"""

    def test_format_fields(self):
        assert PANE_FORMAT.split("\t")[0] == "#{pane_id}"
        assert "#{pane_current_command}" in PANE_FORMAT

    def test_valid_row(self):
        pane = parse_pane_line("%4\tdev\t2\t1\ttitle: with colon\tvim\t0")
        assert pane["pane_id"] == "%4"
        assert pane["window_index"] == 2
        assert pane["pane_title"] == "title: with colon"
        assert pane["active"] is False

    def test_malformed_rows(self):
        assert parse_pane_line("%4\tdev") is None
        assert parse_pane_line("%4\tdev\tx\t1\tt\tvim\t0") is None
