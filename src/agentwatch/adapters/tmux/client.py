"""Tmux client - pane listing and capture over the tmux CLI

Every failure (missing binary, no server, bad target) is logged and
returned as None, so callers can tell it apart from an empty result.
"""

import asyncio
from collections.abc import Callable
from typing import Any

from ... import config
from ...telemetry import get_logger, metrics

logger = get_logger(__name__)

# Tab separated: titles and paths may contain colons
_FIELD_SEP = "\t"

# (tmux format variable, dict key, converter)
_PANE_FIELDS: tuple[tuple[str, str, Callable[[str], Any]], ...] = (
    ("pane_id", "pane_id", str),
    ("session_name", "session_name", str),
    ("window_index", "window_index", int),
    ("pane_index", "pane_index", int),
    ("pane_title", "pane_title", str),
    ("pane_current_command", "current_command", str),
    ("pane_active", "active", lambda v: v == "1"),
)

PANE_FORMAT = _FIELD_SEP.join(f"#{{{var}}}" for var, _, _ in _PANE_FIELDS)


def parse_pane_line(line: str) -> dict[str, Any] | None:
    """One list-panes row → pane dict, None if malformed"""
    parts = line.split(_FIELD_SEP)
    if len(parts) < len(_PANE_FIELDS):
        return None
    try:
        return {key: convert(value) for (_, key, convert), value in zip(_PANE_FIELDS, parts)}
    except ValueError:
        return None


class TmuxClient:
    """Async wrapper around the tmux binary

    Args:
        socket_path: tmux socket (-S), None for the default server
    """

    def __init__(self, socket_path: str | None = None):
        self._socket_path = socket_path

    def _command(self, args: tuple[str, ...]) -> list[str]:
        cmd = ["tmux"]
        if self._socket_path:
            cmd += ["-S", self._socket_path]
        return cmd + list(args)

    async def run(self, *args: str) -> str | None:
        """Run a tmux subcommand

        Returns:
            Decoded stdout, None when tmux failed or could not start
        """
        cmd = self._command(args)
        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
            stdout, stderr = await proc.communicate()
        except OSError as e:
            metrics.inc("tmux.command_failed", {"command": args[0] if args else ""})
            logger.error(f"[Tmux] cannot run tmux: {e}")
            return None

        if proc.returncode != 0:
            metrics.inc("tmux.command_failed", {"command": args[0] if args else ""})
            logger.warning(
                f"[Tmux] {' '.join(args)} exited {proc.returncode}: "
                f"{stderr.decode(errors='replace').strip()}"
            )
            return None

        return stdout.decode(errors="replace")

    async def list_panes(self, session: str | None = None) -> list[dict[str, Any]] | None:
        """Panes of one session, or of every session when None

        Each dict holds pane_id, session_name, window_index, pane_index,
        pane_title, current_command and active. Malformed rows are
        skipped.

        Returns:
            Pane dicts ([] when tmux lists nothing), None when the
            listing itself failed
        """
        scope = ["-s", "-t", session] if session else ["-a"]
        output = await self.run("list-panes", *scope, "-F", PANE_FORMAT)
        if output is None:
            return None

        panes = []
        for line in output.splitlines():
            if not line:
                continue
            pane = parse_pane_line(line)
            if pane is None:
                logger.warning(f"[Tmux] unparsable pane row: {line!r}")
                continue
            panes.append(pane)
        return panes

    async def capture_pane(
        self,
        pane_id: str,
        lines: int = config.CAPTURE_LINES,
        escape: bool = False,
    ) -> str | None:
        """Bottom `lines` rows of a pane, wrapped lines joined

        Args:
            escape: Keep color/style escape sequences (-e)

        Returns:
            Raw capture, None on failure
        """
        args = ["capture-pane", "-p", "-J", "-t", pane_id, "-S", f"-{lines}"]
        if escape:
            args.append("-e")
        return await self.run(*args)
