"""Tmux adapter for agentwatch."""

from .client import TmuxClient

__all__ = ["TmuxClient"]
