"""Terminal adapters

Capture primitives for the multiplexers agentwatch can read from.
"""

from .tmux import TmuxClient

__all__ = ["TmuxClient"]
