"""Core module - agent kind utilities"""

from .agents import WILDCARD_AGENT, detect_agent_type, is_agent_type, normalize_agent_type

__all__ = [
    "WILDCARD_AGENT",
    "normalize_agent_type",
    "detect_agent_type",
    "is_agent_type",
]
