"""Agent kind utilities

Canonical agent kinds and the mapping from free-form labels (CLI flags,
config entries, pane titles) onto them.
"""

WILDCARD_AGENT = "*"

CLAUDE = "claude"
CODEX = "codex"
GEMINI = "gemini"
CURSOR = "cursor"
WINDSURF = "windsurf"
AIDER = "aider"
USER = "user"
UNKNOWN = "unknown"

_ALIASES: dict[str, str] = {
    "cc": CLAUDE,
    "claude-code": CLAUDE,
    "claude_code": CLAUDE,
    "claude": CLAUDE,
    "cod": CODEX,
    "codex-cli": CODEX,
    "codex_cli": CODEX,
    "codex": CODEX,
    "gmi": GEMINI,
    "gemini-cli": GEMINI,
    "gemini_cli": GEMINI,
    "gemini": GEMINI,
}

# Checked in order against the lower-cased title
_TITLE_KEYWORDS = (CLAUDE, CODEX, GEMINI, CURSOR, WINDSURF, AIDER)

# Short forms used in generated pane titles, e.g. "proj__cc_1"
_TITLE_SHORT_FORMS = (("cc", CLAUDE), ("cod", CODEX), ("gmi", GEMINI))


def normalize_agent_type(label: str) -> str:
    """Map an agent label or alias to its canonical kind

    Matching is case-insensitive. Unrecognized labels come back
    lower-cased, the empty string stays empty, and surrounding
    whitespace is left alone (so "  claude  " is not an alias).

    Examples:
        >>> normalize_agent_type("cc")
        'claude'
        >>> normalize_agent_type("GMI")
        'gemini'
    """
    lowered = label.lower()
    return _ALIASES.get(lowered, lowered)


def _contains_short_form(title: str, short: str) -> bool:
    return f"__{short}_" in title or f"__{short}__" in title


def detect_agent_type(title: str) -> str:
    """Infer the agent kind from a pane title

    Returns:
        Canonical kind, or "unknown" when nothing matches
    """
    title_lower = title.lower()
    for keyword in _TITLE_KEYWORDS:
        if keyword in title_lower:
            return keyword
    for short, kind in _TITLE_SHORT_FORMS:
        if _contains_short_form(title_lower, short):
            return kind
    return UNKNOWN


def is_agent_type(kind: str) -> bool:
    """True for kinds that host an AI agent (not a shell or unknown)"""
    return bool(kind) and kind not in {USER, UNKNOWN, WILDCARD_AGENT}
