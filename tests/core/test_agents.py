"""Agent kind utility tests"""

import pytest

from agentwatch.core.agents import detect_agent_type, is_agent_type, normalize_agent_type


class TestNormalizeAgentType:
    """Alias mapping"""

    @pytest.mark.parametrize(
        "label,expected",
        [
            ("cc", "claude"),
            ("Claude-Code", "claude"),
            ("claude_code", "claude"),
            ("COD", "codex"),
            ("codex-cli", "codex"),
            ("GMI", "gemini"),
            ("gemini_cli", "gemini"),
        ],
    )
    def test_aliases(self, label, expected):
        assert normalize_agent_type(label) == expected

    def test_unknown_label_lowercased(self):
        assert normalize_agent_type("Aider") == "aider"

    def test_empty(self):
        assert normalize_agent_type("") == ""

    def test_whitespace_not_trimmed(self):
        assert normalize_agent_type("  claude  ") == "  claude  "


class TestDetectAgentType:
    """Inferring kinds from pane titles"""

    @pytest.mark.parametrize(
        "title,expected",
        [
            ("✳ Claude Code", "claude"),
            ("codex - ~/src/app", "codex"),
            ("Gemini CLI", "gemini"),
            ("aider --model x", "aider"),
            ("myproject__cc_1", "claude"),
            ("myproject__cod__", "codex"),
            ("myproject__gmi_2", "gemini"),
        ],
    )
    def test_known(self, title, expected):
        assert detect_agent_type(title) == expected

    def test_unknown(self):
        assert detect_agent_type("zsh") == "unknown"
        assert detect_agent_type("") == "unknown"


def test_is_agent_type():
    assert is_agent_type("claude")
    assert not is_agent_type("user")
    assert not is_agent_type("unknown")
    assert not is_agent_type("*")
    assert not is_agent_type("")
