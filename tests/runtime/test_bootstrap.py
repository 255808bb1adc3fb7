"""Bootstrap tests"""

from unittest.mock import MagicMock

import pytest

from agentwatch.activity import ClassifierConfig, PatternLibrary, default_patterns, get_default_library
from agentwatch.adapters.tmux import TmuxClient
from agentwatch.runtime import bootstrap, get_current_components
from agentwatch.runtime.bootstrap import _reset_for_testing


@pytest.fixture(autouse=True)
def reset_bootstrap():
    _reset_for_testing()
    yield
    _reset_for_testing()


class TestBootstrap:
    """Component wiring"""

    def test_components_wired(self):
        client = MagicMock(spec=TmuxClient)
        components = bootstrap(client=client, custom_patterns=[])

        assert components.library is not get_default_library()
        assert components.library.pattern_count() == len(default_patterns())
        assert components.monitor.config.pattern_library is components.library
        assert components.poller.monitor is components.monitor
        assert components.rejected_patterns == []
        assert get_current_components() is components

    def test_custom_patterns_applied(self):
        components = bootstrap(
            client=MagicMock(spec=TmuxClient),
            custom_patterns=[
                {"name": "aider_prompt", "regex": r"aider>\s*$", "category": "idle", "agent": "aider"},
                {"name": "broken", "regex": "(", "category": "error"},
            ],
        )

        names = {p.name for p in components.library.get_patterns()}
        assert "aider_prompt" in names
        assert "broken" not in names
        assert [name for name, _ in components.rejected_patterns] == ["broken"]

    def test_classifier_config_respected(self):
        library = PatternLibrary()
        cfg = ClassifierConfig(pattern_library=library, hysteresis_duration=5.0)

        components = bootstrap(client=MagicMock(spec=TmuxClient), classifier_config=cfg, custom_patterns=[])

        assert components.library is library
        assert components.monitor.config.hysteresis_duration == 5.0
        assert components.monitor.config is not cfg

    def test_default_client(self):
        components = bootstrap(custom_patterns=[])
        assert components.poller is not None

    def test_double_bootstrap_rejected(self):
        bootstrap(client=MagicMock(spec=TmuxClient), custom_patterns=[])
        with pytest.raises(RuntimeError):
            bootstrap(client=MagicMock(spec=TmuxClient), custom_patterns=[])

    def test_no_components_before_bootstrap(self):
        assert get_current_components() is None
