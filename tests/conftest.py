"""Pytest configuration"""

import pytest

from agentwatch.telemetry import metrics


@pytest.fixture(autouse=True)
def reset_metrics():
    """Reset metrics before and after every test"""
    metrics.reset()
    yield
    metrics.reset()
