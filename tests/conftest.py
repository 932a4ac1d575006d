"""
Shared pytest fixtures and configuration for statecore tests.
"""

import pytest

from statecore import ManualScheduler, ReactiveRuntime, reset_global_state_config


@pytest.fixture(autouse=True)
def reset_state_config():
    """Restore the default mapper/alias registry around each test."""
    reset_global_state_config()
    yield
    reset_global_state_config()


@pytest.fixture
def scheduler():
    """Provide a manually advanced scheduler."""
    return ManualScheduler()


@pytest.fixture
def runtime(scheduler):
    """Provide a fresh runtime driven by the manual scheduler."""
    return ReactiveRuntime(scheduler=scheduler)


@pytest.fixture
def recorder():
    """Provide a callback recording every value it receives."""

    class Recorder(list):
        def __call__(self, value):
            self.append(value)

    return Recorder()
