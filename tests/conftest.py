"""Shared fixtures for the test suite."""

import pytest

from agentpipe.types.cancellation import Context
from fixtures.mocked_completion import MockedCompletion


@pytest.fixture
def ctx():
    return Context.background()


@pytest.fixture
def completion():
    return MockedCompletion()
