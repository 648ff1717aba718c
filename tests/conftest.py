"""
Pytest fixtures shared across test modules
"""

import pytest

from fakes import FakeLLM, FakeParameterSource, FakeStateStore


@pytest.fixture
def params():
    return FakeParameterSource()


@pytest.fixture
def llm():
    return FakeLLM()


@pytest.fixture
def store():
    return FakeStateStore()
