"""Shared test fixtures for the SIMRS test suite."""

from __future__ import annotations

import os
from unittest.mock import MagicMock

import pytest


def pytest_configure(config):
    """Set test environment variables BEFORE collection starts.

    This runs before any imports, so config.py picks up a credential and
    web search stays on regardless of the developer's ``.env``.
    """
    os.environ.setdefault("ANTHROPIC_API_KEY", "test-anthropic-key-123")
    os.environ.setdefault("WEB_SEARCH_ENABLED", "true")


@pytest.fixture
def store():
    from simrs.services.store import HospitalStore

    return HospitalStore.with_seed_data()


@pytest.fixture
def scripted_llm():
    """Factory fixture: a mock chat model that replies with the given messages in order.

    Exceptions in the script are raised instead of returned.
    """

    def _make(*replies):
        llm = MagicMock()
        llm.invoke.side_effect = list(replies)
        return llm

    return _make
