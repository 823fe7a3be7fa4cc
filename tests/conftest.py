"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests.
It sets TESTING so settings never load a local .env file during tests.
"""

import os

# CRITICAL: Set this before any imports that might load settings
os.environ["TESTING"] = "true"

import pytest

from ratekeeper.adapters.rate_limit.base import Rule
from ratekeeper.core.clock import ManualClock
from ratekeeper.core.config import get_settings


@pytest.fixture
def clock() -> ManualClock:
    """Deterministic clock starting at t=1000s."""
    return ManualClock(start=1_000.0)


@pytest.fixture
def rule() -> Rule:
    """3 requests per 5 seconds."""
    return Rule(capacity=3, window_seconds=5.0)


@pytest.fixture(autouse=True)
def fresh_settings():
    """Rebuild settings from the (monkeypatched) environment in every test."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
