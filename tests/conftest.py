# tests/conftest.py
"""Shared test fixtures.

Web fixtures build a WebBackend in-process and drive it with Starlette's
TestClient (no real network socket, safe for parallel tests).

Hypothesis Configuration:
- "ci" profile: Fast tests for CI (100 examples) - default
- "nightly" profile: Thorough tests (1000 examples)
- "debug" profile: Minimal tests with verbose output (10 examples)

Set profile via environment variable:
    HYPOTHESIS_PROFILE=nightly pytest tests/property/
"""

from __future__ import annotations

import os
from collections.abc import Callable

import pytest
import structlog
from hypothesis import Phase, Verbosity, settings
from starlette.testclient import TestClient

from httpdummy.config import WebConfig
from httpdummy.logging import get_logger
from httpdummy.web.server import WebBackend

settings.register_profile(
    "ci",
    max_examples=100,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,  # Timing varies on shared runners
)

settings.register_profile(
    "nightly",
    max_examples=1000,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

settings.register_profile(
    "debug",
    max_examples=10,
    verbosity=Verbosity.verbose,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "ci"))


@pytest.fixture
def logger() -> structlog.stdlib.BoundLogger:
    """A module logger for constructing backends."""
    return get_logger("tests")


@pytest.fixture
def config() -> WebConfig:
    """Default web configuration."""
    return WebConfig()


@pytest.fixture
def backend(config: WebConfig, logger: structlog.stdlib.BoundLogger) -> WebBackend:
    """A WebBackend built from the default configuration."""
    return WebBackend(config, logger)


@pytest.fixture
def client(backend: WebBackend) -> TestClient:
    """Test client for the default backend."""
    return TestClient(backend.app)


@pytest.fixture
def make_client(logger: structlog.stdlib.BoundLogger) -> Callable[..., TestClient]:
    """Factory for test clients with custom configuration.

    Usage:
        client = make_client(code_404_as_200=True)
    """

    def _make(**overrides: object) -> TestClient:
        backend = WebBackend(WebConfig(**overrides), logger)
        return TestClient(backend.app)

    return _make
