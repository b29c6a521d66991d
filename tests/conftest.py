"""Shared test fixtures.

Hypothesis Configuration:
- "ci" profile: Fast tests for CI (100 examples) - default
- "nightly" profile: Thorough tests (1000 examples)
- "debug" profile: Minimal tests with verbose output (10 examples)

Set profile via environment variable:
    HYPOTHESIS_PROFILE=nightly pytest tests/property/
"""

import logging
import os
from collections.abc import Callable, Iterator
from typing import Any

import pytest
import structlog
from hypothesis import Phase, Verbosity, settings

from buildbeacon.core.config import BuildBeaconSettings
from buildbeacon.core.hostname import HostnameResolver
from tests.fakes import FakeRun, StubOSProvider


@pytest.fixture
def make_settings() -> Callable[..., BuildBeaconSettings]:
    """Factory for settings with a test API key and overridable fields."""

    def _make(**overrides: Any) -> BuildBeaconSettings:
        values: dict[str, Any] = {"api_key": "test-api-key"}
        values.update(overrides)
        return BuildBeaconSettings(**values)

    return _make


@pytest.fixture
def bb_settings(make_settings: Callable[..., BuildBeaconSettings]) -> BuildBeaconSettings:
    return make_settings()


@pytest.fixture
def offline_resolver() -> HostnameResolver:
    """Resolver whose OS and network sources never yield a hostname."""
    return HostnameResolver(
        os_provider=StubOSProvider(None),
        local_lookup=lambda: None,
        os_name="Linux",
    )


@pytest.fixture
def completed_run() -> FakeRun:
    return FakeRun(
        job_name="build-x",
        number=42,
        start_time_ms=1_700_000_000_123,
        duration_ms=45_000,
        result="SUCCESS",
        environment={
            "BUILD_URL": "https://ci.example.com/job/build-x/42/",
            "NODE_NAME": "agent1",
            "GIT_BRANCH": "main",
            "HOSTNAME": "ci-agent-1.example.com",
        },
    )


@pytest.fixture
def started_run() -> FakeRun:
    return FakeRun(
        job_name="build-x",
        number=42,
        start_time_ms=1_700_000_000_123,
        environment={
            "BUILD_URL": "https://ci.example.com/job/build-x/42/",
            "HOSTNAME": "ci-agent-1.example.com",
        },
    )


@pytest.fixture(autouse=True)
def _reset_structlog() -> Iterator[None]:
    """Undo configure_logging() calls made by CLI and logging tests."""
    yield
    structlog.reset_defaults()
    logging.getLogger().handlers = []


# =============================================================================
# Hypothesis Configuration
# =============================================================================

settings.register_profile(
    "ci",
    max_examples=100,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
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
