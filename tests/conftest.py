"""Test configuration."""

import os
from collections.abc import Generator
from pathlib import Path

import pytest
from pytest import Config

os.environ.setdefault("TESTING", "true")

from scrapegate.core.logging import configure_logging  # noqa: E402

fixture = pytest.fixture


@fixture(scope="session")
def project_root() -> Path:
    """Get the project root directory."""
    return Path(__file__).parent.parent


pytest_plugins: list[str] = [
    "tests.fixtures.api",
    "tests.fixtures.jobs",
]


@fixture(autouse=True)
def reset_rate_limiter() -> Generator[None, None, None]:
    """Start every test with empty rate limit windows."""
    from scrapegate.middleware.ratelimit import limiter

    limiter.reset()
    yield
    limiter.reset()


def pytest_configure(config: Config) -> None:
    """Configure pytest.

    Args:
        config: Pytest configuration object
    """
    # Configure logging for test environment
    configure_logging(testing=True)
    config.addinivalue_line("markers", "integration: mark test as an integration test")
