"""Shared pytest configuration for the UCCI bridge packages."""

import pytest


def pytest_addoption(parser: pytest.Parser) -> None:
    """Add the --integration flag."""
    parser.addoption(
        "--integration",
        action="store_true",
        default=False,
        help="run integration tests against a real UCCI engine (UCCI_ENGINE_PATH)",
    )


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "integration: needs a real UCCI engine binary; skipped without --integration"
    )


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Skip integration tests unless --integration is given."""
    if config.getoption("--integration"):
        return
    skip_integration = pytest.mark.skip(reason="need --integration option to run")
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_integration)
