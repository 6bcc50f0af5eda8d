"""Shared fixtures for Stripe testing tools tests."""

from __future__ import annotations

from collections.abc import Callable
from unittest.mock import MagicMock

import pytest
from fastmcp import FastMCP

from stripe_testing_tools.credentials import CredentialStoreAdapter
from stripe_testing_tools.log_config import close_logger


@pytest.fixture
def mcp() -> FastMCP:
    """Create a fresh FastMCP instance for testing."""
    return FastMCP("test-server")


@pytest.fixture
def mock_credentials() -> CredentialStoreAdapter:
    """Create a CredentialStoreAdapter with a test-mode Stripe key."""
    return CredentialStoreAdapter.for_testing({"stripe": "sk_test_key123"})


@pytest.fixture
def capture_tools() -> Callable[..., dict[str, Callable]]:
    """Return a helper that registers tools on a mock MCP and maps name -> function."""

    def _capture(register: Callable, **kwargs) -> dict[str, Callable]:
        mcp = MagicMock()
        fns: list[Callable] = []
        mcp.tool.return_value = lambda fn: fns.append(fn) or fn
        register(mcp, **kwargs)
        return {f.__name__: f for f in fns}

    return _capture


@pytest.fixture(autouse=True)
def _reset_package_logger():
    yield
    close_logger()
