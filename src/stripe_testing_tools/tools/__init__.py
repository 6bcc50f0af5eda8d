"""
Stripe Testing Tools - Tool implementations for FastMCP.

Usage:
    from fastmcp import FastMCP
    from stripe_testing_tools.tools import register_all_tools
    from stripe_testing_tools.credentials import CredentialStoreAdapter

    mcp = FastMCP("my-server")
    credentials = CredentialStoreAdapter.default()
    register_all_tools(mcp, credentials=credentials)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastmcp import FastMCP

from stripe_testing_tools.credentials.gate import LiveKeyPolicy
from stripe_testing_tools.credentials.stripe import STRIPE_CREDENTIALS

from .stripe_testing_tool import register_tools as register_stripe_testing

if TYPE_CHECKING:
    from stripe_testing_tools.credentials import CredentialStoreAdapter


def register_all_tools(
    mcp: FastMCP,
    credentials: CredentialStoreAdapter | None = None,
    live_key_policy: LiveKeyPolicy = LiveKeyPolicy.PREFIX_SEGMENT,
) -> list[str]:
    """
    Register all tools with a FastMCP server.

    Args:
        mcp: FastMCP server instance
        credentials: Optional CredentialStoreAdapter instance.
                     If not provided, tools fall back to direct os.getenv() calls.
        live_key_policy: Rule used by the credential gate to spot live keys

    Returns:
        List of registered tool names
    """
    register_stripe_testing(mcp, credentials=credentials, live_key_policy=live_key_policy)

    return list(STRIPE_CREDENTIALS["stripe"].tools)
