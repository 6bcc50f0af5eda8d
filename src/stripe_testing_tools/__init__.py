"""
Stripe Testing Tools - MCP tools for generating Stripe test-mode data.

Usage:
    from fastmcp import FastMCP
    from stripe_testing_tools.tools import register_all_tools
    from stripe_testing_tools.credentials import CredentialStoreAdapter

    mcp = FastMCP("Stripe Testing tools")
    register_all_tools(mcp, credentials=CredentialStoreAdapter.default())
"""

__version__ = "0.1.0"
