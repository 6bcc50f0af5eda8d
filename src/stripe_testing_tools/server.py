#!/usr/bin/env python3
"""
Stripe Testing Tools MCP Server

FastMCP server exposing tools that create and clean up Stripe test-mode data
(customers, subscriptions, products, test clocks). Live-mode keys are refused.

Usage:
    # Run with STDIO transport (for agent integration)
    stripe-testing-tools-mcp --stdio

    # Run with HTTP transport
    stripe-testing-tools-mcp --port 4010

    # Verify STRIPE_API_KEY against the Stripe API and exit
    stripe-testing-tools-mcp --check-credentials
"""

from __future__ import annotations

import argparse
import json
import logging
import sys

# Suppress FastMCP banner on stdout in STDIO mode
if "--stdio" in sys.argv:
    import rich.console

    _original_console_init = rich.console.Console.__init__

    def _patched_console_init(self, *args, **kwargs):
        kwargs["file"] = sys.stderr
        _original_console_init(self, *args, **kwargs)

    rich.console.Console.__init__ = _patched_console_init

from fastmcp import FastMCP  # noqa: E402

from stripe_testing_tools import __version__  # noqa: E402
from stripe_testing_tools.config import LOG_PREFIX, ServerConfig, load_config  # noqa: E402
from stripe_testing_tools.credentials import CredentialStoreAdapter, LiveKeyPolicy  # noqa: E402
from stripe_testing_tools.credentials.health_check import check_credential_health  # noqa: E402
from stripe_testing_tools.log_config import LogLevel, close_logger, setup_logger  # noqa: E402
from stripe_testing_tools.tools import register_all_tools  # noqa: E402

SERVER_NAME = "Stripe Testing tools"

logger = logging.getLogger(__name__)


def create_server(
    config: ServerConfig,
    credentials: CredentialStoreAdapter | None = None,
) -> FastMCP:
    """Build the FastMCP server with every Stripe testing tool registered."""
    mcp = FastMCP(SERVER_NAME, version=__version__)
    tools = register_all_tools(
        mcp,
        credentials=credentials or CredentialStoreAdapter.default(),
        live_key_policy=config.live_key_policy,
    )
    logger.info(f"Registered {len(tools)} tools: {', '.join(tools)}")
    return mcp


def build_parser(config: ServerConfig) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Stripe Testing Tools MCP Server")
    parser.add_argument(
        "--port",
        type=int,
        default=config.port,
        help=f"HTTP server port (default: {config.port})",
    )
    parser.add_argument(
        "--host",
        default=config.host,
        help=f"HTTP server host (default: {config.host})",
    )
    parser.add_argument(
        "--stdio",
        action="store_true",
        help="Use STDIO transport instead of HTTP",
    )
    parser.add_argument(
        "--log-level",
        type=LogLevel.parse,
        default=config.log_level,
        help="DEBUG, INFO, WARN, ERROR or NONE (default: INFO)",
    )
    parser.add_argument(
        "--log-file",
        default=config.log_file,
        help="Also append log lines to this file",
    )
    parser.add_argument(
        "--live-key-policy",
        type=LiveKeyPolicy.parse,
        default=config.live_key_policy,
        help="How live keys are detected: prefix (default) or substring",
    )
    parser.add_argument(
        "--check-credentials",
        action="store_true",
        help="Check STRIPE_API_KEY against the Stripe API and exit",
    )
    return parser


def check_credentials(policy: LiveKeyPolicy, credentials: CredentialStoreAdapter) -> int:
    """Print the Stripe credential health check as JSON; return the exit code."""
    result = check_credential_health("stripe", credentials.get("stripe"), policy=policy)
    print(
        json.dumps({"valid": result.valid, "message": result.message, "details": result.details})
    )
    return 0 if result.valid else 1


def main(argv: list[str] | None = None) -> None:
    """Entry point for the Stripe Testing Tools MCP server."""
    try:
        config = load_config()
    except ValueError as e:
        setup_logger(prefix=LOG_PREFIX)
        logger.error(str(e))
        sys.exit(1)

    args = build_parser(config).parse_args(argv)
    config.port = args.port
    config.host = args.host
    config.log_level = args.log_level
    config.log_file = args.log_file
    config.live_key_policy = args.live_key_policy

    setup_logger(
        level=config.log_level,
        prefix=LOG_PREFIX,
        include_timestamp=config.include_timestamp,
        log_file=config.log_file,
    )
    logger.debug(f"Live key policy: {config.live_key_policy.value}")

    credentials = CredentialStoreAdapter.default()
    if args.check_credentials:
        code = check_credentials(config.live_key_policy, credentials)
        close_logger()
        sys.exit(code)

    mcp = create_server(config, credentials)
    try:
        if args.stdio:
            mcp.run(transport="stdio")
        else:
            logger.info(f"Starting Stripe Testing Tools server on {config.host}:{config.port}")
            mcp.run(transport="http", host=config.host, port=config.port)
    except Exception as e:
        logger.error(f"Server error: {e}")
        sys.exit(1)
    finally:
        close_logger()


if __name__ == "__main__":
    main()
